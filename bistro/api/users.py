"""
Bistro API — Users API
"""
import logging
import uuid
from fastapi import APIRouter, Depends, Response, status

from bistro.api.deps import get_user_store, require_admin, require_identity
from bistro.core.errors import InvalidRequest, NotFound
from bistro.core.gate import AdminCapability, Identity, ensure_same_subject
from bistro.db.users import UserStore
from bistro.models.user import UserRole
from bistro.schemas.user import (
    AdminStatusResponse,
    RoleUpdateResponse,
    UserCreateRequest,
    UserCreatedResponse,
    UserDeletedResponse,
    UserResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["users"])


def _check_id(user_id: str) -> None:
    try:
        uuid.UUID(user_id)
    except ValueError:
        raise InvalidRequest("Invalid ID")


@router.post("", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreateRequest,
    response: Response,
    users: UserStore = Depends(get_user_store),
):
    """Register on first sign-in; repeated sign-ins return the existing account."""
    user, created = await users.get_or_create(
        email=payload.email, name=payload.name, photo_url=payload.photo_url
    )
    if not created:
        response.status_code = status.HTTP_200_OK
        return UserCreatedResponse(
            message="user already exists",
            inserted_id=None,
            user=UserResponse.model_validate(user),
        )

    logger.info("User %s registered", user.email)
    return UserCreatedResponse(
        message="user created",
        inserted_id=user.id,
        user=UserResponse.model_validate(user),
    )


@router.get("", response_model=list[UserResponse])
async def list_users(
    admin: AdminCapability = Depends(require_admin),
    users: UserStore = Depends(get_user_store),
):
    return await users.list_all(admin)


@router.get("/admin/{email}", response_model=AdminStatusResponse)
async def check_admin(
    email: str,
    identity: Identity = Depends(require_identity),
    users: UserStore = Depends(get_user_store),
):
    ensure_same_subject(identity, email)
    user = await users.get_by_email(email)
    return AdminStatusResponse(admin=user is not None and user.role == UserRole.ADMIN)


@router.patch("/admin/{user_id}", response_model=RoleUpdateResponse)
async def promote_user(
    user_id: str,
    admin: AdminCapability = Depends(require_admin),
    users: UserStore = Depends(get_user_store),
):
    _check_id(user_id)
    matched, modified = await users.promote_to_admin(user_id, admin)
    if not matched:
        raise NotFound("User not found")
    if modified:
        logger.info("User %s promoted to admin by %s", user_id, admin.email)
    return RoleUpdateResponse(matched_count=matched, modified_count=modified)


@router.delete("/{user_id}", response_model=UserDeletedResponse)
async def delete_user(
    user_id: str,
    admin: AdminCapability = Depends(require_admin),
    users: UserStore = Depends(get_user_store),
):
    user = await users.delete(user_id, admin)
    if user is None:
        raise NotFound("User not found")
    logger.info("User %s deleted by %s", user.email, admin.email)
    return UserDeletedResponse(
        message="User deleted successfully",
        deleted_user=UserResponse.model_validate(user),
    )
