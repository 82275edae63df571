"""
Authorization Gate tests

Tests:
  1. Token bootstrap issues a verifiable, short-lived token
  2. Admin-only routes: no token → 401, forged/expired → 401, customer → 403, admin → OK
  3. Self-check: /users/admin/{email} rejects a token for another email with 401
  4. Role is never taken from the request body
  5. AdminCapability cannot be forged outside the gate
"""
import pytest
from jose import jwt

from conftest import bearer
from bistro.core.config import get_settings
from bistro.core.errors import Unauthenticated
from bistro.core.gate import AdminCapability, authenticate
from bistro.core.security import verify_token

settings = get_settings()

MENU_ITEM = {
    "name": "Margherita",
    "recipe": "Tomato, mozzarella, basil",
    "image": "https://img.example/margherita.jpg",
    "category": "pizza",
    "price": 9.5,
}


# ─── Test 1: Token bootstrap ───────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_jwt_issues_token_with_email_claim(client):
    r = await client.post("/jwt", json={"email": "a@x.com", "role": "admin"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["expiresIn"] == settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60

    claims = verify_token(body["token"])
    assert claims["email"] == "a@x.com"
    assert "role" not in claims
    assert claims["exp"] - claims["iat"] == settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60


@pytest.mark.asyncio
async def test_jwt_requires_email(client):
    r = await client.post("/jwt", json={"name": "nobody"})
    assert r.status_code == 400


def test_authenticate_rejects_missing_and_malformed_headers():
    for header in (None, "", "Token abc", "Bearer ", "Bearer"):
        with pytest.raises(Unauthenticated):
            authenticate(header)


def test_authenticate_returns_identity_from_token():
    identity = authenticate(bearer("a@x.com")["Authorization"])
    assert identity.email == "a@x.com"


# ─── Test 2: Admin-only routes ─────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_admin_route_without_token_is_unauthenticated(client):
    r = await client.post("/menu", json=MENU_ITEM)
    assert r.status_code == 401
    assert r.headers.get("WWW-Authenticate") == "Bearer"


@pytest.mark.asyncio
async def test_admin_route_with_forged_token_is_unauthenticated(client, admin_user):
    forged = jwt.encode({"email": admin_user.email, "type": "access"}, "wrong-secret", algorithm="HS256")
    r = await client.post("/menu", json=MENU_ITEM, headers={"Authorization": f"Bearer {forged}"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_admin_route_with_expired_token_is_unauthenticated(client, admin_user):
    r = await client.post("/menu", json=MENU_ITEM, headers=bearer(admin_user.email, expires_minutes=-1))
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_admin_route_with_customer_token_is_forbidden(client, customer_headers):
    r = await client.post("/menu", json=MENU_ITEM, headers=customer_headers)
    assert r.status_code == 403
    assert (await client.get("/menu")).json() == []


@pytest.mark.asyncio
async def test_admin_route_with_unknown_user_is_forbidden(client):
    r = await client.post("/menu", json=MENU_ITEM, headers=bearer("stranger@x.com"))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_admin_route_with_admin_token_succeeds(client, admin_headers):
    r = await client.post("/menu", json=MENU_ITEM, headers=admin_headers)
    assert r.status_code == 201, r.text
    assert r.json()["name"] == "Margherita"


@pytest.mark.asyncio
async def test_promotion_requires_admin(client, customer_user, customer_headers, admin_headers):
    r = await client.patch(f"/users/admin/{customer_user.id}", headers=customer_headers)
    assert r.status_code == 403

    r = await client.patch(f"/users/admin/{customer_user.id}", headers=admin_headers)
    assert r.status_code == 200, r.text
    assert r.json() == {"matchedCount": 1, "modifiedCount": 1}

    # The promoted customer now passes the admin stage
    r = await client.get("/users", headers=customer_headers)
    assert r.status_code == 200


# ─── Test 3: Self-check ────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_admin_check_rejects_mismatched_email(client, admin_user, customer_headers):
    """A customer token asking about the admin's email → 401, even though that user is admin."""
    r = await client.get(f"/users/admin/{admin_user.email}", headers=customer_headers)
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_admin_check_reports_own_status(client, admin_user, admin_headers, customer_user, customer_headers):
    r = await client.get(f"/users/admin/{admin_user.email}", headers=admin_headers)
    assert r.json() == {"admin": True}

    r = await client.get(f"/users/admin/{customer_user.email}", headers=customer_headers)
    assert r.json() == {"admin": False}


@pytest.mark.asyncio
async def test_admin_check_requires_token(client, admin_user):
    r = await client.get(f"/users/admin/{admin_user.email}")
    assert r.status_code == 401


# ─── Test 4: Role from body is ignored ─────────────────────────────────────────
@pytest.mark.asyncio
async def test_signup_ignores_client_supplied_role(client):
    r = await client.post("/users", json={"email": "sneaky@x.com", "name": "Sneaky", "role": "admin"})
    assert r.status_code == 201, r.text
    assert r.json()["user"]["role"] == "customer"

    r = await client.post("/menu", json=MENU_ITEM, headers=bearer("sneaky@x.com"))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_token_role_claim_grants_nothing(client):
    token = jwt.encode(
        {"email": "claimer@x.com", "role": "admin", "type": "access"},
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )
    r = await client.post("/menu", json=MENU_ITEM, headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403


# ─── Test 5: Capability cannot be forged ───────────────────────────────────────
def test_admin_capability_is_not_constructible_directly():
    with pytest.raises(TypeError):
        AdminCapability("admin@x.com")
    with pytest.raises(TypeError):
        AdminCapability("admin@x.com", _key=object())
