"""
Settlement tests

Tests:
  1. Payment intent: positive amounts reach the processor, nothing is stored
  2. Payment intent: invalid amounts fail with 400 and never reach the processor
  3. Settle: payment recorded, covered orders retired
  4. Settle: replayed transactionId returns the stored payment, no duplicate
  5. Settle: concurrent race loser takes the already-settled path
  6. Settle: empty order/menu id sets are rejected
  7. Settle: a charge reported as Failed is refused, orders untouched
"""
import pytest
from sqlalchemy import func, select

from conftest import ORDER_PAYLOAD
from bistro.core.errors import InvalidRequest
from bistro.db.orders import OrderStore
from bistro.db.payments import PaymentStore, ReconciliationStore
from bistro.models.order import Order
from bistro.models.payment import Payment, PaymentStatus
from bistro.services.settlement import (
    SettlementCoordinator,
    SettlementDescriptor,
    SettlementOutcome,
)


async def _count(session_factory, model) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


async def _place_order(client, **overrides) -> dict:
    r = await client.post("/orders", json={**ORDER_PAYLOAD, **overrides})
    assert r.status_code == 201, r.text
    return r.json()


def _settlement(order_ids, transaction_id="tx1", **overrides) -> dict:
    body = {
        "email": "a@x.com",
        "price": 12.5,
        "transactionId": transaction_id,
        "orderIds": order_ids,
        "menuIds": ["m1"],
    }
    body.update(overrides)
    return body


# ─── Test 1: Authorize ─────────────────────────────────────────────────────────
@pytest.mark.asyncio
@pytest.mark.parametrize("amount, cents", [(12.5, 1250), (19.99, 1999), (1, 100), (0.015, 2)])
async def test_payment_intent_returns_secret_without_local_writes(
    client, processor, session_factory, amount, cents
):
    await _place_order(client)
    orders_before = await _count(session_factory, Order)
    payments_before = await _count(session_factory, Payment)

    r = await client.post("/create-payment-intent", json={"totalPrice": amount})

    assert r.status_code == 200, r.text
    assert r.json()["clientSecret"].startswith("pi_test_")
    assert processor.calls == [cents]
    assert await _count(session_factory, Order) == orders_before
    assert await _count(session_factory, Payment) == payments_before


# ─── Test 2: Authorize rejects bad amounts ─────────────────────────────────────
@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {"totalPrice": -5},
    {"totalPrice": 0},
    {"totalPrice": "12.5"},
    {"totalPrice": True},
    {"totalPrice": None},
    {"totalPrice": 10 ** 400},
    {},
])
async def test_payment_intent_rejects_invalid_amount(client, processor, body):
    """Non-positive or non-numeric totalPrice → 400 and no processor call."""
    r = await client.post("/create-payment-intent", json=body)
    assert r.status_code == 400, f"Expected 400, got {r.status_code}: {r.text}"
    assert processor.calls == []


# ─── Test 3: Settle ────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_settle_records_payment_and_retires_orders(client, session_factory):
    order = await _place_order(client)
    assert order["status"] == "pending"

    r = await client.post("/payment", json=_settlement([order["id"]]))

    assert r.status_code == 201, r.text
    body = r.json()
    assert body["payment"]["status"] == "Completed"
    assert body["payment"]["orderIds"] == [order["id"]]
    assert body["payment"]["menuIds"] == ["m1"]
    assert body["deletedCount"] == 1

    r = await client.get("/orders", params={"email": "a@x.com"})
    assert r.status_code == 200
    assert r.json() == []

    history = (await client.get("/payments/a@x.com")).json()
    assert [p["transactionId"] for p in history] == ["tx1"]


@pytest.mark.asyncio
async def test_settle_only_retires_listed_orders(client):
    paid = await _place_order(client)
    unpaid = await _place_order(client, menuId="m2", name="Burger", category="burger")

    r = await client.post("/payment", json=_settlement([paid["id"]]))
    assert r.status_code == 201

    remaining = (await client.get("/orders", params={"email": "a@x.com"})).json()
    assert [o["id"] for o in remaining] == [unpaid["id"]]


@pytest.mark.asyncio
async def test_settle_can_record_pending_charge(client):
    order = await _place_order(client)
    r = await client.post("/payment", json=_settlement([order["id"]], status="Pending"))
    assert r.status_code == 201
    assert r.json()["payment"]["status"] == "Pending"


# ─── Test 4: Idempotency on transactionId ──────────────────────────────────────
@pytest.mark.asyncio
async def test_settle_replay_returns_existing_payment(client, db):
    order = await _place_order(client)
    first = await client.post("/payment", json=_settlement([order["id"]]))
    assert first.status_code == 201

    second = await client.post("/payment", json=_settlement([order["id"]]))

    assert second.status_code == 200, second.text
    assert second.headers.get("X-Idempotency-Replay") == "true"
    assert second.json()["duplicate"] is True
    assert second.json()["deletedCount"] == 0
    assert second.json()["payment"]["id"] == first.json()["payment"]["id"]
    assert await PaymentStore(db).count_by_transaction_id("tx1") == 1


# ─── Test 5: Concurrent race on the unique constraint ──────────────────────────
class RacingPaymentStore(PaymentStore):
    """Misses the existing row on the first lookup, as a concurrent loser would."""

    def __init__(self, db):
        super().__init__(db)
        self.lookups = 0

    async def get_by_transaction_id(self, transaction_id):
        self.lookups += 1
        if self.lookups == 1:
            return None
        return await super().get_by_transaction_id(transaction_id)


@pytest.mark.asyncio
async def test_settle_race_loser_returns_existing_payment(db, processor):
    orders = OrderStore(db)
    order = await orders.create(
        menu_id="m1", email="a@x.com", name="Pizza", image="img", price=12.5, category="pizza"
    )
    order_id = order.id
    winner = await PaymentStore(db).create(
        email="a@x.com", price=12.5, transaction_id="tx-race",
        order_ids=[order_id], menu_ids=["m1"],
    )

    payments = RacingPaymentStore(db)
    coordinator = SettlementCoordinator(orders, payments, ReconciliationStore(db), processor)
    result = await coordinator.settle(SettlementDescriptor(
        email="a@x.com", price=12.5, transaction_id="tx-race",
        order_ids=[order_id], menu_ids=["m1"],
    ))

    assert result.outcome == SettlementOutcome.DUPLICATE
    assert result.payment.id == winner.id
    assert payments.lookups == 2
    assert await payments.count_by_transaction_id("tx-race") == 1
    # The loser never retires; the winner's own call is responsible for that
    assert await orders.get(order_id) is not None


# ─── Test 6: Settle validation ─────────────────────────────────────────────────
@pytest.mark.asyncio
@pytest.mark.parametrize("overrides", [
    {"orderIds": []},
    {"menuIds": []},
    {"transactionId": ""},
    {"email": "not-an-email"},
])
async def test_settle_rejects_malformed_descriptor(client, session_factory, overrides):
    order = await _place_order(client)
    r = await client.post("/payment", json={**_settlement([order["id"]]), **overrides})

    assert r.status_code == 400, r.text
    assert await _count(session_factory, Payment) == 0
    assert await _count(session_factory, Order) == 1


# ─── Test 7: Failed charges are never settled ──────────────────────────────────
@pytest.mark.asyncio
async def test_settle_rejects_failed_charge_and_keeps_orders(client, session_factory):
    order = await _place_order(client)

    r = await client.post("/payment", json=_settlement([order["id"]], status="Failed"))
    assert r.status_code == 400, r.text
    assert await _count(session_factory, Payment) == 0
    assert await _count(session_factory, Order) == 1

    # The transactionId stays free for the real settlement
    r = await client.post("/payment", json=_settlement([order["id"]]))
    assert r.status_code == 201, r.text
    assert r.json()["payment"]["status"] == "Completed"
    assert r.json()["deletedCount"] == 1


@pytest.mark.asyncio
async def test_coordinator_refuses_failed_descriptor(db, processor):
    orders = OrderStore(db)
    order = await orders.create(
        menu_id="m1", email="a@x.com", name="Pizza", image="img", price=12.5, category="pizza"
    )
    order_id = order.id
    payments = PaymentStore(db)
    coordinator = SettlementCoordinator(orders, payments, ReconciliationStore(db), processor)

    with pytest.raises(InvalidRequest):
        await coordinator.settle(SettlementDescriptor(
            email="a@x.com", price=12.5, transaction_id="tx-failed",
            order_ids=[order_id], menu_ids=["m1"], status=PaymentStatus.FAILED,
        ))

    assert await payments.count_by_transaction_id("tx-failed") == 0
    assert await orders.get(order_id) is not None
