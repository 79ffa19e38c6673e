"""Tests for order intake and status updates against a JSON file store."""
from datetime import datetime, timedelta, timezone

import pytest

from orders import create_order, find_order, list_orders_newest_first, update_status
from schemas import IntakeError, Order, UpdateError


def _create(store, catalog, payload, key=None):
    return create_order(payload, key, store, catalog)


class TestCreateOrder:
    def test_creates_pending_order(self, store, catalog, order_payload):
        """A valid payload persists one pending order with a fresh tracking id."""
        result = _create(store, catalog, order_payload)
        assert result.created is True
        assert result.error is None

        orders = store.list_orders()
        assert len(orders) == 1
        order = Order(**orders[0])
        assert order.id == 1
        assert order.status == "pending"
        assert order.delivery_eta is None
        assert order.tracking_uuid == result.tracking_uuid
        assert order.total_price == 25800

    def test_normalizes_address_and_phone(self, store, catalog, order_payload):
        _create(store, catalog, order_payload)
        order = store.list_orders()[0]
        assert order["customer_address"] == "428 Teheran-ro, Gangnam-gu"
        assert order["customer_phone"] == "01012345678"

    def test_records_store_and_first_menu(self, store, catalog, order_payload):
        _create(store, catalog, order_payload)
        order = store.list_orders()[0]
        assert order["store_id"] == 201
        assert order["store_name"] == "Flash Wagyu Burger"
        assert order["menu_id"] == 1

    def test_explicit_store_id_wins(self, store, catalog, order_payload):
        order_payload["store_id"] = 202
        _create(store, catalog, order_payload)
        assert store.list_orders()[0]["store_id"] == 202

    def test_default_payment_method(self, store, catalog, order_payload):
        del order_payload["payment_method"]
        _create(store, catalog, order_payload)
        assert store.list_orders()[0]["payment_method"] == "card"

    def test_ids_increase(self, store, catalog, order_payload):
        _create(store, catalog, order_payload)
        _create(store, catalog, order_payload)
        assert [o["id"] for o in store.list_orders()] == [1, 2]

    def test_tracking_ids_unique_and_opaque(self, store, catalog, order_payload):
        first = _create(store, catalog, order_payload).tracking_uuid
        second = _create(store, catalog, order_payload).tracking_uuid
        assert first != second
        assert len(first) == 24
        int(first, 16)

    def test_legacy_menu_id_shorthand(self, store, catalog):
        """A bare menu_id becomes a single line with quantity 1."""
        result = _create(store, catalog, {"address": "Somewhere 1", "phone": "010 5555", "menu_id": 2})
        assert result.created
        order = store.list_orders()[0]
        assert len(order["items"]) == 1
        assert order["items"][0]["quantity"] == 1
        assert order["total_price"] == 7500

    @pytest.mark.parametrize("field, value", [
        ("address", "   "),
        ("address", None),
        ("phone", "no digits"),
        ("phone", ""),
        ("items", []),
    ])
    def test_invalid_payload(self, store, catalog, order_payload, field, value):
        """Blank address, digit-less phone or no items is rejected before pricing."""
        order_payload[field] = value
        result = _create(store, catalog, order_payload)
        assert result.created is False
        assert result.error == IntakeError.INVALID_PAYLOAD
        assert store.list_orders() == []

    def test_non_dict_payload_is_invalid(self, store, catalog):
        result = _create(store, catalog, ["not", "an", "object"])
        assert result.error == IntakeError.INVALID_PAYLOAD

    def test_unknown_menus_rejected(self, store, catalog, order_payload):
        """Every menu id unknown means invalid_items and nothing persisted."""
        order_payload["items"] = [{"menu_id": 999, "quantity": 1}, {"menu_id": 1000}]
        result = _create(store, catalog, order_payload)
        assert result.error == IntakeError.INVALID_ITEMS
        assert store.list_orders() == []


class TestIdempotency:
    def test_repeated_key_returns_same_tracking_id(self, store, catalog, order_payload):
        """Key "abc" twice yields one record and the same tracking id."""
        first = _create(store, catalog, order_payload, key="abc")
        second = _create(store, catalog, order_payload, key="abc")
        assert first.created is True
        assert second.created is False
        assert second.tracking_uuid == first.tracking_uuid
        assert len(store.list_orders()) == 1

    def test_replay_skips_validation(self, store, catalog, order_payload):
        """A replay with a now-invalid payload still returns the original order."""
        first = _create(store, catalog, order_payload, key="abc")
        replay = _create(store, catalog, {}, key="abc")
        assert replay.error is None
        assert replay.tracking_uuid == first.tracking_uuid

    def test_different_keys_create_separate_orders(self, store, catalog, order_payload):
        _create(store, catalog, order_payload, key="abc")
        _create(store, catalog, order_payload, key="abd")
        assert len(store.list_orders()) == 2

    def test_key_is_persisted(self, store, catalog, order_payload):
        _create(store, catalog, order_payload, key="abc")
        assert store.list_orders()[0]["idempotency_key"] == "abc"

    def test_empty_key_is_ignored(self, store, catalog, order_payload):
        _create(store, catalog, order_payload, key="")
        _create(store, catalog, order_payload, key="")
        orders = store.list_orders()
        assert len(orders) == 2
        assert orders[0]["idempotency_key"] is None


class TestFindAndList:
    def test_find_by_tracking_id(self, store, catalog, order_payload):
        tracking = _create(store, catalog, order_payload).tracking_uuid
        assert find_order(tracking, store)["id"] == 1
        assert find_order("nope", store) is None

    def test_newest_first(self, store):
        store.append({"order_time": "2026-01-01T10:00:00+00:00", "tracking_uuid": "a"})
        store.append({"order_time": "2026-01-01T12:00:00+00:00", "tracking_uuid": "b"})
        store.append({"order_time": "2026-01-01T11:00:00+00:00", "tracking_uuid": "c"})
        assert [o["tracking_uuid"] for o in list_orders_newest_first(store)] == ["b", "c", "a"]


    def test_newest_first_tolerates_odd_timestamps(self, store):
        """Naive, non-string and missing order times do not break sorting."""
        store.append({"order_time": "2026-01-01T10:00:00+00:00", "tracking_uuid": "aware"})
        store.append({"order_time": "2026-01-01T11:00:00", "tracking_uuid": "naive"})
        store.append({"order_time": 12345, "tracking_uuid": "number"})
        store.append({"tracking_uuid": "missing"})
        ordered = [o["tracking_uuid"] for o in list_orders_newest_first(store)]
        assert ordered[:2] == ["naive", "aware"]
        assert set(ordered[2:]) == {"number", "missing"}


class TestUpdateStatus:
    def test_updates_status(self, store, catalog, order_payload):
        _create(store, catalog, order_payload)
        result = update_status(1, "accepted", None, store)
        assert result.success is True
        assert store.list_orders()[0]["status"] == "accepted"

    def test_sets_eta_from_minutes(self, store, catalog, order_payload):
        """eta_minutes=20 sets the ETA about twenty minutes from now."""
        _create(store, catalog, order_payload)
        update_status(1, "cooking", 20, store)
        eta = datetime.fromisoformat(store.list_orders()[0]["delivery_eta"])
        expected = datetime.now(timezone.utc) + timedelta(minutes=20)
        assert abs((eta - expected).total_seconds()) < 5

    def test_omitted_eta_keeps_previous(self, store, catalog, order_payload):
        _create(store, catalog, order_payload)
        update_status(1, "cooking", 20, store)
        before = store.list_orders()[0]["delivery_eta"]
        update_status(1, "delivering", None, store)
        order = store.list_orders()[0]
        assert order["status"] == "delivering"
        assert order["delivery_eta"] == before

    def test_any_status_string_is_written(self, store, catalog, order_payload):
        """Writes are not checked against the delivery progression."""
        _create(store, catalog, order_payload)
        assert update_status(1, "arrived", None, store).success
        assert update_status(1, "pending", None, store).success
        assert update_status(1, "lost-in-space", None, store).success
        assert store.list_orders()[0]["status"] == "lost-in-space"

    def test_unknown_order(self, store, catalog, order_payload):
        _create(store, catalog, order_payload)
        snapshot = store.list_orders()
        result = update_status(42, "accepted", 10, store)
        assert result.error == UpdateError.ORDER_NOT_FOUND
        assert store.list_orders() == snapshot

    @pytest.mark.parametrize("status", [None, ""])
    def test_empty_status(self, store, catalog, order_payload, status):
        _create(store, catalog, order_payload)
        result = update_status(1, status, None, store)
        assert result.error == UpdateError.INVALID_STATUS
        assert store.list_orders()[0]["status"] == "pending"

    def test_out_of_range_eta(self, store, catalog, order_payload):
        """An ETA too far out to represent is rejected and nothing changes."""
        _create(store, catalog, order_payload)
        snapshot = store.list_orders()
        result = update_status(1, "accepted", 10 ** 10, store)
        assert result.error == UpdateError.INVALID_ETA
        assert store.list_orders() == snapshot

    def test_total_not_recomputed(self, store, catalog, order_payload):
        _create(store, catalog, order_payload)
        update_status(1, "canceled", None, store)
        assert store.list_orders()[0]["total_price"] == 25800
