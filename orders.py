"""
Order pricing, intake and status updates

None of these functions raise for business rule violations; they return
`IntakeResult` / `UpdateResult` carrying an error kind that the HTTP layer
maps to a status code.
"""
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional, Tuple

from catalog import Catalog
from database import OrderStore
from logger import get_logger
from schemas import (
    IntakeError,
    IntakeResult,
    OptionSelection,
    Order,
    OrderItem,
    OrderStatus,
    UpdateError,
    UpdateResult,
)

log = get_logger(__name__)

TRACKING_UUID_BYTES = 12


def _to_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return default


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="seconds")


def _normalize_selections(raw: Any) -> List[OptionSelection]:
    if not isinstance(raw, list):
        return []
    selections = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        choice_ids = entry.get("choice_ids") or []
        if not isinstance(choice_ids, list):
            choice_ids = []
        selections.append(OptionSelection(
            option_id=_as_text(entry.get("option_id")),
            choice_ids=[_as_text(c) for c in choice_ids],
        ))
    return selections


# ===================== Pricing =====================
def compute_order(raw_items: List[Any], catalog: Catalog) -> Tuple[List[OrderItem], int]:
    """
    Price raw line items against the catalog.

    Lines naming an unknown menu are dropped. Unknown option ids and choice
    ids are ignored and contribute nothing, and a choice listed twice is
    charged twice. Returns the resolved lines and the order total.
    """
    items: List[OrderItem] = []
    total_price = 0

    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        menu = catalog.find_menu(_to_int(raw.get("menu_id"), 0))
        if menu is None:
            continue
        quantity = max(1, _to_int(raw.get("quantity", 1), 1))
        selections = _normalize_selections(raw.get("options"))

        options_price = 0
        for selection in selections:
            option = menu.find_option(selection.option_id)
            if option is None:
                continue
            for choice_id in selection.choice_ids:
                choice = option.find_choice(choice_id)
                if choice is not None:
                    options_price += choice.price

        unit_price = menu.price + options_price
        line_price = unit_price * quantity
        total_price += line_price

        items.append(OrderItem(
            menu_id=menu.id,
            menu_name=menu.name,
            quantity=quantity,
            options=selections,
            base_price=menu.price,
            options_price=options_price,
            unit_price=unit_price,
            line_price=line_price,
        ))

    return items, total_price


# ===================== Intake =====================
def _raw_items_from_payload(payload: dict) -> List[Any]:
    raw_items = payload.get("items")
    if not isinstance(raw_items, list):
        raw_items = []
    # Older clients post a bare {menu_id}
    if not raw_items and payload.get("menu_id") is not None:
        raw_items = [{"menu_id": _to_int(payload["menu_id"], 0), "quantity": 1, "options": []}]
    return raw_items


def create_order(
    payload: dict,
    idempotency_key: Optional[str],
    store: OrderStore,
    catalog: Catalog,
    default_payment_method: str = "card",
) -> IntakeResult:
    if not isinstance(payload, dict):
        payload = {}

    with store.transaction():
        if idempotency_key:
            existing = store.get_by_idempotency_key(idempotency_key)
            if existing is not None:
                log.info("order_replayed", order_id=existing.get("id"), idempotency_key=idempotency_key)
                return IntakeResult(created=False, tracking_uuid=existing["tracking_uuid"])

        address = _as_text(payload.get("address")).strip()
        phone = re.sub(r"\D+", "", _as_text(payload.get("phone")))
        payment_method = _as_text(payload.get("payment_method")) or default_payment_method
        raw_items = _raw_items_from_payload(payload)

        if not raw_items or not address or not phone:
            log.info("order_rejected", reason=IntakeError.INVALID_PAYLOAD.value)
            return IntakeResult(error=IntakeError.INVALID_PAYLOAD)

        items, total_price = compute_order(raw_items, catalog)
        if not items:
            log.info("order_rejected", reason=IntakeError.INVALID_ITEMS.value)
            return IntakeResult(error=IntakeError.INVALID_ITEMS)

        shop = None
        if payload.get("store_id") is not None:
            shop = catalog.find_store(_to_int(payload["store_id"], 0))
        if shop is None:
            shop = catalog.store_for_menu(items[0].menu_id)

        order = Order(
            id=0,  # assigned by the store
            customer_phone=phone,
            customer_address=address,
            store_id=shop.id if shop else None,
            store_name=shop.name if shop else None,
            menu_id=items[0].menu_id,
            items=items,
            total_price=total_price,
            status=OrderStatus.PENDING.value,
            order_time=format_timestamp(utc_now()),
            delivery_eta=None,
            tracking_uuid=secrets.token_hex(TRACKING_UUID_BYTES),
            idempotency_key=idempotency_key or None,
            payment_method=payment_method,
        )
        stored = store.append(order)

    log.info(
        "order_created",
        order_id=stored["id"],
        total_price=total_price,
        line_count=len(items),
        store_id=stored["store_id"],
    )
    return IntakeResult(created=True, tracking_uuid=stored["tracking_uuid"])


def find_order(tracking_uuid: str, store: OrderStore) -> Optional[dict]:
    return store.get_by_tracking_uuid(tracking_uuid)


def list_orders_newest_first(store: OrderStore) -> List[dict]:
    def order_time(order: dict) -> datetime:
        try:
            moment = datetime.fromisoformat(order.get("order_time") or "")
        except (TypeError, ValueError):
            return datetime.min.replace(tzinfo=timezone.utc)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment

    return sorted(store.list_orders(), key=order_time, reverse=True)


# ===================== Status =====================
def _log_transition(order_id: int, previous: Any, status: str) -> None:
    try:
        before = OrderStatus(previous)
        after = OrderStatus(status)
    except ValueError:
        log.warning("order_status_off_path", order_id=order_id, previous=previous, status=status)
        return
    if before != after and not before.can_transition_to(after):
        log.warning("order_status_off_path", order_id=order_id, previous=previous, status=status)


def update_status(
    order_id: int,
    status: Any,
    eta_minutes: Any,
    store: OrderStore,
) -> UpdateResult:
    """
    Overwrite an order's status and, when `eta_minutes` is given, its ETA.

    Writes are not checked against the delivery progression; an off-path
    write is only logged. Omitting `eta_minutes` keeps the previous ETA.
    """
    if not status:
        return UpdateResult(error=UpdateError.INVALID_STATUS)
    status = _as_text(status)
    eta = None
    if eta_minutes is not None:
        try:
            eta = format_timestamp(utc_now() + timedelta(minutes=_to_int(eta_minutes, 0)))
        except OverflowError:
            return UpdateResult(error=UpdateError.INVALID_ETA)

    def apply(order: dict) -> None:
        _log_transition(order_id, order.get("status"), status)
        order["status"] = status
        if eta is not None:
            order["delivery_eta"] = eta

    with store.transaction():
        updated = store.update(order_id, apply)

    if not updated:
        log.info("order_not_found", order_id=order_id)
        return UpdateResult(error=UpdateError.ORDER_NOT_FOUND)

    log.info("order_status_updated", order_id=order_id, status=status, delivery_eta=eta)
    return UpdateResult(success=True)
