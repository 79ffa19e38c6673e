"""
Schemas for the Flash Delivery ordering API

Catalog models (menu items, stores, categories) describe the static catalog
served to clients. Order models describe the records persisted by the order
store; orders are kept as plain dicts in storage and validated through
`Order` when they cross the API boundary.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ===================== Catalog =====================
class Choice(BaseModel):
    id: str = Field(..., description="Unique within its option")
    label: str
    price: int = Field(0, description="Added once per unit when selected")


class MenuOption(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Unique within its menu item")
    name: str
    required: bool = False
    max_select: int = Field(1, ge=1)
    choices: List[Choice] = []

    def find_choice(self, choice_id: str) -> Optional[Choice]:
        for choice in self.choices:
            if choice.id == choice_id:
                return choice
        return None


class MenuItem(BaseModel):
    id: int
    name: str
    price: int = Field(..., ge=0)
    is_sold_out: bool = False
    image: str = ""
    description: str = ""
    tag: Optional[str] = None
    options: List[MenuOption] = []

    def find_option(self, option_id: str) -> Optional[MenuOption]:
        for option in self.options:
            if option.id == option_id:
                return option
        return None


class Category(BaseModel):
    id: str
    name: str
    icon: Optional[str] = None


class Store(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    name: str
    description: str = ""
    logo: str = ""
    hero_image: str = ""
    categories: List[str] = []
    rating: float = 0.0
    review_count: int = 0
    min_order: int = 0
    delivery_fee: int = 0
    eta_min: int = 0
    eta_max: int = 0
    is_open: bool = True
    tags: List[str] = []
    address: Optional[str] = None
    phone: Optional[str] = None
    notice: Optional[str] = None


class StoreMenuSection(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    items: List[MenuItem] = []


# ===================== Orders =====================
class OrderStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    COOKING = "cooking"
    DELIVERING = "delivering"
    ARRIVED = "arrived"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.ARRIVED, OrderStatus.CANCELED)

    @property
    def next_status(self) -> Optional["OrderStatus"]:
        """The following step of the delivery progression, None once terminal."""
        if self.is_terminal:
            return None
        return _PROGRESSION[_PROGRESSION.index(self) + 1]

    def can_transition_to(self, other: "OrderStatus") -> bool:
        if self.is_terminal:
            return False
        return other == OrderStatus.CANCELED or other == self.next_status


_PROGRESSION = [
    OrderStatus.PENDING,
    OrderStatus.ACCEPTED,
    OrderStatus.COOKING,
    OrderStatus.DELIVERING,
    OrderStatus.ARRIVED,
]


class OptionSelection(BaseModel):
    option_id: str
    choice_ids: List[str] = []


class OrderItem(BaseModel):
    menu_id: int
    menu_name: str
    quantity: int = Field(..., ge=1)
    options: List[OptionSelection] = []
    base_price: int
    options_price: int
    unit_price: int = Field(..., description="base_price + options_price")
    line_price: int = Field(..., description="unit_price * quantity")


class Order(BaseModel):
    id: int
    customer_phone: str
    customer_address: str
    store_id: Optional[int] = None
    store_name: Optional[str] = None
    menu_id: int = Field(..., description="Menu id of the first line, kept for older clients")
    items: List[OrderItem]
    total_price: int
    # Admin writes are not checked against OrderStatus, so any string may be stored
    status: str = OrderStatus.PENDING.value
    order_time: str
    delivery_eta: Optional[str] = None
    tracking_uuid: str
    idempotency_key: Optional[str] = None
    payment_method: str = "card"


# ===================== Results =====================
class IntakeError(str, Enum):
    INVALID_PAYLOAD = "invalid_payload"
    INVALID_ITEMS = "invalid_items"


class UpdateError(str, Enum):
    INVALID_STATUS = "invalid_status"
    INVALID_ETA = "invalid_eta"
    ORDER_NOT_FOUND = "order_not_found"


class IntakeResult(BaseModel):
    created: bool = False
    tracking_uuid: Optional[str] = None
    error: Optional[IntakeError] = None


class UpdateResult(BaseModel):
    success: bool = False
    error: Optional[UpdateError] = None
