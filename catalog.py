"""
Static store and menu catalog

Menu ids are unique across every store, so the flattened list of menu items
doubles as the pricing catalog for order intake.
"""
from typing import Dict, List, Optional

from schemas import Category, MenuItem, Store, StoreMenuSection


CATEGORIES = [
    {"id": "korean", "name": "Korean home cooking", "icon": "🍚"},
    {"id": "burger", "name": "Burgers & sandwiches", "icon": "🍔"},
    {"id": "chicken", "name": "Chicken & late night", "icon": "🍗"},
    {"id": "dessert", "name": "Dessert & cafe", "icon": "🍰"},
    {"id": "noodle", "name": "Noodles & street food", "icon": "🍜"},
]

STORES = [
    {
        "id": 201,
        "name": "Flash Wagyu Burger",
        "description": "Premium handmade burgers with a charcoal-grilled finish",
        "logo": "https://images.unsplash.com/photo-1550547660-d9450f859349?auto=format&fit=crop&w=400&q=80",
        "hero_image": "https://images.unsplash.com/photo-1550547660-d9450f859349?auto=format&fit=crop&w=1200&q=80",
        "categories": ["burger", "chicken"],
        "rating": 4.9,
        "review_count": 1245,
        "min_order": 15000,
        "delivery_fee": 2000,
        "eta_min": 20,
        "eta_max": 35,
        "is_open": True,
        "tags": ["3,000 off today", "Pickup available"],
        "address": "428 Teheran-ro, Gangnam-gu, Seoul, 12F",
        "phone": "02-123-4567",
        "notice": "Expect up to 5 extra minutes during the lunch peak.",
    },
    {
        "id": 202,
        "name": "Seoul Bubble Tea House",
        "description": "Brown sugar bubble tea brewed daily from a Taiwanese recipe",
        "logo": "https://images.unsplash.com/photo-1509042239860-f550ce710b93?auto=format&fit=crop&w=400&q=80",
        "hero_image": "https://images.unsplash.com/photo-1481391032119-d89fee407e44?auto=format&fit=crop&w=1200&q=80",
        "categories": ["dessert"],
        "rating": 4.7,
        "review_count": 980,
        "min_order": 9000,
        "delivery_fee": 1500,
        "eta_min": 15,
        "eta_max": 25,
        "is_open": True,
        "tags": ["Free sponge boba", "Minimum order 9,000"],
        "address": "32 Jandari-ro, Mapo-gu, Seoul",
        "phone": "02-567-8901",
        "notice": "Tapioca pearls are cooked fresh every four hours.",
    },
    {
        "id": 203,
        "name": "Pangyo Ramen Lab",
        "description": "Artisan ramen with broth aged daily and house-made noodles",
        "logo": "https://images.unsplash.com/photo-1504674900247-0877df9cc836?auto=format&fit=crop&w=400&q=80",
        "hero_image": "https://images.unsplash.com/photo-1466978913421-dad2ebd01d17?auto=format&fit=crop&w=1200&q=80",
        "categories": ["noodle"],
        "rating": 4.8,
        "review_count": 760,
        "min_order": 12000,
        "delivery_fee": 2500,
        "eta_min": 30,
        "eta_max": 45,
        "is_open": False,
        "tags": ["Closed today", "Pre-order available"],
        "address": "235 Pangyoyeok-ro, Bundang-gu, Seongnam-si",
        "phone": "031-222-7777",
        "notice": "Opens daily at 11am and closes early when ingredients run out.",
    },
]

STORE_MENUS = {
    201: [
        {
            "id": "signature",
            "title": "Signature burgers",
            "description": "House burgers full of charcoal flavour",
            "items": [
                {
                    "id": 1,
                    "name": "Classic Wagyu Cheeseburger",
                    "price": 12900,
                    "is_sold_out": False,
                    "image": "https://images.unsplash.com/photo-1568901346375-23c9450c58cd?q=80&w=800&auto=format&fit=crop",
                    "description": "Juicy wagyu patty with rich cheddar cheese",
                    "tag": "Popular",
                    "options": [
                        {
                            "id": "patty",
                            "name": "Extra patty",
                            "required": False,
                            "max_select": 1,
                            "choices": [
                                {"id": "patty_single", "label": "Single", "price": 0},
                                {"id": "patty_double", "label": "Double patty", "price": 3900},
                            ],
                        },
                        {
                            "id": "cheese",
                            "name": "Extra cheese",
                            "required": False,
                            "max_select": 2,
                            "choices": [
                                {"id": "cheddar", "label": "Cheddar", "price": 800},
                                {"id": "gouda", "label": "Gouda", "price": 900},
                            ],
                        },
                    ],
                },
                {
                    "id": 4101,
                    "name": "Flash Signature Burger",
                    "price": 15800,
                    "is_sold_out": False,
                    "image": "https://images.unsplash.com/photo-1551782450-a2132b4ba21d?auto=format&fit=crop&w=1000&q=80",
                    "description": "Cold-smoked patty on a potato bun with smoky bacon and house sauce",
                    "tag": "BEST",
                    "options": [
                        {
                            "id": "bun",
                            "name": "Bun",
                            "required": True,
                            "max_select": 1,
                            "choices": [
                                {"id": "bun_classic", "label": "Classic bun", "price": 0},
                                {"id": "bun_cheese", "label": "Cheese bun", "price": 800},
                            ],
                        },
                        {
                            "id": "extra",
                            "name": "Extra toppings",
                            "required": False,
                            "max_select": 2,
                            "choices": [
                                {"id": "extra_cheese", "label": "American cheese", "price": 1200},
                                {"id": "extra_guanciale", "label": "Guanciale crumble", "price": 1500},
                            ],
                        },
                    ],
                },
            ],
        },
        {
            "id": "sides",
            "title": "Sides",
            "items": [
                {
                    "id": 2,
                    "name": "Truffle Parmesan Fries",
                    "price": 7500,
                    "is_sold_out": False,
                    "image": "https://images.unsplash.com/photo-1630384060421-cb20d0e0649d?q=80&w=800&auto=format&fit=crop",
                    "description": "Crispy fries with a generous truffle aroma",
                    "tag": "Side",
                    "options": [
                        {
                            "id": "size",
                            "name": "Size",
                            "required": True,
                            "max_select": 1,
                            "choices": [
                                {"id": "regular", "label": "Regular", "price": 0},
                                {"id": "large", "label": "Large", "price": 1500},
                            ],
                        },
                    ],
                },
            ],
        },
    ],
    202: [
        {
            "id": "tea",
            "title": "Bubble tea",
            "items": [
                {
                    "id": 4201,
                    "name": "Brown Sugar Bubble Signature",
                    "price": 5900,
                    "is_sold_out": False,
                    "image": "https://images.unsplash.com/photo-1558857563-b371033873b8?auto=format&fit=crop&w=1000&q=80",
                    "description": "Slow-cooked brown sugar syrup over fresh milk and chewy pearls",
                    "tag": "BEST",
                    "options": [
                        {
                            "id": "sugar",
                            "name": "Sweetness",
                            "required": True,
                            "max_select": 1,
                            "choices": [
                                {"id": "sugar_100", "label": "100%", "price": 0},
                                {"id": "sugar_50", "label": "50%", "price": 0},
                            ],
                        },
                        {
                            "id": "topping",
                            "name": "Toppings",
                            "required": False,
                            "max_select": 2,
                            "choices": [
                                {"id": "boba", "label": "Extra boba", "price": 500},
                                {"id": "cheese_foam", "label": "Cheese foam", "price": 800},
                            ],
                        },
                    ],
                },
            ],
        },
        {
            "id": "coffee",
            "title": "Coffee",
            "items": [
                {
                    "id": 3,
                    "name": "Nitro Cold Brew",
                    "price": 5500,
                    "is_sold_out": True,
                    "image": "https://images.unsplash.com/photo-1517701604599-bb29b565090c?q=80&w=800&auto=format&fit=crop",
                    "description": "Nitrogen-infused coffee with a smooth body and clean finish",
                    "tag": "Sold out",
                    "options": [
                        {
                            "id": "ice",
                            "name": "Ice",
                            "required": False,
                            "max_select": 1,
                            "choices": [
                                {"id": "ice_normal", "label": "Normal", "price": 0},
                                {"id": "ice_less", "label": "Less", "price": 0},
                            ],
                        },
                        {
                            "id": "shot",
                            "name": "Extra shot",
                            "required": False,
                            "max_select": 2,
                            "choices": [
                                {"id": "shot1", "label": "1 shot", "price": 500},
                                {"id": "shot2", "label": "2 shots", "price": 1000},
                            ],
                        },
                    ],
                },
            ],
        },
    ],
    203: [
        {
            "id": "ramen",
            "title": "Ramen",
            "items": [
                {
                    "id": 4301,
                    "name": "Tonkotsu Ramen",
                    "price": 11000,
                    "is_sold_out": False,
                    "image": "https://images.unsplash.com/photo-1569718212165-3a8278d5f624?auto=format&fit=crop&w=1000&q=80",
                    "description": "Pork bone broth simmered for eighteen hours",
                    "options": [
                        {
                            "id": "firmness",
                            "name": "Noodle firmness",
                            "required": True,
                            "max_select": 1,
                            "choices": [
                                {"id": "firm", "label": "Firm", "price": 0},
                                {"id": "soft", "label": "Soft", "price": 0},
                            ],
                        },
                        {
                            "id": "chashu",
                            "name": "Extra chashu",
                            "required": False,
                            "max_select": 1,
                            "choices": [
                                {"id": "chashu_2", "label": "2 slices", "price": 2500},
                            ],
                        },
                    ],
                },
            ],
        },
    ],
}


class Catalog:
    """Read-only view over stores, their menu sections and categories."""

    def __init__(self, categories: List[dict], stores: List[dict], store_menus: Dict[int, List[dict]]):
        self.categories = [Category(**c) for c in categories]
        self.stores = [Store(**s) for s in stores]
        self.store_menus = {
            int(store_id): [StoreMenuSection(**section) for section in sections]
            for store_id, sections in store_menus.items()
        }
        self._menu_index: Dict[int, MenuItem] = {}
        self._menu_store: Dict[int, int] = {}
        for store_id, sections in self.store_menus.items():
            for section in sections:
                for item in section.items:
                    self._menu_index[item.id] = item
                    self._menu_store[item.id] = store_id

    def menu_items(self) -> List[MenuItem]:
        return list(self._menu_index.values())

    def find_menu(self, menu_id: int) -> Optional[MenuItem]:
        return self._menu_index.get(menu_id)

    def find_store(self, store_id: int) -> Optional[Store]:
        for store in self.stores:
            if store.id == store_id:
                return store
        return None

    def store_for_menu(self, menu_id: int) -> Optional[Store]:
        store_id = self._menu_store.get(menu_id)
        return self.find_store(store_id) if store_id is not None else None

    def list_stores(self, category: Optional[str] = None) -> List[Store]:
        if not category:
            return list(self.stores)
        return [s for s in self.stores if category in s.categories]

    def search_stores(self, query: str, limit: int = 6) -> List[Store]:
        """Match the query against store names and tags; a blank query returns the first `limit` stores."""
        needle = (query or "").strip().casefold()
        if not needle:
            return self.stores[:limit]
        return [
            s for s in self.stores
            if needle in s.name.casefold() or any(needle in tag.casefold() for tag in s.tags)
        ]

    def menu_sections(self, store_id: int) -> List[StoreMenuSection]:
        return list(self.store_menus.get(store_id, []))


def default_catalog() -> Catalog:
    return Catalog(CATEGORIES, STORES, STORE_MENUS)
