"""
Order Store

Persistence for order records behind a small interface, so the flat JSON
file can be swapped for MongoDB (or anything else) without touching the
order-handling code in `orders.py`.

Records are plain dicts shaped like `schemas.Order`. Every mutating caller
wraps its read-modify-write in `store.transaction()`.
"""

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from pydantic import BaseModel
from pymongo import DESCENDING, MongoClient

from config import Settings
from logger import get_logger

log = get_logger(__name__)


def _to_dict(data: Union[BaseModel, dict]) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


class OrderStore(ABC):
    def __init__(self):
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator["OrderStore"]:
        """Serialize a read-modify-write sequence against other writers in this process."""
        with self._lock:
            yield self

    @abstractmethod
    def list_orders(self) -> List[dict]:
        ...

    @abstractmethod
    def get_by_tracking_uuid(self, tracking_uuid: str) -> Optional[dict]:
        ...

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Optional[dict]:
        ...

    @abstractmethod
    def append(self, order: Union[BaseModel, dict]) -> dict:
        """Assign the next order id (max existing + 1, or 1) and persist the record."""

    @abstractmethod
    def update(self, order_id: int, mutator: Callable[[Dict[str, Any]], None]) -> bool:
        """Apply `mutator` to the order in place and persist it. False if no such order."""


# ===================== JSON file =====================
class JsonFileOrderStore(OrderStore):
    """All orders as one JSON array in a single file, rewritten wholesale on each write."""

    def __init__(self, path: str):
        super().__init__()
        self.path = path

    def _ensure_file(self) -> None:
        if os.path.exists(self.path):
            return
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        self._write([])
        log.info("order_store_initialized", path=self.path)

    def load(self) -> List[dict]:
        with self._lock:
            self._ensure_file()
            with open(self.path, "r", encoding="utf-8") as f:
                raw = f.read()
        try:
            data = json.loads(raw or "[]")
        except ValueError:
            log.warning("order_store_unreadable", path=self.path)
            return []
        return data if isinstance(data, list) else []

    def save(self, orders: List[dict]) -> None:
        with self._lock:
            self._ensure_file()
            self._write(orders)

    def _write(self, orders: List[dict]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".orders-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(orders, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def list_orders(self) -> List[dict]:
        return self.load()

    def get_by_tracking_uuid(self, tracking_uuid: str) -> Optional[dict]:
        for order in self.load():
            if order.get("tracking_uuid") == tracking_uuid:
                return order
        return None

    def get_by_idempotency_key(self, key: str) -> Optional[dict]:
        for order in self.load():
            if order.get("idempotency_key") and order["idempotency_key"] == key:
                return order
        return None

    def append(self, order: Union[BaseModel, dict]) -> dict:
        payload = _to_dict(order)
        with self._lock:
            orders = self.load()
            payload["id"] = max((int(o.get("id") or 0) for o in orders), default=0) + 1
            orders.append(payload)
            self.save(orders)
        return payload

    def update(self, order_id: int, mutator: Callable[[Dict[str, Any]], None]) -> bool:
        with self._lock:
            orders = self.load()
            for order in orders:
                if int(order.get("id") or 0) == order_id:
                    mutator(order)
                    self.save(orders)
                    return True
        return False


# ===================== MongoDB =====================
class MongoOrderStore(OrderStore):
    """Same contract on a MongoDB collection; Mongo's `_id` never leaves the store."""

    def __init__(self, collection):
        super().__init__()
        self.collection = collection

    @classmethod
    def connect(cls, database_url: str, database_name: str, collection_name: str = "order") -> "MongoOrderStore":
        client = MongoClient(database_url)
        return cls(client[database_name][collection_name])

    def list_orders(self) -> List[dict]:
        return [serialize_doc(doc) for doc in self.collection.find({})]

    def get_by_tracking_uuid(self, tracking_uuid: str) -> Optional[dict]:
        return serialize_doc(self.collection.find_one({"tracking_uuid": tracking_uuid}))

    def get_by_idempotency_key(self, key: str) -> Optional[dict]:
        if not key:
            return None
        return serialize_doc(self.collection.find_one({"idempotency_key": key}))

    def append(self, order: Union[BaseModel, dict]) -> dict:
        payload = _to_dict(order)
        with self._lock:
            latest = self.collection.find_one({}, sort=[("id", DESCENDING)])
            payload["id"] = int(latest["id"]) + 1 if latest else 1
            # insert_one adds _id to the dict it is given
            self.collection.insert_one(dict(payload))
        return payload

    def update(self, order_id: int, mutator: Callable[[Dict[str, Any]], None]) -> bool:
        with self._lock:
            doc = self.collection.find_one({"id": order_id})
            if not doc:
                return False
            order = serialize_doc(doc)
            mutator(order)
            self.collection.replace_one({"id": order_id}, order)
        return True


# Utility

def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return None
    d = dict(doc)
    d.pop("_id", None)
    return d


def create_order_store(settings: Settings) -> OrderStore:
    if settings.uses_mongo:
        log.info("order_store_selected", backend="mongo", database=settings.database_name)
        return MongoOrderStore.connect(settings.database_url, settings.database_name)
    log.info("order_store_selected", backend="json", path=settings.orders_file)
    return JsonFileOrderStore(settings.orders_file)
