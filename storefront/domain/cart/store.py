# storefront/domain/cart/store.py
"""Shopping cart state with a pluggable key/value persistence boundary.

The cart logic never touches storage directly except through ``save`` and
``load``; any object with ``get_item``/``set_item``/``remove_item`` works
(browser-style local storage, a file, a cache).
"""
import json
from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, Field


PLACEHOLDER_IMAGE = "/placeholder.svg"
STORAGE_KEY = "cart-storage"
STORAGE_VERSION = 0


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class InMemoryStorage:
    def __init__(self):
        self._data: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class CartItem(BaseModel):
    id: str
    name: str
    slug: str
    price: float
    original_price: Optional[float] = None
    image: str = PLACEHOLDER_IMAGE
    quantity: int = Field(1, ge=1)
    brand: str = ""
    category: str = ""
    stock_quantity: int = Field(0, ge=0)


def _field(product: Any, name: str, default=None):
    if isinstance(product, dict):
        return product.get(name, default)
    return getattr(product, name, default)


def _related_name(product: Any, name: str) -> str:
    related = _field(product, name)
    if related is None:
        return ""
    return _field(related, "name", "") or ""


class Cart:
    def __init__(
        self,
        items: Optional[List[CartItem]] = None,
        is_open: bool = False,
        storage: Optional[KeyValueStorage] = None,
        key: str = STORAGE_KEY,
    ):
        self.items: List[CartItem] = list(items or [])
        self.is_open = is_open
        self.storage = storage
        self.key = key

    @classmethod
    def load(cls, storage: KeyValueStorage, key: str = STORAGE_KEY) -> "Cart":
        raw = storage.get_item(key)
        if not raw:
            return cls(storage=storage, key=key)

        try:
            state = json.loads(raw).get("state", {})
            items = [CartItem.model_validate(item) for item in state.get("items", [])]
        except (ValueError, AttributeError):
            # unreadable snapshot: start empty rather than fail the page
            return cls(storage=storage, key=key)
        return cls(items=items, is_open=bool(state.get("is_open", False)), storage=storage, key=key)

    def to_state(self) -> Dict[str, Any]:
        return {
            "state": {
                "items": [item.model_dump() for item in self.items],
                "is_open": self.is_open,
            },
            "version": STORAGE_VERSION,
        }

    def save(self) -> None:
        if self.storage is not None:
            self.storage.set_item(self.key, json.dumps(self.to_state()))

    def _find(self, product_id: str) -> Optional[CartItem]:
        for item in self.items:
            if item.id == product_id:
                return item
        return None

    def add_item(self, product: Any) -> None:
        """Add one unit of ``product`` (a dict or an ORM/pydantic object)."""
        product_id = str(_field(product, "id"))
        stock = int(_field(product, "stock_quantity", 0) or 0)

        existing = self._find(product_id)
        if existing is not None:
            if existing.quantity < stock:
                existing.quantity += 1
                self.save()
            return

        images = _field(product, "images") or []
        self.items.append(CartItem(
            id=product_id,
            name=_field(product, "name"),
            slug=_field(product, "slug"),
            price=float(_field(product, "price")),
            original_price=_field(product, "original_price"),
            image=images[0] if images else PLACEHOLDER_IMAGE,
            quantity=1,
            brand=_related_name(product, "brand"),
            category=_related_name(product, "category"),
            stock_quantity=stock,
        ))
        self.save()

    def remove_item(self, product_id: str) -> None:
        self.items = [item for item in self.items if item.id != product_id]
        self.save()

    def update_quantity(self, product_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove_item(product_id)
            return

        item = self._find(product_id)
        if item is None:
            return
        if item.stock_quantity <= 0:
            self.remove_item(product_id)
            return
        item.quantity = min(quantity, item.stock_quantity)
        self.save()

    def clear(self) -> None:
        self.items = []
        self.save()

    def set_is_open(self, is_open: bool) -> None:
        self.is_open = is_open
        self.save()

    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    def total_price(self) -> float:
        return round(sum(item.price * item.quantity for item in self.items), 2)
