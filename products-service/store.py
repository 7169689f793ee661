import threading
from typing import Any, Dict, Iterable, List, Optional

from models import Product


class ProductStore:
    """Stockage en mémoire des produits, dans l'ordre d'insertion.

    Every read hands back copies, so callers can never mutate a record
    behind the store's back. All operations take the same lock.
    """

    def __init__(self, products: Optional[Iterable[Product]] = None):
        self._lock = threading.RLock()
        self._products: List[Product] = [p.model_copy() for p in (products or [])]
        ids = [p.id for p in self._products]
        if len(ids) != len(set(ids)):
            raise ValueError("Product ids must be unique")
        # Highest id ever issued; deleted ids are never handed out again
        self._last_id = max(ids) if ids else 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._products)

    def _index_of(self, product_id: int) -> int:
        return next((i for i, p in enumerate(self._products) if p.id == product_id), -1)

    def list(self) -> List[Product]:
        with self._lock:
            return [p.model_copy() for p in self._products]

    def find_by_id(self, product_id: int) -> Optional[Product]:
        with self._lock:
            index = self._index_of(product_id)
            if index == -1:
                return None
            return self._products[index].model_copy()

    def insert(self, fields: Dict[str, Any]) -> Product:
        with self._lock:
            current_max = max((p.id for p in self._products), default=0)
            new_id = max(current_max, self._last_id) + 1
            product = Product(**{**fields, "id": new_id})
            self._products.append(product)
            self._last_id = new_id
            return product.model_copy()

    def _merge(self, product_id: int, fields: Dict[str, Any]) -> Optional[Product]:
        with self._lock:
            index = self._index_of(product_id)
            if index == -1:
                return None
            updates = {k: v for k, v in fields.items() if k != "id"}
            updated = self._products[index].model_copy(update=updates)
            self._products[index] = updated
            return updated.model_copy()

    def replace(self, product_id: int, fields: Dict[str, Any]) -> Optional[Product]:
        """Full replacement; the caller has already checked required fields."""
        return self._merge(product_id, fields)

    def patch_fields(self, product_id: int, fields: Dict[str, Any]) -> Optional[Product]:
        return self._merge(product_id, fields)

    def remove(self, product_id: int) -> Optional[Product]:
        with self._lock:
            index = self._index_of(product_id)
            if index == -1:
                return None
            return self._products.pop(index)
