"""
Handlers du Products Service.

Chaque handler reçoit le store et les entrées brutes de la requête
(query string, paramètre de chemin, corps JSON décodé) et renvoie
``(payload, status_code)``. Les erreurs de validation sont levées sous
forme de ``errors.ProductError`` avant toute mutation du store.
"""
import math
import re
from typing import Any, Dict, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, ValidationError

import errors
from errors import bad_request, not_found
from schemas import ProductCreate, ProductPatch, ProductReplace
from store import ProductStore

SORT_FIELDS = ("name", "category", "price", "id")
SORT_ORDERS = ("asc", "desc")

Result = Tuple[Any, int]

_ID_PATTERN = re.compile(r"\s*[+-]?\d+\s*", re.ASCII)


def parse_product_id(raw: Optional[str]) -> int:
    # Chiffres ASCII uniquement : pas de "1_0" ni de chiffres Unicode
    if raw is None or not _ID_PATTERN.fullmatch(raw):
        raise bad_request(errors.INVALID_ID, "invalid_id")
    try:
        return int(raw)
    except ValueError:
        raise bad_request(errors.INVALID_ID, "invalid_id")


def _parse_price_limit(raw: str) -> Optional[float]:
    # Un prix illisible désactive le filtre au lieu de renvoyer une erreur
    try:
        value = float(raw)
    except ValueError:
        return None
    return None if math.isnan(value) else value


def _require_body(body: Any) -> Dict[str, Any]:
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise bad_request(errors.INVALID_BODY, "invalid_body")
    return body


def _check_required(body: Dict[str, Any]) -> None:
    if not body.get("name") or not body.get("category") or "price" not in body:
        raise bad_request(errors.MISSING_FIELDS, "missing_fields")


def _check_price(body: Dict[str, Any]) -> None:
    if "price" not in body:
        return
    price = body["price"]
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise bad_request(errors.INVALID_PRICE, "invalid_price")
    try:
        value = float(price)
    except OverflowError:
        raise bad_request(errors.INVALID_PRICE, "invalid_price")
    if not math.isfinite(value) or value < 0:
        raise bad_request(errors.INVALID_PRICE, "invalid_price")


def _build(schema, body: Dict[str, Any]) -> BaseModel:
    try:
        return schema(**body)
    except ValidationError as e:
        logger.warning(f"Rejected product fields: {e.errors()}")
        raise bad_request(errors.INVALID_FIELDS, "invalid_fields")


def _get_existing(store: ProductStore, raw_id: Optional[str]) -> int:
    product_id = parse_product_id(raw_id)
    if store.find_by_id(product_id) is None:
        logger.warning(f"Product {product_id} not found")
        raise not_found()
    return product_id


def list_products(
    store: ProductStore,
    id: Optional[str] = None,
    category: Optional[str] = None,
    price: Optional[str] = None,
    sortBy: Optional[str] = None,
    sortOrder: Optional[str] = None,
) -> Result:
    products = store.list()

    if id:
        product_id = parse_product_id(id)
        products = [p for p in products if p.id == product_id]

    if category:
        needle = category.lower()
        products = [p for p in products if needle in p.category.lower()]

    if price:
        limit = _parse_price_limit(price)
        if limit is not None:
            products = [p for p in products if p.price <= limit]
        else:
            logger.info(f"Ignoring unparseable price filter {price!r}")

    if sortBy:
        if sortBy not in SORT_FIELDS:
            raise bad_request(errors.INVALID_SORT_FIELD, "invalid_sort_field")
        order = sortOrder or "asc"
        if order not in SORT_ORDERS:
            raise bad_request(errors.INVALID_SORT_ORDER, "invalid_sort_order")
        # sorted() est stable, y compris avec reverse=True
        products = sorted(products, key=lambda p: getattr(p, sortBy), reverse=order == "desc")

    logger.info(f"Listing {len(products)} products")
    return [p.model_dump() for p in products], 200


def get_product(store: ProductStore, raw_id: Optional[str]) -> Result:
    product_id = parse_product_id(raw_id)
    logger.info(f"Fetching product {product_id}")
    product = store.find_by_id(product_id)
    if product is None:
        logger.warning(f"Product {product_id} not found")
        raise not_found()
    return product.model_dump(), 200


def create_product(store: ProductStore, body: Any) -> Result:
    body = _require_body(body)
    _check_required(body)
    _check_price(body)
    draft = _build(ProductCreate, body)

    logger.info(f"Creating product: {draft.name}")
    product = store.insert(draft.model_dump())
    logger.info(f"Product created with ID {product.id}")
    return product.model_dump(), 201


def update_product(store: ProductStore, raw_id: Optional[str], body: Any) -> Result:
    product_id = _get_existing(store, raw_id)
    body = _require_body(body)
    _check_required(body)
    _check_price(body)
    draft = _build(ProductReplace, body)

    logger.info(f"Replacing product {product_id}")
    product = store.replace(product_id, draft.model_dump(exclude_unset=True))
    if product is None:
        raise not_found()
    return product.model_dump(), 200


def patch_product(store: ProductStore, raw_id: Optional[str], body: Any) -> Result:
    product_id = _get_existing(store, raw_id)
    body = _require_body(body)
    _check_price(body)
    changes = _build(ProductPatch, body).model_dump(exclude_unset=True)

    logger.info(f"Patching product {product_id} fields {sorted(changes)}")
    product = store.patch_fields(product_id, changes)
    if product is None:
        raise not_found()
    return product.model_dump(), 200


def delete_product(store: ProductStore, raw_id: Optional[str]) -> Result:
    product_id = _get_existing(store, raw_id)
    product = store.remove(product_id)
    if product is None:
        raise not_found()
    logger.info(f"Product {product_id} deleted")
    return {"message": "Product deleted", "product": product.model_dump()}, 200
