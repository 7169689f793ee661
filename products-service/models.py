from typing import List
from pydantic import BaseModel

class Product(BaseModel):
    id: int
    name: str
    category: str
    price: float
    inStock: bool = True

# Catalogue chargé au démarrage quand SEED_PRODUCTS est actif
def default_products() -> List[Product]:
    return [
        Product(id=1, name="Laptop", category="Electronics", price=999.99, inStock=True),
        Product(id=2, name="Souris", category="Electronics", price=29.99, inStock=True),
        Product(id=3, name="Bureau", category="Furniture", price=249.5, inStock=False),
        Product(id=4, name="Chaise", category="Furniture", price=89.0, inStock=True),
        Product(id=5, name="Tournevis", category="Tools", price=12.75, inStock=True),
    ]
