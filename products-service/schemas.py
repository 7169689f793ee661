from typing import Optional
from pydantic import BaseModel, ConfigDict, StrictBool, confloat, constr, field_validator  # constr pour valider name (string non vide)

NonEmptyStr = constr(strict=True, min_length=1)
NonNegativePrice = confloat(ge=0, allow_inf_nan=False)


class ProductCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")  # Les champs inconnus ne rentrent pas dans le store

    name: NonEmptyStr
    category: NonEmptyStr
    price: NonNegativePrice
    inStock: StrictBool = True  # false explicite conservé


class ProductReplace(BaseModel):
    """Remplacement complet (PUT) : inStock reste inchangé s'il est omis."""
    model_config = ConfigDict(extra="ignore")

    name: NonEmptyStr
    category: NonEmptyStr
    price: NonNegativePrice
    inStock: Optional[StrictBool] = None

    @field_validator("inStock", mode="before")
    @classmethod
    def in_stock_not_null(cls, v):
        if v is None:
            raise ValueError("inStock cannot be null")
        return v


class ProductPatch(BaseModel):
    """Mise à jour partielle (PATCH) : tous les champs sont optionnels.

    Un champ absent garde sa valeur, un champ à null est refusé.
    """
    model_config = ConfigDict(extra="ignore")

    name: Optional[NonEmptyStr] = None
    category: Optional[NonEmptyStr] = None
    price: Optional[NonNegativePrice] = None
    inStock: Optional[StrictBool] = None

    @field_validator("name", "category", "price", "inStock", mode="before")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v
