from __future__ import annotations
from typing import List, Optional
from pydantic import BaseModel, ConfigDict


class ParsedIngredient(BaseModel):
    amount: str = ""
    name: str


class Recipe(BaseModel):
    # catalog records carry more than we use (bild, anleitung, ...); keep them verbatim
    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    name: str
    zutaten: List[str] = []


class Occurrence(BaseModel):
    """One ingredient line, optionally attributed to the recipe it came from."""
    name: str
    rezeptId: Optional[int] = None
    rezeptName: Optional[str] = None


class ShoppingEntry(BaseModel):
    name: str
    baseName: Optional[str] = None
    amounts: List[str] = []
    rezeptIds: List[int] = []
    rezeptNames: List[Optional[str]] = []

    @property
    def base(self) -> str:
        # entries written by hand into the json may lack baseName
        return self.baseName or self.name


class AlreadyBoughtIngredient(BaseModel):
    name: str
    baseName: str
    rezeptId: int
    rezeptName: str


class Removal(BaseModel):
    to_cook: List[Recipe] = []
    to_buy: List[ShoppingEntry] = []
    already_bought: List[AlreadyBoughtIngredient] = []
