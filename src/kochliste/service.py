"""
Read-modify-write flows behind the API and the MCP tools.

Each call reads the documents it needs from the blob store, computes the new
state with the ingredient functions and writes the result back. There is no
locking: two concurrent additions may read the same state and the later
write wins.
"""
from __future__ import annotations
import logging
from typing import Any, List, Optional

from .config import Settings
from .ingredients import (
    expand_ingredients,
    merge_ingredients,
    parse_ingredient,
    recipe_occurrences,
    reconcile_removal,
)
from .models import AlreadyBoughtIngredient, Occurrence, Recipe, ShoppingEntry
from .storage import BlobStore, read_document, write_document

logger = logging.getLogger(__name__)


def normalize_recipes(document: Any) -> List[Recipe]:
    """Turn the stored catalog into recipes with ids.

    The catalog is either ``{"rezepte": [...]}`` or a bare list. Recipes
    without an id are numbered by position, starting at 1. The ids are not
    written back.
    """
    if document is None:
        return []
    if isinstance(document, dict):
        document = document.get("rezepte") or []
    if not isinstance(document, list):
        return []
    recipes: List[Recipe] = []
    for index, raw in enumerate(document):
        recipe = Recipe.model_validate(raw)
        if not recipe.id:
            recipe = recipe.model_copy(update={"id": index + 1})
        recipes.append(recipe)
    return recipes


def _as_list(document: Any) -> list:
    return document if isinstance(document, list) else []


class CookingService:
    def __init__(self, store: BlobStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or Settings()

    async def init(self) -> None:
        await self.store.init()

    # --- loading ---
    async def list_recipes(self) -> List[Recipe]:
        return normalize_recipes(await read_document(self.store, self.settings.recipes_key))

    async def get_recipe(self, rezept_id: int) -> Optional[Recipe]:
        for recipe in await self.list_recipes():
            if recipe.id == rezept_id:
                return recipe
        return None

    async def list_to_cook(self) -> List[Recipe]:
        document = await read_document(self.store, self.settings.to_cook_key)
        return [Recipe.model_validate(r) for r in _as_list(document)]

    async def list_to_buy(self) -> List[ShoppingEntry]:
        document = await read_document(self.store, self.settings.to_buy_key)
        return [ShoppingEntry.model_validate(z) for z in _as_list(document)]

    async def _save_to_cook(self, to_cook: List[Recipe]) -> None:
        await write_document(
            self.store,
            self.settings.to_cook_key,
            [r.model_dump(exclude_none=True) for r in to_cook],
        )

    async def _save_to_buy(self, to_buy: List[ShoppingEntry]) -> None:
        await write_document(self.store, self.settings.to_buy_key, [z.model_dump() for z in to_buy])

    # --- to cook ---
    async def add_to_cook(self, recipe: Recipe) -> None:
        to_cook = await self.list_to_cook()
        to_buy = await self.list_to_buy()

        to_cook.append(recipe)
        await self._save_to_cook(to_cook)

        merged = merge_ingredients(expand_ingredients(to_buy) + recipe_occurrences(recipe))
        await self._save_to_buy(merged)
        logger.info(
            "to_cook add id=%s name=%s zutaten=%d -> to_buy=%d",
            recipe.id, recipe.name, len(recipe.zutaten), len(merged),
        )

    async def remove_from_cook(self, rezept_id: int) -> List[AlreadyBoughtIngredient]:
        """Take a recipe off the to-cook list and out of the shopping list.

        Returns the recipe's ingredients that were no longer on the shopping
        list, i.e. already bought.
        """
        to_cook = await self.list_to_cook()
        to_buy = await self.list_to_buy()

        removal = reconcile_removal(rezept_id, to_cook, to_buy)
        await self._save_to_cook(removal.to_cook)
        await self._save_to_buy(removal.to_buy)
        logger.info(
            "to_cook remove id=%s -> to_cook=%d to_buy=%d already_bought=%d",
            rezept_id, len(removal.to_cook), len(removal.to_buy), len(removal.already_bought),
        )
        return removal.already_bought

    # --- to buy ---
    async def add_to_buy(self, occurrence: Occurrence) -> None:
        to_buy = await self.list_to_buy()
        merged = merge_ingredients(expand_ingredients(to_buy) + [occurrence])
        await self._save_to_buy(merged)
        logger.info("to_buy add name=%s -> to_buy=%d", occurrence.name, len(merged))

    async def remove_from_buy(self, index: int) -> bool:
        """Delete the entry at index. Out-of-range indexes change nothing."""
        to_buy = await self.list_to_buy()
        removed = 0 <= index < len(to_buy)
        if removed:
            del to_buy[index]
        await self._save_to_buy(to_buy)
        logger.info("to_buy remove index=%s removed=%s", index, removed)
        return removed

    async def rename_to_buy(self, index: int, new_name: Optional[str]) -> bool:
        """Replace an entry's display name and re-derive its base name.

        Amounts and recipe attributions are left as they are.
        """
        to_buy = await self.list_to_buy()
        changed = 0 <= index < len(to_buy) and bool(new_name)
        if changed:
            to_buy[index] = to_buy[index].model_copy(
                update={"name": new_name, "baseName": parse_ingredient(new_name).name}
            )
        await self._save_to_buy(to_buy)
        logger.info("to_buy rename index=%s changed=%s", index, changed)
        return changed
