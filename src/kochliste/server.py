from __future__ import annotations
from typing import List
from mcp.server.fastmcp import FastMCP
from .config import Settings, configure_logging, create_store
from .models import AlreadyBoughtIngredient, Occurrence, Recipe, ShoppingEntry
from .service import CookingService

settings = Settings.from_env()

service = CookingService(create_store(settings), settings)

mcp = FastMCP("kochliste")


@mcp.tool()
async def rezepte_list() -> List[Recipe]:
    """
    List all recipes in the recipe catalog.

    Call this whenever the user asks which recipes exist, or before adding a
    recipe to the to-cook list so you know its id.

    This is a READ-ONLY operation (no state changes).

    Returns:
      A list of Recipe objects with:
      - id (integer, stable within the catalog)
      - name (string)
      - zutaten (list of ingredient lines, e.g. "200g Mehl")
    """
    return await service.list_recipes()


@mcp.tool()
async def to_cook_list() -> List[Recipe]:
    """
    List the recipes the user plans to cook.

    This is a READ-ONLY operation (no state changes).

    Returns:
      A list of Recipe objects, in the order they were added. Empty list if nothing is planned.
    """
    return await service.list_to_cook()


@mcp.tool()
async def to_cook_add(recipe_id: int) -> str:
    """
    Put a catalog recipe on the to-cook list and its ingredients on the shopping list.

    Use this when the user wants to cook something, e.g. "let's make Pfannkuchen on Sunday".

    This is a WRITE operation (it modifies the to-cook and to-buy lists).

    Args:
      recipe_id: id of the recipe as returned by rezepte_list().

    Returns:
      "added" on success, "not found" if no recipe has that id.

    Notes:
      - Ingredients with the same name are merged into one shopping list line,
        e.g. "200g Mehl" and "100g Mehl" become "200g + 100g Mehl".
    """
    recipe = await service.get_recipe(recipe_id)
    if recipe is None:
        return "not found"
    await service.add_to_cook(recipe)
    return "added"


@mcp.tool()
async def to_cook_remove(recipe_id: int) -> List[AlreadyBoughtIngredient]:
    """
    Remove a recipe from the to-cook list and its ingredients from the shopping list.

    This is a WRITE operation.

    Args:
      recipe_id: id of the recipe on the to-cook list.

    Returns:
      The recipe's ingredients that were no longer on the shopping list
      (already bought). Tell the user about them; they may now be left over.
      Removing a recipe that is not on the list returns an empty list.
    """
    return await service.remove_from_cook(recipe_id)


@mcp.tool()
async def to_buy_list() -> List[ShoppingEntry]:
    """
    Show the shopping list.

    This is a READ-ONLY operation (no state changes).

    Returns:
      A list of ShoppingEntry objects. The position of an entry in this list is
      the index used by to_buy_remove() and to_buy_edit().
    """
    return await service.list_to_buy()


@mcp.tool()
async def to_buy_add(name: str) -> str:
    """
    Add an item to the shopping list by hand, e.g. "2 Zitronen" or "Kaffee".

    This is a WRITE operation. An item with the same name as an existing line is merged into it.

    Returns:
      "ok", or "empty name" if name is blank.
    """
    if not name.strip():
        return "empty name"
    await service.add_to_buy(Occurrence(name=name))
    return "ok"


@mcp.tool()
async def to_buy_remove(index: int) -> str:
    """
    Strike an item off the shopping list (e.g. because it was bought).

    This is a WRITE operation.

    Args:
      index: position of the item as returned by to_buy_list(), starting at 0.

    Returns:
      "removed", or "not found" if the index is out of range.
    """
    removed = await service.remove_from_buy(index)
    return "removed" if removed else "not found"


@mcp.tool()
async def to_buy_edit(index: int, new_name: str) -> str:
    """
    Change the text of a shopping list item, e.g. to correct an amount.

    This is a WRITE operation.

    Args:
      index: position of the item as returned by to_buy_list(), starting at 0.
      new_name: the new text, e.g. "500g Mehl".

    Returns:
      "ok", or "not found" if the index is out of range or new_name is empty.
    """
    changed = await service.rename_to_buy(index, new_name)
    return "ok" if changed else "not found"


def main() -> None:
    # Ensure the store is ready before serving
    import asyncio
    configure_logging(settings.log_level)
    asyncio.run(service.init())
    mcp.run()  # stdio transport


if __name__ == "__main__":
    main()
