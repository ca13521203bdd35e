"""
Ingredient logic for the shopping list.

Ingredient lines are free text ("200g Mehl", "½ TL Zimt", "Salz"). They are
split into an amount and a name, grouped case-insensitively by name and
merged into one shopping entry per ingredient. Amounts stay opaque strings;
"200g + 1 Pck." is as far as arithmetic goes.

The to-buy list is never patched in place. Every change expands the merged
entries back into per-recipe occurrences, edits that flat list and merges it
again.
"""
from __future__ import annotations
import re
from typing import Dict, Iterable, List, Optional

from .models import (
    AlreadyBoughtIngredient,
    Occurrence,
    ParsedIngredient,
    Recipe,
    Removal,
    ShoppingEntry,
)

FRACTIONS = "½¼¾⅓⅔⅛⅜⅝⅞"

_INGREDIENT_RE = re.compile(
    r"^([0-9.,%s]+\s*[a-zA-ZäöüÄÖÜß().]*)\s+(.+)\Z" % FRACTIONS
)


def parse_ingredient(line: str) -> ParsedIngredient:
    """Split an ingredient line into amount and name.

    >>> parse_ingredient("200g Mehl")
    ParsedIngredient(amount='200g', name='Mehl')
    >>> parse_ingredient("Salz")
    ParsedIngredient(amount='', name='Salz')
    """
    match = _INGREDIENT_RE.match(line)
    if match:
        return ParsedIngredient(amount=match.group(1).strip(), name=match.group(2).strip())
    return ParsedIngredient(amount="", name=line.strip())


class _Group:
    __slots__ = ("base_name", "amounts", "rezept_ids", "rezept_names")

    def __init__(self, base_name: str):
        self.base_name = base_name
        self.amounts: List[str] = []
        # dicts as insertion-ordered sets
        self.rezept_ids: Dict[int, None] = {}
        self.rezept_names: Dict[str, None] = {}

    def add(self, amount: str, rezept_id: Optional[int], rezept_name: Optional[str]) -> None:
        if amount:
            self.amounts.append(amount)
        if rezept_id is not None:
            self.rezept_ids.setdefault(rezept_id, None)
        if rezept_name:
            self.rezept_names.setdefault(rezept_name, None)

    def to_entry(self) -> ShoppingEntry:
        if self.amounts:
            name = " + ".join(self.amounts) + " " + self.base_name
        else:
            name = self.base_name
        return ShoppingEntry(
            name=name,
            baseName=self.base_name,
            amounts=list(self.amounts),
            rezeptIds=list(self.rezept_ids),
            rezeptNames=list(self.rezept_names),
        )


def merge_ingredients(occurrences: Iterable[Occurrence]) -> List[ShoppingEntry]:
    """Fold occurrences into one shopping entry per (case-insensitive) ingredient name.

    Input order decides the order of the entries, of the amounts within an
    entry and of the recipe attributions.
    """
    groups: Dict[str, _Group] = {}
    for occurrence in occurrences:
        parsed = parse_ingredient(occurrence.name)
        key = parsed.name.lower()
        group = groups.get(key)
        if group is None:
            group = groups[key] = _Group(parsed.name)
        group.add(parsed.amount, occurrence.rezeptId, occurrence.rezeptName)
    return [group.to_entry() for group in groups.values()]


def expand_ingredients(entries: Iterable[ShoppingEntry]) -> List[Occurrence]:
    """Unfold merged entries into one occurrence per contributing recipe."""
    expanded: List[Occurrence] = []
    for entry in entries:
        if not entry.rezeptIds:
            expanded.append(Occurrence(name=entry.name))
            continue
        base = entry.base
        for idx, rezept_id in enumerate(entry.rezeptIds):
            amount = entry.amounts[idx] if idx < len(entry.amounts) else ""
            rezept_name = entry.rezeptNames[idx] if idx < len(entry.rezeptNames) else None
            expanded.append(
                Occurrence(
                    name=f"{amount} {base}" if amount else base,
                    rezeptId=rezept_id,
                    rezeptName=rezept_name or "",
                )
            )
    return expanded


def recipe_occurrences(recipe: Recipe) -> List[Occurrence]:
    """One occurrence per ingredient line of the recipe, blank lines skipped."""
    return [
        Occurrence(name=zutat, rezeptId=recipe.id, rezeptName=recipe.name)
        for zutat in recipe.zutaten
        if zutat.strip()
    ]


def without_recipe(entries: Iterable[ShoppingEntry], rezept_id: int) -> List[ShoppingEntry]:
    """Drop one recipe's attribution from every entry.

    Entries that only belonged to that recipe disappear, manual entries stay.
    Amounts are filtered at the same positions as ids and names.
    """
    remaining: List[ShoppingEntry] = []
    for entry in entries:
        if not entry.rezeptIds:
            remaining.append(entry)
            continue
        ids: List[int] = []
        names: List[Optional[str]] = []
        amounts: List[str] = []
        for idx, other_id in enumerate(entry.rezeptIds):
            if other_id == rezept_id:
                continue
            ids.append(other_id)
            names.append(entry.rezeptNames[idx] if idx < len(entry.rezeptNames) else None)
            if idx < len(entry.amounts):
                amounts.append(entry.amounts[idx])
        if ids:
            remaining.append(
                entry.model_copy(update={"rezeptIds": ids, "rezeptNames": names, "amounts": amounts})
            )
    return remaining


def reconcile_removal(
    rezept_id: int,
    to_cook: List[Recipe],
    to_buy: List[ShoppingEntry],
) -> Removal:
    """Compute the lists after taking a recipe off the to-cook list.

    Ingredients of the removed recipe that are not on the to-buy list any
    more were bought (or struck off) already and are reported back instead
    of vanishing silently.
    """
    removed = next((recipe for recipe in to_cook if recipe.id == rezept_id), None)

    on_list = {entry.base.lower() for entry in to_buy}
    already_bought: List[AlreadyBoughtIngredient] = []
    if removed is not None:
        for zutat in removed.zutaten:
            if not zutat.strip():
                continue
            parsed = parse_ingredient(zutat)
            if parsed.name.lower() not in on_list:
                already_bought.append(
                    AlreadyBoughtIngredient(
                        name=zutat,
                        baseName=parsed.name,
                        rezeptId=rezept_id,
                        rezeptName=removed.name,
                    )
                )

    return Removal(
        to_cook=[recipe for recipe in to_cook if recipe.id != rezept_id],
        to_buy=merge_ingredients(expand_ingredients(without_recipe(to_buy, rezept_id))),
        already_bought=already_bought,
    )
