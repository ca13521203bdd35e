"""
Tests for ingredient parsing, merging, expansion and recipe removal.
"""
from collections import Counter

import pytest

from kochliste.ingredients import (
    expand_ingredients,
    merge_ingredients,
    parse_ingredient,
    recipe_occurrences,
    reconcile_removal,
    without_recipe,
)
from kochliste.models import Occurrence, Recipe, ShoppingEntry


BROT = Recipe(id=1, name="Brot", zutaten=["500g Mehl", "1 Pck. Hefe", "Salz"])
PFANNKUCHEN = Recipe(id=2, name="Pfannkuchen", zutaten=["200g Mehl", "3 Eier", "½ l Milch", "Salz"])


def _pairs(entries):
    """Multiset of (lower-cased base name, amount) pairs across entries."""
    pairs = Counter()
    for entry in entries:
        for amount in entry.amounts:
            pairs[(entry.base.lower(), amount)] += 1
    return pairs


def _ids(entries):
    return {rezept_id for entry in entries for rezept_id in entry.rezeptIds}


class TestParseIngredient:

    @pytest.mark.parametrize("line, amount, name", [
        ("200g Mehl", "200g", "Mehl"),
        ("Salz", "", "Salz"),
        ("½ TL Zimt", "½ TL", "Zimt"),
        ("2 Eier", "2", "Eier"),
        ("1 Pck. Hefe", "1 Pck.", "Hefe"),
        ("1,5 kg Kartoffeln", "1,5 kg", "Kartoffeln"),
        ("3 EL Öl extra vergine", "3 EL", "Öl extra vergine"),
        ("⅛ l Sahne (süß)", "⅛ l", "Sahne (süß)"),
        ("2 (große) Zwiebeln", "2 (große)", "Zwiebeln"),
    ])
    def test_amount_and_name(self, line, amount, name):
        parsed = parse_ingredient(line)
        assert parsed.amount == amount
        assert parsed.name == name

    def test_name_without_amount_is_trimmed(self):
        parsed = parse_ingredient("  Pfeffer aus der Mühle  ")
        assert parsed.amount == ""
        assert parsed.name == "Pfeffer aus der Mühle"

    def test_amount_alone_is_a_name(self):
        """Without a name after the amount nothing is split off."""
        assert parse_ingredient("200g").name == "200g"
        assert parse_ingredient("200g").amount == ""

    def test_amount_must_lead(self):
        parsed = parse_ingredient("Eier 2")
        assert parsed.amount == ""
        assert parsed.name == "Eier 2"

    def test_multiline_is_not_split(self):
        parsed = parse_ingredient("200g Mehl\nZucker")
        assert parsed.amount == ""


class TestMergeIngredients:

    def test_empty(self):
        assert merge_ingredients([]) == []

    def test_groups_case_insensitively(self):
        merged = merge_ingredients([
            Occurrence(name="2 Eier", rezeptId=1),
            Occurrence(name="3 EIER", rezeptId=2),
        ])
        assert len(merged) == 1
        entry = merged[0]
        assert entry.baseName == "Eier"
        assert entry.amounts == ["2", "3"]
        assert entry.rezeptIds == [1, 2]
        assert entry.name == "2 + 3 Eier"

    def test_manual_entry_merges_with_recipe_entry(self):
        merged = merge_ingredients([
            Occurrence(name="Zucker"),
            Occurrence(name="200g Zucker", rezeptId=5, rezeptName="Kuchen"),
        ])
        assert len(merged) == 1
        entry = merged[0]
        assert entry.baseName == "Zucker"
        assert entry.amounts == ["200g"]
        assert entry.rezeptIds == [5]
        assert entry.rezeptNames == ["Kuchen"]
        assert entry.name == "200g Zucker"

    def test_amounts_of_manual_and_recipe_entries_concatenate_in_order(self):
        merged = merge_ingredients([
            Occurrence(name="1 Zitrone"),
            Occurrence(name="Zitrone"),
            Occurrence(name="2 Zitrone", rezeptId=3, rezeptName="Tarte"),
        ])
        assert [e.name for e in merged] == ["1 + 2 Zitrone"]
        assert merged[0].rezeptIds == [3]

    def test_entry_without_amounts_uses_base_name(self):
        merged = merge_ingredients(recipe_occurrences(BROT) + recipe_occurrences(PFANNKUCHEN))
        salz = next(e for e in merged if e.baseName == "Salz")
        assert salz.name == "Salz"
        assert salz.amounts == []
        assert salz.rezeptIds == [1, 2]
        assert salz.rezeptNames == ["Brot", "Pfannkuchen"]

    def test_groups_keep_first_seen_order(self):
        merged = merge_ingredients([
            Occurrence(name="Mehl"),
            Occurrence(name="Eier"),
            Occurrence(name="100g mehl"),
        ])
        assert [e.baseName for e in merged] == ["Mehl", "Eier"]
        assert merged[0].name == "100g Mehl"

    def test_attributions_are_unique(self):
        merged = merge_ingredients([
            Occurrence(name="200g Mehl", rezeptId=1, rezeptName="Brot"),
            Occurrence(name="50g Mehl", rezeptId=1, rezeptName="Brot"),
        ])
        assert merged[0].rezeptIds == [1]
        assert merged[0].rezeptNames == ["Brot"]
        assert merged[0].amounts == ["200g", "50g"]

    def test_empty_recipe_name_is_not_recorded(self):
        merged = merge_ingredients([Occurrence(name="Mehl", rezeptId=1, rezeptName="")])
        assert merged[0].rezeptIds == [1]
        assert merged[0].rezeptNames == []


class TestExpandIngredients:

    def test_one_occurrence_per_recipe(self):
        entry = ShoppingEntry(
            name="200g + 100g Mehl",
            baseName="Mehl",
            amounts=["200g", "100g"],
            rezeptIds=[1, 2],
            rezeptNames=["Brot", "Kuchen"],
        )
        expanded = expand_ingredients([entry])
        assert [(o.name, o.rezeptId, o.rezeptName) for o in expanded] == [
            ("200g Mehl", 1, "Brot"),
            ("100g Mehl", 2, "Kuchen"),
        ]

    def test_missing_names_and_amounts_default(self):
        entry = ShoppingEntry(
            name="200g Mehl", baseName="Mehl", amounts=["200g"], rezeptIds=[1, 2], rezeptNames=["Brot"]
        )
        expanded = expand_ingredients([entry])
        assert expanded[1].name == "Mehl"
        assert expanded[1].rezeptId == 2
        assert expanded[1].rezeptName == ""

    def test_manual_entry_expands_to_one_unattributed_occurrence(self):
        entry = ShoppingEntry(name="2 Zitronen", baseName="Zitronen", amounts=["2"])
        expanded = expand_ingredients([entry])
        assert len(expanded) == 1
        assert expanded[0].name == "2 Zitronen"
        assert expanded[0].rezeptId is None
        assert expanded[0].rezeptName is None

    def test_falls_back_to_name_without_base_name(self):
        entry = ShoppingEntry(name="Mehl", amounts=["200g"], rezeptIds=[1], rezeptNames=["Brot"])
        assert expand_ingredients([entry])[0].name == "200g Mehl"

    def test_merge_after_expand_preserves_amounts_and_recipes(self):
        entries = merge_ingredients(
            recipe_occurrences(BROT)
            + recipe_occurrences(PFANNKUCHEN)
            + [Occurrence(name="Kaffee"), Occurrence(name="2 Zitronen")]
        )
        again = merge_ingredients(expand_ingredients(entries))
        assert _pairs(again) == _pairs(entries)
        assert _ids(again) == _ids(entries) == {1, 2}

    def test_merge_is_a_fixed_point(self):
        once = merge_ingredients(
            recipe_occurrences(BROT) + recipe_occurrences(PFANNKUCHEN) + [Occurrence(name="Kaffee")]
        )
        twice = merge_ingredients(expand_ingredients(once))
        thrice = merge_ingredients(expand_ingredients(twice))
        assert twice == once
        assert thrice == once


class TestReconcileRemoval:

    def test_flags_only_ingredients_missing_from_the_list(self):
        to_cook = [Recipe(id=1, name="Brot", zutaten=["200g Mehl", "1 Ei"])]
        to_buy = [ShoppingEntry(
            name="200g Mehl", baseName="Mehl", amounts=["200g"], rezeptIds=[1], rezeptNames=["Brot"]
        )]

        removal = reconcile_removal(1, to_cook, to_buy)

        assert removal.to_buy == []
        assert removal.to_cook == []
        assert [z.name for z in removal.already_bought] == ["1 Ei"]
        ei = removal.already_bought[0]
        assert ei.baseName == "Ei"
        assert ei.rezeptId == 1
        assert ei.rezeptName == "Brot"

    def test_keeps_other_recipes_and_manual_entries(self):
        to_buy = merge_ingredients(
            recipe_occurrences(BROT) + recipe_occurrences(PFANNKUCHEN) + [Occurrence(name="Kaffee")]
        )

        removal = reconcile_removal(1, [BROT, PFANNKUCHEN], to_buy)

        by_name = {e.baseName: e for e in removal.to_buy}
        assert "Hefe" not in by_name
        assert by_name["Mehl"].name == "200g Mehl"
        assert by_name["Mehl"].rezeptIds == [2]
        assert by_name["Salz"].rezeptNames == ["Pfannkuchen"]
        assert by_name["Kaffee"].rezeptIds == []
        assert [r.id for r in removal.to_cook] == [2]
        assert removal.already_bought == []

    def test_unknown_recipe_flags_nothing(self):
        to_buy = merge_ingredients(recipe_occurrences(BROT))
        removal = reconcile_removal(42, [BROT], to_buy)
        assert removal.already_bought == []
        assert removal.to_cook == [BROT]
        assert removal.to_buy == to_buy

    def test_removes_every_copy_from_to_cook(self):
        removal = reconcile_removal(1, [BROT, PFANNKUCHEN, BROT], [])
        assert [r.id for r in removal.to_cook] == [2]
        assert len(removal.already_bought) == len(BROT.zutaten)

    def test_without_recipe_filters_positionally(self):
        entry = ShoppingEntry(
            name="500g + 200g Mehl",
            baseName="Mehl",
            amounts=["500g", "200g"],
            rezeptIds=[1, 2],
            rezeptNames=["Brot", "Pfannkuchen"],
        )
        (left,) = without_recipe([entry], 1)
        assert left.rezeptIds == [2]
        assert left.rezeptNames == ["Pfannkuchen"]
        assert left.amounts == ["200g"]


class TestBlankLines:

    def test_recipe_occurrences_skip_blank_lines(self):
        recipe = Recipe(id=1, name="Brot", zutaten=["500g Mehl", "", "   ", "Salz"])
        assert [o.name for o in recipe_occurrences(recipe)] == ["500g Mehl", "Salz"]

    def test_merge_and_expand_accept_empty_names(self):
        merged = merge_ingredients([Occurrence(name=""), Occurrence(name="Kaffee")])
        assert [e.name for e in merged] == ["", "Kaffee"]
        assert merge_ingredients(expand_ingredients(merged)) == merged

    def test_blank_lines_are_not_reported_as_bought(self):
        recipe = Recipe(id=1, name="Brot", zutaten=["500g Mehl", ""])
        removal = reconcile_removal(1, [recipe], merge_ingredients(recipe_occurrences(recipe)))
        assert removal.already_bought == []
        assert removal.to_buy == []
