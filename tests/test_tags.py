from __future__ import annotations

from spade_bridge.catalog.tags import dedupe_tags


def test_dedupe_tags_keeps_first_occurrence_order():
    assert dedupe_tags(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]


def test_dedupe_tags_is_case_sensitive():
    assert dedupe_tags(["Red", "red", "RED"]) == ["Red", "red", "RED"]


def test_dedupe_tags_trims_and_drops_blank_entries():
    assert dedupe_tags(["  summer ", "", "   ", "summer", None, "\t"]) == ["summer"]


def test_dedupe_tags_coerces_numbers_and_skips_structures():
    assert dedupe_tags([2024, "2024", {"tag": "x"}, ["y"], True]) == ["2024"]


def test_dedupe_tags_is_idempotent():
    tags = ["spade-product", " Acme ", "Color", "Acme", "", "Size", "Color"]

    once = dedupe_tags(tags)

    assert dedupe_tags(once) == once
