"""Tests for variant grouping."""

from __future__ import annotations

import pytest

from charindex.extraction.lexicon import Lexicon
from charindex.extraction.models import ExtractionResult
from charindex.extraction.proper_noun_extractor import ProperNounExtractor
from charindex.normalization.models import FullNameEvidence, SingleNameEvidence, TitledNameEvidence
from charindex.normalization.variant_grouper import VariantGrouper
from charindex.utils.config import GroupingConfig


@pytest.fixture(scope="module")
def extractor() -> ProperNounExtractor:
    return ProperNounExtractor(Lexicon.from_config())


def _extract(extractor: ProperNounExtractor, *lines: str) -> ExtractionResult:
    return extractor.extract("\n".join(lines))


def _variants(group) -> dict[str, int]:
    return {v.form: v.count for v in group.variants}


def test_full_name_claims_parts_and_titled_form(extractor: ProperNounExtractor) -> None:
    extraction = _extract(
        extractor,
        *["Harry Potter waved."] * 3,
        *["Harry smiled."] * 4,
        *["Potter frowned."] * 3,
        *["Mr. Potter left."] * 2,
    )

    groups = VariantGrouper().group(extraction)

    assert len(groups) == 1
    group = groups[0]
    assert group.canonical_name == "Harry Potter"
    assert _variants(group) == {"Harry Potter": 3, "Harry": 4, "Potter": 3, "Mr. Potter": 2}
    assert group.total_mentions == 12
    assert isinstance(group.evidence, FullNameEvidence)
    assert group.evidence.parts == ["Harry", "Potter"]
    assert group.evidence.title_patterns == ["Mr"]


def test_titled_name_adopts_bare_name_as_canonical(extractor: ProperNounExtractor) -> None:
    extraction = _extract(
        extractor,
        *["Professor Dumbledore spoke."] * 3,
        *["Dumbledore nodded."] * 2,
    )

    groups = VariantGrouper().group(extraction)

    assert len(groups) == 1
    group = groups[0]
    assert group.canonical_name == "Dumbledore"
    assert group.total_mentions == 5
    assert isinstance(group.evidence, TitledNameEvidence)
    assert group.evidence.title == "Professor"


def test_possessive_variant_is_reported_separately(extractor: ProperNounExtractor) -> None:
    extraction = _extract(
        extractor,
        *["They saw Hagrid's hut."] * 2,
        *["Hagrid laughed."] * 2,
    )

    groups = VariantGrouper().group(extraction)

    assert len(groups) == 1
    assert _variants(groups[0]) == {"Hagrid": 2, "Hagrid's": 2}
    assert groups[0].total_mentions == 4
    assert groups[0].evidence == SingleNameEvidence(has_possessive=True)


def test_full_name_with_two_frequent_parts_is_not_an_anchor(extractor: ProperNounExtractor) -> None:
    extraction = _extract(
        extractor,
        *["Harry Ron went."] * 3,
        *["Harry ran."] * 31,
        *["Ron ran."] * 31,
    )

    groups = VariantGrouper().group(extraction)

    assert [g.canonical_name for g in groups] == ["Harry", "Ron"]
    assert all(isinstance(g.evidence, SingleNameEvidence) for g in groups)
    assert all(g.total_mentions == 31 for g in groups)


def test_rare_forms_are_dropped_and_order_is_by_mentions(extractor: ProperNounExtractor) -> None:
    extraction = _extract(
        extractor,
        *["Neville ran."] * 3,
        *["Luna sang."] * 5,
        "Dobby hid.",
    )

    groups = VariantGrouper().group(extraction)

    assert [(g.canonical_name, g.total_mentions) for g in groups] == [("Luna", 5), ("Neville", 3)]


def test_lower_floor_keeps_every_form(extractor: ProperNounExtractor) -> None:
    extraction = _extract(extractor, "Mr. Dursley hated Harry. Harry looked at Mr. Dursley.")

    groups = VariantGrouper(GroupingConfig(min_mentions=1)).group(extraction)

    assert [(g.canonical_name, g.total_mentions) for g in groups] == [("Harry", 2), ("Mr. Dursley", 2)]
    titled = groups[1]
    assert isinstance(titled.evidence, TitledNameEvidence)
    assert titled.evidence.title_type == "honorific"


def test_group_totals_match_underlying_counts(extractor: ProperNounExtractor) -> None:
    extraction = _extract(
        extractor,
        *["Harry Potter waved."] * 3,
        *["Harry's owl flew."] * 3,
        *["Harry smiled."] * 2,
    )

    group = VariantGrouper().group(extraction)[0]

    expected = sum(extraction.mention_counts[k] for k in {v.lookup_key for v in group.variants})
    assert group.total_mentions == expected == 8
    assert _variants(group) == {"Harry Potter": 3, "Harry": 2, "Harry's": 3}


def test_first_appearance_is_earliest_variant(extractor: ProperNounExtractor) -> None:
    text = "\n".join(
        [
            "## CHAPTER ONE: Start",
            "",
            "Harry smiled.",
            "",
            "## CHAPTER TWO: Later",
            "",
            *["Harry Potter waved."] * 3,
            *["Harry smiled."] * 3,
        ]
    )

    group = VariantGrouper().group(extractor.extract(text))[0]

    assert group.canonical_name == "Harry Potter"
    assert group.first_appearance.sort_key() == (1, 1)


def test_empty_extraction() -> None:
    assert VariantGrouper().group(ExtractionResult()) == []
