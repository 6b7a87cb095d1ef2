"""Tests for confirmed / candidate tiering."""

from __future__ import annotations

import pytest

from charindex.extraction.lexicon import Lexicon
from charindex.extraction.models import ExtractionResult, FirstAppearance
from charindex.normalization.models import (
    EntityGroup,
    FullNameEvidence,
    SingleNameEvidence,
    TitledNameEvidence,
    VariantForm,
)
from charindex.normalization.tier_classifier import TierClassifier
from charindex.utils.config import TierConfig


@pytest.fixture(scope="module")
def classifier() -> TierClassifier:
    return TierClassifier(Lexicon.from_config())


def _group(name: str, *variants: tuple[str, int], evidence=None) -> EntityGroup:
    return EntityGroup(
        canonical_name=name,
        variants=[VariantForm(form=form, count=count, key=form.removesuffix("'s")) for form, count in variants],
        evidence=evidence or SingleNameEvidence(),
    )


def test_titled_group_is_confirmed_and_rare_single_is_candidate() -> None:
    classifier = TierClassifier(Lexicon.from_config(), TierConfig(min_candidate_mentions=1))
    groups = [
        _group("Harry", ("Harry", 2)),
        _group("Mr. Dursley", ("Mr. Dursley", 2), evidence=TitledNameEvidence(title="Mr")),
    ]

    result = classifier.classify(groups, ExtractionResult(mention_counts={"Harry": 2}))

    assert [(e.canonical_name, e.qualified_by) for e in result.confirmed] == [("Mr. Dursley", "title_pattern")]
    assert result.confirmed[0].id == "mr_dursley"
    assert [e.canonical_name for e in result.candidates] == ["Harry"]
    assert result.candidates[0].notes == "No possessive form"
    assert result.low_frequency == 0


def test_bare_titles_are_never_confirmed(classifier: TierClassifier) -> None:
    groups = [
        _group("Mr", ("Mr", 12)),
        _group("Mrs P", ("Mrs P", 9), evidence=TitledNameEvidence(title="Mrs")),
    ]

    result = classifier.classify(groups, ExtractionResult())

    assert result.confirmed == []
    assert [e.canonical_name for e in result.candidates] == ["Mr", "Mrs P"]


def test_full_name_with_independent_parts(classifier: TierClassifier) -> None:
    groups = [
        _group("Ron Weasley", ("Ron Weasley", 12), evidence=FullNameEvidence(parts=["Ron", "Weasley"])),
        _group("Ron", ("Ron", 15)),
        _group("Weasley", ("Weasley", 10)),
    ]

    result = classifier.classify(groups, ExtractionResult())

    assert [(e.canonical_name, e.qualified_by) for e in result.confirmed] == [
        ("Ron Weasley", "full_name_both_parts_independent")
    ]
    assert [e.canonical_name for e in result.candidates] == ["Ron", "Weasley"]


def test_single_name_with_possessive(classifier: TierClassifier) -> None:
    groups = [_group("Hagrid", ("Hagrid", 19), ("Hagrid's", 6))]
    extraction = ExtractionResult(mention_counts={"Hagrid": 25}, possessive_counts={"Hagrid": 6})

    result = classifier.classify(groups, extraction)

    assert result.confirmed[0].qualified_by == "single_name_with_possessive"
    assert result.confirmed[0].mentions == 25


def test_possessive_rule_needs_enough_mentions(classifier: TierClassifier) -> None:
    groups = [_group("Hagrid", ("Hagrid", 9), ("Hagrid's", 6))]
    extraction = ExtractionResult(mention_counts={"Hagrid": 15}, possessive_counts={"Hagrid": 6})

    result = classifier.classify(groups, extraction)

    assert result.confirmed == []
    assert result.candidates[0].notes == "Has possessive form"


def test_variant_with_possessive(classifier: TierClassifier) -> None:
    groups = [
        _group(
            "Albus Dumbledore",
            ("Albus Dumbledore", 3),
            ("Dumbledore", 40),
            ("Dumbledore's", 6),
            evidence=FullNameEvidence(parts=["Albus", "Dumbledore"]),
        )
    ]
    extraction = ExtractionResult(
        mention_counts={"Albus Dumbledore": 3, "Dumbledore": 46},
        possessive_counts={"Dumbledore": 6},
    )

    result = classifier.classify(groups, extraction)

    assert result.confirmed[0].qualified_by == "variant_with_possessive"
    assert result.confirmed[0].mentions == 49


def test_low_frequency_groups_are_dropped(classifier: TierClassifier) -> None:
    groups = [_group("Zed", ("Zed", 3)), _group("Luna", ("Luna", 9))]

    result = classifier.classify(groups, ExtractionResult())

    assert [e.canonical_name for e in result.candidates] == ["Luna"]
    assert result.low_frequency == 1


def test_tiers_sorted_by_mentions_and_carry_metadata(classifier: TierClassifier) -> None:
    first = FirstAppearance(chapter=3, paragraph=2)
    groups = [
        _group("Neville", ("Neville", 9)),
        _group("Luna", ("Luna", 60)).model_copy(update={"first_appearance": first, "sentence_start_ratio": 0.25}),
    ]

    result = classifier.classify(groups, ExtractionResult())

    assert [e.canonical_name for e in result.candidates] == ["Luna", "Neville"]
    luna = result.candidates[0]
    assert luna.first_appearance == first
    assert luna.sentence_start_ratio == 0.25
    assert luna.notes == "No possessive form, High frequency single word"
    assert all(v.key is None for v in luna.variants)


def test_candidate_notes_for_multi_word_and_plural(classifier: TierClassifier) -> None:
    group = _group(
        "Weasley Twin", ("Weasley Twin", 5), ("Weasley Twins", 4), evidence=FullNameEvidence()
    )
    assert classifier.candidate_notes(group) == "2-word name, Has plural form"
