"""Tests for the junk filter heuristics."""

from __future__ import annotations

from charindex.extraction.models import ExtractionResult
from charindex.normalization.junk_filter import JunkFilter, sentence_start_ratio
from charindex.normalization.models import EntityGroup, FullNameEvidence, SingleNameEvidence, VariantForm


def _single(name: str, count: int) -> EntityGroup:
    return EntityGroup(
        canonical_name=name,
        variants=[VariantForm(form=name, count=count, key=name)],
        evidence=SingleNameEvidence(),
    )


def _full(name: str, count: int) -> EntityGroup:
    return EntityGroup(
        canonical_name=name,
        variants=[VariantForm(form=name, count=count, key=name)],
        evidence=FullNameEvidence(parts=name.split()),
    )


def test_list_separated_names_are_excluded() -> None:
    text = "Malfoy, Crabbe, and Goyle laughed.\n" * 3
    group = _full("Malfoy Crabbe", 2)

    result = JunkFilter().filter([group], ExtractionResult(), text)

    assert result.clean == []
    excluded = result.excluded[0]
    assert excluded.text == "Malfoy Crabbe"
    assert excluded.reason == "list_separated_names"
    assert excluded.evidence == '"Malfoy, Crabbe," list pattern appears 3 times'
    assert excluded.mentions == 2


def test_and_separated_names_are_excluded() -> None:
    text = "Fred and George laughed. " * 4 + "Fred George once."
    result = JunkFilter().filter([_full("Fred George", 3)], ExtractionResult(), text)

    assert result.excluded[0].reason == "list_separated_names"
    assert "appears 4 times" in result.excluded[0].evidence


def test_high_sentence_start_ratio_is_excluded() -> None:
    extraction = ExtractionResult(sentence_start_counts={"Inside": 5})

    result = JunkFilter().filter([_single("Inside", 6)], extraction, "")

    excluded = result.excluded[0]
    assert excluded.reason == "sentence_start_ratio_high"
    assert excluded.sentence_start_ratio == 0.83
    assert excluded.evidence == "83% of mentions at sentence start"


def test_ratio_rule_needs_enough_mentions() -> None:
    extraction = ExtractionResult(sentence_start_counts={"Inside": 4})

    result = JunkFilter().filter([_single("Inside", 4)], extraction, "")

    assert [g.canonical_name for g in result.clean] == ["Inside"]
    assert result.clean[0].sentence_start_ratio == 1.0


def test_truncated_phrase_prefix() -> None:
    groups = [_full(name, 4) for name in ("Good Morning", "Good Night", "Good Lord", "Good Heavens")]

    result = JunkFilter().filter(groups, ExtractionResult(), "")

    assert result.clean == []
    assert {e.reason for e in result.excluded} == {"truncated_phrase"}
    assert result.excluded[0].evidence == '"Good" appears as first word in 4 two-word entities'


def test_two_groups_sharing_a_prefix_are_kept() -> None:
    groups = [_full("Uncle Vernon", 20), _full("Uncle Fester", 10)]

    result = JunkFilter().filter(groups, ExtractionResult(), "")

    assert len(result.clean) == 2


def test_both_words_high_frequency() -> None:
    extraction = ExtractionResult(mention_counts={"Harry": 50, "Ron": 45, "Harry Ron": 5})

    result = JunkFilter().filter([_full("Harry Ron", 5)], extraction, "Harry Ron went.")

    excluded = result.excluded[0]
    assert excluded.reason == "both_words_high_frequency"
    assert excluded.evidence == (
        'Both "Harry" (50) and "Ron" (45) are high-frequency standalone entities'
    )


def test_frequent_two_word_name_skips_rarity_checks() -> None:
    extraction = ExtractionResult(mention_counts={"Harry": 50, "Ron": 45})
    text = "Harry, Ron, and Hermione. " * 5

    result = JunkFilter().filter([_full("Harry Ron", 40)], extraction, text)

    assert [g.canonical_name for g in result.clean] == ["Harry Ron"]


def test_clean_groups_carry_rounded_ratio() -> None:
    extraction = ExtractionResult(sentence_start_counts={"Harry": 1})
    group = EntityGroup(
        canonical_name="Harry",
        variants=[
            VariantForm(form="Harry", count=2, key="Harry"),
            VariantForm(form="Harry's", count=1, key="Harry"),
        ],
        evidence=SingleNameEvidence(has_possessive=True),
    )

    result = JunkFilter().filter([group], extraction, "")

    assert result.clean[0].sentence_start_ratio == 0.33
    assert sentence_start_ratio(group, extraction.sentence_start_counts) == 1 / 3


def test_sentence_start_ratio_of_empty_group() -> None:
    group = EntityGroup(canonical_name="Nobody", evidence=SingleNameEvidence())
    assert sentence_start_ratio(group, {"Nobody": 3}) == 0.0
