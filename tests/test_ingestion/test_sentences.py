"""Tests for sentence splitting and match normalization."""

from __future__ import annotations

from charindex.ingestion.sentences import split_sentences
from charindex.ingestion.text_normalizer import normalize_apostrophes, normalize_for_match, strip_possessive


def test_basic_split() -> None:
    assert split_sentences("Harry ran. Ron walked! Did Hermione?") == [
        "Harry ran.",
        "Ron walked!",
        "Did Hermione?",
    ]


def test_title_abbreviation_does_not_split() -> None:
    assert split_sentences("Mr. Dursley hated Harry. Harry looked at Mr. Dursley.") == [
        "Mr. Dursley hated Harry.",
        "Harry looked at Mr. Dursley.",
    ]


def test_initials_decimals_and_ellipsis() -> None:
    assert split_sentences("J. K. Rowling wrote. It cost 3.50 today... Then it rose.") == [
        "J. K. Rowling wrote.",
        "It cost 3.50 today... Then it rose.",
    ]


def test_closing_quote_stays_with_sentence() -> None:
    assert split_sentences('"Run!" said Harry. He ran.') == ['"Run!" said Harry.', "He ran."]
    assert split_sentences('He said "Stop." Then he left.') == ['He said "Stop."', "Then he left."]


def test_blank_text() -> None:
    assert split_sentences("") == []
    assert split_sentences("   ") == []


def test_normalize_for_match() -> None:
    assert normalize_for_match("Mr. Dursley’s") == "mr dursley's"
    assert normalize_for_match("Dr. Who") == normalize_for_match("dr who")
    assert normalize_for_match("Harry. Ron") == "harry. ron"


def test_apostrophe_helpers() -> None:
    assert normalize_apostrophes("Harry‘s ʼn’") == "Harry's 'n'"
    assert normalize_apostrophes(None) == ""
    assert strip_possessive("Hagrid’s") == "Hagrid"
    assert strip_possessive("James") == "James"
