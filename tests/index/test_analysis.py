from __future__ import annotations

from medcorpus.index.analysis import (
    Analyzer,
    EnglishAnalyzer,
    escape_query,
    non_stemming_analyzer,
    syntax_analyzer,
)


def test_stemming_analyzer_stems_and_drops_stopwords() -> None:
    assert EnglishAnalyzer().analyze("Infections of the lungs") == ["infect", "lung"]


def test_possessives_are_removed_before_tokenizing() -> None:
    assert syntax_analyzer().analyze("The patient's lungs") == ["patient", "lungs"]


def test_non_stemming_analyzer_keeps_every_token_literal() -> None:
    analyzer = non_stemming_analyzer()

    assert analyzer.analyze("Jones, Bob") == ["jones", "bob"]
    assert analyzer.analyze("The infections") == ["the", "infections"]


def test_vocabulary_codes_stay_single_tokens() -> None:
    analyzer = non_stemming_analyzer()

    assert analyzer.analyze("C0032285") == ["c0032285"]
    assert analyzer.analyze("T047") == ["t047"]
    assert analyzer.analyze("C0026936 T007") == ["c0026936", "t007"]


def test_hyphenated_names_split_on_punctuation() -> None:
    assert non_stemming_analyzer().analyze("Aisha A Al-Ghamdi") == ["aisha", "a", "al", "ghamdi"]


def test_punctuation_only_tokens_are_dropped() -> None:
    assert non_stemming_analyzer().analyze(" ; , . ") == []


def test_analyzers_satisfy_protocol() -> None:
    assert isinstance(EnglishAnalyzer(), Analyzer)
    assert EnglishAnalyzer().stems
    assert not non_stemming_analyzer().stems


def test_escape_query_keeps_only_analyzed_terms() -> None:
    assert escape_query("The patient's (lungs) AND title:covid-19") == "patient lungs covid 19"


def test_escape_query_accepts_a_custom_analyzer() -> None:
    assert escape_query("Infections of the lungs", EnglishAnalyzer()) == "infect lung"
    assert escape_query("   ") == ""
