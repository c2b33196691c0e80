import pytest

from app.search.sanitizer import clean_term, escape_like, sanitize_websearch, unescape_like


@pytest.mark.parametrize("raw, expected", [
    ("100%", "100\\%"),
    ("a_b", "a\\_b"),
    ("x,y", "x\\,y"),
    ("(spa)", "\\(spa\\)"),
    ("back\\slash", "back\\\\slash"),
    ("Botox", "Botox"),
])
def test_escape_like(raw, expected):
    assert escape_like(raw) == expected


def test_escape_like_preserves_case():
    assert escape_like("PhOeNiX") == "PhOeNiX"


@pytest.mark.parametrize("raw", ["%_%", "50% off, (today)", "\\%", "plain"])
def test_unescape_restores_original(raw):
    assert unescape_like(escape_like(raw)) == raw


@pytest.mark.parametrize("raw", [None, "", "   ", "\t\n"])
def test_clean_term_blank_means_no_filter(raw):
    assert clean_term(raw) is None


def test_websearch_keeps_phrases_and_negation():
    assert sanitize_websearch('"lip filler" -surgery') == '"lip filler" -surgery'


def test_websearch_strips_tsquery_operators():
    assert sanitize_websearch("botox & (fillers | peel):*") == "botox fillers peel"


def test_websearch_drops_unbalanced_quote():
    assert sanitize_websearch('"lip filler') == "lip filler"


@pytest.mark.parametrize("raw", ["&|!", '""', "- -", "()"])
def test_websearch_operator_only_term_is_empty(raw):
    assert sanitize_websearch(raw) is None
