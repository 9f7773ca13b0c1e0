import pytest

from resume_pipeline.core.text_normalizer import TextNormalizer


@pytest.fixture
def normalizer():
    return TextNormalizer()


def test_normalize_collapses_whitespace_and_blank_lines(normalizer):
    """Spaces, CRLF line endings and blank-line runs are cleaned up"""
    assert normalizer.normalize(" Hello   world \r\n\r\n\r\n\r\nBye  ") == "Hello world\n\nBye"


@pytest.mark.parametrize("raw", [None, ""])
def test_normalize_empty_input(normalizer, raw):
    assert normalizer.normalize(raw) == ""


def test_normalize_converts_lone_carriage_returns(normalizer):
    result = normalizer.normalize("a\rb\r\nc")
    assert result == "a\nb\nc"
    assert "\r" not in result


def test_normalize_tabs_become_single_space(normalizer):
    assert normalizer.normalize("Python\t\t  Java") == "Python Java"


def test_normalize_whitespace_only_lines_do_not_leave_long_gaps(normalizer):
    """Lines holding only spaces must not produce three newlines in a row"""
    result = normalizer.normalize("A\n \n \n \nB")
    assert "\n\n\n" not in result
    assert result == "A\n\nB"


@pytest.mark.parametrize("raw", [
    " Hello   world \r\n\r\n\r\n\r\nBye  ",
    "A\n \n \n \nB",
    "\t lead\n\n\n\n trail \t",
    "x \n\t\n  \n\r\ny",
])
def test_normalize_is_idempotent(normalizer, raw):
    once = normalizer.normalize(raw)
    assert normalizer.normalize(once) == once


def test_is_valid(normalizer):
    assert normalizer.is_valid("text")
    assert not normalizer.is_valid(None)
    assert not normalizer.is_valid("")
    assert not normalizer.is_valid(" \n\t ")


def test_normalize_text_flags_whitespace_only(normalizer):
    result = normalizer.normalize_text("  \r\n  \t ")
    assert result.text == ""
    assert result.is_valid is False
