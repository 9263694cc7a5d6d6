import pytest

from yuandi.services.pccc import (
    EMPTY, MISSING_PREFIX, NON_DIGIT, WRONG_LENGTH,
    format_pccc_input, mask_pccc, normalize_pccc, validate_pccc, validate_pccc_batch,
)


def test_valid_code():
    result = validate_pccc("P123456789012")
    assert result.valid is True
    assert result.normalized == "P123456789012"
    assert result.error is None


def test_lowercase_and_whitespace_are_normalized():
    result = validate_pccc("  p123456789012 ")
    assert result.valid is True
    assert result.normalized == "P123456789012"


@pytest.mark.parametrize("code, expected", [
    ("", EMPTY),
    (None, EMPTY),
    ("   ", EMPTY),
    ("123456789012", MISSING_PREFIX),
    ("A123456789012", MISSING_PREFIX),
    ("P12345678901A", NON_DIGIT),
    ("P1234-5678-9012", NON_DIGIT),
    ("P12345678901", WRONG_LENGTH),
    ("P1234567890123", WRONG_LENGTH),
    ("P", WRONG_LENGTH),
])
def test_failure_reasons(code, expected):
    result = validate_pccc(code)
    assert result.valid is False
    assert result.error_code == expected
    assert result.normalized is None
    assert result.error


def test_messages_follow_locale():
    ko = validate_pccc("123456789012", locale="ko")
    zh = validate_pccc("123456789012", locale="zh")
    assert "P로 시작" in ko.error
    assert "P开头" in zh.error


def test_unknown_locale_falls_back_to_korean():
    result = validate_pccc("", locale="fr")
    assert result.error == validate_pccc("", locale="ko").error


def test_full_width_digits_are_rejected():
    assert validate_pccc("P１２３４５６７８９０１２").error_code == NON_DIGIT


def test_to_dict_omits_empty_fields():
    assert validate_pccc("P123456789012").to_dict() == {"valid": True, "normalized": "P123456789012"}
    data = validate_pccc("P1").to_dict()
    assert data["valid"] is False
    assert data["error_code"] == WRONG_LENGTH


def test_normalize_strips_separators():
    assert normalize_pccc("p-1234-5678-9012") == "P123456789012"
    assert normalize_pccc("P 1234 5678 9012") == "P123456789012"
    assert normalize_pccc("P1234") is None
    assert normalize_pccc(None) is None


def test_mask():
    assert mask_pccc("P123456789012") == "P-****-****-9012"
    assert mask_pccc("P123456789012", show_last=2) == "P**********12"
    assert mask_pccc("invalid") == ""


def test_format_input():
    assert format_pccc_input("p12345678") == "P-1234-5678"
    assert format_pccc_input("P1234567890123456") == "P-1234-5678-9012"
    assert format_pccc_input("") == "P"


def test_batch():
    results = validate_pccc_batch(["P123456789012", "X"])
    assert results["P123456789012"].valid
    assert results["X"].error_code == MISSING_PREFIX
