import pytest

from yuandi.errors import DuplicateIdentifier
from yuandi.models import Product
from yuandi.services import sku as sku_module
from yuandi.services.sku import (
    SKU_PATTERN, generate_sku, generate_unique_sku, is_valid_sku, parse_sku,
)


def test_generate_matches_pattern():
    sku = generate_sku("Bag", "Lindy26", "Black", "Hermes")
    assert SKU_PATTERN.match(sku)
    parts = parse_sku(sku)
    assert parts.category == "BAG"
    assert parts.model == "LINDY2"
    assert parts.color == "BLA"
    assert parts.brand == "HER"
    assert len(parts.hash) == 5


def test_non_alphanumeric_is_removed():
    parts = parse_sku(generate_sku("b-a_g", "Never full!", "g/d", "L.V"))
    assert parts.category == "BAG"
    assert parts.model == "NEVERF"
    assert parts.color == "GD"
    assert parts.brand == "LV"


def test_empty_and_non_ascii_fields_use_placeholders():
    for sku in (generate_sku(), generate_sku("가방", "린디", "검정", "에르메스"), generate_sku(None, None, None, None)):
        assert is_valid_sku(sku)
        parts = parse_sku(sku)
        assert (parts.category, parts.model, parts.color, parts.brand) == ("XXX", "XXXX", "X", "XX")


def test_short_fields_are_padded_to_minimum():
    parts = parse_sku(generate_sku("B", "M", "", "H"))
    assert parts.category == "BX"
    assert parts.model == "MX"
    assert parts.brand == "HX"


def test_non_string_input_does_not_raise():
    assert is_valid_sku(generate_sku(123, 45.6, 0, 7))


def test_same_input_gives_different_suffix():
    skus = {generate_sku("BAG", "KELLY", "GLD", "HER") for _ in range(50)}
    assert len(skus) > 45


@pytest.mark.parametrize("value", [None, "", "bag-lindy2-blk-her-abcde", "BAG-LINDY2-BLK-HER-ABC", "BAG_LINDY2"])
def test_invalid_skus(value):
    assert not is_valid_sku(value)
    assert parse_sku(value) is None


def test_generate_unique_regenerates_on_collision(db, make_product, monkeypatch):
    existing = make_product()
    fresh = "BAG-LINDY2-BLK-HER-ZZZZZ"
    candidates = iter([existing.sku, fresh])
    monkeypatch.setattr(sku_module, "generate_sku", lambda *args: next(candidates))

    assert generate_unique_sku(db, "BAG", "Lindy26", "BLK", "Hermes") == fresh


def test_generate_unique_gives_up_after_max_attempts(db, make_product, monkeypatch):
    existing = make_product()
    monkeypatch.setattr(sku_module, "generate_sku", lambda *args: existing.sku)

    with pytest.raises(DuplicateIdentifier) as exc:
        generate_unique_sku(db, max_attempts=3)
    assert exc.value.kind == "sku"
    assert db.query(Product).count() == 1
