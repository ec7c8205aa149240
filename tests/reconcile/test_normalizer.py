"""Tests for catalog_sync/reconcile/normalizer.py"""

from decimal import Decimal

import pytest

from catalog_sync.common.config_loader import PricingProfile
from catalog_sync.reconcile.normalizer import (
    CatalogNormalizer,
    build_description,
    build_external_key,
    convert_price,
    parse_price,
)

CEIL_100 = PricingProfile(100, "ceil")
ROUND_1 = PricingProfile(1, "round")


@pytest.fixture
def normalizer():
    return CatalogNormalizer(rate=Decimal("4000"), min_price=Decimal("200"), pricing=CEIL_100)


class TestParsePrice:
    @pytest.mark.parametrize("value,expected", [
        ("2.50", Decimal("2.50")),
        (" 0.01 ", Decimal("0.01")),
        ("10", Decimal("10")),
    ])
    def test_valid(self, value, expected):
        assert parse_price(value) == expected

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "0", "-1.5", "NaN", "Infinity"])
    def test_invalid(self, value):
        assert parse_price(value) is None


class TestConvertPrice:
    def test_reference_price(self):
        assert convert_price(Decimal("2.50"), Decimal("4000"), Decimal("200"), CEIL_100) == 10000

    def test_ceils_to_granularity(self):
        # 0.26 * 4000 = 1040 -> 1100
        assert convert_price(Decimal("0.26"), Decimal("4000"), Decimal("200"), CEIL_100) == 1100

    def test_round_half_up(self):
        # 0.1234 * 4000 = 493.6 -> 494
        assert convert_price(Decimal("0.1234"), Decimal("4000"), Decimal("200"), ROUND_1) == 494
        # 0.125 * 4 = 0.5 -> 1
        assert convert_price(Decimal("0.125"), Decimal("4"), Decimal("0"), ROUND_1) == 1

    def test_clamped_to_minimum(self):
        assert convert_price(Decimal("0.01"), Decimal("4000"), Decimal("200"), CEIL_100) == 200
        assert convert_price(Decimal("0.01"), Decimal("4000"), Decimal("200"), ROUND_1) == 200

    def test_result_multiple_of_granularity_above_minimum(self):
        for cents in range(1, 500, 7):
            price = convert_price(Decimal(cents) / 100, Decimal("3987.65"), Decimal("200"), CEIL_100)
            assert price >= 200
            assert price % 100 == 0


class TestBuildExternalKey:
    def test_variant_slug(self):
        assert build_external_key("12345", "Reverse Holofoil", "SVI") == "12345-reverse-holofoil-SVI"

    def test_blank_variant_is_normal(self):
        assert build_external_key("12345", "", "SVI") == "12345-normal-SVI"

    def test_unsluggable_variant(self):
        assert build_external_key("12345", "★", "SVI") == "12345-base-SVI"

    def test_deterministic(self):
        assert build_external_key("1", "Holofoil", "BS") == build_external_key("1", "Holofoil", "BS")


class TestIsSellable:
    def test_numbered_and_priced(self, sellable_row):
        assert CatalogNormalizer.is_sellable(sellable_row)

    def test_missing_number(self, unnumbered_row):
        assert not CatalogNormalizer.is_sellable(unnumbered_row)

    def test_number_without_slash(self, sellable_row):
        sellable_row["extNumber"] = "SWSH001"
        assert not CatalogNormalizer.is_sellable(sellable_row)

    @pytest.mark.parametrize("price", ["", "0", "abc", "-3"])
    def test_bad_price(self, sellable_row, price):
        sellable_row["marketPrice"] = price
        assert not CatalogNormalizer.is_sellable(sellable_row)


class TestBuildTitle:
    def test_reference_title(self, sellable_row):
        assert CatalogNormalizer.build_title(sellable_row, "Scarlet & Violet") == (
            "Charizard | 4/102 | Holofoil | Scarlet & Violet"
        )

    def test_appends_number_when_absent(self):
        row = {"name": "Pikachu", "extNumber": "25/102", "subTypeName": "Normal"}
        assert CatalogNormalizer.build_title(row, "Base Set") == "Pikachu | 25/102 | Normal | Base Set"

    def test_only_first_separator_replaced(self):
        row = {"name": "Mew - Promo - Gold", "extNumber": "1/1"}
        assert CatalogNormalizer.build_title(row, "Promos") == "Mew | Promo - Gold | 1/1 | Promos"

    def test_falls_back_to_clean_name(self):
        row = {"cleanName": "Eevee", "extNumber": "5/64"}
        assert CatalogNormalizer.build_title(row, "Jungle") == "Eevee | 5/64 | Jungle"

    def test_collapses_whitespace(self):
        row = {"name": "  Mr.   Mime ", "extNumber": "6/64"}
        assert CatalogNormalizer.build_title(row, "Jungle") == "Mr. Mime | 6/64 | Jungle"


class TestNormalize:
    def test_reference_entry(self, normalizer, sellable_row, group):
        entry = normalizer.normalize(sellable_row, group)
        assert entry.external_key == "42346-holofoil-SVI"
        assert entry.title == "Charizard | 4/102 | Holofoil | Scarlet & Violet"
        assert entry.source_price == Decimal("2.50")
        assert entry.local_price == 10000
        assert entry.image_url.endswith("42346_400w.jpg")
        assert entry.group_name == "Scarlet & Violet"
        assert entry.extra_attributes["rarity"] == "Holo Rare"

    def test_unsellable_row_dropped(self, normalizer, unnumbered_row, group):
        assert normalizer.normalize(unnumbered_row, group) is None

    def test_missing_product_id(self, normalizer, sellable_row, group):
        sellable_row["productId"] = ""
        assert normalizer.normalize(sellable_row, group) is None

    def test_key_ignores_price_and_rate(self, sellable_row, group):
        cheap = CatalogNormalizer(Decimal("3000"), Decimal("200"), ROUND_1)
        dear = CatalogNormalizer(Decimal("5000"), Decimal("200"), CEIL_100)
        sellable_row2 = dict(sellable_row, marketPrice="99.99")
        assert (cheap.normalize(sellable_row, group).external_key
                == dear.normalize(sellable_row2, group).external_key)

    def test_normalize_rows_filters(self, normalizer, sellable_row, unnumbered_row, group):
        entries = normalizer.normalize_rows([sellable_row, unnumbered_row], group)
        assert [e.external_key for e in entries] == ["42346-holofoil-SVI"]


class TestBuildDescription:
    def test_contains_attributes(self, sellable_row):
        html = build_description(sellable_row, "Scarlet & Violet")
        assert "<strong>Set:</strong> Scarlet & Violet" in html
        assert "<strong>Número:</strong> 4/102" in html
        assert "<strong>HP:</strong> 120" in html

    def test_missing_attributes_dashed(self):
        html = build_description({"extNumber": "1/1"}, "Promos")
        assert "<strong>Rareza:</strong> -" in html
