from decimal import Decimal

import pytest

from printhub.db.enums import ColorMode, DuplexMode
from printhub.services.pricing_engine import (
    DEFAULT_RATE_CARD,
    PriceBreakdown,
    RateCard,
    estimate,
    positive_int,
)


def test_monochrome_single_sided_a4():
    result = estimate(10, 2, "Black & White", "Single-sided", "A4", DEFAULT_RATE_CARD)

    assert result.price_per_page == Decimal("1.00")
    assert result.subtotal == Decimal("20.00")
    assert result.tax_amount == Decimal("3.60")
    assert result.total == Decimal("23.60")
    assert result.page_count == 10
    assert result.copies == 2


def test_color_double_sided_a3():
    # (2.0 + 0.5) * 1.5 = 3.75 per page
    result = estimate(4, 1, ColorMode.COLOR, DuplexMode.DOUBLE, "A3", DEFAULT_RATE_CARD)

    assert result.price_per_page == Decimal("3.75")
    assert result.subtotal == Decimal("15.00")
    assert result.tax_amount == Decimal("2.70")
    assert result.total == Decimal("17.70")
    assert result.duplex_cost == Decimal("0.5")


@pytest.mark.parametrize("pages, copies", [(0, 2), (10, 0), (None, 1), (5, None), (-3, 2), (2.5, 1)])
def test_missing_or_non_positive_inputs_price_at_zero(pages, copies):
    result = estimate(pages, copies, "Color", "Double-sided", "A4", DEFAULT_RATE_CARD)

    assert result == PriceBreakdown.zero()
    assert result.total == 0


def test_unknown_paper_size_prices_like_a4():
    unknown = estimate(3, 1, "Color", "Single-sided", "Tabloid", DEFAULT_RATE_CARD)
    a4 = estimate(3, 1, "Color", "Single-sided", "A4", DEFAULT_RATE_CARD)

    assert unknown.total == a4.total
    assert unknown.paper_multiplier == Decimal("1")


def test_paper_size_lookup_is_case_insensitive():
    assert estimate(1, 1, "bw", "single", "legal", DEFAULT_RATE_CARD).price_per_page == Decimal("1.20")


def test_unrecognised_modes_fall_back_to_monochrome_single():
    odd = estimate(2, 1, "sepia", "triple", "A4", DEFAULT_RATE_CARD)
    plain = estimate(2, 1, "Black & White", "Single-sided", "A4", DEFAULT_RATE_CARD)

    assert odd == plain


def test_total_never_below_subtotal():
    for pages in (1, 7, 33):
        for copies in (1, 4):
            result = estimate(pages, copies, "Color", "Double-sided", "Legal", DEFAULT_RATE_CARD)
            assert result.total >= result.subtotal


def test_estimate_is_repeatable():
    first = estimate(13, 3, "Color", "Double-sided", "A3", DEFAULT_RATE_CARD)
    second = estimate(13, 3, "Color", "Double-sided", "A3", DEFAULT_RATE_CARD)

    assert first == second
    assert first.to_dict() == second.to_dict()


def test_values_are_rounded_independently():
    card = RateCard(
        black_white=Decimal("0.025"),
        color=Decimal("1"),
        double_sided=Decimal("0"),
        paper_size_multipliers={},
        tax_percentage=Decimal("20"),
    )
    result = estimate(1, 1, "Black & White", "Single-sided", "A4", card)

    # 0.025 -> 0.03, 0.005 -> 0.01, 0.030 -> 0.03
    assert result.subtotal == Decimal("0.03")
    assert result.tax_amount == Decimal("0.01")
    assert result.total == Decimal("0.03")
    assert result.total != result.subtotal + result.tax_amount


def test_to_dict_shape():
    payload = estimate(10, 2, "Black & White", "Single-sided", "A4", DEFAULT_RATE_CARD).to_dict()

    assert payload["total"] == 23.6
    assert payload["breakdown"]["pages"] == 10
    assert payload["breakdown"]["tax_percentage"] == 18.0


@pytest.mark.parametrize("value, expected", [
    (3, 3), ("3", 3), (" 4 ", 4), (3.0, 3), (0, None), (-1, None),
    (True, None), (2.5, None), ("abc", None), (None, None),
])
def test_positive_int(value, expected):
    assert positive_int(value) == expected
