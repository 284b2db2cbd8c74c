"""
Pricing engine.

Pure functions turning print options plus a rate card into a price breakdown,
and the page selection parser used to derive page counts. No database access;
the same code backs the live quote endpoint and checkout verification.
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Union

from printhub.db.enums import ColorMode, DuplexMode, PaperSize

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")

# guard against "1-999999999" style input
MAX_PAGE_NUMBER = 100_000


@dataclass(frozen=True)
class RateCard:
    """
    Rates the engine prices against. Built from the current RateTable row,
    or DEFAULT_RATE_CARD when bootstrapping.
    """
    black_white: Decimal
    color: Decimal
    double_sided: Decimal
    paper_size_multipliers: Dict[str, Decimal] = field(default_factory=dict)
    tax_percentage: Decimal = ZERO

    def multiplier(self, paper_size: Union[str, PaperSize, None]) -> Decimal:
        '''
        Multiplier for a paper size; unlisted or unknown sizes price at 1.0
        '''
        if isinstance(paper_size, PaperSize):
            paper_size = paper_size.value
        if not isinstance(paper_size, str):
            return ONE

        key = paper_size.strip()
        if key in self.paper_size_multipliers:
            return _to_decimal(self.paper_size_multipliers[key], ONE)
        for size, multiplier in self.paper_size_multipliers.items():
            if size.lower() == key.lower():
                return _to_decimal(multiplier, ONE)
        return ONE


DEFAULT_PAPER_SIZE_MULTIPLIERS = {
    PaperSize.A4.value: Decimal("1.0"),
    PaperSize.A3.value: Decimal("1.5"),
    PaperSize.LETTER.value: Decimal("1.0"),
    PaperSize.LEGAL.value: Decimal("1.2"),
}

DEFAULT_RATE_CARD = RateCard(
    black_white=Decimal("1.0"),
    color=Decimal("2.0"),
    double_sided=Decimal("0.5"),
    paper_size_multipliers=dict(DEFAULT_PAPER_SIZE_MULTIPLIERS),
    tax_percentage=Decimal("18.0"),
)


@dataclass(frozen=True)
class PriceBreakdown:
    """
    Result of estimate(). subtotal / tax_amount / total / price_per_page are
    rounded to cents; the remaining fields describe how they were derived.
    """
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    price_per_page: Decimal
    page_count: int = 0
    copies: int = 0
    paper_multiplier: Decimal = ONE
    duplex_cost: Decimal = ZERO
    tax_percentage: Decimal = ZERO

    @classmethod
    def zero(cls) -> "PriceBreakdown":
        return cls(subtotal=ZERO, tax_amount=ZERO, total=ZERO, price_per_page=ZERO)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subtotal": float(self.subtotal),
            "tax_amount": float(self.tax_amount),
            "total": float(self.total),
            "price_per_page": float(self.price_per_page),
            "breakdown": {
                "pages": self.page_count,
                "copies": self.copies,
                "paper_multiplier": float(self.paper_multiplier),
                "duplex_cost": float(self.duplex_cost),
                "tax_percentage": float(self.tax_percentage),
            },
        }


# ======================================================
# 🔧 Input coercion
# ======================================================

def _to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


def positive_int(value: Any) -> Optional[int]:
    '''
    Return value as a positive int, or None when missing / not a whole
    positive number. "3", 3 and 3.0 are accepted; True, 2.5 and "abc" are not.
    '''
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float):
        if value.is_integer() and value > 0:
            return int(value)
        return None
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            number = int(text)
            return number if number > 0 else None
    return None


_COLOR_ALIASES = {
    "color": ColorMode.COLOR,
    "colour": ColorMode.COLOR,
    "full_color": ColorMode.COLOR,
    "black & white": ColorMode.BLACK_WHITE,
    "black_white": ColorMode.BLACK_WHITE,
    "blackwhite": ColorMode.BLACK_WHITE,
    "bw": ColorMode.BLACK_WHITE,
    "mono": ColorMode.BLACK_WHITE,
    "monochrome": ColorMode.BLACK_WHITE,
}

_DUPLEX_ALIASES = {
    "double-sided": DuplexMode.DOUBLE,
    "double": DuplexMode.DOUBLE,
    "duplex": DuplexMode.DOUBLE,
    "single-sided": DuplexMode.SINGLE,
    "single": DuplexMode.SINGLE,
    "simplex": DuplexMode.SINGLE,
}


def resolve_color_mode(value: Any) -> ColorMode:
    '''Anything that is not recognisably color prices as black & white'''
    if isinstance(value, ColorMode):
        return value
    if isinstance(value, str):
        return _COLOR_ALIASES.get(value.strip().lower(), ColorMode.BLACK_WHITE)
    return ColorMode.BLACK_WHITE


def resolve_duplex_mode(value: Any) -> DuplexMode:
    if isinstance(value, DuplexMode):
        return value
    if isinstance(value, str):
        return _DUPLEX_ALIASES.get(value.strip().lower(), DuplexMode.SINGLE)
    return DuplexMode.SINGLE


def _round_money(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


# ======================================================
# 💰 Estimate
# ======================================================

def estimate(
    page_count: Any,
    copies: Any,
    color_mode: Any,
    duplex_mode: Any,
    paper_size: Any,
    rate_card: RateCard,
) -> PriceBreakdown:
    """
    Price a print job.

    Missing or non-positive page_count / copies give a zero breakdown instead
    of an error, so half-filled forms can still be previewed.

    subtotal, tax_amount, total and price_per_page are each rounded half-up
    from their own exact value, so total can differ by one cent from
    subtotal + tax_amount.

    :param page_count: number of pages to print
    :param copies: number of copies
    :param color_mode: ColorMode or its label ("Color", "Black & White", "monochrome" ...)
    :param duplex_mode: DuplexMode or its label ("Double-sided", "single" ...)
    :param paper_size: paper size name; unknown sizes use multiplier 1.0
    :param rate_card: rates to price against
    :rtype: PriceBreakdown
    """
    pages = positive_int(page_count)
    count = positive_int(copies)
    if pages is None or count is None:
        return PriceBreakdown.zero()

    # 1️⃣ base rate
    if resolve_color_mode(color_mode) == ColorMode.COLOR:
        base_price_per_page = rate_card.color
    else:
        base_price_per_page = rate_card.black_white

    # 2️⃣ duplex surcharge
    duplex_cost = rate_card.double_sided if resolve_duplex_mode(duplex_mode) == DuplexMode.DOUBLE else ZERO

    # 3️⃣ paper size
    paper_multiplier = rate_card.multiplier(paper_size)
    price_per_page = (base_price_per_page + duplex_cost) * paper_multiplier

    # 4️⃣ subtotal, tax, total (unrounded)
    subtotal = price_per_page * pages * count
    tax_amount = subtotal * rate_card.tax_percentage / HUNDRED
    total = subtotal + tax_amount

    # 5️⃣ round each value independently
    return PriceBreakdown(
        subtotal=_round_money(subtotal),
        tax_amount=_round_money(tax_amount),
        total=_round_money(total),
        price_per_page=_round_money(price_per_page),
        page_count=pages,
        copies=count,
        paper_multiplier=paper_multiplier,
        duplex_cost=duplex_cost,
        tax_percentage=rate_card.tax_percentage,
    )


# ======================================================
# 📄 Page selection
# ======================================================

def _page_number(token: str) -> Optional[int]:
    token = token.strip()
    if not token.isdigit():
        return None
    number = int(token)
    if number < 1 or number > MAX_PAGE_NUMBER:
        return None
    return number


def parse_page_selection(expression: Any) -> List[int]:
    """
    Parse a page selection such as "1-5,10,15-20" into sorted unique pages.

    - "all" or an empty string selects nothing; the caller falls back to the
      document's own page count
    - a bare number N selects pages 1..N
    - otherwise comma separated numbers and start-end ranges, unioned
    - malformed tokens and reversed ranges are skipped silently

    :param expression: the selection typed by the user
    :rtype: List[int]
    """
    if expression is None:
        return []
    if isinstance(expression, int) and not isinstance(expression, bool):
        expression = str(expression)
    if not isinstance(expression, str):
        return []

    text = expression.strip().lower()
    if text in ("", "all"):
        return []

    if "," not in text and "-" not in text:
        quantity = _page_number(text)
        return list(range(1, quantity + 1)) if quantity else []

    pages = set()
    for token in text.split(","):
        token = token.strip()
        if "-" in token:
            bounds = token.split("-")
            if len(bounds) != 2:
                continue
            start, end = _page_number(bounds[0]), _page_number(bounds[1])
            if start is None or end is None:
                continue
            pages.update(range(start, end + 1))  # empty when reversed
        else:
            number = _page_number(token)
            if number is not None:
                pages.add(number)
    return sorted(pages)


def count_pages(expression: Any) -> int:
    return len(parse_page_selection(expression))
