import pytest

from printhub.services.pricing_engine import MAX_PAGE_NUMBER, count_pages, parse_page_selection


@pytest.mark.parametrize("expression, expected", [
    ("1-3,5", [1, 2, 3, 5]),
    ("10", list(range(1, 11))),
    ("all", []),
    ("ALL", []),
    ("", []),
    ("   ", []),
    ("3-1", []),
    (" 1 - 3 , 5 ", [1, 2, 3, 5]),
    ("2,2,3", [2, 3]),
    ("5-7,6-8", [5, 6, 7, 8]),
    ("abc,4", [4]),
    ("1-2-3,9", [9]),
    ("5-,7", [7]),
    ("0", []),
    (None, []),
    (4, [1, 2, 3, 4]),
])
def test_parse_page_selection(expression, expected):
    assert parse_page_selection(expression) == expected


def test_huge_ranges_are_ignored():
    assert parse_page_selection(f"1-{MAX_PAGE_NUMBER + 1}") == []
    assert parse_page_selection(str(MAX_PAGE_NUMBER + 1)) == []


def test_count_pages():
    assert count_pages("1-5,10") == 6
    assert count_pages("all") == 0
    assert count_pages(["1"]) == 0
