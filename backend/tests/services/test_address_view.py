"""Tests for address filtering, smart-money ordering and stats."""

import pytest

from conftest import make_address
from meme_tracker.services.address_view import address_stats, filter_addresses, view


@pytest.fixture
def addresses():
    return [
        make_address("0xX", token_id="a", related=("b", "c"), id="x"),
        make_address("0xY", token_id="a", related=("b",), id="y"),
        make_address("0xZ", token_id="b", id="z"),
        make_address("0xQuiet", token_id="c", marked=False, id="q"),
    ]


def ids(records):
    return [r.id for r in records]


class TestTokenFilter:
    def test_no_selection_returns_everything_marked(self, addresses) -> None:
        assert ids(filter_addresses(addresses)) == ["x", "y", "z"]

    def test_single_token_matches_origin_or_related(self, addresses) -> None:
        assert ids(filter_addresses(addresses, ["b"])) == ["x", "y", "z"]
        assert ids(filter_addresses(addresses, ["c"])) == ["x"]

    def test_several_tokens_require_all(self, addresses) -> None:
        assert ids(filter_addresses(addresses, ["a", "b"])) == ["x", "y"]
        assert ids(filter_addresses(addresses, ["a", "b", "c"])) == ["x"]

    def test_unknown_token_matches_nothing(self, addresses) -> None:
        assert filter_addresses(addresses, ["nope"]) == []


class TestSearchAndMark:
    def test_search_is_case_insensitive_substring(self, addresses) -> None:
        assert ids(filter_addresses(addresses, search_text="  0XX ")) == ["x"]
        assert ids(filter_addresses(addresses, search_text="QUIET", promising="unmarked")) == ["q"]

    def test_unmarked_only(self, addresses) -> None:
        assert ids(filter_addresses(addresses, promising="unmarked")) == ["q"]

    def test_no_mark_filter(self, addresses) -> None:
        assert set(ids(filter_addresses(addresses, promising=None))) == {"x", "y", "z", "q"}

    def test_bad_mark_value(self, addresses) -> None:
        with pytest.raises(ValueError):
            filter_addresses(addresses, promising="maybe")


class TestOrdering:
    def test_most_related_first(self) -> None:
        records = [
            make_address("0x0", related=(), id="zero"),
            make_address("0x2", related=("b", "c"), id="two"),
            make_address("0x1", related=("b",), id="one"),
        ]
        assert ids(filter_addresses(records)) == ["two", "one", "zero"]

    def test_ties_keep_incoming_order(self) -> None:
        records = [make_address(f"0x{i}", id=str(i)) for i in range(5)]
        assert ids(filter_addresses(records)) == ["0", "1", "2", "3", "4"]


class TestView:
    def test_pages(self) -> None:
        records = [make_address(f"0x{i}", id=str(i)) for i in range(7)]

        assert ids(view(records, page_size=3)) == ["0", "1", "2"]
        assert ids(view(records, page_size=3, page_offset=6)) == ["6"]
        assert view(records, page_size=3, page_offset=10) == []


class TestStats:
    def test_counts(self, addresses) -> None:
        stats = address_stats(addresses)
        assert stats.total == 4
        assert stats.marked == 3
        assert stats.multi_token == 2

    def test_empty(self) -> None:
        stats = address_stats([])
        assert (stats.total, stats.marked, stats.multi_token) == (0, 0, 0)
