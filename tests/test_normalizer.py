"""Tests for SnapshotNormalizer: encodings, malformed input, sums."""

from decimal import Decimal

from orderbook_viewer.datafeed.normalizer import (
    EntryShape,
    SnapshotNormalizer,
    classify_entry,
    normalize,
    parse_decimal,
)
from orderbook_viewer.types import Order, OrderBookSnapshot


class TestClassifyEntry:
    def test_pair(self):
        assert classify_entry(["100", "1"]) is EntryShape.PAIR
        assert classify_entry((100, 1)) is EntryShape.PAIR

    def test_record(self):
        assert classify_entry({"price": "100", "size": "1"}) is EntryShape.RECORD

    def test_invalid_shapes(self):
        assert classify_entry(["100"]) is EntryShape.INVALID
        assert classify_entry(["100", "1", "x"]) is EntryShape.INVALID
        assert classify_entry({"price": "100"}) is EntryShape.INVALID
        assert classify_entry("100,1") is EntryShape.INVALID
        assert classify_entry(None) is EntryShape.INVALID
        assert classify_entry(42) is EntryShape.INVALID


class TestParseDecimal:
    def test_strings_and_numbers(self):
        assert parse_decimal("100.5") == Decimal("100.5")
        assert parse_decimal(7) == Decimal(7)
        assert parse_decimal(Decimal("2.25")) == Decimal("2.25")

    def test_float_keeps_short_repr(self):
        assert parse_decimal(0.1) == Decimal("0.1")

    def test_rejects_garbage(self):
        assert parse_decimal("abc") is None
        assert parse_decimal("") is None
        assert parse_decimal(None) is None
        assert parse_decimal(True) is None
        assert parse_decimal([1]) is None

    def test_rejects_non_finite(self):
        assert parse_decimal("NaN") is None
        assert parse_decimal("Infinity") is None
        assert parse_decimal(float("inf")) is None

    def test_rejects_out_of_range(self):
        assert parse_decimal("1e1000000") is None
        assert parse_decimal("-1e400") is None
        assert parse_decimal("1e308") == Decimal("1e308")
        assert parse_decimal("1e-400") == Decimal("1e-400")


class TestNormalize:
    def test_pair_encoding(self):
        snap = SnapshotNormalizer().normalize({
            "bids": [["100", "1"], ["99", "2"]],
            "asks": [["101", "1.5"]],
            "bidSum": "3",
            "askSum": "1.5",
        })
        assert snap.bids == (Order(Decimal("100"), Decimal("1")), Order(Decimal("99"), Decimal("2")))
        assert snap.asks == (Order(Decimal("101"), Decimal("1.5")),)
        assert snap.bid_sum == "3"
        assert snap.ask_sum == "1.5"

    def test_record_encoding(self):
        snap = SnapshotNormalizer().normalize({
            "bids": [{"price": 100, "size": 1}],
            "asks": [{"price": "101", "size": "2"}],
        })
        assert snap.bids == (Order(Decimal(100), Decimal(1)),)
        assert snap.asks == (Order(Decimal(101), Decimal(2)),)

    def test_mixed_encodings_in_one_side(self):
        snap = SnapshotNormalizer().normalize({
            "bids": [["100", "1"], {"price": "99", "size": "2"}],
        })
        assert [o.price for o in snap.bids] == [Decimal(100), Decimal(99)]

    def test_one_bad_ask_among_five(self):
        normalizer = SnapshotNormalizer()
        snap = normalizer.normalize({
            "bids": [],
            "asks": [
                ["101", "1"],
                ["102", "1"],
                ["oops", "1"],
                ["103", "1"],
                ["104", "1"],
            ],
        })
        assert len(snap.asks) == 4
        assert [o.price for o in snap.asks] == [Decimal(p) for p in ("101", "102", "103", "104")]
        assert normalizer.skipped_entries == 1

    def test_huge_size_skips_only_that_entry(self):
        normalizer = SnapshotNormalizer()
        snap = normalizer.normalize({
            "bids": [["100", "1"]],
            "asks": [["101", "1"], ["102", "1e1000000"], {"price": "1e999", "size": "1"}],
        })
        assert snap.bids == (Order(Decimal(100), Decimal(1)),)
        assert snap.asks == (Order(Decimal(101), Decimal(1)),)
        assert normalizer.skipped_entries == 2

    def test_skips_invalid_values(self):
        snap = SnapshotNormalizer().normalize({
            "bids": [
                ["0", "1"],        # price must be positive
                ["-1", "1"],
                ["100", "-2"],     # size must be non-negative
                ["100", "NaN"],
                [None, "1"],
                "100:1",
                ["98", "0"],       # zero size is fine
            ],
        })
        assert snap.bids == (Order(Decimal(98), Decimal(0)),)

    def test_side_not_a_sequence(self):
        normalizer = SnapshotNormalizer()
        snap = normalizer.normalize({
            "bids": {"price": "100", "size": "1"},
            "asks": "nope",
        })
        assert snap.bids == ()
        assert snap.asks == ()
        assert normalizer.malformed_sides == 2

    def test_absent_sides_are_empty(self):
        normalizer = SnapshotNormalizer()
        snap = normalizer.normalize({})
        assert snap == OrderBookSnapshot()
        assert normalizer.malformed_sides == 0

    def test_sums_default_and_pass_through(self):
        assert normalize({}).bid_sum == "0"
        assert normalize({"bidSum": None}).bid_sum == "0"
        assert normalize({"askSum": "12.3400"}).ask_sum == "12.3400"
        assert normalize({"askSum": 5}).ask_sum == "5"

    def test_payload_not_a_mapping(self):
        normalizer = SnapshotNormalizer()
        for raw in (None, [], "text", 3):
            assert normalizer.normalize(raw) == OrderBookSnapshot()
        assert normalizer.snapshots == 4
        assert normalizer.malformed_sides == 8

    def test_result_is_immutable_copy(self):
        bids = [["100", "1"]]
        snap = normalize({"bids": bids})
        bids.append(["99", "1"])
        assert len(snap.bids) == 1
        assert isinstance(snap.bids, tuple)
