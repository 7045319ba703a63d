from datetime import datetime, timedelta, timezone
from unittest import TestCase

from core.auction import (
    format_money,
    is_auction_ended,
    minimum_bid,
    validate_listing_window,
)
from models.Ticket import ListingType


class TestMinimumBid(TestCase):
    def test_first_bid_only_needs_the_floor(self):
        self.assertEqual(minimum_bid(highest_bid=None), 100)
        self.assertEqual(minimum_bid(highest_bid=None, floor=1), 1)

    def test_increment_is_rounded_up(self):
        self.assertEqual(minimum_bid(highest_bid=10001), 11002)
        self.assertEqual(minimum_bid(highest_bid=20000), 22000)

    def test_floor_applies(self):
        self.assertEqual(minimum_bid(highest_bid=50), 100)
        self.assertEqual(minimum_bid(highest_bid=50, floor=1), 55)

    def test_custom_increment(self):
        self.assertEqual(minimum_bid(highest_bid=1000, increment_percent=5), 1050)


class TestAuctionWindow(TestCase):
    def setUp(self):
        self.now = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

    def test_is_auction_ended(self):
        self.assertFalse(is_auction_ended(None, self.now))
        self.assertFalse(is_auction_ended(self.now + timedelta(seconds=1), self.now))
        self.assertTrue(is_auction_ended(self.now - timedelta(seconds=1), self.now))

    def test_naive_end_time_is_treated_as_utc(self):
        naive = datetime(2026, 10, 18, 11, 0)
        self.assertTrue(is_auction_ended(naive, self.now))

    def test_validate_listing_window(self):
        future = self.now + timedelta(days=1)
        past = self.now - timedelta(days=1)

        self.assertIsNone(validate_listing_window(ListingType.AUCTION, future, self.now))
        self.assertIsNone(validate_listing_window(ListingType.DIRECT_SALE, None, self.now))
        self.assertIsNotNone(validate_listing_window(ListingType.AUCTION, None, self.now))
        self.assertIsNotNone(validate_listing_window(ListingType.AUCTION, past, self.now))
        self.assertIsNotNone(
            validate_listing_window(ListingType.DIRECT_SALE, future, self.now)
        )


class TestFormatMoney(TestCase):
    def test_format_money(self):
        self.assertEqual(format_money(0), "₹0.00")
        self.assertEqual(format_money(5), "₹0.05")
        self.assertEqual(format_money(250000), "₹2,500.00")
        self.assertEqual(format_money(123456789), "₹1,234,567.89")
