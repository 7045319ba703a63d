"""Bidding and listing rules.

All amounts are integer minor units (paise). Percent math is done on
integers so the minimum next bid is exact.
"""

from datetime import datetime
from typing import Optional

from core.helper import as_utc
from models.Ticket import ListingType
from settings import MIN_BID_AMOUNT, MIN_BID_INCREMENT_PERCENT

# money columns are 32-bit integers
MAX_AMOUNT = 2_000_000_000


def minimum_bid(
    highest_bid: Optional[int],
    increment_percent: int = MIN_BID_INCREMENT_PERCENT,
    floor: int = MIN_BID_AMOUNT,
) -> int:
    """Lowest amount the next bid on an auction may carry.

    With no bid yet only the floor applies, every following bid has to beat
    the highest bid ever placed by ``increment_percent``.
    """
    if highest_bid is None or highest_bid <= 0:
        return floor
    # ceil(highest * (100 + pct) / 100) without floats
    raised = -(-highest_bid * (100 + increment_percent) // 100)
    return max(floor, raised)


def is_auction_ended(end_time: Optional[datetime], now: datetime) -> bool:
    if end_time is None:
        return False
    return now > as_utc(end_time)


def validate_listing_window(
    listing_type: str, end_time: Optional[datetime], now: datetime
) -> Optional[str]:
    """Return an error message when the listing type and end time disagree."""
    if listing_type == ListingType.AUCTION:
        if end_time is None:
            return "Auction listings require an end time"
        if as_utc(end_time) <= now:
            return "Auction end time must be in the future"
    elif end_time is not None:
        return "Only auction listings can have an end time"
    return None


def format_money(amount: int) -> str:
    rupees, paise = divmod(amount, 100)
    return f"₹{rupees:,}.{paise:02d}"
