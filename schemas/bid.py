from typing import List, Optional

from pydantic import BaseModel, Field

from core.auction import MAX_AMOUNT, format_money
from core.helper import to_iso
from models.Bid import Bid
from schemas.ticket import TicketResponseItem, ticket_response_item_from_model


class PlaceBidRequest(BaseModel):
    amount: int = Field(gt=0, le=MAX_AMOUNT, description="Bid amount in paise")


class BidResponseItem(BaseModel):
    id: str
    ticket_id: str
    bidder_id: str
    bidder_name: Optional[str] = None
    amount: int
    amount_display: str
    status: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class MyBidResponseItem(BidResponseItem):
    ticket: TicketResponseItem


class BidListResponse(BaseModel):
    results: List[BidResponseItem]
    minimum_bid: Optional[int] = None


class AcceptBidResponse(BaseModel):
    message: str
    bid: BidResponseItem
    purchase_id: str


def bid_response_item_from_model(bid: Bid) -> BidResponseItem:
    return BidResponseItem(
        id=str(bid.id),
        ticket_id=str(bid.ticket_id),
        bidder_id=str(bid.bidder_id),
        bidder_name=bid.bidder.name if bid.bidder else None,
        amount=bid.amount,
        amount_display=format_money(bid.amount),
        status=bid.status,
        created_at=to_iso(bid.created_at),
        updated_at=to_iso(bid.updated_at),
    )


def my_bid_response_item_from_model(bid: Bid) -> MyBidResponseItem:
    return MyBidResponseItem(
        **bid_response_item_from_model(bid).model_dump(),
        ticket=ticket_response_item_from_model(bid.ticket),
    )
