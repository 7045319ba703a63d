from datetime import datetime
from typing import List, Optional
import uuid

from fastapi import Query
from pydantic import BaseModel, Field

from core.auction import MAX_AMOUNT, format_money
from core.helper import to_iso
from models.Ticket import ListingType, Ticket, TicketStatus


class TicketQuery(BaseModel):
    page: int = Query(1, ge=1, description="Page Number")
    page_size: int = Query(12, ge=1, le=100, description="Page Size")
    event_id: Optional[uuid.UUID] = Query(None, description="Filter by event")
    listing_type: Optional[ListingType] = Query(None, description="DIRECT_SALE or AUCTION")
    min_price: Optional[int] = Query(None, ge=0, description="Minimum price in paise")
    max_price: Optional[int] = Query(None, ge=0, description="Maximum price in paise")
    search: Optional[str] = Query(None, description="Search event title or venue")


class AdminTicketQuery(BaseModel):
    page: int = Query(1, ge=1, description="Page Number")
    page_size: int = Query(20, ge=1, le=100, description="Page Size")
    status: Optional[TicketStatus] = Query(None, description="Filter by status")
    search: Optional[str] = Query(None, description="Search event title or seller")


class TicketCreateRequest(BaseModel):
    event_id: uuid.UUID
    price: int = Field(gt=0, le=MAX_AMOUNT, description="Price in paise")
    section: Optional[str] = Field(default=None, max_length=50)
    row: Optional[str] = Field(default=None, max_length=50)
    seat: Optional[str] = Field(default=None, max_length=50)
    listing_type: ListingType = ListingType.DIRECT_SALE
    end_time: Optional[datetime] = None


class TicketUpdateRequest(BaseModel):
    price: Optional[int] = Field(default=None, gt=0, le=MAX_AMOUNT)
    section: Optional[str] = Field(default=None, max_length=50)
    row: Optional[str] = Field(default=None, max_length=50)
    seat: Optional[str] = Field(default=None, max_length=50)


class AdminTicketUpdateRequest(BaseModel):
    price: Optional[int] = Field(default=None, gt=0, le=MAX_AMOUNT)
    status: Optional[TicketStatus] = None
    listing_type: Optional[ListingType] = None


class PurchaseRequest(BaseModel):
    card_number: str = Field(min_length=1)
    expiry_date: str = Field(min_length=1)
    cvv: str = Field(min_length=1)


class ResellRequest(BaseModel):
    price: int = Field(gt=0, le=MAX_AMOUNT)
    listing_type: ListingType = ListingType.DIRECT_SALE
    end_time: Optional[datetime] = None


class TicketEventSummary(BaseModel):
    id: str
    title: str
    venue: str
    date: str
    category: str
    image: Optional[str] = None


class TicketUserSummary(BaseModel):
    id: str
    name: str


class TicketResponseItem(BaseModel):
    id: str
    event_id: str
    seller_id: str
    buyer_id: Optional[str] = None
    price: int
    price_display: str
    section: Optional[str] = None
    row: Optional[str] = None
    seat: Optional[str] = None
    status: str
    listing_type: str
    end_time: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    event: Optional[TicketEventSummary] = None
    seller: Optional[TicketUserSummary] = None
    highest_bid: Optional[int] = None
    bid_count: Optional[int] = None


class TicketListResponse(BaseModel):
    page: int
    page_size: int
    count: int
    page_count: int
    results: List[TicketResponseItem]


class MyTicketResponseItem(TicketResponseItem):
    qr_code: str
    purchase_amount: Optional[int] = None
    purchased_at: Optional[str] = None


class PurchaseSuccessResponse(BaseModel):
    message: str
    ticket: TicketResponseItem
    purchase_id: str
    transaction_id: str


def ticket_response_item_from_model(
    ticket: Ticket,
    with_event: bool = True,
    highest_bid: Optional[int] = None,
    bid_count: Optional[int] = None,
) -> TicketResponseItem:
    event = None
    if with_event and ticket.event is not None:
        event = TicketEventSummary(
            id=str(ticket.event.id),
            title=ticket.event.title,
            venue=ticket.event.venue,
            date=to_iso(ticket.event.date),
            category=ticket.event.category,
            image=ticket.event.image,
        )
    seller = None
    if ticket.seller is not None:
        seller = TicketUserSummary(id=str(ticket.seller.id), name=ticket.seller.name)

    return TicketResponseItem(
        id=str(ticket.id),
        event_id=str(ticket.event_id),
        seller_id=str(ticket.seller_id),
        buyer_id=str(ticket.buyer_id) if ticket.buyer_id else None,
        price=ticket.price,
        price_display=format_money(ticket.price),
        section=ticket.section,
        row=ticket.row,
        seat=ticket.seat,
        status=ticket.status,
        listing_type=ticket.listing_type,
        end_time=to_iso(ticket.end_time),
        created_at=to_iso(ticket.created_at),
        updated_at=to_iso(ticket.updated_at),
        event=event,
        seller=seller,
        highest_bid=highest_bid,
        bid_count=bid_count,
    )
