from typing import List, Optional

from fastapi import Query
from pydantic import BaseModel

from core.auction import format_money
from core.helper import to_iso
from models.Purchase import Purchase, PurchaseStatus


class PurchaseQuery(BaseModel):
    page: int = Query(1, ge=1, description="Page Number")
    page_size: int = Query(20, ge=1, le=100, description="Page Size")
    status: Optional[PurchaseStatus] = Query(None, description="COMPLETED or REFUNDED")


class PurchaseResponseItem(BaseModel):
    id: str
    ticket_id: str
    buyer_id: str
    buyer_name: Optional[str] = None
    buyer_email: Optional[str] = None
    event_title: Optional[str] = None
    amount: int
    amount_display: str
    status: str
    transaction_id: Optional[str] = None
    created_at: Optional[str] = None


class PurchaseListResponse(BaseModel):
    page: int
    page_size: int
    count: int
    page_count: int
    results: List[PurchaseResponseItem]


def purchase_response_item_from_model(purchase: Purchase) -> PurchaseResponseItem:
    event = purchase.ticket.event if purchase.ticket else None
    return PurchaseResponseItem(
        id=str(purchase.id),
        ticket_id=str(purchase.ticket_id),
        buyer_id=str(purchase.buyer_id),
        buyer_name=purchase.buyer.name if purchase.buyer else None,
        buyer_email=purchase.buyer.email if purchase.buyer else None,
        event_title=event.title if event else None,
        amount=purchase.amount,
        amount_display=format_money(purchase.amount),
        status=purchase.status,
        transaction_id=purchase.transaction_id,
        created_at=to_iso(purchase.created_at),
    )
