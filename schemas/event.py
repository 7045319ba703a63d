from datetime import datetime
from typing import List, Optional

from fastapi import Query
from pydantic import BaseModel, Field

from core.helper import to_iso
from models.Event import Event


class EventQuery(BaseModel):
    page: int = Query(1, ge=1, description="Page Number")
    page_size: int = Query(12, ge=1, le=100, description="Page Size")
    category: Optional[str] = Query(None, description="Filter by category")
    search: Optional[str] = Query(None, description="Search title, venue or description")
    start_date: Optional[datetime] = Query(None, description="Events on or after")
    end_date: Optional[datetime] = Query(None, description="Events on or before")


class EventCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    venue: str = Field(min_length=1, max_length=200)
    date: datetime
    image: Optional[str] = None
    category: str = Field(min_length=1, max_length=100)
    capacity: int = Field(gt=0)


class EventUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    venue: Optional[str] = Field(default=None, min_length=1, max_length=200)
    date: Optional[datetime] = None
    image: Optional[str] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    capacity: Optional[int] = Field(default=None, gt=0)


class EventResponseItem(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    venue: str
    date: str
    image: Optional[str] = None
    category: str
    capacity: int
    available_tickets: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class EventListResponse(BaseModel):
    page: int
    page_size: int
    count: int
    page_count: int
    results: List[EventResponseItem]


class EventDetailResponse(EventResponseItem):
    tickets: List[dict] = []


def event_response_item_from_model(
    event: Event, available_tickets: Optional[int] = None
) -> EventResponseItem:
    return EventResponseItem(
        id=str(event.id),
        title=event.title,
        description=event.description,
        venue=event.venue,
        date=to_iso(event.date),
        image=event.image,
        category=event.category,
        capacity=event.capacity,
        available_tickets=available_tickets,
        created_at=to_iso(event.created_at),
        updated_at=to_iso(event.updated_at),
    )
