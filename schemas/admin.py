from typing import List, Optional

from fastapi import Query
from pydantic import BaseModel, EmailStr, Field

from models.User import UserRole
from schemas.auth import UserResponse
from schemas.event import EventResponseItem
from schemas.purchase import PurchaseResponseItem


class UserQuery(BaseModel):
    page: int = Query(1, ge=1, description="Page Number")
    page_size: int = Query(20, ge=1, le=100, description="Page Size")
    search: Optional[str] = Query(None, description="Search name or email")
    role: Optional[UserRole] = Query(None, description="USER or ADMIN")


class RevenueQuery(BaseModel):
    period: int = Query(30, ge=1, le=365, description="Number of days")


class AdminUserUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    role: Optional[UserRole] = None


class BanUserRequest(BaseModel):
    banned: bool = True


class UserListResponse(BaseModel):
    page: int
    page_size: int
    count: int
    page_count: int
    results: List[UserResponse]


class DashboardStats(BaseModel):
    total_users: int
    total_events: int
    total_tickets: int
    available_tickets: int
    sold_tickets: int
    total_revenue: int
    total_revenue_display: str


class DashboardResponse(BaseModel):
    stats: DashboardStats
    recent_purchases: List[PurchaseResponseItem]
    upcoming_events: List[EventResponseItem]


class RevenuePerDay(BaseModel):
    date: str
    revenue: int
    transactions: int


class RevenueResponse(BaseModel):
    period: int
    total_revenue: int
    total_revenue_display: str
    transactions: int
    revenue_by_day: List[RevenuePerDay]
