from datetime import timedelta
import uuid
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auction import format_money
from core.helper import utc_now
from core.log import logger
from core.responses import (
    BadRequest,
    Forbidden,
    NotFound,
    Ok,
    Unauthorized,
    common_response,
)
from core.security import check_permissions, get_current_user
from models import get_db_sync
from models.Ticket import TicketStatus
from models.User import User, UserRole
from repository import event as eventRepo
from repository import purchase as purchaseRepo
from repository import ticket as ticketRepo
from repository import user as userRepo
from schemas.admin import (
    AdminUserUpdateRequest,
    BanUserRequest,
    DashboardResponse,
    DashboardStats,
    RevenueQuery,
    RevenueResponse,
    UserListResponse,
    UserQuery,
)
from schemas.auth import AuthorizationStatusEnum, UserResponse, user_response_from_model
from schemas.common import (
    BadRequestResponse,
    ForbiddenResponse,
    NotFoundResponse,
    UnauthorizedResponse,
)
from schemas.event import event_response_item_from_model
from schemas.purchase import (
    PurchaseListResponse,
    PurchaseQuery,
    purchase_response_item_from_model,
)
from schemas.ticket import (
    AdminTicketQuery,
    AdminTicketUpdateRequest,
    TicketListResponse,
    TicketResponseItem,
    ticket_response_item_from_model,
)

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    responses={
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
    },
)


def _admin_error(current_user: User | None, mutating: bool = False):
    auth_status = check_permissions(current_user, admin_only=True, mutating=mutating)
    if auth_status == AuthorizationStatusEnum.UNAUTHORIZED:
        return common_response(Unauthorized(message="Unauthorized"))
    if auth_status != AuthorizationStatusEnum.PASSED:
        return common_response(Forbidden())
    return None


@router.get("/dashboard", responses={"200": {"model": DashboardResponse}})
def dashboard(
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _admin_error(current_user)
    if error is not None:
        return error

    total_revenue = purchaseRepo.get_total_revenue(db=db)
    response = DashboardResponse(
        stats=DashboardStats(
            total_users=userRepo.count_users(db=db),
            total_events=eventRepo.count_events(db=db),
            total_tickets=ticketRepo.count_tickets(db=db),
            available_tickets=ticketRepo.count_tickets(
                db=db, status=TicketStatus.AVAILABLE
            ),
            sold_tickets=ticketRepo.count_tickets(db=db, status=TicketStatus.SOLD),
            total_revenue=total_revenue,
            total_revenue_display=format_money(total_revenue),
        ),
        recent_purchases=[
            purchase_response_item_from_model(purchase)
            for purchase in purchaseRepo.get_recent_purchases(db=db, limit=10)
        ],
        upcoming_events=[
            event_response_item_from_model(event)
            for event in eventRepo.get_upcoming_events(db=db, limit=5)
        ],
    )
    return common_response(Ok(data=response.model_dump()))


@router.get("/users", responses={"200": {"model": UserListResponse}})
def get_users(
    query: UserQuery = Depends(),
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _admin_error(current_user)
    if error is not None:
        return error

    data = userRepo.get_users_paginated(
        db=db,
        page=query.page,
        page_size=query.page_size,
        search=query.search,
        role=query.role,
    )
    response = UserListResponse(
        page=data["page"],
        page_size=data["page_size"],
        count=data["count"],
        page_count=data["page_count"],
        results=[user_response_from_model(user) for user in data["results"]],
    )
    return common_response(Ok(data=response.model_dump()))


@router.put(
    "/users/{user_id}",
    responses={
        "200": {"model": UserResponse},
        "400": {"model": BadRequestResponse},
        "404": {"model": NotFoundResponse},
    },
)
def update_user(
    user_id: uuid.UUID,
    request: AdminUserUpdateRequest,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _admin_error(current_user, mutating=True)
    if error is not None:
        return error

    user = userRepo.get_user_by_id(db=db, id=user_id)
    if user is None:
        return common_response(NotFound(message="User not found"))

    if request.email and request.email.lower() != user.email.lower():
        if userRepo.get_user_by_email(db=db, email=request.email):
            return common_response(BadRequest(message="Email already registered"))

    if (
        request.role == UserRole.USER
        and user.is_admin
        and userRepo.count_users(db=db, role=UserRole.ADMIN) <= 1
    ):
        return common_response(BadRequest(message="Cannot demote the last admin"))

    if request.role == UserRole.ADMIN and user.banned:
        return common_response(
            BadRequest(message="Unban the user before promoting to admin")
        )

    user = userRepo.update_user(
        db=db,
        user=user,
        name=request.name,
        email=request.email,
        phone=request.phone,
        role=request.role,
    )
    logger.info(f"Admin {current_user.email} updated user {user.id}")
    return common_response(Ok(data=user_response_from_model(user).model_dump()))


@router.delete(
    "/users/{user_id}",
    responses={
        "200": {"model": UserResponse},
        "400": {"model": BadRequestResponse},
        "404": {"model": NotFoundResponse},
    },
)
def delete_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _admin_error(current_user, mutating=True)
    if error is not None:
        return error

    user = userRepo.get_user_by_id(db=db, id=user_id)
    if user is None:
        return common_response(NotFound(message="User not found"))

    if user.id == current_user.id:
        return common_response(BadRequest(message="You cannot delete your own account"))

    if user.is_admin and userRepo.count_users(db=db, role=UserRole.ADMIN) <= 1:
        return common_response(BadRequest(message="Cannot delete the last admin"))

    if userRepo.has_marketplace_history(db=db, user=user):
        return common_response(
            BadRequest(
                message="Cannot delete a user with tickets or purchases, ban the user instead"
            )
        )

    userRepo.delete_user(db=db, user=user)
    logger.info(f"Admin {current_user.email} deleted user {user_id}")
    return common_response(Ok(data={"message": "User deleted successfully"}))


@router.patch(
    "/users/{user_id}/ban",
    responses={
        "200": {"model": UserResponse},
        "400": {"model": BadRequestResponse},
        "404": {"model": NotFoundResponse},
    },
)
def ban_user(
    user_id: uuid.UUID,
    request: BanUserRequest,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _admin_error(current_user, mutating=True)
    if error is not None:
        return error

    user = userRepo.get_user_by_id(db=db, id=user_id)
    if user is None:
        return common_response(NotFound(message="User not found"))

    if user.id == current_user.id:
        return common_response(BadRequest(message="You cannot ban yourself"))

    if user.is_admin:
        return common_response(BadRequest(message="Admins cannot be banned"))

    user = userRepo.set_banned(db=db, user=user, banned=request.banned)
    logger.info(
        f"Admin {current_user.email} {'banned' if user.banned else 'unbanned'} user {user.id}"
    )
    return common_response(Ok(data=user_response_from_model(user).model_dump()))


@router.get("/tickets", responses={"200": {"model": TicketListResponse}})
def get_tickets(
    query: AdminTicketQuery = Depends(),
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _admin_error(current_user)
    if error is not None:
        return error

    data = ticketRepo.get_tickets_per_page(
        db=db,
        page=query.page,
        page_size=query.page_size,
        status=query.status,
        search=query.search,
    )
    response = TicketListResponse(
        page=data["page"],
        page_size=data["page_size"],
        count=data["count"],
        page_count=data["page_count"],
        results=[ticket_response_item_from_model(ticket) for ticket in data["results"]],
    )
    return common_response(Ok(data=response.model_dump()))


@router.put(
    "/tickets/{ticket_id}",
    responses={
        "200": {"model": TicketResponseItem},
        "400": {"model": BadRequestResponse},
        "404": {"model": NotFoundResponse},
    },
)
def update_ticket(
    ticket_id: uuid.UUID,
    request: AdminTicketUpdateRequest,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _admin_error(current_user, mutating=True)
    if error is not None:
        return error

    ticket = ticketRepo.get_ticket_by_id(db=db, id=ticket_id)
    if ticket is None:
        return common_response(NotFound(message="Ticket not found"))

    if request.status == TicketStatus.SOLD and ticket.buyer_id is None:
        return common_response(
            BadRequest(message="A ticket without a buyer cannot be marked SOLD")
        )
    if request.status is not None and request.status != TicketStatus.SOLD:
        ticket.buyer_id = None

    ticket = ticketRepo.update_ticket(db=db, ticket=ticket, **request.model_dump())
    logger.info(f"Admin {current_user.email} updated ticket {ticket.id}")
    return common_response(
        Ok(data=ticket_response_item_from_model(ticket).model_dump())
    )


@router.delete(
    "/tickets/{ticket_id}",
    responses={"404": {"model": NotFoundResponse}},
)
def delete_ticket(
    ticket_id: uuid.UUID,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _admin_error(current_user, mutating=True)
    if error is not None:
        return error

    ticket = ticketRepo.get_ticket_by_id(db=db, id=ticket_id)
    if ticket is None:
        return common_response(NotFound(message="Ticket not found"))

    ticketRepo.purge_ticket(db=db, ticket=ticket)
    logger.info(f"Admin {current_user.email} deleted ticket {ticket_id}")
    return common_response(Ok(data={"message": "Ticket deleted successfully"}))


@router.get("/purchases", responses={"200": {"model": PurchaseListResponse}})
def get_purchases(
    query: PurchaseQuery = Depends(),
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _admin_error(current_user)
    if error is not None:
        return error

    data = purchaseRepo.get_purchases_per_page(
        db=db, page=query.page, page_size=query.page_size, status=query.status
    )
    response = PurchaseListResponse(
        page=data["page"],
        page_size=data["page_size"],
        count=data["count"],
        page_count=data["page_count"],
        results=[purchase_response_item_from_model(p) for p in data["results"]],
    )
    return common_response(Ok(data=response.model_dump()))


@router.get("/analytics/revenue", responses={"200": {"model": RevenueResponse}})
def revenue_analytics(
    query: RevenueQuery = Depends(),
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _admin_error(current_user)
    if error is not None:
        return error

    since = utc_now() - timedelta(days=query.period)
    total_revenue = purchaseRepo.get_total_revenue(db=db, since=since)
    response = RevenueResponse(
        period=query.period,
        total_revenue=total_revenue,
        total_revenue_display=format_money(total_revenue),
        transactions=purchaseRepo.count_purchases(db=db, since=since),
        revenue_by_day=purchaseRepo.get_revenue_by_day(db=db, since=since),
    )
    return common_response(Ok(data=response.model_dump()))
