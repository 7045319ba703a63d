import traceback
import uuid
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auction import format_money, minimum_bid, validate_listing_window
from core.email import (
    notify,
    send_purchase_confirmation_email,
    send_sale_notification_email,
)
from core.helper import format_local, generate_ticket_qr_payload, to_iso, utc_now
from core.log import logger
from core.payment_gateway import PaymentGateway
from core.responses import (
    BadRequest,
    Conflict,
    Created,
    Forbidden,
    InternalServerError,
    NotFound,
    Ok,
    PaymentRequired,
    Unauthorized,
    common_response,
)
from core.security import check_permissions, get_current_user
from models import get_db_sync
from models.Ticket import ListingType, Ticket, TicketStatus
from models.User import User
from repository import bid as bidRepo
from repository import event as eventRepo
from repository import purchase as purchaseRepo
from repository import ticket as ticketRepo
from schemas.auth import AuthorizationStatusEnum
from schemas.bid import bid_response_item_from_model
from schemas.common import (
    BadRequestResponse,
    ConflictResponse,
    ForbiddenResponse,
    InternalServerErrorResponse,
    NotFoundResponse,
    PaymentRequiredResponse,
    UnauthorizedResponse,
)
from schemas.ticket import (
    MyTicketResponseItem,
    PurchaseRequest,
    PurchaseSuccessResponse,
    ResellRequest,
    TicketCreateRequest,
    TicketListResponse,
    TicketQuery,
    TicketResponseItem,
    TicketUpdateRequest,
    ticket_response_item_from_model,
)

router = APIRouter(prefix="/tickets", tags=["Tickets"])


def _user_error(current_user: User | None, mutating: bool = True):
    auth_status = check_permissions(current_user, mutating=mutating)
    if auth_status == AuthorizationStatusEnum.UNAUTHORIZED:
        return common_response(Unauthorized(message="Unauthorized"))
    if auth_status == AuthorizationStatusEnum.BANNED:
        return common_response(
            Forbidden(custom_response={"message": "Your account has been banned"})
        )
    return None


def _ticket_item(db: Session, ticket: Ticket) -> dict:
    summary = bidRepo.summarize_bids(db=db, ticket_ids=[ticket.id])
    bid_count, highest_bid = summary.get(ticket.id, (0, None))
    return ticket_response_item_from_model(
        ticket, highest_bid=highest_bid, bid_count=bid_count
    ).model_dump()


@router.get(
    "/",
    responses={
        "200": {"model": TicketListResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
def get_tickets(query: TicketQuery = Depends(), db: Session = Depends(get_db_sync)):
    data = ticketRepo.get_available_tickets_per_page(
        db=db,
        page=query.page,
        page_size=query.page_size,
        event_id=query.event_id,
        listing_type=query.listing_type,
        min_price=query.min_price,
        max_price=query.max_price,
        search=query.search,
    )
    summary = bidRepo.summarize_bids(
        db=db, ticket_ids=[ticket.id for ticket in data["results"]]
    )
    results = []
    for ticket in data["results"]:
        bid_count, highest_bid = summary.get(ticket.id, (0, None))
        results.append(
            ticket_response_item_from_model(
                ticket, highest_bid=highest_bid, bid_count=bid_count
            )
        )
    response = TicketListResponse(
        page=data["page"],
        page_size=data["page_size"],
        count=data["count"],
        page_count=data["page_count"],
        results=results,
    )
    return common_response(Ok(data=response.model_dump()))


@router.get(
    "/my",
    responses={
        "200": {"model": list[MyTicketResponseItem]},
        "401": {"model": UnauthorizedResponse},
    },
)
def get_my_tickets(
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _user_error(current_user, mutating=False)
    if error is not None:
        return error

    results = []
    for ticket in ticketRepo.get_owned_tickets(db=db, user=current_user):
        purchase = purchaseRepo.get_latest_purchase(
            db=db, ticket=ticket, buyer=current_user
        )
        item = MyTicketResponseItem(
            **ticket_response_item_from_model(ticket).model_dump(),
            qr_code=generate_ticket_qr_payload(str(ticket.id)),
            purchase_amount=purchase.amount if purchase else None,
            purchased_at=to_iso(purchase.created_at) if purchase else None,
        )
        results.append(item.model_dump())
    return common_response(Ok(data={"results": results}))


@router.get(
    "/my-listings",
    responses={
        "200": {"model": list[TicketResponseItem]},
        "401": {"model": UnauthorizedResponse},
    },
)
def get_my_listings(
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _user_error(current_user, mutating=False)
    if error is not None:
        return error

    tickets = ticketRepo.get_listings_by_seller(db=db, user=current_user)
    summary = bidRepo.summarize_bids(db=db, ticket_ids=[t.id for t in tickets])
    results = []
    for ticket in tickets:
        bid_count, highest_bid = summary.get(ticket.id, (0, None))
        results.append(
            ticket_response_item_from_model(
                ticket, highest_bid=highest_bid, bid_count=bid_count
            ).model_dump()
        )
    return common_response(Ok(data={"results": results}))


@router.get(
    "/{ticket_id}",
    responses={
        "200": {"model": TicketResponseItem},
        "404": {"model": NotFoundResponse},
    },
)
def get_ticket(ticket_id: uuid.UUID, db: Session = Depends(get_db_sync)):
    ticket = ticketRepo.get_ticket_by_id(db=db, id=ticket_id)
    if ticket is None:
        return common_response(NotFound(message="Ticket not found"))

    data = _ticket_item(db=db, ticket=ticket)
    bids = bidRepo.get_bids_by_ticket(db=db, ticket=ticket, limit=10)
    data["bids"] = [bid_response_item_from_model(bid).model_dump() for bid in bids]
    if (
        ticket.listing_type == ListingType.AUCTION
        and ticket.status == TicketStatus.AVAILABLE
    ):
        highest = bidRepo.get_highest_bid(db=db, ticket=ticket)
        data["minimum_bid"] = minimum_bid(highest.amount if highest else None)
    return common_response(Ok(data=data))


@router.post(
    "/",
    responses={
        "201": {"model": TicketResponseItem},
        "400": {"model": BadRequestResponse},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
        "404": {"model": NotFoundResponse},
    },
)
def create_ticket(
    request: TicketCreateRequest,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _user_error(current_user)
    if error is not None:
        return error

    event = eventRepo.get_event_by_id(db=db, id=request.event_id)
    if event is None:
        return common_response(NotFound(message="Event not found"))

    message = validate_listing_window(request.listing_type, request.end_time, utc_now())
    if message:
        return common_response(BadRequest(message=message))

    ticket = ticketRepo.insert_ticket(
        db=db,
        event=event,
        seller=current_user,
        price=request.price,
        listing_type=request.listing_type,
        end_time=request.end_time,
        section=request.section,
        row=request.row,
        seat=request.seat,
    )
    logger.info(
        f"Listing created: ticket {ticket.id} by {current_user.email} "
        f"({ticket.listing_type}, {format_money(ticket.price)})"
    )
    return common_response(Created(data=_ticket_item(db=db, ticket=ticket)))


@router.post(
    "/{ticket_id}/purchase",
    responses={
        "200": {"model": PurchaseSuccessResponse},
        "400": {"model": BadRequestResponse},
        "401": {"model": UnauthorizedResponse},
        "402": {"model": PaymentRequiredResponse},
        "403": {"model": ForbiddenResponse},
        "404": {"model": NotFoundResponse},
        "409": {"model": ConflictResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
async def purchase_ticket(
    ticket_id: uuid.UUID,
    request: PurchaseRequest,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _user_error(current_user)
    if error is not None:
        return error

    ticket = ticketRepo.get_ticket_by_id(db=db, id=ticket_id)
    if ticket is None:
        return common_response(NotFound(message="Ticket not found"))

    if ticket.status != TicketStatus.AVAILABLE:
        return common_response(
            BadRequest(message="Ticket is not available for purchase")
        )

    if ticket.listing_type == ListingType.AUCTION:
        return common_response(
            BadRequest(message="Auction tickets cannot be purchased directly")
        )

    if ticket.seller_id == current_user.id:
        return common_response(
            BadRequest(message="You cannot purchase your own ticket")
        )

    amount = ticket.price
    gateway = PaymentGateway()
    try:
        payment = await gateway.process_payment(
            amount=amount,
            card_number=request.card_number,
            expiry_date=request.expiry_date,
            cvv=request.cvv,
        )
    except Exception as e:
        traceback.print_exc()
        logger.error(f"Payment processing failed for ticket {ticket_id}: {e}")
        return common_response(InternalServerError(error=str(e)))

    if not payment.success:
        logger.info(f"Payment declined for ticket {ticket_id}: {payment.error}")
        return common_response(PaymentRequired(message=payment.error))

    buyer_id = current_user.id
    try:
        if not ticketRepo.sell_ticket(db=db, ticket=ticket, buyer_id=buyer_id):
            db.rollback()
            await gateway.refund_payment(payment.transaction_id)
            logger.info(
                f"Ticket {ticket_id} sold concurrently, refunded {payment.transaction_id}"
            )
            return common_response(
                Conflict(message="Ticket was purchased by another buyer")
            )

        purchase = purchaseRepo.create_purchase(
            db=db,
            ticket_id=ticket.id,
            buyer_id=buyer_id,
            amount=amount,
            transaction_id=payment.transaction_id,
            is_commit=False,
        )
        db.commit()
    except Exception as e:
        db.rollback()
        traceback.print_exc()
        logger.error(f"Failed to record purchase of ticket {ticket_id}: {e}")
        await gateway.refund_payment(payment.transaction_id)
        return common_response(InternalServerError(error=str(e)))

    logger.info(f"Ticket {ticket.id} sold to {current_user.email} for {format_money(amount)}")

    event = ticket.event
    seller = ticket.seller
    await notify(
        send_purchase_confirmation_email(
            recipient=current_user.email,
            buyer_name=current_user.name,
            event_title=event.title,
            venue=event.venue,
            event_date=format_local(event.date),
            amount=format_money(amount),
            ticket_id=str(ticket.id),
            qr_code=generate_ticket_qr_payload(str(ticket.id)),
        ),
        description=f"purchase confirmation for ticket {ticket.id}",
    )
    await notify(
        send_sale_notification_email(
            recipient=seller.email,
            seller_name=seller.name,
            event_title=event.title,
            amount=format_money(amount),
            ticket_id=str(ticket.id),
        ),
        description=f"sale notification for ticket {ticket.id}",
    )

    response = PurchaseSuccessResponse(
        message="Ticket purchased successfully",
        ticket=ticket_response_item_from_model(ticket),
        purchase_id=str(purchase.id),
        transaction_id=payment.transaction_id,
    )
    return common_response(Ok(data=response.model_dump()))


@router.put(
    "/{ticket_id}",
    responses={
        "200": {"model": TicketResponseItem},
        "400": {"model": BadRequestResponse},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
        "404": {"model": NotFoundResponse},
    },
)
def update_ticket(
    ticket_id: uuid.UUID,
    request: TicketUpdateRequest,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _user_error(current_user)
    if error is not None:
        return error

    ticket = ticketRepo.get_ticket_by_id(db=db, id=ticket_id)
    if ticket is None:
        return common_response(NotFound(message="Ticket not found"))

    if ticket.seller_id != current_user.id:
        return common_response(
            Forbidden(
                custom_response={"message": "Not authorized to update this ticket"}
            )
        )

    if ticket.status != TicketStatus.AVAILABLE:
        return common_response(BadRequest(message="Cannot update sold ticket"))

    if request.price is not None and bidRepo.count_pending_bids(db=db, ticket=ticket):
        return common_response(
            BadRequest(message="Cannot change the price while bids are pending")
        )

    ticket = ticketRepo.update_ticket(db=db, ticket=ticket, **request.model_dump())
    return common_response(Ok(data=_ticket_item(db=db, ticket=ticket)))


@router.delete(
    "/{ticket_id}",
    responses={
        "200": {"model": TicketResponseItem},
        "400": {"model": BadRequestResponse},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
        "404": {"model": NotFoundResponse},
    },
)
def delete_ticket(
    ticket_id: uuid.UUID,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _user_error(current_user)
    if error is not None:
        return error

    ticket = ticketRepo.get_ticket_by_id(db=db, id=ticket_id)
    if ticket is None:
        return common_response(NotFound(message="Ticket not found"))

    if ticket.seller_id != current_user.id:
        return common_response(
            Forbidden(
                custom_response={"message": "Not authorized to delete this ticket"}
            )
        )

    if ticket.status != TicketStatus.AVAILABLE:
        return common_response(BadRequest(message="Cannot delete sold ticket"))

    if bidRepo.count_pending_bids(db=db, ticket=ticket):
        return common_response(
            BadRequest(message="Cannot delete listing with pending bids")
        )

    bidRepo.delete_bids_by_ticket(db=db, ticket=ticket)
    ticketRepo.delete_ticket(db=db, ticket=ticket)
    logger.info(f"Listing deleted: ticket {ticket_id}")
    return common_response(Ok(data={"message": "Ticket deleted successfully"}))


@router.put(
    "/{ticket_id}/cancel-listing",
    responses={
        "200": {"model": TicketResponseItem},
        "400": {"model": BadRequestResponse},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
        "404": {"model": NotFoundResponse},
        "409": {"model": ConflictResponse},
    },
)
def cancel_listing(
    ticket_id: uuid.UUID,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _user_error(current_user)
    if error is not None:
        return error

    ticket = ticketRepo.get_ticket_by_id(db=db, id=ticket_id)
    if ticket is None:
        return common_response(NotFound(message="Ticket not found"))

    if ticket.seller_id != current_user.id:
        return common_response(
            Forbidden(
                custom_response={"message": "You are not the seller of this ticket"}
            )
        )

    if ticket.status != TicketStatus.AVAILABLE:
        return common_response(BadRequest(message="Cannot cancel a sold ticket"))

    if bidRepo.count_pending_bids(db=db, ticket=ticket):
        return common_response(
            BadRequest(
                message="Cannot cancel listing with pending bids. Please reject all bids first."
            )
        )

    # the seller keeps the ticket, it goes back to their tickets as owned
    bidRepo.delete_bids_by_ticket(db=db, ticket=ticket)
    if not ticketRepo.sell_ticket(
        db=db,
        ticket=ticket,
        buyer_id=current_user.id,
        listing_type=ListingType.DIRECT_SALE,
    ):
        db.rollback()
        return common_response(Conflict(message="Ticket was changed by another request"))
    db.commit()

    logger.info(f"Listing cancelled: ticket {ticket_id}")
    return common_response(
        Ok(
            data={
                "message": "Listing cancelled successfully",
                "ticket": _ticket_item(db=db, ticket=ticket),
            }
        )
    )


@router.put(
    "/{ticket_id}/resell",
    responses={
        "200": {"model": TicketResponseItem},
        "400": {"model": BadRequestResponse},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
        "404": {"model": NotFoundResponse},
        "409": {"model": ConflictResponse},
    },
)
def resell_ticket(
    ticket_id: uuid.UUID,
    request: ResellRequest,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _user_error(current_user)
    if error is not None:
        return error

    ticket = ticketRepo.get_ticket_by_id(db=db, id=ticket_id)
    if ticket is None:
        return common_response(NotFound(message="Ticket not found"))

    if ticket.buyer_id != current_user.id:
        return common_response(
            Forbidden(
                custom_response={"message": "You are not the owner of this ticket"}
            )
        )

    if ticket.status != TicketStatus.SOLD:
        return common_response(BadRequest(message="Only owned tickets can be resold"))

    message = validate_listing_window(request.listing_type, request.end_time, utc_now())
    if message:
        return common_response(BadRequest(message=message))

    bidRepo.delete_bids_by_ticket(db=db, ticket=ticket)
    if not ticketRepo.relist_ticket(
        db=db,
        ticket=ticket,
        price=request.price,
        listing_type=request.listing_type,
        end_time=request.end_time,
    ):
        db.rollback()
        return common_response(Conflict(message="Ticket was changed by another request"))
    db.commit()

    logger.info(
        f"Ticket {ticket_id} relisted by {current_user.email} "
        f"({request.listing_type}, {format_money(request.price)})"
    )
    return common_response(
        Ok(
            data={
                "message": "Ticket listed for resale",
                "ticket": _ticket_item(db=db, ticket=ticket),
            }
        )
    )
