import traceback
import uuid
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auction import format_money, is_auction_ended, minimum_bid
from core.email import notify, send_bid_accepted_email, send_sale_notification_email
from core.helper import utc_now
from core.log import logger
from core.responses import (
    BadRequest,
    Conflict,
    Created,
    Forbidden,
    InternalServerError,
    NotFound,
    Ok,
    Unauthorized,
    common_response,
)
from core.security import check_permissions, get_current_user
from models import get_db_sync
from models.Bid import BidStatus
from models.Ticket import ListingType, TicketStatus
from models.User import User
from repository import bid as bidRepo
from repository import ticket as ticketRepo
from schemas.auth import AuthorizationStatusEnum
from schemas.bid import (
    AcceptBidResponse,
    BidListResponse,
    BidResponseItem,
    MyBidResponseItem,
    PlaceBidRequest,
    bid_response_item_from_model,
    my_bid_response_item_from_model,
)
from schemas.common import (
    BadRequestResponse,
    ConflictResponse,
    ForbiddenResponse,
    InternalServerErrorResponse,
    NotFoundResponse,
    UnauthorizedResponse,
)

router = APIRouter(prefix="/bids", tags=["Bids"])


def _user_error(current_user: User | None, mutating: bool = True):
    auth_status = check_permissions(current_user, mutating=mutating)
    if auth_status == AuthorizationStatusEnum.UNAUTHORIZED:
        return common_response(Unauthorized(message="Unauthorized"))
    if auth_status == AuthorizationStatusEnum.BANNED:
        return common_response(
            Forbidden(custom_response={"message": "Your account has been banned"})
        )
    return None


@router.get(
    "/ticket/{ticket_id}",
    responses={
        "200": {"model": BidListResponse},
        "404": {"model": NotFoundResponse},
    },
)
def get_ticket_bids(ticket_id: uuid.UUID, db: Session = Depends(get_db_sync)):
    ticket = ticketRepo.get_ticket_by_id(db=db, id=ticket_id)
    if ticket is None:
        return common_response(NotFound(message="Ticket not found"))

    bids = bidRepo.get_bids_by_ticket(db=db, ticket=ticket)
    next_minimum = None
    if (
        ticket.listing_type == ListingType.AUCTION
        and ticket.status == TicketStatus.AVAILABLE
    ):
        highest = bidRepo.get_highest_bid(db=db, ticket=ticket)
        next_minimum = minimum_bid(highest.amount if highest else None)
    response = BidListResponse(
        results=[bid_response_item_from_model(bid) for bid in bids],
        minimum_bid=next_minimum,
    )
    return common_response(Ok(data=response.model_dump()))


@router.get(
    "/me",
    responses={
        "200": {"model": list[MyBidResponseItem]},
        "401": {"model": UnauthorizedResponse},
    },
)
def get_my_bids(
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _user_error(current_user, mutating=False)
    if error is not None:
        return error

    bids = bidRepo.get_bids_by_bidder(db=db, user=current_user)
    return common_response(
        Ok(
            data={
                "results": [
                    my_bid_response_item_from_model(bid).model_dump() for bid in bids
                ]
            }
        )
    )


@router.post(
    "/{ticket_id}",
    responses={
        "201": {"model": BidResponseItem},
        "400": {"model": BadRequestResponse},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
        "404": {"model": NotFoundResponse},
    },
)
def place_bid(
    ticket_id: uuid.UUID,
    request: PlaceBidRequest,
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
        return common_response(BadRequest(message="Ticket is not available for bidding"))

    if ticket.listing_type != ListingType.AUCTION:
        return common_response(
            BadRequest(message="Bids can only be placed on auction listings")
        )

    if ticket.seller_id == current_user.id:
        return common_response(BadRequest(message="You cannot bid on your own ticket"))

    if is_auction_ended(ticket.end_time, utc_now()):
        return common_response(BadRequest(message="Auction has ended"))

    highest = bidRepo.get_highest_bid(db=db, ticket=ticket)
    required = minimum_bid(highest.amount if highest else None)
    if request.amount < required:
        return common_response(
            BadRequest(
                custom_response={
                    "message": f"Bid must be at least {format_money(required)}",
                    "minimum_bid": required,
                }
            )
        )

    existing = bidRepo.get_pending_bid_by_bidder(db=db, ticket=ticket, user=current_user)
    if existing is not None:
        bid = bidRepo.raise_bid(db=db, bid=existing, amount=request.amount)
        logger.info(f"Bid raised: {bid.id} on ticket {ticket_id} to {request.amount}")
        return common_response(Ok(data=bid_response_item_from_model(bid).model_dump()))

    bid = bidRepo.create_bid(
        db=db, ticket=ticket, bidder=current_user, amount=request.amount
    )
    logger.info(f"Bid placed: {bid.id} on ticket {ticket_id} for {request.amount}")
    return common_response(Created(data=bid_response_item_from_model(bid).model_dump()))


@router.put(
    "/{bid_id}/accept",
    responses={
        "200": {"model": AcceptBidResponse},
        "400": {"model": BadRequestResponse},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
        "404": {"model": NotFoundResponse},
        "409": {"model": ConflictResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
async def accept_bid(
    bid_id: uuid.UUID,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _user_error(current_user)
    if error is not None:
        return error

    bid = bidRepo.get_bid_by_id(db=db, id=bid_id)
    if bid is None:
        return common_response(NotFound(message="Bid not found"))

    ticket = bid.ticket
    if ticket.seller_id != current_user.id:
        return common_response(
            Forbidden(
                custom_response={"message": "Only the seller can accept this bid"}
            )
        )

    if ticket.status != TicketStatus.AVAILABLE:
        return common_response(Conflict(message="Ticket is no longer available"))

    if bid.status != BidStatus.PENDING:
        return common_response(BadRequest(message="Bid is no longer pending"))

    try:
        purchase = bidRepo.accept_bid(db=db, ticket=ticket, bid=bid)
    except Exception as e:
        db.rollback()
        traceback.print_exc()
        logger.error(f"Failed to accept bid {bid_id}: {e}")
        return common_response(InternalServerError(error=str(e)))

    if purchase is None:
        return common_response(Conflict(message="Ticket is no longer available"))

    logger.info(f"Bid accepted: {bid.id}, ticket {ticket.id} sold for {bid.amount}")

    bidder = bid.bidder
    event = ticket.event
    amount = format_money(bid.amount)
    await notify(
        send_bid_accepted_email(
            recipient=bidder.email,
            bidder_name=bidder.name,
            event_title=event.title,
            amount=amount,
        ),
        description=f"bid accepted email for bid {bid.id}",
    )
    await notify(
        send_sale_notification_email(
            recipient=current_user.email,
            seller_name=current_user.name,
            event_title=event.title,
            amount=amount,
            ticket_id=str(ticket.id),
        ),
        description=f"sale notification for ticket {ticket.id}",
    )

    response = AcceptBidResponse(
        message="Bid accepted successfully",
        bid=bid_response_item_from_model(bid),
        purchase_id=str(purchase.id),
    )
    return common_response(Ok(data=response.model_dump()))


@router.put(
    "/{bid_id}/reject",
    responses={
        "200": {"model": BidResponseItem},
        "400": {"model": BadRequestResponse},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
        "404": {"model": NotFoundResponse},
    },
)
def reject_bid(
    bid_id: uuid.UUID,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _user_error(current_user)
    if error is not None:
        return error

    bid = bidRepo.get_bid_by_id(db=db, id=bid_id)
    if bid is None:
        return common_response(NotFound(message="Bid not found"))

    if bid.ticket.seller_id != current_user.id:
        return common_response(
            Forbidden(
                custom_response={"message": "Only the seller can reject this bid"}
            )
        )

    if bid.status != BidStatus.PENDING:
        return common_response(BadRequest(message="Bid is no longer pending"))

    bid = bidRepo.set_bid_status(db=db, bid=bid, status=BidStatus.REJECTED)
    logger.info(f"Bid rejected: {bid.id}")
    return common_response(Ok(data=bid_response_item_from_model(bid).model_dump()))
