from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from core.auction import format_money
from core.email import (
    notify,
    send_auction_expired_email,
    send_bid_accepted_email,
    send_sale_notification_email,
)
from core.helper import utc_now
from core.log import logger
from repository import bid as bidRepo
from repository import ticket as ticketRepo


async def process_expired_auctions(db: Session, now: Optional[datetime] = None) -> dict:
    """Close every auction whose end time has passed.

    An auction with pending bids is sold to the highest one, an auction
    without bids is marked EXPIRED. A failure on one ticket is logged and the
    sweep moves on to the next.
    """
    now = now or utc_now()
    summary = {"sold": 0, "expired": 0, "failed": 0}

    tickets = ticketRepo.get_expired_auctions(db=db, now=now)
    logger.info(f"Processing {len(tickets)} expired auctions")
    for ticket in tickets:
        ticket_id = ticket.id
        try:
            event = ticket.event
            seller = ticket.seller
            highest = bidRepo.get_highest_pending_bid(db=db, ticket=ticket)
            if highest is None:
                if not ticketRepo.expire_ticket(db=db, ticket=ticket):
                    db.rollback()
                    continue
                db.commit()
                summary["expired"] += 1
                logger.info(f"Auction expired without bids: ticket {ticket_id}")
                await notify(
                    send_auction_expired_email(
                        recipient=seller.email,
                        seller_name=seller.name,
                        event_title=event.title,
                    ),
                    description=f"auction expired email for ticket {ticket_id}",
                )
                continue

            bidder = highest.bidder
            amount = format_money(highest.amount)
            purchase = bidRepo.accept_bid(db=db, ticket=ticket, bid=highest)
            if purchase is None:
                continue
            summary["sold"] += 1
            logger.info(
                f"Auction closed: ticket {ticket_id} sold to {bidder.email} for {amount}"
            )
            await notify(
                send_bid_accepted_email(
                    recipient=bidder.email,
                    bidder_name=bidder.name,
                    event_title=event.title,
                    amount=amount,
                ),
                description=f"bid accepted email for bid {highest.id}",
            )
            await notify(
                send_sale_notification_email(
                    recipient=seller.email,
                    seller_name=seller.name,
                    event_title=event.title,
                    amount=amount,
                    ticket_id=str(ticket_id),
                ),
                description=f"sale notification for ticket {ticket_id}",
            )
        except Exception as e:
            db.rollback()
            summary["failed"] += 1
            logger.error(f"Failed to process expired auction {ticket_id}: {e}")

    return summary
