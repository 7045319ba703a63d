from pathlib import Path
from typing import Awaitable

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema

from core.log import logger
from settings import (
    MAIL_ENABLED,
    MAIL_USERNAME,
    MAIL_PASSWORD,
    MAIL_FROM,
    MAIL_PORT,
    MAIL_SERVER,
    MAIL_FROM_NAME,
    MAIL_TLS,
    MAIL_SSL,
    USE_CREDENTIALS,
)


conf_static = ConnectionConfig(
    MAIL_USERNAME=MAIL_USERNAME,
    MAIL_PASSWORD=MAIL_PASSWORD,
    MAIL_FROM=MAIL_FROM,
    MAIL_PORT=MAIL_PORT,
    MAIL_SERVER=MAIL_SERVER,
    MAIL_FROM_NAME=MAIL_FROM_NAME,
    MAIL_STARTTLS=MAIL_TLS,
    MAIL_SSL_TLS=MAIL_SSL,
    USE_CREDENTIALS=USE_CREDENTIALS,
    TEMPLATE_FOLDER=Path(__file__).parent / "mail_templates",
)


async def send_templated_email(
    recipient: str, subject: str, template_name: str, template_body: dict
):
    """
    Send an email through SMTP, or only log it when MAIL_ENABLED is off
    """
    if not MAIL_ENABLED:
        logger.info(
            f"Simulated email to {recipient}: {subject} ({template_name}) {template_body}"
        )
        return

    fm = FastMail(conf_static)
    await fm.send_message(
        message=MessageSchema(
            subject=subject,
            recipients=[recipient],
            template_body=template_body,
            subtype="html",
        ),
        template_name=template_name,
    )


async def notify(sending: Awaitable, description: str) -> bool:
    """Await a notification without letting its failure reach the caller."""
    try:
        await sending
        return True
    except Exception as e:
        logger.error(f"Failed to send {description}: {e}")
        return False


async def try_send_email(recipient: str, name: str = "User"):
    await send_templated_email(
        recipient=recipient,
        subject="Test email",
        template_name="test_email.html",
        template_body={"name": name},
    )


async def send_email_verification(recipient: str, name: str, activation_link: str):
    await send_templated_email(
        recipient=recipient,
        subject="Verify your LayLow-India account",
        template_name="email_verification.html",
        template_body={"name": name, "activation_link": activation_link},
    )


async def send_reset_password_email(recipient: str, reset_link: str):
    await send_templated_email(
        recipient=recipient,
        subject="Reset your password",
        template_name="reset_password.html",
        template_body={"reset_link": reset_link},
    )


async def send_purchase_confirmation_email(
    recipient: str,
    buyer_name: str,
    event_title: str,
    venue: str,
    event_date: str,
    amount: str,
    ticket_id: str,
    qr_code: str,
):
    await send_templated_email(
        recipient=recipient,
        subject=f"Your ticket for {event_title}",
        template_name="purchase_confirmation.html",
        template_body={
            "buyer_name": buyer_name,
            "event_title": event_title,
            "venue": venue,
            "event_date": event_date,
            "amount": amount,
            "ticket_id": ticket_id,
            "qr_code": qr_code,
        },
    )


async def send_sale_notification_email(
    recipient: str, seller_name: str, event_title: str, amount: str, ticket_id: str
):
    await send_templated_email(
        recipient=recipient,
        subject=f"Your ticket for {event_title} has been sold",
        template_name="sale_notification.html",
        template_body={
            "seller_name": seller_name,
            "event_title": event_title,
            "amount": amount,
            "ticket_id": ticket_id,
        },
    )


async def send_bid_accepted_email(
    recipient: str, bidder_name: str, event_title: str, amount: str
):
    await send_templated_email(
        recipient=recipient,
        subject=f"Your offer for {event_title} was accepted",
        template_name="bid_accepted.html",
        template_body={
            "bidder_name": bidder_name,
            "event_title": event_title,
            "amount": amount,
        },
    )


async def send_auction_expired_email(
    recipient: str, seller_name: str, event_title: str
):
    await send_templated_email(
        recipient=recipient,
        subject=f"Your auction for {event_title} ended without bids",
        template_name="auction_expired.html",
        template_body={"seller_name": seller_name, "event_title": event_title},
    )
