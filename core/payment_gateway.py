import asyncio
import random
import secrets
import string
import time
from dataclasses import dataclass
from typing import Optional

from core.log import logger
from settings import PAYMENT_PROCESSING_DELAY, PAYMENT_SUCCESS_RATE


@dataclass
class PaymentResult:
    success: bool
    transaction_id: Optional[str] = None
    error: Optional[str] = None


class PaymentGateway:
    """Simulated card processor.

    Declines at random according to ``success_rate``; a declined attempt is
    final, callers do not retry.
    """

    def __init__(
        self,
        success_rate: float = PAYMENT_SUCCESS_RATE,
        processing_delay: float = PAYMENT_PROCESSING_DELAY,
    ):
        self.success_rate = success_rate
        self.processing_delay = processing_delay

    @staticmethod
    def _generate_transaction_id() -> str:
        suffix = "".join(
            secrets.choice(string.ascii_lowercase + string.digits) for _ in range(9)
        )
        return f"txn_{int(time.time() * 1000)}_{suffix}"

    async def process_payment(
        self, amount: int, card_number: str, expiry_date: str, cvv: str
    ) -> PaymentResult:
        if self.processing_delay:
            await asyncio.sleep(self.processing_delay)

        if not card_number or not expiry_date or not cvv:
            return PaymentResult(success=False, error="Invalid payment information")

        if random.random() < self.success_rate:
            transaction_id = self._generate_transaction_id()
            logger.info(f"Payment of {amount} approved, transaction {transaction_id}")
            return PaymentResult(success=True, transaction_id=transaction_id)

        logger.info(f"Payment of {amount} declined")
        return PaymentResult(
            success=False, error="Payment declined. Please try again."
        )

    async def refund_payment(self, transaction_id: str) -> PaymentResult:
        if self.processing_delay:
            await asyncio.sleep(self.processing_delay)
        logger.info(f"Refunded transaction {transaction_id}")
        return PaymentResult(success=True, transaction_id=transaction_id)
