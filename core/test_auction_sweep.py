from datetime import timedelta
from unittest import IsolatedAsyncioTestCase
from unittest.mock import AsyncMock, patch

import alembic.config
from sqlalchemy import select

from core.auction_sweep import process_expired_auctions
from core.helper import utc_now
from models import engine, db
from models.Bid import BidStatus
from models.Purchase import Purchase
from models.Ticket import ListingType, TicketStatus
from routes.tests.utils import create_bid, create_event, create_ticket, create_user


class TestProcessExpiredAuctions(IsolatedAsyncioTestCase):
    def setUp(self):
        alembic.config.main(argv=["upgrade", "head"])
        self.connection = engine.connect()
        self.trans = self.connection.begin()
        self.db = db(bind=self.connection, join_transaction_mode="create_savepoint")

        self.now = utc_now()
        self.event = create_event(db=self.db)
        self.seller = create_user(db=self.db, email="seller@example.com", name="Seller")
        self.bidder = create_user(db=self.db, email="kabir@example.com", name="Kabir")
        self.rival = create_user(db=self.db, email="isha@example.com", name="Isha")

    def tearDown(self):
        self.db.close()
        self.trans.rollback()
        self.connection.close()

    def _auction(self, ended: bool = True):
        delta = timedelta(minutes=-5) if ended else timedelta(days=1)
        return create_ticket(
            db=self.db,
            event=self.event,
            seller=self.seller,
            price=10000,
            listing_type=ListingType.AUCTION,
            end_time=self.now + delta,
        )

    @patch("core.auction_sweep.send_sale_notification_email", new_callable=AsyncMock)
    @patch("core.auction_sweep.send_bid_accepted_email", new_callable=AsyncMock)
    @patch("core.auction_sweep.send_auction_expired_email", new_callable=AsyncMock)
    async def test_sweep(self, mock_expired_email, mock_accepted_email, mock_sale_email):
        # Given
        with_bids = self._auction()
        winner = create_bid(db=self.db, ticket=with_bids, bidder=self.bidder, amount=30000)
        loser = create_bid(db=self.db, ticket=with_bids, bidder=self.rival, amount=20000)
        without_bids = self._auction()
        running = self._auction(ended=False)
        create_bid(db=self.db, ticket=running, bidder=self.bidder, amount=15000)

        # When
        summary = await process_expired_auctions(db=self.db, now=self.now)

        # Expect
        self.assertEqual(summary, {"sold": 1, "expired": 1, "failed": 0})

        self.db.refresh(with_bids)
        self.db.refresh(winner)
        self.db.refresh(loser)
        self.assertEqual(with_bids.status, TicketStatus.SOLD)
        self.assertEqual(with_bids.buyer_id, self.bidder.id)
        self.assertEqual(winner.status, BidStatus.ACCEPTED)
        self.assertEqual(loser.status, BidStatus.REJECTED)
        purchase = self.db.execute(
            select(Purchase).where(Purchase.ticket_id == with_bids.id)
        ).scalar()
        self.assertEqual(purchase.amount, 30000)

        self.db.refresh(without_bids)
        self.assertEqual(without_bids.status, TicketStatus.EXPIRED)

        self.db.refresh(running)
        self.assertEqual(running.status, TicketStatus.AVAILABLE)

        mock_accepted_email.assert_called_once()
        mock_sale_email.assert_called_once()
        mock_expired_email.assert_called_once()

        # When run again nothing is left to close
        summary = await process_expired_auctions(db=self.db, now=self.now)

        # Expect
        self.assertEqual(summary, {"sold": 0, "expired": 0, "failed": 0})

    async def test_failure_on_one_ticket_does_not_stop_the_sweep(self):
        # Given
        broken = self._auction()
        create_bid(db=self.db, ticket=broken, bidder=self.bidder, amount=30000)
        quiet = self._auction()

        # When
        with patch(
            "core.auction_sweep.bidRepo.accept_bid", side_effect=Exception("db gone")
        ):
            summary = await process_expired_auctions(db=self.db, now=self.now)

        # Expect
        self.assertEqual(summary["failed"], 1)
        self.assertEqual(summary["expired"], 1)
        self.db.refresh(broken)
        self.db.refresh(quiet)
        self.assertEqual(broken.status, TicketStatus.AVAILABLE)
        self.assertEqual(quiet.status, TicketStatus.EXPIRED)
