import uuid
from datetime import timedelta
from unittest import TestCase

import alembic.config
from fastapi.testclient import TestClient
from core.helper import utc_now
from models import engine, db, get_db_sync, get_db_sync_for_test
from models.Bid import Bid
from models.Purchase import Purchase, PurchaseStatus
from models.Ticket import Ticket, TicketStatus
from models.User import User, UserRole
from main import app
from routes.tests.utils import (
    auth_header,
    create_bid,
    create_event,
    create_ticket,
    create_token,
    create_user,
)


class TestAdmin(TestCase):
    @classmethod
    def setUpClass(cls):
        alembic_args = ["upgrade", "head"]
        alembic.config.main(argv=alembic_args)

    def setUp(self):
        self.connection = engine.connect()
        self.trans = self.connection.begin()
        self.session = db(
            bind=self.connection, join_transaction_mode="create_savepoint"
        )

        self.admin = create_user(
            db=self.session, email="root@example.com", name="Root", role=UserRole.ADMIN
        )
        self.admin_token = create_token(db=self.session, user=self.admin)
        self.user = create_user(db=self.session, email="meera@example.com", name="Meera")
        self.user_token = create_token(db=self.session, user=self.user)
        self.event = create_event(db=self.session)

        app.dependency_overrides[get_db_sync] = get_db_sync_for_test(db=self.session)
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        self.session.close()
        self.trans.rollback()
        self.connection.close()

    def _purchase(self, ticket, buyer, amount, days_ago=0):
        purchase = Purchase(
            ticket_id=ticket.id,
            buyer_id=buyer.id,
            amount=amount,
            status=PurchaseStatus.COMPLETED,
            created_at=utc_now() - timedelta(days=days_ago),
        )
        self.session.add(purchase)
        self.session.commit()
        return purchase

    def test_admin_routes_require_admin(self):
        for path in [
            "/admin/dashboard",
            "/admin/users",
            "/admin/tickets",
            "/admin/purchases",
            "/admin/analytics/revenue",
        ]:
            response = self.client.get(path, headers=auth_header(self.user_token))
            self.assertEqual(response.status_code, 403, path)

            response = self.client.get(path)
            self.assertEqual(response.status_code, 401, path)

    def test_dashboard(self):
        # Given
        before = self.client.get(
            "/admin/dashboard", headers=auth_header(self.admin_token)
        ).json()["stats"]
        create_ticket(db=self.session, event=self.event, seller=self.user)
        sold = create_ticket(
            db=self.session,
            event=self.event,
            seller=self.user,
            status=TicketStatus.SOLD,
            buyer=self.admin,
        )
        self._purchase(sold, self.admin, 50000)

        # When
        response = self.client.get(
            "/admin/dashboard", headers=auth_header(self.admin_token)
        )

        # Expect
        self.assertEqual(response.status_code, 200)
        data = response.json()
        stats = data["stats"]
        self.assertEqual(stats["total_tickets"], before["total_tickets"] + 2)
        self.assertEqual(stats["available_tickets"], before["available_tickets"] + 1)
        self.assertEqual(stats["sold_tickets"], before["sold_tickets"] + 1)
        self.assertEqual(stats["total_revenue"], before["total_revenue"] + 50000)
        self.assertEqual(data["recent_purchases"][0]["amount"], 50000)

    def test_list_users(self):
        response = self.client.get(
            "/admin/users?search=meera@example", headers=auth_header(self.admin_token)
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["count"], 1)
        self.assertEqual(response.json()["results"][0]["id"], str(self.user.id))

        response = self.client.get(
            "/admin/users?role=ADMIN&search=root@example",
            headers=auth_header(self.admin_token),
        )
        self.assertEqual(response.json()["count"], 1)

    def test_update_user_role(self):
        # When 1 promote
        response = self.client.put(
            f"/admin/users/{self.user.id}",
            json={"role": UserRole.ADMIN, "name": "Meera Iyer"},
            headers=auth_header(self.admin_token),
        )

        # Expect 1
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["role"], UserRole.ADMIN)
        self.assertEqual(response.json()["name"], "Meera Iyer")

        # When 2 not found
        response = self.client.put(
            f"/admin/users/{uuid.uuid4()}",
            json={"name": "Nobody"},
            headers=auth_header(self.admin_token),
        )

        # Expect 2
        self.assertEqual(response.status_code, 404)

    def test_promoting_banned_user_is_refused(self):
        # Given
        banned = create_user(db=self.session, email="blocked@example.com", banned=True)

        # When
        response = self.client.put(
            f"/admin/users/{banned.id}",
            json={"role": UserRole.ADMIN},
            headers=auth_header(self.admin_token),
        )

        # Expect
        self.assertEqual(response.status_code, 400)
        self.session.refresh(banned)
        self.assertEqual(banned.role, UserRole.USER)
        self.assertTrue(banned.banned)

    def test_ban_user(self):
        # When 1
        response = self.client.patch(
            f"/admin/users/{self.user.id}/ban",
            json={"banned": True},
            headers=auth_header(self.admin_token),
        )

        # Expect 1
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["banned"])

        # When 2 the banned user tries to list a ticket
        response = self.client.post(
            "/tickets/",
            json={"event_id": str(self.event.id), "price": 10000},
            headers=auth_header(self.user_token),
        )

        # Expect 2
        self.assertEqual(response.status_code, 403)

        # When 3 browsing still works
        response = self.client.get("/auth/me/", headers=auth_header(self.user_token))

        # Expect 3
        self.assertEqual(response.status_code, 200)

        # When 4 unban
        response = self.client.patch(
            f"/admin/users/{self.user.id}/ban",
            json={"banned": False},
            headers=auth_header(self.admin_token),
        )

        # Expect 4
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["banned"])

    def test_ban_refused_for_self_and_admins(self):
        other_admin = create_user(
            db=self.session, email="ops@example.com", role=UserRole.ADMIN
        )

        response = self.client.patch(
            f"/admin/users/{self.admin.id}/ban",
            json={"banned": True},
            headers=auth_header(self.admin_token),
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.patch(
            f"/admin/users/{other_admin.id}/ban",
            json={"banned": True},
            headers=auth_header(self.admin_token),
        )
        self.assertEqual(response.status_code, 400)

    def test_delete_user(self):
        # Given
        trader = create_user(db=self.session, email="trader@example.com")
        create_ticket(db=self.session, event=self.event, seller=trader)
        bidder = create_user(db=self.session, email="bidder@example.com")
        auction = create_ticket(
            db=self.session,
            event=self.event,
            seller=self.user,
            listing_type="AUCTION",
        )
        create_bid(db=self.session, ticket=auction, bidder=bidder, amount=60000)
        bidder_id = bidder.id

        # When 1 user with listings
        response = self.client.delete(
            f"/admin/users/{trader.id}", headers=auth_header(self.admin_token)
        )

        # Expect 1
        self.assertEqual(response.status_code, 400)

        # When 2 self
        response = self.client.delete(
            f"/admin/users/{self.admin.id}", headers=auth_header(self.admin_token)
        )

        # Expect 2
        self.assertEqual(response.status_code, 400)

        # When 3 user with only bids
        response = self.client.delete(
            f"/admin/users/{bidder_id}", headers=auth_header(self.admin_token)
        )

        # Expect 3
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(self.session.get(User, bidder_id))
        remaining = (
            self.session.query(Bid).filter(Bid.bidder_id == bidder_id).count()
        )
        self.assertEqual(remaining, 0)

    def test_manage_tickets(self):
        # Given
        ticket = create_ticket(db=self.session, event=self.event, seller=self.user)
        sold = create_ticket(
            db=self.session,
            event=self.event,
            seller=self.user,
            status=TicketStatus.SOLD,
            buyer=self.admin,
        )
        self._purchase(sold, self.admin, 50000)
        sold_id = sold.id

        # When 1
        response = self.client.get(
            "/admin/tickets?status=SOLD&search=meera@example",
            headers=auth_header(self.admin_token),
        )

        # Expect 1
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["count"], 1)
        self.assertEqual(response.json()["results"][0]["id"], str(sold_id))

        # When 2
        response = self.client.put(
            f"/admin/tickets/{ticket.id}",
            json={"price": 12345},
            headers=auth_header(self.admin_token),
        )

        # Expect 2
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["price"], 12345)

        # When 3 delete removes the purchase history too
        response = self.client.delete(
            f"/admin/tickets/{sold_id}", headers=auth_header(self.admin_token)
        )

        # Expect 3
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(self.session.get(Ticket, sold_id))
        remaining = (
            self.session.query(Purchase).filter(Purchase.ticket_id == sold_id).count()
        )
        self.assertEqual(remaining, 0)

    def test_ticket_status_change_keeps_buyer_consistent(self):
        # Given
        listed = create_ticket(db=self.session, event=self.event, seller=self.user)
        sold = create_ticket(
            db=self.session,
            event=self.event,
            seller=self.user,
            status=TicketStatus.SOLD,
            buyer=self.admin,
        )

        # When 1 marking a listing without a buyer as SOLD
        response = self.client.put(
            f"/admin/tickets/{listed.id}",
            json={"status": TicketStatus.SOLD},
            headers=auth_header(self.admin_token),
        )

        # Expect 1
        self.assertEqual(response.status_code, 400)
        self.session.refresh(listed)
        self.assertEqual(listed.status, TicketStatus.AVAILABLE)

        # When 2 putting a sold ticket back on sale
        response = self.client.put(
            f"/admin/tickets/{sold.id}",
            json={"status": TicketStatus.AVAILABLE},
            headers=auth_header(self.admin_token),
        )

        # Expect 2
        self.assertEqual(response.status_code, 200)
        self.session.refresh(sold)
        self.assertEqual(sold.status, TicketStatus.AVAILABLE)
        self.assertIsNone(sold.buyer_id)

    def test_purchases_and_revenue(self):
        # Given
        before = self.client.get(
            "/admin/analytics/revenue?period=7", headers=auth_header(self.admin_token)
        ).json()
        first = create_ticket(
            db=self.session,
            event=self.event,
            seller=self.user,
            status=TicketStatus.SOLD,
            buyer=self.admin,
        )
        second = create_ticket(
            db=self.session,
            event=self.event,
            seller=self.user,
            status=TicketStatus.SOLD,
            buyer=self.admin,
        )
        old = create_ticket(
            db=self.session,
            event=self.event,
            seller=self.user,
            status=TicketStatus.SOLD,
            buyer=self.admin,
        )
        self._purchase(first, self.admin, 50000)
        self._purchase(second, self.admin, 25000)
        self._purchase(old, self.admin, 99900, days_ago=30)

        # When 1
        response = self.client.get(
            "/admin/purchases?status=COMPLETED", headers=auth_header(self.admin_token)
        )

        # Expect 1
        self.assertEqual(response.status_code, 200)
        self.assertGreaterEqual(response.json()["count"], 3)

        # When 2
        response = self.client.get(
            "/admin/analytics/revenue?period=7", headers=auth_header(self.admin_token)
        )

        # Expect 2
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["period"], 7)
        self.assertEqual(data["total_revenue"], before["total_revenue"] + 75000)
        self.assertEqual(data["transactions"], before["transactions"] + 2)
        today = utc_now().date().isoformat()
        days = {day["date"]: day for day in data["revenue_by_day"]}
        self.assertIn(today, days)

        # When 3
        response = self.client.get(
            "/admin/analytics/revenue?period=0", headers=auth_header(self.admin_token)
        )

        # Expect 3
        self.assertEqual(response.status_code, 422)
