import uuid
import alembic.config
from unittest import TestCase
from datetime import timedelta

from fastapi.testclient import TestClient
from core.helper import utc_now
from models import engine, db, get_db_sync, get_db_sync_for_test
from models.Event import Event
from models.Ticket import TicketStatus
from models.User import UserRole
from main import app
from routes.tests.utils import (
    auth_header,
    create_event,
    create_ticket,
    create_token,
    create_user,
)


class TestEvent(TestCase):
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
            db=self.session, email="admin@example.com", role=UserRole.ADMIN
        )
        self.admin_token = create_token(db=self.session, user=self.admin)
        self.seller = create_user(db=self.session, email="seller@example.com")
        self.seller_token = create_token(db=self.session, user=self.seller)

        app.dependency_overrides[get_db_sync] = get_db_sync_for_test(db=self.session)
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        self.session.close()
        self.trans.rollback()
        self.connection.close()

    def test_list_events_with_available_tickets(self):
        # Given
        event = create_event(db=self.session, title="Zakir Hussain Tribute Night")
        other = create_event(
            db=self.session, title="Zakir Khan Live", category="Comedy"
        )
        create_ticket(db=self.session, event=event, seller=self.seller)
        create_ticket(db=self.session, event=event, seller=self.seller)
        create_ticket(
            db=self.session,
            event=event,
            seller=self.seller,
            status=TicketStatus.SOLD,
            buyer=self.admin,
        )

        # When
        response = self.client.get("/events/?search=Zakir")

        # Expect
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["count"], 2)
        self.assertEqual(data["page"], 1)
        self.assertEqual(data["page_size"], 12)
        by_id = {item["id"]: item for item in data["results"]}
        self.assertEqual(by_id[str(event.id)]["available_tickets"], 2)
        self.assertEqual(by_id[str(other.id)]["available_tickets"], 0)

        # When category filter
        response = self.client.get("/events/?search=Zakir&category=Comedy")

        # Expect only the comedy show
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["count"], 1)
        self.assertEqual(response.json()["results"][0]["id"], str(other.id))

    def test_list_events_by_date_range(self):
        now = utc_now()
        soon = create_event(
            db=self.session, title="Sunburn Goa Soon", date=now + timedelta(days=3)
        )
        create_event(
            db=self.session, title="Sunburn Goa Later", date=now + timedelta(days=90)
        )

        response = self.client.get(
            "/events/",
            params={
                "search": "Sunburn Goa",
                "start_date": (now + timedelta(days=1)).isoformat(),
                "end_date": (now + timedelta(days=10)).isoformat(),
            },
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["count"], 1)
        self.assertEqual(response.json()["results"][0]["id"], str(soon.id))

    def test_get_categories(self):
        create_event(db=self.session, title="IPL Final", category="Sports")

        response = self.client.get("/events/categories")

        self.assertEqual(response.status_code, 200)
        self.assertIn("Sports", response.json()["results"])

    def test_get_event_detail(self):
        # Given
        event = create_event(db=self.session)
        cheap = create_ticket(
            db=self.session, event=event, seller=self.seller, price=30000
        )
        create_ticket(db=self.session, event=event, seller=self.seller, price=90000)

        # When
        response = self.client.get(f"/events/{event.id}")

        # Expect
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["title"], event.title)
        self.assertEqual(data["available_tickets"], 2)
        self.assertEqual(data["tickets"][0]["id"], str(cheap.id))

    def test_get_event_not_found(self):
        response = self.client.get("/events/6f1c7a1e-0000-4000-8000-000000000000")

        self.assertEqual(response.status_code, 404)

    def test_admin_create_update_delete_event(self):
        # When 1
        response = self.client.post(
            "/events/",
            json={
                "title": "Arijit Singh Live",
                "description": "One night only",
                "venue": "Jawaharlal Nehru Stadium, Delhi",
                "date": (utc_now() + timedelta(days=60)).isoformat(),
                "category": "Concert",
                "capacity": 60000,
            },
            headers=auth_header(self.admin_token),
        )

        # Expect 1
        self.assertEqual(response.status_code, 201)
        event_id = response.json()["id"]

        # When 2
        response = self.client.put(
            f"/events/{event_id}",
            json={"venue": "Eden Gardens, Kolkata"},
            headers=auth_header(self.admin_token),
        )

        # Expect 2
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["venue"], "Eden Gardens, Kolkata")
        self.assertEqual(response.json()["title"], "Arijit Singh Live")

        # When 3
        response = self.client.delete(
            f"/events/{event_id}", headers=auth_header(self.admin_token)
        )

        # Expect 3
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(self.session.get(Event, uuid.UUID(event_id)))

    def test_create_event_invalid_capacity(self):
        response = self.client.post(
            "/events/",
            json={
                "title": "Empty Hall",
                "venue": "Nowhere",
                "date": (utc_now() + timedelta(days=1)).isoformat(),
                "category": "Concert",
                "capacity": 0,
            },
            headers=auth_header(self.admin_token),
        )

        self.assertEqual(response.status_code, 422)

    def test_non_admin_cannot_manage_events(self):
        event = create_event(db=self.session)

        response = self.client.post(
            "/events/",
            json={
                "title": "Not Allowed",
                "venue": "Somewhere",
                "date": (utc_now() + timedelta(days=1)).isoformat(),
                "category": "Concert",
                "capacity": 10,
            },
            headers=auth_header(self.seller_token),
        )
        self.assertEqual(response.status_code, 403)

        response = self.client.put(
            f"/events/{event.id}",
            json={"title": "Renamed"},
            headers=auth_header(self.seller_token),
        )
        self.assertEqual(response.status_code, 403)

        response = self.client.delete(f"/events/{event.id}")
        self.assertEqual(response.status_code, 401)

    def test_delete_event_with_tickets_is_refused(self):
        event = create_event(db=self.session)
        create_ticket(db=self.session, event=event, seller=self.seller)

        response = self.client.delete(
            f"/events/{event.id}", headers=auth_header(self.admin_token)
        )

        self.assertEqual(response.status_code, 400)
        self.assertIsNotNone(self.session.get(Event, event.id))
