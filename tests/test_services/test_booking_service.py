# tests/test_services/test_booking_service.py
import unittest
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from core.database import Base
from core.exceptions import BookingConflict
import models_bootstrap  # noqa: F401
from user.models import User, UserRole
from subscription.models import Subscription
from sessions.models import TutorSession, SessionStatus
from management.tokens import is_valid_booking_token
from booking import service
from booking.schema import BookingCreate, BookingCreatePayload

UTC = timezone.utc
PLUS_TWO = timezone(timedelta(hours=2))


def at(day, hour, minute=0):
    return datetime(2030, 1, day, hour, minute, tzinfo=UTC)


class BookingServiceTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        TestingSession = sessionmaker(bind=self.engine, future=True)
        self.db: Session = TestingSession()

        # --- seed users ---
        tutor = User(name="Tess Tutor", email="tess@example.com", role=UserRole.tutor)
        tutor2 = User(name="Olaf Tutor", role=UserRole.tutor)
        parent = User(name="Pat Parent", email="pat@example.com", role=UserRole.parent)
        parent2 = User(name="Sam Parent", role=UserRole.parent)
        admin = User(name="Ada Admin", role=UserRole.admin)
        self.db.add_all([tutor, tutor2, parent, parent2, admin])
        self.db.flush()

        # --- seed subscriptions ---
        sub = Subscription(parent_id=parent.id, tutor_id=tutor.id)
        sub2 = Subscription(parent_id=parent2.id, tutor_id=tutor.id)
        self.db.add_all([sub, sub2])
        self.db.commit()

        self.tutor, self.tutor2 = tutor, tutor2
        self.parent, self.parent2, self.admin = parent, parent2, admin
        self.sub_id, self.sub2_id = sub.id, sub2.id
        self.now = datetime(2030, 1, 1, tzinfo=UTC)

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def dto(self, start, minutes=60, tutor_id=None, sub_id=None, parent_id=None):
        return BookingCreate(
            tutor_id=tutor_id or self.tutor.id,
            parent_id=parent_id or self.parent.id,
            subscription_id=sub_id or self.sub_id,
            scheduled_at=start,
            duration_minutes=minutes,
        )

    # ---- book_session ----

    def test_book_session_inserts_scheduled_row(self):
        row = service.book_session(self.db, self.dto(at(7, 10)), now=self.now)
        self.assertIsInstance(row.id, int)
        self.assertEqual(row.status, SessionStatus.scheduled)
        self.assertEqual(row.start, at(7, 10))
        self.assertEqual(row.end, at(7, 11))
        self.assertTrue(is_valid_booking_token(row.management_token))

    def test_book_session_tokens_are_unique(self):
        a = service.book_session(self.db, self.dto(at(7, 10)), now=self.now)
        b = service.book_session(self.db, self.dto(at(7, 11)), now=self.now)
        self.assertNotEqual(a.management_token, b.management_token)

    def test_book_session_overlap_raises_conflict(self):
        service.book_session(self.db, self.dto(at(7, 10)), now=self.now)
        with self.assertRaises(BookingConflict) as cm:
            service.book_session(self.db, self.dto(at(7, 10, 30), sub_id=self.sub2_id, parent_id=self.parent2.id), now=self.now)
        self.assertEqual(cm.exception.status_code, 409)
        count = self.db.query(TutorSession).count()
        self.assertEqual(count, 1)

    def test_book_session_contained_range_conflicts(self):
        service.book_session(self.db, self.dto(at(7, 10), minutes=120), now=self.now)
        with self.assertRaises(BookingConflict):
            service.book_session(self.db, self.dto(at(7, 10, 30), minutes=30), now=self.now)

    def test_book_session_back_to_back_is_allowed(self):
        service.book_session(self.db, self.dto(at(7, 10)), now=self.now)
        row = service.book_session(self.db, self.dto(at(7, 11)), now=self.now)
        self.assertEqual(row.start, at(7, 11))

    def test_book_session_other_tutor_same_time(self):
        service.book_session(self.db, self.dto(at(7, 10)), now=self.now)
        row = service.book_session(self.db, self.dto(at(7, 10), tutor_id=self.tutor2.id), now=self.now)
        self.assertEqual(row.tutor_id, self.tutor2.id)

    def test_book_session_cancelled_session_frees_range(self):
        first = service.book_session(self.db, self.dto(at(7, 10)), now=self.now)
        first.status = SessionStatus.cancelled
        self.db.commit()
        row = service.book_session(self.db, self.dto(at(7, 10)), now=self.now)
        self.assertNotEqual(row.id, first.id)

    def test_book_session_in_past_400(self):
        with self.assertRaises(HTTPException) as cm:
            service.book_session(self.db, self.dto(self.now - timedelta(hours=1)), now=self.now)
        self.assertEqual(cm.exception.status_code, 400)

    def test_book_session_at_now_400(self):
        with self.assertRaises(HTTPException) as cm:
            service.book_session(self.db, self.dto(self.now), now=self.now)
        self.assertEqual(cm.exception.status_code, 400)

    def test_book_session_unknown_tutor_404(self):
        with self.assertRaises(HTTPException) as cm:
            service.book_session(self.db, self.dto(at(7, 10), tutor_id=999999), now=self.now)
        self.assertEqual(cm.exception.status_code, 404)

    def test_book_session_user_who_is_not_a_tutor_404(self):
        with self.assertRaises(HTTPException) as cm:
            service.book_session(self.db, self.dto(at(7, 10), tutor_id=self.parent2.id), now=self.now)
        self.assertEqual(cm.exception.status_code, 404)

    # ---- create_booking ----

    def test_create_booking_for_own_subscription(self):
        payload = BookingCreatePayload(
            tutor_id=self.tutor.id, subscription_id=self.sub_id, scheduled_at=at(7, 10), duration_minutes=60
        )
        row = service.create_booking(self.db, payload, user=self.parent, now=self.now)
        self.assertEqual(row.parent_id, self.parent.id)
        self.assertEqual(row.subscription_id, self.sub_id)

    def test_create_booking_naive_time_read_as_utc(self):
        payload = BookingCreatePayload(
            tutor_id=self.tutor.id,
            subscription_id=self.sub_id,
            scheduled_at=datetime(2030, 1, 7, 10, 0),
            duration_minutes=45,
        )
        row = service.create_booking(self.db, payload, user=self.parent, now=self.now)
        self.assertEqual(row.start, at(7, 10))
        self.assertEqual(row.end, at(7, 10, 45))

    def test_create_booking_foreign_subscription_403(self):
        payload = BookingCreatePayload(
            tutor_id=self.tutor.id, subscription_id=self.sub2_id, scheduled_at=at(7, 10), duration_minutes=60
        )
        with self.assertRaises(HTTPException) as cm:
            service.create_booking(self.db, payload, user=self.parent, now=self.now)
        self.assertEqual(cm.exception.status_code, 403)

    def test_create_booking_admin_books_for_parent(self):
        payload = BookingCreatePayload(
            tutor_id=self.tutor.id, subscription_id=self.sub2_id, scheduled_at=at(7, 10), duration_minutes=60
        )
        row = service.create_booking(self.db, payload, user=self.admin, now=self.now)
        self.assertEqual(row.parent_id, self.parent2.id)

    def test_create_booking_parent_mismatch_400(self):
        payload = BookingCreatePayload(
            tutor_id=self.tutor.id,
            subscription_id=self.sub_id,
            parent_id=self.parent2.id,
            scheduled_at=at(7, 10),
            duration_minutes=60,
        )
        with self.assertRaises(HTTPException) as cm:
            service.create_booking(self.db, payload, user=self.admin, now=self.now)
        self.assertEqual(cm.exception.status_code, 400)

    def test_create_booking_unknown_subscription_404(self):
        payload = BookingCreatePayload(
            tutor_id=self.tutor.id, subscription_id=999999, scheduled_at=at(7, 10), duration_minutes=60
        )
        with self.assertRaises(HTTPException) as cm:
            service.create_booking(self.db, payload, user=self.parent, now=self.now)
        self.assertEqual(cm.exception.status_code, 404)

    def test_create_booking_offset_time_stored_as_utc(self):
        payload = BookingCreatePayload(
            tutor_id=self.tutor.id,
            subscription_id=self.sub_id,
            scheduled_at=datetime(2030, 1, 7, 12, 0, tzinfo=PLUS_TWO),
            duration_minutes=60,
        )
        row = service.create_booking(self.db, payload, user=self.parent, now=self.now)
        self.assertEqual(row.start, at(7, 10))
        self.assertEqual(row.end, at(7, 11))
        self.db.expire_all()
        stored = self.db.get(TutorSession, row.id)
        self.assertEqual(stored.scheduled_at.replace(tzinfo=None), datetime(2030, 1, 7, 10, 0))

    def test_create_booking_offset_time_conflicts_with_utc_booking(self):
        service.book_session(self.db, self.dto(at(7, 10)), now=self.now)
        payload = BookingCreatePayload(
            tutor_id=self.tutor.id,
            subscription_id=self.sub2_id,
            scheduled_at=datetime(2030, 1, 7, 12, 0, tzinfo=PLUS_TWO),
            duration_minutes=60,
        )
        with self.assertRaises(BookingConflict):
            service.create_booking(self.db, payload, user=self.parent2, now=self.now)
        self.assertEqual(self.db.query(TutorSession).count(), 1)

    def test_create_booking_by_subscription_tutor(self):
        payload = BookingCreatePayload(
            tutor_id=self.tutor.id, subscription_id=self.sub_id, scheduled_at=at(7, 10), duration_minutes=60
        )
        row = service.create_booking(self.db, payload, user=self.tutor, now=self.now)
        self.assertEqual(row.tutor_id, self.tutor.id)
        self.assertEqual(row.parent_id, self.parent.id)

    def test_create_booking_other_tutor_on_subscription_403(self):
        payload = BookingCreatePayload(
            tutor_id=self.tutor2.id, subscription_id=self.sub_id, scheduled_at=at(7, 10), duration_minutes=60
        )
        with self.assertRaises(HTTPException) as cm:
            service.create_booking(self.db, payload, user=self.tutor2, now=self.now)
        self.assertEqual(cm.exception.status_code, 403)
        self.assertEqual(self.db.query(TutorSession).count(), 0)

    def test_create_booking_tutor_not_on_subscription_400(self):
        payload = BookingCreatePayload(
            tutor_id=self.tutor2.id, subscription_id=self.sub_id, scheduled_at=at(7, 10), duration_minutes=60
        )
        with self.assertRaises(HTTPException) as cm:
            service.create_booking(self.db, payload, user=self.parent, now=self.now)
        self.assertEqual(cm.exception.status_code, 400)
        self.assertIn("does not teach", cm.exception.detail)
        self.assertEqual(self.db.query(TutorSession).count(), 0)

    # ---- reschedule_session ----

    def test_reschedule_to_free_time(self):
        row = service.book_session(self.db, self.dto(at(7, 10)), now=self.now)
        moved = service.reschedule_session(self.db, row.id, at(8, 14), parent_id=self.parent.id, now=self.now)
        self.assertEqual(moved.start, at(8, 14))
        self.assertEqual(moved.end, at(8, 15))
        self.assertEqual(moved.duration_minutes, 60)

    def test_reschedule_overlapping_own_old_range(self):
        row = service.book_session(self.db, self.dto(at(7, 10)), now=self.now)
        moved = service.reschedule_session(self.db, row.id, at(7, 10, 30), parent_id=self.parent.id, now=self.now)
        self.assertEqual(moved.start, at(7, 10, 30))

    def test_reschedule_into_other_booking_conflicts_and_keeps_time(self):
        row = service.book_session(self.db, self.dto(at(7, 10)), now=self.now)
        service.book_session(
            self.db, self.dto(at(7, 14), sub_id=self.sub2_id, parent_id=self.parent2.id), now=self.now
        )
        with self.assertRaises(BookingConflict):
            service.reschedule_session(self.db, row.id, at(7, 14, 30), parent_id=self.parent.id, now=self.now)
        self.db.expire_all()
        self.assertEqual(self.db.get(TutorSession, row.id).start, at(7, 10))

    def test_reschedule_cancelled_session_400(self):
        row = service.book_session(self.db, self.dto(at(7, 10)), now=self.now)
        row.status = SessionStatus.cancelled
        self.db.commit()
        with self.assertRaises(HTTPException) as cm:
            service.reschedule_session(self.db, row.id, at(8, 10), parent_id=self.parent.id, now=self.now)
        self.assertEqual(cm.exception.status_code, 400)

    def test_reschedule_into_past_400(self):
        row = service.book_session(self.db, self.dto(at(7, 10)), now=self.now)
        with self.assertRaises(HTTPException) as cm:
            service.reschedule_session(
                self.db, row.id, self.now - timedelta(days=1), parent_id=self.parent.id, now=self.now
            )
        self.assertEqual(cm.exception.status_code, 400)

    def test_reschedule_other_parents_session_403(self):
        row = service.book_session(self.db, self.dto(at(7, 10)), now=self.now)
        with self.assertRaises(HTTPException) as cm:
            service.reschedule_session(self.db, row.id, at(8, 10), parent_id=self.parent2.id, now=self.now)
        self.assertEqual(cm.exception.status_code, 403)

    def test_reschedule_missing_session_404(self):
        with self.assertRaises(HTTPException) as cm:
            service.reschedule_session(self.db, 999999, at(8, 10), parent_id=self.parent.id, now=self.now)
        self.assertEqual(cm.exception.status_code, 404)


if __name__ == "__main__":
    unittest.main()
