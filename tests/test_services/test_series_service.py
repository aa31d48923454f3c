# tests/test_services/test_series_service.py
import unittest
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker

from core.database import Base
from core.exceptions import BookingConflict
import models_bootstrap  # noqa: F401
from user.models import User, UserRole
from subscription.models import Subscription
from sessions.models import TutorSession, SessionStatus
from booking import series
from booking.schema import Cadence

UTC = timezone.utc


def at(day, hour, minute=0):
    return datetime(2030, 1, 1, hour, minute, tzinfo=UTC) + timedelta(days=day - 1)


class SeriesServiceTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        TestingSession = sessionmaker(bind=self.engine, future=True)
        self.db: Session = TestingSession()

        tutor = User(name="Tess Tutor", role=UserRole.tutor)
        parent = User(name="Pat Parent", role=UserRole.parent)
        parent2 = User(name="Sam Parent", role=UserRole.parent)
        admin = User(name="Ada Admin", role=UserRole.admin)
        self.db.add_all([tutor, parent, parent2, admin])
        self.db.flush()
        sub = Subscription(parent_id=parent.id, tutor_id=tutor.id)
        sub2 = Subscription(parent_id=parent2.id, tutor_id=tutor.id)
        empty = Subscription(parent_id=parent.id, tutor_id=tutor.id)
        self.db.add_all([sub, sub2, empty])
        self.db.flush()

        # weekly Monday series at 10:00, plus one already completed session
        self.series_ids = []
        for day in (7, 14, 21):
            row = self.add_session(tutor.id, parent.id, sub.id, at(day, 10))
            self.series_ids.append(row.id)
        done = self.add_session(tutor.id, parent.id, sub.id, at(6, 10), status=SessionStatus.completed)
        self.db.commit()

        self.tutor_id = tutor.id
        self.parent, self.parent2, self.admin = parent, parent2, admin
        self.parent2_id = parent2.id
        self.sub_id, self.sub2_id, self.empty_id = sub.id, sub2.id, empty.id
        self.done_id = done.id
        self.now = datetime(2030, 1, 1, tzinfo=UTC)

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def add_session(self, tutor_id, parent_id, sub_id, start, minutes=60, status=SessionStatus.scheduled):
        row = TutorSession(tutor_id=tutor_id, parent_id=parent_id, subscription_id=sub_id, status=status)
        row.set_schedule(start, minutes)
        self.db.add(row)
        self.db.flush()
        return row

    def starts(self, sub_id):
        self.db.expire_all()
        rows = self.db.scalars(
            select(TutorSession)
            .where(TutorSession.subscription_id == sub_id, TutorSession.status == SessionStatus.scheduled)
            .order_by(TutorSession.scheduled_at)
        )
        return [r.start for r in rows]

    # ---- reschedule_series ----

    def test_weekly_reschedule_spacing(self):
        count = series.reschedule_series(
            self.db, self.sub_id, at(9, 15), Cadence.weekly, user=self.parent, now=self.now
        )
        self.assertEqual(count, 3)
        self.assertEqual(self.starts(self.sub_id), [at(9, 15), at(16, 15), at(23, 15)])

    def test_biweekly_reschedule_spacing(self):
        series.reschedule_series(self.db, self.sub_id, at(9, 15), Cadence.biweekly, user=self.parent, now=self.now)
        self.assertEqual(self.starts(self.sub_id), [at(9, 15), at(23, 15), at(37, 15)])

    def test_reschedule_keeps_durations(self):
        series.reschedule_series(self.db, self.sub_id, at(9, 15), Cadence.weekly, user=self.parent, now=self.now)
        rows = self.db.scalars(select(TutorSession).where(TutorSession.id.in_(self.series_ids)))
        for r in rows:
            self.assertEqual(r.duration_minutes, 60)
            self.assertEqual(r.end - r.start, timedelta(minutes=60))

    def test_shift_onto_own_sibling_slots(self):
        # the first two targets are currently held by later sessions of the same series
        count = series.reschedule_series(
            self.db, self.sub_id, at(14, 10), Cadence.weekly, user=self.parent, now=self.now
        )
        self.assertEqual(count, 3)
        self.assertEqual(self.starts(self.sub_id), [at(14, 10), at(21, 10), at(28, 10)])

    def test_conflict_rolls_back_every_move(self):
        self.add_session(self.tutor_id, self.parent2_id, self.sub2_id, at(16, 15, 30))
        self.db.commit()
        with self.assertRaises(BookingConflict) as cm:
            series.reschedule_series(self.db, self.sub_id, at(9, 15), Cadence.weekly, user=self.parent, now=self.now)
        self.assertEqual(cm.exception.status_code, 409)
        self.assertEqual(self.starts(self.sub_id), [at(7, 10), at(14, 10), at(21, 10)])

    def test_completed_sessions_are_not_moved(self):
        series.reschedule_series(self.db, self.sub_id, at(9, 15), Cadence.weekly, user=self.parent, now=self.now)
        self.db.expire_all()
        self.assertEqual(self.db.get(TutorSession, self.done_id).start, at(6, 10))

    def test_reschedule_into_past_400(self):
        with self.assertRaises(HTTPException) as cm:
            series.reschedule_series(
                self.db, self.sub_id, self.now - timedelta(hours=1), Cadence.weekly, user=self.parent, now=self.now
            )
        self.assertEqual(cm.exception.status_code, 400)

    def test_reschedule_without_scheduled_sessions_404(self):
        with self.assertRaises(HTTPException) as cm:
            series.reschedule_series(self.db, self.empty_id, at(9, 15), Cadence.weekly, user=self.parent, now=self.now)
        self.assertEqual(cm.exception.status_code, 404)

    def test_reschedule_foreign_subscription_403(self):
        with self.assertRaises(HTTPException) as cm:
            series.reschedule_series(self.db, self.sub_id, at(9, 15), Cadence.weekly, user=self.parent2, now=self.now)
        self.assertEqual(cm.exception.status_code, 403)

    def test_admin_may_reschedule(self):
        count = series.reschedule_series(
            self.db, self.sub_id, at(9, 15), Cadence.weekly, user=self.admin, now=self.now
        )
        self.assertEqual(count, 3)

    # ---- cancel_series ----

    def test_cancel_series_cancels_scheduled_only(self):
        count = series.cancel_series(self.db, self.sub_id, user=self.parent, reason="moving away")
        self.assertEqual(count, 3)
        self.db.expire_all()
        for sid in self.series_ids:
            row = self.db.get(TutorSession, sid)
            self.assertEqual(row.status, SessionStatus.cancelled)
            self.assertEqual(row.notes, "Canceled: moving away")
        self.assertEqual(self.db.get(TutorSession, self.done_id).status, SessionStatus.completed)

    def test_cancel_series_default_note(self):
        series.cancel_series(self.db, self.sub_id, user=self.parent)
        self.db.expire_all()
        self.assertEqual(self.db.get(TutorSession, self.series_ids[0]).notes, "Canceled by parent")

    def test_cancel_series_twice_returns_zero(self):
        series.cancel_series(self.db, self.sub_id, user=self.parent)
        self.assertEqual(series.cancel_series(self.db, self.sub_id, user=self.parent), 0)

    def test_cancel_series_foreign_subscription_403(self):
        with self.assertRaises(HTTPException) as cm:
            series.cancel_series(self.db, self.sub_id, user=self.parent2)
        self.assertEqual(cm.exception.status_code, 403)


if __name__ == "__main__":
    unittest.main()
