# core/tests/test_history.py

import uuid
from types import SimpleNamespace

from django.core.exceptions import ValidationError as DjangoValidationError
from django.test import SimpleTestCase, TestCase

from core.exceptions import InvalidTransition
from core.history import append_event, get_history, replay_status
from core.models import StatusHistoryEvent

TRANSITIONS = {
    "pending": {"approved", "canceled"},
    "approved": {"delivered"},
}


def ev(old, new, seq=None):
    return SimpleNamespace(old_status=old, new_status=new, sequence=seq)


class ReplayStatusTests(SimpleTestCase):
    def test_replay_follows_transitions(self):
        events = [ev("", "pending"), ev("pending", "approved"), ev("approved", "delivered")]
        self.assertEqual(replay_status(events, transitions=TRANSITIONS, initial_status="pending"), "delivered")

    def test_empty_log_replays_to_empty(self):
        self.assertEqual(replay_status([], transitions=TRANSITIONS, initial_status="pending"), "")

    def test_gap_in_log_is_rejected(self):
        events = [ev("", "pending"), ev("approved", "delivered", 2)]
        with self.assertRaises(InvalidTransition):
            replay_status(events, transitions=TRANSITIONS, initial_status="pending")

    def test_illegal_step_is_rejected(self):
        events = [ev("", "pending"), ev("pending", "delivered")]
        with self.assertRaises(InvalidTransition):
            replay_status(events, transitions=TRANSITIONS, initial_status="pending")

    def test_log_must_start_in_initial_status(self):
        with self.assertRaises(InvalidTransition):
            replay_status([ev("", "approved")], transitions=TRANSITIONS, initial_status="pending")


class AppendEventTests(TestCase):
    def setUp(self):
        self.entity_id = uuid.uuid4()

    def _append(self, old, new):
        return append_event(
            entity_type=StatusHistoryEvent.EntityType.ORDER,
            entity_id=self.entity_id,
            old_status=old,
            new_status=new,
        )

    def test_sequence_is_contiguous_per_entity(self):
        self._append("", "pending")
        self._append("pending", "approved")

        other = append_event(
            entity_type=StatusHistoryEvent.EntityType.ORDER,
            entity_id=uuid.uuid4(),
            old_status="",
            new_status="pending",
        )

        history = get_history(entity_type=StatusHistoryEvent.EntityType.ORDER, entity_id=self.entity_id)
        self.assertEqual([e.sequence for e in history], [1, 2])
        self.assertEqual([e.new_status for e in history], ["pending", "approved"])
        self.assertEqual(other.sequence, 1)

    def test_events_are_immutable(self):
        event = self._append("", "pending")

        event.notes = "edited"
        with self.assertRaises(DjangoValidationError):
            event.save()
        with self.assertRaises(DjangoValidationError):
            event.delete()
