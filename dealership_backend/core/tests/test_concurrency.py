# core/tests/test_concurrency.py

from django.db.models import F, Q
from django.test import TestCase

from core.concurrency import guarded_update
from core.exceptions import ConcurrentModification
from core.tests.factories import WorkflowWorld, stock_manufacturer
from vehicles.models import StockEntry


class GuardedUpdateTests(TestCase):
    """
    GUARANTEES:
    - a write against a stale version is refused and changes nothing
    - a failing guard is refused and changes nothing
    - a successful write bumps version and refreshes the instance
    """

    def setUp(self):
        self.w = WorkflowWorld()
        self.entry = stock_manufacturer(self.w.vehicle, "Red", 3)

    def test_stale_version_is_refused(self):
        stale = StockEntry.objects.get(pk=self.entry.pk)

        # another writer gets there first
        stock_manufacturer(self.w.vehicle, "Red", 1)

        with self.assertRaises(ConcurrentModification) as ctx:
            guarded_update(stale, total_sold=F("total_sold") + 1)
        self.assertEqual(ctx.exception.details["expected_version"], stale.version)

        fresh = StockEntry.objects.get(pk=self.entry.pk)
        self.assertEqual(fresh.total_sold, 0)
        self.assertEqual(fresh.total_quantity, 4)
        self.assertEqual(fresh.version, stale.version + 1)

    def test_failing_guard_is_refused(self):
        with self.assertRaises(ConcurrentModification):
            guarded_update(
                self.entry,
                guard=Q(total_quantity__gte=F("total_sold") + 4),
                total_sold=F("total_sold") + 4,
            )

        self.entry.refresh_from_db()
        self.assertEqual(self.entry.total_sold, 0)

    def test_success_bumps_version(self):
        version = self.entry.version
        guarded_update(self.entry, total_sold=F("total_sold") + 1)

        self.assertEqual(self.entry.version, version + 1)
        self.assertEqual(self.entry.total_sold, 1)
