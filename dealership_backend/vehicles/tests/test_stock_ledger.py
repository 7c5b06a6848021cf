# vehicles/tests/test_stock_ledger.py

import uuid

from django.test import TestCase

from core.exceptions import InsufficientStock, ValidationError
from core.tests.factories import (
    make_dealership,
    make_manufacturer,
    make_vehicle,
    stock_dealer,
    stock_manufacturer,
)
from vehicles.models import StockEntry, StockMovement, StockReservation
from vehicles.services import stock_ledger

ORDER = "order"


class StockLedgerTests(TestCase):
    """
    GUARANTEES:
    - remaining / available never go negative
    - dealer stock is consumed before the manufacturer pool
    - every quantity change leaves a StockMovement
    """

    def setUp(self):
        self.manufacturer = make_manufacturer()
        self.dealership = make_dealership()
        self.vehicle = make_vehicle(self.manufacturer)

    def _sell(self, quantity, reference_id=None, color="Red"):
        return stock_ledger.allocate_sale(
            vehicle=self.vehicle,
            color=color,
            quantity=quantity,
            dealership_id=self.dealership.id,
            manufacturer_id=self.manufacturer.id,
            reference_type=ORDER,
            reference_id=reference_id or uuid.uuid4(),
        )

    # ======================================================
    # RECEIVE
    # ======================================================

    def test_receive_is_additive_and_logged(self):
        stock_manufacturer(self.vehicle, "Red", 3)
        entry = stock_manufacturer(self.vehicle, "Red", 2)

        self.assertEqual(entry.total_quantity, 5)
        self.assertEqual(StockEntry.objects.count(), 1)
        self.assertEqual(
            StockMovement.objects.filter(entry=entry, reason=StockMovement.Reason.RECEIPT).count(),
            2,
        )

    def test_receive_rejects_non_positive_quantity(self):
        for bad in (0, -1, "x", True):
            with self.subTest(quantity=bad):
                with self.assertRaises(ValidationError):
                    stock_manufacturer(self.vehicle, "Red", bad)

    # ======================================================
    # SALE
    # ======================================================

    def test_oversell_is_rejected_without_side_effects(self):
        entry = stock_manufacturer(self.vehicle, "Red", 2)

        with self.assertRaises(InsufficientStock) as ctx:
            self._sell(3)

        self.assertEqual(ctx.exception.details["available"], 2)
        entry.refresh_from_db()
        self.assertEqual(entry.total_sold, 0)
        self.assertFalse(StockMovement.objects.filter(reason=StockMovement.Reason.SALE).exists())

    def test_dealer_stock_is_used_before_manufacturer_pool(self):
        dealer_entry = stock_dealer(self.vehicle, "Red", 1, dealership=self.dealership)
        pool_entry = stock_manufacturer(self.vehicle, "Red", 5)

        movements = self._sell(3)

        dealer_entry.refresh_from_db()
        pool_entry.refresh_from_db()
        self.assertEqual(dealer_entry.remaining, 0)
        self.assertEqual(pool_entry.remaining, 3)
        self.assertEqual(sorted(m.quantity for m in movements), [1, 2])

    def test_selling_the_last_unit_keeps_the_row(self):
        stock_manufacturer(self.vehicle, "Red", 1)
        self._sell(1)

        rows = stock_ledger.by_color_breakdown(vehicle=self.vehicle)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["remaining"], 0)
        self.assertFalse(rows[0]["is_available"])
        self.assertEqual(stock_ledger.available_colors(vehicle=self.vehicle), [])

    def test_unknown_color_has_no_stock(self):
        stock_manufacturer(self.vehicle, "Red", 1)
        with self.assertRaises(InsufficientStock):
            self._sell(1, color="Blue")

    # ======================================================
    # HOLDS
    # ======================================================

    def test_reserve_lowers_available_and_release_restores_it(self):
        entry = stock_manufacturer(self.vehicle, "Red", 3)
        ref = uuid.uuid4()

        stock_ledger.reserve_for_sale(
            vehicle=self.vehicle,
            color="Red",
            quantity=2,
            dealership_id=self.dealership.id,
            manufacturer_id=self.manufacturer.id,
            reference_type=ORDER,
            reference_id=ref,
        )
        entry.refresh_from_db()
        self.assertEqual(entry.available, 1)
        self.assertEqual(entry.remaining, 3)

        # another order cannot take held units
        with self.assertRaises(InsufficientStock):
            self._sell(2)

        self.assertEqual(stock_ledger.release(reference_type=ORDER, reference_id=ref), 2)
        self.assertEqual(stock_ledger.release(reference_type=ORDER, reference_id=ref), 0)

        entry.refresh_from_db()
        self.assertEqual(entry.available, 3)
        self.assertEqual(
            StockReservation.objects.get(reference_id=ref).status,
            StockReservation.Status.RELEASED,
        )

    def test_sale_consumes_own_holds(self):
        entry = stock_manufacturer(self.vehicle, "Red", 2)
        ref = uuid.uuid4()
        stock_ledger.reserve_for_sale(
            vehicle=self.vehicle,
            color="Red",
            quantity=2,
            dealership_id=self.dealership.id,
            manufacturer_id=self.manufacturer.id,
            reference_type=ORDER,
            reference_id=ref,
        )

        self._sell(2, reference_id=ref)

        entry.refresh_from_db()
        self.assertEqual(entry.total_sold, 2)
        self.assertEqual(entry.reserved_quantity, 0)
        self.assertEqual(
            StockReservation.objects.get(reference_id=ref).status,
            StockReservation.Status.CONSUMED,
        )

    # ======================================================
    # REVERSAL / ADJUSTMENT
    # ======================================================

    def test_reverse_sale_restores_exactly_once(self):
        entry = stock_manufacturer(self.vehicle, "Red", 2)
        ref = uuid.uuid4()
        self._sell(2, reference_id=ref)

        first = stock_ledger.reverse_sale(reference_type=ORDER, reference_id=ref)
        second = stock_ledger.reverse_sale(reference_type=ORDER, reference_id=ref)

        entry.refresh_from_db()
        self.assertEqual(len(first), 1)
        self.assertEqual(second, [])
        self.assertEqual(entry.total_sold, 0)
        self.assertEqual(entry.remaining, 2)

    def test_adjust_total_before_any_sale(self):
        entry = stock_manufacturer(self.vehicle, "Red", 2)

        entry = stock_ledger.adjust_total(entry=entry, new_total=5)
        self.assertEqual(entry.total_quantity, 5)

        movement = StockMovement.objects.get(entry=entry, reason=StockMovement.Reason.ADJUSTMENT)
        self.assertEqual(movement.quantity, 3)
        self.assertEqual(movement.movement_type, StockMovement.MovementType.IN)

    def test_adjust_total_refused_after_a_sale(self):
        entry = stock_manufacturer(self.vehicle, "Red", 2)
        self._sell(1)

        with self.assertRaises(ValidationError):
            stock_ledger.adjust_total(entry=entry, new_total=10)

    def test_adjust_total_cannot_drop_below_holds(self):
        entry = stock_manufacturer(self.vehicle, "Red", 3)
        stock_ledger.reserve(entry=entry, quantity=2, reference_type=ORDER, reference_id=uuid.uuid4())

        with self.assertRaises(InsufficientStock):
            stock_ledger.adjust_total(entry=entry, new_total=1)

    # ======================================================
    # READ MODELS
    # ======================================================

    def test_breakdown_can_be_scoped_to_one_owner(self):
        stock_dealer(self.vehicle, "Red", 1, dealership=self.dealership)
        stock_manufacturer(self.vehicle, "Red", 4)
        stock_manufacturer(self.vehicle, "White", 2)

        everyone = {r["color"]: r["total"] for r in stock_ledger.by_color_breakdown(vehicle=self.vehicle)}
        self.assertEqual(everyone, {"Red": 5, "White": 2})

        dealer_only = stock_ledger.by_color_breakdown(
            vehicle=self.vehicle,
            owner_type=StockEntry.OwnerType.DEALER,
            owner_id=self.dealership.id,
        )
        self.assertEqual([(r["color"], r["total"]) for r in dealer_only], [("Red", 1)])

        summary = stock_ledger.stock_summary(vehicle=self.vehicle)
        self.assertEqual(summary["total_quantity"], 7)
        self.assertEqual(summary["available_colors"], ["Red", "White"])
