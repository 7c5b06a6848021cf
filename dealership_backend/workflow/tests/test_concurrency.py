# workflow/tests/test_concurrency.py

"""
Threaded races against the file-backed test database.

GUARANTEES:
- remaining never goes negative for concurrent sellers on one color
- paid_amount never exceeds final_amount under concurrent deposits
- paid_amount never exceeds total_amount under concurrent debt payments
"""

import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor

from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import OperationalError, connection
from django.test import TransactionTestCase

from core.exceptions import ConcurrentModification, WorkflowError
from core.tests.factories import WorkflowWorld, stock_manufacturer
from debts.models import ManufacturerDebt
from debts.services import debt_ledger
from orders.models import Order, OrderPayment
from orders.services import order_fulfillment
from vehicles.models import StockMovement
from vehicles.services import stock_ledger

RETRYABLE = (ConcurrentModification, OperationalError)


def race(fn, workers: int) -> list[str]:
    """
    Start `workers` threads on a barrier and return one outcome code each:
    "ok" or the WorkflowError code. Conflicts are retried like a client would.
    """
    barrier = threading.Barrier(workers)

    def run(index):
        try:
            barrier.wait()
            for attempt in range(20):
                try:
                    fn(index)
                    return "ok"
                except RETRYABLE:
                    time.sleep(0.01 * (attempt + 1))
                except WorkflowError as exc:
                    return exc.code
            return "gave_up"
        finally:
            connection.close()

    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(run, range(workers)))


class ConcurrentSellerTests(TransactionTestCase):
    def setUp(self):
        self.w = WorkflowWorld()
        self.entry = stock_manufacturer(self.w.vehicle, "Red", 3)

    def test_sellers_on_one_color_never_oversell(self):
        def sell(_):
            stock_ledger.allocate_sale(
                vehicle=self.w.vehicle,
                color="Red",
                quantity=1,
                dealership_id=self.w.dealership.id,
                manufacturer_id=self.w.manufacturer.id,
                reference_type="order",
                reference_id=uuid.uuid4(),
            )

        outcomes = race(sell, workers=8)

        self.entry.refresh_from_db()
        self.assertGreaterEqual(self.entry.remaining, 0)
        self.assertLessEqual(self.entry.total_sold, self.entry.total_quantity)

        self.assertEqual(outcomes.count("ok"), 3)
        self.assertEqual(outcomes.count("insufficient_stock"), 5)
        self.assertEqual(self.entry.total_sold, 3)
        self.assertEqual(
            StockMovement.objects.filter(entry=self.entry, reason=StockMovement.Reason.SALE).count(), 3
        )


class ConcurrentPaymentTests(TransactionTestCase):
    def setUp(self):
        self.w = WorkflowWorld()

    def test_concurrent_deposits_record_once(self):
        order = order_fulfillment.create_order(
            dealership=self.w.dealership,
            customer=self.w.customer,
            salesperson=self.w.staff,
            items=[{"vehicle_id": self.w.vehicle.id, "color": "Red"}],
        )
        order = order_fulfillment.confirm_order(order=order)
        order_fulfillment.upload_signed_contract(
            order=order,
            files=[SimpleUploadedFile("signed.pdf", b"%PDF-1.4", content_type="application/pdf")],
        )

        def deposit(index):
            order_fulfillment.record_deposit(
                order=order, amount=300_000_000, idempotency_key=f"dep-{index}"
            )

        outcomes = race(deposit, workers=5)

        order.refresh_from_db()
        self.assertLessEqual(order.paid_amount, order.final_amount)
        self.assertEqual(outcomes.count("ok"), 1)
        self.assertEqual(outcomes.count("invalid_transition"), 4)
        self.assertEqual(order.paid_amount, 300_000_000)
        self.assertEqual(order.status, Order.Status.HALF_PAYMENT)
        self.assertEqual(OrderPayment.objects.filter(order=order).count(), 1)

    def test_concurrent_debt_payments_never_overpay(self):
        debt = debt_ledger.accrue(
            dealership=self.w.dealership,
            manufacturer=self.w.manufacturer,
            lines=[{"vehicle": self.w.vehicle, "color": "Red", "unit_price": 1000, "quantity": 1}],
        )

        def pay(_):
            debt_ledger.record_payment(debt=debt, amount=300)

        outcomes = race(pay, workers=5)

        debt = ManufacturerDebt.objects.get(pk=debt.pk)
        self.assertLessEqual(debt.paid_amount, debt.total_amount)
        self.assertEqual(outcomes.count("ok"), 3)
        self.assertEqual(outcomes.count("insufficient_balance"), 2)
        self.assertEqual(debt.paid_amount, 900)
        self.assertEqual(debt.payments.count(), 3)
