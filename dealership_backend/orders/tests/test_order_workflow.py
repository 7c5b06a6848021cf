# orders/tests/test_order_workflow.py

from datetime import timedelta

from django.conf import settings
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.utils import timezone

from core.exceptions import (
    InsufficientBalance,
    InsufficientStock,
    InvalidTransition,
    TooEarlyError,
    ValidationError,
)
from core.tests.factories import WorkflowWorld, stock_manufacturer
from orders.models import Order, OrderContract, OrderPayment
from orders.services import order_fulfillment
from vehicles.models import StockEntry, StockReservation
from vehicles.services import stock_ledger

S = Order.Status
PRICE = 1_000_000_000


def pdf(name="signed.pdf", size=128, content_type="application/pdf"):
    return SimpleUploadedFile(name, b"%" * size, content_type=content_type)


class OrderWorkflowTestBase(TestCase):
    def setUp(self):
        self.w = WorkflowWorld()
        self.pool = stock_manufacturer(self.w.vehicle, "Red", 3)

    def new_order(self, quantity=1, **item):
        return order_fulfillment.create_order(
            dealership=self.w.dealership,
            customer=self.w.customer,
            salesperson=self.w.staff,
            items=[{"vehicle_id": self.w.vehicle.id, "color": "Red", "quantity": quantity, **item}],
        )

    def signed_order(self, quantity=1):
        order = self.new_order(quantity)
        order = order_fulfillment.confirm_order(order=order, user=self.w.staff)
        order_fulfillment.upload_signed_contract(order=order, files=[pdf()], user=self.w.staff)
        return order

    def paid_order(self, quantity=1):
        order = self.signed_order(quantity)
        order, _ = order_fulfillment.record_deposit(order=order, user=self.w.staff)
        order, _ = order_fulfillment.record_full_payment(order=order, user=self.w.staff)
        return order

    def delivered_order(self, *, hours_ago=25, quantity=1):
        order = self.paid_order(quantity)
        return order_fulfillment.deliver(
            order=order,
            recipient={"name": "Nguyen Van A", "phone": "0900000000"},
            actual_date=timezone.now() - timedelta(hours=hours_ago),
            user=self.w.staff,
        )


class OrderCreationTests(OrderWorkflowTestBase):
    def test_create_computes_final_amount_and_first_event(self):
        order = self.new_order(
            quantity=2,
            discount=50_000_000,
            options=[{"option_id": "roof", "name": "Glass roof", "price": 20_000_000}],
            accessories=[{"accessory_id": "mat", "name": "Floor mat", "price": 1_000_000, "quantity": 4}],
        )

        self.assertEqual(order.status, S.PENDING)
        self.assertEqual(order.final_amount, (PRICE - 50_000_000) * 2 + 20_000_000 + 4_000_000)
        self.assertEqual(order.paid_amount, 0)
        self.assertEqual(order.contract.status, OrderContract.Status.UNSIGNED)

        events = order_fulfillment.get_order_history(order)
        self.assertEqual([(e.old_status, e.new_status) for e in events], [("", S.PENDING)])

    def test_discount_above_unit_price_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.new_order(discount=PRICE + 1)
        self.assertFalse(Order.objects.exists())

    def test_empty_items_are_rejected(self):
        with self.assertRaises(ValidationError):
            order_fulfillment.create_order(
                dealership=self.w.dealership, customer=self.w.customer, items=[]
            )

    def test_unknown_payment_method_is_rejected(self):
        with self.assertRaises(ValidationError):
            order_fulfillment.create_order(
                dealership=self.w.dealership,
                customer=self.w.customer,
                items=[{"vehicle_id": self.w.vehicle.id, "color": "Red"}],
                payment_method="barter",
            )


class OrderLifecycleTests(OrderWorkflowTestBase):
    def test_happy_path_to_completed(self):
        order = self.delivered_order()

        self.pool.refresh_from_db()
        self.assertEqual(self.pool.total_sold, 1)
        self.assertEqual(order.status, S.DELIVERED)
        self.assertEqual(order.delivery_status, Order.DeliveryStatus.DELIVERED)

        order = order_fulfillment.complete(order=order, user=self.w.manager)
        self.assertEqual(order.status, S.COMPLETED)
        self.assertIsNotNone(order.completed_at)

        events = order_fulfillment.get_order_history(order)
        self.assertEqual(
            [e.new_status for e in events],
            [S.PENDING, S.CONFIRMED, S.HALF_PAYMENT, S.FULLY_PAYMENT, S.DELIVERED, S.COMPLETED],
        )
        self.assertEqual(order_fulfillment.replay_order_status(events), order.status)
        self.assertEqual([e.sequence for e in events], list(range(1, len(events) + 1)))

    def test_skipping_a_step_is_an_invalid_transition(self):
        order = self.new_order()
        with self.assertRaises(InvalidTransition):
            order_fulfillment.deliver(order=order, recipient={"name": "A", "phone": "1"})

    def test_complete_waits_for_the_minimum_hours(self):
        order = self.delivered_order(hours_ago=1)

        with self.assertRaises(TooEarlyError) as ctx:
            order_fulfillment.complete(order=order)
        self.assertGreater(ctx.exception.remaining_seconds, 22 * 3600)

        order.refresh_from_db()
        self.assertEqual(order.status, S.DELIVERED)

    def test_complete_boundary_is_inclusive(self):
        order = self.delivered_order(hours_ago=1)
        hours = settings.WORKFLOW["ORDER_COMPLETION_MIN_HOURS"]
        boundary = order.delivered_at + timedelta(hours=hours)

        with self.assertRaises(TooEarlyError):
            order_fulfillment.complete(order=order, now=boundary - timedelta(seconds=1))

        order = order_fulfillment.complete(order=order, now=boundary)
        self.assertEqual(order.status, S.COMPLETED)

    def test_delivery_date_in_future_is_rejected(self):
        order = self.paid_order()
        with self.assertRaises(ValidationError):
            order_fulfillment.deliver(
                order=order,
                recipient={"name": "A", "phone": "1"},
                actual_date=timezone.now() + timedelta(days=1),
            )

    def test_deliver_without_stock_rolls_back(self):
        order = self.paid_order(quantity=3)
        entry = StockEntry.objects.get(pk=self.pool.pk)
        competitor = self.new_order(quantity=1)

        stock_ledger.allocate_sale(
            vehicle=self.w.vehicle,
            color="Red",
            quantity=1,
            dealership_id=self.w.dealership.id,
            manufacturer_id=self.w.manufacturer.id,
            reference_type="order",
            reference_id=competitor.id,
        )

        with self.assertRaises(InsufficientStock):
            order_fulfillment.deliver(order=order, recipient={"name": "A", "phone": "1"})

        order.refresh_from_db()
        entry.refresh_from_db()
        self.assertEqual(order.status, S.FULLY_PAYMENT)
        self.assertEqual(entry.total_sold, 1)

    def test_schedule_delivery_keeps_status(self):
        order = self.new_order()
        with self.assertRaises(InvalidTransition):
            order_fulfillment.schedule_delivery(order=order, scheduled_date=timezone.localdate())

        order = self.paid_order()
        with self.assertRaises(ValidationError):
            order_fulfillment.schedule_delivery(
                order=order, scheduled_date=timezone.localdate() - timedelta(days=1)
            )

        when = timezone.localdate() + timedelta(days=3)
        order = order_fulfillment.schedule_delivery(order=order, scheduled_date=when, notes="Showroom")
        self.assertEqual(order.status, S.FULLY_PAYMENT)
        self.assertEqual(order.delivery_status, Order.DeliveryStatus.SCHEDULED)
        self.assertEqual(order.delivery_scheduled_date, when)


class ContractTests(OrderWorkflowTestBase):
    def test_generate_fills_defaults_without_status_change(self):
        order = self.new_order()
        contract = order_fulfillment.generate_contract(order=order, user=self.w.staff)

        order.refresh_from_db()
        self.assertEqual(order.status, S.PENDING)
        self.assertEqual(contract.status, OrderContract.Status.GENERATED)
        self.assertTrue(contract.contract_number.startswith("HD"))
        self.assertEqual(
            contract.delivery_date - contract.contract_date,
            timedelta(days=settings.WORKFLOW["CONTRACT_DELIVERY_LEAD_DAYS"]),
        )

    def test_generate_only_while_pending(self):
        order = order_fulfillment.confirm_order(order=self.new_order())
        with self.assertRaises(InvalidTransition):
            order_fulfillment.generate_contract(order=order)

    def test_upload_reports_partial_success(self):
        order = self.new_order()
        result = order_fulfillment.upload_signed_contract(
            order=order,
            files=[
                pdf("scan.pdf"),
                pdf("notes.txt", content_type="text/plain"),
                pdf("scan.pdf"),
                pdf("photo.jpg", content_type="image/jpeg"),
            ],
        )

        self.assertEqual(result["succeeded"], ["scan.pdf", "photo.jpg"])
        self.assertEqual([f["name"] for f in result["failed"]], ["notes.txt", "scan.pdf"])
        self.assertEqual(result["contract"].status, OrderContract.Status.SIGNED)

    @override_settings(WORKFLOW={**settings.WORKFLOW, "CONTRACT_UPLOAD_MAX_BYTES": 100})
    def test_upload_with_only_bad_files_stores_nothing(self):
        order = self.new_order()
        with self.assertRaises(ValidationError) as ctx:
            order_fulfillment.upload_signed_contract(order=order, files=[pdf(size=100)])

        self.assertEqual(len(ctx.exception.details["failed"]), 1)
        self.assertFalse(OrderContract.objects.get(order=order).is_signed)


class PaymentTests(OrderWorkflowTestBase):
    def test_deposit_requires_signed_contract(self):
        order = order_fulfillment.confirm_order(order=self.new_order())
        with self.assertRaises(InvalidTransition):
            order_fulfillment.record_deposit(order=order)
        self.assertFalse(OrderPayment.objects.exists())

    def test_deposit_defaults_to_suggested_amount(self):
        order = self.signed_order()
        order, payment = order_fulfillment.record_deposit(order=order)

        percent = settings.WORKFLOW["ORDER_DEPOSIT_PERCENT"]
        self.assertEqual(payment.amount, PRICE * percent // 100)
        self.assertEqual(order.paid_amount, payment.amount)
        self.assertEqual(order.status, S.HALF_PAYMENT)

    def test_deposit_covering_everything_moves_to_fully_paid(self):
        order = self.signed_order()
        order, _ = order_fulfillment.record_deposit(order=order, amount=PRICE)
        self.assertEqual(order.status, S.FULLY_PAYMENT)
        self.assertEqual(order.outstanding_amount, 0)

    def test_deposit_replay_with_same_key_is_a_no_op(self):
        order = self.signed_order()
        order, first = order_fulfillment.record_deposit(order=order, amount=100, idempotency_key="dep-1")
        order, again = order_fulfillment.record_deposit(order=order, amount=100, idempotency_key="dep-1")

        self.assertEqual(first.pk, again.pk)
        self.assertEqual(order.paid_amount, 100)
        self.assertEqual(OrderPayment.objects.filter(order=order).count(), 1)

    def test_deposit_key_cannot_be_reused_for_full_payment(self):
        order = self.signed_order()
        order, _ = order_fulfillment.record_deposit(order=order, idempotency_key="k1")

        with self.assertRaises(ValidationError) as ctx:
            order_fulfillment.record_full_payment(order=order, idempotency_key="k1")
        self.assertEqual(ctx.exception.details["recorded_kind"], OrderPayment.Kind.DEPOSIT)

        order.refresh_from_db()
        self.assertEqual(order.status, S.HALF_PAYMENT)
        self.assertEqual(OrderPayment.objects.filter(order=order).count(), 1)

        order, payment = order_fulfillment.record_full_payment(order=order, idempotency_key="k2")
        self.assertEqual(payment.kind, OrderPayment.Kind.FULL)
        self.assertEqual(order.status, S.FULLY_PAYMENT)

    def test_deposit_key_with_different_amount_is_refused(self):
        order = self.signed_order()
        order, _ = order_fulfillment.record_deposit(order=order, amount=100, idempotency_key="dep-1")

        with self.assertRaises(ValidationError):
            order_fulfillment.record_deposit(order=order, amount=200, idempotency_key="dep-1")

        order.refresh_from_db()
        self.assertEqual(order.paid_amount, 100)

    def test_full_payment_must_match_outstanding(self):
        order = self.signed_order()
        order, _ = order_fulfillment.record_deposit(order=order, amount=100)

        with self.assertRaises(InsufficientBalance):
            order_fulfillment.record_full_payment(order=order, amount=PRICE)
        with self.assertRaises(ValidationError):
            order_fulfillment.record_full_payment(order=order, amount=50)

        order, payment = order_fulfillment.record_full_payment(order=order, amount=PRICE - 100)
        self.assertEqual(payment.kind, OrderPayment.Kind.FULL)
        self.assertEqual(order.paid_amount, order.final_amount)

    def test_future_payment_date_is_rejected(self):
        order = self.signed_order()
        with self.assertRaises(ValidationError):
            order_fulfillment.record_deposit(
                order=order, paid_on=timezone.localdate() + timedelta(days=1)
            )


class CancellationTests(OrderWorkflowTestBase):
    def test_cancel_requires_reason(self):
        with self.assertRaises(ValidationError):
            order_fulfillment.cancel(order=self.new_order(), reason="  ")

    def test_cancel_releases_holds(self):
        order = self.paid_order(quantity=2)
        order_fulfillment.reserve_order_stock(order=order)
        self.pool.refresh_from_db()
        self.assertEqual(self.pool.reserved_quantity, 2)

        order = order_fulfillment.cancel(order=order, reason="Customer changed mind")

        self.pool.refresh_from_db()
        self.assertEqual(order.status, S.CANCELLED)
        self.assertEqual(self.pool.reserved_quantity, 0)
        self.assertFalse(StockReservation.objects.filter(status=StockReservation.Status.ACTIVE).exists())

    def test_cancel_after_delivery_restores_stock(self):
        order = self.delivered_order(quantity=2)
        self.pool.refresh_from_db()
        self.assertEqual(self.pool.remaining, 1)

        order_fulfillment.cancel(order=order, reason="Returned")

        self.pool.refresh_from_db()
        self.assertEqual(self.pool.remaining, 3)

    def test_terminal_orders_cannot_be_cancelled(self):
        order = order_fulfillment.cancel(order=self.new_order(), reason="dup")
        with self.assertRaises(InvalidTransition):
            order_fulfillment.cancel(order=order, reason="again")

    def test_reserve_is_idempotent(self):
        order = self.paid_order()
        first = order_fulfillment.reserve_order_stock(order=order)
        second = order_fulfillment.reserve_order_stock(order=order)

        self.assertEqual({h.pk for h in first}, {h.pk for h in second})
        self.pool.refresh_from_db()
        self.assertEqual(self.pool.reserved_quantity, 1)


class WorkedExampleTests(OrderWorkflowTestBase):
    """
    Literal amounts from the dealership's worked examples:
    two lines totalling 500,000,000, a 150,000,000 deposit, then 350,000,000.
    """

    def two_line_order(self):
        order = order_fulfillment.create_order(
            dealership=self.w.dealership,
            customer=self.w.customer,
            salesperson=self.w.staff,
            items=[
                {"vehicle_id": self.w.vehicle.id, "color": "Red", "unit_price": 300_000_000},
                {"vehicle_id": self.w.vehicle.id, "color": "White", "unit_price": 200_000_000},
            ],
        )
        order = order_fulfillment.confirm_order(order=order, user=self.w.staff)
        order_fulfillment.upload_signed_contract(order=order, files=[pdf()], user=self.w.staff)
        return order

    def test_deposit_of_150m_on_500m_order(self):
        order = self.two_line_order()
        self.assertEqual(order.final_amount, 500_000_000)

        order, _ = order_fulfillment.record_deposit(order=order, amount=150_000_000)

        self.assertEqual(order.status, S.HALF_PAYMENT)
        self.assertEqual(order.paid_amount, 150_000_000)

    def test_final_payment_of_350m_settles_order(self):
        order = self.two_line_order()
        order, _ = order_fulfillment.record_deposit(order=order, amount=150_000_000)

        order, _ = order_fulfillment.record_full_payment(order=order, amount=350_000_000)

        self.assertEqual(order.status, S.FULLY_PAYMENT)
        self.assertEqual(order.paid_amount, 500_000_000)

    def test_complete_at_23h59m_is_too_early_and_24h_succeeds(self):
        order = self.delivered_order(hours_ago=1)

        with self.assertRaises(TooEarlyError):
            order_fulfillment.complete(order=order, now=order.delivered_at + timedelta(hours=23, minutes=59))

        order = order_fulfillment.complete(order=order, now=order.delivered_at + timedelta(hours=24))
        self.assertEqual(order.status, S.COMPLETED)

    def test_complete_one_hour_after_delivery_reports_about_23_hours(self):
        order = self.delivered_order(hours_ago=1)

        with self.assertRaises(TooEarlyError) as ctx:
            order_fulfillment.complete(order=order)
        self.assertAlmostEqual(ctx.exception.remaining_hours, 23, delta=0.1)

    def test_transition_stamps_updated_at(self):
        order = self.new_order()
        Order.objects.filter(pk=order.pk).update(updated_at=timezone.now() - timedelta(days=1))
        order.refresh_from_db()
        before = order.updated_at

        order = order_fulfillment.confirm_order(order=order)

        self.assertGreater(order.updated_at, before)
