# orders/tests/test_quotes.py

from datetime import timedelta

from django.conf import settings
from django.test import TestCase
from django.utils import timezone

from core.exceptions import ForbiddenTransition, InvalidTransition, NotFound, ValidationError
from core.tests.factories import WorkflowWorld, make_dealership, make_user
from orders.models import Order, Quote
from orders.services import order_fulfillment, quote_service
from workflow.context import ActorContext
from workflow.orchestrator import WorkflowOrchestrator

PRICE = 1_000_000_000


class QuoteTestBase(TestCase):
    def setUp(self):
        self.w = WorkflowWorld()

    def new_quote(self, **kwargs):
        kwargs.setdefault(
            "items",
            [{"vehicle_id": self.w.vehicle.id, "color": "Red", "quantity": 2, "discount": 50_000_000}],
        )
        return quote_service.create_quote(
            dealership=self.w.dealership,
            customer=self.w.customer,
            created_by=self.w.staff,
            **kwargs,
        )


class QuoteCreationTests(QuoteTestBase):
    def test_create_snapshots_lines_and_total(self):
        quote = self.new_quote()

        self.assertEqual(quote.status, Quote.Status.VALID)
        self.assertEqual(quote.final_amount, (PRICE - 50_000_000) * 2)
        self.assertEqual(quote.items[0]["vehicle_id"], str(self.w.vehicle.id))
        self.assertEqual(quote.items[0]["unit_price"], PRICE)
        self.assertTrue(quote.code.startswith("QT"))

    def test_end_date_defaults_to_validity_window(self):
        quote = self.new_quote()
        days = settings.WORKFLOW["QUOTE_VALIDITY_DAYS"]

        self.assertEqual(quote.start_date, timezone.localdate())
        self.assertEqual(quote.end_date, quote.start_date + timedelta(days=days))

    def test_end_before_start_is_rejected(self):
        today = timezone.localdate()
        with self.assertRaises(ValidationError):
            self.new_quote(start_date=today, end_date=today - timedelta(days=1))
        self.assertFalse(Quote.objects.exists())

    def test_line_rules_match_orders(self):
        with self.assertRaises(ValidationError):
            self.new_quote(items=[{"vehicle_id": self.w.vehicle.id, "color": "Red", "discount": PRICE + 1}])

    def test_later_price_change_keeps_quote_total(self):
        quote = self.new_quote()
        self.w.vehicle.price = 2 * PRICE
        self.w.vehicle.save(update_fields=["price"])

        order = quote_service.convert_to_order(quote=quote, salesperson=self.w.staff)
        self.assertEqual(order.final_amount, quote.final_amount)


class QuoteConversionTests(QuoteTestBase):
    def test_convert_creates_pending_order(self):
        quote = self.new_quote(notes="Weekend offer")

        order = quote_service.convert_to_order(quote=quote, salesperson=self.w.staff)

        quote.refresh_from_db()
        self.assertEqual(order.status, Order.Status.PENDING)
        self.assertEqual(order.final_amount, quote.final_amount)
        self.assertEqual(order.customer_id, self.w.customer.id)
        self.assertEqual(order.notes, "Weekend offer")
        self.assertEqual(order.quote_id, quote.id)
        self.assertEqual(quote.status, Quote.Status.CONVERTED)
        self.assertIsNotNone(quote.converted_at)

        item = order.items.get()
        self.assertEqual(item.quantity, 2)
        self.assertEqual(item.discount, 50_000_000)

        events = order_fulfillment.get_order_history(order)
        self.assertEqual(events[0].payload["quote_code"], quote.code)

    def test_converts_exactly_once(self):
        quote = self.new_quote()
        quote_service.convert_to_order(quote=quote)

        with self.assertRaises(InvalidTransition) as ctx:
            quote_service.convert_to_order(quote=quote)
        self.assertEqual(ctx.exception.details["current_status"], Quote.Status.CONVERTED)
        self.assertEqual(Order.objects.filter(quote=quote).count(), 1)

    def test_expired_quote_is_not_converted(self):
        today = timezone.localdate()
        quote = self.new_quote(start_date=today - timedelta(days=10), end_date=today - timedelta(days=1))
        self.assertEqual(quote.effective_status, Quote.Status.EXPIRED)

        with self.assertRaises(InvalidTransition) as ctx:
            quote_service.convert_to_order(quote=quote)
        self.assertEqual(ctx.exception.details["current_status"], Quote.Status.EXPIRED)
        self.assertFalse(Order.objects.exists())

    def test_quote_valid_through_its_end_date(self):
        today = timezone.localdate()
        quote = self.new_quote(start_date=today - timedelta(days=10), end_date=today)

        order = quote_service.convert_to_order(quote=quote)
        self.assertEqual(order.quote_id, quote.id)

    def test_canceled_quote_is_not_converted(self):
        quote = quote_service.cancel_quote(quote=self.new_quote())
        self.assertEqual(quote.status, Quote.Status.CANCELED)

        with self.assertRaises(InvalidTransition):
            quote_service.convert_to_order(quote=quote)
        self.assertFalse(Order.objects.exists())

    def test_converted_quote_cannot_be_canceled(self):
        quote = self.new_quote()
        quote_service.convert_to_order(quote=quote)

        with self.assertRaises(InvalidTransition):
            quote_service.cancel_quote(quote=quote)


class QuoteOrchestratorTests(QuoteTestBase):
    def setUp(self):
        super().setUp()
        self.quote = self.new_quote()
        self.stranger = make_user("dealer_manager", dealership=make_dealership("Dealer Saigon"))

    def orchestrator(self, user):
        return WorkflowOrchestrator(ActorContext.from_user(user))

    def test_staff_converts_own_dealership_quote(self):
        order = self.orchestrator(self.w.staff).convert_quote_to_order(quote_id=self.quote.id)

        self.assertEqual(order.salesperson_id, self.w.staff.id)
        self.assertEqual(order.dealership_id, self.w.dealership.id)

    def test_other_dealership_cannot_convert(self):
        with self.assertRaises(ForbiddenTransition):
            self.orchestrator(self.stranger).convert_quote_to_order(quote_id=self.quote.id)

        self.quote.refresh_from_db()
        self.assertEqual(self.quote.status, Quote.Status.VALID)
        self.assertFalse(Order.objects.exists())

    def test_other_dealership_cannot_read(self):
        with self.assertRaises(NotFound):
            self.orchestrator(self.stranger).get_quote(self.quote.id)
        self.assertFalse(self.orchestrator(self.stranger).visible_quotes().exists())

    def test_manufacturer_staff_cannot_create(self):
        with self.assertRaises(ForbiddenTransition):
            self.orchestrator(self.w.evm).create_quote(
                customer_id=self.w.customer.id,
                items=[{"vehicle_id": self.w.vehicle.id, "color": "Red"}],
            )
