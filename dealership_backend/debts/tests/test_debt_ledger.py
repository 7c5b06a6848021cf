# debts/tests/test_debt_ledger.py

from django.test import TestCase
from django.utils import timezone

from core.exceptions import ForbiddenTransition, InsufficientBalance, ValidationError
from core.tests.factories import WorkflowWorld, make_dealership, make_user
from debts.models import ManufacturerDebt, ManufacturerDebtPayment
from debts.services import debt_ledger
from workflow.context import ActorContext
from workflow.orchestrator import WorkflowOrchestrator

D = ManufacturerDebt.Status


class DebtLedgerTests(TestCase):
    """
    GUARANTEES:
    - paid_amount never exceeds total_amount
    - status is derived: open / partial / settled
    - a replayed idempotency key returns the first payment, or is refused
      when the amount differs
    """

    def setUp(self):
        self.w = WorkflowWorld()
        self.debt = debt_ledger.accrue(
            dealership=self.w.dealership,
            manufacturer=self.w.manufacturer,
            lines=[
                {
                    "vehicle": self.w.vehicle,
                    "color": "Red",
                    "unit_price": 500,
                    "quantity": 2,
                    "delivered_at": timezone.now(),
                }
            ],
        )

    def test_accrue_creates_one_debt_per_pair(self):
        debt = debt_ledger.accrue(
            dealership=self.w.dealership,
            manufacturer=self.w.manufacturer,
            lines=[{"vehicle": self.w.vehicle, "color": "White", "unit_price": 100, "quantity": 1}],
        )

        self.assertEqual(debt.pk, self.debt.pk)
        self.assertEqual(debt.total_amount, 1100)
        self.assertEqual(ManufacturerDebt.objects.count(), 1)

    def test_accrue_rejects_empty_lines(self):
        with self.assertRaises(ValidationError):
            debt_ledger.accrue(dealership=self.w.dealership, manufacturer=self.w.manufacturer, lines=[])

    def test_status_moves_open_partial_settled(self):
        self.assertEqual(self.debt.status, D.OPEN)

        debt_ledger.record_payment(debt=self.debt, amount=400)
        self.debt.refresh_from_db()
        self.assertEqual(self.debt.status, D.PARTIAL)
        self.assertEqual(self.debt.remaining_amount, 600)

        debt_ledger.record_payment(debt=self.debt, amount=600)
        self.debt.refresh_from_db()
        self.assertEqual(self.debt.status, D.SETTLED)
        self.assertEqual(self.debt.remaining_amount, 0)

    def test_overpayment_is_refused(self):
        with self.assertRaises(InsufficientBalance):
            debt_ledger.record_payment(debt=self.debt, amount=1001)

        self.debt.refresh_from_db()
        self.assertEqual(self.debt.paid_amount, 0)
        self.assertFalse(ManufacturerDebtPayment.objects.exists())

    def test_zero_and_unknown_method_are_refused(self):
        with self.assertRaises(ValidationError):
            debt_ledger.record_payment(debt=self.debt, amount=0)
        with self.assertRaises(ValidationError):
            debt_ledger.record_payment(debt=self.debt, amount=10, method="crypto")

    def test_idempotent_payment(self):
        first = debt_ledger.record_payment(debt=self.debt, amount=300, idempotency_key="pay-1")
        again = debt_ledger.record_payment(debt=self.debt, amount=300, idempotency_key="pay-1")

        self.assertEqual(first.pk, again.pk)
        self.debt.refresh_from_db()
        self.assertEqual(self.debt.paid_amount, 300)

    def test_replayed_key_with_different_amount_is_refused(self):
        debt_ledger.record_payment(debt=self.debt, amount=300, idempotency_key="pay-1")

        with self.assertRaises(ValidationError) as ctx:
            debt_ledger.record_payment(debt=self.debt, amount=500, idempotency_key="pay-1")
        self.assertEqual(ctx.exception.details["recorded_amount"], 300)
        self.assertEqual(ctx.exception.details["requested_amount"], 500)

        self.debt.refresh_from_db()
        self.assertEqual(self.debt.paid_amount, 300)
        self.assertEqual(self.debt.payments.count(), 1)

    def test_payment_history_is_oldest_first(self):
        debt_ledger.record_payment(debt=self.debt, amount=100, notes="first")
        debt_ledger.record_payment(debt=self.debt, amount=200, notes="second")

        notes = [p.notes for p in debt_ledger.get_payment_history(self.debt)]
        self.assertEqual(notes, ["first", "second"])

    def test_summary_counts_by_status(self):
        other = debt_ledger.accrue(
            dealership=make_dealership("Dealer Danang"),
            manufacturer=self.w.manufacturer,
            lines=[{"vehicle": self.w.vehicle, "color": "Red", "unit_price": 50, "quantity": 1}],
        )
        debt_ledger.record_payment(debt=other, amount=50)
        debt_ledger.record_payment(debt=self.debt, amount=10)

        summary = debt_ledger.debt_summary()
        self.assertEqual(summary["total_amount"], 1050)
        self.assertEqual(summary["paid_amount"], 60)
        self.assertEqual(summary["remaining_amount"], 990)
        self.assertEqual((summary["open"], summary["partial"], summary["settled"]), (0, 1, 1))

        scoped = debt_ledger.debt_summary(dealership_id=self.w.dealership.id)
        self.assertEqual(scoped["debts"], 1)


class DebtAccessTests(TestCase):
    def setUp(self):
        self.w = WorkflowWorld()
        self.debt = debt_ledger.accrue(
            dealership=self.w.dealership,
            manufacturer=self.w.manufacturer,
            lines=[{"vehicle": self.w.vehicle, "color": "Red", "unit_price": 500, "quantity": 1}],
        )

    def test_dealer_staff_cannot_pay(self):
        with self.assertRaises(ForbiddenTransition):
            WorkflowOrchestrator(ActorContext.from_user(self.w.staff)).record_debt_payment(
                debt_id=self.debt.id, amount=100
            )

    def test_manager_of_another_dealership_cannot_pay(self):
        stranger = make_user("dealer_manager", dealership=make_dealership("Dealer Hue"))
        with self.assertRaises(ForbiddenTransition):
            WorkflowOrchestrator(ActorContext.from_user(stranger)).record_debt_payment(
                debt_id=self.debt.id, amount=100
            )

    def test_manager_pays_own_debt(self):
        payment = WorkflowOrchestrator(ActorContext.from_user(self.w.manager)).record_debt_payment(
            debt_id=self.debt.id, amount=100, method="cash"
        )
        self.assertEqual(payment.recorded_by_id, self.w.manager.id)
        self.assertEqual(payment.method, ManufacturerDebtPayment.Method.CASH)

    def test_manufacturer_sees_debts_owed_to_it(self):
        visible = WorkflowOrchestrator(ActorContext.from_user(self.w.evm)).visible_debts()
        self.assertEqual(list(visible), [self.debt])
