# core/tests/test_money.py

from decimal import Decimal

from django.test import SimpleTestCase

from core.exceptions import InsufficientBalance, ValidationError
from core.money import checked_add, checked_sub, money_sum, percent_of, to_money


class MoneyTests(SimpleTestCase):
    def test_to_money_accepts_whole_amounts(self):
        self.assertEqual(to_money(150_000_000), 150_000_000)
        self.assertEqual(to_money("150000000"), 150_000_000)
        self.assertEqual(to_money(Decimal("42")), 42)
        self.assertEqual(to_money(0), 0)

    def test_to_money_rejects_fractions_negatives_and_bools(self):
        for bad in ("12.5", Decimal("0.01"), -1, True, "abc", None, ""):
            with self.subTest(value=bad):
                with self.assertRaises(ValidationError):
                    to_money(bad)

    def test_to_money_zero_can_be_refused(self):
        with self.assertRaises(ValidationError):
            to_money(0, allow_zero=False)

    def test_percent_of_rounds_half_up(self):
        self.assertEqual(percent_of(500_000_000, 30), 150_000_000)
        self.assertEqual(percent_of(5, 50), 3)
        self.assertEqual(percent_of(3, 50), 2)

    def test_money_sum(self):
        self.assertEqual(money_sum([1, 2, 3]), 6)
        self.assertEqual(money_sum([]), 0)

    def test_checked_sub_never_goes_negative(self):
        self.assertEqual(checked_sub(100, 100), 0)
        with self.assertRaises(InsufficientBalance) as ctx:
            checked_sub(100, 101)
        self.assertEqual(ctx.exception.details["remaining"], 100)

    def test_checked_add_respects_ceiling(self):
        self.assertEqual(checked_add(40, 60, ceiling=100), 100)
        with self.assertRaises(InsufficientBalance):
            checked_add(40, 61, ceiling=100)
