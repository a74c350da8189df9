import unittest
from strategies import (
    CashBuffer, WithdrawalStrategy, adjust_withdrawal, performance_ratio,
)


class TestPerformanceRatio(unittest.TestCase):
    def test_on_track(self):
        self.assertAlmostEqual(performance_ratio(121, 100, 2, 0.10), 1.0)

    def test_behind(self):
        self.assertAlmostEqual(performance_ratio(80, 100, 0, 0.05), 0.8)

    def test_no_initial_value(self):
        self.assertEqual(performance_ratio(50, 0, 3, 0.05), 1.0)


class TestAdjusters(unittest.TestCase):
    target = 1000.0

    def test_fixed(self):
        for ratio in (0.1, 1.0, 3.0):
            self.assertEqual(adjust_withdrawal(WithdrawalStrategy.FIXED, self.target, ratio), 1000.0)

    def test_guardrails(self):
        g = WithdrawalStrategy.GUARDRAILS
        self.assertAlmostEqual(adjust_withdrawal(g, self.target, 0.7), 900.0)
        self.assertAlmostEqual(adjust_withdrawal(g, self.target, 1.3), 1100.0)
        self.assertEqual(adjust_withdrawal(g, self.target, 0.8), 1000.0)
        self.assertEqual(adjust_withdrawal(g, self.target, 1.2), 1000.0)

    def test_cash_buffer_leaves_target(self):
        self.assertEqual(adjust_withdrawal(WithdrawalStrategy.CASH_BUFFER, self.target, 0.5), 1000.0)

    def test_essential_discretionary_cut(self):
        e = WithdrawalStrategy.ESSENTIAL_DISCRETIONARY
        cut = 0.45 / 0.95
        self.assertAlmostEqual(adjust_withdrawal(e, self.target, 0.5, 0.7), 700 + 300 * (1 - cut))
        # capped at halving discretionary spending
        self.assertAlmostEqual(adjust_withdrawal(e, self.target, 0.1, 0.7), 850.0)

    def test_essential_discretionary_raise(self):
        e = WithdrawalStrategy.ESSENTIAL_DISCRETIONARY
        self.assertAlmostEqual(adjust_withdrawal(e, self.target, 2.0, 0.7), 1090.0)
        raise_by = 0.05 / 1.05
        self.assertAlmostEqual(adjust_withdrawal(e, self.target, 1.1, 0.7), 700 + 300 * (1 + raise_by))

    def test_essential_discretionary_dead_band(self):
        e = WithdrawalStrategy.ESSENTIAL_DISCRETIONARY
        for ratio in (0.95, 1.0, 1.05):
            self.assertEqual(adjust_withdrawal(e, self.target, ratio, 0.7), 1000.0)

    def test_all_essential_never_moves(self):
        e = WithdrawalStrategy.ESSENTIAL_DISCRETIONARY
        self.assertEqual(adjust_withdrawal(e, self.target, 0.2, 1.0), 1000.0)

    def test_integer_selector(self):
        self.assertAlmostEqual(adjust_withdrawal(2, self.target, 0.5), 900.0)

    def test_unknown_selector(self):
        with self.assertRaises(ValueError):
            adjust_withdrawal(7, self.target, 1.0)


class TestCashBuffer(unittest.TestCase):
    def test_capacity_is_two_years(self):
        self.assertEqual(CashBuffer.for_target(24_000).capacity, 48_000)

    def test_top_up_only_in_good_years(self):
        buffer = CashBuffer(capacity=5_000)
        self.assertEqual(buffer.top_up_request(10_000, 1.0), 0.0)
        self.assertEqual(buffer.top_up_request(10_000, 1.2), 1_000.0)
        buffer.balance = 4_500
        self.assertEqual(buffer.top_up_request(10_000, 1.2), 500.0)

    def test_deposit_is_capped(self):
        buffer = CashBuffer(capacity=1_000)
        buffer.deposit(800)
        buffer.deposit(800)
        self.assertEqual(buffer.balance, 1_000)

    def test_draw_only_in_bad_years(self):
        buffer = CashBuffer(capacity=10_000, balance=3_000)
        self.assertEqual(buffer.draw(2_000, 1.0), 0.0)
        self.assertEqual(buffer.draw(2_000, 0.5), 2_000)
        self.assertEqual(buffer.draw(2_000, 0.5), 1_000)
        self.assertTrue(buffer.empty)


if __name__ == '__main__':
    unittest.main()
