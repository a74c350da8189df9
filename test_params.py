import math
import unittest

import numpy as np
from params import InvalidParameterError, Params, UK_PENSION_RULES, validate_params
from strategies import WithdrawalStrategy


class TestValidateParams(unittest.TestCase):
    def test_defaults_are_valid(self):
        validate_params(Params())

    def test_edges_accepted(self):
        validate_params(Params(target_success_rate=1.0))
        validate_params(Params(max_months=0))
        validate_params(Params(withdrawal_strategy=2))
        validate_params(Params(essential_ratio=0.0, inflation_rate=-0.05))
        # glide settings are only checked when the glide path is on
        validate_params(Params(glide_start_stock=1.5))

    def test_rejected_inputs(self):
        cases = [
            dict(current_age=10),
            dict(current_age=95),
            dict(current_age=96),
            dict(terminal_age=150),
            dict(target_success_rate=0.0),
            dict(target_success_rate=1.5),
            dict(stock_return=0.8),
            dict(stock_return=math.nan),
            dict(stock_volatility=-0.1),
            dict(bond_volatility=2.0),
            dict(inflation_rate=0.5),
            dict(monthly_income_target=0),
            dict(monthly_income_target=math.inf),
            dict(pension_balance=-1),
            dict(tax_free_balance=math.inf),
            dict(monthly_pension_contribution=-5),
            dict(essential_ratio=1.5),
            dict(max_months=1_500),
            dict(max_months=12.5),
            dict(simulations=0),
            dict(simulations=10.5),
            dict(time_budget_seconds=0),
            dict(withdrawal_strategy=5),
            dict(current_age="30"),
            dict(optimize_pension_ratio=True, simulations=True),
            dict(glide_path_enabled=True, glide_years=0),
            dict(glide_path_enabled=True, glide_start_stock=1.5),
            dict(glide_path_enabled=True, glide_pre_retirement_years=30),
        ]
        for overrides in cases:
            with self.subTest(**{k: repr(v) for k, v in overrides.items()}):
                with self.assertRaises(InvalidParameterError):
                    validate_params(Params(**overrides))

    def test_numpy_numbers_accepted(self):
        validate_params(Params(max_months=np.int64(240), simulations=np.int64(500),
                               current_age=np.float64(40.5)))

    def test_no_time_left_before_terminal_age(self):
        # rounds to zero months, so no retirement year could be simulated
        with self.assertRaises(InvalidParameterError):
            validate_params(Params(current_age=94.98, terminal_age=95))
        validate_params(Params(current_age=94.9, terminal_age=95))

    def test_error_is_a_value_error(self):
        with self.assertRaises(ValueError):
            validate_params(Params(current_age=10))


class TestParams(unittest.TestCase):
    def test_months_to_terminal(self):
        self.assertEqual(Params(current_age=30, terminal_age=95).months_to_terminal, 780)
        self.assertEqual(Params(current_age=30.5, terminal_age=95).months_to_terminal, 774)

    def test_strategy_from_int(self):
        self.assertIs(Params(withdrawal_strategy=3).strategy, WithdrawalStrategy.CASH_BUFFER)

    def test_state_pension(self):
        self.assertEqual(UK_PENSION_RULES.state_pension_at(66.9), 0.0)
        self.assertAlmostEqual(UK_PENSION_RULES.state_pension_at(67), 11_502.0)


if __name__ == '__main__':
    unittest.main()
