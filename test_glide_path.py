import unittest
from glide_path import GlidePath
from params import Params


class TestGlidePath(unittest.TestCase):
    def setUp(self):
        self.glide = GlidePath(enabled=True, start_stock=0.6, end_stock=1.0,
                               glide_years=10, pre_retirement_years=5)

    def test_disabled_is_all_stocks(self):
        glide = GlidePath(enabled=False)
        for years in (-3, 0, 4.5, 30):
            self.assertEqual(glide.stock_allocation(years), 1.0)
        self.assertEqual(glide.accumulation_allocation(12), 1.0)

    def test_before_retirement_uses_start(self):
        self.assertEqual(self.glide.stock_allocation(-1), 0.6)

    def test_linear_interpolation(self):
        self.assertAlmostEqual(self.glide.stock_allocation(0), 0.6)
        self.assertAlmostEqual(self.glide.stock_allocation(5), 0.8)
        self.assertAlmostEqual(self.glide.stock_allocation(7.5), 0.9)

    def test_end_allocation_after_glide(self):
        self.assertEqual(self.glide.stock_allocation(10), 1.0)
        self.assertEqual(self.glide.stock_allocation(25), 1.0)

    def test_bond_is_complement(self):
        for years in (-2, 0, 3, 12):
            self.assertAlmostEqual(
                self.glide.stock_allocation(years) + self.glide.bond_allocation(years), 1.0
            )

    def test_decreasing_glide(self):
        glide = GlidePath(enabled=True, start_stock=0.9, end_stock=0.3, glide_years=20)
        self.assertAlmostEqual(glide.stock_allocation(10), 0.6)

    def test_accumulation_tent(self):
        # more than 5 years out: all stocks; inside the window: start allocation
        self.assertEqual(self.glide.accumulation_allocation(121), 1.0)
        self.assertEqual(self.glide.accumulation_allocation(60), 0.6)
        self.assertEqual(self.glide.accumulation_allocation(1), 0.6)

    def test_expected_return_blends_means(self):
        self.assertAlmostEqual(self.glide.expected_return(0.5, 0.08, 0.02), 0.05)

    def test_from_params(self):
        p = Params(glide_path_enabled=True, glide_start_stock=0.5, glide_end_stock=0.7,
                   glide_years=4, glide_pre_retirement_years=2)
        glide = GlidePath.from_params(p)
        self.assertAlmostEqual(glide.stock_allocation(2), 0.6)
        self.assertEqual(glide.accumulation_allocation(24), 0.5)


if __name__ == '__main__':
    unittest.main()
