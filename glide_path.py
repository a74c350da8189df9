from __future__ import annotations
from dataclasses import dataclass

from returns import MONTHS_PER_YEAR, blend


@dataclass(frozen=True)
class GlidePath:
    """
    Stock/bond mix as a function of time around retirement (bond tent).

    The start allocation is held through the last ``pre_retirement_years`` of
    saving, then moves linearly to the end allocation over ``glide_years``.
    When disabled the portfolio is 100% stocks throughout.
    """

    enabled: bool = False
    start_stock: float = 0.6
    end_stock: float = 1.0
    glide_years: float = 10
    pre_retirement_years: float = 5

    @classmethod
    def from_params(cls, p) -> GlidePath:
        return cls(
            enabled=p.glide_path_enabled,
            start_stock=p.glide_start_stock,
            end_stock=p.glide_end_stock,
            glide_years=p.glide_years,
            pre_retirement_years=p.glide_pre_retirement_years,
        )

    def stock_allocation(self, years_elapsed: float) -> float:
        """Stock share ``years_elapsed`` years after retirement started."""
        if not self.enabled:
            return 1.0
        if years_elapsed < 0:
            share = self.start_stock
        elif years_elapsed >= self.glide_years:
            share = self.end_stock
        else:
            frac = years_elapsed / self.glide_years
            share = self.start_stock + (self.end_stock - self.start_stock) * frac
        return min(1.0, max(0.0, share))

    def bond_allocation(self, years_elapsed: float) -> float:
        return 1.0 - self.stock_allocation(years_elapsed)

    def accumulation_allocation(self, months_until_retirement: float) -> float:
        if not self.enabled or months_until_retirement > self.pre_retirement_years * MONTHS_PER_YEAR:
            return 1.0
        return self.stock_allocation(-months_until_retirement / MONTHS_PER_YEAR)

    def expected_return(self, stock_share: float, stock_mean: float, bond_mean: float) -> float:
        return blend(stock_mean, bond_mean, stock_share)
