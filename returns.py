from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

MONTHS_PER_YEAR = 12


@dataclass(frozen=True)
class AssetClass:
    mean: float
    volatility: float

    def monthly(self) -> Tuple[float, float]:
        return self.mean / MONTHS_PER_YEAR, self.volatility / math.sqrt(MONTHS_PER_YEAR)

    def annual(self) -> Tuple[float, float]:
        return self.mean, self.volatility


def standard_normal(rng: np.random.Generator, size: int) -> np.ndarray:
    """Box-Muller transform on two independent uniform samples."""
    # 1 - U[0, 1) lies in (0, 1], so the log never sees zero
    u1 = 1.0 - rng.random(size)
    u2 = rng.random(size)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)


class ReturnGenerator:
    """Normally distributed returns for a risky (stock) and a bond asset class."""

    def __init__(self, stock: AssetClass, bond: AssetClass,
                 rng: Optional[np.random.Generator] = None) -> None:
        self.stock = stock
        self.bond = bond
        self.rng = rng if rng is not None else np.random.default_rng()

    @classmethod
    def from_params(cls, p, rng: Optional[np.random.Generator] = None) -> ReturnGenerator:
        return cls(
            AssetClass(p.stock_return, p.stock_volatility),
            AssetClass(p.bond_return, p.bond_volatility),
            rng,
        )

    def _draw(self, mean: float, sd: float, size: int) -> np.ndarray:
        return mean + sd * standard_normal(self.rng, size)

    def monthly(self, size: int) -> Tuple[np.ndarray, np.ndarray]:
        """``size`` independent monthly (stock, bond) returns."""
        return self._draw(*self.stock.monthly(), size), self._draw(*self.bond.monthly(), size)

    def annual(self, size: int) -> Tuple[np.ndarray, np.ndarray]:
        """``size`` independent annual (stock, bond) returns."""
        return self._draw(*self.stock.annual(), size), self._draw(*self.bond.annual(), size)


def blend(stock_return: float, bond_return: float, stock_share: float) -> float:
    return stock_share * stock_return + (1 - stock_share) * bond_return
