"""Discriminated numeric result for ratio-type metrics.

Division by zero never leaks ``inf`` or ``nan`` into results: a ``Ratio``
is either a finite number, an explicit infinity (e.g. profit factor with
no losing trades) or explicitly undefined (no data / 0 / 0).
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .enums import RatioKind
from .errors import NonFiniteValueError


@dataclass(frozen=True)
class Ratio:
    kind: RatioKind
    value: float = 0.0

    # ---------------------------------------------------------------- #
    # Constructors                                                     #
    # ---------------------------------------------------------------- #

    @classmethod
    def finite(cls, value: float) -> Ratio:
        """Wrap a number; ``inf`` becomes INFINITE and ``nan`` UNDEFINED."""
        value = float(value)
        if math.isnan(value):
            return cls.undefined()
        if math.isinf(value):
            return cls.infinite() if value > 0 else cls.undefined()
        return cls(RatioKind.FINITE, value)

    @classmethod
    def infinite(cls) -> Ratio:
        return cls(RatioKind.INFINITE)

    @classmethod
    def undefined(cls) -> Ratio:
        return cls(RatioKind.UNDEFINED)

    @classmethod
    def divide(cls, numerator: float, denominator: float) -> Ratio:
        """``numerator / denominator`` with sentinels for a zero denominator.

        A positive numerator over zero is INFINITE; zero or negative over
        zero is UNDEFINED.
        """
        numerator = float(numerator)
        denominator = float(denominator)
        if denominator == 0:
            if numerator > 0:
                return cls.infinite()
            return cls.undefined()
        return cls.finite(numerator / denominator)

    # ---------------------------------------------------------------- #
    # Accessors                                                        #
    # ---------------------------------------------------------------- #

    @property
    def is_finite(self) -> bool:
        return self.kind == RatioKind.FINITE

    @property
    def is_infinite(self) -> bool:
        return self.kind == RatioKind.INFINITE

    @property
    def is_undefined(self) -> bool:
        return self.kind == RatioKind.UNDEFINED

    def as_float(self) -> float:
        if self.kind != RatioKind.FINITE:
            raise NonFiniteValueError(f"Cannot unwrap {self.kind.value} ratio as a number")
        return self.value

    def or_else(self, default: float) -> float:
        return self.value if self.is_finite else default

    def display(self, cap: float = 999.0) -> float:
        """Number suitable for scoring or plotting: INFINITE maps to ``cap``."""
        if self.is_infinite:
            return cap
        if self.is_undefined:
            return 0.0
        return min(self.value, cap)

    def to_json(self) -> float | str | None:
        if self.is_infinite:
            return "inf"
        if self.is_undefined:
            return None
        return self.value

    def __str__(self) -> str:
        if self.is_infinite:
            return "∞"
        if self.is_undefined:
            return "undefined"
        return f"{self.value:g}"


def finite_values(ratios) -> list[float]:
    """Values of the finite ratios in ``ratios``, skipping sentinels."""
    return [r.value for r in ratios if r is not None and r.is_finite]


def mean_of_finite(ratios) -> Ratio:
    """Mean of the finite ratios; UNDEFINED if there are none."""
    values = finite_values(ratios)
    if not values:
        return Ratio.undefined()
    return Ratio.finite(sum(values) / len(values))
