"""
BER and visibility from the C1/D1/C2 partition sums.

Two conventions are in use for the same partition:

- ``error-fraction``: BER = D1 / (C1 + D1 + C2), V = (C1 + C2) / D1
- ``complementary``:  BER = 1 - D1 / (C1 + D1 + C2), V = D1 / (C1 + C2)

They are not interchangeable; a run uses exactly one. A metric whose
denominator is zero is undefined and is reported as ``None``.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .peak_window import PartitionSums

UNDEFINED = "undefined"


class MetricConvention(str, Enum):
    ERROR_FRACTION = "error-fraction"
    COMPLEMENTARY = "complementary"


@dataclass(frozen=True)
class Metrics:
    ber: Optional[float]
    visibility: Optional[float]

    @property
    def defined(self) -> bool:
        return self.ber is not None and self.visibility is not None


def _ratio(num: int, den: int) -> Optional[float]:
    if den == 0:
        return None
    return num / den


def compute_metrics(
    sums: PartitionSums,
    convention: Union[MetricConvention, str] = MetricConvention.ERROR_FRACTION,
) -> Metrics:
    """Compute ``(BER, visibility)`` under the chosen convention."""
    convention = MetricConvention(convention)
    signal = sums.c1 + sums.c2
    error_fraction = _ratio(sums.d1, sums.total)
    if convention is MetricConvention.ERROR_FRACTION:
        return Metrics(ber=error_fraction, visibility=_ratio(signal, sums.d1))
    ber = None if error_fraction is None else 1.0 - error_fraction
    return Metrics(ber=ber, visibility=_ratio(sums.d1, signal))


def format_metric(value: Optional[float]) -> str:
    if value is None:
        return UNDEFINED
    return f"{value:.6f}"
