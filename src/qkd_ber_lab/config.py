"""
Analysis parameters for periodic time-bin BER/visibility estimation.

All lengths are integer picoseconds. The defaults describe a 32 ns
repetition period with a 3 ns active window split into three 1 ns sub-bins.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

from .errors import ConfigurationError
from .helpers import validate_choice, validate_int
from .metrics import MetricConvention
from .timetags import IngestPolicy


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Parameters of one analysis run.

    Attributes
    ----------
    period_ps : int
        Repetition period; also the histogram length. Default: 32000.
    window_ps : int
        Width of the peak-search window, split into three equal parts.
        Must not exceed ``period_ps``. Default: 3000.
    subbin_ps : int
        Width of the sub-bin grid the guard bands are placed on. Default: 1000.
    guard_ps : int
        Guard-band width; half of it is trimmed at each sub-bin edge.
        Default: 100.
    sweep_min_ps, sweep_max_ps, sweep_step_ps : int
        Inclusive guard-band range explored by the optimizer.
        Defaults: 100, 300, 1.
    label : str
        Group tag printed as the first field of the summary line. Default: "M".
    convention : str
        Metric convention name, see ``MetricConvention``.
        Default: "error-fraction".
    policy : str
        Malformed-row policy name, see ``IngestPolicy``. Default: "strict".
    """
    period_ps: int = 32_000
    window_ps: int = 3_000
    subbin_ps: int = 1_000
    guard_ps: int = 100
    sweep_min_ps: int = 100
    sweep_max_ps: int = 300
    sweep_step_ps: int = 1
    label: str = "M"
    convention: str = MetricConvention.ERROR_FRACTION.value
    policy: str = IngestPolicy.STRICT.value

    def __post_init__(self) -> None:
        for name, minimum in (
            ("period_ps", 1),
            ("window_ps", 3),
            ("subbin_ps", 1),
            ("guard_ps", 0),
            ("sweep_min_ps", 0),
            ("sweep_max_ps", 0),
            ("sweep_step_ps", 1),
        ):
            object.__setattr__(self, name, validate_int(name, getattr(self, name), min_value=minimum))
        if self.window_ps > self.period_ps:
            raise ConfigurationError(
                f"window_ps ({self.window_ps}) exceeds histogram length period_ps ({self.period_ps})"
            )
        if self.sweep_min_ps > self.sweep_max_ps:
            raise ConfigurationError(
                f"sweep_min_ps ({self.sweep_min_ps}) > sweep_max_ps ({self.sweep_max_ps})"
            )
        if not isinstance(self.label, str) or not self.label:
            raise ConfigurationError("label must be a non-empty string")
        if any(ch in self.label for ch in ",\r\n"):
            raise ConfigurationError(f"label must not contain commas or newlines: {self.label!r}")
        validate_choice("convention", self.convention, tuple(c.value for c in MetricConvention))
        validate_choice("policy", self.policy, tuple(p.value for p in IngestPolicy))

    @property
    def metric_convention(self) -> MetricConvention:
        return MetricConvention(self.convention)

    @property
    def ingest_policy(self) -> IngestPolicy:
        return IngestPolicy(self.policy)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Reference configuration
DEFAULT_CONFIG = AnalysisConfig()
