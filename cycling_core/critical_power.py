"""
Critical Power (CP) model: two-parameter work-time relationship.

Based on:
- Monod & Scherrer (1965): Work(t) = CP × t + AWC
- Jones & Vanhatalo (2010): The 'Critical Power' concept

CP is the highest power that can be sustained without drawing down the
finite anaerobic work capacity (AWC, also called W'). Two maximal efforts of
different durations are enough to solve for both parameters.
"""

import logging
import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from scipy import stats

from .numeric import is_positive_number, round_half_up
from .results import CalculationResult, ErrorKind

logger = logging.getLogger(__name__)

# Fixed protocol durations (seconds)
LONG_TEST_SECONDS = 300    # 5-minute maximal effort
SHORT_TEST_SECONDS = 60    # 1-minute maximal effort


@dataclass(frozen=True)
class PerformanceTest:
    """A maximal, sustained effort supplied by the caller."""
    duration_seconds: float
    average_power_watts: float

    @property
    def work_joules(self) -> float:
        return self.duration_seconds * self.average_power_watts

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CriticalPowerModel:
    """
    Solved CP/AWC pair.

    ``cp`` is in watts and ``awc`` in joules. ``r_squared`` is only set when
    the model was fitted by regression over several efforts.
    """
    cp: int
    awc: int
    r_squared: Optional[float] = None

    def power_at(self, duration_seconds: float) -> float:
        """Predicted maximal mean power for an effort of the given duration."""
        if duration_seconds <= 0:
            raise ValueError(f"duration_seconds must be positive, got {duration_seconds}")
        return self.cp + self.awc / duration_seconds

    def time_to_exhaustion(self, power_watts: float) -> float:
        """
        Seconds a constant power can be held before AWC is exhausted.

        At or below CP the effort is (in this model) sustainable indefinitely.
        """
        if power_watts <= self.cp:
            return math.inf
        return self.awc / (power_watts - self.cp)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def calculate_cp(power_5min: Any, power_1min: Any) -> CalculationResult:
    """
    Solve the CP model from a 5-minute and a 1-minute maximal effort.

    CP  = (P5 × t5 - P1 × t1) / (t5 - t1)
    AWC = (P1 - CP) × t1

    Args:
        power_5min: Average power over the 5-minute effort (W)
        power_1min: Average power over the 1-minute effort (W)

    Returns:
        CalculationResult holding a CriticalPowerModel, or a failure when a
        power is invalid (INVALID_INPUT) or the 1-minute power does not
        exceed the 5-minute power (MODEL_PRECONDITION)
    """
    if not (is_positive_number(power_5min) and is_positive_number(power_1min)):
        logger.debug("Invalid powers for CP model: 5min=%r 1min=%r", power_5min, power_1min)
        return CalculationResult.failure(
            ErrorKind.INVALID_INPUT,
            f"Both powers must be positive numbers (5min={power_5min!r}, 1min={power_1min!r})"
        )

    if power_1min <= power_5min:
        logger.debug("CP precondition violated: 1min=%s <= 5min=%s", power_1min, power_5min)
        return CalculationResult.failure(
            ErrorKind.MODEL_PRECONDITION,
            f"1-minute power ({power_1min} W) must exceed 5-minute power ({power_5min} W)"
        )

    t5 = LONG_TEST_SECONDS
    t1 = SHORT_TEST_SECONDS

    cp = (power_5min * t5 - power_1min * t1) / (t5 - t1)
    awc = (power_1min - cp) * t1

    return CalculationResult.success(
        CriticalPowerModel(cp=round_half_up(cp), awc=round_half_up(awc))
    )


def fit_critical_power(tests: Sequence[PerformanceTest]) -> CalculationResult:
    """
    Fit the CP model by linear regression of work against duration.

    With exactly two efforts the line passes through both points, so a
    300 s / 60 s pair gives the same answer as calculate_cp().

    Args:
        tests: Two or more maximal efforts of distinct durations

    Returns:
        CalculationResult holding a CriticalPowerModel with r_squared set
    """
    valid: List[PerformanceTest] = [
        t for t in tests or []
        if is_positive_number(t.duration_seconds) and is_positive_number(t.average_power_watts)
    ]

    if len(valid) < 2:
        return CalculationResult.failure(
            ErrorKind.INVALID_INPUT,
            f"At least two valid efforts are required, got {len(valid)}"
        )

    valid.sort(key=lambda t: t.duration_seconds)
    durations = np.array([t.duration_seconds for t in valid], dtype=float)
    powers = np.array([t.average_power_watts for t in valid], dtype=float)

    if np.any(np.diff(durations) == 0):
        return CalculationResult.failure(
            ErrorKind.INVALID_INPUT,
            "Effort durations must be distinct"
        )

    # Shorter efforts must produce strictly higher power
    if np.any(np.diff(powers) >= 0):
        logger.debug("CP fit precondition violated: powers=%s durations=%s", powers, durations)
        return CalculationResult.failure(
            ErrorKind.MODEL_PRECONDITION,
            "Average power must decrease strictly as effort duration increases"
        )

    fit = stats.linregress(durations, durations * powers)

    return CalculationResult.success(
        CriticalPowerModel(
            cp=round_half_up(fit.slope),
            awc=round_half_up(fit.intercept),
            r_squared=float(fit.rvalue ** 2),
        )
    )
