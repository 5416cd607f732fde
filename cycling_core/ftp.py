"""
Functional Threshold Power (FTP) estimation.

Based on:
- Allen, H. & Coggan, A. (2019). Training and Racing with a Power Meter
- Moritani et al. (1981): FTP is roughly 97% of critical power
- Lamberts et al. (2011): heart-rate-derived fitness estimates
- Hawley & Noakes (1992): VO2max to power conversion

Every estimator is a pure function returning a CalculationResult whose value
is an integer wattage. validate_ftp() is the one entry point that always
produces a usable FTP, which is what the zone and workout calculators rely on.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from .critical_power import CriticalPowerModel
from .numeric import is_number, is_positive_number, round_half_up
from .results import CalculationResult, ErrorKind

logger = logging.getLogger(__name__)


class RiderLevel(Enum):
    """Rider training background."""
    BEGINNER = "beginner"           # < 1 year of structured training
    INTERMEDIATE = "intermediate"   # 1-3 years
    ADVANCED = "advanced"           # > 3 years of regular training
    ELITE = "elite"                 # National / international level


class FTPMethod(Enum):
    """How an FTP value was obtained."""
    TWENTY_MINUTE_TEST = "20min_test"
    EIGHT_MINUTE_TEST = "8min_test"
    FIVE_MINUTE_TEST = "5min_test"
    ONE_MINUTE_TEST = "1min_test"
    RAMP_TEST = "ramp_test"
    CRITICAL_POWER = "critical_power"
    WEIGHT = "weight"
    HEART_RATE = "heart_rate"
    MANUAL = "manual"       # Caller-supplied value accepted by validate_ftp
    PROFILE = "profile"     # Weight x level heuristic from the athlete profile
    DEFAULT = "default"     # Per-level fallback


# ═══════════════════════════════════════════════════════════════════════════════
# CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════════

TWENTY_MINUTE_FACTOR = 0.95
EIGHT_MINUTE_FACTOR = 0.90
FIVE_MINUTE_FACTOR = 0.85
ONE_MINUTE_FACTOR = 0.75
RAMP_TEST_FACTOR = 0.75
CRITICAL_POWER_FACTOR = 0.97

# Watts/kg (low, average, high) by level
WATTS_PER_KG: Dict[RiderLevel, Tuple[float, float, float]] = {
    RiderLevel.BEGINNER: (1.5, 2.0, 2.5),
    RiderLevel.INTERMEDIATE: (2.5, 3.0, 3.5),
    RiderLevel.ADVANCED: (3.5, 4.0, 4.5),
    RiderLevel.ELITE: (4.5, 5.2, 6.0),
}

DEFAULT_FTP_BY_LEVEL: Dict[RiderLevel, int] = {
    RiderLevel.BEGINNER: 150,
    RiderLevel.INTERMEDIATE: 200,
    RiderLevel.ADVANCED: 250,
    RiderLevel.ELITE: 300,
}

FALLBACK_FTP = 200
MIN_PLAUSIBLE_FTP = 50
MAX_PLAUSIBLE_FTP = 500

# %HRmax at lactate threshold -> watts/kg, checked top-down with ">"
LTHR_WATTS_PER_KG_BANDS: Tuple[Tuple[float, float], ...] = (
    (0.92, 4.5),    # Very well trained
    (0.89, 4.0),    # Well trained
    (0.85, 3.5),    # Trained
    (0.82, 3.0),    # Moderately trained
)
LTHR_BASE_WATTS_PER_KG = 2.5

ESTIMATED_LTHR_HRR_FRACTION = 0.87
VO2MAX_FTP_FRACTION = 0.75
VO2MAX_WATTS_CONVERSION = 0.0123
MIN_PLAUSIBLE_VO2MAX = 20


# ═══════════════════════════════════════════════════════════════════════════════
# VALUE TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AthleteProfile:
    """Rider attributes used when no usable FTP is available."""
    weight_kg: Optional[float] = None
    level: Optional[Union[RiderLevel, str]] = None

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> 'AthleteProfile':
        """Build from a mapping with ``weight`` (or ``weight_kg``) and ``level``."""
        weight = d.get('weight_kg', d.get('weight'))
        return cls(weight_kg=weight, level=d.get('level'))

    def to_dict(self) -> Dict[str, Any]:
        level = self.level.value if isinstance(self.level, RiderLevel) else self.level
        return {'weight_kg': self.weight_kg, 'level': level}


@dataclass(frozen=True)
class HeartRateInputs:
    """Heart-rate data available for an FTP estimate."""
    max_hr: float
    resting_hr: float
    weight_kg: float
    lthr: Optional[float] = None
    vo2max: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FTPEstimate:
    """One FTP result; history is kept by the caller."""
    value_watts: float
    method: FTPMethod
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'value_watts': self.value_watts,
            'method': self.method.value,
            'timestamp': self.timestamp.isoformat(),
        }


def make_estimate(
    value_watts: float,
    method: FTPMethod,
    timestamp: Optional[datetime] = None
) -> FTPEstimate:
    """Stamp an FTP value with its method and time (UTC now by default)."""
    if timestamp is None:
        timestamp = datetime.now(timezone.utc)
    return FTPEstimate(value_watts=value_watts, method=method, timestamp=timestamp)


def resolve_level(level: Any) -> Optional[RiderLevel]:
    """Map a RiderLevel or its string value to a RiderLevel, else None."""
    if isinstance(level, RiderLevel):
        return level
    if isinstance(level, str):
        try:
            return RiderLevel(level.strip().lower())
        except ValueError:
            return None
    return None


# ═══════════════════════════════════════════════════════════════════════════════
# FIELD TEST ESTIMATORS
# ═══════════════════════════════════════════════════════════════════════════════

def _invalid(label: str, value: Any) -> CalculationResult:
    logger.debug("Invalid %s for FTP estimation: %r", label, value)
    return CalculationResult.failure(
        ErrorKind.INVALID_INPUT,
        f"{label} must be a positive number, got {value!r}"
    )


def _checked_factor(factor: Any, default: float) -> float:
    # Out-of-range factors revert to the default instead of failing
    if is_number(factor) and 0 < factor < 1:
        return factor
    logger.debug("Invalid FTP factor %r, using default %s", factor, default)
    return default


def _scaled_power(power: Any, factor: Any, default: float, label: str) -> CalculationResult:
    if not is_positive_number(power):
        return _invalid(label, power)
    return CalculationResult.success(round_half_up(power * _checked_factor(factor, default)))


def estimate_ftp_from_20min_test(power_20min: Any) -> CalculationResult:
    """FTP = 95% of 20-minute average power."""
    if not is_positive_number(power_20min):
        return _invalid("20-minute power", power_20min)
    return CalculationResult.success(round_half_up(power_20min * TWENTY_MINUTE_FACTOR))


def estimate_ftp_from_8min_test(power_8min: Any, factor: Any = EIGHT_MINUTE_FACTOR) -> CalculationResult:
    """FTP = factor (default 90%) of 8-minute average power."""
    return _scaled_power(power_8min, factor, EIGHT_MINUTE_FACTOR, "8-minute power")


def estimate_ftp_from_5min_test(power_5min: Any, factor: Any = FIVE_MINUTE_FACTOR) -> CalculationResult:
    """FTP = factor (default 85%) of 5-minute average power."""
    return _scaled_power(power_5min, factor, FIVE_MINUTE_FACTOR, "5-minute power")


def estimate_ftp_from_1min_test(power_1min: Any, factor: Any = ONE_MINUTE_FACTOR) -> CalculationResult:
    """
    FTP = factor (default 75%) of 1-minute average power.

    The least reliable field test; prefer any longer effort when available.
    """
    return _scaled_power(power_1min, factor, ONE_MINUTE_FACTOR, "1-minute power")


def estimate_ftp_from_ramp_test(max_power: Any, factor: Any = RAMP_TEST_FACTOR) -> CalculationResult:
    """FTP = factor (default 75%) of the best 1-minute power reached in a ramp test."""
    return _scaled_power(max_power, factor, RAMP_TEST_FACTOR, "ramp test max power")


def estimate_ftp_from_cp(cp: Any) -> CalculationResult:
    """
    FTP = 97% of critical power.

    Args:
        cp: Critical power in watts, or a CriticalPowerModel
    """
    if isinstance(cp, CriticalPowerModel):
        cp = cp.cp
    if not is_positive_number(cp):
        return _invalid("critical power", cp)
    return CalculationResult.success(round_half_up(cp * CRITICAL_POWER_FACTOR))


def estimate_ftp_from_weight(weight_kg: Any, level: Any = RiderLevel.INTERMEDIATE) -> CalculationResult:
    """
    FTP = body weight × average watts/kg for the rider's level.

    Unknown levels are treated as intermediate.
    """
    if not is_positive_number(weight_kg):
        return _invalid("weight", weight_kg)
    rider_level = resolve_level(level) or RiderLevel.INTERMEDIATE
    _, average, _ = WATTS_PER_KG[rider_level]
    return CalculationResult.success(round_half_up(weight_kg * average))


def estimate_ftp_range_from_weight(weight_kg: Any, level: Any = RiderLevel.INTERMEDIATE) -> CalculationResult:
    """
    Plausible FTP span for a rider's weight and level.

    Returns:
        CalculationResult holding a (low, average, high) tuple of watts
    """
    if not is_positive_number(weight_kg):
        return _invalid("weight", weight_kg)
    rider_level = resolve_level(level) or RiderLevel.INTERMEDIATE
    return CalculationResult.success(
        tuple(round_half_up(weight_kg * w) for w in WATTS_PER_KG[rider_level])
    )


# ═══════════════════════════════════════════════════════════════════════════════
# HEART-RATE ESTIMATION
# ═══════════════════════════════════════════════════════════════════════════════

def _watts_per_kg_at_threshold(percent_of_max: float) -> float:
    for threshold, watts_per_kg in LTHR_WATTS_PER_KG_BANDS:
        if percent_of_max > threshold:
            return watts_per_kg
    return LTHR_BASE_WATTS_PER_KG


def _has_lthr(inputs: HeartRateInputs) -> bool:
    return is_number(inputs.lthr) and inputs.resting_hr < inputs.lthr < inputs.max_hr


def _has_vo2max(inputs: HeartRateInputs) -> bool:
    return is_number(inputs.vo2max) and inputs.vo2max > MIN_PLAUSIBLE_VO2MAX


def _ftp_from_lthr(inputs: HeartRateInputs) -> float:
    return _watts_per_kg_at_threshold(inputs.lthr / inputs.max_hr) * inputs.weight_kg


def _ftp_from_vo2max(inputs: HeartRateInputs) -> float:
    return inputs.vo2max * VO2MAX_FTP_FRACTION * inputs.weight_kg * VO2MAX_WATTS_CONVERSION


def _ftp_from_hr_reserve(inputs: HeartRateInputs) -> float:
    # Karvonen: threshold sits at ~87% of heart rate reserve
    hr_reserve = inputs.max_hr - inputs.resting_hr
    estimated_lthr = inputs.resting_hr + hr_reserve * ESTIMATED_LTHR_HRR_FRACTION
    return _watts_per_kg_at_threshold(estimated_lthr / inputs.max_hr) * inputs.weight_kg


# Priority order: first strategy whose inputs are present wins
HR_STRATEGIES: Tuple[Tuple[str, Callable[[HeartRateInputs], bool], Callable[[HeartRateInputs], float]], ...] = (
    ('lthr', _has_lthr, _ftp_from_lthr),
    ('vo2max', _has_vo2max, _ftp_from_vo2max),
    ('hr_reserve', lambda inputs: True, _ftp_from_hr_reserve),
)


def select_hr_strategy(inputs: HeartRateInputs) -> Tuple[str, Callable[[HeartRateInputs], float]]:
    """First (name, estimator) pair in HR_STRATEGIES whose inputs are present."""
    return next((name, estimate) for name, available, estimate in HR_STRATEGIES if available(inputs))


def estimate_ftp_from_hr(inputs: HeartRateInputs) -> CalculationResult:
    """
    Estimate FTP from heart-rate data and body weight.

    Strategies, in priority order:
        1. Measured LTHR: %HRmax at threshold -> stepped watts/kg bands
        2. VO2max (> 20 ml/kg/min): VO2max × 0.75 × weight × 0.0123
        3. Heart rate reserve: LTHR estimated at rest + 0.87 × HRR, then bands

    Args:
        inputs: HeartRateInputs with max/resting HR, weight and optional LTHR/VO2max

    Returns:
        CalculationResult holding an integer wattage; the message names the
        strategy used
    """
    if not isinstance(inputs, HeartRateInputs):
        logger.debug("Invalid heart-rate inputs: %r", inputs)
        return CalculationResult.failure(
            ErrorKind.INVALID_INPUT,
            f"Expected HeartRateInputs, got {type(inputs).__name__}"
        )

    for label, value in (('max HR', inputs.max_hr),
                         ('resting HR', inputs.resting_hr),
                         ('weight', inputs.weight_kg)):
        if not is_positive_number(value):
            return _invalid(label, value)

    if inputs.max_hr <= inputs.resting_hr:
        logger.debug("HR precondition violated: max=%s rest=%s", inputs.max_hr, inputs.resting_hr)
        return CalculationResult.failure(
            ErrorKind.MODEL_PRECONDITION,
            f"Max HR ({inputs.max_hr}) must exceed resting HR ({inputs.resting_hr})"
        )

    name, estimate = select_hr_strategy(inputs)
    return CalculationResult.success(round_half_up(estimate(inputs)), message=name)


# ═══════════════════════════════════════════════════════════════════════════════
# NORMALIZATION
# ═══════════════════════════════════════════════════════════════════════════════

def _coerce_profile(profile: Any) -> AthleteProfile:
    if profile is None:
        return AthleteProfile()
    if isinstance(profile, AthleteProfile):
        return profile
    if isinstance(profile, Mapping):
        return AthleteProfile.from_dict(profile)

    # Any other object: read weight/level attributes, or treat as empty
    weight = getattr(profile, 'weight_kg', getattr(profile, 'weight', None))
    level = getattr(profile, 'level', None)
    if weight is None and level is None:
        logger.debug("Unrecognised profile %r, ignoring it", profile)
    return AthleteProfile(weight_kg=weight, level=level)


def normalize_ftp(ftp: Any, profile: Any = None) -> CalculationResult:
    """
    Resolve a candidate FTP into a usable positive wattage. Never fails.

    Order of resolution:
        1. A finite number >= 50 W is accepted unchanged (> 500 W is flagged
           with OUT_OF_RANGE_WARNING but kept)
        2. Otherwise, weight × level watts/kg when the profile has a weight
        3. Otherwise, the per-level default (200 W for an unknown level)

    Args:
        ftp: Candidate FTP (any type; None and NaN are handled)
        profile: AthleteProfile, mapping or object with weight/level;
            anything else is treated as an empty profile

    Returns:
        Successful CalculationResult; the message holds the FTPMethod value
        that produced it
    """
    athlete = _coerce_profile(profile)
    warnings: Tuple[ErrorKind, ...] = ()

    if is_positive_number(ftp):
        if ftp >= MIN_PLAUSIBLE_FTP:
            if ftp > MAX_PLAUSIBLE_FTP:
                logger.debug("Unusually high FTP accepted: %s", ftp)
                warnings = (ErrorKind.OUT_OF_RANGE_WARNING,)
            return CalculationResult.success(ftp, warnings, message=FTPMethod.MANUAL.value)
        logger.debug("Unusually low FTP rejected: %s", ftp)
        warnings = (ErrorKind.OUT_OF_RANGE_WARNING,)

    estimated = estimate_ftp_from_weight(athlete.weight_kg, athlete.level)
    if estimated.ok:
        return CalculationResult.success(estimated.value, warnings, message=FTPMethod.PROFILE.value)

    level = resolve_level(athlete.level)
    default = DEFAULT_FTP_BY_LEVEL.get(level, FALLBACK_FTP)
    logger.debug("Using default FTP %s W for level %r", default, athlete.level)
    return CalculationResult.success(default, warnings, message=FTPMethod.DEFAULT.value)


def validate_ftp(ftp: Any, profile: Any = None) -> float:
    """Return a usable FTP in watts for any input (see normalize_ftp)."""
    return normalize_ftp(ftp, profile).value
