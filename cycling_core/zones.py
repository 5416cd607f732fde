"""
Power and heart-rate training zones.

Based on:
- Allen & Coggan (2019): 7-zone power model from FTP
- Seiler (2010): 3-zone polarized model
- British Cycling 6-zone model
- Karvonen: heart-rate zones from heart rate reserve (HRR = HRmax - HRrest)

Zone sets are contiguous: every zone's minimum is the previous zone's
maximum + 1, so a rounded wattage or heart rate always lands in exactly one
zone.
"""

import logging
import math
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .ftp import FALLBACK_FTP
from .numeric import is_number, is_positive_number, round_half_up
from .results import CalculationResult, ErrorKind

logger = logging.getLogger(__name__)


class ZoneModel(Enum):
    """Available power zone models."""
    COGGAN = "coggan"                     # 7 zones (default)
    SEILER = "seiler"                     # 3 zones
    BRITISH_CYCLING = "british_cycling"   # 6 zones


@dataclass(frozen=True)
class PowerZone:
    """One power zone; ``max_watts`` is math.inf for the top zone."""
    number: int
    name: str
    min_watts: int
    max_watts: float
    percent_ftp_label: str

    def contains(self, watts: float) -> bool:
        return self.min_watts <= watts <= self.max_watts

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class HeartRateZone:
    """One heart-rate zone in bpm."""
    number: int
    name: str
    min_bpm: int
    max_bpm: int
    percent_hrr_label: str

    def contains(self, bpm: float) -> bool:
        return self.min_bpm <= bpm <= self.max_bpm

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# (name, lower %FTP, upper %FTP or None for unbounded)
ZONE_TABLES: Dict[ZoneModel, Tuple[Tuple[str, float, Optional[float]], ...]] = {
    ZoneModel.COGGAN: (
        ("Active Recovery", 0.00, 0.55),
        ("Endurance", 0.56, 0.75),
        ("Tempo", 0.76, 0.90),
        ("Threshold", 0.91, 1.05),
        ("VO2max", 1.06, 1.20),
        ("Anaerobic Capacity", 1.21, 1.50),
        ("Neuromuscular Power", 1.51, None),
    ),
    ZoneModel.SEILER: (
        ("Low Intensity", 0.00, 0.85),
        ("Threshold", 0.86, 1.00),
        ("High Intensity", 1.01, None),
    ),
    ZoneModel.BRITISH_CYCLING: (
        ("Active Recovery", 0.00, 0.60),
        ("Endurance", 0.61, 0.80),
        ("Tempo", 0.81, 0.93),
        ("Lactate Threshold", 0.94, 1.05),
        ("Aerobic Capacity", 1.06, 1.25),
        ("Anaerobic Capacity", 1.26, None),
    ),
}

# (name, lower %HRR, upper %HRR)
HEART_RATE_ZONE_TABLE: Tuple[Tuple[str, float, float], ...] = (
    ("Recovery", 0.50, 0.60),
    ("Aerobic Endurance", 0.60, 0.70),
    ("Advanced Endurance", 0.70, 0.80),
    ("Threshold", 0.80, 0.90),
    ("VO2max", 0.90, 1.00),
)


def _percent_label(lower: float, upper: Optional[float]) -> str:
    if upper is None:
        return f">{round_half_up(lower * 100) - 1}%"
    return f"{round_half_up(lower * 100)}-{round_half_up(upper * 100)}%"


def calculate_power_zones(ftp: Any, model: ZoneModel = ZoneModel.COGGAN) -> List[PowerZone]:
    """
    Calculate power zones from FTP.

    An invalid FTP is replaced with 200 W rather than failing, so a caller
    can always render zones.

    Upper bounds are round(ftp × upper %). Zone 1 starts at 0 W and each
    later zone starts 1 W above the previous maximum; a maximum never falls
    below its own minimum.

    Args:
        ftp: Functional Threshold Power (W)
        model: Zone model (Coggan 7-zone by default)

    Returns:
        Ordered list of PowerZone, top zone unbounded
    """
    if not is_positive_number(ftp):
        logger.debug("Invalid FTP %r for zones, using %s W", ftp, FALLBACK_FTP)
        ftp = FALLBACK_FTP

    zones: List[PowerZone] = []
    min_watts = 0

    for number, (name, lower, upper) in enumerate(ZONE_TABLES[model], start=1):
        if upper is None:
            max_watts = math.inf
        else:
            max_watts = max(round_half_up(ftp * upper), min_watts)

        zones.append(PowerZone(
            number=number,
            name=name,
            min_watts=min_watts,
            max_watts=max_watts,
            percent_ftp_label=_percent_label(lower, upper),
        ))

        if upper is not None:
            min_watts = max_watts + 1

    return zones


def find_power_zone(watts: float, zones: Sequence[PowerZone]) -> Optional[PowerZone]:
    """
    Return the zone containing a wattage (rounded half-up first).

    Negative or non-numeric power returns None.
    """
    if not is_number(watts) or watts < 0:
        return None
    rounded = round_half_up(watts)
    for zone in zones:
        if zone.contains(rounded):
            return zone
    return None


def calculate_heart_rate_zones(max_hr: Any, resting_hr: Any) -> CalculationResult:
    """
    Calculate 5 heart-rate zones using the Karvonen (HRR) method.

    Zone boundaries (% of HRR, offset by resting HR):
        Zone 1: 50-60%
        Zone 2: 60-70%  (min +1 bpm)
        Zone 3: 70-80%  (min +1 bpm)
        Zone 4: 80-90%  (min +1 bpm)
        Zone 5: 90-100% (min +1 bpm, max = HRmax)

    Args:
        max_hr: Maximum heart rate (bpm)
        resting_hr: Resting heart rate (bpm)

    A reserve too narrow for five 1 bpm-separated bands (roughly under
    15 bpm) yields zones whose minimum exceeds their maximum. Those zones
    are returned unchanged and the result carries OUT_OF_RANGE_WARNING.

    Returns:
        CalculationResult holding a list of HeartRateZone, or a failure
        when either value is invalid or max_hr <= resting_hr
    """
    if not (is_positive_number(max_hr) and is_positive_number(resting_hr)):
        logger.debug("Invalid heart rates for zones: max=%r rest=%r", max_hr, resting_hr)
        return CalculationResult.failure(
            ErrorKind.INVALID_INPUT,
            f"Heart rates must be positive numbers (max={max_hr!r}, rest={resting_hr!r})"
        )

    if max_hr <= resting_hr:
        logger.debug("HR zone precondition violated: max=%s rest=%s", max_hr, resting_hr)
        return CalculationResult.failure(
            ErrorKind.MODEL_PRECONDITION,
            f"Max HR ({max_hr}) must exceed resting HR ({resting_hr})"
        )

    hr_reserve = max_hr - resting_hr
    zones: List[HeartRateZone] = []

    for number, (name, lower, upper) in enumerate(HEART_RATE_ZONE_TABLE, start=1):
        min_bpm = round_half_up(resting_hr + hr_reserve * lower)
        if number > 1:
            min_bpm += 1
        if number == len(HEART_RATE_ZONE_TABLE):
            max_bpm = max_hr
        else:
            max_bpm = round_half_up(resting_hr + hr_reserve * upper)

        zones.append(HeartRateZone(
            number=number,
            name=name,
            min_bpm=min_bpm,
            max_bpm=max_bpm,
            percent_hrr_label=f"{round_half_up(lower * 100)}-{round_half_up(upper * 100)}%",
        ))

    if any(zone.min_bpm > zone.max_bpm for zone in zones):
        logger.debug("Heart rate reserve of %s bpm gives inverted zones", hr_reserve)
        return CalculationResult.success(zones, (ErrorKind.OUT_OF_RANGE_WARNING,))

    return CalculationResult.success(zones)
