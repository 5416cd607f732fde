"""
Workout stress metrics: Normalized Power, Intensity Factor and TSS.

Based on:
- Coggan, A. (2003): Training Stress Score
  TSS = (seconds × NP × IF) / (FTP × 3600) × 100, with IF = NP / FTP

Normalized power here is a 4th-power mean over the *declared* target power
of each interval, weighted by duration:

    NP = (Σ(duration × power⁴) / total_duration)^(1/4)

This approximates the canonical algorithm (30-second rolling average, then
4th-power mean) for a planned workout where no power stream exists yet. The
two agree for steady intervals and diverge for very short efforts.
"""

import logging
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from .numeric import is_number, is_positive_number, round_half_up
from .zones import PowerZone, find_power_zone

logger = logging.getLogger(__name__)


class IntervalType(Enum):
    """Role of an interval within a structured workout."""
    WARMUP = "warmup"
    WORK = "work"
    REST = "rest"
    RECOVERY = "recovery"
    STEADY = "steady"
    COOLDOWN = "cooldown"


@dataclass(frozen=True)
class WorkoutInterval:
    """
    One step of a structured workout.

    ``rest_duration_seconds`` is passive time after the step: it counts toward
    total duration but contributes no work.
    """
    type: Union[IntervalType, str]
    duration_seconds: float
    target_power_watts: float
    rest_duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value if isinstance(self.type, IntervalType) else self.type,
            'duration_seconds': self.duration_seconds,
            'target_power_watts': self.target_power_watts,
            'rest_duration_seconds': self.rest_duration_seconds,
        }


@dataclass(frozen=True)
class WorkoutMetrics:
    """Stress metrics for one workout; all zeros when not computable."""
    normalized_power: int = 0
    intensity_factor: float = 0.0
    tss: int = 0
    average_power: int = 0
    total_work_kj: float = 0.0
    duration_minutes: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _is_valid_interval(interval: Any) -> bool:
    duration = getattr(interval, 'duration_seconds', None)
    power = getattr(interval, 'target_power_watts', None)
    rest = getattr(interval, 'rest_duration_seconds', 0)
    return (
        is_number(duration) and duration >= 0
        and is_number(power) and power >= 0
        and is_number(rest) and rest >= 0
    )


def _valid_intervals(intervals: Optional[Sequence[WorkoutInterval]]) -> List[WorkoutInterval]:
    valid = []
    for interval in intervals or []:
        if _is_valid_interval(interval):
            valid.append(interval)
        else:
            logger.debug("Skipping malformed interval: %r", interval)
    return valid


def calculate_workout_metrics(
    ftp: Any,
    intervals: Optional[Sequence[WorkoutInterval]]
) -> WorkoutMetrics:
    """
    Calculate NP, IF, TSS, average power, work and duration for a workout.

    Missing or empty intervals, zero total duration, or a non-positive FTP
    produce a WorkoutMetrics of zeros instead of NaN. Malformed intervals
    (non-numeric or negative values) are skipped.

    Rounding:
        normalized_power, average_power, tss: integers
        intensity_factor: 2 decimals
        total_work_kj, duration_minutes: 1 decimal

    Args:
        ftp: Functional Threshold Power (W)
        intervals: Ordered workout steps

    Returns:
        WorkoutMetrics
    """
    if not is_positive_number(ftp):
        logger.debug("Invalid FTP %r for workout metrics", ftp)
        return WorkoutMetrics()

    steps = _valid_intervals(intervals)
    if not steps:
        return WorkoutMetrics()

    durations = np.array([s.duration_seconds for s in steps], dtype=float)
    powers = np.array([s.target_power_watts for s in steps], dtype=float)
    rests = np.array([s.rest_duration_seconds for s in steps], dtype=float)

    total_duration = float(np.sum(durations + rests))
    if total_duration <= 0:
        return WorkoutMetrics()

    total_work = float(np.sum(durations * powers))
    average_power = total_work / total_duration
    normalized_power = (float(np.sum(durations * powers ** 4)) / total_duration) ** 0.25
    intensity_factor = normalized_power / ftp
    tss = (total_duration * normalized_power * intensity_factor) / (ftp * 3600) * 100

    return WorkoutMetrics(
        normalized_power=round_half_up(normalized_power),
        intensity_factor=round_half_up(intensity_factor, 2),
        tss=round_half_up(tss),
        average_power=round_half_up(average_power),
        total_work_kj=round_half_up(total_work / 1000, 1),
        duration_minutes=round_half_up(total_duration / 60, 1),
    )


def estimate_tss(duration_seconds: Any, intensity_factor: Any) -> int:
    """
    TSS from duration and intensity factor alone.

    TSS = duration × IF² / 3600 × 100

    Used for rides logged without interval structure. Invalid input gives 0.
    """
    if not (is_positive_number(duration_seconds) and is_number(intensity_factor)) or intensity_factor < 0:
        return 0
    return round_half_up(duration_seconds * intensity_factor ** 2 / 3600 * 100)


def calculate_time_in_zones(
    intervals: Optional[Sequence[WorkoutInterval]],
    zones: Sequence[PowerZone]
) -> Dict[int, float]:
    """
    Seconds planned in each power zone.

    Rest time after an interval is counted in zone 1.

    Args:
        intervals: Ordered workout steps
        zones: Zone set from calculate_power_zones()

    Returns:
        Mapping zone number -> seconds, with every zone present
    """
    distribution: Dict[int, float] = {zone.number: 0.0 for zone in zones}
    if not zones:
        return distribution

    recovery_zone = zones[0].number
    for step in _valid_intervals(intervals):
        zone = find_power_zone(step.target_power_watts, zones)
        if zone is not None:
            distribution[zone.number] += step.duration_seconds
        distribution[recovery_zone] += step.rest_duration_seconds

    return distribution
