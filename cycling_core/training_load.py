"""
Training load: fitness (CTL), fatigue (ATL) and form (TSB) from daily TSS.

Based on:
- Banister et al. (1975): fitness-fatigue impulse-response model
- Coggan / TrainingPeaks Performance Manager: CTL (42 d), ATL (7 d), TSB = CTL - ATL

Each day's load is a finite weighted average over the trailing window, with
exponentially decaying weights e^(-k/tc):

    load[i] = Σ_{k=0}^{min(i, tc-1)} TSS[i-k]·e^(-k/tc) / Σ_{k=0}^{min(i, tc-1)} e^(-k/tc)

This is recomputed from scratch per day, not the recursive update
L[i] = L[i-1] + (TSS[i] - L[i-1]) / tc. The two reach similar steady states
but differ during ramp-up. The window stops at day 0 of the series, so the
first days of a series have a shorter effective lookback.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .numeric import is_number, round_half_up

logger = logging.getLogger(__name__)


@dataclass
class TrainingLoadParams:
    """
    Tunable parameters for the training load model.

    Time constants are in days and double as the length of the trailing
    window each average looks back over.
    """
    chronic_time_constant: int = 42   # CTL / fitness
    acute_time_constant: int = 7      # ATL / fatigue
    window_days: int = 42             # Days reported by build_training_load()

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'TrainingLoadParams':
        """Create parameters from dictionary."""
        return cls(**d)

    def validate(self) -> Tuple[bool, str]:
        """Validate parameter constraints."""
        issues = []

        if not (isinstance(self.acute_time_constant, int) and self.acute_time_constant >= 1):
            issues.append("Acute time constant must be a positive integer")
        if not (isinstance(self.chronic_time_constant, int) and self.chronic_time_constant >= 1):
            issues.append("Chronic time constant must be a positive integer")
        if not issues and self.acute_time_constant >= self.chronic_time_constant:
            issues.append("Acute time constant must be shorter than chronic")
        if not (isinstance(self.window_days, int) and self.window_days >= 1):
            issues.append("Window must be at least one day")

        if issues:
            return False, "; ".join(issues)
        return True, "Valid"


@dataclass(frozen=True)
class DailyTrainingLoad:
    """TSS recorded on one day."""
    date: date
    tss: float

    def to_dict(self) -> Dict[str, Any]:
        return {'date': self.date.isoformat(), 'tss': self.tss}


@dataclass(frozen=True)
class TrainingLoadDay:
    """Derived load for one day of the window."""
    date: date
    tss: float
    ctl: float
    atl: float
    tsb: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'tss': self.tss,
            'ctl': self.ctl,
            'atl': self.atl,
            'tsb': self.tsb,
        }


def _resolve_params(params: Optional[TrainingLoadParams]) -> TrainingLoadParams:
    if params is None:
        return TrainingLoadParams()
    is_valid, message = params.validate()
    if not is_valid:
        raise ValueError(f"Invalid training load parameters: {message}")
    return params


def _clean_tss(values: Sequence[Any]) -> np.ndarray:
    # Missing, non-numeric or negative TSS counts as a rest day
    return np.array(
        [v if is_number(v) and v > 0 else 0.0 for v in values],
        dtype=float
    )


def calculate_weighted_load(tss_values: Sequence[float], time_constant: int) -> np.ndarray:
    """
    Finite exponentially weighted average of daily TSS (unrounded).

    Args:
        tss_values: Daily TSS, oldest first
        time_constant: Decay constant and window length in days

    Returns:
        Array of daily load values, same length as the input
    """
    if time_constant < 1:
        raise ValueError(f"time_constant must be >= 1, got {time_constant}")

    values = _clean_tss(tss_values)
    n = len(values)
    if n == 0:
        return np.array([])

    weights = np.exp(-np.arange(time_constant) / time_constant)
    load = np.zeros(n)

    for i in range(n):
        span = min(i, time_constant - 1) + 1
        # values[i], values[i-1], ... paired with weights k = 0, 1, ...
        window = values[i - span + 1:i + 1][::-1]
        w = weights[:span]
        load[i] = np.dot(window, w) / np.sum(w)

    return load


def calculate_ewma_load(tss_values: Sequence[float], time_constant: int) -> np.ndarray:
    """
    Recursive Banister update L[i] = L[i-1] + (TSS[i] - L[i-1]) / tc, from L = 0.

    Provided for comparison with the finite weighted average; the tracker
    itself does not use it.
    """
    if time_constant < 1:
        raise ValueError(f"time_constant must be >= 1, got {time_constant}")

    values = _clean_tss(tss_values)
    load = np.zeros(len(values))
    previous = 0.0
    for i, tss in enumerate(values):
        previous = previous + (tss - previous) / time_constant
        load[i] = previous
    return load


def calculate_training_load(
    tss_values: Sequence[float],
    params: Optional[TrainingLoadParams] = None
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Calculate CTL, ATL and TSB for a daily TSS series.

    All three are rounded to one decimal; TSB is the difference of the
    rounded CTL and ATL.

    Args:
        tss_values: Daily TSS, oldest first
        params: TrainingLoadParams (defaults: CTL 42 d, ATL 7 d)

    Returns:
        Tuple of (ctl, atl, tsb) arrays
    """
    params = _resolve_params(params)

    ctl_raw = calculate_weighted_load(tss_values, params.chronic_time_constant)
    atl_raw = calculate_weighted_load(tss_values, params.acute_time_constant)

    ctl = np.array([round_half_up(v, 1) for v in ctl_raw], dtype=float)
    atl = np.array([round_half_up(v, 1) for v in atl_raw], dtype=float)
    tsb = np.array([round_half_up(c - a, 1) for c, a in zip(ctl, atl)], dtype=float)

    return ctl, atl, tsb


def _calendar_day(day: date) -> date:
    if isinstance(day, datetime):
        return day.date()
    return day


def daily_tss_series(
    daily_loads: Sequence[DailyTrainingLoad],
    end_date: Optional[date] = None,
    window_days: int = 42
) -> pd.Series:
    """
    Daily TSS over the window ending at ``end_date`` (inclusive).

    Multiple records on the same date are summed, days without a record are
    0, and records outside the window are ignored.

    Returns:
        pandas Series indexed by date, oldest first
    """
    if end_date is None:
        end_date = date.today()
    end_date = _calendar_day(end_date)
    start_date = end_date - timedelta(days=window_days - 1)

    # Datetimes (tz-aware or not) count on their own calendar day
    records = [
        (_calendar_day(load.date), load.tss if is_number(load.tss) and load.tss > 0 else 0.0)
        for load in daily_loads or []
    ]
    date_range = pd.date_range(start=start_date, end=end_date, freq='D')

    if not records:
        return pd.Series(0.0, index=date_range.date, name='tss')

    df = pd.DataFrame(records, columns=['date', 'tss'])
    df['date'] = pd.to_datetime(df['date']).dt.normalize()
    daily = df.groupby('date')['tss'].sum()

    # Reindex to fill rest days with 0 and drop records outside the window
    daily = daily.reindex(date_range).fillna(0.0)
    daily.index = daily.index.date
    daily.name = 'tss'
    return daily


def build_training_load(
    daily_loads: Sequence[DailyTrainingLoad],
    end_date: Optional[date] = None,
    params: Optional[TrainingLoadParams] = None
) -> List[TrainingLoadDay]:
    """
    CTL/ATL/TSB for each day of the lookback window ending ``end_date``.

    Args:
        daily_loads: Caller's TSS history (any order, any length)
        end_date: Last day of the window (default: today)
        params: TrainingLoadParams (window 42 days by default)

    Returns:
        List of TrainingLoadDay, oldest first, one per day of the window
    """
    params = _resolve_params(params)
    series = daily_tss_series(daily_loads, end_date, params.window_days)
    ctl, atl, tsb = calculate_training_load(series.values, params)

    return [
        TrainingLoadDay(
            date=day,
            tss=float(tss),
            ctl=float(c),
            atl=float(a),
            tsb=float(b),
        )
        for day, tss, c, a, b in zip(series.index, series.values, ctl, atl, tsb)
    ]


def training_load_frame(days: Sequence[TrainingLoadDay]) -> pd.DataFrame:
    """Tabulate TrainingLoadDay records as a DataFrame indexed by date."""
    columns = ['tss', 'ctl', 'atl', 'tsb']
    if not days:
        return pd.DataFrame(columns=columns)
    df = pd.DataFrame([d.to_dict() for d in days])
    df['date'] = pd.to_datetime(df['date'])
    return df.set_index('date')[columns]


def classify_form(tsb: float) -> str:
    """
    Classify Training Stress Balance (form).

    Zones:
        - very_fatigued: TSB < -30 (plan 2-3 days of recovery)
        - fatigued: -30 <= TSB < -10
        - neutral: -10 <= TSB <= 20
        - fresh: TSB > 20 (ready for a hard session or race)

    Args:
        tsb: Training Stress Balance (non-numeric input is neutral)

    Returns:
        Form classification string
    """
    if not is_number(tsb):
        return 'neutral'
    if tsb < -30:
        return 'very_fatigued'
    elif tsb < -10:
        return 'fatigued'
    elif tsb > 20:
        return 'fresh'
    else:
        return 'neutral'
