"""
Cycling performance engine.

This package provides pure, stateless calculations for:
- Critical Power (CP / AWC) from maximal efforts
- FTP estimation from field tests, critical power, weight and heart rate
- Power and heart-rate training zones
- Workout stress metrics (NP, IF, TSS)
- Training load (CTL, ATL, TSB) from a daily TSS series

Expected bad input never raises: calculators return a CalculationResult
carrying an ErrorKind, or degrade to documented defaults.
"""

# Results
from .results import (
    CalculationResult,
    ErrorKind,
)

# Critical power
from .critical_power import (
    PerformanceTest,
    CriticalPowerModel,
    calculate_cp,
    fit_critical_power,
)

# FTP estimation
from .ftp import (
    RiderLevel,
    FTPMethod,
    AthleteProfile,
    HeartRateInputs,
    FTPEstimate,
    make_estimate,
    estimate_ftp_from_20min_test,
    estimate_ftp_from_8min_test,
    estimate_ftp_from_5min_test,
    estimate_ftp_from_1min_test,
    estimate_ftp_from_ramp_test,
    estimate_ftp_from_cp,
    estimate_ftp_from_weight,
    estimate_ftp_range_from_weight,
    estimate_ftp_from_hr,
    normalize_ftp,
    validate_ftp,
)

# Zones
from .zones import (
    ZoneModel,
    PowerZone,
    HeartRateZone,
    calculate_power_zones,
    calculate_heart_rate_zones,
    find_power_zone,
)

# Workout metrics
from .workout_metrics import (
    IntervalType,
    WorkoutInterval,
    WorkoutMetrics,
    calculate_workout_metrics,
    calculate_time_in_zones,
    estimate_tss,
)

# Training load
from .training_load import (
    TrainingLoadParams,
    DailyTrainingLoad,
    TrainingLoadDay,
    calculate_weighted_load,
    calculate_ewma_load,
    calculate_training_load,
    daily_tss_series,
    build_training_load,
    training_load_frame,
    classify_form,
)

__all__ = [
    # Results
    'CalculationResult',
    'ErrorKind',
    # Critical power
    'PerformanceTest',
    'CriticalPowerModel',
    'calculate_cp',
    'fit_critical_power',
    # FTP
    'RiderLevel',
    'FTPMethod',
    'AthleteProfile',
    'HeartRateInputs',
    'FTPEstimate',
    'make_estimate',
    'estimate_ftp_from_20min_test',
    'estimate_ftp_from_8min_test',
    'estimate_ftp_from_5min_test',
    'estimate_ftp_from_1min_test',
    'estimate_ftp_from_ramp_test',
    'estimate_ftp_from_cp',
    'estimate_ftp_from_weight',
    'estimate_ftp_range_from_weight',
    'estimate_ftp_from_hr',
    'normalize_ftp',
    'validate_ftp',
    # Zones
    'ZoneModel',
    'PowerZone',
    'HeartRateZone',
    'calculate_power_zones',
    'calculate_heart_rate_zones',
    'find_power_zone',
    # Workout metrics
    'IntervalType',
    'WorkoutInterval',
    'WorkoutMetrics',
    'calculate_workout_metrics',
    'calculate_time_in_zones',
    'estimate_tss',
    # Training load
    'TrainingLoadParams',
    'DailyTrainingLoad',
    'TrainingLoadDay',
    'calculate_weighted_load',
    'calculate_ewma_load',
    'calculate_training_load',
    'daily_tss_series',
    'build_training_load',
    'training_load_frame',
    'classify_form',
]
