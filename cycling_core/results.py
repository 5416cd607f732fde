"""
Explicit success/failure results for the calculators.

Expected bad input (a missing test value, a resting heart rate above the
maximum) never raises. Callers get a CalculationResult and decide for
themselves whether to log, prompt the rider, or fall back.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ErrorKind(Enum):
    """Classification of problems reported by a calculation."""
    INVALID_INPUT = "invalid_input"                # Non-numeric, NaN or non-positive argument
    MODEL_PRECONDITION = "model_precondition"      # Domain ordering violated (P1 <= P5, maxHR <= restHR)
    OUT_OF_RANGE_WARNING = "out_of_range_warning"  # Valid but physiologically suspicious


@dataclass(frozen=True)
class CalculationResult:
    """
    Outcome of a single calculation.

    ``error`` is set on failure and ``value`` is then None. ``warnings`` can
    accompany a successful value without blocking it.
    """
    value: Any = None
    error: Optional[ErrorKind] = None
    message: str = ""
    warnings: Tuple[ErrorKind, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: Any) -> Any:
        """Return the value, or ``default`` when the calculation failed."""
        return self.value if self.ok else default

    def to_dict(self) -> Dict[str, Any]:
        value = self.value
        if hasattr(value, 'to_dict'):
            value = value.to_dict()
        elif isinstance(value, list):
            value = [v.to_dict() if hasattr(v, 'to_dict') else v for v in value]
        return {
            'value': value,
            'error': self.error.value if self.error else None,
            'message': self.message,
            'warnings': [w.value for w in self.warnings],
        }

    @classmethod
    def success(
        cls,
        value: Any,
        warnings: Tuple[ErrorKind, ...] = (),
        message: str = ""
    ) -> 'CalculationResult':
        return cls(value=value, warnings=tuple(warnings), message=message)

    @classmethod
    def failure(cls, error: ErrorKind, message: str) -> 'CalculationResult':
        return cls(value=None, error=error, message=message)
