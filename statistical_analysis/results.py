from typing import Any, Dict, Generic, Optional, Tuple, TypeVar, Union
from dataclasses import dataclass, fields
from enum import Enum
from math import isfinite

from statistical_analysis.errors import StatisticalError


class CorrelationType(Enum):
    PEARSON = "pearson"
    SPEARMAN = "spearman"


class CorrelationStrength(Enum):
    VERY_WEAK = "very_weak"
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"
    VERY_STRONG = "very_strong"


class CorrelationDirection(Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NONE = "none"


class ReadabilityLevel(Enum):
    VERY_EASY = "Very Easy"
    EASY = "Easy"
    FAIRLY_EASY = "Fairly Easy"
    STANDARD = "Standard"
    FAIRLY_DIFFICULT = "Fairly Difficult"
    DIFFICULT = "Difficult"
    VERY_DIFFICULT = "Very Difficult"
    UNABLE_TO_DETERMINE = "Unable to determine"


def _camel_case(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.capitalize() for part in rest)


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (tuple, list)):
        return [_serialize(item) for item in value]
    # JSON has no infinity or NaN
    if isinstance(value, float) and not isfinite(value):
        return None
    return value


class SerializableResult:
    """Mixin rendering a result dataclass as a JSON-ready dict with camelCase keys"""

    def to_dict(self) -> Dict[str, Any]:
        payload = {}
        for result_field in fields(self):
            value = getattr(self, result_field.name)
            if value is None:
                continue
            payload[_camel_case(result_field.name)] = _serialize(value)
        return payload


@dataclass(frozen=True)
class StatisticalResult(SerializableResult):
    value: float
    confidence: float
    sample_size: int
    methodology: str
    p_value: Optional[float] = None
    standard_error: Optional[float] = None
    confidence_interval: Optional[Tuple[float, float]] = None


@dataclass(frozen=True)
class CorrelationResult(StatisticalResult):
    correlation_type: CorrelationType = CorrelationType.PEARSON
    strength: CorrelationStrength = CorrelationStrength.VERY_WEAK
    direction: CorrelationDirection = CorrelationDirection.NONE

    @property
    def is_empty(self) -> bool:
        """True for the canonical result returned when correlation cannot be computed"""
        return self.sample_size == 0

    @classmethod
    def empty(cls, correlation_type: CorrelationType) -> 'CorrelationResult':
        methodology = {
            CorrelationType.PEARSON: 'Pearson product-moment correlation',
            CorrelationType.SPEARMAN: 'Spearman rank correlation',
        }[correlation_type]
        return cls(
            value=0.0,
            confidence=0.0,
            sample_size=0,
            methodology=methodology,
            correlation_type=correlation_type,
        )


@dataclass(frozen=True)
class RegressionResult(SerializableResult):
    slope: float
    intercept: float
    r_squared: float
    adjusted_r_squared: float
    standard_error: float
    t_statistic: float
    p_value: float
    confidence_interval: Tuple[float, float]
    residuals: Tuple[float, ...]
    predictions: Tuple[float, ...]
    sample_size: int

    def predict(self, x: float) -> float:
        """Predict the response for a single predictor value"""
        return self.slope * x + self.intercept


@dataclass(frozen=True)
class HypothesisTestResult(SerializableResult):
    test_statistic: float
    p_value: float
    critical_value: float
    reject_null: bool
    confidence_level: float
    test_type: str
    effect_size: Optional[float] = None
    degrees_of_freedom: Optional[float] = None


@dataclass(frozen=True)
class ReadabilityResult(SerializableResult):
    score: float
    level: ReadabilityLevel
    confidence: float
    method: str


T = TypeVar('T')


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    reason: str
    error: StatisticalError

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self):
        raise self.error


Outcome = Union[Ok, Err]
