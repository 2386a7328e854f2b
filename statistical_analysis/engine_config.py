from dataclasses import dataclass

from statistical_analysis.errors import InvalidInputError


RANK_METHODS = ('min', 'average')
READABILITY_METHODS = ('flesch', 'gunning_fog', 'coleman_liau')


@dataclass(frozen=True)
class EngineConfig:
    """Defaults shared by every operation of the statistical engine.

    Attributes:
        default_confidence_level: Confidence level used when a caller passes none
        default_alpha: Significance level used by the z-tests when a caller passes none
        precision: Decimal places reported for rounded statistics
        rank_method: Tie handling for Spearman ranks ('min' keeps the first
            sorted position for every tied value, 'average' averages tied ranks)
        readability_method: Readability formula used when a caller passes none
    """

    default_confidence_level: float = 0.95
    default_alpha: float = 0.05
    precision: int = 4
    rank_method: str = 'min'
    readability_method: str = 'flesch'

    def __post_init__(self):
        """Validate configuration."""
        if not 0 < self.default_confidence_level < 1:
            raise InvalidInputError(
                f"default_confidence_level must be in (0, 1), got {self.default_confidence_level}"
            )

        if not 0 < self.default_alpha < 1:
            raise InvalidInputError(f"default_alpha must be in (0, 1), got {self.default_alpha}")

        if self.precision < 0:
            raise InvalidInputError(f"precision must be >= 0, got {self.precision}")

        if self.rank_method not in RANK_METHODS:
            raise InvalidInputError(
                f"rank_method must be one of {list(RANK_METHODS)}, got {self.rank_method}"
            )

        if self.readability_method not in READABILITY_METHODS:
            raise InvalidInputError(
                f"readability_method must be one of {list(READABILITY_METHODS)}, "
                f"got {self.readability_method}"
            )
