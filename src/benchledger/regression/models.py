"""Models for regression detection.

This module provides the regression policy (thresholds, baseline window and
the unit direction-of-improvement mapping) and the Finding produced for each
measurement that crosses a threshold.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from benchledger.core.exceptions import PolicyConfigError

if TYPE_CHECKING:
    from benchledger.core.config import Settings


class Direction(str, Enum):
    """Which way a unit improves."""

    HIGHER_IS_BETTER = "higher_is_better"
    LOWER_IS_BETTER = "lower_is_better"


class Severity(str, Enum):
    """Outcome of comparing a measurement with its baseline."""

    REGRESSION = "regression"
    IMPROVEMENT = "improvement"
    INDETERMINATE = "indeterminate"


# Throughput units improve upwards, time-per-operation units downwards
DEFAULT_DIRECTIONS: dict[str, Direction] = {
    "ops/ns": Direction.HIGHER_IS_BETTER,
    "ops/us": Direction.HIGHER_IS_BETTER,
    "ops/ms": Direction.HIGHER_IS_BETTER,
    "ops/s": Direction.HIGHER_IS_BETTER,
    "ops/min": Direction.HIGHER_IS_BETTER,
    "ops/hr": Direction.HIGHER_IS_BETTER,
    "ns/op": Direction.LOWER_IS_BETTER,
    "us/op": Direction.LOWER_IS_BETTER,
    "ms/op": Direction.LOWER_IS_BETTER,
    "s/op": Direction.LOWER_IS_BETTER,
    "ns": Direction.LOWER_IS_BETTER,
    "us": Direction.LOWER_IS_BETTER,
    "ms": Direction.LOWER_IS_BETTER,
    "s": Direction.LOWER_IS_BETTER,
}


class RegressionPolicy(BaseModel):
    """Policy for regression detection.

    A ratio ``new / baseline`` is compared with the thresholds; boundaries
    are exclusive, so a ratio exactly equal to a threshold is not flagged.

    Attributes:
        window_size: Number of prior values averaged into the baseline.
        lower_threshold: Ratio below which a higher-is-better measurement
            regresses (and a lower-is-better one improves).
        upper_threshold: Ratio above which a lower-is-better measurement
            regresses (and a higher-is-better one improves).
        directions: Direction of improvement per unit. Never inferred.

    Example:
        >>> policy = RegressionPolicy(lower_threshold=0.5)
        >>> policy.direction_for("ops/us")
        <Direction.HIGHER_IS_BETTER: 'higher_is_better'>
    """

    model_config = {"frozen": True}

    window_size: int = Field(default=1, ge=1, description="Baseline window size")
    lower_threshold: float = Field(default=0.80, gt=0, le=1, description="Lower ratio threshold")
    upper_threshold: float = Field(default=1.25, ge=1, description="Upper ratio threshold")
    directions: dict[str, Direction] = Field(
        default_factory=lambda: dict(DEFAULT_DIRECTIONS),
        description="Direction of improvement per unit",
    )

    @model_validator(mode="after")
    def _check_thresholds(self) -> RegressionPolicy:
        if self.lower_threshold > self.upper_threshold:
            msg = f"lower_threshold ({self.lower_threshold}) exceeds upper_threshold ({self.upper_threshold})"
            raise ValueError(msg)
        return self

    @classmethod
    def from_settings(cls, settings: Settings) -> RegressionPolicy:
        """Build a policy from application settings with default directions.

        Raises:
            PolicyConfigError: If the settings do not form a valid policy.
        """
        try:
            return cls(
                window_size=settings.window_size,
                lower_threshold=settings.lower_threshold,
                upper_threshold=settings.upper_threshold,
            )
        except PydanticValidationError as e:
            raise PolicyConfigError(f"Invalid regression settings: {e}") from e

    @classmethod
    def from_yaml(cls, path: Path | str) -> RegressionPolicy:
        """Load a policy from a YAML file.

        The file may hold the fields at top level or under a ``regression:``
        key. Directions listed in the file extend the defaults.

        Args:
            path: Path to the YAML policy file.

        Returns:
            RegressionPolicy loaded from the file.

        Raises:
            PolicyConfigError: If the file is missing or invalid.
        """
        import yaml

        path = Path(path)
        if not path.exists():
            msg = f"Policy file not found: {path}"
            raise PolicyConfigError(msg)

        try:
            data = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise PolicyConfigError(f"Invalid YAML in policy file {path}: {e}") from e

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise PolicyConfigError(f"Policy file {path} must contain a mapping")

        section: dict[str, Any] = data.get("regression", data)
        if not isinstance(section, dict):
            raise PolicyConfigError(f"'regression' section of {path} must be a mapping")
        directions = {**DEFAULT_DIRECTIONS, **(section.get("directions") or {})}
        try:
            return cls.model_validate({**section, "directions": directions})
        except PydanticValidationError as e:
            raise PolicyConfigError(f"Invalid policy in {path}: {e}") from e

    def to_yaml(self, path: Path | str) -> None:
        """Save the policy to a YAML file.

        Args:
            path: Path to the output YAML file.
        """
        import yaml

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "regression": {
                "window_size": self.window_size,
                "lower_threshold": self.lower_threshold,
                "upper_threshold": self.upper_threshold,
                "directions": {unit: direction.value for unit, direction in self.directions.items()},
            }
        }

        path.write_text(yaml.dump(data, default_flow_style=False, sort_keys=False))

    def direction_for(self, unit: str) -> Direction:
        """Return the direction of improvement of ``unit``.

        Raises:
            PolicyConfigError: If the unit has no configured direction.
        """
        try:
            return self.directions[unit]
        except KeyError:
            raise PolicyConfigError(f"No direction of improvement configured for unit '{unit}'") from None

    def check_units(self, units: Iterable[str]) -> None:
        """Fail fast if any of ``units`` lacks a direction mapping.

        Raises:
            PolicyConfigError: Listing every unmapped unit.
        """
        missing = sorted({unit for unit in units if unit not in self.directions})
        if missing:
            raise PolicyConfigError(
                f"No direction of improvement configured for unit(s): {', '.join(repr(u) for u in missing)}"
            )


class Finding(BaseModel):
    """Outcome of comparing one measurement with its baseline.

    Attributes:
        suite: Suite name.
        tool: Tool identifier.
        name: Benchmark name.
        unit: Unit of the new value.
        baseline_value: Mean of the baseline window (None when no usable
            baseline exists).
        new_value: The new measurement.
        ratio: ``new_value / baseline_value`` (None when indeterminate).
        severity: Regression, improvement, or indeterminate.
        window: Number of prior values the baseline was computed from.
        reason: Why the comparison was indeterminate, if it was.
    """

    model_config = {"frozen": True}

    suite: str
    tool: str
    name: str
    unit: str
    baseline_value: float | None
    new_value: float
    ratio: float | None
    severity: Severity
    window: int = 0
    reason: str | None = None

    @property
    def key(self) -> tuple[str, str, str]:
        """The ``(suite, tool, name)`` comparison key."""
        return (self.suite, self.tool, self.name)

    @property
    def message(self) -> str:
        """Human-readable description of the finding."""
        if self.severity == Severity.INDETERMINATE:
            return f"{self.name}: indeterminate ({self.reason})"
        baseline = f"{self.baseline_value:.4g}" if self.baseline_value is not None else "n/a"
        ratio = f"{self.ratio:.3f}" if self.ratio is not None else "n/a"
        return f"{self.name}: {self.severity.value} {baseline} -> {self.new_value:.4g} {self.unit} (ratio {ratio})"
