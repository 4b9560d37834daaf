"""Coverage value types and their flattened wire format.

gcovr emits its JSON summary with flat fields in the form ``branch_covered``,
``function_total``, ``line_percent`` and so on. :meth:`CoverageSummary.to_flat`
and :meth:`CoverageSummary.from_flat` are the only places that know about the
prefixed key names.
"""
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError

from gcov_server.core.errors import SerializationError

METRICS = ('branch', 'function', 'line')
COVERAGE_FIELDS = ('covered', 'total', 'percent')


def flat_key(metric: str, field_name: str) -> str:
    return f"{metric}_{field_name}"


FLAT_KEYS = tuple(
    flat_key(metric, field_name)
    for metric in METRICS for field_name in COVERAGE_FIELDS
)


class Coverage(BaseModel):
    """A single coverage measurement."""
    # Number of cases covered
    covered: int = Field(ge=0, strict=True)
    # Total number of cases
    total: int = Field(ge=0, strict=True)
    # Percentage as reported by the client, never recomputed
    percent: float = Field(strict=True, allow_inf_nan=False)

    model_config = ConfigDict(frozen=True)


class CoverageSummary(BaseModel):
    """Branch, function and line coverage for one measurement event."""
    branch: Coverage
    function: Coverage
    line: Coverage

    model_config = ConfigDict(frozen=True)

    @property
    def overall_percent(self) -> float:
        """Mean of the three sub-percentages, for display only."""
        return (self.branch.percent + self.function.percent + self.line.percent) / 3

    def to_flat(self) -> dict[str, Any]:
        flat: dict[str, Any] = {}
        for metric in METRICS:
            coverage: Coverage = getattr(self, metric)
            for field_name in COVERAGE_FIELDS:
                flat[flat_key(metric, field_name)] = getattr(coverage, field_name)
        return flat

    @classmethod
    def from_flat(cls, data: Any) -> 'CoverageSummary':
        """
        Build a summary from its flat nine-key form.

        Unknown keys are ignored.

        Raises:
            SerializationError: the payload is not an object, a key is
                missing, or a value has the wrong type.
        """
        if not isinstance(data, dict):
            raise SerializationError(
                f"expected a JSON object, got {type(data).__name__}",
            )

        missing = [key for key in FLAT_KEYS if key not in data]
        if missing:
            raise SerializationError(f"missing field(s): {', '.join(missing)}")

        nested = {
            metric: {
                field_name: data[flat_key(metric, field_name)]
                for field_name in COVERAGE_FIELDS
            }
            for metric in METRICS
        }
        try:
            return cls.model_validate(nested)
        except ValidationError as e:
            raise SerializationError(str(e)) from e
