"""Validation report models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID


class ValidationStatus(str, Enum):
    """Overall outcome of validating a scan."""

    PASSED = "passed"
    WARNING = "warning"
    FAILED = "failed"
    PENDING = "pending"


@dataclass(frozen=True)
class ValidationReport:
    """Results of all five validation levels for one scan."""

    report_id: UUID
    scan_id: UUID
    created_at: datetime
    level1_pass: bool
    level1_missing_fields: tuple[str, ...] = ()
    level2_warnings: tuple[str, ...] = ()
    level3_ratio_sum_valid: bool | None = None
    level3_calorie_diff_percent: float | None = None
    level4_anomalies: tuple[str, ...] = ()
    level5_low_confidence_count: int = 0
    level5_details: dict[str, float] = field(default_factory=dict)

    @property
    def has_critical_failure(self) -> bool:
        """Return True if required fields are missing or the ratio sum is off."""
        return not self.level1_pass or self.level3_ratio_sum_valid is False
