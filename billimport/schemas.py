from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any


class JobStatus(str, Enum):
    STARTING = "STARTING"
    STARTED = "STARTED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    STOPPED = "STOPPED"


RUNNING_STATUSES = (JobStatus.STARTING, JobStatus.STARTED)


@dataclass(frozen=True)
class RawBillRow:
    row_number: int
    data: Mapping[str, Any] = field(hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))


@dataclass(frozen=True)
class BillRecord:
    consumer_no: str
    area: str
    consumer_name: str
    billing_month: str
    units_consumed: int | None
    amount_due: float | None


@dataclass(frozen=True)
class ValidationResult:
    # Either an entity or an error, never both; write failures go through as_failure.
    raw_data: RawBillRow
    validated_entity: BillRecord | None = None
    is_valid: bool = False
    error_message: str | None = None

    def __post_init__(self) -> None:
        has_entity = self.validated_entity is not None
        has_error = self.error_message is not None
        if has_entity == has_error:
            raise ValueError("a validation result needs exactly one of validated_entity or error_message")
        if self.is_valid != has_entity:
            raise ValueError("is_valid must be true exactly when validated_entity is set")

    @classmethod
    def valid(cls, raw_data: RawBillRow, entity: BillRecord) -> "ValidationResult":
        return cls(raw_data=raw_data, validated_entity=entity, is_valid=True)

    @classmethod
    def invalid(cls, raw_data: RawBillRow, error_message: str) -> "ValidationResult":
        return cls(raw_data=raw_data, error_message=error_message)

    @property
    def row_number(self) -> int:
        return self.raw_data.row_number

    def as_failure(self, error_message: str) -> "ValidationResult":
        return replace(self, validated_entity=None, is_valid=False, error_message=error_message)


@dataclass(frozen=True)
class Chunk:
    items: tuple[ValidationResult, ...]

    def __init__(self, items: Iterable[ValidationResult]) -> None:
        items = tuple(items)
        if not items:
            raise ValueError("a chunk must contain at least one item")
        object.__setattr__(self, "items", items)

    def __iter__(self) -> Iterator[ValidationResult]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class FailedRecord:
    job_id: int
    row_number: int
    raw_payload: str
    error_message: str


@dataclass(frozen=True)
class ChunkSummary:
    job_id: int
    success_count: int
    failure_count: int
    total_written: int
    total_filtered: int
    failures: tuple[ValidationResult, ...] = field(default=(), repr=False)


@dataclass(frozen=True)
class ImportResult:
    job_execution_id: int
    job_name: str
    input_path: str
    status: str
    read_count: int
    write_count: int
    filter_count: int
    error: str | None
