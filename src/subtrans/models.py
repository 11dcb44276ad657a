"""
Data models for the subtitle translator.
"""

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Segment:
    """A single subtitle entry as parsed from the source document."""

    id: int
    timestamp: str  # opaque "00:00:01,000 --> 00:00:02,500"
    text: str


@dataclass
class ProgressEvent:
    """One entry on a run's progress channel."""

    kind: str  # progress | quota_wait | quota_resume | complete | error | result
    translated_count: int
    total_count: int
    chunk_index: int | None = None
    chunk_total: int | None = None
    message: str = ""
    retry_after_seconds: float | None = None
    error_type: str | None = None
    translations: list[str] | None = None
    document: str | None = None

    def to_dict(self) -> dict:
        """Return the event as a dict without unset optional fields."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class KeyValidation:
    """Outcome of a credential check."""

    valid: bool
    error_type: str | None = None
    message: str = ""
