from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator
from pydantic.alias_generators import to_camel

FATIGUE_BUCKETS = ("0-15s", "15-30s", "30-60s", "60s+")


class _WireModel(BaseModel):
    """Base for models exchanged over HTTP: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# PUBLIC_INTERFACE
class KeystrokeEvent(_WireModel):
    """A single keystroke captured during a typing test.

    Attributes:
        key: The key that was pressed (a character, or a name such as 'Backspace').
        timestamp: Milliseconds elapsed since the session started (session-relative).
        expected: The character that should have been typed; None for non-printing keys.
        correct: Whether the key matched the expected character; None for non-printing keys.
        position: Position in the current word (0-indexed).
        latency_from_previous_key: Milliseconds since the previous keystroke (>= 0).
    """

    key: StrictStr = Field(..., description="Key that was pressed.")
    timestamp: float = Field(
        ..., ge=0, strict=True, description="Session-relative elapsed milliseconds."
    )
    expected: Optional[StrictStr] = Field(None, description="Expected character, if any.")
    correct: Optional[StrictBool] = Field(None, description="Correctness flag, if any.")
    position: int = Field(..., ge=0, strict=True, description="Position in word (>= 0).")
    latency_from_previous_key: float = Field(
        ..., ge=0, strict=True, description="Latency since previous key in ms (>= 0)."
    )

    model_config = ConfigDict(frozen=True, extra="ignore")


# PUBLIC_INTERFACE
class KeystrokeBatchRequest(_WireModel):
    """Request model for the keystroke ingestion endpoint.

    Attributes:
        session_id: Identifier of the typing session that produced the events.
        user_id: Optional user identifier; ignored when the caller is authenticated.
        events: Ordered keystroke events (may be empty).
    """

    session_id: StrictStr = Field(..., description="Typing session identifier.")
    user_id: Optional[StrictStr] = Field(None, description="Optional user identifier.")
    events: List[KeystrokeEvent] = Field(..., description="Ordered keystroke events.")

    @field_validator("session_id")
    @classmethod
    def session_id_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("sessionId must be a non-empty string")
        return v


# PUBLIC_INTERFACE
class BatchAck(_WireModel):
    """Acknowledgment returned after a batch has been stored."""

    success: bool = Field(True, description="Always true for stored batches.")
    batch_id: str = Field(..., description="Identifier assigned to the stored batch.")
    events_count: int = Field(..., ge=0, description="Number of events stored.")


# PUBLIC_INTERFACE
class WeakKey(_WireModel):
    """Error statistics for a single expected character."""

    key: str = Field(..., description="Lower-cased expected character.")
    error_rate: float = Field(..., ge=0, le=100, description="Error rate percentage.")
    total_attempts: int = Field(..., ge=0, description="Number of attempts observed.")


# PUBLIC_INTERFACE
class WeakBigram(_WireModel):
    """Error statistics for an ordered pair of expected characters."""

    bigram: str = Field(..., description="Lower-cased pair of expected characters.")
    error_rate: float = Field(..., ge=0, le=100, description="Error rate percentage.")


def _default_buckets() -> Dict[str, float]:
    return {bucket: 100.0 for bucket in FATIGUE_BUCKETS}


# PUBLIC_INTERFACE
class WeaknessProfile(_WireModel):
    """Per-user weakness statistics, replaced wholesale by each aggregation run.

    Attributes:
        weak_keys: Up to 20 keys sorted by error rate, highest first.
        weak_bigrams: Up to 20 bigrams sorted by error rate, highest first.
        accuracy_by_duration_bucket: Average accuracy per fatigue bucket (100 when unsampled).
        avg_latency_by_finger_group: Average inter-key latency (ms) per finger group.
    """

    weak_keys: List[WeakKey] = Field(default_factory=list, max_length=20)
    weak_bigrams: List[WeakBigram] = Field(default_factory=list, max_length=20)
    accuracy_by_duration_bucket: Dict[str, float] = Field(default_factory=_default_buckets)
    avg_latency_by_finger_group: Dict[str, int] = Field(default_factory=dict)

    @field_validator("accuracy_by_duration_bucket")
    @classmethod
    def buckets_in_range(cls, v: Dict[str, float]) -> Dict[str, float]:
        for bucket, value in v.items():
            if bucket not in FATIGUE_BUCKETS:
                raise ValueError(f"unknown fatigue bucket: {bucket}")
            if not 0 <= value <= 100:
                raise ValueError(f"accuracy for {bucket} out of range: {value}")
        return v

    @field_validator("avg_latency_by_finger_group")
    @classmethod
    def latencies_non_negative(cls, v: Dict[str, int]) -> Dict[str, int]:
        if any(value < 0 for value in v.values()):
            raise ValueError("latencies must be non-negative")
        return v


# PUBLIC_INTERFACE
class StoredProfile(_WireModel):
    """A weakness profile as held by the profile store."""

    user_id: str = Field(..., description="Owner of the profile.")
    profile: WeaknessProfile = Field(..., description="The computed profile.")
    last_calculated_at: datetime = Field(..., description="When the profile was written.")


# PUBLIC_INTERFACE
class AggregationResult(_WireModel):
    """Summary of one aggregation run."""

    success: bool = Field(True, description="True when the run itself completed.")
    users_found: int = Field(..., ge=0, description="Users with batches in the window.")
    processed_users: int = Field(..., ge=0, description="Users whose profile was replaced.")
    failed_users: int = Field(..., ge=0, description="Users skipped after an error.")
    message: str = Field("", description="Human-readable summary.")


# PUBLIC_INTERFACE
class WordsResponse(_WireModel):
    """An ordered sequence of practice words."""

    words: List[str] = Field(..., description="Ordered words.")
    count: int = Field(..., ge=0, description="Number of words returned.")
    adaptive: bool = Field(False, description="True when a weakness profile shaped the words.")
