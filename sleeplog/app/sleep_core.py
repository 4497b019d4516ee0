"""
Sleep domain types: states, events and their API representations.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field


class SleepState(str, Enum):
    AWAKE = "Awake"
    ASLEEP = "Asleep"
    CRYING = "Crying"


# Timeline bar colours, one per state.
SLEEP_STATE_COLORS: Dict[SleepState, str] = {
    SleepState.AWAKE: "#69F0AE",
    SleepState.ASLEEP: "#7b1fa2",
    SleepState.CRYING: "#f44336",
}


def sleep_times_path(user_id: str) -> str:
    return f"accounts/{user_id}/sleepTimes"


def timestamp_to_millis(ts: datetime) -> int:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return int(round(ts.timestamp() * 1000))


def millis_to_timestamp(millis: int) -> datetime:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def parse_event_id(event_id: str) -> int:
    """Event ids are epoch milliseconds; reject anything else."""
    try:
        return int(event_id)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid sleep time id: {event_id!r}") from exc


class SleepTimeDTO(BaseModel):
    id: str
    start_timestamp: datetime
    sleep_state: SleepState


@dataclass(frozen=True)
class SleepEvent:
    """A sleep-state transition. Identified by its start timestamp."""

    start_timestamp: datetime
    sleep_state: SleepState

    @property
    def event_id(self) -> str:
        return str(timestamp_to_millis(self.start_timestamp))

    def to_document(self) -> Dict[str, Any]:
        return {
            "startTimestamp": timestamp_to_millis(self.start_timestamp),
            "sleepState": self.sleep_state.value,
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "SleepEvent":
        return cls(
            start_timestamp=millis_to_timestamp(int(doc["startTimestamp"])),
            sleep_state=SleepState(doc["sleepState"]),
        )

    def to_dto(self) -> SleepTimeDTO:
        return SleepTimeDTO(id=self.event_id, start_timestamp=self.start_timestamp, sleep_state=self.sleep_state)


class SleepTimeRequest(BaseModel):
    start_timestamp: datetime = Field(..., description="When the state began. Naive values use the configured timezone.")
    sleep_state: SleepState = Field(..., description="Awake | Asleep | Crying")


__all__ = [
    "SLEEP_STATE_COLORS",
    "SleepEvent",
    "SleepState",
    "SleepTimeDTO",
    "SleepTimeRequest",
    "millis_to_timestamp",
    "parse_event_id",
    "sleep_times_path",
    "timestamp_to_millis",
]
