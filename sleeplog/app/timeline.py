"""
Compile ordered sleep events into day-partitioned timeline rows.

Each event opens a row that the next event's timestamp closes. When two
consecutive events fall on different calendar days the open row is closed
at the end of its day (24:00 unless the clocks changed) and the new day
starts with a gap row carrying the previous state from 00:00 up to the new
event. The last row has no closing event; it gets a one second placeholder
end and is flagged ``open``.
"""

import csv
import io
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, List, Sequence

from pydantic import BaseModel

from sleeplog.app.sleep_core import SleepEvent, SleepState

START_OF_DAY = timedelta(0)
END_OF_DAY = timedelta(hours=24)
OPEN_ROW_PLACEHOLDER = timedelta(seconds=1)
ONE_DAY = timedelta(days=1)


class ChartRowDTO(BaseModel):
    date: date
    state: SleepState
    start: str
    end: str
    open: bool = False


@dataclass
class ChartRow:
    date: date
    state: SleepState
    start: timedelta
    end: timedelta
    open: bool = False

    def close(self, end: timedelta) -> None:
        self.end = end
        self.open = False

    def to_dto(self) -> ChartRowDTO:
        return ChartRowDTO(
            date=self.date,
            state=self.state,
            start=format_time_of_day(self.start),
            end=format_time_of_day(self.end),
            open=self.open,
        )


def _elapsed(start: datetime, end: datetime) -> timedelta:
    # Aware datetimes sharing a tzinfo subtract as wall clock times, so go through UTC.
    if start.tzinfo is None:
        return end - start
    return end.astimezone(timezone.utc) - start.astimezone(timezone.utc)


def _midnight(day: date, zone: tzinfo | None) -> datetime:
    return datetime.combine(day, time(0), zone)


def time_of_day(ts: datetime) -> timedelta:
    """Time elapsed since local midnight, not the wall clock reading."""
    ts = ts.replace(microsecond=0)
    return _elapsed(_midnight(ts.date(), ts.tzinfo), ts)


def day_length(day: date, zone: tzinfo | None = None) -> timedelta:
    """24 hours, except on days when the zone's clocks change."""
    return _elapsed(_midnight(day, zone), _midnight(day + ONE_DAY, zone))


def format_time_of_day(offset: timedelta) -> str:
    total = int(offset.total_seconds())
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    if seconds:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{hours:02d}:{minutes:02d}"


def compile_chart_rows(events: Sequence[SleepEvent]) -> List[ChartRow]:
    """
    Turn events sorted ascending by ``start_timestamp`` into chart rows.

    The input order is trusted, not checked: unsorted input produces
    unspecified rows. Calendar day is read from the timestamps as given,
    so convert them to the display zone first. Start and end are measured
    as time elapsed since that day's midnight, so rows stay ordered across
    daylight saving changes and a day ends at its own length (23h or 25h
    when the clocks change, 24:00 otherwise).

    Days with no events between two consecutive events are covered by one
    full-day row each, carrying the earlier event's state.
    """
    rows: List[ChartRow] = []
    current: ChartRow | None = None
    previous: SleepEvent | None = None

    for event in events:
        day = event.start_timestamp.date()
        zone = event.start_timestamp.tzinfo
        start = time_of_day(event.start_timestamp)

        if previous is not None and current is not None:
            previous_day = previous.start_timestamp.date()
            if day == previous_day:
                current.close(start)
            else:
                current.close(day_length(previous_day, previous.start_timestamp.tzinfo))
                skipped = previous_day + ONE_DAY
                while skipped < day:
                    rows.append(ChartRow(skipped, previous.sleep_state, START_OF_DAY, day_length(skipped, zone)))
                    skipped += ONE_DAY
                rows.append(ChartRow(day, previous.sleep_state, START_OF_DAY, start))

        current = ChartRow(day, event.sleep_state, start, start + OPEN_ROW_PLACEHOLDER, open=True)
        rows.append(current)
        previous = event

    return rows


def chart_rows_to_csv(rows: Iterable[ChartRow]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["Date", "State", "Start", "End"])
    for row in rows:
        writer.writerow([
            row.date.isoformat(),
            row.state.value,
            format_time_of_day(row.start),
            format_time_of_day(row.end),
        ])
    return buffer.getvalue()


__all__ = [
    "ChartRow",
    "ChartRowDTO",
    "END_OF_DAY",
    "OPEN_ROW_PLACEHOLDER",
    "START_OF_DAY",
    "chart_rows_to_csv",
    "compile_chart_rows",
    "day_length",
    "format_time_of_day",
    "time_of_day",
]
