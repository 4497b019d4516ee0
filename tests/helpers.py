from datetime import datetime, timezone

from sleeplog.app.sleep_core import SleepEvent, SleepState

AWAKE = SleepState.AWAKE
ASLEEP = SleepState.ASLEEP
CRYING = SleepState.CRYING


def at(month, day, hour, minute=0, second=0):
    return datetime(2018, month, day, hour, minute, second, tzinfo=timezone.utc)


def event(month, day, hour, minute, state):
    return SleepEvent(at(month, day, hour, minute), state)
