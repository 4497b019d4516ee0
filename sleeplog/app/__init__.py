"""Application package exposing domain modules."""

from .errors import DeletionError, NoIdentityError, SleepLogError, StoreError
from .session import LocalSessionGate, SessionGate, SignedIn, SignedOut, StaticSessionGate, require_user_id
from .sleep_core import SLEEP_STATE_COLORS, SleepEvent, SleepState, SleepTimeDTO, SleepTimeRequest
from .timeline import ChartRow, ChartRowDTO, chart_rows_to_csv, compile_chart_rows

__all__ = [
    "SLEEP_STATE_COLORS",
    "ChartRow",
    "ChartRowDTO",
    "DeletionError",
    "LocalSessionGate",
    "NoIdentityError",
    "SessionGate",
    "SignedIn",
    "SignedOut",
    "SleepEvent",
    "SleepLogError",
    "SleepState",
    "SleepTimeDTO",
    "SleepTimeRequest",
    "StaticSessionGate",
    "StoreError",
    "chart_rows_to_csv",
    "compile_chart_rows",
    "require_user_id",
]
