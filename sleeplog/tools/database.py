"""Expose a user's sleep log and timeline as read-only MCP tools via fastmcp."""

from typing import Any, Dict

from fastmcp import FastMCP

from sleeplog.app.session import StaticSessionGate
from sleeplog.app.sleep_core import SLEEP_STATE_COLORS
from sleeplog.app.sleep_service import SleepTimeService
from sleeplog.db import get_backend

server = FastMCP(
    name="sleeplog",
    instructions="Read an infant's logged sleep states and the day-by-day timeline built from them.",
)


def _service_for(user_id: str | None) -> SleepTimeService:
    return SleepTimeService(get_backend(), StaticSessionGate.for_user(user_id))


async def get_sleep_times(user_id: str) -> Dict[str, Any]:
    events = await _service_for(user_id).get_sleep_times()
    return {"user_id": user_id, "sleep_times": [event.to_dto().model_dump(mode="json") for event in events]}


async def get_sleep_chart(user_id: str) -> Dict[str, Any]:
    rows = await _service_for(user_id).get_chart_rows()
    return {
        "user_id": user_id,
        "rows": [row.to_dto().model_dump(mode="json") for row in rows],
        "colors": {state.value: color for state, color in SLEEP_STATE_COLORS.items()},
    }


server.tool(
    name="get_sleep_times",
    description="List a user's logged sleep-state changes in time order.",
)(get_sleep_times)

server.tool(
    name="get_sleep_chart",
    description="Fetch a user's timeline rows (date, state, start, end) split at midnight.",
)(get_sleep_chart)


def run() -> None:
    """Run the MCP server. Defaults to stdio transport."""

    server.run(transport="stdio")


if __name__ == "__main__":
    run()
