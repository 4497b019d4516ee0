"""Sleep-time API router: log events, delete them and read the timeline."""

import asyncio
import contextlib
import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket
from fastapi.responses import Response
from starlette.requests import HTTPConnection

from sleeplog.app.sleep_core import SLEEP_STATE_COLORS, SleepTimeRequest
from sleeplog.app.sleep_service import SleepTimeService
from sleeplog.app.timeline import ChartRow, chart_rows_to_csv

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sleep-times", tags=["sleep-times"])


def get_sleep_service(conn: HTTPConnection) -> SleepTimeService:
    return conn.app.state.sleep_service


def _chart_payload(rows: list[ChartRow]) -> dict:
    return {
        "rows": [row.to_dto().model_dump(mode="json") for row in rows],
        "colors": {state.value: color for state, color in SLEEP_STATE_COLORS.items()},
    }


@router.get("")
async def list_sleep_times(service: SleepTimeService = Depends(get_sleep_service)):
    events = await service.get_sleep_times()
    return {"status": "ok", "sleep_times": [event.to_dto() for event in events]}


@router.post("")
async def add_sleep_time(body: SleepTimeRequest, service: SleepTimeService = Depends(get_sleep_service)):
    """Log a state change. Logging again at the same instant replaces the earlier entry."""

    event = await service.set_sleep_time(body.start_timestamp, body.sleep_state)
    return {"status": "ok", "sleep_time": event.to_dto()}


@router.delete("")
async def delete_all_sleep_times(service: SleepTimeService = Depends(get_sleep_service)):
    deleted = await service.delete_all_sleep_times()
    return {"status": "ok", "deleted": deleted}


@router.post("/sample")
async def add_sample_sleep(service: SleepTimeService = Depends(get_sleep_service)):
    added = await service.add_sample_sleep()
    return {"status": "ok", "added": added}


@router.get("/chart")
async def read_chart(service: SleepTimeService = Depends(get_sleep_service)):
    rows = await service.get_chart_rows()
    return {"status": "ok", **_chart_payload(rows)}


@router.get("/chart.csv")
async def download_chart_csv(service: SleepTimeService = Depends(get_sleep_service)):
    rows = await service.get_chart_rows()
    return Response(
        content=chart_rows_to_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="sleep-times.csv"'},
    )


@router.delete("/{event_id}")
async def delete_sleep_time(event_id: str, service: SleepTimeService = Depends(get_sleep_service)):
    try:
        await service.delete_sleep_time(event_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"status": "ok", "id": event_id}


@router.websocket("/chart/ws")
async def chart_feed(websocket: WebSocket, service: SleepTimeService = Depends(get_sleep_service)):
    """Push the compiled chart on every change until the client goes away."""

    await websocket.accept()

    async def send_rows() -> None:
        async with service.watch_chart_rows() as feed:
            async for rows in feed:
                await websocket.send_json(_chart_payload(rows))

    sender = asyncio.create_task(send_rows(), name="chart-feed")
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await sender
        logger.debug("Chart feed closed")


__all__ = ["router", "get_sleep_service"]
