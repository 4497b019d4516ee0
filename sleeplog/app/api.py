"""Application factory wiring session + sleep-time routers together."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from sleeplog import config
from sleeplog.app.errors import DeletionError, NoIdentityError, StoreError
from sleeplog.app.session import LocalSessionGate, SignedIn, SignedOut
from sleeplog.app.session_api import router as session_router
from sleeplog.app.sleep_api import router as sleep_router
from sleeplog.app.sleep_service import SleepTimeService
from sleeplog.db import EventStore, get_backend


async def _no_identity(request: Request, exc: NoIdentityError) -> JSONResponse:
    return JSONResponse(status_code=401, content={"status": "error", "detail": str(exc)})


async def _store_failure(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=502, content={"status": "error", "detail": str(exc)})


def create_app(store: EventStore | None = None, session_gate: LocalSessionGate | None = None) -> FastAPI:
    if session_gate is None:
        user_id = config.default_user()
        session_gate = LocalSessionGate(SignedIn(user_id) if user_id else SignedOut())

    app = FastAPI(title="SleepLog API")
    app.state.session_gate = session_gate
    app.state.sleep_service = SleepTimeService(store or get_backend(), session_gate)

    app.add_exception_handler(NoIdentityError, _no_identity)
    app.add_exception_handler(StoreError, _store_failure)
    app.add_exception_handler(DeletionError, _store_failure)

    app.include_router(session_router)
    app.include_router(sleep_router)
    return app


__all__ = ["create_app"]
