"""Session API router: sign in/out and report who is acting."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from starlette.requests import HTTPConnection

from sleeplog.app.session import Identity, LocalSessionGate, SignedIn, user_initial


router = APIRouter(prefix="/session", tags=["session"])


class SignInRequest(BaseModel):
    user_id: str = Field(..., min_length=1, description="Opaque id of the caregiver account.")


class SessionResponse(BaseModel):
    signed_in: bool
    user_id: str | None = None
    initial: str = ""


def get_session_gate(conn: HTTPConnection) -> LocalSessionGate:
    return conn.app.state.session_gate


def _to_response(identity: Identity) -> SessionResponse:
    if isinstance(identity, SignedIn):
        return SessionResponse(signed_in=True, user_id=identity.user_id, initial=user_initial(identity))
    return SessionResponse(signed_in=False)


@router.get("")
async def read_session(gate: LocalSessionGate = Depends(get_session_gate)) -> SessionResponse:
    return _to_response(await gate.current_identity())


@router.post("/sign-in")
async def sign_in(body: SignInRequest, gate: LocalSessionGate = Depends(get_session_gate)) -> SessionResponse:
    try:
        identity = gate.sign_in(body.user_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _to_response(identity)


@router.post("/sign-out")
async def sign_out(gate: LocalSessionGate = Depends(get_session_gate)) -> SessionResponse:
    return _to_response(gate.sign_out())


__all__ = ["router", "get_session_gate"]
