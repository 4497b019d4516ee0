"""
Session gate: resolves who is acting, or that nobody is.

Callers get an explicit ``SignedIn`` / ``SignedOut`` value and must handle
both. A gate can also be pending (identity not known yet); lookups wait
until it resolves.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncGenerator, Protocol, Union, runtime_checkable

from sleeplog.app.errors import NoIdentityError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignedIn:
    user_id: str


@dataclass(frozen=True)
class SignedOut:
    pass


Identity = Union[SignedIn, SignedOut]


@runtime_checkable
class SessionGate(Protocol):
    """Resolve-once and subscribe-to-changes access to the acting identity."""

    async def current_identity(self) -> Identity: ...

    def identity_changes(self) -> AsyncGenerator[Identity, None]: ...


class LocalSessionGate:
    """In-process gate driven by explicit sign-in / sign-out calls."""

    def __init__(self, initial: Identity | None = None) -> None:
        self._identity: Identity | None = initial
        self._resolved = asyncio.Event()
        self._subscribers: set[asyncio.Queue[Identity]] = set()
        if initial is not None:
            self._resolved.set()

    @property
    def pending(self) -> bool:
        return self._identity is None

    def sign_in(self, user_id: str) -> Identity:
        if not user_id:
            raise ValueError("user_id must not be empty")
        logger.info("Signed in as %s", user_id)
        return self._publish(SignedIn(user_id))

    def sign_out(self) -> Identity:
        logger.info("Signed out")
        return self._publish(SignedOut())

    def _publish(self, identity: Identity) -> Identity:
        self._identity = identity
        self._resolved.set()
        for queue in list(self._subscribers):
            queue.put_nowait(identity)
        return identity

    async def current_identity(self) -> Identity:
        await self._resolved.wait()
        if self._identity is None:
            raise RuntimeError("Session gate resolved without an identity")
        return self._identity

    async def identity_changes(self) -> AsyncGenerator[Identity, None]:
        queue: asyncio.Queue[Identity] = asyncio.Queue()
        self._subscribers.add(queue)
        try:
            last = await self.current_identity()
            yield last
            while True:
                identity = await queue.get()
                # A change published while we waited for resolution is already reflected in `last`.
                if identity == last:
                    continue
                last = identity
                yield identity
        finally:
            self._subscribers.discard(queue)


class StaticSessionGate:
    """Gate with a fixed identity, for callers that already know the user."""

    def __init__(self, identity: Identity) -> None:
        self._identity = identity

    @classmethod
    def for_user(cls, user_id: str | None) -> "StaticSessionGate":
        return cls(SignedIn(user_id) if user_id else SignedOut())

    async def current_identity(self) -> Identity:
        return self._identity

    async def identity_changes(self) -> AsyncGenerator[Identity, None]:
        yield self._identity


async def require_user_id(gate: SessionGate) -> str:
    identity = await gate.current_identity()
    if isinstance(identity, SignedIn):
        return identity.user_id
    raise NoIdentityError()


def user_initial(identity: Identity) -> str:
    if isinstance(identity, SignedIn):
        return identity.user_id[0].upper()
    return ""


__all__ = [
    "Identity",
    "LocalSessionGate",
    "SessionGate",
    "SignedIn",
    "SignedOut",
    "StaticSessionGate",
    "require_user_id",
    "user_initial",
]
