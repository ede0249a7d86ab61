"""Debounced, cancellable suggestion requests.

All state lives on a :class:`SuggestionPipeline` instance and is touched only
from the event loop that drives it. Each trigger opens a session identified by
a generation token; a newer trigger supersedes the current session, and a
superseded session is never delivered even if its retrieval call still
completes.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Protocol, Sequence, Set

from notelink.errors import NoteLinkError, RetrievalFailure
from notelink.models import Candidate, Suggestion
from notelink.suggest.trigger import TriggerEvent

LOGGER = logging.getLogger(__name__)

DEFAULT_DELAY = 0.5

DeliveryCallback = Callable[[List[Suggestion], "NoteLinkError | None"], None]


class Retriever(Protocol):
    """Anything that ranks (note, heading) candidates for a query.

    ``retrieve`` may be a plain or an ``async`` method; plain methods are run
    in a worker thread.
    """

    def retrieve(self, query: str, auth_token: str) -> Sequence[Candidate]:
        ...


class BatchResolver(Protocol):
    def resolve_all(self, candidates: Sequence[Candidate]) -> List[Suggestion]:
        ...


class SessionState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    RESOLVING = "resolving"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


@dataclass(slots=True, eq=False)
class _Session:
    token: int
    event: TriggerEvent
    callback: DeliveryCallback
    state: SessionState = SessionState.PENDING
    task: asyncio.Task | None = None
    waiter: asyncio.Future | None = field(default=None, repr=False)


class SuggestionPipeline:
    """Coalesces trigger events into at most one outstanding request."""

    def __init__(
        self,
        retriever: Retriever,
        resolver: BatchResolver,
        *,
        delay: float = DEFAULT_DELAY,
        auth_token: str = "",
    ) -> None:
        self.retriever = retriever
        self.resolver = resolver
        self.delay = delay
        self.auth_token = auth_token
        self._generation = 0
        self._current: _Session | None = None
        self._tasks: Set[asyncio.Task] = set()
        # resolutions run one at a time so worker threads never share the corpus
        self._resolve_lock = asyncio.Lock()

    @property
    def state(self) -> SessionState:
        if self._current is None:
            return SessionState.IDLE
        return self._current.state

    def submit(self, event: TriggerEvent, callback: DeliveryCallback) -> int:
        """Start a new session for ``event``, superseding any current one.

        Returns the session token. An empty query is answered immediately
        with an empty list, without consulting the retriever.
        """
        self._supersede()
        self._generation += 1
        token = self._generation

        if not event.query:
            callback([], None)
            return token

        session = _Session(token=token, event=event, callback=callback)
        self._current = session
        session.task = asyncio.get_running_loop().create_task(self._run(session))
        self._tasks.add(session.task)
        session.task.add_done_callback(self._tasks.discard)
        return token

    async def request(self, event: TriggerEvent) -> List[Suggestion]:
        """Awaitable form of :meth:`submit`.

        Raises ``RetrievalFailure`` if retrieval fails, ``NoteLinkError`` if
        resolving the candidates fails and ``asyncio.CancelledError`` if a
        newer trigger supersedes this one.
        """
        waiter = asyncio.get_running_loop().create_future()

        def _deliver(suggestions: List[Suggestion], error: NoteLinkError | None) -> None:
            if waiter.done():
                return
            if error is not None:
                waiter.set_exception(error)
            else:
                waiter.set_result(suggestions)

        self.submit(event, _deliver)
        if self._current is not None and self._current.callback is _deliver:
            self._current.waiter = waiter
        return await waiter

    def cancel(self) -> None:
        """Drop the current session, e.g. when the suggestion popup closes."""
        self._supersede()
        self._generation += 1

    async def join(self) -> None:
        """Wait for every outstanding session task, including superseded ones."""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def _supersede(self) -> None:
        session = self._current
        if session is None:
            return
        self._current = None
        if session.state is SessionState.PENDING and session.task is not None:
            session.task.cancel()
        session.state = SessionState.CANCELLED
        if session.waiter is not None and not session.waiter.done():
            session.waiter.cancel()
        LOGGER.debug("Superseded suggestion session %d", session.token)

    async def _run(self, session: _Session) -> None:
        await asyncio.sleep(self.delay)

        session.state = SessionState.RESOLVING
        query = session.event.query
        try:
            candidates = await self._retrieve(query)
        except Exception as exc:
            LOGGER.warning("Retrieval failed for %r: %s", query, exc)
            error = exc if isinstance(exc, RetrievalFailure) else RetrievalFailure(str(exc))
            self._deliver(session, [], error)
            return

        async with self._resolve_lock:
            if self._is_stale(session):
                LOGGER.debug("Skipping resolution for stale session %d", session.token)
                return
            try:
                suggestions = await asyncio.to_thread(self.resolver.resolve_all, list(candidates))
            except Exception as exc:
                LOGGER.exception("Resolving candidates failed for %r", query)
                error = exc if isinstance(exc, NoteLinkError) else NoteLinkError(str(exc))
                self._deliver(session, [], error)
                return

        self._deliver(session, suggestions, None)

    async def _retrieve(self, query: str) -> Sequence[Candidate]:
        retrieve = self.retriever.retrieve
        if inspect.iscoroutinefunction(retrieve):
            return await retrieve(query, self.auth_token)
        return await asyncio.to_thread(retrieve, query, self.auth_token)

    def _deliver(
        self,
        session: _Session,
        suggestions: List[Suggestion],
        error: NoteLinkError | None,
    ) -> None:
        if self._is_stale(session):
            LOGGER.debug("Dropping stale results for session %d", session.token)
            return

        session.state = SessionState.DELIVERED
        self._current = None
        try:
            session.callback(suggestions, error)
        except Exception:
            LOGGER.exception("Suggestion callback failed for %r", session.event.query)

    def _is_stale(self, session: _Session) -> bool:
        return session.token != self._generation or session.state is SessionState.CANCELLED
