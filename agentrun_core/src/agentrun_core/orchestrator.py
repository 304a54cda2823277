"""Run lifecycle orchestration.

The orchestrator owns the live session state of one thread and at most one
in-flight run. It composes the stream pipeline (bytes to frames to events to
state) and publishes every new state to its observers.

Usage:
    ```python
    from agentrun_core import AgentRunConfig, AgentServerClient, RunOrchestrator, RunRequest

    config = AgentRunConfig()
    async with AgentServerClient(config) as client:
        orchestrator = RunOrchestrator(client, config)
        handle = orchestrator.submit(
            RunRequest(assistant_id=config.assistant_id, input={"messages": [...]})
        )
        await handle.wait()
        print(orchestrator.state.messages[-1].text)
    ```
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Iterable
from typing import Any

from agentrun_core.client.protocol import AgentServer
from agentrun_core.config import AgentRunConfig
from agentrun_core.errors import AgentRunError, ThreadCreationError
from agentrun_core.interrupts import interrupts_from_history_entry
from agentrun_core.models.events import StreamEvent, StreamEventKind
from agentrun_core.models.interrupts import InterruptDescriptor
from agentrun_core.models.run import RunRequest, RunStatus
from agentrun_core.models.state import SessionState
from agentrun_core.observers import RunObserver
from agentrun_core.payload import as_dict, opt_str
from agentrun_core.stream.decoder import iter_events
from agentrun_core.stream.reducer import reduce

logger = logging.getLogger(__name__)

OptimisticUpdate = Callable[[SessionState], SessionState]


class RunHandle:
    """One submitted run.

    Attributes:
        request: The submission.
        status: Current lifecycle status.
        thread_id: Thread the run executes on, once known.
        run_id: Server-side run id, once a ``metadata`` event reported it.
        error: The exception that failed the run, if any.
    """

    def __init__(self, request: RunRequest) -> None:
        self.request = request
        self.status = RunStatus.SUBMITTING
        self.thread_id: str | None = request.thread_id
        self.run_id: str | None = None
        self.error: BaseException | None = None
        self._cancel_requested = False
        self._task: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        return f"RunHandle(status={self.status.value!r}, thread_id={self.thread_id!r}, run_id={self.run_id!r})"

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested

    @property
    def done(self) -> bool:
        return self.status.is_terminal

    def cancel(self) -> None:
        """Stop the run locally. Frames still in flight are discarded."""
        self._cancel_requested = True
        if not self.status.is_terminal:
            self.status = RunStatus.CANCELLED
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> RunStatus:
        """Wait until the run reaches a terminal status and return it."""
        if self._task is not None:
            await asyncio.wait({self._task})
        return self.status


class RunOrchestrator:
    """Drives agent runs against a server and owns the resulting session state.

    All methods must be called from the event loop that runs the streams.
    ``submit`` always replaces: a new submission cancels the in-flight run
    before it starts, so frames of two runs never interleave.
    """

    def __init__(
        self,
        server: AgentServer,
        config: AgentRunConfig | None = None,
        observers: Iterable[RunObserver] = (),
        thread_id: str | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            server: Agent server endpoints (usually an AgentServerClient).
            config: Stream settings. Uses defaults if not provided.
            observers: Initial lifecycle observers.
            thread_id: Thread to continue. A thread is created on the first
                submission if not provided.
        """
        self._server = server
        self._config = config or AgentRunConfig()
        self._observers: list[RunObserver] = list(observers)
        self._thread_id = thread_id
        self._state = SessionState()
        self._error: BaseException | None = None
        self._current: RunHandle | None = None
        # Bumped by every submit, clear and history load. A load whose
        # generation is no longer current discards its result.
        self._generation = 0
        self._loading_generation: int | None = None

    # Observers

    def add_observer(self, observer: RunObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: RunObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    # Published state

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def thread_id(self) -> str | None:
        return self._thread_id

    @property
    def error(self) -> BaseException | None:
        """Transport error of the most recent run, cleared by each submission."""
        return self._error

    @property
    def current_run(self) -> RunHandle | None:
        return self._current

    @property
    def status(self) -> RunStatus:
        if self._current is None:
            return RunStatus.IDLE
        return self._current.status

    @property
    def is_loading(self) -> bool:
        return self.status in (RunStatus.SUBMITTING, RunStatus.STREAMING)

    @property
    def is_thread_loading(self) -> bool:
        return self._loading_generation == self._generation

    # Runs

    def submit(
        self,
        request: RunRequest,
        optimistic: OptimisticUpdate | None = None,
    ) -> RunHandle:
        """Start a run, cancelling any run still in flight.

        The optimistic update (if any) is applied and published before this
        method returns; the run itself proceeds in a background task.

        Args:
            request: The run submission.
            optimistic: Local state transform shown until the server's
                snapshot replaces it.

        Returns:
            Handle to observe or await the run.
        """
        self.stop()
        self._error = None
        self._generation += 1

        state = self._state
        if state.error is not None:
            state = state.model_copy(update={"error": None})
        if optimistic is not None:
            state = optimistic(state)
        if state is not self._state:
            self._publish(state, None)

        handle = RunHandle(request)
        self._current = handle
        handle._task = asyncio.get_running_loop().create_task(self._run(handle))
        logger.debug(
            "submit assistant_id=%s thread_id=%s resume=%s",
            request.assistant_id,
            request.thread_id or self._thread_id,
            request.command is not None,
        )
        return handle

    def stop(self) -> None:
        """Cancel the in-flight run locally. No-op when idle."""
        handle = self._current
        if handle is not None and not handle.done:
            logger.debug("stop thread_id=%s run_id=%s", handle.thread_id, handle.run_id)
            handle.cancel()

    async def cancel(self) -> bool:
        """Stop the in-flight run and ask the server to cancel it too.

        Returns:
            True if a server-side cancel was sent (requires a known run id).
        """
        handle = self._current
        self.stop()
        if handle is None or handle.run_id is None or handle.thread_id is None:
            return False
        await self._server.cancel_run(handle.thread_id, handle.run_id)
        return True

    def clear(self) -> None:
        """Stop the in-flight run and reset the session state."""
        self.stop()
        self._error = None
        self._generation += 1
        self._publish(SessionState(), None)

    async def join(self) -> RunStatus:
        """Wait for the current run to end. Returns IDLE when nothing was submitted."""
        if self._current is None:
            return RunStatus.IDLE
        return await self._current.wait()

    async def _run(self, handle: RunHandle) -> None:
        try:
            thread_id = await self._resolve_thread(handle)
            handle.thread_id = thread_id
            if handle.cancel_requested:
                return
            body = handle.request.to_body(self._config.stream_mode, self._config.on_disconnect)
            handle.status = RunStatus.STREAMING
            await self._consume(handle, self._server.stream_run(thread_id, body))
        except asyncio.CancelledError:
            handle.status = RunStatus.CANCELLED
            raise
        except Exception as e:
            if handle.cancel_requested:
                handle.status = RunStatus.CANCELLED
                return
            logger.warning("run failed thread_id=%s error=%r", handle.thread_id, e)
            handle.status = RunStatus.FAILED
            handle.error = e
            self._error = e
            for observer in list(self._observers):
                try:
                    observer.on_error(e)
                except Exception:
                    logger.exception("on_error observer failed thread_id=%s", handle.thread_id)
            return

        if handle.cancel_requested:
            handle.status = RunStatus.CANCELLED
            return
        handle.status = RunStatus.FINISHED
        logger.debug("run finished thread_id=%s run_id=%s", handle.thread_id, handle.run_id)
        for observer in list(self._observers):
            try:
                observer.on_finish()
            except Exception:
                logger.exception("on_finish observer failed thread_id=%s", handle.thread_id)

    async def _resolve_thread(self, handle: RunHandle) -> str:
        thread_id = handle.request.thread_id or self._thread_id
        if thread_id is not None:
            if thread_id != self._thread_id:
                self._set_thread(thread_id)
            return thread_id

        created = await self._server.create_thread()
        thread_id = opt_str(as_dict(created).get("thread_id"))
        if not thread_id:
            raise ThreadCreationError("Thread creation returned no thread_id")
        if handle.cancel_requested and self._thread_id is not None:
            # A newer submission already tracks a thread
            logger.debug("created thread_id=%s for a cancelled run, not tracked", thread_id)
            return thread_id

        logger.debug("created thread_id=%s", thread_id)
        self._set_thread(thread_id)
        for observer in list(self._observers):
            observer.on_thread_created(thread_id)
        return thread_id

    async def _consume(self, handle: RunHandle, chunks: AsyncIterator[bytes]) -> None:
        events = iter_events(chunks, flush_incomplete=self._config.flush_incomplete_frame)
        try:
            async for event in events:
                if handle.cancel_requested:
                    break
                if event.kind is StreamEventKind.END:
                    break
                if event.kind is StreamEventKind.METADATA:
                    run_id = opt_str(as_dict(event.payload).get("run_id"))
                    if run_id:
                        handle.run_id = run_id
                self._publish(reduce(self._state, event), event)
        finally:
            await _aclose(events)
            await _aclose(chunks)

    # Threads

    async def set_thread_id(self, thread_id: str | None) -> None:
        """Switch to another thread (or none), replacing the session state.

        The new thread's latest checkpoint is loaded from history.
        """
        if thread_id == self._thread_id:
            return
        self.clear()
        self._set_thread(thread_id)
        if thread_id is not None:
            await self.load_thread(thread_id)

    async def load_thread(self, thread_id: str) -> SessionState:
        """Replace the session state with the latest checkpoint of a thread.

        Args:
            thread_id: Thread to load. Becomes the tracked thread.

        Returns:
            The loaded state (empty when the thread has no history). If a
            submission, clear or another load started while the history was
            being fetched, the fetched history is discarded and the current
            state is returned.
        """
        self._generation += 1
        generation = self._generation
        if thread_id != self._thread_id:
            self._set_thread(thread_id)

        self._loading_generation = generation
        try:
            history = await self._server.get_history(thread_id, limit=self._config.history_limit)
        finally:
            if self._loading_generation == generation:
                self._loading_generation = None

        if generation != self._generation:
            logger.debug("load_thread superseded thread_id=%s", thread_id)
            return self._state

        state = SessionState()
        if history:
            latest = history[0]
            event = StreamEvent(
                kind=StreamEventKind.VALUES, payload=as_dict(latest.get("values"))
            )
            state = reduce(state, event)
            if state.interrupt is None:
                pending = interrupts_from_history_entry(latest)
                if pending:
                    state = state.model_copy(
                        update={"interrupt": InterruptDescriptor.from_payload(pending[0])}
                    )
        logger.debug(
            "load_thread thread_id=%s checkpoints=%d messages=%d",
            thread_id,
            len(history),
            len(state.messages),
        )
        self._publish(state, None)
        return state

    async def update_state(
        self,
        values: dict[str, Any],
        as_node: str | None = None,
    ) -> dict[str, Any]:
        """Write values to the tracked thread's state outside of a run.

        The written values are merged into the local state the same way an
        ``updates`` event would be.

        Raises:
            AgentRunError: If no thread is tracked.
        """
        if self._thread_id is None:
            raise AgentRunError("No thread to update")
        result = await self._server.update_state(self._thread_id, values, as_node=as_node)
        event = StreamEvent(kind=StreamEventKind.UPDATES, payload=values)
        self._publish(reduce(self._state, event), None)
        return result

    def _set_thread(self, thread_id: str | None) -> None:
        self._thread_id = thread_id
        for observer in list(self._observers):
            observer.on_thread_id_change(thread_id)

    def _publish(self, state: SessionState, event: StreamEvent | None) -> None:
        self._state = state
        for observer in list(self._observers):
            observer.on_state_change(state, event)


async def _aclose(iterator: Any) -> None:
    aclose = getattr(iterator, "aclose", None)
    if aclose is not None:
        await aclose()
