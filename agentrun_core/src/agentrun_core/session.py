"""Chat-level operations on top of the run orchestrator.

``ChatSession`` turns user intents (send a message, approve a tool call, step
through a graph) into run submissions with the right input, command, config
and interrupt points.
"""

import logging
from collections.abc import Iterable
from typing import Any
from uuid import uuid4

from agentrun_core.client.http import AgentServerClient
from agentrun_core.config import AgentRunConfig
from agentrun_core.messages import Message
from agentrun_core.models.interrupts import InterruptDescriptor
from agentrun_core.models.run import RunRequest
from agentrun_core.models.state import SessionState
from agentrun_core.observers import RunObserver
from agentrun_core.orchestrator import OptimisticUpdate, RunHandle, RunOrchestrator
from agentrun_core.tool_calls import ProcessedMessage, process_messages

logger = logging.getLogger(__name__)

# Node the graph pauses before (or after) when stepping through tool execution
TOOLS_NODE = "tools"

END_NODE = "__end__"


class ChatSession:
    """A conversation with one assistant on one thread.

    Example:
        ```python
        async with create_chat_session(AgentRunConfig()) as chat:
            await chat.send_message("What changed in auth.py?").wait()
            for item in chat.processed_messages:
                print(item.message.role, item.message.text)
        ```
    """

    def __init__(
        self,
        orchestrator: RunOrchestrator,
        config: AgentRunConfig | None = None,
        assistant_id: str | None = None,
        assistant_config: dict[str, Any] | None = None,
        client: AgentServerClient | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            orchestrator: Orchestrator that runs the submissions.
            config: Settings for assistant id and recursion limit.
            assistant_id: Assistant to run. Defaults to ``config.assistant_id``.
            assistant_config: The assistant's run config, sent with every
                submission that carries a config.
            client: Client owned by this session, closed by ``close()``.
        """
        self._config = config or AgentRunConfig()
        self._orchestrator = orchestrator
        self._client = client
        self.assistant_id = assistant_id or self._config.assistant_id
        self.assistant_config = assistant_config

    async def __aenter__(self) -> "ChatSession":
        return self

    async def __aexit__(self, _exc_type: Any, _exc_val: Any, _exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Stop the in-flight run and close the owned client, if any."""
        self._orchestrator.stop()
        if self._client is not None:
            await self._client.close()

    @property
    def orchestrator(self) -> RunOrchestrator:
        return self._orchestrator

    @property
    def state(self) -> SessionState:
        return self._orchestrator.state

    @property
    def messages(self) -> list[Message]:
        return self._orchestrator.state.messages

    @property
    def thread_id(self) -> str | None:
        return self._orchestrator.thread_id

    @property
    def interrupt(self) -> InterruptDescriptor | None:
        return self._orchestrator.state.interrupt

    @property
    def is_loading(self) -> bool:
        return self._orchestrator.is_loading

    @property
    def processed_messages(self) -> list[ProcessedMessage]:
        """Messages paired with their tool calls, ready for display."""
        state = self._orchestrator.state
        return process_messages(state.messages, interrupted=state.is_interrupted)

    async def set_thread_id(self, thread_id: str | None) -> None:
        await self._orchestrator.set_thread_id(thread_id)

    def _run_config(self, with_recursion_limit: bool = True) -> dict[str, Any] | None:
        if not with_recursion_limit:
            return dict(self.assistant_config) if self.assistant_config is not None else None
        config = dict(self.assistant_config or {})
        config["recursion_limit"] = self._config.recursion_limit
        return config

    def _request(self, **kwargs: Any) -> RunRequest:
        return RunRequest(assistant_id=self.assistant_id, **kwargs)

    def send_message(self, text: str) -> RunHandle:
        """Send a human message and stream the reply.

        The message appears in the state immediately, before the server echoes it.
        """
        message = Message(id=str(uuid4()), role="human", content=text)

        def append_message(state: SessionState) -> SessionState:
            return state.model_copy(update={"messages": [*state.messages, message]})

        logger.debug("send_message thread_id=%s message_id=%s", self.thread_id, message.id)
        return self._orchestrator.submit(
            self._request(input={"messages": [message.to_input()]}, config=self._run_config()),
            optimistic=append_message,
        )

    def run_single_step(
        self,
        messages: list[Message],
        checkpoint_id: str | None = None,
        rerunning_subagent: bool = False,
        optimistic_messages: list[Message] | None = None,
    ) -> RunHandle:
        """Advance the graph by one step, pausing around tool execution.

        Without a checkpoint, ``messages`` are sent as input and the run pauses
        before the tools node. With a checkpoint, the run re-enters from it
        without input, pausing after the tools node when a subagent is being
        re-run and before it otherwise.

        Args:
            messages: Input messages (ignored when resuming from a checkpoint).
            checkpoint_id: Checkpoint to re-enter from.
            rerunning_subagent: Whether a subagent's tool call is being re-run.
            optimistic_messages: Messages shown until the server's snapshot arrives
                (checkpoint re-entry only).
        """
        config = self._run_config(with_recursion_limit=False)
        if checkpoint_id is None:
            request = self._request(
                input={"messages": [message.to_input() for message in messages]},
                config=config,
                interrupt_before=[TOOLS_NODE],
            )
            return self._orchestrator.submit(request)

        optimistic: OptimisticUpdate | None = None
        if optimistic_messages is not None:
            replacement = list(optimistic_messages)

            def replace_messages(state: SessionState) -> SessionState:
                return state.model_copy(update={"messages": replacement})

            optimistic = replace_messages

        request = self._request(
            config=config,
            checkpoint_id=checkpoint_id,
            interrupt_before=None if rerunning_subagent else [TOOLS_NODE],
            interrupt_after=[TOOLS_NODE] if rerunning_subagent else None,
        )
        return self._orchestrator.submit(request, optimistic=optimistic)

    def continue_stream(self, has_task_tool_call: bool = False) -> RunHandle:
        """Resume a paused thread with no new input.

        A pending task (subagent) tool call pauses after the tools node, any
        other tool call before it.
        """
        request = self._request(
            config=self._run_config(),
            interrupt_before=None if has_task_tool_call else [TOOLS_NODE],
            interrupt_after=[TOOLS_NODE] if has_task_tool_call else None,
        )
        return self._orchestrator.submit(request)

    def resume_interrupt(self, value: Any) -> RunHandle:
        """Answer the pending interrupt with ``value`` (e.g. a list of human responses)."""
        logger.debug("resume_interrupt thread_id=%s", self.thread_id)
        return self._orchestrator.submit(self._request(command={"resume": value}))

    def mark_resolved(self) -> RunHandle:
        """End the thread without answering the pending interrupt."""
        return self._orchestrator.submit(
            self._request(command={"goto": END_NODE, "update": None})
        )

    def stop(self) -> None:
        self._orchestrator.stop()

    async def set_files(self, files: dict[str, str]) -> dict[str, Any] | None:
        """Replace the thread's virtual file system.

        Returns:
            The server response, or None when there is no thread yet.
        """
        if self.thread_id is None:
            return None
        return await self._orchestrator.update_state({"files": files})


def create_chat_session(
    config: AgentRunConfig | None = None,
    observers: Iterable[RunObserver] = (),
    thread_id: str | None = None,
    assistant_config: dict[str, Any] | None = None,
) -> ChatSession:
    """Build a chat session backed by an HTTP client.

    Args:
        config: Connection and stream settings. Uses defaults if not provided.
        observers: Run lifecycle observers.
        thread_id: Existing thread to continue (its history is not loaded;
            call ``orchestrator.load_thread`` for that).
        assistant_config: Run config sent with every submission.
    """
    config = config or AgentRunConfig()
    client = AgentServerClient(config)
    orchestrator = RunOrchestrator(client, config, observers=observers, thread_id=thread_id)
    return ChatSession(
        orchestrator,
        config=config,
        assistant_config=assistant_config,
        client=client,
    )
