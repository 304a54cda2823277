"""CLI entry point: chat with an agent server from the terminal.

Usage:
    agentrun chat "Summarize the open tasks" --url http://localhost:2024
    agentrun chat "And the next step?" --thread 6f1c...
    agentrun history 6f1c...

Connection settings come from AGENTRUN_* environment variables (or .env),
overridden by command-line flags.
"""

import argparse
import asyncio
import logging
import sys
from typing import Any, TextIO

from agentrun_core.client.http import AgentServerClient
from agentrun_core.config import AgentRunConfig
from agentrun_core.errors import AgentRunError
from agentrun_core.formatters import format_conversation_for_llm
from agentrun_core.models.events import StreamEvent
from agentrun_core.models.run import RunStatus
from agentrun_core.models.state import SessionState
from agentrun_core.observers import BaseRunObserver
from agentrun_core.orchestrator import RunOrchestrator
from agentrun_core.session import create_chat_session


class ConsolePrinter(BaseRunObserver):
    """Writes the streamed AI reply to a text stream as it grows."""

    def __init__(self, out: TextIO | None = None, err: TextIO | None = None) -> None:
        self._out = out or sys.stdout
        self._err = err or sys.stderr
        self._printed: dict[str, int] = {}
        self._skip: set[str] = set()

    def skip_existing(self, state: SessionState) -> None:
        """Never print messages already present in ``state``."""
        self._skip.update(state.message_ids)

    def on_thread_created(self, thread_id: str) -> None:
        print(f"[thread {thread_id}]", file=self._err)

    def on_state_change(self, state: SessionState, event: StreamEvent | None) -> None:
        for message in state.messages:
            if message.role != "ai" or message.id in self._skip:
                continue
            text = message.text
            done = self._printed.get(message.id, 0)
            if len(text) > done:
                self._out.write(text[done:])
                self._out.flush()
                self._printed[message.id] = len(text)

    def on_finish(self) -> None:
        if self._printed:
            self._out.write("\n")

    def on_error(self, error: BaseException) -> None:
        print(f"error: {error}", file=self._err)


def _config(args: argparse.Namespace) -> AgentRunConfig:
    overrides: dict[str, Any] = {}
    if args.url:
        overrides["api_url"] = args.url
    if getattr(args, "assistant", None):
        overrides["assistant_id"] = args.assistant
    return AgentRunConfig(**overrides)


async def run_chat(args: argparse.Namespace) -> int:
    printer = ConsolePrinter()
    async with create_chat_session(_config(args)) as chat:
        if args.thread:
            state = await chat.orchestrator.load_thread(args.thread)
            printer.skip_existing(state)
        chat.orchestrator.add_observer(printer)

        status = await chat.send_message(args.message).wait()

        interrupt = chat.interrupt
        if interrupt is not None:
            approval = interrupt.tool_approval
            if approval is not None:
                names = ", ".join(r.action for r in approval.action_requests)
            else:
                names = ", ".join(i.action_name for i in interrupt.interrupts)
            print(f"[interrupted: {names}]", file=sys.stderr)
        if chat.state.error:
            print(f"error: {chat.state.error}", file=sys.stderr)

    return 0 if status is RunStatus.FINISHED else 1


async def run_history(args: argparse.Namespace) -> int:
    config = _config(args)
    async with AgentServerClient(config) as client:
        orchestrator = RunOrchestrator(client, config)
        state = await orchestrator.load_thread(args.thread_id)
    if state.messages:
        print(format_conversation_for_llm(state.messages))
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="agentrun",
        description="agentrun: stream runs from an agent server",
    )
    sub = parser.add_subparsers(dest="command")

    chat_parser = sub.add_parser("chat", help="Send a message and stream the reply")
    chat_parser.add_argument("message", help="Message text")
    chat_parser.add_argument("--thread", help="Continue an existing thread")
    chat_parser.add_argument("--assistant", help="Assistant or graph id")

    history_parser = sub.add_parser("history", help="Print a thread's conversation")
    history_parser.add_argument("thread_id", help="Thread to print")

    for command_parser in (chat_parser, history_parser):
        command_parser.add_argument("--url", help="Agent server URL")
        command_parser.add_argument(
            "--debug",
            action="store_true",
            help="Log requests and stream events to stderr",
        )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    handler = run_chat if args.command == "chat" else run_history
    try:
        code = asyncio.run(handler(args))
    except AgentRunError as e:
        print(f"agentrun: {e}", file=sys.stderr)
        code = 1
    except KeyboardInterrupt:
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
