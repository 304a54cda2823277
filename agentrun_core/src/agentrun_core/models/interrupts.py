"""Human-in-the-loop interrupt models.

An interrupted thread carries one or more interrupt payloads under the
``__interrupt__`` state key. Each payload's ``value`` is expected to follow the
approval schema (``action_request`` + ``config``); anything else is reduced to
the improper schema sentinel by :mod:`agentrun_core.interrupts`.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

from agentrun_core.payload import as_dict, as_list, as_str, opt_str, str_list

IMPROPER_SCHEMA = "improper_schema"

ResponseKind = Literal["accept", "reject", "edit", "ignore", "respond"]


class ActionRequest(BaseModel):
    """An action the agent asks a human to review."""

    action: str
    args: Any = Field(default_factory=dict)
    description: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ActionRequest":
        """Parse inbox-style JSON (``action`` key)."""
        data = as_dict(payload)
        return cls(
            action=as_str(data.get("action")),
            args=data.get("args", {}),
            description=opt_str(data.get("description")),
        )

    @classmethod
    def from_chat_payload(cls, payload: Any) -> "ActionRequest":
        """Parse chat-style JSON (``name`` key)."""
        data = as_dict(payload)
        return cls(
            action=as_str(data.get("name")),
            args=data.get("args", {}),
            description=opt_str(data.get("description")),
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"action": self.action, "args": self.args}
        if self.description is not None:
            payload["description"] = self.description
        return payload


class InterruptConfig(BaseModel):
    """Which responses a human may give to an interrupt."""

    allow_accept: bool = False
    allow_reject: bool = False
    allow_edit: bool = False
    allow_ignore: bool = False
    allow_respond: bool = False

    @classmethod
    def from_payload(cls, payload: Any) -> "InterruptConfig":
        data = as_dict(payload)
        return cls(
            allow_accept=data.get("allow_accept") is True,
            allow_reject=data.get("allow_reject") is True,
            allow_edit=data.get("allow_edit") is True,
            allow_ignore=data.get("allow_ignore") is True,
            allow_respond=data.get("allow_respond") is True,
        )

    @classmethod
    def from_allowed_decisions(cls, decisions: list[str] | None) -> "InterruptConfig":
        """Derive a config from chat review ``allowed_decisions`` strings."""
        allowed = decisions if decisions is not None else ["approve", "reject", "edit"]
        return cls(
            allow_accept="approve" in allowed,
            allow_reject="reject" in allowed,
            allow_edit="edit" in allowed,
        )

    @classmethod
    def improper_schema(cls) -> "InterruptConfig":
        """Config for an interrupt that could not be parsed: ignore only."""
        return cls(allow_ignore=True)

    def to_payload(self) -> dict[str, bool]:
        return self.model_dump()


class HumanInterrupt(BaseModel):
    """A single approval request extracted from an interrupt value."""

    action_request: ActionRequest
    config: InterruptConfig
    description: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "HumanInterrupt":
        data = as_dict(payload)
        return cls(
            action_request=ActionRequest.from_payload(data.get("action_request")),
            config=InterruptConfig.from_payload(data.get("config")),
            description=opt_str(data.get("description")),
        )

    @property
    def action_name(self) -> str:
        return self.action_request.action

    @property
    def action_args(self) -> Any:
        return self.action_request.args

    @property
    def is_improper_schema(self) -> bool:
        return self.action_request.action == IMPROPER_SCHEMA

    @property
    def allowed_responses(self) -> set[ResponseKind]:
        """Response kinds enabled by the config."""
        allowed: set[ResponseKind] = set()
        if self.config.allow_accept:
            allowed.add("accept")
        if self.config.allow_reject:
            allowed.add("reject")
        if self.config.allow_edit:
            allowed.add("edit")
        if self.config.allow_ignore:
            allowed.add("ignore")
        if self.config.allow_respond:
            allowed.add("respond")
        return allowed

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "action_request": self.action_request.to_payload(),
            "config": self.config.to_payload(),
        }
        if self.description is not None:
            payload["description"] = self.description
        return payload


class ReviewConfig(BaseModel):
    """Per-action review settings of a tool approval interrupt."""

    action_name: str
    allowed_decisions: list[str] | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ReviewConfig":
        data = as_dict(payload)
        name = data.get("action_name", data.get("actionName"))
        decisions = data.get("allowed_decisions", data.get("allowedDecisions"))
        return cls(action_name=as_str(name), allowed_decisions=str_list(decisions))

    def to_interrupt_config(self) -> InterruptConfig:
        return InterruptConfig.from_allowed_decisions(self.allowed_decisions)


class ToolApprovalRequest(BaseModel):
    """Chat-side approval schema: ``{action_requests, review_configs}``."""

    action_requests: list[ActionRequest] = Field(default_factory=list)
    review_configs: list[ReviewConfig] | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ToolApprovalRequest":
        data = as_dict(payload)
        configs = data.get("review_configs")
        return cls(
            action_requests=[
                ActionRequest.from_chat_payload(item)
                for item in as_list(data.get("action_requests"))
            ],
            review_configs=[ReviewConfig.from_payload(item) for item in configs]
            if isinstance(configs, list)
            else None,
        )

    def config_for(self, action_name: str) -> InterruptConfig:
        """Allowed responses for one action (all chat decisions if unlisted)."""
        for review in self.review_configs or []:
            if review.action_name == action_name:
                return review.to_interrupt_config()
        return InterruptConfig.from_allowed_decisions(None)


class InterruptDescriptor(BaseModel):
    """The active interrupt of a thread.

    Attributes:
        value: Raw interrupt value as sent by the server.
        namespace: Graph namespace path of the interrupting node, if any.
        scope: Interrupt scope, if any.
    """

    value: Any = None
    namespace: list[str] | None = None
    scope: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "InterruptDescriptor":
        """Build a descriptor from one ``__interrupt__`` entry."""
        if not isinstance(payload, dict):
            return cls(value=payload)
        return cls(
            value=payload.get("value"),
            namespace=str_list(payload.get("ns")),
            scope=opt_str(payload.get("scope")),
        )

    @property
    def interrupts(self) -> list[HumanInterrupt]:
        """Approval requests carried by the value (never empty)."""
        from agentrun_core.interrupts import extract_interrupts

        return extract_interrupts(self.value)

    @property
    def tool_approval(self) -> ToolApprovalRequest | None:
        """The chat approval schema, when the value follows it."""
        if isinstance(self.value, dict) and isinstance(
            self.value.get("action_requests"), list
        ):
            return ToolApprovalRequest.from_payload(self.value)
        return None


HumanResponseType = Literal["accept", "ignore", "response", "edit"]
SubmitType = Literal["accept", "response", "edit"]


class HumanResponse(BaseModel):
    """A human's answer to an interrupt, sent back as ``command.resume``."""

    type: HumanResponseType
    args: None | str | ActionRequest = None

    def to_payload(self) -> dict[str, Any]:
        args: Any = self.args
        if isinstance(args, ActionRequest):
            args = args.to_payload()
        return {"type": self.type, "args": args}


class HumanResponseWithEdits(HumanResponse):
    """A response draft that tracks whether the human edited the arguments."""

    accept_allowed: bool = False
    edits_made: bool = False

    def to_human_response(self) -> HumanResponse:
        """Collapse an unedited edit into an accept when accepting is allowed."""
        if self.type == "edit" and self.accept_allowed and not self.edits_made:
            return HumanResponse(type="accept", args=self.args)
        return HumanResponse(type=self.type, args=self.args)
