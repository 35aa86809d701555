"""Typed request/commit channel between the rule list, viewer and editor host.

Every navigation or mutation is a pair: a request that handlers may veto by
returning :class:`Deny`, and a committed event that is only emitted once the
request was allowed. Handlers are registered per payload type.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from rulesmith.core.model import Ruleset, RulesetNode

logger = logging.getLogger("rulesmith")


@dataclass(frozen=True, slots=True)
class Allow:
    pass


@dataclass(frozen=True, slots=True)
class Deny:
    reason: str = ""


type Decision = Allow | Deny

ALLOW = Allow()


# --- Request payloads ---


@dataclass(frozen=True, slots=True)
class SelectionRequest:
    old_nodes: tuple[RulesetNode, ...]
    new_nodes: tuple[RulesetNode, ...]


@dataclass(frozen=True, slots=True)
class AddRequest:
    ruleset: Ruleset
    source_ruleset: Ruleset | None = None


@dataclass(frozen=True, slots=True)
class DeleteRequest:
    nodes: tuple[RulesetNode, ...]


@dataclass(frozen=True, slots=True)
class SaveRequest:
    ruleset: Ruleset


# --- Committed payloads ---


@dataclass(frozen=True, slots=True)
class SelectionChanged:
    old_nodes: tuple[RulesetNode, ...]
    new_nodes: tuple[RulesetNode, ...]


@dataclass(frozen=True, slots=True)
class RulesetAdded:
    ruleset: Ruleset
    source_ruleset: Ruleset | None = None


@dataclass(frozen=True, slots=True)
class RulesetsDeleted:
    rulesets: tuple[Ruleset, ...]


@dataclass(frozen=True, slots=True)
class SaveResult:
    success: bool
    ruleset: Ruleset
    is_new: bool = False


@dataclass(frozen=True, slots=True)
class RuleChanged:
    valid: bool


@dataclass(frozen=True, slots=True)
class RuleUnsupported:
    pass


type RequestHandler[T] = Callable[[T], Decision | None]
type CommitHandler[T] = Callable[[T], Awaitable[Any] | Any]


@dataclass
class RulesChannel:
    """Dispatches requests and committed events to registered handlers.

    Example::

        channel = RulesChannel()
        channel.on_request(SelectionRequest, guard.request_selection)
        channel.on(SelectionChanged, guard.on_selection_changed)

        decision = await channel.propose(
            SelectionRequest(old, new), SelectionChanged(old, new)
        )

    """

    _request_handlers: dict[type, list[RequestHandler[Any]]] = field(default_factory=dict)
    _commit_handlers: dict[type, list[CommitHandler[Any]]] = field(default_factory=dict)

    def on_request[T](self, kind: type[T], handler: RequestHandler[T]) -> None:
        """Register a handler that may veto requests of payload type *kind*."""
        self._request_handlers.setdefault(kind, []).append(handler)

    def on[T](self, kind: type[T], handler: CommitHandler[T]) -> None:
        """Register a handler for committed events of payload type *kind*."""
        self._commit_handlers.setdefault(kind, []).append(handler)

    def request(self, payload: object) -> Decision:
        """Ask every request handler; return the first :class:`Deny`, else :data:`ALLOW`.

        All handlers see the request even after one has denied it. A handler
        that raises is logged and counts as having no opinion.
        """
        decision: Decision = ALLOW
        for handler in self._request_handlers.get(type(payload), ()):
            try:
                result = handler(payload)
            except Exception:
                logger.exception("Request handler %r raised", handler)
                continue
            if isinstance(result, Deny) and isinstance(decision, Allow):
                decision = result
        logger.debug("%s -> %s", type(payload).__name__, decision)
        return decision

    async def emit(self, payload: object) -> None:
        """Deliver a committed event, awaiting coroutine handlers in order."""
        for handler in self._commit_handlers.get(type(payload), ()):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Event handler %r raised", handler)

    async def propose(self, request: object, commit: object) -> Decision:
        """Send *request* and emit *commit* only if the request was allowed."""
        decision = self.request(request)
        if isinstance(decision, Allow):
            await self.emit(commit)
        return decision
