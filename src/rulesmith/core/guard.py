"""Unsaved-edit protection for rule selection."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, Protocol

from rulesmith.core.events import (
    ALLOW,
    Decision,
    Deny,
    RulesetAdded,
    SaveResult,
    SelectionChanged,
    SelectionRequest,
)

if TYPE_CHECKING:
    from rulesmith.core.events import RulesChannel
    from rulesmith.core.model import Ruleset

logger = logging.getLogger("rulesmith")

LOSE_CHANGES = "loseChanges"
CONFIRM_CONTINUE_MODIFIED = "confirmContinueRulesetModified"

MODIFIED = "modified"
CONFIRMATION_PENDING = "confirmation pending"

type ConfirmPrompt = Callable[[str, str], Awaitable[bool | None]]
"""Ask the user to confirm: ``(title_key, message_key) -> True | False | None``.
``None`` means the prompt was dismissed and is treated like ``False``."""


class RuleViewer(Protocol):
    modified: bool
    ruleset: Ruleset | None


class RuleList(Protocol):
    async def refresh(self) -> None: ...


class EditGuard:
    """Keeps the viewer's unsaved edits from being discarded silently.

    The guard owns ``selected_ids`` and writes ``viewer.ruleset``; it only
    reads ``viewer.modified``. While the viewer is modified, selection
    requests are denied and a confirmation prompt is scheduled on the running
    event loop. Only one prompt is open at a time: requests arriving while it
    is pending are denied without a second prompt.

    Adding a ruleset is not guarded: the add flow replaces the viewer's
    ruleset on purpose.
    """

    def __init__(
        self,
        viewer: RuleViewer,
        rule_list: RuleList,
        confirm: ConfirmPrompt,
        *,
        selected_ids: Iterable[int | None] | None = None,
    ) -> None:
        self.viewer = viewer
        self.rule_list = rule_list
        self._confirm = confirm
        self.selected_ids: list[int | None] = list(selected_ids or ())
        self._pending: asyncio.Task[None] | None = None

    def attach(self, channel: RulesChannel) -> None:
        """Register the guard's handlers on *channel*."""
        channel.on_request(SelectionRequest, self.request_selection)
        channel.on(SelectionChanged, self.on_selection_changed)
        channel.on(RulesetAdded, self.on_add)
        channel.on(SaveResult, self.on_save)

    @property
    def pending(self) -> bool:
        """Whether a confirmation prompt is awaiting the user's answer."""
        return self._pending is not None and not self._pending.done()

    async def settle(self) -> None:
        """Wait for the pending confirmation (if any) and its follow-up action."""
        if self._pending is not None:
            await self._pending

    def request_selection(self, request: SelectionRequest) -> Decision:
        if not self.viewer.modified:
            return ALLOW
        if self.pending:
            return Deny(CONFIRMATION_PENDING)

        self._confirm_continue(lambda: self._select_confirmed(request))
        return Deny(MODIFIED)

    def on_selection_changed(self, event: SelectionChanged) -> None:
        nodes = event.new_nodes
        self.selected_ids = [node.ruleset.id for node in nodes]
        self.viewer.ruleset = dataclasses.replace(nodes[0].ruleset) if len(nodes) == 1 else None

    def on_add(self, event: RulesetAdded) -> None:
        self.viewer.ruleset = event.ruleset

    async def on_save(self, result: SaveResult) -> None:
        await self.rule_list.refresh()
        if result.success and result.is_new:
            self.selected_ids = [result.ruleset.id]

    def _confirm_continue(self, action: Callable[[], None]) -> None:
        loop = asyncio.get_running_loop()
        self._pending = loop.create_task(self._prompt_then(action))

    async def _prompt_then(self, action: Callable[[], None]) -> None:
        try:
            ok = await self._confirm(LOSE_CHANGES, CONFIRM_CONTINUE_MODIFIED)
        except Exception:
            logger.exception("Confirmation prompt %r raised; keeping current ruleset", self._confirm)
            return
        if not ok:
            logger.debug("Discarding changes declined; keeping current ruleset")
            return
        action()

    def _select_confirmed(self, request: SelectionRequest) -> None:
        nodes = request.new_nodes
        if len(nodes) == 1 and nodes == request.old_nodes:
            # Same node clicked again: reload it, dropping the edits.
            self.viewer.ruleset = dataclasses.replace(nodes[0].ruleset)
            return
        self.selected_ids = [node.ruleset.id for node in nodes]
        self.viewer.ruleset = nodes[0].ruleset if len(nodes) == 1 else None
