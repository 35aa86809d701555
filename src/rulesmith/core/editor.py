from __future__ import annotations

import dataclasses
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING

from rulesmith.core.events import (
    AddRequest,
    Decision,
    DeleteRequest,
    Deny,
    RulesChannel,
    RulesetAdded,
    RuleChanged,
    RulesetsDeleted,
    RuleUnsupported,
    SaveRequest,
    SaveResult,
    SelectionChanged,
    SelectionRequest,
)
from rulesmith.core.guard import EditGuard
from rulesmith.core.resolver import resolve_asset_infos

if TYPE_CHECKING:
    from rulesmith.core._types import Side
    from rulesmith.core.catalog import AssetCatalog
    from rulesmith.core.config import RulesConfig, RulesetHandler
    from rulesmith.core.guard import ConfirmPrompt, RuleList, RuleViewer
    from rulesmith.core.model import AssetTypeInfo, Ruleset, RulesetNode

logger = logging.getLogger("rulesmith")

WRITE_RULES_ROLE = "write:rules"

HANDLED_BY_HOST = "handled by host"
READONLY = "readonly"
INVALID_RULE = "invalid rule"
UNSUPPORTED_RULE = "unsupported rule"

type Persist = Callable[[Ruleset], Awaitable[Ruleset | None]]


class RulesEditor:
    """Host that ties the configuration, catalog, channel and edit guard together.

    The viewer reports the loaded rule through :class:`RuleChanged` and
    :class:`RuleUnsupported`; saves are denied while it is invalid or unsupported.
    Loading another ruleset clears both flags.

    Example::

        editor = RulesEditor(catalog, viewer, rule_list, confirm, config=load_config())
        infos = await editor.asset_infos("when")
        await editor.select(old_nodes, new_nodes)

    """

    def __init__(
        self,
        catalog: AssetCatalog,
        viewer: RuleViewer,
        rule_list: RuleList,
        confirm: ConfirmPrompt,
        *,
        config: RulesConfig | None = None,
        readonly: bool = False,
        has_role: Callable[[str], bool] | None = None,
        selected_ids: Iterable[int | None] | None = None,
    ) -> None:
        self.catalog = catalog
        self.config = config
        self.readonly = readonly
        self._has_role = has_role
        self.channel = RulesChannel()
        self.guard = EditGuard(viewer, rule_list, confirm, selected_ids=selected_ids)
        self.guard.attach(self.channel)
        self.rule_valid = True
        self.rule_supported = True
        self.channel.on(RuleChanged, self._on_rule_changed)
        self.channel.on(RuleUnsupported, self._on_rule_unsupported)
        self.channel.on(SelectionChanged, self._reset_rule_state)
        self.channel.on(RulesetAdded, self._reset_rule_state)
        self.channel.on_request(SaveRequest, self._request_save)

    @property
    def selected_ids(self) -> list[int | None]:
        return self.guard.selected_ids

    def is_readonly(self) -> bool:
        if self.readonly:
            return True
        return self._has_role is not None and not self._has_role(WRITE_RULES_ROLE)

    async def asset_infos(self, side: Side | str) -> list[AssetTypeInfo]:
        return await resolve_asset_infos(self.catalog, self.config, side)

    async def select(
        self,
        old_nodes: Iterable[RulesetNode],
        new_nodes: Iterable[RulesetNode],
    ) -> Decision:
        old, new = tuple(old_nodes), tuple(new_nodes)
        return await self.channel.propose(SelectionRequest(old, new), SelectionChanged(old, new))

    async def add(self, ruleset: Ruleset) -> Decision:
        if self.is_readonly():
            return Deny(READONLY)
        if not self._run_handler(self._handler("ruleset_add_handler"), ruleset):
            return Deny(HANDLED_BY_HOST)
        return await self.channel.propose(AddRequest(ruleset), RulesetAdded(ruleset))

    async def copy(self, ruleset: Ruleset) -> Decision:
        """Add a copy of *ruleset* (unsaved, named ``"<name> copy"``)."""
        if self.is_readonly():
            return Deny(READONLY)
        if not self._run_handler(self._handler("ruleset_copy_handler"), ruleset):
            return Deny(HANDLED_BY_HOST)
        duplicate = dataclasses.replace(ruleset, id=None, name=f"{ruleset.name} copy")
        return await self.channel.propose(
            AddRequest(duplicate, source_ruleset=ruleset),
            RulesetAdded(duplicate, source_ruleset=ruleset),
        )

    async def delete(self, nodes: Iterable[RulesetNode]) -> Decision:
        if self.is_readonly():
            return Deny(READONLY)
        nodes = tuple(nodes)
        handler = self._handler("ruleset_delete_handler")
        if not all(self._run_handler(handler, node.ruleset) for node in nodes):
            return Deny(HANDLED_BY_HOST)
        return await self.channel.propose(
            DeleteRequest(nodes), RulesetsDeleted(tuple(node.ruleset for node in nodes))
        )

    async def save(self, ruleset: Ruleset, persist: Persist) -> SaveResult | None:
        """Persist *ruleset* through the host's *persist* callable.

        Returns ``None`` when the save was denied before reaching *persist*.
        A ``None`` from *persist* is reported as an unsuccessful save.
        """
        if self.is_readonly():
            return None
        if not self._run_handler(self._handler("ruleset_save_handler"), ruleset):
            return None
        if isinstance(self.channel.request(SaveRequest(ruleset)), Deny):
            return None

        is_new = ruleset.id is None
        saved = await persist(ruleset)
        result = SaveResult(success=saved is not None, ruleset=saved or ruleset, is_new=is_new)
        logger.debug("Saved ruleset %r: success=%s new=%s", ruleset.name, result.success, is_new)
        await self.channel.emit(result)
        return result

    def _on_rule_changed(self, event: RuleChanged) -> None:
        self.rule_valid = event.valid

    def _on_rule_unsupported(self, event: RuleUnsupported) -> None:
        logger.warning("Viewer cannot edit the loaded ruleset; saving is disabled")
        self.rule_supported = False

    def _reset_rule_state(self, event: SelectionChanged | RulesetAdded) -> None:
        self.rule_valid = True
        self.rule_supported = True

    def _request_save(self, request: SaveRequest) -> Decision | None:
        if not self.rule_supported:
            return Deny(UNSUPPORTED_RULE)
        if not self.rule_valid:
            return Deny(INVALID_RULE)
        return None

    def _handler(self, name: str) -> RulesetHandler | None:
        if self.config is None:
            return None
        handler: RulesetHandler | None = getattr(self.config, name)
        return handler

    @staticmethod
    def _run_handler(handler: RulesetHandler | None, ruleset: Ruleset) -> bool:
        return handler is None or handler(ruleset)
