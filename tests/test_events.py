from __future__ import annotations

import logging

import pytest

from rulesmith.core.events import (
    ALLOW,
    Allow,
    Deny,
    RuleChanged,
    RulesChannel,
    SaveRequest,
    SelectionChanged,
    SelectionRequest,
)
from rulesmith.core.model import Ruleset
from tests.conftest import make_node

_REQUEST = SelectionRequest((make_node(1),), (make_node(2),))
_COMMIT = SelectionChanged((make_node(1),), (make_node(2),))


class TestRequest:
    def test_no_handlers_allows(self) -> None:
        assert RulesChannel().request(_REQUEST) == ALLOW

    def test_none_means_no_opinion(self) -> None:
        channel = RulesChannel()
        channel.on_request(SelectionRequest, lambda r: None)
        assert isinstance(channel.request(_REQUEST), Allow)

    def test_first_deny_wins_and_all_handlers_run(self) -> None:
        seen: list[str] = []
        channel = RulesChannel()

        def first(r: SelectionRequest) -> Deny:
            seen.append("first")
            return Deny("first")

        def second(r: SelectionRequest) -> Deny:
            seen.append("second")
            return Deny("second")

        channel.on_request(SelectionRequest, first)
        channel.on_request(SelectionRequest, second)
        assert channel.request(_REQUEST) == Deny("first")
        assert seen == ["first", "second"]

    def test_handlers_scoped_by_payload_type(self) -> None:
        channel = RulesChannel()
        channel.on_request(SaveRequest, lambda r: Deny("no saving"))
        assert channel.request(_REQUEST) == ALLOW
        assert channel.request(SaveRequest(Ruleset(id=1))) == Deny("no saving")

    def test_raising_handler_is_logged_and_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        channel = RulesChannel()

        def broken(r: SelectionRequest) -> None:
            raise RuntimeError("boom")

        channel.on_request(SelectionRequest, broken)
        channel.on_request(SelectionRequest, lambda r: Deny("later"))
        with caplog.at_level(logging.ERROR, logger="rulesmith"):
            assert channel.request(_REQUEST) == Deny("later")
        assert "raised" in caplog.text


class TestEmit:
    async def test_sync_and_async_handlers_in_order(self) -> None:
        order: list[str] = []
        channel = RulesChannel()

        async def async_handler(e: SelectionChanged) -> None:
            order.append("async")

        channel.on(SelectionChanged, lambda e: order.append("sync"))
        channel.on(SelectionChanged, async_handler)
        await channel.emit(_COMMIT)
        assert order == ["sync", "async"]

    async def test_unrelated_payload_not_delivered(self) -> None:
        received: list[object] = []
        channel = RulesChannel()
        channel.on(RuleChanged, received.append)
        await channel.emit(_COMMIT)
        assert received == []

    async def test_raising_handler_does_not_stop_others(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        received: list[object] = []
        channel = RulesChannel()

        async def broken(e: RuleChanged) -> None:
            raise RuntimeError("boom")

        channel.on(RuleChanged, broken)
        channel.on(RuleChanged, received.append)
        with caplog.at_level(logging.ERROR, logger="rulesmith"):
            await channel.emit(RuleChanged(valid=False))
        assert received == [RuleChanged(valid=False)]
        assert "Event handler" in caplog.text


class TestPropose:
    async def test_allowed_request_emits_commit(self) -> None:
        received: list[object] = []
        channel = RulesChannel()
        channel.on(SelectionChanged, received.append)
        assert await channel.propose(_REQUEST, _COMMIT) == ALLOW
        assert received == [_COMMIT]

    async def test_denied_request_does_not_emit(self) -> None:
        received: list[object] = []
        channel = RulesChannel()
        channel.on_request(SelectionRequest, lambda r: Deny("nope"))
        channel.on(SelectionChanged, received.append)
        assert await channel.propose(_REQUEST, _COMMIT) == Deny("nope")
        assert received == []
