# tests/unit/core/test_state_machine.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import asyncio
import logging

import pytest

from gotflow.core.errors import AmbiguousTransitionError, InvalidTransitionError, ValidationError
from gotflow.core.state_machine import StateMachine
from gotflow.core.transitions import StateMachineInfo, StatePropertyInfo, TransitionInfo, TransitionResult, transition
from gotflow.runtime.cancellation import CancellationToken, CancellationTokenSource
from gotflow.runtime.context import TransitionContext
from tests.helpers import Document, DocumentMachine


class ForkedMachine(StateMachine):
    state_property = "status"

    @transition(from_="draft", to="review")
    async def ask_async(self):
        self.target.history.append("ask")
        return "ask"

    @transition(from_=["draft", "review"], to="review")
    def escalate(self):
        self.target.history.append("escalate")
        return "escalate"


class InterruptedMachine(DocumentMachine):
    @transition(from_="review", to="published")
    async def publish(self, note="ok"):
        raise asyncio.CancelledError()


class TokenMachine(StateMachine):
    def __init__(self, target):
        super().__init__(target)
        self.seen = []

    @transition(from_="idle", to="busy")
    async def start_async(self, job, cancellation_token: CancellationToken = None):
        self.seen.append((job, cancellation_token))
        return TransitionResult.of(job)


class _Target:
    def __init__(self, state):
        self.state = state


def test_current_state_is_read_from_target(document_machine, document):
    assert document_machine.current_state == "draft"
    document.status = "review"
    assert document_machine.current_state == "review"


def test_resolve_by_destination(document_machine):
    resolved = document_machine.resolve_transition(TransitionContext(document_machine, to="review"))
    assert resolved.name == "submit"


def test_resolve_without_destination_returns_none(document_machine):
    assert document_machine.resolve_transition(TransitionContext(document_machine)) is None


def test_resolve_without_match_returns_none(document_machine):
    assert document_machine.resolve_transition(TransitionContext(document_machine, to="published")) is None


def test_resolve_is_repeatable(document_machine):
    context = TransitionContext(document_machine, to="review")
    first = document_machine.resolve_transition(context)
    assert document_machine.resolve_transition(context) is first
    assert document_machine.current_state == "draft"


def test_resolve_reports_ambiguity():
    machine = ForkedMachine(Document())
    with pytest.raises(AmbiguousTransitionError) as exc_info:
        machine.resolve_transition(TransitionContext(machine, to="review"))
    assert sorted(exc_info.value.candidates) == ["ask", "escalate"]
    assert not machine.can_transition("review")


def test_explicit_transition_disambiguates():
    machine = ForkedMachine(Document())
    explicit = machine.info.get_transition("escalate")
    context = TransitionContext(machine, to="review", transition_info=explicit)
    assert machine.resolve_transition(context) is explicit


def test_explicit_transition_with_conflicting_destination(document_machine):
    explicit = document_machine.info.get_transition("submit")
    context = TransitionContext(document_machine, to="published", transition_info=explicit)
    with pytest.raises(InvalidTransitionError) as exc_info:
        document_machine.resolve_transition(context)
    assert exc_info.value.to == "published"
    assert exc_info.value.current_state == "draft"


def test_explicit_transition_from_wrong_state(document_machine):
    explicit = document_machine.info.get_transition("publish")
    with pytest.raises(InvalidTransitionError):
        document_machine.resolve_transition(TransitionContext(document_machine, transition_info=explicit))


def test_available_transitions(document_machine, document):
    assert [t.name for t in document_machine.available_transitions()] == ["submit"]
    document.status = "review"
    assert sorted(t.name for t in document_machine.available_transitions()) == ["publish", "reject", "retract"]
    assert document_machine.can_transition("published")
    assert not document_machine.can_transition("review")


@pytest.mark.asyncio
async def test_transition_commits_state_and_returns_value(document_machine, document):
    context = TransitionContext(document_machine, to="review", arguments={"reviewer": "ada"})
    assert await document_machine.transition_async(context) == "ada"
    assert document.status == "review"
    assert document.history == ["submitted to ada"]


@pytest.mark.asyncio
async def test_sync_transition_without_value(document_machine, document):
    document.status = "review"
    result = await document_machine.transition_async(TransitionContext(document_machine, to="published"))
    assert result is None
    assert document.status == "published"
    assert document.history == ["published: ok"]


@pytest.mark.asyncio
async def test_transition_with_explicit_descriptor(document):
    document.status = "published"
    machine = DocumentMachine(document)
    explicit = machine.info.get_transition("retract")
    await machine.transition_async(TransitionContext(machine, transition_info=explicit))
    assert document.status == "draft"


@pytest.mark.asyncio
async def test_transition_without_match_raises(document_machine, document):
    with pytest.raises(InvalidTransitionError, match="No transition found"):
        await document_machine.transition_async(TransitionContext(document_machine, to="published"))
    assert document.status == "draft"
    assert document.history == []


@pytest.mark.asyncio
async def test_transition_without_destination_raises(document_machine):
    with pytest.raises(InvalidTransitionError):
        await document_machine.transition_async(TransitionContext(document_machine))


@pytest.mark.asyncio
async def test_failed_transition_keeps_state_and_logs(document, caplog):
    document.status = "review"
    machine = DocumentMachine(document)
    context = TransitionContext(machine, to="rejected", arguments={"reason": "typo"})
    with caplog.at_level(logging.ERROR, logger="gotflow.core.state_machine"):
        with pytest.raises(ValueError, match="cannot reject: typo"):
            await machine.transition_async(context)

    assert document.status == "review"
    records = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(records) == 1
    assert records[0].to == "rejected"
    assert records[0].transition == "reject"
    assert records[0].target is document
    assert records[0].exc_info[0] is ValueError


@pytest.mark.asyncio
async def test_token_is_forwarded_to_token_parameters():
    machine = TokenMachine(_Target("idle"))
    source = CancellationTokenSource()
    result = await machine.transition_async(
        TransitionContext(machine, to="busy", arguments={"job": 3}), source.token
    )
    assert result == 3
    job, token = machine.seen[0]
    assert job == 3
    assert token.can_be_cancelled
    assert machine.target.state == "busy"


def test_duplicate_transition_names_fail_validation():
    class Duplicated(StateMachine):
        @transition(from_="a", to="b")
        def go(self):
            pass

        @transition(from_="b", to="c")
        async def go_async(self):
            pass

    with pytest.raises(ValidationError):
        Duplicated(_Target("a"))


@pytest.mark.asyncio
async def test_custom_state_property_accessors():
    store = {"phase": "idle"}

    class StoredMachine(TokenMachine):
        state_property = StatePropertyInfo(
            "phase", getter=lambda t: store["phase"], setter=lambda t, v: store.update(phase=v)
        )

    machine = StoredMachine(object())
    await machine.transition_async(TransitionContext(machine, to="busy", arguments={"job": 1}))
    assert store["phase"] == "busy"


def test_explicit_info_overrides_class_metadata(document):
    def noop(self):
        pass

    info = StateMachineInfo(DocumentMachine, [TransitionInfo(noop, ["draft"], "done")], "status")
    machine = DocumentMachine(document, info=info)
    assert [t.name for t in machine.transitions] == ["noop"]
    assert machine.can_transition("done")


@pytest.mark.asyncio
async def test_ambiguous_transition_invokes_nothing():
    document = Document()
    machine = ForkedMachine(document)

    with pytest.raises(AmbiguousTransitionError):
        await machine.transition_async(TransitionContext(machine, to="review"))

    assert document.status == "draft"
    assert document.history == []


@pytest.mark.asyncio
async def test_explicit_transition_from_wrong_state_invokes_nothing(document_machine, document):
    explicit = document_machine.info.get_transition("publish")

    with pytest.raises(InvalidTransitionError):
        await document_machine.transition_async(TransitionContext(document_machine, transition_info=explicit))

    assert document.status == "draft"
    assert document.history == []


@pytest.mark.asyncio
async def test_explicit_transition_with_conflicting_destination_invokes_nothing(document_machine, document):
    explicit = document_machine.info.get_transition("submit")
    context = TransitionContext(document_machine, to="published", transition_info=explicit, arguments={"reviewer": "x"})

    with pytest.raises(InvalidTransitionError):
        await document_machine.transition_async(context)

    assert document.status == "draft"
    assert document.history == []


@pytest.mark.asyncio
async def test_cancelled_transition_is_logged_and_not_committed(caplog):
    document = Document(status="review")
    machine = InterruptedMachine(document)

    with caplog.at_level(logging.ERROR, logger="gotflow.core.state_machine"):
        with pytest.raises(asyncio.CancelledError):
            await machine.transition_async(TransitionContext(machine, to="published"))

    assert document.status == "review"
    records = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(records) == 1
    assert records[0].transition == "publish"
