# tests/helpers.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import asyncio
from typing import List, Optional

from gotflow.core.activities import Activity
from gotflow.core.behaviors import ActivityBehavior
from gotflow.core.parameters import ParameterInfo
from gotflow.core.state_machine import StateMachine
from gotflow.core.transitions import transition
from gotflow.runtime.cancellation import CancellationToken


class EchoActivity(Activity):
    """Returns its effective arguments as a plain dict."""

    parameters = [
        ParameterInfo("greeting", str, default="hello"),
        ParameterInfo("name", str, required=True),
    ]
    return_type = dict

    async def execute_async(self, context, cancellation_token=None):
        return context.arguments.to_dict()


class SyncActivity(Activity):
    def execute_async(self, context, cancellation_token=None):
        return ("sync", context.target)


class FailingActivity(Activity):
    def __init__(self, error: Optional[BaseException] = None):
        super().__init__()
        self.error = error or RuntimeError("boom")

    async def execute_async(self, context, cancellation_token=None):
        raise self.error


class SlowActivity(Activity):
    """Sleeps for `delay` seconds, recording whether it finished."""

    def __init__(self, delay: float = 1.0):
        super().__init__()
        self.delay = delay
        self.finished = False

    async def execute_async(self, context, cancellation_token=None):
        await asyncio.sleep(self.delay)
        self.finished = True
        return "slow"


class RecordingBehavior(ActivityBehavior):
    """Appends (phase, label) tuples to a shared call log."""

    def __init__(self, label: str, calls: List[tuple]):
        self.label = label
        self.calls = calls
        self.seen_results = []
        self.seen_exceptions = []

    async def before_execute_async(self, context, cancellation_token=None):
        self.calls.append(("before", self.label))

    async def after_execute_async(self, context, cancellation_token=None):
        self.calls.append(("after", self.label))
        self.seen_results.append(context.result)
        self.seen_exceptions.append(context.exception)


class Document:
    def __init__(self, status: str = "draft"):
        self.status = status
        self.history: List[str] = []


class DocumentMachine(StateMachine):
    state_property = "status"

    @transition(from_="draft", to="review")
    async def submit_async(self, reviewer, cancellation_token: CancellationToken = None):
        self.target.history.append(f"submitted to {reviewer}")
        return reviewer

    @transition(from_="review", to="published")
    def publish(self, note="ok"):
        self.target.history.append(f"published: {note}")

    @transition(from_=["review", "published"], to="draft")
    async def retract_async(self):
        self.target.history.append("retracted")

    @transition(from_="review", to="rejected")
    async def reject_async(self, reason):
        raise ValueError(f"cannot reject: {reason}")
