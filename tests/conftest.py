# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import List

import pytest

from gotflow.core.activities import ActivityTypeRegistry
from gotflow.core.behaviors import BehaviorRegistry
from gotflow.runtime.processor import ActivityProcessor
from tests.helpers import Document, DocumentMachine


@pytest.fixture
def calls() -> List[tuple]:
    """A shared call log for recording behaviors."""
    return []


@pytest.fixture
def behavior_registry() -> BehaviorRegistry:
    return BehaviorRegistry()


@pytest.fixture
def type_registry() -> ActivityTypeRegistry:
    return ActivityTypeRegistry()


@pytest.fixture
def processor(behavior_registry, type_registry) -> ActivityProcessor:
    return ActivityProcessor(behavior_registry=behavior_registry, type_registry=type_registry)


@pytest.fixture
def document() -> Document:
    return Document()


@pytest.fixture
def document_machine(document) -> DocumentMachine:
    return DocumentMachine(document)
