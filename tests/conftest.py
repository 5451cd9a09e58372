"""
Shared test fixtures for agent-llm tests.

This module provides:
- ``scripted_query``: the SDK ``query()`` patched with a ScriptedQuery
- ``provider``: a ClaudeCodeProvider wired to it
- Resets for the module-level logger and settings
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

import agent_llm.logging as agent_logging
from agent_llm.config import reset_settings
from agent_llm.providers.claude_code import ClaudeCodeProvider
from tests._sdk_testkit import ScriptedQuery


@pytest.fixture(autouse=True)
def _reset_globals():
    agent_logging._default_logger = None
    reset_settings()
    yield
    agent_logging._default_logger = None
    reset_settings()


@pytest.fixture
def scripted_query():
    scripted = ScriptedQuery()
    with patch("agent_llm.providers.claude_code.query", scripted):
        yield scripted


@pytest.fixture
def provider(scripted_query):
    return ClaudeCodeProvider()
