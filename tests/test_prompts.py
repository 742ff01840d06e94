"""
Tests for prompt loading and the agent system message.
"""

from unittest.mock import patch

import pytest
from langchain_core.prompts import ChatPromptTemplate

from sqlchat.prompts import (
    AGENT_PROMPT_NAME,
    QUERY_PROMPT_NAME,
    build_agent_system_message,
    load_prompt,
)


def test_builtin_prompts_have_expected_variables():
    agent_prompt = load_prompt(AGENT_PROMPT_NAME)
    query_prompt = load_prompt(QUERY_PROMPT_NAME)

    assert set(agent_prompt.input_variables) == {"dialect", "top_k"}
    assert set(query_prompt.input_variables) == {"dialect", "top_k", "table_info", "input"}


def test_unknown_source():
    with pytest.raises(ValueError, match="Unsupported prompt source"):
        load_prompt(AGENT_PROMPT_NAME, source="disk")


def test_unknown_builtin_prompt():
    with pytest.raises(ValueError, match="No bundled prompt"):
        load_prompt("someone/else")


def test_hub_source_pulls_through_langsmith():
    pulled = ChatPromptTemplate.from_messages([("system", "Use {dialect}, limit {top_k}.")])
    with patch("langsmith.Client") as mock_client:
        mock_client.return_value.pull_prompt.return_value = pulled
        message = build_agent_system_message("DuckDB", top_k=3, source="hub")

    mock_client.return_value.pull_prompt.assert_called_once_with(AGENT_PROMPT_NAME)
    assert message == "Use DuckDB, limit 3."


def test_agent_system_message():
    message = build_agent_system_message("SQLite")
    assert "syntactically correct SQLite query" in message
    assert "at most 5 results" in message
    assert "DO NOT make any DML statements" in message
