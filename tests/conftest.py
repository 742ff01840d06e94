"""Pytest configuration and fixtures for sqlchat tests."""

import sqlite3

import pytest
from langchain_core.messages import AIMessage, HumanMessage, ToolMessage

from sqlchat.config import AgentConfig


ENV_VARS = [
    "ANTHROPIC_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_MODEL", "OPENAI_MODEL",
    "SQLCHAT_PROVIDER", "SQLCHAT_TEMPERATURE", "SQLCHAT_TOP_K", "SQLCHAT_DB_PATH",
    "SQLCHAT_PROMPT_SOURCE", "SQLCHAT_RECURSION_LIMIT", "SQLCHAT_ENV",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Every test starts without API keys or SQLCHAT_* settings."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def config():
    """Offline config: bundled prompts, test environment."""
    return AgentConfig(prompt_source="builtin", environment="test")


@pytest.fixture
def sample_db(tmp_path):
    """A small Chinook-like SQLite database."""
    path = tmp_path / "sample.db"
    con = sqlite3.connect(path)
    con.executescript(
        """
        CREATE TABLE Artist (ArtistId INTEGER PRIMARY KEY, Name TEXT);
        CREATE TABLE Album (
            AlbumId INTEGER PRIMARY KEY,
            Title TEXT,
            ArtistId INTEGER REFERENCES Artist(ArtistId)
        );
        INSERT INTO Artist VALUES (1, 'AC/DC'), (2, 'Accept'), (3, 'Aerosmith');
        INSERT INTO Album VALUES (1, 'For Those About To Rock', 1), (2, 'Balls to the Wall', 2);
        """
    )
    con.commit()
    con.close()
    return str(path)


@pytest.fixture
def agent_states():
    """Cumulative `stream_mode="values"` states of a typical agent run."""
    sql = "SELECT COUNT(*) AS n FROM Artist"
    messages = [
        HumanMessage(content="How many artists are there?"),
        AIMessage(content="", tool_calls=[
            {"name": "sql_db_list_tables", "args": {}, "id": "call_1"},
        ]),
        ToolMessage(content="Album, Artist", name="sql_db_list_tables", tool_call_id="call_1"),
        AIMessage(content="", tool_calls=[
            {"name": "sql_db_query_checker", "args": {"query": sql}, "id": "call_2"},
        ]),
        ToolMessage(content=sql, name="sql_db_query_checker", tool_call_id="call_2"),
        AIMessage(content="", tool_calls=[
            {"name": "sql_db_query", "args": {"query": sql}, "id": "call_3"},
        ]),
        ToolMessage(content='[{"n": 3}]', name="sql_db_query", tool_call_id="call_3"),
        AIMessage(content="There are 3 artists."),
    ]
    return [{"messages": messages[:i]} for i in range(1, len(messages) + 1)]
