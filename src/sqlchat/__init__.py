"""
SQLChat - natural-language questions over a SQL database

A LangGraph SQL agent wrapper that extracts the generated SQL and query
results from the agent's stream, renders them as Markdown or tables, and
relays progress as activity log events.
"""

__version__ = "0.1.0"

# Core exports
from sqlchat.config import AgentConfig
from sqlchat.core import (
    QueryResult,
    AgentResult,
    DatabaseValidation,
    SQLChatError,
    MissingApiKeyError,
    DatabaseConnectionError,
    connect_database,
    create_read_only_engine,
    validate_database,
    parse_tool_result,
)

# Formatting exports
from sqlchat.formatting import (
    format_json_as_markdown_table,
    format_agent_result_to_markdown,
    query_result_to_frame,
)

# Agent exports
from sqlchat.agent import (
    StreamExtractor,
    build_llm,
    run_agent,
    agent_results,
)
from sqlchat.chain import (
    build_sql_chain_graph,
    run_sql_chain,
    generate_query_result,
)

# Front-end seams
from sqlchat.bridge import Bridge
from sqlchat.keys import ApiKeyManager, ApiKeyStatus
from sqlchat.logs import LogStore, AgentLogEvent
from sqlchat.services import SqlAgentService, MockAgentService, create_agent_service

__all__ = [
    # Core
    "AgentConfig",
    "QueryResult",
    "AgentResult",
    "DatabaseValidation",
    "SQLChatError",
    "MissingApiKeyError",
    "DatabaseConnectionError",
    "connect_database",
    "create_read_only_engine",
    "validate_database",
    "parse_tool_result",
    # Formatting
    "format_json_as_markdown_table",
    "format_agent_result_to_markdown",
    "query_result_to_frame",
    # Agent
    "StreamExtractor",
    "build_llm",
    "run_agent",
    "agent_results",
    "build_sql_chain_graph",
    "run_sql_chain",
    "generate_query_result",
    # Front-end seams
    "Bridge",
    "ApiKeyManager",
    "ApiKeyStatus",
    "LogStore",
    "AgentLogEvent",
    "SqlAgentService",
    "MockAgentService",
    "create_agent_service",
]
