"""
SQL agent: LLM setup, the prebuilt ReAct agent, and stream extraction.

This module contains:
- build_llm(): Anthropic or OpenAI chat model from the config
- build_sql_agent(): LangGraph prebuilt ReAct agent over the SQL toolkit
- StreamExtractor: pulls SQL statements, their rows and the final answer
  out of the agent's value stream
- run_agent(): the full pipeline, logging progress as it goes
"""

import logging
import os
from typing import Any, Optional

from langchain_anthropic import ChatAnthropic
from langchain_openai import ChatOpenAI
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, ToolMessage
from langchain_core.tools import BaseTool
from langgraph.prebuilt import create_react_agent

from sqlchat.config import AgentConfig
from sqlchat.core import (
    AgentResult,
    MissingApiKeyError,
    QueryResult,
    connect_database,
    detect_dialect,
    parse_tool_result,
)
from sqlchat.logs import log_event
from sqlchat.prompts import build_agent_system_message
from sqlchat.tools import QUERY_TOOL_NAME, SQL_TOOL_NAMES, build_sql_tools

logger = logging.getLogger(__name__)


# ============================================================================
# LLM and Agent Construction
# ============================================================================

def build_llm(config: AgentConfig, api_key: Optional[str]) -> BaseChatModel:
    """Create the chat model for the configured provider."""
    if not api_key:
        log_event(logger, "error", "api", f"{config.api_key_env_var} is not set")
        raise MissingApiKeyError(f"{config.api_key_env_var} is not set")

    log_event(logger, "success", "api", "API key found, initializing LLM...")

    if config.provider == "openai":
        # o1 models do not support temperature
        if config.openai_model.startswith("o1"):
            llm = ChatOpenAI(model=config.openai_model, api_key=api_key)
        else:
            llm = ChatOpenAI(
                model=config.openai_model,
                temperature=config.temperature,
                api_key=api_key,
            )
    else:
        llm = ChatAnthropic(
            model=config.anthropic_model,
            temperature=config.temperature,
            api_key=api_key,
        )

    log_event(logger, "success", "api", "LLM initialized successfully", {"model": config.model_name})
    return llm


def build_sql_agent(llm: BaseChatModel, tools: list[BaseTool], system_message: str):
    """Assemble the prebuilt ReAct agent with the SQL system prompt."""
    return create_react_agent(llm, tools, prompt=system_message)


# ============================================================================
# Stream Extraction
# ============================================================================

def message_text(message: BaseMessage) -> str:
    """Flatten message content (plain string or content blocks) to text."""
    content = message.content
    if isinstance(content, str):
        return content

    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class StreamExtractor:
    """
    Consumes `stream_mode="values"` states from the agent.

    Every message added since the previous state is inspected:
    - AI tool calls to the query/checker tools set the current SQL
    - query tool results are paired with their SQL and recorded
    - an AI message without tool calls is the final answer
    """

    def __init__(self) -> None:
        self.queries: list[QueryResult] = []
        self.final_answer = ""
        self.current_query = ""
        self.step_count = 0
        self._pending: dict[str, str] = {}  # tool_call_id -> SQL
        self._seen = 0

    def process_step(self, step: dict[str, Any]) -> None:
        messages = step.get("messages", [])
        self.step_count += 1
        log_event(logger, "debug", "agent", f"Processing step {self.step_count}...")

        if len(messages) < self._seen:
            # History was trimmed; only the newest message is reliable
            new_messages = messages[-1:]
        else:
            new_messages = messages[self._seen:]
        self._seen = len(messages)

        for message in new_messages:
            self.process_message(message)

    def process_message(self, message: BaseMessage) -> None:
        if isinstance(message, AIMessage):
            if message.tool_calls:
                self._handle_tool_calls(message.tool_calls)
            else:
                self.final_answer = message_text(message)
                log_event(logger, "info", "agent", "Agent generating final response...")
        elif isinstance(message, ToolMessage):
            self._handle_tool_message(message)

    def _handle_tool_calls(self, tool_calls: list[dict]) -> None:
        for tc in tool_calls:
            args = tc.get("args") or {}
            sql = args.get("query")
            if tc.get("name") not in SQL_TOOL_NAMES or not sql:
                continue

            self.current_query = sql
            log_event(logger, "info", "agent", "Generated SQL query", {"query": sql})

            if tc.get("name") == QUERY_TOOL_NAME and tc.get("id"):
                self._pending[tc["id"]] = sql

    def _handle_tool_message(self, message: ToolMessage) -> None:
        if message.name != QUERY_TOOL_NAME:
            return

        sql = self._pending.pop(message.tool_call_id, None) or self.current_query
        if not sql:
            return

        log_event(logger, "info", "database", "Executing SQL query...")
        rows, is_json = parse_tool_result(message.content)
        self.queries.append(QueryResult(query=sql, result=rows))

        if is_json:
            log_event(
                logger, "success", "database", "Query executed successfully",
                {"rowCount": len(rows), "query": sql},
            )
        else:
            log_event(
                logger, "success", "database", "Query executed (non-JSON result)",
                {"query": sql},
            )
        self.current_query = ""

    def result(self) -> AgentResult:
        return AgentResult(queries=list(self.queries), final_answer=self.final_answer)


# ============================================================================
# Runner
# ============================================================================

def run_agent(
    question: str,
    db_path: Optional[str] = None,
    config: Optional[AgentConfig] = None,
    api_key: Optional[str] = None,
) -> AgentResult:
    """
    Answer a question against a database with the SQL agent.

    Args:
        question: Natural-language question
        db_path: Database file (defaults to config.db_path)
        config: Agent settings (defaults to AgentConfig.from_env())
        api_key: Provider key (defaults to the provider's env var)

    Returns:
        AgentResult with every executed query and the final answer
    """
    config = config or AgentConfig.from_env()
    db_path = db_path or config.db_path
    api_key = api_key or os.getenv(config.api_key_env_var)

    log_event(logger, "info", "agent", f'Starting SQL agent for question: "{question}"')
    log_event(logger, "info", "system", f"Using database: {db_path}")
    log_event(logger, "debug", "system", "Loading required modules...")

    llm = build_llm(config, api_key)

    log_event(logger, "info", "database", "Connecting to database...")
    db, engine = connect_database(db_path)
    log_event(logger, "success", "database", "Database connected successfully")

    try:
        log_event(logger, "info", "agent", "Setting up SQL agent tools...")
        tools = build_sql_tools(db, engine, llm)
        system_message = build_agent_system_message(
            dialect=detect_dialect(db_path),
            top_k=config.top_k,
            source=config.prompt_source,
        )
        agent = build_sql_agent(llm, tools, system_message)
        log_event(logger, "success", "agent", "Agent initialized, beginning analysis...")

        inputs = {"messages": [{"role": "user", "content": question}]}
        extractor = StreamExtractor()
        for step in agent.stream(
            inputs,
            config={"recursion_limit": config.recursion_limit},
            stream_mode="values",
        ):
            extractor.process_step(step)

        log_event(logger, "success", "agent", "Analysis complete, cleaning up...")
    finally:
        engine.dispose()
        log_event(logger, "info", "database", "Database connection closed")

    return extractor.result()


def agent_results(question: str, config: Optional[AgentConfig] = None) -> AgentResult:
    """Run the agent against the configured default database."""
    config = config or AgentConfig.from_env()
    return run_agent(question, config.db_path, config)
