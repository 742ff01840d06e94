"""
Single-shot SQL chain: write one query, run it, answer from the rows.

Graph structure:
    START → write_query → execute_query → generate_answer → END
"""

import logging
import os
import uuid
from typing import Optional

from typing_extensions import Annotated, TypedDict
from langchain_core.language_models import BaseChatModel
from langchain_community.utilities import SQLDatabase
from langgraph.checkpoint.memory import MemorySaver
from langgraph.graph import END, START, StateGraph
from sqlalchemy.engine import Engine

from sqlchat.agent import build_llm, message_text
from sqlchat.config import AgentConfig
from sqlchat.core import QueryResult, connect_database, detect_dialect, parse_tool_result
from sqlchat.logs import log_event
from sqlchat.prompts import QUERY_PROMPT_NAME, load_prompt
from sqlchat.tools import run_query_as_json

logger = logging.getLogger(__name__)


class QueryOutput(TypedDict):
    """Generated SQL query."""
    query: Annotated[str, ..., "Syntactically valid SQL query."]


class ChainState(TypedDict):
    question: str
    query: str
    result: str
    answer: str


def build_sql_chain_graph(
    llm: BaseChatModel,
    db: SQLDatabase,
    engine: Engine,
    dialect: str,
    top_k: int = 10,
    prompt_source: str = "builtin",
):
    """Assemble and compile the write/execute/answer graph."""
    query_prompt = load_prompt(QUERY_PROMPT_NAME, prompt_source)

    def write_query(state: ChainState) -> dict:
        prompt = query_prompt.invoke({
            "dialect": dialect,
            "top_k": top_k,
            "table_info": db.get_table_info(),
            "input": state["question"],
        })
        output = llm.with_structured_output(QueryOutput).invoke(prompt)
        log_event(logger, "info", "agent", "Generated SQL query", {"query": output["query"]})
        return {"query": output["query"]}

    def execute_query(state: ChainState) -> dict:
        log_event(logger, "info", "database", "Executing SQL query...")
        return {"result": run_query_as_json(engine, state["query"])}

    def generate_answer(state: ChainState) -> dict:
        prompt = (
            "Given the following user question, corresponding SQL query, "
            "and SQL result, answer the user question.\n\n"
            f"Question: {state['question']}\n"
            f"SQL Query: {state['query']}\n"
            f"SQL Result: {state['result']}"
        )
        response = llm.invoke(prompt)
        log_event(logger, "info", "agent", "Agent generating final response...")
        return {"answer": message_text(response)}

    graph_builder = StateGraph(ChainState)
    graph_builder.add_node("write_query", write_query)
    graph_builder.add_node("execute_query", execute_query)
    graph_builder.add_node("generate_answer", generate_answer)

    graph_builder.add_edge(START, "write_query")
    graph_builder.add_edge("write_query", "execute_query")
    graph_builder.add_edge("execute_query", "generate_answer")
    graph_builder.add_edge("generate_answer", END)

    return graph_builder.compile(checkpointer=MemorySaver())


def run_sql_chain(
    question: str,
    db_path: Optional[str] = None,
    config: Optional[AgentConfig] = None,
    api_key: Optional[str] = None,
) -> dict:
    """
    Run the chain for one question and return the final state.

    The state holds question, query, result (JSON text) and answer.
    """
    config = config or AgentConfig.from_env()
    db_path = db_path or config.db_path
    api_key = api_key or os.getenv(config.api_key_env_var)

    log_event(logger, "info", "agent", f'Starting SQL chain for question: "{question}"')
    llm = build_llm(config, api_key)
    db, engine = connect_database(db_path)
    log_event(logger, "success", "database", "Database connected successfully")

    try:
        graph = build_sql_chain_graph(
            llm, db, engine,
            dialect=detect_dialect(db_path),
            top_k=10,
            prompt_source=config.prompt_source,
        )
        run_config = {"configurable": {"thread_id": str(uuid.uuid4())}}
        final_state = graph.invoke({"question": question}, config=run_config)
    finally:
        engine.dispose()
        log_event(logger, "info", "database", "Database connection closed")

    return final_state


def generate_query_result(
    question: str,
    db_path: Optional[str] = None,
    config: Optional[AgentConfig] = None,
    api_key: Optional[str] = None,
) -> QueryResult:
    """Run the chain and return just the query with its rows."""
    state = run_sql_chain(question, db_path, config, api_key)
    rows, _ = parse_tool_result(state["result"])
    return QueryResult(query=state["query"], result=rows)
