"""
Prompt templates for the SQL agent and the single-shot SQL chain.

This module contains:
- Bundled copies of the LangChain Hub SQL prompts
- load_prompt(): bundled or Hub-pulled template by name
- build_agent_system_message(): the formatted agent system prompt
"""

import logging

from langchain_core.prompts import ChatPromptTemplate

logger = logging.getLogger(__name__)


AGENT_PROMPT_NAME = "langchain-ai/sql-agent-system-prompt"
QUERY_PROMPT_NAME = "langchain-ai/sql-query-system-prompt"

PROMPT_SOURCES = ("builtin", "hub")


# ============================================================================
# Agent System Prompt
# ============================================================================

SQL_AGENT_SYSTEM_PROMPT = """You are an agent designed to interact with a SQL database.
Given an input question, create a syntactically correct {dialect} query to run, then look at the results of the query and return the answer.
Unless the user specifies a specific number of examples they wish to obtain, always limit your query to at most {top_k} results.
You can order the results by a relevant column to return the most interesting examples in the database.
Never query for all the columns from a specific table, only ask for the relevant columns given the question.
You have access to tools for interacting with the database.
Only use the below tools. Only use the information returned by the below tools to construct your final answer.
You MUST double check your query before executing it. If you get an error while executing a query, rewrite the query and try again.

DO NOT make any DML statements (INSERT, UPDATE, DELETE, DROP etc.) to the database.

To start you should ALWAYS look at the tables in the database to see what you can query.
Do NOT skip this step.
Then you should query the schema of the most relevant tables."""


# ============================================================================
# Query Generation Prompt
# ============================================================================

SQL_QUERY_SYSTEM_PROMPT = """Given an input question, create a syntactically correct {dialect} query to run to help find the answer. Unless the user specifies in his question a specific number of examples they wish to obtain, always limit your query to at most {top_k} results. You can order the results by a relevant column to return the most interesting examples in the database.

Never query for all the columns from a specific table, only ask for a the few relevant columns given the question.

Pay attention to use only the column names that you can see in the schema description. Be careful to not query for columns that do not exist. Also, pay attention to which column is in which table.

Only use the following tables:
{table_info}"""


BUILTIN_PROMPTS = {
    AGENT_PROMPT_NAME: ChatPromptTemplate.from_messages(
        [("system", SQL_AGENT_SYSTEM_PROMPT)]
    ),
    QUERY_PROMPT_NAME: ChatPromptTemplate.from_messages(
        [("system", SQL_QUERY_SYSTEM_PROMPT), ("user", "Question: {input}")]
    ),
}


def pull_hub_prompt(name: str) -> ChatPromptTemplate:
    """Fetch a prompt from the LangChain Hub."""
    from langsmith import Client

    logger.debug(f"Pulling prompt {name} from the hub")
    return Client().pull_prompt(name)


def load_prompt(name: str, source: str = "builtin") -> ChatPromptTemplate:
    """
    Return the prompt template registered under `name`.

    Args:
        name: Hub-style prompt name (e.g. "langchain-ai/sql-agent-system-prompt")
        source: "builtin" for the bundled copy, "hub" to pull it
    """
    if source not in PROMPT_SOURCES:
        raise ValueError(f"Unsupported prompt source: {source}")

    if source == "hub":
        return pull_hub_prompt(name)

    try:
        return BUILTIN_PROMPTS[name]
    except KeyError:
        raise ValueError(f"No bundled prompt named {name}") from None


def build_agent_system_message(dialect: str, top_k: int = 5, source: str = "builtin") -> str:
    """Format the SQL agent system prompt for a dialect."""
    template = load_prompt(AGENT_PROMPT_NAME, source)
    messages = template.format_messages(dialect=dialect, top_k=top_k)
    return messages[0].content
