"""
SQL toolkit for the agent, with a query tool that answers in JSON.
"""

import json
from typing import Optional

from pydantic import Field
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from langchain_core.callbacks import CallbackManagerForToolRun
from langchain_core.language_models import BaseChatModel
from langchain_core.tools import BaseTool
from langchain_community.agent_toolkits import SQLDatabaseToolkit
from langchain_community.tools.sql_database.tool import QuerySQLDatabaseTool
from langchain_community.utilities import SQLDatabase


QUERY_TOOL_NAME = "sql_db_query"
QUERY_CHECKER_TOOL_NAME = "sql_db_query_checker"

# Tool calls whose "query" argument is a SQL statement worth reporting
SQL_TOOL_NAMES = (QUERY_TOOL_NAME, QUERY_CHECKER_TOOL_NAME)


def run_query_as_json(engine: Engine, query: str) -> str:
    """
    Execute a statement and return its rows as a JSON array of objects.

    Errors come back as text so the agent can read them and retry.
    """
    try:
        with engine.connect() as connection:
            cursor = connection.execute(text(query))
            if cursor.returns_rows:
                rows = [dict(row._mapping) for row in cursor.fetchall()]
            else:
                rows = []
    except SQLAlchemyError as e:
        return f"Error: {e}"
    return json.dumps(rows, default=str)


class JsonQuerySQLDatabaseTool(QuerySQLDatabaseTool):
    """Drop-in replacement for sql_db_query that keeps column names."""

    engine: Engine = Field(exclude=True)

    def _run(
        self,
        query: str,
        run_manager: Optional[CallbackManagerForToolRun] = None,
    ) -> str:
        return run_query_as_json(self.engine, query)


def build_sql_tools(db: SQLDatabase, engine: Engine, llm: BaseChatModel) -> list[BaseTool]:
    """Return the SQL toolkit tools with the query tool swapped for the JSON one."""
    toolkit = SQLDatabaseToolkit(db=db, llm=llm)
    tools = []
    for tool in toolkit.get_tools():
        if tool.name == QUERY_TOOL_NAME:
            tool = JsonQuerySQLDatabaseTool(db=db, engine=engine)
        tools.append(tool)
    return tools
