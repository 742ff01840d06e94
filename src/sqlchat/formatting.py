"""
Rendering of agent results as Markdown and as pandas frames.
"""

import json
from typing import Any

import pandas as pd

from sqlchat.core import AgentResult, QueryResult


NO_TABULAR_DATA = "No tabular data available"
NOT_TABULAR = "Data is not in tabular format"
TABLE_ERROR_PREFIX = "Error formatting data as table: "


def _cell_text(value: Any) -> str:
    """Render one table cell the way the result viewer expects."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def format_json_as_markdown_table(json_string: str) -> str:
    """
    Convert a JSON array of row objects into a Markdown table.

    Headers come from the keys of the first row. When the data cannot be shown
    as a table one of the NO_TABULAR_DATA / NOT_TABULAR / TABLE_ERROR_PREFIX
    messages is returned instead.
    """
    try:
        data = json.loads(json_string)
    except (TypeError, ValueError) as e:
        return f"{TABLE_ERROR_PREFIX}{e}"

    if not isinstance(data, list) or len(data) == 0:
        return NO_TABULAR_DATA

    first_row = data[0]
    if not isinstance(first_row, dict):
        return NOT_TABULAR

    headers = list(first_row.keys())

    header_row = "| " + " | ".join(headers) + " |"
    separator_row = "| " + " | ".join("---" for _ in headers) + " |"

    data_rows = []
    for row in data:
        values = [_cell_text(row.get(h)) if isinstance(row, dict) else "" for h in headers]
        data_rows.append("| " + " | ".join(values) + " |")

    return "\n".join([header_row, separator_row, *data_rows])


def is_markdown_table(text: str) -> bool:
    """True when format_json_as_markdown_table() produced an actual table."""
    return (
        "|" in text
        and not text.startswith("Error")
        and not text.startswith("No tabular")
        and not text.startswith("Data is not")
    )


def format_agent_result_to_markdown(result: AgentResult) -> str:
    """Render the analysis summary document for an agent run."""
    markdown = "# 📊 SQL Agent Analysis Summary\n\n"

    if result.queries:
        markdown += "## 🔍 SQL Queries Executed\n\n"
        for index, query_result in enumerate(result.queries, start=1):
            markdown += f"### Query {index}:\n"
            markdown += f"```sql\n{query_result.query}\n```\n\n"

        markdown += "## 📋 Query Results\n\n"
        for index, query_result in enumerate(result.queries, start=1):
            markdown += f"### Result {index}:\n\n"

            result_json = json.dumps(query_result.result, indent=2, ensure_ascii=False, default=str)
            table = format_json_as_markdown_table(result_json)

            if is_markdown_table(table):
                markdown += f"{table}\n\n"
                markdown += f"**Raw JSON:**\n```json\n{result_json}\n```\n\n"
            else:
                markdown += f"```json\n{result_json}\n```\n\n"

    if result.final_answer:
        markdown += f"## 🤖 Agent Response\n\n{result.final_answer}\n\n"

    return markdown


def format_error_markdown(question: str, error: Any, key_var: str = "ANTHROPIC_API_KEY") -> str:
    """Render the document shown when answering a question failed."""
    message = str(error) or "Unknown error occurred"
    return (
        "## ⚠️ Agent Error\n\n"
        f"**Question:** \"{question}\"\n\n"
        f"**Error:** {message}\n\n"
        f"**Note:** Make sure the {key_var} environment variable is set "
        "and the database is accessible."
    )


def query_result_to_frame(query_result: QueryResult) -> pd.DataFrame:
    """Rows of a query result as a DataFrame (one column per key)."""
    rows = query_result.result
    if rows and all(isinstance(row, dict) for row in rows):
        return pd.DataFrame.from_records(rows)
    return pd.DataFrame({"result": rows})
