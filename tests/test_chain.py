"""
Tests for the single-shot write/execute/answer graph.
"""

import json
from unittest.mock import MagicMock, patch

from langchain_core.messages import AIMessage

from sqlchat.chain import build_sql_chain_graph, generate_query_result, run_sql_chain
from sqlchat.core import connect_database

SQL = "SELECT Name FROM Artist ORDER BY Name LIMIT 2"


def make_llm(query=SQL, answer="AC/DC and Accept."):
    llm = MagicMock()
    llm.with_structured_output.return_value.invoke.return_value = {"query": query}
    llm.invoke.return_value = AIMessage(content=answer)
    return llm


def test_graph_runs_all_nodes(sample_db):
    llm = make_llm()
    db, engine = connect_database(sample_db)
    try:
        graph = build_sql_chain_graph(llm, db, engine, dialect="SQLite")
        state = graph.invoke(
            {"question": "Name two artists"},
            config={"configurable": {"thread_id": "test"}},
        )
    finally:
        engine.dispose()

    assert state["query"] == SQL
    assert json.loads(state["result"]) == [{"Name": "AC/DC"}, {"Name": "Accept"}]
    assert state["answer"] == "AC/DC and Accept."

    # The query prompt carries the dialect, the schema and the question
    prompt = llm.with_structured_output.return_value.invoke.call_args[0][0]
    text = prompt.to_string()
    assert "SQLite" in text
    assert "CREATE TABLE" in text
    assert "Question: Name two artists" in text

    answer_prompt = llm.invoke.call_args[0][0]
    assert SQL in answer_prompt
    assert "AC/DC" in answer_prompt


def test_sql_errors_reach_the_answer_step(sample_db):
    llm = make_llm(query="SELECT * FROM Missing")
    db, engine = connect_database(sample_db)
    try:
        graph = build_sql_chain_graph(llm, db, engine, dialect="SQLite")
        state = graph.invoke({"question": "q"}, config={"configurable": {"thread_id": "t"}})
    finally:
        engine.dispose()

    assert state["result"].startswith("Error: ")


@patch("sqlchat.chain.build_llm")
def test_run_sql_chain(mock_build_llm, config, sample_db):
    mock_build_llm.return_value = make_llm()
    state = run_sql_chain("Name two artists", sample_db, config, api_key="sk-ant-test")
    assert state["answer"] == "AC/DC and Accept."
    mock_build_llm.assert_called_once_with(config, "sk-ant-test")


@patch("sqlchat.chain.build_llm")
def test_generate_query_result(mock_build_llm, config, sample_db):
    mock_build_llm.return_value = make_llm()
    query_result = generate_query_result("Name two artists", sample_db, config, api_key="sk-ant-test")
    assert query_result.query == SQL
    assert query_result.result == [{"Name": "AC/DC"}, {"Name": "Accept"}]
