"""
Command-line front end.

    sqlchat ask "Which country's customers spent the most?" --db Chinook.db
    sqlchat validate Chinook.db
    sqlchat key-status
"""

import argparse
import json
import sys
from datetime import datetime

from dotenv import load_dotenv

from sqlchat.bridge import Bridge
from sqlchat.config import AgentConfig
from sqlchat.core import AgentResult, QueryResult
from sqlchat.formatting import format_agent_result_to_markdown, format_error_markdown, query_result_to_frame
from sqlchat.services import MockAgentService

LEVEL_ICONS = {
    "debug": "·",
    "info": "ℹ️",
    "success": "✅",
    "warning": "⚠️",
    "error": "❌",
}


def print_log_event(event: dict) -> None:
    """Write one activity log event to stderr."""
    timestamp = datetime.fromisoformat(event["timestamp"]).astimezone().strftime("%H:%M:%S")
    icon = LEVEL_ICONS.get(event["level"], "")
    line = f"[{timestamp}] {icon} {event['source']}: {event['message']}"
    if event.get("data") and event["level"] != "error":
        line += f" {json.dumps(event['data'], default=str)}"
    print(line, file=sys.stderr)


def render_tables(result: AgentResult) -> str:
    """Plain-text table view: one frame per executed query, then the answer."""
    parts = []
    for index, query_result in enumerate(result.queries, start=1):
        frame = query_result_to_frame(query_result)
        parts.append(f"Query {index}: {query_result.query}")
        parts.append(frame.to_string(index=False) if not frame.empty else "(no rows)")
        parts.append("")
    if result.final_answer:
        parts.append(result.final_answer)
    return "\n".join(parts)


def cmd_ask(args: argparse.Namespace, config: AgentConfig) -> int:
    db_path = args.db or config.db_path

    if args.mock:
        print(MockAgentService(response_delay=0, db_path=db_path).process_question(args.question))
        return 0

    bridge = Bridge(config)
    if not args.quiet:
        bridge.on_agent_log(print_log_event)

    if args.mode == "chain":
        response = bridge.run_sql_chain(args.question, db_path)
    else:
        response = bridge.run_sql_agent(args.question, db_path)

    if not response["success"]:
        print(format_error_markdown(args.question, response["error"], config.api_key_env_var))
        return 1

    if args.format == "json":
        print(json.dumps(response["result"], indent=2, ensure_ascii=False, default=str))
        return 0

    if args.mode == "chain":
        chain_result = response["result"]
        result = AgentResult(
            queries=[QueryResult(query=chain_result["query"], result=chain_result["result"])],
            final_answer=chain_result["answer"],
        )
    else:
        result = AgentResult.from_dict(response["result"])

    if args.format == "table":
        print(render_tables(result))
    else:
        print(format_agent_result_to_markdown(result))
    return 0


def cmd_validate(args: argparse.Namespace, config: AgentConfig) -> int:
    validation = Bridge(config).validate_database(args.db_path)
    if validation["valid"]:
        print(f"✅ {validation['path']} ({validation['dialect']})")
        for table in validation["tables"]:
            print(f"   - {table}")
        return 0

    print(f"❌ {validation['path']}: {validation['error']}")
    return 1


def cmd_key_status(args: argparse.Namespace, config: AgentConfig) -> int:
    bridge = Bridge(config)
    status = bridge.get_api_key_status()
    print(f"Provider: {config.provider} ({config.api_key_env_var})")
    print(f"Source:   {status['source']}")
    if status["isValid"]:
        key = bridge.get_current_api_key()
        print(f"Key:      {bridge.keys.mask_api_key(key)}")
        if not bridge.keys.validate_api_key_format(key):
            print("⚠️  Key does not look like a valid key for this provider")
        return 0

    print(f"⚠️  No API key found. Set {config.api_key_env_var} in your .env file or export it.")
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sqlchat", description="Ask questions about a SQL database")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ask = subparsers.add_parser("ask", help="Answer a question with the SQL agent")
    ask.add_argument("question", help="Natural-language question")
    ask.add_argument("--db", help="Database file (SQLite, or .duckdb)")
    ask.add_argument("--mode", choices=["agent", "chain"], default="agent",
                     help="ReAct agent or single-shot query chain")
    ask.add_argument("--format", choices=["markdown", "table", "json"], default="markdown")
    ask.add_argument("--mock", action="store_true", help="Return a canned answer without calling the LLM")
    ask.add_argument("--quiet", action="store_true", help="Do not print the activity log")
    ask.set_defaults(func=cmd_ask)

    validate = subparsers.add_parser("validate", help="Check that a database file can be opened")
    validate.add_argument("db_path")
    validate.set_defaults(func=cmd_validate)

    key_status = subparsers.add_parser("key-status", help="Show which API key would be used")
    key_status.set_defaults(func=cmd_key_status)

    return parser


def main(argv=None) -> int:
    load_dotenv(override=True)
    args = build_parser().parse_args(argv)
    config = AgentConfig.from_env()
    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
