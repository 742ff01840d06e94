"""
Backend call surface used by front ends.

Every operation a front end may perform goes through a Bridge: environment
access, API key management, running the SQL agent (or the single-shot chain)
and validating a database file. `dispatch()` exposes the same operations by
channel name. While a run is in progress, agent log records are forwarded to
every subscriber registered with `on_agent_log()`.
"""

import logging
import os
import traceback
from typing import Any, Callable, Optional

from sqlchat.agent import run_agent
from sqlchat.chain import run_sql_chain
from sqlchat.config import AgentConfig
from sqlchat.core import parse_tool_result, validate_database
from sqlchat.keys import ApiKeyManager
from sqlchat.logs import capture_run_logs, log_event

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "sqlchat"

LogCallback = Callable[[dict], None]


class Bridge:
    """Fixed set of backend operations, callable directly or by channel."""

    CHANNELS = {
        "get-env-var": "get_env_var",
        "set-env-var": "set_env_var",
        "get-api-key-status": "get_api_key_status",
        "set-api-key-override": "set_api_key_override",
        "clear-api-key-override": "clear_api_key_override",
        "get-current-api-key": "get_current_api_key",
        "run-sql-agent": "run_sql_agent",
        "run-sql-chain": "run_sql_chain",
        "validate-database": "validate_database",
    }

    def __init__(self, config: Optional[AgentConfig] = None) -> None:
        self.config = config or AgentConfig.from_env()
        self.keys = ApiKeyManager(
            env_var=self.config.api_key_env_var,
            key_prefix=self.config.api_key_prefix,
        )
        self._listeners: list[LogCallback] = []

    def dispatch(self, channel: str, *args: Any) -> Any:
        """Invoke an operation by channel name. Unknown channels raise KeyError."""
        method_name = self.CHANNELS[channel]
        return getattr(self, method_name)(*args)

    # ------------------------------------------------------------------
    # Environment and API keys
    # ------------------------------------------------------------------

    def get_env_var(self, name: str) -> Optional[str]:
        return os.environ.get(name)

    def set_env_var(self, name: str, value: str) -> None:
        os.environ[name] = value

    def get_api_key_status(self) -> dict:
        return self.keys.get_api_key_status().to_dict()

    def set_api_key_override(self, api_key: str) -> None:
        self.keys.set_override_key(api_key)

    def clear_api_key_override(self) -> None:
        self.keys.clear_override_key()

    def get_current_api_key(self) -> Optional[str]:
        return self.keys.get_current_key()

    # ------------------------------------------------------------------
    # Log subscription
    # ------------------------------------------------------------------

    def on_agent_log(self, callback: LogCallback) -> Callable[[], None]:
        """Subscribe to agent log events. Returns a function that unsubscribes."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _send_log(self, event: dict) -> None:
        for callback in list(self._listeners):
            callback(event)

    def _run_with_logs(self, label: str, fn: Callable[[], dict]) -> dict:
        """
        Run `fn` with its package log records forwarded to subscribers.

        Any exception is logged as an error event and turned into a
        {"success": False, "error": ...} result.
        """
        with capture_run_logs(logging.getLogger(PACKAGE_LOGGER), self._send_log):
            try:
                return {"success": True, "result": fn()}
            except Exception as e:
                log_event(logger, "error", "system", f"{label} failed: {e}", {"error": traceback.format_exc()})
                return {"success": False, "error": str(e) or "Unknown error occurred"}

    # ------------------------------------------------------------------
    # SQL operations
    # ------------------------------------------------------------------

    def run_sql_agent(self, question: str, db_path: Optional[str] = None) -> dict:
        """
        Run the SQL agent and return {"success": True, "result": {...}}.

        The result dict has "queries" (query + rows) and "finalAnswer".
        """
        def run() -> dict:
            result = run_agent(question, db_path, self.config, self.keys.get_current_key())
            log_event(
                logger, "success", "system",
                f"Agent completed successfully with {len(result.queries)} SQL queries",
            )
            return result.to_dict()

        return self._run_with_logs("Agent", run)

    def run_sql_chain(self, question: str, db_path: Optional[str] = None) -> dict:
        """Run the single-shot chain; the result has query, result rows and answer."""
        def run() -> dict:
            state = run_sql_chain(question, db_path, self.config, self.keys.get_current_key())
            rows, _ = parse_tool_result(state["result"])
            log_event(logger, "success", "system", "Chain completed successfully")
            return {"query": state["query"], "result": rows, "answer": state["answer"]}

        return self._run_with_logs("Chain", run)

    def validate_database(self, db_path: str) -> dict:
        return validate_database(db_path).to_dict()
