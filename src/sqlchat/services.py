"""
Agent services: what a front end calls to turn a question into output.
"""

import logging
import time
from typing import Optional, Protocol

from sqlchat.bridge import Bridge
from sqlchat.config import AgentConfig
from sqlchat.core import AgentResult
from sqlchat.formatting import format_agent_result_to_markdown, format_error_markdown
from sqlchat.keys import ApiKeyManager

logger = logging.getLogger(__name__)


class AgentService(Protocol):
    def process_question(self, question: str) -> str: ...

    def set_database_path(self, db_path: str) -> None: ...


class SqlAgentService:
    """Runs the real SQL agent through a Bridge and renders Markdown."""

    def __init__(self, db_path: Optional[str] = None, bridge: Optional[Bridge] = None):
        self.bridge = bridge or Bridge()
        self.db_path = db_path or self.bridge.config.db_path

    def process_question(self, question: str) -> str:
        response = self.bridge.run_sql_agent(question, self.db_path)
        if not response["success"]:
            logger.error(f"Agent processing error: {response['error']}")
            return format_error_markdown(
                question, response["error"], self.bridge.config.api_key_env_var
            )
        return format_agent_result_to_markdown(AgentResult.from_dict(response["result"]))

    def process_question_structured(self, question: str) -> Optional[AgentResult]:
        response = self.bridge.run_sql_agent(question, self.db_path)
        if not response["success"]:
            logger.error(f"Agent processing error: {response['error']}")
            return None
        return AgentResult.from_dict(response["result"])

    def set_database_path(self, db_path: str) -> None:
        self.db_path = db_path


class MockAgentService:
    """Canned responses after a delay, for running without an API key."""

    def __init__(self, response_delay: float = 2.0, db_path: str = "./Chinook.db"):
        self.response_delay = response_delay
        self.db_path = db_path

    def process_question(self, question: str) -> str:
        time.sleep(self.response_delay)
        return self._generate_mock_response(question)

    def process_question_structured(self, question: str) -> Optional[AgentResult]:
        time.sleep(self.response_delay)
        return None

    def set_database_path(self, db_path: str) -> None:
        self.db_path = db_path

    def _generate_mock_response(self, question: str) -> str:
        return (
            f"## Response to: \"{question}\"\n\n"
            f"**Database:** {self.db_path}\n\n"
            "This is a mock response. Set an API key to query the database with the real agent.\n\n"
            "### Sample Query:\n"
            "```sql\nSELECT * FROM customers WHERE name LIKE '%test%'\n```\n\n"
            "### Sample Results:\n\n"
            "| ID | Name | Email |\n"
            "|---|---|---|\n"
            "| 1 | Test User | test@example.com |\n"
            "| 2 | Another Test | another@test.com |"
        )


def create_agent_service(config: Optional[AgentConfig] = None) -> AgentService:
    """Use the real agent when a key is configured, otherwise the mock."""
    config = config or AgentConfig.from_env()
    keys = ApiKeyManager(env_var=config.api_key_env_var, key_prefix=config.api_key_prefix)

    if config.environment != "test" and keys.get_current_key():
        return SqlAgentService(config.db_path, Bridge(config))

    logger.warning(
        f"Using mock agent service. Set {config.api_key_env_var} to use the real agent."
    )
    return MockAgentService(db_path=config.db_path)
