"""
Runtime configuration for SQLChat.

Values come from the environment (entry points call `load_dotenv` first so a
local `.env` file is honoured).
"""

import os
from dataclasses import dataclass


DEFAULT_ANTHROPIC_MODEL = "claude-3-5-sonnet-20240620"
DEFAULT_OPENAI_MODEL = "gpt-4o"
DEFAULT_DB_PATH = "./Chinook.db"

# Env var holding the API key for each supported provider
PROVIDER_KEY_VARS = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}

PROVIDER_KEY_PREFIXES = {
    "anthropic": "sk-ant-",
    "openai": "sk-",
}


@dataclass
class AgentConfig:
    """Settings shared by the agent, the chain and the bridge."""
    provider: str = "anthropic"
    anthropic_model: str = DEFAULT_ANTHROPIC_MODEL
    openai_model: str = DEFAULT_OPENAI_MODEL
    temperature: float = 0.0
    top_k: int = 5
    db_path: str = DEFAULT_DB_PATH
    prompt_source: str = "builtin"  # "builtin" or "hub"
    recursion_limit: int = 50
    environment: str = "production"

    def __post_init__(self):
        if self.provider not in PROVIDER_KEY_VARS:
            raise ValueError(f"Unsupported provider: {self.provider}")

    @property
    def api_key_env_var(self) -> str:
        return PROVIDER_KEY_VARS[self.provider]

    @property
    def api_key_prefix(self) -> str:
        return PROVIDER_KEY_PREFIXES[self.provider]

    @property
    def model_name(self) -> str:
        if self.provider == "openai":
            return self.openai_model
        return self.anthropic_model

    @classmethod
    def from_env(cls) -> "AgentConfig":
        """Build a config from environment variables, falling back to defaults."""
        return cls(
            provider=os.getenv("SQLCHAT_PROVIDER", "anthropic").strip().lower(),
            anthropic_model=os.getenv("ANTHROPIC_MODEL", DEFAULT_ANTHROPIC_MODEL),
            openai_model=os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
            temperature=float(os.getenv("SQLCHAT_TEMPERATURE", "0")),
            top_k=int(os.getenv("SQLCHAT_TOP_K", "5")),
            db_path=os.getenv("SQLCHAT_DB_PATH", DEFAULT_DB_PATH),
            prompt_source=os.getenv("SQLCHAT_PROMPT_SOURCE", "builtin").strip().lower(),
            recursion_limit=int(os.getenv("SQLCHAT_RECURSION_LIMIT", "50")),
            environment=os.getenv("SQLCHAT_ENV", "production"),
        )
