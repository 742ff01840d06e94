"""
API key management: environment key plus an optional in-process override.
"""

import os
from dataclasses import dataclass
from typing import Literal, Optional


@dataclass
class ApiKeyStatus:
    has_env_key: bool
    has_override_key: bool
    is_valid: bool
    source: Literal["env", "override", "none"]

    def to_dict(self) -> dict:
        return {
            "hasEnvKey": self.has_env_key,
            "hasOverrideKey": self.has_override_key,
            "isValid": self.is_valid,
            "source": self.source,
        }


class ApiKeyManager:
    """
    Tracks the key used for LLM calls.

    An override set at runtime wins over the environment. Setting an override
    also exports it into the environment so libraries that read the env var
    directly pick it up; clearing the override leaves the environment alone.
    """

    def __init__(self, env_var: str = "ANTHROPIC_API_KEY", key_prefix: str = "sk-ant-"):
        self.env_var = env_var
        self.key_prefix = key_prefix
        self._override: Optional[str] = None

    def get_api_key_status(self) -> ApiKeyStatus:
        has_env_key = bool(os.getenv(self.env_var))
        has_override_key = bool(self._override)

        if has_override_key:
            source = "override"
        elif has_env_key:
            source = "env"
        else:
            source = "none"

        return ApiKeyStatus(
            has_env_key=has_env_key,
            has_override_key=has_override_key,
            is_valid=has_env_key or has_override_key,
            source=source,
        )

    def set_override_key(self, api_key: str) -> None:
        self._override = api_key.strip() or None
        if self._override:
            os.environ[self.env_var] = self._override

    def clear_override_key(self) -> None:
        self._override = None

    def get_current_key(self) -> Optional[str]:
        return self._override or os.getenv(self.env_var) or None

    @staticmethod
    def mask_api_key(api_key: Optional[str]) -> str:
        if not api_key or len(api_key) < 8:
            return "•" * 8

        start = api_key[:4]
        end = api_key[-4:]
        middle = "•" * max(4, len(api_key) - 8)
        return f"{start}{middle}{end}"

    def validate_api_key_format(self, api_key: str) -> bool:
        """Basic shape check: provider prefix and a plausible length."""
        trimmed = api_key.strip()
        return trimmed.startswith(self.key_prefix) and len(trimmed) > 50
