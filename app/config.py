"""
Central configuration for the tool-calling agent demo.
Loads environment variables from a .env file at import time.
"""
from __future__ import annotations

import logging
import os
import threading

from dotenv import load_dotenv

# --- Load .env early so everything importing config sees the vars ---
# This looks for a .env in the current working dir or parents.
load_dotenv()

#: Environment variable names
GROQ_API_KEY_ENV = "GROQ_API_KEY"
GROQ_MODEL_ENV = "GROQ_MODEL"
LANGUAGE_ENV = "APP_LANGUAGE"
MAX_TURNS_ENV = "AGENT_MAX_TURNS"
MAX_TOKENS_ENV = "AGENT_MAX_TOKENS"
LOG_LEVEL_ENV = "LOG_LEVEL"

#: Language the greeter uses when APP_LANGUAGE is not set.
DEFAULT_LANGUAGE = "es"

#: Maximum number of tool rounds the agent may take for one prompt.
DEFAULT_MAX_TURNS = 5

#: Completion token cap passed to the model.
DEFAULT_MAX_TOKENS = 1048

DEFAULT_LOG_LEVEL = "INFO"

_logging_lock = threading.Lock()
_logging_configured = False


def require_env(var_name: str) -> str:
    """
    Return the value of an environment variable or raise a clear error.

    Raises
    ------
    RuntimeError
        If the environment variable is missing or empty.
    """
    try:
        value = os.environ[var_name]
    except KeyError as exc:
        raise RuntimeError(f"Required environment variable '{var_name}' is not set.") from exc
    if not value:
        raise RuntimeError(f"Environment variable '{var_name}' is empty.")
    return value


def get_groq_api_key() -> str:
    """
    Convenience accessor specifically for the Groq API key.
    """
    return require_env(GROQ_API_KEY_ENV)


def get_language() -> str:
    """
    Language code for the shared session context.

    The value is passed through unchecked; an unsupported code is reported
    by the greeter the first time it is used.
    """
    return os.environ.get(LANGUAGE_ENV) or DEFAULT_LANGUAGE


def _int_env(var_name: str, default: int) -> int:
    raw = os.environ.get(var_name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable '{var_name}' must be an integer, got {raw!r}.") from exc
    if value < 1:
        raise RuntimeError(f"Environment variable '{var_name}' must be positive, got {value}.")
    return value


def get_max_turns() -> int:
    return _int_env(MAX_TURNS_ENV, DEFAULT_MAX_TURNS)


def get_max_tokens() -> int:
    return _int_env(MAX_TOKENS_ENV, DEFAULT_MAX_TOKENS)


def configure_logging(level: str | None = None) -> bool:
    """
    Install the root logging handler once per process.

    Must be called by the entry point before any registry or agent is built.
    Returns True when this call performed the setup, False if it already ran.
    """
    global _logging_configured
    with _logging_lock:
        if _logging_configured:
            return False
        resolved = (level or os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
        logging.basicConfig(
            level=resolved,
            format="%(asctime)s %(levelname)s %(message)s",
        )
        _logging_configured = True
        return True
