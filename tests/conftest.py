import copy
import itertools
import json
import types
from typing import Any, Dict, List, Sequence, Union

import pytest
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

_call_ids = itertools.count(1)


def tool_call(name: str, arguments: Union[Dict[str, Any], str], call_id: str | None = None):
    """Build an object shaped like a chat-completions tool call."""
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    return types.SimpleNamespace(
        id=call_id or f"call_{next(_call_ids)}",
        type="function",
        function=types.SimpleNamespace(name=name, arguments=arguments),
    )


class DummyChoice:
    def __init__(self, reply: Union[str, Sequence[Any]]):
        if isinstance(reply, str):
            self.message = types.SimpleNamespace(content=reply, tool_calls=None)
        else:
            self.message = types.SimpleNamespace(content=None, tool_calls=list(reply))


class DummyCompletion:
    def __init__(self, reply: Union[str, Sequence[Any]]):
        self.choices = [DummyChoice(reply)]


class DummyAsyncGroq:
    """
    Minimal mock for groq.AsyncGroq that supports:
    await client.chat.completions.create(...)

    Each entry of `replies` is either a final text answer or a list of tool
    calls (see `tool_call`). Requests are recorded for assertions.
    """
    def __init__(self, replies: Sequence[Union[str, Sequence[Any]]]):
        self._replies = list(replies)
        self.requests: List[Dict[str, Any]] = []
        self.chat = types.SimpleNamespace(
            completions=types.SimpleNamespace(create=self._create)
        )

    async def _create(self, **kwargs):
        self.requests.append(copy.deepcopy(kwargs))
        if not self._replies:
            raise AssertionError("DummyAsyncGroq ran out of scripted replies")
        return DummyCompletion(self._replies.pop(0))


@pytest.fixture(autouse=True)
def set_env(monkeypatch):
    """
    Automatically set the required model env var for all tests.
    """
    monkeypatch.setenv("GROQ_MODEL", "dummy-model")
    monkeypatch.setenv("GROQ_API_KEY", "dummy-key")
    monkeypatch.delenv("APP_LANGUAGE", raising=False)
    monkeypatch.delenv("AGENT_MAX_TURNS", raising=False)
    monkeypatch.delenv("AGENT_MAX_TOKENS", raising=False)
    yield
