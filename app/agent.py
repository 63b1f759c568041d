"""Agent loop: let the model pick tools, run them, feed results back."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from groq import AsyncGroq

from app.config import DEFAULT_MAX_TOKENS, DEFAULT_MAX_TURNS
from app.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_PREAMBLE = (
    "You are an assistant that helps with basic arithmetic and personalized greetings. "
    "Use the `calculator` tool for operations like 'add' or 'subtract', formatting results to 2 decimal places. "
    "Use the `greeter` tool to greet users in the configured language (English 'en' or Spanish 'es'). "
    "If a prompt is unclear or a tool fails, provide a clear error message and suggest valid inputs."
)


class MaxTurnsExceeded(RuntimeError):
    """The model kept requesting tools past the configured turn limit."""

    def __init__(self, max_turns: int) -> None:
        super().__init__(f"Agent stopped after {max_turns} tool rounds without a final answer.")
        self.max_turns = max_turns


@dataclass(slots=True)
class AgentState:
    """Mutable state tracked while the agent loop executes."""

    messages: List[Dict[str, Any]]
    trace: List[Dict[str, Any]] = field(default_factory=list)
    tool_order: List[str] = field(default_factory=list)
    turns: int = 0


class Agent:
    """Multi-turn tool-calling agent over a chat-completions client."""

    def __init__(
        self,
        client: AsyncGroq,
        model: str,
        registry: ToolRegistry,
        preamble: str = DEFAULT_PREAMBLE,
        max_turns: int = DEFAULT_MAX_TURNS,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        self.client = client
        self.model = model
        self.registry = registry
        self.preamble = preamble
        self.max_turns = max_turns
        self.max_tokens = max_tokens

    # --------------------------------------------------------------------- run
    async def run(self, prompt: str) -> Dict[str, Any]:
        """
        Answer a prompt, dispatching any tool calls the model makes.

        Raises
        ------
        MaxTurnsExceeded
            If the model asks for tools more than ``max_turns`` times.
        """
        state = AgentState(
            messages=[
                {"role": "system", "content": self.preamble},
                {"role": "user", "content": prompt},
            ]
        )

        while True:
            message = await self._complete(state.messages)
            tool_calls = list(getattr(message, "tool_calls", None) or [])
            if not tool_calls:
                return self._finalize(prompt, message.content or "", state)

            if state.turns >= self.max_turns:
                raise MaxTurnsExceeded(self.max_turns)
            state.turns += 1
            logger.debug("Turn %d: model requested %d tool call(s)", state.turns, len(tool_calls))

            state.messages.append(self._assistant_message(message, tool_calls))
            outcomes = await asyncio.gather(*(self._execute(call) for call in tool_calls))
            for call, outcome in zip(tool_calls, outcomes):
                self._observe(call, outcome, state)

    # ------------------------------------------------------------ model call
    async def _complete(self, messages: List[Dict[str, Any]]) -> Any:
        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            tools=self.registry.schemas(),
            tool_choice="auto",
            max_tokens=self.max_tokens,
        )
        return completion.choices[0].message

    @staticmethod
    def _assistant_message(message: Any, tool_calls: List[Any]) -> Dict[str, Any]:
        return {
            "role": "assistant",
            "content": message.content or "",
            "tool_calls": [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.function.name, "arguments": call.function.arguments},
                }
                for call in tool_calls
            ],
        }

    # ------------------------------------------------------------ execute tool
    async def _execute(self, call: Any) -> Dict[str, Any]:
        """Invoke a tool from the registry and return its outcome."""
        return await self.registry.dispatch(call.function.name, call.function.arguments or "{}")

    # -------------------------------------------------------------- observe
    def _observe(self, call: Any, outcome: Dict[str, Any], state: AgentState) -> None:
        """Record the tool outcome in the trace and hand it back to the model."""
        state.trace.append(
            {
                "tool": call.function.name,
                "args": self._decode_args(call.function.arguments),
                "ok": outcome["ok"],
            }
        )
        state.tool_order.append(call.function.name)
        state.messages.append(
            {
                "role": "tool",
                "tool_call_id": call.id,
                "content": json.dumps(outcome, ensure_ascii=False, sort_keys=True, allow_nan=False),
            }
        )

    # -------------------------------------------------------------- finalize
    def _finalize(self, prompt: str, answer: str, state: AgentState) -> Dict[str, Any]:
        """Compose the final user-facing response and trace."""
        text = answer.strip() or "I don't have an answer right now."
        return {
            "text": f"{text}\n{self._format_trace(state.tool_order)}",
            "answer": text,
            "trace": state.trace,
            "turns": state.turns,
            "goal": prompt,
        }

    # -------------------------------------------------------------- utilities
    def _format_trace(self, tool_order: List[str]) -> str:
        """Render the trace line appended to every answer."""
        if not tool_order:
            return "Trace: none"
        path = " -> ".join(tool_order)
        return f"Trace: {path}"

    @staticmethod
    def _decode_args(raw: Optional[str]) -> Any:
        """Best-effort decode of tool arguments for the trace."""
        try:
            return json.loads(raw or "{}")
        except json.JSONDecodeError:
            return raw
