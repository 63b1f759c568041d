"""
Tool registry: central place to get all tool schemas and dispatch tool calls.

Dispatch never raises for tool failures. Every outcome comes back as a dict
the agent can serialize straight into the conversation:

    {"ok": True, "result": {...}}
    {"ok": False, "error": "...", "kind": "schema_violation" | "domain_error" | "unknown_tool"}
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List

from app.tools import RawArguments, ToolDescriptor, ToolError, ToolSpec

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Name -> ToolSpec mapping, fixed once the session starts."""

    def __init__(self, specs: Iterable[ToolSpec] = ()) -> None:
        self._tools: Dict[str, ToolSpec] = {}
        for spec in specs:
            self.register(spec)

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool '{spec.name}' is already registered.")
        self._tools[spec.name] = spec
        logger.debug("Registered tool %s", spec.name)

    def get(self, name: str) -> ToolSpec:
        try:
            return self._tools[name]
        except KeyError as exc:
            raise KeyError(f"Tool '{name}' is not registered.") from exc

    def names(self) -> List[str]:
        return list(self._tools)

    def descriptors(self) -> List[ToolDescriptor]:
        return [spec.descriptor for spec in self._tools.values()]

    def schemas(self) -> List[Dict[str, Any]]:
        """Return function-calling definitions for every registered tool."""
        return [descriptor.definition() for descriptor in self.descriptors()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    async def dispatch(self, name: str, raw_arguments: RawArguments) -> Dict[str, Any]:
        """Invoke a tool by name and return its outcome as a value."""
        spec = self._tools.get(name)
        if spec is None:
            available = ", ".join(repr(n) for n in self._tools) or "none"
            logger.warning("Model requested unknown tool %s", name)
            return {
                "ok": False,
                "error": f"Tool '{name}' is not registered. Available tools: {available}.",
                "kind": "unknown_tool",
            }

        logger.debug("Dispatching %s with %r", name, raw_arguments)
        try:
            result = await spec.invoke(raw_arguments)
        except ToolError as exc:
            logger.info("Tool %s failed (%s): %s", name, exc.kind, exc.message)
            return {"ok": False, "error": exc.message, "kind": exc.kind}
        return {"ok": True, "result": result}
