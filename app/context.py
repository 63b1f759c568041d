"""Session context shared read-only with every tool instance."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AppContext:
    """Configuration created once per session and never mutated by tools."""

    language: str  # e.g. "en" for English, "es" for Spanish
