"""Greeting tool that reads the session language from the shared context."""

from __future__ import annotations

from enum import Enum
from typing import Dict

from app.context import AppContext
from app.tools import DomainError, ToolArgs, ToolOutput, tool


class Language(str, Enum):
    EN = "en"
    ES = "es"


TEMPLATES: Dict[Language, str] = {
    Language.EN: "Hello, {name}!",
    Language.ES: "¡Hola, {name}!",
}


class GreetArgs(ToolArgs):
    name: str


class GreetOutput(ToolOutput):
    message: str


@tool(name="greeter", description="Greets a user in the configured language")
async def greeter(ctx: AppContext, args: GreetArgs) -> GreetOutput:
    try:
        language = Language(ctx.language)
    except ValueError as exc:
        supported = ", ".join(f"'{lang.value}'" for lang in Language)
        raise DomainError(f"Unsupported language {ctx.language!r}: supported languages are {supported}") from exc

    return GreetOutput(message=TEMPLATES[language].format(name=args.name))
