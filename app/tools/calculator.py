"""Basic arithmetic tool."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from app.tools import DomainError, ToolArgs, ToolOutput, tool


class Operation(str, Enum):
    ADD = "add"
    SUBTRACT = "subtract"


INVALID_OPERATION = "Invalid operation: must be 'add' or 'subtract'"


class CalcArgs(ToolArgs):
    # Kept as a plain string so an unknown operation is a domain error the
    # model can recover from, not a schema violation.
    operation: str = Field(description="Mathematical operation: available 'add', 'subtract'")
    a: float
    b: float


class CalcOutput(ToolOutput):
    result: float


@tool(description="Performs basic arithmetic operations")
async def calculator(args: CalcArgs) -> CalcOutput:
    try:
        operation = Operation(args.operation)
    except ValueError as exc:
        raise DomainError(INVALID_OPERATION) from exc

    if operation is Operation.ADD:
        result = args.a + args.b
    else:
        result = args.a - args.b
    return CalcOutput(result=result)
