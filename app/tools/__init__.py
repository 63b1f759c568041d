"""Tool specifications and the invocation contract used by the agent runtime.

A tool is an ``async def`` decorated with :func:`tool`. Its signature is
reflected once, at decoration time, into a :class:`ToolDescriptor`:

* an optional first parameter receiving the shared session context,
* exactly one parameter annotated with a :class:`ToolArgs` subclass,
* a return annotation naming a :class:`ToolOutput` subclass.

:meth:`ToolSpec.invoke` validates an untyped payload against the argument
model before any tool logic runs, awaits the tool and serializes its result.
Failures are raised as :class:`ToolError` subclasses; the registry turns them
into values for the agent.
"""

from __future__ import annotations

import inspect
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple, Type, Union, get_type_hints

from pydantic import BaseModel, ConfigDict, PydanticUserError, ValidationError

RawArguments = Union[Mapping[str, Any], str, bytes]
ToolFn = Callable[..., Awaitable["ToolOutput"]]


class ToolError(Exception):
    """Terminal failure of a single tool invocation."""

    kind = "tool_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SchemaViolation(ToolError):
    """Raw arguments do not satisfy the tool's declared input schema."""

    kind = "schema_violation"

    def __init__(self, message: str, fields: Tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.fields = fields


class DomainError(ToolError):
    """Tool logic rejected a well-formed request (unknown operation, language...)."""

    kind = "domain_error"


class ToolArgs(BaseModel):
    """Base for tool argument records. Strict: no silent type coercion."""

    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)


class ToolOutput(BaseModel):
    """Base for tool result records. Non-finite floats serialize as "Infinity"/"NaN" strings."""

    model_config = ConfigDict(frozen=True, ser_json_inf_nan="strings")


@dataclass(frozen=True, slots=True)
class ToolDescriptor:
    """Name, description and JSON schema the agent sees for a tool."""

    name: str
    description: str
    input_schema: Dict[str, Any]

    def definition(self) -> Dict[str, Any]:
        """Function-calling definition in the OpenAI/Groq chat format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": json.loads(json.dumps(self.input_schema)),
            },
        }


@dataclass(frozen=True, slots=True)
class _Signature:
    args_model: Type[ToolArgs]
    output_model: Type[ToolOutput]
    takes_context: bool


def _is_model(candidate: Any, base: type) -> bool:
    return inspect.isclass(candidate) and issubclass(candidate, base)


def _reflect(fn: Callable[..., Any]) -> _Signature:
    """Derive the argument/output models from a tool function's annotations."""
    if not inspect.iscoroutinefunction(fn):
        raise TypeError(f"Tool '{fn.__name__}' must be an async function.")

    try:
        hints = get_type_hints(fn)
    except NameError as exc:
        raise TypeError(f"Tool '{fn.__name__}' has unresolvable annotations: {exc}") from exc

    params = list(inspect.signature(fn).parameters.values())
    if len(params) not in (1, 2):
        raise TypeError(
            f"Tool '{fn.__name__}' must take (args) or (context, args), got {len(params)} parameters."
        )

    args_model = hints.get(params[-1].name)
    if not _is_model(args_model, ToolArgs):
        raise TypeError(f"Tool '{fn.__name__}' last parameter must be annotated with a ToolArgs subclass.")

    output_model = hints.get("return")
    if not _is_model(output_model, ToolOutput):
        raise TypeError(f"Tool '{fn.__name__}' must declare a ToolOutput subclass as its return type.")

    return _Signature(args_model=args_model, output_model=output_model, takes_context=len(params) == 2)


def tool(*, description: str, name: Optional[str] = None) -> Callable[[ToolFn], ToolFn]:
    """
    Register a coroutine as a tool definition.

    The function is returned unchanged, with its descriptor attached, so it
    can still be awaited directly with typed arguments.

    Raises
    ------
    TypeError
        If the signature cannot be reflected into an input schema.
    """

    def decorate(fn: ToolFn) -> ToolFn:
        signature = _reflect(fn)
        try:
            schema = signature.args_model.model_json_schema()
        except PydanticUserError as exc:
            raise TypeError(f"Tool '{fn.__name__}' arguments cannot be exported as a schema: {exc}") from exc

        fn.__tool_descriptor__ = ToolDescriptor(  # type: ignore[attr-defined]
            name=name or fn.__name__,
            description=description,
            input_schema=schema,
        )
        fn.__tool_signature__ = signature  # type: ignore[attr-defined]
        return fn

    return decorate


def _violation(tool_name: str, exc: ValidationError) -> SchemaViolation:
    problems = []
    fields = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "<arguments>"
        fields.append(field)
        problems.append(f"{field}: {error['msg']}")
    message = f"Invalid arguments for tool '{tool_name}': " + "; ".join(problems)
    return SchemaViolation(message, fields=tuple(fields))


@dataclass(slots=True)
class ToolSpec:
    """Metadata wrapper used by the agent to invoke tools in a uniform way."""

    name: str
    fn: ToolFn
    descriptor: ToolDescriptor
    args_model: Type[ToolArgs]
    output_model: Type[ToolOutput]
    context: Any = None
    takes_context: bool = False

    @classmethod
    def of(cls, fn: ToolFn, context: Any = None) -> "ToolSpec":
        """Bind a ``@tool`` function (and its context, if it takes one) into a spec."""
        descriptor = getattr(fn, "__tool_descriptor__", None)
        signature = getattr(fn, "__tool_signature__", None)
        if descriptor is None or signature is None:
            raise TypeError(f"{fn!r} is not decorated with @tool.")
        if signature.takes_context and context is None:
            raise TypeError(f"Tool '{descriptor.name}' requires a context.")
        return cls(
            name=descriptor.name,
            fn=fn,
            descriptor=descriptor,
            args_model=signature.args_model,
            output_model=signature.output_model,
            context=context,
            takes_context=signature.takes_context,
        )

    def parse_arguments(self, raw_arguments: RawArguments) -> ToolArgs:
        """Deserialize an untyped payload into the tool's argument model."""
        payload: Any = raw_arguments
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload or "{}")
            except json.JSONDecodeError as exc:
                raise SchemaViolation(
                    f"Invalid arguments for tool '{self.name}': not valid JSON ({exc.msg})."
                ) from exc
        if not isinstance(payload, Mapping):
            raise SchemaViolation(
                f"Invalid arguments for tool '{self.name}': expected an object, got {type(payload).__name__}."
            )
        try:
            return self.args_model.model_validate(dict(payload))
        except ValidationError as exc:
            raise _violation(self.name, exc) from exc

    async def invoke(self, raw_arguments: RawArguments) -> Dict[str, Any]:
        """Validate, run and serialize one call. Raises ToolError on failure."""
        args = self.parse_arguments(raw_arguments)
        if self.takes_context:
            output = await self.fn(self.context, args)
        else:
            output = await self.fn(args)
        if not isinstance(output, self.output_model):
            raise TypeError(
                f"Tool '{self.name}' returned {type(output).__name__}, expected {self.output_model.__name__}."
            )
        return json.loads(output.model_dump_json())


__all__ = [
    "DomainError",
    "RawArguments",
    "SchemaViolation",
    "ToolArgs",
    "ToolDescriptor",
    "ToolError",
    "ToolFn",
    "ToolOutput",
    "ToolSpec",
    "tool",
]
