import asyncio
import dataclasses

import pytest

from app.context import AppContext
from app.tools import ToolArgs, ToolDescriptor, ToolOutput, ToolSpec, tool
from app.tools.calculator import calculator
from app.tools.greeter import greeter
from app.tools.registry import ToolRegistry


class SleepArgs(ToolArgs):
    label: str
    delay: float


class SleepOutput(ToolOutput):
    label: str


@tool(description="Sleep then echo the label")
async def sleeper(args: SleepArgs) -> SleepOutput:
    await asyncio.sleep(args.delay)
    return SleepOutput(label=args.label)


def make_registry(language: str = "es") -> ToolRegistry:
    context = AppContext(language=language)
    return ToolRegistry([ToolSpec.of(calculator), ToolSpec.of(greeter, context=context)])


def test_duplicate_registration_rejected():
    registry = make_registry()
    with pytest.raises(ValueError):
        registry.register(ToolSpec.of(calculator))
    assert len(registry) == 2


def test_names_and_schemas():
    registry = make_registry()
    assert registry.names() == ["calculator", "greeter"]
    assert [d["function"]["name"] for d in registry.schemas()] == ["calculator", "greeter"]
    assert "calculator" in registry
    assert "multiply" not in registry


def test_descriptors_back_the_schemas():
    registry = make_registry()
    descriptors = registry.descriptors()
    assert all(isinstance(d, ToolDescriptor) for d in descriptors)
    assert [d.name for d in descriptors] == registry.names()
    assert registry.schemas() == [d.definition() for d in descriptors]
    with pytest.raises(dataclasses.FrozenInstanceError):
        descriptors[0].name = "renamed"


def test_get_unknown_raises_key_error():
    with pytest.raises(KeyError):
        make_registry().get("multiply")


def test_dispatch_success():
    out = asyncio.run(make_registry().dispatch("calculator", {"operation": "add", "a": 5, "b": 3}))
    assert out == {"ok": True, "result": {"result": 8.0}}


def test_dispatch_domain_error_is_value():
    out = asyncio.run(make_registry().dispatch("calculator", '{"operation": "multiply", "a": 4, "b": 2}'))
    assert out == {
        "ok": False,
        "error": "Invalid operation: must be 'add' or 'subtract'",
        "kind": "domain_error",
    }


def test_dispatch_schema_violation_is_value():
    out = asyncio.run(make_registry().dispatch("calculator", {"operation": "add", "b": 3}))
    assert out["ok"] is False
    assert out["kind"] == "schema_violation"
    assert "a:" in out["error"]


def test_dispatch_unknown_tool_lists_alternatives():
    out = asyncio.run(make_registry().dispatch("multiply", {}))
    assert out["ok"] is False
    assert out["kind"] == "unknown_tool"
    assert "'calculator'" in out["error"] and "'greeter'" in out["error"]


def test_registry_keeps_serving_after_errors():
    registry = make_registry(language="fr")

    async def scenario():
        failed = await registry.dispatch("greeter", {"name": "Ana"})
        ok = await registry.dispatch("calculator", {"operation": "subtract", "a": 15, "b": 10})
        return failed, ok

    failed, ok = asyncio.run(scenario())
    assert failed["kind"] == "domain_error"
    assert "Unsupported language" in failed["error"]
    assert ok == {"ok": True, "result": {"result": 5.0}}


def test_concurrent_dispatch_does_not_block_siblings():
    registry = ToolRegistry([ToolSpec.of(sleeper), ToolSpec.of(greeter, context=AppContext("en"))])

    async def scenario():
        finished = []

        async def run(name, payload):
            out = await registry.dispatch(name, payload)
            finished.append(name if name == "greeter" else out["result"]["label"])
            return out

        results = await asyncio.gather(
            run("sleeper", {"label": "slow", "delay": 0.05}),
            run("greeter", {"name": "Bob"}),
        )
        return finished, results

    finished, results = asyncio.run(scenario())
    assert finished == ["greeter", "slow"]
    assert results[1] == {"ok": True, "result": {"message": "Hello, Bob!"}}


def test_cancellation_leaves_context_intact():
    context = AppContext(language="en")
    registry = ToolRegistry([ToolSpec.of(sleeper), ToolSpec.of(greeter, context=context)])

    async def scenario():
        task = asyncio.create_task(registry.dispatch("sleeper", {"label": "x", "delay": 1.0}))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return await registry.dispatch("greeter", {"name": "Eve"})

    assert asyncio.run(scenario())["result"] == {"message": "Hello, Eve!"}
    assert context == AppContext(language="en")
