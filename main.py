"""Console entry-point: run the demo prompts through the agent."""
from __future__ import annotations

import asyncio

from app.config import configure_logging
from app.main import build_agent, run_prompts


async def _run() -> None:
    agent = build_agent()
    await run_prompts(agent)


if __name__ == "__main__":
    configure_logging()
    asyncio.run(_run())
