"""
Application assembly and Streamlit entry-point for the tool-calling demo.

Responsibilities
- Build the shared session context and the tool registry
- Assemble the agent from configuration
- Run prompts through the agent (console batch or chat UI)
"""
from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import streamlit as st
from groq import AsyncGroq

# Ensure absolute `app.*` imports work even when Streamlit sets cwd to app/
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app.agent import Agent
from app.config import (
    GROQ_MODEL_ENV,
    configure_logging,
    get_groq_api_key,
    get_language,
    get_max_tokens,
    get_max_turns,
    require_env,
)
from app.context import AppContext
from app.tools import ToolSpec
from app.tools.calculator import calculator
from app.tools.greeter import greeter
from app.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

DEMO_PROMPTS: List[str] = [
    "Add 5 and 3",
    "Subtract 10 from 15",
    "Greet Alice in Spanish",
    "Say hello to Bob in English",
    "Multiply 4 by 2",
]

FALLBACK_RESPONSE = "Sorry, something went wrong while handling your request."


# --------------------------------------------------------------------------- #
# Tool registry assembly
# --------------------------------------------------------------------------- #

def build_registry(context: AppContext) -> ToolRegistry:
    return ToolRegistry(
        [
            ToolSpec.of(calculator),
            ToolSpec.of(greeter, context=context),
        ]
    )


def build_agent(
    context: Optional[AppContext] = None,
    client: Optional[AsyncGroq] = None,
    model: Optional[str] = None,
) -> Agent:
    """
    Assemble an agent from environment configuration.

    Parameters
    ----------
    context : Optional[AppContext]
        Shared session context; built from APP_LANGUAGE when omitted.
    client : Optional[AsyncGroq]
        Injected chat client for testability. Built if not provided.
    model : Optional[str]
        Override for model name; falls back to the GROQ_MODEL env var.
    """
    if context is None:
        context = AppContext(language=get_language())
    if client is None:
        client = AsyncGroq(api_key=get_groq_api_key())
    if model is None:
        model = require_env(GROQ_MODEL_ENV)

    return Agent(
        client=client,
        model=model,
        registry=build_registry(context),
        max_turns=get_max_turns(),
        max_tokens=get_max_tokens(),
    )


async def ask(prompt: str, agent: Agent) -> str:
    """
    Run one prompt through the agent and return the response text.

    Failures (provider errors, runaway tool loops) are logged and answered
    with an apology so a caller looping over prompts keeps going.
    """
    try:
        result = await agent.run(prompt)
    except Exception as exc:
        logger.exception("Error while handling prompt %r: %s", prompt, exc)
        return FALLBACK_RESPONSE
    return result["text"]


async def run_prompts(agent: Agent, prompts: Sequence[str] = DEMO_PROMPTS) -> List[str]:
    """Fire prompts through the agent one after another, printing each exchange."""
    responses: List[str] = []
    for prompt in prompts:
        print(f"Prompt: {prompt}")
        response = await ask(prompt, agent)
        print(f"Agent Response: {response}")
        responses.append(response)
    return responses


# --------------------------------------------------------------------------- #
# Streamlit chat UI
# --------------------------------------------------------------------------- #

def _get_context() -> AppContext:
    if "app_context" not in st.session_state:
        st.session_state["app_context"] = AppContext(language=get_language())
    return st.session_state["app_context"]


def main() -> None:
    """Run the Streamlit chat UI."""
    configure_logging()
    st.title("Calculator & Greeter Agent")

    if "messages" not in st.session_state:
        st.session_state["messages"] = []

    for message in st.session_state.messages:
        with st.chat_message(message["role"]):
            st.markdown(message["content"])  # type: ignore[arg-type]

    query = st.chat_input("Ask me to add, subtract or greet someone")  # type: ignore[assignment]
    if not query:
        return

    with st.chat_message("user"):
        st.markdown(query)
    st.session_state.messages.append({"role": "user", "content": query})

    try:
        # A fresh async client per run: each asyncio.run gets its own event loop.
        agent = build_agent(context=_get_context())
        response = asyncio.run(ask(query, agent))
    except RuntimeError as exc:
        logger.exception("Agent could not be configured: %s", exc)
        response = f"Configuration error: {exc}"

    with st.chat_message("assistant"):
        st.markdown(response)
    st.session_state.messages.append({"role": "assistant", "content": response})


if __name__ == "__main__":
    main()
