from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Optional, Sequence

from google.auth.exceptions import GoogleAuthError

from .api import build_tool_registry
from .bootstrap import configure_logging
from .config import AppSettings, get_settings
from .core import resolve_timezone
from .domain import CalbotError
from .llm import build_completion_client
from .orchestrator import AgentLoop, Console, ConversationSession, ToolDispatcher, build_system_prompt, load_contacts
from .services import GoogleCalendarClient
from .services.auth import authorize, verify_auth

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Calbot command line interface.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    agent_parser = subparsers.add_parser(
        "agent", help="Start an interactive AI agent with bash and Google Calendar tools."
    )
    agent_parser.add_argument("--model", help="Override the configured completion model.")
    agent_parser.add_argument("--no-color", action="store_true", help="Disable styled output.")

    return parser


def connect_calendar(settings: AppSettings, console: Console) -> Optional[GoogleCalendarClient]:
    """Authorize against Google Calendar; on any failure the agent runs with bash only."""

    console.info("Initializing Google Calendar authentication...")
    try:
        credentials = authorize(settings.google)
        if not verify_auth(credentials):
            console.warning("Google Calendar authentication verification failed")
            console.info("Continuing with bash tools only...")
            return None
        client = GoogleCalendarClient.from_credentials(credentials, send_updates=settings.agent.send_updates)
    except (CalbotError, GoogleAuthError, OSError, ValueError) as exc:
        logger.warning("Google Calendar authentication failed: %s", exc)
        console.error(f"Google Calendar authentication failed: {exc}")
        console.info("Continuing with bash tools only...")
        return None
    console.success("Google Calendar connected successfully!")
    return client


def build_agent(settings: AppSettings, console: Console, *, calendar: Any = None) -> AgentLoop:
    tz = resolve_timezone(settings.agent.timezone)
    registry = build_tool_registry()
    contacts = load_contacts(settings.agent.contacts_path)
    session = ConversationSession(
        build_completion_client(settings.llm),
        model=settings.llm.model,
        registry=registry,
        system_prompt=build_system_prompt(datetime.now(tz), contacts, tz),
        on_text=console.stream_chunk,
    )
    dispatcher = ToolDispatcher(registry, settings=settings.agent, calendar=calendar, tz=tz)
    return AgentLoop(session, dispatcher, console=console)


def run_agent(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.model:
        settings = replace(settings, llm=replace(settings.llm, model=args.model))
    console = Console(color=not args.no_color)

    if not settings.llm.is_configured:
        console.error(f"Missing environment variables: {', '.join(settings.llm.missing_env_vars)}")
        return 1

    console.banner("LLM Agent Loop with GPT and Calendar Tools")
    console.info("Type 'exit' to end the conversation.")
    console.stream_complete()

    try:
        calendar = connect_calendar(settings, console)
        console.stream_complete()
        loop = build_agent(settings, console, calendar=calendar)
        asyncio.run(loop.run())
    except KeyboardInterrupt:
        console.stream_complete()
        console.info("Exiting. Goodbye!")
        return 0
    except Exception as exc:  # noqa: BLE001
        logger.exception("Agent loop failed")
        console.error(f"Agent loop failed: {exc}")
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    configure_logging()
    logging.getLogger(__name__).info("Calbot CLI starting")
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "agent":
        return run_agent(args)
    parser.print_help()  # pragma: no cover - argparse enforces choices
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
