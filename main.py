"""
Pump advisor entry point.

Runs the chat loop in the terminal with the collaborators configured in the
environment: OpenAI replies when OPENAI_API_KEY is set, Google Custom Search
lookups when GOOGLE_API_KEY and GOOGLE_CSE_ID are set. Expired sessions are
swept in the background.

Usage:
    Live chat:      python main.py chat
    Offline demo:   python main.py console
    Scenario:       python main.py scenario livestock
"""

import logging
import sys

from pump_advisor.config import settings

logger = logging.getLogger(__name__)


def _run_chat_mode() -> None:
    """Chat with the configured reply generator and fact lookup."""
    from console_demo import ConsoleSession
    from pump_advisor.advisor import build_default_advisor
    from pump_advisor.conversation.session_store import SessionSweeper

    advisor = build_default_advisor()
    sweeper = SessionSweeper(advisor.store)
    sweeper.start()
    logger.info("Pump advisor started for '%s'", settings.business.name)
    try:
        ConsoleSession(advisor).run()
    finally:
        sweeper.stop(timeout=1.0)


def _run_console_mode() -> None:
    """Start the offline console demo (no API keys required)."""
    from console_demo import ConsoleSession

    ConsoleSession().run()


def _run_scenario_mode(scenario: str) -> None:
    from console_demo import ConsoleSession

    ConsoleSession().run_scenario(scenario)


if __name__ == "__main__":
    mode = sys.argv[1] if len(sys.argv) > 1 else "chat"
    if mode == "console":
        _run_console_mode()
    elif mode == "scenario" and len(sys.argv) > 2:
        _run_scenario_mode(sys.argv[2])
    else:
        _run_chat_mode()
