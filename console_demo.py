"""
Offline console demo. Runs a full pump sizing conversation without API keys.

Uses the real advisor pipeline (guardrails, stage machine, extractors,
sizing calculators and pump catalog) with template replies and no search
lookups. No LLM, no network calls. Designed for live demo walkthroughs.

Usage:
    python console_demo.py
    python console_demo.py --scenario household
    python console_demo.py --scenario sandy
"""

import argparse
import uuid
from typing import Optional

from pump_advisor.advisor import PumpAdvisor
from pump_advisor.config import settings
from pump_advisor.conversation.guardrails import MalformedRequestError
from pump_advisor.schemas.conversation_schema import ChatReply
from pump_advisor.tools.reply_generator import ReplyGenerationError

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"


class ConsoleSession:
    """Drives one advisor session from the terminal."""

    # Pre-scripted scenarios for --scenario flag
    SCENARIOS: dict[str, list[str]] = {
        "livestock": [
            "hi there",
            "I need water for my cattle",
            "Amarillo, Texas",
            "dairy cows",
            "20 head",
            "250 feet",
            "80",
            "not sure",
            "about 15 feet uphill",
            "400 feet of 1 1/4 inch pipe",
            "yes, a 2000 gallon tank",
            "no sand, it's clean",
            "6 inch casing",
            "yes",
        ],
        "household": [
            "hello",
            "household water for the house",
            "Bozeman, Montana",
            "4 people",
            "2 bathrooms plus a kitchen, laundry and a small garden",
            "180 ft",
            "60",
            "12 feet",
            "10",
            "200 feet of 1 inch pipe",
            "no tank",
            "clear water",
            "5 inches",
            "actually the casing is 6 inches",
            "6 inches",
            "looks good",
        ],
        "irrigation": [
            "hi",
            "irrigation for my orchard",
            "Fresno, California",
            "2 acres",
            "drip",
            "peach trees and other fruits",
            "150 feet",
            "40",
            "8",
            "0",
            "300 feet of 2 inch pipe",
            "yes",
            "no sediment",
            "6",
            "correct",
        ],
        "custom": [
            "hi",
            "I need 1500 gpd at 90 ft of head",
            "200 feet",
            "70",
            "10",
            "it goes directly to a stock tank",
            "no sand",
            "6 inch",
            "yes",
        ],
        "sandy": [
            "hi",
            "livestock",
            "Cheyenne, Wyoming",
            "beef cattle",
            "40",
            "120 feet",
            "50",
            "5",
            "straight into the stock tank",
            "yes, lots of sand",
            "6 inch",
            "yes",
        ],
    }

    def __init__(self, advisor: Optional[PumpAdvisor] = None) -> None:
        self.advisor = advisor or PumpAdvisor()
        self.session_id = f"console-{uuid.uuid4().hex[:8]}"

    def agent_say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[Advisor]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _banner(self, title: str, *extra: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  SOLAR PUMP ADVISOR - {title}{RESET}")
        print(f"{BOLD}  Business: {settings.business.name}{RESET}")
        for line in extra:
            print(f"{BOLD}  {line}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    def _footer(self, title: str) -> None:
        snapshot = self.advisor.snapshot(self.session_id)
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {title}{RESET}")
        if snapshot is not None:
            print(f"{DIM}  Stage trace: {' -> '.join(snapshot.stage_trace)}{RESET}")
            print(f"{DIM}  Messages: {snapshot.message_count}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        for step in steps:
            print(f"\n{BLUE}[Customer] {RESET}{step}")
            reply = self._process_input(step)
            if reply is not None and reply.recommendation is not None:
                break
        self._footer(f"Scenario '{scenario}' complete.")

    def run(self) -> None:
        self._banner("Console Demo", "Type 'quit' to exit")
        self.agent_say(
            f"Hi, welcome to {settings.business.name}! I can help you size a "
            "solar water pump. What will the water be used for?"
        )

        while True:
            user_input = input(f"\n{BLUE}[Customer] {RESET}").strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                break
            self._process_input(user_input)

        self._footer("Conversation complete.")

    def _process_input(self, text: str) -> Optional[ChatReply]:
        try:
            reply = self.advisor.handle_turn(self.session_id, text)
        except MalformedRequestError as e:
            print(f"{YELLOW}  !! {e}{RESET}")
            return None
        except ReplyGenerationError as e:
            print(f"{RED}  !! {e}{RESET}")
            return None

        self.agent_say(reply.message)
        self.system_log(f"Stage: {reply.stage}")
        if reply.recommendation is not None:
            verdict = "valid" if reply.recommendation["is_valid"] else reply.recommendation["reason_code"]
            self.system_log(f"Recommendation: {verdict}")
        return reply


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
