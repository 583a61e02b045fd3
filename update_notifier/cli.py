"""
Command-line interface for the update notifier.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .config import UpdaterConfig
from .errors import UpdaterError
from .models import AlertPolicy, CheckFrequency, UpdaterEvent, UserChoice
from .orchestrator import VersionChecker
from .policy import TierPolicies
from .presentation import UpdatePrompt, UpdatePrompter
from .reporting import print_summary, save_outcome_json
from .storage import InMemoryStateStore, JsonFileStateStore


logger = logging.getLogger(__name__)

_CHOICE_KEYS = {"u": UserChoice.UPDATE, "n": UserChoice.CANCEL, "s": UserChoice.SKIP}


class ConsolePresenter:
    """Ask the user on the terminal."""

    def __init__(self, input_func=input, output=None) -> None:
        self.input_func = input_func
        self.output = output if output is not None else sys.stdout

    def present(self, prompt: UpdatePrompt) -> UserChoice:
        print(prompt.title, file=self.output)
        print(prompt.message, file=self.output)
        options = ", ".join(
            f"[{title[0].lower()}] {title}" for title in prompt.button_titles()
        )
        answer = self.input_func(f"{options}: ").strip().lower()[:1]
        return _CHOICE_KEYS.get(answer, UserChoice.CANCEL)


def _parse_headers(values: Optional[List[str]], parser: argparse.ArgumentParser) -> Dict[str, str]:
    headers = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            parser.error(f"Invalid header {item!r}, expected KEY=VALUE")
        headers[key.strip()] = value.strip()
    return headers


def _log_event(event: UpdaterEvent) -> None:
    logger.info("Event: %s", event.type.value)
    if event.message:
        logger.info("%s", event.message)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check the installed app version against a remote config endpoint"
    )

    parser.add_argument(
        "--config",
        required=True,
        help="Path to the updater config JSON file"
    )

    parser.add_argument(
        "--state",
        default=None,
        help="Path to the JSON state file. Default: keep state in memory"
    )

    parser.add_argument(
        "--frequency",
        choices=[f.name.lower() for f in CheckFrequency],
        default="immediate",
        help="Minimum days between checks. Default: immediate"
    )

    parser.add_argument(
        "--policy",
        choices=[p.value for p in AlertPolicy],
        default=None,
        help="Alert policy applied to every version tier"
    )

    parser.add_argument(
        "--header",
        action="append",
        metavar="KEY=VALUE",
        help="Extra request header, may be repeated"
    )

    parser.add_argument(
        "--installed-version",
        default=None,
        help="Override the installed version from the config file"
    )

    parser.add_argument(
        "--prompt",
        action="store_true",
        help="Ask on the terminal when an update is available"
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Write <bundle_id>_outcome.json to this directory"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    headers = _parse_headers(args.header, parser)

    try:
        config = UpdaterConfig.load(Path(args.config))
    except (OSError, ValueError, UpdaterError) as e:
        print(f"Error: Could not load config {args.config}: {e}", file=sys.stderr)
        return 1

    config.headers.update(headers)
    if args.installed_version:
        config.installed_version = args.installed_version

    tier_policies = TierPolicies()
    if args.policy:
        tier_policies.set_global_policy(AlertPolicy(args.policy))

    store = JsonFileStateStore(Path(args.state)) if args.state else InMemoryStateStore()
    frequency = CheckFrequency[args.frequency.upper()]

    checker = VersionChecker(
        config,
        store=store,
        tier_policies=tier_policies,
        listener=_log_event,
        debug=args.verbose,
    )
    outcome = checker.check(frequency)

    print_summary(
        config.bundle_id,
        config.installed_version or config.distribution or "",
        args.frequency,
        outcome,
    )

    if args.prompt:
        prompter = UpdatePrompter(
            ConsolePresenter(), store, config.app_name, listener=_log_event
        )
        prompter.handle(outcome)

    if args.output_dir:
        outcome_file = save_outcome_json(
            outcome, Path(args.output_dir), config.bundle_id or "app", checker.clock.now()
        )
        logger.info("Outcome saved to: %s", outcome_file)

    return 1 if outcome.is_failure else 0


if __name__ == "__main__":
    sys.exit(main())
