#!/usr/bin/env python3
"""
Example script showing how to use the update notifier from a host application.
"""

from pathlib import Path

from update_notifier import (
    AlertPolicy,
    CheckFrequency,
    TierPolicies,
    UpdaterConfig,
    VersionChecker,
)
from update_notifier.models import UserChoice
from update_notifier.presentation import UpdatePrompter
from update_notifier.storage import JsonFileStateStore


def print_event(event):
    print(f"[event] {event.type.value}", event.message or "")


class AlwaysUpdatePresenter:
    """Stand-in for a real dialog: accepts every prompt."""

    def present(self, prompt):
        print(f"{prompt.title}: {prompt.message} {prompt.button_titles()}")
        return UserChoice.UPDATE


def example_basic_check():
    """Example: check once a day with the default Option policy."""
    print("="*60)
    print("Example 1: Daily Check")
    print("="*60)

    config = UpdaterConfig(
        bundle_id="com.example.app",
        protocol="https",
        host="config.example.com",
        path="/api/v1/config",
        installed_version="1.2.0",
        app_name="Example",
        headers={"platform": "iOS", "appVersion": "1.2.0"},
    )
    store = JsonFileStateStore(Path("./output/example1/state.json"))
    checker = VersionChecker(config, store=store, listener=print_event)

    outcome = checker.check(CheckFrequency.DAILY)

    print(f"\nOutcome: {outcome.status.value}")
    if outcome.version is not None:
        print(f"Remote version: {outcome.version} ({outcome.delta.value})")
        print(f"Alert: {outcome.policy.value}")


def example_tiered_policies():
    """Example: per-tier policies with a prompt."""
    print("\n" + "="*60)
    print("Example 2: Tiered Policies")
    print("="*60)

    config = UpdaterConfig.load(Path("./updater.json"))
    policies = TierPolicies.uniform(AlertPolicy.SILENT)
    policies.major = AlertPolicy.FORCE
    policies.minor = AlertPolicy.SKIP

    store = JsonFileStateStore(Path("./output/example2/state.json"))
    checker = VersionChecker(
        config, store=store, tier_policies=policies, listener=print_event, debug=True
    )
    outcome = checker.check(CheckFrequency.WEEKLY)

    prompter = UpdatePrompter(
        AlwaysUpdatePresenter(), store, config.app_name, listener=print_event
    )
    choice = prompter.handle(outcome)
    print(f"\nUser choice: {choice.value if choice else 'none'}")


if __name__ == "__main__":
    print("\nUpdate Notifier - Usage Examples\n")

    # Uncomment the examples you want to run
    # Note: these examples contact the configured endpoint

    # example_basic_check()
    # example_tiered_policies()

    print("\nTo run examples, uncomment the desired example function calls in this script.")
