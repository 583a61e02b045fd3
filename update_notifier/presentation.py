"""
Turning check outcomes into prompts and user choices into events.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .interfaces import Presenter, StateStore
from .models import (
    AlertPolicy,
    CheckOutcome,
    EventType,
    OutcomeStatus,
    UpdaterEvent,
    UserChoice,
)
from .semver import SemanticVersion


logger = logging.getLogger(__name__)

UPDATE_TITLE = "Update Available"
NEW_VERSION_MESSAGE = "A new version of {app_name} is available. Please update to version {version} now."

# Button order as shown to the user
_CHOICES = {
    AlertPolicy.FORCE: (UserChoice.UPDATE,),
    AlertPolicy.OPTION: (UserChoice.UPDATE, UserChoice.CANCEL),
    AlertPolicy.SKIP: (UserChoice.UPDATE, UserChoice.CANCEL, UserChoice.SKIP),
}

BUTTON_TITLES = {
    UserChoice.UPDATE: "Update",
    UserChoice.CANCEL: "Next time",
    UserChoice.SKIP: "Skip this version",
}


def update_message(app_name: str, version: Optional[SemanticVersion]) -> str:
    return NEW_VERSION_MESSAGE.format(
        app_name=app_name,
        version=version if version is not None else "Unknown",
    )


@dataclass(frozen=True)
class UpdatePrompt:
    """A dialog the presenter should render."""

    policy: AlertPolicy
    title: str
    message: str
    choices: Tuple[UserChoice, ...]
    version: Optional[SemanticVersion] = None

    @property
    def dismissible(self) -> bool:
        return self.policy is not AlertPolicy.FORCE

    def button_titles(self) -> Tuple[str, ...]:
        return tuple(BUTTON_TITLES[c] for c in self.choices)


def build_prompt(outcome: CheckOutcome, app_name: str) -> Optional[UpdatePrompt]:
    """Return the prompt for an ``UPDATE_REQUIRED`` outcome.

    Silent policies and every other outcome produce no prompt.
    """
    if outcome.status is not OutcomeStatus.UPDATE_REQUIRED:
        return None
    if outcome.policy is None or outcome.policy is AlertPolicy.SILENT:
        return None
    return UpdatePrompt(
        policy=outcome.policy,
        title=UPDATE_TITLE,
        message=update_message(app_name, outcome.version),
        choices=_CHOICES[outcome.policy],
        version=outcome.version,
    )


class UpdatePrompter:
    """Show the prompt for an outcome and act on the user's answer."""

    def __init__(
        self,
        presenter: Presenter,
        store: StateStore,
        app_name: str,
        listener: Optional[Callable[[UpdaterEvent], None]] = None,
        store_launcher: Optional[Callable[[], None]] = None,
        max_force_prompts: int = 3,
    ) -> None:
        if max_force_prompts < 1:
            raise ValueError("max_force_prompts must be at least 1")
        self.presenter = presenter
        self.store = store
        self.app_name = app_name
        self.listener = listener
        self.store_launcher = store_launcher
        self.max_force_prompts = max_force_prompts

    def handle(self, outcome: CheckOutcome) -> Optional[UserChoice]:
        """Present ``outcome`` and return the user's choice, if one was asked for.

        Failures were already reported by the checker; only
        ``UPDATE_REQUIRED`` outcomes reach the user.
        """
        if outcome.status is not OutcomeStatus.UPDATE_REQUIRED:
            return None

        if outcome.policy is AlertPolicy.SILENT:
            message = update_message(self.app_name, outcome.version)
            self._emit(UpdaterEvent(
                EventType.UPDATE_DETECTED_WITHOUT_ALERT,
                policy=outcome.policy,
                version=outcome.version,
                message=message,
            ))
            return None

        prompt = build_prompt(outcome, self.app_name)
        choice = self._ask(prompt)
        self._apply(prompt, choice)
        return choice

    def _ask(self, prompt: UpdatePrompt) -> UserChoice:
        attempts = self.max_force_prompts if not prompt.dismissible else 1
        choice = UserChoice.CANCEL
        for attempt in range(attempts):
            self._emit(UpdaterEvent(
                EventType.DIALOG_SHOWN, policy=prompt.policy, version=prompt.version
            ))
            choice = self.presenter.present(prompt)
            if choice not in prompt.choices:
                logger.warning(
                    "Presenter returned %s, not offered by %s prompt",
                    choice.value, prompt.policy.value,
                )
                choice = UserChoice.CANCEL
            if prompt.dismissible or choice is UserChoice.UPDATE:
                break
            logger.debug("Force prompt dismissed (attempt %d)", attempt + 1)
        return choice

    def _apply(self, prompt: UpdatePrompt, choice: UserChoice) -> None:
        if choice is UserChoice.UPDATE:
            if self.store_launcher is not None:
                self.store_launcher()
            self._emit(UpdaterEvent(
                EventType.USER_LAUNCHED_STORE, policy=prompt.policy, version=prompt.version
            ))
        elif choice is UserChoice.SKIP:
            if prompt.version is not None:
                self.store.set_skipped_version(prompt.version.render())
            self._emit(UpdaterEvent(
                EventType.USER_SKIPPED, policy=prompt.policy, version=prompt.version
            ))
        else:
            self._emit(UpdaterEvent(
                EventType.USER_CANCELLED, policy=prompt.policy, version=prompt.version
            ))

    def _emit(self, event: UpdaterEvent) -> None:
        if self.listener is not None:
            self.listener(event)
