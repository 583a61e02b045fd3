"""
Version check orchestrator.

One ``VersionChecker.check`` call runs one check cycle::

    IDLE -> FETCHING -> PARSING -> EVALUATING -> DECIDING -> DONE
                 \\__________\\___________\\______> FAILED

and returns exactly one ``CheckOutcome``. Persisted state is read once when
the cycle starts and written at most once when it ends.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, tzinfo
from typing import Callable, Optional

from .config import UpdaterConfig
from .errors import (
    CheckAlreadyInProgress,
    CheckCancelled,
    InvalidFormat,
    NetworkFailure,
    StorageFailure,
    UpdaterError,
)
from .interfaces import Clock, HttpClient, StateStore
from .models import (
    AlertPolicy,
    CheckFrequency,
    CheckOutcome,
    CheckState,
    EventType,
    HttpResponse,
    PersistedState,
    UpdateDecision,
    UpdaterEvent,
)
from .payload import decode_body, parse_remote_payload
from .policy import TierPolicies, evaluate
from .scheduler import is_due
from .semver import SemanticVersion
from .storage import InMemoryStateStore
from .time_utils import ensure_utc, utc_now
from .transport import RequestsHttpClient


logger = logging.getLogger(__name__)

EventListener = Callable[[UpdaterEvent], None]


class SystemClock:
    def now(self) -> datetime:
        return utc_now()


class VersionChecker:
    """Check the installed version against the remote config endpoint."""

    def __init__(
        self,
        config: UpdaterConfig,
        http: Optional[HttpClient] = None,
        store: Optional[StateStore] = None,
        clock: Optional[Clock] = None,
        tier_policies: Optional[TierPolicies] = None,
        listener: Optional[EventListener] = None,
        debug: bool = False,
        calendar_tz: Optional[tzinfo] = None,
    ):
        """Initialize the checker.

        Args:
            config: Endpoint, installed version and request settings
            http: HTTP collaborator; defaults to a requests-backed client
            store: Persistence collaborator; defaults to in-memory state
            clock: Source of the current time; defaults to UTC wall clock
            tier_policies: Alert policy per version tier
            listener: Callback receiving updater events
            debug: Echo payloads and failures at INFO instead of DEBUG
            calendar_tz: Timezone whose midnight starts a new check day;
                defaults to the host's local timezone
        """
        self.config = config
        self.http = http or RequestsHttpClient(timeout=config.timeout)
        self.store = store or InMemoryStateStore()
        self.clock = clock or SystemClock()
        self.tier_policies = tier_policies or TierPolicies()
        self.listener = listener
        self.debug = debug
        self.calendar_tz = calendar_tz

        self._state = CheckState.IDLE
        self._in_flight = threading.Lock()
        # Guards the pairing of the in-flight lock with the cancel flag
        self._guard = threading.Lock()
        self._cancel_requested = threading.Event()

    @property
    def state(self) -> CheckState:
        return self._state

    @property
    def in_progress(self) -> bool:
        return self._in_flight.locked()

    def cancel(self) -> bool:
        """Ask the in-flight cycle to stop; returns False if none is running.

        A cancelled cycle ends in ``Failed(CANCELLED)`` at its next stage
        boundary and persists nothing.
        """
        with self._guard:
            if not self.in_progress:
                return False
            self._cancel_requested.set()
            return True

    def check(self, frequency: CheckFrequency = CheckFrequency.IMMEDIATE) -> CheckOutcome:
        """Run one check cycle and return its outcome."""
        with self._guard:
            acquired = self._in_flight.acquire(blocking=False)
        if not acquired:
            error = CheckAlreadyInProgress()
            self._echo("Rejected check: %s", error)
            outcome = CheckOutcome.failed(error.kind, error)
            self._emit(UpdaterEvent(EventType.CHECK_FAILED, error_kind=error.kind, error=error))
            return outcome

        try:
            return self._run_cycle(frequency)
        finally:
            with self._guard:
                self._cancel_requested.clear()
                self._in_flight.release()

    def _run_cycle(self, frequency: CheckFrequency) -> CheckOutcome:
        self._state = CheckState.IDLE
        try:
            self.config.validate()
            installed = self.config.resolve_installed_version()
            snapshot = self._read_state()
            now = ensure_utc(self.clock.now())

            if not is_due(snapshot.last_check, frequency, now, self.calendar_tz):
                self._echo("Last check at %s, skipping (%s)", snapshot.last_check, frequency.name)
                self._advance(CheckState.DONE)
                return CheckOutcome.skipped_recently()

            self._advance(CheckState.FETCHING)
            response = self._fetch()
            if response.status_code != 200:
                raise NetworkFailure(
                    f"Expected status 200, got {response.status_code}",
                    status_code=response.status_code,
                )

            self._advance(CheckState.PARSING)
            payload = decode_body(response.body)
            remote = parse_remote_payload(payload, self.config.platform)
            self._echo("Config payload: %s", payload)
            self._emit(UpdaterEvent(EventType.CHECK_COMPLETED_WITH_DATA, payload=payload))

            self._advance(CheckState.EVALUATING)
            decision = None
            if not remote.is_empty:
                decision = evaluate(
                    installed, remote, self.tier_policies, self.config.forced_alert_policy
                )
            if decision is None:
                self._record_check(now)
                logger.info("No update available for %s %s", self.config.bundle_id, installed)
                return CheckOutcome.no_update()

            self._advance(CheckState.DECIDING)
            return self._decide(decision, snapshot, now)
        except UpdaterError as e:
            return self._fail(e)

    def _decide(self, decision: UpdateDecision, snapshot: PersistedState, now: datetime) -> CheckOutcome:
        if (
            decision.policy is AlertPolicy.SKIP
            and snapshot.skipped_version is not None
            and snapshot.skipped_version == decision.target_version
        ):
            self._advance(CheckState.DONE)
            logger.info("Version %s was skipped by the user", decision.target_version)
            return CheckOutcome.version_skipped(decision)

        self._record_check(now)
        logger.info(
            "Update available: %s (%s, alert=%s)",
            decision.target_version, decision.delta.value, decision.policy.value,
        )
        return CheckOutcome.update_required(decision)

    def _fetch(self) -> HttpResponse:
        try:
            response = self.http.fetch(
                self.config.endpoint_url(),
                self.config.request_headers(),
                method=self.config.method,
                params=self.config.query_params(),
            )
        except UpdaterError:
            raise
        except Exception as e:
            raise NetworkFailure(f"Request to {self.config.endpoint_url()} failed: {e}") from e
        self._raise_if_cancelled()
        return response

    def _read_state(self) -> PersistedState:
        try:
            last_check = self.store.get_last_check_timestamp()
            raw_skipped = self.store.get_skipped_version()
        except UpdaterError:
            raise
        except Exception as e:
            raise StorageFailure(f"Could not read updater state: {e}") from e

        skipped = None
        if raw_skipped:
            try:
                skipped = SemanticVersion.parse(raw_skipped)
            except InvalidFormat:
                logger.warning("Ignoring unparseable skipped version %r", raw_skipped)
        return PersistedState(
            last_check=ensure_utc(last_check) if last_check else None,
            skipped_version=skipped,
        )

    def _record_check(self, now: datetime) -> None:
        """Persist the check time and finish the cycle; the only write a cycle makes."""
        self._raise_if_cancelled()
        try:
            self.store.set_last_check_timestamp(now)
        except UpdaterError:
            raise
        except Exception as e:
            raise StorageFailure(f"Could not save last check time: {e}") from e
        self._state = CheckState.DONE

    def _advance(self, state: CheckState) -> None:
        self._raise_if_cancelled()
        self._state = state

    def _raise_if_cancelled(self) -> None:
        if self._cancel_requested.is_set():
            raise CheckCancelled()

    def _fail(self, error: UpdaterError) -> CheckOutcome:
        self._echo("Version check failed in %s: %s", self._state.value, error)
        self._state = CheckState.FAILED
        self._emit(UpdaterEvent(EventType.CHECK_FAILED, error_kind=error.kind, error=error))
        return CheckOutcome.failed(error.kind, error)

    def _emit(self, event: UpdaterEvent) -> None:
        if self.listener is not None:
            self.listener(event)

    def _echo(self, message: str, *args) -> None:
        logger.log(logging.INFO if self.debug else logging.DEBUG, message, *args)
