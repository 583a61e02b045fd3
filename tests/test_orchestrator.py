"""Tests for the version check orchestrator."""

import json
import threading
from datetime import datetime, timedelta, timezone

from update_notifier.config import UpdaterConfig
from update_notifier.errors import CheckCancelled, NetworkFailure
from update_notifier.models import (
    AlertPolicy,
    CheckFrequency,
    CheckOutcome,
    CheckState,
    ErrorKind,
    EventType,
    HttpResponse,
    OutcomeStatus,
    VersionDelta,
)
from update_notifier.orchestrator import VersionChecker
from update_notifier.policy import TierPolicies
from update_notifier.semver import SemanticVersion
from update_notifier.storage import InMemoryStateStore


NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now=NOW):
        self.current = now

    def now(self):
        return self.current


class FakeHttp:
    def __init__(self, payload=None, status_code=200, body=None, error=None):
        self.calls = []
        self.status_code = status_code
        self.body = body if body is not None else json.dumps(payload or {}).encode("utf-8")
        self.error = error

    def fetch(self, url, headers, method="POST", params=None):
        self.calls.append({"url": url, "headers": dict(headers), "method": method, "params": params})
        if self.error is not None:
            raise self.error
        return HttpResponse(status_code=self.status_code, body=self.body)


def make_payload(force=None, recommended=None):
    block = {}
    if force is not None:
        block["forceUpgradeVersion"] = force
    if recommended is not None:
        block["recommendedVersion"] = recommended
    return {"status": {"code": 200}, "data": {"app": {"appUpgrade": {"iOS": block}}}}


def make_config(**overrides):
    values = {
        "bundle_id": "com.example.app",
        "protocol": "https",
        "host": "config.example.com",
        "path": "/api/v1/config",
        "installed_version": "1.2.0",
    }
    values.update(overrides)
    return UpdaterConfig(**values)


def make_checker(http, store=None, policies=None, config=None, events=None, clock=None):
    return VersionChecker(
        config or make_config(),
        http=http,
        store=store if store is not None else InMemoryStateStore(),
        clock=clock or FakeClock(),
        tier_policies=policies,
        listener=events.append if events is not None else None,
        calendar_tz=timezone.utc,
    )


def test_force_version_overrides_option_policies():
    http = FakeHttp(make_payload(force="2.0.0", recommended="1.2.1"))
    store = InMemoryStateStore()
    checker = make_checker(http, store, TierPolicies.uniform(AlertPolicy.OPTION))

    outcome = checker.check(CheckFrequency.IMMEDIATE)

    assert outcome.status is OutcomeStatus.UPDATE_REQUIRED
    assert outcome.delta is VersionDelta.MAJOR
    assert outcome.policy is AlertPolicy.FORCE
    assert outcome.forced is True
    assert store.last_check == NOW
    assert checker.state is CheckState.DONE


def test_previously_skipped_version_is_not_prompted_again():
    http = FakeHttp(make_payload(recommended="1.2.1"))
    store = InMemoryStateStore(skipped_version="1.2.1")
    policies = TierPolicies()
    policies.patch = AlertPolicy.SKIP

    outcome = make_checker(http, store, policies).check()

    assert outcome.status is OutcomeStatus.VERSION_SKIPPED
    assert outcome.version == SemanticVersion.parse("1.2.1")
    assert store.last_check is None


def test_skipped_version_only_applies_to_skip_policy():
    http = FakeHttp(make_payload(recommended="1.2.1"))
    store = InMemoryStateStore(skipped_version="1.2.1")

    outcome = make_checker(http, store, TierPolicies.uniform(AlertPolicy.OPTION)).check()

    assert outcome.status is OutcomeStatus.UPDATE_REQUIRED
    assert outcome.policy is AlertPolicy.OPTION


def test_newer_than_skipped_version_is_prompted():
    http = FakeHttp(make_payload(recommended="1.2.2"))
    store = InMemoryStateStore(skipped_version="1.2.1")

    outcome = make_checker(http, store, TierPolicies.uniform(AlertPolicy.SKIP)).check()

    assert outcome == CheckOutcome(
        status=OutcomeStatus.UPDATE_REQUIRED,
        delta=VersionDelta.PATCH,
        policy=AlertPolicy.SKIP,
        version=SemanticVersion.parse("1.2.2"),
    )


def test_older_remote_version_is_no_update_and_records_timestamp():
    http = FakeHttp(make_payload(recommended="1.1.9"))
    store = InMemoryStateStore()

    outcome = make_checker(http, store).check()

    assert outcome.status is OutcomeStatus.NO_UPDATE_AVAILABLE
    assert store.last_check == NOW


def test_payload_without_versions_is_no_update():
    http = FakeHttp({"status": {"code": 200}, "data": {"app": {}}})
    store = InMemoryStateStore()

    outcome = make_checker(http, store).check()

    assert outcome.status is OutcomeStatus.NO_UPDATE_AVAILABLE
    assert store.last_check == NOW


def test_recent_check_skips_network():
    http = FakeHttp(make_payload(recommended="9.0"))
    store = InMemoryStateStore(last_check=NOW - timedelta(hours=2))

    outcome = make_checker(http, store).check(CheckFrequency.DAILY)

    assert outcome.status is OutcomeStatus.CHECK_SKIPPED_RECENTLY
    assert http.calls == []
    assert store.last_check == NOW - timedelta(hours=2)


def test_request_carries_headers_method_and_country():
    http = FakeHttp(make_payload(recommended="1.2.0"))
    config = make_config(headers={"platform": "iOS"}, country_code="in", path="api/config")

    make_checker(http, config=config).check()

    call = http.calls[0]
    assert call["url"] == "https://config.example.com/api/config"
    assert call["method"] == "POST"
    assert call["headers"]["platform"] == "iOS"
    assert call["headers"]["Accept"] == "application/json"
    assert call["headers"]["Content-Type"] == "application/json; charset=utf-8"
    assert call["params"] == {"country": "in"}


def test_missing_configuration_fails_before_network():
    http = FakeHttp(make_payload(recommended="2.0"))
    events = []
    checker = make_checker(http, config=make_config(host="", path=None), events=events)

    outcome = checker.check()

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.error_kind is ErrorKind.CONFIGURATION_MISSING
    assert set(outcome.error.missing) == {"host", "path"}
    assert http.calls == []
    assert [e.type for e in events] == [EventType.CHECK_FAILED]


def test_non_200_response_is_network_failure():
    http = FakeHttp(make_payload(recommended="2.0"), status_code=503)
    store = InMemoryStateStore()

    outcome = make_checker(http, store).check()

    assert outcome.error_kind is ErrorKind.NETWORK_FAILURE
    assert outcome.error.status_code == 503
    assert store.last_check is None


def test_transport_error_is_network_failure():
    http = FakeHttp(error=NetworkFailure("connection refused"))
    store = InMemoryStateStore()
    checker = make_checker(http, store)

    outcome = checker.check()

    assert outcome.error_kind is ErrorKind.NETWORK_FAILURE
    assert checker.state is CheckState.FAILED
    assert store.last_check is None


def test_malformed_payload_fails_without_persisting():
    http = FakeHttp(body=b"not json")
    store = InMemoryStateStore()

    outcome = make_checker(http, store).check()

    assert outcome.error_kind is ErrorKind.MALFORMED_REMOTE_PAYLOAD
    assert store.last_check is None


def test_invalid_installed_version_fails():
    http = FakeHttp(make_payload(recommended="2.0"))

    outcome = make_checker(http, config=make_config(installed_version="1.two")).check()

    assert outcome.error_kind is ErrorKind.INVALID_FORMAT
    assert http.calls == []


def test_raw_transport_exception_becomes_network_failure():
    timeout = TimeoutError("socket timed out")
    http = FakeHttp(error=timeout)
    store = InMemoryStateStore()
    events = []
    checker = make_checker(http, store, events=events)

    outcome = checker.check()

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.error_kind is ErrorKind.NETWORK_FAILURE
    assert outcome.error.__cause__ is timeout
    assert checker.state is CheckState.FAILED
    assert [e.type for e in events] == [EventType.CHECK_FAILED]
    assert store.last_check is None


def test_transport_cancellation_is_failure():
    http = FakeHttp(error=CheckCancelled())
    store = InMemoryStateStore()

    outcome = make_checker(http, store).check()

    assert outcome.error_kind is ErrorKind.CANCELLED
    assert store.last_check is None


def test_payload_is_echoed_to_listener():
    payload = make_payload(recommended="1.3.0")
    events = []

    make_checker(FakeHttp(payload), events=events).check()

    assert events[0].type is EventType.CHECK_COMPLETED_WITH_DATA
    assert events[0].payload == payload


def test_unparseable_stored_skip_is_ignored():
    http = FakeHttp(make_payload(recommended="1.2.1"))
    store = InMemoryStateStore(skipped_version="garbage")

    outcome = make_checker(http, store, TierPolicies.uniform(AlertPolicy.SKIP)).check()

    assert outcome.status is OutcomeStatus.UPDATE_REQUIRED


class BlockingHttp(FakeHttp):
    """Holds the request open until released, to observe an in-flight cycle."""

    def __init__(self, payload):
        super().__init__(payload)
        self.entered = threading.Event()
        self.release = threading.Event()

    def fetch(self, url, headers, method="POST", params=None):
        self.entered.set()
        assert self.release.wait(timeout=5)
        return super().fetch(url, headers, method, params)


def run_in_thread(checker, results):
    thread = threading.Thread(target=lambda: results.append(checker.check()))
    thread.start()
    return thread


def test_concurrent_check_is_rejected():
    http = BlockingHttp(make_payload(recommended="1.3.0"))
    store = InMemoryStateStore()
    checker = make_checker(http, store)
    results = []

    thread = run_in_thread(checker, results)
    assert http.entered.wait(timeout=5)
    assert checker.in_progress

    second = checker.check()

    http.release.set()
    thread.join(timeout=5)

    assert second.error_kind is ErrorKind.CHECK_ALREADY_IN_PROGRESS
    assert len(results) == 1
    assert results[0].status is OutcomeStatus.UPDATE_REQUIRED
    assert len(http.calls) == 1
    assert not checker.in_progress


def test_cancel_in_flight_check():
    http = BlockingHttp(make_payload(recommended="1.3.0"))
    store = InMemoryStateStore()
    checker = make_checker(http, store)
    results = []

    assert checker.cancel() is False

    thread = run_in_thread(checker, results)
    assert http.entered.wait(timeout=5)
    assert checker.cancel() is True
    http.release.set()
    thread.join(timeout=5)

    assert results[0].error_kind is ErrorKind.CANCELLED
    assert store.last_check is None

    # The next cycle is not affected by the earlier cancellation
    http.release.set()
    assert checker.check().status is OutcomeStatus.UPDATE_REQUIRED


def test_cancel_after_fetch_persists_nothing():
    http = FakeHttp(make_payload(recommended="1.3.0"))
    store = InMemoryStateStore()
    checker = make_checker(http, store)
    accepted = []

    def on_event(event):
        if event.type is EventType.CHECK_COMPLETED_WITH_DATA:
            accepted.append(checker.cancel())

    checker.listener = on_event
    outcome = checker.check()

    assert accepted == [True]
    assert outcome.error_kind is ErrorKind.CANCELLED
    assert checker.state is CheckState.FAILED
    assert store.last_check is None


def test_cancel_right_after_cycle_start_is_honoured():
    http = FakeHttp(make_payload(recommended="1.3.0"))
    store = InMemoryStateStore()

    class CancellingClock(FakeClock):
        calls = 0

        def now(self):
            self.calls += 1
            if self.calls == 1:
                checker.cancel()
            return super().now()

    checker = make_checker(http, store, clock=CancellingClock())

    outcome = checker.check()

    assert outcome.error_kind is ErrorKind.CANCELLED
    assert http.calls == []
    assert store.last_check is None
    assert checker.check().status is OutcomeStatus.UPDATE_REQUIRED


class FailingStore(InMemoryStateStore):
    def __init__(self, fail_reads=False, fail_writes=False):
        super().__init__()
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes

    def get_last_check_timestamp(self):
        if self.fail_reads:
            raise OSError("state file unreadable")
        return super().get_last_check_timestamp()

    def set_last_check_timestamp(self, value):
        if self.fail_writes:
            raise PermissionError("read-only state file")
        super().set_last_check_timestamp(value)


def test_store_write_error_becomes_storage_failure():
    http = FakeHttp(make_payload(recommended="1.3.0"))
    events = []
    checker = make_checker(http, FailingStore(fail_writes=True), events=events)

    outcome = checker.check()

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.error_kind is ErrorKind.STORAGE_FAILURE
    assert isinstance(outcome.error.__cause__, PermissionError)
    assert checker.state is CheckState.FAILED
    assert events[-1].type is EventType.CHECK_FAILED


def test_store_read_error_fails_before_network():
    http = FakeHttp(make_payload(recommended="1.3.0"))

    outcome = make_checker(http, FailingStore(fail_reads=True)).check()

    assert outcome.error_kind is ErrorKind.STORAGE_FAILURE
    assert http.calls == []
