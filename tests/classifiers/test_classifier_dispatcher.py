"""Tests for the classifier dispatcher."""

from unittest.mock import MagicMock

import pytest

from albumcast.cache.invalidator import CacheInvalidator
from albumcast.classifiers.dispatcher import ClassifierDispatcher, ClassifierFunctions
from albumcast.errors import RetryableInfraError, RetryExhaustedError
from albumcast.jobs.retry import RetryPolicy
from albumcast.models.ingest import IngestRecord
from albumcast.models.report import ReportType
from albumcast.recognition.reconciler import MatchReconciler
from conftest import FakeInvoker, envelope

FUNCTIONS = ClassifierFunctions()

RECORDS = [
    IngestRecord(storage_key="images/42/a.jpg", album_id=42, user_id=1, file_name="a.jpg"),
    IngestRecord(storage_key="images/42/b.jpg", album_id=42, user_id=1, file_name="b.jpg"),
]


@pytest.fixture
def schedulers():
    return {report_type: MagicMock() for report_type in ReportType}


@pytest.fixture
def reconciler(store):
    return MatchReconciler(store)


@pytest.fixture
def make_dispatcher(reconciler, schedulers, store, sleeps):
    dispatchers = []

    def _make(invoker):
        dispatcher = ClassifierDispatcher(
            invoker,
            reconciler,
            schedulers,
            bucket="test-bucket",
            recognition_policy=RetryPolicy(max_attempts=2, base_delay_s=2.0),
            report_delay_s=60.0,
            invalidator=CacheInvalidator(store),
            sleep=sleeps.append,
        )
        dispatchers.append(dispatcher)
        return dispatcher

    yield _make
    for dispatcher in dispatchers:
        dispatcher.shutdown(wait=True)


def test_dispatch_invokes_all_classifiers(make_dispatcher, reconciler, schedulers):
    invoker = FakeInvoker(
        {
            FUNCTIONS.recognition: envelope(
                [
                    {"album_id": 42, "user_id": 10, "distance": 0.3},
                    {"album_id": 42, "user_id": 11, "distance": 0.5},
                ]
            )
        }
    )
    dispatcher = make_dispatcher(invoker)

    dispatcher.dispatch(RECORDS)
    assert dispatcher.wait_background(timeout=5)

    event = invoker.calls_to(FUNCTIONS.recognition)[0]
    assert [r["s3"]["object"]["key"] for r in event["Records"]] == ["images/42/a.jpg", "images/42/b.jpg"]
    assert event["Records"][0]["s3"]["bucket"]["name"] == "test-bucket"
    assert len(invoker.calls_to(FUNCTIONS.blur)) == 1
    assert len(invoker.calls_to(FUNCTIONS.duplicate)) == 1
    assert reconciler.recognized_user_ids(42) == {10, 11}
    schedulers[ReportType.FACE].schedule.assert_called_once_with(42, 60.0)


def test_only_last_album_gets_face_report(make_dispatcher, reconciler, schedulers):
    invoker = FakeInvoker(
        {
            FUNCTIONS.recognition: envelope(
                [
                    {"album_id": 42, "user_id": 10, "distance": 0.3},
                    {"key": "images/43/c.jpg", "user_id": 11, "distance": 0.5},
                ]
            )
        }
    )

    make_dispatcher(invoker).run_recognition({"Records": []})

    assert reconciler.get(42, 10) is not None
    assert reconciler.get(43, 11) is not None
    schedulers[ReportType.FACE].schedule.assert_called_once_with(43, 60.0)


def test_recognition_retried_once(make_dispatcher, schedulers, sleeps):
    invoker = FakeInvoker(
        {
            FUNCTIONS.recognition: [
                RetryableInfraError("Rate exceeded"),
                envelope([{"album_id": 42, "user_id": 10, "distance": 0.3}]),
            ]
        }
    )

    make_dispatcher(invoker).run_recognition({"Records": []})

    assert len(invoker.calls_to(FUNCTIONS.recognition)) == 2
    assert sleeps == [2.0]
    schedulers[ReportType.FACE].schedule.assert_called_once()


def test_recognition_exhaustion_propagates(make_dispatcher, schedulers):
    invoker = FakeInvoker({FUNCTIONS.recognition: RetryableInfraError("timeout")})
    dispatcher = make_dispatcher(invoker)

    with pytest.raises(RetryExhaustedError):
        dispatcher.dispatch(RECORDS)

    assert len(invoker.calls_to(FUNCTIONS.recognition)) == 2
    schedulers[ReportType.FACE].schedule.assert_not_called()


def test_malformed_recognition_is_noop(make_dispatcher, schedulers):
    invoker = FakeInvoker({FUNCTIONS.recognition: '{"statusCode": 200, "body": "oops'})

    assert make_dispatcher(invoker).run_recognition({"Records": []}) == []
    schedulers[ReportType.FACE].schedule.assert_not_called()


def test_matches_without_ids_are_skipped(make_dispatcher, reconciler, schedulers):
    invoker = FakeInvoker(
        {FUNCTIONS.recognition: envelope([{"key": "uploads/x.jpg", "user_id": 10, "distance": 0.3}])}
    )

    make_dispatcher(invoker).run_recognition({"Records": []})

    schedulers[ReportType.FACE].schedule.assert_not_called()


def test_recognition_invalidates_suggestions(make_dispatcher, store):
    store.set("suggestions_manual:42", "cached")
    invoker = FakeInvoker({FUNCTIONS.recognition: envelope([{"album_id": 42, "user_id": 10, "distance": 0.3}])})

    assert make_dispatcher(invoker).run_recognition({"Records": []}) == [42]
    assert store.get("suggestions_manual:42") is None


def test_background_failures_never_reach_the_job(make_dispatcher, schedulers):
    invoker = FakeInvoker(
        {
            FUNCTIONS.recognition: envelope([{"album_id": 42, "user_id": 10, "distance": 0.3}]),
            FUNCTIONS.blur: RetryableInfraError("blur function crashed"),
            FUNCTIONS.duplicate: "not json",
        }
    )
    dispatcher = make_dispatcher(invoker)

    dispatcher.dispatch(RECORDS)
    assert dispatcher.wait_background(timeout=5)

    schedulers[ReportType.FACE].schedule.assert_called_once_with(42, 60.0)
    schedulers[ReportType.BLUR].schedule.assert_not_called()
    schedulers[ReportType.DUPLICATE].schedule.assert_not_called()


def test_blur_schedules_per_album(make_dispatcher, schedulers, store):
    store.set("blur_images:42:p1", "cached")
    invoker = FakeInvoker({FUNCTIONS.blur: envelope({"42": 2, "43": 1})})

    make_dispatcher(invoker).run_blur({"Records": []})

    calls = [c.args for c in schedulers[ReportType.BLUR].schedule.call_args_list]
    assert sorted(calls) == [(42, 60.0), (43, 60.0)]
    assert store.get("blur_images:42:p1") is None


def test_duplicate_schedules_only_when_found(make_dispatcher, schedulers):
    make_dispatcher(FakeInvoker({FUNCTIONS.duplicate: envelope({"album_id": 42, "total_duplicates": 0})})).run_duplicate({})
    schedulers[ReportType.DUPLICATE].schedule.assert_not_called()

    make_dispatcher(FakeInvoker({FUNCTIONS.duplicate: envelope({"album_id": 42, "total_duplicates": 2})})).run_duplicate({})
    schedulers[ReportType.DUPLICATE].schedule.assert_called_once_with(42, 60.0)
