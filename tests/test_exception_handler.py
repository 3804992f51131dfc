import redis

from src.exception_handler import ErrorHandler


def test_sync_errors_are_counted_but_not_listed_as_failed_records():
    handler = ErrorHandler()

    handler.collect_sync_error(RuntimeError("boom"), "user-1", "watch")
    summary = handler.get_error_summary()

    assert summary["total_errors"] == 1
    assert summary["error_types"] == {"RuntimeError": 1}
    assert summary["failed_records"] == []


def test_report_truncates_after_five_records():
    handler = ErrorHandler()
    for index in range(7):
        handler.collect_record_error(ValueError("bad"), index, "validate", title=f"t{index}")

    report = handler.format_error_report()

    assert "#0 t0: bad" in report
    assert "... and 2 more" in report

    handler.clear_errors()
    assert handler.format_error_report() == ""


def test_only_transport_errors_are_retryable():
    handler = ErrorHandler()

    assert handler.should_retry(redis.ConnectionError())
    assert handler.should_retry(redis.TimeoutError())
    assert not handler.should_retry(ValueError())


def test_collected_errors_are_capped_to_the_newest():
    handler = ErrorHandler(max_errors=3)

    for attempt in range(5):
        handler.collect_sync_error(redis.ConnectionError(f"reset {attempt}"), "user-1", "watch")

    assert [error["message"] for error in handler.errors] == ["reset 2", "reset 3", "reset 4"]
    assert handler.get_error_summary()["total_errors"] == 3

    handler.clear_errors()
    assert handler.errors == []
