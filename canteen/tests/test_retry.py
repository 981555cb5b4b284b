import pytest

from canteen.core.exceptions import ConcurrencyError, ConflictRetryExhaustedError, ItemNotFoundError
from canteen.core.retry import run_with_retry


class FlakyOperation:
    def __init__(self, conflicts, error=None):
        self.conflicts = conflicts
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.calls <= self.conflicts:
            raise ConcurrencyError()
        return "done"


def test_returns_after_conflicts():
    op = FlakyOperation(conflicts=2)
    sleeps = []

    assert run_with_retry(op, max_attempts=3, backoff_ms=10, sleep=sleeps.append) == "done"
    assert op.calls == 3
    assert len(sleeps) == 2
    # 退避随尝试次数增长
    assert 0.005 <= sleeps[0] <= 0.015
    assert 0.010 <= sleeps[1] <= 0.030


def test_exhausted():
    op = FlakyOperation(conflicts=10)

    with pytest.raises(ConflictRetryExhaustedError) as exc_info:
        run_with_retry(op, max_attempts=4, sleep=lambda s: None)

    assert op.calls == 4
    assert exc_info.value.error_code == "CONFLICT_RETRY_EXHAUSTED"
    assert isinstance(exc_info.value.__cause__, ConcurrencyError)


def test_other_errors_are_not_retried():
    op = FlakyOperation(conflicts=0, error=ItemNotFoundError("ghost"))

    with pytest.raises(ItemNotFoundError):
        run_with_retry(op, max_attempts=5)

    assert op.calls == 1


def test_no_sleep_without_backoff():
    op = FlakyOperation(conflicts=1)
    sleeps = []
    run_with_retry(op, max_attempts=2, backoff_ms=0, sleep=sleeps.append)
    assert sleeps == []


def test_invalid_attempts():
    with pytest.raises(ValueError):
        run_with_retry(lambda: None, max_attempts=0)
