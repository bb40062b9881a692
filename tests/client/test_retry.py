"""Tests for the per-operation retry state machine."""

import pytest

from fastlandz.client.sync import OperationAttempt, OperationState, OperationType, QueuedOperation


def make_operation(retry_count: int = 0) -> QueuedOperation:
    """Create a queued progress update."""
    op = QueuedOperation.create(OperationType.PROGRESS_UPDATE, {"user_id": "u1", "updates": {}})
    op.retry_count = retry_count
    return op


class TestOperationAttempt:
    """Tests for OperationAttempt transitions."""

    def test_success(self) -> None:
        """PENDING -> IN_FLIGHT -> SUCCEEDED."""
        attempt = OperationAttempt(make_operation())
        assert attempt.state is OperationState.PENDING

        attempt.start()
        assert attempt.state is OperationState.IN_FLIGHT
        assert attempt.is_done is False

        attempt.succeed()
        assert attempt.state is OperationState.SUCCEEDED
        assert attempt.is_done is True

    def test_failure_requeues(self) -> None:
        """A failure under the budget requeues with one more retry."""
        attempt = OperationAttempt(make_operation(), max_retries=3)
        attempt.start()

        assert attempt.fail("server: down") is OperationState.REQUEUED
        assert attempt.operation.retry_count == 1
        assert attempt.error == "server: down"

    def test_last_failure_drops(self) -> None:
        """The failure that reaches the budget drops the operation."""
        attempt = OperationAttempt(make_operation(retry_count=2), max_retries=3)
        attempt.start()

        assert attempt.fail("server: down") is OperationState.DROPPED
        assert attempt.operation.retry_count == 3

    def test_single_attempt_budget(self) -> None:
        """With max_retries=1 the first failure drops."""
        attempt = OperationAttempt(make_operation(), max_retries=1)
        attempt.start()

        assert attempt.fail() is OperationState.DROPPED

    def test_cannot_succeed_before_start(self) -> None:
        """Transitions must follow the state machine."""
        attempt = OperationAttempt(make_operation())

        with pytest.raises(RuntimeError, match="Invalid transition"):
            attempt.succeed()

    def test_cannot_fail_twice(self) -> None:
        """A finished attempt cannot fail again."""
        attempt = OperationAttempt(make_operation())
        attempt.start()
        attempt.fail()

        with pytest.raises(RuntimeError):
            attempt.fail()

    def test_cannot_start_twice(self) -> None:
        """An attempt is started once."""
        attempt = OperationAttempt(make_operation())
        attempt.start()

        with pytest.raises(RuntimeError):
            attempt.start()
