"""Per-operation retry state machine.

This module provides:
- OperationState: Lifecycle states of one processing attempt
- OperationAttempt: Drives an operation through
  PENDING -> IN_FLIGHT -> {SUCCEEDED | REQUEUED | DROPPED}

The sync engine creates one OperationAttempt per queued operation in a
drain pass. Retry exhaustion is decided here, so it can be tested
without a queue or a store.
"""

from __future__ import annotations

import logging
from enum import Enum, auto

from fastlandz.client.sync.types import QueuedOperation
from fastlandz.core.config import MAX_RETRIES

logger = logging.getLogger(__name__)


class OperationState(Enum):
    """State of an operation within a drain pass."""

    PENDING = auto()
    IN_FLIGHT = auto()
    SUCCEEDED = auto()
    REQUEUED = auto()
    DROPPED = auto()


TERMINAL_STATES = frozenset(
    {OperationState.SUCCEEDED, OperationState.REQUEUED, OperationState.DROPPED}
)


class OperationAttempt:
    """One processing attempt of a queued operation.

    Usage:
        attempt = OperationAttempt(operation, max_retries=3)
        attempt.start()
        if processor.process(operation).success:
            attempt.succeed()
        else:
            attempt.fail(error)
        if attempt.state is OperationState.REQUEUED:
            survivors.append(attempt.operation)
    """

    def __init__(self, operation: QueuedOperation, max_retries: int = MAX_RETRIES) -> None:
        """Initialize the attempt.

        Args:
            operation: Operation as read from the queue.
            max_retries: Failed attempts after which the operation is dropped.
        """
        self._operation = operation
        self._max_retries = max_retries
        self._state = OperationState.PENDING
        self.error: str | None = None

    @property
    def state(self) -> OperationState:
        return self._state

    @property
    def operation(self) -> QueuedOperation:
        """The operation, with retry_count updated after a failure."""
        return self._operation

    @property
    def is_done(self) -> bool:
        return self._state in TERMINAL_STATES

    def _transition(self, expected: OperationState, new: OperationState) -> None:
        if self._state is not expected:
            raise RuntimeError(
                f"Invalid transition {self._state.name} -> {new.name} for {self._operation!r}"
            )
        self._state = new

    def start(self) -> None:
        """Mark the operation as being processed."""
        self._transition(OperationState.PENDING, OperationState.IN_FLIGHT)

    def succeed(self) -> None:
        """Mark the operation as applied to the remote store."""
        self._transition(OperationState.IN_FLIGHT, OperationState.SUCCEEDED)

    def fail(self, error: str | None = None) -> OperationState:
        """Record a failed attempt and decide between requeue and drop.

        Returns:
            REQUEUED while retry_count < max_retries, DROPPED otherwise.
        """
        if self._state is not OperationState.IN_FLIGHT:
            raise RuntimeError(f"Cannot fail {self._operation!r} in state {self._state.name}")
        self.error = error
        self._operation = self._operation.with_retry()
        if self._operation.retry_count < self._max_retries:
            self._state = OperationState.REQUEUED
        else:
            self._state = OperationState.DROPPED
            logger.error(
                "Dropping %r after %d failed attempts: %s",
                self._operation,
                self._operation.retry_count,
                error,
            )
        return self._state
