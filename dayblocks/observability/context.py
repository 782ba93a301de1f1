"""
Operation context: which command a log line was written under.

Each CLI command (or embedding call) runs inside one OperationContext. The
active Operation lives in a ContextVar, so formatters can stamp every line
with its operation id and command name without threading either through
the schedule code.
"""

import contextvars
import time
import uuid
from dataclasses import dataclass, field


def generate_operation_id() -> str:
    return f"op-{uuid.uuid4().hex[:16]}"


@dataclass(frozen=True)
class Operation:
    operation_id: str
    name: str | None = None
    started: float = field(default_factory=time.monotonic)

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started) * 1000)


_current_operation: contextvars.ContextVar[Operation | None] = contextvars.ContextVar(
    "dayblocks_operation", default=None
)


def current_operation() -> Operation | None:
    return _current_operation.get()


def get_operation_id() -> str | None:
    """Id of the active operation, or None outside any OperationContext."""
    operation = _current_operation.get()
    return operation.operation_id if operation else None


class OperationContext:
    """
    Scope one operation; nested contexts restore the outer one on exit.

    Usage:
        with OperationContext(name="complete") as ctx:
            manager.mark_completed(block_id)
        logger.debug("took %dms", ctx.elapsed_ms)
    """

    def __init__(self, operation_id: str | None = None, name: str | None = None):
        self.operation = Operation(operation_id or generate_operation_id(), name)
        self._token: contextvars.Token | None = None

    @property
    def operation_id(self) -> str:
        return self.operation.operation_id

    @property
    def elapsed_ms(self) -> int:
        return self.operation.elapsed_ms

    def __enter__(self) -> "OperationContext":
        self._token = _current_operation.set(self.operation)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _current_operation.reset(self._token)
            self._token = None
