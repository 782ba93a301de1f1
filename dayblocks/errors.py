"""
Schedule errors.

The entity layer reports problems as values (validation lists, conflict
lists, silent no-op transitions). These exceptions are raised only by the
strict entry points and by the BlockManager when it refuses to persist.
"""


class ScheduleError(Exception):
    """Base class for every error dayblocks raises on purpose."""

    pass


class InvalidTransition(ScheduleError):
    """Raised when a strict status change is not in the transition table."""

    def __init__(self, from_status, to_status, reason: str):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        super().__init__(reason)


class ValidationFailure(ScheduleError):
    """Raised when a block with validation errors is about to be saved."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Time block validation failed: " + ", ".join(self.errors))


class ConflictDetected(ScheduleError):
    """Raised when a block about to be saved overlaps existing blocks."""

    def __init__(self, conflicts: list):
        self.conflicts = list(conflicts)
        titles = ", ".join(block.title for block in self.conflicts)
        super().__init__(f"Time block conflicts with existing blocks: {titles}")


class BlockNotFound(ScheduleError):
    """Raised when an id lookup misses on an operation that needs the block."""

    def __init__(self, block_id: str):
        self.block_id = block_id
        super().__init__(f"Time block not found: {block_id}")


class DuplicateBlock(ScheduleError):
    """Raised when add_block is given an id that is already stored."""

    def __init__(self, block_id: str):
        self.block_id = block_id
        super().__init__(f"Time block already exists: {block_id} (use update_block)")
