"""Domain errors raised by the engine."""


class InvalidRangeError(ValueError):
    """Raised when an explicit interval ends before it starts."""

    def __init__(self, start, end):
        self.start = start
        self.end = end
        super().__init__(f"Invalid range: end {end} is before start {start}")


class MissingTemporalDataError(LookupError):
    """
    Raised when an entity lacks the dates a classification needs.

    Soft error: engine loops catch it and drop the record instead of
    aborting the whole pass.
    """

    def __init__(self, entity_id: str, field: str):
        self.entity_id = entity_id
        self.field = field
        super().__init__(f"{entity_id} has no usable {field}")


class DoneLockedError(Exception):
    """Raised when a task is marked Done while subtasks are still open."""

    pass
