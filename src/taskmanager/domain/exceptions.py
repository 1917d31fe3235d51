class TaskNotFoundError(Exception):
    """Raised when a task identifier does not exist in the task store."""

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task with id '{task_id}' was not found.")
        self.task_id = task_id


class PublishError(Exception):
    """Raised when a status change cannot be handed to the stream publisher."""


class DispatchError(Exception):
    """Transient notification failure; the batch is retried."""


class NonRetryableError(Exception):
    """Failure that retrying cannot fix; the batch is skipped immediately."""


class InvalidStateError(NonRetryableError):
    """Raised when local state makes processing an event impossible."""


class EnvelopeDecodeError(NonRetryableError):
    """Raised when a stream entry is not a valid status change event."""

    def __init__(self, message: str, fields: object = None) -> None:
        super().__init__(message)
        self.fields = fields
