class TaskError(Exception):
    """Base class for errors raised by the task lifecycle engine"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TaskValidationError(TaskError):
    """The request violates an input contract (empty title, assignee bounds...)"""

    status_code = 400


class TaskPermissionError(TaskError):
    """The requester is not allowed to mutate the task"""

    status_code = 403


class NotFoundError(TaskError):
    """A referenced task, project or user does not exist"""

    status_code = 404


class CollaboratorFailure(TaskError):
    """
    A side-effect collaborator (notifications, attachments, file storage) failed.

    Never surfaces to callers of the engine: it is logged and suppressed.
    """
