"""Error taxonomy shared by services and mapped to HTTP responses in app.main."""


class AttendanceAdminError(Exception):
    """Base class for errors raised by the service layer."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(AttendanceAdminError):
    """Bad or missing input. Never retried."""

    status_code = 400


class NotFoundError(AttendanceAdminError):
    status_code = 404


class ConflictError(AttendanceAdminError):
    status_code = 409


class NoUndoAvailable(AttendanceAdminError):
    """No backup for the event, wrong kind, wrong token, or already consumed."""

    status_code = 409

    def __init__(self, detail: str = "No undo available for this event or token has expired"):
        super().__init__(detail)


class StoreFailure(AttendanceAdminError):
    """The database reported an error on a read the operation cannot proceed without."""

    status_code = 500
