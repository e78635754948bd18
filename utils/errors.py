"""Error taxonomy shared by the repository, the policy and the blueprints."""


class SISError(Exception):
    """Base class for every error raised by the SIS core."""


class NotFoundError(SISError):
    """A referenced course, student, teacher or user does not exist."""


class UnauthorizedError(SISError):
    """The principal lacks permission for the requested action."""


class ValidationFailedError(SISError):
    """Input rejected before or while touching the store.

    ``messages`` holds user-facing strings the routes flash back.
    """

    def __init__(self, messages):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


class PeriodUnavailableError(ValidationFailedError):
    def __init__(self, message="That teacher is not available that period"):
        super().__init__(message)


class UsernameTakenError(ValidationFailedError):
    def __init__(self, message="That username is already taken"):
        super().__init__(message)


class DataAccessError(SISError):
    """Opaque connection or statement failure.

    ``code`` is the driver error number when the driver reported one.
    """

    def __init__(self, message, code=None):
        super().__init__(message)
        self.code = code
