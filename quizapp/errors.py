class NotFoundError(ValueError):
    """A user, quiz or attempt id did not resolve."""


class UserNotFoundError(NotFoundError):
    pass


class QuizNotFoundError(NotFoundError):
    pass


class AttemptNotFoundError(NotFoundError):
    pass


class AttemptConflictError(ValueError):
    """The attempt is already completed, or another writer completed it first."""
