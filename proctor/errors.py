"""
Error Types
Exceptions raised by the catalog, stores and session engine
"""


class ProctorError(Exception):
    """Base class for all proctoring errors"""

    status_code = 500

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__

    def to_dict(self):
        return {'error': self.__class__.__name__, 'message': self.message}


class ValidationError(ProctorError):
    """Malformed template, activation or request input"""

    status_code = 400


class PersistenceError(ProctorError):
    """A storage operation failed; safe to retry with the same identity"""

    status_code = 503


class RecordNotFound(ProctorError):
    status_code = 404


class SessionNotFound(RecordNotFound):
    """No live exam session with that id"""


class InvalidTransition(ProctorError):
    """Operation not allowed in the session's current state"""

    status_code = 409


class AlreadyAttemptedError(ProctorError):
    """
    A result already exists for the (student, quiz) pair.
    Raised by the result store when the unique constraint fires.
    """

    status_code = 409

    def __init__(self, prior=None, message=None):
        self.prior = prior
        if message is None and prior is not None:
            message = (
                "You have already submitted this test. "
                f"Score: {prior.score} / {prior.total_questions}"
            )
        super().__init__(message or "You have already submitted this test.")

    def to_dict(self):
        payload = super().to_dict()
        if self.prior is not None:
            payload['score'] = self.prior.score
            payload['total_questions'] = self.prior.total_questions
        return payload
