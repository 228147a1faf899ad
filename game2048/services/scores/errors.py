from enum import Enum


class RejectionKind(str, Enum):
    INVALID_SESSION_TOKEN = 'INVALID_SESSION_TOKEN'
    TIME_TOO_SHORT = 'TIME_TOO_SHORT'
    MOVE_COUNT_TOO_LOW = 'MOVE_COUNT_TOO_LOW'
    INVALID_BOARD_STATE = 'INVALID_BOARD_STATE'
    NO_WIN_TILE = 'NO_WIN_TILE'
    VALUE_OUT_OF_RANGE = 'VALUE_OUT_OF_RANGE'
    DUPLICATE_SUBMISSION = 'DUPLICATE_SUBMISSION'
    PERSISTENCE_FAILURE = 'PERSISTENCE_FAILURE'
    UNAUTHORIZED_ORIGIN = 'UNAUTHORIZED_ORIGIN'


MESSAGES = {
    RejectionKind.INVALID_SESSION_TOKEN: 'Session token is malformed',
    RejectionKind.TIME_TOO_SHORT: 'Completion time is implausibly short',
    RejectionKind.MOVE_COUNT_TOO_LOW: 'Move count is too low to reach the win tile',
    RejectionKind.INVALID_BOARD_STATE: 'Final board must be a 4x4 grid of tiles',
    RejectionKind.NO_WIN_TILE: 'Final board does not contain the win tile',
    RejectionKind.VALUE_OUT_OF_RANGE: 'Completion time or move count is too large',
    RejectionKind.DUPLICATE_SUBMISSION: 'This game has already been submitted',
    RejectionKind.PERSISTENCE_FAILURE: 'An error occurred',
    RejectionKind.UNAUTHORIZED_ORIGIN: 'Request origin not allowed',
}


class ScoreError(Exception):
    """Base error carrying a rejection kind and an HTTP status."""
    status = 400

    def __init__(self, kind: RejectionKind, message: str = None):
        self.kind = kind
        self.message = message or MESSAGES.get(kind, 'Request failed')
        super().__init__(f"{kind.value}: {self.message}")

    def to_dict(self):
        return {'ok': False, 'error': self.kind.value, 'message': self.message}


class SubmissionRejected(ScoreError):
    """Client-recoverable rejection; nothing was written."""

    def __init__(self, kind: RejectionKind, message: str = None):
        super().__init__(kind, message)
        if kind == RejectionKind.DUPLICATE_SUBMISSION:
            self.status = 409


class PersistenceFailure(ScoreError):
    status = 500

    def __init__(self, message: str = None):
        super().__init__(RejectionKind.PERSISTENCE_FAILURE, message)
