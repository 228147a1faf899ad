"""Plausibility checks for a claimed finished run.

These are thresholds and shape checks only; a caller can still forge the
numbers. Checks run in a fixed order and the first failure wins.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional

from game2048.engine import board as engine
from .errors import RejectionKind

MIN_COMPLETION_TIME_MS = 5000
MIN_MOVE_COUNT = 50
# Largest value the Integer columns can hold
MAX_STORED_INT = 2 ** 31 - 1

SESSION_TOKEN_LENGTH = 36
_SESSION_TOKEN_RE = re.compile(
    r'^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$'
)


@dataclass(frozen=True)
class Candidate:
    session_token: str
    completion_time_ms: int
    move_count: int
    final_board: Any


def is_session_token(value) -> bool:
    return (
        isinstance(value, str)
        and len(value) == SESSION_TOKEN_LENGTH
        and _SESSION_TOKEN_RE.match(value) is not None
    )


def validate(candidate: Candidate,
             min_time_ms: int = MIN_COMPLETION_TIME_MS,
             min_moves: int = MIN_MOVE_COUNT,
             win_tile: int = engine.WIN_TILE) -> Optional[RejectionKind]:
    """Return None when the candidate is acceptable, else the rejection kind."""
    if not is_session_token(candidate.session_token):
        return RejectionKind.INVALID_SESSION_TOKEN

    if candidate.completion_time_ms < min_time_ms:
        return RejectionKind.TIME_TOO_SHORT

    if candidate.move_count < min_moves:
        return RejectionKind.MOVE_COUNT_TOO_LOW

    if candidate.completion_time_ms > MAX_STORED_INT or candidate.move_count > MAX_STORED_INT:
        return RejectionKind.VALUE_OUT_OF_RANGE

    if not engine.is_valid_board(candidate.final_board):
        return RejectionKind.INVALID_BOARD_STATE

    if not engine.is_win(candidate.final_board, win_tile):
        return RejectionKind.NO_WIN_TILE

    return None
