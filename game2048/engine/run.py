import random
import time
import uuid
from typing import Callable, Optional

from . import board as engine
from game2048.services.scores.validation import Candidate


class Run:
    """One played game: board, move counter and a monotonic timer.

    Elapsed time starts at the first accepted move and is frozen the first
    time the win tile appears. Play may continue after a win (the frozen
    time is kept and the final board at submission is what gets stored),
    until the run is lost or submitted.
    """

    def __init__(self, rng=None, clock: Callable[[], float] = time.monotonic,
                 board: Optional[engine.Board] = None, session_token: Optional[str] = None,
                 win_tile: int = engine.WIN_TILE):
        self.rng = rng or random.Random()
        self.clock = clock
        self.win_tile = win_tile
        self.session_token = session_token or str(uuid.uuid4())
        self.board = engine.copy_board(board) if board is not None else engine.new_board(self.rng)
        self.move_count = 0
        self.started_at: Optional[float] = None
        self.elapsed_ms: Optional[int] = None
        self.has_won = False
        self.has_lost = False
        self.submitted = False
        self.last_spawn: Optional[engine.Spawn] = None

    @property
    def state(self) -> str:
        if self.has_lost:
            return 'lost'
        if self.has_won:
            return 'won'
        if self.started_at is None:
            return 'idle'
        return 'in_progress'

    def move(self, direction: str) -> bool:
        """Apply a move; returns False when it is rejected."""
        if self.has_lost:
            return False
        if self.has_won and self.submitted:
            return False

        moved = engine.apply_move(self.board, direction)
        if not engine.has_changed(self.board, moved):
            self.last_spawn = None
            return False

        if self.started_at is None:
            self.started_at = self.clock()
        self.move_count += 1
        self.board, self.last_spawn = engine.spawn_tile(moved, self.rng)

        won_this_move = False
        if not self.has_won and engine.is_win(self.board, self.win_tile):
            self.has_won = True
            won_this_move = True
            self.elapsed_ms = self._ms_since_start()

        if not won_this_move and engine.is_terminal(self.board):
            self.has_lost = True

        return True

    def _ms_since_start(self) -> int:
        if self.started_at is None:
            return 0
        return int(round((self.clock() - self.started_at) * 1000))

    def current_elapsed_ms(self) -> int:
        """Frozen time once won, live time while playing."""
        if self.elapsed_ms is not None:
            return self.elapsed_ms
        return self._ms_since_start()

    def snapshot(self) -> engine.Board:
        return engine.copy_board(self.board)

    def candidate(self) -> Candidate:
        return Candidate(
            session_token=self.session_token,
            completion_time_ms=self.current_elapsed_ms(),
            move_count=self.move_count,
            final_board=self.snapshot(),
        )

    def mark_submitted(self) -> None:
        self.submitted = True

    def to_dict(self):
        return {
            'session_token': self.session_token,
            'board': self.snapshot(),
            'move_count': self.move_count,
            'elapsed_ms': self.current_elapsed_ms(),
            'state': self.state,
            'has_won': self.has_won,
            'has_lost': self.has_lost,
            'submitted': self.submitted,
            'max_tile': engine.max_tile(self.board),
            'last_spawn': list(self.last_spawn) if self.last_spawn else None,
        }
