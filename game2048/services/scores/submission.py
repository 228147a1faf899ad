import hashlib
import json
from typing import Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from game2048 import db
from game2048.engine.board import WIN_TILE
from game2048.models import Score
from .errors import PersistenceFailure, RejectionKind, SubmissionRejected
from .ranking import ANONYMOUS_RESULT, RankResult, rank_of
from .validation import (
    MIN_COMPLETION_TIME_MS,
    MIN_MOVE_COUNT,
    Candidate,
    validate,
)


def identity_fingerprint(user_id: Optional[int], anonymous_context: str = '') -> str:
    """One-way provenance hash; never displayed and never reversed."""
    if user_id is not None:
        source = f"member_{user_id}"
    else:
        source = f"guest_{anonymous_context or 'unknown'}"
    return hashlib.sha256(source.encode('utf-8')).hexdigest()


def _token_exists(session_token: str) -> bool:
    return db.session.query(Score.id).filter_by(session_token=session_token).first() is not None


def submit_score(candidate: Candidate, user_id: Optional[int] = None,
                 anonymous_context: str = '',
                 min_time_ms: int = MIN_COMPLETION_TIME_MS,
                 min_moves: int = MIN_MOVE_COUNT,
                 win_tile: int = WIN_TILE) -> RankResult:
    """Validate, persist and rank one finished run.

    Duplicate detection relies on the unique constraint on session_token:
    the insert itself is the check, so two concurrent submissions with the
    same token produce one row and one DUPLICATE_SUBMISSION.
    """
    kind = validate(candidate, min_time_ms=min_time_ms, min_moves=min_moves, win_tile=win_tile)
    if kind is not None:
        current_app.logger.warning(f"[submit-rejected] token={candidate.session_token!r} reason={kind.value}")
        raise SubmissionRejected(kind)

    score = Score(
        user_id=user_id,
        identity_hash=identity_fingerprint(user_id, anonymous_context),
        session_token=candidate.session_token,
        completion_time_ms=candidate.completion_time_ms,
        move_count=candidate.move_count,
        final_board=json.dumps(candidate.final_board),
    )
    db.session.add(score)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        if _token_exists(candidate.session_token):
            current_app.logger.info(f"[submit-duplicate] token={candidate.session_token}")
            raise SubmissionRejected(RejectionKind.DUPLICATE_SUBMISSION) from exc
        current_app.logger.exception(f"[submit-failed] token={candidate.session_token} integrity error")
        raise PersistenceFailure() from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception(f"[submit-failed] token={candidate.session_token}")
        raise PersistenceFailure() from exc

    if user_id is None:
        current_app.logger.info(f"[submit] score={score.id} anonymous time={score.completion_time_ms}ms moves={score.move_count}")
        return ANONYMOUS_RESULT

    result = rank_of(score)
    current_app.logger.info(
        f"[submit] score={score.id} user={user_id} time={score.completion_time_ms}ms "
        f"moves={score.move_count} rank={result.rank}/{result.total_entries} pb={result.is_personal_best}"
    )
    return result
