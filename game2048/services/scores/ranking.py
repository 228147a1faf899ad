"""Leaderboard ordering and read-only queries.

"Better" means a lower completion time, then fewer moves. Exact ties are
displayed in insertion order. Only identity-linked scores are ranked.
"""

from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import and_, or_

from game2048 import db
from game2048.models import Score, User

LEADERBOARD_DEFAULT_LIMIT = 50
LEADERBOARD_MAX_LIMIT = 100
HISTORY_DEFAULT_LIMIT = 10
HISTORY_MAX_LIMIT = 50


@dataclass(frozen=True)
class RankResult:
    rank: Optional[int]
    total_entries: Optional[int]
    is_personal_best: Optional[bool]

    def to_dict(self):
        return {
            'rank': self.rank,
            'totalEntries': self.total_entries or 0,
            'isPersonalBest': self.is_personal_best,
        }


ANONYMOUS_RESULT = RankResult(rank=None, total_entries=None, is_personal_best=None)


def strictly_better_than(completion_time_ms: int, move_count: int):
    """SQL filter for scores that rank strictly ahead of the given pair."""
    return or_(
        Score.completion_time_ms < completion_time_ms,
        and_(Score.completion_time_ms == completion_time_ms, Score.move_count < move_count),
    )


def _ranked():
    return Score.query.filter(Score.user_id.isnot(None))


def rank_of(score: Score) -> RankResult:
    """Rank an already committed, identity-linked score."""
    better = strictly_better_than(score.completion_time_ms, score.move_count)
    ahead = _ranked().filter(better).count()
    total = _ranked().count()
    own_better = Score.query.filter(
        Score.user_id == score.user_id,
        Score.id != score.id,
        better,
    ).count()
    return RankResult(rank=ahead + 1, total_entries=total, is_personal_best=own_better == 0)


def clamp_limit(raw, default: int, upper: int) -> int:
    """Missing means the default; anything unparseable counts as 0 and clamps to 1."""
    if raw is None or raw == '':
        value = default
    else:
        try:
            value = int(raw)
        except (TypeError, ValueError):
            value = 0
    return min(upper, max(1, value))


def format_time(total_ms: int) -> str:
    """Milliseconds as M:SS.cc"""
    minutes = total_ms // 60000
    seconds = (total_ms % 60000) // 1000
    centis = (total_ms % 1000) // 10
    return f"{minutes}:{seconds:02d}.{centis:02d}"


def _format_created(score: Score) -> Optional[str]:
    return score.created_at.strftime('%Y-%m-%d %H:%M:%S') if score.created_at else None


def leaderboard(limit: int = LEADERBOARD_DEFAULT_LIMIT) -> List[dict]:
    rows = (
        db.session.query(Score, User)
        .join(User, Score.user_id == User.id)
        .order_by(Score.completion_time_ms.asc(), Score.move_count.asc(), Score.id.asc())
        .limit(limit)
        .all()
    )
    entries = []
    for position, (score, user) in enumerate(rows, start=1):
        entries.append({
            'rank': position,
            'nickname': user.display_name,
            'time': format_time(score.completion_time_ms),
            'timeMs': score.completion_time_ms,
            'moves': score.move_count,
            'createdAt': _format_created(score),
        })
    return entries


def history(user_id: Optional[int], limit: int = HISTORY_DEFAULT_LIMIT) -> List[dict]:
    if user_id is None:
        return []
    scores = (
        Score.query.filter_by(user_id=user_id)
        .order_by(Score.created_at.desc(), Score.id.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            'time': format_time(s.completion_time_ms),
            'timeMs': s.completion_time_ms,
            'moves': s.move_count,
            'createdAt': _format_created(s),
        }
        for s in scores
    ]
