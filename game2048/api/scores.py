from urllib.parse import urlparse

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from game2048 import db
from game2048.services.scores import ranking
from game2048.services.scores.errors import (
    PersistenceFailure,
    RejectionKind,
    ScoreError,
)
from game2048.services.scores.submission import submit_score
from game2048.services.scores.validation import Candidate
from game2048.socketio_events import notify_leaderboard_changed


scores = Blueprint('scores', __name__)


def _error(error: str, message: str, status: int = 400):
    return jsonify({'ok': False, 'error': error, 'message': message}), status


def check_origin():
    """Reject cross-site calls whose Origin/Referer host is not allowed."""
    origin = request.headers.get('Origin') or request.headers.get('Referer') or ''
    if not origin:
        return None
    host = urlparse(origin).hostname
    if host not in current_app.config.get('ALLOWED_HOSTS', []):
        current_app.logger.warning(f"[origin-rejected] origin={origin!r} path={request.path}")
        return _error(RejectionKind.UNAUTHORIZED_ORIGIN.value, 'Request origin not allowed', 403)
    return None


scores.before_request(check_origin)


@scores.errorhandler(ScoreError)
def handle_score_error(exc: ScoreError):
    return jsonify(exc.to_dict()), exc.status


@scores.errorhandler(SQLAlchemyError)
def handle_db_error(exc: SQLAlchemyError):
    db.session.rollback()
    current_app.logger.exception(f"[db-error] path={request.path}")
    failure = PersistenceFailure()
    return jsonify(failure.to_dict()), failure.status


def current_user_id():
    if current_user.is_authenticated:
        return current_user.id
    return None


def anonymous_context() -> str:
    return f"{request.remote_addr or 'unknown'}{request.user_agent.string or ''}"


def as_int(value) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        # unparseable or infinite numbers count as 0, like a PHP (int) cast
        return 0


def submit_candidate(candidate: Candidate):
    """Run the submission pipeline for the current caller and build the response."""
    cfg = current_app.config
    user_id = current_user_id()
    result = submit_score(
        candidate,
        user_id=user_id,
        anonymous_context=anonymous_context(),
        min_time_ms=int(cfg.get('MIN_COMPLETION_TIME_MS', 5000)),
        min_moves=int(cfg.get('MIN_MOVE_COUNT', 50)),
        win_tile=int(cfg.get('WIN_TILE', 2048)),
    )
    if user_id is not None:
        notify_leaderboard_changed(result)
    payload = {'ok': True}
    payload.update(result.to_dict())
    return jsonify(payload)


@scores.route('/game', methods=['POST'])
def post_action():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data.get('action'):
        return _error('INVALID_PAYLOAD', 'Request body must be a JSON object with an action')

    action = data['action']
    if action == 'submit':
        token = data.get('sessionToken')
        candidate = Candidate(
            session_token=token if isinstance(token, str) else '',
            completion_time_ms=as_int(data.get('completionTimeMs')),
            move_count=as_int(data.get('moveCount')),
            final_board=data.get('finalBoard'),
        )
        return submit_candidate(candidate)

    return _error('UNKNOWN_ACTION', f'Unknown action: {action}')


@scores.route('/game', methods=['GET'])
def get_action():
    action = request.args.get('action', '')
    cfg = current_app.config

    if action == 'leaderboard':
        limit = ranking.clamp_limit(
            request.args.get('limit'),
            int(cfg.get('LEADERBOARD_DEFAULT_LIMIT', ranking.LEADERBOARD_DEFAULT_LIMIT)),
            int(cfg.get('LEADERBOARD_MAX_LIMIT', ranking.LEADERBOARD_MAX_LIMIT)),
        )
        return jsonify({'ok': True, 'scores': ranking.leaderboard(limit)})

    if action == 'history':
        limit = ranking.clamp_limit(
            request.args.get('limit'),
            int(cfg.get('HISTORY_DEFAULT_LIMIT', ranking.HISTORY_DEFAULT_LIMIT)),
            int(cfg.get('HISTORY_MAX_LIMIT', ranking.HISTORY_MAX_LIMIT)),
        )
        return jsonify({'ok': True, 'scores': ranking.history(current_user_id(), limit)})

    return _error('UNKNOWN_ACTION', f'Unknown action: {action}')
