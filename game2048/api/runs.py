from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from game2048.engine.board import DIRECTIONS
from game2048.engine.registry import RunRegistry
from game2048.engine.run import Run
from game2048.services.scores.errors import ScoreError
from game2048.api.scores import (
    check_origin,
    handle_db_error,
    handle_score_error,
    submit_candidate,
)


runs = Blueprint('runs', __name__)
runs.before_request(check_origin)
runs.register_error_handler(ScoreError, handle_score_error)
runs.register_error_handler(SQLAlchemyError, handle_db_error)


def run_registry() -> RunRegistry:
    # In-progress runs live only in this process and are never persisted
    return current_app.extensions['runs']


def _not_found(session_token: str):
    return jsonify({'ok': False, 'error': 'RUN_NOT_FOUND', 'message': f'No run {session_token}'}), 404


@runs.route('/runs', methods=['POST'])
def create_run():
    run = Run(win_tile=int(current_app.config.get('WIN_TILE', 2048)))
    run_registry().add(run)
    current_app.logger.info(f"[run-new] token={run.session_token}")
    return jsonify(run.to_dict()), 201


@runs.route('/runs/<string:session_token>', methods=['GET'])
def get_run(session_token):
    entry = run_registry().get(session_token)
    if entry is None:
        return _not_found(session_token)
    with entry.lock:
        return jsonify(entry.run.to_dict())


@runs.route('/runs/<string:session_token>/move', methods=['POST'])
def move_run(session_token):
    data = request.get_json(silent=True) or {}
    direction = str(data.get('direction', '')).lower()

    entry = run_registry().get(session_token)
    if entry is None:
        return _not_found(session_token)
    if direction not in DIRECTIONS:
        return jsonify({'ok': False, 'error': 'INVALID_DIRECTION', 'message': f'Unknown direction: {direction}'}), 400

    run = entry.run
    with entry.lock:
        was_won = run.has_won
        accepted = run.move(direction)
        if run.has_won and not was_won:
            current_app.logger.info(f"[run-won] token={run.session_token} moves={run.move_count} elapsed={run.elapsed_ms}ms")
        elif accepted and run.has_lost:
            current_app.logger.info(f"[run-lost] token={run.session_token} moves={run.move_count}")
        if run.has_lost and not run.has_won:
            # nothing left to do with a lost run
            run_registry().discard(run.session_token)
        return jsonify({'accepted': accepted, 'run': run.to_dict()})


@runs.route('/runs/<string:session_token>/submit', methods=['POST'])
def submit_run(session_token):
    entry = run_registry().get(session_token)
    if entry is None:
        return _not_found(session_token)

    run = entry.run
    with entry.lock:
        if run.submitted:
            return _not_found(session_token)
        if not run.has_won:
            return jsonify({'ok': False, 'error': 'RUN_NOT_WON', 'message': 'Only won runs can be submitted'}), 400

        response = submit_candidate(run.candidate())
        run.mark_submitted()
        run_registry().discard(run.session_token)
        return response
