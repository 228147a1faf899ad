from conftest import FakeClock, ScriptedRng, stored_scores
from game2048.engine.run import Run


def registry(app):
    return app.extensions['runs']


def won_run(app, elapsed_sec=12.0, moves=60):
    clock = FakeClock(0.0)
    run = Run(rng=ScriptedRng(), clock=clock,
              board=[[1024, 1024, 0, 0], [0] * 4, [0] * 4, [0] * 4])
    run.move('down')
    clock.advance(elapsed_sec)
    run.move('left')
    assert run.has_won
    # pretend the rest of the game happened
    run.move_count = moves
    registry(app).add(run)
    return run


def test_create_and_get_run(flask_app, client):
    res = client.post('/api/runs')
    assert res.status_code == 201
    data = res.get_json()
    assert data['state'] == 'idle'
    assert data['move_count'] == 0
    assert len(data['board']) == 4
    assert data['session_token'] in registry(flask_app)

    res = client.get(f"/api/runs/{data['session_token']}")
    assert res.status_code == 200
    assert res.get_json()['session_token'] == data['session_token']


def test_unknown_run(client):
    res = client.get('/api/runs/nope')
    assert res.status_code == 404
    assert res.get_json()['error'] == 'RUN_NOT_FOUND'
    assert client.post('/api/runs/nope/move', json={'direction': 'up'}).status_code == 404


def test_move_run(flask_app, client):
    run = Run(rng=ScriptedRng(), board=[[2, 0, 0, 0], [0] * 4, [0] * 4, [0] * 4])
    registry(flask_app).add(run)

    res = client.post(f'/api/runs/{run.session_token}/move', json={'direction': 'left'})
    assert res.get_json()['accepted'] is False
    assert res.get_json()['run']['move_count'] == 0

    res = client.post(f'/api/runs/{run.session_token}/move', json={'direction': 'RIGHT'})
    data = res.get_json()
    assert data['accepted'] is True
    assert data['run']['move_count'] == 1
    assert data['run']['state'] == 'in_progress'
    assert data['run']['board'][0][3] == 2


def test_move_rejects_bad_direction(client):
    token = client.post('/api/runs').get_json()['session_token']
    res = client.post(f'/api/runs/{token}/move', json={'direction': 'sideways'})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'INVALID_DIRECTION'


def test_lost_run_is_dropped(flask_app, client):
    # sliding left opens one cell; the 2 spawned there locks the board
    board = [
        [2, 4, 2, 4],
        [4, 2, 4, 2],
        [2, 4, 2, 4],
        [0, 4, 2, 8],
    ]
    run = Run(rng=ScriptedRng(picks=[(3, 3)], rolls=[0.0]), board=board)
    registry(flask_app).add(run)

    res = client.post(f'/api/runs/{run.session_token}/move', json={'direction': 'left'})
    data = res.get_json()
    assert data['accepted'] is True
    assert data['run']['state'] == 'lost'
    assert run.session_token not in registry(flask_app)
    assert client.get(f'/api/runs/{run.session_token}').status_code == 404


def test_active_runs_are_capped(flask_app, client):
    cap = flask_app.config['RUN_MAX_ACTIVE']
    tokens = [client.post('/api/runs').get_json()['session_token'] for _ in range(cap + 3)]
    assert len(registry(flask_app)) == cap
    assert client.get(f'/api/runs/{tokens[0]}').status_code == 404
    assert client.get(f'/api/runs/{tokens[-1]}').status_code == 200


def test_submit_requires_win(flask_app, client):
    token = client.post('/api/runs').get_json()['session_token']
    res = client.post(f'/api/runs/{token}/submit')
    assert res.status_code == 400
    assert res.get_json()['error'] == 'RUN_NOT_WON'
    assert stored_scores(flask_app) == []


def test_submit_won_run(flask_app, login):
    player = login('runner')
    run = won_run(flask_app)
    res = player.post(f'/api/runs/{run.session_token}/submit')
    assert res.status_code == 200
    assert res.get_json() == {'ok': True, 'rank': 1, 'totalEntries': 1, 'isPersonalBest': True}
    assert run.submitted

    [score] = stored_scores(flask_app)
    assert score.session_token == run.session_token
    assert score.completion_time_ms == 12000
    assert score.move_count == 60
    assert score.board == run.board

    # a submitted run is released; its token can only be refused from now on
    assert run.session_token not in registry(flask_app)
    moved = player.post(f'/api/runs/{run.session_token}/move', json={'direction': 'right'})
    assert moved.status_code == 404
    again = player.post(f'/api/runs/{run.session_token}/submit')
    assert again.status_code == 404

    candidate = run.candidate()
    resent = player.post('/api/game', json={
        'action': 'submit',
        'sessionToken': candidate.session_token,
        'completionTimeMs': candidate.completion_time_ms,
        'moveCount': candidate.move_count,
        'finalBoard': candidate.final_board,
    })
    assert resent.status_code == 409
    assert resent.get_json()['error'] == 'DUPLICATE_SUBMISSION'


def test_submit_too_fast_run_is_rejected(flask_app, client):
    run = won_run(flask_app, elapsed_sec=2.0)
    res = client.post(f'/api/runs/{run.session_token}/submit')
    assert res.status_code == 400
    assert res.get_json()['error'] == 'TIME_TOO_SHORT'
    assert not run.submitted
    assert run.session_token in registry(flask_app)
