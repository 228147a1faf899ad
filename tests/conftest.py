import os
import sys
import uuid
import pytest

# Ensure the project root (containing the `game2048` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from game2048 import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    BCRYPT_LOG_ROUNDS = 4
    ALLOWED_ORIGINS = ['http://localhost:5173']
    ALLOWED_HOSTS = ['localhost', '127.0.0.1']
    RUN_TTL_SEC = 600
    RUN_MAX_ACTIVE = 5


class ScriptedRng:
    """Deterministic stand-in for random.Random: fixed cell picks and rolls."""

    def __init__(self, picks=None, rolls=None):
        self.picks = list(picks or [])
        self.rolls = list(rolls or [])

    def choice(self, cells):
        if self.picks:
            wanted = self.picks.pop(0)
            assert wanted in cells
            return wanted
        return cells[0]

    def random(self):
        return self.rolls.pop(0) if self.rolls else 0.0


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def winning_board():
    return [
        [2048, 4, 2, 0],
        [8, 16, 4, 2],
        [2, 0, 0, 0],
        [0, 0, 0, 0],
    ]


def new_token():
    return str(uuid.uuid4())


def submission(completion_time_ms=10000, move_count=80, board=None, token=None):
    return {
        'action': 'submit',
        'sessionToken': token or new_token(),
        'completionTimeMs': completion_time_ms,
        'moveCount': move_count,
        'finalBoard': board if board is not None else winning_board(),
    }


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import game2048.models  # noqa: F401
        db.create_all()
    # Yielded outside any app context so each request gets its own `g`
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def app_ctx(flask_app):
    """Application context for tests that call services directly."""
    with flask_app.app_context():
        yield flask_app


def stored_scores(app, **filters):
    """Snapshot of Score rows, read in a short-lived app context."""
    from game2048.models import Score
    with app.app_context():
        return Score.query.filter_by(**filters).order_by(Score.id).all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def login(flask_app):
    """Return a helper that registers a user and yields a logged-in client."""
    def _login(username, nickname=None):
        c = flask_app.test_client()
        res = c.post('/register', json={'username': username, 'password': 'password', 'nickname': nickname})
        assert res.status_code == 201
        return c
    return _login


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
