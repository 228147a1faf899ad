from flask_socketio import join_room, leave_room, emit
from game2048 import socketio

LEADERBOARD_ROOM = 'leaderboard'


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_leaderboard(data=None):
    join_room(LEADERBOARD_ROOM)
    emit('joined', {'room': LEADERBOARD_ROOM})


def handle_leave_leaderboard(data=None):
    leave_room(LEADERBOARD_ROOM)
    emit('left', {'room': LEADERBOARD_ROOM})


def handle_ping(data):
    emit('pong', data or {})


def notify_leaderboard_changed(result) -> None:
    """Tell leaderboard viewers to refresh after a ranked submission."""
    socketio.emit(
        'leaderboard_update',
        {'rank': result.rank, 'totalEntries': result.total_entries},
        to=LEADERBOARD_ROOM,
        namespace='/ws',
    )


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('join_leaderboard', handle_join_leaderboard, namespace='/ws')
    socketio.on_event('leave_leaderboard', handle_leave_leaderboard, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('join_leaderboard', handle_join_leaderboard, namespace='/')
        socketio.on_event('leave_leaderboard', handle_leave_leaderboard, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
