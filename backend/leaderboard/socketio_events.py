from flask_socketio import emit
from flask import current_app
from leaderboard.services.workshop.board import get_board


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})
    # Current stopwatch for late joiners
    emit('timer_state', get_board(current_app).timer.to_dict())


def handle_request_state(data=None):
    emit('state_update', get_board(current_app).snapshot())


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    from leaderboard import socketio

    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('request_state', handle_request_state, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('request_state', handle_request_state, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
