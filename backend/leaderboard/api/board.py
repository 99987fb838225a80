from flask import Blueprint, jsonify, request, current_app
from leaderboard import socketio
from leaderboard.services.workshop.board import get_board
from leaderboard.services.workshop.milestones import ToggleResult
from leaderboard.services.workshop.session_timer import schedule_timer_ticks


board = Blueprint('board', __name__)

FEEDBACK_SIGNALS = {
    ToggleResult.COMPLETED: 'completion',
    ToggleResult.REOPENED: 'reopen',
}


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _emit_state_update() -> None:
    socketio.emit('state_update', get_board().snapshot(), namespace='/ws')


@board.route('/state', methods=['GET'])
def get_state():
    return jsonify(get_board().snapshot())


@board.route('/teams', methods=['POST'])
def add_team():
    data = _json_body()
    team = get_board().add_team(data.get('name'))
    if team is None:
        # Blank names are ignored, not rejected
        return jsonify({'added': False, 'teams': get_board().snapshot()['teams']})
    _emit_state_update()
    payload = team.to_dict()
    payload['added'] = True
    return jsonify(payload), 201


@board.route('/teams/<int:team_id>/milestones/<int:milestone_id>/toggle', methods=['POST'])
def toggle_milestone(team_id, milestone_id):
    wb = get_board()
    result = wb.toggle_milestone(team_id, milestone_id)
    if result is not ToggleResult.NOOP:
        _emit_state_update()
        # The feedback collaborator only hears about toggles while unmuted
        if not wb.display.muted:
            socketio.emit('milestone_feedback', {
                'signal': FEEDBACK_SIGNALS[result],
                'team_id': team_id,
                'milestone_id': milestone_id,
            }, namespace='/ws')
    team = wb.get_team(team_id)
    return jsonify({
        'result': result.value,
        'team': team.to_dict() if team else None,
    })


@board.route('/timer', methods=['GET'])
def get_timer():
    return jsonify(get_board().timer.to_dict())


@board.route('/timer/start', methods=['POST'])
def start_timer():
    wb = get_board()
    if wb.start_timer():
        _emit_state_update()
        schedule_timer_ticks(current_app._get_current_object(), wb.timer)
    return jsonify(wb.timer.to_dict())


@board.route('/reset', methods=['POST'])
def reset():
    if not get_board().reset_all():
        return jsonify({'reset': False, 'error': 'Store could not be cleared; nothing was reset'}), 503
    _emit_state_update()
    return jsonify({'reset': True})


@board.route('/display', methods=['GET', 'PUT'])
def display_settings():
    display = get_board().display
    if request.method == 'PUT':
        data = _json_body()
        if isinstance(data.get('muted'), bool):
            display.muted = data['muted']
        if isinstance(data.get('presentation_mode'), bool):
            display.presentation_mode = data['presentation_mode']
        current_app.logger.info(f"[display] muted={display.muted} presentation_mode={display.presentation_mode}")
        _emit_state_update()
    return jsonify(display.to_dict())
