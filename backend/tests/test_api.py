from leaderboard.services.workshop.board import get_board
from leaderboard.services.workshop.store import StoreError

from conftest import FakeClock


def _use_fake_clock(flask_app):
    clock = FakeClock()
    board = get_board(flask_app)
    board.clock = clock
    board.timer._clock = clock
    return clock


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_add_team_and_state(client):
    res = client.post('/api/board/teams', json={'name': '  Alpha '})
    assert res.status_code == 201
    team = res.get_json()
    assert team['name'] == 'Alpha'
    assert team['added'] is True
    assert team['milestone_count'] == 3

    state = client.get('/api/board/state').get_json()
    assert [t['name'] for t in state['teams']] == ['Alpha']
    assert state['teams'][0]['position'] == 1
    assert state['timer']['running'] is False


def test_blank_or_missing_name_is_silently_ignored(client):
    for body in ({'name': '   '}, {}, None):
        res = client.post('/api/board/teams', json=body)
        assert res.status_code == 200
        assert res.get_json()['added'] is False
    res = client.post('/api/board/teams', data='not json', content_type='application/json')
    assert res.status_code == 200
    assert client.get('/api/board/state').get_json()['teams'] == []


def test_toggle_and_ranking_flow(flask_app, client):
    clock = _use_fake_clock(flask_app)
    client.post('/api/board/timer/start')
    alpha = client.post('/api/board/teams', json={'name': 'Alpha'}).get_json()
    gamma = client.post('/api/board/teams', json={'name': 'Gamma'}).get_json()

    for sec, (team, mid) in sorted({
        10: (alpha, 1), 20: (alpha, 2), 30: (alpha, 3),
        5: (gamma, 1), 15: (gamma, 2), 25: (gamma, 3),
    }.items()):
        clock.now = clock.now.replace(second=sec)
        res = client.post(f"/api/board/teams/{team['id']}/milestones/{mid}/toggle")
        assert res.get_json()['result'] == 'completed'

    state = client.get('/api/board/state').get_json()
    assert [t['name'] for t in state['teams']] == ['Gamma', 'Alpha']
    assert [t['total_time'] for t in state['teams']] == ['25s', '30s']
    assert all(t['is_fully_completed'] for t in state['teams'])

    res = client.post(f"/api/board/teams/{gamma['id']}/milestones/3/toggle").get_json()
    assert res['result'] == 'reopened'
    assert res['team']['total_time_ms'] == 0
    state = client.get('/api/board/state').get_json()
    assert [t['name'] for t in state['teams']] == ['Alpha', 'Gamma']


def test_toggle_unknown_ids_is_noop(client):
    team = client.post('/api/board/teams', json={'name': 'Alpha'}).get_json()
    res = client.post('/api/board/teams/1/milestones/1/toggle')
    assert res.status_code == 200
    assert res.get_json() == {'result': 'noop', 'team': None}
    res = client.post(f"/api/board/teams/{team['id']}/milestones/42/toggle")
    assert res.get_json()['result'] == 'noop'


def test_teams_survive_a_new_board_instance(flask_app, client):
    team = client.post('/api/board/teams', json={'name': 'Alpha'}).get_json()
    client.post(f"/api/board/teams/{team['id']}/milestones/1/toggle")

    from leaderboard import db
    from leaderboard.services.workshop.board import Board
    from leaderboard.services.workshop.store import SQLKeyValueStore
    flask_app.extensions['leaderboard'] = Board(SQLKeyValueStore(db))

    state = client.get('/api/board/state').get_json()
    assert state['teams'][0]['name'] == 'Alpha'
    assert state['teams'][0]['milestones'][0]['completed'] is True
    assert state['teams'][0]['milestones'][0]['completed_at'] is not None


def test_timer_start_and_elapsed(flask_app, client):
    clock = _use_fake_clock(flask_app)
    assert client.get('/api/board/timer').get_json()['elapsed'] == 0
    started = client.post('/api/board/timer/start').get_json()
    assert started['running'] is True
    clock.advance(65)
    timer = client.get('/api/board/timer').get_json()
    assert timer['elapsed'] == 65
    assert timer['clock'] == '00:01:05'
    # second start does not move the stamp
    again = client.post('/api/board/timer/start').get_json()
    assert again['started_at'] == started['started_at']


def test_reset_clears_teams_and_timer(client):
    client.post('/api/board/timer/start')
    client.post('/api/board/teams', json={'name': 'Alpha'})
    res = client.post('/api/board/reset')
    assert res.status_code == 200
    assert res.get_json() == {'reset': True}
    state = client.get('/api/board/state').get_json()
    assert state['teams'] == []
    assert state['timer'] == {'running': False, 'started_at': None, 'elapsed': 0, 'clock': '00:00:00'}


def test_reset_failure_changes_nothing(flask_app, client, monkeypatch):
    client.post('/api/board/teams', json={'name': 'Alpha'})
    board = get_board(flask_app)

    def broken_delete(key):
        raise StoreError('delete failed')

    monkeypatch.setattr(board.store, 'delete', broken_delete)
    res = client.post('/api/board/reset')
    assert res.status_code == 503
    assert res.get_json()['reset'] is False
    assert [t['name'] for t in client.get('/api/board/state').get_json()['teams']] == ['Alpha']


def test_display_settings(client):
    assert client.get('/api/board/display').get_json() == {'muted': False, 'presentation_mode': False}
    res = client.put('/api/board/display', json={'muted': True, 'presentation_mode': 'yes'})
    assert res.get_json() == {'muted': True, 'presentation_mode': False}
    res = client.put('/api/board/display', json={'presentation_mode': True})
    assert res.get_json() == {'muted': True, 'presentation_mode': True}


def test_presentation_mode_still_allows_reset(client):
    client.put('/api/board/display', json={'presentation_mode': True})
    client.post('/api/board/teams', json={'name': 'Alpha'})
    assert client.post('/api/board/reset').get_json() == {'reset': True}
