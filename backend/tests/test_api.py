from datetime import datetime, timedelta, timezone

from shareorsteal import db
from shareorsteal.models import DevicePlay


def _device_id(client):
    cookie = client.get_cookie('device_id')
    return cookie.value if cookie else None


def test_index_and_health(client):
    res = client.get('/')
    assert res.status_code == 200
    assert res.get_data(as_text=True) == 'OK: Share-or-Steal backend is running'
    res = client.get('/health')
    assert res.get_data(as_text=True) == 'ok'


def test_device_cookie_is_issued_once(client):
    res = client.get('/health')
    set_cookie = res.headers.get('Set-Cookie', '')
    assert 'device_id=' in set_cookie
    assert 'HttpOnly' in set_cookie
    device_id = _device_id(client)
    assert device_id and len(device_id) == 32

    res = client.get('/health')
    assert 'Set-Cookie' not in res.headers
    assert _device_id(client) == device_id


def test_can_play_until_recorded(client, engine):
    res = client.post('/can-play')
    assert res.get_json() == {'canPlay': True}

    engine.gate.record_played(_device_id(client))
    res = client.post('/can-play')
    assert res.get_json() == {'canPlay': False, 'reason': 'already_played_today'}
    assert db.session.get(DevicePlay, _device_id(client)).last_date == engine.gate.day_key()


def test_yesterdays_play_does_not_block(client, engine):
    client.get('/health')
    yesterday = datetime.now(timezone.utc) - timedelta(days=1)
    engine.gate.record_played(_device_id(client), now=yesterday)
    assert client.post('/can-play').get_json() == {'canPlay': True}


def test_play_day_follows_configured_zone(engine):
    # Dublin is UTC+1 in summer, UTC+0 in winter
    summer_late = datetime(2025, 7, 10, 23, 30, tzinfo=timezone.utc)
    winter_late = datetime(2025, 1, 15, 23, 30, tzinfo=timezone.utc)
    assert engine.gate.day_key(summer_late) == '2025-07-11'
    assert engine.gate.day_key(winter_late) == '2025-01-15'


def test_queue_size(client, engine):
    assert client.get('/queue/L1').get_json() == {'waiting': 0}
    engine.connect('x')
    engine.join_location('x', 'L1')
    assert client.get('/queue/L1').get_json() == {'waiting': 1}
    assert client.get('/queue/L2').get_json() == {'waiting': 0}


def test_apps_do_not_share_live_state(flask_app, engine, test_config):
    from shareorsteal import create_app

    other = create_app(test_config)
    assert other.extensions['shareorsteal'] is not engine
    engine.connect('x')
    engine.join_location('x', 'L1')
    assert other.extensions['shareorsteal'].queues.size('L1') == 0


def test_db_reset_command(flask_app, engine):
    engine.gate.record_played('dev-1')
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['db-reset'])
    assert 'Database has been reset!' in result.output
    assert DevicePlay.query.count() == 0
