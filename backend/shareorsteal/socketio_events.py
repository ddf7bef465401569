from flask import current_app, request
from flask_socketio import emit

from shareorsteal import socketio
from shareorsteal.errors import ProtocolError


def _engine():
    return current_app.extensions['shareorsteal']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect(auth=None):
    cookie_name = current_app.config.get('DEVICE_COOKIE_NAME', 'device_id')
    device_id = request.cookies.get(cookie_name)
    _engine().connect(_get_sid(), device_id=device_id)
    current_app.logger.info(f"[connect] conn={_get_sid()} device={'yes' if device_id else 'no'}")


def handle_disconnect(reason=None):
    sid = _get_sid()
    match = _engine().disconnect(sid)
    current_app.logger.info(f"[disconnect] conn={sid} cancelled_match={match.id if match else None}")


def handle_join_location(data):
    if not isinstance(data, dict):
        emit('error', {'message': 'locationId is required'})
        return
    try:
        _engine().join_location(_get_sid(), data.get('locationId'), data.get('playerName'))
    except ProtocolError as exc:
        emit('error', exc.to_payload())


def handle_submit_choice(data):
    data = data if isinstance(data, dict) else {}
    try:
        _engine().submit_choice(_get_sid(), data.get('matchId'), data.get('choice'))
    except ProtocolError as exc:
        emit('error', exc.to_payload())


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on the configured namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('join_location', handle_join_location, namespace=namespace)
    socketio.on_event('submit_choice', handle_submit_choice, namespace=namespace)
