import secrets

from flask import Blueprint, Response, current_app, g, jsonify, request

main = Blueprint('main', __name__)


def _engine():
    return current_app.extensions['shareorsteal']


@main.before_app_request
def ensure_device_id():
    name = current_app.config.get('DEVICE_COOKIE_NAME', 'device_id')
    device_id = request.cookies.get(name)
    g.new_device_id = None
    if not device_id:
        device_id = secrets.token_hex(16)
        g.new_device_id = device_id
    g.device_id = device_id


@main.after_app_request
def set_device_cookie(response):
    device_id = g.get('new_device_id')
    if device_id:
        cfg = current_app.config
        secure = bool(cfg.get('DEVICE_COOKIE_SECURE', True))
        response.set_cookie(
            cfg.get('DEVICE_COOKIE_NAME', 'device_id'),
            device_id,
            max_age=cfg.get('DEVICE_COOKIE_MAX_AGE', 60 * 60 * 24 * 365),
            httponly=True,
            # Browsers reject SameSite=None without Secure
            samesite='None' if secure else 'Lax',
            secure=secure,
            path='/',
        )
    return response


@main.route('/')
def index():
    return Response('OK: Share-or-Steal backend is running', mimetype='text/plain')


@main.route('/health')
def health():
    return Response('ok', mimetype='text/plain')


@main.route('/can-play', methods=['POST'])
def can_play():
    gate = _engine().gate
    try:
        allowed = gate is None or gate.may_play(g.device_id)
    except Exception:
        current_app.logger.exception(f"[gate-error] can-play device={g.device_id}")
        allowed = True
    if not allowed:
        return jsonify({'canPlay': False, 'reason': 'already_played_today'})
    return jsonify({'canPlay': True})


@main.route('/queue/<string:location_id>')
def queue_size(location_id):
    return jsonify({'waiting': _engine().queues.size(location_id)})
