import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///shareorsteal.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Allowed origin for CORS and Socket.IO ('*' allows any)
    FRONTEND_ORIGIN = os.environ.get('FRONTEND_ORIGIN', '*')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Decision window and finalize grace (milliseconds)
    DECISION_WINDOW_MS = int(os.environ.get('DECISION_WINDOW_MS', '20000'))
    FINALIZE_GRACE_MS = int(os.environ.get('FINALIZE_GRACE_MS', '250'))
    DEFAULT_PLAYER_NAME = os.environ.get('DEFAULT_PLAYER_NAME', 'Player')
    PRIZE_CODE_LENGTH = int(os.environ.get('PRIZE_CODE_LENGTH', '6'))
    # One play per device per calendar day in this zone
    PLAY_DAY_TIMEZONE = os.environ.get('PLAY_DAY_TIMEZONE', 'Europe/Dublin')
    # Refuse join_location for devices that already played today. Off by default.
    ENFORCE_DAILY_LIMIT = os.environ.get('ENFORCE_DAILY_LIMIT', '0') == '1'
    DEVICE_COOKIE_NAME = 'device_id'
    DEVICE_COOKIE_MAX_AGE = 60 * 60 * 24 * 365
    DEVICE_COOKIE_SECURE = os.environ.get('DEVICE_COOKIE_SECURE', '1') == '1'
