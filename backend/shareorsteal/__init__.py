from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def _allowed_origins(config):
    origin = config.get('FRONTEND_ORIGIN') or '*'
    if origin == '*':
        return '*'
    return [o.strip() for o in origin.split(',') if o.strip()]


def build_engine(flask_app):
    """Build an isolated registry/queue/engine stack for one app."""
    from shareorsteal.services.eligibility import PlayGate
    from shareorsteal.services.matchmaking import (
        BackgroundScheduler, ConnectionRegistry, LocationQueueManager, ManualScheduler, MatchEngine,
    )

    cfg = flask_app.config
    namespace = cfg.get('SOCKETIO_NAMESPACE', '/')

    def send(connection_id, event, payload):
        socketio.emit(event, payload, to=connection_id, namespace=namespace)

    # In tests, deadlines only fire when the manual clock is advanced
    if cfg.get('TESTING') and not cfg.get('ENABLE_SCHEDULER_IN_TESTS'):
        scheduler = ManualScheduler()
    else:
        scheduler = BackgroundScheduler(socketio, logger=flask_app.logger)

    registry = ConnectionRegistry(send)
    return MatchEngine(
        registry,
        LocationQueueManager(registry),
        scheduler,
        gate=PlayGate(flask_app, cfg.get('PLAY_DAY_TIMEZONE', 'Europe/Dublin')),
        logger=flask_app.logger,
        decision_window_ms=int(cfg.get('DECISION_WINDOW_MS', 20000)),
        grace_ms=int(cfg.get('FINALIZE_GRACE_MS', 250)),
        default_player_name=cfg.get('DEFAULT_PLAYER_NAME', 'Player'),
        prize_code_length=int(cfg.get('PRIZE_CODE_LENGTH', 6)),
        enforce_daily_limit=bool(cfg.get('ENFORCE_DAILY_LIMIT', False)),
    )


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    origins = _allowed_origins(flask_app.config)
    CORS(flask_app, supports_credentials=origins != '*', origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    # Ensure models are registered with the metadata
    from shareorsteal import models  # noqa: F401

    flask_app.extensions['shareorsteal'] = build_engine(flask_app)

    from shareorsteal.main import main
    flask_app.register_blueprint(main)

    # Importing here ensures the handlers bind to the initialized socketio instance
    from shareorsteal.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/'))

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            click.echo('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
