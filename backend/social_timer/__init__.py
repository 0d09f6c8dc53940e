from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
socketio = SocketIO(async_mode=None)

TIMER_EXTENSION = 'social_timer'


def get_timer(app=None):
    """Return the TimerService owned by ``app`` (default: current_app)."""
    app = app or current_app
    return app.extensions[TIMER_EXTENSION]


def create_app(config_class=Config, clock=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from social_timer.services.timer import build_timer_service
    store = None
    if flask_app.config.get('TIMER_PERSIST_EPOCH'):
        from social_timer.services.timer.store import EpochStore
        import social_timer.models  # noqa: F401
        with flask_app.app_context():
            db.create_all()
        store = EpochStore(flask_app)

    # A ConfigurationFault from the clock check propagates: the app refuses to start
    timer = build_timer_service(
        clock=clock,
        token_cache_size=flask_app.config.get('RESET_TOKEN_CACHE_SIZE', 256),
        store=store,
    )
    flask_app.extensions[TIMER_EXTENSION] = timer
    flask_app.logger.info(
        f"[timer-start] epoch={timer.get_elapsed().epoch} persist={store is not None}"
    )

    # Import and register blueprints here
    from social_timer.main import main
    flask_app.register_blueprint(main)

    from social_timer.api.timer import timer_api
    flask_app.register_blueprint(timer_api, url_prefix='/api/timer')

    # Register Socket.IO event handlers on the initialized socketio instance
    from social_timer.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('timer-reset')
    def timer_reset_command():
        """Resets the shared timer (and the stored epoch when persistence is on)."""
        epoch = get_timer(flask_app).reset()
        click.echo(f'Timer has been reset (epoch={epoch}).')

    flask_app.cli.add_command(timer_reset_command)

    return flask_app
