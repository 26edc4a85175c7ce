from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def _allowed_origins(config):
    raw = config.get('CORS_ORIGINS') or '*'
    if raw == '*':
        return '*'
    return [origin.strip() for origin in raw.split(',') if origin.strip()]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = _allowed_origins(flask_app.config)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from mathbattle.routes import main
    flask_app.register_blueprint(main)

    # One lobby per process: owns the waiting queue and every live session
    from mathbattle.services.battle import Lobby, TimerScheduler
    from mathbattle.services.battle.session import BattleSession
    testing = flask_app.config.get('TESTING', False)
    scheduler = TimerScheduler(
        spawn=socketio.start_background_task,
        sleep=socketio.sleep,
        heartbeat_sec=int(flask_app.config.get('TIMER_HEARTBEAT_SEC', 0)),
        inline=testing and not flask_app.config.get('ENABLE_SCHEDULER_IN_TESTS'),
    )
    hand_size = int(flask_app.config.get('HAND_SIZE', 5))
    copies = int(flask_app.config.get('CARD_COPIES', 4))
    flask_app.extensions['lobby'] = Lobby(
        scheduler=scheduler,
        session_factory=lambda: BattleSession(hand_size=hand_size, copies=copies),
        turn_delay=float(flask_app.config.get('TURN_DELAY_SEC', 2)),
        disconnect_teardown=float(flask_app.config.get('DISCONNECT_TEARDOWN_SEC', 0)),
        game_over_teardown=float(flask_app.config.get('GAME_OVER_TEARDOWN_SEC', 30)),
    )

    # Register Socket.IO event handlers
    from mathbattle.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=testing)

    @click.command('catalog')
    def catalog_command():
        """Lists the cards every session deck is built from."""
        from mathbattle.services.battle.catalog import DEFAULT_CATALOG
        for template in DEFAULT_CATALOG:
            click.echo(f"{template.name:<20} {template.effect:<7} {template.value:>3}  {template.description}")
        click.echo(f"{copies} copies of each card per session")

    flask_app.cli.add_command(catalog_command)

    flask_app.logger.info('Math Battle server configured')
    return flask_app
