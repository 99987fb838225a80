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

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One board per app; teams are loaded from the store on first access
    from leaderboard.services.workshop.board import Board
    from leaderboard.services.workshop.store import SQLKeyValueStore
    flask_app.extensions['leaderboard'] = Board(SQLKeyValueStore(db), logger=flask_app.logger)

    from leaderboard.main import main
    flask_app.register_blueprint(main)

    from leaderboard.api.board import board
    flask_app.register_blueprint(board, url_prefix='/api/board')

    from leaderboard.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('init-db')
    def init_db_command():
        """Creates the key-value store table if it does not exist."""
        import leaderboard.models  # noqa: F401
        with flask_app.app_context():
            db.create_all()
            print('Database tables created.')

    @click.command('reset-board')
    def reset_board_command():
        """Clears every team and stops the session timer."""
        with flask_app.app_context():
            if flask_app.extensions['leaderboard'].reset_all():
                print('Leaderboard has been reset.')
            else:
                print('Reset failed: the store could not be cleared.')

    flask_app.cli.add_command(init_db_command)
    flask_app.cli.add_command(reset_board_command)

    return flask_app
