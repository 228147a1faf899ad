from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('ALLOWED_ORIGINS', [])

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from game2048.engine.registry import RunRegistry
    flask_app.extensions['runs'] = RunRegistry(
        ttl_sec=flask_app.config.get('RUN_TTL_SEC', 3600),
        max_active=flask_app.config.get('RUN_MAX_ACTIVE', 10000),
    )

    # Import and register blueprints here
    from game2048.main import main
    flask_app.register_blueprint(main)

    from game2048.api.scores import scores
    from game2048.api.runs import runs
    flask_app.register_blueprint(scores, url_prefix='/api')
    flask_app.register_blueprint(runs, url_prefix='/api')

    # Register Socket.IO event handlers
    from game2048.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Flask-Login user loader
    from game2048.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Login required'}), 401

    if flask_app.config.get('AUTO_CREATE_SCHEMA'):
        # One-time schema provisioning at startup, never per request
        with flask_app.app_context():
            db.create_all()
        flask_app.logger.info("[schema] tables ensured at startup")

    @click.command('init-db')
    def init_db_command():
        """Creates any missing tables."""
        with flask_app.app_context():
            db.create_all()
            print('Database schema initialized.')

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users
            users = ['testuser1', 'testuser2', 'testuser3']
            for u in users:
                user = User(username=u, nickname=u.capitalize())
                user.set_password('password')
                db.session.add(user)

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(init_db_command)
    flask_app.cli.add_command(db_reset_command)

    return flask_app
