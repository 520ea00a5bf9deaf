import logging

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_wtf.csrf import CSRFProtect
from werkzeug.exceptions import HTTPException

from .config import config

# Initialize extensions
db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
csrf = CSRFProtect()

logger = logging.getLogger(__name__)


def create_app(config_name=None):
    """Application factory"""
    import os
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    configure_logging(app)

    # Initialize extensions with app
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    # Models and recalculation hooks must be registered before first use
    from . import models  # noqa: F401
    from .services import recalculation  # noqa: F401

    # Register blueprints
    from .routes.dashboard import dashboard_bp
    from .routes.members import members_bp
    from .routes.coaches import coaches_bp
    from .routes.sessions import sessions_bp
    from .routes.payments import payments_bp
    from .routes.messages import messages_bp
    from .routes.settings import settings_bp

    for blueprint in (dashboard_bp, members_bp, coaches_bp, sessions_bp,
                      payments_bp, messages_bp, settings_bp):
        # Header-authenticated JSON API, no cookie session to protect
        csrf.exempt(blueprint)
        app.register_blueprint(blueprint, url_prefix='/api')

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_cli_commands(app)

    return app


def configure_logging(app):
    """Configure the package logger from LOG_LEVEL"""
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    package_logger = logging.getLogger(__name__)
    package_logger.setLevel(level)
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        package_logger.addHandler(handler)


def register_error_handlers(app):
    """Register error handlers"""
    from .errors import GymSuiteError

    @app.errorhandler(GymSuiteError)
    def gymsuite_error(error):
        if error.status_code >= 500:
            db.session.rollback()
            logger.error(f"{error.code}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({
            'error': error.name.lower().replace(' ', '_'),
            'message': error.description
        }), error.code

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({'error': 'internal_error', 'message': 'Internal server error'}), 500


def register_cli_commands(app):
    """Register CLI commands"""
    import click

    @app.cli.command('init-db')
    def init_db():
        """Create all tables"""
        db.create_all()
        click.echo('Database initialized successfully!')

    @app.cli.command('create-gym')
    @click.option('--name', prompt='Gym name', help='Gym name')
    @click.option('--email', prompt='Owner email', help='Owner email')
    @click.option('--full-name', prompt='Owner name', help='Owner full name')
    def create_gym(name, email, full_name):
        """Create a gym and its owner profile"""
        from .models.gym import Gym, Profile

        if Profile.query.filter_by(email=email.lower()).first():
            click.echo('A profile with this email already exists!')
            return

        gym = Gym(name=name)
        db.session.add(gym)
        db.session.flush()

        owner = Profile(gym_id=gym.id, email=email.lower(), full_name=full_name, role='owner')
        db.session.add(owner)
        db.session.commit()

        click.echo(f'Created gym: {gym.name} (id={gym.id})')
        click.echo(f'Created owner profile: {owner.email} (id={owner.id})')

    @app.cli.command('sweep-activity')
    @click.option('--gym-id', type=int, default=None, help='Only sweep this gym')
    def sweep_activity(gym_id):
        """Recompute member activity status and coach monthly counters"""
        from .services.activity import reclassify_members
        from .services.recalculation import refresh_monthly_session_metrics

        changed = reclassify_members(gym_id=gym_id)
        coaches = refresh_monthly_session_metrics(gym_id=gym_id)
        db.session.commit()
        click.echo(f'Reclassified members, {changed} status changes')
        click.echo(f'Recounted monthly sessions of {coaches} coaches')
