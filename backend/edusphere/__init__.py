"""EduSphere Attendance - Application Factory."""
import logging
import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)

def create_app(config_name: str = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)
    
    # Load configuration
    from config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    
    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)
    
    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))
    
    setup_logging(app)
    register_blueprints(app)
    register_error_handlers(app)
    setup_database(app)
    register_commands(app)
    
    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'EduSphere Attendance',
            'version': '1.0.0'
        })
    
    return app

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from edusphere.api.auth import auth_bp
    from edusphere.api.sessions import sessions_bp
    from edusphere.api.attendance import attendance_bp
    
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(sessions_bp, url_prefix='/api/sessions')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from edusphere.utils.helpers import handle_error, error_response
    from edusphere.services.errors import CheckInError
    from werkzeug.exceptions import HTTPException
    
    @app.errorhandler(CheckInError)
    def check_in_failed(error):
        return error_response(error.message, error.status_code, code=error.code, details=error.to_dict())
    
    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return handle_error(error, 500)
    
    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e.description, e.code)
    
    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return error_response('Token has expired', 401)
    
    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return error_response('Invalid token', 401)
    
    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return error_response('Authorization token required', 401)

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    logging.getLogger('edusphere').setLevel(level)
    
    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(level)
        app.logger.addHandler(file_handler)
        logging.getLogger('edusphere').addHandler(file_handler)
        
        app.logger.setLevel(level)
        app.logger.info('EduSphere Attendance startup')

def setup_database(app: Flask) -> None:
    """Import models so they are registered on the metadata."""
    with app.app_context():
        from edusphere.models import (  # noqa: F401
            User, UserRole, Course, Enrollment,
            AttendanceSession, AttendanceRecord, AttendanceStatus
        )

def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click
    
    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def init_db(drop):
        """Initialize the database."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')
        
        db.create_all()
        click.echo('Created all tables.')
        
        from edusphere.models.user import User, UserRole
        
        admin = User.query.filter_by(email='admin@edusphere.edu').first()
        if not admin:
            admin = User(
                email='admin@edusphere.edu',
                name='System Administrator',
                role=UserRole.ADMIN
            )
            admin.set_password('admin123456')
            db.session.add(admin)
            db.session.commit()
            click.echo('Created admin user: admin@edusphere.edu / admin123456')
    
    @app.cli.command('seed-db')
    def seed_db():
        """Seed database with test data."""
        from edusphere.services.seed_service import SeedService
        
        try:
            SeedService.seed_all()
            click.echo('Database seeded successfully!')
        except Exception as e:
            db.session.rollback()
            click.echo(f'Error seeding database: {str(e)}')
    
    @app.cli.command('run-generator')
    @click.option('--email', required=True, help='Faculty account that owns the session')
    @click.option('--classroom', 'classroom_id', type=int, required=True)
    @click.option('--lat', type=float, required=True)
    @click.option('--lng', type=float, required=True)
    @click.option('--duration', type=float, default=0, help='Seconds to run; 0 runs until interrupted')
    def run_generator(email, classroom_id, lat, lng, duration):
        """Run a rotating QR session from the terminal."""
        import time
        from edusphere.client import (
            ClientContext, ClientSettings, CodeGenerator, LocalAttendanceStore, StaticGeolocation
        )
        from edusphere.models.user import User
        from edusphere.navigation import NavigationError
        
        user = User.query.filter_by(email=email).first()
        if not user:
            raise click.ClickException(f'No user with email {email}')
        
        context = ClientContext(
            user_id=user.id,
            role=user.role,
            store=LocalAttendanceStore(app, user.id),
            geolocation=StaticGeolocation.at(lat, lng),
            settings=ClientSettings.from_config(app.config)
        )
        try:
            generator = CodeGenerator(context, classroom_id)
        except NavigationError as e:
            raise click.ClickException(str(e))
        if not generator.request_location():
            raise click.ClickException(generator.location_error)
        
        generator.start()
        click.echo(f'Session {generator.session_id} started')
        click.echo(generator.display_payload)
        generator.run()
        try:
            if duration:
                time.sleep(duration)
            else:
                while True:
                    time.sleep(1)
        except KeyboardInterrupt:
            pass
        finally:
            present = generator.stop()
        click.echo(f'Session {generator.session_id} stopped with {present} present')
