"""Flask application factory."""
import os
import traceback

from flask import Flask, jsonify, request
from flask_wtf.csrf import CSRFProtect, CSRFError
from werkzeug.exceptions import HTTPException

from pos.database import init_db


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    csrf = CSRFProtect(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        return jsonify({
            'status': 'error',
            'message': 'Sesi telah kedaluwarsa. Muat ulang halaman.',
            'code': 'csrf'
        }), 400

    # Sentry for error tracking in production
    if os.getenv('SENTRY_DSN') and (app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            profiles_sample_rate=0.1,
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Prometheus request metrics
    from pos.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Behind Nginx in production
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    init_db(app)

    # Realtime change feed, identity and per-till stores
    from pos.services.realtime_service import init_realtime
    from pos.services.auth_service import init_identity
    from pos.state import init_tills
    init_realtime(app)
    init_identity(app)
    init_tills(app)

    # Jinja filters for receipts and exports
    from pos.utils.formatters import format_rupiah, num_id, date_id, datetime_id
    app.jinja_env.filters['rupiah'] = format_rupiah
    app.jinja_env.filters['num_id'] = num_id
    app.jinja_env.filters['date_id'] = date_id
    app.jinja_env.filters['datetime_id'] = datetime_id

    from pos.middleware import load_operator

    @app.before_request
    def before_request_handler():
        """Load the signed-in operator for each request."""
        load_operator()

    # Error Handlers
    from pos.exceptions import PosError

    @app.errorhandler(PosError)
    def handle_pos_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"PosError [{error.status_code}]: {error.message}")
        else:
            app.logger.info(f"PosError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'status': 'error', 'message': error.description}), error.code

    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.error(f"Unhandled Exception: {error}")
        app.logger.error(f"Traceback: {traceback.format_exc()}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from pos.blueprints.auth import auth_bp
    from pos.blueprints.main import main_bp
    from pos.blueprints.cashier import cashier_bp
    from pos.blueprints.catalog import catalog_bp
    from pos.blueprints.categories import categories_bp
    from pos.blueprints.history import history_bp
    from pos.blueprints.reports import reports_bp
    from pos.blueprints.settings import settings_bp
    from pos.blueprints.metrics import metrics_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(cashier_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(history_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(metrics_bp)
    csrf.exempt(metrics_bp)

    from pos.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
