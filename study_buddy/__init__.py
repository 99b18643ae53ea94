from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import RequestEntityTooLarge

from .config import MIB, load_config
from .extensions import init_extensions
from .logging_config import configure_logging, logger


def _init_sentry(config):
    if not config.sentry_dsn:
        return
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration

    sentry_sdk.init(
        dsn=config.sentry_dsn,
        integrations=[FlaskIntegration()],
        environment=config.sentry_environment,
        release=config.sentry_release,
        send_default_pii=False,
    )
    logger.info("Sentry backend monitoring enabled")


def create_app(config=None, app_ctx=None):
    """App factory entrypoint.

    Missing storage or Firebase configuration raises ``ConfigurationError``
    here, before any route is registered. Tests pass a prebuilt ``app_ctx``.
    """
    load_dotenv()
    config = config or load_config()
    configure_logging(config.log_level)
    _init_sentry(config)

    if app_ctx is None:
        from .runtime import build_app_context

        app_ctx = build_app_context(config)

    app = Flask(__name__)
    app.secret_key = config.flask_secret_key or None
    app.config['MAX_CONTENT_LENGTH'] = config.limits.max_file_size_bytes + MIB
    init_extensions(app, app_ctx)

    from .blueprints import account_bp, flashcards_bp, games_bp, notes_bp, reports_bp, subjects_bp, updates_bp

    for blueprint in (account_bp, subjects_bp, notes_bp, flashcards_bp, games_bp, reports_bp, updates_bp):
        app.register_blueprint(blueprint)

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(_error):
        return jsonify({
            'error': f'Upload too large. Maximum file size is {config.limits.max_file_size_mb}MB.',
            'field': 'file_size',
            'limit': config.limits.max_file_size_bytes,
        }), 413

    return app
