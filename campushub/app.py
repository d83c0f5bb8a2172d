"""
CampusHub - Academic resource sharing backend
Application Factory and Initialization
"""
import logging
import os
import sys

import flask.cli
from flask import Blueprint, Flask
import structlog

from campushub.constants import BUILD_VERSION, CAMPUSHUB_DB, CONFIG_DIR
from campushub.db import db, init_db
from campushub.exceptions import register_exception_handlers
from campushub.extensions import limiter
from campushub.metrics import init_metrics
from campushub.repositories.resource_store import InMemoryResourceStore, SqlResourceStore
from campushub.rest_api import init_rest_api
from campushub.routes.drive import drive_bp
from campushub.routes.resources import resources_bp
from campushub.services.drive_storage import DriveStorage
from campushub.services.object_storage import CloudinaryStorage
from campushub.services.resource_service import ResourceService
from campushub.settings import load_settings, verify_settings
from campushub.utils import ColoredFormatter, FilterRemoveDateFromWerkzeugLogs

flask.cli.show_server_banner = lambda *args: None

# Multipart framing on top of the file itself
MULTIPART_OVERHEAD = 1024 * 1024

LOG_HANDLER_NAME = 'campushub'

logger = structlog.get_logger('main')


def configure_logging(level="INFO", log_format="console"):
    """Configure stdlib logging and structlog; a no-op once the campushub handler is installed"""
    root = logging.getLogger()
    if any(h.get_name() == LOG_HANDLER_NAME for h in root.handlers):
        return

    formatter = ColoredFormatter(
        '[%(asctime)s.%(msecs)03d] %(levelname)s (%(module)s) %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(LOG_HANDLER_NAME)
    handler.setFormatter(formatter)

    root.addHandler(handler)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if log_format == 'json' else structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Hide date from http access logs
    logging.getLogger('werkzeug').addFilter(FilterRemoveDateFromWerkzeugLogs())


def build_store(app, settings):
    if settings["database"]["backend"] == "memory":
        logger.info("Using in-memory resource store.")
        return InMemoryResourceStore()

    if settings["database"]["url"] == CAMPUSHUB_DB:
        os.makedirs(CONFIG_DIR, exist_ok=True)
    init_db(app)
    return SqlResourceStore()


def create_app(settings=None, store=None, storage=None, drive=None):
    """
    Application factory.

    `store` (ResourceStore) and `storage` (ObjectStorage) are built from
    settings unless given; they are shared by every request of this app.
    `drive` (DriveStorage) is built only when Google Drive is enabled.
    """
    settings = settings or load_settings()
    configure_logging(settings["logging"]["level"], settings["logging"]["format"])

    success, errors = verify_settings(settings)
    if not success:
        for error in errors:
            logger.warning(f"Configuration issue at {error['path']}: {error['error']}")

    uploads = settings["uploads"]
    rate_limits = settings["rate_limits"]
    drive_settings = settings.get("drive") or {}

    app = Flask(__name__)
    app.config["SQLALCHEMY_DATABASE_URI"] = settings["database"]["url"]
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config["MAX_CONTENT_LENGTH"] = uploads["max_file_size"] + MULTIPART_OVERHEAD
    app.config["CAMPUSHUB_MAX_FILE_SIZE"] = uploads["max_file_size"]
    app.config["CAMPUSHUB_ALLOWED_MIME_TYPES"] = list(uploads["allowed_mime_types"])
    app.config["CAMPUSHUB_UPLOAD_DIR"] = uploads["dir"]
    app.config["CAMPUSHUB_UPLOAD_RATE_LIMIT"] = rate_limits["upload"]
    app.config["CAMPUSHUB_DRIVE_ALLOWED_MIME_TYPES"] = drive_settings.get("allowed_mime_types")
    app.config["RATELIMIT_ENABLED"] = rate_limits["enabled"]
    app.config["RATELIMIT_DEFAULT"] = rate_limits["default"]

    # Initialize components
    db.init_app(app)
    limiter.init_app(app)

    if store is None:
        store = build_store(app, settings)
    if storage is None:
        storage = CloudinaryStorage.from_settings(settings["storage"])

    app.extensions["campushub"] = ResourceService(
        store,
        storage,
        soft_delete=settings["resources"].get("soft_delete", False),
    )

    if drive is None and drive_settings.get("enabled"):
        drive = DriveStorage.from_settings(drive_settings)
    app.extensions["campushub_drive"] = drive

    # Register exception handlers
    register_exception_handlers(app)

    # Register blueprints
    app.register_blueprint(resources_bp)
    app.register_blueprint(drive_bp)

    # Initialize REST API (system namespace + docs)
    api_bp = Blueprint('api', __name__, url_prefix='/api')
    init_rest_api(api_bp)
    app.register_blueprint(api_bp)

    # Initialize metrics
    init_metrics(app)

    logger.info(f"CampusHub {BUILD_VERSION} initialized ({type(store).__name__}, {type(storage).__name__})")
    return app


def main():
    settings = load_settings()
    app = create_app(settings)
    host = settings["server"]["host"]
    port = settings["server"]["port"]
    logger.info(f'Build Version: {BUILD_VERSION}')
    logger.info(f'Starting server on port {port}...')
    app.run(host=host, port=port, debug=False, use_reloader=False)
    logger.info('Shutting down server...')


if __name__ == '__main__':
    main()
