from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event, inspect
import structlog

logger = structlog.get_logger("db")

db = SQLAlchemy()


def init_db(app):
    with app.app_context():
        if db.engine.dialect.name == "sqlite":
            @event.listens_for(db.engine, "connect")
            def set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA journal_mode=WAL;")
                cursor.execute("PRAGMA busy_timeout=30000;")
                cursor.close()

        # Import models so their tables are registered on the metadata
        from campushub import models  # noqa: F401

        inspector = inspect(db.engine)
        if not inspector.has_table("resources"):
            logger.info("Initializing database tables...")
        db.create_all()
        logger.info("Database ready.")
