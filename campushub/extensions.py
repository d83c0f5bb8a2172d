from flask import current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")


def upload_rate_limit():
    return current_app.config["CAMPUSHUB_UPLOAD_RATE_LIMIT"]
