import copy
import os

import structlog
import yaml

from campushub.constants import CONFIG_FILE, DEFAULT_SETTINGS

logger = structlog.get_logger("settings")

# Environment variable -> (section, key, cast)
ENV_OVERRIDES = {
    "CLOUDINARY_CLOUD_NAME": ("storage", "cloud_name", str),
    "CLOUDINARY_API_KEY": ("storage", "api_key", str),
    "CLOUDINARY_API_SECRET": ("storage", "api_secret", str),
    "CLOUDINARY_FOLDER": ("storage", "folder", str),
    "CAMPUSHUB_DATABASE_URL": ("database", "url", str),
    "LOG_LEVEL": ("logging", "level", str),
    "LOG_FORMAT": ("logging", "format", str),
    "PORT": ("server", "port", int),
    "GOOGLE_DRIVE_FOLDER_ID": ("drive", "folder_id", str),
    "GOOGLE_APPLICATION_CREDENTIALS": ("drive", "credentials_file", str),
}

# Cache variable
_cached_settings = None


def merge_settings(base, overrides):
    """Deep merge `overrides` into a copy of `base`"""
    merged = copy.deepcopy(base)
    for section, values in (overrides or {}).items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def apply_env_overrides(settings, environ=None):
    environ = os.environ if environ is None else environ
    for name, (section, key, cast) in ENV_OVERRIDES.items():
        value = environ.get(name)
        if value in (None, ""):
            continue
        try:
            settings.setdefault(section, {})[key] = cast(value)
        except ValueError:
            logger.warning(f"Ignoring invalid value for {name}: {value!r}")
    return settings


def load_settings(config_file=None, force=False, environ=None):
    global _cached_settings

    if _cached_settings and not force:
        return _cached_settings

    config_file = config_file or CONFIG_FILE
    file_settings = {}
    if os.path.exists(config_file):
        logger.debug(f"Reading configuration file: {config_file}")
        with open(config_file, "r") as yaml_file:
            file_settings = yaml.safe_load(yaml_file) or {}
    else:
        logger.debug(f"Configuration file {config_file} not found, using defaults.")

    settings = merge_settings(DEFAULT_SETTINGS, file_settings)
    settings = apply_env_overrides(settings, environ)

    _cached_settings = settings
    return settings


def verify_settings(settings):
    success = True
    errors = []

    backend = settings["database"].get("backend")
    if backend not in ("sql", "memory"):
        success = False
        errors.append({"path": "database/backend", "error": f"Unknown database backend {backend!r}."})

    storage = settings["storage"]
    if storage.get("provider") == "cloudinary":
        for key in ("cloud_name", "api_key", "api_secret"):
            if not storage.get(key):
                success = False
                errors.append({"path": f"storage/{key}", "error": f"Missing Cloudinary {key}."})

    max_size = settings["uploads"].get("max_file_size")
    if not isinstance(max_size, int) or max_size <= 0:
        success = False
        errors.append({"path": "uploads/max_file_size", "error": "Max file size must be a positive integer."})

    drive = settings.get("drive") or {}
    if drive.get("enabled"):
        if not drive.get("folder_id"):
            success = False
            errors.append({"path": "drive/folder_id", "error": "Google Drive folder ID is required."})
        if not os.path.exists(drive.get("credentials_file") or ""):
            success = False
            errors.append({"path": "drive/credentials_file", "error": "Google Drive service account file not found."})

    return success, errors
