import os

APP_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.environ.get("CAMPUSHUB_DATA_DIR", os.path.join(APP_DIR, "data"))
CONFIG_DIR = os.path.join(DATA_DIR, "config")
DB_FILE = os.path.join(CONFIG_DIR, "campushub.db")
CONFIG_FILE = os.environ.get("CAMPUSHUB_CONFIG", os.path.join(CONFIG_DIR, "settings.yaml"))
UPLOAD_DIR = os.path.join(DATA_DIR, "uploads")
DRIVE_CREDENTIALS_FILE = os.path.join(CONFIG_DIR, "service-account.json")

CAMPUSHUB_DB = "sqlite:///" + DB_FILE

BUILD_VERSION = "1.0.0"

BRANCHES = {
    "CSE": "Computer Science and Engineering",
    "ECE": "Electronics and Communication Engineering",
    "ME": "Mechanical Engineering",
    "EIE": "Electronics and Instrumentation Engineering",
    "BT": "Biotechnology",
    "BM": "Biomedical Engineering",
    "FT": "Food Technology",
    "IT": "Information Technology",
}

MIN_SEMESTER = 1
MAX_SEMESTER = 8

RESOURCE_TYPE_PYQ = "pyq"
RESOURCE_TYPE_NOTES = "notes"
RESOURCE_TYPE_SYLLABUS = "syllabus"
RESOURCE_TYPE_CONTENT = "content"

RESOURCE_TYPES = [
    RESOURCE_TYPE_PYQ,
    RESOURCE_TYPE_NOTES,
    RESOURCE_TYPE_SYLLABUS,
    RESOURCE_TYPE_CONTENT,
]
FILE_RESOURCE_TYPES = [RESOURCE_TYPE_PYQ, RESOURCE_TYPE_NOTES]

SORT_FIELDS = ["uploadedAt", "title", "downloadCount", "semester"]
SORT_ORDERS = ["asc", "desc"]
DEFAULT_SORT_BY = "uploadedAt"
DEFAULT_SORT_ORDER = "desc"

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

MAX_FILE_SIZE = 100 * 1024 * 1024  # 100MB
ALLOWED_MIME_TYPES = ["application/pdf"]

STORAGE_FOLDER = "campushub-resources"
# Order matters: PDFs usually land as 'raw', but the provider may report 'image'
STORAGE_RESOURCE_TYPES = ["raw", "image", "video"]

TOP_CONTENT_LIMIT = 10

DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]
DRIVE_PAGE_SIZE = 20

DEFAULT_SETTINGS = {
    "server": {
        "host": "0.0.0.0",
        "port": 5000,
    },
    "database": {
        "backend": "sql",
        "url": CAMPUSHUB_DB,
    },
    "storage": {
        "provider": "cloudinary",
        "cloud_name": "",
        "api_key": "",
        "api_secret": "",
        "folder": STORAGE_FOLDER,
    },
    "uploads": {
        "dir": UPLOAD_DIR,
        "max_file_size": MAX_FILE_SIZE,
        "allowed_mime_types": ALLOWED_MIME_TYPES,
    },
    "resources": {
        "soft_delete": False,
    },
    "drive": {
        "enabled": False,
        "credentials_file": DRIVE_CREDENTIALS_FILE,
        "folder_id": "",
        "page_size": DRIVE_PAGE_SIZE,
        "allowed_mime_types": None,
    },
    "rate_limits": {
        "enabled": True,
        "default": "1000 per hour",
        "upload": "30 per hour",
    },
    "logging": {
        "level": "INFO",
        "format": "console",
    },
}
