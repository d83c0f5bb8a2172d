"""
Drive Routes - upload to, list and delete from the shared Google Drive folder
"""

from flask import Blueprint, current_app, request

from campushub.api_responses import handle_api_errors, success_response
from campushub.exceptions import StorageConfigurationException
from campushub.extensions import limiter, upload_rate_limit
from campushub.middleware.upload import receive_upload

drive_bp = Blueprint("drive", __name__, url_prefix="/api/drive")


def get_drive():
    drive = current_app.extensions.get("campushub_drive")
    if drive is None:
        raise StorageConfigurationException("Google Drive is not configured")
    return drive


@drive_bp.route("/upload", methods=["POST"])
@limiter.limit(upload_rate_limit)
@handle_api_errors
def drive_upload_api():
    drive = get_drive()
    with receive_upload(
        request.files.get("file"),
        current_app.config["CAMPUSHUB_UPLOAD_DIR"],
        current_app.config["CAMPUSHUB_MAX_FILE_SIZE"],
        current_app.config["CAMPUSHUB_DRIVE_ALLOWED_MIME_TYPES"],
    ) as upload:
        stored = drive.upload(upload.path, upload.original_name, upload.mime_type)
    return success_response(data={"file": stored.to_dict()}, message="File uploaded to Google Drive", status_code=201)


@drive_bp.route("/files", methods=["GET"])
@handle_api_errors
def drive_files_api():
    files = get_drive().list_files()
    return success_response(data={"files": [f.to_dict() for f in files], "count": len(files)})


@drive_bp.route("/files/<file_id>", methods=["DELETE"])
@handle_api_errors
def drive_delete_api(file_id):
    deleted = get_drive().delete(file_id)
    return success_response(data={"fileId": deleted}, message="File deleted from Google Drive")
