"""
Resource Routes - upload, listing, search, download and deletion of academic resources
"""

from flask import Blueprint, current_app, request

from campushub.api_responses import handle_api_errors, not_found_response, success_response
from campushub.constants import FILE_RESOURCE_TYPES, RESOURCE_TYPE_CONTENT, RESOURCE_TYPE_SYLLABUS
from campushub.exceptions import ValidationException
from campushub.extensions import limiter, upload_rate_limit
from campushub.middleware.upload import receive_upload
from campushub.schemas import (
    BulkDeleteRequest,
    ContentUpload,
    FileResourceUpload,
    ResourceQuery,
    SearchQuery,
    SubjectQuery,
    SyllabusUpload,
)

resources_bp = Blueprint("resources", __name__, url_prefix="/api/resources")


def get_service():
    return current_app.extensions["campushub"]


def _json_body():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationException(
            "Request body must be a JSON object",
            errors=[{"field": "body", "message": "Expected a JSON object", "value": None}],
        )
    return body


@resources_bp.route("/upload/<resource_type>", methods=["POST"])
@limiter.limit(upload_rate_limit)
@handle_api_errors
def upload_resource_api(resource_type):
    """Create a resource; pyq/notes take a multipart PDF, syllabus/content a JSON body"""
    service = get_service()

    if resource_type in FILE_RESOURCE_TYPES:
        payload = FileResourceUpload.from_args(request.form)
        with receive_upload(
            request.files.get("file"),
            current_app.config["CAMPUSHUB_UPLOAD_DIR"],
            current_app.config["CAMPUSHUB_MAX_FILE_SIZE"],
            current_app.config["CAMPUSHUB_ALLOWED_MIME_TYPES"],
        ) as upload:
            resource = service.create_file_resource(resource_type, payload, upload)
    elif resource_type == RESOURCE_TYPE_SYLLABUS:
        resource = service.create_syllabus_resource(SyllabusUpload.model_validate(_json_body()))
    elif resource_type == RESOURCE_TYPE_CONTENT:
        resource = service.create_content_resource(ContentUpload.model_validate(_json_body()))
    else:
        return not_found_response("Upload type", resource_type)

    return success_response(
        data={"resource": resource.to_summary()},
        message="Resource uploaded successfully",
        status_code=201,
    )


@resources_bp.route("", methods=["GET"])
@handle_api_errors
def list_resources_api():
    query = ResourceQuery.from_args(request.args)
    return success_response(data=get_service().list_resources(query), message="Resources retrieved successfully")


@resources_bp.route("/search", methods=["GET"])
@handle_api_errors
def search_resources_api():
    query = SearchQuery.from_args(request.args)
    return success_response(data=get_service().search_resources(query), message="Search completed successfully")


@resources_bp.route("/<int:resource_id>", methods=["GET"])
@handle_api_errors
def get_resource_api(resource_id):
    resource = get_service().get_resource(resource_id)
    return success_response(data={"resource": resource}, message="Resource retrieved successfully")


@resources_bp.route("/<int:resource_id>/download", methods=["GET"])
@handle_api_errors
def download_resource_api(resource_id):
    download = get_service().download_resource(resource_id)
    return success_response(data={"download": download}, message="Download link retrieved successfully")


@resources_bp.route("/<int:resource_id>", methods=["DELETE"])
@handle_api_errors
def delete_resource_api(resource_id):
    deleted = get_service().delete_resource(resource_id)
    return success_response(data={"deletedResource": deleted}, message="Resource deleted successfully")


@resources_bp.route("/bulk", methods=["DELETE"])
@handle_api_errors
def bulk_delete_resources_api():
    payload = BulkDeleteRequest.model_validate(_json_body())
    result = get_service().bulk_delete(payload.resource_ids)
    return success_response(data=result, message=f"Successfully deleted {result['deletedCount']} resources")


@resources_bp.route("/stats/overview", methods=["GET"])
@handle_api_errors
def resource_stats_api():
    return success_response(data=get_service().stats(), message="Resource statistics retrieved successfully")


@resources_bp.route("/meta/branches", methods=["GET"])
@handle_api_errors
def branches_api():
    return success_response(data={"branches": get_service().branches()}, message="Branches retrieved successfully")


@resources_bp.route("/meta/subjects", methods=["GET"])
@handle_api_errors
def subjects_api():
    query = SubjectQuery.from_args(request.args)
    return success_response(data=get_service().subjects(query), message="Subjects retrieved successfully")
