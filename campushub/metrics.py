from prometheus_client import Counter, Gauge, Histogram, generate_latest, CONTENT_TYPE_LATEST
from flask import Response, request
import time

# API Metrics
api_request_duration_seconds = Histogram(
    "campushub_api_request_duration_seconds", "API request duration", ["endpoint", "method"]
)

api_requests_total = Counter(
    "campushub_api_requests_total", "Total API requests", ["endpoint", "method", "status_code"]
)

# Resource Metrics
resource_uploads_total = Counter(
    "campushub_resource_uploads_total", "Resource uploads", ["resource_type", "status"]
)

resource_downloads_total = Counter(
    "campushub_resource_downloads_total", "Resource download requests", ["resource_type"]
)

resource_deletions_total = Counter(
    "campushub_resource_deletions_total", "Resources removed from the catalog", ["mode"]
)

resources_active_total = Gauge("campushub_resources_active_total", "Active resources in the catalog")

# Object Storage Metrics
storage_operations_total = Counter(
    "campushub_storage_operations_total", "Object storage operations", ["operation", "status"]
)


def init_metrics(app):
    @app.route("/api/metrics")
    def metrics():
        service = app.extensions.get("campushub")
        if service is not None:
            resources_active_total.set(service.store.count())
        return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)

    @app.before_request
    def before_request():
        request.start_time = time.time()

    @app.after_request
    def after_request(response):
        duration = time.time() - getattr(request, "start_time", time.time())
        api_request_duration_seconds.labels(endpoint=request.endpoint or "unknown", method=request.method).observe(
            duration
        )
        api_requests_total.labels(
            endpoint=request.endpoint or "unknown", method=request.method, status_code=response.status_code
        ).inc()
        return response

    app.logger.info("Prometheus metrics initialized at /api/metrics")
