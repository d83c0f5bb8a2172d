from flask import current_app
from flask_restx import Api, Resource, fields
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import structlog

from campushub.constants import BUILD_VERSION
from campushub.db import db
from campushub.repositories.resource_store import SqlResourceStore
from campushub.utils import now_utc

logger = structlog.get_logger('main')


def check_database(store):
    if not isinstance(store, SqlResourceStore):
        return "memory"
    try:
        db.session.execute(text("SELECT 1"))
        return "ok"
    except SQLAlchemyError as e:
        logger.error(f"Health check database error: {e}")
        return "error"


def init_rest_api(blueprint):
    api = Api(blueprint, version='1.0', title='CampusHub API',
        description='Academic resource sharing API',
        doc='/docs'
    )

    ns_system = api.namespace('v1/system', description='System operations')

    health_model = api.model('Health', {
        'success': fields.Boolean(description='Request succeeded'),
        'message': fields.String(description='Human readable status'),
        'status': fields.String(description='healthy or degraded'),
        'timestamp': fields.String(description='ISO-8601 check time'),
        'version': fields.String(description='Build version'),
        'database': fields.String(description='ok, error or memory'),
        'storage': fields.String(description='ok or unreachable'),
    })

    version_model = api.model('Version', {
        'success': fields.Boolean(),
        'message': fields.String(),
        'version': fields.String(description='Build version'),
        'api_version': fields.String(description='API version'),
    })

    @ns_system.route('/health')
    class Health(Resource):
        @ns_system.doc('health_check')
        @ns_system.marshal_with(health_model)
        def get(self):
            """Report database and object storage reachability"""
            service = current_app.extensions['campushub']
            database = check_database(service.store)
            storage = "ok" if service.storage.ping() else "unreachable"
            status = "healthy" if database != "error" and storage == "ok" else "degraded"
            return {
                'success': True,
                'message': 'Health check successful',
                'status': status,
                'timestamp': now_utc().isoformat(),
                'version': BUILD_VERSION,
                'database': database,
                'storage': storage,
            }

    @ns_system.route('/version')
    class Version(Resource):
        @ns_system.doc('version')
        @ns_system.marshal_with(version_model)
        def get(self):
            """Build and API version"""
            return {'success': True, 'message': 'OK', 'version': BUILD_VERSION, 'api_version': '1.0'}

    return api
