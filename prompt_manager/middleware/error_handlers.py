"""
Error Handling Middleware
Renders domain and database errors as consistent JSON responses
"""
from flask import jsonify
from sqlalchemy.exc import OperationalError, IntegrityError
from werkzeug.exceptions import HTTPException

from prompt_manager.errors import PromptManagerError
from prompt_manager.infra.db import db
from prompt_manager.infra.log import get_logger

logger = get_logger(__name__)


def register_error_handlers(app):
    """Register JSON error handlers on the app"""

    @app.errorhandler(PromptManagerError)
    def handle_domain_error(e):
        """Render domain errors with their own status; 4xx details are safe to show"""
        if e.status_code >= 500:
            logger.error(f"{type(e).__name__}: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(OperationalError)
    def handle_operational_error(e):
        """Handle database operational errors (connection, table not found, etc.)"""
        error_msg = str(e.orig) if hasattr(e, 'orig') else str(e)
        logger.error(f"Database operational error: {error_msg}")
        db.session.rollback()
        return jsonify({
            'error': 'database_error',
            'message': 'Database operation failed. Please try again later.'
        }), 503

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e):
        """Handle database integrity errors (unique constraint, not null)"""
        error_msg = str(e.orig) if hasattr(e, 'orig') else str(e)
        logger.error(f"Database integrity error: {error_msg}")
        db.session.rollback()

        if 'unique' in error_msg.lower() or 'duplicate' in error_msg.lower():
            return jsonify({
                'error': 'duplicate_entry',
                'message': 'This entry already exists'
            }), 409

        return jsonify({
            'error': 'integrity_error',
            'message': 'Data integrity constraint violated'
        }), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Keep werkzeug's status codes but answer in JSON"""
        return jsonify({
            'error': (e.name or 'http_error').lower().replace(' ', '_'),
            'message': e.description
        }), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.exception(f"Unhandled error: {e}")
        return jsonify({
            'error': 'internal_error',
            'message': 'Unexpected server error'
        }), 500
