import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException
from sqlalchemy.exc import SQLAlchemyError

from ...extensions import db
from ...hierarchy import HierarchyError
from . import errors_bp

log = logging.getLogger(__name__)


def _error(message: str, code: int):
    return jsonify(success=False, message=message), code


# 400 – bad input (validation errors raised by the service layer)
@errors_bp.app_errorhandler(ValueError)
def err_value(e):
    return _error(str(e), 400)


# 400 – writes that would break the task tree (e.g. reparent into own subtree)
@errors_bp.app_errorhandler(HierarchyError)
def err_hierarchy(e):
    return _error(str(e), 400)


# 401 – Unauthorized
@errors_bp.app_errorhandler(401)
def err_401(e):
    return _error("Authentication required", 401)


# 404 – Not Found
@errors_bp.app_errorhandler(404)
def err_404(e):
    return _error(e.description or f"Not found: {request.path}", 404)


# Fallback for uncaught HTTPException
@errors_bp.app_errorhandler(HTTPException)
def err_http(e: HTTPException):
    return _error(e.description or e.name, e.code)


# Store failures: the service already rolled back; log the request as a whole
@errors_bp.app_errorhandler(SQLAlchemyError)
def err_db(e):
    db.session.rollback()
    log.error("Database error on %s %s: %s", request.method, request.path, e)
    return _error("Database error", 500)


# Last-resort: any other Exception
@errors_bp.app_errorhandler(Exception)
def err_unexpected(e):
    db.session.rollback()
    log.exception("Unhandled error on %s %s", request.method, request.path)
    # Generic 500, no internals
    return _error("Internal server error", 500)
