"""
Warning API Module
Issue, list, fetch and delete disciplinary warnings
"""

from flask import Blueprint, request, jsonify, current_app, g
from flask_jwt_extended import jwt_required, get_jwt_identity

from services.warning_service import WarningService
from utils.validators import parse_json_body, parse_optional_id, parse_page_args


warning_bp = Blueprint('warnings', __name__)

warning_service = WarningService()


def current_actor_id():
    """JWT identity of the caller, also recorded for request logging"""
    identity = get_jwt_identity()
    actor_id = str(identity) if identity is not None else None
    g.current_user_id = actor_id
    return actor_id


def wants_pagination():
    return 'page' in request.args or 'limit' in request.args


def page_args():
    return parse_page_args(
        request.args,
        current_app.config['PAGINATION_DEFAULT_LIMIT'],
        current_app.config['PAGINATION_MAX_LIMIT'],
    )


@warning_bp.route('', methods=['POST'])
@jwt_required()
def create_warning():
    """Issue a warning; may auto-fire the target"""
    payload = parse_json_body(request)
    result = warning_service.issue_warning(payload, created_by=current_actor_id())
    return jsonify(result), 201


@warning_bp.route('', methods=['GET'])
@jwt_required()
def list_warnings():
    current_actor_id()
    driver_id = parse_optional_id(request.args.get('driverId'), 'Driver ID')
    staff_id = parse_optional_id(request.args.get('staffId'), 'Staff ID')

    if wants_pagination():
        args = page_args()
        return jsonify(warning_service.list_warnings_paginated(
            args['page'], args['limit'], driver_id=driver_id, staff_id=staff_id
        ))

    return jsonify({'data': warning_service.list_warnings(driver_id=driver_id, staff_id=staff_id)})


@warning_bp.route('/<warning_id>', methods=['GET'])
@jwt_required()
def get_warning(warning_id):
    current_actor_id()
    return jsonify({'data': warning_service.get_warning(warning_id)})


@warning_bp.route('/<warning_id>', methods=['DELETE'])
@jwt_required()
def delete_warning(warning_id):
    result = warning_service.delete_warning(warning_id, deleted_by=current_actor_id())
    return jsonify(result)
