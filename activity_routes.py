"""
Activity API Module
Read-only access to the discipline activity log
"""

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from models import ActivityAction, ActivityEntityType
from services.activity_service import ActivityService
from utils.validators import parse_optional_id, parse_enum
from warning_routes import current_actor_id, page_args

activity_bp = Blueprint('activities', __name__)


@activity_bp.route('', methods=['GET'])
@jwt_required()
def list_activities():
    """Always paginated, newest first"""
    current_actor_id()
    args = page_args()
    return jsonify(ActivityService.list_activities_paginated(
        args['page'], args['limit'],
        action=parse_enum(ActivityAction, request.args.get('action'), 'Action'),
        entity_type=parse_enum(ActivityEntityType, request.args.get('entityType'), 'Entity type'),
        driver_id=parse_optional_id(request.args.get('driverId'), 'Driver ID'),
        staff_id=parse_optional_id(request.args.get('staffId'), 'Staff ID'),
        franchise_id=parse_optional_id(request.args.get('franchiseId'), 'Franchise ID'),
    ))


@activity_bp.route('/<activity_id>', methods=['GET'])
@jwt_required()
def get_activity(activity_id):
    current_actor_id()
    return jsonify({'data': ActivityService.get_activity(activity_id)})
