"""
Complaint API Module
Complaint intake and status updates
"""

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from models import ComplaintStatus
from services.complaint_service import ComplaintService
from utils.validators import parse_json_body, parse_optional_id, parse_enum
from warning_routes import current_actor_id, wants_pagination, page_args


complaint_bp = Blueprint('complaints', __name__)

complaint_service = ComplaintService()


@complaint_bp.route('', methods=['POST'])
@jwt_required()
def create_complaint():
    payload = parse_json_body(request)
    result = complaint_service.create_complaint(payload, reported_by=current_actor_id())
    return jsonify(result), 201


@complaint_bp.route('', methods=['GET'])
@jwt_required()
def list_complaints():
    current_actor_id()
    filters = {
        'driver_id': parse_optional_id(request.args.get('driverId'), 'Driver ID'),
        'staff_id': parse_optional_id(request.args.get('staffId'), 'Staff ID'),
        'status': parse_enum(ComplaintStatus, request.args.get('status'), 'Status'),
    }

    if wants_pagination():
        args = page_args()
        return jsonify(complaint_service.list_complaints_paginated(args['page'], args['limit'], **filters))

    return jsonify({'data': complaint_service.list_complaints(**filters)})


@complaint_bp.route('/<complaint_id>', methods=['GET'])
@jwt_required()
def get_complaint(complaint_id):
    current_actor_id()
    return jsonify({'data': complaint_service.get_complaint(complaint_id)})


@complaint_bp.route('/<complaint_id>/status', methods=['PATCH'])
@jwt_required()
def update_complaint_status(complaint_id):
    """Set status; RESOLVED/CLOSED may carry a WARNING or FIRE resolution action"""
    payload = parse_json_body(request)
    result = complaint_service.update_complaint_status(
        complaint_id, payload, resolved_by=current_actor_id()
    )
    return jsonify(result)
