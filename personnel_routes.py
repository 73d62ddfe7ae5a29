"""
Personnel API Module
Driver and staff lookups, including discipline state
"""

from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required

from services.driver_service import DriverService
from services.staff_service import StaffService
from warning_routes import current_actor_id

personnel_bp = Blueprint('personnel', __name__)

driver_service = DriverService()
staff_service = StaffService()


@personnel_bp.route('/drivers/<driver_id>', methods=['GET'])
@jwt_required()
def get_driver(driver_id):
    current_actor_id()
    return jsonify({'data': driver_service.get_driver_or_404(driver_id).to_dict()})


@personnel_bp.route('/staff/<staff_id>', methods=['GET'])
@jwt_required()
def get_staff(staff_id):
    current_actor_id()
    return jsonify({'data': staff_service.get_staff_or_404(staff_id).to_dict()})
