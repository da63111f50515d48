"""
Waitlist routes (public).
"""
from flask import Blueprint, request, jsonify
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from yenko.errors import InvalidInput, InvalidPhone, Conflict
from yenko.extensions import db, limiter
from yenko.models import WaitlistEntry
from yenko.utils import validate_ghana_phone, validate_email

waitlist_bp = Blueprint('waitlist', __name__, url_prefix='/api/waitlist')

WAITLIST_ROLES = ('driver', 'passenger')


@waitlist_bp.route('/join', methods=['POST'])
@limiter.limit("5 per minute")
def join():
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    phone = (data.get('phone') or '').strip()
    area = (data.get('area') or '').strip()
    role = (data.get('role') or '').strip().lower()
    email = (data.get('email') or '').strip() or None

    if not name or not phone or not area or not role:
        raise InvalidInput('Name, phone, area, and role are required')
    if not validate_ghana_phone(phone):
        raise InvalidPhone()
    if role not in WAITLIST_ROLES:
        raise InvalidInput('Role must be driver or passenger')
    if email and not validate_email(email):
        raise InvalidInput('Invalid email address')

    existing = db.session.execute(select(WaitlistEntry.id).where(WaitlistEntry.phone == phone)).first()
    if existing:
        raise Conflict('You are already on the waitlist', code='ALREADY_ON_WAITLIST')

    db.session.add(WaitlistEntry(name=name, phone=phone, email=email, area=area, role=role))
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict('You are already on the waitlist', code='ALREADY_ON_WAITLIST')

    return jsonify({'success': True, 'message': f'Successfully joined the {role} waitlist!'}), 201


@waitlist_bp.route('/stats', methods=['GET'])
def stats():
    rows = db.session.execute(
        select(WaitlistEntry.role, func.count(WaitlistEntry.id)).group_by(WaitlistEntry.role)
    ).all()
    by_role = {role: 0 for role in WAITLIST_ROLES}
    by_role.update({role: int(count) for role, count in rows})
    return jsonify({'success': True, 'total': sum(by_role.values()), 'byRole': by_role}), 200
