"""
Account signup, including the employee referral setup.
"""
import logging
import re

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from common.exceptions import SignupConflictError, ValidationError


logger = logging.getLogger(__name__)

COUPON_PREFIX = 'SAVE20'
COUPON_NAME_LENGTH = 6

SIGNUP_ROLES = ('user', 'employee')


def derive_coupon_code(name: str) -> str:
    """
    Build an employee's coupon code from their display name.

    "Jane Doe" -> "SAVE20JANEDO". Collisions are possible and are left to
    the unique constraint on Coupon.code.
    """
    compact = re.sub(r'\s+', '', (name or '').upper())
    return f"{COUPON_PREFIX}{compact[:COUPON_NAME_LENGTH]}"


def signup(email: str, password: str, name: str, role: str = 'user'):
    """
    Create a profile. Employees also get an EmployeeMeta row and a coupon.

    Everything is created in one transaction, so a coupon code collision
    leaves no half-created account behind and the caller can simply retry
    (e.g. with a different display name).
    """
    from accounts.models import Coupon, EmployeeMeta

    User = get_user_model()

    if role not in SIGNUP_ROLES:
        raise ValidationError(f'Invalid role: {role}')
    if not email:
        raise ValidationError('Missing required field: email')
    if not password:
        raise ValidationError('Missing required field: password')
    if not name or not name.strip():
        raise ValidationError('Missing required field: name')

    email = User.objects.normalize_email(email)
    if User.objects.filter(email__iexact=email).exists():
        raise ValidationError('An account with this email already exists.')

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                email=email,
                password=password,
                name=name.strip(),
                role=role,
            )

            if role == User.ROLE_EMPLOYEE:
                coupon_code = derive_coupon_code(name)
                EmployeeMeta.objects.create(profile=user, coupon_code=coupon_code)
                Coupon.objects.create(
                    code=coupon_code,
                    employee=user,
                    percent_off=settings.EMPLOYEE_COUPON_PERCENT_OFF,
                    active=True,
                )
    except IntegrityError:
        logger.warning(f'Signup conflict for {email} (role={role})', exc_info=True)
        raise SignupConflictError(
            'That referral code is already taken. Please try again with a different name.'
            if role == User.ROLE_EMPLOYEE else None
        )

    logger.info(f'Created {role} account {user.id}')
    return user
