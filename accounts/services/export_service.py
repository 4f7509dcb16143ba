"""
CSV exports for the admin dashboard.
"""
import csv
import io

from django.contrib.auth import get_user_model
from django.db.models import Count
from django.utils import timezone


def _user_rows():
    User = get_user_model()
    users = User.objects.filter(role=User.ROLE_USER).annotate(
        letter_count=Count('letters')
    ).order_by('-created_at')
    for user in users:
        yield [
            user.id, user.email, user.name, user.is_subscribed,
            user.subscription_plan or '', user.letter_count,
            user.created_at.isoformat(),
        ]


def _employee_rows():
    User = get_user_model()
    employees = User.objects.filter(role=User.ROLE_EMPLOYEE).annotate(
        referral_count=Count('coupon_referrals')
    ).order_by('-created_at')
    for employee in employees:
        coupon = employee.get_coupon()
        yield [
            employee.id, employee.email, employee.name,
            coupon.code if coupon else '', employee.points,
            employee.commission_earned, employee.referral_count,
            employee.created_at.isoformat(),
        ]


def _letter_rows():
    from letters.models import Letter

    for letter in Letter.objects.select_related('user').order_by('-created_at'):
        yield [
            letter.id, letter.user.email, letter.title, letter.recipient_name,
            letter.status, letter.created_at.isoformat(),
        ]


EXPORTS = {
    'users': (
        ['id', 'email', 'name', 'is_subscribed', 'subscription_plan', 'letters', 'created_at'],
        _user_rows,
    ),
    'employees': (
        ['id', 'email', 'name', 'coupon_code', 'points', 'commission_earned', 'referrals', 'created_at'],
        _employee_rows,
    ),
    'letters': (
        ['id', 'user_email', 'title', 'recipient_name', 'status', 'created_at'],
        _letter_rows,
    ),
}


def export_filename(kind):
    """e.g. users-2024-05-01.csv"""
    return f"{kind}-{timezone.localdate().isoformat()}.csv"


def export_csv(kind) -> str:
    """Render one of EXPORTS as CSV text. Raises KeyError for an unknown kind."""
    headers, rows = EXPORTS[kind]
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    writer.writerows(rows())
    return buffer.getvalue()
