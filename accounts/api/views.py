import logging

from django.contrib.auth import get_user_model
from django.db.models import Count
from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken

from accounts.permissions import IsAdminRole, IsEmployee
from accounts.services import export_service
from accounts.services.signup_service import signup as signup_account
from billing.api.serializers import CouponUsageSerializer
from common.exceptions import AppError
from .serializers import (
    AdminEmployeeSerializer, AdminUserSerializer, CouponSerializer,
    ProfileSerializer, ProfileUpdateSerializer, SignupSerializer,
)

logger = logging.getLogger(__name__)

User = get_user_model()


@api_view(['POST'])
@permission_classes([AllowAny])
def signup(request):
    """Create a user or employee account and return JWT tokens."""
    serializer = SignupSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        user = signup_account(data['email'], data['password'], data['name'], role=data['role'])
    except AppError as e:
        return Response({'error': e.message}, status=e.status_code)

    refresh = RefreshToken.for_user(user)
    return Response({
        'profile': ProfileSerializer(user).data,
        'access': str(refresh.access_token),
        'refresh': str(refresh),
    }, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def me(request):
    """The caller's profile."""
    if request.method == 'PATCH':
        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()

    return Response({'profile': ProfileSerializer(request.user).data})


# =============================================================================
# EMPLOYEE
# =============================================================================

@api_view(['GET'])
@permission_classes([IsEmployee])
def employee_coupon(request):
    """Coupon, referral stats and recent redemptions for the employee dashboard."""
    employee = request.user
    coupon = employee.get_coupon()
    usages = employee.coupon_referrals.select_related('user', 'subscription').order_by('-created_at')[:20]

    return Response({
        'coupon': CouponSerializer(coupon).data if coupon else None,
        'points': employee.points,
        'commission_earned': str(employee.commission_earned),
        'usages': CouponUsageSerializer(usages, many=True).data,
    })


@api_view(['POST'])
@permission_classes([IsEmployee])
def employee_coupon_toggle(request):
    """Switch the employee's coupon on or off."""
    coupon = request.user.get_coupon()
    if coupon is None:
        return Response({'error': 'No coupon found.'}, status=status.HTTP_404_NOT_FOUND)

    coupon.active = not coupon.active
    coupon.save(update_fields=['active'])
    logger.info(f'Coupon {coupon.code} {"activated" if coupon.active else "deactivated"}')
    return Response({'coupon': CouponSerializer(coupon).data})


# =============================================================================
# ADMIN
# =============================================================================

@api_view(['GET'])
@permission_classes([IsAdminRole])
def admin_users(request):
    users = User.objects.filter(role=User.ROLE_USER).annotate(
        letter_count=Count('letters')
    ).order_by('-created_at')
    return Response({'users': AdminUserSerializer(users, many=True).data})


@api_view(['GET'])
@permission_classes([IsAdminRole])
def admin_employees(request):
    employees = User.objects.filter(role=User.ROLE_EMPLOYEE).annotate(
        referral_count=Count('coupon_referrals')
    ).order_by('-created_at')
    return Response({'employees': AdminEmployeeSerializer(employees, many=True).data})


@api_view(['GET'])
@permission_classes([IsAdminRole])
def admin_letters(request):
    from letters.api.serializers import AdminLetterSerializer
    from letters.models import Letter

    letters = Letter.objects.select_related('user').order_by('-created_at')
    status_filter = request.query_params.get('status')
    if status_filter:
        letters = letters.filter(status=status_filter)
    return Response({'letters': AdminLetterSerializer(letters, many=True).data})


@api_view(['GET'])
@permission_classes([IsAdminRole])
def admin_export(request, kind):
    """Download users, employees or letters as CSV."""
    if kind not in export_service.EXPORTS:
        return Response({'error': f'Unknown export: {kind}'}, status=status.HTTP_404_NOT_FOUND)

    response = HttpResponse(export_service.export_csv(kind), content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename="{export_service.export_filename(kind)}"'
    return response
