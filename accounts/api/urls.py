from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from . import views

app_name = 'accounts_api'

urlpatterns = [
    # Auth
    path('auth/signup/', views.signup, name='signup'),
    path('auth/token/', TokenObtainPairView.as_view(), name='token_obtain'),
    path('auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # Profile
    path('me/', views.me, name='me'),

    # Employee dashboard
    path('employee/coupon/', views.employee_coupon, name='employee_coupon'),
    path('employee/coupon/toggle/', views.employee_coupon_toggle, name='employee_coupon_toggle'),

    # Admin dashboard
    path('admin/users/', views.admin_users, name='admin_users'),
    path('admin/employees/', views.admin_employees, name='admin_employees'),
    path('admin/letters/', views.admin_letters, name='admin_letters'),
    path('admin/export/<str:kind>.csv', views.admin_export, name='admin_export'),
]
