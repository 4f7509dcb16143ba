from django.urls import path

from . import views

app_name = 'billing_api'

urlpatterns = [
    path('plans/', views.plan_list, name='plan_list'),
    path('checkout/', views.create_checkout_session, name='checkout'),
    path('coupons/validate/', views.coupon_validate, name='coupon_validate'),
    path('me/', views.my_billing, name='my_billing'),
    path('webhook/', views.stripe_webhook, name='stripe_webhook'),
]
