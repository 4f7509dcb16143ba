import os
from django.contrib import admin
from django.urls import path, include

# Admin URL path - can be rotated via environment variable for security
ADMIN_URL = os.getenv('ADMIN_URL', 'manage-x7k9m2/')

urlpatterns = [
    path(ADMIN_URL, admin.site.urls),
    path('api/v1/', include('accounts.api.urls')),
    path('api/v1/billing/', include('billing.api.urls')),
    path('api/v1/letters/', include('letters.api.urls')),
]
