"""
URL configuration demonstrating best practices:
- API versioning
- Proper URL namespacing
- Admin URL customization for security
- Health check endpoint
"""

from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
    TokenVerifyView,
)
from apps.core.views import health_check, api_root

# Customize admin URL for security (configure in production settings)
admin_url = getattr(settings, 'ADMIN_URL', 'admin/')

urlpatterns = [
    # Admin
    path(admin_url, admin.site.urls),

    # Health check
    path('health/', health_check, name='health-check'),

    # API root
    path('api/', api_root, name='api-root'),

    # API v1
    path('api/v1/', include([
        # Authentication
        path('auth/', include([
            path('token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
            path('token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
            path('token/verify/', TokenVerifyView.as_view(), name='token_verify'),
        ])),

        # Each app router registers its own resource prefixes
        path('users/', include('apps.users.urls')),
        path('', include('apps.orders.urls')),
        path('', include('apps.products.urls')),
        path('', include('apps.customers.urls')),
        path('', include('apps.discounts.urls')),
        path('', include('apps.pages.urls')),
        path('', include('apps.media.urls')),
        path('', include('apps.analytics.urls')),
        path('', include('apps.dashboard.urls')),
        path('', include('apps.core.urls')),
    ])),
]

if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)

    # Debug toolbar
    if 'debug_toolbar' in settings.INSTALLED_APPS:
        urlpatterns += [
            path('__debug__/', include('debug_toolbar.urls')),
        ]

# Customize admin site
admin.site.site_header = 'Storefront Administration'
admin.site.site_title = 'Storefront Admin'
admin.site.index_title = 'Store management'
