"""
Core URLs: storefront search and index maintenance.
"""

from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import SearchViewSet

app_name = 'core'

router = SimpleRouter()
router.register(r'search', SearchViewSet, basename='search')

urlpatterns = [
    path('', include(router.urls)),
]
