"""
Catalog URLs using ViewSet routers.
"""

from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import CategoryViewSet, CollectionViewSet, ProductVariantViewSet, ProductViewSet

app_name = 'products'

router = SimpleRouter()
router.register(r'products', ProductViewSet, basename='product')
router.register(r'categories', CategoryViewSet, basename='category')
router.register(r'collections', CollectionViewSet, basename='collection')
router.register(r'variants', ProductVariantViewSet, basename='variant')

urlpatterns = [
    path('', include(router.urls)),
]
