from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import DiscountViewSet

app_name = 'discounts'

router = SimpleRouter()
router.register(r'discounts', DiscountViewSet, basename='discount')

urlpatterns = [
    path('', include(router.urls)),
]
