from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import AnalyticsScriptViewSet

app_name = 'analytics'

router = SimpleRouter()
router.register(r'analytics', AnalyticsScriptViewSet, basename='analytics')

urlpatterns = [
    path('', include(router.urls)),
]
