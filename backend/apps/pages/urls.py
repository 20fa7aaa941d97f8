from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import PageViewSet

app_name = 'pages'

router = SimpleRouter()
router.register(r'pages', PageViewSet, basename='page')

urlpatterns = [
    path('', include(router.urls)),
]
