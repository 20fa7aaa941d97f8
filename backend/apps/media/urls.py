from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import MediaFileViewSet, MediaFolderViewSet

app_name = 'media'

router = SimpleRouter()
router.register(r'media', MediaFileViewSet, basename='media')
router.register(r'media-folders', MediaFolderViewSet, basename='media-folder')

urlpatterns = [
    path('', include(router.urls)),
]
