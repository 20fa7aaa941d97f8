"""
Media library views.

Features:
- Soft-deletable files; a file still shown by a product image
  cannot be deleted permanently
- Folder tree that must be emptied before a folder is removed
"""

import logging

from django.db import transaction
from django.db.models import Count, Q
from rest_framework import status, viewsets
from rest_framework.response import Response

from apps.core.exceptions import ConflictError
from apps.core.mixins import SoftDeleteViewSetMixin
from .filters import MediaFileFilter
from .models import MediaFile, MediaFolder
from .serializers import MediaFileSerializer, MediaFolderSerializer

logger = logging.getLogger(__name__)


class MediaFileViewSet(SoftDeleteViewSetMixin, viewsets.ModelViewSet):
    queryset = MediaFile.objects.select_related('folder')
    serializer_class = MediaFileSerializer
    list_key = 'media'
    filterset_class = MediaFileFilter
    search_fields = ['filename']
    sort_fields = {
        'filename': 'filename',
        'size': 'size',
        'created_at': 'created_at',
        'updated_at': 'updated_at',
    }
    http_method_names = SoftDeleteViewSetMixin.http_method_names + ['patch']

    def check_permanent_delete(self, instance):
        from apps.products.models import ProductImage

        products = list(
            ProductImage.objects.filter(url=instance.url)
            .values_list('product__name', flat=True)
            .distinct()[:5]
        )
        if products:
            raise ConflictError(
                'Cannot delete file. It is used by one or more product images.',
                details=[{'product': name} for name in products],
            )


class MediaFolderViewSet(viewsets.ModelViewSet):
    """
    Folders are plain rows (no trash).

    Endpoints:
    - GET    /api/v1/media-folders/
    - POST   /api/v1/media-folders/
    - PUT    /api/v1/media-folders/{id}/   rename or move
    - DELETE /api/v1/media-folders/{id}/   409 while not empty
    """
    queryset = MediaFolder.objects.annotate(
        file_count=Count('files', filter=Q(files__deleted_at__isnull=True))
    ).order_by('name', 'pk')
    serializer_class = MediaFolderSerializer
    pagination_class = None
    http_method_names = ['get', 'post', 'put', 'delete', 'head', 'options']

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({'folders': serializer.data})

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        folder = serializer.save()
        logger.info(f"Media folder {folder.pk} created")
        return Response({'id': folder.pk}, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        super().update(request, *args, **kwargs)
        return Response({'success': True})

    def destroy(self, request, *args, **kwargs):
        folder = self.get_object()
        files = MediaFile.objects.filter(folder=folder).count()
        children = folder.children.count()
        if files or children:
            raise ConflictError(
                'Cannot delete folder. Move or delete its contents first.',
                details=[{'files': files, 'folders': children}],
            )

        with transaction.atomic():
            folder.delete()
        logger.info(f"Media folder {kwargs.get('pk')} deleted")
        return Response(status=status.HTTP_204_NO_CONTENT)
