"""
Media library models.

Files are stored elsewhere (object storage / CDN); these rows hold
their metadata and the folder tree used to organise them.
"""

from django.db import models

from apps.core.models import BaseModel, TimeStampedModel


class MediaFolder(TimeStampedModel):
    name = models.CharField(max_length=100)
    parent = models.ForeignKey(
        'self',
        on_delete=models.PROTECT,
        blank=True,
        null=True,
        related_name='children'
    )

    class Meta:
        db_table = 'media_folders'
        ordering = ['name']

    def __str__(self):
        return self.name


class MediaFile(BaseModel):
    """Uploaded asset."""
    id_prefix = 'file'

    filename = models.CharField(max_length=255)
    url = models.URLField(max_length=500)
    size = models.PositiveBigIntegerField(default=0)
    mime_type = models.CharField(max_length=100, db_index=True)
    alt_text = models.CharField(max_length=255, blank=True, null=True)
    folder = models.ForeignKey(
        MediaFolder,
        on_delete=models.PROTECT,
        blank=True,
        null=True,
        related_name='files'
    )

    class Meta:
        db_table = 'media'
        verbose_name = 'media file'
        ordering = ['-created_at']

    def __str__(self):
        return self.filename

    @property
    def is_image(self):
        return self.mime_type.startswith('image/')
