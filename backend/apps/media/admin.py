from django.contrib import admin
from .models import MediaFile, MediaFolder


@admin.register(MediaFolder)
class MediaFolderAdmin(admin.ModelAdmin):
    list_display = ['name', 'parent', 'created_at']


@admin.register(MediaFile)
class MediaFileAdmin(admin.ModelAdmin):
    list_display = ['filename', 'mime_type', 'size', 'folder', 'created_at', 'deleted_at']
    list_filter = ['mime_type']
    search_fields = ['filename']
