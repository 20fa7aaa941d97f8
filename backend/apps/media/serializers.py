"""Media serializers."""

from rest_framework import serializers

from apps.core.exceptions import ConflictError
from .models import MediaFile, MediaFolder


class MediaFolderSerializer(serializers.ModelSerializer):
    name = serializers.CharField(min_length=1, max_length=100)
    file_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = MediaFolder
        fields = ['id', 'name', 'parent', 'file_count', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_parent(self, value):
        ancestor = value
        while ancestor is not None and self.instance is not None:
            if ancestor.pk == self.instance.pk:
                raise serializers.ValidationError('A folder cannot be moved inside itself')
            ancestor = ancestor.parent
        return value

    def validate(self, attrs):
        name = attrs.get('name', getattr(self.instance, 'name', None))
        parent = attrs.get('parent', getattr(self.instance, 'parent', None))
        siblings = MediaFolder.objects.filter(name__iexact=name, parent=parent)
        if self.instance is not None:
            siblings = siblings.exclude(pk=self.instance.pk)
        if siblings.exists():
            raise ConflictError(f"A folder named '{name}' already exists here")
        return attrs


class MediaFileSerializer(serializers.ModelSerializer):
    filename = serializers.CharField(min_length=1, max_length=255)
    size = serializers.IntegerField(min_value=0, required=False)
    folder = serializers.PrimaryKeyRelatedField(
        queryset=MediaFolder.objects.all(), required=False, allow_null=True
    )

    class Meta:
        model = MediaFile
        fields = [
            'id', 'filename', 'url', 'size', 'mime_type', 'alt_text', 'folder',
            'created_at', 'updated_at', 'deleted_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at', 'deleted_at']

    def get_fields(self):
        fields = super().get_fields()
        if self.partial:
            # PATCH may only rename, move or re-describe a file
            for name in ('url', 'size', 'mime_type'):
                fields[name].read_only = True
        return fields
