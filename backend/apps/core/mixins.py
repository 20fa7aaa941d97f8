"""
Generic soft-deletable resource for DRF viewsets.

Best practices demonstrated:
- One lifecycle implementation shared by every admin entity
- Hooks for entity-specific dependency checks and side effects
- All-or-nothing bulk operations inside a single transaction
- Search index refresh scheduled after commit

Endpoints provided on top of ModelViewSet::

    GET    /<entity>/?search=&sort=&order=&page=&limit=&trashed=
    POST   /<entity>/                      -> {"id": ...}
    PUT    /<entity>/<id>/                 -> {"success": true}
    DELETE /<entity>/<id>/                 -> 204 (soft delete)
    POST   /<entity>/<id>/restore/         -> 204
    DELETE /<entity>/<id>/permanent/       -> 204
    POST   /<entity>/bulk-delete/          -> 204
    POST   /<entity>/bulk-restore/         -> 204
"""

import logging

from django.db import transaction
from django.http import Http404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from .exceptions import ConflictError, InvalidStateError
from .filters import SortFilter
from .serializers import BulkDeleteSerializer, BulkRestoreSerializer
from .tasks import schedule_reindex

logger = logging.getLogger(__name__)

TRUTHY = ('1', 'true', 'yes', 'on')


class SoftDeleteViewSetMixin:
    """
    Mix into a ``viewsets.ModelViewSet`` whose model extends
    ``apps.core.models.BaseModel``.

    Subclasses set ``list_key`` (the key of the row list in list
    responses), ``search_fields``, ``sort_fields`` and optionally
    ``filterset_class``. Override the ``check_*`` hooks to block an
    operation with ConflictError and the ``perform_*`` hooks to adjust
    dependents.
    """
    list_key = 'results'
    search_fields = ()
    sort_fields = {}
    default_sort = '-updated_at'
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, SortFilter]
    http_method_names = ['get', 'post', 'put', 'delete', 'head', 'options']

    # Refresh the search index after mutations
    reindex = False

    # Actions that may see trashed rows
    lifecycle_actions = ('retrieve', 'restore', 'permanent', 'bulk_delete', 'bulk_restore')

    def is_trashed_request(self):
        return self.request.query_params.get('trashed', '').lower() in TRUTHY

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action in self.lifecycle_actions:
            return queryset
        if self.action == 'list' and self.is_trashed_request():
            return queryset.trashed()
        return queryset.active()

    @property
    def entity_name(self):
        return self.queryset.model._meta.verbose_name.capitalize()

    @property
    def entity_plural(self):
        return self.queryset.model._meta.verbose_name_plural

    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            raise NotFound(f'{self.entity_name} not found')

    # Hooks

    def check_soft_delete(self, instance):
        """Raise ConflictError to block moving ``instance`` to the trash."""

    def perform_soft_delete(self, instance):
        instance.delete()

    def check_restore(self, instance):
        model = type(instance)
        for field in model.unique_active_fields:
            value = getattr(instance, field)
            if not value:
                continue
            taken = model.objects.active().filter(**{field: value}).exclude(pk=instance.pk)
            if taken.exists():
                raise ConflictError(
                    f"Cannot restore {model._meta.verbose_name}: "
                    f"{field.replace('_', ' ')} '{value}' is already in use"
                )

    def perform_restore(self, instance):
        instance.restore()

    def check_permanent_delete(self, instance):
        """Raise ConflictError while dependents still reference ``instance``."""

    def perform_permanent_delete(self, instance):
        instance.hard_delete()

    def after_change(self, ids):
        """Runs after every successful mutation."""
        if self.reindex:
            schedule_reindex(self.queryset.model._meta.label, ids)

    # CRUD

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            instance = serializer.save()

        logger.info(f"{self.entity_name} {instance.pk} created")
        self.after_change([instance.pk])
        return Response({'id': instance.pk}, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            serializer.save()

        logger.info(f"{self.entity_name} {instance.pk} updated")
        self.after_change([instance.pk])
        return Response({'success': True})

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()

        with transaction.atomic():
            self.check_soft_delete(instance)
            self.perform_soft_delete(instance)

        logger.info(f"{self.entity_name} {instance.pk} moved to trash")
        self.after_change([instance.pk])
        return Response(status=status.HTTP_204_NO_CONTENT)

    # Lifecycle actions

    @action(detail=True, methods=['post'])
    def restore(self, request, pk=None):
        instance = self.get_object()
        if not instance.is_deleted:
            raise InvalidStateError(f'{self.entity_name} is not deleted')

        with transaction.atomic():
            self.check_restore(instance)
            self.perform_restore(instance)

        logger.info(f"{self.entity_name} {instance.pk} restored")
        self.after_change([instance.pk])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['delete'])
    def permanent(self, request, pk=None):
        instance = self.get_object()
        if not instance.is_deleted:
            raise InvalidStateError(
                f'{self.entity_name} must be moved to trash before it can be permanently deleted'
            )

        with transaction.atomic():
            self.check_permanent_delete(instance)
            self.perform_permanent_delete(instance)

        logger.info(f"{self.entity_name} {pk} permanently deleted")
        self.after_change([pk])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['post'], url_path='bulk-delete')
    def bulk_delete(self, request):
        serializer = BulkDeleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ids = list(dict.fromkeys(serializer.validated_data['ids']))
        permanent = serializer.validated_data['permanent']

        queryset = self.get_queryset()
        queryset = queryset.trashed() if permanent else queryset.active()

        if permanent:
            check, perform = self.check_permanent_delete, self.perform_permanent_delete
        else:
            check, perform = self.check_soft_delete, self.perform_soft_delete

        with transaction.atomic():
            instances = self._get_bulk_instances(queryset, ids)
            self._run_bulk_checks(instances, check, 'deleted')
            for instance in instances:
                perform(instance)

        verb = 'permanently deleted' if permanent else 'moved to trash'
        logger.info(f"Bulk {verb}: {len(ids)} {self.entity_plural}")
        self.after_change(ids)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['post'], url_path='bulk-restore')
    def bulk_restore(self, request):
        serializer = BulkRestoreSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ids = list(dict.fromkeys(serializer.validated_data['ids']))

        with transaction.atomic():
            instances = self._get_bulk_instances(self.get_queryset().trashed(), ids)
            self._run_bulk_checks(instances, self.check_restore, 'restored', unique_in_batch=True)
            for instance in instances:
                self.perform_restore(instance)

        logger.info(f"Bulk restored {len(ids)} {self.entity_plural}")
        self.after_change(ids)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def _get_bulk_instances(self, queryset, ids):
        found = {obj.pk: obj for obj in queryset.filter(pk__in=ids)}
        missing = [pk for pk in ids if pk not in found]
        if missing:
            raise NotFound(f"{self.entity_plural.capitalize()} not found: {', '.join(missing)}")
        return [found[pk] for pk in ids]

    def _run_bulk_checks(self, instances, check, verb, unique_in_batch=False):
        """
        Run ``check`` on every row first; one failure aborts the batch.

        With ``unique_in_batch`` a row is also blocked when one of its
        ``unique_active_fields`` repeats a value of an earlier row.
        """
        blocked = []
        seen = set()
        for instance in instances:
            try:
                check(instance)
                if unique_in_batch:
                    self._claim_unique_values(instance, seen)
            except ConflictError as e:
                blocked.append({'id': instance.pk, 'error': str(e.detail)})

        if blocked:
            logger.warning(f"Bulk operation blocked for {len(blocked)} {self.entity_plural}")
            raise ConflictError(
                f"{len(blocked)} of {len(instances)} {self.entity_plural} cannot be {verb}; nothing was changed",
                details=blocked,
            )

    def _claim_unique_values(self, instance, seen):
        model = type(instance)
        values = [
            (field, getattr(instance, field))
            for field in model.unique_active_fields
            if getattr(instance, field)
        ]
        for field, value in values:
            if (field, value) in seen:
                raise ConflictError(
                    f"Cannot restore {model._meta.verbose_name}: "
                    f"{field.replace('_', ' ')} '{value}' appears more than once in this batch"
                )
        seen.update(values)
