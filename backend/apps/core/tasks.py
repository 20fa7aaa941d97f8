"""
Core Celery tasks: search index maintenance and housekeeping.

Best practices demonstrated:
- Idempotent tasks (reindexing the same ids twice is harmless)
- Retry with bounded attempts
- Dispatch after commit so workers never read uncommitted rows
- Failures are logged, never raised into the request that scheduled them
"""

from celery import shared_task
from django.apps import apps
from django.contrib.sessions.models import Session
from django.db import transaction
from django.utils import timezone
import logging

logger = logging.getLogger(__name__)

# Models whose rows are mirrored into SearchDocument
INDEXED_MODELS = ('products.Category', 'products.Product', 'pages.Page')


def schedule_reindex(model_label, object_ids):
    """
    Queue a search index refresh once the current transaction commits.

    Fire-and-forget: if the broker is unreachable the error is logged
    and the caller's response is unaffected.
    """
    object_ids = [str(pk) for pk in object_ids]
    if not object_ids:
        return

    def dispatch():
        try:
            reindex_search.delay(model_label, object_ids)
        except Exception as e:
            logger.error(
                f"Could not schedule reindex for {model_label} {object_ids}: {e}",
                exc_info=True
            )

    transaction.on_commit(dispatch)


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_kwargs={'max_retries': 3, 'countdown': 5},
    name='apps.core.tasks.reindex_search'
)
def reindex_search(self, model_label, object_ids):
    """
    Refresh the search documents of the given rows.

    Rows that are missing, trashed or not publicly visible lose their
    document; everything else is upserted from ``search_document()``.
    """
    from .models import SearchDocument

    model = apps.get_model(model_label)
    rows = {obj.pk: obj for obj in model.objects.filter(pk__in=object_ids)}

    indexed = 0
    removed = 0
    for object_id in object_ids:
        obj = rows.get(object_id)
        document = obj.search_document() if obj is not None and not obj.is_deleted else None

        if document is None:
            removed += SearchDocument.objects.filter(
                model_label=model_label, object_id=object_id
            ).delete()[0]
            continue

        SearchDocument.objects.update_or_create(
            model_label=model_label,
            object_id=object_id,
            defaults=document,
        )
        indexed += 1

    logger.info(f"Reindexed {model_label}: {indexed} indexed, {removed} removed")
    return {'status': 'success', 'indexed': indexed, 'removed': removed}


@shared_task(name='apps.core.tasks.rebuild_search_index')
def rebuild_search_index():
    """Periodic full rebuild; drops documents whose rows are gone."""
    from .models import SearchDocument

    totals = {}
    for model_label in INDEXED_MODELS:
        model = apps.get_model(model_label)
        ids = [str(pk) for pk in model.objects.values_list('pk', flat=True)]
        SearchDocument.objects.filter(model_label=model_label).exclude(object_id__in=ids).delete()
        result = reindex_search(model_label, ids)
        totals[model_label] = result['indexed']

    logger.info(f"Search index rebuilt: {totals}")
    return totals


@shared_task(name='apps.core.tasks.cleanup_sessions')
def cleanup_sessions():
    """
    Clean up expired admin sessions.
    """
    try:
        expired_sessions = Session.objects.filter(expire_date__lt=timezone.now())
        count = expired_sessions.count()
        expired_sessions.delete()

        logger.info(f"Cleaned up {count} expired sessions")
        return f"Deleted {count} expired sessions"

    except Exception as e:
        logger.error(f"Error cleaning up sessions: {e}", exc_info=True)
        raise
