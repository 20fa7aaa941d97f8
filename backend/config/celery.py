"""
Celery configuration for background work.

This module demonstrates best practices for Celery setup:
- Auto-discovery of tasks
- Task routing by queue
- Signal based monitoring
- Beat schedule for periodic maintenance
"""

import os
from celery import Celery
from celery.signals import task_prerun, task_postrun, task_failure
import logging

logger = logging.getLogger(__name__)

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

app = Celery('storefront_admin')

# Load configuration from Django settings with CELERY namespace
app.config_from_object('django.conf:settings', namespace='CELERY')

app.autodiscover_tasks()


app.conf.task_routes = {
    # Search index refreshes are frequent and cheap
    'apps.core.tasks.reindex_search': {
        'queue': 'search',
        'routing_key': 'search.reindex',
    },
    'apps.core.tasks.rebuild_search_index': {
        'queue': 'search',
        'routing_key': 'search.rebuild',
    },

    # Aggregate recomputation touches many rows
    'apps.customers.tasks.*': {
        'queue': 'default',
        'routing_key': 'default',
    },

    'apps.core.tasks.cleanup_sessions': {
        'queue': 'maintenance',
        'routing_key': 'maintenance.cleanup',
    },
}


@task_prerun.connect
def task_prerun_handler(task_id, task, *args, **kwargs):
    """Log when a task starts."""
    logger.info(f'Task {task.name}[{task_id}] starting')


@task_postrun.connect
def task_postrun_handler(task_id, task, retval, *args, **kwargs):
    """Log when a task completes."""
    logger.info(f'Task {task.name}[{task_id}] completed')


@task_failure.connect
def task_failure_handler(task_id, exception, *args, **kwargs):
    """Log when a task fails."""
    logger.error(f'Task {task_id} failed: {exception}', exc_info=True)


app.conf.beat_schedule = {
    'rebuild-search-index': {
        'task': 'apps.core.tasks.rebuild_search_index',
        'schedule': 86400.0,  # Every day
        'options': {
            'queue': 'search',
        },
    },
    'cleanup-old-sessions': {
        'task': 'apps.core.tasks.cleanup_sessions',
        'schedule': 3600.0,  # Every hour
        'options': {
            'queue': 'maintenance',
        },
    },
    'recalculate-customer-stats': {
        'task': 'apps.customers.tasks.recalculate_all_customer_stats',
        'schedule': 86400.0,
    },
}

app.conf.timezone = 'UTC'
