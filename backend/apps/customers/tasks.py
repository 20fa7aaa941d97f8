"""
Customer maintenance tasks.
"""

from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_kwargs={'max_retries': 3, 'countdown': 30},
    name='apps.customers.tasks.recalculate_all_customer_stats'
)
def recalculate_all_customer_stats(self):
    """
    Periodic safety net: rebuild every customer's order projections.

    Request handlers already recompute after each order change; this
    repairs drift from manual database edits.
    """
    from .models import Customer
    from .services import recalculate_customer_stats

    customer_ids = list(Customer.objects.active().values_list('pk', flat=True))
    recalculate_customer_stats(*customer_ids)

    logger.info(f"Recalculated stats for {len(customer_ids)} customers")
    return {'status': 'success', 'customers': len(customer_ids)}
