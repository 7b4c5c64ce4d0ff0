import logging

from celery import shared_task
from django.core.cache import cache

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    max_retries=3,
)
def refresh_popular_categories(self, limit=6):
    from blog.services import get_popular_categories

    try:
        cache.delete(f"popular_categories:{limit}")
        categories = get_popular_categories(limit)
        logger.info(f"Popular categories cache refreshed ({len(categories)} categories)")
        return categories
    except Exception as e:
        logger.error(f"Error refreshing popular categories: {e}")
        raise
