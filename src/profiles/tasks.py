import logging

from celery import shared_task
from django.core.cache import cache

from src.profiles.selectors import history_cache_key

logger = logging.getLogger(__name__)


@shared_task(name="profiles.history_reload")
def history_reload(container: str, kind: int) -> None:
    # Drop the cached listing; the history view re-fetches on next render
    cache.delete(history_cache_key(container, kind))
    logger.info("History %s for kind %s marked for reload", container, kind)
