"""
Periodic subscription maintenance.
"""

import logging

from celery import shared_task

from .lifecycle import expire_lapsed_subscriptions as _expire_lapsed

logger = logging.getLogger(__name__)


@shared_task
def expire_lapsed_subscriptions() -> str:
    """Expire active subscriptions whose billing period has ended."""
    count = _expire_lapsed()
    return f"Expired {count} subscriptions"
