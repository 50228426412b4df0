"""
Celery configuration for the membership platform.
"""

import os

from celery import Celery
from celery.schedules import crontab

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings")

app = Celery("membership")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

# Celery Beat Schedule
app.conf.beat_schedule = {
    # Lapsed billing periods -> expired subscriptions, projections recomputed
    "expire-lapsed-subscriptions": {
        "task": "subscriptions.tasks.expire_lapsed_subscriptions",
        "schedule": crontab(minute=0),  # hourly
    },
}
