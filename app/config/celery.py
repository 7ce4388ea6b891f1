"""
Celery application.

Payment requests never wait on these tasks:
    payments.tasks.send_payment_notification   provider/client notifications
    payments.tasks.award_completion_points     points after escrow release
    payments.tasks.cleanup_stuck_webhooks      beat, see CELERY_BEAT_SCHEDULE

Run with:
    celery -A config worker -l info
    celery -A config beat -l info
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# CELERY_* names in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
