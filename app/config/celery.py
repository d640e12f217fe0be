"""
Celery configuration for the Django application.

Celery runs the marketplace's scheduled jobs:
- disputes.tasks.run_auto_dispute_sweep (daily, 00:00 UTC)
- payments.tasks.reconcile_pending_escrows (every 15 minutes)

Redis is both the message broker and result backend. Schedules are stored
by django-celery-beat (DatabaseScheduler) and installed by data migrations,
so they can be paused or retimed from the Django admin.

Usage:
    # Worker and beat
    celery -A config worker -l info
    celery -A config beat -l info

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Picks up tasks.py from every installed app (disputes, payments)
app.autodiscover_tasks()
