"""
Celery configuration for the messaging backend.

Celery runs the work that must not block a send:
- Web Push delivery with bounded retries (notifications.tasks)

This configuration uses Redis as both the message broker and result backend.
Tasks are auto-discovered from all installed Django apps.

Usage:
    # Start a worker:
    celery -A config worker -l info

    # Tasks are queued by the services, e.g.:
    PushDeliveryService.enqueue(subscription, payload, message_id=message.id)

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

# Looks for a tasks.py module in each installed app
app.autodiscover_tasks()
