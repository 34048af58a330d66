"""
Celery configuration for the Django application.

Redis is both the message broker and result backend. Tasks are
auto-discovered from each installed app's tasks.py:

    - payments.tasks.send_order_confirmation_email
    - toolkit.tasks.send_email_task

Payment reconciliation itself runs inside the request; only email
delivery is pushed to workers.

Usage:
    celery -A config worker -l info

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

app.autodiscover_tasks()
