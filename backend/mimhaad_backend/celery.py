"""
Celery application configuration.

This is the main Celery app for the Mimhaad backend.
It runs the scheduled float-to-GL reconciliation.

Usage:
    # Start worker
    celery -A mimhaad_backend worker -l INFO

    # Start beat scheduler (for periodic tasks)
    celery -A mimhaad_backend beat -l INFO

    # Start both (development only)
    celery -A mimhaad_backend worker -B -l INFO
"""
import os

from celery import Celery

# Set default Django settings
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "mimhaad_backend.settings")

app = Celery("mimhaad_backend")

# Load config from Django settings
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks from all installed apps
app.autodiscover_tasks()
