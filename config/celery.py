"""
Celery application for the LPG marketplace.

Reads every ``CELERY_*`` setting from Django settings and discovers
``tasks.py`` modules in the installed apps.
"""
import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('config')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
