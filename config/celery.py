"""
Celery configuration for async task processing.
"""
import os
from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

# Create Celery app
app = Celery('song_workflow')

# Load config from Django settings with CELERY_ prefix
app.config_from_object('django.conf:settings', namespace='CELERY')

# Auto-discover tasks in all installed apps
app.autodiscover_tasks()


# Periodic task schedule
app.conf.beat_schedule = {
    # Re-run auto checklist validators for every active song (2:00 AM)
    'revalidate-active-song-checklists': {
        'task': 'catalog.revalidate_active_songs',
        'schedule': crontab(hour=2, minute=0),
    },
}
