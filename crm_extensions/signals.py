"""
CRM Extensions signals for checklist-backed tasks.

Keeps a song checklist item's completion in step with its task instances.
"""

import logging
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver
from .models import Task

logger = logging.getLogger(__name__)


def _sync(task, user=None):
    from crm_extensions.services.task_generator import TaskGenerator

    item = task.song_checklist_item
    if item is None:
        return
    TaskGenerator.sync_checklist_item(item, user)


@receiver(post_save, sender=Task)
def on_task_saved(sender, instance, created, **kwargs):
    """Mark the checklist item complete once enough instances are done."""
    if created or not instance.song_checklist_item_id:
        return
    _sync(instance, getattr(instance, '_changed_by', None))


@receiver(post_delete, sender=Task)
def on_task_deleted(sender, instance, **kwargs):
    if not instance.song_checklist_item_id:
        return
    from catalog.models import SongChecklistItem

    if SongChecklistItem.objects.filter(pk=instance.song_checklist_item_id).exists():
        _sync(instance)
