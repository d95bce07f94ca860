"""
Task completion and review.

complete -> review (template requires review) or done
approve  -> review to done
reject   -> review back to in_progress
"""

import logging

from django.utils import timezone

from catalog.services import WorkflowServiceError
from crm_extensions.models import OPEN_STATUSES

logger = logging.getLogger(__name__)


def missing_inputs(task, inputs):
    """Labels of required form fields left empty."""
    item = task.song_checklist_item
    if not item or not item.template_item:
        return []

    missing = []
    for field in item.template_item.input_fields or []:
        if not field.get('required'):
            continue
        value = inputs.get(field.get('name'))
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(field.get('label') or field.get('name'))
    return missing


def complete_task(task, user, inputs=None, notes=None):
    """Submit a task with its form inputs."""
    if not task.is_open:
        raise WorkflowServiceError(f"Task is already {task.get_status_display().lower()}")

    inputs = inputs if inputs is not None else task.inputs
    if not isinstance(inputs, dict):
        raise WorkflowServiceError('inputs must be an object')

    missing = missing_inputs(task, inputs)
    if missing:
        raise WorkflowServiceError(f"Missing required inputs: {', '.join(missing)}")

    task.inputs = inputs
    if notes is not None:
        task.notes = notes
    task.submitted_at = timezone.now()
    task.status = 'review' if task.requires_review else 'done'
    task._changed_by = user
    task.save()

    logger.info(f"Task {task.id}: submitted by {user} -> {task.status}")
    return task


def approve_task(task, user, notes=''):
    if task.status != 'review':
        raise WorkflowServiceError('Only tasks in review can be approved')

    task.status = 'done'
    task.reviewed_by = user
    task.reviewed_at = timezone.now()
    task.review_notes = notes or task.review_notes
    task._changed_by = user
    task.save()

    logger.info(f"Task {task.id}: approved by {user}")
    return task


def reject_task(task, user, notes=''):
    if task.status != 'review':
        raise WorkflowServiceError('Only tasks in review can be rejected')

    task.status = 'in_progress'
    task.reviewed_by = user
    task.reviewed_at = timezone.now()
    task.review_notes = notes
    task._changed_by = user
    task.save()

    logger.info(f"Task {task.id}: rejected by {user}")
    return task


def update_task_status(task, status, user):
    """Generic status change from the task board; review states go through the actions above."""
    if status not in dict(task.STATUS_CHOICES):
        raise WorkflowServiceError(f"Invalid status '{status}'")
    if status in ('review', 'done') and task.song_checklist_item_id:
        raise WorkflowServiceError('Use the complete action to submit checklist tasks')
    if status not in OPEN_STATUSES and status != 'cancelled' and status != task.status:
        raise WorkflowServiceError(f"Cannot set status to '{status}'")

    task.status = status
    task._changed_by = user
    task.save()
    return task
