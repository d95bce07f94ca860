"""
TaskGenerator Service

Creates the tasks that back task-based song checklist items and resolves
which task a checklist item's task form should open.
"""

import logging
from typing import Dict, Optional
from django.db import transaction
from django.db.models import Count, Max, Q, Model
from django.contrib.auth import get_user_model

from crm_extensions.models import OPEN_STATUSES

User = get_user_model()
logger = logging.getLogger(__name__)


class TaskGenerator:
    """
    Generates tasks from song checklist items.

    A checklist item with ``quantity`` N needs N done instances; each
    instance is a Task numbered by ``instance_number``.
    """

    @staticmethod
    def instance_counts(checklist_item: Model) -> Dict[str, int]:
        """
        Task counts for a checklist item.

        Returns:
            dict: task_count, completed_count (done), pending_review_count (review)
        """
        counts = checklist_item.tasks.exclude(status='cancelled').aggregate(
            task_count=Count('id'),
            completed_count=Count('id', filter=Q(status='done')),
            pending_review_count=Count('id', filter=Q(status='review')),
        )
        return {key: value or 0 for key, value in counts.items()}

    @staticmethod
    def create_from_checklist_item(
        checklist_item: Model,
        created_by: Optional[User] = None,
        instance_number: int = 1
    ) -> 'Task':
        """
        Create task from a checklist item.

        Args:
            checklist_item: SongChecklistItem instance
            created_by: User requesting the task
            instance_number: Instance number for quantity-based items

        Returns:
            Task: Created task
        """
        from crm_extensions.models import Task

        template_item = checklist_item.template_item
        title = checklist_item.item_name
        if template_item and template_item.quantity > 1:
            title = f"{title} ({instance_number}/{template_item.quantity})"

        task = Task.objects.create(
            title=title,
            description=checklist_item.description or f"Complete: {checklist_item.item_name}",
            song=checklist_item.song,
            song_checklist_item=checklist_item,
            source_stage=checklist_item.stage,
            instance_number=instance_number,
            status='todo',
            priority=2,
            task_type=template_item.task_type if template_item else 'general',
            assigned_to=checklist_item.assigned_to,
            created_by=created_by,
        )

        logger.info(
            f"Created task {task.id} (instance {instance_number}) from checklist item "
            f"'{checklist_item.item_name}'"
        )
        return task

    @staticmethod
    def get_or_create_for_checklist_item(checklist_item: Model, user: Optional[User] = None) -> 'Task':
        """
        Resolve the task a checklist item's task form edits.

        1. An open instance (todo / in_progress / blocked) is returned as-is,
           so repeated calls yield the same task.
        2. Otherwise, while done + in-review instances are fewer than the
           required quantity, a new instance is created.
        3. Otherwise single-instance items return their latest task; for
           quantity-based items every instance is already submitted and the
           request is rejected.

        Raises:
            WorkflowServiceError: item is not task-backed or nothing is left to create
        """
        from catalog.models import SongChecklistItem
        from catalog.services import WorkflowServiceError

        if not checklist_item.is_manual:
            raise WorkflowServiceError('Auto-validated items have no task')
        if not checklist_item.is_task_backed:
            raise WorkflowServiceError('This checklist item is not completed through a task')

        with transaction.atomic():
            # Serialize concurrent resolutions of the same item
            SongChecklistItem.objects.select_for_update().filter(pk=checklist_item.pk).first()

            tasks = checklist_item.tasks.exclude(status='cancelled')

            open_task = tasks.filter(status__in=OPEN_STATUSES).order_by('instance_number', 'id').first()
            if open_task is not None:
                return open_task

            quantity = checklist_item.required_instances
            counts = TaskGenerator.instance_counts(checklist_item)
            submitted = counts['completed_count'] + counts['pending_review_count']

            if submitted < quantity:
                last_number = checklist_item.tasks.aggregate(n=Max('instance_number'))['n'] or 0
                return TaskGenerator.create_from_checklist_item(
                    checklist_item, created_by=user, instance_number=last_number + 1
                )

            if quantity <= 1:
                return tasks.order_by('-instance_number', '-id').first()

        raise WorkflowServiceError(
            f"All {quantity} instances of '{checklist_item.item_name}' have been submitted"
        )

    @staticmethod
    def sync_checklist_item(checklist_item: Model, user: Optional[User] = None) -> bool:
        """
        Mirror task progress onto the checklist item.

        The item is complete once it has as many done instances as its
        quantity requires (at least one).

        Returns:
            bool: new completion state
        """
        counts = TaskGenerator.instance_counts(checklist_item)
        should_be_complete = counts['completed_count'] >= checklist_item.required_instances

        if should_be_complete != checklist_item.is_complete:
            if should_be_complete:
                checklist_item.mark_complete(user)
            else:
                checklist_item.mark_incomplete()
            checklist_item.save()
            logger.info(
                f"Checklist item {checklist_item.id} ('{checklist_item.item_name}') "
                f"{'completed' if should_be_complete else 'reopened'} from task progress "
                f"({counts['completed_count']}/{checklist_item.required_instances})"
            )

        return should_be_complete
