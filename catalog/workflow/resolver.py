"""
Task-backed item resolver.

Items in TASK_MODAL mode are edited through a task form. The backing task is
always resolved (fetched or created server-side) before the form opens; if
that fails the form must not open.
"""

import logging

from .exceptions import GatewayError, TaskResolutionError

logger = logging.getLogger(__name__)


class TaskResolver:

    def __init__(self, gateway):
        self.gateway = gateway

    def resolve(self, song_id, item_id):
        """
        Get or create the task backing checklist item ``item_id``.

        Returns the task payload. Raises TaskResolutionError when the call
        fails or returns no task.
        """
        try:
            task = self.gateway.get_or_create_task_for_checklist_item(song_id, item_id)
        except GatewayError as e:
            logger.warning(f"Song {song_id}: could not resolve task for item {item_id}: {e.message}")
            raise TaskResolutionError(e.message, item_id=item_id, cause=e)

        if not task or not task.get('id'):
            raise TaskResolutionError('Failed to load task', item_id=item_id)

        return task
