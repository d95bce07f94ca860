"""
Gateways: the operations the workflow engine consumes.

``WorkflowGateway`` lists them; ``LocalWorkflowGateway`` runs them
in-process through ``catalog.services`` and the REST serializers, so it
returns exactly the payloads the HTTP API would. The HTTP implementation
lives in ``catalog.workflow.client``.
"""

import logging

logger = logging.getLogger(__name__)


class WorkflowGateway:
    """
    Request/response operations used by the engine.

    Every method returns the decoded payload (dict or list) and raises
    ``GatewayError`` on failure.
    """

    def fetch_song_detail(self, song_id):
        raise NotImplementedError

    def fetch_checklist(self, song_id):
        raise NotImplementedError

    def toggle_checklist_item(self, song_id, item_id):
        raise NotImplementedError

    def update_checklist_asset_url(self, song_id, item_id, url):
        raise NotImplementedError

    def assign_checklist_item(self, song_id, item_id, user_id):
        raise NotImplementedError

    def validate_all_checklist(self, song_id):
        raise NotImplementedError

    def update_stage_status(self, song_id, stage, status, notes=None, blocked_reason=None, song_level_only=False):
        raise NotImplementedError

    def send_to_marketing(self, song_id):
        raise NotImplementedError

    def send_to_digital(self, song_id):
        raise NotImplementedError

    def get_or_create_task_for_checklist_item(self, song_id, item_id):
        raise NotImplementedError


class LocalWorkflowGateway(WorkflowGateway):
    """In-process gateway acting as ``user``."""

    def __init__(self, user):
        self.user = user

    def _call(self, operation, *args, **kwargs):
        from catalog.services import WorkflowServiceError
        from .exceptions import GatewayError

        try:
            return operation(*args, **kwargs)
        except WorkflowServiceError as e:
            logger.warning(f"{operation.__name__} failed: {e.message}")
            raise GatewayError(e.message, status_code=e.status_code)

    def _song(self, song_id):
        from catalog import services
        return self._call(services.get_song, song_id)

    def _item(self, song_id, item_id):
        from catalog import services
        return self._call(services.get_checklist_item, song_id, item_id)

    def fetch_song_detail(self, song_id):
        from catalog.serializers import SongDetailSerializer
        return SongDetailSerializer(self._song(song_id)).data

    def fetch_checklist(self, song_id):
        from catalog.serializers import SongChecklistItemSerializer
        song = self._song(song_id)
        items = song.checklist_items.select_related(
            'recording', 'template_item', 'completed_by', 'assigned_to'
        ).order_by('order', 'id')
        return SongChecklistItemSerializer(items, many=True).data

    def toggle_checklist_item(self, song_id, item_id):
        from catalog import services
        from catalog.serializers import SongChecklistItemSerializer
        item = self._call(services.toggle_checklist_item, self._item(song_id, item_id), self.user)
        return SongChecklistItemSerializer(item).data

    def update_checklist_asset_url(self, song_id, item_id, url):
        from catalog import services
        from catalog.serializers import SongChecklistItemSerializer
        item = self._call(
            services.update_checklist_asset_url, self._item(song_id, item_id), url, self.user
        )
        return SongChecklistItemSerializer(item).data

    def assign_checklist_item(self, song_id, item_id, user_id):
        from catalog import services
        from catalog.serializers import SongChecklistItemSerializer
        item = self._call(services.assign_checklist_item, self._item(song_id, item_id), user_id)
        return SongChecklistItemSerializer(item).data

    def validate_all_checklist(self, song_id):
        from catalog import validators
        return validators.revalidate_song_checklist(self._song(song_id))

    def update_stage_status(self, song_id, stage, status, notes=None, blocked_reason=None, song_level_only=False):
        from catalog import services
        from catalog.serializers import SongDetailSerializer
        song = self._song(song_id)
        self._call(
            services.update_stage_status, song, stage, status, self.user,
            notes=notes, blocked_reason=blocked_reason, song_level_only=song_level_only,
        )
        song.refresh_from_db()
        return SongDetailSerializer(song).data

    def send_to_marketing(self, song_id):
        from catalog import services
        from catalog.serializers import SongDetailSerializer
        song = self._call(services.send_to_marketing, self._song(song_id), self.user)
        return SongDetailSerializer(song).data

    def send_to_digital(self, song_id):
        from catalog import services
        from catalog.serializers import SongDetailSerializer
        song = self._call(services.send_to_digital, self._song(song_id), self.user)
        return SongDetailSerializer(song).data

    def get_or_create_task_for_checklist_item(self, song_id, item_id):
        from crm_extensions.serializers import TaskSerializer
        from crm_extensions.services.task_generator import TaskGenerator
        item = self._item(song_id, item_id)
        task = self._call(TaskGenerator.get_or_create_for_checklist_item, item, self.user)
        return TaskSerializer(task).data
