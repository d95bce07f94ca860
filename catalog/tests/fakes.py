"""
In-memory workflow gateway and payload builders for engine tests.
"""

from catalog.workflow.exceptions import GatewayError
from catalog.workflow.gateway import WorkflowGateway
from catalog.workflow.stages import STAGE_FLOW


def song_payload(current_stage='publishing', statuses=None, song_id=1):
    statuses = statuses or {}
    return {
        'id': song_id,
        'title': 'Test Song',
        'current_stage': current_stage,
        'checklist_progress': '0.00',
        'stage_statuses': [
            {'stage': stage, 'status': statuses.get(stage, 'not_started')}
            for stage in STAGE_FLOW
        ],
    }


def item_payload(item_id, stage='publishing', category='Legal', is_complete=False,
                 validation_type='manual', order=0, recording=None, recording_title=None,
                 has_task_inputs=False, quantity=1, asset_url=''):
    detail = None
    if has_task_inputs or quantity != 1:
        detail = {
            'id': item_id * 10,
            'has_task_inputs': has_task_inputs,
            'requires_review': False,
            'quantity': quantity,
            'task_count': 0,
            'completed_count': 0,
            'pending_review_count': 0,
        }
    return {
        'id': item_id,
        'song': 1,
        'stage': stage,
        'category': category,
        'item_name': f'Item {item_id}',
        'order': order,
        'required': True,
        'validation_type': validation_type,
        'is_complete': is_complete,
        'asset_url': asset_url,
        'recording': recording,
        'recording_title': recording_title,
        'template_item_detail': detail,
    }


class FakeGateway(WorkflowGateway):
    """
    Records every call and applies mutations to in-memory payloads.

    ``failures`` maps a call key to the GatewayError it raises, e.g.
    ``{('update_stage_status', 'label_recording', 'in_progress'): GatewayError('boom')}``.
    """

    def __init__(self, song=None, items=None, task=None):
        self.song = song or song_payload()
        self.items = items or []
        self.task = {'id': 7, 'title': 'Task'} if task is None else task
        self.calls = []
        self.failures = {}
        self.hooks = {}
        self.song_level_completions = []

    def _record(self, *key):
        self.calls.append(key)
        hook = self.hooks.get(key[0])
        if hook:
            hook()
        error = self.failures.get(key)
        if error:
            raise error

    def calls_to(self, name):
        return [call for call in self.calls if call[0] == name]

    def _set_status(self, stage, status):
        for row in self.song['stage_statuses']:
            if row['stage'] == stage:
                row['status'] = status
        if status == 'in_progress':
            self.song['current_stage'] = stage

    def _item(self, item_id):
        for item in self.items:
            if item['id'] == item_id:
                return item
        raise GatewayError('Checklist item not found', status_code=404)

    def fetch_song_detail(self, song_id):
        self._record('fetch_song_detail')
        return self.song

    def fetch_checklist(self, song_id):
        self._record('fetch_checklist')
        return self.items

    def toggle_checklist_item(self, song_id, item_id):
        self._record('toggle_checklist_item', item_id)
        item = self._item(item_id)
        item['is_complete'] = not item['is_complete']
        return item

    def update_checklist_asset_url(self, song_id, item_id, url):
        self._record('update_checklist_asset_url', item_id, url)
        item = self._item(item_id)
        item['asset_url'] = url
        item['is_complete'] = True
        return item

    def assign_checklist_item(self, song_id, item_id, user_id):
        self._record('assign_checklist_item', item_id, user_id)
        return self._item(item_id)

    def validate_all_checklist(self, song_id):
        self._record('validate_all_checklist')
        return {'validated_count': 2, 'passed': 1, 'failed': 1, 'updated': []}

    def update_stage_status(self, song_id, stage, status, notes=None, blocked_reason=None, song_level_only=False):
        self._record('update_stage_status', stage, status)
        if song_level_only and status == 'completed':
            self.song_level_completions.append(stage)
        self._set_status(stage, status)
        return self.song

    def send_to_marketing(self, song_id):
        self._record('send_to_marketing')
        self._set_status('label_recording', 'completed')
        self._set_status('marketing_assets', 'in_progress')
        return self.song

    def send_to_digital(self, song_id):
        self._record('send_to_digital')
        self._set_status('ready_for_digital', 'completed')
        self._set_status('digital_distribution', 'in_progress')
        return self.song

    def get_or_create_task_for_checklist_item(self, song_id, item_id):
        self._record('get_or_create_task_for_checklist_item', item_id)
        return self.task
