"""
HTTP gateway for the song workflow REST API.

Talks to the endpoints exposed by ``catalog.urls`` with a shared
``requests.Session``. Transport failures and non-2xx answers are raised as
``GatewayError`` carrying the server's ``error`` message when there is one.
"""

import logging

import requests

from .exceptions import GatewayError
from .gateway import WorkflowGateway

logger = logging.getLogger(__name__)


class ApiWorkflowGateway(WorkflowGateway):
    """
    Workflow gateway over HTTP.

    Args:
        base_url: API root, e.g. ``https://ops.example.com/api/v1``
        token: DRF token; sent as ``Authorization: Token <token>``
        timeout: per-request timeout in seconds
        session: optional pre-configured ``requests.Session``
    """

    def __init__(self, base_url, token=None, timeout=10, session=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        if token:
            self.session.headers['Authorization'] = f'Token {token}'

    @classmethod
    def from_settings(cls):
        from django.conf import settings

        return cls(
            settings.WORKFLOW_API_BASE_URL,
            token=settings.WORKFLOW_API_TOKEN or None,
            timeout=settings.WORKFLOW_API_TIMEOUT,
        )

    def _request(self, method, path, json=None):
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(method, url, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise GatewayError(f"Request failed: {e}")

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.warning(f"{method} {url} returned {response.status_code}: {message}")
            raise GatewayError(message, status_code=response.status_code)

        if not response.content:
            return {}
        return response.json()

    @staticmethod
    def _error_message(response):
        try:
            data = response.json()
        except ValueError:
            return f"HTTP {response.status_code}"
        if isinstance(data, dict):
            return data.get('error') or data.get('detail') or f"HTTP {response.status_code}"
        return f"HTTP {response.status_code}"

    def fetch_song_detail(self, song_id):
        return self._request('GET', f'songs/{song_id}/')

    def fetch_checklist(self, song_id):
        return self._request('GET', f'songs/{song_id}/checklist/')

    def toggle_checklist_item(self, song_id, item_id):
        return self._request('POST', f'songs/{song_id}/checklist/{item_id}/toggle/')

    def update_checklist_asset_url(self, song_id, item_id, url):
        return self._request(
            'PATCH',
            f'songs/{song_id}/checklist/{item_id}/update_asset_url/',
            json={'asset_url': url},
        )

    def assign_checklist_item(self, song_id, item_id, user_id):
        return self._request(
            'POST',
            f'songs/{song_id}/checklist/{item_id}/assign/',
            json={'user_id': user_id},
        )

    def validate_all_checklist(self, song_id):
        return self._request('POST', f'songs/{song_id}/checklist/validate_all/')

    def update_stage_status(self, song_id, stage, status, notes=None, blocked_reason=None, song_level_only=False):
        payload = {'status': status}
        if notes is not None:
            payload['notes'] = notes
        if blocked_reason is not None:
            payload['blocked_reason'] = blocked_reason
        if song_level_only:
            payload['song_level_only'] = True
        return self._request('PATCH', f'songs/{song_id}/stages/{stage}/', json=payload)

    def send_to_marketing(self, song_id):
        return self._request('POST', f'songs/{song_id}/send_to_marketing/')

    def send_to_digital(self, song_id):
        return self._request('POST', f'songs/{song_id}/send_to_digital/')

    def get_or_create_task_for_checklist_item(self, song_id, item_id):
        return self._request(
            'POST', f'songs/{song_id}/checklist/{item_id}/get_or_create_task/'
        )
