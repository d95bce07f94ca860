"""
Tests for ApiWorkflowGateway with a mocked requests session.
"""

from unittest import mock

import requests
from django.test import SimpleTestCase, override_settings

from catalog.workflow.client import ApiWorkflowGateway
from catalog.workflow.exceptions import GatewayError


def make_response(status_code=200, payload=None, content=b'{}'):
    response = mock.Mock()
    response.status_code = status_code
    response.content = content
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


class ApiWorkflowGatewayTestCase(SimpleTestCase):

    def setUp(self):
        self.session = mock.Mock()
        self.session.headers = {}
        self.gateway = ApiWorkflowGateway(
            'https://ops.example.com/api/v1/', token='abc', timeout=5, session=self.session
        )

    def test_token_header(self):
        self.assertEqual(self.session.headers['Authorization'], 'Token abc')

    def test_update_stage_status_request(self):
        self.session.request.return_value = make_response(payload={'id': 1})

        result = self.gateway.update_stage_status(1, 'publishing', 'completed')

        self.assertEqual(result, {'id': 1})
        self.session.request.assert_called_once_with(
            'PATCH',
            'https://ops.example.com/api/v1/songs/1/stages/publishing/',
            json={'status': 'completed'},
            timeout=5,
        )

    def test_song_level_completion_request(self):
        self.session.request.return_value = make_response(payload={'id': 1})

        self.gateway.update_stage_status(1, 'marketing_assets', 'completed', song_level_only=True)

        self.session.request.assert_called_once_with(
            'PATCH',
            'https://ops.example.com/api/v1/songs/1/stages/marketing_assets/',
            json={'status': 'completed', 'song_level_only': True},
            timeout=5,
        )

    def test_asset_url_request(self):
        self.session.request.return_value = make_response(payload={'id': 3})

        self.gateway.update_checklist_asset_url(1, 3, 'https://files.example.com/a')

        self.session.request.assert_called_once_with(
            'PATCH',
            'https://ops.example.com/api/v1/songs/1/checklist/3/update_asset_url/',
            json={'asset_url': 'https://files.example.com/a'},
            timeout=5,
        )

    def test_error_message_from_payload(self):
        self.session.request.return_value = make_response(
            status_code=400, payload={'error': 'Publishing checklist incomplete (50% complete)'}
        )

        with self.assertRaises(GatewayError) as ctx:
            self.gateway.update_stage_status(1, 'publishing', 'completed')

        self.assertEqual(ctx.exception.message, 'Publishing checklist incomplete (50% complete)')
        self.assertEqual(ctx.exception.status_code, 400)

    def test_error_without_json_body(self):
        self.session.request.return_value = make_response(status_code=502, payload=ValueError())

        with self.assertRaises(GatewayError) as ctx:
            self.gateway.send_to_marketing(1)

        self.assertEqual(ctx.exception.message, 'HTTP 502')

    def test_transport_error(self):
        self.session.request.side_effect = requests.ConnectionError('refused')

        with self.assertRaises(GatewayError) as ctx:
            self.gateway.fetch_song_detail(1)

        self.assertIn('refused', ctx.exception.message)
        self.assertIsNone(ctx.exception.status_code)

    def test_empty_body(self):
        self.session.request.return_value = make_response(status_code=204, content=b'')
        self.assertEqual(self.gateway.send_to_digital(1), {})

    @override_settings(
        WORKFLOW_API_BASE_URL='https://api.example.com/api/v1',
        WORKFLOW_API_TOKEN='',
        WORKFLOW_API_TIMEOUT=3,
    )
    def test_from_settings(self):
        gateway = ApiWorkflowGateway.from_settings()
        self.assertEqual(gateway.base_url, 'https://api.example.com/api/v1')
        self.assertEqual(gateway.timeout, 3)
        self.assertNotIn('Authorization', gateway.session.headers)
