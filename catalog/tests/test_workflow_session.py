"""
Tests for SongWorkflowSession: click dispatch, pending controls, notices and
refetch-after-mutation, all against FakeGateway.
"""

from django.test import SimpleTestCase

from catalog.workflow.classifier import InteractionMode
from catalog.workflow.exceptions import GatewayError
from catalog.workflow.session import ERROR, SUCCESS, SongWorkflowSession
from catalog.workflow.transitions import StageAction, TerminalAction

from .fakes import FakeGateway, item_payload, song_payload

MUTATIONS = (
    'toggle_checklist_item',
    'update_checklist_asset_url',
    'assign_checklist_item',
    'validate_all_checklist',
    'update_stage_status',
    'send_to_marketing',
    'send_to_digital',
    'get_or_create_task_for_checklist_item',
)


class SessionTestCase(SimpleTestCase):

    def make_session(self, current_stage='publishing', statuses=None, items=None, task=None):
        statuses = statuses or {current_stage: 'in_progress'}
        self.gateway = FakeGateway(
            song=song_payload(current_stage=current_stage, statuses=statuses),
            items=items or [],
            task=task,
        )
        self.session = SongWorkflowSession(self.gateway, 1).refresh()
        return self.session

    def mutation_calls(self):
        return [call for call in self.gateway.calls if call[0] in MUTATIONS]

    def messages(self, level=None):
        return [
            notice.message for notice in self.session.drain_notices()
            if level is None or notice.level == level
        ]


class StageViewTests(SessionTestCase):

    def test_finish_disabled_until_checklist_complete(self):
        self.make_session(items=[item_payload(1), item_payload(2, is_complete=True)])

        view = self.session.stage_view()
        self.assertIs(view.action, StageAction.FINISH)
        self.assertFalse(view.action_enabled)
        self.assertEqual(view.checklist.percent, 50)
        self.assertIsNone(view.terminal_action)

        self.assertIsNone(self.session.stage_action())
        self.assertEqual(self.mutation_calls(), [])
        self.assertEqual(self.messages(ERROR), ['Complete the Publishing checklist first'])

    def test_toggle_then_finish_advances_stage(self):
        self.make_session(items=[item_payload(1)])

        mode, item = self.session.click(1)
        self.assertIs(mode, InteractionMode.SIMPLE_TOGGLE)
        self.assertTrue(item['is_complete'])
        # Song and checklist reloaded after the toggle
        self.assertEqual(len(self.gateway.calls_to('fetch_song_detail')), 2)
        self.assertTrue(self.session.item(1).is_complete)

        view = self.session.stage_view()
        self.assertTrue(view.action_enabled)
        self.assertIs(view.terminal_action, TerminalAction.FINISH)

        result = self.session.stage_action()
        self.assertEqual(result.started_next, 'label_recording')
        self.assertEqual(self.session.song.current_stage, 'label_recording')
        self.assertEqual(self.session.song.status_of('publishing'), 'completed')
        self.assertIn('Stage completed', self.messages(SUCCESS))

    def test_other_stage_has_no_terminal_action(self):
        self.make_session(
            items=[item_payload(1, stage='draft'), item_payload(2, stage='label_review')]
        )

        view = self.session.stage_view('label_review')
        self.assertFalse(view.is_current)
        self.assertIs(view.action, StageAction.START)
        self.assertTrue(view.action_enabled)
        self.assertIsNone(view.terminal_action)
        self.assertEqual([group.stage for group in view.carryover], ['draft'])

    def test_start_other_stage(self):
        self.make_session()

        self.session.stage_action('label_review')

        self.assertEqual(
            self.mutation_calls(), [('update_stage_status', 'label_review', 'in_progress')]
        )
        self.assertEqual(self.messages(SUCCESS), ['Stage started'])

    def test_completed_stage_has_no_action(self):
        self.make_session(statuses={'publishing': 'in_progress', 'draft': 'completed'})

        view = self.session.stage_view('draft')
        self.assertIs(view.action, StageAction.NONE)
        self.assertFalse(view.action_enabled)
        self.assertIsNone(self.session.stage_action('draft'))
        self.assertEqual(self.mutation_calls(), [])

    def test_cascade_failure_is_reported(self):
        self.make_session(items=[item_payload(1, is_complete=True)])
        self.gateway.failures[('update_stage_status', 'label_recording', 'in_progress')] = GatewayError('boom')

        self.assertIsNone(self.session.stage_action())

        errors = self.messages(ERROR)
        self.assertEqual(len(errors), 1)
        self.assertIn("'label_recording' could not be started", errors[0])
        self.assertEqual(self.session.song.status_of('publishing'), 'completed')
        self.assertEqual(self.session.song.status_of('label_recording'), 'not_started')
        self.assertFalse(self.session.is_pending(('stage', 'publishing')))


class TerminalActionTests(SessionTestCase):

    def test_send_to_marketing_from_label_recording(self):
        self.make_session(
            current_stage='label_recording',
            items=[
                item_payload(1, stage='label_recording', is_complete=True),
                item_payload(2, stage='label_recording', recording=10),
            ],
        )

        view = self.session.stage_view()
        self.assertIs(view.terminal_action, TerminalAction.SEND_TO_MARKETING)
        self.assertFalse(view.action_enabled)

        self.session.send_to_marketing()

        self.assertEqual(self.mutation_calls(), [('send_to_marketing',)])
        self.assertEqual(self.session.song.current_stage, 'marketing_assets')
        self.assertEqual(self.messages(SUCCESS), ['Sent to marketing'])

    def test_send_to_marketing_unavailable_elsewhere(self):
        self.make_session()

        self.assertIsNone(self.session.send_to_marketing())
        self.assertIsNone(self.session.send_to_digital())
        self.assertEqual(self.mutation_calls(), [])
        self.assertEqual(
            self.messages(ERROR),
            ['This action is not available for the current stage'] * 2,
        )

    def test_send_to_digital(self):
        self.make_session(current_stage='ready_for_digital')

        self.session.send_to_digital()

        self.assertEqual(self.session.song.current_stage, 'digital_distribution')
        self.assertEqual(self.messages(SUCCESS), ['Sent to digital'])

    def test_finish_current_stage(self):
        self.make_session(current_stage='label_review')

        self.session.finish_current_stage()

        self.assertEqual(self.mutation_calls(), [
            ('update_stage_status', 'label_review', 'completed'),
            ('update_stage_status', 'ready_for_digital', 'in_progress'),
        ])


class ItemActionTests(SessionTestCase):

    def test_auto_item_click_does_nothing(self):
        self.make_session(items=[item_payload(1, validation_type='auto_field_exists')])

        mode, payload = self.session.click(1)

        self.assertIs(mode, InteractionMode.READ_ONLY_AUTO)
        self.assertIsNone(payload)
        self.assertEqual(self.mutation_calls(), [])

    def test_unknown_item(self):
        self.make_session()
        self.assertEqual(self.session.click(99), (None, None))
        self.assertEqual(self.messages(ERROR), ['Checklist item not found'])

    def test_task_item_resolves_task(self):
        self.make_session(items=[item_payload(1, quantity=3)], task={'id': 11, 'title': 'Reel (2/3)'})

        mode, task = self.session.click(1)

        self.assertIs(mode, InteractionMode.TASK_MODAL)
        self.assertEqual(task['id'], 11)
        self.assertEqual(self.mutation_calls(), [('get_or_create_task_for_checklist_item', 1)])

    def test_task_resolution_failure(self):
        self.make_session(items=[item_payload(1, has_task_inputs=True)])
        self.gateway.failures[('get_or_create_task_for_checklist_item', 1)] = GatewayError(
            'All 1 instances already submitted', status_code=400
        )

        mode, task = self.session.click(1)

        self.assertIs(mode, InteractionMode.TASK_MODAL)
        self.assertIsNone(task)
        self.assertEqual(self.messages(ERROR), ['All 1 instances already submitted'])

    def test_repeat_trigger_ignored_while_pending(self):
        self.make_session(items=[item_payload(1), item_payload(2)])
        nested = []

        def retrigger():
            nested.append(self.session.is_pending(('toggle', 1)))
            nested.append(self.session.toggle(1))
            nested.append(self.session.validate_all())
        self.gateway.hooks['toggle_checklist_item'] = retrigger

        self.session.toggle(1)

        self.assertEqual(nested[0], True)
        self.assertIsNone(nested[1])
        self.assertEqual(nested[2]['validated_count'], 2)
        self.assertEqual(len(self.gateway.calls_to('toggle_checklist_item')), 1)
        self.assertFalse(self.session.is_pending(('toggle', 1)))

    def test_asset_url_unchanged_is_not_saved(self):
        self.make_session(items=[item_payload(1, asset_url='https://files.example.com/a')])

        self.assertIsNone(self.session.update_asset_url(1, 'https://files.example.com/a'))
        self.assertIsNone(self.session.update_asset_url(1, ''))
        self.assertEqual(self.mutation_calls(), [])

    def test_asset_url_saved(self):
        self.make_session(items=[item_payload(1)])

        self.session.update_asset_url(1, '  https://files.example.com/b ')

        self.assertEqual(self.mutation_calls(), [
            ('update_checklist_asset_url', 1, 'https://files.example.com/b'),
        ])
        self.assertEqual(self.session.item(1).asset_url, 'https://files.example.com/b')
        self.assertEqual(self.messages(SUCCESS), ['Asset URL saved'])

    def test_validate_all_reports_count(self):
        self.make_session()

        self.session.validate_all()

        self.assertEqual(self.messages(SUCCESS), ['Validated 2 items'])

    def test_refetch_failure_is_reported(self):
        self.make_session(items=[item_payload(1)])
        self.gateway.failures[('fetch_song_detail',)] = GatewayError('down')

        self.session.toggle(1)

        self.assertEqual(self.messages(ERROR), ['Could not reload song: down'])
        # Previous snapshot is kept
        self.assertFalse(self.session.item(1).is_complete)
