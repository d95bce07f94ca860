"""
Tests for the song workflow engine (catalog.workflow).

No database: every test runs on payload snapshots, through FakeGateway
where a gateway is needed.
- classifier: interaction modes and asset URL rules
- aggregation: percentages, category/recording grouping, carryover
- transitions: legal actions, terminal actions, finish cascade
- resolver: backing task resolution
"""

from django.test import SimpleTestCase

from catalog.workflow.aggregation import (
    aggregate_stage,
    completion_percent,
    detect_carryover,
    group_by_category,
)
from catalog.workflow.classifier import (
    InteractionMode,
    action_label,
    classify,
    should_save_asset_url,
)
from catalog.workflow.exceptions import (
    CascadeError,
    GatewayError,
    MutationError,
    TaskResolutionError,
)
from catalog.workflow.resolver import TaskResolver
from catalog.workflow.snapshot import ChecklistItem, SongSnapshot, parse_checklist
from catalog.workflow.stages import STAGE_FLOW, STAGE_ORDER, next_stage
from catalog.workflow.transitions import (
    StageAction,
    StageTransitionController,
    TerminalAction,
    action_for_status,
    terminal_action_for,
)

from .fakes import FakeGateway, item_payload, song_payload

AUTO_TYPES = ['auto', 'auto_field_exists', 'auto_file_exists', 'auto_entity_exists', 'auto_count_minimum']


def make_item(item_id, **kwargs):
    return ChecklistItem.from_dict(item_payload(item_id, **kwargs))


class ClassifierTestCase(SimpleTestCase):

    def test_every_auto_type_is_read_only(self):
        for validation_type in AUTO_TYPES:
            for has_task_inputs in (False, True):
                for quantity in (0, 1, 2):
                    item = make_item(
                        1, validation_type=validation_type,
                        has_task_inputs=has_task_inputs, quantity=quantity,
                    )
                    self.assertIs(classify(item), InteractionMode.READ_ONLY_AUTO)

    def test_manual_combinations(self):
        expected = {
            (False, 0): InteractionMode.SIMPLE_TOGGLE,
            (False, 1): InteractionMode.SIMPLE_TOGGLE,
            (False, 2): InteractionMode.TASK_MODAL,
            (True, 0): InteractionMode.TASK_MODAL,
            (True, 1): InteractionMode.TASK_MODAL,
            (True, 2): InteractionMode.TASK_MODAL,
        }
        for (has_task_inputs, quantity), mode in expected.items():
            item = make_item(1, has_task_inputs=has_task_inputs, quantity=quantity)
            self.assertIs(classify(item), mode)

    def test_manual_with_task_inputs_opens_task(self):
        item = make_item(1, has_task_inputs=True)
        self.assertIs(classify(item), InteractionMode.TASK_MODAL)
        self.assertEqual(action_label(item), 'Complete Task')

    def test_manual_with_quantity_opens_task(self):
        item = make_item(1, quantity=3)
        self.assertIs(classify(item), InteractionMode.TASK_MODAL)
        self.assertEqual(action_label(item), 'Add Instance')

    def test_plain_manual_item_toggles(self):
        item = make_item(1)
        self.assertIsNone(item.template_item_detail)
        self.assertIs(classify(item), InteractionMode.SIMPLE_TOGGLE)
        self.assertEqual(action_label(item), 'Toggle')

    def test_auto_item_has_no_action(self):
        self.assertIsNone(action_label(make_item(1, validation_type='auto_entity_exists')))

    def test_asset_url_saved_only_when_changed(self):
        item = make_item(1, asset_url='https://files.example.com/a')

        self.assertFalse(should_save_asset_url(item, 'https://files.example.com/a'))
        self.assertFalse(should_save_asset_url(item, '   '))
        self.assertFalse(should_save_asset_url(item, None))
        self.assertTrue(should_save_asset_url(item, 'https://files.example.com/b'))

    def test_asset_url_available_on_task_items(self):
        item = make_item(1, has_task_inputs=True)
        self.assertTrue(should_save_asset_url(item, 'https://files.example.com/a'))

    def test_asset_url_never_saved_on_auto_items(self):
        item = make_item(1, validation_type='auto_file_exists')
        self.assertFalse(should_save_asset_url(item, 'https://files.example.com/a'))


class CompletionPercentTestCase(SimpleTestCase):

    def test_empty_collection_is_complete(self):
        self.assertEqual(completion_percent([]), 100)

    def test_rounds_half_up(self):
        items = [make_item(1, is_complete=True)] + [make_item(i) for i in range(2, 9)]
        # 1 of 8 = 12.5%
        self.assertEqual(completion_percent(items), 13)

    def test_thirds(self):
        one = [make_item(1, is_complete=True), make_item(2), make_item(3)]
        two = [make_item(1, is_complete=True), make_item(2, is_complete=True), make_item(3)]
        self.assertEqual(completion_percent(one), 33)
        self.assertEqual(completion_percent(two), 67)


class AggregationTestCase(SimpleTestCase):

    def test_categories_keep_first_seen_order_and_sort_items(self):
        items = [
            make_item(1, category='Legal', order=2),
            make_item(2, category='Audio', order=1),
            make_item(3, category='Legal', order=1, is_complete=True),
        ]
        groups = group_by_category(items)

        self.assertEqual([group.category for group in groups], ['Legal', 'Audio'])
        self.assertEqual([item.id for item in groups[0].items], [3, 1])
        self.assertEqual(groups[0].percent, 50)
        self.assertEqual(groups[0].completed_count, 1)

    def test_recording_items_grouped_per_recording(self):
        items = [
            make_item(1, stage='label_recording', category='Legal', is_complete=True),
            make_item(2, stage='label_recording', category='Audio', recording=10, recording_title='Radio Edit'),
            make_item(3, stage='label_recording', category='Audio', recording=11, recording_title='Acoustic',
                      is_complete=True),
            make_item(4, stage='label_recording', category='Audio', recording=10, is_complete=True),
            make_item(5, stage='publishing', category='Legal'),
        ]
        checklist = aggregate_stage(items, 'label_recording')

        self.assertEqual(len(checklist.items), 4)
        self.assertEqual([group.category for group in checklist.categories], ['Legal'])
        self.assertEqual(checklist.song_level_percent, 100)
        self.assertEqual(checklist.percent, 75)

        recordings = {group.recording_id: group for group in checklist.recordings}
        self.assertEqual(set(recordings), {10, 11})
        self.assertEqual(recordings[10].recording_title, 'Radio Edit')
        self.assertEqual(recordings[10].percent, 50)
        self.assertEqual(recordings[11].percent, 100)
        # Same category name, separate groups per recording
        self.assertEqual(len(recordings[10].categories[0].items), 2)
        self.assertEqual(len(recordings[11].categories[0].items), 1)

    def test_empty_stage_is_complete(self):
        checklist = aggregate_stage([make_item(1, stage='publishing')], 'label_review')
        self.assertEqual(checklist.percent, 100)
        self.assertTrue(checklist.is_complete)

    def test_carryover_lists_incomplete_earlier_items(self):
        items = [
            make_item(1, stage='publishing'),
            make_item(2, stage='publishing', is_complete=True),
            make_item(3, stage='label_recording', recording=10),
            make_item(4, stage='marketing_assets'),
            make_item(5, stage='ready_for_digital'),
            make_item(6, stage='unknown_stage'),
            make_item(7, stage='draft'),
        ]
        carryover = detect_carryover(items, 'marketing_assets')

        self.assertEqual([group.stage for group in carryover], ['draft', 'publishing', 'label_recording'])
        self.assertEqual([item.id for item in carryover[1].items], [1])
        self.assertEqual([item.id for item in carryover[2].items], [3])

    def test_no_carryover_in_first_stage(self):
        self.assertEqual(detect_carryover([make_item(1, stage='draft')], 'draft'), ())


class SnapshotTestCase(SimpleTestCase):

    def test_missing_status_record_is_not_started(self):
        payload = song_payload()
        payload['stage_statuses'] = payload['stage_statuses'][:2]
        song = SongSnapshot.from_dict(payload)
        self.assertEqual(song.status_of('released'), 'not_started')

    def test_parse_paginated_checklist(self):
        items = parse_checklist({'results': [item_payload(1), item_payload(2)]})
        self.assertEqual([item.id for item in items], [1, 2])


class StageRulesTestCase(SimpleTestCase):

    def test_stage_orders(self):
        self.assertEqual(len(STAGE_ORDER), 9)
        self.assertEqual(len(STAGE_FLOW), 8)
        self.assertNotIn('archived', STAGE_FLOW)
        self.assertEqual(next_stage('label_review'), 'ready_for_digital')
        self.assertIsNone(next_stage('released'))
        self.assertIsNone(next_stage('archived'))

    def test_one_action_per_status(self):
        self.assertIs(action_for_status('not_started'), StageAction.START)
        self.assertIs(action_for_status('in_progress'), StageAction.FINISH)
        self.assertIs(action_for_status('blocked'), StageAction.RESUME)
        self.assertIs(action_for_status('completed'), StageAction.NONE)
        self.assertIs(action_for_status('something_else'), StageAction.START)

    def test_terminal_actions_are_exclusive(self):
        self.assertIs(terminal_action_for('label_recording', 100), TerminalAction.SEND_TO_MARKETING)
        self.assertIs(terminal_action_for('ready_for_digital', 100), TerminalAction.SEND_TO_DIGITAL)
        for stage in STAGE_FLOW:
            if stage in ('label_recording', 'ready_for_digital'):
                continue
            self.assertIs(terminal_action_for(stage, 100), TerminalAction.FINISH)

    def test_no_terminal_action_below_complete(self):
        for stage in STAGE_FLOW:
            self.assertIsNone(terminal_action_for(stage, 99))


class StageTransitionControllerTestCase(SimpleTestCase):

    def setUp(self):
        self.gateway = FakeGateway(song=song_payload(statuses={'publishing': 'in_progress'}))
        self.controller = StageTransitionController(self.gateway)

    def test_finish_completes_and_starts_next(self):
        result = self.controller.finish(1, 'publishing')

        self.assertEqual(self.gateway.calls_to('update_stage_status'), [
            ('update_stage_status', 'publishing', 'completed'),
            ('update_stage_status', 'label_recording', 'in_progress'),
        ])
        self.assertEqual(result.started_next, 'label_recording')

    def test_finish_last_stage_makes_one_call(self):
        result = self.controller.finish(1, 'released')

        self.assertEqual(len(self.gateway.calls_to('update_stage_status')), 1)
        self.assertIsNone(result.started_next)

    def test_first_leg_failure_stops_cascade(self):
        self.gateway.failures[('update_stage_status', 'publishing', 'completed')] = GatewayError(
            'Publishing checklist incomplete (50% complete)', status_code=400
        )

        with self.assertRaises(MutationError) as ctx:
            self.controller.finish(1, 'publishing')

        self.assertEqual(ctx.exception.message, 'Publishing checklist incomplete (50% complete)')
        self.assertEqual(len(self.gateway.calls_to('update_stage_status')), 1)

    def test_second_leg_failure_is_not_rolled_back(self):
        self.gateway.failures[('update_stage_status', 'label_recording', 'in_progress')] = GatewayError('boom')

        with self.assertRaises(CascadeError) as ctx:
            self.controller.finish(1, 'publishing')

        self.assertEqual(ctx.exception.completed_stage, 'publishing')
        self.assertEqual(ctx.exception.next_stage, 'label_recording')
        self.assertEqual(len(self.gateway.calls_to('update_stage_status')), 2)
        statuses = {row['stage']: row['status'] for row in self.gateway.song['stage_statuses']}
        self.assertEqual(statuses['publishing'], 'completed')
        self.assertEqual(statuses['label_recording'], 'not_started')

    def test_perform_dispatches_on_status(self):
        self.assertEqual(self.controller.perform(1, 'label_review', 'not_started').action, StageAction.START)
        self.assertEqual(self.controller.perform(1, 'label_review', 'blocked').action, StageAction.RESUME)
        self.gateway.calls.clear()

        self.assertIsNone(self.controller.perform(1, 'label_review', 'completed'))
        self.assertEqual(self.gateway.calls, [])

    def test_terminal_action_failure_raises_mutation_error(self):
        self.gateway.failures[('send_to_marketing',)] = GatewayError('Song must be in label_recording stage')

        with self.assertRaises(MutationError):
            self.controller.run_terminal_action(1, 'label_recording', TerminalAction.SEND_TO_MARKETING)

    def test_terminal_finish_checks_song_level_items_only(self):
        self.controller.run_terminal_action(1, 'publishing', TerminalAction.FINISH)

        self.assertEqual(self.gateway.song_level_completions, ['publishing'])
        self.assertEqual(len(self.gateway.calls_to('update_stage_status')), 2)

    def test_stage_finish_checks_every_item(self):
        self.controller.finish(1, 'publishing')
        self.assertEqual(self.gateway.song_level_completions, [])


class TaskResolverTestCase(SimpleTestCase):

    def test_returns_task(self):
        gateway = FakeGateway(task={'id': 42})
        self.assertEqual(TaskResolver(gateway).resolve(1, 5), {'id': 42})

    def test_empty_answer_fails(self):
        gateway = FakeGateway(task={})

        with self.assertRaises(TaskResolutionError) as ctx:
            TaskResolver(gateway).resolve(1, 5)

        self.assertEqual(ctx.exception.message, 'Failed to load task')
        self.assertEqual(ctx.exception.item_id, 5)

    def test_gateway_error_is_wrapped(self):
        gateway = FakeGateway()
        gateway.failures[('get_or_create_task_for_checklist_item', 5)] = GatewayError('All 3 instances submitted')

        with self.assertRaises(TaskResolutionError) as ctx:
            TaskResolver(gateway).resolve(1, 5)

        self.assertEqual(ctx.exception.message, 'All 3 instances submitted')
