"""
Tests for checklist template seeding and attachment.

- seed_builtin_templates() loads the built-in stage templates once
- starting a stage attaches its default checklist
- recording templates are attached per linked recording
- attaching a template twice creates no duplicates
"""

from django.contrib.auth import get_user_model
from django.test import TestCase

from catalog import checklist_templates, services
from catalog.models import ChecklistTemplate, ChecklistTemplateItem, Recording, Song, Work

User = get_user_model()


class SeedTemplatesTestCase(TestCase):

    def test_seed_is_idempotent(self):
        templates, items = checklist_templates.seed_builtin_templates()
        self.assertGreater(templates, 0)
        self.assertGreater(items, 0)

        self.assertEqual(checklist_templates.seed_builtin_templates(), (0, 0))

    def test_seed_single_stage(self):
        checklist_templates.seed_builtin_templates('publishing')

        template = ChecklistTemplate.objects.get(stage='publishing', entity_type='song')
        self.assertEqual(ChecklistTemplate.objects.count(), 1)
        self.assertEqual(template.items.count(), 4)

        writers = template.items.get(item_name='Writer information collected')
        self.assertTrue(writers.has_task_inputs)
        self.assertTrue(writers.is_task_backed)

    def test_draft_has_no_template(self):
        checklist_templates.seed_builtin_templates('draft')
        self.assertFalse(ChecklistTemplate.objects.exists())

    def test_quantity_items(self):
        checklist_templates.seed_builtin_templates('marketing_assets')

        reels = ChecklistTemplateItem.objects.get(item_name='Instagram Reels created')
        tiktok = ChecklistTemplateItem.objects.get(item_name='TikTok videos created')
        self.assertEqual(reels.quantity, 3)
        self.assertEqual(tiktok.quantity, 2)
        self.assertTrue(tiktok.requires_review)


class StageChecklistTestCase(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(
            username='publisher', email='publisher@test.com', password='test123'
        )
        self.work = Work.objects.create(title='Test Work', iswc='T-123.456.789-0')
        self.song = Song.objects.create(title='Test Song', created_by=self.user, work=self.work)

    def test_starting_stage_attaches_checklist(self):
        services.update_stage_status(self.song, 'publishing', 'in_progress', self.user)

        self.song.refresh_from_db()
        self.assertEqual(self.song.stage, 'publishing')
        items = self.song.checklist_items.filter(stage='publishing')
        self.assertEqual(items.count(), 4)

        # Auto items are validated right away
        self.assertTrue(items.get(item_name='Work entity created').is_complete)
        self.assertTrue(items.get(item_name='ISWC assigned').is_complete)
        self.assertFalse(items.get(item_name='Publishing agreements uploaded').is_complete)

    def test_restarting_stage_keeps_existing_items(self):
        services.update_stage_status(self.song, 'publishing', 'in_progress', self.user)
        services.update_stage_status(self.song, 'publishing', 'blocked', self.user, blocked_reason='Waiting')
        services.update_stage_status(self.song, 'publishing', 'in_progress', self.user)

        self.assertEqual(self.song.checklist_items.filter(stage='publishing').count(), 4)

    def test_attach_template_twice(self):
        checklist_templates.seed_builtin_templates('publishing')
        template = ChecklistTemplate.objects.get(stage='publishing')

        first = checklist_templates.attach_template(self.song, template)
        second = checklist_templates.attach_template(self.song, template)

        self.assertEqual(len(first), 4)
        self.assertEqual(second, [])

    def test_recording_items_per_recording(self):
        radio = Recording.objects.create(title='Radio Edit', work=self.work)
        self.song.recordings.add(radio)

        services.update_stage_status(self.song, 'label_recording', 'in_progress', self.user)

        items = self.song.checklist_items.filter(stage='label_recording')
        self.assertEqual(items.filter(recording__isnull=True).count(), 2)
        self.assertEqual(items.filter(recording=radio).count(), 4)

        # Recordings linked after the stage started get their own items
        acoustic = Recording.objects.create(title='Acoustic', work=self.work)
        self.song.recordings.add(acoustic)

        self.assertEqual(items.filter(recording=acoustic).count(), 4)
        self.assertEqual(items.filter(recording=radio).count(), 4)

    def test_recording_items_not_attached_before_stage(self):
        radio = Recording.objects.create(title='Radio Edit', work=self.work)
        self.song.recordings.add(radio)

        self.assertFalse(self.song.checklist_items.filter(recording=radio).exists())
