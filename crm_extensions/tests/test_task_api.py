"""
Tests for the task API.

- complete / approve / reject actions
- status changes that would bypass review are refused
- task board filters and stats
"""

from datetime import timedelta

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from catalog.checklist_templates import build_checklist_item
from catalog.models import ChecklistTemplate, ChecklistTemplateItem, Song
from crm_extensions.models import Task
from crm_extensions.services import TaskGenerator

User = get_user_model()


class TaskAPITestCase(APITestCase):

    def setUp(self):
        self.user = User.objects.create_user(username='marketing', email='marketing@test.com', password='test123')
        self.reviewer = User.objects.create_user(username='label', email='label@test.com', password='test123')
        self.client.force_authenticate(user=self.user)

        self.song = Song.objects.create(title='Test Song', created_by=self.user, stage='marketing_assets')
        template = ChecklistTemplate.objects.create(name='Marketing Checklist', stage='marketing_assets')
        template_item = ChecklistTemplateItem.objects.create(
            template=template,
            category='TikTok',
            item_name='TikTok videos created',
            quantity=2,
            requires_review=True,
            input_fields=[{'name': 'video_url', 'label': 'Video link', 'type': 'url', 'required': True}],
        )
        self.item = build_checklist_item(self.song, template_item)
        self.item.save()
        self.task = TaskGenerator.get_or_create_for_checklist_item(self.item, self.user)

    def url(self, suffix=''):
        return f'/api/v1/crm/tasks/{self.task.id}/{suffix}'

    def test_retrieve(self):
        response = self.client.get(self.url())

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['instance_number'], 1)
        self.assertTrue(response.data['requires_review'])
        self.assertEqual(response.data['input_fields'][0]['name'], 'video_url')
        self.assertEqual(response.data['song_detail']['id'], self.song.id)

    def test_complete_missing_inputs(self):
        response = self.client.post(self.url('complete/'), {'inputs': {}}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Missing required inputs: Video link')

    def test_complete_goes_to_review(self):
        response = self.client.post(
            self.url('complete/'), {'inputs': {'video_url': 'https://video.example.com/1'}}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'review')
        self.assertIsNotNone(response.data['submitted_at'])

    def test_approve_and_reject(self):
        self.client.post(self.url('complete/'), {'inputs': {'video_url': 'https://video.example.com/1'}}, format='json')
        self.client.force_authenticate(user=self.reviewer)

        response = self.client.post(self.url('reject/'), {'notes': 'Wrong aspect ratio'}, format='json')
        self.assertEqual(response.data['status'], 'in_progress')
        self.assertEqual(response.data['review_notes'], 'Wrong aspect ratio')

        self.client.force_authenticate(user=self.user)
        self.client.post(self.url('complete/'), {}, format='json')
        self.client.force_authenticate(user=self.reviewer)

        response = self.client.post(self.url('approve/'), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'done')
        self.task.refresh_from_db()
        self.assertEqual(self.task.reviewed_by, self.reviewer)

    def test_approve_requires_review(self):
        response = self.client.post(self.url('approve/'), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_checklist_completes_after_all_instances_approved(self):
        second = TaskGenerator.get_or_create_for_checklist_item(self.item, self.user)
        self.assertEqual(second.id, self.task.id)

        for number in (1, 2):
            task = TaskGenerator.get_or_create_for_checklist_item(self.item, self.user)
            self.client.post(
                f'/api/v1/crm/tasks/{task.id}/complete/',
                {'inputs': {'video_url': f'https://video.example.com/{number}'}},
                format='json',
            )
            self.client.post(f'/api/v1/crm/tasks/{task.id}/approve/', {}, format='json')

        self.item.refresh_from_db()
        self.assertTrue(self.item.is_complete)
        self.assertEqual(Task.objects.filter(song_checklist_item=self.item, status='done').count(), 2)

    def test_update_status_cannot_skip_review(self):
        response = self.client.post(self.url('update_status/'), {'status': 'done'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Use the complete action to submit checklist tasks')

    def test_update_status(self):
        response = self.client.post(self.url('update_status/'), {'status': 'blocked'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'blocked')

    def test_update_fields(self):
        response = self.client.patch(
            self.url(), {'assigned_to': self.reviewer.id, 'inputs': {'video_url': 'draft'}}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['assigned_to'], self.reviewer.id)
        self.assertEqual(response.data['inputs'], {'video_url': 'draft'})
        self.assertEqual(response.data['status'], 'todo')

    def test_my_tasks_filter(self):
        Task.objects.filter(pk=self.task.pk).update(assigned_to=self.reviewer)

        mine = self.client.get('/api/v1/crm/tasks/', {'my_tasks': 'true'})
        everything = self.client.get('/api/v1/crm/tasks/')

        self.assertEqual(mine.data['count'], 0)
        self.assertEqual(everything.data['count'], 1)

    def test_overdue_filter(self):
        Task.objects.filter(pk=self.task.pk).update(due_date=timezone.now() - timedelta(days=1))

        overdue = self.client.get('/api/v1/crm/tasks/', {'is_overdue': 'true'})
        stats = self.client.get('/api/v1/crm/tasks/dashboard_stats/')

        self.assertEqual(overdue.data['count'], 1)
        self.assertEqual(stats.data['overdue'], 1)

    def test_dashboard_stats(self):
        response = self.client.get('/api/v1/crm/tasks/dashboard_stats/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['by_status'], {'todo': 1})
        self.assertEqual(response.data['pending_review'], 0)
