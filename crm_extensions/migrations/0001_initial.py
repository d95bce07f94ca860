# Initial schema for checklist-backed tasks

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Task',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(help_text='Task title/description', max_length=255)),
                ('description', models.TextField(blank=True, help_text='Detailed task description and requirements')),
                ('task_type', models.CharField(choices=[('general', 'General Task'), ('review', 'Review'), ('content_creation', 'Content Creation'), ('recording', 'Recording Session'), ('mixing', 'Mixing/Mastering'), ('video_production', 'Video Production'), ('artwork', 'Artwork Design'), ('registration', 'Work Registration'), ('platform_setup', 'Platform Setup')], db_index=True, default='general', help_text='Type of task for categorization', max_length=50)),
                ('source_stage', models.CharField(blank=True, help_text='Workflow stage the task was generated from', max_length=50)),
                ('instance_number', models.PositiveIntegerField(default=1, help_text='Instance number for quantity-based checklist items')),
                ('status', models.CharField(choices=[('todo', 'To Do'), ('in_progress', 'In Progress'), ('blocked', 'Blocked'), ('review', 'In Review'), ('done', 'Done'), ('cancelled', 'Cancelled')], db_index=True, default='todo', help_text='Current status of the task', max_length=20)),
                ('priority', models.IntegerField(choices=[(1, 'Low'), (2, 'Normal'), (3, 'High'), (4, 'Urgent')], db_index=True, default=2, help_text='Task priority level')),
                ('due_date', models.DateTimeField(blank=True, db_index=True, help_text='Task deadline', null=True)),
                ('started_at', models.DateTimeField(blank=True, help_text='When work on this task began', null=True)),
                ('completed_at', models.DateTimeField(blank=True, help_text='When this task was completed', null=True)),
                ('inputs', models.JSONField(blank=True, default=dict, help_text='Values submitted through the task form')),
                ('submitted_at', models.DateTimeField(blank=True, help_text='When the task was submitted for review', null=True)),
                ('reviewed_at', models.DateTimeField(blank=True, null=True)),
                ('review_notes', models.TextField(blank=True, help_text='Reviewer feedback')),
                ('notes', models.TextField(blank=True, help_text='Additional notes or comments')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('assigned_to', models.ForeignKey(blank=True, help_text='User responsible for this task', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assigned_tasks', to=settings.AUTH_USER_MODEL)),
                ('created_by', models.ForeignKey(help_text='User who created this task', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_tasks', to=settings.AUTH_USER_MODEL)),
                ('reviewed_by', models.ForeignKey(blank=True, help_text='User who approved or rejected the task', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reviewed_tasks', to=settings.AUTH_USER_MODEL)),
                ('song', models.ForeignKey(blank=True, help_text='Song this task is associated with', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='tasks', to='catalog.song')),
                ('song_checklist_item', models.ForeignKey(blank=True, help_text='Checklist item this task completes', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='tasks', to='catalog.songchecklistitem')),
            ],
            options={
                'verbose_name': 'Task',
                'verbose_name_plural': 'Tasks',
                'ordering': ['-priority', 'due_date', '-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'priority', 'due_date'], name='crm_extens_status_2a41c7_idx'),
                    models.Index(fields=['assigned_to', 'status'], name='crm_extens_assigne_6e0b93_idx'),
                    models.Index(fields=['song_checklist_item', 'status'], name='crm_extens_song_ch_d58f10_idx'),
                    models.Index(fields=['song', 'status'], name='crm_extens_song_id_93c7ae_idx'),
                ],
            },
        ),
    ]
