# Initial schema for the catalog and song workflow

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


WORKFLOW_STAGES = [
    ('draft', 'Draft'),
    ('publishing', 'Publishing'),
    ('label_recording', 'Label - Recording'),
    ('marketing_assets', 'Marketing - Assets'),
    ('label_review', 'Label - Review'),
    ('ready_for_digital', 'Ready for Digital'),
    ('digital_distribution', 'Digital Distribution'),
    ('released', 'Released'),
    ('archived', 'Archived'),
]

VALIDATION_TYPE_CHOICES = [
    ('manual', 'Manual Check'),
    ('auto', 'Auto - System Validated'),
    ('auto_field_exists', 'Auto - Field Exists'),
    ('auto_file_exists', 'Auto - File Uploaded'),
    ('auto_entity_exists', 'Auto - Entity Created'),
    ('auto_count_minimum', 'Auto - Minimum Count'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Work',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(db_index=True, help_text='Title of the musical work', max_length=255)),
                ('iswc', models.CharField(blank=True, help_text='ISWC code (e.g., T-123.456.789-0)', max_length=15)),
                ('language', models.CharField(blank=True, help_text='Primary language code (ISO 639-1)', max_length=10)),
                ('genre', models.CharField(blank=True, help_text='Primary genre', max_length=50)),
                ('lyrics', models.TextField(blank=True, help_text='Full lyrics of the work')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['title'],
            },
        ),
        migrations.CreateModel(
            name='Recording',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(db_index=True, help_text='Recording title (may differ from work title)', max_length=255)),
                ('type', models.CharField(choices=[('audio_master', 'Audio Master'), ('music_video', 'Music Video'), ('live_audio', 'Live Audio'), ('live_video', 'Live Video'), ('remix', 'Remix'), ('radio_edit', 'Radio Edit'), ('instrumental', 'Instrumental'), ('acoustic', 'Acoustic')], default='audio_master', help_text='Type of recording', max_length=20)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('in_production', 'In Production'), ('completed', 'Completed'), ('released', 'Released')], default='draft', help_text='Production status', max_length=20)),
                ('isrc', models.CharField(blank=True, help_text='ISRC code (e.g., US-ABC-24-00001)', max_length=15)),
                ('duration_seconds', models.PositiveIntegerField(blank=True, help_text='Duration in seconds', null=True)),
                ('audio_master_url', models.URLField(blank=True, help_text='Link to the final audio master', max_length=500)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('work', models.ForeignKey(blank=True, help_text='Underlying musical work', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='recordings', to='catalog.work')),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Release',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(db_index=True, help_text='Release title', max_length=255)),
                ('type', models.CharField(choices=[('single', 'Single'), ('ep', 'EP'), ('album', 'Album'), ('compilation', 'Compilation')], default='single', help_text='Type of release', max_length=20)),
                ('upc', models.CharField(blank=True, help_text='UPC/EAN barcode', max_length=14)),
                ('release_date', models.DateField(blank=True, help_text='Official release date', null=True)),
                ('artwork_url', models.URLField(blank=True, help_text='Link to the cover artwork', max_length=500)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['-release_date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Song',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(db_index=True, help_text='Song title', max_length=255)),
                ('genre', models.CharField(blank=True, help_text='Primary genre', max_length=100)),
                ('language', models.CharField(default='en', help_text='Primary language code', max_length=50)),
                ('stage', models.CharField(choices=WORKFLOW_STAGES, db_index=True, default='draft', help_text='Current workflow stage', max_length=50)),
                ('priority', models.CharField(choices=[('low', 'Low'), ('normal', 'Normal'), ('high', 'High'), ('urgent', 'Urgent')], db_index=True, default='normal', help_text='Song priority level', max_length=20)),
                ('target_release_date', models.DateField(blank=True, help_text='Target release date for this song', null=True)),
                ('stage_deadline', models.DateField(blank=True, help_text='Deadline for completing current stage', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('stage_entered_at', models.DateTimeField(blank=True, help_text='When the song entered the current stage', null=True)),
                ('checklist_progress', models.DecimalField(decimal_places=2, default=0, help_text='Percentage of song-level checklist items complete (0-100)', max_digits=5)),
                ('is_overdue', models.BooleanField(db_index=True, default=False, help_text='Whether the song is past its stage deadline')),
                ('days_in_current_stage', models.IntegerField(default=0, help_text='Number of days in current stage')),
                ('is_archived', models.BooleanField(db_index=True, default=False, help_text='Whether the song has been archived')),
                ('internal_notes', models.TextField(blank=True, help_text='Internal notes')),
                ('created_by', models.ForeignKey(help_text='User who created this song', on_delete=django.db.models.deletion.PROTECT, related_name='songs_created', to=settings.AUTH_USER_MODEL)),
                ('recordings', models.ManyToManyField(blank=True, help_text='Associated recordings', related_name='songs', to='catalog.recording')),
                ('releases', models.ManyToManyField(blank=True, help_text='Associated releases', related_name='songs', to='catalog.release')),
                ('stage_updated_by', models.ForeignKey(blank=True, help_text='Last user to update the stage', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='song_stage_updates', to=settings.AUTH_USER_MODEL)),
                ('work', models.ForeignKey(blank=True, help_text='Associated musical work (composition)', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='songs', to='catalog.work')),
            ],
            options={
                'verbose_name': 'Song',
                'verbose_name_plural': 'Songs',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['is_archived', 'stage'], name='catalog_son_is_arch_5c1f0e_idx'),
                    models.Index(fields=['priority', 'stage'], name='catalog_son_priorit_8b7d21_idx'),
                    models.Index(fields=['is_overdue'], name='catalog_son_is_over_3e9a4c_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ChecklistTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='Template name', max_length=255)),
                ('stage', models.CharField(choices=WORKFLOW_STAGES, db_index=True, help_text='Workflow stage this template belongs to', max_length=50)),
                ('entity_type', models.CharField(choices=[('song', 'Song'), ('recording', 'Recording')], default='song', help_text='Whether items are attached to the song or to each recording', max_length=20)),
                ('description', models.TextField(blank=True)),
                ('is_default', models.BooleanField(default=True, help_text='Attach automatically when the stage is started')),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('order', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Checklist Template',
                'verbose_name_plural': 'Checklist Templates',
                'ordering': ['stage', 'order', 'id'],
                'unique_together': {('name', 'stage', 'entity_type')},
            },
        ),
        migrations.CreateModel(
            name='ChecklistTemplateItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('category', models.CharField(help_text="Category (e.g., 'Legal', 'Audio', 'Metadata')", max_length=100)),
                ('item_name', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('help_text', models.TextField(blank=True)),
                ('order', models.IntegerField(default=0)),
                ('required', models.BooleanField(default=True)),
                ('validation_type', models.CharField(choices=VALIDATION_TYPE_CHOICES, default='manual', help_text='How to validate this item', max_length=50)),
                ('validation_rule', models.JSONField(blank=True, help_text='Configuration for auto validators (JSON)', null=True)),
                ('has_task_inputs', models.BooleanField(default=False, help_text='Completed through a task form with structured inputs')),
                ('requires_review', models.BooleanField(default=False, help_text='Completed task instances must be approved')),
                ('quantity', models.PositiveIntegerField(default=1, help_text='Number of completed task instances required', validators=[django.core.validators.MinValueValidator(1)])),
                ('task_type', models.CharField(default='general', help_text='Task type used for generated tasks', max_length=50)),
                ('input_fields', models.JSONField(blank=True, default=list, help_text="Task form fields: [{'name', 'label', 'type', 'required'}]")),
                ('template', models.ForeignKey(help_text='Parent template', on_delete=django.db.models.deletion.CASCADE, related_name='items', to='catalog.checklisttemplate')),
            ],
            options={
                'verbose_name': 'Checklist Template Item',
                'verbose_name_plural': 'Checklist Template Items',
                'ordering': ['template', 'order', 'id'],
            },
        ),
        migrations.CreateModel(
            name='SongChecklistItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('stage', models.CharField(choices=WORKFLOW_STAGES, db_index=True, help_text='Workflow stage this item belongs to', max_length=50)),
                ('category', models.CharField(help_text="Category (e.g., 'Legal', 'Audio', 'Metadata')", max_length=100)),
                ('item_name', models.CharField(help_text='Name of the checklist item', max_length=255)),
                ('description', models.TextField(blank=True, help_text='Detailed description of the requirement')),
                ('order', models.IntegerField(default=0, help_text='Display order within category')),
                ('required', models.BooleanField(default=True, help_text='Must complete to transition to next stage')),
                ('validation_type', models.CharField(choices=VALIDATION_TYPE_CHOICES, default='manual', help_text='How to validate this item', max_length=50)),
                ('validation_rule', models.JSONField(blank=True, help_text='Configuration for auto validators (JSON)', null=True)),
                ('is_complete', models.BooleanField(db_index=True, default=False, help_text='Whether this item is complete')),
                ('completed_at', models.DateTimeField(blank=True, help_text='When this item was completed', null=True)),
                ('asset_url', models.URLField(blank=True, help_text='Reference URL; saving one completes a manual item', max_length=500)),
                ('help_text', models.TextField(blank=True, help_text='Instructions on how to complete this item')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('assigned_to', models.ForeignKey(blank=True, help_text='User assigned to complete this item', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assigned_checklist_items', to=settings.AUTH_USER_MODEL)),
                ('completed_by', models.ForeignKey(blank=True, help_text='User who completed this item', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='completed_checklist_items', to=settings.AUTH_USER_MODEL)),
                ('recording', models.ForeignKey(blank=True, help_text='Associated recording (if this is a recording-specific checklist item)', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='checklist_items', to='catalog.recording')),
                ('song', models.ForeignKey(help_text='Associated song', on_delete=django.db.models.deletion.CASCADE, related_name='checklist_items', to='catalog.song')),
                ('template_item', models.ForeignKey(blank=True, help_text='Template item this was generated from', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='song_items', to='catalog.checklisttemplateitem')),
            ],
            options={
                'verbose_name': 'Song Checklist Item',
                'verbose_name_plural': 'Song Checklist Items',
                'ordering': ['order', 'id'],
                'indexes': [
                    models.Index(fields=['song', 'stage', 'required'], name='catalog_son_song_id_4d2b8f_idx'),
                    models.Index(fields=['is_complete'], name='catalog_son_is_comp_91a6e2_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SongStageTransition',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('from_stage', models.CharField(choices=WORKFLOW_STAGES, help_text='Previous stage', max_length=50)),
                ('to_stage', models.CharField(choices=WORKFLOW_STAGES, help_text='New stage', max_length=50)),
                ('transitioned_at', models.DateTimeField(auto_now_add=True, help_text='When the transition occurred')),
                ('transition_type', models.CharField(choices=[('forward', 'Forward Progress'), ('backward', 'Sent Back'), ('skip', 'Skipped Stage'), ('forced', 'Admin Override')], default='forward', help_text='Type of transition', max_length=50)),
                ('notes', models.TextField(blank=True, help_text='Notes about why transition happened')),
                ('checklist_completion_at_transition', models.DecimalField(decimal_places=2, help_text='Checklist completion percentage at time of transition', max_digits=5)),
                ('song', models.ForeignKey(help_text='Associated song', on_delete=django.db.models.deletion.CASCADE, related_name='stage_transitions', to='catalog.song')),
                ('transitioned_by', models.ForeignKey(help_text='User who performed the transition', on_delete=django.db.models.deletion.PROTECT, related_name='song_transitions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Song Stage Transition',
                'verbose_name_plural': 'Song Stage Transitions',
                'ordering': ['-transitioned_at'],
                'indexes': [
                    models.Index(fields=['song', 'transitioned_at'], name='catalog_son_song_id_7f3c15_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SongStageStatus',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('stage', models.CharField(choices=WORKFLOW_STAGES, help_text='Workflow stage', max_length=50)),
                ('status', models.CharField(choices=[('not_started', 'Not Started'), ('in_progress', 'In Progress'), ('completed', 'Completed'), ('blocked', 'Blocked')], db_index=True, default='not_started', help_text='Current status of this stage', max_length=20)),
                ('started_at', models.DateTimeField(blank=True, help_text='When work on this stage began', null=True)),
                ('completed_at', models.DateTimeField(blank=True, help_text='When this stage was completed', null=True)),
                ('blocked_reason', models.TextField(blank=True, help_text='Why this stage is blocked (if status=blocked)')),
                ('notes', models.TextField(blank=True, help_text='Notes about work in this stage')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('song', models.ForeignKey(help_text='Associated song', on_delete=django.db.models.deletion.CASCADE, related_name='stage_statuses', to='catalog.song')),
            ],
            options={
                'verbose_name': 'Song Stage Status',
                'verbose_name_plural': 'Song Stage Statuses',
                'ordering': ['song', 'id'],
                'indexes': [
                    models.Index(fields=['song', 'status'], name='catalog_son_song_id_b0e5d9_idx'),
                ],
                'unique_together': {('song', 'stage')},
            },
        ),
    ]
