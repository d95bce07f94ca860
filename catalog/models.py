from django.db import models
from django.core.validators import MinValueValidator
from django.utils import timezone
from django.contrib.auth import get_user_model

from catalog.workflow.stages import (
    NOT_STARTED,
    STAGE_STATUS_CHOICES,
    WORKFLOW_STAGES,
)

User = get_user_model()


class Work(models.Model):
    """
    Musical work (composition).
    The underlying song that can have multiple recordings.
    Identified by ISWC (International Standard Musical Work Code).
    """

    title = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Title of the musical work"
    )

    iswc = models.CharField(
        max_length=15,
        blank=True,
        help_text="ISWC code (e.g., T-123.456.789-0)"
    )

    language = models.CharField(
        max_length=10,
        blank=True,
        help_text="Primary language code (ISO 639-1)"
    )

    genre = models.CharField(
        max_length=50,
        blank=True,
        help_text="Primary genre"
    )

    lyrics = models.TextField(
        blank=True,
        help_text="Full lyrics of the work"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['title']

    def __str__(self):
        if self.iswc:
            return f"{self.title} ({self.iswc})"
        return self.title


class Recording(models.Model):
    """
    A specific recorded version of a Work.
    Identified by ISRC (International Standard Recording Code).
    """

    TYPE_CHOICES = [
        ('audio_master', 'Audio Master'),
        ('music_video', 'Music Video'),
        ('live_audio', 'Live Audio'),
        ('live_video', 'Live Video'),
        ('remix', 'Remix'),
        ('radio_edit', 'Radio Edit'),
        ('instrumental', 'Instrumental'),
        ('acoustic', 'Acoustic'),
    ]

    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('in_production', 'In Production'),
        ('completed', 'Completed'),
        ('released', 'Released'),
    ]

    title = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Recording title (may differ from work title)"
    )

    type = models.CharField(
        max_length=20,
        choices=TYPE_CHOICES,
        default='audio_master',
        help_text="Type of recording"
    )

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default='draft',
        help_text="Production status"
    )

    work = models.ForeignKey(
        Work,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='recordings',
        help_text="Underlying musical work"
    )

    isrc = models.CharField(
        max_length=15,
        blank=True,
        help_text="ISRC code (e.g., US-ABC-24-00001)"
    )

    duration_seconds = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Duration in seconds"
    )

    audio_master_url = models.URLField(
        max_length=500,
        blank=True,
        help_text="Link to the final audio master"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        if self.isrc:
            return f"{self.title} ({self.isrc})"
        return self.title


class Release(models.Model):
    """
    A commercial release (single, EP, album).
    Identified by UPC/EAN.
    """

    TYPE_CHOICES = [
        ('single', 'Single'),
        ('ep', 'EP'),
        ('album', 'Album'),
        ('compilation', 'Compilation'),
    ]

    title = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Release title"
    )

    type = models.CharField(
        max_length=20,
        choices=TYPE_CHOICES,
        default='single',
        help_text="Type of release"
    )

    upc = models.CharField(
        max_length=14,
        blank=True,
        help_text="UPC/EAN barcode"
    )

    release_date = models.DateField(
        null=True,
        blank=True,
        help_text="Official release date"
    )

    artwork_url = models.URLField(
        max_length=500,
        blank=True,
        help_text="Link to the cover artwork"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-release_date', '-created_at']

    def __str__(self):
        if self.upc:
            return f"{self.title} ({self.upc})"
        return self.title


# ============================================================================
# SONG WORKFLOW SYSTEM
# ============================================================================

VALIDATION_TYPE_CHOICES = [
    ('manual', 'Manual Check'),
    ('auto', 'Auto - System Validated'),
    ('auto_field_exists', 'Auto - Field Exists'),
    ('auto_file_exists', 'Auto - File Uploaded'),
    ('auto_entity_exists', 'Auto - Entity Created'),
    ('auto_count_minimum', 'Auto - Minimum Count'),
]

# Allowed targets of the generic transition action
VALID_TRANSITIONS = {
    'draft': ['publishing', 'archived'],
    'publishing': ['label_recording', 'archived'],
    'label_recording': ['marketing_assets', 'archived'],
    'marketing_assets': ['label_review', 'archived'],
    'label_review': ['ready_for_digital', 'marketing_assets', 'archived'],
    'ready_for_digital': ['digital_distribution', 'archived'],
    'digital_distribution': ['released', 'archived'],
    'released': ['archived'],
}


class Song(models.Model):
    """
    Song workflow orchestrator.
    Wraps technical entities (Work, Recording, Release) with workflow state.
    """

    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('normal', 'Normal'),
        ('high', 'High'),
        ('urgent', 'Urgent'),
    ]

    # ============ BASIC INFO ============
    title = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Song title"
    )

    genre = models.CharField(
        max_length=100,
        blank=True,
        help_text="Primary genre"
    )

    language = models.CharField(
        max_length=50,
        default='en',
        help_text="Primary language code"
    )

    # ============ WORKFLOW STATE ============
    stage = models.CharField(
        max_length=50,
        choices=WORKFLOW_STAGES,
        default='draft',
        db_index=True,
        help_text="Current workflow stage"
    )

    priority = models.CharField(
        max_length=20,
        choices=PRIORITY_CHOICES,
        default='normal',
        db_index=True,
        help_text="Song priority level"
    )

    target_release_date = models.DateField(
        null=True,
        blank=True,
        help_text="Target release date for this song"
    )

    stage_deadline = models.DateField(
        null=True,
        blank=True,
        help_text="Deadline for completing current stage"
    )

    # ============ RELATIONSHIPS ============
    work = models.ForeignKey(
        Work,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='songs',
        help_text="Associated musical work (composition)"
    )

    recordings = models.ManyToManyField(
        Recording,
        related_name='songs',
        blank=True,
        help_text="Associated recordings"
    )

    releases = models.ManyToManyField(
        Release,
        related_name='songs',
        blank=True,
        help_text="Associated releases"
    )

    # ============ OWNERSHIP ============
    created_by = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='songs_created',
        help_text="User who created this song"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # ============ STAGE TRACKING ============
    stage_entered_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the song entered the current stage"
    )

    stage_updated_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='song_stage_updates',
        help_text="Last user to update the stage"
    )

    # ============ COMPUTED FIELDS ============
    checklist_progress = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=0,
        help_text="Percentage of song-level checklist items complete (0-100)"
    )

    is_overdue = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the song is past its stage deadline"
    )

    days_in_current_stage = models.IntegerField(
        default=0,
        help_text="Number of days in current stage"
    )

    # ============ STATUS FLAGS ============
    is_archived = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the song has been archived"
    )

    internal_notes = models.TextField(
        blank=True,
        help_text="Internal notes"
    )

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['is_archived', 'stage'], name='catalog_son_is_arch_5c1f0e_idx'),
            models.Index(fields=['priority', 'stage'], name='catalog_son_priorit_8b7d21_idx'),
            models.Index(fields=['is_overdue'], name='catalog_son_is_over_3e9a4c_idx'),
        ]
        verbose_name = "Song"
        verbose_name_plural = "Songs"

    def __str__(self):
        return f"{self.title} - {self.get_stage_display()}"

    def can_transition_to(self, target_stage):
        """
        Check if the song can move to target stage.

        Returns:
            tuple: (can_transition: bool, reason: str)
        """
        current_stage = self.stage or 'draft'
        allowed_next_stages = VALID_TRANSITIONS.get(current_stage, [])
        if target_stage not in allowed_next_stages:
            return (False, f"Cannot transition from {current_stage} to {target_stage}")

        checklist_progress = self.calculate_checklist_progress()
        if checklist_progress < 100:
            return (False, f"Checklist incomplete ({checklist_progress:.0f}% complete)")

        return (True, "Transition allowed")

    def get_current_checklist(self):
        current_stage = self.stage or 'draft'
        return self.checklist_items.filter(stage=current_stage)

    def calculate_checklist_progress(self):
        """
        Percentage of required song-level items complete in the current stage.

        Recording-scoped items are tracked per recording and do not count here.
        """
        items = self.get_current_checklist().filter(required=True, recording__isnull=True)
        if not items.exists():
            return 100.0
        completed = items.filter(is_complete=True).count()
        return (completed / items.count()) * 100

    def update_computed_fields(self):
        """Update computed fields (checklist_progress, is_overdue, days_in_current_stage)."""
        self.checklist_progress = round(self.calculate_checklist_progress(), 2)

        if self.stage_deadline:
            self.is_overdue = timezone.now().date() > self.stage_deadline
        else:
            self.is_overdue = False

        if self.stage_entered_at:
            self.days_in_current_stage = (timezone.now() - self.stage_entered_at).days
        else:
            self.days_in_current_stage = 0

        self.save(update_fields=['checklist_progress', 'is_overdue', 'days_in_current_stage', 'updated_at'])

    def get_stage_status(self, stage):
        """Stage status row for ``stage``, created as not started on first reference."""
        status, _ = self.stage_statuses.get_or_create(
            stage=stage,
            defaults={'status': NOT_STARTED}
        )
        return status


class ChecklistTemplate(models.Model):
    """
    Reusable checklist for a workflow stage.
    Song templates are attached once per song; recording templates are
    attached once per recording linked to the song.
    """

    ENTITY_TYPE_CHOICES = [
        ('song', 'Song'),
        ('recording', 'Recording'),
    ]

    name = models.CharField(
        max_length=255,
        help_text="Template name"
    )

    stage = models.CharField(
        max_length=50,
        choices=WORKFLOW_STAGES,
        db_index=True,
        help_text="Workflow stage this template belongs to"
    )

    entity_type = models.CharField(
        max_length=20,
        choices=ENTITY_TYPE_CHOICES,
        default='song',
        help_text="Whether items are attached to the song or to each recording"
    )

    description = models.TextField(blank=True)

    is_default = models.BooleanField(
        default=True,
        help_text="Attach automatically when the stage is started"
    )

    is_active = models.BooleanField(default=True, db_index=True)

    order = models.IntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['stage', 'order', 'id']
        unique_together = ('name', 'stage', 'entity_type')
        verbose_name = "Checklist Template"
        verbose_name_plural = "Checklist Templates"

    def __str__(self):
        return f"{self.name} ({self.get_stage_display()})"


class ChecklistTemplateItem(models.Model):
    """
    One requirement of a checklist template.
    Items with task inputs or a quantity above 1 are completed through tasks.
    """

    template = models.ForeignKey(
        ChecklistTemplate,
        on_delete=models.CASCADE,
        related_name='items',
        help_text="Parent template"
    )

    category = models.CharField(
        max_length=100,
        help_text="Category (e.g., 'Legal', 'Audio', 'Metadata')"
    )

    item_name = models.CharField(max_length=255)

    description = models.TextField(blank=True)

    help_text = models.TextField(blank=True)

    order = models.IntegerField(default=0)

    required = models.BooleanField(default=True)

    validation_type = models.CharField(
        max_length=50,
        choices=VALIDATION_TYPE_CHOICES,
        default='manual',
        help_text="How to validate this item"
    )

    validation_rule = models.JSONField(
        null=True,
        blank=True,
        help_text="Configuration for auto validators (JSON)"
    )

    # ============ TASK BACKING ============
    has_task_inputs = models.BooleanField(
        default=False,
        help_text="Completed through a task form with structured inputs"
    )

    requires_review = models.BooleanField(
        default=False,
        help_text="Completed task instances must be approved"
    )

    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        help_text="Number of completed task instances required"
    )

    task_type = models.CharField(
        max_length=50,
        default='general',
        help_text="Task type used for generated tasks"
    )

    input_fields = models.JSONField(
        default=list,
        blank=True,
        help_text="Task form fields: [{'name', 'label', 'type', 'required'}]"
    )

    class Meta:
        ordering = ['template', 'order', 'id']
        verbose_name = "Checklist Template Item"
        verbose_name_plural = "Checklist Template Items"

    def __str__(self):
        return f"{self.template.name} - {self.item_name}"

    @property
    def is_task_backed(self):
        return self.has_task_inputs or self.quantity > 1


class SongChecklistItem(models.Model):
    """
    Checklist items for song workflow validation.
    Defines requirements that must be met before stage transitions.
    """

    # ============ RELATIONSHIPS ============
    song = models.ForeignKey(
        Song,
        on_delete=models.CASCADE,
        related_name='checklist_items',
        help_text="Associated song"
    )

    recording = models.ForeignKey(
        Recording,
        on_delete=models.CASCADE,
        related_name='checklist_items',
        null=True,
        blank=True,
        help_text="Associated recording (if this is a recording-specific checklist item)"
    )

    template_item = models.ForeignKey(
        ChecklistTemplateItem,
        on_delete=models.SET_NULL,
        related_name='song_items',
        null=True,
        blank=True,
        help_text="Template item this was generated from"
    )

    # ============ CHECKLIST DEFINITION ============
    stage = models.CharField(
        max_length=50,
        choices=WORKFLOW_STAGES,
        db_index=True,
        help_text="Workflow stage this item belongs to"
    )

    category = models.CharField(
        max_length=100,
        help_text="Category (e.g., 'Legal', 'Audio', 'Metadata')"
    )

    item_name = models.CharField(
        max_length=255,
        help_text="Name of the checklist item"
    )

    description = models.TextField(
        blank=True,
        help_text="Detailed description of the requirement"
    )

    order = models.IntegerField(
        default=0,
        help_text="Display order within category"
    )

    # ============ VALIDATION RULES ============
    required = models.BooleanField(
        default=True,
        help_text="Must complete to transition to next stage"
    )

    validation_type = models.CharField(
        max_length=50,
        choices=VALIDATION_TYPE_CHOICES,
        default='manual',
        help_text="How to validate this item"
    )

    validation_rule = models.JSONField(
        null=True,
        blank=True,
        help_text="Configuration for auto validators (JSON)"
    )

    # ============ COMPLETION STATUS ============
    is_complete = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether this item is complete"
    )

    completed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='completed_checklist_items',
        help_text="User who completed this item"
    )

    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When this item was completed"
    )

    asset_url = models.URLField(
        max_length=500,
        blank=True,
        help_text="Reference URL; saving one completes a manual item"
    )

    # ============ HELP & GUIDANCE ============
    help_text = models.TextField(
        blank=True,
        help_text="Instructions on how to complete this item"
    )

    # ============ ASSIGNMENT ============
    assigned_to = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_checklist_items',
        help_text="User assigned to complete this item"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['order', 'id']
        indexes = [
            models.Index(fields=['song', 'stage', 'required'], name='catalog_son_song_id_4d2b8f_idx'),
            models.Index(fields=['is_complete'], name='catalog_son_is_comp_91a6e2_idx'),
        ]
        verbose_name = "Song Checklist Item"
        verbose_name_plural = "Song Checklist Items"

    def __str__(self):
        return f"{self.song.title} - {self.stage} - {self.item_name}"

    @property
    def is_manual(self):
        return self.validation_type == 'manual'

    @property
    def is_task_backed(self):
        return self.template_item is not None and self.template_item.is_task_backed

    @property
    def required_instances(self):
        if self.template_item is None:
            return 1
        return max(self.template_item.quantity, 1)

    def mark_complete(self, user=None):
        self.is_complete = True
        self.completed_at = timezone.now()
        self.completed_by = user

    def mark_incomplete(self):
        self.is_complete = False
        self.completed_at = None
        self.completed_by = None


class SongStageTransition(models.Model):
    """
    Audit log for song stage transitions.
    Tracks all changes to song workflow stage for accountability.
    """

    TRANSITION_TYPE_CHOICES = [
        ('forward', 'Forward Progress'),
        ('backward', 'Sent Back'),
        ('skip', 'Skipped Stage'),
        ('forced', 'Admin Override'),
    ]

    song = models.ForeignKey(
        Song,
        on_delete=models.CASCADE,
        related_name='stage_transitions',
        help_text="Associated song"
    )

    from_stage = models.CharField(
        max_length=50,
        choices=WORKFLOW_STAGES,
        help_text="Previous stage"
    )

    to_stage = models.CharField(
        max_length=50,
        choices=WORKFLOW_STAGES,
        help_text="New stage"
    )

    transitioned_by = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='song_transitions',
        help_text="User who performed the transition"
    )

    transitioned_at = models.DateTimeField(
        auto_now_add=True,
        help_text="When the transition occurred"
    )

    transition_type = models.CharField(
        max_length=50,
        choices=TRANSITION_TYPE_CHOICES,
        default='forward',
        help_text="Type of transition"
    )

    notes = models.TextField(
        blank=True,
        help_text="Notes about why transition happened"
    )

    checklist_completion_at_transition = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        help_text="Checklist completion percentage at time of transition"
    )

    class Meta:
        ordering = ['-transitioned_at']
        indexes = [
            models.Index(fields=['song', 'transitioned_at'], name='catalog_son_song_id_7f3c15_idx'),
        ]
        verbose_name = "Song Stage Transition"
        verbose_name_plural = "Song Stage Transitions"

    def __str__(self):
        return f"{self.song.title} - {self.from_stage} -> {self.to_stage}"


class SongStageStatus(models.Model):
    """
    Tracks the status of each workflow stage for a song.
    Every song has one SongStageStatus per stage of the production flow.
    Several stages may be 'in_progress' at the same time.
    """

    song = models.ForeignKey(
        Song,
        on_delete=models.CASCADE,
        related_name='stage_statuses',
        help_text="Associated song"
    )

    stage = models.CharField(
        max_length=50,
        choices=WORKFLOW_STAGES,
        help_text="Workflow stage"
    )

    status = models.CharField(
        max_length=20,
        choices=STAGE_STATUS_CHOICES,
        default=NOT_STARTED,
        db_index=True,
        help_text="Current status of this stage"
    )

    started_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When work on this stage began"
    )

    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When this stage was completed"
    )

    blocked_reason = models.TextField(
        blank=True,
        help_text="Why this stage is blocked (if status=blocked)"
    )

    notes = models.TextField(
        blank=True,
        help_text="Notes about work in this stage"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('song', 'stage')
        ordering = ['song', 'id']
        indexes = [
            models.Index(fields=['song', 'status'], name='catalog_son_song_id_b0e5d9_idx'),
        ]
        verbose_name = "Song Stage Status"
        verbose_name_plural = "Song Stage Statuses"

    def __str__(self):
        return f"{self.song.title} - {self.get_stage_display()} ({self.get_status_display()})"

    @property
    def days_in_status(self):
        if self.status == 'in_progress' and self.started_at:
            return (timezone.now() - self.started_at).days
        elif self.status == 'completed' and self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).days
        return None
