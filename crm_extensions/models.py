from django.db import models
from django.contrib.auth import get_user_model
from django.utils import timezone

User = get_user_model()

OPEN_STATUSES = ('todo', 'in_progress', 'blocked')


class Task(models.Model):
    """
    Work item backing a song checklist item.
    Checklist items with structured inputs or a required quantity are
    completed through one Task per instance.
    """

    STATUS_CHOICES = [
        ('todo', 'To Do'),
        ('in_progress', 'In Progress'),
        ('blocked', 'Blocked'),
        ('review', 'In Review'),
        ('done', 'Done'),
        ('cancelled', 'Cancelled'),
    ]

    PRIORITY_CHOICES = [
        (1, 'Low'),
        (2, 'Normal'),
        (3, 'High'),
        (4, 'Urgent'),
    ]

    TASK_TYPE_CHOICES = [
        ('general', 'General Task'),
        ('review', 'Review'),
        ('content_creation', 'Content Creation'),
        ('recording', 'Recording Session'),
        ('mixing', 'Mixing/Mastering'),
        ('video_production', 'Video Production'),
        ('artwork', 'Artwork Design'),
        ('registration', 'Work Registration'),
        ('platform_setup', 'Platform Setup'),
    ]

    # Core fields
    title = models.CharField(
        max_length=255,
        help_text="Task title/description"
    )

    description = models.TextField(
        blank=True,
        help_text="Detailed task description and requirements"
    )

    task_type = models.CharField(
        max_length=50,
        choices=TASK_TYPE_CHOICES,
        default='general',
        db_index=True,
        help_text="Type of task for categorization"
    )

    # Song workflow links
    song = models.ForeignKey(
        'catalog.Song',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='tasks',
        help_text="Song this task is associated with"
    )

    song_checklist_item = models.ForeignKey(
        'catalog.SongChecklistItem',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='tasks',
        help_text="Checklist item this task completes"
    )

    source_stage = models.CharField(
        max_length=50,
        blank=True,
        help_text="Workflow stage the task was generated from"
    )

    instance_number = models.PositiveIntegerField(
        default=1,
        help_text="Instance number for quantity-based checklist items"
    )

    # Assignment and ownership
    assigned_to = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_tasks',
        help_text="User responsible for this task"
    )

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name='created_tasks',
        help_text="User who created this task"
    )

    # Status and priority
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default='todo',
        db_index=True,
        help_text="Current status of the task"
    )

    priority = models.IntegerField(
        choices=PRIORITY_CHOICES,
        default=2,
        db_index=True,
        help_text="Task priority level"
    )

    due_date = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Task deadline"
    )

    started_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When work on this task began"
    )

    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When this task was completed"
    )

    # Task form data
    inputs = models.JSONField(
        default=dict,
        blank=True,
        help_text="Values submitted through the task form"
    )

    # Review
    submitted_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the task was submitted for review"
    )

    reviewed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_tasks',
        help_text="User who approved or rejected the task"
    )

    reviewed_at = models.DateTimeField(
        null=True,
        blank=True
    )

    review_notes = models.TextField(
        blank=True,
        help_text="Reviewer feedback"
    )

    notes = models.TextField(
        blank=True,
        help_text="Additional notes or comments"
    )

    # Tracking
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-priority', 'due_date', '-created_at']
        indexes = [
            models.Index(fields=['status', 'priority', 'due_date'], name='crm_extens_status_2a41c7_idx'),
            models.Index(fields=['assigned_to', 'status'], name='crm_extens_assigne_6e0b93_idx'),
            models.Index(fields=['song_checklist_item', 'status'], name='crm_extens_song_ch_d58f10_idx'),
            models.Index(fields=['song', 'status'], name='crm_extens_song_id_93c7ae_idx'),
        ]
        verbose_name = 'Task'
        verbose_name_plural = 'Tasks'

    def __str__(self):
        return f"{self.title} ({self.get_status_display()})"

    def save(self, *args, **kwargs):
        """Auto-update timestamps based on status changes"""
        if self.status == 'in_progress' and not self.started_at:
            self.started_at = timezone.now()
        elif self.status == 'done' and not self.completed_at:
            self.completed_at = timezone.now()
        elif self.status not in ['done', 'cancelled'] and self.completed_at:
            self.completed_at = None

        super().save(*args, **kwargs)

    @property
    def is_open(self):
        return self.status in OPEN_STATUSES

    @property
    def is_overdue(self):
        """Check if task is overdue"""
        if self.due_date and self.status not in ['done', 'cancelled']:
            return timezone.now() > self.due_date
        return False

    @property
    def requires_review(self):
        item = self.song_checklist_item
        return bool(item and item.template_item and item.template_item.requires_review)
