"""
Song workflow services.

Mutations shared by the REST views and the in-process workflow gateway.
Every rejected request raises WorkflowServiceError carrying the message and
HTTP status the API answers with.
"""

import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.validators import URLValidator
from django.db import transaction
from django.utils import timezone

from catalog import checklist_templates
from catalog.models import (
    ChecklistTemplate,
    Recording,
    Release,
    Song,
    SongChecklistItem,
    SongStageTransition,
)
from catalog.workflow.aggregation import completion_percent
from catalog.workflow.stages import (
    BLOCKED,
    COMPLETED,
    IN_PROGRESS,
    NOT_STARTED,
    STAGE_FLOW,
    STAGE_LABELS,
    STAGE_STATUSES,
    index_of,
    next_stage,
)

User = get_user_model()
logger = logging.getLogger(__name__)


class WorkflowServiceError(Exception):

    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


# ============================================================================
# LOOKUPS
# ============================================================================

def get_song(song_id):
    try:
        return Song.objects.select_related('work', 'created_by', 'stage_updated_by').get(pk=song_id)
    except (Song.DoesNotExist, ValueError, TypeError):
        raise WorkflowServiceError(f'Song {song_id} not found', status_code=404)


def get_checklist_item(song_id, item_id):
    try:
        return SongChecklistItem.objects.select_related(
            'song', 'recording', 'template_item', 'completed_by', 'assigned_to'
        ).get(pk=item_id, song_id=song_id)
    except (SongChecklistItem.DoesNotExist, ValueError, TypeError):
        raise WorkflowServiceError(f'Checklist item {item_id} not found', status_code=404)


def stage_completion(song, stage, song_level_only=False):
    """Completion percentage of a stage's checklist (100 when it has no items)."""
    items = song.checklist_items.filter(stage=stage)
    if song_level_only:
        items = items.filter(recording__isnull=True)
    return completion_percent(items.only('is_complete'))


# ============================================================================
# CHECKLIST ITEMS
# ============================================================================

def toggle_checklist_item(item, user):
    """Flip completion of a simple manual item."""
    if not item.is_manual:
        raise WorkflowServiceError('Only manual checklist items can be toggled')
    if item.is_task_backed:
        raise WorkflowServiceError('This item is completed through its task')

    if item.is_complete:
        item.mark_incomplete()
    else:
        item.mark_complete(user)
    item.save()

    logger.info(
        f"Song {item.song_id}: checklist item {item.id} ('{item.item_name}') "
        f"toggled to {item.is_complete} by {user}"
    )
    return item


def update_checklist_asset_url(item, url, user):
    """Store the asset URL of a manual item; saving one completes the item."""
    if not item.is_manual:
        raise WorkflowServiceError('Asset URLs can only be set on manual checklist items')

    url = (url or '').strip()
    if not url:
        raise WorkflowServiceError('asset_url is required')
    try:
        URLValidator()(url)
    except ValidationError:
        raise WorkflowServiceError('asset_url must be a valid URL')

    item.asset_url = url
    if not item.is_complete:
        item.mark_complete(user)
    item.save()

    logger.info(f"Song {item.song_id}: asset URL set on checklist item {item.id}")
    return item


def assign_checklist_item(item, user_id):
    if not user_id:
        raise WorkflowServiceError('user_id is required')
    try:
        assignee = User.objects.get(pk=user_id)
    except (User.DoesNotExist, ValueError, TypeError):
        raise WorkflowServiceError('User not found', status_code=404)

    item.assigned_to = assignee
    item.save(update_fields=['assigned_to', 'updated_at'])
    logger.info(f"Song {item.song_id}: checklist item {item.id} assigned to user {assignee.pk}")
    return item


# ============================================================================
# STAGES
# ============================================================================

def update_stage_status(song, stage, status, user, notes=None, blocked_reason=None, song_level_only=False):
    """
    Set the status of one stage.

    Completing a stage requires its checklist (only its song-level items
    when ``song_level_only``) to be 100% complete. Starting a stage makes
    it the song's current stage (see catalog.signals).

    Returns:
        SongStageStatus
    """
    if stage not in STAGE_FLOW:
        raise WorkflowServiceError(f"Unknown stage '{stage}'")
    if status not in STAGE_STATUSES:
        raise WorkflowServiceError(f"Invalid status '{status}'")

    stage_status = song.get_stage_status(stage)

    if status == COMPLETED and stage_status.status != COMPLETED:
        percent = stage_completion(song, stage, song_level_only=song_level_only)
        if percent < 100:
            raise WorkflowServiceError(
                f"{STAGE_LABELS[stage]} checklist incomplete ({percent}% complete)"
            )

    now = timezone.now()
    if status == IN_PROGRESS:
        stage_status.started_at = stage_status.started_at or now
        stage_status.completed_at = None
        stage_status.blocked_reason = ''
    elif status == COMPLETED:
        stage_status.started_at = stage_status.started_at or now
        stage_status.completed_at = stage_status.completed_at or now
    elif status == BLOCKED:
        stage_status.blocked_reason = blocked_reason or stage_status.blocked_reason
    elif status == NOT_STARTED:
        stage_status.started_at = None
        stage_status.completed_at = None

    if notes is not None:
        stage_status.notes = notes

    stage_status.status = status
    stage_status._changed_by = user
    stage_status.save()

    logger.info(f"Song {song.id}: stage {stage} set to {status} by {user}")
    return stage_status


def complete_stage(song, stage, user, song_level_only=False):
    """
    Complete a stage and start the next one in a single transaction.

    Returns:
        tuple: (completed SongStageStatus, started SongStageStatus or None)
    """
    following = next_stage(stage)
    with transaction.atomic():
        completed = update_stage_status(song, stage, COMPLETED, user, song_level_only=song_level_only)
        started = None
        if following is not None:
            started = update_stage_status(song, following, IN_PROGRESS, user)
    return completed, started


def _send_forward(song, from_stage, user):
    if song.stage != from_stage:
        raise WorkflowServiceError(f'Song must be in {from_stage} stage')

    percent = stage_completion(song, from_stage, song_level_only=True)
    if percent < 100:
        raise WorkflowServiceError(
            f"{STAGE_LABELS[from_stage]} checklist incomplete ({percent}% complete)"
        )

    complete_stage(song, from_stage, user, song_level_only=True)
    song.refresh_from_db()
    return song


def send_to_marketing(song, user):
    """Move a song from label_recording to marketing_assets."""
    return _send_forward(song, 'label_recording', user)


def send_to_digital(song, user):
    """Move a song from ready_for_digital to digital_distribution."""
    return _send_forward(song, 'ready_for_digital', user)


def transition_song(song, target_stage, user, notes='', transition_type=None):
    """
    Move a song to any allowed stage.

    The current stage is marked completed and the target stage in progress.
    Moving to 'archived' archives the song.
    """
    can_transition, reason = song.can_transition_to(target_stage)
    if not can_transition:
        raise WorkflowServiceError(reason)

    from_stage = song.stage
    if transition_type is None:
        transition_type = 'backward' if index_of(target_stage) < index_of(from_stage) else 'forward'

    with transaction.atomic():
        SongStageTransition.objects.create(
            song=song,
            from_stage=from_stage,
            to_stage=target_stage,
            transitioned_by=user,
            transition_type=transition_type,
            notes=notes,
            checklist_completion_at_transition=song.calculate_checklist_progress(),
        )

        song.stage = target_stage
        song.stage_entered_at = timezone.now()
        song.stage_updated_by = user
        song.is_archived = target_stage == 'archived'
        song.save()

        if from_stage in STAGE_FLOW and transition_type != 'backward':
            stage_status = song.get_stage_status(from_stage)
            stage_status.status = COMPLETED
            stage_status.completed_at = timezone.now()
            stage_status.save()

        if target_stage in STAGE_FLOW:
            update_stage_status(song, target_stage, IN_PROGRESS, user)

        song.update_computed_fields()

    logger.info(f"Song {song.id}: transitioned {from_stage} -> {target_stage} by {user}")
    return song


# ============================================================================
# TEMPLATES & RELATED ENTITIES
# ============================================================================

def add_template(song, template_id):
    try:
        template = ChecklistTemplate.objects.get(pk=template_id, is_active=True)
    except (ChecklistTemplate.DoesNotExist, ValueError, TypeError):
        raise WorkflowServiceError('Checklist template not found', status_code=404)

    created = checklist_templates.attach_template(song, template)
    song.update_computed_fields()
    return created


def link_recording(song, recording_id):
    """
    Link an existing recording to a song.

    Returns:
        tuple: (recording, created) where created is False if already linked
    """
    if not recording_id:
        raise WorkflowServiceError('recording_id is required')
    try:
        recording = Recording.objects.get(pk=recording_id)
    except (Recording.DoesNotExist, ValueError, TypeError):
        raise WorkflowServiceError(f'Recording with id {recording_id} not found', status_code=404)

    if song.recordings.filter(pk=recording.pk).exists():
        return recording, False

    song.recordings.add(recording)

    if recording.work is None and song.work:
        recording.work = song.work
        recording.save()

    return recording, True


def link_release(song, release_id):
    if not release_id:
        raise WorkflowServiceError('release_id is required')
    try:
        release = Release.objects.get(pk=release_id)
    except (Release.DoesNotExist, ValueError, TypeError):
        raise WorkflowServiceError('Release not found', status_code=404)

    song.releases.add(release)
    return release
