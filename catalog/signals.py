"""
Catalog signals for the song workflow.

Handles stage-status bootstrapping, stage starts, recording links and
auto-validation when Work, Recording or Release data changes.
"""

import logging
from django.db.models.signals import m2m_changed, post_save, pre_save
from django.dispatch import receiver
from django.utils import timezone
from .models import (
    Recording, Release, Song, SongChecklistItem, SongStageStatus, SongStageTransition, Work,
)
from .workflow.stages import IN_PROGRESS, NOT_STARTED, STAGE_FLOW, index_of

logger = logging.getLogger(__name__)


# ==================== Catalog entity Signals ====================

def _revalidate_songs(songs, source):
    from catalog.validators import revalidate_song_checklist

    for song in songs:
        try:
            result = revalidate_song_checklist(song)
            if result['updated']:
                logger.info(
                    f"{source}: auto-validated {len(result['updated'])} checklist item(s) "
                    f"for Song {song.id}"
                )
        except Exception as e:
            logger.error(f"Error revalidating Song {song.id} after {source} change: {e}", exc_info=True)


@receiver(post_save, sender=Work)
def on_work_saved(sender, instance, created, **kwargs):
    """Re-run auto validators of every song using this work."""
    _revalidate_songs(Song.objects.filter(work=instance), f"Work {instance.id}")


@receiver(post_save, sender=Recording)
def on_recording_saved(sender, instance, created, **kwargs):
    if created:
        return
    _revalidate_songs(instance.songs.all(), f"Recording {instance.id}")


@receiver(post_save, sender=Release)
def on_release_saved(sender, instance, created, **kwargs):
    if created:
        return
    _revalidate_songs(instance.songs.all(), f"Release {instance.id}")


@receiver(m2m_changed, sender=Song.recordings.through)
def on_song_recordings_changed(sender, instance, action, reverse, **kwargs):
    """
    Attach recording checklists for stages already started and re-run
    auto validators when recordings are linked to a song.
    """
    if action not in ('post_add', 'post_remove') or reverse:
        return

    from catalog import checklist_templates

    if action == 'post_add':
        created = checklist_templates.attach_recording_templates(instance)
        if created:
            logger.info(f"Song {instance.id}: attached {len(created)} recording checklist item(s)")

    _revalidate_songs([instance], f"Song {instance.id} recordings")


@receiver(m2m_changed, sender=Song.releases.through)
def on_song_releases_changed(sender, instance, action, reverse, **kwargs):
    if action not in ('post_add', 'post_remove') or reverse:
        return
    _revalidate_songs([instance], f"Song {instance.id} releases")


# ==================== Song Signals ====================

@receiver(post_save, sender=Song)
def create_song_stage_statuses(sender, instance, created, **kwargs):
    """
    Automatically create SongStageStatus records for new songs.
    One record per stage of the production flow; draft starts in progress.
    """
    if not created:
        return

    stage_statuses = []
    for stage_code in STAGE_FLOW:
        is_first = stage_code == STAGE_FLOW[0]
        stage_statuses.append(
            SongStageStatus(
                song=instance,
                stage=stage_code,
                status=IN_PROGRESS if is_first else NOT_STARTED,
                started_at=instance.created_at if is_first else None,
            )
        )

    SongStageStatus.objects.bulk_create(stage_statuses)
    if not instance.stage_entered_at:
        Song.objects.filter(pk=instance.pk).update(stage_entered_at=instance.created_at)
        instance.stage_entered_at = instance.created_at
    logger.info(f"Song {instance.id}: Created {len(stage_statuses)} stage status records")


# ==================== SongStageStatus Signals ====================

@receiver(pre_save, sender=SongStageStatus)
def track_stage_status_changes(sender, instance, **kwargs):
    """Track old status for change detection."""
    if instance.pk:
        instance._old_status = (
            SongStageStatus.objects.filter(pk=instance.pk)
            .values_list('status', flat=True)
            .first()
        )
    else:
        instance._old_status = None


@receiver(post_save, sender=SongStageStatus)
def on_stage_status_changed(sender, instance, created, **kwargs):
    """
    Handle a stage being started (status changed to in_progress).

    Actions:
    1. Make it the song's current stage and record the transition
    2. Attach the stage's default checklist if the song has none for it
    """
    from catalog import checklist_templates
    from catalog.validators import revalidate_song_checklist

    old_status = getattr(instance, '_old_status', None)
    if instance.status != IN_PROGRESS or old_status == IN_PROGRESS:
        return

    song = instance.song
    stage = instance.stage
    user = getattr(instance, '_changed_by', None)

    logger.info(f"Song {song.id}: Stage {stage} started")

    if song.stage != stage:
        from_stage = song.stage
        if user is not None:
            SongStageTransition.objects.create(
                song=song,
                from_stage=from_stage,
                to_stage=stage,
                transitioned_by=user,
                transition_type='backward' if index_of(stage) < index_of(from_stage) else 'forward',
                checklist_completion_at_transition=song.calculate_checklist_progress(),
            )

        song.stage = stage
        song.stage_entered_at = timezone.now()
        song.stage_updated_by = user
        song.save(update_fields=['stage', 'stage_entered_at', 'stage_updated_by', 'updated_at'])
        logger.info(f"Song {song.id}: Song stage updated {from_stage} -> {stage}")

    if not SongChecklistItem.objects.filter(song=song, stage=stage).exists():
        created_items = checklist_templates.generate_checklist_for_stage(song, stage)
        logger.info(f"Song {song.id}: Created {len(created_items)} checklist items for {stage}")
        if created_items:
            revalidate_song_checklist(song, stage=stage)

    song.update_computed_fields()


# ==================== SongChecklistItem Signals ====================

@receiver(pre_save, sender=SongChecklistItem)
def track_checklist_item_changes(sender, instance, **kwargs):
    if instance.pk:
        instance._old_is_complete = (
            SongChecklistItem.objects.filter(pk=instance.pk)
            .values_list('is_complete', flat=True)
            .first()
        )
    else:
        instance._old_is_complete = None


@receiver(post_save, sender=SongChecklistItem)
def on_checklist_item_saved(sender, instance, created, **kwargs):
    """Keep the song's checklist_progress current when an item's completion changes."""
    if created or getattr(instance, '_old_is_complete', None) != instance.is_complete:
        instance.song.update_computed_fields()
