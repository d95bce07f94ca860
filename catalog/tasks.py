"""
Celery tasks for Song Workflow system.

These tasks run periodically to keep checklist state in step with catalog data.
"""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(name='catalog.revalidate_active_songs')
def revalidate_active_songs():
    """
    Re-run auto validators and refresh computed fields of every active song.

    Scheduled nightly via Celery Beat.

    Returns:
        Dictionary with summary of the run
    """
    from catalog.models import Song
    from catalog.validators import revalidate_song_checklist

    summary = {'songs': 0, 'items_updated': 0, 'errors': 0}

    for song in Song.objects.filter(is_archived=False).exclude(stage='released').iterator():
        summary['songs'] += 1
        try:
            result = revalidate_song_checklist(song)
            summary['items_updated'] += len(result['updated'])
            song.update_computed_fields()
        except Exception as e:
            summary['errors'] += 1
            logger.error(f"Error revalidating Song {song.id}: {e}", exc_info=True)

    logger.info(
        f"Revalidated {summary['songs']} songs: {summary['items_updated']} items updated, "
        f"{summary['errors']} errors"
    )
    return summary


@shared_task(name='catalog.seed_checklist_templates')
def seed_checklist_templates(stage=None):
    from catalog.checklist_templates import seed_builtin_templates

    templates_created, items_created = seed_builtin_templates(stage)
    logger.info(f"Seeded {templates_created} checklist templates with {items_created} items")
    return {'templates_created': templates_created, 'items_created': items_created}
