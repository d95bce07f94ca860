"""
Validation functions for Song Workflow checklist items.

These functions validate checklist items based on their validation_type.
Manual items are never touched here; their completion comes from toggles,
asset URLs and backing tasks.
"""

import logging

from django.utils import timezone

logger = logging.getLogger(__name__)


def _entities(item, entity_type):
    """
    Entities an item's rule refers to.

    Recording-scoped items only look at their own recording.
    """
    song = item.song
    if entity_type == 'song':
        return [song]
    if entity_type == 'work':
        return [song.work] if song.work else []
    if entity_type == 'recording':
        if item.recording_id:
            return [item.recording]
        return list(song.recordings.all())
    if entity_type == 'release':
        return list(song.releases.all())
    return []


def validate_auto_field_exists(item):
    """
    Validates that a database field has a value.

    Validation rule format:
    {
        'entity': 'work' | 'recording' | 'release' | 'song',
        'field': 'field_name'
    }
    """
    rule = item.validation_rule or {}
    entity_type = rule.get('entity')
    field_name = rule.get('field')

    if not entity_type or not field_name:
        return False

    for entity in _entities(item, entity_type):
        value = getattr(entity, field_name, None)
        if value is not None and value != '':
            return True
    return False


def validate_auto_file_exists(item):
    """
    Validates that a file link is set.

    Validation rule format:
    {
        'entity': 'recording' | 'release',
        'file_field': 'audio_master_url' | 'artwork_url'
    }
    """
    rule = item.validation_rule or {}
    file_field = rule.get('file_field')
    if not file_field:
        return False

    return any(
        bool(getattr(entity, file_field, ''))
        for entity in _entities(item, rule.get('entity'))
    )


def validate_auto_entity_exists(item):
    """
    Validates that a related entity (Work, Recording, Release) exists.

    Validation rule format:
    {
        'entity': 'work' | 'recording' | 'release'
    }
    """
    rule = item.validation_rule or {}
    entity_type = rule.get('entity')

    song = item.song
    if entity_type == 'work':
        return song.work_id is not None
    elif entity_type == 'recording':
        return song.recordings.exists()
    elif entity_type == 'release':
        return song.releases.exists()

    return False


def validate_auto_count_minimum(item):
    """
    Validates that a minimum count of related items exists.

    Validation rule format:
    {
        'entity': 'recording' | 'release',
        'min_count': 1
    }
    """
    rule = item.validation_rule or {}
    entity_type = rule.get('entity')
    min_count = rule.get('min_count', 1)

    song = item.song
    if entity_type == 'recording':
        count = song.recordings.count()
    elif entity_type == 'release':
        count = song.releases.count()
    else:
        return False

    return count >= min_count


VALIDATORS = {
    'auto_field_exists': validate_auto_field_exists,
    'auto_file_exists': validate_auto_file_exists,
    'auto_entity_exists': validate_auto_entity_exists,
    'auto_count_minimum': validate_auto_count_minimum,
}


def run_validation(item):
    """
    Dispatcher function that runs the appropriate validator based on validation_type.

    Generic ``auto`` items name their check in ``validation_rule['check']``
    (e.g. ``{'check': 'field_exists', 'entity': 'work', 'field': 'iswc'}``);
    without one their completion is set by an external process and kept.

    Returns:
        Boolean indicating if validation passed
    """
    validation_type = item.validation_type

    if validation_type == 'manual':
        return item.is_complete

    if validation_type == 'auto':
        check = (item.validation_rule or {}).get('check')
        if not check:
            return item.is_complete
        validation_type = f'auto_{check}'

    validator = VALIDATORS.get(validation_type)
    if validator is None:
        logger.warning(f"Unknown validation type '{validation_type}' on checklist item {item.id}")
        return False
    return validator(item)


def revalidate_checklist_item(item):
    """
    Re-runs validation for a checklist item and updates its status.

    Returns:
        Boolean indicating new validation status
    """
    if item.validation_type == 'manual':
        return item.is_complete

    is_valid = run_validation(item)

    if is_valid != item.is_complete:
        item.is_complete = is_valid
        item.completed_at = timezone.now() if is_valid else None
        item.completed_by = None
        item.save(update_fields=['is_complete', 'completed_at', 'completed_by', 'updated_at'])

    return is_valid


def revalidate_song_checklist(song, stage=None):
    """
    Re-validates all automatic checklist items of a song.

    Args:
        song: Song instance
        stage: optional stage to restrict to

    Returns:
        Dictionary with validation summary; ``validated_count`` is the number
        of automatic items checked.
    """
    items = song.checklist_items.exclude(validation_type='manual').select_related(
        'song', 'song__work', 'recording'
    )
    if stage:
        items = items.filter(stage=stage)

    results = {
        'validated_count': 0,
        'passed': 0,
        'failed': 0,
        'updated': [],
    }

    for item in items:
        old_status = item.is_complete
        new_status = revalidate_checklist_item(item)

        results['validated_count'] += 1
        if new_status:
            results['passed'] += 1
        else:
            results['failed'] += 1

        if old_status != new_status:
            results['updated'].append({
                'item_id': item.id,
                'item_name': item.item_name,
                'old_status': old_status,
                'new_status': new_status,
            })

    if results['updated']:
        song.update_computed_fields()

    logger.info(
        f"Revalidated song {song.id}: {results['validated_count']} items, "
        f"{len(results['updated'])} changed"
    )
    return results
