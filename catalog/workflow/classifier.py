"""
Checklist item classifier.

Maps an item's raw flags (validation_type, has_task_inputs, quantity) to the
single interaction mode that decides what a completion click does. Call
sites switch on the resolved mode instead of re-reading the flags.
"""

from enum import Enum

MANUAL = 'manual'


class InteractionMode(Enum):
    READ_ONLY_AUTO = 'read_only_auto'
    SIMPLE_TOGGLE = 'simple_toggle'
    TASK_MODAL = 'task_modal'


def is_manual(item):
    return item.validation_type == MANUAL


def classify(item):
    """
    Resolve the interaction mode of a checklist item.

    - any non-manual validation type: READ_ONLY_AUTO (display only)
    - manual with task inputs or quantity > 1: TASK_MODAL
    - any other manual item: SIMPLE_TOGGLE
    """
    if not is_manual(item):
        return InteractionMode.READ_ONLY_AUTO

    detail = item.template_item_detail
    if detail is not None and (detail.has_task_inputs or detail.quantity > 1):
        return InteractionMode.TASK_MODAL

    return InteractionMode.SIMPLE_TOGGLE


def action_label(item):
    mode = classify(item)
    if mode is InteractionMode.TASK_MODAL:
        if item.template_item_detail.quantity > 1:
            return 'Add Instance'
        return 'Complete Task'
    if mode is InteractionMode.SIMPLE_TOGGLE:
        return 'Toggle'
    return None


def accepts_asset_url(item):
    """Every manual item exposes the asset URL field, whatever its mode."""
    return is_manual(item)


def should_save_asset_url(item, value):
    """Only a non-empty value that differs from the stored URL is saved."""
    if not accepts_asset_url(item):
        return False
    value = (value or '').strip()
    if not value:
        return False
    return value != (item.asset_url or '')
