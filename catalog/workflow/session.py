"""
Per-song workflow session.

Holds the latest song/checklist snapshot and derives every view from it.
Mutations go through the gateway; after each one settles (success or
failure) the snapshot is refetched wholesale, never patched locally.

Each control is identified by a key (``('toggle', item_id)``,
``('stage', stage)``, ``'send_to_marketing'`` ...). A control is pending only
while its own request runs; re-triggering a pending control is ignored and
other controls stay usable.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .aggregation import CarryoverGroup, StageChecklist, aggregate_stage, detect_carryover
from .classifier import InteractionMode, classify, should_save_asset_url
from .exceptions import GatewayError, WorkflowError
from .resolver import TaskResolver
from .snapshot import SongSnapshot, parse_checklist
from .stages import STAGE_LABELS
from .transitions import (
    StageAction,
    StageTransitionController,
    TerminalAction,
    action_for_status,
    terminal_action_for,
)

logger = logging.getLogger(__name__)

ERROR = 'error'
SUCCESS = 'success'

STAGE_ACTION_MESSAGES = {
    StageAction.START: 'Stage started',
    StageAction.FINISH: 'Stage completed',
    StageAction.RESUME: 'Stage resumed',
}


@dataclass(frozen=True)
class Notice:
    level: str
    message: str


@dataclass(frozen=True)
class StageView:
    stage: str
    status: str
    action: StageAction
    action_enabled: bool
    checklist: StageChecklist
    carryover: Tuple[CarryoverGroup, ...]
    terminal_action: Optional[TerminalAction]
    is_current: bool


class SongWorkflowSession:
    """
    Workflow state for one song.

    Usage:
        session = SongWorkflowSession(LocalWorkflowGateway(user), song.id)
        session.refresh()
        view = session.stage_view()
        session.click(item_id)
    """

    def __init__(self, gateway, song_id):
        self.gateway = gateway
        self.song_id = song_id
        self.controller = StageTransitionController(gateway)
        self.resolver = TaskResolver(gateway)
        self.song = None
        self.items = ()
        self.notices = []
        self._pending = set()

    # Snapshot

    def refresh(self):
        """Fetch song detail and checklist and replace the snapshot."""
        song = SongSnapshot.from_dict(self.gateway.fetch_song_detail(self.song_id))
        items = tuple(parse_checklist(self.gateway.fetch_checklist(self.song_id)))
        self.song, self.items = song, items
        return self

    def _refetch(self):
        try:
            self.refresh()
        except GatewayError as e:
            logger.warning(f"Song {self.song_id}: refetch failed: {e.message}")
            self._notify(ERROR, f"Could not reload song: {e.message}")

    def _ensure_loaded(self):
        if self.song is None:
            self.refresh()

    def item(self, item_id):
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    # Derived views

    def stage_view(self, stage=None):
        self._ensure_loaded()
        current = self.song.current_stage
        stage = stage or current
        status = self.song.status_of(stage)
        action = action_for_status(status)
        checklist = aggregate_stage(self.items, stage)

        # Finishing is only offered once the stage checklist is complete
        action_enabled = action is not StageAction.NONE
        if action is StageAction.FINISH:
            action_enabled = checklist.is_complete

        terminal = None
        if stage == current:
            terminal = terminal_action_for(current, checklist.song_level_percent)

        return StageView(
            stage=stage,
            status=status,
            action=action,
            action_enabled=action_enabled,
            checklist=checklist,
            carryover=detect_carryover(self.items, stage),
            terminal_action=terminal,
            is_current=stage == current,
        )

    # Pending controls and notices

    def is_pending(self, key):
        return key in self._pending

    def _notify(self, level, message):
        self.notices.append(Notice(level=level, message=message))

    def drain_notices(self):
        notices, self.notices = self.notices, []
        return notices

    def _run(self, key, operation, success_message=None):
        if key in self._pending:
            logger.debug(f"Song {self.song_id}: ignoring repeat trigger of {key}")
            return None

        self._pending.add(key)
        try:
            result = operation()
        except WorkflowError as e:
            logger.warning(f"Song {self.song_id}: {key} failed: {e.message}")
            self._notify(ERROR, e.message)
            return None
        finally:
            self._pending.discard(key)
            self._refetch()

        if success_message:
            self._notify(SUCCESS, success_message)
        return result

    # Item actions

    def click(self, item_id):
        """
        Completion click on an item, dispatched on its interaction mode.

        Returns ``(mode, payload)``: the toggled item for SIMPLE_TOGGLE, the
        resolved task for TASK_MODAL (None when resolution failed) and None
        for READ_ONLY_AUTO.
        """
        self._ensure_loaded()
        item = self.item(item_id)
        if item is None:
            self._notify(ERROR, 'Checklist item not found')
            return None, None

        mode = classify(item)
        if mode is InteractionMode.SIMPLE_TOGGLE:
            return mode, self.toggle(item_id)
        if mode is InteractionMode.TASK_MODAL:
            return mode, self.open_task(item_id)
        return mode, None

    def toggle(self, item_id):
        return self._run(
            ('toggle', item_id),
            lambda: self.gateway.toggle_checklist_item(self.song_id, item_id),
        )

    def update_asset_url(self, item_id, url):
        """Save ``url`` on a manual item; unchanged or empty values issue no request."""
        self._ensure_loaded()
        item = self.item(item_id)
        if item is None or not should_save_asset_url(item, url):
            return None
        return self._run(
            ('asset_url', item_id),
            lambda: self.gateway.update_checklist_asset_url(self.song_id, item_id, url.strip()),
            success_message='Asset URL saved',
        )

    def assign(self, item_id, user_id):
        return self._run(
            ('assign', item_id),
            lambda: self.gateway.assign_checklist_item(self.song_id, item_id, user_id),
            success_message='Item assigned',
        )

    def validate_all(self):
        result = self._run(
            'validate_all',
            lambda: self.gateway.validate_all_checklist(self.song_id),
        )
        if result is not None:
            self._notify(SUCCESS, f"Validated {result.get('validated_count', 0)} items")
        return result

    def open_task(self, item_id):
        """Resolve the backing task; None means the task form must not open."""
        return self._run(
            ('task', item_id),
            lambda: self.resolver.resolve(self.song_id, item_id),
        )

    # Stage actions

    def stage_action(self, stage=None):
        """Run the single legal action of ``stage`` (the current stage by default)."""
        view = self.stage_view(stage)
        if view.action is StageAction.NONE:
            return None
        if not view.action_enabled:
            self._notify(ERROR, f"Complete the {STAGE_LABELS.get(view.stage, view.stage)} checklist first")
            return None

        return self._run(
            ('stage', view.stage),
            lambda: self.controller.perform(self.song_id, view.stage, view.status),
            success_message=STAGE_ACTION_MESSAGES[view.action],
        )

    def _terminal(self, expected, key, message):
        view = self.stage_view()
        if view.terminal_action is not expected:
            self._notify(ERROR, 'This action is not available for the current stage')
            return None
        return self._run(
            key,
            lambda: self.controller.run_terminal_action(self.song_id, view.stage, expected),
            success_message=message,
        )

    def send_to_marketing(self):
        return self._terminal(TerminalAction.SEND_TO_MARKETING, 'send_to_marketing', 'Sent to marketing')

    def send_to_digital(self):
        return self._terminal(TerminalAction.SEND_TO_DIGITAL, 'send_to_digital', 'Sent to digital')

    def finish_current_stage(self):
        self._ensure_loaded()
        return self._terminal(
            TerminalAction.FINISH, ('stage', self.song.current_stage), 'Stage completed'
        )
