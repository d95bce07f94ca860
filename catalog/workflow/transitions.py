"""
Stage transition controller.

Owns the status of one selected stage (which may or may not be the song's
current stage). ``current_stage`` itself is moved by the server once a stage
is started or a terminal action fires; the controller never sets it.

State machine per selected stage:

    not_started --start-->  in_progress
    in_progress --finish--> completed   (+ next stage --> in_progress)
    blocked     --resume--> in_progress
    completed   (terminal, no action)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .exceptions import CascadeError, GatewayError, MutationError
from .stages import BLOCKED, COMPLETED, IN_PROGRESS, NOT_STARTED, next_stage

logger = logging.getLogger(__name__)


class StageAction(Enum):
    START = 'start'
    FINISH = 'finish'
    RESUME = 'resume'
    NONE = 'none'


class TerminalAction(Enum):
    SEND_TO_MARKETING = 'send_to_marketing'
    SEND_TO_DIGITAL = 'send_to_digital'
    FINISH = 'finish'


# Exactly one legal action per status
STATUS_ACTIONS = {
    NOT_STARTED: StageAction.START,
    IN_PROGRESS: StageAction.FINISH,
    BLOCKED: StageAction.RESUME,
    COMPLETED: StageAction.NONE,
}

TERMINAL_ACTIONS_BY_STAGE = {
    'label_recording': TerminalAction.SEND_TO_MARKETING,
    'ready_for_digital': TerminalAction.SEND_TO_DIGITAL,
}


def action_for_status(status):
    """Legal action for a stage status; unknown statuses are treated as not started."""
    return STATUS_ACTIONS.get(status, StageAction.START)


def terminal_action_for(current_stage, song_level_percent):
    """
    Stage-specific terminal action once the song-level checklist is complete.

    label_recording offers "send to marketing", ready_for_digital offers
    "send to digital", every other stage offers the generic finish. Nothing
    is offered below 100%.
    """
    if song_level_percent != 100:
        return None
    return TERMINAL_ACTIONS_BY_STAGE.get(current_stage, TerminalAction.FINISH)


@dataclass(frozen=True)
class TransitionResult:
    stage: str
    action: StageAction
    status: str
    started_next: Optional[str] = None


class StageTransitionController:
    """Runs stage mutations through a ``WorkflowGateway``."""

    def __init__(self, gateway):
        self.gateway = gateway

    def _set_status(self, song_id, stage, status, song_level_only=False):
        try:
            self.gateway.update_stage_status(song_id, stage, status, song_level_only=song_level_only)
        except GatewayError as e:
            raise MutationError(e.message, stage=stage, cause=e)
        logger.info(f"Song {song_id}: stage {stage} set to {status}")

    def start(self, song_id, stage):
        self._set_status(song_id, stage, IN_PROGRESS)
        return TransitionResult(stage=stage, action=StageAction.START, status=IN_PROGRESS)

    def resume(self, song_id, stage):
        self._set_status(song_id, stage, IN_PROGRESS)
        return TransitionResult(stage=stage, action=StageAction.RESUME, status=IN_PROGRESS)

    def finish(self, song_id, stage, song_level_only=False):
        """
        Complete ``stage`` and then start the stage after it.

        With ``song_level_only`` the server only checks the song-level items
        of ``stage``, the same gate the terminal finish is offered on.

        The second call is only issued after the first one succeeded. A
        failure of the second call leaves ``stage`` completed and raises
        CascadeError; it is neither rolled back nor retried.
        """
        self._set_status(song_id, stage, COMPLETED, song_level_only=song_level_only)

        following = next_stage(stage)
        if following is None:
            return TransitionResult(stage=stage, action=StageAction.FINISH, status=COMPLETED)

        try:
            self.gateway.update_stage_status(song_id, following, IN_PROGRESS)
        except GatewayError as e:
            logger.error(
                f"Song {song_id}: stage {stage} completed but {following} "
                f"could not be started: {e.message}"
            )
            raise CascadeError(stage, following, e)

        logger.info(f"Song {song_id}: stage {following} started after finishing {stage}")
        return TransitionResult(
            stage=stage, action=StageAction.FINISH, status=COMPLETED, started_next=following
        )

    def perform(self, song_id, stage, status):
        """Run the single legal action for ``status``; None when the stage is completed."""
        action = action_for_status(status)
        if action is StageAction.START:
            return self.start(song_id, stage)
        if action is StageAction.FINISH:
            return self.finish(song_id, stage)
        if action is StageAction.RESUME:
            return self.resume(song_id, stage)
        return None

    def send_to_marketing(self, song_id):
        try:
            return self.gateway.send_to_marketing(song_id)
        except GatewayError as e:
            raise MutationError(e.message, stage='label_recording', cause=e)

    def send_to_digital(self, song_id):
        try:
            return self.gateway.send_to_digital(song_id)
        except GatewayError as e:
            raise MutationError(e.message, stage='ready_for_digital', cause=e)

    def run_terminal_action(self, song_id, current_stage, action):
        if action is TerminalAction.SEND_TO_MARKETING:
            return self.send_to_marketing(song_id)
        if action is TerminalAction.SEND_TO_DIGITAL:
            return self.send_to_digital(song_id)
        return self.finish(song_id, current_stage, song_level_only=True)
