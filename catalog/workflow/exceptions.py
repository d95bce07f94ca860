"""
Errors raised by the workflow engine.

None of these is fatal: each one describes a single failed action that the
user can retry by hand.
"""


class WorkflowError(Exception):
    """Base class for workflow engine errors."""


class GatewayError(WorkflowError):
    """A consumed operation (fetch or mutation) failed."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MutationError(WorkflowError):
    """A stage mutation was rejected; nothing was changed by the controller."""

    def __init__(self, message, stage=None, cause=None):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.cause = cause


class CascadeError(WorkflowError):
    """
    The finish cascade stopped between its two legs.

    ``completed_stage`` is completed while ``next_stage`` is still not
    started; the next stage has to be started manually.
    """

    def __init__(self, completed_stage, next_stage, cause):
        message = (
            f"Stage '{completed_stage}' was completed but '{next_stage}' "
            f"could not be started: {cause}"
        )
        super().__init__(message)
        self.message = message
        self.completed_stage = completed_stage
        self.next_stage = next_stage
        self.cause = cause


class TaskResolutionError(WorkflowError):
    """The backing task for a checklist item could not be loaded or created."""

    def __init__(self, message, item_id=None, cause=None):
        super().__init__(message)
        self.message = message
        self.item_id = item_id
        self.cause = cause
