"""
Song production workflow engine.

Pure stage/checklist logic over immutable snapshots, plus the gateways that
feed it. Importing this package does not load Django models.
"""

from .aggregation import (
    CarryoverGroup,
    CategoryGroup,
    RecordingGroup,
    StageChecklist,
    aggregate_stage,
    completion_percent,
    detect_carryover,
    group_by_category,
)
from .classifier import InteractionMode, action_label, classify, should_save_asset_url
from .exceptions import CascadeError, GatewayError, MutationError, TaskResolutionError, WorkflowError
from .resolver import TaskResolver
from .session import Notice, SongWorkflowSession, StageView
from .snapshot import ChecklistItem, SongSnapshot, TemplateItemDetail, parse_checklist
from .stages import STAGE_FLOW, STAGE_ORDER, WORKFLOW_STAGES, index_of, next_stage
from .transitions import (
    StageAction,
    StageTransitionController,
    TerminalAction,
    action_for_status,
    terminal_action_for,
)
