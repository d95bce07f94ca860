"""
Canonical song workflow stages and stage statuses.

Order matters: it defines "earlier" for carryover detection and "next" for
the finish cascade.
"""

WORKFLOW_STAGES = [
    ('draft', 'Draft'),
    ('publishing', 'Publishing'),
    ('label_recording', 'Label - Recording'),
    ('marketing_assets', 'Marketing - Assets'),
    ('label_review', 'Label - Review'),
    ('ready_for_digital', 'Ready for Digital'),
    ('digital_distribution', 'Digital Distribution'),
    ('released', 'Released'),
    ('archived', 'Archived'),
]

STAGE_LABELS = dict(WORKFLOW_STAGES)

# All nine stages, used for carryover ("earlier than")
STAGE_ORDER = [code for code, _ in WORKFLOW_STAGES]

# The production flow without 'archived', used for the finish cascade and
# for the per-song stage status rows
STAGE_FLOW = [code for code in STAGE_ORDER if code != 'archived']

NOT_STARTED = 'not_started'
IN_PROGRESS = 'in_progress'
BLOCKED = 'blocked'
COMPLETED = 'completed'

STAGE_STATUS_CHOICES = [
    (NOT_STARTED, 'Not Started'),
    (IN_PROGRESS, 'In Progress'),
    (COMPLETED, 'Completed'),
    (BLOCKED, 'Blocked'),
]

STAGE_STATUSES = [code for code, _ in STAGE_STATUS_CHOICES]


def index_of(stage, order=None):
    """Zero-based position of ``stage`` in ``order`` (STAGE_ORDER by default), -1 if unknown."""
    order = STAGE_ORDER if order is None else order
    try:
        return order.index(stage)
    except ValueError:
        return -1


def next_stage(stage):
    """Stage following ``stage`` in STAGE_FLOW, or None for the last/unknown stage."""
    idx = index_of(stage, STAGE_FLOW)
    if idx < 0 or idx >= len(STAGE_FLOW) - 1:
        return None
    return STAGE_FLOW[idx + 1]


def is_known_stage(stage):
    return stage in STAGE_LABELS
