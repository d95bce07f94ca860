"""
Immutable snapshots of the song and checklist payloads.

The workflow engine never works on ORM instances or raw JSON directly: the
REST payloads (or the same payloads produced in-process by the serializers)
are parsed once into these frozen dataclasses and every derived view is
computed from them.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .stages import NOT_STARTED


@dataclass(frozen=True)
class TemplateItemDetail:
    has_task_inputs: bool = False
    requires_review: bool = False
    quantity: int = 1
    task_count: int = 0
    completed_count: int = 0
    pending_review_count: int = 0
    id: Optional[int] = None

    @classmethod
    def from_dict(cls, data):
        if not data:
            return None
        return cls(
            id=data.get('id'),
            has_task_inputs=bool(data.get('has_task_inputs', False)),
            requires_review=bool(data.get('requires_review', False)),
            quantity=int(data.get('quantity') or 0),
            task_count=int(data.get('task_count') or 0),
            completed_count=int(data.get('completed_count') or 0),
            pending_review_count=int(data.get('pending_review_count') or 0),
        )


@dataclass(frozen=True)
class ChecklistItem:
    id: int
    stage: str
    category: str
    item_name: str = ''
    description: str = ''
    help_text: str = ''
    order: int = 0
    required: bool = True
    validation_type: str = 'manual'
    is_complete: bool = False
    completed_at: Optional[str] = None
    completed_by_name: Optional[str] = None
    assigned_to_name: Optional[str] = None
    asset_url: Optional[str] = None
    recording: Optional[int] = None
    recording_title: Optional[str] = None
    template_item_detail: Optional[TemplateItemDetail] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChecklistItem':
        return cls(
            id=data['id'],
            stage=data.get('stage') or '',
            category=data.get('category') or '',
            item_name=data.get('item_name') or '',
            description=data.get('description') or '',
            help_text=data.get('help_text') or '',
            order=data.get('order') or 0,
            required=bool(data.get('required', True)),
            validation_type=data.get('validation_type') or 'manual',
            is_complete=bool(data.get('is_complete', False)),
            completed_at=data.get('completed_at'),
            completed_by_name=data.get('completed_by_name'),
            assigned_to_name=data.get('assigned_to_name'),
            asset_url=data.get('asset_url') or None,
            recording=data.get('recording'),
            recording_title=data.get('recording_title'),
            template_item_detail=TemplateItemDetail.from_dict(data.get('template_item_detail')),
        )

    @property
    def is_recording_item(self):
        return self.recording is not None


@dataclass(frozen=True)
class StageStatusRecord:
    stage: str
    status: str = NOT_STARTED
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    blocked_reason: str = ''

    @classmethod
    def from_dict(cls, data):
        return cls(
            stage=data['stage'],
            status=data.get('status') or NOT_STARTED,
            started_at=data.get('started_at'),
            completed_at=data.get('completed_at'),
            blocked_reason=data.get('blocked_reason') or '',
        )


@dataclass(frozen=True)
class SongSnapshot:
    id: int
    title: str
    current_stage: str
    checklist_progress: float = 0
    stage_statuses: Tuple[StageStatusRecord, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SongSnapshot':
        return cls(
            id=data['id'],
            title=data.get('title') or '',
            current_stage=data.get('current_stage') or 'draft',
            checklist_progress=float(data.get('checklist_progress') or 0),
            stage_statuses=tuple(
                StageStatusRecord.from_dict(row) for row in data.get('stage_statuses') or []
            ),
        )

    def status_of(self, stage):
        """Status of ``stage``; a stage without a status record is not started."""
        for record in self.stage_statuses:
            if record.stage == stage:
                return record.status
        return NOT_STARTED


def parse_checklist(payload) -> List[ChecklistItem]:
    """Accept a plain list or a paginated ``{'results': [...]}`` payload."""
    if isinstance(payload, dict):
        payload = payload.get('results') or []
    return [ChecklistItem.from_dict(row) for row in payload or []]
