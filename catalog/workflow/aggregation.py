"""
Checklist aggregation and carryover detection.

Pure functions over a flat list of ChecklistItem snapshots. Nothing here
mutates its input; callers recompute everything after each refetch.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple

from .snapshot import ChecklistItem
from .stages import index_of


@dataclass(frozen=True)
class CategoryGroup:
    category: str
    items: Tuple[ChecklistItem, ...]
    percent: int

    @property
    def completed_count(self):
        return sum(1 for item in self.items if item.is_complete)


@dataclass(frozen=True)
class RecordingGroup:
    recording_id: int
    recording_title: Optional[str]
    items: Tuple[ChecklistItem, ...]
    categories: Tuple[CategoryGroup, ...]
    percent: int


@dataclass(frozen=True)
class StageChecklist:
    stage: str
    items: Tuple[ChecklistItem, ...]
    categories: Tuple[CategoryGroup, ...]
    recordings: Tuple[RecordingGroup, ...]
    percent: int
    song_level_percent: int

    @property
    def is_complete(self):
        return self.percent == 100


@dataclass(frozen=True)
class CarryoverGroup:
    stage: str
    items: Tuple[ChecklistItem, ...]


def completion_percent(items):
    """
    Integer percentage of complete items, rounded half up.

    An empty collection is vacuously complete (100) so that an empty stage
    never blocks progression.
    """
    items = list(items)
    if not items:
        return 100
    completed = sum(1 for item in items if item.is_complete)
    ratio = Decimal(completed * 100) / Decimal(len(items))
    return int(ratio.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def group_by_category(items) -> Tuple[CategoryGroup, ...]:
    """Group items by category (first-seen order), each sorted stably by ``order``."""
    buckets = {}
    for item in items:
        buckets.setdefault(item.category, []).append(item)

    groups = []
    for category, members in buckets.items():
        ordered = tuple(sorted(members, key=lambda item: item.order))
        groups.append(CategoryGroup(
            category=category,
            items=ordered,
            percent=completion_percent(ordered),
        ))
    return tuple(groups)


def group_by_recording(items) -> Tuple[RecordingGroup, ...]:
    buckets = {}
    titles = {}
    for item in items:
        buckets.setdefault(item.recording, []).append(item)
        if item.recording_title and item.recording not in titles:
            titles[item.recording] = item.recording_title

    groups = []
    for recording_id, members in buckets.items():
        members = tuple(members)
        groups.append(RecordingGroup(
            recording_id=recording_id,
            recording_title=titles.get(recording_id),
            items=members,
            categories=group_by_category(members),
            percent=completion_percent(members),
        ))
    return tuple(groups)


def stage_items(items, stage) -> List[ChecklistItem]:
    return [item for item in items if item.stage == stage]


def aggregate_stage(items, stage) -> StageChecklist:
    """
    Build the grouped checklist for one stage.

    Song-level items are grouped by category; recording items are grouped by
    recording first and by category inside each recording, so identical
    category names never merge across recordings.
    """
    current = stage_items(items, stage)
    song_level = [item for item in current if not item.is_recording_item]
    recording_level = [item for item in current if item.is_recording_item]

    return StageChecklist(
        stage=stage,
        items=tuple(current),
        categories=group_by_category(song_level),
        recordings=group_by_recording(recording_level),
        percent=completion_percent(current),
        song_level_percent=completion_percent(song_level),
    )


def detect_carryover(items, current_stage) -> Tuple[CarryoverGroup, ...]:
    """
    Incomplete items from stages earlier than ``current_stage``.

    Items whose stage is not in the canonical order are excluded. The result
    is advisory only and never gates a transition.
    """
    current_idx = index_of(current_stage)
    buckets = {}
    for item in items:
        idx = index_of(item.stage)
        if idx < 0 or idx >= current_idx or item.is_complete:
            continue
        buckets.setdefault(item.stage, []).append(item)

    return tuple(
        CarryoverGroup(stage=stage, items=tuple(buckets[stage]))
        for stage in sorted(buckets, key=index_of)
    )
