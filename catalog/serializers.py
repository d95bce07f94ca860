from rest_framework import serializers
from .models import (
    Work, Recording, Release,
    Song, SongChecklistItem, SongStageTransition, SongStageStatus,
    ChecklistTemplate, ChecklistTemplateItem,
)
from django.utils import timezone


# ============================================================================
# CATALOG ENTITY SERIALIZERS
# ============================================================================


class WorkSerializer(serializers.ModelSerializer):
    """Serializer for Work model."""

    recordings_count = serializers.IntegerField(source='recordings.count', read_only=True)

    class Meta:
        model = Work
        fields = [
            'id', 'title', 'iswc', 'language', 'genre', 'lyrics',
            'recordings_count', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']


class RecordingSerializer(serializers.ModelSerializer):
    """Serializer for Recording model."""

    work_title = serializers.CharField(source='work.title', read_only=True, allow_null=True)

    class Meta:
        model = Recording
        fields = [
            'id', 'title', 'type', 'status', 'work', 'work_title', 'isrc',
            'duration_seconds', 'audio_master_url', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']


class ReleaseSerializer(serializers.ModelSerializer):
    """Serializer for Release model."""

    class Meta:
        model = Release
        fields = [
            'id', 'title', 'type', 'upc', 'release_date', 'artwork_url',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']


# ============================================================================
# CHECKLIST TEMPLATE SERIALIZERS
# ============================================================================


class ChecklistTemplateItemSerializer(serializers.ModelSerializer):
    is_task_backed = serializers.BooleanField(read_only=True)

    class Meta:
        model = ChecklistTemplateItem
        fields = [
            'id', 'template', 'category', 'item_name', 'description', 'help_text',
            'order', 'required', 'validation_type', 'validation_rule',
            'has_task_inputs', 'requires_review', 'quantity', 'task_type',
            'input_fields', 'is_task_backed'
        ]

    def validate_input_fields(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('input_fields must be a list')
        for field in value:
            if not isinstance(field, dict) or not field.get('name'):
                raise serializers.ValidationError('Each input field needs a name')
        return value


class ChecklistTemplateSerializer(serializers.ModelSerializer):
    items = ChecklistTemplateItemSerializer(many=True, read_only=True)
    stage_display = serializers.CharField(source='get_stage_display', read_only=True)
    items_count = serializers.IntegerField(source='items.count', read_only=True)

    class Meta:
        model = ChecklistTemplate
        fields = [
            'id', 'name', 'stage', 'stage_display', 'entity_type', 'description',
            'is_default', 'is_active', 'order', 'items_count', 'items',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']


# ============================================================================
# SONG WORKFLOW SERIALIZERS
# ============================================================================


class SongChecklistItemSerializer(serializers.ModelSerializer):
    """Serializer for SongChecklistItem."""

    assigned_to_name = serializers.CharField(
        source='assigned_to.get_full_name',
        read_only=True,
        allow_null=True
    )
    completed_by_name = serializers.CharField(
        source='completed_by.get_full_name',
        read_only=True,
        allow_null=True
    )
    recording_title = serializers.CharField(
        source='recording.title',
        read_only=True,
        allow_null=True
    )
    template_item_detail = serializers.SerializerMethodField()

    class Meta:
        model = SongChecklistItem
        fields = [
            'id', 'song', 'recording', 'recording_title', 'stage', 'category',
            'item_name', 'description', 'order', 'required', 'validation_type',
            'validation_rule', 'is_complete', 'completed_by', 'completed_by_name',
            'completed_at', 'asset_url', 'help_text', 'assigned_to', 'assigned_to_name',
            'template_item', 'template_item_detail'
        ]
        read_only_fields = fields

    def get_template_item_detail(self, obj):
        """Task configuration of the template item plus task progress."""
        template_item = obj.template_item
        if template_item is None:
            return None

        from crm_extensions.services.task_generator import TaskGenerator

        counts = TaskGenerator.instance_counts(obj) if template_item.is_task_backed else {}
        return {
            'id': template_item.id,
            'has_task_inputs': template_item.has_task_inputs,
            'requires_review': template_item.requires_review,
            'quantity': template_item.quantity,
            'task_count': counts.get('task_count', 0),
            'completed_count': counts.get('completed_count', 0),
            'pending_review_count': counts.get('pending_review_count', 0),
        }


class SongStageTransitionSerializer(serializers.ModelSerializer):
    """Serializer for SongStageTransition audit log."""

    transitioned_by_name = serializers.CharField(
        source='transitioned_by.get_full_name',
        read_only=True,
        allow_null=True
    )
    from_stage_display = serializers.CharField(
        source='get_from_stage_display',
        read_only=True
    )
    to_stage_display = serializers.CharField(
        source='get_to_stage_display',
        read_only=True
    )

    class Meta:
        model = SongStageTransition
        fields = [
            'id', 'song', 'from_stage', 'from_stage_display', 'to_stage',
            'to_stage_display', 'transitioned_by', 'transitioned_by_name',
            'transitioned_at', 'transition_type', 'notes',
            'checklist_completion_at_transition'
        ]
        read_only_fields = ['transitioned_at']


class SongStageStatusSerializer(serializers.ModelSerializer):
    """Serializer for SongStageStatus."""

    stage_display = serializers.CharField(
        source='get_stage_display',
        read_only=True
    )
    status_display = serializers.CharField(
        source='get_status_display',
        read_only=True
    )
    days_in_status = serializers.IntegerField(read_only=True)

    class Meta:
        model = SongStageStatus
        fields = [
            'id',
            'stage',
            'stage_display',
            'status',
            'status_display',
            'started_at',
            'completed_at',
            'blocked_reason',
            'notes',
            'days_in_status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at', 'days_in_status']


class StageStatusUpdateSerializer(serializers.Serializer):
    """Payload of PATCH songs/{id}/stages/{stage}/."""

    status = serializers.ChoiceField(choices=SongStageStatus._meta.get_field('status').choices)
    notes = serializers.CharField(required=False, allow_blank=True)
    blocked_reason = serializers.CharField(required=False, allow_blank=True)
    song_level_only = serializers.BooleanField(required=False, default=False)


class SongListSerializer(serializers.ModelSerializer):
    """Minimal Song serializer for list view."""

    current_stage = serializers.SerializerMethodField()
    stage_display = serializers.SerializerMethodField()

    class Meta:
        model = Song
        fields = [
            'id', 'title', 'genre', 'current_stage', 'stage_display',
            'checklist_progress', 'target_release_date', 'priority',
            'is_overdue', 'is_archived', 'created_at', 'days_in_current_stage'
        ]
        read_only_fields = ['checklist_progress', 'is_overdue', 'created_at', 'days_in_current_stage']

    def get_current_stage(self, obj):
        """Return stage, defaulting to 'draft' if null."""
        return obj.stage or 'draft'

    def get_stage_display(self, obj):
        """Return stage display name, defaulting to 'Draft' if null."""
        if obj.stage:
            return obj.get_stage_display()
        return 'Draft'


class SongDetailSerializer(serializers.ModelSerializer):
    """Detailed Song serializer with related entities and per-stage statuses."""

    current_stage = serializers.SerializerMethodField()
    stage_display = serializers.SerializerMethodField()
    created_by = serializers.SerializerMethodField()
    stage_updated_by_name = serializers.CharField(
        source='stage_updated_by.get_full_name',
        read_only=True,
        allow_null=True
    )

    # Related data
    work = serializers.SerializerMethodField()
    recordings = RecordingSerializer(many=True, read_only=True)
    releases = ReleaseSerializer(many=True, read_only=True)

    stage_statuses = SongStageStatusSerializer(many=True, read_only=True)

    class Meta:
        model = Song
        fields = [
            'id', 'title', 'genre', 'language',
            'current_stage', 'stage_display', 'priority', 'target_release_date',
            'stage_deadline', 'work', 'recordings', 'releases',
            'created_by', 'created_at', 'updated_at',
            'stage_entered_at', 'stage_updated_by', 'stage_updated_by_name',
            'checklist_progress', 'is_overdue', 'days_in_current_stage',
            'is_archived', 'internal_notes',
            'stage_statuses'
        ]
        read_only_fields = [
            'checklist_progress', 'is_overdue', 'days_in_current_stage',
            'created_at', 'updated_at', 'stage_entered_at'
        ]

    def get_current_stage(self, obj):
        """Return stage, defaulting to 'draft' if null."""
        return obj.stage or 'draft'

    def get_stage_display(self, obj):
        if obj.stage:
            return obj.get_stage_display()
        return 'Draft'

    def get_created_by(self, obj):
        """Return created_by as nested object with id, email, and full_name."""
        if obj.created_by:
            return {
                'id': obj.created_by.id,
                'email': obj.created_by.email,
                'full_name': obj.created_by.get_full_name()
            }
        return None

    def get_work(self, obj):
        if obj.work:
            return {
                'id': obj.work.id,
                'title': obj.work.title,
                'iswc': obj.work.iswc or None,
            }
        return None


class SongCreateUpdateSerializer(serializers.ModelSerializer):
    """Serializer for creating and updating Songs."""

    class Meta:
        model = Song
        fields = [
            'title', 'genre', 'language',
            'priority', 'target_release_date', 'stage_deadline',
            'work', 'internal_notes'
        ]

    def create(self, validated_data):
        """Create song with created_by from request user."""
        request = self.context.get('request')
        validated_data['created_by'] = request.user

        validated_data['stage'] = 'draft'
        validated_data['stage_entered_at'] = timezone.now()

        # Stage statuses are created by the post_save signal
        return Song.objects.create(**validated_data)

    def update(self, instance, validated_data):
        """Update song fields."""
        # Stage updates must go through the stage endpoints or transition()
        validated_data.pop('stage', None)

        for attr, value in validated_data.items():
            setattr(instance, attr, value)

        instance.save()
        return instance


class SongTransitionSerializer(serializers.Serializer):
    target_stage = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')


# ============================================================================
# WORKFLOW VIEW
# ============================================================================


def _checklist_item_payload(item):
    from .workflow.classifier import action_label, classify

    return {
        'id': item.id,
        'item_name': item.item_name,
        'category': item.category,
        'is_complete': item.is_complete,
        'required': item.required,
        'recording': item.recording,
        'asset_url': item.asset_url,
        'mode': classify(item).value,
        'action_label': action_label(item),
    }


def _category_payload(group):
    return {
        'category': group.category,
        'percent': group.percent,
        'completed_count': group.completed_count,
        'items': [_checklist_item_payload(item) for item in group.items],
    }


def stage_view_payload(view, notices=()):
    """JSON body of GET songs/{id}/workflow/ built from a StageView."""
    checklist = view.checklist
    return {
        'stage': view.stage,
        'status': view.status,
        'is_current': view.is_current,
        'action': view.action.value,
        'action_enabled': view.action_enabled,
        'terminal_action': view.terminal_action.value if view.terminal_action else None,
        'percent': checklist.percent,
        'song_level_percent': checklist.song_level_percent,
        'categories': [_category_payload(group) for group in checklist.categories],
        'recordings': [
            {
                'recording': group.recording_id,
                'recording_title': group.recording_title,
                'percent': group.percent,
                'categories': [_category_payload(category) for category in group.categories],
            }
            for group in checklist.recordings
        ],
        'carryover': [
            {
                'stage': group.stage,
                'items': [_checklist_item_payload(item) for item in group.items],
            }
            for group in view.carryover
        ],
        'notices': [{'level': notice.level, 'message': notice.message} for notice in notices],
    }
