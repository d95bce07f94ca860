from rest_framework import serializers
from django.contrib.auth import get_user_model
from .models import Task

User = get_user_model()


class TaskSerializer(serializers.ModelSerializer):
    """
    Serializer for Task model with nested relationship details.
    Includes the checklist item the task completes and its form definition.
    """
    created_by_detail = serializers.SerializerMethodField(read_only=True)
    assigned_to_name = serializers.CharField(source='assigned_to.get_full_name', read_only=True, allow_null=True)
    reviewed_by_name = serializers.CharField(source='reviewed_by.get_full_name', read_only=True, allow_null=True)
    song_detail = serializers.SerializerMethodField(read_only=True)
    checklist_item_detail = serializers.SerializerMethodField(read_only=True)
    input_fields = serializers.SerializerMethodField(read_only=True)

    status_display = serializers.CharField(source='get_status_display', read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)
    requires_review = serializers.BooleanField(read_only=True)

    class Meta:
        model = Task
        fields = [
            'id',
            'title',
            'description',
            'task_type',
            'status',
            'status_display',
            'priority',

            # Song workflow links
            'song',
            'song_detail',
            'song_checklist_item',
            'checklist_item_detail',
            'source_stage',
            'instance_number',

            # Assignment
            'assigned_to',
            'assigned_to_name',
            'created_by',
            'created_by_detail',

            # Timeline
            'due_date',
            'started_at',
            'completed_at',

            # Task form
            'input_fields',
            'inputs',
            'requires_review',
            'submitted_at',
            'reviewed_by',
            'reviewed_by_name',
            'reviewed_at',
            'review_notes',

            'notes',
            'is_overdue',

            # Timestamps
            'created_at',
            'updated_at',
        ]
        read_only_fields = [
            'created_at', 'updated_at', 'started_at', 'completed_at', 'song', 'song_checklist_item',
            'source_stage', 'instance_number', 'created_by', 'submitted_at', 'reviewed_by',
            'reviewed_at', 'review_notes',
        ]

    def get_created_by_detail(self, obj):
        if obj.created_by:
            return {
                'id': obj.created_by.id,
                'email': obj.created_by.email,
                'full_name': f"{obj.created_by.first_name} {obj.created_by.last_name}".strip() or obj.created_by.email
            }
        return None

    def get_song_detail(self, obj):
        if obj.song:
            return {
                'id': obj.song.id,
                'title': obj.song.title,
                'stage': obj.song.stage,
            }
        return None

    def get_checklist_item_detail(self, obj):
        if obj.song_checklist_item:
            item = obj.song_checklist_item
            return {
                'id': item.id,
                'name': item.item_name,
                'checklist_name': f"{item.stage} - {item.category}",
                'is_complete': item.is_complete,
                'quantity': item.required_instances,
            }
        return None

    def get_input_fields(self, obj):
        item = obj.song_checklist_item
        if item and item.template_item:
            return item.template_item.input_fields or []
        return []


class TaskUpdateSerializer(serializers.ModelSerializer):
    """Fields editable from the task board. Status changes go through the task actions."""

    class Meta:
        model = Task
        fields = [
            'id',
            'title',
            'description',
            'priority',
            'assigned_to',
            'due_date',
            'inputs',
            'notes',
        ]
        read_only_fields = ['id']

    def validate_inputs(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('inputs must be an object')
        return value


class TaskCompleteSerializer(serializers.Serializer):
    inputs = serializers.JSONField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class TaskReviewSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class TaskStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Task.STATUS_CHOICES)
