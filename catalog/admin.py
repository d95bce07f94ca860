from django.contrib import admin
from django.utils.html import format_html
from .models import (
    Work, Recording, Release,
    Song, SongChecklistItem, SongStageStatus, SongStageTransition,
    ChecklistTemplate, ChecklistTemplateItem,
)


class RecordingInline(admin.TabularInline):
    model = Recording
    extra = 0
    fields = ['title', 'type', 'status', 'isrc', 'duration_seconds']
    show_change_link = True


@admin.register(Work)
class WorkAdmin(admin.ModelAdmin):
    list_display = ['title', 'iswc', 'language', 'genre', 'recordings_count', 'created_at']
    list_filter = ['genre', 'language', 'created_at']
    search_fields = ['title', 'iswc', 'lyrics']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [RecordingInline]

    def recordings_count(self, obj):
        return obj.recordings.count()
    recordings_count.short_description = '# Recordings'


@admin.register(Recording)
class RecordingAdmin(admin.ModelAdmin):
    list_display = ['title', 'type', 'status', 'work', 'isrc', 'duration_seconds', 'created_at']
    list_filter = ['type', 'status', 'created_at']
    search_fields = ['title', 'isrc', 'work__title']
    readonly_fields = ['created_at', 'updated_at']
    raw_id_fields = ['work']


@admin.register(Release)
class ReleaseAdmin(admin.ModelAdmin):
    list_display = ['title', 'type', 'upc', 'release_date', 'created_at']
    list_filter = ['type', 'release_date']
    search_fields = ['title', 'upc']
    readonly_fields = ['created_at', 'updated_at']


# ============================================================================
# SONG WORKFLOW
# ============================================================================

class SongStageStatusInline(admin.TabularInline):
    model = SongStageStatus
    extra = 0
    fields = ['stage', 'status', 'started_at', 'completed_at', 'blocked_reason']
    readonly_fields = ['started_at', 'completed_at']


class SongChecklistItemInline(admin.TabularInline):
    model = SongChecklistItem
    extra = 0
    fields = ['stage', 'category', 'item_name', 'recording', 'validation_type', 'required', 'is_complete']
    readonly_fields = ['validation_type']
    raw_id_fields = ['recording']


@admin.register(Song)
class SongAdmin(admin.ModelAdmin):
    list_display = [
        'title', 'stage_badge', 'priority', 'checklist_progress',
        'is_overdue', 'is_archived', 'created_at'
    ]
    list_filter = ['stage', 'priority', 'is_overdue', 'is_archived', 'created_at']
    search_fields = ['title', 'work__title', 'internal_notes']
    readonly_fields = [
        'checklist_progress', 'is_overdue', 'days_in_current_stage',
        'stage_entered_at', 'created_at', 'updated_at'
    ]
    raw_id_fields = ['work', 'created_by', 'stage_updated_by']
    filter_horizontal = ['recordings', 'releases']

    fieldsets = (
        ('Basic Information', {
            'fields': ('title', 'genre', 'language', 'priority')
        }),
        ('Workflow', {
            'fields': ('stage', 'stage_entered_at', 'stage_updated_by', 'stage_deadline',
                       'target_release_date', 'is_archived')
        }),
        ('Catalog', {
            'fields': ('work', 'recordings', 'releases')
        }),
        ('Computed', {
            'fields': ('checklist_progress', 'is_overdue', 'days_in_current_stage'),
            'classes': ('collapse',)
        }),
        ('Metadata', {
            'fields': ('internal_notes', 'created_by', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    inlines = [SongStageStatusInline, SongChecklistItemInline]

    def stage_badge(self, obj):
        return format_html(
            '<span style="background-color: #417690; color: white; padding: 3px 7px; border-radius: 3px;">{}</span>',
            obj.get_stage_display()
        )
    stage_badge.short_description = 'Stage'
    stage_badge.admin_order_field = 'stage'


@admin.register(SongChecklistItem)
class SongChecklistItemAdmin(admin.ModelAdmin):
    list_display = ['item_name', 'song', 'stage', 'category', 'recording', 'validation_type', 'is_complete']
    list_filter = ['stage', 'validation_type', 'is_complete', 'required']
    search_fields = ['item_name', 'song__title', 'category']
    raw_id_fields = ['song', 'recording', 'template_item', 'completed_by', 'assigned_to']
    readonly_fields = ['completed_at', 'created_at', 'updated_at']


@admin.register(SongStageTransition)
class SongStageTransitionAdmin(admin.ModelAdmin):
    list_display = ['song', 'from_stage', 'to_stage', 'transition_type', 'transitioned_by', 'transitioned_at']
    list_filter = ['transition_type', 'to_stage', 'transitioned_at']
    search_fields = ['song__title', 'notes']
    raw_id_fields = ['song', 'transitioned_by']
    readonly_fields = ['transitioned_at']


class ChecklistTemplateItemInline(admin.TabularInline):
    model = ChecklistTemplateItem
    extra = 0
    fields = [
        'order', 'category', 'item_name', 'required', 'validation_type',
        'has_task_inputs', 'requires_review', 'quantity'
    ]


@admin.register(ChecklistTemplate)
class ChecklistTemplateAdmin(admin.ModelAdmin):
    list_display = ['name', 'stage', 'entity_type', 'is_default', 'is_active', 'order']
    list_filter = ['stage', 'entity_type', 'is_default', 'is_active']
    search_fields = ['name', 'description']
    inlines = [ChecklistTemplateItemInline]
