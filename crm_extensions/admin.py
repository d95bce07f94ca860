from django.contrib import admin
from django.utils.html import format_html
from .models import Task


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = [
        'title',
        'task_type',
        'status_badge',
        'priority_badge',
        'assigned_to',
        'song_link',
        'instance_number',
        'due_date',
        'is_overdue_badge',
        'created_at'
    ]

    list_filter = [
        'status',
        'priority',
        'task_type',
        'source_stage',
        'created_at',
        'due_date',
        ('assigned_to', admin.RelatedOnlyFieldListFilter),
        ('created_by', admin.RelatedOnlyFieldListFilter),
    ]

    search_fields = [
        'title',
        'description',
        'notes',
        'song__title',
        'song_checklist_item__item_name',
    ]

    readonly_fields = [
        'created_at',
        'updated_at',
        'started_at',
        'completed_at',
        'submitted_at',
        'reviewed_at',
        'is_overdue',
    ]

    fieldsets = (
        ('Task Information', {
            'fields': ('title', 'description', 'task_type', 'notes')
        }),
        ('Status & Priority', {
            'fields': ('status', 'priority')
        }),
        ('Song Workflow', {
            'fields': ('song', 'song_checklist_item', 'source_stage', 'instance_number')
        }),
        ('Assignment', {
            'fields': ('assigned_to', 'created_by')
        }),
        ('Timeline', {
            'fields': ('due_date', 'started_at', 'completed_at', 'is_overdue')
        }),
        ('Form & Review', {
            'fields': ('inputs', 'submitted_at', 'reviewed_by', 'reviewed_at', 'review_notes'),
            'classes': ('collapse',)
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )

    raw_id_fields = ['song', 'song_checklist_item', 'assigned_to', 'created_by', 'reviewed_by']

    def status_badge(self, obj):
        colors = {
            'todo': 'gray',
            'in_progress': 'blue',
            'blocked': 'red',
            'review': 'orange',
            'done': 'green',
            'cancelled': 'gray',
        }
        color = colors.get(obj.status, 'gray')
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 7px; border-radius: 3px;">{}</span>',
            color, obj.get_status_display()
        )
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'

    def priority_badge(self, obj):
        colors = {1: 'gray', 2: 'blue', 3: 'orange', 4: 'red'}
        color = colors.get(obj.priority, 'gray')
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 7px; border-radius: 3px;">{}</span>',
            color, obj.get_priority_display()
        )
    priority_badge.short_description = 'Priority'
    priority_badge.admin_order_field = 'priority'

    def is_overdue_badge(self, obj):
        if obj.is_overdue:
            return format_html('<span style="color: red; font-weight: bold;">Overdue</span>')
        return '-'
    is_overdue_badge.short_description = 'Overdue'

    def song_link(self, obj):
        if obj.song:
            return format_html(
                '<a href="/admin/catalog/song/{}/change/">{}</a>',
                obj.song.id, obj.song.title
            )
        return '-'
    song_link.short_description = 'Song'
