import logging

from rest_framework import viewsets, status, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django_filters import rest_framework as django_filters
from django.db.models import Count, Q
from .models import (
    Work, Recording, Release,
    Song, SongChecklistItem, SongStageTransition,
    ChecklistTemplate, ChecklistTemplateItem,
)
from .serializers import (
    WorkSerializer, RecordingSerializer, ReleaseSerializer,
    SongListSerializer, SongDetailSerializer, SongCreateUpdateSerializer,
    SongChecklistItemSerializer, SongStageTransitionSerializer, SongStageStatusSerializer,
    StageStatusUpdateSerializer, SongTransitionSerializer,
    ChecklistTemplateSerializer, ChecklistTemplateItemSerializer,
    stage_view_payload,
)
from . import services
from . import validators
from .services import WorkflowServiceError
from .workflow.gateway import LocalWorkflowGateway
from .workflow.session import SongWorkflowSession
from .workflow.stages import WORKFLOW_STAGES, is_known_stage

logger = logging.getLogger(__name__)


def error_response(error):
    """Response for a rejected workflow request."""
    return Response({'error': error.message}, status=error.status_code)


# ============================================================================
# CATALOG ENTITIES
# ============================================================================


class WorkViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Work model.
    Saving a work re-runs the auto validators of every song using it.
    """

    queryset = Work.objects.all()
    serializer_class = WorkSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['title', 'iswc', 'lyrics']
    ordering_fields = ['title', 'created_at']
    ordering = ['-created_at']


class RecordingViewSet(viewsets.ModelViewSet):
    queryset = Recording.objects.select_related('work')
    serializer_class = RecordingSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [
        django_filters.DjangoFilterBackend,
        filters.SearchFilter,
        filters.OrderingFilter
    ]
    filterset_fields = ['type', 'status', 'work']
    search_fields = ['title', 'isrc']
    ordering_fields = ['title', 'created_at']
    ordering = ['-created_at']


class ReleaseViewSet(viewsets.ModelViewSet):
    queryset = Release.objects.all()
    serializer_class = ReleaseSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [
        django_filters.DjangoFilterBackend,
        filters.SearchFilter,
        filters.OrderingFilter
    ]
    filterset_fields = ['type']
    search_fields = ['title', 'upc']
    ordering_fields = ['title', 'release_date', 'created_at']
    ordering = ['-created_at']


# ============================================================================
# CHECKLIST TEMPLATES
# ============================================================================


class ChecklistTemplateViewSet(viewsets.ModelViewSet):
    """
    Checklist templates per stage.
    Default templates are attached automatically when a stage starts.
    """

    queryset = ChecklistTemplate.objects.prefetch_related('items')
    serializer_class = ChecklistTemplateSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [django_filters.DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['stage', 'entity_type', 'is_default', 'is_active']
    ordering = ['stage', 'order', 'name']


class ChecklistTemplateItemViewSet(viewsets.ModelViewSet):
    queryset = ChecklistTemplateItem.objects.select_related('template')
    serializer_class = ChecklistTemplateItemSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [django_filters.DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['template', 'template__stage', 'validation_type', 'has_task_inputs']
    ordering = ['template', 'order', 'id']


# ============================================================================
# SONGS
# ============================================================================


class SongFilter(django_filters.FilterSet):
    """Filter for Song model."""

    stage = django_filters.MultipleChoiceFilter(choices=WORKFLOW_STAGES)
    priority = django_filters.ChoiceFilter(
        choices=Song.PRIORITY_CHOICES
    )
    is_overdue = django_filters.BooleanFilter()
    is_archived = django_filters.BooleanFilter()
    target_release_date_after = django_filters.DateFilter(
        field_name='target_release_date',
        lookup_expr='gte'
    )
    target_release_date_before = django_filters.DateFilter(
        field_name='target_release_date',
        lookup_expr='lte'
    )
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = Song
        fields = ['stage', 'priority', 'is_overdue', 'is_archived']

    def filter_search(self, queryset, name, value):
        """Search songs by title, work title or notes."""
        return queryset.filter(
            Q(title__icontains=value) |
            Q(work__title__icontains=value) |
            Q(internal_notes__icontains=value)
        ).distinct()


class SongViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Song workflow.

    Stage endpoints:
        PATCH /songs/{id}/stages/{stage}/           set a stage status
        POST  /songs/{id}/stages/{stage}/complete/  complete it and start the next
        GET   /songs/{id}/workflow/?stage=          grouped checklist + legal actions
    """

    queryset = Song.objects.all()
    permission_classes = [IsAuthenticated]
    filterset_class = SongFilter
    filter_backends = [
        django_filters.DjangoFilterBackend,
        filters.SearchFilter,
        filters.OrderingFilter
    ]
    search_fields = ['title', 'internal_notes']
    ordering_fields = ['title', 'created_at', 'target_release_date', 'priority', 'checklist_progress']
    ordering = ['-created_at']

    def get_serializer_class(self):
        """Return appropriate serializer based on action."""
        if self.action == 'list':
            return SongListSerializer
        elif self.action in ['create', 'update', 'partial_update']:
            return SongCreateUpdateSerializer
        return SongDetailSerializer

    def get_queryset(self):
        queryset = super().get_queryset().select_related(
            'created_by', 'work', 'stage_updated_by'
        )
        if self.action == 'retrieve':
            queryset = queryset.prefetch_related('stage_statuses', 'recordings', 'releases')
        return queryset

    def create(self, request, *args, **kwargs):
        """Create song and return full detail response."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)

        instance = serializer.instance
        detail_serializer = SongDetailSerializer(instance, context={'request': request})
        headers = self.get_success_headers(detail_serializer.data)
        return Response(detail_serializer.data, status=status.HTTP_201_CREATED, headers=headers)

    def _detail(self, request, song):
        song.refresh_from_db()
        return Response(SongDetailSerializer(song, context={'request': request}).data)

    @action(detail=True, methods=['post'])
    def transition(self, request, pk=None):
        """
        Transition song to new stage.

        POST /songs/{id}/transition/
        {
            "target_stage": "publishing",
            "notes": "Ready for publishing department"
        }
        """
        song = self.get_object()
        payload = SongTransitionSerializer(data=request.data)
        if not payload.is_valid():
            return Response(
                {'error': 'target_stage is required'},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            services.transition_song(
                song,
                payload.validated_data['target_stage'],
                request.user,
                notes=payload.validated_data['notes'],
            )
        except WorkflowServiceError as e:
            return error_response(e)

        return self._detail(request, song)

    @action(detail=True, methods=['post'])
    def send_to_marketing(self, request, pk=None):
        """
        Complete LABEL_RECORDING and start MARKETING_ASSETS.

        POST /songs/{id}/send_to_marketing/
        """
        song = self.get_object()
        try:
            services.send_to_marketing(song, request.user)
        except WorkflowServiceError as e:
            return error_response(e)
        return self._detail(request, song)

    @action(detail=True, methods=['post'])
    def send_to_digital(self, request, pk=None):
        """
        Complete READY_FOR_DIGITAL and start DIGITAL_DISTRIBUTION.

        POST /songs/{id}/send_to_digital/
        """
        song = self.get_object()
        try:
            services.send_to_digital(song, request.user)
        except WorkflowServiceError as e:
            return error_response(e)
        return self._detail(request, song)

    @action(detail=True, methods=['patch'], url_path=r'stages/(?P<stage>[^/.]+)')
    def update_stage(self, request, pk=None, stage=None):
        """
        Set the status of one stage.

        PATCH /songs/{id}/stages/{stage}/
        {
            "status": "in_progress",
            "notes": "",
            "blocked_reason": "",
            "song_level_only": false   # completion gate on song-level items only
        }
        """
        song = self.get_object()
        payload = StageStatusUpdateSerializer(data=request.data)
        if not payload.is_valid():
            return Response({'error': 'A valid status is required'}, status=status.HTTP_400_BAD_REQUEST)

        try:
            services.update_stage_status(
                song,
                stage,
                payload.validated_data['status'],
                request.user,
                notes=payload.validated_data.get('notes'),
                blocked_reason=payload.validated_data.get('blocked_reason'),
                song_level_only=payload.validated_data['song_level_only'],
            )
        except WorkflowServiceError as e:
            return error_response(e)

        return self._detail(request, song)

    @action(detail=True, methods=['post'], url_path=r'stages/(?P<stage>[^/.]+)/complete')
    def complete_stage(self, request, pk=None, stage=None):
        """
        Complete a stage and start the following one atomically.

        POST /songs/{id}/stages/{stage}/complete/
        """
        song = self.get_object()
        try:
            completed, started = services.complete_stage(song, stage, request.user)
        except WorkflowServiceError as e:
            return error_response(e)

        return Response({
            'completed': SongStageStatusSerializer(completed).data,
            'started': SongStageStatusSerializer(started).data if started else None,
            'song': SongDetailSerializer(Song.objects.get(pk=song.pk), context={'request': request}).data,
        })

    @action(detail=True, methods=['get'])
    def workflow(self, request, pk=None):
        """
        Grouped checklist, carryover and the legal stage action.

        GET /songs/{id}/workflow/?stage=marketing_assets
        """
        # ?stage= selects the stage to show, it is not a list filter
        song = get_object_or_404(self.get_queryset(), pk=pk)
        stage = request.query_params.get('stage') or None
        if stage and not is_known_stage(stage):
            return Response({'error': f"Unknown stage '{stage}'"}, status=status.HTTP_400_BAD_REQUEST)

        session = SongWorkflowSession(LocalWorkflowGateway(request.user), song.id).refresh()
        return Response(stage_view_payload(session.stage_view(stage)))

    @action(detail=True, methods=['post'])
    def workflow_action(self, request, pk=None):
        """
        Run a workflow control and return the refreshed view.

        POST /songs/{id}/workflow_action/
        {
            "action": "stage" | "finish" | "send_to_marketing" | "send_to_digital" | "validate_all",
            "stage": "publishing"   # only for "stage"
        }
        """
        song = get_object_or_404(self.get_queryset(), pk=pk)
        name = request.data.get('action')
        stage = request.data.get('stage') or None
        if stage and not is_known_stage(stage):
            return Response({'error': f"Unknown stage '{stage}'"}, status=status.HTTP_400_BAD_REQUEST)

        session = SongWorkflowSession(LocalWorkflowGateway(request.user), song.id).refresh()
        handlers = {
            'stage': lambda: session.stage_action(stage),
            'finish': session.finish_current_stage,
            'send_to_marketing': session.send_to_marketing,
            'send_to_digital': session.send_to_digital,
            'validate_all': session.validate_all,
        }
        if name not in handlers:
            return Response(
                {'error': f"action must be one of: {', '.join(handlers)}"},
                status=status.HTTP_400_BAD_REQUEST
            )

        handlers[name]()
        notices = session.drain_notices()
        return Response(stage_view_payload(session.stage_view(stage), notices))

    @action(detail=True, methods=['get'])
    def transitions(self, request, pk=None):
        """
        Get all stage transitions for this song.

        GET /songs/{id}/transitions/
        """
        song = self.get_object()

        transitions = SongStageTransition.objects.filter(
            song=song
        ).select_related('transitioned_by').order_by('-transitioned_at')

        serializer = SongStageTransitionSerializer(transitions, many=True)
        return Response(serializer.data)

    @action(detail=True, methods=['post'])
    def add_template(self, request, pk=None):
        """
        Attach a checklist template to this song.

        POST /songs/{id}/add_template/
        {
            "template_id": 3
        }
        """
        song = self.get_object()
        template_id = request.data.get('template_id')
        if not template_id:
            return Response(
                {'error': 'template_id is required'},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            created = services.add_template(song, template_id)
        except WorkflowServiceError as e:
            return error_response(e)

        return Response(
            SongChecklistItemSerializer(created, many=True).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    @action(detail=True, methods=['post'], url_path='link_recording')
    def link_recording(self, request, pk=None):
        """
        Link an existing recording to this song.

        POST /songs/{id}/link_recording/
        Body: {"recording_id": 123}
        """
        song = self.get_object()
        try:
            recording, created = services.link_recording(song, request.data.get('recording_id'))
        except WorkflowServiceError as e:
            return error_response(e)

        if not created:
            return Response(
                {'message': 'Recording is already linked to this song'},
                status=status.HTTP_200_OK
            )

        return Response(
            {
                'message': 'Recording linked successfully',
                'recording_id': recording.id,
                'recording_title': recording.title
            },
            status=status.HTTP_200_OK
        )

    @action(detail=True, methods=['post'])
    def link_release(self, request, pk=None):
        """
        Link a release to this song.

        POST /songs/{id}/link_release/
        {
            "release_id": 123
        }
        """
        song = self.get_object()
        try:
            release = services.link_release(song, request.data.get('release_id'))
        except WorkflowServiceError as e:
            return error_response(e)

        return Response({
            'success': True,
            'message': f'Release "{release.title}" linked to song "{song.title}"',
            'release_id': release.id
        })

    @action(detail=False, methods=['get'])
    def stats(self, request):
        """
        Song counts by stage and priority.

        GET /songs/stats/
        """
        songs = Song.objects.filter(is_archived=False)

        by_stage = dict(songs.values('stage').annotate(count=Count('id')).values_list('stage', 'count'))
        by_priority = dict(songs.values('priority').annotate(count=Count('id')).values_list('priority', 'count'))

        return Response({
            'total_songs': songs.count(),
            'overdue_songs': songs.filter(is_overdue=True).count(),
            'by_stage': {
                code: {'count': by_stage.get(code, 0), 'display': label}
                for code, label in WORKFLOW_STAGES
            },
            'by_priority': {
                code: {'count': by_priority.get(code, 0), 'display': label}
                for code, label in Song.PRIORITY_CHOICES
            },
        })


class SongChecklistViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for Song Checklist Items (nested under Song).

    GET /songs/{song_id}/checklist/
    The whole checklist is returned in one response (no pagination).
    """

    queryset = SongChecklistItem.objects.select_related(
        'recording', 'template_item', 'completed_by', 'assigned_to'
    )
    serializer_class = SongChecklistItemSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = None
    filter_backends = [django_filters.DjangoFilterBackend]
    filterset_fields = ['stage', 'recording', 'is_complete', 'validation_type']

    def get_queryset(self):
        """Filter by song from URL."""
        song_id = self.kwargs.get('song_pk')
        if song_id:
            return self.queryset.filter(song_id=song_id).order_by('order', 'id')
        return self.queryset.none()

    def _respond(self, request, operation, response_status=status.HTTP_200_OK):
        try:
            item = operation()
        except WorkflowServiceError as e:
            return error_response(e)
        return Response(SongChecklistItemSerializer(item).data, status=response_status)

    @action(detail=True, methods=['post'])
    def toggle(self, request, song_pk=None, pk=None):
        """
        Toggle manual checklist item completion.

        POST /songs/{song_id}/checklist/{item_id}/toggle/
        """
        item = self.get_object()
        return self._respond(request, lambda: services.toggle_checklist_item(item, request.user))

    @action(detail=True, methods=['patch'])
    def update_asset_url(self, request, song_pk=None, pk=None):
        """
        PATCH /songs/{song_id}/checklist/{item_id}/update_asset_url/
        {
            "asset_url": "https://drive.example.com/file"
        }
        """
        item = self.get_object()
        return self._respond(request, lambda: services.update_checklist_asset_url(
            item, request.data.get('asset_url'), request.user
        ))

    @action(detail=False, methods=['post'])
    def validate_all(self, request, song_pk=None):
        """
        Run all auto-validators for current stage.

        POST /songs/{song_id}/checklist/validate_all/
        """
        try:
            song = services.get_song(song_pk)
        except WorkflowServiceError as e:
            return error_response(e)

        result = validators.revalidate_song_checklist(song)
        return Response(result)

    @action(detail=True, methods=['post'])
    def assign(self, request, song_pk=None, pk=None):
        """
        Assign checklist item to user.

        POST /songs/{song_id}/checklist/{item_id}/assign/
        {
            "user_id": 123
        }
        """
        item = self.get_object()
        return self._respond(request, lambda: services.assign_checklist_item(item, request.data.get('user_id')))

    @action(detail=True, methods=['post'])
    def get_or_create_task(self, request, song_pk=None, pk=None):
        """
        Task backing this checklist item; repeated calls return the open instance.

        POST /songs/{song_id}/checklist/{item_id}/get_or_create_task/
        """
        from crm_extensions.serializers import TaskSerializer
        from crm_extensions.services.task_generator import TaskGenerator

        item = self.get_object()
        try:
            task = TaskGenerator.get_or_create_for_checklist_item(item, request.user)
        except WorkflowServiceError as e:
            return error_response(e)

        return Response(TaskSerializer(task, context={'request': request}).data)
