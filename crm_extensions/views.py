import logging

from rest_framework import viewsets, filters, mixins, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django_filters.rest_framework import DjangoFilterBackend
from django.db.models import Count
from django.utils import timezone

from catalog.services import WorkflowServiceError
from .models import Task, OPEN_STATUSES
from .serializers import (
    TaskSerializer,
    TaskUpdateSerializer,
    TaskCompleteSerializer,
    TaskReviewSerializer,
    TaskStatusSerializer,
)
from .services import task_actions

logger = logging.getLogger(__name__)


class TaskViewSet(mixins.ListModelMixin,
                  mixins.RetrieveModelMixin,
                  mixins.UpdateModelMixin,
                  viewsets.GenericViewSet):
    """
    ViewSet for the tasks backing song checklist items.

    Tasks are created through the checklist (get_or_create_task); here they
    are listed, edited and moved through complete / approve / reject.
    """
    queryset = Task.objects.select_related(
        'song', 'song_checklist_item', 'song_checklist_item__template_item',
        'assigned_to', 'created_by', 'reviewed_by',
    )
    permission_classes = [IsAuthenticated]
    serializer_class = TaskSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['title', 'description', 'notes']
    ordering_fields = ['priority', 'due_date', 'created_at', 'status', 'instance_number']
    ordering = ['-priority', 'due_date']

    filterset_fields = {
        'status': ['exact', 'in'],
        'priority': ['exact', 'gte', 'lte'],
        'task_type': ['exact', 'in'],
        'assigned_to': ['exact'],
        'created_by': ['exact'],
        'song': ['exact'],
        'song_checklist_item': ['exact'],
        'source_stage': ['exact', 'in'],
        'due_date': ['exact', 'gte', 'lte'],
        'created_at': ['gte', 'lte'],
    }

    def get_queryset(self):
        queryset = super().get_queryset()

        is_overdue = self.request.query_params.get('is_overdue')
        if is_overdue == 'true':
            queryset = queryset.filter(
                due_date__lt=timezone.now(),
                status__in=OPEN_STATUSES
            )

        my_tasks = self.request.query_params.get('my_tasks')
        if my_tasks == 'true':
            queryset = queryset.filter(assigned_to=self.request.user)

        return queryset

    def get_serializer_class(self):
        if self.action in ['update', 'partial_update']:
            return TaskUpdateSerializer
        return TaskSerializer

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        task = self.get_object()
        serializer = self.get_serializer(task, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(TaskSerializer(task, context={'request': request}).data)

    def _respond(self, request, operation):
        try:
            task = operation()
        except WorkflowServiceError as e:
            return Response({'error': e.message}, status=e.status_code)
        return Response(TaskSerializer(task, context={'request': request}).data)

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        """
        Submit the task form.
        Goes to review when the checklist template requires it, otherwise done.
        """
        task = self.get_object()
        serializer = TaskCompleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._respond(request, lambda: task_actions.complete_task(
            task,
            request.user,
            inputs=serializer.validated_data.get('inputs'),
            notes=serializer.validated_data.get('notes'),
        ))

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        task = self.get_object()
        serializer = TaskReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._respond(request, lambda: task_actions.approve_task(
            task, request.user, serializer.validated_data['notes']
        ))

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        task = self.get_object()
        serializer = TaskReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._respond(request, lambda: task_actions.reject_task(
            task, request.user, serializer.validated_data['notes']
        ))

    @action(detail=True, methods=['post'])
    def update_status(self, request, pk=None):
        task = self.get_object()
        serializer = TaskStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._respond(request, lambda: task_actions.update_task_status(
            task, serializer.validated_data['status'], request.user
        ))

    @action(detail=False, methods=['get'])
    def dashboard_stats(self, request):
        """Get task statistics for dashboard."""
        queryset = self.filter_queryset(self.get_queryset())

        stats = {
            'total': queryset.count(),
            'by_status': dict(queryset.values('status').annotate(count=Count('id')).values_list('status', 'count')),
            'overdue': queryset.filter(
                due_date__lt=timezone.now(),
                status__in=OPEN_STATUSES
            ).count(),
            'pending_review': queryset.filter(status='review').count(),
            'my_open': queryset.filter(assigned_to=request.user, status__in=OPEN_STATUSES).count(),
        }
        return Response(stats)
