from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_nested import routers as nested_routers
from .views import (
    WorkViewSet, RecordingViewSet, ReleaseViewSet,
    ChecklistTemplateViewSet, ChecklistTemplateItemViewSet,
    SongViewSet, SongChecklistViewSet,
)

# Main router
router = DefaultRouter()
router.register(r'works', WorkViewSet)
router.register(r'recordings', RecordingViewSet)
router.register(r'releases', ReleaseViewSet)
router.register(r'checklist-templates', ChecklistTemplateViewSet, basename='checklist-template')
router.register(r'checklist-template-items', ChecklistTemplateItemViewSet, basename='checklist-template-item')

# Song Workflow router
router.register(r'songs', SongViewSet, basename='song')

# Nested routers for Song
songs_router = nested_routers.NestedDefaultRouter(router, r'songs', lookup='song')
songs_router.register(r'checklist', SongChecklistViewSet, basename='song-checklist')

app_name = 'catalog'
urlpatterns = [
    path('', include(router.urls)),
    path('', include(songs_router.urls)),
]
