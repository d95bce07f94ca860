"""
URL configuration for the song workflow service.
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    # Song workflow API (songs, checklists, stages, templates)
    path('api/v1/', include('catalog.urls')),

    # CRM Extensions API (Tasks backing checklist items)
    path('api/v1/crm/', include('crm_extensions.urls')),
]
