"""bloodnetwork URL Configuration

Every app exposes its JSON endpoints under ``/api/``; unknown routes and
unhandled errors fall back to the same JSON envelope.
"""
from django.contrib import admin
from django.urls import path, include

from blood import views as blood_views

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', blood_views.root_view, name='root'),
    path('api/', include('blood.urls')),
    path('api/', include('donor.urls')),
    path('api/', include('patient.urls')),
    path('api/', include('stories.urls')),
]

handler404 = 'blood.views.not_found_view'
handler500 = 'blood.views.server_error_view'
