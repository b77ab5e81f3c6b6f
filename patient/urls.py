from django.urls import path
from . import views

urlpatterns = [
    path('patients', views.patient_collection_view, name='patient-list'),
    path('patients/<int:pk>', views.patient_detail_view, name='patient-detail'),
]
