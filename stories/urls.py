from django.urls import path
from . import views

urlpatterns = [
    path('success-stories', views.story_collection_view, name='story-list'),
    path('success-stories/<int:pk>', views.story_detail_view, name='story-detail'),
    path('success-stories/<int:pk>/react', views.story_react_view, name='story-react'),
]
