from django.urls import path
from . import views

urlpatterns = [
    path('donors', views.donor_collection_view, name='donor-list'),
    path('donors/me', views.donor_me_view, name='donor-me'),
    path('donors/<int:pk>', views.donor_detail_view, name='donor-detail'),
    path('donors/<int:pk>/block', views.donor_block_view, name='donor-block'),
    path('donors/<int:pk>/unblock', views.donor_unblock_view, name='donor-unblock'),
]
