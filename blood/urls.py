from django.urls import path
from . import views

urlpatterns = [
    # Blood requests
    path('blood-requests', views.blood_request_collection_view, name='blood-request-list'),
    path('blood-requests/<int:pk>', views.blood_request_detail_view, name='blood-request-detail'),
    path('blood-requests/<int:pk>/accept', views.blood_request_accept_view, name='blood-request-accept'),
    path('blood-requests/<int:pk>/match', views.blood_request_match_view, name='blood-request-match'),

    # Alerts
    path('alerts', views.alert_list_view, name='alert-list'),
    path('alerts/read-all', views.alert_read_all_view, name='alert-read-all'),
    path('alerts/<int:pk>/read', views.alert_read_view, name='alert-read'),

    # Accounts
    path('auth/register', views.register_view, name='auth-register'),
    path('auth/login', views.login_view, name='auth-login'),
    path('auth/logout', views.logout_view, name='auth-logout'),
    path('auth/me', views.me_view, name='auth-me'),
    path('auth/profile', views.profile_view, name='auth-profile'),

    path('health', views.health_view, name='health'),
]
