"""
URL mappings for the bed management API.

Trailing slashes are omitted, matching the rest of the API.
"""
from django.urls import path, include

from .auth_views import login_view, me_view, jwt_refresh_view, jwt_logout_view
from .views import alerts, bed_requests, beds, cleaning, health, settings, transfers


urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/me', me_view, name='me_view'),
    path('api/auth/refresh', jwt_refresh_view),
    path('api/auth/logout', jwt_logout_view),
    # Beds
    path('api/beds', beds.list_beds),
    path('api/beds/available', beds.available_beds),
    path('api/beds/stats', beds.bed_stats),
    path('api/beds/recommend', beds.recommend_beds),
    path('api/beds/capacity-sync', beds.sync_capacity),
    path('api/beds/<int:bed_id>', beds.bed_detail),
    path('api/beds/<int:bed_id>/status', beds.update_bed),
    # Bed requests
    path('api/bed-requests', bed_requests.bed_requests),
    path('api/bed-requests/stats', bed_requests.bed_request_stats),
    path('api/bed-requests/<str:request_id>', bed_requests.bed_request_detail),
    path('api/bed-requests/<str:request_id>/approve', bed_requests.approve),
    path('api/bed-requests/<str:request_id>/deny', bed_requests.deny),
    path('api/bed-requests/<str:request_id>/fulfill', bed_requests.fulfill),
    path('api/bed-requests/<str:request_id>/cancel', bed_requests.cancel),
    # Ward transfers
    path('api/transfers', transfers.transfers),
    path('api/transfers/<int:transfer_id>', transfers.transfer_detail),
    path('api/transfers/<int:transfer_id>/approve', transfers.approve_transfer),
    path('api/transfers/<int:transfer_id>/deny', transfers.deny_transfer),
    # Cleaning
    path('api/cleaning-jobs', cleaning.jobs),
    path('api/cleaning-jobs/stats', cleaning.job_stats),
    path('api/cleaning-jobs/<int:job_id>', cleaning.job_detail),
    path('api/cleaning-jobs/<int:job_id>/start', cleaning.start_job),
    path('api/cleaning-jobs/<int:job_id>/assign', cleaning.assign_job),
    path('api/cleaning-jobs/<int:job_id>/complete', cleaning.complete_job),
    path('api/cleaning-staff', cleaning.staff),
    path('api/cleaning-staff/<int:pk>', cleaning.staff_detail),
    # Alerts
    path('api/alerts', alerts.alerts),
    path('api/alerts/stats', alerts.alert_stats),
    path('api/alerts/<int:alert_id>/acknowledge', alerts.acknowledge),
    # Settings
    path('api/settings', settings.system_settings),
    path('api/settings/reset', settings.reset_settings),
]
