from django.contrib import admin
from .models import AccountProfile, Alert, BloodRequest

@admin.register(BloodRequest)
class BloodRequestAdmin(admin.ModelAdmin):
    list_display = ['patient_name', 'blood_group', 'needed_units', 'emergency_level', 'status', 'needed_date']
    list_filter = ['blood_group', 'status', 'emergency_level']
    search_fields = ['patient_name', 'hospital_name', 'reason_notes']

@admin.register(Alert)
class AlertAdmin(admin.ModelAdmin):
    list_display = ['title', 'type', 'user_id', 'related_id', 'is_read', 'created_at']
    list_filter = ['type', 'is_read']
    search_fields = ['title', 'message']

@admin.register(AccountProfile)
class AccountProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'phone']
    search_fields = ['user__username', 'user__email', 'phone']
