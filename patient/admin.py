from django.contrib import admin
from .models import Patient

@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ['get_name', 'email', 'phone', 'event_interest', 'created_at']
    list_filter = ['event_interest', 'gender']
    search_fields = ['first_name', 'last_name', 'email', 'phone']
