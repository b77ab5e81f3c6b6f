from django.contrib import admin
from .models import Donor

@admin.register(Donor)
class DonorAdmin(admin.ModelAdmin):
    list_display = ['name', 'blood_group', 'phone', 'district', 'last_donation', 'is_blocked']
    list_filter = ['blood_group', 'is_blocked', 'visibility']
    search_fields = ['name', 'email', 'phone', 'district', 'area']
