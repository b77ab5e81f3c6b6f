from django.contrib import admin
from .models import StoryReaction, SuccessStory


class StoryReactionInline(admin.TabularInline):
    model = StoryReaction
    extra = 0


@admin.register(SuccessStory)
class SuccessStoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'location', 'blood_group', 'rating', 'user_name', 'created_at']
    list_filter = ['blood_group', 'rating']
    search_fields = ['name', 'location', 'story', 'user_name']
    inlines = [StoryReactionInline]
