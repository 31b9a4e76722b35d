from django.contrib import admin

from .models import EventBlock


@admin.register(EventBlock)
class EventBlockAdmin(admin.ModelAdmin):
    list_display = ('name', 'start_date', 'end_date', 'status', 'status_changed_at')
    search_fields = ('name', 'grounds__name')
    list_filter = ('status', 'grounds')
    filter_horizontal = ('grounds', 'slots')
    readonly_fields = ('status_changed_at',)
