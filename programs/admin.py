from django.contrib import admin

from .models import Academy, Membership


class ProgramAdmin(admin.ModelAdmin):
    list_display = ('name', 'ground', 'sport', 'status', 'status_changed_at', 'created_at')
    search_fields = ('name', 'ground__name')
    list_filter = ('status', 'ground')
    filter_horizontal = ('morning_slots', 'evening_slots')
    readonly_fields = ('status_changed_at',)


@admin.register(Academy)
class AcademyAdmin(ProgramAdmin):
    list_display = ProgramAdmin.list_display + ('active_days',)


@admin.register(Membership)
class MembershipAdmin(ProgramAdmin):
    pass
