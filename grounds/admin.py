from django.contrib import admin

from .models import Ground, SlotTime, Sport, Venue


@admin.register(Venue)
class VenueAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'city', 'is_active', 'created_at')
    search_fields = ('name', 'city')
    list_filter = ('is_active', 'city')


@admin.register(Sport)
class SportAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'is_active')
    search_fields = ('name',)


class SlotTimeInline(admin.TabularInline):
    model = SlotTime
    extra = 0
    fields = (
        'label',
        'start_time',
        'end_time',
        'price_sun',
        'price_mon',
        'price_tue',
        'price_wed',
        'price_thu',
        'price_fri',
        'price_sat',
        'is_active',
    )


@admin.register(Ground)
class GroundAdmin(admin.ModelAdmin):
    list_display = (
        'id',
        'name',
        'venue',
        'allows_slot_booking',
        'allows_academy',
        'allows_membership',
        'is_active',
        'created_at',
    )
    search_fields = ('name', 'venue__name')
    list_filter = ('is_active', 'allows_academy', 'allows_membership')
    filter_horizontal = ('supported_sports',)
    inlines = (SlotTimeInline,)


@admin.register(SlotTime)
class SlotTimeAdmin(admin.ModelAdmin):
    list_display = (
        'ground',
        'label',
        'price_mon',
        'price_sat',
        'price_sun',
        'is_active'
    )

    search_fields = (
        'ground__name',
        'label',
    )

    list_filter = ('ground', 'is_active')
    ordering = ('ground', 'start_time')
