from django.contrib import admin

from .models import ActivityLog, Reservation, ReservationSlot, SlotBooking


@admin.register(SlotBooking)
class SlotBookingAdmin(admin.ModelAdmin):
    list_display = (
        'id',
        'customer',
        'ground',
        'date',
        'total_amount',
        'status',
        'booking_source',
    )

    search_fields = (
        'customer__first_name',
        'customer__mobile',
        'ground__name',
    )

    list_filter = ('booking_source', 'status', 'ground')
    filter_horizontal = ('slots',)
    date_hierarchy = 'date'


class ReservationSlotInline(admin.TabularInline):
    model = ReservationSlot
    extra = 0
    fields = ('date', 'status', 'cancelled_at', 'completed_at')
    readonly_fields = ('cancelled_at', 'completed_at')


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = (
        'id',
        'customer',
        'ground',
        'total_amount',
        'discount',
        'payment_mode',
        'created_at',
    )

    search_fields = (
        'customer__first_name',
        'customer__mobile',
        'ground__name',
    )

    list_filter = ('ground',)
    inlines = [ReservationSlotInline]


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = (
        'timestamp',
        'action',
        'claim_kind',
        'claim_id',
        'ground',
    )

    search_fields = (
        'claim_id',
        'ground__name',
    )

    list_filter = (
        'action',
        'claim_kind',
        'ground',
    )

    readonly_fields = ('timestamp',)
