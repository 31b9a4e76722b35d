from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from grounds.http import bind_json, form_error, run_command

from . import reservations, services
from .availability import get_availability
from .forms import (
    AvailabilityForm,
    BookingForm,
    BookingQueryForm,
    BookingUpdateForm,
    RemoveReservationsForm,
    ReservationForm,
    ReservationQueryForm,
    ReservationSlotActionForm,
    ReservationSlotForm,
)
from .models import SlotBooking


def booking_payload(booking):
    return {
        'id': str(booking.pk),
        'ground': booking.ground_id,
        'customer': booking.customer_id,
        'date': booking.date.isoformat(),
        'slots': sorted(booking.slot_ids()),
        'total_amount': booking.total_amount,
        'status': booking.status,
        'booking_source': booking.booking_source,
    }


def reservation_slot_payload(child):
    return {
        'id': child.pk,
        'reservation': child.reservation_id,
        'date': child.date.isoformat(),
        'slots': sorted(child.slot_ids()),
        'status': child.status,
    }


def reservation_payload(reservation):
    return {
        'id': reservation.pk,
        'ground': reservation.ground_id,
        'customer': reservation.customer_id,
        'total_amount': reservation.total_amount,
        'discount': reservation.discount,
        'payment_mode': reservation.payment_mode,
        'slot_dates': [reservation_slot_payload(c) for c in reservation.slot_dates.all()],
    }


@require_GET
def availability(request):
    form = AvailabilityForm(request.GET)
    if not form.is_valid():
        return form_error(form)

    cd = form.cleaned_data
    slots, error = run_command(get_availability, cd['ground'], cd['date'])
    if error:
        return error
    return JsonResponse({
        'success': True,
        'ground': cd['ground'],
        'date': cd['date'].isoformat(),
        'slots': slots,
    })


@login_required
@require_POST
def create_booking(request):
    form, error = bind_json(BookingForm, request)
    if error:
        return error

    cd = form.cleaned_data
    booking, error = run_command(
        services.create_booking,
        cd['ground'], cd['date'], cd['slots'], cd['customer'],
        source=cd['source'] or SlotBooking.ONLINE,
    )
    if error:
        return error
    return JsonResponse({'success': True, 'booking': booking_payload(booking)}, status=201)


@login_required
@require_POST
def update_booking(request, booking_id):
    form, error = bind_json(BookingUpdateForm, request)
    if error:
        return error

    changes = form.changes()
    booking, error = run_command(
        services.update_booking,
        booking_id,
        date=changes.get('date'),
        slot_ids=changes.get('slots'),
        status=changes.get('status') or None,
    )
    if error:
        return error
    return JsonResponse({'success': True, 'booking': booking_payload(booking)})


@login_required
@require_POST
def create_reservation(request):
    form, error = bind_json(ReservationForm, request)
    if error:
        return error

    cd = form.cleaned_data
    reservation, error = run_command(
        reservations.create_reservation,
        cd['ground'],
        cd['slot_dates'],
        cd['customer'],
        total_amount=cd['total_amount'] or 0,
        discount=cd['discount'] or 0,
        payment_mode=cd['payment_mode'],
        payment_details=cd['payment_details'],
    )
    if error:
        return error
    return JsonResponse({'success': True, 'reservation': reservation_payload(reservation)}, status=201)


@login_required
@require_POST
def add_reservation_slot(request, reservation_id):
    form, error = bind_json(ReservationSlotForm, request)
    if error:
        return error

    cd = form.cleaned_data
    child, error = run_command(reservations.add_reservation_slot, reservation_id, cd['date'], cd['slots'])
    if error:
        return error
    return JsonResponse({'success': True, 'slot_date': reservation_slot_payload(child)}, status=201)


@login_required
@require_POST
def mutate_reservation_slot(request, slot_id):
    form, error = bind_json(ReservationSlotActionForm, request)
    if error:
        return error

    changes = form.changes()
    action = changes.pop('action')
    if action == 'edit':
        edits = {'date': changes.get('date'), 'slot_ids': changes.get('slots')}
    else:
        edits = {}

    child, error = run_command(reservations.mutate_reservation_slot, slot_id, action, **edits)
    if error:
        return error
    return JsonResponse({'success': True, 'slot_date': reservation_slot_payload(child)})


@login_required
@require_POST
def cancel_reservation(request, reservation_id):
    reservation, error = run_command(reservations.cancel_reservation, reservation_id)
    if error:
        return error
    return JsonResponse({'success': True, 'reservation': reservation_payload(reservation)})


@login_required
@require_POST
def remove_reservations(request):
    form, error = bind_json(RemoveReservationsForm, request)
    if error:
        return error

    removed, error = run_command(reservations.remove_reservations, form.cleaned_data['reservations'])
    if error:
        return error
    return JsonResponse({'success': True, 'removed': removed})


@login_required
@require_GET
def list_bookings(request):
    form = BookingQueryForm(request.GET)
    if not form.is_valid():
        return form_error(form)

    cd = form.cleaned_data
    bookings, error = run_command(
        services.list_bookings,
        booking_id=cd['booking'],
        customer_id=cd['customer'],
        ground_ids=cd['grounds'] or None,
        date=cd['date'],
        status=cd['status'] or None,
    )
    if error:
        return error
    return JsonResponse({'success': True, 'bookings': [booking_payload(b) for b in bookings]})


@login_required
@require_GET
def customer_bookings(request, customer_id):
    status = request.GET.get('status') or None
    bookings, error = run_command(services.customer_bookings, customer_id, status=status)
    if error:
        return error
    return JsonResponse({'success': True, 'bookings': [booking_payload(b) for b in bookings]})


@login_required
@require_GET
def list_reservations(request):
    form = ReservationQueryForm(request.GET)
    if not form.is_valid():
        return form_error(form)

    cd = form.cleaned_data
    found, error = run_command(
        reservations.list_reservations,
        ground_ids=cd['grounds'] or None,
        customer_id=cd['customer'],
        date=cd['date'],
        status=cd['status'] or None,
    )
    if error:
        return error
    return JsonResponse({'success': True, 'reservations': [reservation_payload(r) for r in found]})


@login_required
@require_GET
def reservation_detail(request, reservation_id):
    reservation, error = run_command(reservations.reservation_detail, reservation_id)
    if error:
        return error
    return JsonResponse({'success': True, 'reservation': reservation_payload(reservation)})
