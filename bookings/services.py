import logging
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from accounts.models import Customer
from grounds.dates import DateScope, as_date
from grounds.exceptions import Conflict, InvalidRange, NotFound, Validation
from grounds.lookups import clean_ids, get_ground, get_slots, lock_ground

from .claims import ground_blocking_event, raise_on_conflict
from .models import ActivityLog, SlotBooking

logger = logging.getLogger(__name__)


def total_price(slots, day):
    return sum(slot.price_on(day) for slot in slots)


def check_horizon(day):
    horizon = getattr(settings, 'BOOKING_HORIZON_DAYS', None)
    if horizon is None:
        return

    today = timezone.localdate()
    last = today + timedelta(days=horizon)
    if day < today or day > last:
        raise InvalidRange(f"Bookings are open from {today} to {last}", field='date')


def _check_status(model, status):
    if status not in dict(model.STATUS):
        raise Validation(f"Unknown status: {status}", field='status')


def get_customer(customer_id):
    try:
        return Customer.objects.get_active(customer_id)
    except (Customer.DoesNotExist, ValueError, TypeError):
        raise NotFound("Customer does not exist or is disabled")


def _validate_booking(ground, day, slot_ids, exclude=None):
    slots = get_slots(slot_ids, [ground.pk])
    check_horizon(day)

    if ground_blocking_event(ground.pk, day) is not None:
        raise Conflict("Ground is blocked by an event on this date", claim_kind='event')

    raise_on_conflict([ground.pk], {s.pk for s in slots}, DateScope.on(day), exclude=exclude)
    return slots


@transaction.atomic
def create_booking(ground_id, date, slot_ids, customer_id, source=SlotBooking.ONLINE):
    if source not in dict(SlotBooking.SOURCE):
        raise Validation(f"Unknown booking source: {source}", field='source')

    ground = get_ground(ground_id, capability='allows_slot_booking', lock=True)
    customer = get_customer(customer_id)
    day = as_date(date)
    slots = _validate_booking(ground, day, slot_ids)

    booking = SlotBooking.objects.create(
        ground=ground,
        customer=customer,
        date=day,
        total_amount=total_price(slots, day),
        booking_source=source,
    )
    booking.slots.set(slots)

    ActivityLog.record(
        ActivityLog.CREATED, booking, ground=ground,
        date=day.isoformat(), slots=[s.pk for s in slots], amount=booking.total_amount,
    )
    logger.info("Booked %s slot(s) on ground %s for %s (booking %s)", len(slots), ground.pk, day, booking.pk)
    return booking


def _get_booking(booking_id, lock=False):
    queryset = SlotBooking.objects.select_for_update() if lock else SlotBooking.objects.all()
    try:
        return queryset.get(pk=booking_id)
    except (SlotBooking.DoesNotExist, DjangoValidationError, ValueError, TypeError):
        raise NotFound("Booking does not exist")


@transaction.atomic
def update_booking(booking_id, date=None, slot_ids=None, status=None):
    """Move, resize, cancel or complete a booking.

    A status change is applied on its own. Moving the booking re-runs every
    check against the new date and slots, ignoring the booking itself, and
    reprices it.
    """
    booking = _get_booking(booking_id)
    lock_ground(booking.ground_id)
    booking = _get_booking(booking_id, lock=True)

    if booking.is_terminal:
        raise Validation("Booking is already completed or cancelled")

    if status is not None:
        _check_status(SlotBooking, status)

    if status == SlotBooking.CANCELLED:
        booking.cancel()
        ActivityLog.record(ActivityLog.CANCELLED, booking, ground=booking.ground)
        logger.info("Cancelled booking %s", booking.pk)
        return booking

    if status == SlotBooking.COMPLETED:
        booking.complete()
        ActivityLog.record(ActivityLog.COMPLETED, booking, ground=booking.ground)
        logger.info("Completed booking %s", booking.pk)
        return booking

    if date is None and slot_ids is None:
        return booking

    ground = get_ground(booking.ground_id, capability='allows_slot_booking')
    day = as_date(date) if date is not None else booking.date
    ids = slot_ids if slot_ids is not None else booking.slot_ids()
    slots = _validate_booking(ground, day, ids, exclude=booking)

    booking.date = day
    booking.total_amount = total_price(slots, day)
    booking.save(update_fields=['date', 'total_amount'])
    booking.slots.set(slots)

    ActivityLog.record(
        ActivityLog.UPDATED, booking, ground=ground,
        date=day.isoformat(), slots=[s.pk for s in slots], amount=booking.total_amount,
    )
    logger.info("Moved booking %s to %s", booking.pk, day)
    return booking


def cancel_booking(booking_id):
    return update_booking(booking_id, status=SlotBooking.CANCELLED)


def complete_booking(booking_id):
    return update_booking(booking_id, status=SlotBooking.COMPLETED)


def list_bookings(booking_id=None, customer_id=None, ground_ids=None, date=None, status=None):
    """Bookings matching every filter given, newest date first."""
    queryset = SlotBooking.objects.prefetch_related('slots')
    if booking_id is not None:
        try:
            queryset = queryset.filter(pk=booking_id)
        except DjangoValidationError:
            raise Validation("Invalid booking id", field='booking')
    if customer_id is not None:
        queryset = queryset.filter(customer_id=customer_id)
    if ground_ids:
        queryset = queryset.filter(ground_id__in=clean_ids(ground_ids, 'grounds'))
    if date is not None:
        queryset = queryset.filter(date=as_date(date))
    if status is not None:
        _check_status(SlotBooking, status)
        queryset = queryset.filter(status=status)
    return list(queryset)


def customer_bookings(customer_id, status=None):
    customer = get_customer(customer_id)
    return list_bookings(customer_id=customer.pk, status=status)
