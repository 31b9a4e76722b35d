"""Multi-date reservations: one header, one child per (date, slots) pair.

Every pair of a new batch is checked against the claims already stored and
against its siblings before anything is written, so a batch either lands
whole or not at all.
"""
import logging

from django.db import transaction

from accounts.models import Customer
from grounds.dates import DateScope, as_date
from grounds.exceptions import Conflict, NotFound, Validation
from grounds.lookups import clean_ids, get_ground, get_slots, lock_ground

from .claims import raise_on_conflict
from .models import ActivityLog, Reservation, ReservationSlot

logger = logging.getLogger(__name__)

SLOT_ACTIONS = ('edit', 'cancel', 'complete')


def _normalize_batch(slot_dates):
    entries = []
    for item in slot_dates or []:
        if isinstance(item, dict):
            day, slot_ids = item.get('date'), item.get('slots')
        else:
            try:
                day, slot_ids = item
            except (TypeError, ValueError):
                raise Validation("Every entry needs a date and its slots", field='slot_dates')
        entries.append((as_date(day, field='slot_dates'), clean_ids(slot_ids, 'slot_dates')))

    if not entries:
        raise Validation("At least one date is required", field='slot_dates')
    return entries


def _check_siblings(entries):
    taken = {}
    for day, slot_ids in entries:
        seen = taken.setdefault(day, set())
        if seen & slot_ids:
            raise Conflict(f"Slot selected more than once for {day}", claim_kind='reservation')
        seen |= slot_ids


def _validate_entry(ground, day, slot_ids, exclude=None):
    slots = get_slots(slot_ids, [ground.pk], field='slot_dates')
    raise_on_conflict([ground.pk], {s.pk for s in slots}, DateScope.on(day), exclude=exclude)
    return slots


def _check_amount(value, field):
    if not isinstance(value, int) or value < 0:
        raise Validation(f"{field.replace('_', ' ').capitalize()} must be a non-negative integer", field=field)


def _customer_from(customer_info):
    info = customer_info or {}
    first_name = (info.get('first_name') or '').strip()
    if not first_name:
        raise Validation("First name is required", field='first_name')
    try:
        return Customer.objects.upsert_by_mobile(info.get('mobile') or '', first_name, (info.get('last_name') or '').strip())
    except ValueError:
        raise Validation("Mobile number is required", field='mobile')


def _add_child(reservation, ground, day, slots):
    child = ReservationSlot.objects.create(reservation=reservation, ground=ground, date=day)
    child.slots.set(slots)
    return child


@transaction.atomic
def create_reservation(ground_id, slot_dates, customer_info, total_amount=0, discount=0,
                       payment_mode='', payment_details=None):
    ground = get_ground(ground_id, capability='allows_slot_booking', lock=True)
    _check_amount(total_amount, 'total_amount')
    _check_amount(discount, 'discount')

    entries = _normalize_batch(slot_dates)
    _check_siblings(entries)
    checked = [(day, _validate_entry(ground, day, slot_ids)) for day, slot_ids in entries]

    customer = _customer_from(customer_info)
    reservation = Reservation.objects.create(
        ground=ground,
        customer=customer,
        total_amount=total_amount,
        discount=discount,
        payment_mode=payment_mode or '',
        payment_details=payment_details or {},
    )
    for day, slots in checked:
        _add_child(reservation, ground, day, slots)

    ActivityLog.record(
        ActivityLog.CREATED, reservation, ground=ground,
        dates=[day.isoformat() for day, _ in checked],
    )
    logger.info("Reserved %s date(s) on ground %s (reservation %s)", len(checked), ground.pk, reservation.pk)
    return reservation


def _get_reservation(reservation_id):
    try:
        return Reservation.objects.get(pk=reservation_id)
    except (Reservation.DoesNotExist, ValueError, TypeError):
        raise NotFound("Reservation does not exist")


def _get_child(slot_id, lock=False):
    queryset = ReservationSlot.objects.select_for_update() if lock else ReservationSlot.objects.all()
    try:
        return queryset.get(pk=slot_id)
    except (ReservationSlot.DoesNotExist, ValueError, TypeError):
        raise NotFound("Reservation slot does not exist")


def _lock_child(slot_id):
    child = _get_child(slot_id)
    lock_ground(child.ground_id)
    child = _get_child(slot_id, lock=True)
    if child.is_terminal:
        raise Validation("Reservation slot is already completed or cancelled")
    return child


@transaction.atomic
def add_reservation_slot(reservation_id, date, slot_ids):
    reservation = _get_reservation(reservation_id)
    ground = get_ground(reservation.ground_id, capability='allows_slot_booking', lock=True)
    day = as_date(date)
    slots = _validate_entry(ground, day, slot_ids)

    child = _add_child(reservation, ground, day, slots)
    ActivityLog.record(ActivityLog.CREATED, child, ground=ground, kind='reservation_slot', date=day.isoformat(), slots=[s.pk for s in slots])
    logger.info("Added %s to reservation %s", day, reservation.pk)
    return child


@transaction.atomic
def edit_reservation_slot(slot_id, date=None, slot_ids=None):
    child = _lock_child(slot_id)
    if date is None and slot_ids is None:
        return child

    ground = get_ground(child.ground_id, capability='allows_slot_booking')
    day = as_date(date) if date is not None else child.date
    ids = slot_ids if slot_ids is not None else child.slot_ids()
    slots = _validate_entry(ground, day, ids, exclude=child)

    child.date = day
    child.save(update_fields=['date'])
    child.slots.set(slots)

    ActivityLog.record(ActivityLog.UPDATED, child, ground=ground, kind='reservation_slot', date=day.isoformat(), slots=[s.pk for s in slots])
    logger.info("Moved reservation slot %s to %s", child.pk, day)
    return child


@transaction.atomic
def cancel_reservation_slot(slot_id):
    child = _lock_child(slot_id)
    child.cancel()
    ActivityLog.record(ActivityLog.CANCELLED, child, ground=child.ground, kind='reservation_slot')
    logger.info("Cancelled reservation slot %s", child.pk)
    return child


@transaction.atomic
def complete_reservation_slot(slot_id):
    child = _lock_child(slot_id)
    child.complete()
    ActivityLog.record(ActivityLog.COMPLETED, child, ground=child.ground, kind='reservation_slot')
    logger.info("Completed reservation slot %s", child.pk)
    return child


def mutate_reservation_slot(slot_id, action, **changes):
    if action not in SLOT_ACTIONS:
        raise Validation(f"Unknown action: {action}", field='action')

    if action == 'edit':
        return edit_reservation_slot(slot_id, **changes)
    if action == 'cancel':
        return cancel_reservation_slot(slot_id)
    return complete_reservation_slot(slot_id)


@transaction.atomic
def cancel_reservation(reservation_id):
    """Cancel every still-booked date of a reservation."""
    reservation = _get_reservation(reservation_id)
    lock_ground(reservation.ground_id)

    children = list(reservation.slot_dates.select_for_update().filter(status=ReservationSlot.BOOKED))
    for child in children:
        child.cancel()

    ActivityLog.record(
        ActivityLog.CANCELLED, reservation, ground=reservation.ground,
        slot_dates=[c.pk for c in children],
    )
    logger.info("Cancelled reservation %s (%s date(s))", reservation.pk, len(children))
    return reservation


@transaction.atomic
def remove_reservations(reservation_ids):
    """Delete reservations outright, whatever the state of their dates."""
    ids = clean_ids(reservation_ids, 'reservations')
    if not ids:
        raise Validation("At least one reservation is required", field='reservations')

    reservations = list(Reservation.objects.filter(pk__in=ids))
    if len(reservations) != len(ids):
        raise NotFound("Reservation does not exist")

    for reservation in reservations:
        ActivityLog.record(ActivityLog.DELETED, reservation, ground=reservation.ground)
        reservation.delete()

    logger.info("Removed %s reservation(s)", len(reservations))
    return len(reservations)


def list_reservations(ground_ids=None, customer_id=None, date=None, status=None):
    """Reservations with at least one date matching ``date`` and ``status``."""
    queryset = Reservation.objects.prefetch_related('slot_dates__slots')
    if ground_ids:
        queryset = queryset.filter(ground_id__in=clean_ids(ground_ids, 'grounds'))
    if customer_id is not None:
        queryset = queryset.filter(customer_id=customer_id)
    if date is not None:
        queryset = queryset.filter(slot_dates__date=as_date(date))
    if status is not None:
        if status not in dict(ReservationSlot.STATUS):
            raise Validation(f"Unknown status: {status}", field='status')
        queryset = queryset.filter(slot_dates__status=status)
    return list(queryset.distinct())


def reservation_detail(reservation_id):
    try:
        return Reservation.objects.prefetch_related('slot_dates__slots').get(pk=reservation_id)
    except (Reservation.DoesNotExist, ValueError, TypeError):
        raise NotFound("Reservation does not exist")
