import logging

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import transaction

from bookings.claims import EVENTS, SOURCES, raise_on_conflict
from bookings.models import ActivityLog
from grounds.dates import DateScope, as_date, end_of_day, start_of_day
from grounds.exceptions import Conflict, InvalidRange, NotFound, Validation
from grounds.lookups import clean_ids, get_ground, get_slots, lock_ground, lock_grounds

from .models import EventBlock

logger = logging.getLogger(__name__)

OVERLAP_MODES = ('exact', 'interval')


def overlap_mode():
    mode = getattr(settings, 'EVENT_OVERLAP_MODE', 'interval')
    if mode not in OVERLAP_MODES:
        raise ImproperlyConfigured(f"EVENT_OVERLAP_MODE must be one of {', '.join(OVERLAP_MODES)}")
    return mode


def _clean_range(start_date, end_date):
    first = as_date(start_date, field='start_date')
    last = as_date(end_date, field='end_date')
    if last < first:
        raise InvalidRange("End date cannot be before start date", field='end_date')
    return first, last


def _check_claims(ground_ids, slot_ids, first, last, exclude=None):
    """Reject an event that would take a slot another claim holds in its range.

    In ``exact`` mode another event only collides when it names the same
    grounds over the same days; overlapping ranges are let through.
    """
    if overlap_mode() == 'exact':
        same_range = EventBlock.objects.filter(
            status=EventBlock.ACTIVE,
            start_date=start_of_day(first),
            end_date=end_of_day(last),
        ).prefetch_related('grounds')
        for event in same_range:
            if not event.same_claim(exclude) and event.ground_ids() == set(ground_ids):
                raise Conflict("Event already exists for the selected grounds and dates", claim_kind='event')
        sources = [source for source in SOURCES if source is not EVENTS]
    else:
        sources = SOURCES

    raise_on_conflict(ground_ids, slot_ids, DateScope(first, last), exclude=exclude, sources=sources)


def _get_event(event_id, lock=False):
    queryset = EventBlock.objects.select_for_update() if lock else EventBlock.objects.all()
    try:
        return queryset.get(pk=event_id)
    except (EventBlock.DoesNotExist, ValueError, TypeError):
        raise NotFound("Event does not exist")


@transaction.atomic
def create_event_block(ground_ids, slot_ids, start_date, end_date, name, description=''):
    """Hold the listed slots of the given grounds for every day in the range.

    While active the event also closes its grounds to new ad-hoc bookings on
    those days, whatever the slot.
    """
    first, last = _clean_range(start_date, end_date)

    name = (name or '').strip()
    if not name:
        raise Validation("Name is required", field='name')

    grounds = lock_grounds(ground_ids)
    ids = {g.pk for g in grounds}
    slots = get_slots(slot_ids, ids)
    _check_claims(ids, {s.pk for s in slots}, first, last)

    event = EventBlock.objects.create(
        name=name,
        description=description or '',
        start_date=start_of_day(first),
        end_date=end_of_day(last),
    )
    event.grounds.set(grounds)
    event.slots.set(slots)

    ActivityLog.record(
        ActivityLog.CREATED, event,
        grounds=sorted(ids), slots=sorted(s.pk for s in slots),
        start_date=first.isoformat(), end_date=last.isoformat(),
    )
    logger.info("Created event %s on grounds %s from %s to %s", event.pk, sorted(ids), first, last)
    return event


@transaction.atomic
def update_event_block(event_id, ground_ids=None, slot_ids=None, start_date=None, end_date=None,
                       name=None, description=None):
    event = _get_event(event_id)

    first, last = _clean_range(
        start_date if start_date is not None else event.first_day,
        end_date if end_date is not None else event.last_day,
    )
    grounds = lock_grounds(ground_ids if ground_ids is not None else event.ground_ids())
    event = _get_event(event_id, lock=True)

    ids = {g.pk for g in grounds}
    slots = get_slots(slot_ids if slot_ids is not None else event.slot_ids(), ids)

    if name is not None:
        name = name.strip()
        if not name:
            raise Validation("Name is required", field='name')
        event.name = name
    if description is not None:
        event.description = description

    if event.is_active:
        _check_claims(ids, {s.pk for s in slots}, first, last, exclude=event)

    event.start_date = start_of_day(first)
    event.end_date = end_of_day(last)
    event.save()
    event.grounds.set(grounds)
    event.slots.set(slots)

    ActivityLog.record(
        ActivityLog.UPDATED, event,
        grounds=sorted(ids), slots=sorted(s.pk for s in slots),
        start_date=first.isoformat(), end_date=last.isoformat(),
    )
    logger.info("Updated event %s", event.pk)
    return event


@transaction.atomic
def deactivate_event_block(event_id):
    event = _get_event(event_id)
    for ground_id in sorted(event.ground_ids()):
        lock_ground(ground_id)
    event = _get_event(event_id, lock=True)
    if not event.is_active:
        raise Validation("Event is already inactive")

    event.set_status(EventBlock.INACTIVE)
    ActivityLog.record(ActivityLog.DEACTIVATED, event)
    logger.info("Deactivated event %s", event.pk)
    return event


@transaction.atomic
def reactivate_event_block(event_id):
    event = _get_event(event_id)
    grounds = lock_grounds(event.ground_ids())
    event = _get_event(event_id, lock=True)
    if event.is_active:
        raise Validation("Event is already active")

    _check_claims({g.pk for g in grounds}, event.slot_ids(), event.first_day, event.last_day, exclude=event)

    event.set_status(EventBlock.ACTIVE)
    ActivityLog.record(ActivityLog.REACTIVATED, event)
    logger.info("Reactivated event %s", event.pk)
    return event


def event_availability(ground_id, start_date, end_date):
    """The ground's active catalog, flagging slots an event holds on any day of the range."""
    ground = get_ground(ground_id)
    first, last = _clean_range(start_date, end_date)

    held = set()
    for event in EVENTS.live_claims(ground_ids=[ground.pk], scope=DateScope(first, last)):
        held |= event.slot_ids()

    return [
        {
            'slot_id': slot.pk,
            'label': slot.label,
            'start_time': slot.start_time.strftime('%H:%M'),
            'end_time': slot.end_time.strftime('%H:%M'),
            'available': slot.pk not in held,
        }
        for slot in ground.slot_times.filter(is_active=True).order_by('start_time')
    ]


def list_events(ground_ids=None, status=None, start_date=None, end_date=None):
    """Events naming any of ``ground_ids`` whose range touches the given dates."""
    queryset = EventBlock.objects.prefetch_related('grounds', 'slots')
    if ground_ids:
        queryset = queryset.filter(grounds__in=clean_ids(ground_ids, 'grounds'))
    if status is not None:
        if status not in dict(EventBlock.STATUS):
            raise Validation(f"Unknown status: {status}", field='status')
        queryset = queryset.filter(status=status)

    if start_date is not None and end_date is not None:
        scope = DateScope(*_clean_range(start_date, end_date))
    else:
        scope = DateScope(
            first=as_date(start_date, field='start_date') if start_date is not None else None,
            last=as_date(end_date, field='end_date') if end_date is not None else None,
        )
    queryset = EVENTS.within(queryset, scope)
    return list(queryset.distinct())
