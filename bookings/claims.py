"""The five kinds of claim on a ground's slots, behind one interface.

Every availability answer and every overlap check is a fold over
``SOURCES``. Each source narrows its table in SQL as far as it can (ground,
slot, date bounds) and leaves the rest to the claim's own ``covers`` and
``date_scope``.
"""
from django.db.models import Q

from events.models import EventBlock
from grounds.dates import DateScope, end_of_day, start_of_day
from grounds.exceptions import Conflict
from programs.models import Academy, Membership

from .models import ReservationSlot, SlotBooking

CONFLICT_MESSAGES = {
    'booking': "Slot already booked",
    'reservation': "Slot already reserved",
    'academy': "Slot is reserved for an academy",
    'membership': "Slot is reserved for a membership",
    'event': "Slot is blocked by an event",
}


class ClaimSource:
    kind = None
    ground_field = 'ground'
    slot_fields = ('slots',)

    def queryset(self):
        raise NotImplementedError

    def within(self, queryset, scope):
        return queryset

    def prefetch(self):
        return self.slot_fields

    def live_claims(self, ground_ids=None, slot_ids=None, scope=None):
        queryset = self.queryset()
        if ground_ids is not None:
            queryset = queryset.filter(**{f'{self.ground_field}__in': list(ground_ids)})
        if slot_ids is not None:
            query = Q()
            for field in self.slot_fields:
                query |= Q(**{f'{field}__in': list(slot_ids)})
            queryset = queryset.filter(query)
        if scope is not None:
            queryset = self.within(queryset, scope)
        return queryset.distinct().prefetch_related(*self.prefetch())


class DatedSource(ClaimSource):
    model = None

    def queryset(self):
        return self.model.objects.filter(status__in=self.model.LIVE_STATUSES)

    def within(self, queryset, scope):
        if scope.first is not None:
            queryset = queryset.filter(date__gte=scope.first)
        if scope.last is not None:
            queryset = queryset.filter(date__lte=scope.last)
        return queryset


class BookingSource(DatedSource):
    kind = 'booking'
    model = SlotBooking


class ReservationSource(DatedSource):
    kind = 'reservation'
    model = ReservationSlot


class ProgramSource(ClaimSource):
    model = None
    slot_fields = ('morning_slots', 'evening_slots')

    def queryset(self):
        return self.model.objects.filter(status=self.model.ACTIVE)


class AcademySource(ProgramSource):
    kind = 'academy'
    model = Academy


class MembershipSource(ProgramSource):
    kind = 'membership'
    model = Membership


class EventSource(ClaimSource):
    kind = 'event'
    ground_field = 'grounds'

    def queryset(self):
        return EventBlock.objects.filter(status=EventBlock.ACTIVE)

    def within(self, queryset, scope):
        if scope.last is not None:
            queryset = queryset.filter(start_date__lte=end_of_day(scope.last))
        if scope.first is not None:
            queryset = queryset.filter(end_date__gte=start_of_day(scope.first))
        return queryset

    def prefetch(self):
        return ('grounds', 'slots')


BOOKINGS = BookingSource()
RESERVATIONS = ReservationSource()
ACADEMIES = AcademySource()
MEMBERSHIPS = MembershipSource()
EVENTS = EventSource()

SOURCES = (BOOKINGS, RESERVATIONS, ACADEMIES, MEMBERSHIPS, EVENTS)
DATED_SOURCES = (BOOKINGS, RESERVATIONS, EVENTS)
RECURRING_SOURCES = (ACADEMIES, MEMBERSHIPS)


def claimed_slot_ids(ground_id, day, sources=SOURCES):
    """Slot ids of ``ground_id`` held by any live claim on ``day``."""
    scope = DateScope.on(day)
    claimed = set()
    for source in sources:
        for claim in source.live_claims(ground_ids=[ground_id], scope=scope):
            claimed |= claim.covers(ground_id, day)
    return claimed


def find_conflict(ground_ids, slot_ids, scope, exclude=None, sources=SOURCES):
    """Return the first live claim that shares a slot and a date with the request.

    ``ground_ids=None`` looks at every ground. ``scope=None`` compares slot ids
    only, ignoring dates. ``exclude`` is the claim being edited, which never
    conflicts with itself.
    """
    slot_ids = set(slot_ids)
    for source in sources:
        for claim in source.live_claims(ground_ids, slot_ids, scope):
            if claim.same_claim(exclude):
                continue
            if not claim.slot_ids() & slot_ids:
                continue
            if scope is None or claim.date_scope().intersects(scope):
                return claim
    return None


def ground_blocking_event(ground_id, day):
    """An active event that holds ``ground_id`` on ``day``, if any."""
    for event in EVENTS.live_claims(ground_ids=[ground_id], scope=DateScope.on(day)):
        if event.blocks_ground_on(ground_id, day):
            return event
    return None


def conflict_error(claim, message=None):
    return Conflict(message or CONFLICT_MESSAGES[claim.claim_kind], claim_kind=claim.claim_kind)


def raise_on_conflict(ground_ids, slot_ids, scope, exclude=None, sources=SOURCES):
    claim = find_conflict(ground_ids, slot_ids, scope, exclude=exclude, sources=sources)
    if claim is not None:
        raise conflict_error(claim)
