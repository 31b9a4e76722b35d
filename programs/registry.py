"""Register, edit and switch academies and memberships.

Two programs may never share a catalog slot while both are active. How far
that comparison reaches is the ``RECURRING_OVERLAP_SCOPE`` setting:
``"global"`` looks at programs on every ground, ``"ground"`` only at the
program's own ground. A program must also stay clear of bookings,
reservation dates and events from today on that fall on its weekdays.
"""
import logging

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import transaction
from django.utils import timezone

from bookings.claims import DATED_SOURCES, RECURRING_SOURCES, conflict_error, find_conflict, raise_on_conflict
from bookings.models import ActivityLog
from grounds.dates import WEEKDAY_CODES, DateScope
from grounds.exceptions import NotFound, Validation
from grounds.lookups import clean_ids, get_ground, get_slots, get_sport, lock_ground

from .models import Academy, Membership

logger = logging.getLogger(__name__)

PROGRAMS = {
    'academy': (Academy, 'allows_academy'),
    'membership': (Membership, 'allows_membership'),
}

OVERLAP_SCOPES = ('global', 'ground')


def _program_kind(kind):
    try:
        return PROGRAMS[kind]
    except KeyError:
        raise Validation(f"Unknown program kind: {kind}", field='kind')


def overlap_scope():
    scope = getattr(settings, 'RECURRING_OVERLAP_SCOPE', 'global')
    if scope not in OVERLAP_SCOPES:
        raise ImproperlyConfigured(f"RECURRING_OVERLAP_SCOPE must be one of {', '.join(OVERLAP_SCOPES)}")
    return scope


def _clean_days(model, active_days):
    if model is not Academy:
        return None

    days = list(dict.fromkeys(active_days or []))
    if not days:
        raise Validation("At least one active day is required", field='active_days')
    unknown = [d for d in days if d not in WEEKDAY_CODES]
    if unknown:
        raise Validation(f"Unknown weekday: {', '.join(map(str, unknown))}", field='active_days')
    return sorted(days, key=WEEKDAY_CODES.index)


def _clean_slots(ground, morning_slot_ids, evening_slot_ids):
    morning = clean_ids(morning_slot_ids, 'morning_slots')
    evening = clean_ids(evening_slot_ids, 'evening_slots')
    if morning & evening:
        raise Validation("A slot cannot be both a morning and an evening slot", field='slots')

    slots = get_slots(morning | evening, [ground.pk])
    return (
        [s for s in slots if s.pk in morning],
        [s for s in slots if s.pk in evening],
    )


def _check_overlap(ground, slot_ids, active_days, exclude=None):
    ground_ids = None if overlap_scope() == 'global' else [ground.pk]
    claim = find_conflict(ground_ids, slot_ids, None, exclude=exclude, sources=RECURRING_SOURCES)
    if claim is not None:
        raise conflict_error(claim, "Slot already reserved")

    upcoming = DateScope(first=timezone.localdate(), weekdays=active_days)
    raise_on_conflict([ground.pk], slot_ids, upcoming, exclude=exclude, sources=DATED_SOURCES)


def _get_program(model, program_id, lock=False):
    queryset = model.objects.select_for_update() if lock else model.objects.all()
    try:
        return queryset.get(pk=program_id)
    except (model.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"{model._meta.verbose_name.capitalize()} does not exist")


def _lock_program(model, program_id):
    program = _get_program(model, program_id)
    lock_ground(program.ground_id)
    return _get_program(model, program_id, lock=True)


@transaction.atomic
def register_recurring_program(kind, ground_id, morning_slot_ids, evening_slot_ids, name,
                               active_days=None, sport_id=None):
    model, capability = _program_kind(kind)
    ground = get_ground(ground_id, capability=capability, lock=True)
    sport = get_sport(sport_id, ground) if sport_id else None

    name = (name or '').strip()
    if not name:
        raise Validation("Name is required", field='name')

    days = _clean_days(model, active_days)
    morning, evening = _clean_slots(ground, morning_slot_ids, evening_slot_ids)
    slot_ids = {s.pk for s in morning + evening}
    _check_overlap(ground, slot_ids, days)

    program = model(name=name, ground=ground, sport=sport)
    if days is not None:
        program.active_days = days
    program.save()
    program.morning_slots.set(morning)
    program.evening_slots.set(evening)

    ActivityLog.record(ActivityLog.CREATED, program, ground=ground, slots=sorted(slot_ids), active_days=days)
    logger.info("Registered %s %s on ground %s", kind, program.pk, ground.pk)
    return program


@transaction.atomic
def update_recurring_program(kind, program_id, morning_slot_ids=None, evening_slot_ids=None,
                             active_days=None, name=None, sport_id=None):
    """Edit a program in place.

    Fields left as ``None`` keep their stored value. An inactive program holds
    no slots, so its edits skip the overlap checks until it is reactivated.
    """
    model, capability = _program_kind(kind)
    program = _lock_program(model, program_id)
    ground = get_ground(program.ground_id, capability=capability)

    if name is not None:
        name = name.strip()
        if not name:
            raise Validation("Name is required", field='name')
        program.name = name

    if sport_id is not None:
        program.sport = get_sport(sport_id, ground)

    days = None
    if model is Academy:
        days = _clean_days(model, active_days if active_days is not None else program.active_days)
        program.active_days = days

    morning, evening = _clean_slots(
        ground,
        morning_slot_ids if morning_slot_ids is not None else [s.pk for s in program.morning_slots.all()],
        evening_slot_ids if evening_slot_ids is not None else [s.pk for s in program.evening_slots.all()],
    )
    slot_ids = {s.pk for s in morning + evening}

    if program.is_active:
        _check_overlap(ground, slot_ids, days, exclude=program)

    program.save()
    program.morning_slots.set(morning)
    program.evening_slots.set(evening)

    ActivityLog.record(ActivityLog.UPDATED, program, ground=ground, slots=sorted(slot_ids), active_days=days)
    logger.info("Updated %s %s", kind, program.pk)
    return program


@transaction.atomic
def deactivate_recurring_program(kind, program_id):
    """Release every slot the program holds. The program is kept for history."""
    model, _ = _program_kind(kind)
    program = _lock_program(model, program_id)
    if not program.is_active:
        raise Validation(f"{model._meta.verbose_name.capitalize()} is already inactive")

    program.set_status(model.INACTIVE)
    ActivityLog.record(ActivityLog.DEACTIVATED, program, ground=program.ground)
    logger.info("Deactivated %s %s", kind, program.pk)
    return program


@transaction.atomic
def reactivate_recurring_program(kind, program_id):
    model, capability = _program_kind(kind)
    program = _lock_program(model, program_id)
    if program.is_active:
        raise Validation(f"{model._meta.verbose_name.capitalize()} is already active")

    ground = get_ground(program.ground_id, capability=capability)
    days = program.sorted_active_days if model is Academy else None
    _check_overlap(ground, program.slot_ids(), days, exclude=program)

    program.set_status(model.ACTIVE)
    ActivityLog.record(ActivityLog.REACTIVATED, program, ground=ground)
    logger.info("Reactivated %s %s", kind, program.pk)
    return program


def recurring_availability(ground_id):
    """The ground's active catalog, flagging slots already held by a program."""
    ground = get_ground(ground_id)
    held = set()
    for source in RECURRING_SOURCES:
        for program in source.live_claims(ground_ids=[ground.pk]):
            held |= program.slot_ids()

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


def list_programs(kind, ground_id=None, status=None):
    model, _ = _program_kind(kind)
    queryset = model.objects.prefetch_related('morning_slots', 'evening_slots')
    if ground_id is not None:
        queryset = queryset.filter(ground_id=ground_id)
    if status is not None:
        if status not in dict(model.STATUS):
            raise Validation(f"Unknown status: {status}", field='status')
        queryset = queryset.filter(status=status)
    return list(queryset.order_by('name', 'pk'))
