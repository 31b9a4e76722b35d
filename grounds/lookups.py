"""Existence, capability and ownership checks shared by every claim handler.

Claim mutations for one ground are serialized by row-locking the ground
(``lock=True``) inside the caller's ``transaction.atomic()`` block before any
overlap check runs. Grounds are always locked in primary key order so that
handlers touching several grounds cannot deadlock each other.
"""
from .exceptions import CapabilityDisabled, NotFound, Validation
from .models import Ground, SlotTime, Sport

CAPABILITY_MESSAGES = {
    'allows_slot_booking': "This ground does not support slot booking",
    'allows_academy': "This ground does not support academy",
    'allows_membership': "This ground does not support membership",
}


def _check_capability(ground, capability):
    if capability and not getattr(ground, capability):
        raise CapabilityDisabled(CAPABILITY_MESSAGES[capability])


def get_ground(ground_id, capability=None, lock=False):
    queryset = Ground.objects.select_for_update() if lock else Ground.objects.all()
    try:
        ground = queryset.get(pk=ground_id)
    except (Ground.DoesNotExist, ValueError, TypeError):
        raise NotFound("Ground does not exist or is disabled")

    if not ground.is_available:
        raise NotFound("Ground does not exist or is disabled")

    _check_capability(ground, capability)
    return ground


def lock_ground(ground_id):
    """Lock a ground row whatever its state, for releasing or settling claims."""
    return Ground.objects.select_for_update().get(pk=ground_id)


def lock_grounds(ground_ids, capability=None):
    ids = sorted(set(ground_ids))
    if not ids:
        raise Validation("At least one ground is required", field='grounds')

    grounds = list(Ground.objects.select_for_update().filter(pk__in=ids).order_by('pk'))
    if len(grounds) != len(ids) or not all(g.is_available for g in grounds):
        raise NotFound("Ground does not exist or is disabled")

    for ground in grounds:
        _check_capability(ground, capability)
    return grounds


def clean_ids(values, field):
    """Coerce a list of ids to a set of ints, raising ``Validation`` on junk."""
    try:
        return {int(value) for value in values or []}
    except (TypeError, ValueError):
        raise Validation("Ids must be whole numbers", field=field)


def get_slots(slot_ids, ground_ids, field='slots'):
    """Return the active catalog entries for ``slot_ids``.

    Every entry must belong to one of ``ground_ids``.
    """
    ids = clean_ids(slot_ids, field)
    if not ids:
        raise Validation("At least one slot is required", field=field)

    slots = list(SlotTime.objects.filter(pk__in=ids, is_active=True).order_by('start_time'))
    if len(slots) != len(ids):
        raise NotFound("Slot does not exist or is disabled")

    allowed = set(ground_ids)
    if any(slot.ground_id not in allowed for slot in slots):
        raise Validation("Ground does not have the slots you selected", field=field)
    return slots


def get_sport(sport_id, ground):
    try:
        sport = Sport.objects.get(pk=sport_id, is_active=True)
    except Sport.DoesNotExist:
        raise NotFound("Sport does not exist or is disabled")

    if not ground.supported_sports.filter(pk=sport.pk).exists():
        raise CapabilityDisabled("Ground does not support the sport you selected")
    return sport
