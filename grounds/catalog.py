import logging
from datetime import date, datetime, time, timedelta

from django.conf import settings
from django.db import transaction

from .dates import WEEKDAY_CODES, as_date
from .exceptions import Conflict, NotFound, Validation
from .models import Ground, SlotTime

logger = logging.getLogger(__name__)

CATALOG_OPENING = time(6, 0)
CATALOG_CLOSING = time(22, 0)

DEFAULT_SLOT_PRICES = {
    'sun': 1300,
    'mon': 800,
    'tue': 800,
    'wed': 800,
    'thu': 800,
    'fri': 1000,
    'sat': 1200,
}

UPDATABLE_FIELDS = ('label', 'start_time', 'end_time', 'is_active', 'prices')


def default_prices():
    prices = dict(DEFAULT_SLOT_PRICES)
    prices.update(getattr(settings, 'DEFAULT_SLOT_PRICES', {}))
    return prices


def format_label(start_time, end_time):
    return f"{start_time.strftime('%I:%M %p')} - {end_time.strftime('%I:%M %p')}"


def _build_windows(opening=CATALOG_OPENING, closing=CATALOG_CLOSING):
    windows = []
    # any fixed day works, only the clock times are kept
    current = datetime.combine(date(2000, 1, 1), opening)
    end_dt = datetime.combine(date(2000, 1, 1), closing)

    while current < end_dt:
        next_dt = min(current + timedelta(hours=1), end_dt)
        windows.append((current.time(), next_dt.time()))
        current = next_dt

    return windows


@transaction.atomic
def create_catalog(ground, prices=None):
    """Create the fixed hourly catalog (06:00-22:00) of a new ground.

    A ground that already owns catalog entries is returned untouched, so the
    call is safe to repeat.
    """
    existing = list(ground.slot_times.all())
    if existing:
        return existing

    price_table = default_prices()
    if prices:
        price_table.update(prices)

    entries = []
    for start_time, end_time in _build_windows():
        entry = SlotTime(
            ground=ground,
            label=format_label(start_time, end_time),
            start_time=start_time,
            end_time=end_time,
        )
        entry.set_prices(price_table)
        entries.append(entry)

    SlotTime.objects.bulk_create(entries)
    logger.info("Created %s catalog slots for ground %s", len(entries), ground.pk)
    return list(ground.slot_times.all())


def price_for(slot, day):
    return slot.price_on(as_date(day))


def _validate_prices(prices):
    unknown = set(prices) - set(WEEKDAY_CODES)
    if unknown:
        raise Validation(f"Unknown weekday in prices: {', '.join(sorted(unknown))}", field='prices')
    for code, amount in prices.items():
        if not isinstance(amount, int) or amount < 0:
            raise Validation(f"Price for {code} must be a non-negative integer", field='prices')


def _check_window(start_time, end_time):
    if start_time is None or end_time is None:
        raise Validation("Start and end time are required", field='start_time')
    if end_time <= start_time:
        raise Validation("End time must be after start time", field='end_time')


def add_slot(ground_id, label, start_time, end_time, prices=None):
    _check_window(start_time, end_time)

    try:
        ground = Ground.objects.get(pk=ground_id, is_active=True)
    except Ground.DoesNotExist:
        raise NotFound("Ground does not exist or is disabled")

    if SlotTime.objects.filter(ground=ground, label=label).exists():
        raise Conflict("Slot already exists")

    price_table = default_prices()
    if prices:
        _validate_prices(prices)
        price_table.update(prices)

    slot = SlotTime(ground=ground, label=label, start_time=start_time, end_time=end_time)
    slot.set_prices(price_table)
    slot.save()
    return slot


def update_slot(slot_id, **fields):
    """Rename, reprice or toggle a catalog entry.

    Pricing and activation edits never take capacity from an existing claim,
    so no overlap checks run here.
    """
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise Validation(f"Cannot update: {', '.join(sorted(unknown))}")

    try:
        slot = SlotTime.objects.get(pk=slot_id)
    except SlotTime.DoesNotExist:
        raise NotFound("Slot does not exist")

    prices = fields.pop('prices', None)
    if prices:
        _validate_prices(prices)
        slot.set_prices(prices)

    label = fields.get('label')
    if label and SlotTime.objects.filter(ground_id=slot.ground_id, label=label).exclude(pk=slot.pk).exists():
        raise Conflict("Slot already exists")

    for name, value in fields.items():
        setattr(slot, name, value)

    _check_window(slot.start_time, slot.end_time)

    slot.save()
    return slot
