from grounds.dates import as_date
from grounds.lookups import get_ground

from .claims import claimed_slot_ids


def available_slots(ground_id, date):
    """List the active catalog of a ground for ``date``, flagging free slots.

    A slot is unavailable when any live booking, reservation date, academy,
    membership or event holds it on that date. Read only, takes no locks.
    """
    ground = get_ground(ground_id)
    day = as_date(date)
    claimed = claimed_slot_ids(ground.pk, day)

    return [
        {
            'slot_id': slot.pk,
            'label': slot.label,
            'start_time': slot.start_time.strftime('%H:%M'),
            'end_time': slot.end_time.strftime('%H:%M'),
            'price_row': slot.price_row,
            'price': slot.price_on(day),
            'available': slot.pk not in claimed,
        }
        for slot in ground.slot_times.filter(is_active=True).order_by('start_time')
    ]


get_availability = available_slots
