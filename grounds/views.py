from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from . import catalog
from .forms import SlotForm, SlotUpdateForm
from .http import bind_json, run_command
from .lookups import get_ground


def slot_payload(slot):
    return {
        'slot_id': slot.pk,
        'ground': slot.ground_id,
        'label': slot.label,
        'start_time': slot.start_time.strftime('%H:%M'),
        'end_time': slot.end_time.strftime('%H:%M'),
        'price_row': slot.price_row,
        'is_active': slot.is_active,
    }


def _catalog(ground_id):
    ground = get_ground(ground_id)
    return list(ground.slot_times.order_by('start_time'))


@require_GET
def ground_slots(request, ground_id):
    slots, error = run_command(_catalog, ground_id)
    if error:
        return error
    return JsonResponse({'success': True, 'ground': ground_id, 'slots': [slot_payload(s) for s in slots]})


@login_required
@require_POST
def add_slot(request, ground_id):
    form, error = bind_json(SlotForm, request)
    if error:
        return error

    cd = form.cleaned_data
    slot, error = run_command(
        catalog.add_slot, ground_id, cd['label'], cd['start_time'], cd['end_time'], prices=cd['prices'],
    )
    if error:
        return error
    return JsonResponse({'success': True, 'slot': slot_payload(slot)}, status=201)


@login_required
@require_POST
def update_slot(request, slot_id):
    form, error = bind_json(SlotUpdateForm, request)
    if error:
        return error

    slot, error = run_command(catalog.update_slot, slot_id, **form.changes())
    if error:
        return error
    return JsonResponse({'success': True, 'slot': slot_payload(slot)})
