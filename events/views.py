from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from grounds.http import bind_json, form_error, run_command

from . import services
from .forms import EventAvailabilityForm, EventForm, EventQueryForm, EventUpdateForm


def event_payload(event):
    return {
        'id': event.pk,
        'name': event.name,
        'description': event.description,
        'grounds': sorted(event.ground_ids()),
        'slots': sorted(event.slot_ids()),
        'start_date': event.first_day.isoformat(),
        'end_date': event.last_day.isoformat(),
        'status': event.status,
    }


@login_required
@require_POST
def create_event(request):
    form, error = bind_json(EventForm, request)
    if error:
        return error

    cd = form.cleaned_data
    event, error = run_command(
        services.create_event_block,
        cd['grounds'], cd['slots'], cd['start_date'], cd['end_date'], cd['name'],
        description=cd['description'],
    )
    if error:
        return error
    return JsonResponse({'success': True, 'event': event_payload(event)}, status=201)


@login_required
@require_POST
def update_event(request, event_id):
    form, error = bind_json(EventUpdateForm, request)
    if error:
        return error

    changes = form.changes()
    event, error = run_command(
        services.update_event_block,
        event_id,
        ground_ids=changes.get('grounds'),
        slot_ids=changes.get('slots'),
        start_date=changes.get('start_date'),
        end_date=changes.get('end_date'),
        name=changes.get('name'),
        description=changes.get('description'),
    )
    if error:
        return error
    return JsonResponse({'success': True, 'event': event_payload(event)})


@login_required
@require_POST
def deactivate_event(request, event_id):
    event, error = run_command(services.deactivate_event_block, event_id)
    if error:
        return error
    return JsonResponse({'success': True, 'event': event_payload(event)})


@login_required
@require_POST
def reactivate_event(request, event_id):
    event, error = run_command(services.reactivate_event_block, event_id)
    if error:
        return error
    return JsonResponse({'success': True, 'event': event_payload(event)})


@require_GET
def event_availability(request):
    form = EventAvailabilityForm(request.GET)
    if not form.is_valid():
        return form_error(form)

    cd = form.cleaned_data
    slots, error = run_command(services.event_availability, cd['ground'], cd['start_date'], cd['end_date'])
    if error:
        return error
    return JsonResponse({'success': True, 'ground': cd['ground'], 'slots': slots})


@login_required
@require_GET
def list_events(request):
    form = EventQueryForm(request.GET)
    if not form.is_valid():
        return form_error(form)

    cd = form.cleaned_data
    events, error = run_command(
        services.list_events,
        ground_ids=cd['grounds'] or None,
        status=cd['status'] or None,
        start_date=cd['start_date'],
        end_date=cd['end_date'],
    )
    if error:
        return error
    return JsonResponse({'success': True, 'events': [event_payload(e) for e in events]})
