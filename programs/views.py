from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from grounds.http import bind_json, form_error, run_command

from . import registry
from .forms import ProgramForm, ProgramQueryForm, ProgramUpdateForm


def program_payload(program):
    payload = {
        'id': program.pk,
        'kind': program.claim_kind,
        'name': program.name,
        'ground': program.ground_id,
        'sport': program.sport_id,
        'morning_slots': sorted(s.pk for s in program.morning_slots.all()),
        'evening_slots': sorted(s.pk for s in program.evening_slots.all()),
        'status': program.status,
    }
    if program.claim_kind == 'academy':
        payload['active_days'] = program.sorted_active_days
    return payload


@login_required
@require_POST
def register_program(request, kind):
    form, error = bind_json(ProgramForm, request)
    if error:
        return error

    cd = form.cleaned_data
    program, error = run_command(
        registry.register_recurring_program,
        kind,
        cd['ground'],
        cd['morning_slots'],
        cd['evening_slots'],
        cd['name'],
        active_days=cd['active_days'],
        sport_id=cd['sport'],
    )
    if error:
        return error
    return JsonResponse({'success': True, 'program': program_payload(program)}, status=201)


@login_required
@require_POST
def update_program(request, kind, program_id):
    form, error = bind_json(ProgramUpdateForm, request)
    if error:
        return error

    changes = form.changes()
    program, error = run_command(
        registry.update_recurring_program,
        kind,
        program_id,
        morning_slot_ids=changes.get('morning_slots'),
        evening_slot_ids=changes.get('evening_slots'),
        active_days=changes.get('active_days'),
        name=changes.get('name'),
        sport_id=changes.get('sport'),
    )
    if error:
        return error
    return JsonResponse({'success': True, 'program': program_payload(program)})


@login_required
@require_POST
def deactivate_program(request, kind, program_id):
    program, error = run_command(registry.deactivate_recurring_program, kind, program_id)
    if error:
        return error
    return JsonResponse({'success': True, 'program': program_payload(program)})


@login_required
@require_POST
def reactivate_program(request, kind, program_id):
    program, error = run_command(registry.reactivate_recurring_program, kind, program_id)
    if error:
        return error
    return JsonResponse({'success': True, 'program': program_payload(program)})


@require_GET
def program_availability(request, ground_id):
    slots, error = run_command(registry.recurring_availability, ground_id)
    if error:
        return error
    return JsonResponse({'success': True, 'ground': ground_id, 'slots': slots})


@login_required
@require_GET
def list_programs(request, kind):
    form = ProgramQueryForm(request.GET)
    if not form.is_valid():
        return form_error(form)

    cd = form.cleaned_data
    programs, error = run_command(registry.list_programs, kind, ground_id=cd['ground'], status=cd['status'] or None)
    if error:
        return error
    return JsonResponse({'success': True, 'programs': [program_payload(p) for p in programs]})
