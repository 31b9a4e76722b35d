import json
import logging
import time

from django.db import OperationalError
from django.http import JsonResponse

from .exceptions import AllocationError

logger = logging.getLogger(__name__)

RETRY_ATTEMPTS = 3
RETRY_DELAY = 0.1


def json_body(request):
    """Decode a JSON object body; ``None`` when the body is not one."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def bad_request(error, errors=None):
    payload = {'success': False, 'error': error}
    if errors:
        payload['errors'] = errors
    return JsonResponse(payload, status=400)


def form_error(form):
    return bad_request('Invalid request', errors={field: list(messages) for field, messages in form.errors.items()})


def run_command(handler, *args, **kwargs):
    """Call ``handler`` and return ``(result, None)`` or ``(None, error_response)``.

    Transient database locks (SQLite) are retried a few times before giving
    up; allocation errors become JSON with the status they carry.
    """
    for attempt in range(RETRY_ATTEMPTS):
        try:
            return handler(*args, **kwargs), None
        except OperationalError:
            # retry on transient DB lock
            if attempt < RETRY_ATTEMPTS - 1:
                time.sleep(RETRY_DELAY)
                continue
            logger.warning("Database busy running %s", handler.__name__)
            return None, JsonResponse({'success': False, 'error': 'Database is busy, please try again.'}, status=503)
        except AllocationError as exc:
            logger.info("Rejected %s: %s", handler.__name__, exc.message)
            return None, JsonResponse(exc.as_dict(), status=exc.status_code)


def bind_json(form_class, request):
    """Validate a JSON body with ``form_class``; returns ``(form, error_response)``."""
    data = json_body(request)
    if data is None:
        return None, bad_request('Invalid JSON body')

    form = form_class(data)
    if not form.is_valid():
        return None, form_error(form)
    return form, None
