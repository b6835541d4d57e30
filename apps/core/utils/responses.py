import json
from datetime import date, datetime, time
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db.models import ForeignKey
from django.http import JsonResponse


def to_dict(instance, exclude=()):
    """
    Flatten a model instance into JSON-safe primitives.

    Foreign keys are emitted as ``<name>_id``; dates and times use ISO format
    and decimals are rendered as strings so no precision is lost.
    """
    output = {}
    for field in instance._meta.concrete_fields:
        if field.name in exclude:
            continue

        if isinstance(field, ForeignKey):
            output[field.attname] = getattr(instance, field.attname)
            continue

        value = getattr(instance, field.name)
        if isinstance(value, (datetime, date)):
            output[field.name] = value.isoformat()
        elif isinstance(value, time):
            output[field.name] = value.strftime('%H:%M')
        elif isinstance(value, Decimal):
            output[field.name] = str(value)
        else:
            output[field.name] = value
    return output


def json_success(data=None, message='', status=200):
    payload = {'success': True}
    if message:
        payload['message'] = message
    if data is not None:
        payload['data'] = data
    return JsonResponse(payload, status=status)


def json_error(message, status=400, errors=None):
    payload = {'success': False, 'message': message}
    if errors:
        payload['errors'] = errors
    return JsonResponse(payload, status=status)


def validation_error_response(exc: ValidationError, status=400):
    if hasattr(exc, 'error_dict'):
        errors = exc.message_dict
        first = next(iter(errors.values()))
        return json_error(first[0], status=status, errors=errors)
    return json_error(exc.messages[0], status=status, errors={'__all__': exc.messages})


def parse_json_body(request):
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (TypeError, ValueError):
        raise ValidationError('Request body must be valid JSON.')
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object.')
    return payload


def form_error_response(form, status=400):
    errors = {field: list(field_errors) for field, field_errors in form.errors.items()}
    first = next(iter(errors.values()), ['Invalid request data.'])
    return json_error(first[0], status=status, errors=errors)


def json_not_found(request, exception=None):
    return json_error('Resource not found.', status=404)
