import hmac
import re
from functools import wraps

from flask import current_app, request
from werkzeug.datastructures import MultiDict

from therapy_practice.errors import AuthorizationError, ValidationError

_CAMEL_BOUNDARY = re.compile(r'(?<!^)(?=[A-Z])')


def to_snake_case(key):
    return _CAMEL_BOUNDARY.sub('_', key).lower()


def get_json_payload():
    """Return the JSON body of the request, or raise a 400"""
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Expected a JSON object")
    return payload


def _flatten_payload(payload):
    formdata = MultiDict()
    for key, value in payload.items():
        if value is None or isinstance(value, (list, dict)):
            continue
        if isinstance(value, bool):
            value = 'true' if value else 'false'
        formdata.add(to_snake_case(key), str(value))
    return formdata


def load_form(form_class, payload=None):
    """
    Validate a flat JSON payload with a WTForms form

    camelCase keys are matched to the snake_case field names of the form.
    Nested values are left to the parsing helpers.
    """
    if payload is None:
        payload = get_json_payload()
    form = form_class(formdata=_flatten_payload(payload))
    if not form.validate():
        raise ValidationError("Invalid data", form.errors)
    return form


def provided_fields(form, payload):
    """Names of the form fields that were present in the payload"""
    keys = {to_snake_case(key) for key, value in payload.items() if value is not None}
    return {field.name: field.data for field in form if field.name in keys}


def cron_auth_required(f):
    """Only let scheduled jobs in when they present the shared bearer secret"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        secret = current_app.config.get('CRON_SECRET')
        header = request.headers.get('Authorization', '')
        expected = f"Bearer {secret}"
        if not secret or not hmac.compare_digest(header.encode(), expected.encode()):
            raise AuthorizationError("Unauthorized")
        return f(*args, **kwargs)
    return decorated_function
