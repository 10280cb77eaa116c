# routes/utils.py
# Разбор JSON-запросов для API баттлов

from datetime import datetime

from flask import request, jsonify

from logic.errors import ValidationError


def json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Тело запроса должно быть JSON-объектом')
    return data


def require(data, field):
    if field not in data or data[field] is None:
        raise ValidationError(f'Поле {field} обязательно', field=field)
    return data[field]


def parse_datetime(data, field):
    value = require(data, field)
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Поле {field} должно быть датой в формате ISO 8601', field=field, value=value)


def parse_int(value, field):
    if isinstance(value, bool):
        raise ValidationError(f'Поле {field} должно быть целым числом', field=field, value=value)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Поле {field} должно быть целым числом', field=field, value=value)


def ok(payload=None, status=200, **extra):
    body = {'ok': True}
    if payload is not None:
        body['data'] = payload
    body.update(extra)
    return jsonify(body), status
