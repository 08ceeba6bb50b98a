import json
from datetime import date, datetime, time
from decimal import Decimal

from flask.json.provider import DefaultJSONProvider


def _default(obj):
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


class PracticeJSONEncoder(json.JSONEncoder):
    """
    JSON encoder for money values and timestamps
    Used when details are serialized outside of a response, e.g. audit entries
    """
    def default(self, obj):
        try:
            return _default(obj)
        except TypeError:
            return super().default(obj)


class PracticeJSONProvider(DefaultJSONProvider):
    """Response serializer: amounts as numbers, dates as ISO-8601 strings"""
    sort_keys = False

    @staticmethod
    def default(obj):
        try:
            return _default(obj)
        except TypeError:
            return DefaultJSONProvider.default(obj)
