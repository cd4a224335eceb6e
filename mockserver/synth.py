import json
from typing import Mapping, NamedTuple

from .config import Rule

JSON_CONTENT_TYPE = 'application/json'


class MockResponse(NamedTuple):
    status: int
    content_type: str
    body: str


def to_json(value) -> str:
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False)


def inject_params(payload, params: Mapping[str, str]):
    """Copy of an object payload with each param set as a string field."""
    if not isinstance(payload, dict):
        return payload
    return {**payload, **{name: str(value) for name, value in params.items()}}


def substitute(template: str, params: Mapping[str, str]) -> str:
    # unknown {{placeholders}} are left untouched
    for name, value in params.items():
        template = template.replace('{{' + name + '}}', value)
    return template


def synthesize(rule: Rule, method: str, params: Mapping[str, str]) -> MockResponse | None:
    """
    Build the canned response for a matched rule.

    Returns None when the request method differs from the rule's method; the
    caller treats that the same as no match at all.
    """
    if rule.method.upper() != method.upper():
        return None

    if rule.content_type == JSON_CONTENT_TYPE:
        body = to_json(inject_params(rule.payload, params))
    else:
        text = rule.payload if isinstance(rule.payload, str) else to_json(rule.payload)
        body = substitute(text, params)

    return MockResponse(rule.status, rule.content_type, body)
