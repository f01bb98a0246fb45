# topup/api/deps.py
from fastapi import Request

from topup.core.exceptions import ValidationError
from topup.gateways.digiflazz import ProviderGateway


def get_provider_gateway(request: Request) -> ProviderGateway:
    """The gateway built at startup and kept on app.state."""
    return request.app.state.gateway


async def read_json(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        raise ValidationError("Request body must be valid JSON")
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def non_string_fields(values: dict) -> list:
    """Names of the given fields that are present but not strings."""
    return [name for name, value in values.items() if value is not None and not isinstance(value, str)]
