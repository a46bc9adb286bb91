"""
SMS Gateway Client

A Python client library for the SMS Gateway web API with form-encoded requests.
"""

from .form_encoder import (
    FieldTypeError, MapSequence, Scalar, StringSequence, encode, encode_form, field_map, field_value,
    urlencode_pairs,
)
from .gateway_api_caller import (
    BASE_URL, ConfigError, GatewayResponse, Outcome, SmsGatewayClient, SmsGatewayConfig, get_client,
    send_sms,
)

__all__ = [
    'BASE_URL',
    'ConfigError',
    'FieldTypeError',
    'GatewayResponse',
    'MapSequence',
    'Outcome',
    'Scalar',
    'SmsGatewayClient',
    'SmsGatewayConfig',
    'StringSequence',
    'encode',
    'encode_form',
    'field_map',
    'field_value',
    'get_client',
    'send_sms',
    'urlencode_pairs',
]

__version__ = "0.1.0"
