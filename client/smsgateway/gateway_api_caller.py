"""
SMS Gateway API Client Module

This module provides a client for the SMS Gateway web API. Every call sends the
account email and password along with the request parameters, form-encoded,
and hands back the raw JSON response body as text.
"""

import os
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional

import requests

from .form_encoder import FieldTypeError, encode, field_map, urlencode_pairs
from .logging_config import get_logger, log_gateway_event

logger = get_logger(__name__)

BASE_URL = "https://smsgateway.me/api/v3"

GET = "GET"
POST = "POST"

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=UTF-8"


class ConfigError(ValueError):
    """Raised when the client configuration is incomplete"""


def default_config_dir() -> str:
    """Get the default configuration directory following XDG standards"""
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return os.path.join(xdg_config_home, "smsgateway")

    home = os.environ.get("HOME")
    if home:
        return os.path.join(home, ".config", "smsgateway")

    return os.path.join(os.getcwd(), ".config", "smsgateway")


def default_config_path() -> str:
    """Get the config file path: SMSGATEWAY_CONFIG, else config.json in the default directory"""
    config_path = os.environ.get("SMSGATEWAY_CONFIG")
    if config_path:
        return config_path
    return os.path.join(default_config_dir(), "config.json")


def write_config(path: str, data: Dict[str, Any], mode: int = 0o600) -> None:
    """Write a config file; it holds the account password so it is kept private"""
    with open(path, 'w') as f:
        json.dump(data, f, indent=2)
    try:
        os.chmod(path, mode)
    except OSError:
        logger.warning(f"Could not set permissions on {path}")


class SmsGatewayConfig:
    """Configuration for SMS Gateway client"""

    def __init__(self, config_path: Optional[str] = None):
        if config_path is None:
            config_path = default_config_path()

        self.config_path = config_path
        self.email: str = ""
        self.password: str = ""
        self.base_url: str = BASE_URL
        self.device: Optional[int] = None
        self.timeout: Optional[float] = None

        self._load_config()

    def _load_config(self):
        """Load configuration from file"""
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            config_data = json.load(f)

        required_fields = ['email', 'password']
        for field in required_fields:
            if not config_data.get(field):
                raise ConfigError(f"Missing required config field: {field}")
            setattr(self, field, config_data[field])

        # Optional fields
        self.base_url = config_data.get('base_url') or BASE_URL
        self.device = config_data.get('device')
        self.timeout = config_data.get('timeout')


class Outcome(Enum):
    SUCCESS = "success"
    TRANSPORT_ERROR = "transport_error"
    NON_OK_STATUS = "non_ok_status"
    EMPTY_BODY = "empty_body"


@dataclass(frozen=True)
class GatewayResponse:
    """Result of one API call; body is "" unless outcome is SUCCESS"""
    outcome: Outcome
    body: str = ""
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS


def _id_text(name: str, value: Any) -> str:
    """Render an id argument as text; None would otherwise go out as "None" """
    if value is None:
        raise FieldTypeError(f"{name} is required")
    return str(value)


def _many(name: str, values: Iterable[Any]) -> list:
    """Materialize a recipient list; a bare string is one recipient, not a list"""
    if isinstance(values, str):
        raise FieldTypeError(f"{name} must be a list, got a single string")
    return list(values)


class SmsGatewayClient:
    """
    Client for the SMS Gateway API.

    Failed calls never raise: a transport error, a status other than 200 or an
    unreadable body all come back as an empty string. Use fetch() to tell them
    apart.
    """

    def __init__(self, email: str, password: str, base_url: str = BASE_URL,
                 session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        self._email = email
        self._password = password
        self._base_url = base_url.rstrip('/')
        self._timeout = timeout
        self._owns_session = session is None
        self._session = session

    @classmethod
    def from_config(cls, config: SmsGatewayConfig, session: Optional[requests.Session] = None):
        return cls(config.email, config.password, base_url=config.base_url,
                   session=session, timeout=config.timeout)

    @property
    def email(self) -> str:
        return self._email

    @property
    def password(self) -> str:
        return self._password

    @property
    def base_url(self) -> str:
        return self._base_url

    def __enter__(self):
        """Context manager entry"""
        if self._session is None:
            self._session = requests.Session()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - close a session this client opened"""
        self.close()

    def close(self):
        if self._owns_session and self._session is not None:
            self._session.close()
            self._session = None

    # Contacts

    def create_contact(self, name: str, number: str) -> str:
        """Add a contact to the account"""
        return self._make_request("/contacts/create", POST, {"name": name, "number": number})

    def get_contacts(self, page: int = 1) -> str:
        """List contacts, 500 per page"""
        return self._make_request("/contacts", GET, {"page": str(page)})

    def get_contact(self, contact_id: int) -> str:
        return self._make_request(f"/contacts/view/{_id_text('contact_id', contact_id)}", GET)

    # Devices

    def get_devices(self, page: int = 1) -> str:
        """List devices, 500 per page"""
        return self._make_request("/devices", GET, {"page": str(page)})

    def get_device(self, device_id: int) -> str:
        return self._make_request(f"/devices/view/{_id_text('device_id', device_id)}", GET)

    # Messages

    def get_messages(self, page: int = 1) -> str:
        """List messages, 500 per page"""
        return self._make_request("/messages", GET, {"page": str(page)})

    def get_message(self, message_id: int) -> str:
        return self._make_request(f"/messages/view/{_id_text('message_id', message_id)}", GET)

    def send_message_to_number(self, to: str, message: str, device: int,
                               extra: Optional[Mapping[str, Any]] = None) -> str:
        """
        Send a message to one phone number.

        Args:
            to: Recipient phone number
            message: Message content
            device: Id of the device that sends the message
            extra: Additional API options (e.g. send_at, expires_at)

        Returns:
            str: JSON response body, "" on failure
        """
        fields = self._message_fields(extra, "number", to, message, device)
        return self._make_request("/messages/send", POST, fields)

    def send_message_to_many_numbers(self, to_list: Iterable[str], message: str, device: int,
                                     extra: Optional[Mapping[str, Any]] = None) -> str:
        """Send one message to several phone numbers"""
        fields = self._message_fields(extra, "number", _many("to_list", to_list), message, device)
        return self._make_request("/messages/send", POST, fields)

    def send_message_to_contact(self, contact_id: int, message: str, device: int,
                                extra: Optional[Mapping[str, Any]] = None) -> str:
        """Send a message to a saved contact"""
        fields = self._message_fields(extra, "contact", _id_text("contact_id", contact_id), message, device)
        return self._make_request("/messages/send", POST, fields)

    def send_message_to_many_contacts(self, contact_ids: Iterable[Any], message: str, device: int,
                                      extra: Optional[Mapping[str, Any]] = None) -> str:
        """Send one message to several saved contacts"""
        contacts = [_id_text("contact_ids", contact_id) for contact_id in _many("contact_ids", contact_ids)]
        fields = self._message_fields(extra, "contact", contacts, message, device)
        return self._make_request("/messages/send", POST, fields)

    def send_many_messages(self, data_list: Iterable[Mapping[str, Any]]) -> str:
        """
        Send a batch of messages in one request.

        Args:
            data_list: One mapping per message, e.g.
                {"device": "1", "number": "555", "message": "hi"}

        Returns:
            str: JSON response body, "" on failure
        """
        return self._make_request("/messages/send", POST, {"data": list(data_list)})

    @staticmethod
    def _message_fields(extra, target_key, target, message, device) -> Dict[str, Any]:
        fields = dict(extra) if extra else {}
        fields[target_key] = target
        fields["message"] = message
        fields["device"] = _id_text("device", device)
        return fields

    # Dispatch

    def fetch(self, method: str, path: str, fields: Optional[Mapping[str, Any]] = None) -> GatewayResponse:
        """
        Send one request and report how it went.

        Args:
            method: GET or POST
            path: API path below the base URL, e.g. "/contacts"
            fields: Request parameters; credentials are added to a copy

        Returns:
            GatewayResponse with the body and outcome
        """
        if method not in (GET, POST):
            raise ValueError(f"Unsupported HTTP method: {method}")

        prepared = field_map(fields or {})
        # credentials always win and always go last
        prepared.pop("email", None)
        prepared.pop("password", None)
        prepared.update(field_map({"email": self._email, "password": self._password}))
        body = urlencode_pairs(encode(prepared))
        url = self._base_url + path

        logger.debug(f"{method} {url}")

        try:
            if method == GET:
                response = self._http().request(GET, f"{url}?{body}", stream=True, timeout=self._timeout)
            else:
                response = self._http().request(
                    POST, url, data=body.encode('utf-8'),
                    headers={"Content-Type": FORM_CONTENT_TYPE},
                    stream=True, timeout=self._timeout
                )
        except requests.exceptions.RequestException as e:
            logger.debug(f"Request to {url} failed", exc_info=True)
            log_gateway_event('transport_error', method, path, success=False, error=str(e))
            return GatewayResponse(Outcome.TRANSPORT_ERROR, error=str(e))

        return self._read_response(response, method, path)

    def _read_response(self, response, method: str, path: str) -> GatewayResponse:
        """Read a 200 body as UTF-8 text, releasing the response on every path"""
        try:
            status_code = response.status_code
            if status_code != 200:
                log_gateway_event('non_ok_status', method, path, status_code=status_code, success=False)
                return GatewayResponse(Outcome.NON_OK_STATUS, status_code=status_code)

            try:
                text = response.content.decode('utf-8')
            except (requests.exceptions.RequestException, UnicodeDecodeError) as e:
                log_gateway_event('read_error', method, path, status_code=status_code,
                                  success=False, error=str(e))
                return GatewayResponse(Outcome.EMPTY_BODY, status_code=status_code, error=str(e))

            log_gateway_event('request_ok', method, path, status_code=status_code)
            return GatewayResponse(Outcome.SUCCESS, body=text, status_code=status_code)
        finally:
            response.close()

    def _http(self):
        return self._session if self._session is not None else requests

    def _make_request(self, path: str, method: str, fields: Optional[Mapping[str, Any]] = None) -> str:
        return self.fetch(method, path, fields).body


def get_client(api_config: SmsGatewayConfig) -> SmsGatewayClient:
    """
    Build a client from a loaded configuration

    Args:
        api_config: SMS Gateway configuration

    Returns:
        SmsGatewayClient: client using the configured credentials
    """
    return SmsGatewayClient.from_config(api_config)


def send_sms(api_config: SmsGatewayConfig, message: str, to_number: str,
             device: Optional[int] = None) -> str:
    """
    Send an SMS message to one number using the configured default device

    Args:
        api_config: SMS Gateway configuration
        message: The message to send
        to_number: Recipient phone number
        device: Device id (defaults to the configured device)

    Returns:
        str: JSON response body, "" on failure
    """
    if device is None:
        device = api_config.device
    if device is None:
        raise ConfigError("No device given and no default device configured")
    with get_client(api_config) as client:
        return client.send_message_to_number(to_number, message, device)
