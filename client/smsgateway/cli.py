import argparse
import os
import sys
import json
from typing import Dict, List, Optional

from .gateway_api_caller import (
    BASE_URL, ConfigError, SmsGatewayClient, SmsGatewayConfig, default_config_dir, write_config,
)
from .logging_config import get_logger, setup_logging


def parse_options(options: Optional[List[str]]) -> Dict[str, str]:
    """Turn repeated KEY=VALUE arguments into a dict, keeping their order"""
    result = {}
    for option in options or []:
        key, sep, value = option.partition("=")
        if not sep or not key:
            raise ValueError(f"Invalid option '{option}', expected KEY=VALUE")
        result[key] = value
    return result


def _open_client(args: argparse.Namespace):
    config = SmsGatewayConfig(args.config)
    return config, SmsGatewayClient.from_config(config)


def _emit(body: str) -> int:
    if not body:
        print("Error: request failed (empty response from gateway)", file=sys.stderr)
        return 1
    print(body)
    return 0


def _run(args: argparse.Namespace, call) -> int:
    """Load config, run call(config, client) and print its response body"""
    try:
        config, client = _open_client(args)
        with client:
            return _emit(call(config, client))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_init(args: argparse.Namespace) -> int:
    """Create the config directory and write config.json"""
    config_dir = args.config_dir or default_config_dir()
    config_path = os.path.join(config_dir, "config.json")

    if os.path.exists(config_path) and not args.force:
        print(f"Config already exists: {config_path}")
        print("Use --force to overwrite existing files")
        return 1

    try:
        os.makedirs(config_dir, exist_ok=True)
    except OSError as e:
        print(f"Failed to create config directory: {e}", file=sys.stderr)
        return 1

    config_data = {
        "email": args.email,
        "password": args.password,
        "base_url": args.base_url,
        "device": args.device,
    }
    config_data = {k: v for k, v in config_data.items() if v is not None}

    try:
        write_config(config_path, config_data)
    except OSError as e:
        print(f"Failed to create config file: {e}", file=sys.stderr)
        return 1

    print(f"Created config file: {config_path}")
    return 0


def cmd_contacts(args: argparse.Namespace) -> int:
    return _run(args, lambda config, client: client.get_contacts(args.page))


def cmd_contact(args: argparse.Namespace) -> int:
    return _run(args, lambda config, client: client.get_contact(args.id))


def cmd_create_contact(args: argparse.Namespace) -> int:
    return _run(args, lambda config, client: client.create_contact(args.name, args.number))


def cmd_devices(args: argparse.Namespace) -> int:
    return _run(args, lambda config, client: client.get_devices(args.page))


def cmd_device(args: argparse.Namespace) -> int:
    return _run(args, lambda config, client: client.get_device(args.id))


def cmd_messages(args: argparse.Namespace) -> int:
    return _run(args, lambda config, client: client.get_messages(args.page))


def cmd_message(args: argparse.Namespace) -> int:
    return _run(args, lambda config, client: client.get_message(args.id))


def cmd_send(args: argparse.Namespace) -> int:
    """Send one message to numbers or saved contacts"""
    if bool(args.to) == bool(args.contact):
        print("Error: give either --to or --contact", file=sys.stderr)
        return 1

    def send(config: SmsGatewayConfig, client: SmsGatewayClient) -> str:
        device = args.device if args.device is not None else config.device
        if device is None:
            raise ConfigError("No device given and no default device configured")
        extra = parse_options(args.option)

        if args.to:
            if len(args.to) == 1:
                return client.send_message_to_number(args.to[0], args.message, device, extra)
            return client.send_message_to_many_numbers(args.to, args.message, device, extra)
        if len(args.contact) == 1:
            return client.send_message_to_contact(args.contact[0], args.message, device, extra)
        return client.send_message_to_many_contacts(args.contact, args.message, device, extra)

    return _run(args, send)


def cmd_send_many(args: argparse.Namespace) -> int:
    """Send a batch of messages described in a JSON file"""
    try:
        with open(args.file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        print(f"Error: cannot read {args.file}: {e}", file=sys.stderr)
        return 1

    if not isinstance(data, list):
        print("Error: batch file must contain a JSON list of messages", file=sys.stderr)
        return 1

    return _run(args, lambda config, client: client.send_many_messages(data))


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="smsgateway", description="SMS Gateway API client")
    sub = p.add_subparsers(dest="cmd", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default=None, help="Config file path (default: auto-detect from config directory)")
    common.add_argument("--verbose", "-v", action="store_true", help="Log requests to stderr (default: False)")

    p_init = sub.add_parser("init", help="Write the client config file", description="Create the configuration directory and store the account credentials in config.json.")
    p_init.add_argument("--email", required=True, help="Account email")
    p_init.add_argument("--password", required=True, help="Account password")
    p_init.add_argument("--config-dir", help="Config directory (default: XDG_CONFIG_HOME/smsgateway or ~/.config/smsgateway)")
    p_init.add_argument("--device", type=int, default=None, help="Default device id used for sending")
    p_init.add_argument("--base-url", default=None, help=f"API base URL (default: {BASE_URL})")
    p_init.add_argument("--force", action="store_true", help="Overwrite existing files")
    p_init.add_argument("--verbose", "-v", action="store_true", help=argparse.SUPPRESS)
    p_init.set_defaults(func=cmd_init)

    p_contacts = sub.add_parser("contacts", parents=[common], help="List contacts")
    p_contacts.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    p_contacts.set_defaults(func=cmd_contacts)

    p_contact = sub.add_parser("contact", parents=[common], help="Show one contact")
    p_contact.add_argument("id", type=int, help="Contact id")
    p_contact.set_defaults(func=cmd_contact)

    p_create = sub.add_parser("create-contact", parents=[common], help="Add a contact")
    p_create.add_argument("name", help="Contact name")
    p_create.add_argument("number", help="Phone number")
    p_create.set_defaults(func=cmd_create_contact)

    p_devices = sub.add_parser("devices", parents=[common], help="List devices")
    p_devices.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    p_devices.set_defaults(func=cmd_devices)

    p_device = sub.add_parser("device", parents=[common], help="Show one device")
    p_device.add_argument("id", type=int, help="Device id")
    p_device.set_defaults(func=cmd_device)

    p_messages = sub.add_parser("messages", parents=[common], help="List messages")
    p_messages.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    p_messages.set_defaults(func=cmd_messages)

    p_message = sub.add_parser("message", parents=[common], help="Show one message")
    p_message.add_argument("id", type=int, help="Message id")
    p_message.set_defaults(func=cmd_message)

    p_send = sub.add_parser("send", parents=[common], help="Send a message", description="Send a message to one or more phone numbers or saved contacts.")
    p_send.add_argument("message", help="Message to send")
    p_send.add_argument("--to", action="append", help="Recipient phone number (repeatable)")
    p_send.add_argument("--contact", action="append", type=int, help="Recipient contact id (repeatable)")
    p_send.add_argument("--device", type=int, default=None, help="Device id (overrides config)")
    p_send.add_argument("--option", action="append", metavar="KEY=VALUE", help="Extra API option, e.g. send_at=1500000000 (repeatable)")
    p_send.set_defaults(func=cmd_send)

    p_many = sub.add_parser("send-many", parents=[common], help="Send a batch of messages", description="Send every message listed in a JSON file, e.g. [{\"device\": \"1\", \"number\": \"555\", \"message\": \"hi\"}].")
    p_many.add_argument("file", help="JSON file with a list of messages")
    p_many.set_defaults(func=cmd_send_many)

    return p


def main(argv=None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging("DEBUG" if args.verbose else "WARNING")
    get_logger(__name__).debug(f"Running command: {args.cmd}")
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
