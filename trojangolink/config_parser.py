"""
Read an existing trojan-go engine config back into an EndpointRecord.
"""

import json
import logging
from typing import Any, Dict, Union

from .errors import MalformedConfigError
from .models import EndpointRecord, ShadowsocksLayer, Websocket
from .plugin import plugin_from_transport
from .utils import is_valid_port

logger = logging.getLogger(__name__)


def _load(document: Union[str, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(document, str):
        try:
            document = json.loads(document)
        except json.JSONDecodeError as e:
            raise MalformedConfigError(f"Invalid trojan-go config JSON: {e}") from e
    if not isinstance(document, dict):
        raise MalformedConfigError("trojan-go config must be a JSON object")
    return document


def _section(conf: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = conf.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedConfigError(f"'{key}' must be an object, got {type(value).__name__}")
    return value


def _password(conf: Dict[str, Any]) -> str:
    password = conf.get("password")
    if isinstance(password, list):
        if not password:
            raise MalformedConfigError("'password' list is empty")
        password = password[0]
    if not isinstance(password, str) or not password:
        raise MalformedConfigError("'password' must be a non-empty string or list of strings")
    return password


def _check_transport_plugin(section: Dict[str, Any]):
    command = section.get("command")
    if command is not None and not isinstance(command, str):
        raise MalformedConfigError(f"'transport_plugin.command' must be a string, got {type(command).__name__}")
    args = section.get("arg")
    if args is not None:
        if not isinstance(args, list) or any(isinstance(a, (dict, list)) or a is None for a in args):
            raise MalformedConfigError("'transport_plugin.arg' must be a list of plain values")
    option = section.get("option")
    if option is not None and not isinstance(option, str):
        raise MalformedConfigError(f"'transport_plugin.option' must be a string, got {type(option).__name__}")


def parse_config(document: Union[str, Dict[str, Any]]) -> EndpointRecord:
    conf = _load(document)

    address = conf.get("remote_addr")
    if not isinstance(address, str) or not address:
        raise MalformedConfigError("'remote_addr' is missing")
    port = conf.get("remote_port")
    if not is_valid_port(port):
        raise MalformedConfigError(f"'remote_port' is missing or out of range: {port!r}")

    record = EndpointRecord(server_address=address, server_port=port, password=_password(conf))

    ssl = _section(conf, "ssl")
    record.sni = ssl.get("sni", record.sni)
    record.allow_insecure = not ssl.get("verify", True)
    record.fingerprint = ssl.get("fingerprint", record.fingerprint)

    websocket = _section(conf, "websocket")
    if websocket.get("enabled", False):
        record.transport = Websocket(host=websocket.get("host", ""), path=websocket.get("path", ""))

    shadowsocks = _section(conf, "shadowsocks")
    if shadowsocks.get("enabled", False):
        try:
            record.encryption = ShadowsocksLayer(
                method=shadowsocks.get("method", ""),
                key=shadowsocks.get("password", ""),
            )
        except ValueError as e:
            raise MalformedConfigError(f"'shadowsocks': {e}") from e

    transport_plugin = _section(conf, "transport_plugin")
    if transport_plugin:
        _check_transport_plugin(transport_plugin)
        record.plugin = plugin_from_transport(transport_plugin)
        if transport_plugin.get("enabled", False) and not record.plugin:
            logger.info("ignoring transport_plugin of type %r", transport_plugin.get("type"))

    return record
