"""
Build the JSON document the trojan-go engine runs with.
"""

import json
import logging
from typing import Any, Dict, Optional, Union

from .errors import MalformedConfigError, PluginResolutionError
from .models import EndpointRecord, ShadowsocksLayer, Websocket
from .plugin import PluginConfiguration, PluginResolver, StaticPluginResolver
from .settings import RuntimeSettings
from .utils import LOCALHOST, is_ip_address

logger = logging.getLogger(__name__)


def effective_sni(record: EndpointRecord) -> str:
    """SNI to present, recovering the hostname when tunnelled through loopback.

    A local plugin relay makes the engine dial 127.0.0.1, so the original
    server hostname is the only name the certificate can be checked against.
    """
    if (
        not record.sni
        and record.resolved_address == LOCALHOST
        and not is_ip_address(record.server_address)
    ):
        return record.server_address
    return record.sni


def _transport_plugin(plugin: str, resolver: PluginResolver) -> Optional[Dict[str, Any]]:
    configuration = PluginConfiguration.parse(plugin)
    try:
        resolved = resolver.resolve(configuration)
    except PluginResolutionError as e:
        logger.warning("plugin %s could not be resolved: %s", configuration.selected, e)
        return None
    if resolved is None:
        logger.warning("plugin %s not found, building without transport plugin", configuration.selected)
        return None
    return {
        "enabled": True,
        "type": "shadowsocks",
        "command": resolved.path,
        "option": resolved.options.to_string(),
    }


def build_config(
    record: EndpointRecord,
    settings: RuntimeSettings,
    resolver: Optional[PluginResolver] = None,
) -> Dict[str, Any]:
    conf: Dict[str, Any] = {
        "run_type": "client",
        "local_addr": LOCALHOST,
        "local_port": settings.local_port,
        "remote_addr": record.resolved_address,
        "remote_port": record.resolved_port,
        "password": [record.password],
        "log_level": 0 if settings.verbose_logging else 2,
    }
    if settings.enable_multiplexing:
        conf["mux"] = {
            "enabled": True,
            "concurrency": settings.multiplex_concurrency,
        }
    conf["tcp"] = {"prefer_ipv4": settings.prefer_ipv4}

    if isinstance(record.transport, Websocket):
        conf["websocket"] = {
            "enabled": True,
            "host": record.transport.host,
            "path": record.transport.path,
        }

    ssl: Dict[str, Any] = {}
    sni = effective_sni(record)
    if sni:
        ssl["sni"] = sni
    if record.allow_insecure:
        ssl["verify"] = False
    if record.fingerprint:
        ssl["fingerprint"] = record.fingerprint
    conf["ssl"] = ssl

    if isinstance(record.encryption, ShadowsocksLayer):
        conf["shadowsocks"] = {
            "enabled": True,
            "method": record.encryption.method,
            "password": record.encryption.key,
        }

    if record.plugin:
        block = _transport_plugin(record.plugin, resolver or StaticPluginResolver({}))
        if block is not None:
            conf["transport_plugin"] = block

    logger.debug(
        "trojan-go config built: remote=%s:%s, type=%s, local_port=%s",
        conf["remote_addr"],
        conf["remote_port"],
        record.type,
        settings.local_port,
    )
    return conf


def build_config_json(
    record: EndpointRecord,
    settings: RuntimeSettings,
    resolver: Optional[PluginResolver] = None,
) -> str:
    return json.dumps(build_config(record, settings, resolver), indent=4, ensure_ascii=False)


def build_custom_config(config: Union[str, Dict[str, Any]], local_port: int) -> str:
    """Re-home a user-supplied engine config onto another local port."""
    if isinstance(config, str):
        try:
            conf = json.loads(config)
        except json.JSONDecodeError as e:
            raise MalformedConfigError(f"Invalid trojan-go config JSON: {e}") from e
    else:
        conf = config
    if not isinstance(conf, dict):
        raise MalformedConfigError("trojan-go config must be a JSON object")
    conf = dict(conf)
    conf["local_port"] = local_port
    return json.dumps(conf, indent=4, ensure_ascii=False)
