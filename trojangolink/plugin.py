"""
Shadowsocks-style transport plugin options.

A plugin token looks like ``v2ray-plugin;mode=websocket;host=cdn.example.com``:
the plugin id followed by ``key=value`` pairs separated by ``;``, with ``\\``
escaping any of ``\\ = ;``. Several plugins can share one token, one per line;
the first line is the selected one.
"""

import logging
import os
import shutil
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, NamedTuple, Optional, Protocol

from .errors import PluginResolutionError

logger = logging.getLogger(__name__)

_SPECIAL = "\\=;"


def _escape(value: str) -> str:
    return "".join("\\" + ch if ch in _SPECIAL else ch for ch in value)


@dataclass
class PluginOptions:
    id: str = ""
    options: Dict[str, Optional[str]] = field(default_factory=dict)

    @classmethod
    def parse(cls, text: Optional[str], parse_id: bool = True) -> "PluginOptions":
        result = cls()
        if not text:
            return result

        current = []
        key = None
        chars = iter(text + ";")
        for ch in chars:
            if ch == "\\":
                nxt = next(chars, None)
                if nxt is not None:
                    current.append(nxt)
            elif ch == "=":
                if key is None:
                    key = "".join(current)
                    current = []
                else:
                    current.append(ch)
            elif ch == ";":
                if key is not None:
                    result.options[key] = "".join(current)
                    key = None
                elif current:
                    if parse_id:
                        result.id = "".join(current)
                    else:
                        result.options["".join(current)] = None
                current = []
                parse_id = False
            else:
                current.append(ch)
        return result

    @classmethod
    def from_args(cls, tokens: Iterable, id: str = "") -> "PluginOptions":
        """Rebuild options from an engine ``arg`` list.

        Tokens at odd indexes are keys and the following even index holds
        the value; index 0 therefore lands under the empty key. Existing
        engine configs depend on this pairing.
        """
        result = cls(id=id)
        key = ""
        for index, token in enumerate(tokens):
            if index % 2 != 0:
                key = str(token)
            else:
                result.options[key] = str(token)
        return result

    def to_args(self) -> List[str]:
        args = []
        for key, value in self.options.items():
            args.append(key)
            args.append("" if value is None else value)
        return args

    def to_string(self, trim_id: bool = True) -> str:
        parts = []
        if not trim_id:
            if not self.id:
                return ""
            parts.append(_escape(self.id))
        for key, value in self.options.items():
            if value is None:
                parts.append(_escape(key))
            else:
                parts.append(f"{_escape(key)}={_escape(value)}")
        return ";".join(parts)

    def __str__(self):
        return self.to_string(trim_id=True)


@dataclass
class PluginConfiguration:
    plugins_options: Dict[str, PluginOptions] = field(default_factory=dict)
    selected: str = ""

    @classmethod
    def parse(cls, token: Optional[str]) -> "PluginConfiguration":
        plugins = [PluginOptions.parse(line) for line in (token or "").split("\n")]
        plugins = [p for p in plugins if p.id]
        return cls(
            plugins_options={p.id: p for p in plugins},
            selected=plugins[0].id if plugins else "",
        )

    def get_options(self, id: Optional[str] = None) -> PluginOptions:
        id = self.selected if id is None else id
        if not id:
            return PluginOptions()
        return self.plugins_options.get(id) or PluginOptions(id=id)

    def fix_invalid_params(self):
        """Map engine command names (``libv2ray.so``, ``obfs``) to plugin ids."""
        for marker, canonical in (("v2ray", "v2ray-plugin"), ("obfs", "obfs-local")):
            if marker in self.selected and self.selected != canonical:
                opts = self.get_options()
                opts.id = canonical
                self.plugins_options.pop(self.selected, None)
                self.plugins_options[canonical] = opts
                self.selected = canonical

    def __str__(self):
        ordered = []
        for id, opts in self.plugins_options.items():
            if id == self.selected:
                ordered.insert(0, opts)
            else:
                ordered.append(opts)
        if self.selected not in self.plugins_options:
            ordered.insert(0, self.get_options())
        return "\n".join(filter(None, (opts.to_string(trim_id=False) for opts in ordered)))


def plugin_from_transport(obj: dict) -> str:
    """Decode an engine ``transport_plugin`` object into a plugin token.

    Returns an empty string when the block is disabled or not a
    shadowsocks-type plugin.
    """
    if not obj.get("enabled", False) or obj.get("type") != "shadowsocks":
        return ""
    command = obj.get("command") or ""
    if not command:
        return ""

    configuration = PluginConfiguration(selected=command)
    args = obj.get("arg")
    if isinstance(args, list):
        configuration.plugins_options[command] = PluginOptions.from_args(args, id=command)
    option = obj.get("option")
    if isinstance(option, str):
        configuration.plugins_options[command] = PluginOptions.parse(option, parse_id=False)
        configuration.plugins_options[command].id = command
    configuration.fix_invalid_params()
    return str(configuration)


class ResolvedPlugin(NamedTuple):
    path: str
    options: PluginOptions


class PluginResolver(Protocol):
    def resolve(self, configuration: PluginConfiguration) -> Optional[ResolvedPlugin]:
        ...


class StaticPluginResolver:
    """Resolve plugin ids from a fixed id -> binary path table."""

    def __init__(self, mapping: Dict[str, str]):
        self.mapping = dict(mapping)

    def resolve(self, configuration: PluginConfiguration) -> Optional[ResolvedPlugin]:
        if not configuration.selected:
            return None
        path = self.mapping.get(configuration.selected)
        if path is None:
            return None
        return ResolvedPlugin(path, configuration.get_options())


class PathPluginResolver:
    """Look the selected plugin up as an executable on a search path."""

    def __init__(self, search_path: Optional[str] = None):
        self.search_path = search_path

    def resolve(self, configuration: PluginConfiguration) -> Optional[ResolvedPlugin]:
        selected = configuration.selected
        if not selected:
            return None
        if os.sep in selected or (os.altsep and os.altsep in selected):
            raise PluginResolutionError(f"Plugin id must be a bare name: {selected!r}")
        path = shutil.which(selected, path=self.search_path)
        if path is None:
            logger.debug("plugin %s not found on %s", selected, self.search_path or "PATH")
            return None
        return ResolvedPlugin(path, configuration.get_options())
