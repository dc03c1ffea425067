from dataclasses import dataclass, field
from typing import Union

from .utils import is_valid_port


@dataclass(frozen=True)
class Original:
    tag = "original"


@dataclass(frozen=True)
class Websocket:
    host: str = ""
    path: str = ""
    tag = "ws"


Transport = Union[Original, Websocket]


def transport_from_type(type_: str, host: str = "", path: str = "") -> Transport:
    if type_ == "ws":
        return Websocket(host=host, path=path)
    # trojan-go knows no other sub-mode, anything else runs as plain TLS
    return Original()


@dataclass(frozen=True)
class NoEncryption:
    def to_wire(self) -> str:
        return "none"


@dataclass(frozen=True)
class ShadowsocksLayer:
    method: str
    key: str

    def __post_init__(self):
        if not self.method or not self.key:
            raise ValueError("shadowsocks layer needs both a method and a key")

    def to_wire(self) -> str:
        return f"ss;{self.method}:{self.key}"


Encryption = Union[NoEncryption, ShadowsocksLayer]


def parse_encryption(text: str) -> Encryption:
    """Parse the `none` / `ss;<method>:<key>` wire form."""
    if not text or text == "none":
        return NoEncryption()
    if text.startswith("ss;"):
        rest = text[len("ss;"):]
        method, sep, key = rest.partition(":")
        if not sep:
            raise ValueError(f"Invalid encryption (missing ':'): {text!r}")
        return ShadowsocksLayer(method=method, key=key)
    raise ValueError(f"Unsupported encryption: {text!r}")


@dataclass
class EndpointRecord:
    server_address: str
    server_port: int
    password: str
    sni: str = ""
    transport: Transport = field(default_factory=Original)
    encryption: Encryption = field(default_factory=NoEncryption)
    plugin: str = ""
    allow_insecure: bool = False
    fingerprint: str = ""
    name: str = ""
    # filled in by whoever resolves the connection target (e.g. a plugin relay)
    final_address: str = ""
    final_port: int = 0

    def __post_init__(self):
        if not is_valid_port(self.server_port):
            raise ValueError(f"Port out of range: {self.server_port!r}")

    @property
    def type(self) -> str:
        return self.transport.tag

    @property
    def resolved_address(self) -> str:
        return self.final_address or self.server_address

    @property
    def resolved_port(self) -> int:
        return self.final_port or self.server_port

    def to_dict(self) -> dict:
        """Flatten for display; secrets are left out."""
        if isinstance(self.encryption, ShadowsocksLayer):
            encryption = f"ss;{self.encryption.method}"
        else:
            encryption = "none"
        data = {
            "name": self.name,
            "server_address": self.server_address,
            "server_port": self.server_port,
            "sni": self.sni,
            "type": self.type,
            "encryption": encryption,
            "plugin": self.plugin,
            "allow_insecure": self.allow_insecure,
            "fingerprint": self.fingerprint,
        }
        if isinstance(self.transport, Websocket):
            data["host"] = self.transport.host
            data["path"] = self.transport.path
        return data

    def __str__(self):
        return f"[TROJAN-GO] {self.name} ({self.server_address}:{self.server_port})"
