import ipaddress
import urllib.parse

LOCALHOST = "127.0.0.1"
DEFAULT_PORT = 443


def is_ip_address(value: str) -> bool:
    """True if value is an IPv4 or IPv6 literal (brackets allowed)."""
    if not value:
        return False
    if value.startswith("[") and value.endswith("]"):
        value = value[1:-1]
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def is_valid_port(port) -> bool:
    return isinstance(port, int) and not isinstance(port, bool) and 1 <= port <= 65535


def url_safe(value: str) -> str:
    # %20 for spaces, nothing left unescaped
    return urllib.parse.quote(value, safe="")


def format_host(host: str) -> str:
    """Bracket IPv6 literals for use in a URI authority."""
    if ":" in host and not host.startswith("["):
        return f"[{host}]"
    return host
