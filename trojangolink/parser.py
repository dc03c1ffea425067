import logging
import urllib.parse
from typing import List

from .errors import MalformedURIError
from .models import EndpointRecord, Websocket, parse_encryption, transport_from_type
from .utils import DEFAULT_PORT, format_host, url_safe

logger = logging.getLogger(__name__)

SCHEME = "trojan-go"


class LinkParser:
    @staticmethod
    def parse_file(file_path: str) -> List[EndpointRecord]:
        records = []
        with open(file_path, 'r', encoding='utf-8') as f:
            for lineno, line in enumerate(f, 1):
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                try:
                    records.append(LinkParser.parse_link(line))
                except MalformedURIError as e:
                    logger.warning("%s:%d: skipping link: %s", file_path, lineno, e)
        return records

    @staticmethod
    def parse_link(link: str) -> EndpointRecord:
        # trojan-go://password@host:port?query#name
        try:
            parsed = urllib.parse.urlsplit(link.strip())
        except ValueError as e:
            raise MalformedURIError(f"Invalid trojan-go link: {e}") from e
        if parsed.scheme.lower() != SCHEME:
            raise MalformedURIError(f"Not a {SCHEME} link: scheme {parsed.scheme!r}")
        if not parsed.hostname:
            raise MalformedURIError("Invalid trojan-go link: missing host")
        try:
            port = parsed.port
        except ValueError as e:
            raise MalformedURIError(f"Invalid trojan-go link: {e}") from e
        if port is None:
            port = DEFAULT_PORT
        elif port == 0:
            raise MalformedURIError("Invalid trojan-go link: port 0 out of range")

        # the whole userinfo is the password, ':' included
        password = urllib.parse.unquote(parsed.netloc.rpartition("@")[0])
        if not password:
            raise MalformedURIError("Invalid trojan-go link: missing password")

        query = urllib.parse.parse_qs(parsed.query, keep_blank_values=True)

        def param(key):
            values = query.get(key)
            return values[0] if values else None

        type_ = param("type") or "original"
        if type_ == "ws":
            transport = transport_from_type(type_, host=param("host") or "", path=param("path") or "")
        else:
            transport = transport_from_type(type_)

        try:
            encryption = parse_encryption(param("encryption") or "none")
        except ValueError as e:
            raise MalformedURIError(f"Invalid trojan-go link: {e}") from e

        name = urllib.parse.unquote(parsed.fragment)
        if not name.strip():
            name = ""

        return EndpointRecord(
            server_address=LinkParser._host(parsed),
            server_port=port,
            password=password,
            sni=param("sni") or "",
            transport=transport,
            encryption=encryption,
            plugin=param("plugin") or "",
            name=name,
        )

    @staticmethod
    def _host(parsed: urllib.parse.SplitResult) -> str:
        # .hostname lowercases, keep the case the link was written with
        netloc = parsed.netloc.rpartition("@")[2]
        if netloc.startswith("["):
            return netloc[1:netloc.index("]")]
        return netloc.rsplit(":", 1)[0] if ":" in netloc else netloc

    @staticmethod
    def to_uri(record: EndpointRecord) -> str:
        query = []
        if record.sni:
            query.append(("sni", record.sni))
        if record.type and record.type != "original":
            query.append(("type", record.type))
            if isinstance(record.transport, Websocket):
                if record.transport.host:
                    query.append(("host", record.transport.host))
                if record.transport.path:
                    query.append(("path", record.transport.path))
        # gated on the transport type only, so "encryption=none" is written too
        if record.type and record.type != "none":
            query.append(("encryption", record.encryption.to_wire()))
        if record.plugin:
            query.append(("plugin", record.plugin))

        uri = f"{SCHEME}://{url_safe(record.password)}@{format_host(record.server_address)}:{record.server_port}"
        if query:
            uri += "?" + urllib.parse.urlencode(query, quote_via=urllib.parse.quote, safe="")
        if record.name:
            uri += "#" + url_safe(record.name)
        return uri


parse_file = LinkParser.parse_file
parse_link = LinkParser.parse_link
to_uri = LinkParser.to_uri
