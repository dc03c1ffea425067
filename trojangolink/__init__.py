from .builder import build_config, build_config_json, build_custom_config
from .config_parser import parse_config
from .errors import MalformedConfigError, MalformedURIError, PluginResolutionError, TrojanGoLinkError
from .models import EndpointRecord, NoEncryption, Original, ShadowsocksLayer, Websocket
from .parser import parse_file, parse_link, to_uri
from .settings import RuntimeSettings
