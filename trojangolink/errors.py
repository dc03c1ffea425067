"""
Exceptions raised while transcoding trojan-go links and engine configs.
"""


class TrojanGoLinkError(ValueError):
    """Base exception for all transcoding errors."""
    pass


class MalformedURIError(TrojanGoLinkError):
    """Raised when a trojan-go:// link has a bad scheme, host or port."""
    pass


class MalformedConfigError(TrojanGoLinkError):
    """Raised when an engine JSON document lacks required structure."""
    pass


class PluginResolutionError(TrojanGoLinkError):
    """Raised when a transport plugin cannot be resolved to a binary.

    The config builder treats this as non-fatal and drops the plugin block.
    """
    pass
