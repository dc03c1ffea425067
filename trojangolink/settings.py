"""
Runtime settings injected into the engine config builder.

Values come from the environment (and a ``.env`` file via python-dotenv);
the CLI overrides them with explicit flags.
"""

import os
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from dotenv import find_dotenv, load_dotenv


class IPv6Mode(IntEnum):
    DISABLE = 0
    ENABLE = 1
    PREFER = 2
    ONLY = 3


def prefer_ipv4_for(mode: IPv6Mode) -> bool:
    return mode <= IPv6Mode.ENABLE


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name}: expected a boolean, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name}: expected an integer, got {raw!r}") from None


@dataclass
class RuntimeSettings:
    local_port: int = 1080
    enable_multiplexing: bool = False
    multiplex_concurrency: int = 8
    verbose_logging: bool = False
    prefer_ipv4: bool = True

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "RuntimeSettings":
        load_dotenv(env_file or find_dotenv(usecwd=True))

        prefer_ipv4 = cls.prefer_ipv4
        mode = os.getenv("TROJANGO_IPV6_MODE")
        if mode:
            try:
                prefer_ipv4 = prefer_ipv4_for(IPv6Mode[mode.strip().upper()])
            except KeyError:
                raise ValueError(
                    f"TROJANGO_IPV6_MODE: expected one of {[m.name.lower() for m in IPv6Mode]}, got {mode!r}"
                ) from None
        prefer_ipv4 = _env_bool("TROJANGO_PREFER_IPV4", prefer_ipv4)

        return cls(
            local_port=_env_int("TROJANGO_LOCAL_PORT", cls.local_port),
            enable_multiplexing=_env_bool("TROJANGO_MUX", cls.enable_multiplexing),
            multiplex_concurrency=_env_int("TROJANGO_MUX_CONCURRENCY", cls.multiplex_concurrency),
            verbose_logging=_env_bool("TROJANGO_VERBOSE", cls.verbose_logging),
            prefer_ipv4=prefer_ipv4,
        )
