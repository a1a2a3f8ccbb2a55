from __future__ import annotations

import enum
import os

from . import errors, types


class EnvKey(enum.Enum):
    OPEN_TIMEOUT = "GFN_SIGNALING_OPEN_TIMEOUT"
    SIGNALING_SERVER = "GFN_SIGNALING_SERVER"

    # Previously observed signaling URL. Takes precedence over the server
    # when resolving the endpoint.
    SIGNALING_URL = "GFN_SIGNALING_URL"

    # Boolean string ("true", "1", "false", "0")
    VERIFY_TLS = "GFN_SIGNALING_VERIFY_TLS"


def get_signaling_server(code_value: str | None) -> types.MaybeError[str]:
    if code_value:
        return code_value

    env_var_value = os.getenv(EnvKey.SIGNALING_SERVER.value)
    if env_var_value:
        return env_var_value

    return errors.SignalingError(
        f"signaling server is required (pass it or set {EnvKey.SIGNALING_SERVER.value})"
    )


def get_signaling_url(code_value: str | None) -> str | None:
    if code_value is not None:
        return code_value

    env_var_value = os.getenv(EnvKey.SIGNALING_URL.value)
    if env_var_value:
        return env_var_value

    return None


def get_verify_tls(code_value: bool | None) -> bool:
    if code_value is not None:
        return code_value

    return _parse_bool(os.getenv(EnvKey.VERIFY_TLS.value)) or False


def get_open_timeout(code_value: float | None, default: float) -> float:
    if code_value is not None:
        return code_value

    env_var_value = os.getenv(EnvKey.OPEN_TIMEOUT.value)
    if env_var_value:
        try:
            return float(env_var_value)
        except ValueError:
            return default

    return default


def _parse_bool(value: str | None) -> bool | None:
    if value is None:
        return None

    value = value.strip().lower()
    if value in ("true", "1"):
        return True
    if value in ("false", "0"):
        return False
    return None
