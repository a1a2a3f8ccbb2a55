import os
import unittest
import unittest.mock

from . import config_lib


class TestConfigLib(unittest.TestCase):
    def test_code_value_wins(self) -> None:
        with unittest.mock.patch.dict(
            os.environ,
            {config_lib.EnvKey.SIGNALING_SERVER.value: "env.example.com"},
        ):
            assert config_lib.get_signaling_server("code.example.com") == (
                "code.example.com"
            )

    def test_env_fallback(self) -> None:
        with unittest.mock.patch.dict(
            os.environ,
            {
                config_lib.EnvKey.SIGNALING_SERVER.value: "env.example.com",
                config_lib.EnvKey.SIGNALING_URL.value: "wss://env.example.com:8443/x",
            },
        ):
            assert config_lib.get_signaling_server(None) == "env.example.com"
            assert (
                config_lib.get_signaling_url(None)
                == "wss://env.example.com:8443/x"
            )

    def test_missing_server(self) -> None:
        with unittest.mock.patch.dict(os.environ, {}, clear=True):
            assert isinstance(config_lib.get_signaling_server(None), Exception)
            assert config_lib.get_signaling_url(None) is None

    def test_verify_tls(self) -> None:
        key = config_lib.EnvKey.VERIFY_TLS.value
        with unittest.mock.patch.dict(os.environ, {}, clear=True):
            assert config_lib.get_verify_tls(None) is False
            assert config_lib.get_verify_tls(True) is True

        for value, expected in [
            ("true", True),
            ("1", True),
            ("FALSE", False),
            ("0", False),
            ("nope", False),
        ]:
            with unittest.mock.patch.dict(os.environ, {key: value}):
                assert config_lib.get_verify_tls(None) is expected, value

    def test_open_timeout(self) -> None:
        key = config_lib.EnvKey.OPEN_TIMEOUT.value
        with unittest.mock.patch.dict(os.environ, {key: "2.5"}):
            assert config_lib.get_open_timeout(None, 10) == 2.5
            assert config_lib.get_open_timeout(1, 10) == 1
        with unittest.mock.patch.dict(os.environ, {key: "abc"}):
            assert config_lib.get_open_timeout(None, 10) == 10
