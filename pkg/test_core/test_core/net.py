import socket
import typing

HOST: typing.Final = "127.0.0.1"


def get_available_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((HOST, 0))
        return typing.cast(int, s.getsockname()[1])
