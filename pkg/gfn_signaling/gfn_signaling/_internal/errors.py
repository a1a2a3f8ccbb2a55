class SignalingError(Exception):
    pass


class ConnectError(SignalingError):
    """
    A connection attempt failed before the socket was open. The transport
    exception, if any, is chained as ``__cause__``.
    """

    pass

