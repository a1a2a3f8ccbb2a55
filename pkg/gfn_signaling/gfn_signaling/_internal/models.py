from __future__ import annotations

import dataclasses
import enum
import random
import typing

import pydantic

from . import consts, types


class ConnectionState(enum.Enum):
    """
    State of the connection to the signaling server.
    """

    CONNECTED = "CONNECTED"
    CONNECTING = "CONNECTING"

    # Initial state, and the state after the caller disconnects.
    DISCONNECTED = "DISCONNECTED"

    # Disconnected with a retry scheduled.
    RECONNECTING = "RECONNECTING"


@dataclasses.dataclass(frozen=True)
class SessionIdentity:
    """
    Fixed for the lifetime of a client.
    """

    peer_id: int
    peer_name: str
    session_id: str

    @classmethod
    def create(
        cls,
        session_id: str,
        *,
        rng: typing.Optional[random.Random] = None,
    ) -> SessionIdentity:
        rng = rng or random.Random()
        return cls(
            peer_id=consts.LOCAL_PEER_ID,
            peer_name=f"peer-{rng.randrange(consts.PEER_NAME_SPACE)}",
            session_id=session_id,
        )

    @property
    def subprotocol(self) -> str:
        return f"{consts.SUBPROTOCOL_PREFIX}{self.session_id}"


@dataclasses.dataclass(frozen=True)
class IceCandidate:
    candidate: str

    # empty_sentinel means the field is absent on the wire. None means null.
    sdp_mid: typing.Union[str, None, types.EmptySentinel] = types.empty_sentinel
    sdp_mline_index: typing.Union[int, float, None, types.EmptySentinel] = (
        types.empty_sentinel
    )

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {"candidate": self.candidate}
        if not isinstance(self.sdp_mid, types.EmptySentinel):
            payload["sdpMid"] = self.sdp_mid
        if not isinstance(self.sdp_mline_index, types.EmptySentinel):
            payload["sdpMLineIndex"] = self.sdp_mline_index
        return payload


def _none_if_invalid(
    value: object,
    handler: pydantic.ValidatorFunctionWrapHandler,
) -> object:
    # A field with an unusable value is treated as absent rather than failing
    # the whole frame.
    try:
        return handler(value)
    except pydantic.ValidationError:
        return None


_LaxInt = typing.Annotated[
    typing.Optional[int], pydantic.WrapValidator(_none_if_invalid)
]
_LaxStr = typing.Annotated[
    typing.Optional[str], pydantic.WrapValidator(_none_if_invalid)
]


class PeerInfo(types.BaseModel):
    """
    Presence announcement. Only the peer ID is interpreted. Everything else
    (name, browser, capabilities) is metadata that's kept as-is, whatever its
    type.
    """

    model_config = pydantic.ConfigDict(extra="allow", strict=False)

    id: _LaxInt = None

    @classmethod
    def announce(cls, identity: SessionIdentity) -> PeerInfo:
        return cls.model_validate(
            {
                "browser": consts.BROWSER,
                "browserVersion": consts.BROWSER_VERSION,
                "connected": True,
                "id": identity.peer_id,
                "name": identity.peer_name,
                "peerRole": consts.PEER_ROLE,
                "resolution": consts.RESOLUTION,
                "version": consts.PROTOCOL_VERSION,
            }
        )


class PeerMsg(types.BaseModel):
    model_config = pydantic.ConfigDict(strict=False)

    from_: _LaxInt = pydantic.Field(default=None, alias="from")
    to: _LaxInt = None

    # JSON-encoded negotiation payload
    msg: _LaxStr = None


class Envelope(types.BaseModel):
    """
    Outer frame exchanged with the signaling server.

    Decoding is lenient: a field that's missing or has an unexpected type is
    None, and the rest of the frame is still handled.
    """

    model_config = pydantic.ConfigDict(strict=False)

    ackid: _LaxInt = None
    ack: _LaxInt = None

    # Any truthy value marks a heartbeat.
    hb: typing.Any = None

    peer_info: typing.Annotated[
        typing.Optional[PeerInfo], pydantic.WrapValidator(_none_if_invalid)
    ] = None
    peer_msg: typing.Annotated[
        typing.Optional[PeerMsg], pydantic.WrapValidator(_none_if_invalid)
    ] = None
