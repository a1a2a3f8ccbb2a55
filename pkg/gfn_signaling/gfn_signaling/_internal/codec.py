"""
Encoding and decoding of signaling frames.

There are two layers: the envelope (relay framing, see ``models.Envelope``)
and the negotiation payload carried as a JSON string inside ``peer_msg.msg``.
The codec never interprets the payload beyond telling offers and ICE
candidates apart.
"""

from __future__ import annotations

import dataclasses
import json
import typing

from . import consts, types
from .models import Envelope, IceCandidate, PeerInfo, PeerMsg, SessionIdentity


class AckCounter:
    """
    Source of acknowledgment-request IDs. Starts at 1 and only ever goes up.
    """

    def __init__(self) -> None:
        self._value = 0

    @property
    def value(self) -> int:
        """
        Last issued ID (0 if none was issued yet).
        """

        return self._value

    def next(self) -> int:
        self._value += 1
        return self._value


@dataclasses.dataclass(frozen=True)
class OfferPayload:
    sdp: str


@dataclasses.dataclass(frozen=True)
class UnknownPayload:
    keys: list[str]


PeerPayload = typing.Union[OfferPayload, IceCandidate, UnknownPayload]


def decode_envelope(raw: typing.Union[str, bytes]) -> types.MaybeError[Envelope]:
    """
    Only text that isn't JSON is an error. Valid JSON that isn't an object
    decodes to an empty envelope, which every handler ignores.
    """

    try:
        parsed = json.loads(raw)
    except ValueError as err:
        return err

    if not types.is_dict(parsed):
        return Envelope()

    return Envelope.from_raw(parsed)


def decode_peer_payload(msg: str) -> types.MaybeError[PeerPayload]:
    try:
        parsed = json.loads(msg)
    except ValueError as err:
        return err

    if not types.is_dict(parsed):
        return UnknownPayload(keys=[])

    sdp = parsed.get("sdp")
    if parsed.get("type") == "offer" and isinstance(sdp, str):
        return OfferPayload(sdp=sdp)

    candidate = parsed.get("candidate")
    if isinstance(candidate, str):
        sdp_mid = parsed.get("sdpMid", types.empty_sentinel)
        if not (sdp_mid is None or isinstance(sdp_mid, str)):
            sdp_mid = types.empty_sentinel

        sdp_mline_index = parsed.get("sdpMLineIndex", types.empty_sentinel)
        if not (sdp_mline_index is None or _is_number(sdp_mline_index)):
            sdp_mline_index = types.empty_sentinel

        return IceCandidate(
            candidate=candidate,
            sdp_mid=typing.cast(
                typing.Union[str, None, types.EmptySentinel], sdp_mid
            ),
            sdp_mline_index=typing.cast(
                typing.Union[int, float, None, types.EmptySentinel],
                sdp_mline_index,
            ),
        )

    return UnknownPayload(keys=[str(k) for k in parsed.keys()])


def heartbeat() -> Envelope:
    return Envelope(hb=1)


def ack(ackid: int) -> Envelope:
    return Envelope(ack=ackid)


def peer_info(identity: SessionIdentity, ackid: int) -> Envelope:
    return Envelope(ackid=ackid, peer_info=PeerInfo.announce(identity))


def answer(
    identity: SessionIdentity,
    ackid: int,
    *,
    sdp: str,
    nvst_sdp: typing.Optional[str] = None,
) -> Envelope:
    payload: dict[str, object] = {"type": "answer", "sdp": sdp}
    if nvst_sdp:
        payload["nvstSdp"] = nvst_sdp
    return _relay(identity, ackid, payload)


def ice_candidate(
    identity: SessionIdentity,
    ackid: int,
    candidate: IceCandidate,
) -> Envelope:
    return _relay(identity, ackid, candidate.to_payload())


def _relay(
    identity: SessionIdentity,
    ackid: int,
    payload: dict[str, object],
) -> Envelope:
    return Envelope(
        ackid=ackid,
        peer_msg=PeerMsg(
            from_=identity.peer_id,
            to=consts.REMOTE_PEER_ID,
            msg=json.dumps(payload, separators=(",", ":")),
        ),
    )


def _is_number(value: object) -> bool:
    # bool is an int subclass but JSON true/false are not numbers.
    return isinstance(value, (int, float)) and not isinstance(value, bool)
