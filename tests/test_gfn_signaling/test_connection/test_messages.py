import asyncio
import json

import test_core
from gfn_signaling import (
    ConnectedEvent,
    ConnectionState,
    IceCandidate,
    LogEvent,
    OfferEvent,
    RemoteIceEvent,
)

from .base import BaseTest, events_of

_OFFER_FRAME = '{"peer_msg":{"from":1,"to":2,"msg":"{\\"type\\":\\"offer\\",\\"sdp\\":\\"v=0...\\"}"}}'


class TestMessages(BaseTest):
    async def test_heartbeat_reflection(self) -> None:
        server = await self.create_server()
        client, events = self.create_server_client(server)
        await self.connect(client, server)
        await test_core.wait_for_len(lambda: server.received, 1)

        await server.send({"hb": 1})

        await test_core.wait_for_len(lambda: server.received, 2)
        assert server.received[1] == '{"hb":1}'
        assert events == [ConnectedEvent()]

        # Nothing else is sent in response.
        await asyncio.sleep(0.1)
        assert len(server.received) == 2

    async def test_offer(self) -> None:
        server = await self.create_server()
        client, events = self.create_server_client(server)
        await self.connect(client, server)

        await server.send(_OFFER_FRAME)

        await test_core.wait_for_len(lambda: events_of(events, OfferEvent), 1)
        assert events_of(events, OfferEvent) == [OfferEvent(sdp="v=0...")]

    async def test_remote_ice(self) -> None:
        server = await self.create_server()
        client, events = self.create_server_client(server)
        await self.connect(client, server)

        await server.send(
            {
                "peer_msg": {
                    "from": 1,
                    "to": 2,
                    "msg": json.dumps(
                        {
                            "candidate": "candidate:1 1 UDP...",
                            "sdpMid": "0",
                            "sdpMLineIndex": 0,
                        }
                    ),
                }
            }
        )

        await test_core.wait_for_len(
            lambda: events_of(events, RemoteIceEvent), 1
        )
        assert events_of(events, RemoteIceEvent) == [
            RemoteIceEvent(
                candidate=IceCandidate(
                    candidate="candidate:1 1 UDP...",
                    sdp_mid="0",
                    sdp_mline_index=0,
                )
            )
        ]

    async def test_acknowledges(self) -> None:
        server = await self.create_server()
        client, events = self.create_server_client(server)
        await self.connect(client, server)

        frame = json.loads(_OFFER_FRAME)
        frame["ackid"] = 5
        await server.send(frame)

        await test_core.wait_for_len(lambda: server.received_where("ack"), 1)
        assert server.received_where("ack") == [{"ack": 5}]
        await test_core.wait_for_len(lambda: events_of(events, OfferEvent), 1)

    async def test_server_metadata_does_not_drop_frame(self) -> None:
        server = await self.create_server()
        client, events = self.create_server_client(server)
        await self.connect(client, server)

        frame = json.loads(_OFFER_FRAME)
        frame["ackid"] = 7
        frame["peer_info"] = {"id": 1, "browserVersion": 131}
        del frame["peer_msg"]["to"]
        await server.send(frame)

        await test_core.wait_for_len(lambda: server.received_where("ack"), 1)
        assert server.received_where("ack") == [{"ack": 7}]
        await test_core.wait_for_len(lambda: events_of(events, OfferEvent), 1)
        assert events_of(events, OfferEvent) == [OfferEvent(sdp="v=0...")]
        assert events_of(events, LogEvent) == []

    async def test_boolean_heartbeat(self) -> None:
        server = await self.create_server()
        client, _ = self.create_server_client(server)
        await self.connect(client, server)

        await server.send('{"hb":true}')

        await test_core.wait_for_len(lambda: server.received, 2)
        assert server.received[1] == '{"hb":1}'

    async def test_does_not_ack_own_peer_info(self) -> None:
        server = await self.create_server()
        client, _ = self.create_server_client(server)
        await self.connect(client, server)

        # The server echoes our own presence back.
        await server.send({"ackid": 9, "peer_info": {"id": 2, "name": "me"}})
        await server.send({"ackid": 10, "peer_info": {"id": 1, "name": "server"}})

        await test_core.wait_for_len(lambda: server.received_where("ack"), 1)
        assert server.received_where("ack") == [{"ack": 10}]

    async def test_malformed_frame(self) -> None:
        server = await self.create_server()
        client, events = self.create_server_client(server)
        await self.connect(client, server)
        states_before = client.get_state()

        await server.send("this is not json")

        await test_core.wait_for_len(lambda: events_of(events, LogEvent), 1)
        assert events_of(events, LogEvent) == [
            LogEvent(message="Ignoring non-JSON signaling packet: this is not json")
        ]
        assert client.get_state() == states_before == ConnectionState.CONNECTED

        # Still processing frames.
        await server.send(_OFFER_FRAME)
        await test_core.wait_for_len(lambda: events_of(events, OfferEvent), 1)

    async def test_malformed_frame_preview_is_bounded(self) -> None:
        server = await self.create_server()
        client, events = self.create_server_client(server)
        await self.connect(client, server)

        await server.send("x" * 1000)

        await test_core.wait_for_len(lambda: events_of(events, LogEvent), 1)
        log = events_of(events, LogEvent)[0]
        assert log.message.endswith("x" * 120)
        assert "x" * 121 not in log.message

    async def test_non_json_peer_payload(self) -> None:
        server = await self.create_server()
        client, events = self.create_server_client(server)
        await self.connect(client, server)

        await server.send({"peer_msg": {"from": 1, "to": 2, "msg": "{oops"}})

        await test_core.wait_for_len(lambda: events_of(events, LogEvent), 1)
        assert events_of(events, LogEvent) == [
            LogEvent(message="Received non-JSON peer payload")
        ]

    async def test_send_answer_and_candidates(self) -> None:
        server = await self.create_server()
        client, _ = self.create_server_client(server)
        await self.connect(client, server)

        await client.send_answer("v=0 answer", nvst_sdp="a=nvst")
        await client.send_ice_candidate("candidate:2 1 UDP", "0", 0)
        await client.send_ice_candidate("candidate:3 1 UDP")

        await test_core.wait_for_len(lambda: server.received, 4)
        peer_info, answer, ice_a, ice_b = server.received_json

        # Strictly increasing, starting at 1 with the presence announcement.
        assert [m["ackid"] for m in (peer_info, answer, ice_a, ice_b)] == [
            1,
            2,
            3,
            4,
        ]

        for msg in (answer, ice_a, ice_b):
            assert msg["peer_msg"]["from"] == 2
            assert msg["peer_msg"]["to"] == 1

        assert json.loads(answer["peer_msg"]["msg"]) == {
            "type": "answer",
            "sdp": "v=0 answer",
            "nvstSdp": "a=nvst",
        }
        assert json.loads(ice_a["peer_msg"]["msg"]) == {
            "candidate": "candidate:2 1 UDP",
            "sdpMid": "0",
            "sdpMLineIndex": 0,
        }
        assert json.loads(ice_b["peer_msg"]["msg"]) == {
            "candidate": "candidate:3 1 UDP",
            "sdpMid": None,
            "sdpMLineIndex": None,
        }

    async def test_send_while_disconnected_is_noop(self) -> None:
        server = await self.create_server()
        client, _ = self.create_server_client(server)

        await client.send_answer("v=0")
        await self.connect(client, server)

        await test_core.wait_for_len(lambda: server.received, 1)
        await asyncio.sleep(0.1)

        # Only the presence announcement. The dropped answer still used an
        # ack ID.
        assert len(server.received) == 1
        assert server.received_json[0]["ackid"] == 2

    async def test_sends_heartbeats(self) -> None:
        server = await self.create_server()
        client, _ = self.create_server_client(server, heartbeat_interval=0.05)
        await self.connect(client, server)

        await test_core.wait_for(
            lambda: self.assertGreaterEqual(len(server.received_where("hb")), 3)
        )
        assert all(m == {"hb": 1} for m in server.received_where("hb"))
