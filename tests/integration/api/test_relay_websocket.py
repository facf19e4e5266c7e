"""Integration tests for the session relay WebSocket."""

import pytest
from fastapi import WebSocketDisconnect

pytestmark = [pytest.mark.integration, pytest.mark.api]


def relay_url(session_id="S1", username="alice", role="Trader") -> str:
    return f"/ws?session_id={session_id}&username={username}&role={role}"


def receive_frames(websocket, count):
    return [websocket.receive_json() for _ in range(count)]


def frame_types(frames):
    return [frame["type"] for frame in frames]


class TestRelayConnection:
    """Test joining a session."""

    def test_invalid_role_is_refused(self, client):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(relay_url(role="Auditor")) as websocket:
                websocket.receive_json()

    def test_join_is_announced_to_others(self, client):
        """Test that existing participants hear about a new one.

        Given - A trader in session S1
        When - A broker joins
        Then - The trader receives participant.joined with the broker's
        identity
        """
        # Given - Trader connected
        with client.websocket_connect(relay_url()) as trader:
            # When - Broker joins
            with client.websocket_connect(relay_url(username="bob", role="Broker")):
                frame = trader.receive_json()

            # Then - Announcement
            assert frame["type"] == "participant.joined"
            assert frame["seq"] == 1
            assert frame["data"]["username"] == "bob"
            assert frame["data"]["role"] == "Broker"


class TestRelayOrderFlow:
    """Test order events through the relay."""

    def test_new_order_is_echoed_to_sender(self, client, new_order_frame):
        """Test that the sender receives its own broadcast.

        Given - A lone trader
        When - The trader sends order.new
        Then - order.created and message.new arrive with seq 1 and 2
        """
        with client.websocket_connect(relay_url()) as trader:
            # When - New order
            trader.send_json(new_order_frame)
            created, message = receive_frames(trader, 2)

        # Then - Both frames
        assert created["type"] == "order.created"
        assert created["seq"] == 1
        assert created["data"]["order"]["symbol"] == "AAPL"
        assert created["data"]["order"]["status"] == "New"
        assert message["type"] == "message.new"
        assert message["seq"] == 2
        assert message["data"]["msg_type"] == "D"
        assert message["data"]["sender"] == "Trader"
        assert message["data"]["validation"]["valid"] is True

        # Then - Visible through the session endpoints
        orders = client.get("/sessions/S1/orders").json()["data"]["orders"]
        assert [order["symbol"] for order in orders] == ["AAPL"]

    def test_fill_reaches_every_participant(self, client, new_order_frame):
        """Test a broker fill broadcast to the whole session.

        Given - A trader and a broker in S1 and an open order
        When - The broker fills the order
        Then - Both receive execution.created, order.updated and
        message.new
        """
        with client.websocket_connect(relay_url()) as trader:
            with client.websocket_connect(
                relay_url(username="bob", role="Broker")
            ) as broker:
                trader.receive_json()  # participant.joined

                # Given - Open order
                trader.send_json(new_order_frame)
                created, _ = receive_frames(trader, 2)
                receive_frames(broker, 2)
                order_id = created["data"]["order"]["order_id"]

                # When - Fill
                broker.send_json(
                    {
                        "type": "execution.fill",
                        "data": {"order_id": order_id, "fill_qty": 100, "fill_px": 10.0},
                    }
                )
                trader_frames = receive_frames(trader, 3)
                broker_frames = receive_frames(broker, 3)

        # Then - Same three frames for both
        expected = ["execution.created", "order.updated", "message.new"]
        assert frame_types(trader_frames) == expected
        assert frame_types(broker_frames) == expected
        assert trader_frames[1]["data"]["order"]["status"] == "Filled"
        assert trader_frames[2]["data"]["sender"] == "Broker"
        assert trader_frames[2]["data"]["tags"]["150"] == "2"

    def test_sessions_are_isolated(self, client, new_order_frame):
        with client.websocket_connect(relay_url(session_id="S1")) as first:
            with client.websocket_connect(relay_url(session_id="S2")) as second:
                second.send_json(new_order_frame)
                receive_frames(second, 2)
                first.send_json({"type": "bogus"})
                error = first.receive_json()

        # The S1 client saw nothing from S2
        assert error["type"] == "error"
        assert error["seq"] == 1
        assert client.get("/sessions/S1/orders").json()["data"]["orders"] == []
        assert len(client.get("/sessions/S2/orders").json()["data"]["orders"]) == 1


class TestRelayErrors:
    """Test error frames sent back to the sender."""

    @pytest.mark.parametrize(
        "frame, code",
        [
            ({"type": "bogus.event", "data": {}}, "UNKNOWN_EVENT"),
            (
                {
                    "type": "execution.fill",
                    "data": {"order_id": "nope", "fill_qty": 1, "fill_px": 1.0},
                },
                "ORDER_NOT_FOUND",
            ),
            (
                {"type": "order.new", "data": {"symbol": "AAPL", "side": "Buy"}},
                "INVALID_REQUEST",
            ),
            (
                {
                    "type": "order.new",
                    "data": {
                        "symbol": "AAPL",
                        "side": "Buy",
                        "quantity": 100,
                        "order_type": "Limit",
                        "price": 0,
                    },
                },
                "INVALID_MESSAGE",
            ),
            (
                {
                    "type": "allocation.response",
                    "data": {"alloc_id": "ALLOC-x", "accept": True},
                },
                "ALLOCATION_NOT_FOUND",
            ),
            ({"type": "order.replace", "data": {"order_id": "x"}}, "INVALID_REQUEST"),
        ],
    )
    def test_error_codes(self, client, frame, code):
        with client.websocket_connect(relay_url()) as trader:
            trader.send_json(frame)
            error = trader.receive_json()

        assert error["type"] == "error"
        assert error["data"]["code"] == code

    def test_invalid_json(self, client):
        """Test that a malformed frame keeps the connection open.

        Given - A connected trader
        When - The trader sends text that is not JSON, then a valid frame
        Then - An error comes back and the next frame is still processed
        """
        with client.websocket_connect(relay_url()) as trader:
            # When - Garbage
            trader.send_text("not json")
            error = trader.receive_json()

            # When - Valid frame afterwards
            trader.send_json({"type": "bogus"})
            second = trader.receive_json()

        # Then - Both answered in order
        assert error["data"]["code"] == "INVALID_REQUEST"
        assert error["data"]["message"].startswith("Invalid JSON")
        assert second["seq"] == 2
        assert second["data"]["code"] == "UNKNOWN_EVENT"


class TestRelayAllocationFlow:
    """Test the complete Trader / Broker / Custodian workflow."""

    def test_order_to_confirmation(self, client, new_order_frame):
        """Test the full post-trade lifecycle across three desks.

        Given - Trader, broker and custodian in session S1
        When - The order is filled, allocated, accepted and confirmed
        Then - Every desk sees each step and the session log holds the
        five FIX messages in order
        """
        with client.websocket_connect(relay_url()) as trader:
            with client.websocket_connect(
                relay_url(username="bob", role="Broker")
            ) as broker:
                trader.receive_json()
                with client.websocket_connect(
                    relay_url(username="carol", role="Custodian")
                ) as custodian:
                    trader.receive_json()
                    broker.receive_json()
                    desks = (trader, broker, custodian)

                    # Given / When - Order and fill
                    trader.send_json(new_order_frame)
                    created = [receive_frames(ws, 2) for ws in desks][0][0]
                    order_id = created["data"]["order"]["order_id"]

                    broker.send_json(
                        {
                            "type": "execution.fill",
                            "data": {
                                "order_id": order_id,
                                "fill_qty": 100,
                                "fill_px": 10.0,
                            },
                        }
                    )
                    for ws in desks:
                        receive_frames(ws, 3)

                    # When - Allocation instruction
                    trader.send_json(
                        {
                            "type": "allocation.instruction",
                            "data": {
                                "order_id": order_id,
                                "method": "ProRata",
                                "accounts": [
                                    {"account": "FUND-A", "weight": 1},
                                    {"account": "FUND-B", "weight": 1},
                                    {"account": "FUND-C", "weight": 1},
                                ],
                            },
                        }
                    )
                    allocation_frames = [receive_frames(ws, 2) for ws in desks]
                    allocation = allocation_frames[2][0]["data"]["allocation"]
                    alloc_id = allocation["alloc_id"]

                    # When - Broker accepts
                    broker.send_json(
                        {
                            "type": "allocation.response",
                            "data": {"alloc_id": alloc_id, "accept": True},
                        }
                    )
                    accepted = [receive_frames(ws, 2) for ws in desks][0][0]

                    # When - Custodian confirms
                    custodian.send_json(
                        {"type": "allocation.confirm", "data": {"alloc_id": alloc_id}}
                    )
                    confirmed = [receive_frames(ws, 2) for ws in desks][1][0]

        # Then - Allocation progressed
        assert allocation_frames[0][0]["type"] == "allocation.created"
        assert [a["qty"] for a in allocation["accounts"]] == [33, 33, 34]
        assert allocation["status"] == "Pending"
        assert accepted["type"] == "allocation.updated"
        assert accepted["data"]["allocation"]["status"] == "Accepted"
        assert confirmed["data"]["allocation"]["status"] == "Confirmed"

        # Then - Session log and state
        messages = client.get("/sessions/S1/messages").json()["data"]["messages"]
        assert [m["msg_type"] for m in messages] == ["D", "8", "J", "AS", "AK"]
        assert [m["sender"] for m in messages] == [
            "Trader",
            "Broker",
            "Trader",
            "Broker",
            "Custodian",
        ]
        allocations = client.get("/sessions/S1/allocations").json()["data"][
            "allocations"
        ]
        assert [a["status"] for a in allocations] == ["Confirmed"]
