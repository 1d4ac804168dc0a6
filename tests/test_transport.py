# tests/test_transport.py
import json

import pytest
import zmq

from ccnping.core.config import ServerConfig
from ccnping.core.errors import TransportConnectionError
from ccnping.core.name import Name
from ccnping.server.server import PingServer
from ccnping.transport.base import ReplyKind, Response
from ccnping.transport.loopback import LoopbackForwarder, LoopbackTransport, VirtualClock
from ccnping.transport.zmq_transport import ZmqTransport

PROBE = Name.from_uri("ccnx:/example/ping/7")


def _collector():
    events = []
    return events, lambda kind, name, response: events.append((kind, name, response))


def test_loopback_round_trip():
    clock = VirtualClock()
    forwarder = LoopbackForwarder(clock=clock, delay=0.005)
    client, responder = LoopbackTransport(forwarder), LoopbackTransport(forwarder)
    responder.register_responder(
        Name.from_uri("ccnx:/example"),
        lambda name: responder.publish_response(Response(name, b"ok", 1)),
    )
    events, callback = _collector()

    client.express_request(PROBE, callback)
    while not events:
        client.run_loop_step(10)

    kind, name, response = events[0]
    assert kind is ReplyKind.CONTENT
    assert name == PROBE
    assert response.content == b"ok"
    assert clock() == pytest.approx(0.010)


def test_loopback_timeout_uses_lifetime():
    clock = VirtualClock()
    forwarder = LoopbackForwarder(clock=clock, drop=lambda name: True)
    client = LoopbackTransport(forwarder)
    events, callback = _collector()

    client.express_request(PROBE, callback, lifetime=0.5)
    for _ in range(100):
        client.run_loop_step(10)

    assert events == [(ReplyKind.TIMEOUT, PROBE, None)]
    assert clock() >= 0.5


def test_loopback_closed_face():
    client = LoopbackTransport(LoopbackForwarder(clock=VirtualClock()))
    client.close()

    assert client.express_request(PROBE, lambda *a: None) < 0
    assert client.run_loop_step(10) < 0


@pytest.fixture
def context():
    ctx = zmq.Context()
    yield ctx
    ctx.term()


def test_zmq_round_trip(context):
    endpoint = "inproc://ccnping-round-trip"
    with ZmqTransport(endpoint, bind=True, context=context) as server_side, \
            ZmqTransport(endpoint, context=context) as client_side:
        ping_server = PingServer(ServerConfig("ccnx:/example", freshness=2), server_side)
        ping_server.start()
        events, callback = _collector()

        assert client_side.express_request(PROBE, callback, answer_origin_new=True) == 0
        for _ in range(200):
            server_side.run_loop_step(5)
            client_side.run_loop_step(5)
            if events:
                break

        assert ping_server.served_count == 1
        kind, name, response = events[0]
        assert kind is ReplyKind.CONTENT
        assert name == PROBE
        assert response.content == b"ping ack"
        assert response.freshness == 2


def test_zmq_invalid_probe_gets_no_answer(context):
    endpoint = "inproc://ccnping-invalid"
    clock = VirtualClock()
    with ZmqTransport(endpoint, bind=True, context=context) as server_side, \
            ZmqTransport(endpoint, context=context, clock=clock) as client_side:
        ping_server = PingServer(ServerConfig("ccnx:/example"), server_side)
        ping_server.start()
        events, callback = _collector()

        client_side.express_request(Name.from_uri("ccnx:/example/ping/abc"), callback,
                                    lifetime=1.0)
        for _ in range(20):
            server_side.run_loop_step(5)
            client_side.run_loop_step(5)
        assert events == []

        clock.advance(1.0)
        client_side.run_loop_step(0)

        assert ping_server.served_count == 0
        assert [e[0] for e in events] == [ReplyKind.TIMEOUT]


def test_zmq_malformed_message_is_discarded(context):
    endpoint = "inproc://ccnping-malformed"
    with ZmqTransport(endpoint, bind=True, context=context) as server_side:
        requests = []
        server_side.register_responder(Name.from_uri("ccnx:/example"), requests.append)
        raw = context.socket(zmq.DEALER)
        raw.setsockopt(zmq.LINGER, 0)
        raw.connect(endpoint)
        try:
            raw.send(b"not json")
            raw.send(json.dumps({"type": "interest", "name": "bad"}).encode())
            raw.send(json.dumps({"type": "interest", "name": str(PROBE)}).encode())
            for _ in range(100):
                assert server_side.run_loop_step(5) == 0
                if requests:
                    break
        finally:
            raw.close()

        assert requests == [PROBE]


def test_zmq_unconnected_transport():
    transport = ZmqTransport("inproc://ccnping-nowhere")

    assert transport.express_request(PROBE, lambda *a: None) < 0
    assert transport.run_loop_step(0) < 0


def test_zmq_bad_endpoint(context):
    transport = ZmqTransport("bogus://endpoint", context=context)

    with pytest.raises(TransportConnectionError):
        transport.connect()
