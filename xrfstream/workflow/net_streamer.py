"""Publish completed stream blocks on a ZeroMQ PUB socket."""

from __future__ import annotations

import re
import threading
from typing import Optional

import zmq

from xrfstream import config
from xrfstream.data.types import StreamBlock
from xrfstream.io.serializer import BasicSerializer
from xrfstream.util.logging import get_logger
from xrfstream.workflow.sink import Sink

logger = get_logger(__name__)

XRF_COUNTS_TOPIC = b"XRF-Counts"

_ENDPOINT_RE = re.compile(r"^(?P<scheme>tcp|ipc|inproc|pgm|epgm|udp)://(?P<address>.+)$")
_TCP_ADDRESS_RE = re.compile(r"^(?P<host>\*|[\w.\-]+|\[[0-9a-fA-F:]+\]):(?P<port>\d{1,5}|\*)$")


def validate_endpoint(endpoint: str) -> str:
    """Return ``endpoint`` if it is a bindable ``scheme://host:port`` address."""
    match = _ENDPOINT_RE.match(str(endpoint).strip())
    if not match:
        raise ValueError(f"Invalid publish endpoint '{endpoint}': expected scheme://host:port")
    if match.group("scheme") == "tcp":
        tcp = _TCP_ADDRESS_RE.match(match.group("address"))
        if not tcp:
            raise ValueError(f"Invalid tcp endpoint '{endpoint}': expected tcp://host:port")
        port = tcp.group("port")
        if port != "*" and not 0 < int(port) < 65536:
            raise ValueError(f"Invalid tcp port in endpoint '{endpoint}'")
    return match.group(0)


class SpectraNetStreamer(Sink):
    """Best-effort live feed of fitted counts (or raw spectra).

    Every message is two frames: the ``XRF-Counts`` topic and the
    serialized payload. Sends are serialized by a lock so the two frames
    of one message never interleave with another. A failed send is logged
    and the message is dropped.
    """

    def __init__(
        self,
        endpoint: str = config.PUB_ENDPOINT,
        *,
        send_counts: Optional[bool] = None,
        send_spectra: bool = config.SEND_SPECTRA,
        serializer: Optional[BasicSerializer] = None,
        context: Optional[zmq.Context] = None,
        blocking: bool = config.PUB_BLOCKING,
        linger_ms: int = config.PUB_LINGER_MS,
        sndhwm: int = config.PUB_SNDHWM,
        max_queue: int = config.SINK_QUEUE_SIZE,
    ):
        super().__init__("net-streamer", max_queue=max_queue)
        if send_counts is None:
            send_counts = not send_spectra
        if send_counts and send_spectra:
            raise ValueError("send_counts and send_spectra are mutually exclusive")
        self.endpoint = validate_endpoint(endpoint)
        self.send_counts = send_counts
        self.send_spectra = send_spectra
        self.serializer = serializer or BasicSerializer()
        self.blocking = bool(blocking)
        self.linger_ms = int(linger_ms)
        self.sent = 0
        self.failed = 0
        self._send_lock = threading.Lock()

        self._owns_context = context is None
        self._context: Optional[zmq.Context] = context if context is not None else zmq.Context()
        self._socket = self._context.socket(zmq.PUB)
        try:
            self._socket.setsockopt(zmq.LINGER, self.linger_ms)
            self._socket.setsockopt(zmq.SNDHWM, int(sndhwm))
            self._socket.bind(self.endpoint)
        except zmq.ZMQError:
            logger.error("Failed to bind publisher on %s", self.endpoint, extra={"endpoint": self.endpoint})
            self._socket.close(linger=0)
            self._socket = None
            if self._owns_context:
                self._context.term()
            self._context = None
            raise
        logger.info("Publishing %s on %s", "spectra" if send_spectra else "counts", self.endpoint,
                    extra={"endpoint": self.endpoint})

    @property
    def closed(self) -> bool:
        return self._socket is None

    def _encode(self, block: StreamBlock) -> bytes:
        if self.send_counts:
            return self.serializer.encode_counts(block)
        if self.send_spectra:
            return self.serializer.encode_spectra(block)
        return b""

    def publish(self, block: StreamBlock) -> bool:
        """Send one block; returns False if the message was dropped."""
        payload = self._encode(block)
        flags = 0 if self.blocking else zmq.NOBLOCK
        with self._send_lock:
            if self._socket is None:
                self.failed += 1
                logger.warning(
                    "Publisher closed, dropping frame for detector %d",
                    block.detector_num,
                    extra={"detector": block.detector_num},
                )
                return False
            try:
                self._socket.send_multipart([XRF_COUNTS_TOPIC, payload], flags=flags)
            except zmq.Again:
                self.failed += 1
                logger.warning(
                    "Send queue full on %s, dropping frame for detector %d",
                    self.endpoint,
                    block.detector_num,
                    extra={"detector": block.detector_num, "endpoint": self.endpoint},
                )
                return False
            except zmq.ZMQError as exc:
                self.failed += 1
                logger.warning(
                    "Error sending ZMQ message for detector %d: %s",
                    block.detector_num,
                    exc,
                    extra={"detector": block.detector_num, "endpoint": self.endpoint},
                )
                return False
            self.sent += 1
        return True

    stream = publish

    def _consume(self, block: StreamBlock) -> None:
        try:
            self.publish(block)
        finally:
            block.release()

    def close(self) -> None:
        self.stop()
        with self._send_lock:
            if self._socket is not None:
                self._socket.close(linger=self.linger_ms)
                self._socket = None
            if self._context is not None and self._owns_context:
                self._context.term()
            self._context = None

    def __enter__(self) -> "SpectraNetStreamer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
