import queue
import threading
import time
from typing import List

from xrfstream.data.spectrum import Spectrum
from xrfstream.data.types import StreamBlock
from xrfstream.workflow.sink import Sink


class _RecordingSink(Sink):
    def __init__(self, **kwargs):
        super().__init__("recording", **kwargs)
        self.consumed: List[StreamBlock] = []
        self.threads: List[str] = []

    def _consume(self, block: StreamBlock) -> None:
        if block.detector_num < 0:
            raise RuntimeError("bad block")
        self.consumed.append(block)
        self.threads.append(threading.current_thread().name)


class _GatedSink(Sink):
    def __init__(self, **kwargs):
        super().__init__("gated", **kwargs)
        self.entered = threading.Event()
        self.gate = threading.Event()
        self.consumed: List[StreamBlock] = []

    def _consume(self, block: StreamBlock) -> None:
        self.entered.set()
        self.gate.wait(timeout=5.0)
        self.consumed.append(block)


def _block(detector: int) -> StreamBlock:
    return StreamBlock(row=0, col=0, height=0, width=0, detector_num=detector, spectra=Spectrum(4))


def test_push_before_start_consumes_inline() -> None:
    sink = _RecordingSink()
    block = _block(0)
    sink.push(block)
    assert sink.consumed == [block]
    assert sink.threads == [threading.current_thread().name]


def test_started_sink_consumes_on_worker_in_order() -> None:
    sink = _RecordingSink()
    sink.start()
    assert sink.running
    blocks = [_block(i) for i in range(5)]
    for block in blocks:
        sink.push(block)
    sink.stop()

    assert sink.consumed == blocks
    assert set(sink.threads) == {"sink-recording"}
    assert not sink.running


def test_consumer_error_is_logged_and_worker_survives(xrf_log) -> None:
    sink = _RecordingSink()
    sink.start()
    sink.push(_block(-1))
    sink.push(_block(2))
    sink.stop()

    assert [b.detector_num for b in sink.consumed] == [2]
    errors = [rec for rec in xrf_log.records if getattr(rec, "error_type", None) == "sink_consume"]
    assert len(errors) == 1


def test_full_queue_drops_and_releases_block() -> None:
    sink = _GatedSink(max_queue=1)
    sink.start()
    first, second, third = _block(0), _block(1), _block(2)

    sink.push(first)
    assert sink.entered.wait(timeout=5.0)
    sink.push(second)
    sink.push(third)

    assert sink.dropped == 1
    assert third.released
    sink.gate.set()
    sink.stop()
    assert sink.consumed == [first, second]


def test_stop_twice_is_a_no_op() -> None:
    sink = _RecordingSink()
    sink.start()
    sink.stop()
    sink.stop()
    assert not sink.running


class _StallingQueue(queue.Queue):
    """Holds the first ``put_nowait`` until ``gate`` opens."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.gate = threading.Event()

    def put_nowait(self, item):
        self.entered.set()
        self.gate.wait(timeout=5.0)
        return super().put_nowait(item)


def test_push_racing_stop_is_still_consumed() -> None:
    sink = _RecordingSink()
    stalling = _StallingQueue()
    sink._queue = stalling
    sink.start()
    block = _block(2)

    pusher = threading.Thread(target=sink.push, args=(block,))
    pusher.start()
    assert stalling.entered.wait(timeout=5.0)
    stopper = threading.Thread(target=sink.stop)
    stopper.start()
    # let stop() reach the sentinel step while the push is still in flight
    time.sleep(0.05)
    stalling.gate.set()
    pusher.join(timeout=5.0)
    stopper.join(timeout=5.0)

    assert not stopper.is_alive()
    assert sink.consumed == [block]
    assert sink.dropped == 0
    assert stalling.qsize() == 0
