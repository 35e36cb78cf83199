# rtpflow

Building blocks for real-time media transport over RTP, in plain Python
with no third-party dependencies.

Times and durations throughout are integer nanoseconds (`rtpflow.control`
defines `MICROSECOND`, `MILLISECOND` and `SECOND` to help), bitrates are bits
per second, and sequence numbers are 16 bit values that wrap around.
Components that depend on the current time take a `clock` (or `now`) callable
returning nanoseconds, defaulting to `time.monotonic_ns`.

## Congestion control

A delay based and a loss based bandwidth estimator in the style of Google
Congestion Control:

- `rtpflow.control` – `Usage` (`OVER`, `UNDER`, `NORMAL`), `State`
  (`INCREASE`, `DECREASE`, `HOLD`) with `State.transition(use)`, the
  `DelayStats` record, and `clamp_int` / `clamp_duration`.
- `rtpflow.arrival` – `Acknowledgment` (sequence number, size, departure,
  arrival; an arrival of 0 means lost), `ArrivalGroup`, and
  `ArrivalGroupAccumulator`, whose `feed(acks)` returns the groups completed
  by a batch and whose `run(batches)` yields them.
- `rtpflow.slope` – `SlopeEstimator` and `inter_group_delay_variation`.
- `rtpflow.kalman` – `KalmanFilter.update_estimate(measurement)`.
- `rtpflow.threshold` – `AdaptiveThreshold.compare(estimate, delta)`, returning
  the usage, the scaled estimate and the threshold used.
- `rtpflow.overuse` – `OveruseDetector`, which reports overuse only when it
  persists for longer than its `overuse_time`.
- `rtpflow.rate_calculator` – `RateCalculator`, the received bitrate over a
  sliding window (500 ms by default).
- `rtpflow.rate_controller` – `RateController` and `ExponentialMovingAverage`.
- `rtpflow.loss_estimator` – `LossBasedEstimator` and `LossStats`.
- `rtpflow.delay_controller` – `DelayController`, which runs acknowledgments
  through the accumulator, Kalman filter, adaptive threshold, overuse detector
  and rate controller, and calls the function given to `on_update` with each
  new `DelayStats`. After `close()` (or leaving its `with` block),
  `update_delay_estimate` raises `RuntimeError`.
- `rtpflow.pacer` – `NoOpPacer`, which forwards each packet at once to the
  writer added for its SSRC and raises `UnknownStreamError` for any other SSRC.
  A writer is an object with `write(header, payload, attributes)` or a callable
  with the same arguments; the header needs an `ssrc` attribute.

```python
from rtpflow.arrival import Acknowledgment
from rtpflow.control import MILLISECOND, SECOND
from rtpflow.rate_calculator import RateCalculator

calculator = RateCalculator()
acks = [
    Acknowledgment(size=125, arrival=SECOND),
    Acknowledgment(size=125, arrival=SECOND + 100 * MILLISECOND),
]
print(calculator.feed(acks))   # [1000, 20000]
```

```python
from rtpflow.delay_controller import DelayController

with DelayController(initial_bitrate=300_000, min_bitrate=5_000,
                     max_bitrate=50_000_000) as controller:
    controller.on_update(lambda stats: print(stats.state, stats.target_bitrate))
    controller.update_rtt(40_000_000)
    controller.update_delay_estimate(acks)
```

## Receiving

- `rtpflow.priority_queue` – `Packet` (sequence number, timestamp, SSRC,
  payload) and `PriorityQueue`, kept in order of plain numeric priority. It
  raises `InvalidOperationError` when popping from an empty queue and
  `PacketNotFoundError` when nothing matches.
- `rtpflow.jitter_buffer` – `JitterBuffer`. It collects packets until
  `min_packet_count` (50 by default) have arrived, then releases them in
  sequence order from its `playout_head`, or by sequence number or timestamp.
  Listeners registered with `listen` receive `Event`s (`START_BUFFERING`,
  `BEGIN_PLAYBACK`, `BUFFER_UNDERFLOW`, `BUFFER_OVERFLOW`); counters are in
  `stats`. Popping before playback raises `PopWhileBufferingError`; peeking
  into an empty buffer raises `BufferUnderrunError`.
- `rtpflow.receive_log` – `ReceiveLog`, a window of received flags over the
  last `size` sequence numbers (a power of two from 64 to 32768, otherwise
  `InvalidSizeError`), which lists the missing packets to ask for again.

```python
from rtpflow.receive_log import ReceiveLog

log = ReceiveLog(64)
for seq in (10, 11, 12, 14, 16, 18):
    log.add(seq)

print(log.missing_seq_numbers(2))   # [13, 15]
```

```python
from rtpflow.jitter_buffer import Event, JitterBuffer
from rtpflow.priority_queue import Packet

buffer = JitterBuffer(min_packet_count=2)
buffer.listen(Event.BEGIN_PLAYBACK, lambda event, jb: print("playing"))

buffer.push(Packet(sequence_number=100, timestamp=9000))
buffer.push(Packet(sequence_number=101, timestamp=9000))
print(buffer.pop().sequence_number)   # 100
```

## What it does not do

rtpflow does no network input or output and does not parse or build RTP or
RTCP packets: you hand it acknowledgments and `Packet` records and act on what
it returns. It has no send side estimator that combines the loss and delay
based targets for you, no pacer that spreads packets over time (`NoOpPacer`
only records the target bitrate), and nothing that sends NACK or picture loss
requests or retransmits packets; `ReceiveLog` only tells you which sequence
numbers are missing. There is no command line program.

## Running the tests

```
pip install .[test]
pytest
```