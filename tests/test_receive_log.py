import pytest

from rtpflow.receive_log import InvalidSizeError, ReceiveLog

MASK = 0xFFFF

STARTS = [
    0, 1, 127, 128, 129, 511, 512, 513, 32767, 32768, 32769, 65407, 65408, 65409, 65534, 65535,
]


def span(low, high):
    return list(range(low, high + 1))


class _Checker:
    def __init__(self, start, log):
        self.start = start
        self.log = log

    def seq(self, n):
        return (self.start + n) & MASK

    def add(self, *nums):
        for n in nums:
            self.log.add(self.seq(n))

    def assert_get(self, *nums):
        for n in nums:
            assert self.log.get(self.seq(n)), f"packet not found: {self.seq(n)}"

    def assert_not_get(self, *nums):
        for n in nums:
            assert not self.log.get(self.seq(n)), f"packet found for {self.seq(n)}"

    def assert_missing(self, skip_last_n, nums):
        want = [self.seq(n) for n in nums]
        assert self.log.missing_seq_numbers(skip_last_n) == want

    def assert_last_consecutive(self, n):
        assert self.log.last_consecutive == self.seq(n)


@pytest.mark.parametrize("start", STARTS)
def test_received_buffer(start):
    log = ReceiveLog(128)
    c = _Checker(start, log)

    log.add(start & MASK)
    assert log.get(start & MASK) is True
    assert log.missing_seq_numbers(0) == []
    assert log.last_consecutive == start & MASK

    c.add(*span(1, 127))
    c.assert_get(*span(1, 127))
    c.assert_missing(0, [])
    c.assert_last_consecutive(127)

    c.add(128)
    c.assert_get(128)
    c.assert_not_get(0)
    c.assert_missing(0, [])
    c.assert_last_consecutive(128)

    c.add(130)
    c.assert_get(130)
    c.assert_not_get(1, 2, 129)
    c.assert_missing(0, [129])
    c.assert_last_consecutive(128)

    c.add(333)
    c.assert_get(333)
    c.assert_not_get(*span(0, 332))
    c.assert_missing(0, span(206, 332))
    c.assert_missing(10, span(206, 323))
    c.assert_last_consecutive(205)

    c.add(329)
    c.assert_get(329)
    c.assert_missing(0, span(206, 328) + span(330, 332))
    c.assert_missing(5, span(206, 328))
    c.assert_last_consecutive(205)

    c.add(*span(207, 320))
    c.assert_get(*span(207, 320))
    c.assert_missing(0, [206] + span(321, 328) + span(330, 332))
    c.assert_last_consecutive(205)

    c.add(334)
    c.assert_get(334)
    c.assert_not_get(206)
    c.assert_missing(0, span(321, 328) + span(330, 332))
    c.assert_last_consecutive(320)

    c.add(*span(322, 328))
    c.assert_get(*span(322, 328))
    c.assert_missing(0, [321] + span(330, 332))
    c.assert_last_consecutive(320)

    c.add(321)
    c.assert_get(321)
    c.assert_missing(0, span(330, 332))
    c.assert_last_consecutive(329)

    c.add(*span(330, 332))
    c.assert_missing(0, [])
    c.assert_last_consecutive(334)

    c.add(466)
    c.assert_get(466)
    missing = span(335, 465)
    assert len(missing) > log.size
    c.assert_last_consecutive(missing[len(missing) - log.size])
    c.assert_missing(0, missing[len(missing) - (log.size - 1):])


@pytest.mark.parametrize("size", [0, 5, 32, 100, 65535])
def test_invalid_size_raises(size):
    with pytest.raises(InvalidSizeError):
        ReceiveLog(size)


def test_invalid_size_is_value_error_with_allowed_sizes():
    with pytest.raises(ValueError, match="allowed sizes: \\[64 128"):
        ReceiveLog(5)


@pytest.mark.parametrize("size", [64, 128, 512, 32768])
def test_valid_sizes_accepted(size):
    assert ReceiveLog(size).size == size


def test_empty_log_reports_nothing():
    log = ReceiveLog(64)
    assert log.missing_seq_numbers(0) == []
    assert log.get(0) is False


def test_duplicate_add_is_ignored():
    log = ReceiveLog(64)
    log.add(10)
    log.add(12)
    log.add(12)
    assert log.missing_seq_numbers(0) == [11]
    assert log.end == 12


def test_skip_last_n_beyond_gap_returns_empty():
    log = ReceiveLog(64)
    log.add(100)
    log.add(102)
    assert log.missing_seq_numbers(0) == [101]
    assert log.missing_seq_numbers(5) == []


def test_wraps_around_sequence_space():
    log = ReceiveLog(64)
    log.add(65534)
    log.add(1)
    assert log.missing_seq_numbers(0) == [65535, 0]
    log.add(65535)
    assert log.last_consecutive == 65535
    log.add(0)
    assert log.last_consecutive == 1
    assert log.missing_seq_numbers(0) == []


def test_old_packet_outside_window_not_reported_received():
    log = ReceiveLog(64)
    log.add(0)
    log.add(200)
    assert log.get(0) is False
    assert log.get(200) is True