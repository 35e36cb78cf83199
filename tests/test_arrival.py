import pytest

from rtpflow.arrival import Acknowledgment, ArrivalGroup, ArrivalGroupAccumulator
from rtpflow.control import MILLISECOND as MS
from rtpflow.control import SECOND

A = Acknowledgment


def build(acks):
    group = ArrivalGroup()
    for index, ack in enumerate(acks):
        if index == 0:
            group = ArrivalGroup.start(ack)
        else:
            group.add(ack)
    return group


def test_empty_group():
    assert build([]) == ArrivalGroup(packets=[], arrival=0, departure=0)


def test_single_ack_group():
    ack = A()
    assert build([ack]) == ArrivalGroup(packets=[ack], arrival=0, departure=0)


def test_sets_times_to_last_ack():
    first = A()
    second = A(departure=SECOND, arrival=SECOND)
    assert build([first, second]) == ArrivalGroup(
        packets=[first, second], arrival=SECOND, departure=0
    )


def test_departure_is_first_packet_departure():
    acks = [
        A(0, 0, 27 * MS, 0),
        A(1, 1, 32 * MS, 37 * MS),
        A(2, 2, 50 * MS, 56 * MS),
    ]
    assert build(acks) == ArrivalGroup(packets=acks, arrival=56 * MS, departure=27 * MS)


def test_group_string():
    text = str(ArrivalGroup.start(A(departure=2 * MS, arrival=5 * MS)))
    assert text.startswith("ARRIVALGROUP:\n")
    assert "\tARRIVAL:\t5\n" in text
    assert "\tDEPARTURE:\t2\n" in text


TRIGGER = A(departure=SECOND, arrival=SECOND)

ACCUMULATOR_CASES = {
    "emptyCreatesNoGroups": ([], []),
    "createsSingleElementGroup": (
        [A(departure=0, arrival=MS), TRIGGER],
        [ArrivalGroup([A(departure=0, arrival=MS)], departure=0, arrival=MS)],
    ),
    "createsTwoElementGroup": (
        [A(arrival=15 * MS), A(departure=3 * MS, arrival=20 * MS), TRIGGER],
        [
            ArrivalGroup(
                [A(arrival=15 * MS), A(departure=3 * MS, arrival=20 * MS)],
                departure=0,
                arrival=20 * MS,
            )
        ],
    ),
    "createsTwoArrivalGroups": (
        [
            A(arrival=15 * MS),
            A(departure=3 * MS, arrival=20 * MS),
            A(departure=9 * MS, arrival=30 * MS),
            TRIGGER,
        ],
        [
            ArrivalGroup(
                [A(arrival=15 * MS), A(departure=3 * MS, arrival=20 * MS)],
                departure=0,
                arrival=20 * MS,
            ),
            ArrivalGroup(
                [A(departure=9 * MS, arrival=30 * MS)],
                departure=9 * MS,
                arrival=30 * MS,
            ),
        ],
    ),
    "ignoresOutOfOrderPackets": (
        [
            A(departure=0, arrival=15 * MS),
            A(departure=6 * MS, arrival=34 * MS),
            A(departure=8 * MS, arrival=30 * MS),
            TRIGGER,
        ],
        [
            ArrivalGroup([A(departure=0, arrival=15 * MS)], departure=0, arrival=15 * MS),
            ArrivalGroup(
                [A(departure=6 * MS, arrival=34 * MS)],
                departure=6 * MS,
                arrival=34 * MS,
            ),
        ],
    ),
    "newGroupBecauseOfInterDepartureTime": (
        [
            A(0, 0, 0, 4 * MS),
            A(1, 0, 3 * MS, 4 * MS),
            A(2, 0, 6 * MS, 10 * MS),
            A(3, 0, 9 * MS, 10 * MS),
            TRIGGER,
        ],
        [
            ArrivalGroup(
                [A(0, 0, 0, 4 * MS), A(1, 0, 3 * MS, 4 * MS)],
                departure=0,
                arrival=4 * MS,
            ),
            ArrivalGroup(
                [A(2, 0, 6 * MS, 10 * MS), A(3, 0, 9 * MS, 10 * MS)],
                departure=6 * MS,
                arrival=10 * MS,
            ),
        ],
    ),
}


@pytest.mark.parametrize("name", list(ACCUMULATOR_CASES))
def test_accumulator(name):
    log, expected = ACCUMULATOR_CASES[name]
    accumulator = ArrivalGroupAccumulator()
    assert list(accumulator.run([log])) == expected


def test_accumulator_keeps_state_between_batches():
    accumulator = ArrivalGroupAccumulator()
    first = accumulator.feed([A(departure=0, arrival=MS)])
    second = accumulator.feed([TRIGGER])
    assert first == []
    assert second == [ArrivalGroup([A(departure=0, arrival=MS)], departure=0, arrival=MS)]