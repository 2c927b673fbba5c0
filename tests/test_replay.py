import pytest

from wgcore.replay import WINDOW_SIZE, ReplayFilter

REJECT_AFTER_MESSAGES = (1 << 64) - (1 << 13) - 1
T_LIM = WINDOW_SIZE + 1


@pytest.fixture
def filt():
    f = ReplayFilter()
    f.reset()
    return f


def _check(filt, counter, expected):
    assert filt.validate_counter(counter, REJECT_AFTER_MESSAGES) is expected, counter


def test_replay_sequence(filt):
    cases = [
        (0, True),
        (1, True),
        (1, False),
        (9, True),
        (8, True),
        (7, True),
        (7, False),
        (T_LIM, True),
        (T_LIM - 1, True),
        (T_LIM - 1, False),
        (T_LIM - 2, True),
        (2, True),
        (2, False),
        (T_LIM + 16, True),
        (3, False),
        (T_LIM + 16, False),
        (T_LIM * 4, True),
        (T_LIM * 4 - (T_LIM - 1), True),
        (10, False),
        (T_LIM * 4 - T_LIM, False),
        (T_LIM * 4 - (T_LIM + 1), False),
        (T_LIM * 4 - (T_LIM - 2), True),
        (T_LIM * 4 + 1 - T_LIM, False),
        (0, False),
        (REJECT_AFTER_MESSAGES, False),
        (REJECT_AFTER_MESSAGES - 1, True),
        (REJECT_AFTER_MESSAGES, False),
        (REJECT_AFTER_MESSAGES - 1, False),
        (REJECT_AFTER_MESSAGES - 2, True),
        (REJECT_AFTER_MESSAGES + 1, False),
        (REJECT_AFTER_MESSAGES + 2, False),
        (REJECT_AFTER_MESSAGES - 2, False),
        (REJECT_AFTER_MESSAGES - 3, True),
        (0, False),
    ]
    for counter, expected in cases:
        _check(filt, counter, expected)


def test_bulk_1(filt):
    for i in range(1, WINDOW_SIZE + 1):
        _check(filt, i, True)
    _check(filt, 0, True)
    _check(filt, 0, False)


def test_bulk_2(filt):
    for i in range(2, WINDOW_SIZE + 2):
        _check(filt, i, True)
    _check(filt, 1, True)
    _check(filt, 0, False)


def test_bulk_3(filt):
    for i in range(WINDOW_SIZE + 1, 0, -1):
        _check(filt, i, True)


def test_bulk_4(filt):
    for i in range(WINDOW_SIZE + 2, 1, -1):
        _check(filt, i, True)
    _check(filt, 0, False)


def test_bulk_5(filt):
    for i in range(WINDOW_SIZE, 0, -1):
        _check(filt, i, True)
    _check(filt, WINDOW_SIZE + 1, True)
    _check(filt, 0, False)


def test_bulk_6(filt):
    for i in range(WINDOW_SIZE, 0, -1):
        _check(filt, i, True)
    _check(filt, 0, True)
    _check(filt, WINDOW_SIZE + 1, True)


def test_reset_allows_counter_again(filt):
    _check(filt, 5, True)
    _check(filt, 5, False)
    filt.reset()
    _check(filt, 5, True)