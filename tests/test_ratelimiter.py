import pytest

from wgcore.ratelimiter import PACKETS_BURSTABLE, PACKETS_PER_SECOND, Ratelimiter

IPS = [
    "127.0.0.1",
    "192.168.1.1",
    "172.167.2.3",
    "97.231.252.215",
    "248.97.91.167",
    "188.208.233.47",
    "104.2.183.179",
    "72.129.46.120",
    "2001:0db8:0a0b:12f0:0000:0000:0000:0001",
    "f5c2:818f:c052:655a:9860:b136:6894:25f0",
    "b2d7:15ab:48a7:b07c:a541:f144:a9fe:54fc",
    "a47b:786e:1671:a22b:d6f9:4ab0:abc7:c918",
    "ea1e:d155:7f7a:98fb:2bf5:9483:80f6:5445",
    "3f0e:54a2:f5b4:cd19:a21d:58e1:3746:84c4",
]

SECOND = 1_000_000_000


class FakeClock:
    def __init__(self):
        self.now = 1_000 * SECOND

    def __call__(self):
        return self.now


@pytest.fixture
def limiter():
    clock = FakeClock()
    rate = Ratelimiter(clock=clock)
    yield rate, clock
    rate.close()


def test_ratelimiter_sequence(limiter):
    rate, clock = limiter
    per_packet = SECOND // PACKETS_PER_SECOND
    expected = [(True, 0, "initial burst")] * PACKETS_BURSTABLE
    expected += [
        (False, 0, "after burst"),
        (True, per_packet, "filling tokens for single packet"),
        (False, 0, "not having refilled enough"),
        (True, 2 * per_packet, "filling tokens for two packet burst"),
        (True, 0, "second packet in 2 packet burst"),
        (False, 0, "packet following 2 packet burst"),
    ]

    for index, (allowed, wait, text) in enumerate(expected):
        clock.now += wait + 1
        rate.cleanup()
        for ip in IPS:
            assert rate.allow(ip) is allowed, (index, text, ip)


def test_cleanup_on_empty_table(limiter):
    rate, _ = limiter
    assert rate.cleanup() is True


def test_cleanup_keeps_fresh_and_drops_stale(limiter):
    rate, clock = limiter
    assert rate.allow("10.0.0.1") is True
    assert rate.cleanup() is False
    clock.now += 2 * SECOND
    assert rate.cleanup() is True


def test_invalid_address_raises(limiter):
    rate, _ = limiter
    with pytest.raises(ValueError):
        rate.allow("not-an-address")