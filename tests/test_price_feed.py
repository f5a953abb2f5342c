from datetime import datetime, timedelta, timezone

from apps.profiler.src.service.price_feed import PriceFeed

NOW = datetime(2025, 11, 10, 12, 0, tzinfo=timezone.utc)


def _feed(**kwargs) -> PriceFeed:
    kwargs.setdefault("seed", 7)
    kwargs.setdefault("clock", lambda: NOW)
    return PriceFeed(**kwargs)


def test_history_is_seeded_oldest_first():
    history = _feed().history()

    assert len(history) == 20
    assert history[0].price == 100.0
    assert history[0].timestamp == NOW - timedelta(seconds=30 * 19)
    assert history[-1].timestamp == NOW
    assert [p.timestamp for p in history] == sorted(p.timestamp for p in history)


def test_history_is_bounded():
    feed = _feed()

    for _ in range(100):
        tick = feed.tick()

    assert len(tick.history) == 50
    assert len(feed.history()) == 50
    assert tick.history[-1].price == tick.price == feed.last_price


def test_each_step_stays_within_max_change():
    feed = _feed(seed=None)
    previous = feed.last_price

    for _ in range(200):
        price = feed.tick().price
        assert abs(price - previous) <= previous * 0.05 + 0.01
        assert price == round(price, 2)
        previous = price


def test_same_seed_gives_same_walk():
    first, second = _feed(seed=42), _feed(seed=42)

    assert [p.price for p in first.history()] == [p.price for p in second.history()]
    assert first.tick().price == second.tick().price


def test_tick_uses_clock():
    feed = _feed()

    assert feed.tick().timestamp == NOW
