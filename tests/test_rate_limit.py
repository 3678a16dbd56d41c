import pytest

from helmetlink.core.rate_limit import RequestSpacer


def test_spacer_sleeps_only_for_the_remaining_gap(monkeypatch):
    ticks = iter([0.0, 0.25, 1.0, 3.0])
    sleeps: list[float] = []
    monkeypatch.setattr("helmetlink.core.rate_limit.time.monotonic", lambda: next(ticks))
    monkeypatch.setattr("helmetlink.core.rate_limit.time.sleep", lambda s: sleeps.append(s))

    spacer = RequestSpacer(1.0)

    assert spacer.wait() == 0.0
    assert spacer.wait() == pytest.approx(0.75)
    assert spacer.wait() == 0.0
    assert sleeps == [pytest.approx(0.75)]


def test_zero_interval_never_sleeps(monkeypatch):
    monkeypatch.setattr("helmetlink.core.rate_limit.time.sleep", lambda s: pytest.fail("slept"))

    spacer = RequestSpacer(0)
    for _ in range(3):
        assert spacer.wait() == 0.0


def test_negative_interval_is_rejected():
    with pytest.raises(ValueError):
        RequestSpacer(-1)
