import pytest

from fieldar.sensors import (PositionSample, SensorHub, SensorPermissionDenied,
                             SensorUnavailable, derive_heading)


def test_derive_heading():
    assert derive_heading({"webkitCompassHeading": 45.0, "alpha": 10, "absolute": True}) == 45.0
    assert derive_heading({"alpha": 90.0, "absolute": True}) == 270.0
    assert derive_heading({"alpha": 0.0, "absolute": True}) == 0.0
    assert derive_heading({"alpha": 90.0, "absolute": False}) is None
    assert derive_heading({"alpha": None, "absolute": True}) is None
    assert derive_heading({}) is None


def test_hub_fans_out_and_unsubscribes():
    hub = SensorHub()
    fixes, errors, headings = [], [], []
    stop_position = hub.watch_position(fixes.append, errors.append)
    stop_heading = hub.watch_heading(headings.append)
    assert hub.subscriber_count == 2

    hub.publish_position(PositionSample(1.0, 2.0))
    hub.publish_heading(12.0)
    hub.publish_heading(None)
    denied = SensorPermissionDenied("no")
    hub.publish_position_error(denied)
    assert fixes == [PositionSample(1.0, 2.0)]
    assert headings == [12.0, None]
    assert errors == [denied]

    stop_position()
    stop_heading()
    stop_heading()
    assert hub.subscriber_count == 0
    hub.publish_heading(20.0)
    assert headings == [12.0, None]


def test_missing_sensors_raise_unavailable():
    hub = SensorHub(has_position=False, has_heading=False)
    with pytest.raises(SensorUnavailable):
        hub.watch_position(lambda s: None, lambda e: None)
    with pytest.raises(SensorUnavailable):
        hub.watch_heading(lambda h: None)
