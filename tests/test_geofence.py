import pytest

from face_timeclock.geofence import NO_LOCATION_MESSAGE, GeoPoint, check_geofence, haversine_meters

OFFICE = GeoPoint(latitude=40.7128, longitude=-74.0060)


def test_zero_distance():
    assert haversine_meters(OFFICE, OFFICE) == pytest.approx(0.0)


def test_one_degree_of_latitude():
    north = GeoPoint(latitude=OFFICE.latitude + 1.0, longitude=OFFICE.longitude)
    assert haversine_meters(OFFICE, north) == pytest.approx(111_195.0, rel=1e-3)


def test_nearby_user_is_in_range():
    nearby = GeoPoint(latitude=OFFICE.latitude + 0.001, longitude=OFFICE.longitude)
    result = check_geofence(nearby, OFFICE, max_distance_meters=500.0)
    assert result.within_range is True
    assert result.distance_meters == pytest.approx(111.2, rel=1e-2)


def test_distant_user_is_out_of_range():
    far = GeoPoint(latitude=OFFICE.latitude + 0.01, longitude=OFFICE.longitude)
    result = check_geofence(far, OFFICE, max_distance_meters=500.0)
    assert result.within_range is False
    assert result.message == "You are 1112m away. Must be within 500m."


def test_business_without_location_allows_everyone():
    assert check_geofence(None, None).within_range is True


def test_missing_user_location_is_denied():
    result = check_geofence(None, OFFICE)
    assert result.within_range is False
    assert result.message == NO_LOCATION_MESSAGE
