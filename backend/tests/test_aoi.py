from __future__ import annotations

from geo.aoi import BBox, wrap_lon


def test_wrap_lon():
    assert wrap_lon(181.0) == -179.0
    assert wrap_lon(-181.0) == 179.0
    assert wrap_lon(10.0) == 10.0


def test_plain_box_is_one_range():
    b = BBox(min_lon=10.0, min_lat=0.0, max_lon=20.0, max_lat=5.0)
    assert b.lon_ranges() == [(10.0, 20.0)]
    assert not b.wraps
    assert b.contains(15.0, 2.0)
    assert not b.contains(25.0, 2.0)


def test_box_past_antimeridian_splits_in_two():
    b = BBox(min_lon=170.0, min_lat=-10.0, max_lon=190.0, max_lat=10.0)
    assert b.lon_ranges() == [(170.0, 180.0), (-180.0, -170.0)]
    assert b.contains(175.0, 0.0)
    assert b.contains(-175.0, 0.0)
    assert not b.contains(0.0, 0.0)


def test_explicit_west_greater_than_east_wraps():
    b = BBox(min_lon=170.0, min_lat=-10.0, max_lon=-170.0, max_lat=10.0)
    assert b.wraps
    assert b.contains(-179.0, 0.0)
    assert not b.contains(-160.0, 0.0)


def test_latitudes_are_clipped():
    b = BBox(min_lon=0.0, min_lat=-120.0, max_lon=1.0, max_lat=100.0)
    assert b.lat_range() == (-90.0, 90.0)


def test_box_starting_on_the_antimeridian_includes_both_signs():
    b = BBox(min_lon=180.0, min_lat=-1.0, max_lon=190.0, max_lat=1.0)
    assert b.lon_ranges() == [(-180.0, -170.0), (180.0, 180.0)]
    assert b.contains(180.0, 0.0)
    assert b.contains(-180.0, 0.0)
    assert not b.wraps


def test_box_ending_on_the_antimeridian_includes_both_signs():
    b = BBox(min_lon=170.0, min_lat=-1.0, max_lon=180.0, max_lat=1.0)
    assert b.lon_ranges() == [(170.0, 180.0), (-180.0, -180.0)]
    assert b.contains(-180.0, 0.0)
    assert not b.contains(-179.0, 0.0)
