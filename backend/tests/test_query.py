from __future__ import annotations

from cluster.expand import expand_cluster
from cluster.index import build_cluster_index
from cluster.options import ClusterOptions
from cluster.query import query_tile, query_viewport
from geo.aoi import BBox
from geo.region import region_to_bbox
from geo.tiles import lonlat_to_tile
from markers.demo import generate_random_markers
from markers.types import PointFeature, Viewport

WORLD = BBox(min_lon=-180.0, min_lat=-90.0, max_lon=180.0, max_lat=90.0)


def test_empty_index_returns_nothing():
    index = build_cluster_index([])
    for z in (0, 5, 16, 22):
        assert query_viewport(index, Viewport(bbox=WORLD, zoom=z)) == []


def test_single_point_is_always_a_point_item():
    index = build_cluster_index([PointFeature(id=1, lon=10.0, lat=10.0, tag="x")])
    box = BBox(min_lon=9.0, min_lat=9.0, max_lon=11.0, max_lat=11.0)
    for z in range(0, 20):
        items = query_viewport(index, Viewport(bbox=box, zoom=z))
        assert [(it.kind, it.id) for it in items] == [("point", 1)]
        assert items[0].tag == "x"


def test_two_close_points_merge_at_low_zoom():
    # ~10 metres apart.
    a = PointFeature(id=1, lon=-48.0, lat=-16.0, tag={"color": "red"})
    b = PointFeature(id=2, lon=-48.0 + 0.0000935, lat=-16.0, tag={"color": "green"})
    index = build_cluster_index([a, b], ClusterOptions(radius_px=75, max_zoom=20))

    items = query_viewport(index, Viewport(bbox=WORLD, zoom=1))
    assert len(items) == 1
    (item,) = items
    assert item.kind == "cluster"
    assert item.point_count == 2
    assert [p.id for p in expand_cluster(index, item.id)] == [1, 2]

    top = query_viewport(index, Viewport(bbox=WORLD, zoom=20))
    assert [(it.kind, it.id) for it in top] == [("point", 1), ("point", 2)]


def test_query_is_idempotent():
    index = build_cluster_index(generate_random_markers(300, seed=5))
    vp = Viewport(bbox=BBox(min_lon=-48.6, min_lat=-16.4, max_lon=-47.4, max_lat=-15.6), zoom=9)
    first = query_viewport(index, vp)
    second = query_viewport(index, vp)
    assert [(it.kind, it.id) for it in first] == [(it.kind, it.id) for it in second]


def test_fractional_zoom_uses_floor_level():
    index = build_cluster_index(generate_random_markers(200, seed=9))
    a = query_viewport(index, Viewport(bbox=WORLD, zoom=8.0))
    b = query_viewport(index, Viewport(bbox=WORLD, zoom=8.9))
    assert [it.id for it in a] == [it.id for it in b]


def test_zoom_outside_range_is_clamped():
    index = build_cluster_index(generate_random_markers(50, seed=2), ClusterOptions(min_zoom=3, max_zoom=12))
    assert [it.id for it in query_viewport(index, Viewport(bbox=WORLD, zoom=0))] == [
        it.id for it in query_viewport(index, Viewport(bbox=WORLD, zoom=3))
    ]
    top = query_viewport(index, Viewport(bbox=WORLD, zoom=40))
    assert len(top) == 50


def test_coverage_every_point_reachable():
    points = generate_random_markers(250, seed=21)
    index = build_cluster_index(points)
    for z in range(0, 17):
        seen: list[int] = []
        for it in query_viewport(index, Viewport(bbox=WORLD, zoom=z)):
            if it.kind == "point":
                seen.append(it.id)
            else:
                members = expand_cluster(index, it.id)
                assert len(members) == it.point_count
                seen.extend(p.id for p in members)
        assert sorted(seen) == [p.id for p in points]


def test_sub_box_reaches_every_point_of_items_centred_inside():
    points = generate_random_markers(300, seed=17)
    index = build_cluster_index(points)
    box = BBox(min_lon=-48.5, min_lat=-16.5, max_lon=-47.5, max_lat=-15.5)

    def leaves(it) -> set[int]:
        if it.kind == "point":
            return {it.id}
        return {p.id for p in expand_cluster(index, it.id)}

    for z in range(0, 17):
        returned = query_viewport(index, Viewport(bbox=box, zoom=z))
        assert all(box.contains(it.lon, it.lat) for it in returned)
        reachable: set[int] = set()
        for it in returned:
            reachable |= leaves(it)

        expected: set[int] = set()
        for it in index.level_for_zoom(z).items:
            if box.contains(it.lon, it.lat):
                expected |= leaves(it)
        assert reachable == expected

    # At the finest level every point inside the box comes back on its own.
    inside = {p.id for p in points if box.contains(p.lon, p.lat)}
    assert inside
    assert {it.id for it in query_viewport(index, Viewport(bbox=box, zoom=16))} == inside


def test_monotonic_declustering():
    index = build_cluster_index(generate_random_markers(400, seed=13))
    counts = [len(query_viewport(index, Viewport(bbox=WORLD, zoom=z))) for z in range(0, 17)]
    assert counts == sorted(counts)
    assert counts[-1] == 400


def test_bbox_filters_by_position():
    west = PointFeature(id=1, lon=-10.0, lat=0.0)
    east = PointFeature(id=2, lon=10.0, lat=0.0)
    index = build_cluster_index([west, east], ClusterOptions(max_zoom=16))
    box = BBox(min_lon=5.0, min_lat=-5.0, max_lon=15.0, max_lat=5.0)
    assert [it.id for it in query_viewport(index, Viewport(bbox=box, zoom=16))] == [2]


def test_antimeridian_box_matches_both_sides():
    pts = [
        PointFeature(id=1, lon=179.5, lat=0.0),
        PointFeature(id=2, lon=-179.5, lat=0.0),
        PointFeature(id=3, lon=0.0, lat=0.0),
    ]
    index = build_cluster_index(pts)
    box = BBox(min_lon=179.0, min_lat=-1.0, max_lon=181.0, max_lat=1.0)
    assert [it.id for it in query_viewport(index, Viewport(bbox=box, zoom=16))] == [1, 2]


def test_points_on_the_antimeridian_match_from_either_side():
    pts = [
        PointFeature(id=1, lon=180.0, lat=0.0),
        PointFeature(id=2, lon=-180.0, lat=0.5),
        PointFeature(id=3, lon=0.0, lat=0.0),
    ]
    index = build_cluster_index(pts)
    east_of = BBox(min_lon=180.0, min_lat=-1.0, max_lon=190.0, max_lat=1.0)
    west_of = BBox(min_lon=170.0, min_lat=-1.0, max_lon=180.0, max_lat=1.0)
    assert [it.id for it in query_viewport(index, Viewport(bbox=east_of, zoom=16))] == [1, 2]
    assert [it.id for it in query_viewport(index, Viewport(bbox=west_of, zoom=16))] == [1, 2]


def test_full_world_region_matches_every_longitude():
    pts = [PointFeature(id=i, lon=-170.0 + i * 40.0, lat=0.0) for i in range(9)]
    index = build_cluster_index(pts)
    box = region_to_bbox({"lat": 0.0, "lng": 179.0}, lat_delta=1.0, lng_delta=-2.0)
    items = query_viewport(index, Viewport(bbox=box, zoom=16))
    assert [it.id for it in items] == list(range(9))


def test_zero_area_box_is_valid():
    index = build_cluster_index([PointFeature(id=1, lon=1.0, lat=1.0)])
    box = region_to_bbox((50.0, 50.0), 0.0, 0.0)
    assert query_viewport(index, Viewport(bbox=box, zoom=5)) == []


def test_query_tile_returns_items_inside_the_tile():
    points = generate_random_markers(100, seed=4)
    index = build_cluster_index(points)
    p = points[0]
    x, y = lonlat_to_tile(16, p.lon, p.lat)
    ids = [it.id for it in query_tile(index, 16, x, y)]
    assert p.id in ids
