from __future__ import annotations

from cluster.options import ClusterOptions
from engine.in_memory import InMemoryEngine
from engine.types import MapContext
from geo.aoi import BBox
from markers.demo import generate_random_markers
from markers.types import PointFeature

WORLD = BBox(min_lon=-180.0, min_lat=-90.0, max_lon=180.0, max_lat=90.0)


def test_engine_rebuilds_only_on_content_change():
    points = generate_random_markers(40, seed=1)
    engine = InMemoryEngine(points)
    first = engine.index

    same = engine.load(list(points))
    assert not same.rebuilt
    assert same.index is first

    # Same count, one marker recoloured.
    edited = [*points[:-1], PointFeature(id=39, lon=points[-1].lon, lat=points[-1].lat, tag={"color": "blue"})]
    changed = engine.load(edited)
    assert changed.rebuilt
    assert engine.index is changed.index
    assert engine.index is not first


def test_add_point_assigns_next_id_and_keeps_old_index_intact():
    engine = InMemoryEngine(generate_random_markers(10, seed=1))
    old = engine.index
    result = engine.add_point(-48.0, -16.0, {"color": "green"})
    assert result.rebuilt
    assert [p.id for p in result.index.points][-1] == 10
    assert len(old.points) == 10
    assert len(result.index.points) == 11


def test_add_point_to_empty_engine_starts_at_one():
    engine = InMemoryEngine()
    result = engine.add_point(1.0, 2.0)
    assert [p.id for p in result.index.points] == [1]


def test_get_returns_items_and_the_build_they_came_from():
    engine = InMemoryEngine(generate_random_markers(30, seed=3), options=ClusterOptions(max_zoom=14))
    res = engine.get(MapContext(dataset_id="x", bbox=WORLD, view_zoom=14.5))
    assert res.index is engine.index
    assert len(res.items) == 30


def test_concurrent_queries_against_one_build_agree():
    from concurrent.futures import ThreadPoolExecutor

    engine = InMemoryEngine(generate_random_markers(300, seed=17))
    ctx = MapContext(dataset_id="x", bbox=WORLD, view_zoom=7)
    expected = [(it.kind, it.id) for it in engine.get(ctx).items]

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: [(it.kind, it.id) for it in engine.get(ctx).items], range(32)))
    assert all(r == expected for r in results)
