import json
import logging

import pytest

from configuration import StorageConfig, StorageFlags
from geometry import Point
from registry import CHANNEL_API, CHANNEL_LISTENER, SPAWNERS, TARGETS, PointRegistry
from storage import MemoryStore, StorageScopes, encode_points, storage_key


@pytest.fixture
def scopes():
    return StorageScopes(MemoryStore(), MemoryStore())


def storage_config(storage_type='localStorage', api=(False, False), listener=(False, False)):
    return StorageConfig(
        storage_type=storage_type,
        store_new_positions=StorageFlags(*api),
        store_listeners_positions=StorageFlags(*listener),
    )


def test_load_uses_initial_positions_without_storage():
    registry = PointRegistry('c')
    registry.load([Point(1, 2)], [Point(3, 4), Point(5, 6)])
    assert registry.spawners == (Point(1, 2),)
    assert registry.targets == (Point(3, 4), Point(5, 6))


def test_persisted_positions_win_over_initial_ones(scopes):
    scopes.durable.set(storage_key('c', TARGETS), encode_points([Point(9, 9)]))
    registry = PointRegistry('c', scopes, storage_config())
    registry.load([Point(1, 1)], [Point(2, 2)])
    assert registry.targets == (Point(9, 9),)
    assert registry.spawners == (Point(1, 1),)


def test_session_value_shadows_the_durable_one(scopes):
    scopes.durable.set(storage_key('c', SPAWNERS), encode_points([Point(1, 1)]))
    scopes.session.set(storage_key('c', SPAWNERS), encode_points([Point(2, 2)]))
    registry = PointRegistry('c', scopes)
    registry.load()
    assert registry.spawners == (Point(2, 2),)


def test_malformed_persisted_value_falls_back_with_a_warning(scopes, caplog):
    scopes.durable.set(storage_key('c', TARGETS), 'not json')
    registry = PointRegistry('c', scopes, storage_config())
    with caplog.at_level(logging.WARNING):
        registry.load((), [Point(7, 8)])
    assert registry.targets == (Point(7, 8),)
    assert "Ignoring stored targets" in caplog.text


def test_keys_are_scoped_per_canvas(scopes):
    scopes.durable.set(storage_key('other', TARGETS), encode_points([Point(9, 9)]))
    registry = PointRegistry('c', scopes, storage_config())
    registry.load((), [Point(1, 1)])
    assert registry.targets == (Point(1, 1),)


def test_load_keeps_the_list_objects(scopes):
    registry = PointRegistry('c', scopes)
    live = registry.target_list
    registry.load((), [Point(1, 1)])
    assert registry.target_list is live
    assert live == [Point(1, 1)]


@pytest.mark.parametrize("channel, api, listener, persisted", [
    (CHANNEL_API, (False, True), (False, False), True),
    (CHANNEL_API, (False, False), (False, True), False),
    (CHANNEL_LISTENER, (False, False), (False, True), True),
    (CHANNEL_LISTENER, (False, True), (False, False), False),
])
def test_additions_persist_according_to_the_channel_flags(scopes, channel, api, listener, persisted):
    registry = PointRegistry('c', scopes, storage_config(api=api, listener=listener))
    registry.add_target(Point(3, 4), channel)
    stored = scopes.durable.get(storage_key('c', TARGETS))
    if persisted:
        assert json.loads(stored) == [{'x': 3, 'y': 4}]
    else:
        assert stored is None
    assert registry.targets == (Point(3, 4),)


def test_session_storage_type_writes_to_the_session_scope(scopes):
    registry = PointRegistry('c', scopes, storage_config('sessionStorage', api=(True, False)))
    registry.add_spawner(Point(1, 2))
    assert scopes.session.get(storage_key('c', SPAWNERS)) is not None
    assert scopes.durable.get(storage_key('c', SPAWNERS)) is None


def test_addition_persists_the_whole_list(scopes):
    registry = PointRegistry('c', scopes, storage_config(api=(True, True)))
    registry.load([Point(0, 0)], ())
    registry.add_spawner(Point(1, 1))
    stored = json.loads(scopes.durable.get(storage_key('c', SPAWNERS)))
    assert stored == [{'x': 0, 'y': 0}, {'x': 1, 'y': 1}]


def test_remove_at_drops_every_matching_point(scopes):
    registry = PointRegistry('c', scopes, storage_config(api=(False, True)))
    registry.load((), [Point(1, 1), Point(2, 2), Point(1, 1)])
    assert registry.remove_target_at(Point(1, 1)) == 2
    assert registry.targets == (Point(2, 2),)
    assert json.loads(scopes.durable.get(storage_key('c', TARGETS))) == [{'x': 2, 'y': 2}]


def test_remove_at_without_a_match_is_a_no_op(scopes):
    registry = PointRegistry('c', scopes, storage_config(api=(True, True)))
    registry.load([Point(1, 1)], ())
    assert registry.remove_spawner_at((5, 5)) == 0
    assert registry.spawners == (Point(1, 1),)
    assert scopes.durable.get(storage_key('c', SPAWNERS)) is None


def test_reset_storage_clears_both_scopes(scopes):
    scopes.session.set('a', '1')
    scopes.durable.set('b', '2')
    registry = PointRegistry('c', scopes)
    registry.reset_storage()
    assert len(scopes.session) == 0
    assert len(scopes.durable) == 0


def test_export_labels_each_collection():
    registry = PointRegistry('c')
    registry.load([Point(1, 2)], [Point(3, 4)])
    exported = json.loads(registry.export())
    assert exported == {
        'spawners': [{'x': 1, 'y': 2}],
        'targets': [{'x': 3, 'y': 4}],
    }


def test_unknown_collection_is_rejected():
    registry = PointRegistry('c')
    with pytest.raises(ValueError):
        registry.add('obstacles', Point(0, 0))
