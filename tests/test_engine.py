import json

import pytest

from engine import EntropyParticles
from exceptions import ConfigurationError, NotInitializedError
from geometry import Point, distance
from loop import FrameScheduler
from storage import MemoryStore, StorageScopes

from conftest import RecordingSink, RecordingSurface, make_config


def make_engine(**kwargs):
    kwargs.setdefault('surface_factory', RecordingSurface)
    kwargs.setdefault('seed', 3)
    kwargs.setdefault('clock', lambda: 0.0)
    return EntropyParticles(**kwargs)


def run_frames(scheduler, count, start=0):
    for i in range(start, start + count):
        scheduler.run_pending(i * 1000 / 60)


def persisted_config(host=None):
    return make_config(
        canvas={'appendTo': host if host is not None else []},
        storage={
            'storageType': 'localStorage',
            'storeNewPositions': {'spawners': True, 'targets': True},
            'storeListenersPositions': {'spawners': True, 'targets': True},
        },
    )


def test_accessors_before_configuration():
    engine = make_engine()
    assert engine.config is None
    assert engine.targets == ()
    assert engine.spawners == ()
    assert engine.particles == ()
    assert not engine.is_running
    with pytest.raises(NotInitializedError):
        engine.surface
    with pytest.raises(NotInitializedError):
        engine.start()
    with pytest.raises(NotInitializedError):
        engine.add_target((1, 1))
    engine.pause()


def test_apply_config_appends_the_surface_to_its_host():
    host = []
    engine = make_engine()
    engine.apply_config(make_config(canvas={'appendTo': host}))
    assert host == [engine.surface]
    assert engine.surface.config.id == 'test'
    assert not engine.is_running


def test_invalid_configuration_leaves_the_engine_untouched():
    host = []
    scheduler = FrameScheduler()
    engine = make_engine(scheduler=scheduler)
    engine.apply_config(make_config(canvas={'appendTo': host}))
    engine.start()
    config, surface = engine.config, engine.surface

    broken = make_config()
    del broken['canvas']['backgroundColor']
    with pytest.raises(ConfigurationError):
        engine.apply_config(broken)

    assert engine.config is config
    assert engine.surface is surface
    assert host == [surface]
    assert engine.is_running
    assert len(scheduler) == 1


def test_reapplying_replaces_the_surface():
    host = []
    engine = make_engine()
    engine.apply_config(make_config(canvas={'appendTo': host}))
    first = engine.surface
    engine.apply_config(make_config(canvas={'appendTo': host}))
    assert host == [engine.surface]
    assert engine.surface is not first


def test_start_and_pause_are_idempotent():
    scheduler = FrameScheduler()
    engine = make_engine(scheduler=scheduler)
    engine.apply_config(make_config(particles={'quantity': 3}))
    engine.start()
    engine.start()
    assert len(scheduler) == 1

    run_frames(scheduler, 5)
    frames = engine.pool.frames
    assert frames == 5

    engine.pause()
    engine.pause()
    run_frames(scheduler, 5, start=5)
    assert engine.pool.frames == frames
    assert not engine.is_running


def test_particles_converge_on_the_target():
    scheduler = FrameScheduler()
    engine = make_engine(scheduler=scheduler)
    engine.apply_config(make_config(
        particles={
            'quantity': 1, 'velocity': 10, 'spreadFactor': 0, 'lifespan': 10000,
            'curvature': {'curve': 0},
        },
        initialPositions={'spawners': [{'x': 0, 'y': 0}], 'targets': [{'x': 100, 'y': 0}]},
    ))
    engine.start()
    run_frames(scheduler, 60)

    (particle,) = engine.particles
    assert distance(particle.position, Point(100, 0)) <= 10
    assert particle.y == pytest.approx(0)


def test_api_additions_persist_across_engines():
    scopes = StorageScopes(MemoryStore(), MemoryStore())
    first = make_engine(scopes=scopes)
    first.apply_config(persisted_config())
    first.add_target((5, 6))
    first.add_spawner({'x': 1, 'y': 2})

    second = make_engine(scopes=scopes)
    second.apply_config(persisted_config())
    assert second.targets == (Point(5, 6),)
    assert second.spawners == (Point(1, 2),)


def test_persisted_positions_win_over_initial_positions():
    scopes = StorageScopes(MemoryStore(), MemoryStore())
    first = make_engine(scopes=scopes)
    first.apply_config(persisted_config())
    first.add_target(Point(5, 6))

    config = persisted_config()
    config['initialPositions'] = {'targets': [{'x': 50, 'y': 50}]}
    second = make_engine(scopes=scopes)
    second.apply_config(config)
    assert second.targets == (Point(5, 6),)


def test_removals_return_counts_and_persist():
    scopes = StorageScopes(MemoryStore(), MemoryStore())
    engine = make_engine(scopes=scopes)
    engine.apply_config(persisted_config())
    engine.add_target((5, 6))
    engine.add_target((7, 8))
    assert engine.remove_target_at((5, 6)) == 1
    assert engine.remove_spawner_at((5, 6)) == 0

    again = make_engine(scopes=scopes)
    again.apply_config(persisted_config())
    assert again.targets == (Point(7, 8),)


def test_reset_key_clears_storage_and_reloads_running_engine():
    scheduler = FrameScheduler()
    scopes = StorageScopes(MemoryStore(), MemoryStore())
    host = []
    engine = make_engine(scheduler=scheduler, scopes=scopes)
    config = persisted_config(host)
    config['listeners'] = {'resetPositions': 'r'}
    config['initialPositions'] = {'targets': [{'x': 1, 'y': 1}]}
    engine.apply_config(config)
    engine.add_target((9, 9))
    engine.start()
    run_frames(scheduler, 3)
    old_pool = engine.pool

    engine.input.key_down('r')

    assert len(scopes.durable) == 0
    assert engine.targets == (Point(1, 1),)
    assert engine.pool is not old_pool
    assert engine.is_running
    assert len(scheduler) == 1
    assert host == [engine.surface]


def test_reload_keeps_a_paused_engine_paused():
    scheduler = FrameScheduler()
    engine = make_engine(scheduler=scheduler)
    engine.apply_config(make_config())
    engine.reload()
    assert not engine.is_running
    assert len(scheduler) == 0


def test_download_key_exports_both_registries():
    sink = RecordingSink()
    engine = make_engine(download_sink=sink)
    config = make_config(
        listeners={'downloadPositions': 'd'},
        initialPositions={'spawners': [{'x': 1, 'y': 2}], 'targets': [{'x': 3, 'y': 4}]},
    )
    engine.apply_config(config)
    engine.input.key_down('d')
    exported = json.loads(sink.files['entropy-particles.json'])
    assert exported == {'spawners': [{'x': 1, 'y': 2}], 'targets': [{'x': 3, 'y': 4}]}


def test_same_seed_gives_the_same_particles():
    def positions():
        scheduler = FrameScheduler()
        engine = make_engine(scheduler=scheduler, seed=11)
        engine.apply_config(make_config(particles={'quantity': 10}))
        engine.start()
        run_frames(scheduler, 10)
        return [p.position for p in engine.particles]

    assert positions() == positions()
