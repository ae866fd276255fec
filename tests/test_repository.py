import json
from pathlib import Path

import pytest

from location_sim.config import Settings
from location_sim.core.models import Coordinate, RouteSimulation, SpeedMode
from location_sim.store import keys
from location_sim.store.file import FileStore
from location_sim.store.memory import MemoryStore
from location_sim.store.redis_store import RedisStore
from location_sim.store.repository import SimulationRepository, build_store


class DummyPipeline:
    def __init__(self, client):
        self.client = client
        self.pending = {}

    def set(self, key, value):
        self.pending[key] = value

    def execute(self):
        self.client.data.update(self.pending)
        self.client.executed += 1


class DummyRedis:
    def __init__(self):
        self.data = {}
        self.executed = 0

    def get(self, key):
        return self.data.get(key)

    def pipeline(self, transaction=True):
        assert transaction is True
        return DummyPipeline(self)

    def delete(self, *keys):
        for k in keys:
            self.data.pop(k, None)


class BrokenRedis:
    def get(self, key):
        raise ConnectionError("redis down")

    def pipeline(self, transaction=True):
        raise ConnectionError("redis down")

    def delete(self, *keys):
        raise ConnectionError("redis down")


def _sample_route() -> RouteSimulation:
    return RouteSimulation(
        waypoints=[Coordinate(lat=51.5, lon=-0.13), Coordinate(lat=51.51, lon=-0.12)],
        speed_mode=SpeedMode.CUSTOM,
        custom_speed_mps=5.0,
        is_active=True,
        current_segment_index=1,
    )


# ── Defaults and malformed data ──────────────────────────────────────────

def test_empty_store_yields_defaults(repo):
    assert repo.load_route_simulation() == RouteSimulation()
    assert repo.load_fixed_point() is None


def test_route_round_trip(repo):
    route = _sample_route()
    repo.save_route_simulation(route)
    assert repo.load_route_simulation() == route


@pytest.mark.parametrize(
    "blob",
    [
        "{not json",
        json.dumps({"waypoints": [{"lat": 200, "lon": 0}]}),
        json.dumps({"speed_mode": "Teleport"}),
        json.dumps(["a", "list"]),
    ],
)
def test_malformed_route_falls_back_to_defaults(blob):
    repo = SimulationRepository(MemoryStore({keys.route_simulation(): blob}))
    assert repo.load_route_simulation() == RouteSimulation()


def test_fixed_point_round_trip_and_clear(repo):
    tokyo = Coordinate(lat=35.702069, lon=139.775327)
    repo.save_fixed_point(tokyo)
    assert repo.load_fixed_point() == tokyo

    repo.save_fixed_point(None)
    assert repo.load_fixed_point() is None
    assert repo.store.get(keys.fixed_latitude()) is None
    assert repo.store.get(keys.fixed_longitude()) is None


@pytest.mark.parametrize("lat,lon", [(0.0, 0.0), (0.0, 12.0), (12.0, 0.0)])
def test_zero_component_means_unset(repo, lat, lon):
    repo.save_fixed_point(Coordinate(lat=lat, lon=lon))
    assert repo.load_fixed_point() is None


def test_malformed_fixed_point_is_ignored():
    store = MemoryStore({keys.fixed_latitude(): "north", keys.fixed_longitude(): "1.0"})
    assert SimulationRepository(store).load_fixed_point() is None

    store = MemoryStore({keys.fixed_latitude(): "95.0", keys.fixed_longitude(): "1.0"})
    assert SimulationRepository(store).load_fixed_point() is None


def test_key_prefix_is_applied():
    store = MemoryStore()
    SimulationRepository(store, key_prefix="dev").save_fixed_point(Coordinate(lat=1.5, lon=2.5))
    assert store.get("dev:fixed:lat") == "1.5"
    assert store.get("dev:fixed:lon") == "2.5"
    assert store.get(keys.fixed_latitude()) is None


# ── File store ───────────────────────────────────────────────────────────

def test_file_store_persists_across_instances(tmp_path: Path):
    path = tmp_path / "state" / "sim.json"
    SimulationRepository(FileStore(path)).save_route_simulation(_sample_route())
    SimulationRepository(FileStore(path)).save_fixed_point(Coordinate(lat=19.017615, lon=72.856164))

    reloaded = SimulationRepository(FileStore(path))
    assert reloaded.load_route_simulation() == _sample_route()
    assert reloaded.load_fixed_point() == Coordinate(lat=19.017615, lon=72.856164)
    # no temp files left behind by the atomic rename
    assert [p.name for p in path.parent.iterdir()] == ["sim.json"]


def test_file_store_corrupt_file_reads_as_empty(tmp_path: Path):
    path = tmp_path / "sim.json"
    path.write_text("]]] garbage", encoding="utf-8")
    repo = SimulationRepository(FileStore(path))
    assert repo.load_route_simulation() == RouteSimulation()

    # writing replaces the corrupt document
    repo.save_fixed_point(Coordinate(lat=1.0, lon=1.0))
    assert json.loads(path.read_text(encoding="utf-8")) == {
        keys.fixed_latitude(): "1.0",
        keys.fixed_longitude(): "1.0",
    }


def test_file_store_delete_missing_keys_does_not_create_file(tmp_path: Path):
    path = tmp_path / "sim.json"
    FileStore(path).delete("a", "b")
    assert not path.exists()


# ── Redis store ──────────────────────────────────────────────────────────

def test_redis_store_writes_fixed_point_in_one_transaction():
    client = DummyRedis()
    repo = SimulationRepository(RedisStore(client=client))
    repo.save_fixed_point(Coordinate(lat=-22.903539, lon=-43.209587))
    assert client.executed == 1
    assert repo.load_fixed_point() == Coordinate(lat=-22.903539, lon=-43.209587)

    repo.save_fixed_point(None)
    assert client.data == {}


def test_redis_store_decodes_bytes():
    client = DummyRedis()
    client.data[keys.route_simulation()] = _sample_route().model_dump_json().encode()
    assert SimulationRepository(RedisStore(client=client)).load_route_simulation() == _sample_route()


def test_redis_failures_degrade_to_defaults():
    repo = SimulationRepository(RedisStore(client=BrokenRedis()))
    repo.save_route_simulation(_sample_route())
    repo.save_fixed_point(Coordinate(lat=1.0, lon=1.0))
    repo.save_fixed_point(None)
    assert repo.load_route_simulation() == RouteSimulation()
    assert repo.load_fixed_point() is None


def test_redis_disabled_without_url():
    store = RedisStore("")
    store.set_many({"k": "v"})
    assert store.get("k") is None


def test_redis_unreachable_falls_back(monkeypatch):
    import redis

    def boom(*args, **kwargs):
        raise redis.ConnectionError("refused")

    monkeypatch.setattr(redis.Redis, "from_url", classmethod(lambda cls, *a, **k: boom()))
    store = RedisStore("redis://localhost:1/0")
    assert store.get("k") is None
    store.set_many({"k": "v"})


# ── Backend selection ────────────────────────────────────────────────────

def test_build_store_picks_backend(tmp_path: Path):
    assert isinstance(build_store(Settings(store_backend="memory")), MemoryStore)
    file_store = build_store(Settings(store_backend="file", state_file=tmp_path / "s.json"))
    assert isinstance(file_store, FileStore)
    assert file_store.path == tmp_path / "s.json"
    assert isinstance(build_store(Settings(store_backend="redis", redis_url="")), RedisStore)
