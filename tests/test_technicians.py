import math
from pathlib import Path

import pytest

from repairgeo.config import settings
from repairgeo.data import technician_repository
from repairgeo.errors import InternalError, ValidationError
from repairgeo.models.domain import Coordinate, TechnicianRecord
from repairgeo.services import technicians as technicians_service
from repairgeo.services.geospatial import EARTH_RADIUS_KM
from repairgeo.services.technicians import (
    average_rating,
    estimate_arrival_range,
    find_nearby_technicians,
    location_score,
)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
ORIGIN = (37.7749, -122.4194)


def _north_of_origin(km: float) -> Coordinate:
    return Coordinate(latitude=ORIGIN[0] + math.degrees(km / EARTH_RADIUS_KM), longitude=ORIGIN[1])


def _technician(
    tid: str,
    km: float | None,
    *,
    active: bool = True,
    available: bool = True,
    skills: tuple[str, ...] = (),
    ratings: tuple[int, ...] = (5, 4),
) -> TechnicianRecord:
    return TechnicianRecord(
        id=tid,
        name=f"Technician {tid}",
        coordinate=_north_of_origin(km) if km is not None else None,
        is_active=active,
        is_available=available,
        skills=frozenset(skills),
        ratings=ratings,
    )


@pytest.fixture(autouse=True)
def clear_technician_cache():
    technician_repository.clear_technician_cache()
    yield
    technician_repository.clear_technician_cache()


def test_radius_includes_near_and_excludes_far():
    result = find_nearby_technicians(*ORIGIN, radius_km=25, technicians=[_technician("near", 12.5), _technician("far", 30)])

    assert [item.technician.id for item in result.technicians] == ["near"]
    assert result.technicians[0].distance_km == pytest.approx(12.5)
    assert result.total_found == 1
    assert result.search_radius == 25


def test_results_are_sorted_by_distance():
    pool = [_technician("c", 20), _technician("a", 2), _technician("d", 24.9), _technician("b", 7)]
    result = find_nearby_technicians(*ORIGIN, radius_km=25, technicians=pool)

    distances = [item.distance_km for item in result.technicians]
    assert [item.technician.id for item in result.technicians] == ["a", "b", "c", "d"]
    assert all(first <= second for first, second in zip(distances, distances[1:]))


def test_equal_distances_keep_directory_order():
    pool = [_technician("first", 5), _technician("second", 5), _technician("closer", 1)]
    result = find_nearby_technicians(*ORIGIN, technicians=pool)
    assert [item.technician.id for item in result.technicians] == ["closer", "first", "second"]


def test_unavailable_inactive_and_unlocated_technicians_are_excluded():
    pool = [
        _technician("busy", 3, available=False),
        _technician("retired", 3, active=False),
        _technician("unknown", None),
        _technician("ready", 3),
    ]
    result = find_nearby_technicians(*ORIGIN, technicians=pool)
    assert [item.technician.id for item in result.technicians] == ["ready"]


def test_rating_and_arrival_window_are_derived_per_technician():
    pool = [_technician("rated", 12.5, ratings=(5, 5, 4, 5)), _technician("new", 2, ratings=())]
    result = find_nearby_technicians(*ORIGIN, technicians=pool)
    by_id = {item.technician.id: item for item in result.technicians}

    assert by_id["rated"].average_rating == pytest.approx(4.8)
    assert by_id["rated"].estimated_arrival_minutes_range == (31, 46)
    assert by_id["rated"].estimated_arrival_time == "31-46 minutes"
    assert by_id["new"].average_rating == 0
    assert by_id["new"].location_score == 100


def test_required_skills_must_all_be_present():
    pool = [
        _technician("tv", 3, skills=("electronics",)),
        _technician("all", 4, skills=("electronics", "appliances")),
    ]
    result = find_nearby_technicians(*ORIGIN, required_skills=["Electronics", "appliances "], technicians=pool)
    assert [item.technician.id for item in result.technicians] == ["all"]


def test_default_radius_comes_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "default_search_radius_km", 10.0)
    result = find_nearby_technicians(*ORIGIN, technicians=[_technician("a", 8), _technician("b", 12)])

    assert result.search_radius == 10.0
    assert [item.technician.id for item in result.technicians] == ["a"]


def test_missing_coordinate_and_bad_radius_are_validation_errors():
    with pytest.raises(ValidationError, match="required"):
        find_nearby_technicians(37.7749, None, technicians=[])
    with pytest.raises(ValidationError, match="required"):
        find_nearby_technicians(*ORIGIN, radius_km=-1, technicians=[])


def test_helpers():
    assert average_rating([4, 3, 5]) == 4.0
    assert average_rating([]) == 0.0
    assert estimate_arrival_range(0) == (0, 15)
    assert estimate_arrival_range(10) == (25, 40)
    assert location_score(3) == 100
    assert location_score(10) == pytest.approx(77.5)
    assert location_score(20) == pytest.approx(65.0)
    assert location_score(40) == pytest.approx(50.0)
    assert location_score(500) == pytest.approx(20.0)


def test_locator_reads_directory_when_no_pool_given(monkeypatch):
    monkeypatch.setattr(technicians_service, "get_available_technicians", lambda: (_technician("db", 1),))
    result = find_nearby_technicians(*ORIGIN)
    assert [item.technician.id for item in result.technicians] == ["db"]


def test_csv_directory_parses_skills_ratings_and_missing_locations():
    technicians = technician_repository._load_technicians_from_file(DATA_DIR / "technicians.csv")
    by_id = {tech.id: tech for tech in technicians}

    assert len(technicians) == 5
    assert by_id["1"].skills == frozenset({"electronics", "appliances"})
    assert by_id["1"].ratings == (5, 5, 4, 5)
    assert by_id["4"].coordinate is None
    assert by_id["3"].is_available is False


def test_available_technicians_from_file(monkeypatch):
    monkeypatch.setattr(technician_repository, "get_supabase_client", lambda: None)
    monkeypatch.setattr(settings, "technicians_file", DATA_DIR / "technicians.csv")

    ids = [tech.id for tech in technician_repository.get_available_technicians()]
    assert ids == ["1", "2", "4", "5"]


def test_invalid_rows_are_skipped(tmp_path: Path):
    csv_path = tmp_path / "technicians.csv"
    csv_path.write_text(
        "id,name,latitude,longitude,isActive,isAvailable,skills,ratings\n"
        "1,Good,37.70,-122.40,yes,yes,hvac,5|4\n"
        "2,Bad Rating,37.70,-122.40,yes,yes,hvac,9\n"
        ",No Id,37.70,-122.40,yes,yes,hvac,5\n",
        encoding="utf-8",
    )
    technicians = technician_repository._load_technicians_from_file(csv_path)
    assert [tech.id for tech in technicians] == ["1"]


class _Response:
    def __init__(self, data):
        self.data = data


class _Query:
    def __init__(self, rows):
        self.rows = rows
        self.filters = []

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def in_(self, column, values):
        self.filters.append((column, tuple(values)))
        return self

    def order(self, column):
        return self

    def execute(self):
        return _Response(self.rows)


class _FakeSupabase:
    def __init__(self, tables):
        self.tables = tables
        self.queries = {}

    def table(self, name):
        query = _Query(self.tables[name])
        self.queries[name] = query
        return query


def test_database_directory_joins_ratings(monkeypatch):
    fake = _FakeSupabase(
        {
            "technicians": [
                {"id": 7, "name": "Ana", "latitude": 37.78, "longitude": -122.41, "is_active": True,
                 "is_available": True, "skills": ["Plumbing"]},
            ],
            "technician_ratings": [
                {"technician_id": 7, "rating": 5},
                {"technician_id": 7, "rating": 4},
            ],
        }
    )
    monkeypatch.setattr(technician_repository, "get_supabase_client", lambda: fake)

    technicians = technician_repository.get_available_technicians()

    assert len(technicians) == 1
    assert technicians[0].id == "7"
    assert technicians[0].ratings == (5, 4)
    assert technicians[0].skills == frozenset({"plumbing"})
    assert ("is_available", True) in fake.queries["technicians"].filters


def test_database_failure_surfaces_as_internal_error(monkeypatch):
    class Broken:
        def table(self, name):
            raise TimeoutError("read timed out")

    monkeypatch.setattr(technician_repository, "get_supabase_client", lambda: Broken())
    with pytest.raises(InternalError):
        technician_repository.get_available_technicians()
