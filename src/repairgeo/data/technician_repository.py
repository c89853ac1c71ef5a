"""Technician directory loader: Supabase when configured, otherwise the technicians CSV."""

from __future__ import annotations

import csv
import functools
import logging
from collections import defaultdict
from pathlib import Path
from typing import Iterable, Optional

from ..config import settings
from ..db.supabase import get_supabase_client
from ..errors import InternalError
from ..models.domain import Coordinate, TechnicianRecord
from .parsing import coerce_bool, coerce_float, first_present, normalize_header, split_multi

logger = logging.getLogger(__name__)


def _parse_ratings(values: Iterable[object]) -> tuple[int, ...]:
    ratings: list[int] = []
    for value in values:
        rating = int(float(str(value)))
        if not 1 <= rating <= 5:
            raise ValueError(f"rating must be between 1 and 5, got {rating}")
        ratings.append(rating)
    return tuple(ratings)


def _row_to_technician(row: dict, ratings: Iterable[object] | None = None) -> TechnicianRecord:
    technician_id = str(row.get("id") or "").strip()
    if not technician_id:
        raise ValueError("technician row has no id")

    lat = coerce_float(first_present(row, "latitude", "current_latitude"))
    lon = coerce_float(first_present(row, "longitude", "current_longitude"))
    coordinate = Coordinate(latitude=lat, longitude=lon) if lat is not None and lon is not None else None

    return TechnicianRecord(
        id=technician_id,
        name=str(row.get("name") or "").strip(),
        coordinate=coordinate,
        is_active=coerce_bool(row.get("is_active"), default=True),
        is_available=coerce_bool(row.get("is_available"), default=True),
        skills=frozenset(skill.lower() for skill in split_multi(row.get("skills"))),
        ratings=_parse_ratings(ratings if ratings is not None else split_multi(row.get("ratings"))),
    )


def _load_technicians_from_database() -> tuple[TechnicianRecord, ...] | None:
    """Load active, available technicians and their ratings. Returns None if the database is not configured."""
    supabase = get_supabase_client()
    if not supabase:
        return None

    try:
        response = (
            supabase.table("technicians")
            .select("*")
            .eq("is_active", True)
            .eq("is_available", True)
            .order("id")
            .execute()
        )
        rows = response.data or []
        ratings_by_technician: dict[str, list[object]] = defaultdict(list)
        if rows:
            ids = [str(row["id"]) for row in rows if row.get("id") is not None]
            ratings_response = (
                supabase.table("technician_ratings")
                .select("technician_id, rating")
                .in_("technician_id", ids)
                .execute()
            )
            for rating_row in ratings_response.data or []:
                ratings_by_technician[str(rating_row["technician_id"])].append(rating_row["rating"])
    except Exception as exc:
        raise InternalError("Failed to read technicians from the record store") from exc

    technicians: list[TechnicianRecord] = []
    for row in rows:
        try:
            technicians.append(_row_to_technician(row, ratings_by_technician.get(str(row.get("id")), [])))
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Skipping invalid technician row {row.get('id')!r}: {e}")
    return tuple(technicians)


@functools.lru_cache(maxsize=4)
def _load_technicians_from_file(source: Optional[Path] = None) -> tuple[TechnicianRecord, ...]:
    """Load the technician directory from CSV (skills and ratings are '|' separated)."""
    csv_path = source or settings.technicians_file
    if not csv_path.exists():
        raise FileNotFoundError(f"Technician file not found: {csv_path}")

    technicians: list[TechnicianRecord] = []
    with csv_path.open(mode="r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise ValueError(f"Technician file '{csv_path}' is missing a header row.")
        for line_number, raw in enumerate(reader, start=2):
            row = {normalize_header(key): value for key, value in raw.items()}
            try:
                technicians.append(_row_to_technician(row))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping invalid technician on line {line_number} of {csv_path}: {e}")
    return tuple(technicians)


def clear_technician_cache() -> None:
    _load_technicians_from_file.cache_clear()


def get_available_technicians() -> tuple[TechnicianRecord, ...]:
    """Active and available technicians; entries without a location are still included."""
    technicians = _load_technicians_from_database()
    if technicians is None:
        logger.debug("Loading technicians from file")
        technicians = _load_technicians_from_file()
    return tuple(tech for tech in technicians if tech.is_active and tech.is_available)
