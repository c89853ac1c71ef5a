"""Service area loader with database-first approach, falling back to a CSV or Excel file."""

from __future__ import annotations

import csv
import functools
import logging
from pathlib import Path
from typing import Iterable, Optional

from openpyxl import load_workbook

from ..config import settings
from ..db.supabase import get_supabase_client
from ..errors import InternalError
from ..models.domain import Coordinate, ServiceArea
from .parsing import coerce_bool, coerce_float, first_present, normalize_header

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"name", "radius_km"}


def _row_to_service_area(row: dict, fallback_id: str) -> ServiceArea:
    lat = coerce_float(first_present(row, "center_latitude", "latitude"))
    lon = coerce_float(first_present(row, "center_longitude", "longitude"))
    radius = coerce_float(row.get("radius_km"))
    if lat is None or lon is None or radius is None:
        raise ValueError("service area row is missing center coordinates or radius")
    if radius <= 0:
        raise ValueError(f"service area radius must be positive, got {radius}")
    organization_id = row.get("organization_id")
    return ServiceArea(
        id=str(row.get("id") or fallback_id).strip(),
        name=str(row.get("name") or "").strip(),
        center=Coordinate(latitude=lat, longitude=lon),
        radius_km=radius,
        organization_id=str(organization_id).strip() if organization_id not in (None, "") else None,
        is_active=coerce_bool(row.get("is_active"), default=True),
    )


def _rows_to_service_areas(rows: Iterable[dict], source: str) -> tuple[ServiceArea, ...]:
    areas: list[ServiceArea] = []
    for index, row in enumerate(rows, start=1):
        try:
            areas.append(_row_to_service_area(row, fallback_id=str(index)))
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Skipping invalid service area row {index} in {source}: {e}")
    return tuple(areas)


def _load_service_areas_from_database(organization_id: Optional[str] = None) -> tuple[ServiceArea, ...] | None:
    """Load active service areas from Supabase. Returns None if the database is not configured."""
    supabase = get_supabase_client()
    if not supabase:
        return None

    try:
        query = supabase.table("service_areas").select("*").eq("is_active", True)
        if organization_id:
            query = query.eq("organization_id", organization_id)
        response = query.order("id").execute()
    except Exception as exc:
        raise InternalError("Failed to read service areas from the record store") from exc

    return _rows_to_service_areas(response.data or [], source="database")


def _read_csv_rows(path: Path) -> list[dict]:
    with path.open(mode="r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise ValueError(f"Service area file '{path}' is missing a header row.")
        return [{normalize_header(key): value for key, value in row.items()} for row in reader]


def _read_workbook_rows(path: Path) -> list[dict]:
    wb = load_workbook(path, data_only=True, read_only=True)
    try:
        sheet = wb.active
        rows = sheet.iter_rows(min_row=1, values_only=True)
        header = next(rows, None)
        if header is None:
            raise ValueError(f"Service area workbook '{path}' is empty.")
        columns = [normalize_header(name) for name in header]
        return [dict(zip(columns, row)) for row in rows if any(cell is not None for cell in row)]
    finally:
        wb.close()


@functools.lru_cache(maxsize=4)
def _load_service_areas_from_file(source: Optional[Path] = None) -> tuple[ServiceArea, ...]:
    """Load every service area from a CSV file or an Excel workbook."""
    path = source or settings.service_areas_file
    if not path.exists():
        raise FileNotFoundError(f"Service area file not found: {path}")

    if path.suffix.lower() in {".xlsx", ".xlsm"}:
        rows = _read_workbook_rows(path)
    else:
        rows = _read_csv_rows(path)

    if rows:
        missing_columns = REQUIRED_COLUMNS - set(rows[0])
        if missing_columns:
            raise ValueError(f"Service area file missing columns: {', '.join(sorted(missing_columns))}")
    return _rows_to_service_areas(rows, source=str(path))


def clear_service_area_cache() -> None:
    _load_service_areas_from_file.cache_clear()


def get_active_service_areas(organization_id: Optional[str] = None) -> tuple[ServiceArea, ...]:
    """Get active service areas from the database first, falling back to the data file."""
    db_areas = _load_service_areas_from_database(organization_id)
    if db_areas is not None:
        return tuple(area for area in db_areas if area.is_active)

    logger.debug("Loading service areas from file")
    return tuple(
        area
        for area in _load_service_areas_from_file()
        if area.is_active and (organization_id is None or area.organization_id == organization_id)
    )
