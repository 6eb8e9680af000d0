"""
Pump catalog loaded once at startup from a CSV file.

Columns: model, stages, voltage, max_flow, max_head, curve. The curve column
holds ``head:flow`` pairs separated by ``;``; an empty curve means a flat
max-flow/max-head entry. A missing or malformed file is fatal unless the
caller explicitly opts into the single-model degraded catalog.
"""

import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

from pydantic import ValidationError

from pump_advisor.config import settings
from pump_advisor.schemas.pump_schema import PumpModel, flat_pump, parse_curve

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("model", "stages", "voltage", "max_flow", "max_head")


class CatalogLoadError(Exception):
    """Raised when the pump catalog cannot be loaded or validated."""


@dataclass
class PumpCatalog:
    """Ordered pump models. Iteration order is the selector's tie-break order."""

    models: list[PumpModel] = field(default_factory=list)
    degraded: bool = False
    source: str = ""

    def __iter__(self) -> Iterator[PumpModel]:
        return iter(self.models)

    def __len__(self) -> int:
        return len(self.models)

    def get(self, model: str) -> Optional[PumpModel]:
        for pump in self.models:
            if pump.model == model:
                return pump
        return None

    def flow_at(self, model: str, head: float) -> float:
        """Flow of ``model`` at ``head``.

        Raises:
            KeyError: If the model is not in the catalog.
        """
        pump = self.get(model)
        if pump is None:
            raise KeyError(f"Pump model '{model}' not in catalog")
        return pump.flow_at(head)


def conservative_default() -> PumpCatalog:
    """Single-model fallback catalog, flagged as degraded."""
    return PumpCatalog(
        models=[flat_pump("1S48V50C-DEGRADED", stages=1, max_flow=1.0, max_head=40)],
        degraded=True,
        source="conservative-default",
    )


def _parse_row(row: dict[str, str], line: int) -> PumpModel:
    try:
        return PumpModel(
            model=(row.get("model") or "").strip(),
            stages=int(row["stages"]),
            voltage=int(row["voltage"]),
            max_flow=float(row["max_flow"]),
            max_head=float(row["max_head"]),
            curve=parse_curve(row.get("curve")),
        )
    except (KeyError, TypeError, ValueError, ValidationError) as exc:
        raise CatalogLoadError(f"Invalid catalog row on line {line}: {exc}") from exc


def _read_catalog(path: Path) -> PumpCatalog:
    try:
        with path.open(newline="", encoding="utf-8") as handle:
            reader = csv.DictReader(handle)
            missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
            if missing:
                raise CatalogLoadError(f"Catalog {path} missing columns: {missing}")
            models = [_parse_row(row, line) for line, row in enumerate(reader, start=2)]
    except OSError as exc:
        raise CatalogLoadError(f"Cannot read pump catalog {path}: {exc}") from exc

    if not models:
        raise CatalogLoadError(f"Pump catalog {path} is empty")
    names = [m.model for m in models]
    if len(set(names)) != len(names):
        raise CatalogLoadError(f"Pump catalog {path} has duplicate model names")
    return PumpCatalog(models=models, source=str(path))


def load_catalog(path: Optional[str] = None, allow_degraded: Optional[bool] = None) -> PumpCatalog:
    """
    Load and validate the pump catalog.

    Raises:
        CatalogLoadError: If loading fails and degraded mode is not allowed.
    """
    path = path or settings.sizing.catalog_path
    if allow_degraded is None:
        allow_degraded = settings.sizing.allow_degraded_catalog
    try:
        catalog = _read_catalog(Path(path))
    except CatalogLoadError:
        if not allow_degraded:
            raise
        logger.exception("Pump catalog unavailable, serving DEGRADED single-model catalog")
        return conservative_default()

    logger.info("Loaded %d pump models from %s", len(catalog), path)
    return catalog


_default_catalog: Optional[PumpCatalog] = None


def get_default_catalog() -> PumpCatalog:
    """Process-wide catalog, loaded on first use."""
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = load_catalog()
    return _default_catalog
