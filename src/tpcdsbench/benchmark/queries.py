"""TPC-DS query catalog for tpcdsbench.

The 103 TPC-DS queries (q1..q99 plus the ``a``/``b`` variants of q14,
q23, q24 and q39) ship as SQL templates under ``benchmark/sql``.

Two catalog tiers exist, selected by dataset scale:

- tier A (``scale_in_gb <= 3000``) -- substitution parameters qualified
  for the 3 TB dataset
- tier B (``scale_in_gb > 3000``) -- parameters qualified for 10 TB

Only a handful of templates carry scale-dependent placeholders:

- ``{market}`` -- store market id (q24a, q24b)
- ``{counties}`` -- store county list (q34, q73)
- ``{cities}`` -- store city list (q46, q68)
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType

from tpcdsbench._constants import TIER_A_MAX_SCALE_GB
from tpcdsbench._resources import get_queries_dir

_QUERY_FILE_RE = re.compile(r"^q\d+[ab]?$")


@dataclass(frozen=True)
class CatalogTier:
    """Substitution parameters for one catalog tier."""

    name: str
    market: int
    counties: tuple[str, ...]
    cities: tuple[str, ...]

    def params(self) -> dict[str, str]:
        return {
            "market": str(self.market),
            "counties": _sql_list(self.counties),
            "cities": _sql_list(self.cities),
        }


def _sql_list(values: tuple[str, ...]) -> str:
    return ", ".join("'" + v.replace("'", "''") + "'" for v in values)


TIER_3TB = CatalogTier(
    name="3tb",
    market=8,
    counties=(
        "Williamson County",
        "Williamson County",
        "Williamson County",
        "Williamson County",
    ),
    cities=("Fairview", "Midway"),
)

TIER_10TB = CatalogTier(
    name="10tb",
    market=10,
    counties=(
        "Williamson County",
        "Franklin Parish",
        "Bronx County",
        "Orange County",
    ),
    cities=("Midway", "Fairview", "Oak Grove", "Five Points"),
)


# ---------------------------------------------------------------------------
# Template loading
# ---------------------------------------------------------------------------


def load_templates(queries_dir: Path | None = None) -> dict[str, str]:
    """Read every ``q*.sql`` template, keyed by query name.

    Raises:
        FileNotFoundError: If the template directory is missing.
    """
    directory = queries_dir or get_queries_dir()
    if not directory.is_dir():
        raise FileNotFoundError(f"Query template directory not found: {directory}")

    templates: dict[str, str] = {}
    for path in sorted(directory.glob("q*.sql")):
        if _QUERY_FILE_RE.match(path.stem):
            templates[path.stem] = path.read_text().strip()
    return templates


def render_catalog(templates: Mapping[str, str], tier: CatalogTier) -> dict[str, str]:
    """Fill tier parameters into the templates that need them."""
    params = tier.params()
    catalog: dict[str, str] = {}
    for name, sql in templates.items():
        # Unparameterised templates are used verbatim
        if any("{" + key + "}" in sql for key in params):
            sql = sql.format(**params)
        catalog[name] = sql
    return catalog


@lru_cache(maxsize=None)
def _catalog_for(tier: CatalogTier) -> Mapping[str, str]:
    return MappingProxyType(render_catalog(load_templates(), tier))


def tier_for_scale(scale_in_gb: int) -> CatalogTier:
    if scale_in_gb <= TIER_A_MAX_SCALE_GB:
        return TIER_3TB
    return TIER_10TB


def select_catalog(scale_in_gb: int) -> Mapping[str, str]:
    """Return the ``name -> sql`` catalog for a dataset scale.

    Scales up to and including 3000 GB use the 3 TB tier; anything larger
    uses the 10 TB tier.
    """
    return _catalog_for(tier_for_scale(scale_in_gb))
