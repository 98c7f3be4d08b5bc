"""
Lookup Tables
=============

Fixed routing and location tables, loaded from YAML.

The tables ship with built-in defaults so the service works without a
config file; a `lookup_tables.yaml` next to the process replaces them.
"""

from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from studiodesk.config import VALID_PRIORITIES
from studiodesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class CategoryRoute(BaseModel):
    """Default department for a ticket category."""
    department: str
    team_code: str = "operations"


class SubcategoryOverride(BaseModel):
    """Forced department (and optionally priority) for a subcategory."""
    department: str
    priority: Optional[str] = None

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in VALID_PRIORITIES:
            raise ValueError(f"priority must be one of {sorted(VALID_PRIORITIES)}")
        return v


def _default_category_routing() -> Dict[str, CategoryRoute]:
    return {
        "Booking & Technology": CategoryRoute(department="IT/Tech Support", team_code="operations"),
        "Customer Service": CategoryRoute(department="Client Success", team_code="client-success"),
        "Health & Safety": CategoryRoute(department="Operations", team_code="facilities"),
        "Retail Management": CategoryRoute(department="Sales", team_code="sales"),
        "Community & Culture": CategoryRoute(department="HR", team_code="operations"),
        "Sales & Marketing": CategoryRoute(department="Sales", team_code="sales"),
        "Special Programs": CategoryRoute(department="Operations", team_code="operations"),
        "Miscellaneous": CategoryRoute(department="Operations", team_code="operations"),
        "Global": CategoryRoute(department="Management", team_code="management"),
    }


def _default_subcategory_overrides() -> Dict[str, SubcategoryOverride]:
    return {
        "Payment Processing": SubcategoryOverride(department="Finance", priority="high"),
        "Injury During Class": SubcategoryOverride(department="HR", priority="critical"),
        "Medical Disclosure": SubcategoryOverride(department="HR", priority="high"),
        "Theft": SubcategoryOverride(department="Security", priority="critical"),
        "Emergency": SubcategoryOverride(department="Management", priority="critical"),
        "Staff Misconduct": SubcategoryOverride(department="HR", priority="high"),
        "Discrimination": SubcategoryOverride(department="HR", priority="high"),
    }


def _default_locations() -> Dict[str, str]:
    return {
        "Kwality House": "9030",
        "Supreme HQ, Bandra": "29821",
        "Supreme HQ Bandra": "29821",
        "Kwality House, Kemps Corner": "9030",
    }


class LookupTables(BaseModel):
    """
    All fixed lookup data used by routing and session filtering.

    Keys are matched exactly against ticket category/subcategory names.
    Location keys are matched exactly first, then by substring.
    """
    category_routing: Dict[str, CategoryRoute] = Field(default_factory=_default_category_routing)
    subcategory_overrides: Dict[str, SubcategoryOverride] = Field(
        default_factory=_default_subcategory_overrides
    )
    locations: Dict[str, str] = Field(default_factory=_default_locations)


def load_lookup_tables(path: Path) -> LookupTables:
    """
    Load lookup tables from a YAML file.

    Sections missing from the file keep their built-in defaults.
    A missing file yields the defaults.
    """
    if not path.exists():
        logger.info(f"Lookup tables file not found: {path}, using defaults")
        return LookupTables()

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    tables = LookupTables(**data)
    logger.info(
        "Lookup tables loaded",
        extra={
            "path": str(path),
            "categories": len(tables.category_routing),
            "subcategories": len(tables.subcategory_overrides),
            "locations": len(tables.locations),
        }
    )
    return tables
