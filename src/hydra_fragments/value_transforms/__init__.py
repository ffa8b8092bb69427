"""Value transform exports."""

from .dehydrate import dehydrate, dehydrate_nested, dehydrate_value, is_hydrated_hydratable
from .hydrate import GetHydratable, hydrate, hydrate_value, placeholder_keys
from .locate import (
    Located,
    locate_hydratables,
    locate_hydrated_hydratables,
    visit_hydratables,
)

__all__ = [
    "GetHydratable",
    "Located",
    "dehydrate",
    "dehydrate_nested",
    "dehydrate_value",
    "hydrate",
    "hydrate_value",
    "is_hydrated_hydratable",
    "locate_hydratables",
    "locate_hydrated_hydratables",
    "placeholder_keys",
    "visit_hydratables",
]
