"""
Registry of tracked dispensaries.

IDs match the `dispensary_id` column written by the scrapers. Store counts are
approximate and only used to express stock-outs as "N of M stores".
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from compintel.core.errors import InvalidParameterError


@dataclass(frozen=True)
class Dispensary:
    key: str
    id: str
    name: str
    store_count: int
    # Some retailers never display more than N units on their menu
    inventory_cap: Optional[int] = None


CURALEAF = Dispensary(
    key="curaleaf",
    id="971a1a5c-5c44-4a36-bf6a-f50c86a10a5d",
    name="Curaleaf",
    store_count=68,
)
MUV = Dispensary(
    key="muv",
    id="a362214f-2a99-486e-b3c7-810fcfc1c25d",
    name="MUV",
    store_count=81,
)
TRULIEVE = Dispensary(
    key="trulieve",
    id="c9a02acb-3f35-4657-b7af-3db95fd2dc83",
    name="Trulieve",
    store_count=150,
    inventory_cap=10,
)
AYR = Dispensary(
    key="ayr",
    id="ff3a8196-b84c-4b1d-b29c-267be0520092",
    name="AYR",
    store_count=48,
)

ALL_DISPENSARIES: Tuple[Dispensary, ...] = (CURALEAF, MUV, TRULIEVE, AYR)

# The chain we work for; everything else is a competitor
OWN_CHAIN = CURALEAF

# Competitors the pricing team follows on the dashboard
FOCUSED_COMPETITORS: Tuple[Dispensary, ...] = (MUV, TRULIEVE)

DEFAULT_STORE_COUNT = 100

STANDARD_CATEGORIES = (
    "Flower",
    "Vapes",
    "Concentrates",
    "Edibles",
    "Pre-Rolls",
    "Oral",
    "Topicals",
)

UNKNOWN_CATEGORY = "Unknown"

_BY_KEY: Dict[str, Dispensary] = {d.key: d for d in ALL_DISPENSARIES}
_BY_ID: Dict[str, Dispensary] = {d.id: d for d in ALL_DISPENSARIES}


def get_by_id(dispensary_id: str) -> Optional[Dispensary]:
    return _BY_ID.get(dispensary_id)


def get_by_key(key: str) -> Optional[Dispensary]:
    return _BY_KEY.get(key.lower())


def dispensary_name(dispensary_id: str) -> str:
    dispensary = get_by_id(dispensary_id)
    return dispensary.name if dispensary else "Unknown"


def store_count(dispensary_id: str) -> int:
    dispensary = get_by_id(dispensary_id)
    return dispensary.store_count if dispensary else DEFAULT_STORE_COUNT


def inventory_cap(dispensary_id: Optional[str]) -> Optional[int]:
    if dispensary_id is None:
        return None
    dispensary = get_by_id(dispensary_id)
    return dispensary.inventory_cap if dispensary else None


def resolve_dispensaries(
    param: Optional[str],
    allowed: Tuple[Dispensary, ...] = FOCUSED_COMPETITORS,
    allow_all: bool = True,
) -> List[Dispensary]:
    """
    Turn a `dispensary` request parameter into the dispensaries to process.

    Args:
        param: Key such as "muv", or "all" (case-insensitive). None means "all".
        allowed: Dispensaries this endpoint accepts; "all" expands to these.
        allow_all: Whether "all" is accepted at all.

    Raises:
        InvalidParameterError: If the key is not one of `allowed`.
    """
    key = (param or "all").strip().lower()
    choices = [d.key for d in allowed]

    if key == "all" and allow_all:
        return list(allowed)

    for dispensary in allowed:
        if dispensary.key == key:
            return [dispensary]

    if allow_all:
        choices.append("all")
    if len(choices) > 1:
        options = ", ".join(choices[:-1]) + f", or {choices[-1]}"
    else:
        options = choices[0]
    raise InvalidParameterError(f"Invalid dispensary. Use: {options}")
