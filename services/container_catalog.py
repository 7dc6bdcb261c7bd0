# services/container_catalog.py
import json
import math
from typing import List, Optional

from pydantic import ValidationError

from models.water_schemas import Container, ContainerPortion, WaterEntry

CUSTOM_LABEL = "Custom"

def default_containers() -> List[Container]:
    """Containers a new user starts with. Ids are fixed so unsaved defaults can still be referenced."""
    return [
        Container(id="default-water-bottle", name="Water Bottle", volume_ml=500, emoji="💧", position=0),
        Container(id="default-glass", name="Glass", volume_ml=250, emoji="🥤", position=1),
        Container(id="default-large-glass", name="Large Glass", volume_ml=350, emoji="🍶", position=2),
        Container(id="default-coffee-mug", name="Coffee Mug", volume_ml=300, emoji="☕️", position=3),
    ]

def portion_ml(container: Container, portion: ContainerPortion) -> int:
    """Millilitres for a portion of a container, rounded to the nearest mL"""
    return int(math.floor(container.volume_ml * portion.numerator / portion.denominator + 0.5))

def find_container(containers: List[Container], container_id: Optional[str]) -> Optional[Container]:
    if container_id is None:
        return None
    return next((c for c in containers if c.id == container_id), None)

def describe_entry(entry: WaterEntry, containers: List[Container]) -> str:
    """
    Display label for an entry.

    A container entry with no stored fraction counts as a full container,
    so it reads the same as one stored as 1/1. Entries whose container
    was deleted fall back to a container with the same volume, then "Custom".
    """
    container = find_container(containers, entry.container_id)
    if container is not None:
        portion = entry.portion
        label = portion.label if portion is not None else "Full"
        return f"{container.name} • {label}"

    match = next((c for c in containers if c.volume_ml == entry.amount_ml), None)
    if match is not None:
        return f"{match.name} • Full"

    return CUSTOM_LABEL

def _renumber(containers: List[Container]) -> List[Container]:
    return [c.model_copy(update={"position": i}) for i, c in enumerate(containers)]

def sort_containers(containers: List[Container]) -> List[Container]:
    return sorted(containers, key=lambda c: c.position)

def reorder(containers: List[Container], from_index: int, to_index: int) -> List[Container]:
    """Move one container and renumber positions"""
    ordered = sort_containers(containers)
    if not 0 <= from_index < len(ordered):
        raise IndexError(f"No container at position {from_index}")
    moved = ordered.pop(from_index)
    ordered.insert(min(to_index, len(ordered)), moved)
    return _renumber(ordered)

def remove(containers: List[Container], container_id: str) -> List[Container]:
    """Drop a container. Entries that reference it are left alone."""
    return _renumber([c for c in sort_containers(containers) if c.id != container_id])

def append(containers: List[Container], container: Container) -> List[Container]:
    ordered = sort_containers(containers)
    ordered.append(container)
    return _renumber(ordered)

def containers_to_json(containers: List[Container]) -> str:
    return json.dumps([c.model_dump() for c in containers], ensure_ascii=False)

def containers_from_json(raw: Optional[str]) -> List[Container]:
    """Decode a stored container list; anything unreadable gives the defaults"""
    if not raw:
        return default_containers()
    try:
        data = json.loads(raw)
        if not isinstance(data, list):
            return default_containers()
        return sort_containers([Container(**item) for item in data])
    except (json.JSONDecodeError, TypeError, ValidationError) as e:
        print(f"⚠️ Could not decode containers, using defaults: {e}")
        return default_containers()
