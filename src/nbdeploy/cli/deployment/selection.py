"""Comma-separated selection parsing against a fixed catalog."""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

from .errors import EmptySelection, UnknownIdentifier

CatalogT = TypeVar("CatalogT", bound=Enum)


def parse_selection(
    raw: str | None,
    *,
    explicit: bool,
    catalog: type[CatalogT],
) -> list[CatalogT]:
    """Validate a comma-separated selection against a catalog.

    Args:
        raw: Raw flag value (ignored when ``explicit`` is False)
        explicit: Whether the flag was given on the command line
        catalog: Enum whose member values are the valid identifiers

    Returns:
        Selected members in catalog order. The whole catalog when the flag
        was omitted; an empty list when it was given an empty or
        whitespace-only value.

    Raises:
        UnknownIdentifier: If any entry is not in the catalog. Nothing is
            selected in that case.
        EmptySelection: If the value has content but no entries, e.g. ``","``.

    Example:
        >>> parse_selection(" jupyter, volumes ", explicit=True, catalog=CrudWebApp)
        [<CrudWebApp.JUPYTER: 'jupyter'>, <CrudWebApp.VOLUMES: 'volumes'>]
    """
    members = list(catalog)
    if not explicit:
        return members

    by_value = {str(member.value): member for member in members}
    chosen: set[CatalogT] = set()
    for item in (raw or "").split(","):
        item = item.strip()
        if not item:
            continue
        if item not in by_value:
            raise UnknownIdentifier(item, list(by_value))
        chosen.add(by_value[item])

    if not chosen and (raw or "").strip():
        raise EmptySelection(raw or "", list(by_value))

    return [member for member in members if member in chosen]
