"""Location value object and location key normalization.

The normalizer defined here is the single definition of "same place" used by
both the group resolver (live matching) and the duplicate merger (maintenance),
so the two can never disagree about what a duplicate is.
"""

import re
from dataclasses import dataclass, replace
from enum import Enum

from core.exceptions import LocationValidationError


class GroupCategory(str, Enum):
    """Granularity of a community group."""

    CITY = "city"
    STREET = "street"


# Fields that make up the composite key, in key order.
KEY_FIELDS: dict[GroupCategory, tuple[str, ...]] = {
    GroupCategory.CITY: ("city", "state", "country"),
    GroupCategory.STREET: ("street", "city", "state", "country"),
}

REQUIRED_FIELDS: dict[GroupCategory, tuple[str, ...]] = {
    GroupCategory.CITY: ("city",),
    GroupCategory.STREET: ("street", "city"),
}

KEY_SEPARATOR = "|"

_POSTAL_CODE = re.compile(r"^\d{6}$")


@dataclass(frozen=True)
class LocationComponents:
    """Already-resolved place name components of a location."""

    street: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    formatted_address: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @property
    def coordinates(self) -> tuple[float, float] | None:
        """(latitude, longitude) when both are known."""
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)

    def has(self, field_name: str) -> bool:
        """True when the named component is present and not blank."""
        value = getattr(self, field_name)
        return bool(value and value.strip())

    def filters(self, category: GroupCategory) -> dict[str, str]:
        """Raw values of the supplied key fields for a category.

        Absent or blank components are left out, so they never act as a
        filter at any matching tier.
        """
        return {
            name: getattr(self, name)
            for name in KEY_FIELDS[category]
            if self.has(name)
        }

    def trimmed(self) -> "LocationComponents":
        """Copy with surrounding whitespace removed and blanks turned into None."""

        def _clean(value: str | None) -> str | None:
            if value is None:
                return None
            return value.strip() or None

        return replace(
            self,
            street=_clean(self.street),
            city=_clean(self.city),
            state=_clean(self.state),
            country=_clean(self.country),
            formatted_address=_clean(self.formatted_address),
        )


def normalize(value: str | None) -> str:
    """Canonicalize a single place-name component."""
    if not value:
        return ""
    return value.strip().lower()


def location_key(category: GroupCategory, location: LocationComponents) -> str:
    """Composite matching key for a location within a category."""
    return KEY_SEPARATOR.join(
        normalize(getattr(location, name)) for name in KEY_FIELDS[category]
    )


def same_place(
    category: GroupCategory, a: LocationComponents, b: LocationComponents
) -> bool:
    """Whether two locations are the same place under the canonical-match relation."""
    return location_key(category, a) == location_key(category, b)


def validate_location(category: GroupCategory, location: LocationComponents) -> None:
    """Raise LocationValidationError if the location cannot identify a group."""
    missing = [name for name in REQUIRED_FIELDS[category] if not location.has(name)]
    if missing:
        raise LocationValidationError(
            f"{category.value} communities require: {', '.join(missing)}",
            details={"category": category.value, "missing": missing},
        )
    validate_coordinates(location.latitude, location.longitude)


def validate_coordinates(latitude: float | None, longitude: float | None) -> None:
    """Check coordinate ranges when coordinates are supplied."""
    errors = []
    if latitude is not None and not -90 <= latitude <= 90:
        errors.append("Latitude must be between -90 and 90")
    if longitude is not None and not -180 <= longitude <= 180:
        errors.append("Longitude must be between -180 and 180")
    if errors:
        raise LocationValidationError("; ".join(errors), details={"errors": errors})


def parse_formatted_address(formatted_address: str | None) -> LocationComponents:
    """Split a comma separated address into components.

    "Street, City, State, Country" is the full form. Shorter addresses drop
    leading parts: three parts are city/state/country, two are state/country,
    and a single part is a city unless it looks like a six digit postal code.
    """
    if not formatted_address:
        return LocationComponents()

    parts = [part.strip() for part in formatted_address.split(",") if part.strip()]
    if not parts:
        return LocationComponents()

    if len(parts) >= 4:
        street, city, state, country = parts[:4]
        return LocationComponents(
            street=street,
            city=city,
            state=state,
            country=country,
            formatted_address=formatted_address,
        )
    if len(parts) == 3:
        city, state, country = parts
        return LocationComponents(
            city=city, state=state, country=country, formatted_address=formatted_address
        )
    if len(parts) == 2:
        state, country = parts
        return LocationComponents(
            state=state, country=country, formatted_address=formatted_address
        )
    if _POSTAL_CODE.match(parts[0]):
        return LocationComponents(formatted_address=formatted_address)
    return LocationComponents(city=parts[0], formatted_address=formatted_address)


def format_location(location: LocationComponents) -> str:
    """Readable "street, city, state, country" string of the known parts."""
    parts = [
        value.strip()
        for value in (location.street, location.city, location.state, location.country)
        if value and value.strip()
    ]
    return ", ".join(parts)
