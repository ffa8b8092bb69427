"""Canonical string and filename form of Unique Hydratable Locations."""

from __future__ import annotations

from hydra_fragments.schema_management import HydratableRegistry

from .segments import Segment, UhlError, decode_segment, encode_segment

Uhl = tuple[Segment, ...]

ROOT_UHL: Uhl = ()
ROOT_STRING = "__root__"
SEGMENT_SEPARATOR = "___"
FILENAME_SUFFIX = ".json"


def make_uhl(*segments: Segment) -> Uhl:
    return tuple(segments)


def encode_uhl(uhl: Uhl, registry: HydratableRegistry | None = None) -> str:
    """Render a UHL; the root UHL renders as ``__root__``.

    Raises:
      UhlError: If ``registry`` is given and a segment's tag is not
        registered or its family differs from the declared one.
    """
    if not uhl:
        return ROOT_STRING
    if registry is not None:
        for segment in uhl:
            _check_registered(segment, registry)
    return SEGMENT_SEPARATOR.join(encode_segment(segment) for segment in uhl)


def decode_uhl(text: str, registry: HydratableRegistry | None = None) -> Uhl:
    """Parse the output of :func:`encode_uhl`."""
    if text == ROOT_STRING:
        return ROOT_UHL
    if not text:
        raise UhlError("UHL string must not be empty.")
    uhl = tuple(decode_segment(part) for part in text.split(SEGMENT_SEPARATOR))
    if registry is not None:
        for segment in uhl:
            _check_registered(segment, registry)
    return uhl


def to_filename(uhl: Uhl, registry: HydratableRegistry | None = None) -> str:
    return f"{encode_uhl(uhl, registry)}{FILENAME_SUFFIX}"


def from_filename(filename: str, registry: HydratableRegistry | None = None) -> Uhl:
    if not filename.endswith(FILENAME_SUFFIX):
        raise UhlError(f"Fragment filename must end with {FILENAME_SUFFIX}: {filename}")
    return decode_uhl(filename[: -len(FILENAME_SUFFIX)], registry)


def last_segment_key(uhl: Uhl) -> str | None:
    """Encoded final segment of a UHL, or None for the root."""
    return encode_segment(uhl[-1]) if uhl else None


def _check_registered(segment: Segment, registry: HydratableRegistry) -> None:
    entry = registry.get(segment.tag)
    if entry is None:
        raise UhlError(f"Unrecognized hydratable tag in UHL: {segment.tag}")
    if (entry.family or None) != (segment.family or None) and entry.family != segment.tag:
        raise UhlError(
            f"UHL segment {segment.tag} names family {segment.family!r}, "
            f"declared family is {entry.family!r}"
        )
