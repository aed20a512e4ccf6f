"""Derives Debian binary package names for shared libraries."""

from typing import Any

from attrs import Attribute, define, field

from .exceptions import InvalidDescriptorError
from .models import check_text


def _normalize_library_name(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().replace("_", "-").lower()
    return value


def _to_sover(value: Any) -> tuple[int, ...]:
    """Accepts `"1.4.0"`, `[1, 4, 0]` or nothing."""
    if value is None or value == "":
        return ()
    if isinstance(value, str):
        parts = value.split(".")
        if not all(part.isdigit() for part in parts):
            raise InvalidDescriptorError("sover", f"{value!r} is not a dotted version number")
        return tuple(int(part) for part in parts)
    if isinstance(value, int):
        value = (value,)
    sover = tuple(value)
    if not all(isinstance(n, int) and not isinstance(n, bool) and n >= 0 for n in sover):
        raise InvalidDescriptorError("sover", f"{value!r} must hold non-negative integers")
    return sover


@define(frozen=True, slots=True)
class Lib:
    """
    A shared library and its ABI version, e.g. `libiso9660` at `11.0.0`.

    Debian names the runtime package after the library and the major
    soversion, inserting a '-' when the library name already ends in a
    digit, so that `libiso9660` at 11 becomes `libiso9660-11`.
    """

    library_name: str = field(converter=_normalize_library_name)
    sover: tuple[int, ...] = field(default=(), converter=_to_sover)

    @library_name.validator
    def _check_library_name(self, attribute: Attribute, value: Any) -> None:
        check_text(attribute.name, value, required=True)

    @property
    def translated_lib_name(self) -> str:
        if not self.sover:
            return self.library_name
        suffix = self.sover[0]
        if self.library_name[-1].isnumeric():
            return f"{self.library_name}-{suffix}"
        return f"{self.library_name}{suffix}"

    @property
    def translated_dev_name(self) -> str:
        return f"{self.library_name}-dev"
