from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple

from .error_handling import CatalogParseError

REQUIRED_DEPENDENCY_FIELDS = (
    "build_dependencies",
    "dependencies",
    "test_dependencies",
    "recommended_dependencies",
)


def _string_sequence(data: Dict[str, Any], key: str, name: str) -> Tuple[str, ...]:
    value = data[key]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise CatalogParseError(
            f"Formula {name!r}: field {key!r} must be a list of strings"
        )
    return tuple(value)


@dataclass(frozen=True)
class Formula:
    """One Homebrew catalog entry and its declared dependencies."""

    name: str
    build_dependencies: Tuple[str, ...] = ()
    dependencies: Tuple[str, ...] = ()
    test_dependencies: Tuple[str, ...] = ()
    recommended_dependencies: Tuple[str, ...] = ()
    optional_dependencies: Optional[Tuple[str, ...]] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Formula":
        """
        Build a Formula from one decoded JSON object.

        Keys other than the name and the dependency lists are ignored. A
        missing or null ``optional_dependencies`` is kept as ``None``.

        Raises:
            CatalogParseError: If a required field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise CatalogParseError(
                f"Formula entry must be an object, got {type(data).__name__}"
            )

        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise CatalogParseError("Formula entry has a missing or empty 'name'")

        missing = [key for key in REQUIRED_DEPENDENCY_FIELDS if key not in data]
        if missing:
            raise CatalogParseError(
                f"Formula {name!r}: missing field(s) {', '.join(missing)}"
            )

        optional = None
        if data.get("optional_dependencies") is not None:
            optional = _string_sequence(data, "optional_dependencies", name)

        return cls(
            name=name,
            build_dependencies=_string_sequence(data, "build_dependencies", name),
            dependencies=_string_sequence(data, "dependencies", name),
            test_dependencies=_string_sequence(data, "test_dependencies", name),
            recommended_dependencies=_string_sequence(
                data, "recommended_dependencies", name
            ),
            optional_dependencies=optional,
        )

    def all_dependencies(self) -> Iterator[str]:
        """Yield build, runtime, test, recommended and optional dependencies in order."""
        yield from self.build_dependencies
        yield from self.dependencies
        yield from self.test_dependencies
        yield from self.recommended_dependencies
        yield from self.optional_dependencies or ()
