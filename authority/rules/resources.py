"""
Resource references and type-name resolution.

A resource argument is either the name of a resource type or a concrete
record. ``ResourceRef`` makes the distinction explicit and normalizes both
forms into ``(type_name, value)``.
"""

from typing import Any, Callable, Optional, Tuple
from dataclasses import dataclass
from enum import Enum

from shared.errors import UnresolvableResourceError


TypeResolver = Callable[[Any], str]


def default_type_resolver(value: Any) -> str:
    """Concrete class name of a value."""
    return type(value).__name__


class ResourceKind(str, Enum):
    TYPE_NAME = "type_name"
    VALUE = "value"


@dataclass(frozen=True)
class ResourceRef:
    """Either a resource type name or a concrete resource value."""
    kind: ResourceKind
    name: Optional[str] = None
    value: Any = None

    @classmethod
    def type_name(cls, name: str) -> "ResourceRef":
        return cls(kind=ResourceKind.TYPE_NAME, name=name)

    @classmethod
    def of_value(cls, value: Any) -> "ResourceRef":
        return cls(kind=ResourceKind.VALUE, value=value)

    @classmethod
    def coerce(cls, resource: Any) -> "ResourceRef":
        """Strings and classes name a type; anything else is a value."""
        if isinstance(resource, cls):
            return resource
        if isinstance(resource, str):
            return cls.type_name(resource)
        if isinstance(resource, type):
            return cls.type_name(resource.__name__)
        return cls.of_value(resource)

    @property
    def is_value(self) -> bool:
        return self.kind is ResourceKind.VALUE

    def normalize(self, resolver: TypeResolver, resource_value: Any = None) -> Tuple[str, Any]:
        """Return ``(type_name, value)``.

        For a type name the separately supplied ``resource_value`` is kept.
        For a value the value itself wins and its type name comes from
        ``resolver``.
        """
        if not self.is_value:
            return self.name, resource_value

        try:
            name = resolver(self.value)
        except UnresolvableResourceError:
            raise
        except Exception as e:
            raise UnresolvableResourceError(
                f"Resolver failed for {type(self.value).__name__}",
                details={"error": str(e)}
            ) from e

        if not isinstance(name, str) or not name:
            raise UnresolvableResourceError(
                f"Resolver returned no type name for {type(self.value).__name__}",
                details={"resolved": repr(name)}
            )

        return name, self.value
