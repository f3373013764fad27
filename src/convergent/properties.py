"""Typed, defaulted, lazily resolved resource properties."""

from __future__ import annotations

import copy
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from .errors import TypeMismatch

if TYPE_CHECKING:
    from .resource import Resource


_MISSING: Any = object()

T = TypeVar("T")


class Property(Generic[T]):
    """Descriptor declaring a typed resource property.

    Values are checked strictly against ``type_``; nothing is coerced. When no
    value is assigned, the property resolves on first read to, in order:
    ``default_factory(resource)``, ``default``, the resource name (for the
    name property) or ``None``. The resolved value is kept for the lifetime
    of the resource.
    """

    def __init__(
        self,
        type_: Any,
        *,
        default: Any = _MISSING,
        default_factory: Callable[[Resource], Any] | None = None,
        name_property: bool = False,
        desired_state: bool = True,
        description: str = "",
    ) -> None:
        if default is not _MISSING and default_factory is not None:
            raise ValueError("cannot set both default and default_factory")
        self.type_ = type_
        self.default = default
        self.default_factory = default_factory
        self.name_property = name_property
        self.desired_state = desired_state
        self.description = description
        self.name = ""
        self._adapter: TypeAdapter[T] = TypeAdapter(type_)

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, obj: Resource | None, objtype: type | None = None) -> Any:
        if obj is None:
            return self
        return obj.get(self.name)

    def __set__(self, obj: Resource, value: T) -> None:
        obj.set(self.name, value)

    def validate(self, value: Any) -> T:
        try:
            return self._adapter.validate_python(value, strict=True)
        except ValidationError as exc:
            raise TypeMismatch(
                f"property '{self.name}' expects {self.type_name}, got {type(value).__name__} {value!r}",
                errors=exc.error_count(),
            ) from None

    @property
    def type_name(self) -> str:
        return getattr(self.type_, "__name__", None) or str(self.type_)

    def resolve_default(self, resource: Resource) -> T | None:
        """Compute the value used when nothing was assigned."""
        if self.default_factory is not None:
            value = self.default_factory(resource)
        elif self.default is not _MISSING:
            value = copy.deepcopy(self.default)
        elif self.name_property:
            value = resource.name
        else:
            return None
        if value is None:
            return None
        return self.validate(value)

    def __repr__(self) -> str:
        return f"Property({self.name!r}, {self.type_name})"
