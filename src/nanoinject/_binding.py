from __future__ import annotations

import inspect
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Callable


DEFAULT_NAME = "nanoinject$default"


@dataclass(frozen=True)
class Named:
    """Marker qualifying a constructor parameter with a binding name.

    Example:
      def __init__(self, primary: Annotated[Database, Named("primary")]): ...

    """

    value: str


def qualified_name(tp: Any) -> str:
    if inspect.isclass(tp):
        module = getattr(tp, "__module__", "")
        if module and module != "builtins":
            return f"{module}.{tp.__qualname__}"
        return tp.__qualname__
    return repr(tp)


@dataclass(frozen=True)
class BindingKey:
    """Identity of a requested dependency: a type plus a qualifying name."""

    type: Any
    name: str = DEFAULT_NAME

    @property
    def is_default(self) -> bool:
        return self.name == DEFAULT_NAME

    def describe(self, name_of: Callable[[Any], str] = qualified_name) -> str:
        """Render the key for messages, naming its type with `name_of`."""
        if self.is_default:
            return name_of(self.type)
        return f"named dependency `{self.name}` of type `{name_of(self.type)}`"

    def __str__(self) -> str:
        return self.describe()


_UNSET: Any = object()


@dataclass(eq=False)
class BindingEntry:
    key: BindingKey
    implementation: type | None
    singleton: bool
    _instance: Any = field(default=_UNSET, repr=False)
    # Guards first-time realization of a singleton; never copied between entries
    lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False, compare=False)

    @classmethod
    def for_implementation(cls, key: BindingKey, implementation: type, *, singleton: bool) -> BindingEntry:
        return cls(key=key, implementation=implementation, singleton=singleton)

    @classmethod
    def for_instance(cls, key: BindingKey, instance: object) -> BindingEntry:
        # Instance bindings are always singletons
        return cls(key=key, implementation=type(instance), singleton=True, _instance=instance)

    @property
    def has_instance(self) -> bool:
        return self._instance is not _UNSET

    @property
    def instance(self) -> Any:
        if not self.has_instance:
            msg = f"No instance has been realized for {self.key}"
            raise RuntimeError(msg)
        return self._instance

    def realize(self, instance: object) -> None:
        """Store the first constructed instance of a singleton binding."""
        if not self.singleton:
            msg = f"Cannot cache an instance on transient binding {self.key}"
            raise RuntimeError(msg)
        if self.has_instance:
            msg = f"Singleton {self.key} has already been realized"
            raise RuntimeError(msg)
        self._instance = instance
