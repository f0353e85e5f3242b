from __future__ import annotations

import inspect
from typing import Any, Generic, TypeVar, overload

from ._binding import DEFAULT_NAME, BindingEntry, BindingKey


T = TypeVar("T")


class Module:
    """Accumulates bindings through a small fluent DSL.

    Either bind imperatively:

      module = Module()
      module.bind(Repository).to(SqlRepository, singleton=True)
      module.bind(str, "dsn").to("sqlite://")

    or subclass and override `configure()`, which runs on construction:

      class StorageModule(Module):
          def configure(self) -> None:
              self.bind(Repository).to(SqlRepository, singleton=True)

    Re-binding an identical (type, name) key replaces the earlier binding.
    """

    def __init__(self) -> None:
        self._entries: dict[BindingKey, BindingEntry] = {}
        self.configure()

    def configure(self) -> None:
        """Hook for subclasses to declare their bindings."""

    def bind(self, token: type[T] | Any, name: str = DEFAULT_NAME) -> Binder[T]:
        return Binder(self, BindingKey(token, name))

    def entries(self) -> list[BindingEntry]:
        return list(self._entries.values())

    def _add(self, entry: BindingEntry) -> None:
        # Drop any previous entry first so the replacement takes the latest position
        self._entries.pop(entry.key, None)
        self._entries[entry.key] = entry


class Binder(Generic[T]):
    """Binding builder scoped to a single (type, name) key."""

    def __init__(self, module: Module, key: BindingKey) -> None:
        self._module = module
        self._key = key

    @property
    def key(self) -> BindingKey:
        return self._key

    @overload
    def to(self, target: type[T], *, singleton: bool = ...) -> None: ...

    @overload
    def to(self, target: T) -> None: ...

    def to(self, target: type[T] | T, *, singleton: bool | None = None) -> None:
        """Bind to an implementation class, or to a fixed instance when `target` is not a class.

        Example:
          module.bind(Cache).to(MemoryCache)                  # transient
          module.bind(Cache).to(MemoryCache, singleton=True)  # singleton
          module.bind(Cache).to(MemoryCache())                # fixed instance

        """
        if inspect.isclass(target):
            entry = BindingEntry.for_implementation(self._key, target, singleton=bool(singleton))
            self._module._add(entry)  # noqa: SLF001
            return

        if singleton is not None:
            msg = f"`singleton` applies to implementation types only; {self._key} was given an instance"
            raise TypeError(msg)
        self.to_instance(target)

    def to_instance(self, instance: T) -> None:
        """Bind to a pre-built instance (always singleton), even if the instance is a class object."""
        self._module._add(BindingEntry.for_instance(self._key, instance))  # noqa: SLF001
