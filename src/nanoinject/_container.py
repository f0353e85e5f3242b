from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, TypeVar, Union, overload

from ._binding import DEFAULT_NAME, BindingEntry, BindingKey
from ._errors import CircularDependencyError, ConstructionError, ResolutionError, UnresolvableKeyError
from ._introspection import ReflectionTypeDescriptor


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ._introspection import ConstructorSpec, TypeDescriptor
    from ._module import Module

    T = TypeVar("T")

    Chain = tuple[BindingKey, ...]


@dataclass(frozen=True)
class Found:
    value: Any


@dataclass(frozen=True)
class NotFound:
    # Deepest keys that nothing could produce, for error reporting
    unsatisfied: tuple[BindingKey, ...] = ()


@dataclass(frozen=True)
class Failed:
    error: ResolutionError


NOT_FOUND = NotFound()

Resolution = Union[Found, NotFound, Failed]


class Container:
    """Resolves object graphs from the bindings of one or more modules.

    - explicit bindings first, then auto-construction of unbound concrete classes
    - constructor injection, most parameters first, falling back to smaller constructors
    - singleton / transient bindings, named bindings via `Annotated[T, Named(...)]`
    """

    def __init__(
        self,
        modules: Iterable[Module] = (),
        *,
        type_descriptor: TypeDescriptor | None = None,
        auto_construct: bool = True,
    ) -> None:
        self._entries: dict[BindingKey, BindingEntry] = {}
        for module in modules:
            for entry in module.entries():
                # Copied: singleton slots belong to this container
                self._entries[entry.key] = replace(entry)

        self._types: TypeDescriptor = type_descriptor or ReflectionTypeDescriptor()
        self._auto_construct = auto_construct
        # Per-class constructor lists, introspected once
        self._constructors: dict[type, list[ConstructorSpec]] = {}

    @staticmethod
    def builder() -> ContainerBuilder:
        return ContainerBuilder()

    def __contains__(self, key: object) -> bool:
        """Whether an explicit binding exists for `key` (a `BindingKey` or a bare type)."""
        if not isinstance(key, BindingKey):
            key = BindingKey(key)
        return key in self._entries

    @overload
    def resolve(self, token: type[T], name: str = ...) -> T: ...

    @overload
    def resolve(self, token: Any, name: str = ...) -> Any: ...

    def resolve(self, token: Any, name: str = DEFAULT_NAME) -> Any:
        """Resolve `token` (optionally qualified by `name`) to an instance.

        Raises `UnresolvableKeyError` when nothing can produce the instance,
        `ConstructionError` when a constructor raised and `CircularDependencyError`
        when the graph loops back on itself.
        """
        key = BindingKey(token, name)
        outcome = self._resolve(key, ())

        if isinstance(outcome, Found):
            return outcome.value
        if isinstance(outcome, Failed):
            raise outcome.error
        raise UnresolvableKeyError(key, [k for k in outcome.unsatisfied if k != key], name_of=self._types.name_of)

    def _resolve(self, key: BindingKey, chain: Chain) -> Resolution:
        if key in chain:
            return Failed(CircularDependencyError((*chain, key), name_of=self._types.name_of))

        entry = self._entries.get(key)
        if entry is not None:
            if entry.has_instance:
                return Found(entry.instance)
            if entry.singleton:
                return self._resolve_singleton(entry, chain)
            return self._construct(key, entry.implementation, (*chain, key))

        if self._auto_construct and self._is_eligible(key.type):
            logger.debug("Auto-constructing unbound %s", key)
            return self._construct(key, key.type, (*chain, key))

        return NotFound((key,))

    def _resolve_singleton(self, entry: BindingEntry, chain: Chain) -> Resolution:
        with entry.lock:
            # Another thread may have realized it while we waited
            if entry.has_instance:
                return Found(entry.instance)

            outcome = self._construct(entry.key, entry.implementation, (*chain, entry.key))
            if isinstance(outcome, Found):
                entry.realize(outcome.value)
                logger.debug("Cached singleton %s", entry.key)
            return outcome

    def _constructors_of(self, cls: type) -> list[ConstructorSpec]:
        ctors = self._constructors.get(cls)
        if ctors is None:
            ctors = self._constructors[cls] = self._types.constructors(cls)
        return ctors

    def _is_eligible(self, tp: Any) -> bool:
        if not inspect.isclass(tp):
            return False
        if self._types.is_abstract(tp) or not self._types.is_public(tp):
            return False
        return len(self._constructors_of(tp)) >= 1

    def _construct(self, key: BindingKey, cls: type | None, chain: Chain) -> Resolution:
        if cls is None:
            return NOT_FOUND

        unsatisfied: list[BindingKey] = []
        for ctor in self._constructors_of(cls):
            outcome = self._try_constructor(key, ctor, chain)
            if not isinstance(outcome, NotFound):
                return outcome
            unsatisfied.extend(k for k in outcome.unsatisfied if k not in unsatisfied)

        return NotFound(tuple(unsatisfied))

    def _try_constructor(self, key: BindingKey, ctor: ConstructorSpec, chain: Chain) -> Resolution:
        values: dict[str, Any] = {}
        for p in ctor.parameters:
            # Unannotated parameters can only be filled by their default
            if p.annotation is None:
                outcome: Resolution = NOT_FOUND
            else:
                outcome = self._resolve(BindingKey(p.annotation, p.binding_name), chain)

            if isinstance(outcome, Failed):
                if p.has_default and isinstance(outcome.error, CircularDependencyError):
                    logger.debug("Using default for '%s' of %s: %s", p.name, ctor.label, outcome.error)
                    continue
                return outcome
            if isinstance(outcome, Found):
                values[p.name] = outcome.value
            elif not p.has_default:
                logger.debug("Abandoning %s: cannot satisfy parameter '%s'", ctor.label, p.name)
                return outcome

        try:
            return Found(ctor.invoke(values))
        except Exception as exc:  # noqa: BLE001
            return Failed(ConstructionError(key, ctor.label, exc, name_of=self._types.name_of))


class ContainerBuilder:
    """Fluent builder collecting modules and options for a `Container`.

    Example:
      container = Container.builder().with_modules(StorageModule(), web).build()

    """

    def __init__(self, modules: Iterable[Module] | None = None) -> None:
        self._modules: list[Module] = list(modules or ())
        self._type_descriptor: TypeDescriptor | None = None
        self._auto_construct = True

    def with_modules(self, *modules: Module) -> ContainerBuilder:
        self._modules.extend(modules)
        return self

    def with_type_descriptor(self, type_descriptor: TypeDescriptor) -> ContainerBuilder:
        self._type_descriptor = type_descriptor
        return self

    def with_auto_construct(self, enabled: bool) -> ContainerBuilder:  # noqa: FBT001
        self._auto_construct = enabled
        return self

    def build(self) -> Container:
        return Container(
            self._modules,
            type_descriptor=self._type_descriptor,
            auto_construct=self._auto_construct,
        )
