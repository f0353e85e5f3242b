from __future__ import annotations

import inspect
import logging
import typing
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Annotated,
    Any,
    Protocol,
    TypeVar,
    cast,
    get_args,
    get_origin,
    get_type_hints,
)

from ._binding import DEFAULT_NAME, Named, qualified_name


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    F = TypeVar("F", bound=Callable[..., Any])

_CONSTRUCTOR_MARK = "__nanoinject_constructor__"

_VARIADIC = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    annotation: Any  # None when the parameter is not annotated
    binding_name: str
    default: Any = inspect.Parameter.empty
    kind: inspect._ParameterKind = inspect.Parameter.POSITIONAL_OR_KEYWORD

    @property
    def has_default(self) -> bool:
        return self.default is not inspect.Parameter.empty


@dataclass(frozen=True)
class ConstructorSpec:
    """One way of building an instance: `__init__` or a `@constructor` classmethod."""

    factory: Callable[..., Any]
    parameters: tuple[ParameterSpec, ...]
    label: str

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def invoke(self, values: Mapping[str, Any]) -> Any:
        """Call the factory with resolved `values`, omitted parameters keep their defaults."""
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for p in self.parameters:
            if p.kind is inspect.Parameter.POSITIONAL_ONLY:
                args.append(values[p.name] if p.name in values else p.default)
            elif p.name in values:
                kwargs[p.name] = values[p.name]
        return self.factory(*args, **kwargs)


class TypeDescriptor(Protocol):
    """Introspection capability the container resolves against."""

    def constructors(self, cls: type) -> list[ConstructorSpec]: ...

    def is_abstract(self, cls: type) -> bool: ...

    def is_public(self, cls: type) -> bool: ...

    def name_of(self, tp: Any) -> str: ...


def constructor(func: F) -> F:
    """Mark a classmethod as an alternate constructor available for injection.

    Example:
      class Client:
          def __init__(self, transport: Transport, retries: Retries): ...

          @constructor
          @classmethod
          def with_transport(cls, transport: Transport) -> Client:
              return cls(transport, Retries.none())

    """
    target = func.__func__ if isinstance(func, classmethod) else func
    setattr(target, _CONSTRUCTOR_MARK, True)
    if isinstance(func, classmethod):
        return func
    return cast("F", classmethod(func))


class ReflectionTypeDescriptor:
    """Default `TypeDescriptor` built on `inspect` and `typing` metadata."""

    def constructors(self, cls: type) -> list[ConstructorSpec]:
        specs = [self._init_constructor(cls)]

        seen: set[str] = set()
        for klass in cls.__mro__:
            for attr, raw in vars(klass).items():
                if attr in seen:
                    continue
                seen.add(attr)
                if isinstance(raw, classmethod) and getattr(raw.__func__, _CONSTRUCTOR_MARK, False):
                    bound = getattr(cls, attr)
                    hints = _get_type_hints(raw.__func__, cls)
                    specs.append(self._spec(bound, inspect.signature(bound), hints, f"{cls.__qualname__}.{attr}"))

        # sorted() is stable: equal arities keep declaration order
        return sorted(specs, key=lambda s: s.arity, reverse=True)

    def is_abstract(self, cls: type) -> bool:
        return inspect.isabstract(cls) or _is_protocol(cls)

    def is_public(self, cls: type) -> bool:
        if getattr(cls, "__module__", "") == "builtins":
            return False
        return not cls.__name__.startswith("_")

    def name_of(self, tp: Any) -> str:
        return qualified_name(tp)

    def binding_name(self, annotation: Any) -> str | None:
        """Return the `Named` qualifier carried by an `Annotated` hint, if any."""
        if get_origin(annotation) is not Annotated:
            return None
        _, *metadata = get_args(annotation)
        return next((m.value for m in metadata if isinstance(m, Named)), None)

    def _init_constructor(self, cls: type) -> ConstructorSpec:
        label = f"{cls.__qualname__}.__init__"
        if cls.__init__ is object.__init__ and cls.__new__ is object.__new__:
            return ConstructorSpec(factory=cls, parameters=(), label=label)

        try:
            sig = inspect.signature(cls)
        except (TypeError, ValueError):
            # C-level __init__ (dict, Exception subclasses): try the bare call
            logger.debug("No inspectable constructor signature for %s, assuming no parameters", cls.__qualname__)
            return ConstructorSpec(factory=cls, parameters=(), label=label)

        init = inspect.getattr_static(cls, "__init__", None)
        hints = _get_type_hints(init, cls) if init is not None else {}
        return self._spec(cls, sig, hints, label)

    def _spec(
        self,
        factory: Callable[..., Any],
        sig: inspect.Signature,
        hints: dict[str, Any],
        label: str,
    ) -> ConstructorSpec:
        params = tuple(self._parameter(p, hints) for p in sig.parameters.values() if p.kind not in _VARIADIC)
        return ConstructorSpec(factory=factory, parameters=params, label=label)

    def _parameter(self, p: inspect.Parameter, hints: dict[str, Any]) -> ParameterSpec:
        ann = hints.get(p.name, p.annotation)
        if ann is inspect.Parameter.empty or isinstance(ann, str):
            # Missing or unresolved string annotation: nothing to inject by type
            return ParameterSpec(p.name, None, DEFAULT_NAME, p.default, p.kind)

        name = self.binding_name(ann)
        if get_origin(ann) is Annotated:
            ann = get_args(ann)[0]
        return ParameterSpec(p.name, ann, name or DEFAULT_NAME, p.default, p.kind)


def _is_protocol(tp: type) -> bool:
    """Detect whether 'tp' is a typing.Protocol subclass (safe)."""
    if hasattr(typing, "is_protocol"):
        # https://docs.python.org/3/library/typing.html#typing.is_protocol
        return inspect.isclass(tp) and typing.is_protocol(tp)
    return inspect.isclass(tp) and bool(getattr(tp, "_is_protocol", False)) and tp is not Protocol


def _get_type_hints(func: Any, cls: type) -> dict[str, Any]:
    try:
        hints = get_type_hints(func, include_extras=True)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    return hints
