from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from ._binding import BindingKey

    NameOf = Callable[[Any], str]


def _describe(key: BindingKey, name_of: NameOf | None) -> str:
    return key.describe(name_of) if name_of is not None else key.describe()


class ResolutionError(RuntimeError):
    pass


class MissingDependencyError(ResolutionError):
    """A requested key could not be satisfied."""

    def __init__(self, key: BindingKey, message: str) -> None:
        super().__init__(message)
        self.key = key


class UnresolvableKeyError(MissingDependencyError):
    """No binding and no constructor path could produce an instance for the key."""

    def __init__(
        self,
        key: BindingKey,
        unsatisfied: Sequence[BindingKey] = (),
        *,
        name_of: NameOf | None = None,
    ) -> None:
        msg = (
            f"No type or instance in container is bound to {_describe(key, name_of)} and one could not be created "
            "using the registered dependencies"
        )
        if unsatisfied:
            msg += f" (unsatisfied: {', '.join(_describe(k, name_of) for k in unsatisfied)})"
        super().__init__(key, msg)
        self.unsatisfied = tuple(unsatisfied)


class ConstructionError(MissingDependencyError):
    """The selected constructor raised while building an instance."""

    def __init__(
        self,
        key: BindingKey,
        constructor: str,
        cause: BaseException,
        *,
        name_of: NameOf | None = None,
    ) -> None:
        msg = f"Exception when invoking constructor {constructor} for {_describe(key, name_of)}: {cause!r}"
        super().__init__(key, msg)
        self.constructor = constructor
        self.__cause__ = cause


class CircularDependencyError(ResolutionError):
    def __init__(self, chain: Sequence[BindingKey], *, name_of: NameOf | None = None) -> None:
        self.chain = tuple(chain)
        msg = f"Circular dependency detected: {' -> '.join(_describe(k, name_of) for k in self.chain)}"
        super().__init__(msg)
