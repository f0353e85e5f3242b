"""Minimal dependency injection container.

Bindings are declared on `Module` objects and merged into a `Container`, which
resolves object graphs on demand by constructor injection. Unbound concrete
classes are constructed automatically from their constructors.

Exports:
- `Module`: fluent binding DSL (`module.bind(Base).to(Impl, singleton=True)`).
- `Container` / `ContainerBuilder`: the resolution engine and its builder.
- `Named`: `Annotated` marker selecting a named binding for a parameter.
- `constructor`: marks a classmethod as an alternate injectable constructor.
- `TypeDescriptor` / `ReflectionTypeDescriptor`: pluggable type introspection.
- `ResolutionError` and subclasses: failures raised by `Container.resolve`.
"""

import logging

from ._binding import DEFAULT_NAME, BindingEntry, BindingKey, Named
from ._container import Container, ContainerBuilder
from ._errors import (
    CircularDependencyError,
    ConstructionError,
    MissingDependencyError,
    ResolutionError,
    UnresolvableKeyError,
)
from ._introspection import ConstructorSpec, ParameterSpec, ReflectionTypeDescriptor, TypeDescriptor, constructor
from ._module import Binder, Module


logging.getLogger(__name__).addHandler(logging.NullHandler())


__all__ = [
    "DEFAULT_NAME",
    "Binder",
    "BindingEntry",
    "BindingKey",
    "CircularDependencyError",
    "ConstructionError",
    "ConstructorSpec",
    "Container",
    "ContainerBuilder",
    "MissingDependencyError",
    "Module",
    "Named",
    "ParameterSpec",
    "ReflectionTypeDescriptor",
    "ResolutionError",
    "TypeDescriptor",
    "UnresolvableKeyError",
    "constructor",
]
