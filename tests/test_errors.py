import logging
import unittest
from abc import ABC, abstractmethod

import pytest

from nanoinject import (
    BindingKey,
    CircularDependencyError,
    ConstructionError,
    Container,
    MissingDependencyError,
    Module,
    ResolutionError,
    UnresolvableKeyError,
)


class CycleA:
    def __init__(self, b: "CycleB"):
        self.b = b


class CycleB:
    def __init__(self, a: CycleA):
        self.a = a


class SelfLoop:
    def __init__(self, parent: "SelfLoop"):
        self.parent = parent


class BrokenForwardRef:
    def __init__(self, dep: "DoesNotExist"):  # noqa: F821
        self.dep = dep


class Exploding:
    def __init__(self):
        msg = "boom"
        raise ValueError(msg)


class DependsOnExploding:
    def __init__(self, exploding: Exploding):
        self.exploding = exploding


class TestErrorHierarchy(unittest.TestCase):
    def test_missing_dependency_errors_are_resolution_errors(self):
        assert issubclass(UnresolvableKeyError, MissingDependencyError)
        assert issubclass(ConstructionError, MissingDependencyError)
        assert issubclass(MissingDependencyError, ResolutionError)
        assert issubclass(CircularDependencyError, ResolutionError)
        assert not issubclass(CircularDependencyError, MissingDependencyError)
        assert issubclass(ResolutionError, RuntimeError)

    def test_unresolvable_key_message_for_default_name(self):
        err = UnresolvableKeyError(BindingKey(CycleA))

        assert str(err).startswith(f"No type or instance in container is bound to {__name__}.CycleA ")
        assert err.key == BindingKey(CycleA)
        assert err.unsatisfied == ()

    def test_unresolvable_key_message_for_named_key(self):
        err = UnresolvableKeyError(BindingKey(CycleA, "primary"))

        assert f"named dependency `primary` of type `{__name__}.CycleA`" in str(err)


def test_constructor_failure_is_wrapped_with_cause():
    with pytest.raises(ConstructionError) as ctx:
        Container().resolve(Exploding)

    assert isinstance(ctx.value.__cause__, ValueError)
    assert ctx.value.key == BindingKey(Exploding)
    assert "Exploding.__init__" in str(ctx.value)


def test_nested_constructor_failure_names_failing_type():
    with pytest.raises(ConstructionError) as ctx:
        Container().resolve(DependsOnExploding)

    assert ctx.value.key == BindingKey(Exploding)
    assert str(ctx.value.__cause__) == "boom"


def test_failed_singleton_is_not_cached():
    class Flaky:
        attempts = 0

        def __init__(self):
            Flaky.attempts += 1
            if Flaky.attempts == 1:
                msg = "first attempt fails"
                raise RuntimeError(msg)

    m = Module()
    m.bind(Flaky).to(Flaky, singleton=True)
    c = Container([m])

    with pytest.raises(ConstructionError):
        c.resolve(Flaky)

    first = c.resolve(Flaky)
    assert first is c.resolve(Flaky)
    assert Flaky.attempts == 2


def test_explicit_binding_to_abstract_type_fails_at_resolution():
    class Port(ABC):
        @abstractmethod
        def send(self) -> None: ...

    m = Module()
    m.bind(Port).to(Port)
    c = Container([m])

    with pytest.raises(MissingDependencyError):
        c.resolve(Port)


def test_circular_dependency_is_detected():
    with pytest.raises(CircularDependencyError) as ctx:
        Container().resolve(CycleA)

    assert [k.type for k in ctx.value.chain] == [CycleA, CycleB, CycleA]
    assert "Circular dependency detected" in str(ctx.value)


def test_self_referencing_singleton_is_detected():
    m = Module()
    m.bind(SelfLoop).to(SelfLoop, singleton=True)

    with pytest.raises(CircularDependencyError) as ctx:
        Container([m]).resolve(SelfLoop)

    assert [k.type for k in ctx.value.chain] == [SelfLoop, SelfLoop]


def test_cycle_broken_by_binding_resolves():
    b = CycleB.__new__(CycleB)
    m = Module()
    m.bind(CycleB).to(b)

    a = Container([m]).resolve(CycleA)

    assert a.b is b


def test_unresolvable_forward_reference_logs_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="nanoinject"):
        with pytest.raises(UnresolvableKeyError):
            Container().resolve(BrokenForwardRef)

    assert any("'DoesNotExist' name error" in r.getMessage() for r in caplog.records)


def test_auto_construction_is_logged(caplog):
    class Plain: ...

    with caplog.at_level(logging.DEBUG, logger="nanoinject"):
        Container().resolve(Plain)

    assert any("Auto-constructing unbound" in r.getMessage() for r in caplog.records)


class TestAutoConstructDisabled(unittest.TestCase):
    def test_unbound_concrete_type_raises(self):
        class Plain: ...

        c = Container.builder().with_auto_construct(False).build()

        with pytest.raises(UnresolvableKeyError):
            c.resolve(Plain)

    def test_bound_type_with_unbound_dependency_raises(self):
        class Dep: ...

        class Root:
            def __init__(self, dep: Dep):
                self.dep = dep

        m = Module()
        m.bind(Root).to(Root)
        c = Container([m], auto_construct=False)

        with pytest.raises(UnresolvableKeyError) as ctx:
            c.resolve(Root)
        assert ctx.value.unsatisfied == (BindingKey(Dep),)

    def test_fully_bound_graph_resolves(self):
        class Dep: ...

        class Root:
            def __init__(self, dep: Dep):
                self.dep = dep

        m = Module()
        m.bind(Root).to(Root)
        m.bind(Dep).to(Dep, singleton=True)
        c = Container.builder().with_modules(m).with_auto_construct(False).build()

        assert c.resolve(Root).dep is c.resolve(Dep)


class Tree:
    def __init__(self, parent: "Tree" = None):
        self.parent = parent


class Branch:
    def __init__(self, trunk: "Trunk"):
        self.trunk = trunk


class Trunk:
    def __init__(self, branch: Branch = None):
        self.branch = branch


def test_cycle_through_defaulted_parameter_uses_default():
    assert Container().resolve(Tree).parent is None


def test_cycle_through_defaulted_parameter_deeper_in_graph():
    branch = Container().resolve(Branch)

    assert isinstance(branch.trunk, Trunk)
    assert branch.trunk.branch is None


def test_cycle_without_defaults_still_raises():
    with pytest.raises(CircularDependencyError):
        Container().resolve(CycleB)
