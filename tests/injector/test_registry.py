"""
Tests for InjectorRegistry
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from beanframe.injector import (
    InjectorRegistry,
    ServiceRegistrationError,
    ServiceResolutionError,
    find_injectable_properties,
    inject,
)


class Clock:
    def now(self) -> int:
        return 42


class Greeter:
    @inject
    def __init__(self, clock: Clock):
        self.clock = clock


class Report:
    def __init__(self):
        self._clock = None

    @property
    def clock(self) -> Clock:
        return self._clock

    @clock.setter
    @inject
    def clock(self, value: Clock) -> None:
        self._clock = value


class Untyped:
    @inject
    def __init__(self, clock):
        self.clock = clock


class NeedsArgument:
    def __init__(self, name):
        self.name = name


class TestInjectorRegistry:
    """Test registration and lookup"""

    def setup_method(self):
        self.registry = InjectorRegistry()

    def test_register_instance(self):
        """Test the same instance is returned every time"""
        clock = Clock()
        self.registry.register_instance(Clock, clock)

        assert self.registry.lookup_instance(Clock) is clock
        assert self.registry.lookup_instance(Clock) is clock

    def test_register_provider(self):
        """Test providers are called on every lookup"""
        calls = []
        self.registry.register_provider(Clock, lambda: calls.append(1) or Clock())

        first = self.registry.lookup_instance(Clock)
        second = self.registry.lookup_instance(Clock)

        assert first is not second
        assert len(calls) == 2

    def test_register_provider_class(self):
        """Test a fresh instance per lookup"""
        self.registry.register_provider_class(Clock)

        assert isinstance(self.registry.lookup_instance(Clock), Clock)
        assert self.registry.lookup_instance(Clock) is not self.registry.lookup_instance(Clock)

    def test_constructor_injection(self):
        """Test @inject constructor parameters are looked up by type"""
        clock = Clock()
        self.registry.register_instance(Clock, clock)
        self.registry.register_provider_class(Greeter)

        assert self.registry.lookup_instance(Greeter).clock is clock

    def test_setter_injection(self):
        """Test @inject property setters are looked up by type"""
        clock = Clock()
        self.registry.register_instance(Clock, clock)
        self.registry.register_provider_class(Report)

        assert self.registry.lookup_instance(Report).clock is clock

    def test_interface_to_implementation(self):
        """Test registering an implementation under another type"""

        class FixedClock(Clock):
            def now(self) -> int:
                return 0

        self.registry.register_provider_class(Clock, FixedClock)

        assert self.registry.lookup_instance(Clock).now() == 0

    def test_dependency_resolved_at_lookup(self):
        """Test dependencies may be registered after their dependents"""
        self.registry.register_provider_class(Greeter)

        with pytest.raises(ServiceResolutionError, match="Clock"):
            self.registry.lookup_instance(Greeter)

        self.registry.register_provider_class(Clock)
        assert isinstance(self.registry.lookup_instance(Greeter).clock, Clock)

    def test_duplicate_registration(self):
        """Test a type can be registered once"""
        self.registry.register_instance(Clock, Clock())

        with pytest.raises(ServiceRegistrationError, match="Already an instance for Clock"):
            self.registry.register_provider_class(Clock)

    def test_missing_supplier(self):
        """Test lookup of an unregistered type"""
        with pytest.raises(ServiceResolutionError, match="No supplier for class Clock"):
            self.registry.lookup_instance(Clock)

    def test_untyped_constructor_parameter(self):
        """Test @inject parameters need annotations"""
        with pytest.raises(ServiceRegistrationError, match="clock"):
            self.registry.register_provider_class(Untyped)

    def test_constructor_without_inject(self):
        """Test classes need an @inject or no-argument constructor"""
        with pytest.raises(ServiceRegistrationError):
            self.registry.register_provider_class(NeedsArgument)

    def test_none_arguments(self):
        """Test None is rejected"""
        with pytest.raises(TypeError):
            self.registry.register_instance(Clock, None)
        with pytest.raises(TypeError):
            self.registry.register_provider(None, Clock)
        with pytest.raises(TypeError):
            self.registry.lookup_instance(None)

    def test_is_registered(self):
        """Test registration queries"""
        assert not self.registry.is_registered(Clock)
        self.registry.register_provider_class(Clock)
        assert self.registry.is_registered(Clock)

    def test_concurrent_registration(self):
        """Test exactly one of many concurrent registrations wins"""

        def register(_):
            try:
                self.registry.register_instance(Clock, Clock())
                return True
            except ServiceRegistrationError:
                return False

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(register, range(32)))

        assert results.count(True) == 1


class TestFindInjectableProperties:
    """Test setter discovery"""

    def test_marked_setter(self):
        """Test the service type comes from the setter annotation"""
        properties = find_injectable_properties(Report)

        assert [(prop.name, prop.service_type) for prop in properties] == [("clock", Clock)]

    def test_no_marked_setters(self):
        """Test classes without injectable setters"""
        assert find_injectable_properties(Clock) == []
