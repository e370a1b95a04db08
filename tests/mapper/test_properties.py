"""
Tests for bean property discovery
"""

from abc import ABC, abstractmethod
from typing import Annotated, Any, ClassVar

import pytest

from beanframe.mapper import ConfigurationError, JSONProperty, describe_properties, json_property
from beanframe.mapper.properties import default_constructor, is_class, split_annotated


class Base:
    ident: int = 0


class Account(Base):
    owner_id: Annotated[str, JSONProperty("ownerId")] = ""
    counter: ClassVar[int] = 0
    _secret: str = ""

    def __init__(self):
        self._balance = 0.0

    @property
    @json_property("balance-eur")
    def balance(self) -> float:
        return self._balance

    @balance.setter
    def balance(self, value: float) -> None:
        self._balance = value

    @property
    def summary(self) -> str:
        return f"{self.owner_id}: {self._balance}"


class Shape(ABC):
    @abstractmethod
    def area(self) -> float:
        pass


class TestDescribeProperties:
    """Test member discovery and ordering"""

    def test_order_and_keys(self):
        """Test annotated attributes in MRO order, then properties"""
        names = [prop.name for prop in describe_properties(Account)]
        keys = [prop.key for prop in describe_properties(Account)]

        assert names == ["ident", "owner_id", "balance", "summary"]
        assert keys == ["ident", "ownerId", "balance-eur", "summary"]

    def test_private_and_class_vars_skipped(self):
        """Test underscore names and ClassVar annotations are not members"""
        names = {prop.name for prop in describe_properties(Account)}

        assert "_secret" not in names
        assert "counter" not in names

    def test_property_types_and_accessors(self):
        """Test property types come from the setter, else the getter"""
        props = {prop.name: prop for prop in describe_properties(Account)}
        account = Account()
        props["balance"].setter(account, 12.5)
        props["owner_id"].setter(account, "a-1")

        assert props["balance"].declared_type is float
        assert props["summary"].declared_type is str
        assert props["summary"].setter is None
        assert props["summary"].getter(account) == "a-1: 12.5"
        assert props["balance"].getter(account) == 12.5

    def test_metadata(self):
        """Test Annotated metadata is kept on the descriptor"""
        prop = describe_properties(Account)[1]

        assert prop.find_metadata(JSONProperty) == JSONProperty("ownerId")
        assert prop.find_metadata(int) is None

    def test_non_class(self):
        """Test generics are rejected"""
        with pytest.raises(ConfigurationError):
            describe_properties(list[int])


class TestHelpers:
    """Test small reflection helpers"""

    def test_is_class(self):
        """Test parameterized generics are not classes"""
        assert is_class(Account)
        assert not is_class(list[int])
        assert not is_class("Account")
        assert not is_class(Any)

    def test_split_annotated(self):
        """Test Annotated unwrapping"""
        assert split_annotated(Annotated[int, "a", "b"]) == (int, ("a", "b"))
        assert split_annotated(int) == (int, ())

    def test_default_constructor(self):
        """Test no-argument constructor discovery"""
        assert default_constructor(Account) is Account
        with pytest.raises(ConfigurationError, match="abstract"):
            default_constructor(Shape)
        with pytest.raises(ConfigurationError, match="requires"):
            default_constructor(JSONProperty)
        with pytest.raises(ConfigurationError):
            default_constructor(Any)
