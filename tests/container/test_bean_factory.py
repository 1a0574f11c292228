# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for DefaultBeanFactory lookups: scopes, required types, by-type, and aliases."""

import pytest

from flybeans.container import (
    BeanCreationException,
    BeanDefinition,
    BeanDefinitionStoreException,
    BeanIsAbstractError,
    BeanNotOfRequiredTypeError,
    BeanReference,
    DefaultBeanFactory,
    NoSuchBeanDefinitionError,
    NoUniqueBeanDefinitionError,
)


# -- Fixtures --


class Greeter:
    def greet(self) -> str:
        return "hello"


class LoudGreeter(Greeter):
    def greet(self) -> str:
        return "HELLO"


class Counter:
    def __init__(self, start: int = 0) -> None:
        self.value = start


class Wallet:
    def __init__(self, owner: str, balance: int = 0) -> None:
        self.owner = owner
        self.balance = balance


def make_counter() -> Counter:
    return Counter(42)


@pytest.fixture
def factory():
    return DefaultBeanFactory()


# -- Scopes --


class TestSingletonScope:
    def test_repeated_lookups_return_same_instance(self, factory):
        factory.register_bean_definition("greeter", BeanDefinition(Greeter))
        assert factory.get_bean("greeter") is factory.get_bean("greeter")

    def test_is_singleton(self, factory):
        factory.register_bean_definition("greeter", BeanDefinition(Greeter))
        assert factory.is_singleton("greeter")
        assert not factory.is_prototype("greeter")

    def test_singleton_is_cached_after_first_access(self, factory):
        factory.register_bean_definition("greeter", BeanDefinition(Greeter))
        assert not factory.contains_singleton("greeter")
        factory.get_bean("greeter")
        assert factory.contains_singleton("greeter")
        assert factory.get_singleton_names() == ["greeter"]

    def test_manually_registered_singleton(self, factory):
        greeter = Greeter()
        factory.register_singleton("greeter", greeter)
        assert factory.get_bean("greeter") is greeter
        assert factory.contains_bean("greeter")
        assert factory.is_singleton("greeter")
        assert not factory.is_prototype("greeter")

    def test_registering_singleton_twice_fails(self, factory):
        factory.register_singleton("greeter", Greeter())
        with pytest.raises(BeanDefinitionStoreException):
            factory.register_singleton("greeter", Greeter())


class TestPrototypeScope:
    def test_repeated_lookups_return_distinct_instances(self, factory):
        factory.register_bean_definition("counter", BeanDefinition(Counter, scope="prototype"))
        first = factory.get_bean("counter")
        second = factory.get_bean("counter")
        assert first is not second
        assert isinstance(first, Counter)

    def test_prototype_is_never_cached(self, factory):
        factory.register_bean_definition("counter", BeanDefinition(Counter, scope="prototype"))
        factory.get_bean("counter")
        assert not factory.contains_singleton("counter")

    def test_is_prototype(self, factory):
        factory.register_bean_definition("counter", BeanDefinition(Counter, scope="prototype"))
        assert factory.is_prototype("counter")
        assert not factory.is_singleton("counter")


class TestExplicitArguments:
    def test_args_used_for_prototype(self, factory):
        factory.register_bean_definition("wallet", BeanDefinition(Wallet, scope="prototype"))
        wallet = factory.get_bean("wallet", args=["ada"], kwargs={"balance": 10})
        assert wallet.owner == "ada"
        assert wallet.balance == 10

    def test_args_used_on_first_singleton_construction(self, factory):
        factory.register_bean_definition("wallet", BeanDefinition(Wallet, lazy_init=True))
        wallet = factory.get_bean("wallet", args=["grace"])
        assert wallet.owner == "grace"
        assert factory.get_bean("wallet") is wallet

    def test_args_for_cached_singleton_rejected(self, factory):
        factory.register_bean_definition("wallet", BeanDefinition(Wallet, constructor_args=("linus",)))
        factory.get_bean("wallet")
        with pytest.raises(BeanDefinitionStoreException):
            factory.get_bean("wallet", args=["other"])

    def test_definition_constructor_args(self, factory):
        factory.register_bean_definition(
            "wallet", BeanDefinition(Wallet, constructor_args=("ada",), constructor_kwargs={"balance": 5})
        )
        wallet = factory.get_bean("wallet")
        assert (wallet.owner, wallet.balance) == ("ada", 5)

    def test_factory_method(self, factory):
        factory.register_bean_definition("counter", BeanDefinition(factory_method=make_counter))
        assert factory.get_bean("counter").value == 42
        assert factory.get_type("counter") is Counter


# -- Required type --


class TestRequiredType:
    def test_matching_type(self, factory):
        factory.register_bean_definition("greeter", BeanDefinition(LoudGreeter))
        assert factory.get_bean("greeter", Greeter).greet() == "HELLO"

    def test_mismatch_raises_not_of_required_type(self, factory):
        factory.register_bean_definition("greeter", BeanDefinition(Greeter))
        with pytest.raises(BeanNotOfRequiredTypeError) as exc_info:
            factory.get_bean("greeter", Counter)
        assert exc_info.value.required_type is Counter
        assert exc_info.value.actual_type is Greeter
        assert exc_info.value.bean_name == "greeter"

    def test_non_class_required_type_is_a_mismatch_not_a_type_error(self, factory):
        factory.register_bean_definition("greeter", BeanDefinition(Greeter))
        with pytest.raises(BeanNotOfRequiredTypeError):
            factory.get_bean("greeter", list[int])  # type: ignore[arg-type]

    def test_by_type_lookup_checks_required_type(self, factory):
        factory.register_bean_definition("greeter", BeanDefinition(Greeter))
        with pytest.raises(BeanNotOfRequiredTypeError) as exc_info:
            factory.get_bean(Greeter, Counter)
        assert exc_info.value.required_type is Counter
        assert exc_info.value.actual_type is Greeter

    def test_by_type_lookup_narrowed_to_subtype(self, factory):
        factory.register_bean_definition("greeter", BeanDefinition(LoudGreeter))
        assert factory.get_bean(Greeter, LoudGreeter).greet() == "HELLO"


# -- By-type lookup --


class TestByTypeLookup:
    def test_zero_candidates(self, factory):
        with pytest.raises(NoSuchBeanDefinitionError) as exc_info:
            factory.get_bean(Greeter)
        assert not isinstance(exc_info.value, NoUniqueBeanDefinitionError)
        assert exc_info.value.bean_type is Greeter

    def test_single_candidate(self, factory):
        factory.register_bean_definition("greeter", BeanDefinition(LoudGreeter))
        assert isinstance(factory.get_bean(Greeter), LoudGreeter)

    def test_many_candidates(self, factory):
        factory.register_bean_definition("plain", BeanDefinition(Greeter))
        factory.register_bean_definition("loud", BeanDefinition(LoudGreeter))
        with pytest.raises(NoUniqueBeanDefinitionError) as exc_info:
            factory.get_bean(Greeter)
        assert exc_info.value.candidates == ["plain", "loud"]

    def test_primary_breaks_tie(self, factory):
        factory.register_bean_definition("plain", BeanDefinition(Greeter))
        factory.register_bean_definition("loud", BeanDefinition(LoudGreeter, primary=True))
        assert isinstance(factory.get_bean(Greeter), LoudGreeter)

    def test_two_primaries_still_ambiguous(self, factory):
        factory.register_bean_definition("plain", BeanDefinition(Greeter, primary=True))
        factory.register_bean_definition("loud", BeanDefinition(LoudGreeter, primary=True))
        with pytest.raises(NoUniqueBeanDefinitionError):
            factory.get_bean(Greeter)

    def test_no_name_derived_from_type(self, factory):
        # a bean named after the type but of another class is not a candidate
        factory.register_bean_definition("greeter", BeanDefinition(Counter))
        factory.register_bean_definition("Greeter", BeanDefinition(Counter))
        with pytest.raises(NoSuchBeanDefinitionError):
            factory.get_bean(Greeter)

    def test_manual_singletons_are_candidates(self, factory):
        greeter = Greeter()
        factory.register_singleton("manual", greeter)
        assert factory.get_bean(Greeter) is greeter

    def test_abstract_definitions_are_not_candidates(self, factory):
        factory.register_bean_definition("template", BeanDefinition(Greeter, abstract=True))
        factory.register_bean_definition("greeter", BeanDefinition(LoudGreeter))
        assert factory.get_bean_names_for_type(Greeter) == ["greeter"]

    def test_get_beans_of_type(self, factory):
        factory.register_bean_definition("plain", BeanDefinition(Greeter))
        factory.register_bean_definition("loud", BeanDefinition(LoudGreeter))
        factory.register_bean_definition("counter", BeanDefinition(Counter))
        beans = factory.get_beans_of_type(Greeter)
        assert list(beans) == ["plain", "loud"]
        assert isinstance(beans["loud"], LoudGreeter)


# -- Unknown names and containment --


class TestContainsBean:
    def test_unknown_name(self, factory):
        assert not factory.contains_bean("ghost")

    def test_lazy_singleton_not_yet_created(self, factory):
        factory.register_bean_definition("lazy", BeanDefinition(Greeter, lazy_init=True))
        assert factory.contains_bean("lazy")
        assert not factory.contains_singleton("lazy")

    def test_contains_bean_by_alias(self, factory):
        factory.register_bean_definition("greeter", BeanDefinition(Greeter))
        factory.register_alias("greeter", "welcomer")
        assert factory.contains_bean("welcomer")

    def test_factory_prefix_on_plain_bean(self, factory):
        factory.register_bean_definition("greeter", BeanDefinition(Greeter))
        assert not factory.contains_bean("&greeter")


class TestUnknownBean:
    def test_get_bean_unknown_name(self, factory):
        with pytest.raises(NoSuchBeanDefinitionError) as exc_info:
            factory.get_bean("ghost")
        assert exc_info.value.bean_name == "ghost"

    def test_suggestions_for_similar_names(self, factory):
        factory.register_bean_definition("orderService", BeanDefinition(Greeter))
        with pytest.raises(NoSuchBeanDefinitionError) as exc_info:
            factory.get_bean("orderServise")
        assert "orderService" in exc_info.value.suggestions
        assert "Similar registered names" in str(exc_info.value)

    @pytest.mark.parametrize("query", ["is_singleton", "is_prototype", "get_type"])
    def test_scope_and_type_queries_on_unknown_name(self, factory, query):
        with pytest.raises(NoSuchBeanDefinitionError):
            getattr(factory, query)("ghost")

    def test_is_type_match_on_unknown_name(self, factory):
        with pytest.raises(NoSuchBeanDefinitionError):
            factory.is_type_match("ghost", Greeter)


# -- Type queries --


class TestTypeQueries:
    def test_type_match_without_instantiation(self, factory):
        factory.register_bean_definition("greeter", BeanDefinition(LoudGreeter))
        assert factory.is_type_match("greeter", Greeter)
        assert not factory.is_type_match("greeter", Counter)
        assert not factory.contains_singleton("greeter")

    def test_get_type_from_definition(self, factory):
        factory.register_bean_definition("greeter", BeanDefinition(LoudGreeter))
        assert factory.get_type("greeter") is LoudGreeter

    def test_undeterminable_type(self, factory):
        factory.register_bean_definition("mystery", BeanDefinition(factory_method=lambda: Greeter()))
        assert factory.get_type("mystery") is None
        assert factory.is_type_match("mystery", Greeter) is False

    def test_get_type_from_cached_instance(self, factory):
        factory.register_singleton("counter", Counter())
        assert factory.get_type("counter") is Counter


# -- Aliases --


class TestAliases:
    def test_alias_resolves_to_same_instance(self, factory):
        factory.register_bean_definition("a", BeanDefinition(Greeter))
        factory.register_alias("a", "b")
        assert factory.get_bean("b") is factory.get_bean("a")

    def test_get_aliases_of_alias_returns_canonical_first(self, factory):
        factory.register_bean_definition("a", BeanDefinition(Greeter))
        factory.register_alias("a", "b")
        assert factory.get_aliases("b") == ["a"]

    def test_get_aliases_of_canonical_name(self, factory):
        factory.register_bean_definition("a", BeanDefinition(Greeter))
        factory.register_alias("a", "b")
        factory.register_alias("b", "c")
        assert factory.get_aliases("a") == ["b", "c"]
        assert factory.get_aliases("c") == ["a", "b"]

    def test_no_aliases(self, factory):
        factory.register_bean_definition("a", BeanDefinition(Greeter))
        assert factory.get_aliases("a") == []

    def test_transitive_alias_chain(self, factory):
        factory.register_bean_definition("a", BeanDefinition(Greeter))
        factory.register_alias("a", "b")
        factory.register_alias("b", "c")
        assert factory.get_bean("c") is factory.get_bean("a")

    def test_alias_cycle_rejected(self, factory):
        factory.register_alias("a", "b")
        with pytest.raises(BeanDefinitionStoreException):
            factory.register_alias("b", "a")


# -- Definitions and references --


class TestDefinitions:
    def test_abstract_definition_cannot_be_created(self, factory):
        factory.register_bean_definition("template", BeanDefinition(Greeter, abstract=True))
        with pytest.raises(BeanIsAbstractError):
            factory.get_bean("template")

    def test_property_values_and_references(self, factory):
        factory.register_bean_definition("greeter", BeanDefinition(Greeter))
        factory.register_bean_definition(
            "counter",
            BeanDefinition(Counter, property_values={"value": 7, "greeters": [BeanReference("greeter")]}),
        )
        counter = factory.get_bean("counter")
        assert counter.value == 7
        assert counter.greeters == [factory.get_bean("greeter")]

    def test_missing_reference_fails_creation(self, factory):
        factory.register_bean_definition(
            "counter", BeanDefinition(Counter, property_values={"greeter": BeanReference("ghost")})
        )
        with pytest.raises(BeanCreationException) as exc_info:
            factory.get_bean("counter")
        assert isinstance(exc_info.value.__cause__, NoSuchBeanDefinitionError)
        assert not factory.contains_singleton("counter")

    def test_depends_on_creates_dependency_first(self, factory):
        created: list[str] = []

        def build(name: str):
            def _factory() -> Greeter:
                created.append(name)
                return Greeter()

            return _factory

        factory.register_bean_definition("late", BeanDefinition(factory_method=build("late"), depends_on=["early"]))
        factory.register_bean_definition("early", BeanDefinition(factory_method=build("early")))
        factory.get_bean("late")
        assert created == ["early", "late"]

    def test_circular_depends_on_rejected(self, factory):
        factory.register_bean_definition("a", BeanDefinition(Greeter, depends_on=["b"]))
        factory.register_bean_definition("b", BeanDefinition(Greeter, depends_on=["a"]))
        with pytest.raises(BeanCreationException):
            factory.get_bean("a")

    def test_constructor_failure_is_wrapped(self, factory):
        def explode() -> Greeter:
            raise ValueError("boom")

        factory.register_bean_definition("broken", BeanDefinition(factory_method=explode))
        with pytest.raises(BeanCreationException) as exc_info:
            factory.get_bean("broken")
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert "boom" in str(exc_info.value)
        assert not factory.contains_singleton("broken")

    def test_pre_instantiate_skips_lazy_and_prototypes(self, factory):
        factory.register_bean_definition("eager", BeanDefinition(Greeter))
        factory.register_bean_definition("lazy", BeanDefinition(Greeter, lazy_init=True))
        factory.register_bean_definition("proto", BeanDefinition(Greeter, scope="prototype"))
        factory.pre_instantiate_singletons()
        assert factory.get_singleton_names() == ["eager"]

    def test_metrics_recorded(self, factory):
        factory.register_bean_definition("proto", BeanDefinition(Greeter, scope="prototype"))
        factory.get_bean("proto")
        factory.get_bean("proto")
        metrics = factory.get_bean_metrics("proto")
        assert metrics is not None
        assert metrics.creation_count == 2
