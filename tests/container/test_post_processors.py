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
"""Tests for the post-processor chain and its hooks in the creation pipeline."""

import pytest

from flybeans.container import (
    BeanCreationException,
    BeanDefinition,
    DefaultBeanFactory,
    InstantiationAwareBeanPostProcessorAdapter,
    ProcessorHooks,
    PropertyValues,
    order,
)
from flybeans.container.post_processor import PostProcessorChain, is_post_processor


# -- Fixtures --


class Service:
    constructed = 0

    def __init__(self) -> None:
        Service.constructed += 1
        self.name = "real"
        self.tags: list[str] = []


class Wrapper:
    def __init__(self, target, label: str) -> None:
        self.target = target
        self.label = label


class WrapA:
    def before_init(self, bean, bean_name):
        return bean

    def after_init(self, bean, bean_name):
        return Wrapper(bean, "A")


class WrapB:
    def before_init(self, bean, bean_name):
        return bean

    def after_init(self, bean, bean_name):
        return Wrapper(bean, "B")


@order(-10)
class EarlyWrapper(WrapA):
    pass


class Recorder(InstantiationAwareBeanPostProcessorAdapter):
    def __init__(self) -> None:
        self.calls: list[str] = []

    def before_instantiation(self, bean_class, bean_name):
        self.calls.append("before_instantiation")
        return None

    def after_instantiation(self, bean, bean_name):
        self.calls.append("after_instantiation")
        return True

    def post_process_properties(self, pvs, bean, bean_name):
        self.calls.append("post_process_properties")
        return pvs

    def before_init(self, bean, bean_name):
        self.calls.append("before_init")
        return bean

    def after_init(self, bean, bean_name):
        self.calls.append("after_init")
        return bean


class Surrogate:
    pass


class SurrogateProvider(InstantiationAwareBeanPostProcessorAdapter):
    def before_instantiation(self, bean_class, bean_name):
        if bean_name == "s":
            return Surrogate()
        return None


class Veto(InstantiationAwareBeanPostProcessorAdapter):
    def after_instantiation(self, bean, bean_name):
        return False


class AddTag(InstantiationAwareBeanPostProcessorAdapter):
    def __init__(self, tag: str) -> None:
        self.tag = tag

    def post_process_properties(self, pvs, bean, bean_name):
        tags = list(pvs.get("tags", []))
        return PropertyValues(pvs).add("tags", [*tags, self.tag])


class SkipProperties(InstantiationAwareBeanPostProcessorAdapter):
    def post_process_properties(self, pvs, bean, bean_name):
        return None


class Renamer(InstantiationAwareBeanPostProcessorAdapter):
    def predict_bean_type(self, bean_class, bean_name):
        return Wrapper if bean_name == "wrapped" else None


class Failing(InstantiationAwareBeanPostProcessorAdapter):
    def before_init(self, bean, bean_name):
        raise RuntimeError("hook failed")


class NotAProcessor:
    pass


@pytest.fixture
def factory():
    Service.constructed = 0
    f = DefaultBeanFactory()
    f.register_bean_definition("service", BeanDefinition(Service))
    return f


class TestComposition:
    def test_second_processor_sees_first_processors_result(self, factory):
        factory.add_post_processor(WrapA())
        factory.add_post_processor(WrapB())
        bean = factory.get_bean("service")
        assert bean.label == "B"
        assert bean.target.label == "A"
        assert isinstance(bean.target.target, Service)

    def test_order_decorator_runs_lower_values_first(self, factory):
        factory.add_post_processor(WrapB())
        factory.add_post_processor(EarlyWrapper())
        bean = factory.get_bean("service")
        assert bean.label == "B"
        assert bean.target.label == "A"

    def test_none_result_keeps_current_bean(self, factory):
        factory.add_post_processor(ProcessorHooks(after_init=lambda bean, name: None))
        assert isinstance(factory.get_bean("service"), Service)

    def test_hook_order_within_pipeline(self, factory):
        recorder = Recorder()
        factory.add_post_processor(recorder)
        factory.get_bean("service")
        assert recorder.calls == [
            "before_instantiation",
            "after_instantiation",
            "post_process_properties",
            "before_init",
            "after_init",
        ]

    def test_raising_hook_aborts_creation(self, factory):
        factory.add_post_processor(Failing())
        with pytest.raises(BeanCreationException) as exc_info:
            factory.get_bean("service")
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert not factory.contains_singleton("service")


class TestBeforeInstantiation:
    def test_surrogate_skips_constructor(self, factory):
        factory.register_bean_definition("s", BeanDefinition(Service))
        factory.add_post_processor(SurrogateProvider())
        bean = factory.get_bean("s")
        assert isinstance(bean, Surrogate)
        assert Service.constructed == 0

    def test_surrogate_still_gets_after_init(self, factory):
        factory.register_bean_definition("s", BeanDefinition(Service))
        factory.add_post_processor(SurrogateProvider())
        factory.add_post_processor(WrapA())
        bean = factory.get_bean("s")
        assert isinstance(bean, Wrapper)
        assert isinstance(bean.target, Surrogate)

    def test_surrogate_singleton_is_cached(self, factory):
        factory.register_bean_definition("s", BeanDefinition(Service))
        factory.add_post_processor(SurrogateProvider())
        assert factory.get_bean("s") is factory.get_bean("s")

    def test_other_beans_built_normally(self, factory):
        factory.add_post_processor(SurrogateProvider())
        assert isinstance(factory.get_bean("service"), Service)
        assert Service.constructed == 1


class TestPropertyHooks:
    def test_after_instantiation_false_skips_population(self, factory):
        factory.register_bean_definition("named", BeanDefinition(Service, property_values={"name": "configured"}))
        factory.add_post_processor(Veto())
        assert factory.get_bean("named").name == "real"

    def test_property_hooks_compose_left_to_right(self, factory):
        factory.add_post_processor(AddTag("first"))
        factory.add_post_processor(AddTag("second"))
        assert factory.get_bean("service").tags == ["first", "second"]

    def test_none_property_values_skip_population(self, factory):
        factory.register_bean_definition("named", BeanDefinition(Service, property_values={"name": "configured"}))
        factory.add_post_processor(SkipProperties())
        factory.add_post_processor(AddTag("never"))
        bean = factory.get_bean("named")
        assert bean.name == "real"
        assert bean.tags == []

    def test_definition_property_values_are_not_mutated(self, factory):
        definition = BeanDefinition(Service, property_values={"name": "configured"})
        factory.register_bean_definition("named", definition)
        factory.add_post_processor(AddTag("x"))
        factory.get_bean("named")
        assert definition.property_values.names() == ["name"]


class TestTypePrediction:
    def test_predicted_type_used_for_type_queries(self, factory):
        factory.register_bean_definition("wrapped", BeanDefinition(Service))
        factory.add_post_processor(Renamer())
        assert factory.get_type("wrapped") is Wrapper
        assert factory.get_type("service") is Service


class TestChain:
    def test_readding_a_processor_keeps_single_entry(self):
        chain = PostProcessorChain()
        processor = WrapA()
        chain.add(processor)
        chain.add(WrapB())
        chain.add(processor)
        assert len(chain) == 2
        assert chain.processors[-1] is processor

    def test_hooks_record_from_functions(self):
        hooks = ProcessorHooks(before_init=lambda bean, name: bean)
        assert hooks.provided() == ["before_init"]

    def test_object_without_hooks_rejected(self):
        with pytest.raises(TypeError):
            ProcessorHooks.of(NotAProcessor())

    def test_adapter_provides_every_hook(self):
        assert len(ProcessorHooks.of(InstantiationAwareBeanPostProcessorAdapter()).provided()) == 8

    def test_adapter_defaults_are_no_ops(self):
        adapter = InstantiationAwareBeanPostProcessorAdapter()
        bean = object()
        pvs = PropertyValues({"a": 1})
        assert adapter.predict_bean_type(object, "x") is None
        assert adapter.determine_candidate_constructors(object, "x") is None
        assert adapter.before_instantiation(object, "x") is None
        assert adapter.after_instantiation(bean, "x") is True
        assert adapter.post_process_properties(pvs, bean, "x") is pvs
        assert adapter.get_early_bean_reference(bean, "x") is bean
        assert adapter.before_init(bean, "x") is bean
        assert adapter.after_init(bean, "x") is bean

    @pytest.mark.parametrize(
        "candidate, expected",
        [(WrapA, True), (Recorder, True), (NotAProcessor, False), (ProcessorHooks(), True)],
    )
    def test_is_post_processor(self, candidate, expected):
        assert is_post_processor(candidate) is expected
