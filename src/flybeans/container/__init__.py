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
"""flybeans container — bean factory, definitions, and post-processor chain."""

from flybeans.container.autowired import Autowired, AutowiredAnnotationBeanPostProcessor, Qualifier
from flybeans.container.bean_factory import BeanFactory, HierarchicalBeanFactory
from flybeans.container.definition import BeanDefinition, BeanReference, PropertyValue, PropertyValues
from flybeans.container.exceptions import (
    BeanCreationException,
    BeanCreationNotAllowedError,
    BeanCurrentlyInCreationError,
    BeanDefinitionStoreException,
    BeanIsAbstractError,
    BeanIsNotAFactoryError,
    BeanNotOfRequiredTypeError,
    BeansException,
    NoSuchBeanDefinitionError,
    NoUniqueBeanDefinitionError,
)
from flybeans.container.factory import DefaultBeanFactory
from flybeans.container.factory_bean import FactoryBean
from flybeans.container.lifecycle import (
    BeanFactoryAware,
    BeanNameAware,
    DisposableBean,
    InitializingBean,
    post_construct,
    pre_destroy,
)
from flybeans.container.ordering import HIGHEST_PRECEDENCE, LOWEST_PRECEDENCE, get_order, order
from flybeans.container.post_processor import (
    BeanPostProcessor,
    InstantiationAwareBeanPostProcessorAdapter,
    ProcessorHooks,
)
from flybeans.container.registry import BeanDefinitionRegistry, SimpleBeanDefinitionRegistry
from flybeans.container.scopes import ContextVarScope, Scope, ScopeContext
from flybeans.container.types import FACTORY_BEAN_PREFIX, BeanScope

__all__ = [
    "FACTORY_BEAN_PREFIX",
    "HIGHEST_PRECEDENCE",
    "LOWEST_PRECEDENCE",
    "Autowired",
    "AutowiredAnnotationBeanPostProcessor",
    "BeanCreationException",
    "BeanCreationNotAllowedError",
    "BeanCurrentlyInCreationError",
    "BeanDefinition",
    "BeanDefinitionRegistry",
    "BeanDefinitionStoreException",
    "BeanFactory",
    "BeanFactoryAware",
    "BeanIsAbstractError",
    "BeanIsNotAFactoryError",
    "BeanNameAware",
    "BeanNotOfRequiredTypeError",
    "BeanPostProcessor",
    "BeanReference",
    "BeanScope",
    "BeansException",
    "ContextVarScope",
    "DefaultBeanFactory",
    "DisposableBean",
    "FactoryBean",
    "HierarchicalBeanFactory",
    "InitializingBean",
    "InstantiationAwareBeanPostProcessorAdapter",
    "NoSuchBeanDefinitionError",
    "NoUniqueBeanDefinitionError",
    "ProcessorHooks",
    "PropertyValue",
    "PropertyValues",
    "Qualifier",
    "Scope",
    "ScopeContext",
    "SimpleBeanDefinitionRegistry",
    "get_order",
    "order",
    "post_construct",
    "pre_destroy",
]
