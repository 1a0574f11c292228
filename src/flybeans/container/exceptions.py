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
"""Container exceptions — lookup, type-narrowing, and bean creation failures."""

from __future__ import annotations

from flybeans.kernel.exceptions import InfrastructureException


def _type_name(tp: object) -> str:
    return getattr(tp, "__qualname__", None) or getattr(tp, "__name__", None) or repr(tp)


class BeansException(InfrastructureException):
    """Root of all bean container errors."""

    def __init__(self, message: str, code: str = "BEANS", bean_name: str | None = None) -> None:
        super().__init__(message=message, code=code, context={"bean_name": bean_name})
        self.bean_name = bean_name


class NoSuchBeanDefinitionError(BeansException):
    """No bean definition found for the requested name or type."""

    def __init__(
        self,
        *,
        bean_name: str | None = None,
        bean_type: type | None = None,
        suggestions: list[str] | None = None,
        reason: str | None = None,
    ) -> None:
        self.bean_type = bean_type
        self.suggestions = suggestions or []

        if bean_type is not None:
            headline = f"No qualifying bean of type '{_type_name(bean_type)}' available"
        elif bean_name:
            headline = f"No bean named '{bean_name}' available"
        else:
            headline = "No matching bean definition available"
        if reason:
            headline = f"{headline}: {reason}"

        lines = [f"NoSuchBeanDefinitionError: {headline}"]
        if self.suggestions:
            lines.append("")
            lines.append(f"  Similar registered names: {', '.join(self.suggestions)}")

        super().__init__("\n".join(lines), code="NO_SUCH_BEAN_DEFINITION", bean_name=bean_name)
        self.headline = headline


class NoUniqueBeanDefinitionError(NoSuchBeanDefinitionError):
    """More than one bean matches a by-type lookup and none is primary."""

    def __init__(self, *, bean_type: type, candidates: list[str]) -> None:
        self.candidates = list(candidates)
        NoSuchBeanDefinitionError.__init__(
            self,
            bean_type=bean_type,
            reason=f"expected single matching bean but found {len(candidates)}: {', '.join(candidates)}",
        )
        self.args = (
            "\n".join(
                [
                    f"NoUniqueBeanDefinitionError: {self.headline}",
                    "",
                    "  Fix: mark one definition as primary, or look the bean up by name",
                ]
            ),
        )
        self.code = "NO_UNIQUE_BEAN_DEFINITION"


class BeanNotOfRequiredTypeError(BeansException):
    """The bean exists but is not an instance of the requested type."""

    def __init__(self, bean_name: str, required_type: type, actual_type: type) -> None:
        self.required_type = required_type
        self.actual_type = actual_type
        message = (
            f"Bean named '{bean_name}' is expected to be of type "
            f"'{_type_name(required_type)}' but was actually of type '{_type_name(actual_type)}'"
        )
        super().__init__(message, code="BEAN_NOT_OF_REQUIRED_TYPE", bean_name=bean_name)


class BeanIsNotAFactoryError(BeanNotOfRequiredTypeError):
    """A ``&name`` lookup hit a bean that is not a FactoryBean."""

    def __init__(self, bean_name: str, actual_type: type) -> None:
        from flybeans.container.factory_bean import FactoryBean

        super().__init__(bean_name, FactoryBean, actual_type)
        self.code = "BEAN_IS_NOT_A_FACTORY"


class BeanDefinitionStoreException(BeansException):
    """Invalid definition registration or an invalid combination of lookup arguments."""

    def __init__(self, message: str, bean_name: str | None = None) -> None:
        super().__init__(message, code="BEAN_DEFINITION_STORE", bean_name=bean_name)


class BeanCreationException(BeansException):
    """Instantiation, population or initialization of a bean failed.

    The underlying cause is chained via ``raise ... from``; the partially
    built instance is discarded and never cached.
    """

    def __init__(self, bean_name: str, reason: str) -> None:
        self.reason = reason
        super().__init__(
            f"Error creating bean with name '{bean_name}': {reason}",
            code="BEAN_CREATION",
            bean_name=bean_name,
        )


class BeanCurrentlyInCreationError(BeanCreationException):
    """Unresolvable circular reference detected during bean creation."""

    def __init__(self, bean_name: str, reason: str | None = None) -> None:
        super().__init__(
            bean_name,
            reason
            or "Requested bean is currently in creation: Is there an unresolvable circular reference?",
        )
        self.code = "BEAN_CURRENTLY_IN_CREATION"


class BeanIsAbstractError(BeanCreationException):
    """The requested definition is abstract and cannot be instantiated."""

    def __init__(self, bean_name: str) -> None:
        super().__init__(bean_name, "Bean definition is abstract")
        self.code = "BEAN_IS_ABSTRACT"


class BeanCreationNotAllowedError(BeanCreationException):
    """Singleton creation was requested while the factory is shutting down."""

    def __init__(self, bean_name: str) -> None:
        super().__init__(
            bean_name,
            "Singleton bean creation not allowed while singletons of this factory are in destruction",
        )
        self.code = "BEAN_CREATION_NOT_ALLOWED"
