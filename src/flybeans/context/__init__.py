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
"""flybeans context — ApplicationContext, lifecycle events, and host bootstrap."""

from flybeans.context.application_context import ApplicationContext
from flybeans.context.events import (
    ApplicationEvent,
    ApplicationEventBus,
    ContextClosedEvent,
    ContextRefreshedEvent,
    app_event_listener,
)
from flybeans.context.loader import (
    ROOT_CONTEXT_ATTRIBUTE,
    ContextLoader,
    ContextLoaderListener,
    context_lifespan,
    get_root_context,
)
from flybeans.context.properties import ContextProperties

__all__ = [
    "ROOT_CONTEXT_ATTRIBUTE",
    "ApplicationContext",
    "ApplicationEvent",
    "ApplicationEventBus",
    "ContextClosedEvent",
    "ContextLoader",
    "ContextLoaderListener",
    "ContextProperties",
    "ContextRefreshedEvent",
    "app_event_listener",
    "context_lifespan",
    "get_root_context",
]
