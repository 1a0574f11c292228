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
"""Context settings bound from the ``flybeans.context`` configuration section."""

from __future__ import annotations

from pydantic import BaseModel

from flybeans.core.config import config_properties


@config_properties(prefix="flybeans.context")
class ContextProperties(BaseModel):
    """Container behaviour switches.

    - ``allow_bean_definition_overriding``: a second definition under an
      existing name replaces the first instead of raising
    - ``allow_circular_references``: expose early references so singletons
      can depend on each other through properties
    - ``lazy_init``: skip eager singleton creation on refresh
    """

    allow_bean_definition_overriding: bool = True
    allow_circular_references: bool = True
    lazy_init: bool = False
