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
"""Tests for the root context loader and the Starlette lifespan adapter."""

from pathlib import Path

import pytest
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from flybeans.container import pre_destroy
from flybeans.context import (
    ROOT_CONTEXT_ATTRIBUTE,
    ApplicationContext,
    ContextLoader,
    ContextLoaderListener,
    context_lifespan,
    get_root_context,
)
from flybeans.core.config import Config


# -- Fixtures --


closed: list[str] = []


class GreetingService:
    def greet(self, name: str) -> str:
        return f"hello {name}"

    @pre_destroy
    def shutdown(self) -> None:
        closed.append("greeting")


def register_greeting(context: ApplicationContext) -> None:
    context.register_bean("greetingService", GreetingService)


async def greet(request: Request) -> JSONResponse:
    context: ApplicationContext = request.state.application_context
    service = context.get_bean(GreetingService)
    return JSONResponse({"message": service.greet(request.path_params["name"])})


@pytest.fixture(autouse=True)
def reset_closed():
    closed.clear()


class TestContextLoaderListener:
    def test_initialized_stores_root_context(self):
        ctx = ApplicationContext(Config({}))
        ctx.register_bean("greetingService", GreetingService)
        listener = ContextLoaderListener(ctx)
        attributes: dict = {}
        listener.context_initialized(attributes)
        assert attributes[ROOT_CONTEXT_ATTRIBUTE] is ctx
        assert get_root_context(attributes) is ctx
        assert ctx.is_active
        listener.context_destroyed(attributes)
        assert ROOT_CONTEXT_ATTRIBUTE not in attributes
        assert not ctx.is_active
        assert closed == ["greeting"]

    def test_second_root_context_rejected(self):
        attributes: dict = {}
        ContextLoaderListener(ApplicationContext(Config({}))).context_initialized(attributes)
        with pytest.raises(RuntimeError, match="already a root application context"):
            ContextLoaderListener(ApplicationContext(Config({}))).context_initialized(attributes)
        get_root_context(attributes).close()

    def test_destroyed_without_context_is_a_no_op(self):
        ContextLoaderListener(ApplicationContext(Config({}))).context_destroyed({})

    def test_failed_refresh_leaves_no_root_context(self):
        class Broken:
            def __init__(self) -> None:
                raise RuntimeError("no")

        ctx = ApplicationContext(Config({}))
        ctx.register_bean("broken", Broken)
        attributes: dict = {}
        with pytest.raises(Exception):
            ContextLoaderListener(ctx).context_initialized(attributes)
        assert ROOT_CONTEXT_ATTRIBUTE not in attributes


class TestContextLoaderFromConfig:
    def test_builds_context_from_config_file(self, tmp_path: Path):
        config_file = tmp_path / "app.yaml"
        config_file.write_text("flybeans:\n  context:\n    lazy_init: true\n  logging:\n    format: json\n")
        loader = ContextLoader(config_location=config_file, initializers=[register_greeting])
        attributes: dict = {}
        ctx = loader.init_context(attributes)
        assert ctx.properties.lazy_init is True
        assert not ctx.bean_factory.contains_singleton("greetingService")
        assert ctx.get_bean("greetingService").greet("ada") == "hello ada"
        loader.close_context(attributes)

    def test_context_and_location_are_exclusive(self, tmp_path: Path):
        with pytest.raises(ValueError):
            ContextLoader(ApplicationContext(Config({})), config_location=tmp_path / "app.yaml")


class TestStarletteLifespan:
    def test_context_lives_for_app_lifetime(self):
        ctx = ApplicationContext(Config({}))
        register_greeting(ctx)
        app = Starlette(routes=[Route("/greet/{name}", greet)], lifespan=context_lifespan(ctx))

        with TestClient(app) as client:
            assert ctx.is_active
            assert app.state.application_context is ctx
            response = client.get("/greet/grace")
            assert response.status_code == 200
            assert response.json() == {"message": "hello grace"}

        assert not ctx.is_active
        assert closed == ["greeting"]

    def test_lifespan_with_loader(self, tmp_path: Path):
        loader = ContextLoader(config_location=tmp_path / "missing.yaml", initializers=[register_greeting])
        app = Starlette(routes=[Route("/greet/{name}", greet)], lifespan=context_lifespan(loader))

        with TestClient(app) as client:
            assert client.get("/greet/linus").json() == {"message": "hello linus"}

        assert closed == ["greeting"]
