import json
from functools import lru_cache

import pytest

import function_app
from relay.settings import get_config
from tests.conftest import make_request


@lru_cache(maxsize=None)
def registered_functions():
    # FunctionApp.get_functions() may only be called once per app instance
    return tuple(function_app.app.get_functions())


def route_handler(name):
    for function in registered_functions():
        if function.get_function_name() == name:
            return function.get_user_function()
    raise LookupError(name)


@pytest.fixture
def bad_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("OPENAI_MAX_TOKENS", "2k")
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.mark.parametrize("name", ["ai_proxy", "analyze", "chat_proxy"])
def test_preflight_survives_bad_settings(name, bad_env):
    response = route_handler(name)(make_request("OPTIONS"))

    assert response.status_code == 200
    assert response.get_body() == b""
    assert response.headers["Access-Control-Allow-Origin"] == "*"


def test_bad_settings_answer_config_error(bad_env):
    response = route_handler("analyze")(make_request(body={"symptoms": "fever"}))

    assert response.status_code == 500
    assert json.loads(response.get_body())["details"] == "Invalid setting(s): OPENAI_MAX_TOKENS"


def test_health_route():
    response = route_handler("health")(make_request("GET"))

    assert response.get_body() == b"ok"
