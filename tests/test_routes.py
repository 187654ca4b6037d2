import sys
from pathlib import Path
from typing import Iterator

import pytest
import yaml

from tyx import (
    Registry,
    RouteEntry,
    RouteKind,
    api,
    describe,
    event,
    get,
    handler,
    inject,
    override,
    post,
    route_table,
    service,
)
from tyx._cli import main


@pytest.fixture
def greeter_app(registry: Registry, monkeypatch: pytest.MonkeyPatch) -> Iterator[Registry]:
    """Make ``tests/fixtures`` importable and forget the fixture module afterwards."""
    monkeypatch.syspath_prepend(str(Path(__file__).parent / "fixtures"))
    yield registry
    sys.modules.pop("greeter_app", None)


class TestRouteTable:
    """Test flattening of committed Apis into route entries."""

    def test_http_then_events(self, registry: Registry) -> None:
        @api
        class Greeter:
            @event("sqs", "greetings")
            def on_greeting(self, message: str) -> None: ...

            @get("/hello")
            def hello(self) -> str: ...

        @service(api=Greeter)
        class GreeterImpl:
            @handler
            def on_greeting(self, message: str) -> None: ...

            @handler
            def hello(self) -> str:
                return "Hello"

        assert route_table() == [
            RouteEntry(
                kind=RouteKind.HTTP,
                route="GET /hello",
                api="Greeter",
                method="hello",
                service="GreeterImpl",
            ),
            RouteEntry(
                kind=RouteKind.EVENT,
                route="sqs greetings",
                api="Greeter",
                method="on_greeting",
                service="GreeterImpl",
            ),
        ]

    def test_unpublished_api(self, registry: Registry) -> None:
        @api
        class Greeter:
            @get("/hello")
            def hello(self) -> str: ...

        [entry] = route_table(registry)
        assert entry.service is None

    def test_inherited_routes_belong_to_derived_api(self, registry: Registry) -> None:
        @api
        class Greeter:
            @get("/hello")
            def hello(self) -> str: ...

        @api
        class PoliteGreeter(Greeter):
            @post("/goodbye")
            def goodbye(self) -> str: ...

        routes = {(entry.api, entry.route) for entry in route_table()}
        assert routes == {
            ("Greeter", "GET /hello"),
            ("PoliteGreeter", "POST /goodbye"),
            ("PoliteGreeter", "GET /hello"),
        }

    def test_route_kind_is_a_string(self) -> None:
        assert RouteKind.HTTP == "http"
        assert RouteKind.EVENT.value == "event"


class TestDescribe:
    """Test the JSON-compatible description of the registry."""

    def test_api_and_service(self, registry: Registry) -> None:
        @api
        class Greeter:
            @get("/hello", code=201)
            def hello(self) -> str: ...

        @service(api=Greeter)
        class GreeterImpl:
            greeting = inject("greeting")

            @handler
            def hello(self) -> str:
                return "Hello"

        @service(final=True)
        class GreeterImplV2(GreeterImpl):
            @override
            def hello(self) -> str:
                return "Hi"

        description = describe()
        assert description["apis"] == {
            "Greeter": {
                "alias": "Greeter",
                "base": None,
                "owner": None,
                "publisher": "GreeterImplV2",
                "services": ["GreeterImpl", "GreeterImplV2"],
                "methods": {
                    "hello": {
                        "inherited_from": None,
                        "http": [{"route": "GET /hello", "code": 201}],
                        "events": [],
                    }
                },
            }
        }
        v2 = description["services"]["GreeterImplV2"]
        assert v2["alias"] == "Greeter"
        assert v2["final"] is True
        assert v2["inline"] is False
        assert v2["api"] == "Greeter"
        assert v2["base"] == "GreeterImpl"
        assert v2["dependencies"] == {
            "greeting": {"resource": "greeting", "index": None, "inherited_from": "GreeterImpl"}
        }
        assert v2["handlers"] == {
            "hello": {"method": "hello", "override": True, "inherited_from": None}
        }
        assert v2["activator"] is None

    def test_empty_registry(self, registry: Registry) -> None:
        assert describe() == {"apis": {}, "services": {}}


class TestCli:
    """Test the ``tyx-describe`` entry point."""

    def test_dumps_imported_modules(
        self, greeter_app: Registry, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main(["greeter_app"])
        output = yaml.safe_load(capsys.readouterr().out)
        assert output == describe(greeter_app)
        assert output["apis"]["GreeterApi"]["publisher"] == "GreeterService"
        assert output["services"]["GreeterService"]["final"] is True

    def test_verbose(self, greeter_app: Registry, capsys: pytest.CaptureFixture[str]) -> None:
        main(["--verbose", "greeter_app"])
        assert "GreeterApi" in capsys.readouterr().out

    def test_usage(self) -> None:
        with pytest.raises(SystemExit, match="Usage: tyx-describe"):
            main([])
