"""CLI tests using click's CliRunner and the fake gateway."""

from __future__ import annotations

import pytest
from click.testing import CliRunner
from conftest import FakeGateway

from keyscope.cli import main
from keyscope.inspector.models.values import Absent, FieldMap, Scalar
from keyscope.inspector.settings import InspectorSettings


@pytest.fixture(autouse=True)
def _keep_loguru_sinks(monkeypatch: pytest.MonkeyPatch) -> None:
    """CliRunner swaps stderr per invocation; do not bind loguru to it."""
    monkeypatch.setattr("keyscope.inspector.log.setup_logging", lambda _level: None)


@pytest.fixture
def fake_gateway(monkeypatch: pytest.MonkeyPatch) -> FakeGateway:
    gateway = FakeGateway(
        keys=["a", "user:1", "user:2", "user:1:tags"],
        values={"a": Scalar(value="hello"), "user:1": FieldMap(entries={"name": "ada"})},
    )
    monkeypatch.setattr(InspectorSettings, "create_gateway", lambda _self: gateway)
    return gateway


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def test_keys_tree(runner: CliRunner, fake_gateway: FakeGateway) -> None:
    result = runner.invoke(main, ["keys"])

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == [
        "a",
        "user/ (3)",
        "  user:1",
        "  user:2",
        "  user:1/ (1)",
        "    user:1:tags",
    ]
    assert fake_gateway.calls[0] == ("connect", None, ("127.0.0.1", 6379, 0))


def test_keys_flat_with_options(runner: CliRunner, fake_gateway: FakeGateway) -> None:
    result = runner.invoke(main, ["keys", "--flat", "--address", "10.1.1.1", "--port", "7000", "--db", "2"])

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["a", "user:1", "user:2", "user:1:tags"]
    assert fake_gateway.calls[0] == ("connect", None, ("10.1.1.1", 7000, 2))


def test_keys_defaults_from_env(
    runner: CliRunner, fake_gateway: FakeGateway, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("KEYSCOPE_PORT", "6390")
    monkeypatch.setenv("KEYSCOPE_DATABASE", "4")
    result = runner.invoke(main, ["keys", "--flat"])

    assert result.exit_code == 0, result.output
    assert fake_gateway.calls[0] == ("connect", None, ("127.0.0.1", 6390, 4))


def test_keys_custom_separator(runner: CliRunner, fake_gateway: FakeGateway) -> None:
    fake_gateway.keys = ["x/y", "z"]
    result = runner.invoke(main, ["keys", "--separator", "/"])

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["z", "x/ (1)", "  x/y"]


def test_keys_rejects_bad_port(runner: CliRunner, fake_gateway: FakeGateway) -> None:
    result = runner.invoke(main, ["keys", "--port", "99999"])
    assert result.exit_code == 2
    assert fake_gateway.calls == []


def test_get_value(runner: CliRunner, fake_gateway: FakeGateway) -> None:
    result = runner.invoke(main, ["get", "user:1"])

    assert result.exit_code == 0, result.output
    assert "name\nada\n" in result.output


def test_get_missing_prints_null(runner: CliRunner, fake_gateway: FakeGateway) -> None:
    result = runner.invoke(main, ["get", "nope"])

    assert result.exit_code == 0, result.output
    assert result.output.splitlines()[-1] == "null"


def test_get_fetch_failure_exits_nonzero(runner: CliRunner, fake_gateway: FakeGateway) -> None:
    fake_gateway.get_failures = 1
    result = runner.invoke(main, ["get", "a"])

    assert result.exit_code == 1
    assert "timeout reading a" in result.output


def test_connection_failure_exits_nonzero(runner: CliRunner, fake_gateway: FakeGateway) -> None:
    fake_gateway.connect_error = "Connection refused"
    result = runner.invoke(main, ["keys"])

    assert result.exit_code == 1
    assert "Connection refused" in result.output


def test_delete_with_confirmation(runner: CliRunner, fake_gateway: FakeGateway) -> None:
    result = runner.invoke(main, ["delete", "a"], input="y\n")

    assert result.exit_code == 0, result.output
    assert "Deleted a." in result.output
    assert "a" not in fake_gateway.keys
    assert fake_gateway.values.get("a", Absent()) == Absent()


def test_delete_aborted(runner: CliRunner, fake_gateway: FakeGateway) -> None:
    result = runner.invoke(main, ["delete", "a"], input="n\n")

    assert result.exit_code == 1
    assert fake_gateway.calls == []


def test_delete_yes(runner: CliRunner, fake_gateway: FakeGateway) -> None:
    result = runner.invoke(main, ["delete", "user:2", "--yes"])

    assert result.exit_code == 0, result.output
    assert "user:2" not in fake_gateway.keys


def test_delete_missing_key_exits_nonzero(runner: CliRunner, fake_gateway: FakeGateway) -> None:
    result = runner.invoke(main, ["delete", "nope", "--yes"])

    assert result.exit_code == 1
    assert "nope: no such key" in result.output
    assert "Deleted" not in result.output


def test_get_ignores_failed_key_listing(runner: CliRunner, fake_gateway: FakeGateway) -> None:
    fake_gateway.list_failures = 1
    result = runner.invoke(main, ["get", "a"])

    assert result.exit_code == 0, result.output
    assert result.output.splitlines()[-1] == "hello"


def test_keys_listing_failure_exits_nonzero(runner: CliRunner, fake_gateway: FakeGateway) -> None:
    fake_gateway.list_failures = 1
    result = runner.invoke(main, ["keys"])

    assert result.exit_code == 1
    assert "connection reset by peer" in result.output
