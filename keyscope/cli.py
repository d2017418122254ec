from __future__ import annotations

from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from collections.abc import Callable

    from keyscope.inspector.controller import Inspector
    from keyscope.inspector.models.enums import ResultKind
    from keyscope.inspector.models.state import ErrorNotice, ViewerState
    from keyscope.inspector.settings import InspectorSettings


@click.group()
@click.option("--log-level", default=None, help="Log level (default: from KEYSCOPE_LOG_LEVEL or WARNING).")
@click.pass_context
def main(ctx: click.Context, log_level: str | None) -> None:
    """Keyscope - inspect the keys and values of a Redis database."""
    from keyscope.inspector.log import setup_logging
    from keyscope.inspector.settings import get_settings

    settings = get_settings()
    setup_logging(log_level or settings.log_level)
    ctx.obj = settings


def connection_options(func: Callable) -> Callable:
    """Shared --address / --port / --db options (defaults come from settings)."""
    func = click.option("--db", "database", default=None, type=click.IntRange(min=0), help="Database index.")(func)
    func = click.option("--port", default=None, type=click.IntRange(0, 65535), help="Server port.")(func)
    func = click.option("--address", default=None, help="Server host or IP.")(func)
    return func


def _run_session(
    settings: InspectorSettings,
    address: str | None,
    port: int | None,
    database: int | None,
    action: Callable[[Inspector], None],
    failures: frozenset[ResultKind] = frozenset(),
) -> ViewerState:
    """Connect, run *action*, drain the worker and return the final state.

    Connection failures always abort; other errors abort only if their kind
    is in *failures*.
    """
    from keyscope.inspector.controller import Inspector
    from keyscope.inspector.models.enums import ResultKind
    from keyscope.inspector.sink import StateSink

    fatal = failures | {ResultKind.CONNECTION_FAILED}
    errors: list[ErrorNotice] = []

    def _record(state: ViewerState) -> None:
        notice = state.last_error
        if notice is not None and notice.kind in fatal and notice not in errors:
            errors.append(notice)

    sink = StateSink(separator=settings.separator)
    sink.subscribe(_record)
    inspector = Inspector(settings.create_gateway(), sink, join_timeout=settings.join_timeout).start()
    try:
        inspector.connect(
            address or settings.address,
            settings.port if port is None else port,
            settings.database if database is None else database,
        )
        action(inspector)
    finally:
        drained = inspector.close()

    if not drained:
        msg = f"Timed out after {settings.join_timeout}s waiting for the server."
        raise click.ClickException(msg)

    if errors:
        notice = errors[0]
        raise click.ClickException(notice.message if notice.key is None else f"{notice.key}: {notice.message}")
    return sink.snapshot()


@main.command()
@connection_options
@click.option("--separator", default=None, help="Namespace separator (default: from KEYSCOPE_SEPARATOR or ':').")
@click.option("--flat", is_flag=True, default=False, help="Print keys one per line instead of a tree.")
@click.pass_obj
def keys(
    settings: InspectorSettings,
    address: str | None,
    port: int | None,
    database: int | None,
    separator: str | None,
    flat: bool,
) -> None:
    """List keys grouped by namespace."""
    from keyscope.inspector.models.enums import ResultKind
    from keyscope.inspector.namespaces import group_keys, render_tree

    failures = frozenset({ResultKind.REFRESH_FAILED})
    state = _run_session(settings, address, port, database, lambda _inspector: None, failures)

    if flat:
        for key in state.keys:
            click.echo(key)
        return

    namespace = group_keys(state.keys, separator) if separator else state.namespace
    for line in render_tree(namespace):
        click.echo(line)


@main.command()
@connection_options
@click.argument("key")
@click.pass_obj
def get(settings: InspectorSettings, address: str | None, port: int | None, database: int | None, key: str) -> None:
    """Print the value stored at KEY."""
    from keyscope.inspector.models.enums import ResultKind
    from keyscope.inspector.models.values import describe_value, value_lines

    failures = frozenset({ResultKind.VALUE_FETCH_FAILED})
    state = _run_session(settings, address, port, database, lambda inspector: inspector.select(key), failures)
    if state.selected_value is None:
        msg = f"No value received for {key!r}."
        raise click.ClickException(msg)

    click.echo(f"# {key}: {describe_value(state.selected_value)}", err=True)
    for line in value_lines(state.selected_value):
        click.echo(line)


@main.command()
@connection_options
@click.argument("key")
@click.option("--yes", is_flag=True, default=False, help="Do not ask for confirmation.")
@click.pass_obj
def delete(
    settings: InspectorSettings,
    address: str | None,
    port: int | None,
    database: int | None,
    key: str,
    yes: bool,
) -> None:
    """Delete KEY."""
    from keyscope.inspector.models.enums import ResultKind

    if not yes:
        click.confirm(f"Delete {key!r}?", abort=True)

    failures = frozenset({ResultKind.DELETE_FAILED})
    _run_session(settings, address, port, database, lambda inspector: inspector.delete(key), failures)
    click.echo(f"Deleted {key}.")


if __name__ == "__main__":
    main()
