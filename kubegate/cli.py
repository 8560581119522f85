import asyncio
import dataclasses
import functools
import json
import logging
from typing import Any, Callable, Coroutine, Optional, TypeVar

import click
import yaml

from kubegate._cogs.clients import auth, errors, fetching, patching, watching
from kubegate._cogs.configs import configuration
from kubegate._cogs.structs import bodies, credentials, references
from kubegate._kits import loggers

logger = logging.getLogger(__name__)

_T = TypeVar('_T')


@dataclasses.dataclass()
class CLIControls:
    """ The connection & settings shared by all commands (also injectable in tests). """
    info: Optional[credentials.ConnectionInfo] = None
    settings: Optional[configuration.ClientSettings] = None


class LogFormatParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=[v.name.lower() for v in loggers.LogFormat])

    def convert(self, value: Any, param: Any, ctx: Any) -> loggers.LogFormat:
        if isinstance(value, loggers.LogFormat):
            return value
        name: str = super().convert(value, param, ctx)
        return loggers.LogFormat[name.upper()]


def logging_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to configure logging in all commands the same way."""
    @click.option('-v', '--verbose', is_flag=True)
    @click.option('-d', '--debug', is_flag=True)
    @click.option('-q', '--quiet', is_flag=True)
    @click.option('--log-format', type=LogFormatParamType(), default='full')
    @click.option('--log-refkey', type=str)
    @click.option('--log-prefix/--no-log-prefix', default=None)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(verbose: bool, quiet: bool, debug: bool,
                log_format: loggers.LogFormat = loggers.LogFormat.FULL,
                log_prefix: Optional[bool] = False,
                log_refkey: Optional[str] = None,
                *args: Any, **kwargs: Any) -> Any:
        loggers.configure(debug=debug, verbose=verbose, quiet=quiet,
                          log_format=log_format, log_refkey=log_refkey, log_prefix=log_prefix)
        return fn(*args, **kwargs)

    return wrapper


def output_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator for the commands printing the objects. """
    return click.option('-o', '--output', type=click.Choice(['yaml', 'json']), default='yaml')(fn)


@click.version_option(prog_name='kubegate')
@click.group(name='kubegate', context_settings=dict(
    auto_envvar_prefix='KUBEGATE',
))
@click.option('--server', type=str, default='https://localhost:6443')
@click.option('--token', type=str)
@click.option('--insecure', is_flag=True, default=None)
@click.option('--ca-path', type=click.Path(dir_okay=False))
@click.make_pass_decorator(CLIControls, ensure=True)
def main(
        __controls: CLIControls,
        server: str,
        token: Optional[str],
        insecure: Optional[bool],
        ca_path: Optional[str],
) -> None:
    """ Access the resources of a Kubernetes-like API. """
    if __controls.info is None:
        __controls.info = credentials.ConnectionInfo(
            server=server,
            token=token,
            insecure=insecure,
            ca_path=ca_path,
        )
    if __controls.settings is None:
        __controls.settings = configuration.ClientSettings()


@main.command()
@logging_options
@output_options
@click.option('-n', '--namespace', type=str)
@click.argument('resource')
@click.argument('name')
@click.make_pass_decorator(CLIControls, ensure=True)
def get(
        __controls: CLIControls,
        resource: str,
        name: str,
        namespace: Optional[str],
        output: str,
) -> None:
    """ Print a single resource by its name. """
    obj = _run(__controls, fetching.read_obj(
        bodies.KubeResource,
        resource=_parse_resource(resource, namespace),
        namespace=references.NamespaceName(namespace) if namespace else None,
        name=name,
        settings=_get_settings(__controls),
        logger=logger,
    ))
    if obj is None:
        raise click.ClickException(f"{resource} {name!r} not found.")
    click.echo(_format(obj, output), nl=False)


@main.command(name='list')
@logging_options
@output_options
@click.option('-n', '--namespace', type=str)
@click.option('-l', '--selector', type=str)
@click.argument('resource')
@click.make_pass_decorator(CLIControls, ensure=True)
def list_(
        __controls: CLIControls,
        resource: str,
        namespace: Optional[str],
        selector: Optional[str],
        output: str,
) -> None:
    """ Print all resources of a kind, in a namespace or cluster-wide. """
    objs = _run(__controls, fetching.list_objs(
        bodies.KubeResourceList[bodies.KubeResource],
        resource=_parse_resource(resource, namespace),
        namespace=references.NamespaceName(namespace) if namespace else None,
        params={'labelSelector': selector} if selector else None,
        settings=_get_settings(__controls),
        logger=logger,
    ))
    click.echo(_format(objs, output), nl=False)


@main.command()
@logging_options
@click.option('-n', '--namespace', type=str)
@click.option('--since', type=str, help="The resource version to start from.")
@click.argument('resource')
@click.make_pass_decorator(CLIControls, ensure=True)
def watch(
        __controls: CLIControls,
        resource: str,
        namespace: Optional[str],
        since: Optional[str],
) -> None:
    """ Print the changes of the resources of a kind, one line per change. """

    async def _watch() -> None:
        async for event in watching.watch_objs(
            bodies.KubeResource,
            resource=_parse_resource(resource, namespace),
            namespace=references.NamespaceName(namespace) if namespace else None,
            since=since,
            settings=_get_settings(__controls),
            logger=logger,
        ):
            meta = event.object.metadata
            ref = f"{meta.namespace}/{meta.name}" if meta.namespace else f"{meta.name}"
            click.echo(f"{event.type.name}\t{ref}\t{meta.resource_version or ''}")

    _run(__controls, _watch())


@main.command()
@logging_options
@output_options
@click.option('-n', '--namespace', type=str)
@click.option('--merge', 'merge_patch', type=str, help="A JSON merge-patch (RFC 7386).")
@click.option('--json', 'json_patch', type=str, help="A JSON-patch (RFC 6902).")
@click.argument('resource')
@click.argument('name')
@click.make_pass_decorator(CLIControls, ensure=True)
def patch(
        __controls: CLIControls,
        resource: str,
        name: str,
        namespace: Optional[str],
        merge_patch: Optional[str],
        json_patch: Optional[str],
        output: str,
) -> None:
    """ Patch a single resource by its name. """
    if (merge_patch is None) == (json_patch is None):
        raise click.UsageError("Exactly one of --merge or --json must be used.")

    common_kwargs = dict(
        resource=_parse_resource(resource, namespace),
        namespace=references.NamespaceName(namespace) if namespace else None,
        name=name,
        settings=_get_settings(__controls),
        logger=logger,
    )
    if merge_patch is not None:
        merge = _parse_json(merge_patch, '--merge')
        if not isinstance(merge, dict):
            raise click.BadParameter("A JSON object is expected.", param_hint='--merge')
        obj = _run(__controls, patching.merge_patch_obj(bodies.KubeResource, merge, **common_kwargs))
    else:
        operations = _parse_json(json_patch or '', '--json')
        if not isinstance(operations, list) or not all(isinstance(op, dict) for op in operations):
            raise click.BadParameter("A JSON list of operations is expected.", param_hint='--json')
        obj = _run(__controls, patching.patch_obj_raw(
            bodies.KubeResource, lambda document: document.extend(operations), **common_kwargs))
    click.echo(_format(obj, output), nl=False)


def _run(controls: CLIControls, coro: Coroutine[Any, Any, _T]) -> _T:
    """ Run the API call(s) in a new connection, convert the API errors for the CLI. """
    if controls.info is None:
        coro.close()
        raise click.UsageError("The connection is not configured.")
    info = controls.info

    async def _connected() -> _T:
        async with auth.connect(info):
            return await coro

    try:
        return asyncio.run(_connected())
    except (errors.APIError, errors.ProtocolError, credentials.LoginError) as e:
        raise click.ClickException(str(e)) from e


def _get_settings(controls: CLIControls) -> configuration.ClientSettings:
    return controls.settings if controls.settings is not None else configuration.ClientSettings()


def _parse_resource(spec: str, namespace: Optional[str]) -> references.Resource:
    try:
        return references.Resource.parse(spec, namespaced=namespace is not None)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='RESOURCE') from e


def _parse_json(text: str, param_hint: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"Invalid JSON: {e}", param_hint=param_hint) from e


def _format(obj: Any, output: str) -> str:
    data = bodies.dump(obj)
    if output == 'json':
        return json.dumps(data, indent=2) + '\n'
    else:
        return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
