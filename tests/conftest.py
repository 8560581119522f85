import io
import json
import logging
import re
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest
from aresponses import ResponsesMockServer

from kubegate._cogs.clients import auth
from kubegate._cogs.configs.configuration import ClientSettings
from kubegate._cogs.structs.credentials import ConnectionInfo
from kubegate._cogs.structs.kinds import KindRegistry
from kubegate._cogs.structs.references import Resource
from kubegate._kits.loggers import ObjectPrefixingTextFormatter, configure


@pytest.fixture()
def namespaced_resource():
    """ The resource used in the tests. Usually mocked, so it does not matter. """
    return Resource('example.com', 'v1', 'widgets', namespaced=True)


@pytest.fixture()
def cluster_resource():
    """ The resource used in the tests. Usually mocked, so it does not matter. """
    return Resource('example.com', 'v1', 'widgets', namespaced=False)


@pytest.fixture(params=[True, False], ids=['namespaced', 'cluster'])
def resource(request):
    """ The resource used in the tests. Usually mocked, so it does not matter. """
    return Resource('example.com', 'v1', 'widgets', namespaced=request.param)


@pytest.fixture()
def namespace(resource):
    return 'ns' if resource.namespaced else None


@pytest.fixture()
def settings():
    return ClientSettings()


@pytest.fixture()
def logger():
    return logging.getLogger('kubegate.tests')


@pytest.fixture()
def registry():
    """ A fresh registry, to be passed explicitly: the default one has the bundled models. """
    return KindRegistry()


#
# Mocks for the API server. Reasons:
# 1. We do not test aiohttp, we test the layers on top of it,
#    so the server side is simulated as closely to the real one as possible.
# 2. No external calls must be made under any circumstances.
#    The unit-tests must be fully isolated from the environment.
#

@pytest.fixture()
def hostname():
    """ A fake hostname to be used in all aiohttp/aresponses tests. """
    return 'fake-host'


@pytest.fixture()
async def aresponses():
    async with ResponsesMockServer() as server:
        yield server


@pytest.fixture()
def connection_info(hostname):
    return ConnectionInfo(server=f'http://{hostname}', default_namespace='default')


@pytest.fixture()
async def fake_context(connection_info):
    """
    A connected context for the API calls, as if inside of ``kubegate.connect()``.
    """
    context = auth.APIContext(connection_info)
    token = auth.context_var.set(context)
    try:
        yield context
    finally:
        auth.context_var.reset(token)
        await context.close()


# Note: Unused `fake_context` is to ensure that the client wrappers have the session.
@pytest.fixture()
def resp_mocker(fake_context, aresponses):
    """
    A factory of server-side callbacks for `aresponses` with mocking/spying.

    The value of the fixture is a function, which return a coroutine mock.
    That coroutine mock should be passed to `aresponses.add` as a response
    callback function. When called, it calls the mock defined by the function's
    arguments (specifically, return_value or side_effects).

    The difference from passing the responses directly to `aresponses.add`
    is that it is possible to assert on whether the response was handled
    by that callback at all (i.e. HTTP URL & method matched), especially
    if there are multiple responses registered.

    Sample usage::

        def test_me(resp_mocker):
            response = aiohttp.web.json_response({'a': 'b'})
            callback = resp_mocker(return_value=response)
            aresponses.add(hostname, '/path/', 'get', callback)
            do_something()
            assert callback.called
            assert callback.call_count == 1
    """
    def resp_maker(*args, **kwargs):
        actual_response = MagicMock(*args, **kwargs)

        async def resp_mock_effect(request):
            nonlocal actual_response

            # The request's content can be read inside of the handler only. We preserve
            # the data into a conventional field, so that they could be asserted later.
            text = await request.text()
            try:
                request.data = json.loads(text) if text else None
            except json.JSONDecodeError:
                request.data = text

            # Get a response/error as it was intended (via return_value/side_effect).
            response = actual_response()
            return response

        return AsyncMock(side_effect=resp_mock_effect)
    return resp_maker


#
# Helpers for the logging checks.
#


@pytest.fixture()
def logstream(caplog):
    """ Prefixing is done at the final output. We have to intercept it. """

    logger = logging.getLogger()
    handlers = list(logger.handlers)

    # Setup all log levels of sub-libraries. A sife-effect: the handlers are also added.
    configure(verbose=True)

    # Remove any stream handlers added in the step above. But keep the caplog's handlers.
    for handler in list(logger.handlers):
        if isinstance(handler, logging.StreamHandler) and handler.stream is sys.stderr:
            logger.removeHandler(handler)

    # Inject our stream-intercepting handler.
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    formatter = ObjectPrefixingTextFormatter('prefix %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    try:
        with caplog.at_level(logging.DEBUG):
            yield stream
    finally:
        logger.removeHandler(handler)
        logger.handlers[:] = handlers  # undo `configure()`


@pytest.fixture()
def assert_logs(caplog):
    """
    A function to assert the logs are present (by pattern).

    The listed message patterns MUST be present, in the order specified.
    Some other log messages can also be present, but they are ignored.
    """
    def assert_logs_fn(patterns, prohibited=[], strict=False):
        __traceback_hide__ = True
        remaining_patterns = list(patterns)
        for message in caplog.messages:
            # The expected pattern is at position 0.
            # Looking-ahead: if one of the following patterns matches, while the
            # 0th does not, then the log message is missing, and we fail the test.
            for idx, pattern in enumerate(remaining_patterns):
                m = re.search(pattern, message)
                if m:
                    if idx == 0:
                        remaining_patterns[:1] = []
                        break  # out of `remaining_patterns` cycle
                    else:
                        skipped_patterns = remaining_patterns[:idx]
                        raise AssertionError(f"Few patterns were skipped: {skipped_patterns!r}")
                elif strict:
                    raise AssertionError(f"Unexpected log message: {message!r}")

            # Check that the prohibited patterns do not appear in any message.
            for pattern in prohibited:
                m = re.search(pattern, message)
                if m:
                    raise AssertionError(f"Prohibited log pattern found: {message!r} ~ {pattern!r}")

        # If all patterns have been matched in order, we are done.
        # if some are left, but the messages are over, then we fail.
        if remaining_patterns:
            raise AssertionError(f"Few patterns were missed: {remaining_patterns!r}")

    return assert_logs_fn
