import functools
import logging

import click.testing
import pytest

from kubegate.cli import main


@pytest.fixture(autouse=True)
def _restore_logging():
    logger = logging.getLogger()
    handlers = logger.handlers[:]
    level = logger.level
    asyncio_logger = logging.getLogger('asyncio')
    asyncio_handlers = asyncio_logger.handlers[:]
    asyncio_propagate = asyncio_logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    asyncio_logger.handlers[:] = asyncio_handlers
    asyncio_logger.propagate = asyncio_propagate


@pytest.fixture()
def runner():
    runner = click.testing.CliRunner()
    return runner


@pytest.fixture()
def invoke(runner):
    return functools.partial(runner.invoke, main)


@pytest.fixture()
def read_obj(mocker):
    return mocker.patch('kubegate._cogs.clients.fetching.read_obj')


@pytest.fixture()
def list_objs(mocker):
    return mocker.patch('kubegate._cogs.clients.fetching.list_objs')


@pytest.fixture()
def merge_patch_obj(mocker):
    return mocker.patch('kubegate._cogs.clients.patching.merge_patch_obj')


@pytest.fixture()
def patch_obj_raw(mocker):
    return mocker.patch('kubegate._cogs.clients.patching.patch_obj_raw')
