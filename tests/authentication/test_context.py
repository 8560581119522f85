import base64
import ssl

import aiohttp
import pytest

from kubegate._cogs.clients import auth
from kubegate._cogs.clients.auth import APIContext, connect, decode_to_pem
from kubegate._cogs.structs.credentials import ConnectionInfo, LoginError

PEM = '-----BEGIN CERTIFICATE-----\nnot-really-a-certificate\n-----END CERTIFICATE-----\n'


@pytest.fixture()
async def make_context():
    contexts = []

    def factory(info):
        context = APIContext(info)
        contexts.append(context)
        return context

    try:
        yield factory
    finally:
        for context in contexts:
            await context.close()


@pytest.fixture()
def create_default_context(mocker):
    return mocker.patch('ssl.create_default_context', wraps=ssl.create_default_context)


async def test_server_and_namespace(make_context):
    context = make_context(ConnectionInfo(server='https://localhost', default_namespace='ns'))
    assert context.server == 'https://localhost'
    assert context.default_namespace == 'ns'
    assert context.responses == []


async def test_user_agent(make_context):
    context = make_context(ConnectionInfo(server='https://localhost'))
    assert context.session.headers['User-Agent'].startswith('kubegate/')


async def test_no_authorization_by_default(make_context):
    context = make_context(ConnectionInfo(server='https://localhost'))
    assert 'Authorization' not in context.session.headers
    assert context.session.auth is None


@pytest.mark.parametrize('scheme, token, expected', [
    (None, 'tkn', 'Bearer tkn'),
    ('Bearer', 'tkn', 'Bearer tkn'),
    ('Digest', 'xyz', 'Digest xyz'),
    ('Custom', None, 'Custom'),
])
async def test_token_authorization(make_context, scheme, token, expected):
    context = make_context(ConnectionInfo(server='https://localhost', scheme=scheme, token=token))
    assert context.session.headers['Authorization'] == expected


async def test_basic_authorization(make_context):
    context = make_context(ConnectionInfo(server='https://localhost', username='u', password='p'))
    assert context.session.auth == aiohttp.BasicAuth('u', 'p')
    assert 'Authorization' not in context.session.headers


async def test_basic_and_token_authorization_conflict():
    info = ConnectionInfo(server='https://localhost', username='u', password='p', token='tkn')
    with pytest.raises(LoginError, match=r"Both the token & the basic auth"):
        APIContext(info)


async def test_secure_connections_by_default(make_context, create_default_context):
    make_context(ConnectionInfo(server='https://localhost'))
    assert create_default_context.call_args_list[0][1]['cafile'] is None


async def test_insecure_connections(make_context, mocker):
    ssl_context = ssl.create_default_context()
    mocker.patch('ssl.create_default_context', return_value=ssl_context)
    make_context(ConnectionInfo(server='https://localhost', insecure=True))
    assert ssl_context.check_hostname is False
    assert ssl_context.verify_mode == ssl.CERT_NONE


async def test_ca_path_is_used(make_context, create_default_context):
    make_context(ConnectionInfo(server='https://localhost', ca_path='/ca/path'))
    assert create_default_context.call_args_list[0][1]['cafile'] == '/ca/path'


@pytest.mark.parametrize('ca_data', [
    PEM.encode('ascii'),
    base64.b64encode(PEM.encode('ascii')),
], ids=['pem', 'base64'])
async def test_ca_data_is_used_via_a_temporary_file(mocker, ca_data):
    seen = []

    def fake_create_default_context(*args, cafile=None, **kwargs):
        if cafile is None:
            return original(*args, **kwargs)
        with open(cafile, 'rt', encoding='ascii') as f:
            seen.append(f.read())
        return original()

    original = ssl.create_default_context
    mocker.patch('ssl.create_default_context', side_effect=fake_create_default_context)
    context = APIContext(ConnectionInfo(server='https://localhost', ca_data=ca_data))
    await context.close()
    assert seen == [PEM]


@pytest.mark.parametrize('data', [
    PEM,
    PEM.encode('ascii'),
    base64.b64encode(PEM.encode('ascii')),
    base64.b64encode(PEM.encode('ascii')).decode('ascii'),
], ids=['pem-str', 'pem-bytes', 'base64-bytes', 'base64-str'])
def test_decoding_to_pem(data):
    assert decode_to_pem(data) == PEM


async def test_connect_sets_and_resets_the_context():
    assert auth.context_var.get(None) is None
    async with connect(ConnectionInfo(server='https://localhost')) as context:
        assert auth.context_var.get(None) is context
        assert not context.session.closed
    assert auth.context_var.get(None) is None
    assert context.session.closed


async def test_explicit_context_overrides_the_connected_one(make_context):
    explicit = make_context(ConnectionInfo(server='https://explicit'))

    @auth.authenticated
    async def fn(*, context):
        return context

    async with connect(ConnectionInfo(server='https://connected')) as connected:
        assert await fn() is connected
        assert await fn(context=explicit) is explicit


async def test_unconnected_calls_fail():

    @auth.authenticated
    async def fn(*, context):
        return context

    with pytest.raises(LoginError, match=r"Not connected"):
        await fn()


async def test_open_responses_are_tracked_and_closed(mocker, make_context):
    context = make_context(ConnectionInfo(server='https://localhost'))
    response1 = mocker.Mock(closed=False)
    response2 = mocker.Mock(closed=True)
    context.add_response(response1)
    context.add_response(response2)
    assert context.responses == [response1]

    context.close_open_responses()
    assert response1.close.called
    assert context.responses == []
