import aiohttp.web
import pytest

from kubegate._cogs.clients.errors import APIConflictError, APINotFoundError
from kubegate._cogs.clients.patching import merge_patch_obj, patch_obj, patch_obj_raw
from kubegate.models import DeploymentV1

PATCHED = {
    'kind': 'Deployment', 'apiVersion': 'apps/v1',
    'metadata': {'name': 'name1', 'resourceVersion': '124'},
    'spec': {'replicas': 3},
}
CURRENT = {
    'kind': 'Deployment', 'apiVersion': 'apps/v1',
    'metadata': {'name': 'name1', 'resourceVersion': '123', 'labels': {'app': 'web', 'tier': 'front'}},
    'spec': {'replicas': 1},
}


async def test_typed_patching(
        resp_mocker, aresponses, hostname, settings, logger, resource, namespace):

    patch_mock = resp_mocker(return_value=aiohttp.web.json_response(PATCHED))
    aresponses.add(hostname, resource.get_url(namespace=namespace, name='name1'), 'patch', patch_mock)

    obj = await patch_obj(
        DeploymentV1,
        lambda p: p.replace('spec.replicas', 3),
        resource=resource, namespace=namespace, name='name1',
        settings=settings, logger=logger,
    )
    assert isinstance(obj, DeploymentV1)
    assert obj.spec is not None
    assert obj.spec.replicas == 3
    assert obj.metadata.resource_version == '124'

    assert patch_mock.called
    assert patch_mock.call_count == 1

    request = patch_mock.call_args[0][0]
    assert request.headers['Content-Type'] == 'application/json-patch+json'
    assert request.data == [{'op': 'replace', 'path': '/spec/replicas', 'value': 3}]


async def test_typed_patching_with_aliases_and_tests(
        resp_mocker, aresponses, hostname, settings, logger, resource, namespace):

    patch_mock = resp_mocker(return_value=aiohttp.web.json_response(PATCHED))
    aresponses.add(hostname, resource.get_url(namespace=namespace, name='name1'), 'patch', patch_mock)

    def fn(p):
        p.test(('metadata', 'resource_version'), '123')
        p.add(('metadata', 'labels', 'app/name'), 'demo')
        p.remove('spec.min_ready_seconds')

    await patch_obj(
        DeploymentV1, fn,
        resource=resource, namespace=namespace, name='name1',
        settings=settings, logger=logger,
    )
    assert patch_mock.call_args[0][0].data == [
        {'op': 'test', 'path': '/metadata/resourceVersion', 'value': '123'},
        {'op': 'add', 'path': '/metadata/labels/app~1name', 'value': 'demo'},
        {'op': 'remove', 'path': '/spec/minReadySeconds'},
    ]


async def test_undeclared_fields_fail_before_the_request(
        resp_mocker, aresponses, hostname, settings, logger, resource, namespace):

    patch_mock = resp_mocker(return_value=aiohttp.web.json_response(PATCHED))
    aresponses.add(hostname, resource.get_url(namespace=namespace, name='name1'), 'patch', patch_mock)

    with pytest.raises(ValueError, match=r"has no field 'replicaz'"):
        await patch_obj(
            DeploymentV1,
            lambda p: p.replace('spec.replicaz', 3),
            resource=resource, namespace=namespace, name='name1',
            settings=settings, logger=logger,
        )
    assert not patch_mock.called


async def test_raw_patching(
        resp_mocker, aresponses, hostname, settings, logger, resource, namespace):

    patch_mock = resp_mocker(return_value=aiohttp.web.json_response(PATCHED))
    aresponses.add(hostname, resource.get_url(namespace=namespace, name='name1'), 'patch', patch_mock)

    obj = await patch_obj_raw(
        DeploymentV1,
        lambda p: p.replace('/spec/replicas', 3).add('/spec/whatever', {'x': 'y'}),
        resource=resource, namespace=namespace, name='name1',
        settings=settings, logger=logger,
    )
    assert isinstance(obj, DeploymentV1)

    request = patch_mock.call_args[0][0]
    assert request.headers['Content-Type'] == 'application/json-patch+json'
    assert request.data == [
        {'op': 'replace', 'path': '/spec/replicas', 'value': 3},
        {'op': 'add', 'path': '/spec/whatever', 'value': {'x': 'y'}},
    ]


async def test_merge_patching(
        resp_mocker, aresponses, hostname, settings, logger, resource, namespace):

    patch_mock = resp_mocker(return_value=aiohttp.web.json_response(PATCHED))
    aresponses.add(hostname, resource.get_url(namespace=namespace, name='name1'), 'patch', patch_mock)

    obj = await merge_patch_obj(
        DeploymentV1,
        {'spec': {'replicas': 3, 'paused': None}},
        resource=resource, namespace=namespace, name='name1',
        settings=settings, logger=logger,
    )
    assert isinstance(obj, DeploymentV1)

    request = patch_mock.call_args[0][0]
    assert request.headers['Content-Type'] == 'application/merge-patch+json'
    assert request.data == {'spec': {'replicas': 3, 'paused': None}}


@pytest.mark.parametrize('body', [
    pytest.param(DeploymentV1.model_validate(CURRENT), id='model'),
    pytest.param(CURRENT, id='raw'),
])
async def test_merge_patching_against_a_known_body(
        resp_mocker, aresponses, hostname, settings, logger, resource, namespace, body):

    patch_mock = resp_mocker(return_value=aiohttp.web.json_response(PATCHED))
    aresponses.add(hostname, resource.get_url(namespace=namespace, name='name1'), 'patch', patch_mock)

    obj = await merge_patch_obj(
        DeploymentV1,
        {'metadata': {'labels': {'app': 'web', 'tier': None, 'new': 'yes'}},
         'spec': {'replicas': 3, 'paused': None, 'minReadySeconds': 5}},
        body=body,
        resource=resource, namespace=namespace, name='name1',
        settings=settings, logger=logger,
    )
    assert isinstance(obj, DeploymentV1)

    request = patch_mock.call_args[0][0]
    assert request.headers['Content-Type'] == 'application/json-patch+json'
    assert request.data == [
        {'op': 'remove', 'path': '/metadata/labels/tier'},
        {'op': 'add', 'path': '/metadata/labels/new', 'value': 'yes'},
        {'op': 'replace', 'path': '/spec/replicas', 'value': 3},
        {'op': 'add', 'path': '/spec/minReadySeconds', 'value': 5},
    ]


async def test_merge_patching_without_changes_against_a_known_body(
        resp_mocker, aresponses, hostname, settings, logger, resource, namespace):

    patch_mock = resp_mocker(return_value=aiohttp.web.json_response(PATCHED))
    aresponses.add(hostname, resource.get_url(namespace=namespace, name='name1'), 'patch', patch_mock)

    await merge_patch_obj(
        DeploymentV1,
        {'spec': {'replicas': 1, 'paused': None}},
        body=CURRENT,
        resource=resource, namespace=namespace, name='name1',
        settings=settings, logger=logger,
    )

    request = patch_mock.call_args[0][0]
    assert request.data == []


async def test_subresource_patching(
        resp_mocker, aresponses, hostname, settings, logger, namespaced_resource):

    patch_mock = resp_mocker(return_value=aiohttp.web.json_response(PATCHED))
    url = namespaced_resource.get_url(namespace='ns', name='name1', subresource='status')
    aresponses.add(hostname, url, 'patch', patch_mock)

    await merge_patch_obj(
        DeploymentV1,
        {'status': {'replicas': 3}},
        resource=namespaced_resource, namespace='ns', name='name1', subresource='status',
        settings=settings, logger=logger,
    )
    assert patch_mock.call_count == 1
    assert patch_mock.call_args[0][0].path.endswith('/name1/status')


async def test_conflicts_escalate(
        resp_mocker, aresponses, hostname, settings, logger, resource, namespace):

    status = {'kind': 'Status', 'apiVersion': 'v1', 'status': 'Failure', 'reason': 'Conflict',
              'message': 'the object has been modified', 'code': 409}
    patch_mock = resp_mocker(return_value=aiohttp.web.json_response(status, status=409))
    aresponses.add(hostname, resource.get_url(namespace=namespace, name='name1'), 'patch', patch_mock)

    with pytest.raises(APIConflictError) as err:
        await patch_obj(
            DeploymentV1,
            lambda p: p.test('metadata.resource_version', '100').replace('spec.replicas', 3),
            resource=resource, namespace=namespace, name='name1',
            settings=settings, logger=logger,
        )
    assert err.value.reason == 'Conflict'
    assert str(err.value) == ("Failed to patch Deployment (apps/v1) resource (HTTP status 409):"
                              " Conflict: the object has been modified")


async def test_absent_resources_are_errors(
        resp_mocker, aresponses, hostname, settings, logger, resource, namespace):

    status = {'kind': 'Status', 'apiVersion': 'v1', 'reason': 'NotFound', 'code': 404}
    patch_mock = resp_mocker(return_value=aiohttp.web.json_response(status, status=404))
    aresponses.add(hostname, resource.get_url(namespace=namespace, name='name1'), 'patch', patch_mock)

    with pytest.raises(APINotFoundError):
        await merge_patch_obj(
            DeploymentV1, {'spec': {'replicas': 3}},
            resource=resource, namespace=namespace, name='name1',
            settings=settings, logger=logger,
        )
