"""Unit tests for VolumeResolver."""

import httpx
import pytest

from weedclient.exceptions import (
    DecodeError,
    FileNotFoundError as WeedFileNotFoundError,
    InvalidFileIdError,
    LookupFailedError,
    TransportError
)
from weedclient.location_cache import LocationCache
from weedclient.models import Location
from weedclient.resolver import VolumeResolver
from weedclient.transport import HttpTransport

LOOKUP_BODY = {
    'volumeId': '3',
    'locations': [{'url': '10.0.0.1:8080', 'publicUrl': '10.0.0.1:8080'}]
}


class MasterStub:
    """Records /dir/lookup requests and answers with a configurable response."""

    def __init__(self, response=None):
        self.requests = []
        self.response = response or httpx.Response(200, json=LOOKUP_BODY)

    def __call__(self, request):
        self.requests.append(request)
        if callable(self.response):
            return self.response(request)
        return self.response


@pytest.fixture
def cache():
    cache = LocationCache()
    yield cache
    cache.close()


def make_resolver(master, cache, master_url):
    http_client = httpx.Client(transport=httpx.MockTransport(master))
    return VolumeResolver(HttpTransport(http_client), master_url, cache)


def test_resolve_with_empty_cache_queries_master_and_caches(cache, master_url):
    master = MasterStub()
    resolver = make_resolver(master, cache, master_url)

    result = resolver.resolve('3,abcdef')

    assert result == (Location(url='10.0.0.1:8080', public_url='10.0.0.1:8080'),)
    assert len(master.requests) == 1
    request = master.requests[0]
    assert request.url.path == '/dir/lookup'
    assert request.url.params['volumeId'] == '3'
    assert cache.get('3') == result


def test_resolve_with_cache_makes_no_second_call(cache, master_url):
    master = MasterStub()
    resolver = make_resolver(master, cache, master_url)

    first = resolver.resolve('3,abcdef')
    second = resolver.resolve('3,012345')

    assert second == first
    assert len(master.requests) == 1


def test_resolve_without_cache_always_calls_master(cache, master_url):
    master = MasterStub()
    resolver = make_resolver(master, cache, master_url)

    resolver.resolve('3,abcdef')
    resolver.resolve('3,abcdef', use_cache=False)
    resolver.resolve('3,abcdef', use_cache=False)

    assert len(master.requests) == 3


def test_resolve_without_cache_overwrites_entry(cache, master_url):
    cache.put('3', (Location(url='old:8080', public_url='old:8080'),))
    master = MasterStub()
    resolver = make_resolver(master, cache, master_url)

    result = resolver.resolve('3,abcdef', use_cache=False)

    assert result[0].url == '10.0.0.1:8080'
    assert cache.get('3')[0].url == '10.0.0.1:8080'


def test_resolve_forwards_lookup_args(cache, master_url):
    master = MasterStub()
    resolver = make_resolver(master, cache, master_url)

    resolver.resolve('3,abcdef', {'collection': 'pictures'})

    assert master.requests[0].url.params['collection'] == 'pictures'


def test_resolve_invalid_file_id_makes_no_call(cache, master_url):
    master = MasterStub()
    resolver = make_resolver(master, cache, master_url)

    with pytest.raises(InvalidFileIdError):
        resolver.resolve('no-separator')

    assert master.requests == []


def test_resolve_reports_master_error(cache, master_url):
    master = MasterStub(httpx.Response(404, json={'volumeId': '3', 'error': 'volume id 3 not found'}))
    resolver = make_resolver(master, cache, master_url)

    with pytest.raises(LookupFailedError, match='volume id 3 not found'):
        resolver.resolve('3,abcdef')

    assert cache.get('3') is None


def test_resolve_empty_locations_is_file_not_found(cache, master_url):
    master = MasterStub(httpx.Response(200, json={'volumeId': '3', 'locations': []}))
    resolver = make_resolver(master, cache, master_url)

    with pytest.raises(WeedFileNotFoundError):
        resolver.resolve('3,abcdef')

    assert cache.get('3') is None


def test_lookup_undecodable_body_is_decode_error(cache, master_url):
    master = MasterStub(httpx.Response(200, content=b'<html>oops</html>'))
    resolver = make_resolver(master, cache, master_url)

    with pytest.raises(DecodeError) as exc_info:
        resolver.lookup('3')

    assert exc_info.value.body == b'<html>oops</html>'
    assert '<html>oops</html>' in str(exc_info.value)


def test_lookup_server_error_is_transport_error(cache, master_url):
    master = MasterStub(httpx.Response(503, content=b'unavailable'))
    resolver = make_resolver(master, cache, master_url)

    with pytest.raises(TransportError) as exc_info:
        resolver.lookup('3')

    assert exc_info.value.status_code == 503


def test_lookup_does_not_touch_cache(cache, master_url):
    master = MasterStub()
    resolver = make_resolver(master, cache, master_url)

    result = resolver.lookup('3', {'pretty': 'y'})

    assert result.volume_id == '3'
    assert master.requests[0].url.params['pretty'] == 'y'
    assert cache.get('3') is None


def test_resolve_keeps_master_order(cache, master_url):
    body = {'locations': [
        {'url': 'primary:8080', 'publicUrl': 'p1:80'},
        {'url': 'replica:8080', 'publicUrl': 'p2:80'},
    ]}
    master = MasterStub(httpx.Response(200, json=body))
    resolver = make_resolver(master, cache, master_url)

    result = resolver.resolve('5/0a0b')

    assert [location.url for location in result] == ['primary:8080', 'replica:8080']
