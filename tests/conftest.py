"""Shared pytest fixtures for all tests."""

import httpx
import pytest

from weedclient.client import WeedClient

MASTER_URL = 'http://master:9333'


@pytest.fixture
def master_url():
    return MASTER_URL


@pytest.fixture
def make_client():
    """
    Build WeedClient instances wired to an httpx.MockTransport handler.

    Returns:
        Factory taking (handler, **client_kwargs); every client created is
        closed at teardown
    """
    created = []

    def _make(handler, **kwargs):
        http_client = httpx.Client(transport=httpx.MockTransport(handler))
        client = WeedClient(MASTER_URL, http_client=http_client, **kwargs)
        created.append((client, http_client))
        return client

    yield _make

    for client, http_client in created:
        client.close()
        http_client.close()


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing uploads.

    Returns:
        Path to a 26-byte text file
    """
    file_path = tmp_path / 'test.txt'
    file_path.write_text('Sample content for testing')
    return file_path


@pytest.fixture
def multiple_sample_files(tmp_path):
    files = []
    for i in range(3):
        file_path = tmp_path / f'test{i}.txt'
        file_path.write_text(f'Sample content {i}')
        files.append(file_path)
    return files
