"""Tests for client configuration module."""

import json

from weedclient.config import Config


def test_config_creates_default_file(tmp_path):
    """Test that config file is created with defaults if missing."""
    config_path = tmp_path / '.weedclient' / 'config.json'
    config = Config(config_path)

    assert config_path.exists()
    assert config.data['timeout'] == 30
    assert config.data['cache_ttl'] == 300
    assert config.data['cache_sweep_interval'] == 600
    with open(config_path, 'r') as f:
        assert json.load(f) == config.data


def test_config_without_path_uses_defaults():
    config = Config()

    assert config.config_path is None
    assert config.get_cache_ttl() == 300
    config.save()


def test_config_loads_existing_file(tmp_path):
    """Test loading existing config file."""
    config_path = tmp_path / '.weedclient' / 'config.json'
    config_path.parent.mkdir(parents=True)

    with open(config_path, 'w') as f:
        json.dump({'master_url': 'http://example.com:9333/', 'max_file_size': 1024}, f)

    config = Config(config_path)

    assert config.get_master_url() == 'http://example.com:9333'
    assert config.get_max_file_size() == 1024
    assert config.get_timeout() == 30


def test_config_handles_corrupted_file(tmp_path):
    """Test recovery from corrupted config file."""
    config_path = tmp_path / '.weedclient' / 'config.json'
    config_path.parent.mkdir(parents=True)

    with open(config_path, 'w') as f:
        f.write('{ invalid json content')

    config = Config(config_path)

    assert config.get_cache_sweep_interval() == 600
    assert config_path.with_suffix('.json.bak').exists()


def test_config_set_master_url_persists(tmp_path):
    config_path = tmp_path / 'config.json'
    config = Config(config_path)

    config.set_master_url('http://10.0.0.9:9333')

    assert Config(config_path).get_master_url() == 'http://10.0.0.9:9333'


def test_config_master_url_from_environment(tmp_path, monkeypatch):
    monkeypatch.setitem(Config.DEFAULT_CONFIG, 'master_url', 'http://env-master:9333')

    assert Config(tmp_path / 'config.json').get_master_url() == 'http://env-master:9333'
