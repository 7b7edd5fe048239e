"""
Tests for the settings manager.
"""

import json

import pytest

from dockjobs.configuration import Configuration
from dockjobs.settings_manager import DEFAULT_SETTINGS, ENV_PREFIX, SettingsManager


@pytest.fixture
def settings_file(tmp_path):
    return str(tmp_path / 'dockjobs' / 'settings.json')


@pytest.fixture
def clean_environment(monkeypatch):
    for key in DEFAULT_SETTINGS:
        monkeypatch.delenv(ENV_PREFIX + key.upper(), raising=False)
    return monkeypatch


def test_defaults_without_file(settings_file):
    settings = SettingsManager(settings_file, use_environment=False)
    assert settings.settings == DEFAULT_SETTINGS
    assert settings.configuration() == Configuration()


def test_file_is_merged_over_defaults(tmp_path):
    path = tmp_path / 'settings.json'
    path.write_text(json.dumps({'host': 'docker.example.com', 'use_ssl': True}))

    settings = SettingsManager(str(path), use_environment=False)

    assert settings.get('host') == 'docker.example.com'
    assert settings.get('port') == 2375
    configuration = settings.configuration()
    assert configuration.use_ssl is True
    assert configuration.scheme == 'https'


def test_broken_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / 'settings.json'
    path.write_text('{"host": ')
    settings = SettingsManager(str(path), use_environment=False)
    assert settings.settings == DEFAULT_SETTINGS


def test_non_object_file_is_ignored(tmp_path):
    path = tmp_path / 'settings.json'
    path.write_text('["host"]')
    settings = SettingsManager(str(path), use_environment=False)
    assert settings.settings == DEFAULT_SETTINGS


def test_save_and_reload(settings_file):
    settings = SettingsManager(settings_file, use_environment=False)
    settings.set('port', 2376)
    settings.update({'username': 'me', 'password': 'secret'})

    reloaded = SettingsManager(settings_file, use_environment=False)
    assert reloaded.get('port') == 2376
    assert reloaded.configuration() == Configuration(port=2376, username='me', password='secret')


def test_set_without_saving(settings_file):
    settings = SettingsManager(settings_file, use_environment=False)
    settings.set('host', 'other', save=False)
    assert SettingsManager(settings_file, use_environment=False).get('host') == 'localhost'


def test_reset_to_defaults(settings_file):
    settings = SettingsManager(settings_file, use_environment=False)
    settings.set('host', 'other')
    settings.reset_to_defaults()
    assert SettingsManager(settings_file, use_environment=False).get('host') == 'localhost'


def test_environment_overrides(settings_file, clean_environment):
    clean_environment.setenv('DOCKJOBS_HOST', 'env-host')
    clean_environment.setenv('DOCKJOBS_PORT', '2376')
    clean_environment.setenv('DOCKJOBS_USE_SSL', 'yes')
    clean_environment.setenv('DOCKJOBS_REQUEST_TIMEOUT', 'soon')

    settings = SettingsManager(settings_file)

    assert settings.get('host') == 'env-host'
    assert settings.get('port') == 2376
    assert settings.get('use_ssl') is True
    assert settings.get('request_timeout') == 300


def test_environment_ignored_when_disabled(settings_file, clean_environment):
    clean_environment.setenv('DOCKJOBS_HOST', 'env-host')
    assert SettingsManager(settings_file, use_environment=False).get('host') == 'localhost'


def test_user_settings_path(clean_environment, tmp_path):
    clean_environment.setenv('XDG_DATA_HOME', str(tmp_path))
    clean_environment.setenv('APPDATA', str(tmp_path))
    path = SettingsManager.get_user_settings_path()
    assert path.startswith(str(tmp_path))
    assert path.endswith('settings.json')
