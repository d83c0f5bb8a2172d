"""
Tests for settings loading, env overrides and verification
"""
import pytest
import yaml

from campushub.constants import DEFAULT_SETTINGS, MAX_FILE_SIZE
from campushub.settings import apply_env_overrides, load_settings, merge_settings, verify_settings


class TestMergeSettings:
    def test_section_values_are_merged(self):
        merged = merge_settings(DEFAULT_SETTINGS, {"uploads": {"max_file_size": 10}})
        assert merged["uploads"]["max_file_size"] == 10
        assert merged["uploads"]["allowed_mime_types"] == ["application/pdf"]

    def test_base_is_not_mutated(self):
        merge_settings(DEFAULT_SETTINGS, {"uploads": {"max_file_size": 10}})
        assert DEFAULT_SETTINGS["uploads"]["max_file_size"] == MAX_FILE_SIZE


class TestEnvOverrides:
    def test_cloudinary_credentials_and_port(self):
        settings = apply_env_overrides(merge_settings(DEFAULT_SETTINGS, {}), {
            "CLOUDINARY_CLOUD_NAME": "demo",
            "CLOUDINARY_API_KEY": "key",
            "CLOUDINARY_API_SECRET": "secret",
            "PORT": "8080",
        })
        assert settings["storage"]["cloud_name"] == "demo"
        assert settings["storage"]["api_secret"] == "secret"
        assert settings["server"]["port"] == 8080

    def test_drive_folder_and_key_file(self):
        settings = apply_env_overrides(merge_settings(DEFAULT_SETTINGS, {}), {
            "GOOGLE_DRIVE_FOLDER_ID": "folder-1",
            "GOOGLE_APPLICATION_CREDENTIALS": "/secrets/drive.json",
        })
        assert settings["drive"]["folder_id"] == "folder-1"
        assert settings["drive"]["credentials_file"] == "/secrets/drive.json"
        assert settings["drive"]["enabled"] is False

    def test_invalid_and_blank_values_are_ignored(self):
        settings = apply_env_overrides(merge_settings(DEFAULT_SETTINGS, {}), {"PORT": "eighty", "LOG_LEVEL": ""})
        assert settings["server"]["port"] == DEFAULT_SETTINGS["server"]["port"]
        assert settings["logging"]["level"] == "INFO"


class TestLoadSettings:
    def test_yaml_file_then_environment(self, tmp_path):
        config = tmp_path / "settings.yaml"
        config.write_text(yaml.safe_dump({
            "database": {"url": "sqlite:///from-file.db"},
            "resources": {"soft_delete": True},
        }))
        settings = load_settings(str(config), force=True, environ={"CAMPUSHUB_DATABASE_URL": "sqlite:///env.db"})
        assert settings["database"]["url"] == "sqlite:///env.db"
        assert settings["database"]["backend"] == "sql"
        assert settings["resources"]["soft_delete"] is True

    def test_missing_file_uses_defaults(self, tmp_path):
        settings = load_settings(str(tmp_path / "absent.yaml"), force=True, environ={})
        assert settings["uploads"]["max_file_size"] == MAX_FILE_SIZE

    def test_cached_until_forced(self, tmp_path):
        first = load_settings(str(tmp_path / "absent.yaml"), force=True, environ={})
        assert load_settings() is first


class TestVerifySettings:
    def test_missing_cloudinary_credentials(self):
        success, errors = verify_settings(merge_settings(DEFAULT_SETTINGS, {}))
        assert success is False
        assert {e["path"] for e in errors} == {"storage/cloud_name", "storage/api_key", "storage/api_secret"}

    @pytest.mark.parametrize("overrides, path", [
        ({"database": {"backend": "mongo"}}, "database/backend"),
        ({"uploads": {"max_file_size": 0}}, "uploads/max_file_size"),
    ])
    def test_invalid_values(self, overrides, path):
        overrides = dict(overrides, storage={"provider": "none"})
        success, errors = verify_settings(merge_settings(DEFAULT_SETTINGS, overrides))
        assert success is False
        assert [e["path"] for e in errors] == [path]

    def test_valid(self):
        success, errors = verify_settings(merge_settings(DEFAULT_SETTINGS, {
            "storage": {"cloud_name": "demo", "api_key": "k", "api_secret": "s"},
        }))
        assert success is True
        assert errors == []

    def test_enabled_drive_needs_folder_and_key_file(self, tmp_path):
        success, errors = verify_settings(merge_settings(DEFAULT_SETTINGS, {
            "storage": {"provider": "none"},
            "drive": {"enabled": True, "credentials_file": str(tmp_path / "missing.json")},
        }))
        assert success is False
        assert [e["path"] for e in errors] == ["drive/folder_id", "drive/credentials_file"]
