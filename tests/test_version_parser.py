"""Tests for range-string override parsing."""

from registry.npm.client import NpmClient
from versioning.parser import (
    extract_package_name,
    extract_version,
    get_sanitized_version,
    is_version_contain_package_name,
)


class TestOverrideParsing:
    """Tests for the scope:name@range and name@range forms."""

    def test_scope_name_range(self):
        assert extract_package_name("scope:real-name@^2.0.0") == "real-name"
        assert extract_version("scope:real-name@^2.0.0") == "^2.0.0"

    def test_name_range(self):
        assert extract_package_name("other@~1.4.0") == "other"
        assert extract_version("other@~1.4.0") == "~1.4.0"

    def test_plain_range_unchanged(self):
        assert extract_version("^1.2.0") == "^1.2.0"
        assert get_sanitized_version(">=1.0.0 <2.0.0") == ">=1.0.0 <2.0.0"

    def test_contains_package_name_only_with_at(self):
        assert is_version_contain_package_name("scope:real-name@^2.0.0") is True
        assert is_version_contain_package_name("name@1.0.0") is True
        assert is_version_contain_package_name("^2.0.0") is False
        assert is_version_contain_package_name("npm:real-name") is False

    def test_scoped_real_name(self):
        assert extract_package_name("npm:@scope/pkg@^1.0.0") == "@scope/pkg"
        assert extract_version("npm:@scope/pkg@^1.0.0") == "^1.0.0"

    def test_scoped_name_without_range(self):
        assert extract_package_name("npm:@scope/pkg") == "@scope/pkg"
        assert extract_version("npm:@scope/pkg") == ""


class TestClientHelpers:
    """The client exposes the same helpers under its own names."""

    def test_client_delegates(self):
        assert NpmClient.extract_package_name_from_version("scope:real-name@^2.0.0") == "real-name"
        assert NpmClient.extract_version_from_version("scope:real-name@^2.0.0") == "^2.0.0"
        assert NpmClient.get_sanitized_version("real-name@^2.0.0") == "^2.0.0"
        assert NpmClient.is_version_contain_package_name("^2.0.0") is False
