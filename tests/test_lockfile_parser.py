"""Tests for npm lockfile parsers (package-lock.json, yarn.lock)."""

import json

from versioning.lockfile_parser import parse_package_lock, parse_yarn_lock


class TestPackageLockParser:
    """Test package-lock.json parser."""

    def test_parse_package_lock_v1(self):
        """Test parsing package-lock.json with lockfileVersion 1."""
        lockfile_content = {
            "name": "test-package",
            "version": "1.0.0",
            "lockfileVersion": 1,
            "dependencies": {
                "@openzeppelin/contracts": {"version": "4.9.3"},
                "solmate": {
                    "version": "6.2.0",
                    "dependencies": {"ds-test": {"version": "1.0.0"}},
                },
            },
        }

        result = parse_package_lock(json.dumps(lockfile_content))

        assert result == {"@openzeppelin/contracts": "4.9.3", "solmate": "6.2.0", "ds-test": "1.0.0"}

    def test_v1_top_level_wins_over_nested(self):
        """A hoisted v1 entry beats a deeper copy; unhoisted packages are still found."""
        lockfile_content = {
            "lockfileVersion": 1,
            "dependencies": {
                "a": {
                    "version": "1.0.0",
                    "dependencies": {
                        "b": {"version": "9.0.0"},
                        "c": {"version": "2.0.0"},
                    },
                },
                "b": {"version": "1.5.0"},
            },
        }

        result = parse_package_lock(json.dumps(lockfile_content))

        assert result == {"a": "1.0.0", "b": "1.5.0", "c": "2.0.0"}

    def test_parse_package_lock_v2(self):
        """Test parsing package-lock.json with lockfileVersion 2."""
        lockfile_content = {
            "name": "test-package",
            "lockfileVersion": 2,
            "packages": {
                "": {"name": "test-package", "version": "1.0.0"},
                "node_modules/@openzeppelin/contracts": {"version": "5.0.1"},
                "node_modules/solmate": {"version": "6.2.0"},
            },
        }

        result = parse_package_lock(json.dumps(lockfile_content))

        assert result["@openzeppelin/contracts"] == "5.0.1"
        assert result["solmate"] == "6.2.0"
        assert "test-package" not in result

    def test_hoisted_entry_wins_over_nested(self):
        """The shallowest copy of a package is the one recorded."""
        lockfile_content = {
            "lockfileVersion": 3,
            "packages": {
                "node_modules/a/node_modules/@s/b": {"version": "2.0.0"},
                "node_modules/@s/b": {"version": "1.0.0"},
            },
        }

        result = parse_package_lock(json.dumps(lockfile_content))

        assert result["@s/b"] == "1.0.0"

    def test_invalid_json(self):
        """Test that malformed JSON yields an empty mapping."""
        assert parse_package_lock("{not json") == {}
        assert parse_package_lock("[]") == {}


class TestYarnLockParser:
    """Test yarn.lock parser."""

    def test_parse_classic_format(self):
        """Test the yarn v1 format with quoted and multi-spec keys."""
        content = (
            "# THIS IS AN AUTOGENERATED FILE. DO NOT EDIT THIS FILE DIRECTLY.\n"
            "# yarn lockfile v1\n"
            "\n"
            '"@openzeppelin/contracts@^4.9.0", "@openzeppelin/contracts@^4.9.3":\n'
            '  version "4.9.3"\n'
            '  resolved "https://registry.yarnpkg.com/@openzeppelin/contracts/-/contracts-4.9.3.tgz"\n'
            "\n"
            "solmate@^6.2.0:\n"
            '  version "6.2.0"\n'
        )

        result = parse_yarn_lock(content)

        assert result == {"@openzeppelin/contracts": "4.9.3", "solmate": "6.2.0"}

    def test_parse_berry_format(self):
        """Test the yarn berry format (``version: x.y.z``)."""
        content = (
            "__metadata:\n"
            "  version: 6\n"
            "\n"
            '"@openzeppelin/contracts@npm:^5.0.0":\n'
            "  version: 5.0.1\n"
            "  resolution: \"@openzeppelin/contracts@npm:5.0.1\"\n"
        )

        result = parse_yarn_lock(content)

        assert result["@openzeppelin/contracts"] == "5.0.1"
        assert "__metadata" not in result

    def test_first_block_wins(self):
        """Test that the first block for a package name is kept."""
        content = (
            "pkg@^1.0.0:\n"
            '  version "1.2.0"\n'
            "\n"
            "pkg@^2.0.0:\n"
            '  version "2.1.0"\n'
        )

        assert parse_yarn_lock(content) == {"pkg": "1.2.0"}

    def test_berry_multi_spec_key(self):
        """Test that every spec of a berry multi-spec key maps to its package."""
        content = (
            "__metadata:\n"
            "  version: 8\n"
            "  cacheKey: 10\n"
            "\n"
            '"@s/a@npm:^1.0.0, @s/a@npm:^1.2.0":\n'
            "  version: 1.2.4\n"
            "\n"
            '"solmate@npm:^6.0.0":\n'
            "  version: 6.2.0\n"
        )

        assert parse_yarn_lock(content) == {"@s/a": "1.2.4", "solmate": "6.2.0"}

    def test_empty(self):
        """Test that an empty lockfile yields an empty mapping."""
        assert parse_yarn_lock("") == {}
        assert parse_yarn_lock("\n  \n") == {}
