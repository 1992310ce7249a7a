"""Tests for prioritized package version resolution."""

import pytest

from versioning.models import ResolvedVersion
from versioning.resolver import PackageVersionResolver
from versioning.strategies import BaseVersionStrategy, ResolutionContext


@pytest.fixture
def workspace_io(fake_io):
    """Workspace with a package.json, a package-lock.json and a yarn.lock."""
    fake_io.add_json("package.json", {
        "name": "workspace",
        "dependencies": {
            "@s/exact": "1.2.3",
            "@s/ranged": "^1.0.0",
            "@oz/x": "npm:@openzeppelin/contracts@4.9.0",
        },
        "devDependencies": {"@s/dev": "0.5.0"},
        "resolutions": {"@s/pinned": "3.0.0", "@s/exact": "1.2.4"},
    })
    fake_io.add_json("package-lock.json", {
        "lockfileVersion": 3,
        "packages": {"node_modules/@s/locked": {"version": "2.2.2"}},
    })
    fake_io.files["yarn.lock"] = '"@s/locked@^2.0.0":\n  version "2.3.0"\n'
    return fake_io


class TestWorkspaceStrategy:
    """Pins from the root package.json."""

    def test_resolution_overrides_dependency(self, workspace_io):
        """Test that resolutions beat declared dependencies."""
        resolver = PackageVersionResolver(workspace_io)
        assert resolver.resolve_version("@s/exact") == ResolvedVersion("1.2.4", "workspace-resolution")

    def test_exact_dependency(self, workspace_io):
        """Test an exact workspace dependency."""
        resolver = PackageVersionResolver(workspace_io)
        assert resolver.resolve_version("@s/dev") == ResolvedVersion("0.5.0", "workspace-resolution")

    def test_npm_alias(self, workspace_io):
        """Test an npm alias in the workspace."""
        resolver = PackageVersionResolver(workspace_io)
        result = resolver.resolve_version("@oz/x")
        assert result.version == "4.9.0"
        assert result.source == "alias:@oz/x→@openzeppelin/contracts"

    def test_ranged_dependency_is_not_a_pin(self, workspace_io):
        """Test that a range is not treated as a pin."""
        resolver = PackageVersionResolver(workspace_io)
        resolver.load_workspace_resolutions()
        assert not resolver.has_workspace_resolution("@s/ranged")

    def test_workspace_wins_over_parent(self, workspace_io):
        """Test workspace precedence over the parent."""
        resolver = PackageVersionResolver(workspace_io)
        result = resolver.resolve_version("@s/pinned", {"@s/pinned": "9.9.9"}, "@s/a@1.0.0")
        assert result == ResolvedVersion("3.0.0", "workspace-resolution")

    def test_invalid_package_json_is_ignored(self, fake_io):
        """Test that a broken package.json is ignored."""
        fake_io.files["package.json"] = "{oops"
        resolver = PackageVersionResolver(fake_io)
        resolver.load_workspace_resolutions()
        assert resolver.get_workspace_resolutions() == {}


class TestParentAndLockStrategies:
    """Parent context and lockfile tiers."""

    def test_parent_dependency(self, workspace_io):
        """Test a version from the parent package."""
        resolver = PackageVersionResolver(workspace_io)
        result = resolver.resolve_version("@s/c", {"@s/c": "1.1.0"}, "@s/a@1.0.0")
        assert result == ResolvedVersion("1.1.0", "parent-@s/a@1.0.0")

    def test_parent_wins_over_lock(self, workspace_io):
        """Test parent precedence over lockfiles."""
        resolver = PackageVersionResolver(workspace_io)
        result = resolver.resolve_version("@s/locked", {"@s/locked": "2.0.1"}, "@s/a@1.0.0")
        assert result.source == "parent-@s/a@1.0.0"

    def test_yarn_lock_preferred(self, workspace_io):
        """Test that yarn.lock is read before package-lock.json."""
        resolver = PackageVersionResolver(workspace_io)
        assert resolver.resolve_version("@s/locked") == ResolvedVersion("2.3.0", "lock-file")

    def test_package_lock_fallback(self, workspace_io):
        """Test package-lock.json without a yarn.lock."""
        del workspace_io.files["yarn.lock"]
        resolver = PackageVersionResolver(workspace_io)
        assert resolver.resolve_version("@s/locked") == ResolvedVersion("2.2.2", "lock-file")
        assert resolver.get_lock_file_version("@s/locked") == "2.2.2"


class TestNpmFetchStrategy:
    """Published package.json fallback."""

    def test_fetch_latest(self, fake_io):
        """Test the version from the registry manifest."""
        fake_io.add_json("@s/pub/package.json", {"name": "@s/pub", "version": "4.0.0"}, remote=True)
        resolver = PackageVersionResolver(fake_io)
        assert resolver.resolve_version("@s/pub") == ResolvedVersion("4.0.0", "package-json")
        assert fake_io.fetched == ["@s/pub/package.json"]

    def test_unresolved(self, fake_io):
        """Test the result when nothing resolves."""
        resolver = PackageVersionResolver(fake_io)
        result = resolver.resolve_version("@s/missing")
        assert result == ResolvedVersion(None, "fetched")
        assert not result.resolved


class _FixedStrategy(BaseVersionStrategy):
    name = "fixed"
    priority = 200

    def resolve(self, context: ResolutionContext):
        return ResolvedVersion("0.0.1", "fixed")


class TestStrategyRegistry:
    """Adding and removing strategies."""

    def test_priority_order(self, fake_io):
        """Test the default strategy priorities."""
        resolver = PackageVersionResolver(fake_io)
        assert [s.priority for s in resolver.strategies] == [100, 75, 50, 0]

    def test_custom_strategy_runs_first(self, workspace_io):
        """Test adding and removing a strategy."""
        resolver = PackageVersionResolver(workspace_io)
        resolver.add_strategy(_FixedStrategy(workspace_io))
        assert resolver.resolve_version("@s/exact") == ResolvedVersion("0.0.1", "fixed")
        assert resolver.remove_strategy("fixed")
        assert not resolver.remove_strategy("fixed")
        assert resolver.resolve_version("@s/exact").version == "1.2.4"
