"""Tests for single-import resolution: version mapping, routing and caching."""

import json

import pytest

from resolver.errors import FetchError, MalformedSpecifierError
from resolver.handlers import TemplateHandler
from resolver.import_resolver import ImportResolver
from resolver.session import ResolutionSession
from resolver.warning_system import WarningSystem


@pytest.fixture
def resolver(fake_io, sink):
    """Resolver for ``main.sol`` with diagnostics collected in ``sink``."""
    return ImportResolver(fake_io, "main.sol", ResolutionSession.with_sink(sink))


class TestPackageImports:
    """Bare and explicitly versioned package imports."""

    def test_mixed_unversioned_and_explicit(self, fake_io, resolver):
        """The workspace pin maps bare imports; an explicit version is fetched as written."""
        fake_io.add_json("package.json", {"dependencies": {"@scope/pkg": "1.2.3"}})
        fake_io.remote["@scope/pkg@1.2.3/a.sol"] = "contract A {}"
        fake_io.remote["@scope/pkg@2.0.0/b.sol"] = "contract B {}"

        assert resolver.resolve_and_save("@scope/pkg/a.sol") == "contract A {}"
        assert resolver.resolve_and_save("@scope/pkg@2.0.0/b.sol") == "contract B {}"

        assert fake_io.files[".deps/npm/@scope/pkg@1.2.3/a.sol"] == "contract A {}"
        assert fake_io.files[".deps/npm/@scope/pkg@2.0.0/b.sol"] == "contract B {}"
        assert resolver.get_resolution("@scope/pkg/a.sol") == "@scope/pkg@1.2.3/a.sol"
        assert resolver.session.get_package_mapping("@scope/pkg") == "@scope/pkg@1.2.3"

    def test_version_is_stable_within_session(self, fake_io, resolver):
        """Two imports from one package share a single version lookup."""
        fake_io.add_json("@scope/pkg/package.json", {"name": "@scope/pkg", "version": "1.4.0"}, remote=True)
        fake_io.remote["@scope/pkg@1.4.0/a.sol"] = "contract A {}"
        fake_io.remote["@scope/pkg@1.4.0/b.sol"] = "contract B {}"

        resolver.resolve_and_save("@scope/pkg/a.sol")
        resolver.resolve_and_save("@scope/pkg/b.sol")

        assert fake_io.fetched.count("@scope/pkg/package.json") == 1
        assert resolver.get_resolution("@scope/pkg/b.sol") == "@scope/pkg@1.4.0/b.sol"

    def test_workspace_pin_wins_over_latest(self, fake_io, resolver):
        """Test that a workspace resolution beats the registry."""
        fake_io.add_json("package.json", {"resolutions": {"@scope/pkg": "1.0.0"}})
        fake_io.add_json("@scope/pkg/package.json", {"name": "@scope/pkg", "version": "9.0.0"}, remote=True)
        fake_io.remote["@scope/pkg@1.0.0/a.sol"] = "contract A {}"

        resolver.resolve_and_save("@scope/pkg/a.sol")

        assert resolver.get_resolution("@scope/pkg/a.sol") == "@scope/pkg@1.0.0/a.sol"
        assert "@scope/pkg/package.json" not in fake_io.fetched

    def test_manifest_saved_and_dependencies_recorded(self, fake_io, resolver):
        """Test that the versioned manifest is saved with its deps."""
        fake_io.add_json("@scope/pkg/package.json", {"name": "@scope/pkg", "version": "1.4.0"}, remote=True)
        fake_io.add_json(
            "@scope/pkg@1.4.0/package.json",
            {"name": "@scope/pkg", "version": "1.4.0", "dependencies": {"@scope/dep": "^2.0.0"}},
            remote=True,
        )
        fake_io.remote["@scope/pkg@1.4.0/a.sol"] = "contract A {}"

        resolver.resolve_and_save("@scope/pkg/a.sol")

        saved = json.loads(fake_io.files[".deps/npm/@scope/pkg@1.4.0/package.json"])
        assert saved["version"] == "1.4.0"
        store = resolver.session.dependency_store
        assert store.get_parent_package_deps("@scope/pkg@1.4.0") == {"@scope/dep": "2.0.0"}

    def test_mismatched_manifest_rejected(self, fake_io, resolver):
        """Test that a manifest of another version is not saved."""
        fake_io.add_json("@scope/pkg/package.json", {"name": "@scope/pkg", "version": "1.4.0"}, remote=True)
        fake_io.add_json("@scope/pkg@1.4.0/package.json", {"name": "@scope/pkg", "version": "1.5.0"}, remote=True)
        fake_io.remote["@scope/pkg@1.4.0/a.sol"] = "contract A {}"

        assert resolver.resolve_and_save("@scope/pkg/a.sol") == "contract A {}"
        assert ".deps/npm/@scope/pkg@1.4.0/package.json" not in fake_io.files

    def test_npm_alias_maps_to_real_package(self, fake_io, resolver):
        """Test that an npm alias resolves to the real package."""
        fake_io.add_json("package.json", {"dependencies": {"@oz/x": "npm:@openzeppelin/contracts@4.9.0"}})
        fake_io.remote["@openzeppelin/contracts@4.9.0/token/T.sol"] = "contract T {}"

        assert resolver.resolve_and_save("@oz/x/token/T.sol") == "contract T {}"
        assert resolver.get_resolution("@oz/x/token/T.sol") == "@openzeppelin/contracts@4.9.0/token/T.sol"

    def test_npm_protocol_prefix_stripped(self, fake_io, resolver):
        """Test that npm: imports resolve like bare paths."""
        fake_io.remote["@scope/pkg@1.0.0/a.sol"] = "contract A {}"
        assert resolver.resolve_and_save("npm:@scope/pkg@1.0.0/a.sol") == "contract A {}"
        assert ".deps/npm/@scope/pkg@1.0.0/a.sol" in fake_io.files

    def test_unresolvable_package_raises(self, resolver):
        """Test that a package without a version raises."""
        with pytest.raises(FetchError):
            resolver.resolve_and_save("@scope/none/a.sol")


class TestDiagnostics:
    """Duplicate-file and invalid-import diagnostics."""

    def test_duplicate_file_across_versions(self, fake_io, resolver, sink):
        """The same file from two versions is reported once and both copies are cached."""
        fake_io.remote["pkg@1.0.0/a.sol"] = "contract A1 {}"
        fake_io.remote["pkg@2.0.0/a.sol"] = "contract A2 {}"

        resolver.resolve_and_save("pkg@1.0.0/a.sol")
        resolver.resolve_and_save("pkg@2.0.0/a.sol")
        resolver.resolve_and_save("pkg@2.0.0/a.sol")

        duplicates = sink.of_kind(WarningSystem.DUPLICATE_FILE)
        assert len(duplicates) == 1
        assert "pkg@1.0.0/a.sol" in duplicates[0].message
        assert "pkg@2.0.0/a.sol" in duplicates[0].message
        assert ".deps/npm/pkg@1.0.0/a.sol" in fake_io.files
        assert ".deps/npm/pkg@2.0.0/a.sol" in fake_io.files

    def test_malformed_specifier(self, resolver, sink):
        """Test that a non-source specifier is rejected."""
        with pytest.raises(MalformedSpecifierError):
            resolver.resolve_and_save("@scope/pkg/README.md")
        assert len(sink.of_kind(WarningSystem.INVALID_IMPORT)) == 1


class TestUrlImports:
    """HTTP, CDN, GitHub and content-addressed imports."""

    def test_github_blob_and_raw_share_cache(self, fake_io, resolver):
        """Test that blob and raw URLs share one cache path."""
        fake_io.remote["https://raw.githubusercontent.com/o/r/v1/p.sol"] = "contract P {}"
        blob = "https://github.com/o/r/blob/v1/p.sol"
        raw = "https://raw.githubusercontent.com/o/r/v1/p.sol"

        assert resolver.resolve_and_save(blob) == "contract P {}"
        assert resolver.resolve_and_save(raw) == "contract P {}"

        assert resolver.get_resolution(blob) == ".deps/github/o/r@v1/p.sol"
        assert resolver.get_resolution(raw) == ".deps/github/o/r@v1/p.sol"
        assert fake_io.fetched.count(raw) == 1

    def test_github_package_json_recorded(self, fake_io, resolver):
        """Test that a repo package.json becomes parent context."""
        fake_io.remote["https://raw.githubusercontent.com/o/r/v1/p.sol"] = "contract P {}"
        fake_io.add_json(
            "https://raw.githubusercontent.com/o/r/v1/package.json",
            {"name": "r", "version": "1.0.0", "dependencies": {"@s/c": "^1.0.0"}},
            remote=True,
        )

        resolver.resolve_and_save("https://raw.githubusercontent.com/o/r/v1/p.sol")

        assert ".deps/github/o/r@v1/package.json" in fake_io.files
        assert resolver.session.dependency_store.get_parent_package_deps("o/r@v1") == {"@s/c": "1.0.0"}

    def test_cdn_url_rewritten_to_npm(self, fake_io, resolver):
        """Test that a CDN URL resolves as an npm path."""
        fake_io.remote["@scope/pkg@1.0.0/a.sol"] = "contract A {}"
        url = "https://cdn.jsdelivr.net/npm/@scope/pkg@1.0.0/a.sol"

        assert resolver.resolve_and_save(url) == "contract A {}"
        assert resolver.get_resolution(url) == "@scope/pkg@1.0.0/a.sol"

    def test_plain_http_url(self, fake_io, resolver):
        """Test fetching and caching a plain URL."""
        url = "https://example.com/lib/L.sol"
        fake_io.remote[url] = "library L {}"

        resolver.resolve_and_save(url)

        assert fake_io.files[".deps/http/example.com/lib/L.sol"] == "library L {}"
        assert resolver.get_resolution(url) == url

    def test_ipfs(self, fake_io, resolver):
        """Test fetching and caching an IPFS URI."""
        fake_io.remote["ipfs://QmHash/A.sol"] = "contract A {}"
        resolver.resolve_and_save("ipfs://QmHash/A.sol")
        assert fake_io.files[".deps/ipfs/QmHash/A.sol"] == "contract A {}"
        assert resolver.get_resolution("ipfs://QmHash/A.sol") == "ipfs/QmHash/A.sol"


class TestHandlersAndIndex:
    """Custom handlers and index persistence."""

    def test_handler_short_circuits(self, fake_io, resolver):
        """Test that a handler answers before any fetch."""
        resolver.handler_registry.register(
            TemplateHandler("hardhat/console.sol", fake_io, lambda path, context: "library console {}")
        )
        assert resolver.resolve_and_save("hardhat/console.sol") == "library console {}"
        assert resolver.get_resolution("hardhat/console.sol") == ".deps/custom/hardhat/console.sol"
        assert fake_io.fetched == []

    def test_save_resolutions_to_index(self, fake_io, resolver):
        """Test persisting session resolutions."""
        fake_io.add_json("package.json", {"dependencies": {"@scope/pkg": "1.2.3"}})
        fake_io.remote["@scope/pkg@1.2.3/a.sol"] = "contract A {}"
        fake_io.remote["https://example.com/L.sol"] = "library L {}"

        resolver.resolve_and_save("@scope/pkg/a.sol")
        resolver.resolve_and_save("https://example.com/L.sol")
        resolver.save_resolutions_to_index()

        index = json.loads(fake_io.files[".deps/npm/.resolution-index.json"])
        assert index["main.sol"]["@scope/pkg/a.sol"] == ".deps/npm/@scope/pkg@1.2.3/a.sol"
        assert index["main.sol"]["https://example.com/L.sol"] == ".deps/http/example.com/L.sol"

    def test_to_local_path(self):
        """Test cache locations of resolved specifiers."""
        assert ImportResolver.to_local_path("@s/p@1.0.0/a.sol") == ".deps/npm/@s/p@1.0.0/a.sol"
        assert ImportResolver.to_local_path("github/o/r@v1/a.sol") == ".deps/github/o/r@v1/a.sol"
        assert ImportResolver.to_local_path(".deps/custom/x.sol") == ".deps/custom/x.sol"
        assert ImportResolver.to_local_path("x", "custom/y.sol") == ".deps/custom/y.sol"
