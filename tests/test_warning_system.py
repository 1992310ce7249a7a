"""Tests for diagnostic formatting, levels and de-duplication."""

import logging

from constants import DiagnosticLevel
from resolver.session import ResolutionSession
from resolver.warning_system import LoggingSink, MemorySink, WarningSystem


class TestWarningSystem:
    """Diagnostic emission."""

    def test_duplicate_keys_emitted_once(self, sink):
        """Test that a key is emitted once."""
        warnings = WarningSystem(sink)
        assert warnings.emit_failed_to_resolve("a.sol")
        assert not warnings.emit_failed_to_resolve("a.sol")
        assert len(sink.diagnostics) == 1
        assert warnings.was_emitted("resolve-fail:a.sol")

    def test_multi_parent_key_uses_sorted_versions(self, sink):
        """Test the multi-parent key and message."""
        warnings = WarningSystem(sink)
        warnings.emit_multi_parent_conflict_warn("@s/c", [("b@1.0.0", "2.0.0"), ("a@1.0.0", "1.0.0")])
        warnings.emit_multi_parent_conflict_warn("@s/c", [("a@1.0.0", "1.0.0"), ("b@1.0.0", "2.0.0")])
        diagnostics = sink.of_kind(WarningSystem.MULTI_PARENT)
        assert len(diagnostics) == 1
        assert diagnostics[0].key == "multi-parent:@s/c:1.0.0↔2.0.0"
        assert diagnostics[0].level is DiagnosticLevel.WARN
        assert "a@1.0.0 requires @s/c@1.0.0" in diagnostics[0].message

    def test_duplicate_file_is_error_with_both_imports(self, sink):
        """Test the duplicate-file error message."""
        warnings = WarningSystem(sink)
        warnings.emit_duplicate_file_error("@s/p", "a.sol", "1.0.0", "2.0.0")
        diagnostic = sink.of_kind(WarningSystem.DUPLICATE_FILE)[0]
        assert diagnostic.level is DiagnosticLevel.ERROR
        assert 'import "@s/p@1.0.0/a.sol";' in diagnostic.message
        assert 'import "@s/p@2.0.0/a.sol";' in diagnostic.message

    def test_dependency_mismatch_levels(self, sink):
        """Test mismatch levels and keys."""
        warnings = WarningSystem(sink)
        warnings.emit_dependency_mismatch(
            "@s/a", "1.0.0", "@s/c", "~1.4.0", "1.5.0",
            peer=False, breaking=False, resolved_from="npm registry", already_imported=True,
        )
        warnings.emit_dependency_mismatch(
            "@s/a", "1.0.0", "@s/d", "^2.0.0", "1.0.0",
            peer=True, breaking=True, resolved_from="lock file", already_imported=False,
        )
        dep = sink.of_kind(WarningSystem.DEPENDENCY_MISMATCH)[0]
        peer = sink.of_kind(WarningSystem.PEER_DEPENDENCY_MISMATCH)[0]
        assert dep.level is DiagnosticLevel.WARN
        assert dep.key == "dep:@s/a→@s/c:~1.4.0→1.5.0"
        assert "actual imported version is: @s/c@1.5.0" in dep.message
        assert peer.level is DiagnosticLevel.ERROR
        assert "will resolve to: @s/d@1.0.0" in peer.message
        assert "(from lock file)" in peer.message

    def test_processing_error_key_includes_error(self, sink):
        """Test the processing-error key."""
        warnings = WarningSystem(sink)
        warnings.emit_processing_error("a.sol", RuntimeError("boom"))
        warnings.emit_processing_error("a.sol", RuntimeError("other"))
        assert len(sink.of_kind(WarningSystem.PROCESSING_ERROR)) == 2


class TestLoggingSink:
    """Diagnostics routed to logging."""

    def test_levels_map_to_logging(self, caplog):
        """Test that levels map to logging levels."""
        warnings = WarningSystem(LoggingSink())
        with caplog.at_level(logging.INFO, logger="solresolve.diagnostics"):
            warnings.emit_invalid_import("README.md", "not a source file")
            warnings.emit_duplicate_file_error("p", "a.sol", "1.0.0", "2.0.0")
        levels = [record.levelno for record in caplog.records]
        assert levels == [logging.WARNING, logging.ERROR]
        assert caplog.records[0].kind == WarningSystem.INVALID_IMPORT

    def test_default_sink_is_logging(self):
        """Test the default sink."""
        assert isinstance(WarningSystem().sink, LoggingSink)
        assert isinstance(MemorySink().diagnostics, list)

    def test_session_routes_to_given_sink(self, sink):
        """Test that a session built with a sink reports through it."""
        session = ResolutionSession.with_sink(sink)
        assert session.warnings.sink is sink
        session.warnings.emit_failed_to_resolve("a.sol")
        assert len(sink.of_kind(WarningSystem.FAILED_TO_RESOLVE)) == 1
