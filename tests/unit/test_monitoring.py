# ABOUTME: Unit tests for the in-process monitoring registry.
# ABOUTME: Validates registration, pause/resume semantics and redundant calls.

from pathlib import Path

import pytest

from booklore.monitoring import MonitoringRegistry


class TestMonitoringRegistry:
    """Tests for MonitoringRegistry."""

    def test_unregistered_library_is_not_watched(self) -> None:
        assert not MonitoringRegistry().is_watching(1)

    def test_register_and_unregister(self) -> None:
        registry = MonitoringRegistry()
        registry.register_paths(1, [Path("/books")])
        assert registry.is_watching(1)
        assert registry.registered_paths(1) == {Path("/books")}

        registry.unregister(1)
        assert not registry.is_watching(1)
        assert registry.registered_paths(1) == set()

    def test_pause_keeps_registration(self) -> None:
        registry = MonitoringRegistry()
        registry.register_paths(1, [Path("/books")])
        registry.pause(1)
        assert not registry.is_watching(1)
        assert registry.registered_paths(1) == {Path("/books")}
        registry.resume(1)
        assert registry.is_watching(1)

    def test_redundant_calls_are_safe(self) -> None:
        registry = MonitoringRegistry()
        registry.unregister(7)
        registry.resume(7)
        registry.pause(7)
        registry.pause(7)
        registry.register_paths(7, [Path("/a")])
        registry.register_paths(7, [Path("/a")])
        registry.resume(7)
        assert registry.is_watching(7)
        assert registry.registered_paths(7) == {Path("/a")}

    def test_paused_context_resumes_on_error(self) -> None:
        registry = MonitoringRegistry()
        registry.register_paths(1, [Path("/books")])
        with pytest.raises(RuntimeError):
            with registry.paused(1):
                assert not registry.is_watching(1)
                raise RuntimeError("move failed")
        assert registry.is_watching(1)
