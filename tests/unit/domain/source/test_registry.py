"""Unit tests for SourceRegistry."""

import pytest

from aggregate_connector.domain.source.model.registry import SourceRegistry


class TestSourceRegistry:
    def test_empty_registry(self) -> None:
        registry = SourceRegistry()
        assert len(registry) == 0
        assert registry.names() == []
        assert not registry

    def test_lookup_by_name(self) -> None:
        source = object()
        registry = SourceRegistry({"a": source})
        assert registry["a"] is source
        assert registry.get("missing") is None
        assert "a" in registry

    def test_preserves_insertion_order(self) -> None:
        registry = SourceRegistry({"c": object(), "a": object(), "b": object()})
        assert list(registry) == ["c", "a", "b"]
        assert registry.names() == ["c", "a", "b"]

    def test_is_read_only(self) -> None:
        registry = SourceRegistry({"a": object()})
        with pytest.raises(TypeError):
            registry["b"] = object()  # type: ignore[index]

    def test_copies_input_mapping(self) -> None:
        sources = {"a": object()}
        registry = SourceRegistry(sources)
        sources["b"] = object()
        assert registry.names() == ["a"]
