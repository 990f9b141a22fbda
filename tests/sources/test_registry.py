import pytest

from orthobundle.sources import SourceRegistry, StringSource, sources


class DuplicateTagSource(StringSource):
    @property
    def name(self) -> str:
        return "string-mirror"


class BadTagSource(StringSource):
    @property
    def name(self) -> str:
        return "bad"

    @property
    def tag(self) -> str:
        return "st:r"


def test_builtin_sources():
    names = sources.list()
    assert names[:3] == ["string", "oma", "orthodb"]
    assert sources.tags()["string"] == "STR"
    assert "oma" in sources


def test_load_unknown_source_raises_keyerror():
    with pytest.raises(KeyError, match="Available sources"):
        sources.load("nonexistent_source")


def test_duplicate_names_and_tags_rejected():
    registry = SourceRegistry()
    with pytest.raises(ValueError, match="already registered"):
        registry.register(StringSource())
    with pytest.raises(ValueError, match="already used"):
        registry.register(DuplicateTagSource())
    with pytest.raises(ValueError, match="Invalid source tag"):
        registry.register(BadTagSource())


def test_empty_registry():
    registry = SourceRegistry(builtins=False)
    assert registry.list() == []
    registry.register(StringSource())
    assert registry.list() == ["string"]
