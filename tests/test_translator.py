"""Tests for translating directive chains into _find request bodies."""

import pytest

from couchkit.core.exceptions import InvalidArgumentError, UnsupportedError
from couchkit.query.deferred import DeferredQuery
from couchkit.query.translator import FindRequestTranslator


@pytest.fixture
def translator():
    return FindRequestTranslator()


class TestSourceFields:
    """Test the parts of the body that come from the source."""

    def test_selector_only(self, translator, base_query):
        assert translator.translate(base_query) == {"selector": {"age": {"$gt": 20}}}

    def test_all_source_fields(self, translator):
        query = DeferredQuery.find("rebels", {"name": "Leia"}, fields=["name"], sort=[{"name": "desc"}], limit=3, skip=6)
        assert translator.translate(query) == {
            "selector": {"name": "Leia"},
            "fields": ["name"],
            "sort": [{"name": "desc"}],
            "limit": 3,
            "skip": 6,
        }

    def test_body_is_a_copy(self, translator, base_query):
        body = translator.translate(base_query)
        body["selector"]["age"]["$gt"] = 99
        assert base_query.source.selector == {"age": {"$gt": 20}}


class TestDirectiveTranslation:
    """Each directive maps to its _find field."""

    def test_every_directive(self, translator, base_query):
        query = (
            base_query.use_bookmark("g1AAA")
            .with_read_quorum(3)
            .without_index_update()
            .from_stable()
            .use_index("by-age")
            .include_execution_stats()
            .include_conflicts()
        )
        body = translator.translate(query)

        assert body["bookmark"] == "g1AAA"
        assert body["r"] == 3
        assert body["update"] is False
        assert body["stable"] is True
        assert body["use_index"] == "by-age"
        assert body["execution_stats"] is True
        assert body["conflicts"] is True

    def test_use_index_pair_becomes_list(self, translator, base_query):
        body = translator.translate(base_query.use_index("by-age", "age-index"))
        assert body["use_index"] == ["by-age", "age-index"]

    def test_later_directive_wins(self, translator, base_query):
        body = translator.translate(base_query.use_bookmark("first").with_read_quorum(1).use_bookmark("second"))
        assert body["bookmark"] == "second"
        assert body["r"] == 1

    def test_translation_is_repeatable(self, translator, base_query):
        query = base_query.with_read_quorum(2).include_conflicts()
        assert translator.translate(query) == translator.translate(query)
        assert len(query) == 2


class TestUnsupportedSources:
    """Chains not built on a document query cannot be translated."""

    def test_in_memory_source_unsupported(self, translator):
        query = DeferredQuery([{"_id": "a"}]).include_conflicts()
        with pytest.raises(UnsupportedError, match="list"):
            translator.translate(query)

    def test_plain_object_unsupported(self, translator):
        with pytest.raises(UnsupportedError):
            translator.translate([{"_id": "a"}])

    def test_none_query_rejected(self, translator):
        with pytest.raises(InvalidArgumentError):
            translator.translate(None)
