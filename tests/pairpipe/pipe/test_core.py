import itertools
import pytest
from pairpipe import Pipeline, Cursor, EXHAUSTED, OperationNotFoundError, extend, from_, from_pairs, register_extension


def test_from_list_keys_positionally():
    assert Pipeline.from_(["a", "b"]).to_pairs() == [(0, "a"), (1, "b")]


def test_from_mapping_keeps_keys():
    assert Pipeline.from_({"x": 1, "y": 2}).to_pairs() == [("x", 1), ("y", 2)]


def test_from_pairs_and_module_shortcuts():
    assert from_pairs([("k", 1), ("k", 2)]).to_pairs() == [("k", 1), ("k", 2)]
    assert from_(range(3)).to_list() == [0, 1, 2]


def test_from_pipeline_rewraps_cursor():
    original = Pipeline.from_([1, 2, 3])
    original.consume()
    assert Pipeline.from_(original).to_list() == [2, 3]


def test_constructor_accepts_cursor_or_pairs():
    cursor = Cursor([(1, "one")])
    pipeline = Pipeline(cursor)
    assert pipeline.cursor is cursor
    assert Pipeline([(1, "one")]).to_dict() == {1: "one"}


def test_infinite_source_is_not_pulled_at_construction():
    pipeline = Pipeline.from_(itertools.count()).map(lambda x: x * 2).filter(lambda x: x % 3 == 0)
    assert pipeline.limit(3).to_list() == [0, 6, 12]


def test_nothing_runs_until_terminal(counting_source):
    source, pulled = counting_source([1, 2, 3])
    seen = []
    pipeline = Pipeline.from_(source).peek(seen.append).map(lambda x: x + 1)
    assert pulled == []
    assert seen == []
    assert pipeline.to_list() == [2, 3, 4]
    assert pulled == [1, 2, 3]
    assert seen == [1, 2, 3]


def test_consume_and_iteration():
    pipeline = Pipeline.from_("ab")
    assert pipeline.consume() == (0, "a")
    assert list(pipeline) == [(1, "b")]
    assert pipeline.consume() is EXHAUSTED


def test_walrus_drain():
    pipeline = Pipeline.from_([10, 20])
    values = []
    while item := pipeline.consume():
        values.append(item[1])
    assert values == [10, 20]


def test_terminal_is_idempotent_on_exhausted_pipeline():
    pipeline = Pipeline.from_([1, 2, 3])
    assert pipeline.count() == 3
    assert pipeline.count() == 0
    assert pipeline.to_list() == []
    assert pipeline.to_dict() == {}
    assert pipeline.head() is None
    assert pipeline.sum() is None


def test_apply_runs_reusable_chain():
    def evens_squared(p):
        return p.filter(lambda x: x % 2 == 0).map(lambda x: x * x)

    assert Pipeline.from_(range(6)).apply(evens_squared).to_list() == [0, 4, 16]
    assert Pipeline.from_(range(6)).apply(lambda p: p.count()) == 6


def test_repr_reports_state():
    pipeline = Pipeline.from_([])
    assert "pending" in repr(pipeline)
    pipeline.count()
    assert "exhausted" in repr(pipeline)


def test_map_then_filter_filters_mapped_values():
    source = [1, 2, 3, 4, 5, 6]
    f = lambda x: x * 3
    p = lambda x: x % 2 == 0
    assert Pipeline.from_(source).map(f).filter(p).to_list() == [f(x) for x in source if p(f(x))]


def test_callable_errors_propagate_unmodified():
    class Boom(Exception):
        pass

    def explode(value):
        raise Boom(value)

    with pytest.raises(Boom):
        Pipeline.from_([1]).map(explode).to_list()


class TestExtensionDispatch:

    def test_registered_extension_is_callable_as_method(self, clean_registry):

        @register_extension("every_other")
        def every_other(pipeline):
            def gen():
                while item := pipeline.consume():
                    yield item
                    pipeline.consume()
            return Pipeline.from_pairs(gen())

        assert Pipeline.from_([1, 2, 3, 4, 5]).every_other().to_list() == [1, 3, 5]

    def test_extension_receives_arguments(self, clean_registry):

        @register_extension("scale")
        def scale(pipeline, multiplier=2):
            return pipeline.map(lambda x: x * multiplier)

        assert Pipeline.from_([1, 2]).scale(multiplier=10).to_list() == [10, 20]
        assert Pipeline.from_([1, 2]).call_extension("scale").to_list() == [2, 4]

    def test_extension_chains_with_builtins(self, clean_registry):
        register_extension("squares")(lambda p: p.map(lambda x: x * x))
        assert Pipeline.from_(range(5)).squares().filter(lambda x: x > 1).asc().to_list() == [4, 9, 16]

    def test_unknown_operation_raises_named_error(self, clean_registry):
        with pytest.raises(OperationNotFoundError, match="no_such_operation"):
            Pipeline.from_([1]).no_such_operation()
        with pytest.raises(OperationNotFoundError, match="other_missing"):
            Pipeline.from_([1]).call_extension("other_missing")

    def test_extend_registers_and_call_extension_dispatches(self, clean_registry):
        extend("triple", lambda p: p.map(lambda x: x * 3))
        assert Pipeline.from_([1, 2]).call_extension("triple").to_list() == [3, 6]
        with pytest.raises(OperationNotFoundError, match="'extend'"):
            Pipeline.from_([1]).extend("triple")

    def test_unknown_operation_behaves_like_missing_attribute(self, clean_registry):
        pipeline = Pipeline.from_([1])
        assert not hasattr(pipeline, "still_missing")
        assert getattr(pipeline, "still_missing", None) is None

    def test_private_names_are_not_dispatched(self, clean_registry):
        register_extension("_hidden")(lambda p: "found")
        with pytest.raises(AttributeError):
            Pipeline.from_([1])._hidden()
