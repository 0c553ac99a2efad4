import pytest

from aurix.engine import END, ConditionalEdge, Edge, SchemaError, Stage, append, build_schema, define_graph

SCHEMA = build_schema(log=append(), errors=append())


def noop(state):
    return {}


def stages(*names):
    return [Stage(name, noop) for name in names]


def test_define_graph_freezes_topology():
    graph = define_graph(
        SCHEMA,
        stages("a", "b", "c"),
        [
            Edge("a", "b"),
            ConditionalEdge("b", lambda state: "done", {"done": END, "again": "c"}),
            Edge("c", END),
        ],
        entry="a",
        name="demo",
    )
    assert graph.entry == "a"
    assert graph.describe() == {
        "name": "demo",
        "entry": "a",
        "stages": ["a", "b", "c"],
        "edges": {"a": ["b"], "c": [END]},
        "conditional": {"b": {"done": END, "again": "c"}},
    }


def test_duplicate_edges_are_collapsed():
    graph = define_graph(SCHEMA, stages("a", "b"), [Edge("a", "b"), Edge("a", "b")], entry="a")
    assert graph.outgoing("a") == (Edge("a", "b"),)


def test_precedence_defaults_to_declaration_order():
    graph = define_graph(
        SCHEMA,
        [Stage("a", noop), Stage("b", noop, precedence=-1), Stage("c", noop)],
        [Edge("a", "b"), Edge("a", "c")],
        entry="a",
    )
    assert sorted(["c", "b", "a"], key=graph.precedence_key) == ["b", "a", "c"]


@pytest.mark.parametrize(
    "stage_list, edges, entry, message",
    [
        (stages("a", "a"), [], "a", "Duplicate stage"),
        (stages("a"), [], "", "no entry"),
        (stages("a"), [], "missing", "not declared"),
        (stages("a"), [Edge("a", "ghost")], "a", "undeclared stage"),
        (stages("a"), [Edge("ghost", "a")], "a", "not a declared stage"),
        (stages(END), [], END, "reserved"),
        (
            stages("a", "b"),
            [Edge("a", "b"), ConditionalEdge("a", lambda state: "x", {"x": "b"})],
            "a",
            "mix conditional",
        ),
        (stages("a"), [ConditionalEdge("a", lambda state: "x", {})], "a", "no labels"),
        (stages("a"), [ConditionalEdge("a", lambda state: "x", {"x": END}, default="ghost")], "a", "undeclared"),
    ],
)
def test_define_graph_rejects_misconfiguration(stage_list, edges, entry, message):
    with pytest.raises(SchemaError, match=message):
        define_graph(SCHEMA, stage_list, edges, entry=entry)


def test_schema_without_error_field_is_rejected():
    schema = build_schema(log=append())
    with pytest.raises(SchemaError):
        define_graph(schema, stages("a"), [], entry="a")


def test_unreachable_stage_only_warns(caplog):
    graph = define_graph(SCHEMA, stages("a", "island"), [Edge("a", END)], entry="a")
    assert "island" in graph.stages
    assert "unreachable" in caplog.text
