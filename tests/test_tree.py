import math

import pytest

from fbxkit.tree import (
    AttributeKind,
    AttributeValue,
    NodeId,
    Tree,
    build_tree,
)

K = AttributeKind


def names(handles):
    return [h.name() for h in handles]


def test_empty_trees_eq():
    tree1 = build_tree([])
    tree2 = build_tree([])
    assert tree1.strict_eq(tree2)
    assert tree1.root().first_child() is None


def test_empty_nodes():
    tree = build_tree([("Hello", []), ("World", [])])
    assert names(tree.root().children()) == ["Hello", "World"]
    assert all(h.attributes() == () for h in tree.root().children())


def test_nested_node():
    tree = build_tree(
        [
            ("Hello", [("Hello1", []), ("Hello2", [])]),
            (
                "World",
                [
                    ("World1", [("World1_1", []), ("World1_2", [])]),
                    ("World2", []),
                ],
            ),
        ]
    )
    world = tree.root().first_child_by_name("World")
    assert names(world.children()) == ["World1", "World2"]
    world1 = world.first_child_by_name("World1")
    assert names(world1.children()) == ["World1_1", "World1_2"]
    assert world1.parent() == world


def test_nested_node_with_attrs():
    tree = build_tree(
        [
            (
                "Hello",
                [
                    ("Hello1", ["string"], []),
                    ("Hello2", [AttributeValue(K.F32, 1.234), AttributeValue(K.I64, 42)], []),
                ],
            ),
            (
                "World",
                [
                    (
                        "World1",
                        [
                            ("World1_1", ["Hello", 42], []),
                            ("World1_2", [], []),
                        ],
                    ),
                    ("World2", []),
                ],
            ),
        ]
    )
    hello = tree.root().first_child_by_name("Hello")
    assert hello.first_child_by_name("Hello1").attributes() == (
        AttributeValue(K.STRING, "string"),
    )
    hello2 = hello.first_child_by_name("Hello2").attributes()
    assert [a.kind for a in hello2] == [K.F32, K.I64]
    assert hello2[1].value == 42
    world1_1 = tree.root().first_child_by_name("World").first_child().first_child()
    assert world1_1.attributes() == (
        AttributeValue(K.STRING, "Hello"),
        AttributeValue(K.I32, 42),
    )


def gentree():
    return build_tree(
        [
            ("Node0", []),
            (
                "Node1",
                [
                    ("Node1_0", []),
                    ("Node1_1", []),
                    ("Node1_2", [("Node1_2_child", []), ("Node1_2_child", [])]),
                ],
            ),
            (
                "Node2",
                [
                    True,
                    AttributeValue(K.I16, 42),
                    AttributeValue(K.I32, 42),
                    AttributeValue(K.I64, 42),
                    AttributeValue(K.F32, 1.414),
                    1.234,
                ],
                [
                    ("Node2_0", [[True, False], [0, 42]], []),
                    (
                        "Node2_1",
                        [
                            AttributeValue(K.ARR_F32, [math.nan, math.inf]),
                            [math.nan, math.inf],
                        ],
                        [],
                    ),
                ],
            ),
        ]
    )


def test_compare_complex_trees():
    tree1 = gentree()
    tree2 = gentree()
    assert tree1.strict_eq(tree2)
    empty = build_tree([])
    assert not empty.strict_eq(tree2)
    node1_2 = tree1.root().first_child_by_name("Node1").last_child()
    assert len(list(node1_2.children_by_name("Node1_2_child"))) == 2


def test_correct_tree():
    tree_manual = Tree()
    root = tree_manual.root().node_id()
    node0 = tree_manual.append_new(root, "Node0")
    tree_manual.append_new(node0, "Node0_0")
    tree_manual.append_new(node0, "Node0_1")
    node1 = tree_manual.append_new(root, "Node1")
    tree_manual.append_attribute(node1, True)
    node1_0 = tree_manual.append_new(node1, "Node1_0")
    tree_manual.append_attribute(node1_0, 42)
    tree_manual.append_attribute(node1_0, 1.234)
    node1_1 = tree_manual.append_new(node1, "Node1_1")
    tree_manual.append_attribute(node1_1, bytes([1, 2, 4, 8, 16]))
    tree_manual.append_attribute(node1_1, "Hello, world")

    tree_built = build_tree(
        [
            ("Node0", [("Node0_0", []), ("Node0_1", [])]),
            (
                "Node1",
                [True],
                [
                    ("Node1_0", [42, 1.234], []),
                    ("Node1_1", [bytes([1, 2, 4, 8, 16]), "Hello, world"], []),
                ],
            ),
        ]
    )
    assert tree_manual.strict_eq(tree_built)
    assert tree_built.strict_eq(tree_manual)


def test_strict_eq_detects_attribute_difference():
    tree1 = build_tree([("A", [0.0], [])])
    tree2 = build_tree([("A", [-0.0], [])])
    assert not tree1.strict_eq(tree2)
    assert tree1.root().first_child().attributes() == tree2.root().first_child().attributes()


def test_strict_eq_detects_extra_child():
    tree1 = build_tree([("A", [("B", [])])])
    tree2 = build_tree([("A", [("B", []), ("C", [])])])
    assert not tree1.strict_eq(tree2)
    assert not tree2.strict_eq(tree1)


def test_root_properties():
    tree = Tree()
    root = tree.root()
    assert root.name() == ""
    assert root.attributes() == ()
    assert root.parent() is None
    assert root.tree() is tree
    assert root == tree.root()


def test_sibling_operations_keep_order():
    tree = Tree()
    root = tree.root().node_id()
    b = tree.append_new(root, "B")
    tree.append_new(root, "D")
    tree.prepend_new(root, "A")
    tree.insert_new_after(b, "C")
    tree.insert_new_before(b, "AB")
    assert names(tree.root().children()) == ["A", "AB", "B", "C", "D"]
    handle_b = b.to_handle(tree)
    assert handle_b.previous_sibling().name() == "AB"
    assert handle_b.next_sibling().name() == "C"
    assert tree.root().first_child().name() == "A"
    assert tree.root().last_child().name() == "D"
    assert tree.root().first_child().previous_sibling() is None
    assert tree.root().last_child().next_sibling() is None


def test_insert_at_ends_updates_parent_links():
    tree = Tree()
    parent = tree.append_new(tree.root().node_id(), "P")
    only = tree.append_new(parent, "X")
    tree.insert_new_after(only, "Last")
    tree.insert_new_before(only, "First")
    handle = parent.to_handle(tree)
    assert handle.first_child().name() == "First"
    assert handle.last_child().name() == "Last"
    assert all(c.parent() == handle for c in handle.children())


def test_root_cannot_have_siblings_or_attributes():
    tree = Tree()
    root = tree.root().node_id()
    with pytest.raises(ValueError):
        tree.insert_new_after(root, "X")
    with pytest.raises(ValueError):
        tree.insert_new_before(root, "X")
    with pytest.raises(ValueError):
        tree.append_attribute(root, 1)


def test_invalid_node_id():
    tree = Tree()
    with pytest.raises(ValueError):
        tree.append_new(NodeId(99), "X")
    with pytest.raises(ValueError):
        NodeId(99).to_handle(tree)


def test_children_by_name_missing():
    tree = build_tree([("A", [])])
    assert list(tree.root().children_by_name("Nope")) == []
    assert tree.root().first_child_by_name("Nope") is None


def test_debug_tree_format():
    tree = build_tree([("A", [1], [])])
    expected = "\n".join(
        [
            "Node {",
            "    name: '',",
            "    attributes: [],",
            "    children: [",
            "        Node {",
            "            name: 'A',",
            "            attributes: [I32(1)],",
            "            children: [],",
            "        },",
            "    ],",
            "}",
        ]
    )
    assert tree.debug_tree() == expected


def test_build_tree_rejects_bad_entry():
    with pytest.raises(TypeError):
        build_tree([("A",)])
    with pytest.raises(TypeError):
        build_tree([(1, [])])


def test_coerce_scalars():
    assert AttributeValue.coerce(True).kind is K.BOOL
    assert AttributeValue.coerce(5) == AttributeValue(K.I32, 5)
    assert AttributeValue.coerce(2**31).kind is K.I64
    assert AttributeValue.coerce(1.5) == AttributeValue(K.F64, 1.5)
    assert AttributeValue.coerce("s") == AttributeValue(K.STRING, "s")
    assert AttributeValue.coerce(bytearray(b"ab")) == AttributeValue(K.BINARY, b"ab")
    existing = AttributeValue(K.I16, 3)
    assert AttributeValue.coerce(existing) is existing


def test_coerce_arrays():
    assert AttributeValue.coerce([True, False]) == AttributeValue(K.ARR_BOOL, (True, False))
    assert AttributeValue.coerce([1, 2]).kind is K.ARR_I32
    assert AttributeValue.coerce([1, 2**40]).kind is K.ARR_I64
    mixed = AttributeValue.coerce([1, 2.5])
    assert mixed.kind is K.ARR_F64
    assert mixed.value == (1.0, 2.5)


def test_coerce_errors():
    with pytest.raises(ValueError):
        AttributeValue.coerce([])
    with pytest.raises(TypeError):
        AttributeValue.coerce([True, 1])
    with pytest.raises(TypeError):
        AttributeValue.coerce(object())
    with pytest.raises(ValueError):
        AttributeValue.coerce(2**64)


def test_value_validation():
    with pytest.raises(ValueError):
        AttributeValue(K.I16, 40000)
    with pytest.raises(TypeError):
        AttributeValue(K.I32, True)
    with pytest.raises(ValueError):
        AttributeValue(K.F32, 1e300)
    with pytest.raises(TypeError):
        AttributeValue(K.STRING, b"x")


def test_f32_is_rounded():
    value = AttributeValue(K.F32, 1.234).value
    assert value == pytest.approx(1.234, rel=1e-6)
    assert value != 1.234


def test_strict_eq_nan_and_kinds():
    assert AttributeValue(K.F64, math.nan).strict_eq(AttributeValue(K.F64, math.nan))
    assert AttributeValue(K.F64, math.nan) != AttributeValue(K.F64, math.nan)
    assert not AttributeValue(K.I32, 1).strict_eq(AttributeValue(K.I64, 1))
    assert not AttributeValue(K.ARR_F64, [1.0]).strict_eq(AttributeValue(K.ARR_F64, [1.0, 2.0]))


def test_repr():
    assert repr(AttributeValue(K.STRING, "x")) == "String('x')"
    assert repr(AttributeValue(K.ARR_I32, [1, 2])) == "ArrI32((1, 2))"