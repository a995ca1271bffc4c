# fbxkit

Build FBX node trees in memory and write them out as binary FBX data
(FBX 7.x, e.g. 7.4 and 7.5). Pure Python, no dependencies.

## Installation

```
pip install fbxkit
```

## Building a tree

`fbxkit.tree.Tree` always has an implicit, unnamed root node. Nodes are
added through their `NodeId`, and attributes are appended one at a time:

```python
from fbxkit.tree import Tree

tree = Tree()
root = tree.root().node_id()
objects = tree.append_new(root, "Objects")
model = tree.append_new(objects, "Model")
tree.append_attribute(model, 42)        # stored as I32
tree.append_attribute(model, "Cube")    # stored as String

for child in tree.root().children():
    print(child.name(), child.attributes())
```

Besides `append_new` there are `prepend_new`, `insert_new_after` and
`insert_new_before`. The root node cannot have siblings or attributes;
trying to give it either raises `ValueError`.

For quick construction, `build_tree` takes a nested description of the
nodes. Each entry is `(name, children)` or `(name, attributes, children)`:

```python
from fbxkit.tree import build_tree

tree = build_tree([
    ("Node0", [("Node0_0", []), ("Node0_1", [])]),
    ("Node1", [True], [
        ("Node1_0", [42, 1.234], []),
        ("Node1_1", [bytes([1, 2, 4, 8, 16]), "Hello, world"], []),
    ]),
])
```

Attributes are stored as `AttributeValue` objects, each with an
`AttributeKind`. `AttributeValue.coerce` turns plain Python values into
them: `bool` gives Bool, `int` gives I32 (I64 when it does not fit), `float`
gives F64, `str` gives String, bytes-like gives Binary, and a non-empty list
or tuple gives the matching array kind. For other kinds (I16, F32, ...)
construct the value directly, e.g. `AttributeValue(AttributeKind.F32, 1.5)`.

`Tree.strict_eq` and `NodeHandle.strict_eq` compare contents, floats bit
for bit. `Tree.debug_tree()` returns a readable multi-line dump as a string.

Navigation on a `NodeHandle`: `parent`, `first_child`, `last_child`,
`previous_sibling`, `next_sibling`, `children`, `children_by_name` and
`first_child_by_name`.

## Writing binary FBX

```python
import io
from fbxkit.attributes import ArrayAttributeEncoding
from fbxkit.footer import FbxFooter
from fbxkit.writer import FbxVersion, Writer

sink = io.BytesIO()
writer = Writer(sink, FbxVersion.V7_4)

attrs = writer.new_node("NodeName")
attrs.append_bool(True)
attrs.append_arr_i32([1, 2, 4, 8, 16], None)
attrs.append_arr_f32([3.14, 1.412], ArrayAttributeEncoding.ZLIB)
attrs.append_string("Hello, world")
writer.close_node()

writer.finalize_and_flush(FbxFooter())
data = sink.getvalue()
```

The sink must be a seekable binary stream. `Writer` accepts an
`FbxVersion` or a raw version number (such as `7500`); only major version 7
is accepted, otherwise `UnsupportedFbxVersionError` is raised. Versions
below 7500 use 32-bit node headers, later ones 64-bit headers.

The `AttributesWriter` returned by `new_node` offers `append_bool`,
`append_i16`, `append_i32`, `append_i64`, `append_f32`, `append_f64`, the
array methods `append_arr_bool`, `append_arr_i32`, `append_arr_i64`,
`append_arr_f32`, `append_arr_f64` (with an optional
`ArrayAttributeEncoding`, direct by default), and `append_binary`,
`append_binary_from_reader`, `append_binary_from_iter`, `append_string`
and `append_string_from_iter`. It stops accepting attributes once another
node is opened or the current one is closed. Errors raised while iterating
user-supplied data are wrapped in `UserDefinedError`.

A whole tree can be written with `Writer.write_tree(tree)`, and a nested
description like the one taken by `build_tree` with
`write_nodes(writer, spec)`.

`FbxFooter` holds the footer fields; any field left as `None` gets its
default, and a `padding_len` of `None` pads to the next 16-byte boundary.

Nodes must be closed explicitly; closing with no open node raises
`NoNodesToCloseError`, and finalizing with open nodes raises
`UnclosedNodeError`. All writer errors derive from `WriteError` in
`fbxkit.errors`.

## What it does not do

fbxkit only writes. It does not read or parse FBX files, cannot load an
existing file into a `Tree`, and has no support for the ASCII FBX format.
It works with the raw node structure only and knows nothing of meshes,
materials or other scene-level objects.