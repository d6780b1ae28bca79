"""
Java source parsing.

Wraps tree-sitter and converts its concrete syntax tree into a small,
library-independent tree shape (SourceTree). The extractor only ever sees
SourceTree, so the parsing backend can be swapped without touching it.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import tree_sitter_java as tsjava
from tree_sitter import Language, Node, Parser

JAVA_LANGUAGE = Language(tsjava.language())

# Declarations that produce scanned types
SCANNED_DECLARATIONS = {"class_declaration", "interface_declaration"}

# Declarations that count as enclosing types for nested names
TYPE_DECLARATIONS = SCANNED_DECLARATIONS | {
    "enum_declaration",
    "record_declaration",
    "annotation_type_declaration",
}

TYPE_BODIES = {
    "class_body",
    "interface_body",
    "enum_body",
    "enum_body_declarations",
    "annotation_type_body",
}

ANNOTATION_NODES = {"annotation", "marker_annotation"}
FIELD_NODES = {"field_declaration", "constant_declaration"}


@dataclass(frozen=True)
class ImportDecl:
    name: str
    is_static: bool = False
    is_wildcard: bool = False


@dataclass(frozen=True)
class FieldDecl:
    """A field declaration; one declaration may declare several variables."""

    annotations: Tuple[str, ...]
    type_text: str
    names: Tuple[str, ...]


@dataclass(frozen=True)
class MethodDecl:
    annotations: Tuple[str, ...]
    name: str
    param_types: Tuple[str, ...]


@dataclass(frozen=True)
class TypeDecl:
    """
    A class or interface declaration.

    ``qualified_name`` is set for top-level and member types. Local types
    (declared in a method body or an anonymous class) leave it unset, and
    ``enclosing`` then only holds the type names reachable without leaving
    a type body.
    """

    kind: str  # "class" | "interface"
    name: str
    qualified_name: Optional[str]
    enclosing: Tuple[str, ...]
    annotations: Tuple[str, ...]
    extends: Tuple[str, ...]
    implements: Tuple[str, ...]
    fields: Tuple[FieldDecl, ...]
    methods: Tuple[MethodDecl, ...]

    @property
    def is_interface(self) -> bool:
        return self.kind == "interface"


@dataclass(frozen=True)
class SourceTree:
    package: str
    imports: Tuple[ImportDecl, ...]
    types: Tuple[TypeDecl, ...]


@dataclass
class ParseResult:
    """
    Outcome of parsing one file.

    ``tree`` is None when the file produced no usable tree. ``diagnostics``
    lists syntax problems; a non-empty list alongside a tree means the tree
    is usable but was recovered from errors.
    """

    tree: Optional[SourceTree]
    diagnostics: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.tree is not None and not self.diagnostics


def parse_file(file_path: Path) -> ParseResult:
    """
    Read and parse a Java source file.

    Args:
        file_path: Path to the ``.java`` file.

    Returns:
        ParseResult; ``tree`` is None if the file could not be read, decoded
        or parsed.
    """
    try:
        source = file_path.read_bytes()
        source.decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return ParseResult(None, [f"cannot read source: {e}"])
    return parse_source(source)


def parse_source(source: bytes) -> ParseResult:
    """
    Parse Java source text.

    A tree whose root is an error, or has an error directly at the top level,
    is not usable. Errors nested deeper are reported as diagnostics and the
    tree is still returned.

    Args:
        source: UTF-8 encoded source.

    Returns:
        ParseResult for the source.
    """
    ts_tree = Parser(JAVA_LANGUAGE).parse(source)
    root = ts_tree.root_node

    diagnostics = list(_collect_diagnostics(root)) if root.has_error else []
    if root.type == "ERROR" or any(child.type == "ERROR" for child in root.children):
        return ParseResult(None, diagnostics or ["unparseable source"])

    package = _package_name(root)
    tree = SourceTree(
        package=package,
        imports=tuple(_imports(root)),
        types=tuple(_type_decl(node, package) for node in _iter_type_nodes(root)),
    )
    return ParseResult(tree, diagnostics)


def _collect_diagnostics(root: Node) -> Iterator[str]:
    """Yield one message per error or missing node, in document order."""
    stack = [root]
    while stack:
        node = stack.pop()
        line, col = node.start_point
        if node.is_missing:
            yield f"missing '{node.type}' at line {line + 1}, column {col + 1}"
            continue
        if node.type == "ERROR":
            yield f"syntax error at line {line + 1}, column {col + 1}"
            continue
        stack.extend(reversed([c for c in node.children if c.has_error or c.is_missing]))


def _text(node: Node) -> str:
    return node.text.decode("utf-8")


def _package_name(root: Node) -> str:
    for child in root.named_children:
        if child.type == "package_declaration":
            for part in child.named_children:
                if part.type in ("identifier", "scoped_identifier"):
                    return _text(part)
    return ""


def _imports(root: Node) -> Iterator[ImportDecl]:
    for child in root.named_children:
        if child.type != "import_declaration":
            continue
        name = None
        is_static = False
        is_wildcard = False
        for part in child.children:
            if part.type == "static":
                is_static = True
            elif part.type == "asterisk":
                is_wildcard = True
            elif part.type in ("identifier", "scoped_identifier"):
                name = _text(part)
        if name:
            yield ImportDecl(name, is_static, is_wildcard)


def _iter_type_nodes(root: Node) -> Iterator[Node]:
    """Yield every class/interface declaration in pre-order, including nested and local ones."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type in SCANNED_DECLARATIONS:
            yield node
        stack.extend(reversed(node.named_children))


def _annotations(decl: Node) -> Tuple[str, ...]:
    names = []
    for child in decl.named_children:
        if child.type != "modifiers":
            continue
        for mod in child.named_children:
            if mod.type in ANNOTATION_NODES:
                name = mod.child_by_field_name("name")
                if name is not None:
                    names.append(_text(name))
    return tuple(names)


def _type_text(node: Node) -> str:
    if node.type == "annotated_type":
        types = [c for c in node.named_children if c.type not in ANNOTATION_NODES]
        if types:
            return _text(types[-1])
    return _text(node)


def _type_list(node: Node) -> List[str]:
    """Type names of an ``extends``/``implements`` clause."""
    out = []
    for child in node.named_children:
        if child.type == "type_list":
            out.extend(_type_text(t) for t in child.named_children)
        else:
            out.append(_type_text(child))
    return out


def _enclosing_names(decl: Node) -> Tuple[Tuple[str, ...], bool]:
    """
    Walk outward through enclosing type declarations.

    Returns:
        (enclosing type names outermost first, whether the walk reached the
        compilation unit).
    """
    names = []
    parent = decl.parent
    while parent is not None:
        if parent.type in TYPE_BODIES:
            parent = parent.parent
            continue
        if parent.type in TYPE_DECLARATIONS:
            name = parent.child_by_field_name("name")
            if name is not None:
                names.append(_text(name))
            parent = parent.parent
            continue
        break
    reached_top = parent is None or parent.type == "program"
    return tuple(reversed(names)), reached_top


def _type_decl(node: Node, package: str) -> TypeDecl:
    name = _text(node.child_by_field_name("name"))
    enclosing, reached_top = _enclosing_names(node)
    qualified_name = None
    if reached_top:
        qualified_name = ".".join(p for p in (package, *enclosing, name) if p)

    extends: List[str] = []
    implements: List[str] = []
    body = None
    for child in node.named_children:
        if child.type in ("superclass", "extends_interfaces"):
            extends.extend(_type_list(child))
        elif child.type == "super_interfaces":
            implements.extend(_type_list(child))
        elif child.type in ("class_body", "interface_body"):
            body = child

    fields: List[FieldDecl] = []
    methods: List[MethodDecl] = []
    if body is not None:
        for member in body.named_children:
            if member.type in FIELD_NODES:
                fields.append(_field_decl(member))
            elif member.type == "method_declaration":
                methods.append(_method_decl(member))

    return TypeDecl(
        kind="interface" if node.type == "interface_declaration" else "class",
        name=name,
        qualified_name=qualified_name,
        enclosing=enclosing,
        annotations=_annotations(node),
        extends=tuple(extends),
        implements=tuple(implements),
        fields=tuple(fields),
        methods=tuple(methods),
    )


def _field_decl(node: Node) -> FieldDecl:
    type_node = node.child_by_field_name("type")
    names = []
    for declarator in node.children_by_field_name("declarator"):
        name = declarator.child_by_field_name("name")
        if name is not None:
            names.append(_text(name))
    return FieldDecl(
        annotations=_annotations(node),
        type_text=_type_text(type_node) if type_node is not None else "",
        names=tuple(names),
    )


def _method_decl(node: Node) -> MethodDecl:
    param_types = []
    params = node.child_by_field_name("parameters")
    if params is not None:
        for param in params.named_children:
            if param.type == "formal_parameter":
                type_node = param.child_by_field_name("type")
            elif param.type == "spread_parameter":
                type_node = next(
                    (
                        c for c in param.named_children
                        if c.type not in ("modifiers", "variable_declarator")
                        and c.type not in ANNOTATION_NODES
                    ),
                    None,
                )
            else:
                # receiver parameters are not injection points
                continue
            if type_node is not None:
                param_types.append(_type_text(type_node))
    return MethodDecl(
        annotations=_annotations(node),
        name=_text(node.child_by_field_name("name")),
        param_types=tuple(param_types),
    )
