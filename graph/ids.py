"""Stable identifiers and type-name normalization."""

from typing import Optional


TYPE_PREFIX = "t:"
FIELD_PREFIX = "f:"
METHOD_PREFIX = "m:"


def type_id(fqcn: str) -> str:
    """Return the identifier of a type: ``t:<fqcn>``."""
    return TYPE_PREFIX + fqcn


def field_id(owner_fqcn: str, field_name: str) -> str:
    """Return the identifier of a field: ``f:<owner>#<field>``."""
    return f"{FIELD_PREFIX}{owner_fqcn}#{field_name}"


def method_id(owner_fqcn: str, signature: str) -> str:
    """Return the identifier of a method: ``m:<owner>#<name(T,...)>``."""
    return f"{METHOD_PREFIX}{owner_fqcn}#{signature}"


def member_id(owner_fqcn: str, member_kind: str, member: str) -> str:
    """Return the field or method identifier for an injection member."""
    if member_kind == "field":
        return field_id(owner_fqcn, member)
    return method_id(owner_fqcn, member)


def normalize_type_name(type_name: Optional[str]) -> str:
    """
    Normalize a raw type name as written in source.

    Generic type arguments (including nested ones) are dropped, then any
    trailing array brackets and a trailing varargs ellipsis.

    Args:
        type_name: Raw type text, e.g. ``Map<String, List<Foo>>[]``.

    Returns:
        The bare type name, e.g. ``Map``. Empty string for None/blank input.
    """
    if type_name is None:
        return ""
    raw = type_name.strip()
    if not raw:
        return raw

    chars = []
    depth = 0
    for c in raw:
        if c == "<":
            depth += 1
            continue
        if c == ">":
            if depth > 0:
                depth -= 1
            continue
        if depth == 0:
            chars.append(c)

    normalized = "".join(chars).strip()
    while normalized.endswith("[]"):
        normalized = normalized[:-2].strip()
    if normalized.endswith("..."):
        normalized = normalized[:-3].strip()
    return normalized


def short_name(fqcn: str) -> str:
    """Return the last dotted segment of a fully-qualified name."""
    return fqcn.rsplit(".", 1)[-1]


def method_signature(name: str, param_types: list) -> str:
    """
    Build a compact method signature used for identification only.

    Args:
        name: Method name.
        param_types: Raw parameter type texts, in declaration order.

    Returns:
        ``name(T1,T2)`` with every parameter type normalized.
    """
    return f"{name}({','.join(normalize_type_name(t) for t in param_types)})"
