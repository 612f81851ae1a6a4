"""JSON serialization/deserialization for the Abacus AST.

This module converts between a parsed program (a list of statement
dataclasses) and plain Python dict/list structures suitable for JSON
encoding. Number literals keep their source text so a program loaded back
from JSON prints exactly what the source program would.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any, Dict, List

from . import ast as nodes
from .values import Boolean, Number, Text

NODE_TYPES: Dict[str, type] = {
    name: cls for name, cls in vars(nodes).items()
    if isinstance(cls, type) and issubclass(cls, nodes.Node) and cls not in (nodes.Node, nodes.Expr, nodes.Stmt)
}


def value_to_obj(value: Any) -> Dict[str, Any]:
    if isinstance(value, Number):
        return {"__value__": "Number", "value": value.value, "literal": value.literal}
    if isinstance(value, Boolean):
        return {"__value__": "Boolean", "value": value.value}
    if isinstance(value, Text):
        return {"__value__": "Text", "value": value.value}
    raise TypeError(f"Unsupported literal value: {type(value).__name__}")


def value_from_obj(o: Dict[str, Any]) -> Any:
    kind = o["__value__"]
    if kind == "Number":
        return Number(float(o["value"]), o.get("literal"))
    if kind == "Boolean":
        return Boolean(bool(o["value"]))
    if kind == "Text":
        return Text(o["value"])
    raise ValueError(f"Unknown literal value type: {kind}")


def ast_to_obj(node: Any) -> Any:
    # Primitives
    if node is None or isinstance(node, (int, float, str, bool)):
        return node
    if isinstance(node, (list, tuple)):
        return [ast_to_obj(n) for n in node]
    if isinstance(node, (Number, Boolean, Text)):
        return value_to_obj(node)
    if isinstance(node, nodes.Node) and is_dataclass(node):
        obj: Dict[str, Any] = {"type": type(node).__name__}
        for f in fields(node):
            obj[f.name] = ast_to_obj(getattr(node, f.name))
        return obj
    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")


def ast_from_obj(obj: Any) -> Any:
    if obj is None or isinstance(obj, (int, float, str, bool)):
        return obj
    if isinstance(obj, list):
        return [ast_from_obj(o) for o in obj]
    if not isinstance(obj, dict):
        raise TypeError("Invalid AST object")
    if "__value__" in obj:
        return value_from_obj(obj)
    t = obj.get("type")
    cls = NODE_TYPES.get(t)
    if cls is None:
        raise ValueError(f"Unknown AST node type: {t}")
    kwargs = {f.name: ast_from_obj(obj.get(f.name)) for f in fields(cls)}
    if cls is nodes.DictionaryLiteral:
        kwargs["entries"] = [tuple(pair) for pair in kwargs["entries"]]
    return cls(**kwargs)


def program_to_obj(statements: List[nodes.Stmt]) -> Dict[str, Any]:
    return {"type": "Program", "body": ast_to_obj(statements)}


def program_from_obj(obj: Dict[str, Any]) -> List[nodes.Stmt]:
    if not isinstance(obj, dict) or obj.get("type") != "Program":
        raise ValueError("Invalid AST document: expected a Program object")
    return ast_from_obj(obj["body"])
