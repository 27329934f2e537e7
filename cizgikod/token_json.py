"""JSON serialization/deserialization for ÇizgiKod token sequences.

This module converts between `Token` dataclasses and plain Python
dict/list structures suitable for JSON encoding, so a tokenized program
can be dumped once and executed later without re-reading its source.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from .lexer import Token, TokenType
from .types import Value, ValueType


def value_to_obj(v: Optional[Value]) -> Optional[Dict[str, Any]]:
    if v is None:
        return None
    return {"type": v.type.value, "data": v.data}


def value_from_obj(o: Optional[Dict[str, Any]]) -> Optional[Value]:
    if o is None:
        return None
    kind = ValueType(o["type"])
    data = o.get("data")
    if kind is ValueType.INT:
        return Value.integer(int(data))
    if kind is ValueType.FLOAT:
        return Value.double(float(data))
    if kind is ValueType.BOOLEAN:
        return Value.boolean(bool(data))
    if kind is ValueType.STRING:
        return Value.string(str(data))
    if kind is ValueType.CHAR:
        return Value.char(str(data))
    return Value(kind)


def tokens_to_obj(tokens: Sequence[Token]) -> Dict[str, Any]:
    return {
        "type": "Tokens",
        "tokens": [
            {
                "kind": t.kind.value,
                "lexeme": t.lexeme,
                "literal": value_to_obj(t.literal),
                "line": t.line,
            }
            for t in tokens
        ],
    }


def tokens_from_obj(obj: Any) -> List[Token]:
    if not isinstance(obj, dict) or obj.get("type") != "Tokens":
        raise ValueError("Invalid token dump object")
    tokens: List[Token] = []
    for item in obj["tokens"]:
        tokens.append(Token(
            kind=TokenType(item["kind"]),
            lexeme=item["lexeme"],
            literal=value_from_obj(item.get("literal")),
            line=int(item.get("line", 0)),
        ))
    return tokens
