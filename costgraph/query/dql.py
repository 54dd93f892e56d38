"""Structured DQL requests and their rendering to query text.

Requests are assembled from plain dataclasses (predicates, math
expressions, selections, blocks) and only turned into text by
:meth:`Query.render`. Every string literal is escaped at render time and
every attribute or variable name is validated, so caller-supplied names
can never change the shape of the request.

Math expressions can also be evaluated locally against a per-node
environment; the store evaluates the same expressions server-side.
"""

from __future__ import annotations

import json
import math
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")


def _check_name(name: str) -> str:
    if not _NAME_RE.match(name):
        raise ValueError(f"Invalid DQL identifier: {name!r}")
    return name


def format_number(value: float) -> str:
    """Render a numeric literal in fixed-point notation.

    The store's math parser does not accept exponents, so small prices
    such as 1.3888888e-04 are written out in full. Floats keep every digit
    of their shortest repr; NaN and infinities have no DQL spelling and
    are rejected.
    """
    if isinstance(value, bool):
        raise TypeError("booleans are not numeric literals")
    if isinstance(value, int):
        return str(value)
    if not math.isfinite(value):
        raise ValueError(f"non-finite numeric literal: {value!r}")
    text = format(Decimal(repr(value)), "f")
    return text if "." in text else text + ".0"


def quote(value: str) -> str:
    """Render *value* as a double-quoted, escaped string literal."""
    return json.dumps(value, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Filter predicates
# ---------------------------------------------------------------------------


class Predicate(ABC):
    """A node of a filter predicate tree (also used as a root function)."""

    @abstractmethod
    def render(self) -> str: ...

    @abstractmethod
    def matches(self, node: Mapping[str, Any]) -> bool:
        """Evaluate the predicate against a node's attribute mapping."""


@dataclass(frozen=True)
class Has(Predicate):
    attr: str

    def render(self) -> str:
        return f"has({_check_name(self.attr)})"

    def matches(self, node: Mapping[str, Any]) -> bool:
        value = node.get(self.attr)
        return value is not None and value != []


@dataclass(frozen=True)
class Eq(Predicate):
    attr: str
    value: str

    def render(self) -> str:
        return f"eq({_check_name(self.attr)}, {quote(self.value)})"

    def matches(self, node: Mapping[str, Any]) -> bool:
        return node.get(self.attr) == self.value


@dataclass(frozen=True)
class Uid(Predicate):
    """``uid(var)``: the nodes collected into a uid variable."""

    var: str

    def render(self) -> str:
        return f"uid({_check_name(self.var)})"

    def matches(self, node: Mapping[str, Any]) -> bool:
        raise TypeError("uid() is resolved by the store, not per node")


@dataclass(frozen=True)
class Not(Predicate):
    operand: Predicate

    def render(self) -> str:
        return f"NOT {self.operand.render()}"

    def matches(self, node: Mapping[str, Any]) -> bool:
        return not self.operand.matches(node)


@dataclass(frozen=True)
class And(Predicate):
    operands: tuple[Predicate, ...]

    def render(self) -> str:
        return "(" + " AND ".join(p.render() for p in self.operands) + ")"

    def matches(self, node: Mapping[str, Any]) -> bool:
        return all(p.matches(node) for p in self.operands)


@dataclass(frozen=True)
class Or(Predicate):
    operands: tuple[Predicate, ...]

    def render(self) -> str:
        return "(" + " OR ".join(p.render() for p in self.operands) + ")"

    def matches(self, node: Mapping[str, Any]) -> bool:
        return any(p.matches(node) for p in self.operands)


# ---------------------------------------------------------------------------
# Math expressions
# ---------------------------------------------------------------------------


class Expr(ABC):
    """A math expression evaluated per node by the store."""

    @abstractmethod
    def render(self) -> str: ...

    @abstractmethod
    def evaluate(self, env: Mapping[str, Any], now: datetime) -> float:
        """Evaluate against the values bound so far for one node."""

    def __add__(self, other: Expr | float) -> Expr:
        return BinOp("+", self, _lift(other))

    def __sub__(self, other: Expr | float) -> Expr:
        return BinOp("-", self, _lift(other))

    def __mul__(self, other: Expr | float) -> Expr:
        return BinOp("*", self, _lift(other))

    def __truediv__(self, other: Expr | float) -> Expr:
        return BinOp("/", self, _lift(other))


def _lift(value: Expr | float) -> Expr:
    return value if isinstance(value, Expr) else Const(value)


@dataclass(frozen=True, eq=False)
class Const(Expr):
    value: float

    def render(self) -> str:
        return format_number(self.value)

    def evaluate(self, env: Mapping[str, Any], now: datetime) -> float:
        return float(self.value)


@dataclass(frozen=True, eq=False)
class Ref(Expr):
    """Reference to a value variable bound earlier in the same block."""

    var: str

    def render(self) -> str:
        return _check_name(self.var)

    def evaluate(self, env: Mapping[str, Any], now: datetime) -> float:
        value = env.get(self.var)
        if value is None:
            raise KeyError(self.var)
        return float(value)


@dataclass(frozen=True, eq=False)
class Since(Expr):
    """Seconds elapsed between a datetime variable and the store's clock."""

    var: str

    def render(self) -> str:
        return f"since({_check_name(self.var)})"

    def evaluate(self, env: Mapping[str, Any], now: datetime) -> float:
        value = env.get(self.var)
        if value is None:
            raise KeyError(self.var)
        moment = value if value.tzinfo else value.replace(tzinfo=UTC)
        return (now - moment).total_seconds()


_ARITH = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": lambda a, b: a / b,
}

_COMPARE = {
    ">": lambda a, b: a > b,
    "<": lambda a, b: a < b,
    "==": lambda a, b: a == b,
}


@dataclass(frozen=True, eq=False)
class BinOp(Expr):
    op: str
    left: Expr
    right: Expr

    def render(self) -> str:
        return f"({self.left.render()} {self.op} {self.right.render()})"

    def evaluate(self, env: Mapping[str, Any], now: datetime) -> float:
        return _ARITH[self.op](self.left.evaluate(env, now), self.right.evaluate(env, now))


@dataclass(frozen=True, eq=False)
class Compare(Expr):
    op: str
    left: Expr
    right: Expr

    def __post_init__(self) -> None:
        if self.op not in _COMPARE:
            raise ValueError(f"Unsupported comparison: {self.op}")

    def render(self) -> str:
        return f"{self.left.render()} {self.op} {self.right.render()}"

    def evaluate(self, env: Mapping[str, Any], now: datetime) -> float:
        return 1.0 if _COMPARE[self.op](self.left.evaluate(env, now), self.right.evaluate(env, now)) else 0.0


@dataclass(frozen=True, eq=False)
class Cond(Expr):
    """``cond(test, then, otherwise)``; only the chosen branch is evaluated."""

    test: Compare
    then: Expr
    otherwise: Expr

    def render(self) -> str:
        return f"cond({self.test.render()}, {self.then.render()}, {self.otherwise.render()})"

    def evaluate(self, env: Mapping[str, Any], now: datetime) -> float:
        branch = self.then if self.test.evaluate(env, now) else self.otherwise
        return branch.evaluate(env, now)


@dataclass(frozen=True, eq=False)
class Max(Expr):
    left: Expr
    right: Expr

    def render(self) -> str:
        return f"max({self.left.render()}, {self.right.render()})"

    def evaluate(self, env: Mapping[str, Any], now: datetime) -> float:
        return max(self.left.evaluate(env, now), self.right.evaluate(env, now))


# ---------------------------------------------------------------------------
# Selections and blocks
# ---------------------------------------------------------------------------


def _prefix(alias: str | None, var: str | None) -> str:
    out = ""
    if alias:
        out += f"{_check_name(alias)}: "
    if var:
        out += f"{_check_name(var)} as "
    return out


class Selection(ABC):
    """An entry inside a block's braces."""

    @abstractmethod
    def render(self, indent: int) -> str: ...


@dataclass(frozen=True)
class Field(Selection):
    """A scalar attribute, optionally aliased and/or bound to a value variable."""

    attr: str
    alias: str | None = None
    var: str | None = None

    def render(self, indent: int) -> str:
        return " " * indent + _prefix(self.alias, self.var) + _check_name(self.attr)


@dataclass(frozen=True)
class Count(Selection):
    """``count(attr)``: number of values/edges of *attr* on the node."""

    attr: str
    alias: str | None = None
    var: str | None = None

    def render(self, indent: int) -> str:
        return " " * indent + _prefix(self.alias, self.var) + f"count({_check_name(self.attr)})"


@dataclass(frozen=True)
class MathField(Selection):
    """``math(expr)``: exposed through *alias* and/or kept in *var*."""

    expr: Expr
    alias: str | None = None
    var: str | None = None

    def __post_init__(self) -> None:
        if not self.alias and not self.var:
            raise ValueError("math() needs an alias or a variable")

    def render(self, indent: int) -> str:
        return " " * indent + _prefix(self.alias, self.var) + f"math({self.expr.render()})"


@dataclass(frozen=True)
class Edge(Selection):
    """A hop along *attr* (``~attr`` when *reverse*) with nested selections."""

    attr: str
    selections: tuple[Selection, ...]
    alias: str | None = None
    var: str | None = None
    reverse: bool = False
    filter: Predicate | None = None

    def render(self, indent: int) -> str:
        pad = " " * indent
        head = _prefix(self.alias, self.var) + ("~" if self.reverse else "") + _check_name(self.attr)
        if self.filter is not None:
            head += f" @filter({_top_level(self.filter)})"
        body = "\n".join(s.render(indent + 2) for s in self.selections)
        return f"{pad}{head} {{\n{body}\n{pad}}}"


@dataclass(frozen=True)
class Block:
    """A top-level query block. A block named ``var`` only binds variables."""

    name: str
    func: Predicate
    selections: tuple[Selection, ...]
    filter: Predicate | None = None

    def render(self, indent: int = 2) -> str:
        pad = " " * indent
        head = f"{_check_name(self.name)}(func: {_top_level(self.func)})"
        if self.filter is not None:
            head += f" @filter({_top_level(self.filter)})"
        body = "\n".join(s.render(indent + 2) for s in self.selections)
        return f"{pad}{head} {{\n{body}\n{pad}}}"


@dataclass(frozen=True)
class Query:
    """A complete request: one or more blocks evaluated in a single round-trip."""

    blocks: tuple[Block, ...] = field(default_factory=tuple)

    def render(self) -> str:
        return "query {\n" + "\n".join(b.render() for b in self.blocks) + "\n}"

    def block(self, name: str) -> Block:
        for b in self.blocks:
            if b.name == name:
                return b
        raise KeyError(name)


def _top_level(predicate: Predicate) -> str:
    """Render a predicate without the parentheses of an outermost AND/OR."""
    text = predicate.render()
    if isinstance(predicate, (And, Or)):
        return text[1:-1]
    return text
