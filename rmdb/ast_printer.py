"""Indented text dumps of SQL syntax trees."""

from __future__ import annotations

import sys
from functools import singledispatch
from typing import Iterable, Iterator, Optional, TextIO, Union

from rmdb.sql_ast import (
    BinaryExpr,
    Col,
    ColDef,
    CreateIndex,
    CreateTable,
    DeleteStmt,
    DescTable,
    DropIndex,
    DropTable,
    FloatLit,
    Help,
    InsertStmt,
    IntLit,
    SelectStmt,
    SetClause,
    ShowTables,
    StringLit,
    SvCompOp,
    SvType,
    TreeNode,
    TxnAbort,
    TxnBegin,
    TxnCommit,
    TxnRollback,
    TypeLen,
    UpdateStmt,
)

_STEP = 2

_TYPE_NAMES = {
    SvType.INT: "INT",
    SvType.FLOAT: "FLOAT",
    SvType.STRING: "STRING",
}

_OP_NAMES = {
    SvCompOp.EQ: "==",
    SvCompOp.NE: "!=",
    SvCompOp.LT: "<",
    SvCompOp.GT: ">",
    SvCompOp.LE: "<=",
    SvCompOp.GE: ">=",
}


def _pad(offset: int) -> str:
    return " " * offset


def _format_value(value: Union[str, int, float]) -> str:
    if isinstance(value, float):
        # Six significant digits, like a default-formatted float stream.
        return f"{value:.6g}"
    return str(value)


def _val(value: Union[str, int, float], offset: int) -> str:
    return _pad(offset) + _format_value(value)


def _val_list(values: Iterable[Union[str, int, float]], offset: int) -> Iterator[str]:
    yield _pad(offset) + "LIST"
    for value in values:
        yield _val(value, offset + _STEP)


def _node_list(nodes: Iterable[TreeNode], offset: int) -> Iterator[str]:
    yield _pad(offset) + "LIST"
    for node in nodes:
        yield from _node(node, offset + _STEP)


@singledispatch
def _node(node: object, offset: int) -> Iterator[str]:
    raise TypeError(f"cannot print syntax tree node of type {type(node).__name__}")


def _register_label(cls: type, label: str) -> None:
    def handler(node: TreeNode, offset: int) -> Iterator[str]:
        yield _pad(offset) + label

    _node.register(cls)(handler)


for _cls, _label in (
    (Help, "HELP"),
    (ShowTables, "SHOW_TABLES"),
    (TxnBegin, "BEGIN"),
    (TxnCommit, "COMMIT"),
    (TxnAbort, "ABORT"),
    (TxnRollback, "ROLLBACK"),
):
    _register_label(_cls, _label)


@_node.register(CreateTable)
def _create_table(node: CreateTable, offset: int) -> Iterator[str]:
    yield _pad(offset) + "CREATE_TABLE"
    inner = offset + _STEP
    yield _val(node.tab_name, inner)
    yield from _node_list(node.fields, inner)


@_node.register(DropTable)
def _drop_table(node: DropTable, offset: int) -> Iterator[str]:
    yield _pad(offset) + "DROP_TABLE"
    yield _val(node.tab_name, offset + _STEP)


@_node.register(DescTable)
def _desc_table(node: DescTable, offset: int) -> Iterator[str]:
    yield _pad(offset) + "DESC_TABLE"
    yield _val(node.tab_name, offset + _STEP)


@_node.register(CreateIndex)
def _create_index(node: CreateIndex, offset: int) -> Iterator[str]:
    yield _pad(offset) + "CREATE_INDEX"
    inner = offset + _STEP
    yield _val(node.tab_name, inner)
    for col_name in node.col_names:
        yield _val(col_name, inner)


@_node.register(DropIndex)
def _drop_index(node: DropIndex, offset: int) -> Iterator[str]:
    yield _pad(offset) + "DROP_INDEX"
    inner = offset + _STEP
    yield _val(node.tab_name, inner)
    for col_name in node.col_names:
        yield _val(col_name, inner)


@_node.register(ColDef)
def _col_def(node: ColDef, offset: int) -> Iterator[str]:
    yield _pad(offset) + "COL_DEF"
    inner = offset + _STEP
    yield _val(node.col_name, inner)
    yield from _node(node.type_len, inner)


@_node.register(Col)
def _col(node: Col, offset: int) -> Iterator[str]:
    yield _pad(offset) + "COL"
    inner = offset + _STEP
    yield _val(node.tab_name, inner)
    yield _val(node.col_name, inner)


@_node.register(TypeLen)
def _type_len(node: TypeLen, offset: int) -> Iterator[str]:
    yield _pad(offset) + "TYPE_LEN"
    inner = offset + _STEP
    yield _val(_TYPE_NAMES[SvType(node.type)], inner)
    yield _val(node.len, inner)


@_node.register(IntLit)
def _int_lit(node: IntLit, offset: int) -> Iterator[str]:
    yield _pad(offset) + "INT_LIT"
    yield _val(int(node.val), offset + _STEP)


@_node.register(FloatLit)
def _float_lit(node: FloatLit, offset: int) -> Iterator[str]:
    yield _pad(offset) + "FLOAT_LIT"
    yield _val(float(node.val), offset + _STEP)


@_node.register(StringLit)
def _string_lit(node: StringLit, offset: int) -> Iterator[str]:
    yield _pad(offset) + "STRING_LIT"
    yield _val(node.val, offset + _STEP)


@_node.register(SetClause)
def _set_clause(node: SetClause, offset: int) -> Iterator[str]:
    yield _pad(offset) + "SET_CLAUSE"
    inner = offset + _STEP
    yield _val(node.col_name, inner)
    yield from _node(node.val, inner)


@_node.register(BinaryExpr)
def _binary_expr(node: BinaryExpr, offset: int) -> Iterator[str]:
    yield _pad(offset) + "BINARY_EXPR"
    inner = offset + _STEP
    yield from _node(node.lhs, inner)
    yield _val(_OP_NAMES[SvCompOp(node.op)], inner)
    yield from _node(node.rhs, inner)


@_node.register(InsertStmt)
def _insert(node: InsertStmt, offset: int) -> Iterator[str]:
    yield _pad(offset) + "INSERT"
    inner = offset + _STEP
    yield _val(node.tab_name, inner)
    yield from _node_list(node.vals, inner)


@_node.register(DeleteStmt)
def _delete(node: DeleteStmt, offset: int) -> Iterator[str]:
    yield _pad(offset) + "DELETE"
    inner = offset + _STEP
    yield _val(node.tab_name, inner)
    yield from _node_list(node.conds, inner)


@_node.register(UpdateStmt)
def _update(node: UpdateStmt, offset: int) -> Iterator[str]:
    yield _pad(offset) + "UPDATE"
    inner = offset + _STEP
    yield _val(node.tab_name, inner)
    yield from _node_list(node.set_clauses, inner)
    yield from _node_list(node.conds, inner)


@_node.register(SelectStmt)
def _select(node: SelectStmt, offset: int) -> Iterator[str]:
    yield _pad(offset) + "SELECT"
    inner = offset + _STEP
    yield from _node_list(node.cols, inner)
    yield from _val_list(node.tabs, inner)
    yield from _node_list(node.conds, inner)


def format_tree(node: TreeNode) -> str:
    """Render a syntax tree as indented lines, one per node or value.

    Raises TypeError for node kinds that have no printed form.
    """
    return "".join(line + "\n" for line in _node(node, 0))


def print_tree(node: TreeNode, file: Optional[TextIO] = None) -> None:
    """Write the rendering of a syntax tree to file (standard output by default)."""
    text = format_tree(node)
    (file if file is not None else sys.stdout).write(text)