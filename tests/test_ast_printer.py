import io

import pytest

from rmdb.ast_printer import format_tree, print_tree
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
    Field,
    FloatLit,
    Help,
    InsertStmt,
    IntLit,
    JoinExpr,
    JoinType,
    OrderBy,
    OrderByDir,
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


def _lines(node):
    return format_tree(node).splitlines()


def _indent(line):
    return len(line) - len(line.lstrip(" "))


def _sample_trees():
    return [
        ShowTables(),
        DescTable("tb"),
        CreateTable(
            "tb",
            [
                ColDef("a", TypeLen(SvType.INT, 4)),
                ColDef("b", TypeLen(SvType.FLOAT, 4)),
                ColDef("c", TypeLen(SvType.STRING, 4)),
            ],
        ),
        DropTable("tb"),
        CreateIndex("tb", ["a", "b", "c"]),
        DropIndex("tb", ["b"]),
        InsertStmt("tb", [IntLit(1), FloatLit(3.14), StringLit("pi")]),
        DeleteStmt("tb", [BinaryExpr(Col("", "a"), SvCompOp.EQ, IntLit(1))]),
        UpdateStmt(
            "tb",
            [SetClause("a", IntLit(1)), SetClause("c", StringLit("xyz"))],
            [BinaryExpr(Col("", "x"), SvCompOp.EQ, IntLit(2))],
        ),
        SelectStmt(
            [Col("x", "a"), Col("y", "b")],
            ["x", "y"],
            [BinaryExpr(Col("x", "a"), SvCompOp.EQ, Col("y", "b"))],
        ),
        Help(),
    ]


@pytest.mark.parametrize(
    "node, expected",
    [
        (Help(), "HELP\n"),
        (ShowTables(), "SHOW_TABLES\n"),
        (TxnBegin(), "BEGIN\n"),
        (TxnCommit(), "COMMIT\n"),
        (TxnAbort(), "ABORT\n"),
        (TxnRollback(), "ROLLBACK\n"),
    ],
)
def test_leaf_statements(node, expected):
    assert format_tree(node) == expected


def test_create_table_full_output():
    node = CreateTable(
        "tb",
        [ColDef("a", TypeLen(SvType.INT, 4)), ColDef("c", TypeLen(SvType.STRING, 4))],
    )
    expected = (
        "CREATE_TABLE\n"
        "  tb\n"
        "  LIST\n"
        "    COL_DEF\n"
        "      a\n"
        "      TYPE_LEN\n"
        "        INT\n"
        "        4\n"
        "    COL_DEF\n"
        "      c\n"
        "      TYPE_LEN\n"
        "        STRING\n"
        "        4\n"
    )
    assert format_tree(node) == expected


def test_drop_and_desc_table_print_name():
    assert _lines(DropTable("tb")) == ["DROP_TABLE", "  tb"]
    assert _lines(DescTable("tb")) == ["DESC_TABLE", "  tb"]


def test_index_columns_are_listed_without_list_header():
    lines = _lines(CreateIndex("tb", ["a", "b", "c"]))
    assert lines == ["CREATE_INDEX", "  tb", "  a", "  b", "  c"]
    assert "LIST" not in format_tree(DropIndex("tb", ["b"]))
    assert _lines(DropIndex("tb", ["b"]))[0] == "DROP_INDEX"


def test_insert_values_formatting():
    lines = _lines(InsertStmt("tb", [IntLit(1), FloatLit(3.14), StringLit("pi")]))
    assert lines[:3] == ["INSERT", "  tb", "  LIST"]
    assert lines[3:] == [
        "    INT_LIT",
        "      1",
        "    FLOAT_LIT",
        "      3.14",
        "    STRING_LIT",
        "      pi",
    ]


def test_whole_float_prints_without_decimal_point():
    assert _lines(FloatLit(3.0)) == ["FLOAT_LIT", "  3"]


@pytest.mark.parametrize(
    "op, text",
    [
        (SvCompOp.EQ, "=="),
        (SvCompOp.NE, "!="),
        (SvCompOp.LT, "<"),
        (SvCompOp.GT, ">"),
        (SvCompOp.LE, "<="),
        (SvCompOp.GE, ">="),
    ],
)
def test_binary_expr_operator(op, text):
    lines = _lines(BinaryExpr(Col("tb", "a"), op, StringLit("abc")))
    assert lines[0] == "BINARY_EXPR"
    assert lines[1:4] == ["  COL", "    tb", "    a"]
    assert lines[4] == "  " + text
    assert lines[5:] == ["  STRING_LIT", "    abc"]


def test_update_has_set_and_condition_lists():
    node = UpdateStmt(
        "tb",
        [SetClause("a", IntLit(1))],
        [BinaryExpr(Col("", "x"), SvCompOp.EQ, IntLit(2))],
    )
    lines = _lines(node)
    assert lines[0] == "UPDATE"
    assert [line for line in lines if line == "  LIST"] == ["  LIST", "  LIST"]
    assert "    SET_CLAUSE" in lines
    assert "    BINARY_EXPR" in lines


def test_select_lists_tables_as_values():
    node = SelectStmt(
        [Col("x", "a")],
        ["x", "y"],
        [],
        order=OrderBy(Col("x", "a"), OrderByDir.DESC),
    )
    lines = _lines(node)
    assert lines[0] == "SELECT"
    tab_start = lines.index("  LIST", 1 + 1)
    assert lines[tab_start + 1:tab_start + 3] == ["    x", "    y"]
    assert lines[-1] == "  LIST"
    assert "ORDER" not in format_tree(node)


def test_empty_select_lists():
    assert _lines(SelectStmt([], [], [])) == ["SELECT", "  LIST", "  LIST", "  LIST"]


@pytest.mark.parametrize("node", _sample_trees())
def test_indentation_invariants(node):
    lines = _lines(node)
    assert _indent(lines[0]) == 0
    for prev, line in zip(lines, lines[1:]):
        assert _indent(line) % 2 == 0
        assert _indent(line) <= _indent(prev) + 2


@pytest.mark.parametrize(
    "node",
    [
        TreeNode(),
        Field(),
        OrderBy(Col("t", "a"), OrderByDir.ASC),
        JoinExpr("a", "b", [], JoinType.INNER_JOIN),
        "not a node",
    ],
)
def test_unprintable_nodes_raise(node):
    with pytest.raises(TypeError):
        format_tree(node)


def test_unprintable_child_raises():
    with pytest.raises(TypeError):
        format_tree(CreateTable("tb", [Field()]))


@pytest.mark.parametrize("node", _sample_trees())
def test_print_tree_writes_formatted_text(node):
    out = io.StringIO()
    print_tree(node, out)
    assert out.getvalue() == format_tree(node)


def test_print_tree_defaults_to_stdout(capsys):
    print_tree(DropTable("tb"))
    assert capsys.readouterr().out == "DROP_TABLE\n  tb\n"