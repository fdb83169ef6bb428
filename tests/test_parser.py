"""
Test suite for the Tessel parser.

Tests cover:
- Declarations, parameter lists and result lists
- Types, vectors and mutable bindings
- Balanced-brace blocks and their items
- Failure offsets, expected constructs and error codes
- Termination on adversarial nesting
"""

import logging
import unittest
import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from tessel.parser import (
    Parser, ParseError, program, parse_string,
    IntType, ArrayType, IntLiteral, VectorLiteral, MutDecl, Reference, RawText,
    Block, Parameter, FunctionDef, Program
)
from tessel.parser.parser import recursion_safe_depth
from tessel.cli import SAMPLE_PROGRAM


INT_ARRAY = ArrayType(IntType())


def _nested_block(depth: int) -> Block:
    block = Block(())
    for _ in range(depth - 1):
        block = Block((block,))
    return block


class ParserTestCase(unittest.TestCase):
    """Shared helpers."""

    def _run(self, rule_name: str, source: str, **kwargs):
        parser = Parser(source, **kwargs)
        return parser.run(getattr(parser, rule_name))

    def _parse_rule(self, rule_name: str, source: str):
        result = self._run(rule_name, source)
        self.assertTrue(result.ok, f"Unexpected error: {result.error}")
        return result.value

    def _rule_error(self, rule_name: str, source: str, **kwargs) -> ParseError:
        result = self._run(rule_name, source, **kwargs)
        self.assertFalse(result.ok, f"Expected failure, parsed {result.value!r}")
        return result.error


class TestDeclarations(ParserTestCase):
    """Top-level declarations and programs."""

    def test_single_declaration(self):
        result = program("f (a: Int) -> (a) { 1 }")

        self.assertTrue(result.ok)
        self.assertEqual(result.remainder, "")
        self.assertEqual(result.value, Program((
            FunctionDef(
                "f",
                (Parameter("a", IntType()),),
                (Reference("a"),),
                (Block((IntLiteral(1),)),),
            ),
        )))

    def test_sample_program(self):
        declaration = program(SAMPLE_PROGRAM).unwrap().items[0]

        self.assertEqual(declaration.name, "laksjd")
        self.assertEqual(declaration.params, (
            Parameter("a", Reference("tru")),
            Parameter("b", Reference("a")),
        ))
        self.assertEqual(declaration.results, (Reference("a"), Reference("b")))
        self.assertEqual(len(declaration.blocks), 3)

        inner = Block((
            Block(()),
            Block((Reference("pd"), Block((Reference("kdfj"),)), Reference("kjd"))),
        ))
        expected_first = Block((Reference("kjsd"), Block((Block((inner,)),))))
        self.assertEqual(declaration.blocks[0], expected_first)
        self.assertEqual(declaration.blocks[1:], (Block(()), Block(())))

    def test_several_declarations_and_remainder(self):
        source = "f () -> () {}\ng (x: [Int]) -> (y: Int) {} 42"
        result = program(source)

        self.assertTrue(result.ok)
        self.assertEqual([item.name for item in result.value.items], ["f", "g"])
        self.assertEqual(result.value.items[1].params, (Parameter("x", INT_ARRAY),))
        self.assertEqual(result.value.items[1].results, (Parameter("y", IntType()),))
        self.assertEqual(result.remainder, "42")

    def test_result_list_mixes_bindings_and_references(self):
        declaration = self._parse_rule("parse_declaration", "h () -> (a, b: Array(Int), c) {}")
        self.assertEqual(declaration.results, (
            Reference("a"), Parameter("b", INT_ARRAY), Reference("c")
        ))

    def test_comments_between_tokens(self):
        source = "// header\nf /* name */ () -> () { /* } */ 1 } // trailing"
        result = program(source)

        self.assertTrue(result.ok, f"Unexpected error: {result.error}")
        self.assertEqual(result.value.items[0].blocks, (Block((IntLiteral(1),)),))
        self.assertEqual(result.remainder, "")

    def test_empty_input_fails(self):
        for source in ("", "   \n\t"):
            result = program(source)
            self.assertFalse(result.ok)
            self.assertEqual(result.error.code, "P010")
            self.assertIn("identifier", result.error.expected)

    def test_reserved_word_is_not_a_name(self):
        result = program("Int () -> () {}")
        self.assertFalse(result.ok)
        self.assertEqual(result.error.offset, 0)

    def test_partial_second_declaration_fails(self):
        result = program("f () -> () {} g (")
        self.assertFalse(result.ok)
        self.assertEqual(result.error.offset, len("f () -> () {} g ("))

    def test_declaration_requires_a_block(self):
        result = program("f () -> ()")
        self.assertFalse(result.ok)
        self.assertEqual(result.error.expected, ("'{'",))

    def test_missing_arrow(self):
        result = program("f () () {}")

        self.assertFalse(result.ok)
        self.assertEqual(result.error.offset, 5)
        self.assertEqual(result.error.code, "P001")
        self.assertEqual(result.error.expected, ("'->'",))

    def test_error_reports_line_and_column(self):
        result = program("f ()\n-> () x")

        self.assertFalse(result.ok)
        self.assertEqual(result.error.location.line, 2)
        self.assertEqual(result.error.location.column, 7)
        self.assertEqual(result.error.offset, 11)

    def test_trailing_identifier_starts_a_declaration(self):
        result = program("f () -> () {} x")

        self.assertFalse(result.ok)
        self.assertEqual(result.error.offset, 15)
        self.assertEqual(result.error.code, "P010")

    def test_unwrap_raises(self):
        with self.assertRaises(ParseError):
            program("").unwrap()


class TestParameterLists(ParserTestCase):
    """Parenthesized binding lists."""

    def test_empty_list(self):
        self.assertEqual(self._parse_rule("parse_parameter_list", "()"), [])

    def test_bindings_with_types_and_references(self):
        params = self._parse_rule("parse_parameter_list", "(a: Int, b: [[Int]], c: tru)")
        self.assertEqual(params, [
            Parameter("a", IntType()),
            Parameter("b", ArrayType(INT_ARRAY)),
            Parameter("c", Reference("tru")),
        ])

    def test_missing_colon(self):
        error = self._rule_error("parse_parameter_list", "(a Int)")
        self.assertEqual(error.offset, 3)
        self.assertEqual(error.expected, ("':'",))

    def test_missing_close_paren_lists_comma(self):
        error = self._rule_error("parse_parameter_list", "(a: Int b: Int)")
        self.assertEqual(error.offset, 8)
        self.assertEqual(error.expected, ("','", "')'"))

    def test_trailing_comma_is_rejected(self):
        error = self._rule_error("parse_parameter_list", "(a: Int,)")
        self.assertEqual(error.offset, 8)
        self.assertIn("identifier", error.expected)

    def test_bad_annotation_merges_alternatives(self):
        error = self._rule_error("parse_parameter_list", "(a: 5)")
        self.assertEqual(error.offset, 4)
        self.assertEqual(error.expected, ("'Int'", "'['", "'Array'", "identifier"))

    def test_committed_type_error_is_reported_where_it_happened(self):
        result = program("f (a: [x]) -> () {}")
        self.assertFalse(result.ok)
        self.assertEqual(result.error.offset, 7)
        self.assertIn("'Int'", result.error.expected)


class TestTypes(ParserTestCase):
    """Int and array types."""

    def test_int(self):
        self.assertEqual(self._parse_rule("parse_type", "Int"), IntType())

    def test_nested_brackets(self):
        self.assertEqual(self._parse_rule("parse_type", "[[Int]]"), ArrayType(INT_ARRAY))

    def test_array_keyword_form(self):
        self.assertEqual(self._parse_rule("parse_type", "Array([Int])"), ArrayType(INT_ARRAY))

    def test_missing_close_bracket(self):
        error = self._rule_error("parse_type", "[Int")
        self.assertEqual(error.offset, 4)
        self.assertEqual(error.code, "P010")
        self.assertEqual(error.expected, ("']'",))

    def test_identifier_is_not_a_type(self):
        error = self._rule_error("parse_type", "Intx")
        self.assertEqual(error.offset, 0)
        self.assertEqual(error.expected, ("'Int'", "'['", "'Array'"))

    def test_type_nesting_limit(self):
        source = "[" * 10 + "Int" + "]" * 10
        error = self._rule_error("parse_type", source, max_depth=5)
        self.assertEqual(error.code, "P013")

    def test_deep_type_with_large_limit_fails_cleanly(self):
        source = "[" * 5000 + "Int" + "]" * 5000
        parser = Parser(source, max_depth=10000)
        result = parser.run(parser.parse_type)

        self.assertFalse(result.ok)
        self.assertEqual(result.error.code, "P013")
        self.assertLessEqual(parser.recursive_depth, recursion_safe_depth())

    def test_stack_exhaustion_becomes_nesting_error(self):
        parser = Parser("[Int]")

        def runaway():
            return runaway()

        result = parser.run(runaway)
        self.assertFalse(result.ok)
        self.assertEqual(result.error.code, "P013")
        self.assertEqual(result.remainder, "[Int]")


class TestVectorsAndBindings(ParserTestCase):
    """Vector literals and mut declarations."""

    def test_flat_vector(self):
        vector = self._parse_rule("parse_vector", "[1, -2, 3]")
        self.assertEqual(vector, VectorLiteral(
            False, INT_ARRAY, (IntLiteral(1), IntLiteral(-2), IntLiteral(3))
        ))

    def test_empty_vector_is_flat(self):
        self.assertEqual(self._parse_rule("parse_vector", "[]"), VectorLiteral(False, INT_ARRAY, ()))

    def test_matrix(self):
        matrix = self._parse_rule("parse_vector", "[[1, 2], [3]]")

        self.assertTrue(matrix.is_matrix)
        self.assertEqual(matrix.datatype, ArrayType(INT_ARRAY))
        self.assertEqual(matrix.value[1], VectorLiteral(False, INT_ARRAY, (IntLiteral(3),)))

    def test_mixed_shapes_fail_at_offending_element(self):
        cases = {
            "[1, [2]]": 4,
            "[[1], 2]": 6,
            "[[[1]], [2]]": 8,
        }
        for source, offset in cases.items():
            error = self._rule_error("parse_vector", source)
            self.assertEqual(error.code, "P005", source)
            self.assertEqual(error.offset, offset, source)

    def test_mut_decl_of_matrix(self):
        decl = self._parse_rule("parse_mut_decl", "mut xs = [[1], [2]]")
        self.assertEqual(decl.name, "xs")
        self.assertTrue(decl.value.is_matrix)

    def test_mut_decl_of_reference(self):
        self.assertEqual(self._parse_rule("parse_mut_decl", "mut v = other"),
                         MutDecl("v", Reference("other")))

    def test_mut_decl_requires_value(self):
        error = self._rule_error("parse_mut_decl", "mut v =")
        self.assertEqual(error.code, "P010")
        self.assertEqual(error.expected, ("'['", "integer", "identifier"))

    def test_deep_vector_with_large_limit_fails_cleanly(self):
        error = self._rule_error("parse_vector", "[" * 5000, max_depth=10000)
        self.assertEqual(error.code, "P013")


class TestBlocks(ParserTestCase):
    """Balanced-brace blocks."""

    def test_items_fall_back_in_order(self):
        block = self._parse_rule(
            "parse_block", "{ mut x = [1, 2] 7 foo 12abc ->a [1]x mut { } }"
        )
        self.assertEqual(block.items, (
            MutDecl("x", VectorLiteral(False, INT_ARRAY, (IntLiteral(1), IntLiteral(2)))),
            IntLiteral(7),
            Reference("foo"),
            RawText("12abc"),
            RawText("->a"),
            RawText("[1]x"),
            RawText("mut"),
            Block(()),
        ))

    def test_nested_blocks_up_to_depth_twenty(self):
        for depth in range(1, 21):
            source = "f () -> () " + "{" * depth + "}" * depth
            result = program(source)
            self.assertTrue(result.ok, f"depth {depth}: {result.error}")
            self.assertEqual(result.value.items[0].blocks, (_nested_block(depth),))

    def test_inner_close_brace_does_not_end_outer_block(self):
        block = self._parse_rule("parse_block", "{a{b}c}")
        self.assertEqual(block, Block((Reference("a"), Block((Reference("b"),)), Reference("c"))))

    def test_unmatched_open_brace_fails_at_end_of_input(self):
        source = "f () -> () { {"
        result = program(source)

        self.assertFalse(result.ok)
        self.assertEqual(result.error.code, "P004")
        self.assertEqual(result.error.offset, len(source))

    def test_stray_close_brace_fails_at_its_offset(self):
        source = "f () -> () { } }"
        with self.assertRaises(ParseError) as caught:
            parse_string(source)

        self.assertEqual(caught.exception.offset, 15)
        self.assertEqual(caught.exception.code, "P014")

        # Without the completeness requirement the brace is left over
        self.assertEqual(program(source).remainder, "}")

    def test_ten_thousand_open_braces_terminate(self):
        result = program("f () -> () " + "{" * 10000)
        self.assertFalse(result.ok)
        self.assertEqual(result.error.code, "P013")

    def test_deep_nesting_needs_no_recursion(self):
        source = "{" * 10000
        error = self._rule_error("parse_block", source, max_depth=20000)
        self.assertEqual(error.code, "P004")
        self.assertEqual(error.offset, len(source))

    def test_block_with_only_close_brace(self):
        error = self._rule_error("parse_block", "}")
        self.assertEqual(error.offset, 0)
        self.assertEqual(error.expected, ("'{'",))


class TestIdentifiers(ParserTestCase):
    """The identifier rule."""

    def test_identifier(self):
        self.assertEqual(self._parse_rule("parse_identifier", "name_1 rest"), "name_1")

    def test_identifier_remainder(self):
        result = self._run("parse_identifier", "  name rest")
        self.assertEqual(result.remainder, "rest")

    def test_digit_start_fails(self):
        error = self._rule_error("parse_identifier", "9lives")
        self.assertEqual(error.offset, 0)
        self.assertEqual(error.code, "P001")


class TestLogging(ParserTestCase):
    """The parser reports its progress at DEBUG level."""

    def test_declaration_is_logged(self):
        with self.assertLogs("tessel.parser.parser", level=logging.DEBUG) as logs:
            program("f () -> () {}")
        self.assertTrue(any("parsing declaration 'f'" in line for line in logs.output))

    def test_declaration_span_is_logged(self):
        with self.assertLogs("tessel.parser.parser", level=logging.DEBUG) as logs:
            program("f () -> () {}")
        self.assertTrue(any("parsed declaration 'f' at <string>:1:1-1:14" in line
                            for line in logs.output))


if __name__ == '__main__':
    unittest.main()
