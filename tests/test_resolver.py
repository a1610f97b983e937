"""
Unit tests for the Lox resolver and its scope stack.

The resolver computes how many scopes separate each local variable
reference from its declaration, and reports scoping errors without
running anything.
"""

import textwrap

import pytest
from treelox import (
    tokenize, parse, Resolver, ResolveError, resolve, Interpreter,
    Scope, ScopeStack, Identifier, Assignment, ThisExpr, SuperAccess,
    PrintStatement, ReturnStatement,
)


def _resolve(source):
    statements = parse(tokenize(textwrap.dedent(source)))
    return statements, Resolver().resolve(statements)


def _codes(source):
    _, result = _resolve(source)
    return [d.code for d in result.diagnostics]


# --- Scopes ---

class TestScope:
    """Test the declared/defined bookkeeping of a single scope."""

    def test_declare_then_define(self):
        """A declared name is present but not defined until define()."""
        scope = Scope()
        scope.declare("a")
        assert "a" in scope
        assert scope.is_declared("a")
        assert not scope.is_defined("a")
        scope.define("a")
        assert scope.is_defined("a")

    def test_unknown_name(self):
        """Names never declared are neither declared nor defined."""
        scope = Scope(name="block")
        assert not scope.is_declared("x")
        assert not scope.is_defined("x")


class TestScopeStack:
    """Test the resolver's stack of scopes."""

    def test_empty_stack(self):
        """A new stack is empty and finds nothing."""
        stack = ScopeStack()
        assert stack.is_empty()
        assert len(stack) == 0
        assert stack.distance_to("a") is None

    def test_push_pop(self):
        """push returns the new scope and pop removes it."""
        stack = ScopeStack()
        outer = stack.push(name="outer")
        inner = stack.push(name="inner")
        assert stack.depth == 2
        assert stack.last() is inner
        assert stack.at(0) is outer
        assert stack.pop() is inner
        assert stack.last() is outer

    def test_push_existing_scope(self):
        """An existing scope object can be pushed."""
        stack = ScopeStack()
        scope = Scope(name="given")
        assert stack.push(scope) is scope

    def test_distance_to(self):
        """Distance counts hops outward from the innermost scope."""
        stack = ScopeStack()
        stack.push().define("a")
        stack.push().define("b")
        stack.push()
        assert stack.distance_to("a") == 2
        assert stack.distance_to("b") == 1
        assert stack.distance_to("c") is None

    def test_distance_finds_innermost_shadow(self):
        """The innermost declaration of a name wins."""
        stack = ScopeStack()
        stack.push().define("a")
        stack.push().define("a")
        assert stack.distance_to("a") == 0


# --- Distances ---

class TestDistances:
    """Test the distances recorded for local references."""

    def test_globals_are_not_resolved(self):
        """Top-level variables are looked up by name at run time."""
        _, result = _resolve("var a = 1; print a;")
        assert result.distances == {}
        assert not result.has_errors

    def test_enclosing_block(self):
        """A reference one block in from its declaration has distance 1."""
        statements, result = _resolve("""
            {
              var a = 1;
              { print a; }
            }
        """)
        inner_print = statements[0].statements[1].statements[0]
        assert result.distances[inner_print.expression] == 1

    def test_same_block(self):
        """A reference in the declaring block has distance 0."""
        statements, result = _resolve("{ var a; a = 2; }")
        assignment = statements[0].statements[1].expression
        assert isinstance(assignment, Assignment)
        assert result.distances[assignment] == 0

    def test_parameter(self):
        """Parameters live in the function's own scope."""
        statements, result = _resolve("fun f(x) { return x; }")
        ret = statements[0].body[0]
        assert result.distances[ret.value] == 0

    def test_this_in_method(self):
        """'this' lives one scope outside the method body."""
        statements, result = _resolve("class A { m() { return this; } }")
        this_expr = statements[0].methods[0].body[0].value
        assert isinstance(this_expr, ThisExpr)
        assert result.distances[this_expr] == 1

    def test_super_in_method(self):
        """'super' lives one scope outside 'this'."""
        statements, result = _resolve("""
            class A { m() {} }
            class B < A { m() { return super.m(); } }
        """)
        call = statements[1].methods[0].body[0].value
        super_expr = call.callee
        assert isinstance(super_expr, SuperAccess)
        assert result.distances[super_expr] == 2

    def test_identical_references_are_distinct(self):
        """Two references to the same name are separate keys."""
        statements, result = _resolve("""
            {
              var a = 1;
              print a;
              { print a; }
            }
        """)
        block = statements[0].statements
        first = block[1].expression
        second = block[2].statements[0].expression
        assert result.distances[first] == 0
        assert result.distances[second] == 1

    def test_on_resolve_callback(self):
        """Each local reference is reported to on_resolve."""
        seen = []
        statements = parse(tokenize("{ var a = 1; print a; }"))
        Resolver(lambda expr, depth: seen.append((expr, depth))).resolve(statements)
        assert len(seen) == 1
        expr, depth = seen[0]
        assert isinstance(expr, Identifier)
        assert depth == 0

    def test_resolve_feeds_interpreter(self):
        """resolve() hands distances to an interpreter."""
        interpreter = Interpreter(stdout=lambda text: None)
        statements = parse(tokenize("fun f(x) { return x; }"))
        result = resolve(statements, interpreter)
        assert interpreter.locals == result.distances
        assert len(interpreter.locals) == 1


# --- Errors ---

class TestResolverErrors:
    """Test static scoping errors."""

    def test_redeclare_in_local_scope(self):
        """E201: a name declared twice in one block."""
        assert _codes("{ var a = 1; var a = 2; }") == ["E201"]

    def test_redeclare_at_top_level_is_allowed(self):
        """Globals may be redeclared."""
        assert _codes("var a = 1; var a = 2;") == []

    def test_duplicate_parameter(self):
        """E201: two parameters with the same name."""
        assert _codes("fun f(a, a) {}") == ["E201"]

    def test_shadowing_outer_block_is_allowed(self):
        """An inner block may reuse an outer name."""
        assert _codes('var a = "x"; { var a = "y"; { var a = "z"; } }') == []

    def test_own_initializer(self):
        """E202: reading a local inside its own initializer."""
        _, result = _resolve("var a = 1; { var a = a + 1; }")
        assert result.has_errors
        assert result.diagnostics[0].code == "E202"
        assert result.diagnostics[0].message == "Can't read local variable in its own initializer."

    def test_own_initializer_at_top_level_is_allowed(self):
        """Globals are not tracked, so this is left to run time."""
        assert _codes("var a = a;") == []

    def test_top_level_return(self):
        """E203: return outside any function."""
        assert _codes("return 1;") == ["E203"]

    def test_initializer_return_value(self):
        """E204: returning a value from init."""
        assert _codes("class A { init() { return 1; } }") == ["E204"]

    def test_initializer_bare_return_is_allowed(self):
        """A bare return in init is fine."""
        assert _codes("class A { init() { return; } }") == []

    def test_nested_function_in_initializer(self):
        """A function inside init may return a value."""
        assert _codes("class A { init() { fun f() { return 1; } } }") == []

    def test_this_outside_class(self):
        """E205: 'this' at top level or in a plain function."""
        assert _codes("print this;") == ["E205"]
        assert _codes("fun f() { return this; }") == ["E205"]

    def test_this_in_nested_function(self):
        """A function inside a method may use 'this'."""
        assert _codes("class A { m() { fun inner() { return this; } } }") == []

    def test_super_outside_class(self):
        """E206: 'super' at top level."""
        assert _codes("print super.m;") == ["E206"]

    def test_super_without_superclass(self):
        """E207: 'super' in a class with no superclass."""
        assert _codes("class A { m() { super.m(); } }") == ["E207"]

    def test_inherits_itself(self):
        """E208: class A < A."""
        assert _codes("class A < A {}") == ["E208"]

    def test_errors_do_not_stop_resolution(self):
        """Every statement is resolved even after an error."""
        source = """
            return 1;
            print this;
            { var a; var a; }
        """
        assert _codes(source) == ["E203", "E205", "E201"]

    def test_on_error_callback(self):
        """on_error receives the offending token and message."""
        errors = []
        statements = parse(tokenize("return 1;"))
        Resolver(on_error=lambda token, message: errors.append((token.lexeme, message))).resolve(statements)
        assert errors == [("return", "Can't return from top-level code.")]

    def test_resolve_raise_on_error(self):
        """resolve(raise_on_error=True) raises the first error."""
        statements = parse(tokenize("print this; return;"))
        with pytest.raises(ResolveError) as exc_info:
            resolve(statements, raise_on_error=True)
        assert exc_info.value.diagnostic.code == "E205"

    def test_diagnostic_points_at_token(self):
        """Resolver diagnostics carry the offending token."""
        statements, result = _resolve("\n\n{ var dup; var dup; }")
        diagnostic = result.diagnostics[0]
        assert diagnostic.line == 3
        assert diagnostic.location == " at 'dup'"

    def test_unknown_node(self):
        """Anything that is not an AST statement is rejected."""
        with pytest.raises(TypeError):
            Resolver().resolve([object()])

    def test_tree_is_unchanged(self):
        """Resolution records distances without touching the nodes."""
        statements, _ = _resolve("{ var a = 1; print a; }")
        stmt = statements[0].statements[1]
        assert isinstance(stmt, PrintStatement)
        assert isinstance(stmt.expression, Identifier)

    def test_return_node_keeps_keyword(self):
        """Return statements remember their keyword token."""
        statements, _ = _resolve("fun f() { return; }")
        ret = statements[0].body[0]
        assert isinstance(ret, ReturnStatement)
        assert ret.keyword.lexeme == "return"
