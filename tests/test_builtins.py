"""
Tests for the native functions and the vec class.
"""

import textwrap

import pytest
from treelox import run_source, RunStatus, Environment, NativeCallError
from treelox.runtime import (
    BuiltinFunction, BuiltinMethod, BuiltinRegistry, LoxVector, VectorInstance,
    get_builtin_registry,
)


def _run(source):
    result = run_source(textwrap.dedent(source))
    assert result.status == RunStatus.OK, result.runtime_error or result.diagnostics
    return result.output


def _runtime_error(source):
    result = run_source(textwrap.dedent(source))
    assert result.status == RunStatus.RUNTIME_ERROR
    return result.runtime_error


# --- Registry ---

class TestBuiltinRegistry:
    """Test registration and installation of natives."""

    def test_singleton(self):
        """get_builtin_registry() always returns the same registry."""
        assert get_builtin_registry() is get_builtin_registry()

    def test_functions_registered(self):
        """clock and type are registered with their arities."""
        registry = BuiltinRegistry()
        functions = registry.get_all_functions()
        assert set(functions) == {"clock", "type"}
        assert functions["clock"].arity == 0
        assert functions["type"].arity == 1

    def test_vector_methods_registered(self):
        """vec has append, length and at."""
        registry = BuiltinRegistry()
        assert set(registry.get_methods("vec")) == {"append", "length", "at"}
        assert registry.get_method("vec", "at").arity == 1
        assert registry.get_method("vec", "nope") is None

    def test_install(self):
        """install() defines every native plus the vec class."""
        registry = BuiltinRegistry()
        env = Environment(name="globals")
        registry.install(env)
        assert set(env.values) == {"clock", "type", "vec"}
        assert env.values["vec"] is registry.vector_class

    def test_register_custom_function(self):
        """Additional natives can be registered."""
        registry = BuiltinRegistry()
        registry.register(BuiltinFunction("double", 1, lambda x: x * 2))
        assert registry.get_function("double").call(None, [2.0]) == 4.0


class TestBuiltinFunction:
    """Test native function wrappers."""

    def test_str(self):
        """Natives print as <native fn name>."""
        assert str(BuiltinFunction("clock", 0, lambda: 0.0)) == "<native fn clock>"

    def test_python_failure_becomes_native_error(self):
        """Python errors inside natives are reported as NativeCallError."""
        boom = BuiltinFunction("boom", 0, lambda: 1 / 0)
        with pytest.raises(NativeCallError) as exc_info:
            boom.call(None, [])
        assert str(exc_info.value) == "boom: division by zero"

    def test_native_error_passes_through(self):
        """NativeCallError raised by a native keeps its own message."""
        def fail():
            raise NativeCallError("bad input")

        with pytest.raises(NativeCallError) as exc_info:
            BuiltinFunction("fail", 0, fail).call(None, [])
        assert str(exc_info.value) == "bad input"


class TestBuiltinMethod:
    """Test native method binding."""

    def test_bind_does_not_mutate(self):
        """bind() returns a copy; the registered method stays unbound."""
        registry = BuiltinRegistry()
        method = registry.get_method("vec", "length")
        vector = registry.vector_class.create_instance([1.0])
        bound = method.bind(vector)
        assert bound is not method
        assert bound.receiver is vector
        assert method.receiver is None
        assert bound.call(None, []) == 1.0

    def test_unbound_call(self):
        """Calling a method without a receiver fails cleanly."""
        method = BuiltinMethod("m", 0, lambda receiver: None)
        with pytest.raises(NativeCallError):
            method.call(None, [])


# --- Vectors ---

class TestVectorInstance:
    """Test the vector object directly."""

    def _vector(self, *elements):
        return get_builtin_registry().vector_class.create_instance(list(elements))

    def test_create(self):
        """The vec class builds VectorInstances."""
        vector = self._vector()
        assert isinstance(vector, VectorInstance)
        assert isinstance(vector.klass, LoxVector)
        assert vector.klass.name == "vec"
        assert vector.length() == 0

    def test_append_and_at(self):
        """Appended elements are indexed from zero."""
        vector = self._vector()
        vector.append("a")
        vector.append("b")
        assert vector.at(0) == "a"
        assert vector.at(1) == "b"

    def test_negative_index(self):
        """Negative indices count from the end."""
        vector = self._vector(1.0, 2.0, 3.0)
        assert vector.at(-1) == 3.0
        assert vector.at(-3) == 1.0

    def test_index_past_end(self):
        """Indexing past the end is an error."""
        with pytest.raises(NativeCallError) as exc_info:
            self._vector(1.0, 2.0, 3.0).at(3)
        assert str(exc_info.value) == "Index 3 is out of bounds for vector of length 3."

    def test_negative_index_past_start(self):
        """Negative indices past the start are an error."""
        with pytest.raises(NativeCallError) as exc_info:
            self._vector(1.0).at(-2)
        assert "Negative index -2" in str(exc_info.value)

    def test_elements_are_copied(self):
        """The vector does not share the list it was built from."""
        source = [1.0]
        vector = get_builtin_registry().vector_class.create_instance(source)
        vector.append(2.0)
        assert source == [1.0]

    def test_str(self):
        """Vectors print their elements in brackets."""
        assert str(self._vector(1.0, "two", None, 2.5)) == "[1, two, nil, 2.5]"

    def test_str_self_containing(self):
        """A vector inside itself prints as [...]."""
        vector = self._vector(1.0)
        vector.append(vector)
        assert str(vector) == "[1, [...]]"

    def test_str_mutual_cycle(self):
        """Two vectors holding each other print without looping."""
        outer = self._vector()
        inner = self._vector(outer)
        outer.append(inner)
        assert str(outer) == "[[[...]]]"
        assert str(inner) == "[[[...]]]"

    def test_str_repeated_element(self):
        """The same vector twice, without a cycle, prints in full both times."""
        shared = self._vector(1.0)
        assert str(self._vector(shared, shared)) == "[[1], [1]]"


# --- From Lox code ---

class TestNativesFromLox:
    """Test natives as Lox programs see them."""

    def test_clock(self):
        """clock() returns a positive number."""
        assert _run("print clock() > 0;") == ["true"]
        assert _run("print type(clock());") == ["number"]

    def test_type_tags(self):
        """type() tags every kind of value."""
        output = _run("""
            class Point {}
            fun f() {}
            print type(nil);
            print type(true);
            print type(1);
            print type("s");
            print type(f);
            print type(Point);
            print type(Point());
            print type(clock);
            print type(vec);
            print type(vec());
            print type([1].at);
        """)
        assert output == [
            "nil", "bool", "number", "string", "function",
            "class", "Point", "function", "class", "vec", "function",
        ]

    def test_natives_print(self):
        """Natives have readable forms."""
        assert _run("print clock; print [1].length;") == [
            "<native fn clock>", "<native method length>"]

    def test_vector_building(self):
        """append() returns nil and length() counts elements."""
        output = _run("""
            var v = vec();
            print v.append(1);
            v.append("two");
            print v;
            print v.length();
        """)
        assert output == ["nil", "[1, two]", "2"]

    def test_vector_literal(self):
        """[a, b, c] builds a vector, evaluating elements left to right."""
        output = _run("""
            var log = vec();
            fun note(x) { log.append(x); return x; }
            var v = [note(1), note(2), note(3)];
            print v;
            print log;
        """)
        assert output == ["[1, 2, 3]", "[1, 2, 3]"]

    def test_nested_vectors(self):
        """Vectors may hold vectors."""
        assert _run("print [[1, 2], []];") == ["[[1, 2], []]"]

    def test_self_containing_vector_prints(self):
        """Printing a vector that holds itself does not stop the program."""
        assert _run('var v = vec(); v.append(v); print v; print "after";') == [
            "[[...]]", "after"]

    def test_at_negative(self):
        """at(-1) is the last element."""
        assert _run("print [1, 2, 3].at(-1);") == ["3"]

    def test_at_out_of_bounds(self):
        """at() past the end is a runtime error at the call."""
        error = _runtime_error("print [1, 2, 3].at(3);")
        assert error.diagnostic.code == "E411"
        assert error.message == "Index 3 is out of bounds for vector of length 3."

    def test_at_non_integral(self):
        """at() needs an integral index."""
        error = _runtime_error("[1].at(0.5);")
        assert error.message == "Vectors can only be indexed with integers, index is: 0.5."

    def test_at_non_number(self):
        """at() reports the type of a non-number index."""
        error = _runtime_error('[1].at("first");')
        assert error.message == "Vectors can only be indexed with integers, index is: string."

    def test_vec_takes_no_arguments(self):
        """vec() has arity 0."""
        error = _runtime_error("vec(1);")
        assert error.message == "Expected 0 arguments but got 1."

    def test_vectors_compare_by_identity(self):
        """Two vectors with equal elements are different objects."""
        assert _run("var v = [1]; print v == v; print [1] == [1];") == ["true", "false"]

    def test_natives_can_be_shadowed(self):
        """Natives are ordinary globals."""
        assert _run("fun clock() { return 7; } print clock();") == ["7"]
