import unittest

from numstride.domain.utils import create_path_builder


class TestCreatePathBuilder(unittest.TestCase):
    def setUp(self) -> None:
        # Fresh builder per test to avoid map-sharing across tests.
        self.decorator = create_path_builder("variant")

    def _make_class(self):
        class C:
            def __init__(self, variant):
                self.variant = variant
                self.base = 100

            def foo(self, x: int) -> int:
                """Original foo docstring."""
                return -999

        return C

    def test_state_must_be_hashable(self) -> None:
        C = self._make_class()
        with self.assertRaises(TypeError) as ctx:
            self.decorator(C, C.foo, ["not-hashable"])(lambda self, x: x)
        self.assertIn("must be hashable", str(ctx.exception))

    def test_dispatch_selects_registered_control_path_and_passes_self(self) -> None:
        C = self._make_class()

        @self.decorator(C, C.foo, "A")
        def foo_A(self, x: int) -> int:
            return self.base + x + 10

        @self.decorator(C, C.foo, "B")
        def foo_B(self, x: int) -> int:
            return self.base + x + 20

        self.assertEqual(C("A").foo(1), 111)
        self.assertEqual(C("B").foo(1), 121)

    def test_dispatch_follows_state_changes_at_call_time(self) -> None:
        C = self._make_class()

        @self.decorator(C, C.foo, "A")
        def foo_A(self, x: int) -> int:
            return 1

        @self.decorator(C, C.foo, "B")
        def foo_B(self, x: int) -> int:
            return 2

        obj = C("A")
        self.assertEqual(obj.foo(0), 1)
        obj.variant = "B"
        self.assertEqual(obj.foo(0), 2)

    def test_dispatch_supports_none_state(self) -> None:
        C = self._make_class()

        @self.decorator(C, C.foo, None)
        def foo_none(self, x: int) -> int:
            return x * 2

        self.assertEqual(C(None).foo(3), 6)

    def test_missing_state_attribute_raises_not_implemented(self) -> None:
        class C:
            def foo(self, x: int) -> int:
                return x

        @self.decorator(C, C.foo, "A")
        def foo_A(self, x: int) -> int:
            return x + 1

        with self.assertRaises(NotImplementedError) as ctx:
            C().foo(1)
        self.assertIn("missing attribute", str(ctx.exception))
        self.assertIn("'variant'", str(ctx.exception))

    def test_missing_control_path_without_trap_exception(self) -> None:
        C = self._make_class()

        @self.decorator(C, C.foo, "A")
        def foo_A(self, x: int) -> int:
            return x + 1

        with self.assertRaises(NotImplementedError) as ctx:
            C("B").foo(1)
        self.assertIn("Missing control path", str(ctx.exception))
        self.assertIn("variant='B'", str(ctx.exception))

    def test_trap_exception_class_is_raised(self) -> None:
        class MissingPathError(Exception):
            pass

        C = self._make_class()

        @self.decorator(C, C.foo, "A", trap_exception=MissingPathError)
        def foo_A(self, x: int) -> int:
            return x + 1

        with self.assertRaises(MissingPathError) as ctx:
            C("B").foo(1)
        self.assertIn("variant='B'", str(ctx.exception))

    def test_trap_exception_callable_is_called_before_raising(self) -> None:
        calls = []

        def trap(method, state):
            calls.append((method.__name__, state))

        C = self._make_class()

        @self.decorator(C, C.foo, "A", trap_exception=trap)
        def foo_A(self, x: int) -> int:
            return x + 1

        with self.assertRaises(NotImplementedError):
            C("B").foo(123)
        self.assertEqual(calls, [("foo", "B")])

    def test_wrapper_preserves_original_method_metadata(self) -> None:
        C = self._make_class()

        @self.decorator(C, C.foo, "A")
        def foo_A(self, x: int) -> int:
            return x + 1

        self.assertEqual(C.foo.__name__, "foo")
        self.assertEqual(C.foo.__doc__, "Original foo docstring.")

    def test_two_builders_do_not_share_control_paths(self) -> None:
        deco1 = create_path_builder("variant")
        deco2 = create_path_builder("variant")
        C = self._make_class()

        @deco1(C, C.foo, "A")
        def foo_A_1(self, x: int) -> int:
            return 111

        @deco2(C, C.foo, "B")
        def foo_B_2(self, x: int) -> int:
            return 222

        with self.assertRaises(NotImplementedError):
            C("A").foo(0)
        self.assertEqual(C("B").foo(0), 222)


if __name__ == "__main__":
    unittest.main()
