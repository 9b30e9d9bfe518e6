import collections
import unittest

import schema_guard as sg
from schema_guard import (
    Choice, Cond, Custom, Dependent, DependsOn, Either, Invalid, ListOf, Literal,
    MapOf, OneOf, Required, Transform, TupleOf, WithDefault, refine,
)
from tests._util import Color, Field, errors_of, leaf_messages, only_error


class ScenarioTests(unittest.TestCase):
    def test_valid_object_passes_unchanged(self):
        schema = {"id": Required("string"), "tags": ListOf("string")}
        data = {"id": "a1", "tags": ["x", "y"]}
        self.assertEqual(sg.validate(schema, data), sg.Result(data, None))

    def test_missing_required_field(self):
        err = only_error({"age": Required("integer")}, {})
        self.assertEqual(err.path, ["age"])
        self.assertEqual(err.key, "age")
        self.assertEqual(err.message, "is required, expected type of integer")
        self.assertEqual(err.content, {"expected": "integer"})

    def test_conditional_branch_is_required(self):
        schema = {
            "flag": "boolean",
            "value": Cond(lambda root: root["flag"], Required("integer"), None),
        }
        err = only_error(schema, {"flag": True})
        self.assertEqual(err.path, ["value"])
        self.assertTrue(err.message.startswith("is required"))

        self.assertEqual(sg.validate_or_raise(schema, {"flag": False}), {"flag": False})

    def test_default_fills_absent_field_only(self):
        schema = {"price": WithDefault("integer", value=0)}
        self.assertEqual(sg.validate_or_raise(schema, {}), {"price": 0})
        self.assertEqual(sg.validate_or_raise(schema, {"price": 5}), {"price": 5})
        self.assertEqual(sg.validate_or_raise(schema, {"price": None}), {"price": 0})


class ModeTests(unittest.TestCase):
    schema = {"user": {"name": "string"}, "age": "integer"}
    data = {"user": {"name": "ada", "nick": "a"}, "age": 36, "extra": True}

    def test_strict_drops_undeclared_fields(self):
        out = sg.validate_or_raise(self.schema, self.data)
        self.assertEqual(out, {"user": {"name": "ada"}, "age": 36})

    def test_permissive_keeps_undeclared_fields(self):
        out = sg.validate_or_raise(self.schema, self.data, mode="permissive")
        self.assertEqual(out, self.data)
        self.assertIsNot(out, self.data)

    def test_mode_enum_accepted(self):
        self.assertTrue(sg.conforms(self.schema, self.data, mode=sg.Mode.PERMISSIVE))

    def test_unknown_mode_raises_before_validation(self):
        with self.assertRaisesRegex(ValueError, "Invalid mode"):
            sg.validate({"a": "bogus"}, {}, mode="loose")

    def test_absent_optional_field_not_materialised(self):
        self.assertEqual(sg.validate_or_raise(self.schema, {"age": 1}), {"age": 1})

    def test_explicit_none_is_kept(self):
        self.assertEqual(sg.validate_or_raise(self.schema, {"age": None}), {"age": None})

    def test_none_data_is_ok_without_required_fields(self):
        self.assertEqual(sg.validate(self.schema, None), sg.Result(None, None))


class KeyRepresentationTests(unittest.TestCase):
    def test_bytes_key_found_and_canonicalised(self):
        schema = {"name": Required("string")}
        self.assertEqual(sg.validate_or_raise(schema, {b"name": "ada"}), {"name": "ada"})
        self.assertEqual(
            sg.validate_or_raise(schema, {b"name": "ada"}, mode="permissive"), {"name": "ada"}
        )

    def test_enum_schema_key_matches_text_data_key(self):
        schema = {Field.NAME: Required("string")}
        self.assertEqual(sg.validate_or_raise(schema, {"name": "ada"}), {Field.NAME: "ada"})

    def test_text_schema_key_matches_enum_data_key(self):
        schema = {"name": Required("string")}
        self.assertEqual(sg.validate_or_raise(schema, {Field.NAME: "ada"}), {"name": "ada"})

    def test_error_path_uses_schema_key(self):
        err = only_error({Field.AGE: Required("integer")}, {"name": "x"})
        self.assertEqual(err.path, [Field.AGE])
        self.assertEqual(err.to_dict()["path"], ["age"])


class NestedTests(unittest.TestCase):
    def test_sibling_errors_accumulate(self):
        schema = {"name": Required("string"), "age": "integer", "ok": "boolean"}
        errors = errors_of(schema, {"age": "old", "ok": True})
        self.assertEqual([e.key for e in errors], ["name", "age"])

    def test_nested_failure_wraps_every_child(self):
        schema = {"user": {"name": Required("string"), "age": "integer"}}
        err = only_error(schema, {"user": {"age": 1.5}})
        self.assertEqual(err.path, ["user"])
        self.assertFalse(err.is_leaf)
        self.assertEqual(
            leaf_messages([err]),
            {
                ("user", "name"): "is required, expected type of string",
                ("user", "age"): "expected type of integer received 1.5 value",
            },
        )

    def test_absent_nested_object_reports_required_fields(self):
        schema = {"address": {"city": Required("string")}}
        err = only_error(schema, {})
        self.assertEqual(leaf_messages([err]), {("address", "city"): "is required, expected type of string"})

    def test_absent_nested_object_materialised_by_defaults(self):
        schema = {"settings": {"theme": WithDefault("string", value="dark")}, "other": {"x": "integer"}}
        self.assertEqual(sg.validate_or_raise(schema, {}), {"settings": {"theme": "dark"}})

    def test_non_mapping_data_is_type_mismatch(self):
        err = only_error({"a": "string"}, 5)
        self.assertEqual(err.path, [])
        self.assertEqual(err.message, "expected type of {a: string} received 5 value")

    def test_deeply_nested_error_path(self):
        schema = {"level1": {"level2": {"bad_field": "string"}}}
        errors = errors_of(schema, {"level1": {"level2": {"bad_field": 123}}})
        self.assertEqual(
            leaf_messages(errors),
            {("level1", "level2", "bad_field"): "expected type of string received 123 value"},
        )

    def test_recursive_schema(self):
        tree = {"value": Required("integer")}
        tree["children"] = ListOf(tree)
        good = {"value": 1, "children": [{"value": 2, "children": []}]}
        self.assertEqual(sg.validate_or_raise(tree, good), good)

        bad = {"value": 1, "children": [{"value": 2}, {"value": "x"}]}
        self.assertEqual(
            leaf_messages(errors_of(tree, bad)),
            {("children", "value"): "expected type of integer received x value"},
        )

    def test_optional_self_reference_terminates(self):
        node = {"name": "string"}
        node["next"] = node
        self.assertEqual(sg.validate_or_raise(node, {"name": "a"}), {"name": "a"})
        self.assertEqual(
            sg.validate_or_raise(node, {"name": "a", "next": {"name": "b"}}),
            {"name": "a", "next": {"name": "b"}},
        )


class CollectionTests(unittest.TestCase):
    def test_list_reports_first_failing_element_only(self):
        err = only_error({"tags": ListOf("integer")}, {"tags": [1, "x", 2, "y"]})
        self.assertEqual(err.path, ["tags"])
        self.assertEqual(err.message, "expected type of integer received x value")
        self.assertEqual(err.content, {"expected": "integer", "actual": "x"})

    def test_list_type_mismatch(self):
        err = only_error({"tags": ListOf("string")}, {"tags": ("a",)})
        self.assertTrue(err.message.startswith("expected type of list(string)"))

    def test_list_of_objects(self):
        schema = {"items": ListOf({"n": Required("integer")})}
        err = only_error(schema, {"items": [{"n": 1}, {}]})
        self.assertEqual(err.path, ["items"])
        self.assertEqual(leaf_messages([err]), {("items", "n"): "is required, expected type of integer"})

    def test_tuple_arity_mismatch_skips_positional_checks(self):
        err = only_error({"p": TupleOf(["integer", "integer"])}, {"p": ("x",)})
        self.assertEqual(err.message, "expected tuple of size 2 received tuple with 1 length")
        self.assertEqual(err.content, {"length": 2, "actual": 1})

    def test_tuple_positional_failure_names_index(self):
        err = only_error({"p": TupleOf(["integer", "integer"])}, {"p": (1, "x")})
        self.assertEqual(err.message, "tuple element 1: expected type of integer received x value")
        self.assertEqual(err.content["index"], 1)

    def test_tuple_nested_object_failure_names_index(self):
        schema = {"p": TupleOf(["integer", {"a": Required("string")}])}
        err = only_error(schema, {"p": (1, {})})
        self.assertEqual(err.path, ["p"])
        self.assertEqual(err.message, "tuple element 1")
        self.assertEqual(err.content, {"index": 1})
        self.assertEqual(leaf_messages([err]), {("p", "a"): "is required, expected type of string"})

    def test_tuple_output_and_namedtuple_preserved(self):
        Point = collections.namedtuple("Point", "x y")
        schema = {"p": TupleOf(["integer", Transform("integer", lambda v: v * 2)])}
        out = sg.validate_or_raise(schema, {"p": Point(1, 2)})
        self.assertEqual(out["p"], Point(1, 4))
        self.assertIsInstance(out["p"], Point)

    def test_map_of_values_and_keys(self):
        schema = {"scores": MapOf("integer", keys="string")}
        self.assertTrue(sg.conforms(schema, {"scores": {"a": 1, "b": 2}}))
        err = only_error(schema, {"scores": {"a": 1, "b": "x"}})
        self.assertEqual(err.message, "expected type of integer received x value")
        err = only_error(schema, {"scores": {1: 1}})
        self.assertEqual(err.message, "expected type of string received 1 value")

    def test_required_collections_cannot_be_empty(self):
        cases = [
            (Required(ListOf("string")), []),
            (Required("map"), {}),
            (Required({"a": "string"}), {}),
        ]
        for fragment, empty in cases:
            with self.subTest(fragment=fragment):
                err = only_error({"f": fragment}, {"f": empty})
                self.assertEqual(err.message, "cannot be empty")


class RefinementTests(unittest.TestCase):
    def test_string_refinements_in_order(self):
        schema = {"s": refine("string", min=2, max=4, regex=r"^a")}
        cases = {
            "b": "should have the minimum length of 2",
            "abcde": "should have the maximum length of 4",
            "bcd": "should match the ^a pattern",
        }
        for value, message in cases.items():
            with self.subTest(value=value):
                self.assertEqual(only_error(schema, {"s": value}).message, message)
        self.assertTrue(sg.conforms(schema, {"s": "abc"}))

    def test_string_equality(self):
        err = only_error({"s": refine("string", eq="yes")}, {"s": "no"})
        self.assertEqual(err.message, "should be equal to literal yes")

    def test_numeric_comparisons(self):
        schema = {"n": refine("integer", gte=1, lt=10, neq=5)}
        self.assertEqual(only_error(schema, {"n": 0}).message, "should be greater than or equal to 1")
        self.assertEqual(only_error(schema, {"n": 10}).message, "should be less than 10")
        self.assertEqual(only_error(schema, {"n": 5}).message, "should be not equal to 5")
        self.assertTrue(sg.conforms(schema, {"n": 9}))

    def test_numeric_range_inclusive(self):
        schema = {"r": refine("float", range=(0.0, 1.0))}
        self.assertTrue(sg.conforms(schema, {"r": 1.0}))
        err = only_error(schema, {"r": 1.5})
        self.assertEqual(err.message, "should be in the range of 0.0..1.0 (inclusive)")

    def test_bool_is_not_an_integer(self):
        err = only_error({"n": "integer"}, {"n": True})
        self.assertEqual(err.message, "expected type of integer received True value")


class UnionTests(unittest.TestCase):
    def test_choice_compares_enum_members_by_text(self):
        schema = {"c": Choice([Color.RED, "blue"])}
        self.assertTrue(sg.conforms(schema, {"c": "red"}))
        self.assertTrue(sg.conforms(schema, {"c": Color.BLUE}))
        err = only_error(schema, {"c": "green"})
        self.assertEqual(err.message, "expected one of [:red, 'blue'] received green")

    def test_choice_does_not_confuse_bool_and_int(self):
        self.assertFalse(sg.conforms({"c": Choice([1, 2])}, {"c": True}))

    def test_literal_requires_same_type(self):
        schema = {"v": Literal(1)}
        self.assertTrue(sg.conforms(schema, {"v": 1}))
        self.assertFalse(sg.conforms(schema, {"v": 1.0}))
        err = only_error(schema, {"v": True})
        self.assertEqual(err.message, "expected literal value 1 but got True")

    def test_literal_none_accepts_missing_field(self):
        schema = {"v": Literal(None)}
        self.assertEqual(sg.validate_or_raise(schema, {}), {})
        self.assertEqual(sg.validate_or_raise(schema, {"v": None}), {"v": None})

    def test_absent_value_passes_unions(self):
        schemas = [
            {"x": Either(Literal("a"), Literal("b"))},
            {"x": OneOf([Literal("a"), Literal("b")])},
        ]
        for schema in schemas:
            with self.subTest(schema=schema):
                self.assertEqual(sg.validate_or_raise(schema, {}), {})
                self.assertEqual(sg.validate_or_raise(schema, {"x": None}), {"x": None})
                self.assertNotIn("MISSING", only_error(schema, {"x": "c"}).message)

    def test_either_exhaustion_names_both_branches(self):
        schema = {"e": Either("integer", "string")}
        self.assertTrue(sg.conforms(schema, {"e": "x"}))
        err = only_error(schema, {"e": 1.5})
        self.assertEqual(err.message, "expected either integer or string, got: 1.5")

    def test_oneof_exhaustion_names_every_branch(self):
        schema = {"o": OneOf(["integer", "boolean", {"a": "string"}])}
        self.assertEqual(sg.validate_or_raise(schema, {"o": {"a": "x", "b": 1}}), {"o": {"a": "x"}})
        err = only_error(schema, {"o": 1.5})
        self.assertEqual(err.message, "expected one of integer or boolean or {a: string}, got: 1.5")


class CallbackTests(unittest.TestCase):
    def test_custom_false_is_invalid(self):
        err = only_error({"n": Custom(lambda v: v % 2 == 0)}, {"n": 3})
        self.assertEqual(err.message, "is invalid")

    def test_custom_failure_shapes(self):
        cases = [
            (lambda v: Invalid("must be at most %{max}", max=3), "must be at most 3", {"max": 3}),
            (lambda v: ("too big: %{n}", {"n": v}), "too big: 5", {"n": 5}),
        ]
        for callback, message, content in cases:
            with self.subTest(message=message):
                err = only_error({"n": Custom(callback)}, {"n": 5})
                self.assertEqual(err.message, message)
                self.assertEqual(err.content, content)

    def test_custom_success_shapes(self):
        for outcome in (None, True, (True, "payload")):
            with self.subTest(outcome=outcome):
                self.assertTrue(sg.conforms({"n": Custom(lambda v: outcome)}, {"n": 5}))

    def test_custom_unrecognised_outcome_raises(self):
        with self.assertRaises(TypeError):
            sg.validate({"n": Custom(lambda v: "nope")}, {"n": 5})

    def test_custom_skipped_for_absent_value(self):
        calls = []
        sg.validate({"n": Custom(calls.append)}, {})
        self.assertEqual(calls, [])

    def test_contextual_custom_sees_root(self):
        schema = {
            "limit": "integer",
            "n": Custom(lambda v, root: v < root["limit"], contextual=True),
        }
        self.assertTrue(sg.conforms(schema, {"limit": 3, "n": 2}))
        self.assertFalse(sg.conforms(schema, {"limit": 3, "n": 4}))

    def test_contextual_cond_sees_list_element(self):
        item = {
            "kind": "string",
            "size": Cond(lambda cur, root: cur.get("kind") == "box", "integer", contextual=True),
        }
        schema = {"items": ListOf(item)}
        self.assertTrue(sg.conforms(schema, {"items": [{"kind": "box", "size": 2}, {"kind": "bag"}]}))
        err = only_error(schema, {"items": [{"kind": "bag"}, {"kind": "box"}]})
        self.assertEqual(leaf_messages([err]), {("items", "size"): "is required, expected type of integer"})

    def test_dependent_schema(self):
        def contact(root):
            if root["type"] == "email":
                return {"email": Required("string")}
            return None

        schema = {"type": Choice(["email", "phone"]), "contact": Dependent(contact)}
        err = only_error(schema, {"type": "email", "contact": {}})
        self.assertEqual(leaf_messages([err]), {("contact", "email"): "is required, expected type of string"})
        self.assertEqual(
            sg.validate_or_raise(schema, {"type": "phone", "contact": {"n": 1}}),
            {"type": "phone", "contact": {"n": 1}},
        )

    def test_dependent_invalid_schema_is_reported(self):
        schema = {"contact": Dependent(lambda root: {"x": "bogus"})}
        err = only_error(schema, {"contact": {}})
        self.assertEqual(err.path, ["contact"])
        self.assertTrue(err.message.startswith("invalid schema"))
        self.assertEqual(err.errors[0].path, ["contact", "x"])
        self.assertEqual(err.errors[0].message, "invalid schema definition: bogus")

    def test_dependent_failure_outcome(self):
        schema = {"v": Dependent(lambda root: Invalid("not allowed here"))}
        self.assertEqual(only_error(schema, {"v": 1}).message, "not allowed here")

    def test_depends_on_reads_validated_sibling(self):
        schema = {
            "a": Transform("string", str.upper),
            "b": DependsOn("a", lambda v, other: v == other, "string"),
        }
        self.assertTrue(sg.conforms(schema, {"a": "x", "b": "X"}))
        err = only_error(schema, {"a": "x", "b": "x"})
        self.assertEqual((err.path, err.message), (["b"], "is invalid"))


class DefaultAndTransformTests(unittest.TestCase):
    def test_default_factory_is_called_per_validation(self):
        schema = {"tags": WithDefault(ListOf("string"), factory=list)}
        first = sg.validate_or_raise(schema, {})
        second = sg.validate_or_raise(schema, {})
        self.assertEqual(first, {"tags": []})
        self.assertIsNot(first["tags"], second["tags"])

    def test_default_value_is_not_shared_between_calls(self):
        schema = {"prefs": WithDefault("map", value={"theme": "dark"})}
        out = sg.validate_or_raise(schema, {})
        out["prefs"]["theme"] = "light"
        self.assertEqual(sg.validate_or_raise(schema, {}), {"prefs": {"theme": "dark"}})

    def test_default_is_validated(self):
        err = only_error({"n": WithDefault("integer", value="zero")}, {})
        self.assertEqual(err.message, "expected type of integer received zero value")

    def test_transform_applies_after_validation(self):
        schema = {"name": Transform("string", str.upper)}
        self.assertEqual(sg.validate_or_raise(schema, {"name": "ada"}), {"name": "ADA"})
        self.assertFalse(sg.conforms(schema, {"name": 1}))

    def test_transform_skips_absent_and_none(self):
        schema = {"name": Transform("string", str.upper)}
        self.assertEqual(sg.validate_or_raise(schema, {}), {})
        self.assertEqual(sg.validate_or_raise(schema, {"name": None}), {"name": None})

    def test_contextual_transform_sees_enclosing_object(self):
        schema = {
            "first": "string",
            "full": Transform("string", lambda v, cur: f"{cur['first']} {v}", contextual=True),
        }
        out = sg.validate_or_raise(schema, {"first": "Ada", "full": "Lovelace"})
        self.assertEqual(out["full"], "Ada Lovelace")


class EntryPointTests(unittest.TestCase):
    schema = {"age": Required("integer")}

    def test_invalid_self_referencing_schema_raises(self):
        node = {"name": "string", "bad": "intt"}
        node["next"] = node
        with self.assertRaises(sg.InvalidSchema) as cm:
            sg.validate(node, {"name": "a"})
        err = cm.exception.errors[0]
        self.assertEqual(err.key, "bad")
        self.assertEqual(err.to_dict()["content"]["schema"]["next"], "...")
        self.assertIn("Error in bad:", str(cm.exception))

    def test_validate_or_raise(self):
        with self.assertRaisesRegex(sg.ValidationError, "Error in age:") as cm:
            sg.validate_or_raise(self.schema, {})
        self.assertEqual(len(cm.exception.errors), 1)

    def test_conforms(self):
        self.assertTrue(sg.conforms(self.schema, {"age": 1}))
        self.assertFalse(sg.conforms(self.schema, {}))

    def test_invalid_schema_raises(self):
        with self.assertRaises(sg.InvalidSchema):
            sg.validate({"a": "bogus"}, {})

    def test_revalidation_is_idempotent(self):
        schema = {
            "id": Required("string"),
            "n": WithDefault(refine("integer", gte=0), value=0),
            "tags": ListOf(Transform("string", str.lower)),
        }
        once = sg.validate_or_raise(schema, {"id": "a", "tags": ["X"], "junk": 1})
        self.assertEqual(sg.validate_or_raise(schema, once), once)

    def test_strict_output_is_subset_of_permissive(self):
        schema = {"a": "string", "b": {"c": "integer"}}
        data = {"a": "x", "b": {"c": 1, "d": 2}, "e": 3}
        strict = sg.validate_or_raise(schema, data)
        loose = sg.validate_or_raise(schema, data, mode="permissive")
        self.assertLessEqual(strict.keys(), loose.keys())
