"""
Coercion module behavioral tests (type classification, text conversion, bounds).

Scope
- Validate classify() for scalar, width-marked, optional, list, record and user types.
- Validate convert()/coerce() acceptance and rejection rules per category.
- Validate bounds (min/max/minlen/maxlen) enforcement and error wording.

Conventions
- Test method names follow CamelCase per project convention.
- Fields are compiled through extract() so coercion sees real FieldSpec objects.
"""

import math
import typing
import unittest
from unittest import TestCase

from fieldargs import (
    Record,
    arg,
    classify,
    coerce,
    convert,
    float32,
    int8,
    uint8,
    InvalidValueError,
    MetadataError,
    TypeInfo,
)
from fieldargs.coercion import Kind
from fieldargs.metadata import extract


class Level:
    def __init__(self, name):
        self.name = name

    def __eq__(self, other):
        return isinstance(other, Level) and other.name == self.name

    @classmethod
    def __unmarshal__(cls, text):
        if text not in ("low", "high"):
            raise ValueError(f"unknown level {text!r}")
        return cls(text)


class Point:
    def __unmarshal__(self, text):
        x, _, y = text.partition(",")
        self.x, self.y = int(x), int(y)


class Empty(Record):
    pass


class Numbers(Record):
    small: int8 = arg("--small")
    unsigned: uint8 = arg("--unsigned")
    ratio: float32 = arg("--ratio")
    big: int = arg("--big")
    port: int = arg("--port", min=1024, max=65535)
    level: float = arg("--level", min="0", max="1")
    name: str = arg("--name", minlen=2, maxlen=4)
    flag: bool = arg("--flag")
    ports: list[int] = arg("--ports", max=10)
    maybe: int | None = arg("--maybe")
    scale: float = arg("--scale")


class Shapes(Record):
    level: Level = arg("--level")
    point: Point | None = arg("--point")
    levels: list[Level] = arg("--levels")


def option(record, name):
    return next(field for field in extract(record).options if field.name == name)


class TestClassify(TestCase):
    """Behavioral tests for annotation classification."""

    def testScalars(self):
        self.assertEqual(classify(bool), TypeInfo("bool", None, None, bool, False))
        self.assertEqual(classify(int), TypeInfo("int", 64, None, int, False))
        self.assertEqual(classify(float), TypeInfo("float", 64, None, float, False))
        self.assertEqual(classify(str), TypeInfo("str", None, None, str, False))

    def testWidthMarkers(self):
        self.assertEqual(classify(int8), TypeInfo("int", 8, None, int, False))
        self.assertEqual(classify(uint8), TypeInfo("uint", 8, None, int, False))
        self.assertEqual(classify(float32), TypeInfo("float", 32, None, float, False))

    def testWidthMarkerOnWrongType(self):
        with self.assertRaises(MetadataError):
            classify(typing.Annotated[str, Kind("int", 8)])

    def testOptional(self):
        self.assertTrue(classify(int | None).optional)
        self.assertEqual(classify(int8 | None), TypeInfo("int", 8, None, int, True))

    def testUnionsRejected(self):
        with self.assertRaises(MetadataError):
            classify(int | str)

    def testLists(self):
        info = classify(list[int])
        self.assertEqual(info.category, "list")
        self.assertEqual(info.element, TypeInfo("int", 64, None, int, False))

    def testBareListRejected(self):
        with self.assertRaises(MetadataError):
            classify(list)

    def testNestedListsRejected(self):
        with self.assertRaises(MetadataError):
            classify(list[list[int]])
        with self.assertRaises(MetadataError):
            classify(list[int | None])

    def testRecordAndUserTypes(self):
        self.assertEqual(classify(Empty | None).category, "record")
        self.assertEqual(classify(Level).category, "user")
        self.assertEqual(classify(list[Point]).element.category, "user")

    def testUnsupportedType(self):
        with self.assertRaises(MetadataError):
            classify(dict)
        with self.assertRaises(MetadataError):
            classify(complex)


class TestConvert(TestCase):
    """Behavioral tests for text conversion of one category."""

    def testRequiresText(self):
        with self.assertRaises(TypeError):
            convert(5, classify(int))

    def testListYieldsOneElement(self):
        self.assertEqual(convert("7", classify(list[int])), [7])

    def testRecordsDoNotUnmarshal(self):
        with self.assertRaises(ValueError) as context:
            convert("x", classify(Empty | None))
        self.assertIn("does not support textual unmarshaling", str(context.exception))

    def testUserTypeWithoutHook(self):
        with self.assertRaises(ValueError):
            convert("x", TypeInfo("user", None, None, object, False))


class TestCoerce(TestCase):
    """Behavioral tests for field-level coercion and bounds."""

    def testBooleans(self):
        flag = option(Numbers, "flag")
        self.assertIs(coerce(None, flag), True)
        for text in ("1", "t", "TRUE", "yes", "On"):
            self.assertIs(coerce(text, flag), True, text)
        for text in ("0", "f", "False", "no", "OFF"):
            self.assertIs(coerce(text, flag), False, text)
        with self.assertRaises(InvalidValueError):
            coerce("maybe", flag)

    def testMissingArgumentForNonBoolean(self):
        with self.assertRaises(InvalidValueError):
            coerce(None, option(Numbers, "big"))

    def testSignedWidth(self):
        small = option(Numbers, "small")
        self.assertEqual(coerce("127", small), 127)
        self.assertEqual(coerce("-128", small), -128)
        for text in ("128", "-129"):
            with self.subTest(text=text), self.assertRaises(InvalidValueError):
                coerce(text, small)

    def testUnsignedWidth(self):
        unsigned = option(Numbers, "unsigned")
        self.assertEqual(coerce("255", unsigned), 255)
        self.assertEqual(coerce("+5", unsigned), 5)
        with self.assertRaises(InvalidValueError):
            coerce("256", unsigned)
        with self.assertRaises(InvalidValueError) as context:
            coerce("-1", unsigned)
        self.assertIn("negative", context.exception.message)

    def testInt64Limits(self):
        big = option(Numbers, "big")
        self.assertEqual(coerce("9223372036854775807", big), 9223372036854775807)
        with self.assertRaises(InvalidValueError):
            coerce("9223372036854775808", big)

    def testMalformedIntegers(self):
        big = option(Numbers, "big")
        for text in ("1_000", " 1", "0x10", "1.5", ""):
            with self.subTest(text=text), self.assertRaises(InvalidValueError):
                coerce(text, big)

    def testFloat32(self):
        ratio = option(Numbers, "ratio")
        self.assertEqual(coerce("0.5", ratio), 0.5)
        self.assertEqual(coerce("inf", ratio), math.inf)
        self.assertTrue(math.isnan(coerce("nan", ratio)))
        with self.assertRaises(InvalidValueError):
            coerce("1e39", ratio)
        with self.assertRaises(InvalidValueError):
            coerce("1_0.5", ratio)

    def testFloat64Overflow(self):
        scale = option(Numbers, "scale")
        self.assertEqual(coerce("1e308", scale), 1e308)
        for text in ("inf", "+Infinity", "-inf"):
            with self.subTest(text=text):
                self.assertTrue(math.isinf(coerce(text, scale)))
        for text in ("1e400", "-1e400"):
            with self.subTest(text=text), self.assertRaises(InvalidValueError) as context:
                coerce(text, scale)
            self.assertIn("out of range for float64", context.exception.message)

    def testNumericBounds(self):
        port = option(Numbers, "port")
        self.assertEqual(coerce("8080", port), 8080)
        with self.assertRaises(InvalidValueError) as context:
            coerce("80", port)
        self.assertEqual(
            context.exception.message,
            "invalid argument for --port: 80 is less than minimum 1024",
        )
        with self.assertRaises(InvalidValueError) as context:
            coerce("70000", port)
        self.assertIn("greater than maximum 65535", context.exception.message)

    def testFloatBounds(self):
        level = option(Numbers, "level")
        self.assertEqual(coerce("0.5", level), 0.5)
        for text in ("1.5", "-0.1", "nan"):
            with self.subTest(text=text), self.assertRaises(InvalidValueError):
                coerce(text, level)

    def testLengthBounds(self):
        name = option(Numbers, "name")
        self.assertEqual(coerce("abc", name), "abc")
        with self.assertRaises(InvalidValueError) as context:
            coerce("a", name)
        self.assertIn("length 1 is less than minimum length 2", context.exception.message)
        with self.assertRaises(InvalidValueError):
            coerce("abcde", name)

    def testListElementsAreBounded(self):
        ports = option(Numbers, "ports")
        self.assertEqual(coerce("5", ports), [5])
        with self.assertRaises(InvalidValueError):
            coerce("11", ports)

    def testOptionalScalar(self):
        self.assertEqual(coerce("3", option(Numbers, "maybe")), 3)

    def testErrorContext(self):
        with self.assertRaises(InvalidValueError) as context:
            coerce("abc", option(Numbers, "big"))
        fault = context.exception
        self.assertEqual(fault.options["option"], "--big")
        self.assertEqual(fault.options["field"], "big")
        self.assertEqual(fault.options["value"], "abc")
        self.assertTrue(fault.message.startswith("invalid argument for --big: "))


class TestUserTypes(TestCase):
    """Behavioral tests for __unmarshal__ hooks."""

    def testClassmethodForm(self):
        self.assertEqual(coerce("high", option(Shapes, "level")), Level("high"))

    def testClassmethodFailure(self):
        with self.assertRaises(InvalidValueError) as context:
            coerce("medium", option(Shapes, "level"))
        self.assertEqual(
            context.exception.message,
            "invalid argument for --level: unknown level 'medium'",
        )

    def testInstanceForm(self):
        point = coerce("3,4", option(Shapes, "point"))
        self.assertIsInstance(point, Point)
        self.assertEqual((point.x, point.y), (3, 4))

    def testInstanceFailure(self):
        with self.assertRaises(InvalidValueError):
            coerce("3", option(Shapes, "point"))

    def testListOfUserTypes(self):
        self.assertEqual(coerce("low", option(Shapes, "levels")), [Level("low")])


if __name__ == "__main__":
    unittest.main()
