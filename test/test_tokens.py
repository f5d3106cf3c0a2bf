"""
Token parser behavioral tests.

Scope
- Terminator, -D side channel, exact flags (last occurrence wins).
- Short-flag bundling equivalence with separate flags.
- Unknown flags and stray values, strict and skip_unknown.
- The process-wide SystemProperties store.

Conventions
- Test method names follow CamelCase per project convention.
- Every test parses into its own SystemProperties, never the process-wide one.
"""
import unittest
from unittest import TestCase

from propulse import ParsingError, Property, SystemProperties, integer, strings
from propulse.tokens import parse


class TokenTestCase(TestCase):

    def setUp(self):
        self.system = SystemProperties()
        self.verbose = Property("-v", "--verbose").instantiate(None)
        self.force = Property("-f", "--force").instantiate(None)
        self.port = Property("-p", "--port", kind=integer).instantiate(None)
        self.files = Property("--files", kind=strings).instantiate(None)
        self.instances = (self.verbose, self.force, self.port, self.files)

    def parse(self, *tokens, skip_unknown=False):
        parse(tokens, self.instances, skip_unknown=skip_unknown, system=self.system)


class TestFlags(TokenTestCase):

    def testEmpty(self):
        self.parse()
        for instance in self.instances:
            self.assertFalse(instance.identified)

    def testExactFlagCollectsValues(self):
        self.parse("--files", "a", "b", "-p", "5")
        self.assertEqual(self.files.arguments, ("a", "b"))
        self.assertEqual(self.port.arguments, ("5",))
        self.assertTrue(self.port.identified)

    def testLastOccurrenceWins(self):
        self.parse("-p", "5", "--port", "9")
        self.assertEqual(self.port.arguments, ("9",))

    def testTokensAreStripped(self):
        self.parse(" -p ", " 5 ")
        self.assertEqual(self.port.arguments, ("5",))

    def testTerminatorStopsParsing(self):
        self.parse("-v", "--", "-p", "5", "--unknown")
        self.assertTrue(self.verbose.identified)
        self.assertFalse(self.port.identified)

    def testBooleanFlagTakesValue(self):
        self.parse("--verbose", "false")
        self.assertEqual(self.verbose.arguments, ("false",))


class TestBundling(TokenTestCase):

    def testBundleEqualsSeparateFlags(self):
        self.parse("-vf")
        bundled = (self.verbose.identified, self.force.identified)
        self.setUp()
        self.parse("-v", "-f")
        self.assertEqual(bundled, (self.verbose.identified, self.force.identified))
        self.assertEqual(bundled, (True, True))

    def testBundleTakesNoValues(self):
        with self.assertRaises(ParsingError):
            self.parse("-vf", "value")

    def testBundleWithUnknownCharacter(self):
        with self.assertRaises(ParsingError) as context:
            self.parse("-vx")
        self.assertEqual(context.exception.options["token"], "-vx")

    def testBundleWithUnknownCharacterSkipped(self):
        self.parse("-vx", "dropped", skip_unknown=True)
        self.assertTrue(self.verbose.identified)

    def testBundleResetsBuffers(self):
        self.parse("-p", "5", "-vp")
        self.assertTrue(self.port.identified)
        self.assertEqual(self.port.arguments, ())


class TestUnknown(TokenTestCase):

    def testUnknownFlag(self):
        with self.assertRaises(ParsingError) as context:
            self.parse("--prot", "5")
        self.assertEqual(context.exception.options["suggestions"], ["--port"])
        self.assertEqual(context.exception.hint, "did you mean '--port'?")
        self.assertEqual(context.exception.options["index"], 1)

    def testUnknownFlagSkippedWithItsValues(self):
        self.parse("-p", "5", "--unknown", "x", "y", "-v", skip_unknown=True)
        self.assertEqual(self.port.arguments, ("5",))
        self.assertTrue(self.verbose.identified)

    def testValueWithoutFlag(self):
        with self.assertRaises(ParsingError) as context:
            self.parse("value")
        self.assertIn("first position", str(context.exception))

    def testValueWithoutFlagIsNotSkipped(self):
        with self.assertRaises(ParsingError):
            self.parse("value", skip_unknown=True)

    def testLongUnknownIsNotBundled(self):
        with self.assertRaises(ParsingError):
            self.parse("--vf")


class TestSystemProperties(TokenTestCase):

    def testAssignment(self):
        self.parse("-Dkey=value", "-Dother=a=b")
        self.assertEqual(self.system["key"], "value")
        self.assertEqual(self.system["other"], "a=b")

    def testAssignmentWithoutValue(self):
        self.parse("-Dkey")
        self.assertEqual(self.system["key"], "")

    def testEmptyKey(self):
        for token in ("-D", "-D=value"):
            with self.subTest(token=token):
                with self.assertRaises(ParsingError):
                    self.parse(token)

    def testAssignmentDoesNotEndCurrentFlag(self):
        self.parse("--files", "a", "-Dkey=value", "b")
        self.assertEqual(self.files.arguments, ("a", "b"))

    def testMappingContract(self):
        system = SystemProperties(a="1")
        system["b"] = "2"
        self.assertEqual(dict(system), {"a": "1", "b": "2"})
        del system["a"]
        self.assertEqual(len(system), 1)
        with self.assertRaises(TypeError):
            system["c"] = 3
        with self.assertRaises(KeyError):
            system[""] = "x"
        self.assertEqual(system.assign("d=4"), ("d", "4"))


if __name__ == "__main__":
    unittest.main()
