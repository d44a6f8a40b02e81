"""
Faults module behavioral tests (codes, exceptions, rendering, trigger).

Scope
- Validate per-class defaults (code, title) and option merging.
- Validate copy.replace support and trigger() in raise/shell modes.
- Validate rich rendering (plain and fancy) and host hooks on __main__.

Conventions
- Test method names follow CamelCase per project convention.
- The module console is swapped for an in-memory one when output is checked.
"""

from __future__ import annotations

import copy
import io
import sys
import unittest
from unittest import TestCase, mock

from rich.console import Console

from cmdtree import faults
from cmdtree.faults import (
    CommandException,
    FaultCode,
    UnknownCommandError,
    UnknownSubcommandError,
    UnknownSwitchError,
    trigger,
)


def render(renderable, /):
    console = Console(file=io.StringIO(), width=120)
    console.print(renderable)
    return console.file.getvalue()


class TestFaultCode(TestCase):

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.UNKNOWN_COMMAND.normalize(), "11101")

    def testNormalizeHonorsHostCodes(self):
        main = sys.modules["__main__"]
        with mock.patch.object(main, "__codes__", {FaultCode.UNKNOWN_COMMAND: "E-ROUTE"}, create=True):
            self.assertEqual(FaultCode.UNKNOWN_COMMAND.normalize(), "E-ROUTE")
            self.assertEqual(FaultCode.UNKNOWN_SWITCH.normalize(), "11112")


class TestCommandException(TestCase):

    def testMessageIsStr(self):
        self.assertEqual(str(UnknownCommandError("command not found")), "command not found")
        self.assertEqual(str(CommandException()), "")

    def testClassDefaults(self):
        fault = UnknownSubcommandError("command not found")
        self.assertIs(fault.options["code"], FaultCode.UNKNOWN_SUBCOMMAND)
        self.assertEqual(fault.options["title"], "unknown subcommand")
        self.assertIsInstance(fault, UnknownCommandError)

    def testOptionsOverrideDefaults(self):
        fault = UnknownSwitchError("bad", title="custom", switch="--x")
        self.assertEqual(fault.options["title"], "custom")
        self.assertEqual(fault.options["switch"], "--x")

    def testOptionsAreReadOnly(self):
        fault = CommandException("x", token="a")
        with self.assertRaises(TypeError):
            fault.options["token"] = "b"

    def testReplaceMergesOptions(self):
        fault = UnknownCommandError("command not found", token="xxx")
        replaced = copy.replace(fault, shell=True)
        self.assertIsNot(replaced, fault)
        self.assertIs(type(replaced), UnknownCommandError)
        self.assertEqual(replaced.message, "command not found")
        self.assertEqual(replaced.options["token"], "xxx")
        self.assertTrue(replaced.options["shell"])


class TestRendering(TestCase):

    def testPlainRendering(self):
        output = render(UnknownCommandError("command not found", prog="tool", hint="run 'tool --help'"))
        lines = output.splitlines()
        self.assertEqual(lines[0], "[ tool — 11101 | Unknown Command ]")
        self.assertEqual(lines[1], "command not found")
        self.assertEqual(lines[2], " → run 'tool --help'")

    def testHintIsOptional(self):
        output = render(UnknownCommandError("command not found", prog="tool"))
        self.assertEqual(len(output.splitlines()), 2)

    def testFancyRendering(self):
        output = render(UnknownCommandError("command not found", prog="tool", fancy=True))
        self.assertIn("Unknown Command", output)
        self.assertIn("╭", output)

    def testHostProgWins(self):
        main = sys.modules["__main__"]
        with mock.patch.object(main, "__prog__", "host", create=True):
            output = render(UnknownCommandError("command not found", prog="tool"))
        self.assertTrue(output.startswith("[ host — "))


class TestTrigger(TestCase):

    def testRaisesOutsideShell(self):
        with self.assertRaises(UnknownCommandError) as context:
            trigger(UnknownCommandError("command not found"), token="xxx")
        self.assertEqual(context.exception.options["token"], "xxx")

    def testPrintsAndExitsInShell(self):
        stderr = Console(file=io.StringIO(), width=120)
        with mock.patch.object(faults, "console", stderr):
            with self.assertRaises(SystemExit) as context:
                trigger(UnknownCommandError("command not found"), shell=True, prog="tool")
        self.assertEqual(context.exception.code, 1)
        self.assertIn("[ tool — 11101 | Unknown Command ]", stderr.file.getvalue())

    def testRejectsNonFaults(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("nope"))


if __name__ == "__main__":
    unittest.main()
