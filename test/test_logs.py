"""
Logging tests: routing records and the rich handler installed by setup().
"""
import io
import logging
import unittest
from unittest import TestCase

from rich.console import Console
from rich.logging import RichHandler

from cmdtree import Dispatcher, Runnable, UnknownCommandError
from cmdtree import logs


class Noop(Runnable):
    def run(self, args, /):
        pass


class RoutingLogTest(TestCase):

    def setUp(self):
        self.commands = Dispatcher("test", printer=[].append).add_group(
            "plugin", lambda group: group.add(Noop, "reset")
        )

    def testRoutingIsLogged(self):
        with self.assertLogs("cmdtree.commands", level="DEBUG") as captured:
            self.commands.run(["plugin", "reset"])
        messages = "\n".join(captured.output)
        self.assertIn("routing 'plugin'", messages)
        self.assertIn("dispatching 'test plugin reset' to Noop", messages)

    def testHelpIsLogged(self):
        with self.assertLogs("cmdtree.commands", level="DEBUG") as captured:
            self.commands.run(["plugin", "--help"])
        self.assertIn("rendering usage of 'test plugin'", "\n".join(captured.output))

    def testNotFoundIsLogged(self):
        with self.assertLogs("cmdtree.commands", level="DEBUG") as captured:
            with self.assertRaises(UnknownCommandError):
                self.commands.run(["nope"])
        self.assertIn("no command 'nope' under 'test'", "\n".join(captured.output))


class SetupTest(TestCase):

    def setUp(self):
        self.logger = logging.getLogger("cmdtree")
        self.handlers = list(self.logger.handlers)
        self.level = self.logger.level

    def tearDown(self):
        self.logger.handlers[:] = self.handlers
        self.logger.setLevel(self.level)

    def installed(self):
        return [handler for handler in self.logger.handlers if isinstance(handler, RichHandler)]

    def testSetupInstallsRichHandler(self):
        logger = logs.setup(logging.DEBUG, console=Console(file=io.StringIO()))
        self.assertIs(logger, self.logger)
        self.assertEqual(logger.level, logging.DEBUG)
        self.assertEqual(len(self.installed()), 1)

    def testSetupIsIdempotent(self):
        logs.setup(logging.INFO)
        logs.setup(logging.DEBUG)
        self.assertEqual(len(self.installed()), 1)

    def testRecordsReachConsole(self):
        console = Console(file=io.StringIO(), width=200)
        logs.setup(logging.DEBUG, console=console)
        Dispatcher("test", printer=[].append).add(Noop, "noop").run(["noop"])
        self.assertIn("dispatching 'test noop' to Noop", console.file.getvalue())

    def testNullHandlerKept(self):
        logs.setup(logging.INFO)
        self.assertTrue(any(isinstance(handler, logging.NullHandler) for handler in self.logger.handlers))


if __name__ == "__main__":
    unittest.main()
