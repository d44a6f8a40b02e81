"""
cmdtree faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing errors.
  Codes are grouped by domain so logs and searches stay predictable.
- CommandException: base type carrying a message plus options; it knows how to
  render itself with rich and how to surface itself (raise, or print and exit).
- trigger(): central entry point to surface any fault.

Integration
- The routing layer raises UnknownCommandError / UnknownSubcommandError.
- The argument-binding layer raises the switch/operand errors below.
- Dispatcher.__invoke__ passes caught faults to trigger() with its runtime
  options; in shell mode they are rendered to stderr and the process exits 1.

Host hooks (looked up on __main__)
- __prog__: program name shown in fault headers.
- __styles__: mapping overriding entries of the rendering palette.
- __codes__: mapping from FaultCode to a custom label.
"""
import copy
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the cli (stable identifiers).

    grouping
    - routing (1110x)
      • UNKNOWN_COMMAND, UNKNOWN_SUBCOMMAND
    - switches (1111x)
      • UNKNOWN_SWITCH, FLAG_ASSIGNMENT, OPTION_VALUE_REQUIRED
    - operands (1112x)
      • UNEXPECTED_OPERAND, MISSING_OPERANDS
    """
    # --- routing errors ---
    UNKNOWN_COMMAND             = 11101
    UNKNOWN_SUBCOMMAND          = 11102

    # --- switch errors ---
    UNKNOWN_SWITCH              = 11112
    FLAG_ASSIGNMENT             = 11113
    OPTION_VALUE_REQUIRED       = 11117

    # --- operand errors ---
    UNEXPECTED_OPERAND          = 11121
    MISSING_OPERANDS            = 11125

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    Base fault: a message plus immutable rendering/diagnostic options.

    Subclasses pin a default `code` and `title`; any option given at
    construction (or merged later through copy.replace) overrides them.

    Recognized options
    - code, title, hint: header and hint line content.
    - prog: program name (__main__.__prog__ wins when defined; "cmdtree" when neither is).
    - shell, colorful, fancy: surfacing and styling switches.
    - anything else (token, route, switch, ...) is kept for diagnostics.
    """
    code = Unset
    title = "command error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType({"code": type(self).code, "title": type(self).title} | options)

    def __str__(self):
        return self.message

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", False)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment if colorful else Text(fragment.plain)
            return Text(str(fragment), style)

        prog = text(getattr(main, "__prog__", self.options.get("prog", "cmdtree")), styler("prog-name"))
        code = self.options["code"]
        code = code.normalize() if isinstance(code, FaultCode) else "-"

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(code, styler("code")),
            " | ",
            text(self.options["title"].title(), styler("error-title")),
            " ]"
        )
        message = text(self.message, styler("error-message"))

        renders = [message]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownCommandError(CommandException):
    code = FaultCode.UNKNOWN_COMMAND
    title = "unknown command"


class UnknownSubcommandError(UnknownCommandError):
    code = FaultCode.UNKNOWN_SUBCOMMAND
    title = "unknown subcommand"


class UnknownSwitchError(CommandException):
    code = FaultCode.UNKNOWN_SWITCH
    title = "unknown switch"


class FlagAssignmentError(CommandException):
    code = FaultCode.FLAG_ASSIGNMENT
    title = "flag assignment"


class OptionValueRequiredError(CommandException):
    code = FaultCode.OPTION_VALUE_REQUIRED
    title = "option value required"


class UnexpectedOperandError(CommandException):
    code = FaultCode.UNEXPECTED_OPERAND
    title = "unexpected operand"


class MissingOperandsError(CommandException):
    code = FaultCode.MISSING_OPERANDS
    title = "missing operands"


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via copy.replace(fault, **options) before triggering.
    - in shell mode the fault is rendered via the rich console and the process exits;
      otherwise the (merged) fault is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "FaultCode",
    "CommandException",
    "UnknownCommandError",
    "UnknownSubcommandError",
    "UnknownSwitchError",
    "FlagAssignmentError",
    "OptionValueRequiredError",
    "UnexpectedOperandError",
    "MissingOperandsError",
    "trigger",
)
