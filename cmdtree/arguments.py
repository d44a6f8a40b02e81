r"""
cmdtree argument specifications and binding.

Overview
- Specs
  • Operand: positional, value-bearing argument (required unless it has a default).
  • Option: named, value-bearing switch with one or more aliases (e.g., -o/--output).
  • Flag: named, presence-only switch (no payload), e.g., -s/--save.

- Arguments
  • Base class for a handler's typed arguments. Specs are declared as class
    attributes; they are collected in declaration order when the subclass is
    created. An instance is built with no arguments, filled by parse(tokens)
    and rendered by usage(command).

Binding rules
- "--" ends switch recognition; every later token is an operand.
- "--name=value" binds inline; "--name value" takes the next token unless it
  looks like a switch (a lone "-" is a value). Values starting with a dash
  need the inline form.
- Flags never take a value ("--save=yes" is a fault).
- A lone "-" is an operand (conventional stdin marker).
- After a parse, every spec is bound to the attribute of the same name:
  operands to their string (or default), flags to a bool, options to their
  string (or default).

Quick example:
    >>> class Arguments(cmdtree.Arguments):
    ...     name = Operand(descr="plugin name")
    ...     save = Flag("-s", descr="if save to package config")
    ...
    >>> argv = Arguments()
    >>> argv.parse(["files", "--save"])
    >>> argv.name, argv.save
    ('files', True)

Public API
- Classes: Operand, Option, Flag, Arguments
"""
import re

from .faults import *
from .utils import *


_NAME = re.compile(r"--?[^\W\d_](-?[^\W_]+)*")


def _valuelike(token, /):
    return token == "-" or not token.startswith("-")


def _sanitize_descr(cls, descr, /):
    """
    Validate an optional description: Unset becomes None, strings are trimmed
    and must not end up empty.
    """
    if not isinstance(descr, str | Unset):
        raise TypeError(f"{cls.__name__.lower()} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__name__.lower()} 'descr' cannot be empty")
    return coalesce(descr)


def _sanitize_names(cls, names, /):
    r"""
    Validate switch aliases.

    Each name must be a non-empty string matching r"--?[^\W\d_](-?[^\W_]+)*"
    (optional one or two hyphens, hyphen-separated segments starting with a
    letter). Duplicates are rejected. Order is preserved for help output.
    """
    sanitized = []
    for name in names:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__name__.lower()} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__name__.lower()} names cannot be empty-strings")
        elif not _NAME.fullmatch(name):
            raise ValueError(f"{cls.__name__.lower()} names must be valid shell-style option names (unicodes are allowed)")
        elif name in sanitized:
            raise ValueError(f"{cls.__name__.lower()} names cannot contain duplicates")
        sanitized.append(name)
    return tuple(sanitized)


class _Spec:
    """
    Shared plumbing for specs: the attribute name is learned when the owning
    Arguments subclass is created (__set_name__).
    """
    __introspectable__ = ()

    attribute = mirror("attribute")
    descr = mirror("descr")

    def __set_name__(self, owner, name):
        self._attribute = name

    def __repr__(self):
        fields = ", ".join(f"{name}={getattr(self, name)!r}" for name in self.__introspectable__)
        return f"{type(self).__name__.lower()}({fields})"


class Operand(_Spec):
    """
    Positional, value-bearing argument specification.

    - metavar: label in help; defaults to the attribute name.
    - default: when given, the operand becomes optional.
    """
    __introspectable__ = ("metavar", "descr", "default", "required")

    default = mirror("default")

    def __init__(self, metavar=Unset, /, *, descr=Unset, default=Unset):
        if not isinstance(metavar, str | Unset):
            raise TypeError("operand 'metavar' must be a string")
        elif isinstance(metavar, str) and not (metavar := metavar.strip()):
            raise ValueError("operand 'metavar' cannot be empty")
        self._metavar = metavar
        self._descr = _sanitize_descr(type(self), descr)
        self._default = default
        self._attribute = Unset

    @property
    def metavar(self):
        return coalesce(self._metavar, coalesce(self._attribute, "operand"))

    @property
    def required(self):
        return self._default is Unset


class _Switch(_Spec):
    """
    Named switch: names default to "--<attribute>" (underscores become hyphens).
    """

    def __init__(self, names, descr, /):
        self._names = _sanitize_names(type(self), names)
        self._descr = _sanitize_descr(type(self), descr)
        self._attribute = Unset

    def __set_name__(self, owner, name):
        super().__set_name__(owner, name)
        if not self._names:
            self._names = _sanitize_names(type(self), ("--" + name.strip("_").replace("_", "-"),))

    @property
    def names(self):
        return self._names


class Flag(_Switch):
    """
    Named, presence-only switch. Bound to False unless present.
    """
    __introspectable__ = ("names", "descr")

    def __init__(self, *names, descr=Unset):
        super().__init__(names, descr)


class Option(_Switch):
    """
    Named, value-bearing switch. Bound to `default` (None) unless present.
    """
    __introspectable__ = ("names", "metavar", "descr", "default")

    default = mirror("default")

    def __init__(self, *names, metavar=Unset, descr=Unset, default=None):
        super().__init__(names, descr)
        if not isinstance(metavar, str | Unset):
            raise TypeError("option 'metavar' must be a string")
        elif isinstance(metavar, str) and not (metavar := metavar.strip()):
            raise ValueError("option 'metavar' cannot be empty")
        self._metavar = metavar
        self._default = default

    @property
    def metavar(self):
        return coalesce(self._metavar, coalesce(self._attribute, "value").upper())


class Arguments:
    """
    Base class for typed handler arguments.

    Subclasses declare Operand/Option/Flag instances as class attributes:

        class Arguments(cmdtree.Arguments):
            name = Operand()
            save = Flag()

    Class attributes
    - __operands__: tuple of Operand in declaration order.
    - __switches__: tuple of Option/Flag in declaration order.

    Instances are zero-argument constructible; before parse() every attribute
    still resolves to its spec (class attribute), after parse() to its value.
    """
    __operands__ = ()
    __switches__ = ()

    def __init_subclass__(cls, **options):
        super().__init_subclass__(**options)

        operands = []
        switches = []
        # Walk the MRO so inherited specs come first, then the subclass' own.
        for klass in reversed(cls.__mro__):
            for name, object in vars(klass).items():
                if isinstance(object, Operand):
                    operands = [x for x in operands if x.attribute != name] + [object]
                    switches = [x for x in switches if x.attribute != name]
                elif isinstance(object, _Switch):
                    switches = [x for x in switches if x.attribute != name] + [object]
                    operands = [x for x in operands if x.attribute != name]

        seen = {}
        for switch in switches:
            for alias in switch.names:
                if alias in ("-h", "--help"):
                    raise ValueError(f"arguments {cls.__name__!r} name {alias!r} is reserved for help")
                if seen.setdefault(alias, switch) is not switch:
                    raise ValueError(f"arguments {cls.__name__!r} name {alias!r} is already in use")

        cls.__operands__ = tuple(operands)
        cls.__switches__ = tuple(switches)

    def parse(self, tokens, /):
        """
        Bind tokens to the declared specs.

        Raises
        - UnknownSwitchError: a switch-looking token not declared.
        - FlagAssignmentError: a flag given an inline value.
        - OptionValueRequiredError: an option without a value.
        - UnexpectedOperandError: more operands than declared.
        - MissingOperandsError: required operands left unbound.
        """
        cls = type(self)
        switches = {alias: switch for switch in cls.__switches__ for alias in switch.names}
        values = {switch.attribute: switch.default if isinstance(switch, Option) else False
                  for switch in cls.__switches__}
        operands = []

        tokens = list(tokens)
        index = 0
        terminated = False
        while index < len(tokens):
            token = tokens[index]
            index += 1

            if terminated or token == "-" or not token.startswith("-"):
                operands.append(token)
                continue
            if token == "--":
                terminated = True
                continue

            name, assigned, inline = token.partition("=")
            try:
                switch = switches[name]
            except KeyError:
                raise UnknownSwitchError(
                    f"unknown switch {name!r}",
                    switch=name,
                    hint="use --help to list the available options",
                ) from None

            if isinstance(switch, Flag):
                if assigned:
                    raise FlagAssignmentError(
                        f"flag {name!r} does not take a value",
                        switch=name,
                        hint=f"use {name} alone",
                    )
                values[switch.attribute] = True
            elif assigned:
                values[switch.attribute] = inline
            elif index < len(tokens) and _valuelike(tokens[index]):
                values[switch.attribute] = tokens[index]
                index += 1
            else:
                raise OptionValueRequiredError(
                    f"option {name!r} requires a value",
                    switch=name,
                    hint=f"use {name}={switch.metavar} or {name} {switch.metavar}",
                )

        if len(operands) > len(cls.__operands__):
            extra = operands[len(cls.__operands__)]
            raise UnexpectedOperandError(
                f"unexpected operand {extra!r}",
                token=extra,
                hint="use --help to list the expected operands",
            )

        missing = [operand.metavar for operand in cls.__operands__[len(operands):] if operand.required]
        if missing:
            raise MissingOperandsError(
                f"missing operands: {', '.join(missing)}",
                missing=tuple(missing),
                hint="use --help to list the expected operands",
            )

        for operand, value in zip(cls.__operands__, operands):
            values[operand.attribute] = value
        for operand in cls.__operands__[len(operands):]:
            values[operand.attribute] = operand.default

        for name, value in values.items():
            setattr(self, name, value)

    def usage(self, command, /):
        """
        Render the help text for a command bound to these arguments.

        The command is the space-joined route supplied by the caller; the text
        holds a usage line, then the "Operands:" and "Options:" sections.
        """
        cls = type(self)

        synopsis = ["Usage:", str(command), "[options]"]
        for operand in cls.__operands__:
            synopsis.append(f"<{operand.metavar}>" if operand.required else f"[<{operand.metavar}>]")
        lines = [" ".join(synopsis)]

        def section(title, rows):
            width = max(len(label) for label, _ in rows)
            lines.extend(("", title + ":"))
            for label, descr in rows:
                lines.append(f"  {label.ljust(width)}  {descr}".rstrip() if descr else f"  {label}")

        if cls.__operands__:
            section("Operands", [(operand.metavar, operand.descr) for operand in cls.__operands__])

        rows = [("-h, --help", "show this help message and exit")]
        for switch in cls.__switches__:
            label = ", ".join(switch.names)
            if isinstance(switch, Option):
                label += " " + switch.metavar
            rows.append((label, switch.descr))
        section("Options", rows)

        return "\n".join(lines)


__all__ = (
    "Operand",
    "Option",
    "Flag",
    "Arguments",
)
