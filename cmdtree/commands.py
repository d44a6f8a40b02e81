"""
cmdtree command layer: build, route and document a tree of commands.

What this module provides
- Runnable / RunnableWithArgs: the handler contract. A handler type is built
  with no arguments on every dispatch and receives the remaining tokens; the
  typed variant parses them into its declared Arguments first.
- runnable(...): wrap a plain function into a handler type.
- Leaf / Group: the two node kinds. A Leaf wraps a handler factory; a Group
  holds ordered children (leaves or groups) and routes tokens to them.
- GroupBuilder: the narrow builder handed to add_group() callbacks; it can
  only add children to the group it is bound to.
- Dispatcher: the root facade owning the whole tree.
- invoke(object, prompt): convenience runner for anything with __invoke__.

Routing
- Each group level consumes exactly one token (the child name) and delegates
  the rest. Empty input, or a lone "help" / "-h" / "--help", renders the usage
  of the node reached instead of dispatching.
- Matching is name equality in insertion order; the first match wins.
- An unmatched name raises UnknownCommandError at the root and
  UnknownSubcommandError below it; both read "command not found".
- Handler and argument-binding exceptions propagate untouched.

Quick start
    from cmdtree import Dispatcher, Runnable

    class Clean(Runnable):
        def run(self, args, /):
            print("cleaning")

    class Reset(Runnable):
        def run(self, args, /):
            print("resetting")

    commands = (
        Dispatcher("tool", descr="tool commands")
        .add(Clean, "clean")
        .add_group("plugin", lambda group: group.add(Reset, "reset", descr="Reset all plugins"))
    )
    commands.run(["plugin", "reset"])
"""
import inspect
import logging
import shlex
import sys
import weakref
from abc import ABC, abstractmethod
from collections.abc import Iterable

from rich.console import Console

from .faults import *
from .utils import *

logger = logging.getLogger(__name__)

HELP = frozenset({"help", "-h", "--help"})


def _ishelp(tokens):
    return len(tokens) == 1 and tokens[0] in HELP


def _indent(depth):
    return " " * (depth * 2)


def _tokens(tokens, caller, /):
    """
    Normalize a token stream into a tuple of strings.

    A bare string is rejected: it is almost always a forgotten split.
    """
    if isinstance(tokens, str) or not isinstance(tokens, Iterable):
        raise TypeError(f"{caller}() argument must be an iterable of strings")
    tokens = tuple(tokens)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError(f"{caller}() argument must be an iterable of strings")
    return tokens


def _print(text, /):
    # Plain text: no markup, highlighting or emoji substitution, no hard wrapping.
    Console().print(text, markup=False, highlight=False, emoji=False, soft_wrap=True)


class Runnable(ABC):
    """
    Handler contract: zero-argument construction and run(args).

    args is the tuple of tokens left after routing; it may be empty.
    """

    @abstractmethod
    def run(self, args, /):
        ...


class RunnableWithArgs(Runnable):
    """
    Handler with typed arguments.

    Subclasses declare an `Arguments` type (zero-argument constructible, with
    parse(tokens) and usage(command)) and implement handle(argv). run() is the
    adapter: it builds a fresh Arguments, parses the tokens into it and hands
    it to handle(). Parse faults propagate to the caller.
    """
    Arguments = Unset

    @classmethod
    def _arguments(cls):
        if cls.Arguments is Unset:
            raise TypeError(f"{cls.__name__} must declare an 'Arguments' type")
        return cls.Arguments()

    def run(self, args, /):
        argv = type(self)._arguments()
        argv.parse(args)
        return self.handle(argv)

    @abstractmethod
    def handle(self, argv, /):
        ...

    @classmethod
    def usage(cls, command=Unset, /):
        return cls._arguments().usage(coalesce(command, cls.__name__.lower()))


def runnable(source=Unset, /, *, arguments=Unset):
    """
    Turn a plain function into a handler type, or return a decorator doing so.

    Modes
    - @runnable: the function receives the raw token tuple.
    - @runnable(arguments=Arguments): the function receives the parsed
      Arguments instance (the result is a RunnableWithArgs subclass).

    The generated type keeps the function's name, docstring and module.
    """
    if arguments is not Unset and not isinstance(arguments, type):
        raise TypeError("runnable() 'arguments' must be a type")

    @rename("runnable")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@runnable() must be applied to a callable")

        if arguments is Unset:
            class Handler(Runnable):
                def run(self, args, /):
                    return callback(args)
        else:
            class Handler(RunnableWithArgs):
                Arguments = arguments

                def handle(self, argv, /):
                    return callback(argv)

        Handler.__doc__ = inspect.getdoc(callback)
        Handler.__module__ = getattr(callback, "__module__", __name__)
        return rename(Handler, getattr(callback, "__name__", "Handler"))

    return wrapper(source) if source is not Unset else wrapper


class Node(ABC):
    """
    Common shape of tree nodes.

    Fields
    - name: routing key (non-empty string), immutable.
    - descr: optional one-line description shown in listings.
    - parent: the enclosing Group, held through a weak reference; None at the root.
    - printer: usage sink shared by the whole tree.
    - strict: whether sibling names must be unique; shared by the whole tree.

    Derived
    - root, path and route are recomputed on every access by walking parents.
    """
    name = mirror("name")
    descr = mirror("descr")

    def __init__(self, name, descr, parent, printer, strict, /):
        typename = type(self).__name__.lower()

        if not isinstance(name, str):
            raise TypeError(f"{typename} 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{typename} 'name' cannot be empty")

        if not isinstance(descr, str | Unset):
            raise TypeError(f"{typename} 'descr' must be a string")
        elif isinstance(descr, str) and not (descr := descr.strip()):
            raise ValueError(f"{typename} 'descr' cannot be empty")

        if not callable(printer):
            raise TypeError(f"{typename} 'printer' must be callable")

        self._name = name
        self._descr = coalesce(descr)
        self._parent = weakref.ref(parent) if parent is not None else None
        self._printer = printer
        self._strict = bool(strict)

    @property
    def parent(self):
        return self._parent() if self._parent is not None else None

    @property
    def root(self):
        """
        Return the topmost node of the tree this node belongs to.
        """
        child, parent = self, self.parent
        while parent:
            child, parent = parent, parent.parent
        return child

    @property
    def path(self):
        """
        Return the ancestry from the root to this node as a tuple of nodes.
        """
        path = [node := self]
        while node.parent:
            path.append(node := node.parent)
        return tuple(reversed(path))

    @property
    def route(self):
        """
        Return the space-joined names of path, e.g. "tool plugin reset".
        """
        return " ".join(node.name for node in self.path)

    def walk(self):
        yield self

    def synopsis(self, depth, /):
        title = _indent(depth) + self.name
        return f"{title}: {self.descr}" if self.descr else title

    @abstractmethod
    def run(self, args, /):
        ...

    @abstractmethod
    def usage(self):
        ...

    def print_usage(self):
        self._printer(self.usage())

    def __bool__(self):
        return True

    def __repr__(self):
        return f"{type(self).__name__.lower()}(route={self.route!r}, descr={self.descr!r})"


class Leaf(Node):
    """
    Terminal node wrapping a handler factory.

    The factory is called with no arguments on every dispatch, so no handler
    state survives between two runs.
    """
    factory = mirror("factory")

    def __init__(self, factory, name, descr, parent, printer, strict, /):
        if not callable(factory):
            raise TypeError("leaf 'factory' must be callable")
        super().__init__(name, descr, parent, printer, strict)
        self._factory = factory

    def run(self, args, /):
        if _ishelp(args):
            logger.debug("rendering usage of %r", self.route)
            return self.print_usage()

        handler = self._factory()
        logger.debug("dispatching %r to %s", self.route, type(handler).__qualname__)
        handler.run(tuple(args))

    def usage(self):
        """
        Render the leaf's usage.

        Typed handlers render their Arguments usage; others get a generic line.
        A factory that is not itself a type (a lambda, a partial) is called
        once and the handler it returns is inspected instead.
        """
        source = self._factory
        if not isinstance(source, type):
            source = type(source())
        if arguments := getattr(source, "Arguments", Unset):
            return arguments().usage(self.route)

        lines = [f"Usage: {self.route} [arguments]"]
        if self.descr:
            lines.append(self.descr)
        return "\n".join(lines)


class Group(Node):
    """
    Non-terminal node: ordered children plus the routing algorithm.
    """
    children = mirror("children")

    def __init__(self, name, descr, parent, printer, strict, /):
        super().__init__(name, descr, parent, printer, strict)
        self._children = []

    def _vacant(self, name):
        if not isinstance(name, str):
            return
        # Lone help tokens render usage before any child is matched.
        if (name := name.strip()) in HELP:
            raise ValueError(f"group {self.route!r} cannot have a child named {name!r} (reserved for help)")
        if self._strict and any(child.name == name for child in self._children):
            typeof = "subcommand" if self.parent else "command"
            raise ValueError(f"group {self.route!r} {typeof} name {name!r} is already in use")

    def add(self, factory, name, /, descr=Unset):
        """
        Append a Leaf running `factory` under `name`; returns self.
        """
        self._vacant(name)
        self._children.append(Leaf(factory, name, descr, self, self._printer, self._strict))
        return self

    def add_group(self, name, populate, /, descr=Unset):
        """
        Create a child Group, let `populate` fill it, then append it; returns self.

        populate is called exactly once, synchronously, with a GroupBuilder
        bound to the new group. If it raises, the group is not attached.
        """
        if not callable(populate):
            raise TypeError("add_group() 'populate' must be callable")
        self._vacant(name)
        group = Group(name, descr, self, self._printer, self._strict)
        populate(GroupBuilder(group))
        self._children.append(group)
        return self

    def walk(self):
        """
        Yield this group and every descendant, depth-first in insertion order.
        """
        yield self
        for child in self._children:
            yield from child.walk()

    def run(self, args, /):
        if not args or _ishelp(args):
            logger.debug("rendering usage of %r", self.route)
            return self.print_usage()

        name = args[0]
        for child in self._children:
            if child.name == name:
                logger.debug("routing %r to %r", name, child.route)
                return child.run(args[1:])

        logger.debug("no command %r under %r", name, self.route)
        fault = UnknownSubcommandError if self.parent else UnknownCommandError
        raise fault(
            "command not found",
            token=name,
            route=self.route,
            hint=f"run '{self.route} --help' to list the available commands",
        )

    def usage(self):
        lines = [f"Usage: {self.route} [command] [options] [operands]"]
        if self.descr:
            lines.append(self.descr)
        lines.append(f"See '{self.route} [command] --help' for help on a command.")
        lines.extend(("", "Commands:"))
        lines.extend(child.synopsis(1) for child in self._children)
        return "\n".join(lines)

    def synopsis(self, depth, /):
        lines = [super().synopsis(depth)]
        lines.extend(child.synopsis(depth + 1) for child in self._children)
        return "\n".join(lines)


class GroupBuilder:
    """
    Builder handed to add_group() callbacks.

    Exposes only add() and add_group(), both bound to one group: a callback
    can populate its own group but never touch its siblings.
    """

    def __init__(self, group, /):
        self._group = group

    @property
    def route(self):
        return self._group.route

    def add(self, factory, name, /, descr=Unset):
        self._group.add(factory, name, descr)
        return self

    def add_group(self, name, populate, /, descr=Unset):
        self._group.add_group(name, populate, descr)
        return self

    def __repr__(self):
        return f"group-builder(route={self.route!r})"


class Dispatcher:
    """
    Root facade: owns the root Group and exposes the public entry points.

    Parameters
    - name: root name; first segment of every route, never matched against input.
    - descr: optional description shown in the root usage.
    - printer: usage sink, Callable[[str], None]; defaults to a rich console on stdout.
    - strict: reject duplicate sibling names at build time (default: first match wins).
    - shell, colorful, fancy: how __invoke__ surfaces faults (see faults.trigger).
    """

    def __init__(
            self,
            name,
            /,
            descr=Unset,
            printer=Unset,
            *,
            strict=False,
            shell=False,
            colorful=False,
            fancy=False
    ):
        self._root = Group(name, descr, None, coalesce(printer, _print), strict)
        self._shell = bool(shell)
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)

    @property
    def root(self):
        return self._root

    @property
    def name(self):
        return self._root.name

    @property
    def descr(self):
        return self._root.descr

    shell = mirror("shell")
    colorful = mirror("colorful")
    fancy = mirror("fancy")

    def add(self, factory, name, /, descr=Unset):
        self._root.add(factory, name, descr)
        return self

    def add_group(self, name, populate, /, descr=Unset):
        self._root.add_group(name, populate, descr)
        return self

    def walk(self):
        return self._root.walk()

    def run(self, tokens, /):
        """
        Route tokens (program name already removed) through the tree.

        Raises
        - UnknownCommandError (or UnknownSubcommandError) when a name matches no child.
        - whatever the reached handler or its Arguments.parse raises.
        """
        self._root.run(_tokens(tokens, "run"))

    def usage(self):
        return self._root.usage()

    def print_usage(self):
        self._root.print_usage()

    def __invoke__(self, prompt=Unset):
        """
        Execute the tree with a token stream.

        Parameters
        - prompt:
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string; split via shlex.split.
          • Iterable[str]: pre-tokenized; each element is trimmed, blanks dropped.

        Faults are surfaced through trigger() with this dispatcher's options:
        raised again when shell is False, rendered to stderr followed by
        sys.exit(1) otherwise.
        """
        if prompt is Unset:
            tokens = sys.argv[1:]
        elif isinstance(prompt, str):
            tokens = shlex.split(prompt)
        elif isinstance(prompt, Iterable):
            tokens = [token.strip() for token in _tokens(prompt, "__invoke__") if token.strip()]
        else:
            raise TypeError("__invoke__() argument must be a string or an iterable of strings")

        try:
            self.run(tokens)
        except CommandException as fault:
            trigger(fault, prog=self.name, shell=self.shell, colorful=self.colorful, fancy=self.fancy)

    def __repr__(self):
        return f"dispatcher(name={self.name!r}, descr={self.descr!r})"


def invoke(object, prompt=Unset, /):
    """
    Convenience runner: call object.__invoke__(prompt).

    Raises
    - TypeError when object has no callable __invoke__.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        object.__invoke__(prompt)
        return

    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method")


__all__ = (
    "HELP",
    "Runnable",
    "RunnableWithArgs",
    "runnable",
    "Node",
    "Leaf",
    "Group",
    "GroupBuilder",
    "Dispatcher",
    "invoke",
)
