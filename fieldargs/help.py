"""
fieldargs help and usage rendering.

Layout
- usage line: "Usage: program [--global-opts] SUBCMD [--sub-opts] POSITIONALS"
  (optional options in brackets, required ones bare, list positionals with "...")
- description
- "Positional arguments:" of the active command
- "Options:" of the active command, then the built-in --help/-h and --version
- "Global options:" inherited from ancestor commands (when rendered for a subcommand)
- "Commands:" children of the active command
- epilog

Palette keys
- usage-label, program-name, command-name, description-section, epilog-section
- group-label, option-name, metavar, argument-description, annotation

Customization
- Define a mapping named __styles__ in __main__ to override any palette entry.
- When colorful is False, styling is suppressed.
"""
from collections import defaultdict

from rich.console import Console, Group
from rich.containers import Lines
from rich.text import Text

from .options import builtins

_COLUMN = 26  # description column, including the two-space indent


def _styles(colorful):
    styles = defaultdict(str, {
        # === Head sections ===
        "usage-label": "bold #00E6FF",  # CYAN → signature info color
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "command-name": "bold #36C5F0",  # SKY-BLUE → subcommands
        "description-section": "italic #A3A3A3",  # Neutral gray
        "epilog-section": "#737373",  # Dim footer gray

        # === Groups / arguments ===
        "group-label": "bold #FFFFFF",  # Pure white headers
        "option-name": "bold #00E6FF",
        "metavar": "bold #FFD600",  # AMBER for parameters
        "argument-description": "#9CA3AF",  # Muted gray
        "annotation": "dim #9CA3AF",
    } | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    return styler


def _metavar(field):
    return field.placeholder or field.name.upper()


def _usage_item(field, styler):
    if field.positional:
        item = Text(_metavar(field), styler("metavar"))
        if field.category == "list":
            item = Text.assemble(item, " [", Text(_metavar(field), styler("metavar")), " ...]")
        return item if field.required else Text.assemble("[", item, "]")

    item = Text(field.display, styler("option-name"))
    if field.category != "bool":
        item.append(" ").append(_metavar(field), styler("metavar"))
    return item if field.required else Text.assemble("[", item, "]")


def render_usage(path, config, /, *, width=80):
    """
    Build the usage line for a command path as a rich Text (wrapped with a hanging indent).
    """
    styler = _styles(config.colorful)

    usage = Text()
    usage.append("Usage", styler("usage-label")).append(":").append(" ")
    usage.append(config.program, styler("program-name"))
    offset = len(usage) + 1

    inputs = []
    for command in path:
        if command.parent is not None:
            inputs.append(Text(command.name, styler("command-name")))
        inputs.extend(_usage_item(option, styler) for option in command.options)
    inputs.extend(_usage_item(positional, styler) for positional in path[-1].positionals)
    if path[-1].subcommands:
        inputs.append(Text("<command> [<args>]", styler("command-name")))

    lines = Lines()
    for input in inputs:
        if lines and len(lines[-1]) + 1 + len(input) <= max(width - offset, 20):
            lines[-1].append(" ").append_text(input)
        else:
            lines.append(input.copy())

    for index, line in enumerate(lines):
        usage.append("\n" + " " * offset if index else " ").append_text(line)
    return usage


def _entry(label, descr, styler, console, width):
    section = Text("  ").append_text(label)
    if not descr:
        return section
    if len(section) >= _COLUMN - 1:
        section.append("\n").append(" " * _COLUMN)
    else:
        section.append(" " * (_COLUMN - len(section)))
    wrapped = descr.wrap(console, max(width - _COLUMN, 20))
    for index, line in enumerate(wrapped):
        section.append("\n" + " " * _COLUMN if index else "").append_text(line)
    return section


def _option_entry(field, styler, console, width):
    names = []
    for name in (
        "--" + field.long if field.long is not None else None,
        "-" + field.short if field.short is not None else None,
    ):
        if name is None:
            continue
        label = Text(name, styler("option-name"))
        if field.category != "bool":
            label.append(" ").append(_metavar(field), styler("metavar"))
        names.append(label)

    descr = Text(field.help or "", styler("argument-description"))
    if field.default is not None:
        descr.append(" " if descr else "").append(f"[default: {field.default}]", styler("annotation"))
    if field.env is not None:
        descr.append(" " if descr else "").append(f"[env: {field.env}]", styler("annotation"))
    return _entry(Text(", ").join(names), descr, styler, console, width)


def render_help(path, config, /, *, width=80):
    """
    Build the full help of the last command of a path as a rich Group.
    """
    styler = _styles(config.colorful)
    console = Console(width=width, no_color=True)
    command = path[-1]

    renders = [render_usage(path, config, width=width)]

    if config.description and command.parent is None:
        renders.append(Text("\n").append(config.description, styler("description-section")))
    elif command.help:
        renders.append(Text("\n").append(command.help, styler("description-section")))

    if command.positionals:
        section = Text("\n").append("Positional arguments", styler("group-label")).append(":")
        for positional in command.positionals:
            descr = Text(positional.help or "", styler("argument-description"))
            if positional.default is not None:
                descr.append(" " if descr else "").append(f"[default: {positional.default}]", styler("annotation"))
            label = Text(_metavar(positional), styler("metavar"))
            section.append("\n").append_text(_entry(label, descr, styler, console, width))
        renders.append(section)

    shorts, longs = builtins(path, bool(config.version))
    section = Text("\n").append("Options", styler("group-label")).append(":")
    for option in command.options:
        section.append("\n").append_text(_option_entry(option, styler, console, width))
    if names := [name for name, table in (("--help", longs), ("-h", shorts)) if name.lstrip("-") in table]:
        label = Text(", ").join(Text(name, styler("option-name")) for name in names)
        descr = Text("display this help and exit", styler("argument-description"))
        section.append("\n").append_text(_entry(label, descr, styler, console, width))
    if "version" in longs:
        label = Text("--version", styler("option-name"))
        descr = Text("display version and exit", styler("argument-description"))
        section.append("\n").append_text(_entry(label, descr, styler, console, width))
    renders.append(section)

    if inherited := [option for ancestor in path[:-1] for option in ancestor.options]:
        section = Text("\n").append("Global options", styler("group-label")).append(":")
        for option in inherited:
            section.append("\n").append_text(_option_entry(option, styler, console, width))
        renders.append(section)

    if command.subcommands:
        section = Text("\n").append("Commands", styler("group-label")).append(":")
        for child in command.subcommands.values():
            label = Text(child.name, styler("command-name"))
            descr = Text(child.help or "", styler("argument-description"))
            section.append("\n").append_text(_entry(label, descr, styler, console, width))
        renders.append(section)

    if config.epilog:
        renders.append(Text("\n").append(config.epilog, styler("epilog-section")))

    return Group(*renders)


def _console(sink, config):
    return Console(
        file=sink,
        width=80,
        highlight=False,
        no_color=not config.colorful,
        color_system="auto" if config.colorful else None,
    )


def write_usage(sink, path, config, /):
    _console(sink, config).print(render_usage(path, config))


def write_help(sink, path, config, /):
    _console(sink, config).print(render_help(path, config))


__all__ = (
    "render_usage",
    "render_help",
    "write_usage",
    "write_help",
)
