"""
stackcc - Compiler Command-Line Interface
=========================================

This module implements the command-line interface for the stackcc
compiler. The whole program is passed as a single argument; the generated
x86-64 assembly goes to standard output and diagnostics to standard error.

Usage Examples
--------------
Basic compilation:
    $ stackcc "1 + 2 * 3" > prog.s

With output file:
    $ stackcc "a = 3; return a * a" -o prog.s

Assemble and run natively:
    $ stackcc "return 42" > prog.s && cc -o prog prog.s && ./prog; echo $?

Run on the built-in emulator:
    $ stackcc --run "a = 8; -a / 3"
    -2

Debugging:
    $ stackcc --tokens "a = 1"
    $ stackcc --ast "a = b = 5"
    $ stackcc -v -c "a = 1; a + 1"
"""

import logging
from pathlib import Path
from typing import Optional

import click

from stackcc import __version__
from stackcc.compiler import StackCompiler, CompilerOptions
from stackcc.compiler.ast import ASTPrinter
from stackcc.emulator import EmulatorError, run_assembly
from stackcc.cli.errors import handle_cli_exception

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging on stderr based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(name)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

class ProgramCommand(click.Command):
    """
    Command whose SOURCE argument may begin with '-'.

    A program such as "-8/3" would otherwise be read as a cluster of short
    options. When no plain positional argument is present, the first
    argument that starts with '-' but names no option is moved behind '--'
    so it binds to SOURCE.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if "--" not in args:
            args = self._route_source(ctx, list(args))
        return super().parse_args(ctx, args)

    def _route_source(self, ctx: click.Context, args: list[str]) -> list[str]:
        names = set()
        takes_value = set()
        for param in self.get_params(ctx):
            if isinstance(param, click.Option):
                names.update(param.opts + param.secondary_opts)
                if not param.is_flag and not param.count:
                    takes_value.update(param.opts)

        candidate = None
        skip_value = False
        for index, arg in enumerate(args):
            if skip_value:
                skip_value = False
            elif arg.split("=", 1)[0] in names:
                # "--output=x" carries its value; "-o x" consumes the next arg
                skip_value = arg in takes_value
            elif not arg.startswith("-"):
                return args
            elif candidate is None:
                candidate = index

        if candidate is None:
            return args
        source = args.pop(candidate)
        logger.debug(f"Treating {source!r} as SOURCE")
        return args + ["--", source]


@click.command(cls=ProgramCommand)
@click.argument("source")
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write assembly to this file instead of stdout",
)
@click.option(
    "--tokens",
    is_flag=True,
    help="Print the token list and exit (for debugging)",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print AST and exit (for debugging)",
)
@click.option(
    "--run",
    is_flag=True,
    help="Compile, execute on the built-in emulator and print the result",
)
@click.option(
    "-c", "--comments",
    is_flag=True,
    help="Annotate the assembly with the source of each statement",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output (debug logging on stderr)",
)
@click.version_option(version=__version__, prog_name="stackcc")
def main(
    source: str,
    output: Optional[Path],
    tokens: bool,
    ast: bool,
    run: bool,
    comments: bool,
    verbose: bool,
) -> None:
    """
    Compile a stackcc program to x86-64 assembly.

    SOURCE is the entire program text, for example "a = 1; b = a + 2; b".

    Statements are separated by ';'. The program's value is that of the
    first executed 'return', or else of the last statement. The output is
    a single 'main' function in GNU assembler Intel syntax.

    \b
    Examples:
        stackcc "1+2*3"                  # Assembly on stdout
        stackcc "return 42" -o prog.s    # Specify output file
        stackcc --run "(1+2)*3"          # Prints 9
        stackcc --ast "a = b = 5"        # Show the parsed tree
    """
    setup_logging(verbose)

    options = CompilerOptions(output_comments=comments)
    compiler = StackCompiler(options)

    try:
        if tokens:
            for token in compiler.tokenize(source):
                click.echo(repr(token))
            return

        if ast:
            printer = ASTPrinter()
            click.echo(printer.print(compiler.parse(source)))
            return

        result = compiler.compile_source(source)
        logger.debug(f"Variables: {result.variables}")

        if run:
            try:
                value = run_assembly(result.assembly)
            except EmulatorError as e:
                handle_cli_exception(e, verbose, error_type="Runtime")
            click.echo(str(value))
            return

        if output is not None:
            output.write_text(result.assembly)
            logger.debug(f"Wrote {len(result.assembly)} bytes to {output}")
        else:
            click.echo(result.assembly, nl=False)

    except Exception as e:
        handle_cli_exception(e, verbose)


if __name__ == "__main__":
    main()
