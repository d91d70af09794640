"""
Interactive read-eval-print loop.

Each line is parsed and evaluated in one persistent session, so `let`
bindings and functions carry over between lines.  Errors are reported on the
error stream and the loop keeps going.
"""

import logging
import sys
from typing import Optional, TextIO

from .config import QuillConfig
from .runtime import Interpreter, Session

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("exit", "quit")


def start(stdin: TextIO = None, stdout: TextIO = None, stderr: TextIO = None,
          config: Optional[QuillConfig] = None) -> int:
    """
    Run the REPL until end of input or an exit command.

    Returns:
        Process exit code (always 0)
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    config = config or QuillConfig()

    session = Session(Interpreter(max_call_depth=config.max_call_depth), filename="<repl>")
    logger.debug("repl started")

    while True:
        stdout.write(config.prompt)
        stdout.flush()

        line = stdin.readline()
        if not line:
            stdout.write("\n")
            break

        text = line.strip()
        if not text:
            continue
        if text in EXIT_COMMANDS:
            break

        result = session.run(line)
        if result.output and config.show_output:
            stdout.write(result.output)
        if result.success:
            stdout.write(result.value.inspect() + "\n")
        else:
            stderr.write(result.error_message + "\n")
            stderr.flush()

    logger.debug("repl finished")
    return 0
