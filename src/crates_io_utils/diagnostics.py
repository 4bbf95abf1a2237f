from __future__ import annotations

import os
import sys
from typing import NoReturn, TextIO

from crates_io_utils.contracts import EXIT_FAILED


def program_name() -> str:
    if not sys.argv or not sys.argv[0]:
        return "crates-io-utils"
    name = os.path.basename(sys.argv[0])
    # `python -m pkg` runs pkg/__main__.py; report the package instead
    if name == "__main__.py":
        return os.path.basename(os.path.dirname(os.path.abspath(sys.argv[0]))) or "crates-io-utils"
    return name


def fail(message: str) -> NoReturn:
    """
    Report `message` on stderr and terminate with EXIT_FAILED.

    Termination is a SystemExit, so enclosing `with` blocks (workspaces,
    clients) still release their resources on the way out.
    """
    print(f"{program_name()}: error: {message}", file=sys.stderr, flush=True)
    raise SystemExit(EXIT_FAILED)


def visible_escapes(data: bytes) -> str:
    """Render bytes the way `cat -vet` does: `$` at line ends, `^X` controls, `M-` high bytes."""
    out: list[str] = []
    for b in data:
        if b == 0x0A:
            out.append("$\n")
            continue
        if b >= 0x80:
            out.append("M-")
            b -= 0x80
        if b < 0x20:
            out.append("^" + chr(b + 0x40))
        elif b == 0x7F:
            out.append("^?")
        else:
            out.append(chr(b))
    return "".join(out)


def dump_body(data: bytes, stream: TextIO | None = None) -> None:
    stream = stream if stream is not None else sys.stderr
    text = visible_escapes(data)
    stream.write(text)
    # keep the error line that follows on its own line
    if text and not text.endswith("\n"):
        stream.write("\n")
    stream.flush()
