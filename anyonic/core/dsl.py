"""Plain-text program format.

Grammar (keywords are case-insensitive, one statement per line):

  ANYON  <Ising | Fibonacci | SU2_k>        header, exactly once, first
  INIT   <qubits>
  BRAID  <index> [CW | CCW]
  MEASURE <index>
  FMOVE  <Left | Right | Up | Down> <depth>
  GATE   <name> <qubit>... [<angle>]
  # comment

Blank lines are ignored. Comments above the header are dropped; comments
after it are kept as ``Comment`` operations so that text survives a
parse/serialize round trip.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from anyonic.core.anyons import AnyonType
from anyonic.core.errors import ParseError, UnsupportedAnyonType
from anyonic.core.program import (
    GATE_ARITY,
    PARAMETRIC_GATES,
    Braid,
    Comment,
    FMove,
    Gate,
    Heading,
    Initialize,
    Measure,
    Operation,
    OpKind,
    Program,
)

_HEADINGS = {h.value.lower(): h for h in Heading}


def _strip_lines(source: str) -> list[tuple[int, str]]:
    """Return (1-based line number, stripped text) for non-blank lines."""
    result = []
    for i, raw in enumerate(source.splitlines(), 1):
        stripped = raw.strip()
        if stripped:
            result.append((i, stripped))
    return result


# ---------------------------------------------------------------------------
# Parser internals
# ---------------------------------------------------------------------------

class _ProgramParser:
    """Stateful parser for program text."""

    def __init__(self, source: str) -> None:
        self.lines = _strip_lines(source)
        self.anyon_type: AnyonType | None = None
        self.operations: list[Operation] = []

    def parse(self) -> Program:
        for line_num, line in self.lines:
            if line.startswith("#"):
                if self.anyon_type is not None:
                    self.operations.append(Comment(line))
                continue
            tokens = line.split()
            keyword = tokens[0].upper()
            if keyword == "ANYON":
                self._parse_header(tokens, line_num)
                continue
            if self.anyon_type is None:
                raise ParseError("missing ANYON declaration before first operation", line_num)
            self.operations.append(self._parse_operation(keyword, tokens[1:], line_num))

        if self.anyon_type is None:
            raise ParseError("missing ANYON declaration")
        return Program(self.anyon_type, tuple(self.operations))

    def _parse_header(self, tokens: list[str], line_num: int) -> None:
        if self.anyon_type is not None:
            raise ParseError("duplicate ANYON declaration", line_num)
        if len(tokens) != 2:
            raise ParseError("expected 'ANYON <type>'", line_num)
        try:
            self.anyon_type = AnyonType.parse(tokens[1])
        except UnsupportedAnyonType as e:
            raise ParseError(str(e), line_num) from e

    def _parse_operation(self, keyword: str, args: list[str], line_num: int) -> Operation:
        if keyword == "INIT":
            self._expect(args, 1, "INIT <qubits>", line_num)
            count = self._int(args[0], "INIT count", line_num)
            if count < 1:
                raise ParseError(f"INIT count must be positive, got {count}", line_num)
            return Initialize(count)

        if keyword == "BRAID":
            if len(args) not in (1, 2):
                raise ParseError("expected 'BRAID <index> [CW|CCW]'", line_num)
            index = self._index(args[0], "BRAID index", line_num)
            clockwise = True
            if len(args) == 2:
                sense = args[1].upper()
                if sense not in ("CW", "CCW"):
                    raise ParseError(f"unknown braid direction: {args[1]}", line_num)
                clockwise = sense == "CW"
            return Braid(index, clockwise)

        if keyword == "MEASURE":
            self._expect(args, 1, "MEASURE <index>", line_num)
            return Measure(self._index(args[0], "MEASURE index", line_num))

        if keyword == "FMOVE":
            self._expect(args, 2, "FMOVE <direction> <depth>", line_num)
            heading = _HEADINGS.get(args[0].lower())
            if heading is None:
                raise ParseError(f"invalid F-move direction: {args[0]}", line_num)
            return FMove(heading, self._index(args[1], "FMOVE depth", line_num))

        if keyword == "GATE":
            return self._parse_gate(args, line_num)

        raise ParseError(f"unknown operation: {keyword}", line_num)

    def _parse_gate(self, args: list[str], line_num: int) -> Gate:
        if not args:
            raise ParseError("expected 'GATE <name> <qubit>...'", line_num)
        name = args[0].upper()
        if name not in GATE_ARITY:
            raise ParseError(f"unknown gate: {args[0]}", line_num)
        arity = GATE_ARITY[name]
        parametric = name in PARAMETRIC_GATES
        expected = arity + (1 if parametric else 0)
        operands = args[1:]
        if len(operands) != expected:
            raise ParseError(f"gate {name} takes {expected} operands, got {len(operands)}", line_num)
        qubits = tuple(self._index(tok, f"{name} qubit", line_num) for tok in operands[:arity])
        angle = None
        if parametric:
            try:
                angle = float(operands[arity])
            except ValueError:
                raise ParseError(f"invalid angle: {operands[arity]}", line_num)
        return Gate(name, qubits, angle)

    @staticmethod
    def _expect(args: list[str], n: int, usage: str, line_num: int) -> None:
        if len(args) != n:
            raise ParseError(f"expected '{usage}'", line_num)

    @staticmethod
    def _int(token: str, what: str, line_num: int) -> int:
        try:
            return int(token)
        except ValueError:
            raise ParseError(f"invalid {what}: {token}", line_num)

    @classmethod
    def _index(cls, token: str, what: str, line_num: int) -> int:
        value = cls._int(token, what, line_num)
        if value < 0:
            raise ParseError(f"{what} must be non-negative, got {value}", line_num)
        return value


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse(source: str) -> Program:
    """Parse program text.

    Args:
        source: Program text.

    Returns:
        Program with its anyon type and operations in order.

    Raises:
        ParseError: On any malformed line, with its 1-based line number.
    """
    return _ProgramParser(source).parse()


def serialize_operation(op: Operation) -> str:
    if op.kind is OpKind.INITIALIZE:
        return f"INIT {op.qubits}"
    if op.kind is OpKind.BRAID:
        return f"BRAID {op.index}" if op.clockwise else f"BRAID {op.index} CCW"
    if op.kind is OpKind.MEASURE:
        return f"MEASURE {op.index}"
    if op.kind is OpKind.FMOVE:
        return f"FMOVE {op.heading.value} {op.depth}"
    if op.kind is OpKind.GATE:
        parts = ["GATE", op.name, *(str(q) for q in op.qubits)]
        if op.angle is not None:
            parts.append(repr(float(op.angle)))
        return " ".join(parts)
    text = op.text
    return text if text.startswith("#") else f"# {text}"


def serialize(program: Program, timestamp: datetime | None = None) -> str:
    """Render *program* as text, headed by a single generated-at comment."""
    stamp = (timestamp or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    lines = [f"# Generated: {stamp}", f"ANYON {program.anyon_type}", ""]
    lines.extend(serialize_operation(op) for op in program.operations)
    return "\n".join(lines) + "\n"


def parse_file(path: str | Path) -> Program:
    return parse(Path(path).read_text(encoding="utf-8"))


def write_file(program: Program, path: str | Path) -> None:
    Path(path).write_text(serialize(program), encoding="utf-8")
