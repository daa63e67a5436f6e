#!/usr/bin/env python3
"""
Wide-cell Brainfuck Interpreter

A Brainfuck dialect running over a fixed-size circular tape, where a single
instruction can be widened to operate on 2, 4 or 8 byte cells:
    >   Move the pointer back by the active width (towards lower addresses)
    <   Move the pointer forward by the active width (towards higher addresses)
    +   Increment the active-width value at the pointer (wrapping)
    -   Decrement the active-width value at the pointer (wrapping)
    .   Output active-width bytes at the pointer, lowest address first
    ,   Read active-width bytes from input into the pointer, lowest address first
    [   Enter the loop if the active-width value is non zero, otherwise skip it
    ]   Jump back to the matching [ so its condition is checked again
    2   Use 2 byte cells for the next instruction only
    4   Use 4 byte cells for the next instruction only
    8   Use 8 byte cells for the next instruction only
    ;   Ignore everything up to and including the next newline

All other characters are treated as comments and ignored.

Multi-byte values are little-endian and wrap around the end of the tape.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List, Optional, Protocol, Union

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_MEMORY_SIZE = 30000


class BrainfuckError(Exception):
    """Base class for everything the machine can fail with."""

    def __init__(self, message: str, *, position: Optional[int] = None):
        super().__init__(message)
        self.position = position


class BrainfuckSyntaxError(BrainfuckError, SyntaxError):
    """A `]` was found with no open loop to return to."""


class BrainfuckIOError(BrainfuckError, OSError):
    """Input ran out, or the input/output stream failed."""


class ResourceExhaustedError(BrainfuckError, MemoryError):
    """The loop-return stack could not grow any further."""


class ByteSource(Protocol):
    def read(self, size: int = -1) -> bytes: ...


class ByteSink(Protocol):
    def write(self, data: bytes) -> int: ...


class CellWidth(IntEnum):
    BYTE = 1
    WORD = 2
    DWORD = 4
    QWORD = 8


class Command(Enum):
    PTR_RIGHT = ord('>')
    PTR_LEFT = ord('<')
    INCREMENT = ord('+')
    DECREMENT = ord('-')
    PRINT = ord('.')
    READ = ord(',')
    LOOP_OPEN = ord('[')
    LOOP_CLOSE = ord(']')
    MOD2 = ord('2')
    MOD4 = ord('4')
    MOD8 = ord('8')
    LINE_COMMENT = ord(';')
    NEWLINE = ord('\n')
    COMMENT = -1

    @classmethod
    def from_byte(cls, value: int) -> 'Command':
        return _COMMANDS.get(value, cls.COMMENT)


_COMMANDS = {cmd.value: cmd for cmd in Command if cmd is not Command.COMMENT}

_MODIFIERS = {
    Command.MOD2: CellWidth.WORD,
    Command.MOD4: CellWidth.DWORD,
    Command.MOD8: CellWidth.QWORD,
}


@dataclass
class ExecutionContext:
    """Transient state of a single `interpret` call."""
    pc: int = 0
    width: CellWidth = CellWidth.BYTE
    # Set on the cycle after a modifier; the width drops back to one byte
    # when it flips back to False.
    pending_reset: bool = False
    loop_stack: List[int] = field(default_factory=list)
    skipping_body: bool = False
    skip_depth: int = 0
    skipping_line: bool = False
    steps: int = 0


class TapeMachine:
    """Direct interpreter over a circular byte tape."""

    def __init__(self, instream: ByteSource, outstream: ByteSink,
                 memory_size: int = DEFAULT_MEMORY_SIZE,
                 max_loop_depth: Optional[int] = None):
        if memory_size < CellWidth.QWORD:
            raise ValueError(f"memory_size must be at least {int(CellWidth.QWORD)} bytes, got {memory_size}")
        self.tape = np.zeros(memory_size, dtype=np.uint8)
        self.cursor = 0
        self.instream = instream
        self.outstream = outstream
        self.max_loop_depth = max_loop_depth
        self.steps = 0
        self.hit_step_limit = False

    def reset(self) -> None:
        """Zero the tape and put the cursor back at the start."""
        self.tape[:] = 0
        self.cursor = 0

    # -- addressing ---------------------------------------------------------

    def wrap(self, offset: int) -> int:
        """Fold an offset at most one tape length out of range back onto the tape."""
        size = len(self.tape)
        if offset >= size:
            offset -= size
        elif offset < 0:
            offset += size
        return offset

    def _offsets(self, width: int) -> List[int]:
        return [self.wrap(self.cursor + idx) for idx in range(width)]

    def move_forward(self, width: int = CellWidth.BYTE) -> None:
        self.cursor += width
        if self.cursor >= len(self.tape):
            self.cursor -= len(self.tape)

    def move_backward(self, width: int = CellWidth.BYTE) -> None:
        if width > self.cursor:
            self.cursor += len(self.tape)
        self.cursor -= width

    def memory_window(self, start: int, count: int) -> np.ndarray:
        """Copy `count` bytes starting at `start`, following the wraparound."""
        size = len(self.tape)
        return self.tape[[(start + idx) % size for idx in range(count)]].copy()

    # -- values -------------------------------------------------------------

    def load_int(self, width: int = CellWidth.BYTE) -> int:
        if width == CellWidth.BYTE:
            return int(self.tape[self.cursor])
        return int.from_bytes(self.tape[self._offsets(width)].tobytes(), 'little')

    def store_int(self, width: int, value: int) -> None:
        value %= 1 << (8 * width)
        if width == CellWidth.BYTE:
            self.tape[self.cursor] = value
        else:
            raw = np.frombuffer(value.to_bytes(width, 'little'), dtype=np.uint8)
            self.tape[self._offsets(width)] = raw

    def increment(self, width: int = CellWidth.BYTE) -> None:
        self.store_int(width, self.load_int(width) + 1)

    def decrement(self, width: int = CellWidth.BYTE) -> None:
        self.store_int(width, self.load_int(width) - 1)

    def is_zero(self, width: int = CellWidth.BYTE) -> bool:
        return self.load_int(width) == 0

    # -- I/O ----------------------------------------------------------------

    def read(self, width: int = CellWidth.BYTE) -> None:
        """Read `width` bytes into the tape; the cursor ends where it started."""
        start = self.cursor
        try:
            for _ in range(width):
                try:
                    chunk = self.instream.read(1)
                except OSError as e:
                    raise BrainfuckIOError(f"failed to read input: {e}") from e
                if not chunk:
                    raise BrainfuckIOError("unexpected end of input")
                self.tape[self.cursor] = chunk[0]
                self.move_forward(CellWidth.BYTE)
        finally:
            self.cursor = start

    def print(self, width: int = CellWidth.BYTE) -> None:
        """Write `width` bytes from the tape; the cursor ends where it started."""
        start = self.cursor
        try:
            for _ in range(width):
                try:
                    self.outstream.write(bytes((int(self.tape[self.cursor]),)))
                except OSError as e:
                    raise BrainfuckIOError(f"failed to write output: {e}") from e
                self.move_forward(CellWidth.BYTE)
        finally:
            self.cursor = start

    # -- execution ----------------------------------------------------------

    def interpret(self, code: Union[bytes, bytearray, str], max_steps: Optional[int] = None) -> None:
        """Execute `code` against the tape.

        The tape and cursor carry over between calls; everything else starts
        fresh. With `max_steps` set, execution stops quietly after that many
        dispatch cycles and `hit_step_limit` is set.
        """
        if isinstance(code, str):
            code = code.encode('utf-8')
        ctx = ExecutionContext()
        self.hit_step_limit = False
        logger.debug("interpreting %d bytes, cursor at %d", len(code), self.cursor)

        try:
            while ctx.pc < len(code):
                if max_steps is not None and ctx.steps >= max_steps:
                    self.hit_step_limit = True
                    logger.debug("step limit %d reached at position %d", max_steps, ctx.pc)
                    break
                command = Command.from_byte(code[ctx.pc])
                self._trace(ctx, command)
                try:
                    jumped = self._dispatch(ctx, command)
                except BrainfuckError as e:
                    if e.position is None:
                        e.position = ctx.pc
                    raise
                ctx.steps += 1

                if ctx.width != CellWidth.BYTE:
                    ctx.pending_reset = not ctx.pending_reset
                    if not ctx.pending_reset:
                        ctx.width = CellWidth.BYTE
                if not jumped:
                    ctx.pc += 1
        finally:
            self.steps = ctx.steps

        if ctx.loop_stack or ctx.skipping_body:
            logger.debug("program ended inside an unterminated loop")
        logger.debug("finished after %d steps, cursor at %d", ctx.steps, self.cursor)

    def _dispatch(self, ctx: ExecutionContext, command: Command) -> bool:
        """Run one instruction. Returns True when the program counter was set."""
        if ctx.skipping_line:
            ctx.skipping_line = command is not Command.NEWLINE
            return False

        if ctx.skipping_body:
            if command is Command.LOOP_OPEN:
                ctx.skip_depth += 1
            elif command is Command.LOOP_CLOSE:
                if ctx.skip_depth == 0:
                    ctx.skipping_body = False
                else:
                    ctx.skip_depth -= 1
            elif command is Command.LINE_COMMENT:
                ctx.skipping_line = True
            return False

        width = ctx.width
        if command is Command.PTR_RIGHT:
            self.move_backward(width)
        elif command is Command.PTR_LEFT:
            self.move_forward(width)
        elif command in _MODIFIERS:
            ctx.width = _MODIFIERS[command]
        elif command is Command.INCREMENT:
            self.increment(width)
        elif command is Command.DECREMENT:
            self.decrement(width)
        elif command is Command.READ:
            self.read(width)
        elif command is Command.PRINT:
            self.print(width)
        elif command is Command.LOOP_OPEN:
            if self.is_zero(width):
                logger.debug("skipping loop body at position %d", ctx.pc)
                ctx.skipping_body = True
                ctx.skip_depth = 0
            else:
                self._push_loop(ctx)
        elif command is Command.LOOP_CLOSE:
            if not ctx.loop_stack:
                raise BrainfuckSyntaxError(f"Unmatched ']' at position {ctx.pc}", position=ctx.pc)
            ctx.pc = ctx.loop_stack.pop()
            return True
        elif command is Command.LINE_COMMENT:
            ctx.skipping_line = True
        return False

    def _push_loop(self, ctx: ExecutionContext) -> None:
        if self.max_loop_depth is not None and len(ctx.loop_stack) >= self.max_loop_depth:
            raise ResourceExhaustedError(
                f"loop nesting exceeds {self.max_loop_depth} at position {ctx.pc}", position=ctx.pc)
        try:
            ctx.loop_stack.append(ctx.pc)
        except MemoryError as e:
            raise ResourceExhaustedError(f"cannot grow loop stack at position {ctx.pc}", position=ctx.pc) from e

    def _trace(self, ctx: ExecutionContext, command: Command) -> None:
        """Called before every dispatch cycle."""
