#!/usr/bin/env python3
"""
Wide-cell Brainfuck Step Tracer

Shows the step-by-step execution of a program, displaying the instruction,
the active cell width and the memory tape around the pointer before each step.
"""

import sys

from widebf.brainfuck import Command, ExecutionContext, TapeMachine


class BrainfuckDebugger(TapeMachine):
    """Tape machine that writes a trace of every dispatch cycle."""

    def __init__(self, instream, outstream, trace_stream=None, show_memory_range=10,
                 max_trace_steps=100, **kwargs):
        super().__init__(instream, outstream, **kwargs)
        self.trace_stream = trace_stream if trace_stream is not None else sys.stderr
        self.show_memory_range = show_memory_range
        self.max_trace_steps = max_trace_steps
        self._code = b""

    def interpret(self, code, max_steps=None):
        if isinstance(code, str):
            code = code.encode('utf-8')
        self._code = code
        try:
            super().interpret(code, max_steps=max_steps)
        finally:
            if self.steps > self.max_trace_steps:
                self._emit(f"... trace stopped after {self.max_trace_steps} of {self.steps} steps")

    def _trace(self, ctx: ExecutionContext, command: Command) -> None:
        if ctx.steps >= self.max_trace_steps:
            return
        char = chr(self._code[ctx.pc])
        mode = ""
        if ctx.skipping_line:
            mode = " [comment]"
        elif ctx.skipping_body:
            mode = f" [skipping, depth {ctx.skip_depth}]"
        self._emit(f"Step {ctx.steps + 1}: {char!r} ({command.name}) at position {ctx.pc}"
                   f" width={int(ctx.width)} loops={len(ctx.loop_stack)}{mode}")
        self._show_state()

    def _show_state(self):
        """Show memory around the pointer."""
        half = self.show_memory_range // 2
        start = self.cursor - half
        window = self.memory_window(start, self.show_memory_range)
        size = len(self.tape)

        memory_vals = []
        memory_ptrs = []
        memory_addrs = []
        for idx, value in enumerate(window):
            addr = (start + idx) % size
            memory_vals.append(f"{int(value):3d}")
            memory_ptrs.append(" ^ " if addr == self.cursor else "   ")
            memory_addrs.append(f"{addr:5d}")

        self._emit("  Memory:   [" + "|".join(f"{v:>5}" for v in memory_vals) + "]")
        self._emit("  Pointer:   " + " ".join(f"{p:>5}" for p in memory_ptrs))
        self._emit("  Address:   " + " ".join(memory_addrs))

    def _emit(self, line):
        print(line, file=self.trace_stream)
