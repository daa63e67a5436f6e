from widebf.brainfuck import (
    BrainfuckError,
    BrainfuckIOError,
    BrainfuckSyntaxError,
    CellWidth,
    Command,
    ResourceExhaustedError,
    TapeMachine,
)

__all__ = [
    "BrainfuckError",
    "BrainfuckIOError",
    "BrainfuckSyntaxError",
    "CellWidth",
    "Command",
    "ResourceExhaustedError",
    "TapeMachine",
]
