from dataclasses import dataclass
from io import BytesIO
from typing import Optional, Union

from widebf.brainfuck import BrainfuckError, TapeMachine
from widebf.config import RunConfig

Code = Union[bytes, bytearray, str]


@dataclass
class RunResult:
    output: bytes
    error: Optional[BrainfuckError] = None
    hit_step_limit: bool = False
    steps: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def _settings(step_limit: Optional[int], config: Optional[RunConfig]):
    # an explicit step_limit wins over the config's; both default to BF_* env vars
    if config is None:
        config = RunConfig.from_env()
    return (step_limit if step_limit is not None else config.step_limit), config


def _machine(data: bytes, out: BytesIO, config: RunConfig) -> TapeMachine:
    return TapeMachine(BytesIO(data), out, memory_size=config.memory_size,
                       max_loop_depth=config.max_loop_depth)


def run_once(code: Code, data: bytes = b"", step_limit: Optional[int] = None,
             config: Optional[RunConfig] = None) -> bytes:
    """Execute code on a fresh machine fed with `data`, return everything it printed.
    Engine errors propagate.
    """
    step_limit, config = _settings(step_limit, config)
    out = BytesIO()
    itp = _machine(data, out, config)
    itp.interpret(code, max_steps=step_limit)
    return out.getvalue()


def run_persistent(itp: TapeMachine, code: Code, data: bytes = b"",
                   step_limit: Optional[int] = None, config: Optional[RunConfig] = None) -> bytes:
    """Run code on an existing machine, keeping its tape and cursor.
    Input and output buffers are swapped in for this call only; returns the bytes printed.
    Tape size and loop depth are the machine's own, only the step limit comes from config.
    """
    step_limit, _ = _settings(step_limit, config)
    out = BytesIO()
    instream, outstream = itp.instream, itp.outstream
    itp.instream, itp.outstream = BytesIO(data), out
    try:
        itp.interpret(code, max_steps=step_limit)
    finally:
        itp.instream, itp.outstream = instream, outstream
    return out.getvalue()


def run_result(code: Code, data: bytes = b"", step_limit: Optional[int] = None,
               config: Optional[RunConfig] = None) -> RunResult:
    """Like run_once, but engine errors are captured instead of raised.
    Output printed before a failure is kept in the result.
    """
    step_limit, config = _settings(step_limit, config)
    out = BytesIO()
    itp = _machine(data, out, config)
    error = None
    try:
        itp.interpret(code, max_steps=step_limit)
    except BrainfuckError as e:
        error = e
    return RunResult(output=out.getvalue(), error=error,
                     hit_step_limit=itp.hit_step_limit, steps=itp.steps)
