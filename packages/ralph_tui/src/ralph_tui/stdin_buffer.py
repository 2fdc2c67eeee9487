"""
StdinBuffer splits raw terminal input into complete key sequences.

A single read can carry several keypresses (fast typing, auto-repeat), and
an escape sequence can be split across reads:

- Read 1: `\\x1b`
- Read 2: `[5`
- Read 3: `~`

The buffer keeps an incomplete escape prefix until more data arrives or
the caller decides the wait is over and calls `flush()`.

Bracketed paste (`ESC[200~ ... ESC[201~`) is collected into one chunk so
pasted text never gets interpreted as keystrokes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal


ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

SequenceStatus = Literal["complete", "incomplete", "not-escape"]

_SGR_MOUSE = re.compile(r"^<\d+;\d+;\d+[Mm]$")


def _is_complete_csi_sequence(data: str) -> Literal["complete", "incomplete"]:
    """Check if CSI sequence is complete.

    CSI sequences: ESC [ ... followed by a final byte (0x40-0x7E)
    """
    if len(data) < 3:
        return "incomplete"

    payload = data[2:]

    # Linux console function keys: ESC [ [ A
    if payload.startswith("["):
        return "complete" if len(payload) >= 2 else "incomplete"

    last_char_code = ord(payload[-1])
    if not 0x40 <= last_char_code <= 0x7E:
        return "incomplete"

    # SGR mouse reports contain ';' and end in M/m
    if payload.startswith("<"):
        return "complete" if _SGR_MOUSE.match(payload) else "incomplete"

    return "complete"


def _is_complete_string_sequence(data: str) -> Literal["complete", "incomplete"]:
    """Check OSC/DCS/APC strings, which end with ST (ESC \\) or BEL."""
    if data.endswith(f"{ESC}\\") or (data[1] == "]" and data.endswith("\x07")):
        return "complete"
    return "incomplete"


def is_complete_sequence(data: str) -> SequenceStatus:
    """Check if a string is a complete escape sequence or needs more data."""
    if not data.startswith(ESC):
        return "not-escape"

    if len(data) == 1:
        return "incomplete"

    introducer = data[1]

    if introducer == "[":
        # X10 mouse: ESC [ M + 3 bytes
        if data.startswith(f"{ESC}[M"):
            return "complete" if len(data) >= 6 else "incomplete"
        return _is_complete_csi_sequence(data)

    if introducer in ("]", "P", "_"):
        return _is_complete_string_sequence(data)

    # SS3: ESC O followed by a single character
    if introducer == "O":
        return "complete" if len(data) >= 3 else "incomplete"

    # Meta key: ESC followed by a single character
    return "complete"


@dataclass
class ExtractResult:
    """Result of extracting complete sequences from buffer."""
    sequences: list[str] = field(default_factory=list)
    remainder: str = ""


def extract_complete_sequences(buffer: str) -> ExtractResult:
    """Split accumulated buffer into complete sequences."""
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        remaining = buffer[pos:]

        if not remaining.startswith(ESC):
            sequences.append(remaining[0])
            pos += 1
            continue

        seq_end = 1
        while seq_end <= len(remaining):
            status = is_complete_sequence(remaining[:seq_end])
            if status == "incomplete":
                seq_end += 1
                continue
            sequences.append(remaining[:seq_end])
            pos += seq_end
            break
        else:
            return ExtractResult(sequences=sequences, remainder=remaining)

    return ExtractResult(sequences=sequences, remainder="")


@dataclass(frozen=True)
class InputChunk:
    """One complete unit of input: a key sequence or a pasted block."""
    kind: Literal["key", "paste"]
    data: str


class StdinBuffer:
    """
    Buffers raw input and returns complete sequences in arrival order.

    Usage:
        buffer = StdinBuffer()
        for chunk in buffer.process("\\x1b[A\\x1b[B"):
            ...
        if buffer.pending:
            # wait briefly for the rest of an escape sequence, then:
            chunks = buffer.flush()
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._paste_mode = False
        self._paste_buffer = ""

    @property
    def pending(self) -> bool:
        """True while an escape prefix or a paste block awaits more data."""
        return bool(self._buffer) or self._paste_mode

    def process(self, data: str) -> list[InputChunk]:
        """
        Feed input data.

        Args:
            data: Decoded text read from the terminal

        Returns:
            Complete chunks, oldest first
        """
        chunks: list[InputChunk] = []
        self._buffer += data

        while self._buffer:
            if self._paste_mode:
                self._paste_buffer += self._buffer
                self._buffer = ""
                end_index = self._paste_buffer.find(BRACKETED_PASTE_END)
                if end_index == -1:
                    break
                chunks.append(InputChunk("paste", self._paste_buffer[:end_index]))
                self._buffer = self._paste_buffer[end_index + len(BRACKETED_PASTE_END):]
                self._paste_mode = False
                self._paste_buffer = ""
                continue

            start_index = self._buffer.find(BRACKETED_PASTE_START)
            if start_index == -1:
                result = extract_complete_sequences(self._buffer)
                chunks.extend(InputChunk("key", seq) for seq in result.sequences)
                self._buffer = result.remainder
                break

            before_paste = self._buffer[:start_index]
            if before_paste:
                result = extract_complete_sequences(before_paste)
                chunks.extend(InputChunk("key", seq) for seq in result.sequences)
                # An escape prefix cut off by the paste marker is a lone key
                if result.remainder:
                    chunks.append(InputChunk("key", result.remainder))
            self._buffer = self._buffer[start_index + len(BRACKETED_PASTE_START):]
            self._paste_mode = True

        return chunks

    def flush(self) -> list[InputChunk]:
        """Give up waiting and return whatever is buffered."""
        chunks: list[InputChunk] = []
        if self._paste_mode:
            chunks.append(InputChunk("paste", self._paste_buffer + self._buffer))
        elif self._buffer:
            chunks.append(InputChunk("key", self._buffer))
        self.clear()
        return chunks

    def clear(self) -> None:
        """Drop buffered data and leave paste mode."""
        self._buffer = ""
        self._paste_mode = False
        self._paste_buffer = ""

    def get_buffer(self) -> str:
        """Get the current buffer contents."""
        return self._buffer
