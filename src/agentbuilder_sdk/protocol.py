"""
Chat stream protocol: framing, classification and encoding.

The chat endpoint answers with newline-delimited frames of the form
``<tag>:<payload>``, where the tag identifies the kind of stream part
(text token, tool call, reasoning trace, ...). This module turns raw text
chunks into ``StreamEvent`` objects and back.

Example:
    ```python
    decoder = FrameDecoder()
    for event in decoder.feed('0:"Hel'):
        ...                       # nothing yet, the frame is incomplete
    for event in decoder.feed('lo"\\n9:{"toolName":"search"}\\n'):
        print(event.kind, event.content)
    ```
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from .models import StreamEvent, StreamEventKind

logger = logging.getLogger(__name__)

FRAME_SEPARATOR = ":"

TAG_KINDS: dict[str, StreamEventKind] = {
    "0": StreamEventKind.TEXT,
    "g": StreamEventKind.REASONING,
    "i": StreamEventKind.REDACTED_REASONING,
    "j": StreamEventKind.REASONING_SIGNATURE,
    "h": StreamEventKind.SOURCE,
    "k": StreamEventKind.FILE,
    "2": StreamEventKind.DATA,
    "8": StreamEventKind.ANNOTATION,
    "3": StreamEventKind.ERROR,
    "b": StreamEventKind.TOOL_CALL_START,
    "c": StreamEventKind.TOOL_CALL_DELTA,
    "9": StreamEventKind.TOOL_CALL,
    "a": StreamEventKind.TOOL_RESULT,
    "f": StreamEventKind.STEP_START,
    "e": StreamEventKind.STEP_FINISH,
    "d": StreamEventKind.MESSAGE_FINISH,
}

KIND_TAGS: dict[StreamEventKind, str] = {kind: tag for tag, kind in TAG_KINDS.items()}

# Kinds whose payload is forwarded as the raw string
RAW_KINDS = frozenset({StreamEventKind.REASONING, StreamEventKind.ERROR})


@dataclass(frozen=True)
class LegacyFormat:
    """
    Fallback for streams in the older ``data: <text>`` format.

    Lines starting with ``prefix`` are emitted as text events; a payload equal
    to ``done_sentinel`` ends the whole stream.
    """

    prefix: str = "data:"
    done_sentinel: Optional[str] = "[DONE]"


@dataclass(frozen=True)
class StreamFrame:
    """One protocol line, split into tag and payload but not yet parsed."""

    tag: str
    payload: str

    @classmethod
    def parse(cls, line: str) -> Optional["StreamFrame"]:
        """Split ``line`` at the first separator; ``None`` if there is none."""
        index = line.find(FRAME_SEPARATOR)
        if index == -1:
            return None
        return cls(tag=line[:index], payload=line[index + 1 :])


def split_frames(buffer: str, chunk: str) -> tuple[list[str], str]:
    """
    Append ``chunk`` to ``buffer`` and cut off every complete line.

    Only a literal ``\\n`` ends a frame; carriage returns and other whitespace
    are trimmed from each frame. Blank frames are dropped.

    Args:
        buffer: Text left over from previous chunks (a partial frame, or "")
        chunk: Newly received text

    Returns:
        Tuple of (complete trimmed frames in order, new partial remainder)
    """
    *lines, rest = (buffer + chunk).split("\n")
    frames = [line.strip() for line in lines]
    return [frame for frame in frames if frame], rest


def strip_quotes(payload: str) -> str:
    """Remove one leading and one trailing double quote, if present."""
    if payload.startswith('"'):
        payload = payload[1:]
    if payload.endswith('"'):
        payload = payload[:-1]
    return payload


def parse_payload(kind: StreamEventKind, payload: str) -> Any:
    """
    Parse a frame payload according to its event kind.

    Raises:
        ValueError: If a structured payload is not valid JSON
    """
    if kind is StreamEventKind.TEXT:
        return strip_quotes(payload)
    if kind in RAW_KINDS:
        return payload
    return json.loads(payload)


class FrameDecoder:
    """
    Incremental decoder from text chunks to stream events.

    Holds the partial trailing frame between chunks. A decoder serves one
    stream and is not safe to share.
    """

    def __init__(self, legacy: Optional[LegacyFormat] = LegacyFormat()):
        """
        Initialize the decoder.

        Args:
            legacy: Legacy ``data:`` fallback rules, or None to disable it
        """
        self.legacy = legacy
        self.done = False
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Text received but not yet terminated by a newline."""
        return self._buffer

    def feed(self, chunk: str) -> list[StreamEvent]:
        """
        Decode a chunk of text.

        Args:
            chunk: Newly received text

        Returns:
            Events for every frame completed by this chunk, in stream order
        """
        if self.done:
            return []
        frames, self._buffer = split_frames(self._buffer, chunk)
        events: list[StreamEvent] = []
        for line in frames:
            event = self.decode_line(line)
            if self.done:
                break
            if event is not None:
                events.append(event)
        return events

    def close(self) -> None:
        """Signal end of input, discarding any incomplete trailing frame."""
        if self._buffer.strip():
            logger.debug(f"Discarding incomplete trailing frame: {self._buffer!r}")
        self._buffer = ""
        self.done = True

    def decode_line(self, line: str) -> Optional[StreamEvent]:
        """
        Classify one complete, trimmed, non-empty frame.

        Returns:
            The decoded event, or None if the frame is dropped or ends the stream
        """
        frame = StreamFrame.parse(line)
        if frame is None:
            logger.warning(f"Dropping stream frame without separator: {line!r}")
            return None

        kind = TAG_KINDS.get(frame.tag)
        if kind is None:
            return self._decode_legacy(line)

        try:
            content = parse_payload(kind, frame.payload)
        except ValueError as e:
            logger.warning(f"Dropping malformed {kind.value} frame {line!r}: {e}")
            return None
        return StreamEvent(kind=kind, content=content)

    def _decode_legacy(self, line: str) -> Optional[StreamEvent]:
        if self.legacy is None or not line.startswith(self.legacy.prefix):
            logger.debug(f"Ignoring frame with unknown tag: {line!r}")
            return None
        data = line[len(self.legacy.prefix) :].strip()
        if self.legacy.done_sentinel is not None and data == self.legacy.done_sentinel:
            self.done = True
            return None
        return StreamEvent(kind=StreamEventKind.TEXT, content=data)


def format_frame(kind: StreamEventKind, content: Any) -> str:
    """
    Format a single protocol frame.

    Args:
        kind: The event kind
        content: The event content (text and raw kinds must be strings)

    Returns:
        Formatted frame string, newline terminated
    """
    tag = KIND_TAGS[kind]
    if kind in RAW_KINDS:
        payload = str(content)
    else:
        payload = json.dumps(content, ensure_ascii=False)
    return f"{tag}{FRAME_SEPARATOR}{payload}\n"


def format_event(event: StreamEvent) -> str:
    """Format a ``StreamEvent`` as a protocol frame."""
    return format_frame(event.kind, event.content)
