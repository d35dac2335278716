"""RFC 2426 line folding for vCard 3.0 content lines."""

from typing import Iterable

CRLF = b"\r\n"

# First physical line may hold 75 octets; continuation lines hold 74 plus the
# leading space.
FIRST_LINE_OCTETS = 75
CONTINUATION_OCTETS = 74


def fold(unfolded: str | bytes) -> list[bytes]:
    """Fold a content line into CRLF-terminated physical lines.

    Folding counts raw octets, not characters. A ``str`` is UTF-8 encoded
    first, so a multi-byte sequence may end up split across two lines.

    Args:
        unfolded: The full content line, e.g. ``PHOTO;TYPE=jpeg;ENCODING=b:...``

    Returns:
        List of physical lines, each ending with CRLF. Continuation lines
        start with a single space.
    """
    if isinstance(unfolded, str):
        unfolded = unfolded.encode("utf-8")

    lines = [unfolded[:FIRST_LINE_OCTETS] + CRLF]
    rest = unfolded[FIRST_LINE_OCTETS:]
    for start in range(0, len(rest), CONTINUATION_OCTETS):
        lines.append(b" " + rest[start:start + CONTINUATION_OCTETS] + CRLF)
    return lines


def unfold(folded: bytes | Iterable[bytes]) -> bytes:
    """Join folded physical lines back into the original content line.

    Accepts either the list returned by :func:`fold` or the concatenated
    bytes of such a list.
    """
    if isinstance(folded, (bytes, bytearray)):
        folded = bytes(folded).split(CRLF)
        if folded and folded[-1] == b"":
            folded.pop()
    else:
        folded = [line[:-2] if line.endswith(CRLF) else line for line in folded]

    parts = []
    for index, line in enumerate(folded):
        if index > 0 and line.startswith(b" "):
            line = line[1:]
        parts.append(line)
    return b"".join(parts)
