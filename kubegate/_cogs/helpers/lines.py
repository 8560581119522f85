"""
Incremental splitting of byte streams into text lines.

The chunks of a byte stream come as they are read from the network,
so neither the line terminators nor the multi-byte characters are aligned
with the chunk boundaries. The decoder keeps the state between the chunks:
the codec's own state for the incomplete characters, and the pending
characters of the current (not yet terminated) line.

All three line-ending conventions are recognised, even if mixed in one stream:
``LF``, ``CR``, and ``CRLF``. The latter is a single line break, even if
the ``CR`` and ``LF`` arrive in different chunks.

Usage::

    decoder = LineDecoder('utf-8')
    for chunk in chunks:
        for line in decoder.decode(chunk):
            print(line)
    for line in decoder.flush():
        print(line)
"""
import codecs
import re
from typing import List, Optional

CR = '\r'
LF = '\n'

# The order matters: CRLF must be matched before its halves.
TERMINATORS = re.compile(r'\r\n|\r|\n')


class LineDecoder:
    """
    A stateful decoder of byte chunks into the complete text lines.

    The lines are yielded without their terminators. Empty lines between
    the consecutive terminators are yielded as empty strings. The trailing
    unterminated characters are only yielded on :meth:`flush`.

    The decoder is not thread-safe and is intended for one stream only.
    """

    def __init__(
            self,
            encoding: Optional[str] = None,
            *,
            errors: str = 'strict',
    ) -> None:
        super().__init__()
        self.encoding = encoding or 'utf-8'
        self._decoder = codecs.getincrementaldecoder(self.encoding)(errors=errors)  # LookupError
        self._pending: List[str] = []
        self._after_cr = False  # the previous chunk ended with CR, so LF must be skipped.

    def decode(self, chunk: bytes) -> List[str]:
        """ Consume a chunk of bytes, return the lines completed by it (maybe none). """
        return self._scan(self._decoder.decode(chunk, final=False))

    def flush(self) -> List[str]:
        """ Finish the stream, return the trailing unterminated line (if any). """
        lines = self._scan(self._decoder.decode(b'', final=True))
        if self._pending:
            lines.append(''.join(self._pending))
        self.reset()
        return lines

    def reset(self) -> None:
        self._decoder.reset()
        self._pending.clear()
        self._after_cr = False

    def _scan(self, text: str) -> List[str]:
        if not text:
            return []

        # A CRLF pair split between the chunks: the CR has already ended the line.
        if self._after_cr and text.startswith(LF):
            text = text[1:]
        self._after_cr = text.endswith(CR)

        lines: List[str] = []
        position = 0
        for match in TERMINATORS.finditer(text):
            self._pending.append(text[position:match.start()])
            lines.append(''.join(self._pending))
            self._pending.clear()
            position = match.end()
        if position < len(text):
            self._pending.append(text[position:])
        return lines
