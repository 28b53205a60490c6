import logging
from typing import NamedTuple

logger = logging.getLogger(__name__)


class ExpGolombError(Exception):
    """Base class for every error raised by the bit cursors and the codec."""


class InvalidArgument(ExpGolombError, ValueError):
    """Bad construction parameter or a value outside the 64-bit domain."""


class EndOfStream(ExpGolombError, EOFError):
    """The buffer ended before a read could complete."""


class Overflow(ExpGolombError, OverflowError):
    """A codeword prefix is longer than 64 bits."""


class BufferFull(ExpGolombError):
    """The destination buffer was exhausted in the middle of a write."""


class BitPosition(NamedTuple):
    """Cursor position inside a buffer.

    :ivar byte_index: Index of the current byte; equal to the buffer length
                      once the buffer is exhausted.
    :type byte_index: int
    :ivar bit_offset: Offset of the next bit inside the current byte,
                      0 (MSB) to 7 (LSB).
    :type bit_offset: int
    """

    byte_index: int
    bit_offset: int

    @property
    def bits(self) -> int:
        """Absolute bit offset from the start of the buffer."""
        return self.byte_index * 8 + self.bit_offset


class BitReader:
    """MSB-first bit cursor over a borrowed, read-only buffer.

    The cursor never moves past the end of ``data``: once the last bit has
    been consumed every further read raises :class:`EndOfStream`.

    :ivar data: Source buffer (any bytes-like object indexable by byte).
    :type data: bytes
    :ivar pos: Current byte index in ``data``.
    :type pos: int
    :ivar bit_pos: Offset of the next bit inside ``data[pos]`` (0-7).
    :type bit_pos: int
    """

    def __init__(self, data: bytes, start: int = 0):
        """Create a reader positioned at bit ``start`` of the first byte.

        :param data: Buffer to read from.
        :type data: bytes
        :param start: Starting bit inside the first byte, 0 (MSB) to 7.
        :type start: int
        :returns: None
        :rtype: None
        """
        self.data = data
        self.pos = 0
        self.bit_pos = start

    @property
    def position(self) -> BitPosition:
        """Current cursor position.

        :rtype: BitPosition
        """
        return BitPosition(self.pos, self.bit_pos)

    def read_bit(self) -> int:
        """Read one bit and advance the cursor.

        :returns: ``0`` or ``1``.
        :rtype: int
        :raises EndOfStream: If every bit of the buffer has been consumed.
        """
        if self.pos >= len(self.data):
            logger.debug("read past end of %d-byte buffer", len(self.data))
            raise EndOfStream("Unexpected end of data")
        bit = (self.data[self.pos] >> (7 - self.bit_pos)) & 1
        self.bit_pos += 1
        if self.bit_pos == 8:
            self.bit_pos = 0
            self.pos += 1
        return bit

    def skip_bits(self, nbits: int):
        """Advance the cursor by ``nbits`` without reading them.

        Skipping is best-effort: if ``nbits`` runs past the end of the
        buffer the byte index is clamped to the buffer length and no error
        is raised.

        :param nbits: Number of bits to skip.
        :type nbits: int
        :returns: None
        :rtype: None
        """
        offset = self.bit_pos + nbits
        self.pos = min(len(self.data), self.pos + offset // 8)
        self.bit_pos = offset % 8


class BitWriter:
    """MSB-first bit cursor over a borrowed, mutable, pre-zeroed buffer.

    Bits are ORed into place, so a ``1`` can be set but a bit that is
    already set is never cleared. The buffer must be zero-filled by the
    caller over the range that will be written.

    :ivar buffer: Destination buffer (``bytearray`` or writable ``memoryview``).
    :type buffer: bytearray
    :ivar pos: Current byte index in ``buffer``.
    :type pos: int
    :ivar bit_pos: Offset of the next bit inside ``buffer[pos]`` (0-7).
    :type bit_pos: int
    """

    def __init__(self, buffer: bytearray, start: int = 0):
        """Create a writer positioned at bit ``start`` of the first byte.

        :param buffer: Buffer to write into.
        :type buffer: bytearray
        :param start: Starting bit inside the first byte, 0 (MSB) to 7.
        :type start: int
        :returns: None
        :rtype: None
        """
        self.buffer = buffer
        self.pos = 0
        self.bit_pos = start

    @property
    def position(self) -> BitPosition:
        """Current cursor position.

        :rtype: BitPosition
        """
        return BitPosition(self.pos, self.bit_pos)

    def _check_room(self):
        if self.pos >= len(self.buffer):
            logger.debug("write past end of %d-byte buffer", len(self.buffer))
            raise BufferFull("Destination buffer is full")

    def _advance(self, nbits: int):
        self.bit_pos += nbits
        if self.bit_pos >= 8:
            self.bit_pos -= 8
            self.pos += 1

    def write_bit(self, value: int):
        """Write one bit at the cursor and advance.

        :param value: Bit to write; any truthy value writes ``1``.
        :type value: int
        :returns: None
        :rtype: None
        :raises BufferFull: If the cursor is at the end of the buffer.
        """
        self._check_room()
        if value:
            self.buffer[self.pos] |= 0x80 >> self.bit_pos
        self._advance(1)

    def write_zeros(self, nbits: int):
        """Advance over ``nbits`` zero bits.

        Zero bits need no OR into the buffer, so only the cursor moves. The
        outcome matches writing the bits one by one: when the run does not
        fit, the cursor stops at the end of the buffer and
        :class:`BufferFull` is raised.

        :param nbits: Number of zero bits to write.
        :type nbits: int
        :returns: None
        :rtype: None
        :raises BufferFull: If the buffer ends before ``nbits`` bits are written.
        """
        if nbits <= 0:
            return
        self._check_room()
        end = self.pos * 8 + self.bit_pos + nbits
        if end > len(self.buffer) * 8:
            self.pos = len(self.buffer)
            self.bit_pos = 0
            self._check_room()
        self.pos, self.bit_pos = divmod(end, 8)

    def write_bytes(self, data: bytes, start_bit: int = 0):
        """Write a contiguous run of bits taken from ``data``.

        The run starts at bit ``start_bit`` (0 = MSB) of ``data[0]`` and
        ends with the LSB of the last byte. Bits are packed across
        destination byte boundaries in as few OR operations as possible.

        The write is not atomic: if the destination fills up part-way, the
        bits written so far remain set.

        :param data: Source bytes.
        :type data: bytes
        :param start_bit: First bit to take from ``data[0]`` (0-7).
        :type start_bit: int
        :returns: None
        :rtype: None
        :raises BufferFull: As soon as the destination is exhausted.
        """
        for byte in data:
            while start_bit < 8:
                self._check_room()
                chunk = ((byte << start_bit) & 0xFF) >> self.bit_pos
                self.buffer[self.pos] |= chunk
                step = 8 - max(self.bit_pos, start_bit)
                self._advance(step)
                start_bit += step
            start_bit -= 8
