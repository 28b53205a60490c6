"""Exponential-Golomb coding of 64-bit integers over byte buffers.

A codeword is ``k`` zero bits, a terminating ``1`` bit, then ``k`` suffix
bits (MSB first) and carries the unsigned value ``2**k - 1 + suffix``, except
that a 64-bit prefix carries the value itself in its suffix.
Signed values use the interleaved mapping ``0, 1, -1, 2, -2, ...``.

Decoders and encoders borrow a caller-owned buffer and may start at any
bit of its first byte.
"""

import logging
from typing import Union

from bitops import (
    BitPosition,
    BitReader,
    BitWriter,
    BufferFull,
    EndOfStream,
    ExpGolombError,
    InvalidArgument,
    Overflow,
)

__all__ = [
    "BitPosition",
    "BufferFull",
    "EndOfStream",
    "ExpGolombDecoder",
    "ExpGolombEncoder",
    "ExpGolombError",
    "InvalidArgument",
    "Overflow",
    "signed_length",
    "signed_to_unsigned",
    "unsigned_length",
    "unsigned_to_signed",
]

logger = logging.getLogger(__name__)

U64_MAX = (1 << 64) - 1  #: Largest encodable unsigned value
I64_MIN = -(1 << 63)  #: Smallest encodable signed value
I64_MAX = (1 << 63) - 1  #: Largest encodable signed value
MAX_PREFIX_BITS = 64  #: Longest zero prefix of a codeword that fits 64 bits

Buffer = Union[bytes, bytearray, memoryview]


def _check_unsigned(value: int):
    if not 0 <= value <= U64_MAX:
        raise InvalidArgument(f"{value} is outside the unsigned 64-bit range")


def _check_signed(value: int):
    if not I64_MIN <= value <= I64_MAX:
        raise InvalidArgument(f"{value} is outside the signed 64-bit range")


def _check_buffer(buf: Buffer, start: int):
    if len(buf) == 0:
        raise InvalidArgument("Buffer is empty")
    if not isinstance(start, int) or isinstance(start, bool):
        raise InvalidArgument(f"Start bit {start!r} is not an integer")
    if not 0 <= start <= 7:
        raise InvalidArgument(f"Start bit {start} is outside [0, 7]")


def unsigned_to_signed(value: int) -> int:
    """Map an unsigned codeword value to its signed counterpart.

    Odd values map to positive numbers and even values to negative ones,
    each with magnitude ``ceil(value / 2)``. The one magnitude that does
    not fit the signed range, ``2**63`` from ``U64_MAX``, wraps to
    ``I64_MIN`` so the mapping stays a bijection over 64 bits.

    :param value: Unsigned value in ``[0, U64_MAX]``.
    :type value: int
    :returns: Signed value in ``[I64_MIN, I64_MAX]``.
    :rtype: int
    :raises InvalidArgument: If ``value`` is outside the unsigned range.
    """
    _check_unsigned(value)
    magnitude = value // 2 + value % 2
    if value % 2 == 0:
        return -magnitude
    if magnitude > I64_MAX:
        return magnitude - (1 << 64)
    return magnitude


def signed_to_unsigned(value: int) -> int:
    """Inverse of :func:`unsigned_to_signed`.

    :param value: Signed value in ``[I64_MIN, I64_MAX]``.
    :type value: int
    :returns: Unsigned value in ``[0, U64_MAX]``.
    :rtype: int
    :raises InvalidArgument: If ``value`` is outside the signed range.
    """
    _check_signed(value)
    if value == I64_MIN:
        return U64_MAX
    if value > 0:
        return 2 * value - 1
    return -2 * value


def unsigned_length(value: int) -> int:
    """Return the length in bits of the codeword for ``value``."""
    _check_unsigned(value)
    return ((value + 1).bit_length() - 1) * 2 + 1


def signed_length(value: int) -> int:
    """Return the length in bits of the codeword for signed ``value``."""
    return unsigned_length(signed_to_unsigned(value))


class ExpGolombDecoder:
    """Exp-Golomb reader over a borrowed buffer.

    Reads may freely mix raw bits (:meth:`next_bit`) with codewords.

    :ivar reader: Bit cursor over the source buffer.
    :type reader: BitReader
    """

    def __init__(self, buf: Buffer, start: int = 0):
        """Bind a decoder to ``buf``, starting at bit ``start`` of ``buf[0]``.

        :param buf: Non-empty source buffer.
        :type buf: bytes | bytearray | memoryview
        :param start: Starting bit inside the first byte, 0 (MSB) to 7.
        :type start: int
        :returns: None
        :rtype: None
        :raises InvalidArgument: If ``buf`` is empty or ``start`` is not in ``[0, 7]``.
        """
        _check_buffer(buf, start)
        self.reader = BitReader(buf, start)
        logger.debug("decoder over %d bytes from bit %d", len(buf), start)

    @property
    def position(self) -> BitPosition:
        """Current read position.

        :rtype: BitPosition
        """
        return self.reader.position

    def next_bit(self) -> int:
        """Read the next raw bit (e.g. a flag).

        :returns: ``0`` or ``1``.
        :rtype: int
        :raises EndOfStream: If the buffer is exhausted.
        """
        return self.reader.read_bit()

    def _count_leading_zeros(self) -> int:
        zeros = 0
        while self.reader.read_bit() == 0:
            zeros += 1
            # Fail on the 65th zero, before any suffix bit is consumed.
            if zeros > MAX_PREFIX_BITS:
                logger.debug("codeword prefix longer than %d bits", MAX_PREFIX_BITS)
                raise Overflow(f"Codeword prefix exceeds {MAX_PREFIX_BITS} bits")
        return zeros

    def next_unsigned(self) -> int:
        """Read the next codeword as an unsigned integer.

        A 64-bit prefix is followed by the value itself as a 64-bit
        suffix, so ``U64_MAX`` is 64 zeros, a ``1`` and 64 ones.

        After :class:`EndOfStream` is raised from inside a codeword the
        cursor position is unspecified; do not resume reading from it.

        :returns: Decoded value in ``[0, U64_MAX]``.
        :rtype: int
        :raises EndOfStream: If the buffer ends before the codeword does.
        :raises Overflow: If the zero prefix is longer than 64 bits.
        """
        k = self._count_leading_zeros()
        suffix = 0
        for _ in range(k):
            suffix = (suffix << 1) | self.reader.read_bit()
        if k == MAX_PREFIX_BITS:
            return suffix
        return (1 << k) - 1 + suffix

    def next_signed(self) -> int:
        """Read the next codeword as a signed integer.

        :returns: Decoded value in ``[I64_MIN, I64_MAX]``.
        :rtype: int
        :raises EndOfStream: If the buffer ends before the codeword does.
        :raises Overflow: If the zero prefix is longer than 64 bits.
        """
        return unsigned_to_signed(self.next_unsigned())

    def skip_next(self):
        """Skip over the next codeword without decoding its value.

        Only the prefix is read; the suffix is skipped in one step. A
        truncated or oversized codeword at the end of the buffer is not an
        error: the cursor just moves as far as it can.

        :returns: None
        :rtype: None
        """
        try:
            k = self._count_leading_zeros()
        except (EndOfStream, Overflow) as exc:
            logger.debug("skip_next stopped early: %s", exc)
            return
        self.reader.skip_bits(k)


class ExpGolombEncoder:
    """Exp-Golomb writer over a borrowed, pre-zeroed, mutable buffer.

    Writes are not rolled back on failure: after :class:`BufferFull` the
    buffer holds a truncated stream and the same call must not be retried.
    """

    def __init__(self, buf: Buffer, start: int = 0):
        """Bind an encoder to ``buf``, starting at bit ``start`` of ``buf[0]``.

        :param buf: Non-empty, writable, zero-filled destination buffer.
        :type buf: bytearray | memoryview
        :param start: Starting bit inside the first byte, 0 (MSB) to 7.
        :type start: int
        :returns: None
        :rtype: None
        :raises InvalidArgument: If ``buf`` is empty or read-only, or
                                 ``start`` is not in ``[0, 7]``.
        """
        _check_buffer(buf, start)
        if memoryview(buf).readonly:
            raise InvalidArgument("Buffer is read-only")
        self.writer = BitWriter(buf, start)
        logger.debug("encoder over %d bytes from bit %d", len(buf), start)

    def _cursor(self) -> BitWriter:
        if self.writer is None:
            raise ExpGolombError("Encoder is closed")
        return self.writer

    @property
    def position(self) -> BitPosition:
        """Current write position; unavailable once closed.

        :rtype: BitPosition
        :raises ExpGolombError: If the encoder is closed.
        """
        return self._cursor().position

    def put_unsigned(self, value: int):
        """Append the codeword for an unsigned integer.

        :param value: Value in ``[0, U64_MAX]``.
        :type value: int
        :returns: None
        :rtype: None
        :raises InvalidArgument: If ``value`` is outside the unsigned range.
        :raises BufferFull: If the buffer is exhausted part-way.
        """
        _check_unsigned(value)
        writer = self._cursor()
        xp1 = value + 1
        if xp1 > U64_MAX:
            # Only U64_MAX needs a 64-bit prefix; its suffix is the value itself.
            xp1 = (1 << MAX_PREFIX_BITS) | value
        nbits = xp1.bit_length()
        nbytes = (nbits + 7) // 8
        writer.write_zeros(nbits - 1)
        # Leading bit of xp1 is the terminating 1 of the prefix.
        writer.write_bytes(xp1.to_bytes(nbytes, "big"), nbytes * 8 - nbits)

    def put_signed(self, value: int):
        """Append the codeword for a signed integer.

        :param value: Value in ``[I64_MIN, I64_MAX]``.
        :type value: int
        :returns: None
        :rtype: None
        :raises InvalidArgument: If ``value`` is outside the signed range.
        :raises BufferFull: If the buffer is exhausted part-way.
        """
        self.put_unsigned(signed_to_unsigned(value))

    def put_bit(self, value: int):
        """Append a single raw bit.

        :raises BufferFull: If the buffer is exhausted.
        """
        self._cursor().write_bit(value)

    def close(self) -> BitPosition:
        """Finish encoding and return the position after the last written bit.

        The position can seed a new encoder (``start=bit_offset`` on the
        buffer sliced at ``byte_index``) or give the total bit count via
        :attr:`BitPosition.bits`. The encoder accepts no writes afterwards.

        :returns: Final cursor position.
        :rtype: BitPosition
        """
        position = self._cursor().position
        self.writer = None
        logger.debug("encoder closed at %s", position)
        return position
