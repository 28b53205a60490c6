import pytest

from expgolomb import (
    BufferFull,
    ExpGolombDecoder,
    ExpGolombEncoder,
    ExpGolombError,
    I64_MAX,
    I64_MIN,
    InvalidArgument,
    U64_MAX,
)


def test_construction_validation():
    with pytest.raises(InvalidArgument):
        ExpGolombEncoder(bytearray(), 0)
    with pytest.raises(InvalidArgument):
        ExpGolombEncoder(bytearray(1), 8)
    with pytest.raises(InvalidArgument):
        ExpGolombEncoder(bytearray(1), -1)
    for start in range(8):
        ExpGolombEncoder(bytearray(1), start)


def test_read_only_buffer_rejected():
    with pytest.raises(InvalidArgument):
        ExpGolombEncoder(b"\x00\x00", 0)


def test_put_unsigned_at_offset(zeroed):
    buf = zeroed(1)
    enc = ExpGolombEncoder(buf, 1)
    enc.put_unsigned(2)
    enc.close()
    assert buf[0] == 0b00110000


def test_put_unsigned_sequence(zeroed):
    buf = zeroed(6)
    enc = ExpGolombEncoder(buf, 0)
    for i in range(9):
        enc.put_unsigned(i)
    assert enc.close() == (5, 1)
    assert buf == bytearray(
        [0b10100110, 0b01000010, 0b10011000, 0b11100010, 0b00000100, 0b10000000]
    )


def test_put_signed_sequence(zeroed):
    buf = zeroed(6)
    enc = ExpGolombEncoder(buf, 0)
    for v in (0, 1, -1, 2, -2, 3, -3, 4, -4):
        enc.put_signed(v)
    enc.close()
    assert buf == bytearray(
        [0b10100110, 0b01000010, 0b10011000, 0b11100010, 0b00000100, 0b10000000]
    )


def test_put_unsigned_full(zeroed):
    buf = zeroed(1)
    enc = ExpGolombEncoder(buf, 0)
    enc.put_unsigned(1)
    enc.put_unsigned(1)
    with pytest.raises(BufferFull):
        enc.put_unsigned(1)
    # Partial write of the third codeword is kept.
    assert buf[0] == 0b01001001


def test_put_unsigned_full_inside_zero_prefix(zeroed):
    buf = zeroed(1)
    enc = ExpGolombEncoder(buf, 4)
    with pytest.raises(BufferFull):
        enc.put_unsigned(1000)
    assert buf[0] == 0


def test_put_bit(zeroed):
    buf = zeroed(1)
    enc = ExpGolombEncoder(buf, 6)
    enc.put_bit(True)
    enc.put_bit(False)
    with pytest.raises(BufferFull):
        enc.put_bit(True)
    with pytest.raises(BufferFull):
        enc.put_bit(True)
    enc.close()
    assert buf[0] == 0b00000010


def test_close_returns_position(zeroed):
    enc = ExpGolombEncoder(zeroed(1), 2)
    enc.put_unsigned(0)
    assert enc.close() == (0, 3)


def test_closed_encoder_refuses_writes(zeroed):
    enc = ExpGolombEncoder(zeroed(2), 0)
    enc.close()
    with pytest.raises(ExpGolombError):
        enc.put_unsigned(0)
    with pytest.raises(ExpGolombError):
        enc.put_bit(1)


def test_u64_max_takes_129_bits(zeroed):
    buf = zeroed(17)
    enc = ExpGolombEncoder(buf, 7)
    enc.put_unsigned(U64_MAX)
    assert enc.close() == (17, 0)
    # 64 zeros, the terminating 1, then a suffix of 64 ones
    assert buf == bytearray(bytes(8) + bytes([0b00000001]) + b"\xff" * 8)


def test_u64_max_next_to_neighbours(zeroed):
    buf = zeroed(33)
    enc = ExpGolombEncoder(buf, 0)
    enc.put_unsigned(0)
    enc.put_unsigned(U64_MAX)
    enc.put_unsigned(U64_MAX - 1)
    enc.close()
    dec = ExpGolombDecoder(buf, 0)
    assert dec.next_unsigned() == 0
    assert dec.next_unsigned() == U64_MAX
    assert dec.next_unsigned() == U64_MAX - 1


def test_start_bit_must_be_an_integer():
    with pytest.raises(InvalidArgument):
        ExpGolombEncoder(bytearray(1), 7.0)
    with pytest.raises(InvalidArgument):
        ExpGolombEncoder(bytearray(1), "0")


def test_i64_min_encodes_as_u64_max(zeroed):
    buf_signed = zeroed(17)
    enc = ExpGolombEncoder(buf_signed, 0)
    enc.put_signed(I64_MIN)
    enc.close()
    buf_unsigned = zeroed(17)
    enc = ExpGolombEncoder(buf_unsigned, 0)
    enc.put_unsigned(U64_MAX)
    enc.close()
    assert buf_signed == buf_unsigned


def test_out_of_range_values_rejected(zeroed):
    enc = ExpGolombEncoder(zeroed(32), 0)
    with pytest.raises(InvalidArgument):
        enc.put_unsigned(-1)
    with pytest.raises(InvalidArgument):
        enc.put_unsigned(U64_MAX + 1)
    with pytest.raises(InvalidArgument):
        enc.put_signed(I64_MAX + 1)
    with pytest.raises(InvalidArgument):
        enc.put_signed(I64_MIN - 1)
    assert enc.close() == (0, 0)


def test_continue_from_closed_position(zeroed):
    buf = zeroed(2)
    enc = ExpGolombEncoder(buf, 0)
    enc.put_unsigned(6)
    enc.put_unsigned(0)
    byte_index, bit_offset = enc.close()
    enc = ExpGolombEncoder(memoryview(buf)[byte_index:], bit_offset)
    enc.put_unsigned(2)
    enc.close()
    # 00111 | 1 | 011
    assert buf == bytearray([0b00111101, 0b10000000])
