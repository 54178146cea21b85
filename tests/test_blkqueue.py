import pytest

from rvkern.blkqueue import (
    VIOBLK_ATTEMPT_MAX,
    VIOBLK_SECTOR_SIZE,
    BlockBackend,
    BlockIOError,
    BlockStatus,
    RequestHeader,
    RequestType,
)
from rvkern.errors import ErrorCode


def _disk(sectors=8):
    return bytearray(bytes(range(256)) * (sectors * VIOBLK_SECTOR_SIZE // 256))


def test_header_round_trip():
    header = RequestHeader(RequestType.OUT, 0, 12345)
    packed = header.pack()
    assert len(packed) == RequestHeader.SIZE
    assert RequestHeader.unpack(packed) == header


def test_header_wire_layout():
    packed = RequestHeader(RequestType.OUT, 0, 2).pack()
    assert packed[:4] == bytes([RequestType.OUT, 0, 0, 0])
    assert packed[8] == 2


def test_header_wrong_length():
    with pytest.raises(ValueError):
        RequestHeader.unpack(b"\0" * 3)


def test_read_block_copies_storage():
    disk = _disk()
    backend = BlockBackend(disk)
    buf = bytearray(VIOBLK_SECTOR_SIZE)
    assert backend.request(2, RequestType.IN, buf) == 1
    assert bytes(buf) == bytes(disk[2 * VIOBLK_SECTOR_SIZE : 3 * VIOBLK_SECTOR_SIZE])


def test_write_then_read_back():
    backend = BlockBackend(bytearray(4 * VIOBLK_SECTOR_SIZE))
    data = bytearray(b"\xab" * VIOBLK_SECTOR_SIZE)
    backend.request(1, RequestType.OUT, data)
    out = bytearray(VIOBLK_SECTOR_SIZE)
    backend.request(1, RequestType.IN, out)
    assert out == data
    assert backend.storage[:VIOBLK_SECTOR_SIZE] == bytes(VIOBLK_SECTOR_SIZE)


def test_large_block_maps_to_sector():
    backend = BlockBackend(_disk(8), block_size=2 * VIOBLK_SECTOR_SIZE)
    buf = bytearray(2 * VIOBLK_SECTOR_SIZE)
    backend.request(1, RequestType.IN, buf)
    assert backend.last_header.sector == 2
    assert backend.capacity_sectors() == 8


def test_block_size_must_be_sector_multiple():
    with pytest.raises(ValueError):
        BlockBackend(_disk(), block_size=700)


def test_buffer_length_checked():
    backend = BlockBackend(_disk())
    with pytest.raises(ValueError):
        backend.request(0, RequestType.IN, bytearray(10))


def test_block_past_end_rejected():
    backend = BlockBackend(_disk(4))
    with pytest.raises(BlockIOError) as info:
        backend.request(4, RequestType.IN, bytearray(VIOBLK_SECTOR_SIZE))
    assert info.value.code == ErrorCode.EINVAL


def test_transient_faults_are_retried():
    backend = BlockBackend(_disk())
    backend.injected_faults.extend([BlockStatus.IOERR] * 3)
    buf = bytearray(VIOBLK_SECTOR_SIZE)
    assert backend.request(0, RequestType.IN, buf) == 4
    assert backend.submissions == 4


def test_persistent_faults_raise_eio():
    backend = BlockBackend(_disk())
    backend.injected_faults.extend([BlockStatus.IOERR] * VIOBLK_ATTEMPT_MAX)
    with pytest.raises(BlockIOError) as info:
        backend.request(0, RequestType.IN, bytearray(VIOBLK_SECTOR_SIZE))
    assert info.value.code == ErrorCode.EIO
    assert backend.submissions == VIOBLK_ATTEMPT_MAX


def test_unknown_request_type_unsupported():
    backend = BlockBackend(_disk())
    status = backend.submit(7, 0, bytearray(VIOBLK_SECTOR_SIZE))
    assert status is BlockStatus.UNSUPP


def test_submit_out_of_range_is_ioerr():
    backend = BlockBackend(_disk(2))
    status = backend.submit(RequestType.IN, 2, bytearray(VIOBLK_SECTOR_SIZE))
    assert status is BlockStatus.IOERR