import pytest

from rvkern.fslayout import (
    BLOCK_SIZE,
    MAX_DIR_ENTRIES,
    MAX_FILE_NAME_LENGTH,
    MAX_INODES,
    BootBlock,
    Dentry,
    Inode,
)


def test_dentry_is_64_bytes():
    assert len(Dentry("trek", 1).pack()) == 64


def test_dentry_wire_layout():
    raw = Dentry("trek", 1).pack()
    assert raw[:MAX_FILE_NAME_LENGTH] == b"trek" + bytes(MAX_FILE_NAME_LENGTH - 4)
    assert raw[32:36] == (1).to_bytes(4, "little")
    assert raw[36:] == bytes(64 - 36)


def test_dentry_round_trip():
    entry = Dentry("helloworld.txt", 7)
    assert Dentry.unpack(entry.pack()) == entry


def test_dentry_full_length_name_round_trip():
    name = "n" * MAX_FILE_NAME_LENGTH
    raw = Dentry(name, 3).pack()
    assert b"\0" not in raw[:MAX_FILE_NAME_LENGTH]
    assert Dentry.unpack(raw).file_name == name


def test_dentry_name_too_long():
    with pytest.raises(ValueError):
        Dentry("x" * (MAX_FILE_NAME_LENGTH + 1), 0).pack()


def test_dentry_bad_length():
    with pytest.raises(ValueError):
        Dentry.unpack(bytes(10))


def test_dentry_negative_inode():
    with pytest.raises(ValueError):
        Dentry("a", -1).pack()


def test_boot_block_fills_one_block():
    block = BootBlock(3, 3, 14, [Dentry("helloworld.txt", 0)])
    assert len(block.pack()) == BLOCK_SIZE


def test_boot_block_header_layout():
    raw = BootBlock(3, 3, 14).pack()
    assert raw[0:4] == (3).to_bytes(4, "little")
    assert raw[8:12] == (14).to_bytes(4, "little")


def test_boot_block_round_trip():
    block = BootBlock(
        3,
        3,
        14,
        [Dentry("helloworld.txt", 0), Dentry("trek", 1), Dentry("enum.txt", 2)],
    )
    assert BootBlock.unpack(block.pack()) == block


def test_boot_block_keeps_entries_when_count_changed():
    block = BootBlock(3, 3, 14, [Dentry("a", 0), Dentry("b", 1), Dentry("c", 2)])
    block.num_dentry = 4
    again = BootBlock.unpack(block.pack())
    assert again.num_dentry == 4
    assert again.num_inodes == 3
    assert again.dir_entries == block.dir_entries


def test_boot_block_too_many_entries():
    entries = [Dentry(str(k), k) for k in range(MAX_DIR_ENTRIES + 1)]
    with pytest.raises(ValueError):
        BootBlock(len(entries), len(entries), 0, entries).pack()


def test_boot_block_bad_length():
    with pytest.raises(ValueError):
        BootBlock.unpack(bytes(BLOCK_SIZE - 1))


def test_inode_layout_and_size():
    raw = Inode(435, [0]).pack()
    assert len(raw) == BLOCK_SIZE
    assert raw[:4] == (435).to_bytes(4, "little")


def test_inode_round_trip():
    inode = Inode(BLOCK_SIZE + 1, [5, 6])
    assert Inode.unpack(inode.pack()) == inode


def test_inode_empty_file_has_no_blocks():
    assert Inode.unpack(Inode(0, []).pack()).data_block_num == []


def test_inode_too_many_blocks():
    with pytest.raises(ValueError):
        Inode(0, list(range(MAX_INODES + 1))).pack()