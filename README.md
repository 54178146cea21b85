# rvkern

Pieces of a small RISC-V teaching kernel and its tools, in plain Python
with no dependencies outside the standard library.

## Modules

- `rvkern.errors` – the kernel's error numbers as `ErrorCode` (`EINVAL`
  through `EMFILE`) and the `KernelError` exception. `KernelError` accepts
  a code as an `ErrorCode`, a positive number or a negated number, and
  keeps it in `.code` with the text in `.message`.
- `rvkern.fmt` – the kernel's small printf: `gprintf(putc, fmt, *args)`
  hands each character to `putc` and returns the count, `format_string`
  returns the text, and `snprintf(bufsz, fmt, *args)` returns the part
  that fits in a buffer of `bufsz` bytes (terminator included) together
  with the full length. Supported are `%d`, `%u`, `%x`, `%s` and `%p`,
  a field width, zero padding and the `l`, `ll`, `z` and `j` prefixes.
  Integers without a prefix wrap to 32 bits, with one to 64 bits; strings
  are padded on the right and `None` prints as `(null)`.
- `rvkern.stdlib` – `atoi`, `itoa(num, base=10)` and
  `tokenize(text, delims)`, which splits at every delimiter character and
  keeps empty fields.
- `rvkern.ringbuf` – `RingBuffer`, a bounded FIFO (64 entries by default)
  with `put`, `get`, `clear`, `is_empty`, `is_full` and `len()`. `put` on a
  full buffer raises `OverflowError`; `get` on an empty one raises
  `IndexError`.
- `rvkern.fslayout` – the on-disk structures of the flat file system:
  `BootBlock`, `Dentry` and `Inode`, each with `pack()` and `unpack()`.
  Blocks are 4096 bytes, the boot block holds up to 63 directory entries,
  names are up to 32 bytes, and an inode lists up to 1023 data blocks.
- `rvkern.mkfs` – builds an image: `short_name`, `blocks_needed`,
  `build_image(paths)` returning the bytes, `write_image(image_path,
  paths)` returning the `BootBlock`, and the command `main`.
- `rvkern.termio` – `Terminal`, line-oriented input and output over a
  stream with `read(n)` and `write(s)`. Input maps `\r` and `\r\n` to
  `\n`; output sends `\r\n` for `\n`. `getsn(n)` reads an echoed line of at
  most `n - 1` characters with backspace editing, ringing the bell past the
  limit; `wait_for_enter` discards input up to the next line end. End of
  input raises `EOFError`.
- `rvkern.virtio` – `MmioRegisters`, an in-memory model of a VirtIO MMIO
  register window with banked feature and queue registers; `FeatureSet`;
  `DeviceId` and `DeviceStatus`; and the driver steps `probe`,
  `check_feature`, `negotiate_features`, `attach_virtq`, `enable_virtq`,
  `reset_virtq` and `notify_avail`. Failures raise `VirtioError`.
- `rvkern.timer` – tick conversions (`ticks_from_sec`, `ticks_from_ms`,
  `ticks_from_us` at 10 MHz), `Alarm`, and `AlarmQueue`, which keeps
  sleeping alarms ordered by wake-up time, wakes those due in
  `handle_interrupt(now)` and tracks the next compare value.
- `rvkern.blkqueue` – `BlockBackend`, an in-memory block device that
  serves single-block requests in 512-byte sectors, retrying up to ten
  times before raising `BlockIOError`; `RequestHeader`, `RequestType` and
  `BlockStatus`.
- `rvkern.blockdev` – `BlockDevice`, a seekable device on top of the
  backend with `open`, `close`, `read`, `read_full`, `write`,
  `write_full`, `seek`, `tell` and `len()`, usable as a context manager.
  `read` and `write` stop at the end of the current block; a transfer that
  would run past the end of the device moves nothing.

## Install

```
pip install .
pip install ".[test]"   # to run the tests
```

## Building a file-system image

```
rvkern-mkfs kfs.raw helloworld.txt trek enum.txt
```

The image is a 4096-byte boot block, then one inode block per file, then
each file's contents padded to whole blocks. Each file is stored under the
last component of its path, cut to 32 bytes; directory entry `i` names
inode `i`. The command prints what it writes and exits with status 1 on a
missing argument or an unreadable file.

From Python:

```python
from rvkern.mkfs import build_image
from rvkern.fslayout import BootBlock

image = build_image(["helloworld.txt", "trek"])
boot = BootBlock.unpack(image[:4096])
print(boot.num_dentry, boot.num_inodes, boot.num_data)
```

## Formatting

```python
from rvkern.fmt import format_string, snprintf

format_string("f(%u) = %5d", 10, 55)   # 'f(10) =    55'
snprintf(8, "%s", "truncated text")    # ('truncat', 14)
```

## Block device

```python
from rvkern.blockdev import BlockDevice

storage = bytearray(73728)
with BlockDevice(storage, 512) as dev:
    dev.write_full(b"hello")
    dev.seek(0)
    print(dev.read_full(5), len(dev))   # b'hello' 73728
```

## What this package does not do

It does not run a kernel. There is no scheduler, no threads, no system
calls and no program loader, and nothing here touches real hardware:
the VirtIO registers and the block device are in-memory models, and of
the serial driver only its ring buffer is here. There is no file-system
driver that opens files inside an image; `rvkern.fslayout` decodes the
structures and `rvkern.mkfs` writes them.

## Tests

```
pytest
```