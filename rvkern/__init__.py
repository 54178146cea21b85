"""Building blocks of a small RISC-V teaching kernel and its file-system image tool."""

__version__ = "0.1.0"
__all__ = [
    "blkqueue",
    "blockdev",
    "errors",
    "fmt",
    "fslayout",
    "mkfs",
    "ringbuf",
    "stdlib",
    "termio",
    "timer",
    "virtio",
]