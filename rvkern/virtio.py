"""Memory-mapped VirtIO transport: feature sets, negotiation and virtqueue setup.

``MmioRegisters`` models the register window of one VirtIO MMIO device.
Banked registers behave as on the device: ``device_features`` and
``driver_features`` show the 32-bit word chosen by the matching select
register, and the ``queue_*`` registers act on the queue chosen by
``queue_sel``.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from rvkern.errors import ErrorCode, KernelError

VIRTIO_MAGIC = 0x74726976
VIRTIO_VERSION = 2

# Feature bits (bit numbers, not masks).
VIRTIO_F_ANY_LAYOUT = 27
VIRTIO_F_INDIRECT_DESC = 28
VIRTIO_F_EVENT_IDX = 29
VIRTIO_F_RING_RESET = 40

VIRTQ_LEN_MAX = 32768

VIRTQ_USED_F_NO_NOTIFY = 1
VIRTQ_AVAIL_F_NO_INTERRUPT = 1

VIRTQ_DESC_F_NEXT = 1 << 0
VIRTQ_DESC_F_WRITE = 1 << 1
VIRTQ_DESC_F_INDIRECT = 1 << 2

VIRTIO_FEATLEN = 4
_WORD_BITS = 32
_WORD_MASK = 0xFFFFFFFF


class DeviceId(enum.IntEnum):
    """VirtIO device type identifiers."""

    NONE = 0
    NET = 1
    BLOCK = 2
    CONSOLE = 3
    RNG = 4
    BALLOON = 5
    IOMEM = 6
    RPMSG = 7
    SCSI = 8
    NINE_P = 9
    MAC80211_WLAN = 10
    RPROC_SERIAL = 11
    CAIF = 12
    MEMORY_BALLOON = 13
    GPU = 16
    CLOCK = 17
    INPUT = 18
    VSOCK = 19
    CRYPTO = 20
    SIGNAL_DIST = 21
    PSTORE = 22
    IOMMU = 23
    MEM = 24
    SOUND = 25
    FS = 26
    PMEM = 27
    RPMB = 28
    MAC80211_HWSIM = 29
    VIDEO_ENCODER = 30
    VIDEO_DECODER = 31
    SCMI = 32
    NITRO_SEC_MOD = 33
    I2C_ADAPTER = 34
    WATCHDOG = 35
    CAN = 36
    DMABUF = 37
    PARAM_SERV = 38
    AUDIO_POLICY = 39
    BT = 40
    GPIO = 41


class DeviceStatus(enum.IntFlag):
    """Bits of the device status register."""

    ACKNOWLEDGE = 1 << 0
    DRIVER = 1 << 1
    DRIVER_OK = 1 << 2
    FEATURES_OK = 1 << 3
    DEVICE_NEEDS_RESET = 1 << 6
    FAILED = 1 << 7


class VirtioError(KernelError):
    """A VirtIO device could not be probed or configured."""


def _check_word(value: int) -> int:
    value = int(value)
    if not 0 <= value <= _WORD_MASK:
        raise ValueError(f"feature word {value:#x} does not fit in 32 bits")
    return value


def _check_bit(bit: int) -> int:
    bit = int(bit)
    if not 0 <= bit < VIRTIO_FEATLEN * _WORD_BITS:
        raise ValueError(f"feature bit {bit} is out of range")
    return bit


class FeatureSet:
    """A bitmap of VirtIO feature bits held as four 32-bit words."""

    def __init__(self, words: Iterable[int] | None = None) -> None:
        values = [_check_word(w) for w in (words or ())]
        if len(values) > VIRTIO_FEATLEN:
            raise ValueError(f"a feature set has at most {VIRTIO_FEATLEN} words")
        values.extend([0] * (VIRTIO_FEATLEN - len(values)))
        self._words = values

    @classmethod
    def of(cls, *bits: int) -> FeatureSet:
        """Return a feature set holding the given bits."""
        fts = cls()
        for bit in bits:
            fts.add(bit)
        return fts

    @property
    def words(self) -> tuple[int, ...]:
        return tuple(self._words)

    def add(self, bit: int) -> None:
        """Set feature ``bit``."""
        bit = _check_bit(bit)
        self._words[bit // _WORD_BITS] |= 1 << (bit % _WORD_BITS)

    def test(self, bit: int) -> bool:
        """Return whether feature ``bit`` is set."""
        bit = _check_bit(bit)
        return bool((self._words[bit // _WORD_BITS] >> (bit % _WORD_BITS)) & 1)

    def __getitem__(self, index: int) -> int:
        return self._words[index]

    def __setitem__(self, index: int, value: int) -> None:
        self._words[index] = _check_word(value)

    def __iter__(self) -> Iterator[int]:
        return iter(self._words)

    def __len__(self) -> int:
        return VIRTIO_FEATLEN

    def __contains__(self, bit: object) -> bool:
        return isinstance(bit, int) and self.test(bit)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FeatureSet):
            return NotImplemented
        return self._words == other._words

    def __repr__(self) -> str:
        hexwords = ", ".join(f"{w:#010x}" for w in self._words)
        return f"FeatureSet([{hexwords}])"


@dataclass
class VirtqState:
    """Configuration of one virtqueue as seen by the device."""

    num_max: int = VIRTQ_LEN_MAX
    num: int = 0
    ready: int = 0
    desc: int = 0
    driver: int = 0
    device: int = 0


class MmioRegisters:
    """The register window of a VirtIO MMIO device."""

    def __init__(
        self,
        *,
        magic_value: int = VIRTIO_MAGIC,
        version: int = VIRTIO_VERSION,
        device_id: int = DeviceId.NONE,
        vendor_id: int = 0,
        device_features: FeatureSet | Iterable[int] | None = None,
        config: dict[str, Any] | None = None,
        accept_features: bool = True,
    ) -> None:
        self.magic_value = magic_value
        self.version = version
        self.device_id = int(device_id)
        self.vendor_id = vendor_id
        if isinstance(device_features, FeatureSet):
            self.offered = FeatureSet(device_features.words)
        else:
            self.offered = FeatureSet(device_features)
        self.accepted = FeatureSet()
        self.device_features_sel = 0
        self.driver_features_sel = 0
        self.queue_sel = 0
        self.queues: dict[int, VirtqState] = {}
        self.notifications: list[int] = []
        self.interrupt_status = 0
        self.interrupt_ack = 0
        self.config: dict[str, Any] = dict(config or {})
        self.accept_features = accept_features
        self._status = 0

    # Feature words, banked by the select registers.

    @property
    def device_features(self) -> int:
        sel = self.device_features_sel
        return self.offered[sel] if 0 <= sel < VIRTIO_FEATLEN else 0

    @property
    def driver_features(self) -> int:
        sel = self.driver_features_sel
        return self.accepted[sel] if 0 <= sel < VIRTIO_FEATLEN else 0

    @driver_features.setter
    def driver_features(self, value: int) -> None:
        sel = self.driver_features_sel
        if 0 <= sel < VIRTIO_FEATLEN:
            self.accepted[sel] = value

    # Device status; a device that rejects the feature set leaves FEATURES_OK clear.

    @property
    def status(self) -> DeviceStatus:
        return DeviceStatus(self._status)

    @status.setter
    def status(self, value: int) -> None:
        value = int(value)
        if not self.accept_features:
            value &= ~DeviceStatus.FEATURES_OK
        if value == 0:
            self.accepted = FeatureSet()
        self._status = value

    # Queue registers, banked by queue_sel.

    def _queue(self) -> VirtqState:
        return self.queues.setdefault(self.queue_sel, VirtqState())

    @property
    def queue_num_max(self) -> int:
        return self._queue().num_max

    @property
    def queue_num(self) -> int:
        return self._queue().num

    @queue_num.setter
    def queue_num(self, value: int) -> None:
        self._queue().num = int(value)

    @property
    def queue_ready(self) -> int:
        return self._queue().ready

    @queue_ready.setter
    def queue_ready(self, value: int) -> None:
        self._queue().ready = int(value)

    @property
    def queue_desc(self) -> int:
        return self._queue().desc

    @queue_desc.setter
    def queue_desc(self, value: int) -> None:
        self._queue().desc = int(value)

    @property
    def queue_driver(self) -> int:
        return self._queue().driver

    @queue_driver.setter
    def queue_driver(self, value: int) -> None:
        self._queue().driver = int(value)

    @property
    def queue_device(self) -> int:
        return self._queue().device

    @queue_device.setter
    def queue_device(self, value: int) -> None:
        self._queue().device = int(value)

    @property
    def queue_reset(self) -> int:
        return 0

    @queue_reset.setter
    def queue_reset(self, value: int) -> None:
        if value:
            state = self._queue()
            self.queues[self.queue_sel] = VirtqState(num_max=state.num_max)

    @property
    def queue_notify(self) -> int:
        return self.notifications[-1] if self.notifications else 0

    @queue_notify.setter
    def queue_notify(self, qid: int) -> None:
        self.notifications.append(int(qid))


def check_feature(regs: MmioRegisters, bit: int) -> bool:
    """Return whether the device offers feature ``bit``."""
    bit = _check_bit(bit)
    regs.device_features_sel = bit // _WORD_BITS
    return bool((regs.device_features >> (bit % _WORD_BITS)) & 1)


def negotiate_features(
    regs: MmioRegisters, wanted: FeatureSet, needed: FeatureSet
) -> FeatureSet:
    """Agree on features with the device and return the enabled set.

    Every needed feature must be offered, or ``VirtioError`` (ENOTSUP) is
    raised. Of the wanted features, those the device offers are requested
    and returned; wanted should include the needed ones.
    """
    for index, need in enumerate(needed):
        if need:
            regs.device_features_sel = index
            if regs.device_features & need != need:
                raise VirtioError(
                    ErrorCode.ENOTSUP, "device lacks a required feature"
                )

    enabled = FeatureSet()
    for index, want in enumerate(wanted):
        if want:
            regs.device_features_sel = index
            regs.driver_features_sel = index
            enabled[index] = regs.device_features & want
            regs.driver_features = enabled[index]

    regs.status = regs.status | DeviceStatus.FEATURES_OK
    if not regs.status & DeviceStatus.FEATURES_OK:
        raise VirtioError(ErrorCode.ENOTSUP, "device rejected the feature set")
    return enabled


def probe(regs: MmioRegisters) -> DeviceId | None:
    """Identify and reset a VirtIO device.

    Returns ``None`` for an empty slot. Otherwise the device is reset and
    acknowledged and its type is returned; a missing magic number or an
    unexpected version raises ``VirtioError`` (ENODEV), and an unknown
    device type raises ``VirtioError`` (ENOTSUP).
    """
    if regs.magic_value != VIRTIO_MAGIC:
        raise VirtioError(ErrorCode.ENODEV, "no virtio magic number found")
    if regs.version != VIRTIO_VERSION:
        raise VirtioError(
            ErrorCode.ENODEV,
            f"unexpected virtio version (found {regs.version}, "
            f"expected {VIRTIO_VERSION})",
        )
    if regs.device_id == DeviceId.NONE:
        return None

    regs.status = 0
    regs.status = DeviceStatus.ACKNOWLEDGE

    try:
        return DeviceId(regs.device_id)
    except ValueError:
        raise VirtioError(
            ErrorCode.ENOTSUP, f"unknown virtio device type {regs.device_id}"
        ) from None


def attach_virtq(
    regs: MmioRegisters,
    qid: int,
    length: int,
    desc_addr: int,
    used_addr: int,
    avail_addr: int,
) -> None:
    """Tell the device where the rings of queue ``qid`` live and how long they are."""
    regs.queue_sel = qid
    regs.queue_desc = desc_addr
    regs.queue_device = used_addr
    regs.queue_driver = avail_addr
    regs.queue_num = length


def enable_virtq(regs: MmioRegisters, qid: int) -> None:
    """Mark queue ``qid`` ready for use."""
    regs.queue_sel = qid
    regs.queue_ready = 1


def reset_virtq(regs: MmioRegisters, qid: int) -> None:
    """Reset queue ``qid``."""
    regs.queue_sel = qid
    regs.queue_reset = 1


def notify_avail(regs: MmioRegisters, qid: int) -> None:
    """Notify the device of new entries in the avail ring of queue ``qid``."""
    regs.queue_notify = qid