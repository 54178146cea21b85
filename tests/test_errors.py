import pytest

from rvkern.errors import ErrorCode, KernelError


@pytest.mark.parametrize(
    "number, name",
    [
        (1, "EINVAL"),
        (2, "EBUSY"),
        (3, "ENOTSUP"),
        (4, "ENODEV"),
        (5, "EIO"),
        (6, "EBADFMT"),
        (7, "ENOENT"),
        (8, "EACCESS"),
        (9, "EBADFD"),
        (10, "EMFILE"),
    ],
)
def test_numbers_map_to_source_codes(number, name):
    err = KernelError(number, "")
    assert err.code.name == name
    assert int(err.code) == number


def test_error_from_plain_number_maps_to_enum():
    err = KernelError(ErrorCode.EBADFD.value, "bad descriptor")
    assert err.code is ErrorCode.EBADFD
    assert err.message == "bad descriptor"


def test_error_from_negated_number():
    err = KernelError(-ErrorCode.ENOENT, "missing")
    assert err.code is ErrorCode.ENOENT


def test_str_holds_name_and_message():
    err = KernelError(ErrorCode.EBUSY, "device in use")
    assert "EBUSY" in str(err)
    assert "device in use" in str(err)


def test_str_without_message_is_name():
    assert str(KernelError(ErrorCode.EIO)) == ErrorCode.EIO.name


def test_unknown_code_rejected():
    with pytest.raises(ValueError):
        KernelError(len(ErrorCode) + 5, "nope")


def test_zero_code_rejected():
    with pytest.raises(ValueError):
        KernelError(0)


def test_negated_code_keeps_code_and_message():
    err = KernelError(-int(ErrorCode.ENOTSUP), "ioctl")
    assert err.code is ErrorCode.ENOTSUP
    assert err.message == "ioctl"