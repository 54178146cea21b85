import pytest

from rvkern.ringbuf import RingBuffer


def test_new_buffer_is_empty():
    rb = RingBuffer(4)
    assert rb.is_empty()
    assert not rb.is_full()
    assert len(rb) == 0


def test_fifo_order():
    rb = RingBuffer(8)
    for ch in "hello":
        rb.put(ch)
    assert "".join(rb.get() for _ in range(5)) == "hello"
    assert rb.is_empty()


def test_full_after_size_puts():
    rb = RingBuffer(3)
    for ch in "abc":
        rb.put(ch)
    assert rb.is_full()
    assert len(rb) == 3


def test_put_on_full_raises():
    rb = RingBuffer(2)
    rb.put("a")
    rb.put("b")
    with pytest.raises(OverflowError):
        rb.put("c")
    assert rb.get() == "a"


def test_get_on_empty_raises():
    with pytest.raises(IndexError):
        RingBuffer(2).get()


def test_clear_empties():
    rb = RingBuffer(4)
    rb.put("x")
    rb.put("y")
    rb.clear()
    assert rb.is_empty()
    assert len(rb) == 0


def test_wraps_around_many_times():
    rb = RingBuffer(5)
    received = []
    for i in range(200):
        rb.put(i)
        rb.put(i + 1000)
        received.append(rb.get())
        received.append(rb.get())
    assert received == [v for i in range(200) for v in (i, i + 1000)]
    assert rb.is_empty()


def test_length_tracks_puts_and_gets():
    rb = RingBuffer()
    for i in range(10):
        rb.put(i)
    rb.get()
    assert len(rb) == 9


@pytest.mark.parametrize("size", [0, -1])
def test_bad_size(size):
    with pytest.raises(ValueError):
        RingBuffer(size)