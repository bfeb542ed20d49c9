import logging
import sys


def to_value(s) -> bytes:
    ''' bytes of a text value, str is utf-8 encoded '''

    if isinstance(s, str):
        return s.encode('utf-8')
    if isinstance(s, (bytes, bytearray, memoryview)):
        return bytes(s)
    raise TypeError(f'expected str or bytes, got {type(s).__name__}')


def strcmp(a, b) -> int:
    ''' byte-wise comparison: negative if a < b, zero if equal, positive if a > b '''

    return (a > b) - (a < b)


def bounded_copy(buf: bytearray, value, bufsize: int) -> int:
    '''
    Copy at most bufsize-1 bytes of value into buf followed by a b'\\0'
    terminator. Longer values are truncated silently. Returns the number of
    value bytes copied, or -1 when there is no room for the terminator.
    '''

    bufsize = min(bufsize, len(buf))
    if bufsize <= 0:
        return -1

    n = min(len(value), bufsize - 1)
    buf[:n] = value[:n]
    buf[n] = 0
    return n


def setup_logging(filename: str = 'queue.log', level=logging.DEBUG) -> None:
    ''' log to a file at level and INFO to stdout, for drivers embedding the queue '''

    logging.basicConfig(filename=filename, level=level)

    root = logging.getLogger()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)
    root.addHandler(handler)
