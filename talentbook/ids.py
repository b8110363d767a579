"""
Identifier generation for locally created records
"""
import threading
import time

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_COUNTER_WIDTH = 4

_lock = threading.Lock()
_last_millis = 0
_counter = 0


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_id() -> str:
    """
    Return a new record id.

    The id is the base-36 millisecond clock followed by a fixed-width base-36
    counter. Within one process ids sort in creation order, also when the
    wall clock stands still or steps backwards. Ids are not coordinated
    across devices.
    """
    global _last_millis, _counter

    with _lock:
        millis = int(time.time() * 1000)
        if millis > _last_millis:
            _last_millis = millis
            _counter = 0
        else:
            _counter += 1
            if _counter >= 36 ** _COUNTER_WIDTH:
                _last_millis += 1
                _counter = 0
        stamp = _base36(_last_millis)
        sequence = _base36(_counter).rjust(_COUNTER_WIDTH, "0")

    return f"{stamp}{sequence}"
