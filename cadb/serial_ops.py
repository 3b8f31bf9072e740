from typing import Optional

from .config import Settings
from .fileio import LocalFiles
from .render import output
from .serial import load_serial, next_serial, rotate_serial, save_serial


def _doc(result: str, path: str, serial, **extra) -> dict:
    return {"result": result, "file": path, "serial": serial.text, "bits": serial.value.bit_length(), **extra}

def _print(doc: dict, out: str):
    output(doc, out, [["RESULT", "FILE", "SERIAL"], [doc["result"], doc["file"], doc["serial"]]])

def serial_show(settings: Settings, path: str, out: str):
    serial = load_serial(path)
    _print(_doc("current", path, serial), out)

def serial_init(settings: Settings, path: str, bits: Optional[int], out: str):
    """Create the serial file from a random value unless it already exists."""
    if LocalFiles().exists(path):
        _print(_doc("exists", path, load_serial(path)), out)
        return
    serial = load_serial(path, create=True, bits=bits or settings.serial_bits)
    save_serial(path, settings.new_suffix, serial, sep=settings.suffix_sep)
    rotate_serial(path, settings.new_suffix, settings.old_suffix, sep=settings.suffix_sep)
    _print(_doc("created", path, serial), out)

def serial_next(settings: Settings, path: str, out: str):
    """Hand out the stored serial and persist its successor."""
    current = load_serial(path, create=True, bits=settings.serial_bits)
    successor = next_serial(current)
    save_serial(path, settings.new_suffix, successor, sep=settings.suffix_sep)
    rotate_serial(path, settings.new_suffix, settings.old_suffix, sep=settings.suffix_sep)
    _print(_doc("allocated", path, current, next=successor.text), out)
