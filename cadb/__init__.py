"""cadb: a certificate authority's flat-file index and serial number store."""

from .attributes import DBAttributes, parse_yesno
from .errors import CADBError, ErrorKind
from .record import Record, canonical_serial
from .rotation import rotate_file, rotate_pair
from .serial import Serial, load_serial, rand_serial, rotate_serial, save_serial
from .store import CADB, build_indices, load_store, rotate_store, save_store
from .updatedb import ScanResult, scan_and_expire

__version__ = "0.1.0"
