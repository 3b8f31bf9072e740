# cli.py
# Argument parser and entrypoints wired to ops modules.

import argparse
import logging

from .config import LOG_LEVELS, Settings
from .db_ops import db_updatedb, db_list, db_show, db_revoke, db_export, db_import
from .errors import CADBError
from .logger import configure_logging
from .serial_ops import serial_show, serial_init, serial_next

log = logging.getLogger(__name__)


def _positive_int(s: str) -> int:
    try:
        v = int(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: '{s}'")
    if v <= 0:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return v

def build_parser(settings: Settings):
    p = argparse.ArgumentParser(
        prog="cadb",
        description="Maintain a CA certificate index file and its serial number file"
    )
    p.add_argument("--output", choices=["json","table","yaml"], default="json", help="Output format")
    p.add_argument("--log-level", default=settings.log_level, type=str.upper, choices=LOG_LEVELS,
                   help=f"Logging level (default: {settings.log_level}, env CADB_LOG_LEVEL)")
    p.add_argument("--new-suffix", default=settings.new_suffix, help="Suffix for freshly written files (default: 'new')")
    p.add_argument("--old-suffix", default=settings.old_suffix, help="Suffix for the replaced files (default: 'old')")
    p.add_argument("--suffix-sep", default=settings.suffix_sep, choices=[".", "-"],
                   help="Separator between file name and suffix (default: '.')")
    sub = p.add_subparsers(dest="cmd", required=True)

    # ---- index commands ----
    p_upd = sub.add_parser("updatedb", help="Mark valid certificates expired as of TESTDATE")
    p_upd.add_argument("dbfile")
    p_upd.add_argument("testdate", help="ASN.1 time (YYMMDDHHMMSSZ / YYYYMMDDHHMMSSZ) or RFC3339")
    p_upd.set_defaults(func=cmd_updatedb)

    p_list = sub.add_parser("list", help="List index records")
    p_list.add_argument("dbfile")
    p_list.add_argument("--status", choices=["V","R","E"], default=None)
    p_list.add_argument("--expiring-in", type=int, default=None,
                        help="Show only valid certificates that expire in <= N days")
    p_list.set_defaults(func=cmd_list)

    p_show = sub.add_parser("show", help="Show one record by serial")
    p_show.add_argument("dbfile")
    p_show.add_argument("--serial", required=True)
    p_show.set_defaults(func=cmd_show)

    p_rev = sub.add_parser("revoke", help="Revoke a valid certificate by serial")
    p_rev.add_argument("dbfile")
    p_rev.add_argument("--serial", required=True)
    p_rev.add_argument("--reason", default=None, help="e.g. keyCompromise, superseded")
    p_rev.add_argument("--date", default=None, help="Revocation time (default: now)")
    p_rev.set_defaults(func=cmd_revoke)

    p_exp = sub.add_parser("export", help="Export the index as a JSON bundle")
    p_exp.add_argument("dbfile")
    p_exp.add_argument("--file", default="-", help="Output file or '-' (stdout)")
    p_exp.set_defaults(func=cmd_export)

    p_imp = sub.add_parser("import", help="Insert the records of a JSON bundle")
    p_imp.add_argument("dbfile")
    p_imp.add_argument("--file", default="-", help="Bundle path or '-' for stdin")
    p_imp.set_defaults(func=cmd_import)

    # ---- serial commands ----
    ser = sub.add_parser("serial", help="Serial number file operations")
    ser_sub = ser.add_subparsers(dest="serial_cmd", required=True)

    s_show = ser_sub.add_parser("show", help="Print the stored serial")
    s_show.add_argument("file")
    s_show.set_defaults(func=cmd_serial_show)

    s_init = ser_sub.add_parser("init", help="Create the serial file with a random value")
    s_init.add_argument("file")
    s_init.add_argument("--bits", type=_positive_int, default=None,
                        help=f"Random serial width (default: {settings.serial_bits})")
    s_init.set_defaults(func=cmd_serial_init)

    s_next = ser_sub.add_parser("next", help="Allocate the stored serial and store its successor")
    s_next.add_argument("file")
    s_next.set_defaults(func=cmd_serial_next)

    return p

def _settings(args):
    return Settings(
        serial_bits=args.settings.serial_bits,
        new_suffix=args.new_suffix,
        old_suffix=args.old_suffix,
        suffix_sep=args.suffix_sep,
        log_level=args.log_level,
    )

# index dispatchers
def cmd_updatedb(args): db_updatedb(_settings(args), args.dbfile, args.testdate, args.output)
def cmd_list(args):     db_list(_settings(args), args.dbfile, args.status, args.expiring_in, args.output)
def cmd_show(args):     db_show(_settings(args), args.dbfile, args.serial, args.output)
def cmd_revoke(args):   db_revoke(_settings(args), args.dbfile, args.serial, args.reason, args.date, args.output)
def cmd_export(args):   db_export(_settings(args), args.dbfile, args.file)
def cmd_import(args):   db_import(_settings(args), args.dbfile, args.file, args.output)

# serial dispatchers
def cmd_serial_show(args): serial_show(_settings(args), args.file, args.output)
def cmd_serial_init(args): serial_init(_settings(args), args.file, args.bits, args.output)
def cmd_serial_next(args): serial_next(_settings(args), args.file, args.output)

def main(argv=None):
    try:
        settings = Settings.from_env()
    except ValueError as e:
        build_parser(Settings()).error(str(e))
    parser = build_parser(settings)
    args = parser.parse_args(argv)
    args.settings = settings
    if args.new_suffix == args.old_suffix:
        parser.error("--new-suffix and --old-suffix must differ")
    configure_logging(args.log_level)
    try:
        args.func(args)
    except CADBError as e:
        log.error("%s failed [%s] %s", args.cmd, e.kind.value, e)
        return 1
    return 0
