"""
Decode sinusoidal-grid bin indices from the command line.

usage:
    climgrid-bins 1 2 412 --rows 18
    climgrid-bins 5940422 --verbose      # row count guessed from the index
"""

import argparse
import logging
import sys

from climgrid.spatial.bins import binind_to_latlon
from climgrid.spatial.utils import safe_log_exception

log = logging.getLogger("climgrid")


def _configure_logging(verbose):
    if not log.handlers:
        h = logging.StreamHandler(sys.stderr)
        h.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        log.addHandler(h)
    log.setLevel(logging.DEBUG if verbose else logging.WARNING)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Convert sinusoidal-grid bin indices to lat/lon')
    parser.add_argument('indices', nargs='+', type=int, metavar='INDEX', help='1-based bin index')
    parser.add_argument('--rows', type=int, default=None,
                        help='Number of latitude rows (guessed from the largest index if omitted)')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])
    _configure_logging(args.verbose)

    try:
        lat, lon = binind_to_latlon(args.indices, num_rows=args.rows)
    except ValueError as e:
        if args.verbose:
            safe_log_exception('bin decoding failed', e, rows=args.rows)
        print(f'climgrid-bins: error: {e}', file=sys.stderr)
        return 2

    for idx, la, lo in zip(args.indices, lat, lon):
        print(f'{idx}\t{la:.6f}\t{lo:.6f}')
    return 0


if __name__ == '__main__':
    sys.exit(main())
