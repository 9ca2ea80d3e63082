"""
Command-line interface for SpinChain.
"""

import argparse
import sys

from . import SimulationParameters, simulate, tilted_chain, random_chain
from .utils.constants import DEFAULT_PARAMETERS, exchange_length
from .utils.io import HDF5TimeSeriesSink


def _add_common_arguments(parser, default_tilt, default_every):
    parser.add_argument('--tilt', type=float, default=default_tilt,
                        help=f'Initial angle from +z in degrees (default: {default_tilt})')
    parser.add_argument('--gamma', type=float, default=DEFAULT_PARAMETERS['gamma'],
                        help=f"Gyromagnetic ratio (default: {DEFAULT_PARAMETERS['gamma']})")
    parser.add_argument('--alpha', type=float, default=DEFAULT_PARAMETERS['alpha'],
                        help=f"Gilbert damping (default: {DEFAULT_PARAMETERS['alpha']})")
    parser.add_argument('--field', type=float, nargs=3, metavar=('HX', 'HY', 'HZ'),
                        default=list(DEFAULT_PARAMETERS['external_field']),
                        help='External field in Tesla (default: 0 0 1)')
    parser.add_argument('-dt', '--timestep', type=float, default=DEFAULT_PARAMETERS['dt'],
                        help=f"Time step in seconds (default: {DEFAULT_PARAMETERS['dt']})")
    parser.add_argument('-n', '--steps', type=int, default=DEFAULT_PARAMETERS['n_steps'],
                        help=f"Number of RK4 steps (default: {DEFAULT_PARAMETERS['n_steps']})")
    parser.add_argument('--every', type=int, default=default_every,
                        help=f'Steps between progress lines (default: {default_every})')
    parser.add_argument('-o', '--output', default=None,
                        help='HDF5 output file (default: no output file)')
    parser.add_argument('--compression', default='gzip', choices=['gzip', 'lzf', 'none'],
                        help='HDF5 compression filter (default: gzip)')
    parser.add_argument('-q', '--quiet', action='store_true',
                        help='Suppress progress lines')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='spinchain',
        description="SpinChain: LLG dynamics of single moments and 1D chains",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Single moment
    single_parser = subparsers.add_parser('single', help='Precession of an isolated moment')
    _add_common_arguments(single_parser, default_tilt=30.0, default_every=1)

    # Exchange-coupled chain
    chain_parser = subparsers.add_parser('chain', help='Dynamics of an exchange-coupled chain')
    _add_common_arguments(chain_parser, default_tilt=10.0, default_every=50)
    chain_parser.add_argument('-N', '--sites', type=int, default=128,
                              help='Number of sites (default: 128)')
    chain_parser.add_argument('--exchange', type=float,
                              default=DEFAULT_PARAMETERS['exchange_stiffness'],
                              help='Exchange stiffness A_ex in J/m (default: 1.3e-11)')
    chain_parser.add_argument('--mu0ms', type=float, default=DEFAULT_PARAMETERS['mu0_ms'],
                              help='mu0*Ms in Tesla (default: 1.005)')
    chain_parser.add_argument('--spacing', type=float,
                              default=DEFAULT_PARAMETERS['lattice_spacing'],
                              help='Lattice spacing in meters (default: 1e-9)')
    chain_parser.add_argument('--random', action='store_true',
                              help='Start from random moments instead of a uniform tilt')
    chain_parser.add_argument('--seed', type=int, default=None,
                              help='Random seed for --random')
    chain_parser.add_argument('-w', '--workers', type=int, default=None,
                              help='Worker threads per stage (default: all)')
    chain_parser.add_argument('--backend', default='numba', choices=['numba', 'threads'],
                              help='Parallel backend (default: numba)')

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return

    try:
        if args.command == 'single':
            run_single(args)
        elif args.command == 'chain':
            run_chain(args)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _make_sink(args, parameters):
    if args.output is None:
        return None
    compression = None if args.compression == 'none' else args.compression
    return HDF5TimeSeriesSink(args.output, compression=compression,
                              metadata=parameters.to_dict())


def run_single(args):
    """Run single-moment precession."""
    parameters = SimulationParameters.single_spin(
        gamma=args.gamma,
        alpha=args.alpha,
        external_field=tuple(args.field),
        dt=args.timestep,
        n_steps=args.steps
    )

    results = simulate(
        parameters,
        tilted_chain(1, args.tilt),
        sink=_make_sink(args, parameters),
        report_every=args.every,
        verbose=not args.quiet
    )

    if args.output is not None:
        print(f"Results saved to {args.output}", file=sys.stderr)
    mx, my, mz = results['final_chain'][0]
    print(f"Final moment: ({mx:.6f}, {my:.6f}, {mz:.6f})", file=sys.stderr)


def run_chain(args):
    """Run exchange-coupled chain dynamics."""
    parameters = SimulationParameters(
        gamma=args.gamma,
        alpha=args.alpha,
        exchange_stiffness=args.exchange,
        mu0_ms=args.mu0ms,
        lattice_spacing=args.spacing,
        external_field=tuple(args.field),
        dt=args.timestep,
        n_steps=args.steps
    )

    if args.random:
        initial = random_chain(args.sites, seed=args.seed)
    else:
        initial = tilted_chain(args.sites, args.tilt)

    if not args.quiet:
        l_ex = exchange_length(args.exchange, args.mu0ms)
        print(f"Running chain of {args.sites} sites for {args.steps} steps", file=sys.stderr)
        print(f"Exchange length: {l_ex * 1e9:.2f} nm, spacing: {args.spacing * 1e9:.2f} nm",
              file=sys.stderr)

    results = simulate(
        parameters,
        initial,
        sink=_make_sink(args, parameters),
        report_every=args.every,
        verbose=not args.quiet,
        n_workers=args.workers,
        backend=args.backend
    )

    if args.output is not None:
        print(f"Results saved to {args.output}", file=sys.stderr)
    print(f"Final <mz>: {results['final_magnetization'][2]:.6f}", file=sys.stderr)


if __name__ == "__main__":
    main()
