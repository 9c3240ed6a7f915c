#!/usr/bin/env python3
"""
cartpng Command Line Interface

Packs carts into PNG images and unpacks them again.

Usage:
    cartpng pack [OPTIONS]
    cartpng unpack [OPTIONS]
    cartpng capacity [OPTIONS]
    cartpng selftest [OPTIONS]
    cartpng --version
    cartpng --help
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import DEFAULT_SETTINGS, load_settings
from .errors import CartError
from .stego.packer import CartPacker
from .stego.selftest import DENSITIES, all_passed, run_self_test


class CartCLI:
    """Main CLI application for cartpng."""

    def __init__(self):
        self._packer: Optional[CartPacker] = None

    def run(self, args: List[str]) -> int:
        """Run the CLI with given arguments."""
        parser = self.create_parser()
        parsed = parser.parse_args(args)

        logging.basicConfig(
            level=logging.INFO if parsed.verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )

        if hasattr(parsed, 'func'):
            try:
                settings = load_settings(parsed.config) if parsed.config else DEFAULT_SETTINGS
                self._packer = CartPacker(settings=settings)
                return parsed.func(parsed)
            except (CartError, OSError, ValueError) as e:
                print(f"Error: {e}", file=sys.stderr)
                return 1
        else:
            parser.print_help()
            return 0

    def create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            prog="cartpng",
            description="Store binary carts inside PNG images",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
    cartpng pack --input game.bin --output game.png --bits 2
    cartpng unpack --input game.png --output game.bin --bits 2
    cartpng capacity
    cartpng selftest --seed 42
            """
        )

        parser.add_argument(
            '--version',
            action='version',
            version=f'cartpng v{__version__}'
        )
        parser.add_argument('--config', '-c', help='JSON settings file')
        parser.add_argument('--verbose', '-v', action='store_true', help='Log codec activity')

        subparsers = parser.add_subparsers(title='commands', dest='command')

        self.add_pack_command(subparsers)
        self.add_unpack_command(subparsers)
        self.add_capacity_command(subparsers)
        self.add_selftest_command(subparsers)

        return parser

    def add_pack_command(self, subparsers):
        """Add pack command to parser."""
        cmd = subparsers.add_parser('pack', help='Hide a cart inside the cover image')
        cmd.add_argument('--input', '-i', required=True, help='Cart file')
        cmd.add_argument('--output', '-o', required=True, help='Output PNG file')
        cmd.add_argument('--bits', '-b', type=int, required=True, choices=DENSITIES,
                         help='Low bits used per carrier byte')
        cmd.set_defaults(func=self.handle_pack)

    def add_unpack_command(self, subparsers):
        """Add unpack command to parser."""
        cmd = subparsers.add_parser('unpack', help='Recover a cart from a PNG image')
        cmd.add_argument('--input', '-i', required=True, help='PNG file')
        cmd.add_argument('--output', '-o', required=True, help='Output cart file')
        cmd.add_argument('--bits', '-b', type=int, required=True, choices=DENSITIES,
                         help='Density used when packing')
        cmd.set_defaults(func=self.handle_unpack)

    def add_capacity_command(self, subparsers):
        """Add capacity command to parser."""
        cmd = subparsers.add_parser('capacity', help='Show cart capacity per density')
        cmd.add_argument('--bits', '-b', type=int, choices=DENSITIES,
                         help='Single density to report')
        cmd.set_defaults(func=self.handle_capacity)

    def add_selftest_command(self, subparsers):
        """Add selftest command to parser."""
        cmd = subparsers.add_parser('selftest', help='Round-trip random carts at every density')
        cmd.add_argument('--seed', type=int, help='Random seed for payloads')
        cmd.set_defaults(func=self.handle_selftest)

    def handle_pack(self, args):
        """Handle pack command."""
        with open(args.input, 'rb') as f:
            cart = f.read()

        image = self._packer.encode(args.bits, cart)

        with open(args.output, 'wb') as f:
            f.write(image)

        print(f"Packed {len(cart)} bytes into {args.output} ({len(image)} bytes)")
        return 0

    def handle_unpack(self, args):
        """Handle unpack command."""
        with open(args.input, 'rb') as f:
            image = f.read()

        cart = self._packer.decode(args.bits, image)

        with open(args.output, 'wb') as f:
            f.write(cart)

        print(f"Unpacked {len(cart)} bytes into {args.output}")
        return 0

    def handle_capacity(self, args):
        """Handle capacity command."""
        carrier = self._packer.carrier
        densities = [args.bits] if args.bits else DENSITIES

        print(f"Cover {carrier.width}x{carrier.height}, {carrier.size} carrier bytes")
        for bits in densities:
            print(f"bits {bits}: {self._packer.capacity(bits)} bytes")
        return 0

    def handle_selftest(self, args):
        """Handle selftest command."""
        results = run_self_test(self._packer, seed=args.seed)
        for result in results:
            print(result)
        return 0 if all_passed(results) else 1


def main():
    """Main entry point."""
    cli = CartCLI()
    sys.exit(cli.run(sys.argv[1:]))


if __name__ == "__main__":
    main()
