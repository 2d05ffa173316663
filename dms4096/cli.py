"""Command line front end: ``python -m dms4096`` / ``dms4096``."""

from __future__ import annotations

import argparse
import os
import sys
import time
import warnings
from pathlib import Path

from . import codec, files, settings
from .errors import DMSError
from .kdf import generate_passphrase
from .version import __version__


def _cli_plain_mode() -> bool:
    if os.getenv("DMS4096_CLI_PLAIN"):
        return True
    if os.getenv("NO_COLOR"):
        return True
    style = (os.getenv("DMS4096_CLI_STYLE") or "").strip().lower()
    return style in {"plain", "boring", "0", "false", "off"}


class _CliTheme:
    """ANSI colour and emoji decoration for status lines; plain mode passes text through."""

    RESET = "\033[0m"
    STYLES = {
        "ok": ("\033[1m\033[32m", "✅"),
        "warn": ("\033[1m\033[33m", "⚠️"),
        "err": ("\033[1m\033[31m", "❌"),
        "info": ("\033[1m\033[36m", "✨"),
    }

    def __init__(self, plain: bool):
        self.plain = plain

    def render(self, kind: str, msg: str) -> str:
        if self.plain:
            return msg
        ansi, emoji = self.STYLES[kind]
        return f"{ansi}{emoji} {msg}{self.RESET}"

    def ok(self, msg: str) -> str:
        return self.render("ok", msg)

    def warn(self, msg: str) -> str:
        return self.render("warn", msg)

    def err(self, msg: str) -> str:
        return self.render("err", msg)

    def info(self, msg: str) -> str:
        return self.render("info", msg)


def _report_warnings(theme: _CliTheme, caught) -> None:
    for item in caught:
        if issubclass(item.category, RuntimeWarning):
            print(theme.warn(str(item.message)), file=sys.stderr)


def _read_arg(value: str) -> str:
    if value == "-":
        return sys.stdin.read()
    return value


def _print_stats(theme: _CliTheme, stats: codec.EncryptionStats) -> None:
    lines = [
        f"input: {stats.input_size} bytes",
        f"output: {stats.output_size} bytes",
        f"time: {stats.time_ms:.1f} ms",
        f"key: AES-{stats.key_strength}-CBC, PBKDF2-SHA256 x{settings.KDF_ITERATIONS:,}",
        f"blocks: {stats.chunks_processed}",
        f"entropy: {stats.entropy_bits:.3f} bits/byte",
    ]
    for line in lines:
        print(theme.info(line), file=sys.stderr)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dms4096", description="DMS4096 text and file encryption")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-p", "--passphrase",
        default=None,
        help="Passphrase (default: DMS4096_PASSPHRASE or the built-in demo passphrase)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    enc = subparsers.add_parser("encrypt", parents=[common], help="Encrypt text ('-' reads stdin)")
    enc.add_argument("text")
    enc.add_argument(
        "--format",
        dest="container_format",
        choices=settings.CONTAINER_FORMATS,
        default=None,
        help="Container layout (default: DMS4096_CONTAINER_FORMAT or legacy)"
    )
    enc.add_argument("--stats", action="store_true", help="Print encryption statistics to stderr")

    dec = subparsers.add_parser("decrypt", parents=[common], help="Decrypt a container ('-' reads stdin)")
    dec.add_argument("container")
    dec.add_argument("--out-dir", default=".", help="Where decrypted file payloads are written")
    dec.add_argument("--force", action="store_true", help="Overwrite existing output files")

    enc_file = subparsers.add_parser("encrypt-file", parents=[common], help="Encrypt files to <name>.dms")
    enc_file.add_argument("paths", nargs="+")
    enc_file.add_argument(
        "--format",
        dest="container_format",
        choices=settings.CONTAINER_FORMATS,
        default=None
    )
    enc_file.add_argument("--force", action="store_true", help="Overwrite existing output files")

    dec_file = subparsers.add_parser("decrypt-file", parents=[common], help="Decrypt .dms files")
    dec_file.add_argument("paths", nargs="+")
    dec_file.add_argument("--out-dir", default=None, help="Output directory (default: next to input)")
    dec_file.add_argument("--force", action="store_true", help="Overwrite existing output files")

    keygen = subparsers.add_parser("keygen", help="Print a random passphrase")
    keygen.add_argument("-n", "--length", type=int, default=32)
    return parser


def cli(argv=None) -> int:
    theme = _CliTheme(_cli_plain_mode())
    args = _build_parser().parse_args(argv)

    if args.command == "keygen":
        try:
            print(generate_passphrase(args.length))
        except DMSError as exc:
            print(theme.err(str(exc)), file=sys.stderr)
            return 1
        return 0

    if args.command == "encrypt":
        text = _read_arg(args.text)
        try:
            start = time.perf_counter()
            container = codec.encode_text(text, args.passphrase, container_format=args.container_format)
            elapsed = time.perf_counter() - start
        except DMSError as exc:
            print(theme.err(f"Encryption failed: {exc}"), file=sys.stderr)
            return 1
        print(container)
        if args.stats:
            _print_stats(theme, codec.collect_stats(len(text.encode("utf-8")), container, elapsed))
        return 0

    if args.command == "decrypt":
        failure = None
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", RuntimeWarning)
            try:
                result = codec.decode(_read_arg(args.container), args.passphrase)
            except DMSError as exc:
                failure = exc
        _report_warnings(theme, caught)
        if failure is not None:
            print(theme.err(f"Decryption failed: {failure}"), file=sys.stderr)
            return 1
        if not result.is_file:
            print(result.payload)
            return 0
        out_dir = Path(args.out_dir)
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
            target = out_dir / files.safe_name(result.metadata.name)
            if target.exists() and not args.force:
                raise FileExistsError(f"Refusing to overwrite {target}")
            target.write_bytes(result.payload)
        except (OSError, ValueError) as exc:
            print(theme.err(str(exc)), file=sys.stderr)
            return 1
        print(theme.ok(f"{result.metadata.name} ({result.metadata.content_type or 'unknown type'}, "
                       f"{result.metadata.size} bytes) -> {target}"))
        return 0

    failures = 0
    for raw_path in args.paths:
        failure = None
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", RuntimeWarning)
            try:
                if args.command == "encrypt-file":
                    target = files.encrypt_path(
                        raw_path,
                        passphrase=args.passphrase,
                        container_format=args.container_format,
                        overwrite=args.force
                    )
                else:
                    target = files.decrypt_path(
                        raw_path,
                        out_dir=args.out_dir,
                        passphrase=args.passphrase,
                        overwrite=args.force
                    )
            except (OSError, ValueError) as exc:
                failure = exc
        _report_warnings(theme, caught)
        if failure is not None:
            failures += 1
            print(theme.err(f"{raw_path}: FAIL! {failure}"), file=sys.stderr)
            continue
        print(theme.ok(f"{raw_path}: SUCCESS! -> {target}"))
    return 0 if failures == 0 else 1


def main(argv=None) -> int:
    try:
        return cli(argv)
    except KeyboardInterrupt:
        print("Exiting...")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
