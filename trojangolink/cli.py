import argparse
import logging
import os
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from tqdm import tqdm

from .builder import build_config_json, build_custom_config
from .config_parser import parse_config
from .parser import LinkParser
from .plugin import PathPluginResolver
from .qr import generate_qr_ascii
from .settings import RuntimeSettings

console = Console()
err_console = Console(stderr=True)


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _read(path: str) -> str:
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def _write_or_print(text: str, output: str = None):
    if output:
        with open(output, 'w', encoding='utf-8') as f:
            f.write(text + "\n")
        err_console.print(f"[green]✓ Wrote {output}[/green]")
    else:
        # plain print keeps the JSON/URI pipeable
        print(text)


def _settings(args) -> RuntimeSettings:
    settings = RuntimeSettings.from_env(args.env_file)
    if args.local_port is not None:
        settings.local_port = args.local_port
    if args.mux:
        settings.enable_multiplexing = True
    if args.concurrency is not None:
        settings.multiplex_concurrency = args.concurrency
    if args.verbose_engine:
        settings.verbose_logging = True
    if args.prefer_ipv6:
        settings.prefer_ipv4 = False
    return settings


def cmd_decode(args):
    record = LinkParser.parse_link(args.uri)
    table = Table(title=str(record))
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in record.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)


def cmd_build(args):
    record = LinkParser.parse_link(args.uri)
    resolver = PathPluginResolver(args.plugin_path)
    _write_or_print(build_config_json(record, _settings(args), resolver), args.output)


def cmd_import(args):
    record = parse_config(_read(args.file))
    print(LinkParser.to_uri(record))


def cmd_rehome(args):
    _write_or_print(build_custom_config(_read(args.file), args.local_port), args.output)


def cmd_qr(args):
    # validate before advertising it
    record = LinkParser.parse_link(args.uri)
    link = LinkParser.to_uri(record)
    text, width, mode = generate_qr_ascii(link, console_width=console.width)
    if mode is None:
        err_console.print(f"[red]❌ {text}[/red]")
        return 1
    console.print(text, style="black on white", highlight=False)
    console.print(f"[dim]{record}[/dim]")


def cmd_convert(args):
    records = LinkParser.parse_file(args.file)
    if not records:
        err_console.print(f"[red]❌ No usable links in {args.file}[/red]")
        return 1

    settings = _settings(args)
    resolver = PathPluginResolver(args.plugin_path)
    os.makedirs(args.out_dir, exist_ok=True)
    for index, record in enumerate(tqdm(records, desc="Building configs", unit="cfg"), 1):
        path = os.path.join(args.out_dir, f"trojan-go-{index:03d}.json")
        with open(path, 'w', encoding='utf-8') as f:
            f.write(build_config_json(record, settings, resolver) + "\n")
    console.print(f"[green]✓ {len(records)} configs written to {args.out_dir}[/green]")


def _add_settings_args(parser):
    parser.add_argument("--local-port", type=int, default=None, help="Local SOCKS listen port")
    parser.add_argument("--mux", action="store_true", help="Enable multiplexing")
    parser.add_argument("--concurrency", type=int, default=None, help="Multiplex concurrency")
    parser.add_argument("--verbose-engine", action="store_true", help="Engine log_level 0 instead of 2")
    parser.add_argument("--prefer-ipv6", action="store_true", help="Do not set tcp.prefer_ipv4")
    parser.add_argument("--plugin-path", type=str, default=None, help="Search path for plugin binaries (default: PATH)")
    parser.add_argument("--env-file", type=str, default=None, help="Read settings from this .env file")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trojangolink", description="trojan-go link / engine config transcoder")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("decode", help="Show the fields of a trojan-go:// link")
    p.add_argument("uri")
    p.set_defaults(func=cmd_decode)

    p = sub.add_parser("build", help="Build the engine JSON config for a link")
    p.add_argument("uri")
    p.add_argument("--output", "-o", type=str, default=None)
    _add_settings_args(p)
    p.set_defaults(func=cmd_build)

    p = sub.add_parser("import", help="Turn an engine JSON config into a share link")
    p.add_argument("file")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("rehome", help="Copy an engine config with a new local port")
    p.add_argument("file")
    p.add_argument("--local-port", type=int, required=True)
    p.add_argument("--output", "-o", type=str, default=None)
    p.set_defaults(func=cmd_rehome)

    p = sub.add_parser("qr", help="Show a link as a terminal QR code")
    p.add_argument("uri")
    p.set_defaults(func=cmd_qr)

    p = sub.add_parser("convert", help="Build one engine config per link in a file")
    p.add_argument("--file", type=str, required=True, help="File with one link per line")
    p.add_argument("--out-dir", type=str, default="configs")
    _add_settings_args(p)
    p.set_defaults(func=cmd_convert)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    try:
        return args.func(args) or 0
    except (ValueError, OSError) as e:  # link/config errors are ValueErrors
        err_console.print(f"[red]❌ {e}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
