"""
cdtext - CD-Text Dump Command-Line Interface
============================================

This module implements the ``cdtext`` command. It reads a CD-Text dump (bare
packs or a READ TOC/PMA/ATIP response) and prints what it contains.

Commands
--------
- **dump**: Print every decoded entry
- **packs**: List the raw packs
- **info**: Show a summary of the disc and its language blocks
- **validate**: Report every problem found while decoding

Usage Examples
--------------
Print the decoded text:
    $ cdtext dump disc.cdt

Only track 3, reading a file that holds bare packs:
    $ cdtext dump --no-header -t 3 disc.cdt

Inspect damaged packs with debug logging:
    $ cdtext -v packs disc.cdt

Check a dump (exit code 1 if anything is wrong):
    $ cdtext validate --strict disc.cdt

Decoder defaults can also be set through CDTEXT_* environment variables;
command-line options take precedence.
"""

import sys
from pathlib import Path
from typing import Callable, Optional
import logging

import click

from cdtext import __version__
from cdtext.charset import CharacterSet
from cdtext.cli.errors import ExitCode, handle_cli_exception
from cdtext.config import DecoderConfig
from cdtext.packs import RESPONSE_HEADER_SIZE, PackType, has_response_header
from cdtext.parser import CDTextParser


# =============================================================================
# CLI Context and Parameter Types
# =============================================================================

class Context:
    """Shared state for cdtext commands."""

    def __init__(self) -> None:
        self.verbose: bool = False

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(name)s: %(message)s" if self.verbose else "%(levelname)s: %(message)s",
        )


pass_context = click.make_pass_decorator(Context, ensure=True)


class CharacterSetChoice(click.ParamType):
    """
    Click parameter type for character set selection.

    Accepts the CharacterSet member names, case-insensitive, with dashes or
    underscores (iso-8859-1, ascii, ms-jis, korean, mandarin).
    """
    name = "charset"

    def convert(self, value, param: Optional[click.Parameter],
                ctx: Optional[click.Context]) -> CharacterSet:
        """Convert string to CharacterSet."""
        if isinstance(value, CharacterSet):
            return value
        try:
            return CharacterSet.from_name(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


CHARACTER_SET = CharacterSetChoice()


def decode_options(func: Callable) -> Callable:
    """Add the input and decoder options shared by every command."""
    options = [
        click.argument(
            "input_file",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
        ),
        click.option(
            "--header/--no-header",
            default=None,
            help="Input starts with a READ TOC response header (default: detect)",
        ),
        click.option(
            "-l", "--length",
            type=click.IntRange(min=0),
            default=None,
            help="Number of pack bytes to decode (default: all)",
        ),
        click.option(
            "--no-verify",
            is_flag=True,
            help="Do not verify pack checksums",
        ),
        click.option(
            "--skip-invalid",
            is_flag=True,
            help="Leave packs with a bad checksum out of the entries",
        ),
        click.option(
            "--strict",
            is_flag=True,
            help="Fail on malformed sizes and checksum errors",
        ),
        click.option(
            "-c", "--charset",
            type=CHARACTER_SET,
            default=None,
            help="Character set for blocks that declare none (default: iso-8859-1)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_config(
    no_verify: bool,
    skip_invalid: bool,
    strict: bool,
    charset: Optional[CharacterSet],
) -> DecoderConfig:
    """Start from the environment and apply the options that were given."""
    config = DecoderConfig.from_env()
    changes = {}
    if no_verify:
        changes["verify_checksums"] = False
    if skip_invalid:
        changes["skip_invalid_checksums"] = True
    if strict:
        changes["strict"] = True
    if charset is not None:
        changes["default_character_set"] = charset
    return config.with_overrides(**changes)


def load_parser(
    input_file: Path,
    header: Optional[bool],
    length: Optional[int],
    config: DecoderConfig,
) -> CDTextParser:
    """
    Decode an input file.

    Without --length the declared length comes from the response header (or
    the file size for bare packs). With --length the header, if any, is
    skipped and the given number of pack bytes is decoded.
    """
    if length is None:
        return CDTextParser.from_file(input_file, header, config)

    data = input_file.read_bytes()
    if header is None:
        header = has_response_header(data)
    if header:
        data = data[RESPONSE_HEADER_SIZE:]
    return CDTextParser.from_bytes(data, length, config)


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable debug logging",
)
@click.version_option(__version__, "--version", "-V", prog_name="cdtext")
@pass_context
def main(ctx: Context, verbose: bool) -> None:
    """
    CD-Text decoder for audio CD lead-in data.

    Reads a CD-Text dump, either bare 18-byte packs or a drive's READ
    TOC/PMA/ATIP (format 5) response, and decodes its text.

    \b
    Commands:
      dump      Print decoded entries
      packs     List raw packs
      info      Show disc and block summary
      validate  Report decoding problems

    \b
    Examples:
      cdtext dump disc.cdt
      cdtext -v packs --no-header packs.bin
      cdtext validate disc.cdt
    """
    ctx.verbose = verbose
    ctx.setup_logging()


# =============================================================================
# Dump Command
# =============================================================================

@main.command("dump")
@decode_options
@click.option(
    "-t", "--track",
    type=click.IntRange(min=0, max=127),
    default=None,
    help="Only show entries of this track (0 = album)",
)
@pass_context
def cmd_dump(
    ctx: Context,
    input_file: Path,
    header: Optional[bool],
    length: Optional[int],
    no_verify: bool,
    skip_invalid: bool,
    strict: bool,
    charset: Optional[CharacterSet],
    track: Optional[int],
) -> None:
    """
    Print the decoded CD-Text entries.

    One line per entry, with any integrity flags in brackets.

    \b
    Example:
      cdtext dump disc.cdt

    \b
    Output format:
      Album: TITLE: 'Kind of Blue'
      Track #1: TITLE: 'So What'
      Track #2: TITLE: 'Freddie Freeloader' [incomplete]
    """
    try:
        config = build_config(no_verify, skip_invalid, strict, charset)
        parser = load_parser(input_file, header, length, config)

        entries = parser.entries
        if track is not None:
            entries = list(parser.iter_track_entries(track))

        for entry in entries:
            line = f"{entry.get_track_label()}: {entry.pack_type.name}: {entry.text!r}"
            flags = entry.get_flags()
            if flags:
                line += f" [{', '.join(flags)}]"
            click.echo(line)

        if not entries:
            click.echo("No CD-Text entries found")

    except Exception as e:
        handle_cli_exception(e, ctx.verbose)


# =============================================================================
# Packs Command
# =============================================================================

@main.command("packs")
@decode_options
@pass_context
def cmd_packs(
    ctx: Context,
    input_file: Path,
    header: Optional[bool],
    length: Optional[int],
    no_verify: bool,
    skip_invalid: bool,
    strict: bool,
    charset: Optional[CharacterSet],
) -> None:
    """
    List the raw packs of a dump.

    \b
    Example:
      cdtext packs disc.cdt

    \b
    Output format:
      Idx  Type        Trk  Seq Blk Pos DB Payload                  CRC
        0  TITLE         0    0   0   0  - 4b696e64206f6620426c7565 OK
    """
    try:
        config = build_config(no_verify, skip_invalid, strict, charset)
        parser = load_parser(input_file, header, length, config)

        click.echo(
            f"{'Idx':>4} {'Type':<12} {'Trk':>3} {'Seq':>3} {'Blk':>3} "
            f"{'Pos':>3} {'DB':>2} {'Payload':<24} CRC"
        )
        click.echo("-" * 64)

        for pack in parser.packs:
            type_name = pack.pack_type.name if pack.pack_type else f"0x{pack.type_code:02X}"
            if not config.verify_checksums:
                status = "-"
            elif pack.checksum_invalid:
                status = "BAD"
            else:
                status = "OK"
            click.echo(
                f"{pack.index:>4} {type_name:<12} {pack.track_number:>3} "
                f"{pack.sequence_number:>3} {pack.block_number:>3} "
                f"{pack.character_position:>3} {'*' if pack.is_double_byte else '-':>2} "
                f"{pack.payload.hex():<24} {status}"
            )

        click.echo("-" * 64)
        click.echo(f"Total: {len(parser.packs)} packs")

    except Exception as e:
        handle_cli_exception(e, ctx.verbose)


# =============================================================================
# Info Command
# =============================================================================

@main.command("info")
@decode_options
@pass_context
def cmd_info(
    ctx: Context,
    input_file: Path,
    header: Optional[bool],
    length: Optional[int],
    no_verify: bool,
    skip_invalid: bool,
    strict: bool,
    charset: Optional[CharacterSet],
) -> None:
    """
    Show a summary of a CD-Text dump.

    \b
    Example:
      cdtext info disc.cdt

    \b
    Output includes:
      - Pack and entry counts
      - Album title and performer
      - Tracks with text
      - Size information of each language block
    """
    try:
        config = build_config(no_verify, skip_invalid, strict, charset)
        parser = load_parser(input_file, header, length, config)
        info = parser.get_info()

        click.echo(f"CD-Text Information: {input_file}")
        click.echo("=" * 40)
        click.echo(f"Packs:       {info['pack_count']}")
        click.echo(f"Entries:     {info['entry_count']}")
        click.echo(f"Bad CRCs:    {info['invalid_checksums']}")
        click.echo(f"Title:       {info['album_title'] or '-'}")
        click.echo(f"Performer:   {info['album_performer'] or '-'}")
        tracks = ", ".join(str(t) for t in info["tracks"]) or "-"
        click.echo(f"Tracks:      {tracks}")
        click.echo(f"Conditions:  {info['condition_count']}")

        for block_number, block in sorted(parser.block_info.items()):
            click.echo()
            click.echo(f"Block {block_number}:")
            charset_name = block.character_set.name if block.character_set else f"0x{block.character_code:02X}"
            click.echo(f"  Language:    {info['languages'][block_number]}")
            click.echo(f"  Charset:     {charset_name}")
            click.echo(f"  Tracks:      {block.first_track}-{block.last_track}")
            click.echo(f"  Copyright:   0x{block.copyright_flags:02X}")
            for pack_type in PackType:
                count = block.get_pack_count(pack_type)
                if count:
                    click.echo(f"  {pack_type.get_description():<24} {count} packs")

    except Exception as e:
        handle_cli_exception(e, ctx.verbose)


# =============================================================================
# Validate Command
# =============================================================================

@main.command("validate")
@decode_options
@pass_context
def cmd_validate(
    ctx: Context,
    input_file: Path,
    header: Optional[bool],
    length: Optional[int],
    no_verify: bool,
    skip_invalid: bool,
    strict: bool,
    charset: Optional[CharacterSet],
) -> None:
    """
    Validate a CD-Text dump.

    Checks:
    - Length is a whole number of packs
    - Pack checksums
    - Sequence continuity
    - Field terminators and character positions

    Exits with status 1 if any problem is found.

    \b
    Example:
      cdtext validate disc.cdt
    """
    try:
        config = build_config(no_verify, skip_invalid, strict, charset)
        parser = load_parser(input_file, header, length, config)
    except Exception as e:
        handle_cli_exception(e, ctx.verbose)

    if parser.conditions:
        click.echo("Validation FAILED:")
        for condition in parser.conditions:
            click.echo(f"  {condition}")
        click.echo(f"{len(parser.conditions)} problem(s) in {len(parser.packs)} packs")
        sys.exit(ExitCode.DECODE_ERROR)

    click.echo(f"Validation PASSED: {input_file}")
    if ctx.verbose:
        click.echo(f"{len(parser.packs)} packs, {len(parser.entries)} entries")


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
