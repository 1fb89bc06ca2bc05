#!/usr/bin/env python3
"""
tftk: convert, compose and query rigid transforms from the command line.

Subcommands:
    convert   re-encode one transform document
    compose   chain several transform documents left to right
    lookup    query a transform between two frames of a transform set
    export    rewrite a transform set (or a directory of them) as spanning facts
"""
from __future__ import annotations

import argparse
import contextlib
import logging
import sys
from typing import IO, Iterator, List, Optional

from pydantic import ValidationError

from tfchain.common.rigid_transform import RigidTransform
from tfchain.common.rotation import RotationFormat
from tfchain.common.units import AngleFormat
from tfchain.config import KeepTranslation, OutputParams, load_params
from tfchain.errors import InsertionError
from tfchain.serialization import (
    FileFormat,
    dump_transform,
    dump_transform_set,
    load_transform,
    load_transform_set_path,
    parse_transform,
    read_document,
    resolve_format,
    write_document,
)

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def open_input(path: str) -> Iterator[IO[str]]:
    """``-`` reads stdin, anything else is a file path."""
    if path == "-":
        yield sys.stdin
    else:
        with open(path, "r", encoding="utf-8") as f:
            yield f


@contextlib.contextmanager
def open_output(path: str) -> Iterator[IO[str]]:
    """``-`` writes stdout, anything else is a file path."""
    if path == "-":
        yield sys.stdout
        sys.stdout.flush()
    else:
        with open(path, "w", encoding="utf-8") as f:
            yield f


def _output_params(args: argparse.Namespace) -> OutputParams:
    _, defaults = load_params(args.config) if args.config else (None, OutputParams())
    updates = {}
    if getattr(args, "rotation_format", None) is not None:
        updates["rotation_format"] = RotationFormat(args.rotation_format)
    if getattr(args, "angle_format", None) is not None:
        updates["angle_format"] = AngleFormat(args.angle_format)
    if getattr(args, "keep_translation", None) is not None:
        updates["keep_translation"] = KeepTranslation(args.keep_translation)
    if getattr(args, "pretty", None) is not None:
        updates["pretty"] = args.pretty
    return defaults.model_copy(update=updates)


def _format_arg(value: Optional[str]) -> Optional[FileFormat]:
    return FileFormat(value) if value is not None else None


def cmd_convert(args: argparse.Namespace) -> int:
    input_format = resolve_format(args.input, _format_arg(args.input_format))
    output_format = resolve_format(args.output, _format_arg(args.output_format))
    output = _output_params(args)

    with open_input(args.input) as f:
        tf, has_translation = parse_transform(read_document(f, input_format))

    with open_output(args.output) as f:
        write_document(dump_transform(tf, has_translation, output), f, output_format, output.pretty)
    return 0


def cmd_compose(args: argparse.Namespace) -> int:
    output_format = resolve_format(args.output, _format_arg(args.output_format))
    output = _output_params(args)

    prod = RigidTransform.identity()
    has_translation = False
    for path in args.input_files:
        tf, has_t = load_transform(path)
        prod = prod.compose(tf)
        has_translation = has_translation or has_t

    with open_output(args.output) as f:
        write_document(dump_transform(prod, has_translation, output), f, output_format, output.pretty)
    return 0


def _load_set(args: argparse.Namespace):
    set_params, _ = load_params(args.config) if args.config else (None, None)
    return load_transform_set_path(args.transform_set, _format_arg(args.input_format), set_params)


def cmd_lookup(args: argparse.Namespace) -> int:
    output_format = resolve_format(args.output, _format_arg(args.output_format))
    output = _output_params(args)
    tset = _load_set(args)

    tf = tset.get(args.src, args.dst)
    if tf is None:
        print(f"no transform from '{args.src}' to '{args.dst}'", file=sys.stderr)
        return 1

    with open_output(args.output) as f:
        write_document(dump_transform(tf, True, output), f, output_format, output.pretty)
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    output_format = resolve_format(args.output, _format_arg(args.output_format))
    output = _output_params(args)
    tset = _load_set(args)

    with open_output(args.output) as f:
        write_document(dump_transform_set(tset, output), f, output_format, output.pretty)
    return 0


def _add_output_args(p: argparse.ArgumentParser, rotation_required: bool) -> None:
    file_formats = [fmt.value for fmt in FileFormat]
    p.add_argument("-t", "--output-format", choices=file_formats, help="Output file format (guessed from extension)")
    p.add_argument(
        "-r", "--rotation-format",
        choices=[fmt.value for fmt in RotationFormat],
        required=rotation_required,
        help="Rotation encoding of the output",
    )
    p.add_argument("-a", "--angle-format", choices=[fmt.value for fmt in AngleFormat], help="Angle unit of the output (default deg)")
    p.add_argument(
        "-k", "--keep-translation",
        choices=[mode.value for mode in KeepTranslation],
        help="Keep, always write, or drop the translation (default auto)",
    )
    p.add_argument("--pretty", action=argparse.BooleanOptionalAction, default=None, help="Indent the output")
    p.add_argument("-o", "--output", default="-", help="Output path, '-' for stdout")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="tftk", description="Rigid transform toolkit")
    ap.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity")
    ap.add_argument("-c", "--config", help="YAML parameter file")
    sub = ap.add_subparsers(dest="command", required=True)

    file_formats = [fmt.value for fmt in FileFormat]

    p = sub.add_parser("convert", help="Re-encode a transform document")
    p.add_argument("-f", "--input-format", choices=file_formats, help="Input file format (guessed from extension)")
    p.add_argument("-i", "--input", default="-", help="Input path, '-' for stdin")
    _add_output_args(p, rotation_required=True)
    p.set_defaults(func=cmd_convert)

    p = sub.add_parser("compose", help="Compose transform documents left to right")
    p.add_argument("input_files", nargs="+", help="Transform documents, applied in order")
    _add_output_args(p, rotation_required=False)
    p.set_defaults(func=cmd_compose)

    p = sub.add_parser("lookup", help="Query the transform between two frames")
    p.add_argument("transform_set", help="Transform-set file or directory")
    p.add_argument("src", help="Source frame")
    p.add_argument("dst", help="Destination frame")
    p.add_argument("-f", "--input-format", choices=file_formats, help="Input file format (guessed from extension)")
    _add_output_args(p, rotation_required=False)
    p.set_defaults(func=cmd_lookup)

    p = sub.add_parser("export", help="Write the spanning facts of a transform set")
    p.add_argument("transform_set", help="Transform-set file or directory")
    p.add_argument("-f", "--input-format", choices=file_formats, help="Input file format (guessed from extension)")
    _add_output_args(p, rotation_required=False)
    p.set_defaults(func=cmd_export)

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        return args.func(args)
    except (InsertionError, ValidationError, ValueError, OSError) as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
