"""
Command line driver.

Verbs:
  AutoGenerateDictionaries [Changelist]
  MergePackets OutputFile PacketFile1,PacketFile2,...   |  MergePackets OutputFile All Directory
  GenerateDictionary OutputFile FilenameFilter Changelist PacketFile1,...  |  ... All Directory
  DebugDump OutputDirectory CaptureDirectory [Changelist]

Use "all" for FilenameFilter or Changelist to disable that filter.
Exit codes: 0 success, 1 failure, 2 usage error.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import ValidationError
from tqdm import tqdm

from .config import TrialConfig
from .errors import PacketDictError
from .intake.locator import ALL
from .intake.merger import merge_to_file
from .intake.validator import Confirm, verify_output_path
from .orchestration.generator import DictionaryGenerator, auto_generate_dictionaries
from .pipeline.debug_dump import dump
from .settings import load_settings
from .utils import init_logging

logger = logging.getLogger("packetdict.cli")


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", "-c", default=None, help="YAML settings file with a `packetdict:` section.")
    common.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, ...).")
    common.add_argument("--log-file", default=None, help="Optional rotating log file.")
    common.add_argument("--force", "-f", action="store_true", help="Overwrite existing outputs without asking.")
    tuning = argparse.ArgumentParser(add_help=False)
    tuning.add_argument("--seed", type=int, default=None, help="Seed for the trial search.")
    tuning.add_argument("--no-trials", action="store_true", default=None, help="Disable random trials.")
    tuning.add_argument(
        "--compression-test", action="store_true", default=None, help="Report compression on held-out packets."
    )

    ap = argparse.ArgumentParser(
        prog="packetdict",
        description="Build network compression dictionaries from packet captures.",
    )
    sub = ap.add_subparsers(dest="verb", required=True)

    p = sub.add_parser(
        "AutoGenerateDictionaries", parents=[common, tuning], help="One dictionary per capture directory."
    )
    p.add_argument("changelist", nargs="?", default=ALL, help="Only use captures with this changelist in their name.")
    p.add_argument("--game-root", default=".", help="Game directory containing Saved/ and Content/.")
    p.add_argument("--game-name", default=None, help="Dictionary name prefix (default: game root name).")

    p = sub.add_parser("MergePackets", parents=[common], help="Merge capture files into one.")
    p.add_argument("output", help="Merged capture file.")
    p.add_argument("inputs", nargs="+", help="Comma-separated capture files, or: All <Directory>.")

    p = sub.add_parser("GenerateDictionary", parents=[common, tuning], help="Generate a dictionary from captures.")
    p.add_argument("output", help="Dictionary file to write.")
    p.add_argument("filename_filter", help='Filename substring filter, or "all".')
    p.add_argument("changelist", help='Changelist filter, or "all".')
    p.add_argument("inputs", nargs="+", help="Comma-separated capture files, or: All <Directory>.")

    p = sub.add_parser("DebugDump", parents=[common], help="Convert captures to example-tool .bin files.")
    p.add_argument("output_dir", help="Directory for .bin files (source structure is preserved).")
    p.add_argument("capture_dir", help="Directory containing .ucap files.")
    p.add_argument("changelist", nargs="?", default=ALL, help='Changelist filter, or "all".')

    return ap


def parse_input_list(inputs: Sequence[str]) -> List[Path]:
    """Turn `a,b,c` or `All <dir>` into paths."""
    if not inputs:
        raise ValueError("No input files given")
    if inputs[0].lower() == ALL:
        if len(inputs) != 2:
            raise ValueError("Expected: All <Directory>")
        directory = Path(inputs[1])
        if not directory.is_dir():
            raise ValueError(f"Not a directory: {directory}")
        return [directory]
    out: List[Path] = []
    for item in inputs:
        out.extend(Path(part) for part in item.split(",") if part.strip())
    return out


def prompt_overwrite(path: Path) -> bool:
    try:
        answer = input(f"Output file {path} already exists. Overwrite? [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    init_logging(args.log_level, args.log_file)

    try:
        cfg = load_settings(
            args.config,
            seed=getattr(args, "seed", None),
            no_trials=getattr(args, "no_trials", None),
            compression_test=getattr(args, "compression_test", None),
        )
    except (OSError, ValueError, ValidationError) as e:
        logger.error("Invalid settings: %s", e)
        return 2

    confirm: Confirm = (lambda _p: True) if args.force else prompt_overwrite

    try:
        if args.verb == "AutoGenerateDictionaries":
            return _auto_generate(args, cfg, confirm)
        if args.verb == "MergePackets":
            return _merge(args, confirm)
        if args.verb == "GenerateDictionary":
            return _generate(args, cfg, confirm)
        if args.verb == "DebugDump":
            return _debug_dump(args)
    except ValueError as e:
        logger.error("%s", e)
        return 2
    except PacketDictError as e:
        logger.error("%s", e)
        return 1
    except OSError as e:
        logger.error("I/O error: %s", e)
        return 1

    ap.error(f"Unknown verb {args.verb}")
    return 2


# === Verbs ===


def _auto_generate(args: argparse.Namespace, cfg: TrialConfig, confirm: Confirm) -> int:
    entries = auto_generate_dictionaries(
        args.game_root,
        cfg,
        args.changelist,
        game_name=args.game_name,
        confirm=confirm,
        generator=DictionaryGenerator(cfg),
    )
    if not entries:
        logger.error("No capture directories found under %s", args.game_root)
        return 1
    for e in entries:
        if e.ok:
            logger.info("%s: %d bytes from %d packets", e.output_path, e.result.dictionary.size, e.result.packets_read)
        elif e.skipped:
            logger.info("%s: skipped", e.output_path)
        else:
            logger.error("%s: %s", e.output_path, e.error)
    return 0 if all(e.ok or e.skipped for e in entries) else 1


def _merge(args: argparse.Namespace, confirm: Confirm) -> int:
    inputs = parse_input_list(args.inputs)
    if not verify_output_path(args.output, confirm):
        return 1
    merge_to_file(args.output, inputs)
    return 0


def _generate(args: argparse.Namespace, cfg: TrialConfig, confirm: Confirm) -> int:
    inputs = parse_input_list(args.inputs)
    if not verify_output_path(args.output, confirm):
        return 1
    generator = DictionaryGenerator(cfg)
    with tqdm(total=cfg.trial_generations, desc="Generations", disable=cfg.no_trials) as pbar:
        result = generator.generate(
            args.output,
            inputs,
            filename_filter=args.filename_filter,
            changelist_filter=args.changelist,
            pbar=pbar,
        )
    d = result.dictionary
    logger.info(
        "Dictionary %s: %d bytes, trained on %d of %d packets%s",
        d.output_path,
        d.size,
        d.packet_count,
        result.packets_read,
        f", score {d.score:.4f}" if d.score is not None else "",
    )
    if result.report is not None:
        r = result.report
        logger.info(
            "Compression test: ratio %.3f (mean %.3f, min %.3f, max %.3f), %.1f%% saved",
            r.ratio,
            r.mean_ratio,
            r.min_ratio,
            r.max_ratio,
            r.savings_percent,
        )
    return 0


def _debug_dump(args: argparse.Namespace) -> int:
    with tqdm(desc="DebugDump", unit="file") as pbar:
        summary = dump(args.capture_dir, args.output_dir, changelist_filter=args.changelist, pbar=pbar)
    logger.info("Debug dump: %d succeeded, %d failed", summary.succeeded, summary.failed)
    return 0 if summary.failed == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
