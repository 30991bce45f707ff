"""
Dictionary generation orchestration.

Stages (one call to DictionaryGenerator.generate):
  1. open and merge the capture files (intake.merger)
  2. partition packets into pools (pipeline.pools)
  3. pick the training sample (pipeline.search)
  4. train if needed, write the dictionary (pipeline.builder)
  5. optionally run the compression test on the reserved pool

Pools and file handles are released on every exit path.

auto_generate_dictionaries runs the same pipeline once per capture
directory under <game>/Saved/Oodle/Server.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from ..adapters.zstd_primitives import ZstdCompressor, ZstdTrainer
from ..config import TrialConfig
from ..dto import AutoGenerateEntry, GeneratedDictionary, GenerationResult
from ..errors import PacketDictError
from ..intake.locator import ALL, Changelist, normalize_changelist
from ..intake.merger import build_merge_sources, iter_merged
from ..intake.validator import Confirm, verify_output_path
from ..pipeline.builder import build, persist, validate
from ..pipeline.pools import init_pools, read_all
from ..pipeline.search import TrialSearchEngine, candidate_payloads
from ..ports import CompressorPort, TrainerPort

logger = logging.getLogger(__name__)

DICTIONARY_SUFFIX = ".udic"
CAPTURE_ROOT = Path("Saved") / "Oodle" / "Server"
DICTIONARY_ROOT = Path("Content") / "Oodle"


class DictionaryGenerator:
    """
    Runs the full pipeline for one output dictionary.

    Parameters
    ----------
    cfg : TrialConfig
        Resolved tunables.
    trainer, compressor : optional
        Primitive implementations; zstandard adapters by default.
    """

    def __init__(
        self,
        cfg: TrialConfig,
        *,
        trainer: Optional[TrainerPort] = None,
        compressor: Optional[CompressorPort] = None,
    ) -> None:
        self.cfg = cfg
        self.trainer = trainer or ZstdTrainer(cfg.dictionary_size, level=cfg.compression_level)
        self.compressor = compressor or ZstdCompressor(
            hash_table_size=cfg.hash_table_size, level=cfg.compression_level
        )

    def generate(
        self,
        output_path: Path | str,
        input_files: Sequence[Path | str],
        *,
        filename_filter: str = "",
        changelist_filter: Changelist = ALL,
        pbar=None,
    ) -> GenerationResult:
        """
        Generate and write one dictionary from `input_files`.

        `input_files` may list capture files or a directory of captures.
        The caller must already have confirmed `output_path`.
        """
        cfg = self.cfg
        out = Path(output_path)

        with init_pools(cfg) as pools:
            with build_merge_sources(
                input_files,
                allow_single_file=True,
                filename_filter=filename_filter,
                changelist_filter=changelist_filter,
            ) as sources:
                read_all(pools, iter_merged(sources), cfg)
            totals = pools.totals()

            engine = TrialSearchEngine(cfg, trainer=self.trainer, compressor=self.compressor, pbar=pbar)
            outcome = engine.run(pools)
            payloads = candidate_payloads(outcome.candidate, pools)

            if outcome.dictionary is None:
                dictionary = build(payloads, cfg, self.trainer, out)
            else:
                dictionary = GeneratedDictionary(
                    data=outcome.dictionary,
                    output_path=out,
                    packet_count=len(payloads),
                    source_bytes=sum(len(p) for p in payloads),
                    score=outcome.score,
                )
            persist(dictionary)

            report = None
            if cfg.compression_test:
                report = validate(dictionary, pools.compression_test, self.compressor)

            return GenerationResult(
                dictionary=dictionary,
                outcome=outcome,
                report=report,
                packets_read=pools.packets_read,
                pool_totals=totals,
            )


def auto_generate_dictionaries(
    game_root: Path | str,
    cfg: TrialConfig,
    changelist: Changelist = ALL,
    *,
    game_name: Optional[str] = None,
    confirm: Optional[Confirm] = None,
    generator: Optional[DictionaryGenerator] = None,
) -> List[AutoGenerateEntry]:
    """
    Generate one dictionary per capture directory.

    Captures in <root>/Saved/Oodle/Server/<Dir> produce
    <root>/Content/Oodle/<GameName><Dir>.udic. A failing directory is
    reported in its entry; the others still run.
    """
    root = Path(game_root)
    name = game_name or root.resolve().name
    capture_root = root / CAPTURE_ROOT
    if not capture_root.is_dir():
        logger.error("Capture directory not found: %s", capture_root)
        return []

    gen = generator or DictionaryGenerator(cfg)

    token = normalize_changelist(changelist)
    entries: List[AutoGenerateEntry] = []
    for directory in sorted(p for p in capture_root.iterdir() if p.is_dir()):
        out = root / DICTIONARY_ROOT / f"{name}{directory.name}{DICTIONARY_SUFFIX}"
        if not verify_output_path(out, confirm):
            entries.append(AutoGenerateEntry(directory=directory, output_path=out, skipped=True))
            continue

        logger.info(
            "Generating %s from %s%s", out, directory, f" (changelist {token})" if token else ""
        )
        try:
            result = gen.generate(out, [directory], changelist_filter=changelist)
        except PacketDictError as e:
            logger.error("Dictionary generation failed for %s: %s", directory, e)
            entries.append(AutoGenerateEntry(directory=directory, output_path=out, error=str(e)))
        else:
            entries.append(AutoGenerateEntry(directory=directory, output_path=out, result=result))

    return entries
