"""
Trial search engine: picks the packet sample handed to dictionary training.

Flow:
- no_trials  : the whole dictionary pool is trained once, no randomness.
- otherwise  : the whole pool is scored once as the incumbent, then each
               generation runs `dictionary_trials` trials. A trial perturbs the
               incumbent selection (see sampling.py), trains a dictionary and
               scores it against the dictionary-test pool. The best trial of a
               generation replaces the incumbent only if it scores strictly
               higher, so the best-known score never regresses.

Trials of one generation are independent and may run on a thread pool. The
winner is reduced only after every trial of the generation has finished;
ties go to the lower trial index.

There is no convergence check: cost is trial_generations * dictionary_trials
trainings (plus one baseline).
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Sequence

from ..config import TrialConfig
from ..dto import GenerationSummary, PacketRecord, PoolSet, SearchOutcome, TrialCandidate, TrialResult
from ..errors import EmptyCaptureError, SearchExhaustedError, TrainingFailedError
from ..ports import CompressorPort, TrainerPort
from .builder import train_packets
from .sampling import mutate_selection, randomness_for_generation, trial_rng

logger = logging.getLogger(__name__)


def score_dictionary(dictionary: bytes, packets: Sequence[bytes], compressor: CompressorPort) -> float:
    """Aggregate compression ratio (raw bytes / compressed bytes) over `packets`."""
    raw = 0
    compressed = 0
    for p in packets:
        raw += len(p)
        compressed += int(compressor.compress(p, dictionary))
    if compressed <= 0:
        return 0.0
    return float(raw) / float(compressed)


def candidate_payloads(candidate: TrialCandidate, pools: PoolSet) -> List[bytes]:
    """Resolve a candidate's material indices (dictionary pool, then overflow pool)."""
    material = list(pools.dictionary.records) + list(pools.trainer_overflow.records)
    return TrialSearchEngine._payloads(candidate, material)


class TrialSearchEngine:
    """
    Runs the generational search over one PoolSet.

    Parameters
    ----------
    cfg : TrialConfig
        Trial counts, randomness schedule, seed and capacities.
    trainer : TrainerPort
        Training primitive.
    compressor : CompressorPort
        Compression primitive used for scoring.
    pbar : tqdm-like, optional
        Progress bar advanced once per generation.
    """

    def __init__(
        self,
        cfg: TrialConfig,
        *,
        trainer: TrainerPort,
        compressor: CompressorPort,
        pbar=None,
    ) -> None:
        self._cfg = cfg
        self._trainer = trainer
        self._compressor = compressor
        self._pbar = pbar

    # --- entry point ---

    def run(self, pools: PoolSet) -> SearchOutcome:
        cfg = self._cfg
        material: List[PacketRecord] = list(pools.dictionary.records) + list(pools.trainer_overflow.records)
        full = TrialCandidate(generation=0, trial=0, indices=tuple(range(len(pools.dictionary))))
        if not full.indices:
            raise EmptyCaptureError("Dictionary pool is empty; nothing to train on")

        if cfg.no_trials:
            logger.info("Trials disabled: selecting all %d dictionary packets", len(full))
            return SearchOutcome(candidate=full, dictionary=None, score=None, single_pass=True)

        eval_set = pools.dictionary_test.payloads()
        if not eval_set:
            logger.warning("Dictionary test pool is empty; scoring against the dictionary pool")
            eval_set = pools.dictionary.payloads()

        incumbent: Optional[TrialResult] = self._evaluate(full, material, eval_set)
        if incumbent.ok:
            logger.info("Baseline (%d packets) score %.4f", len(full), incumbent.score)
        else:
            logger.warning("Baseline training failed: %s", incumbent.error)
            incumbent = None

        sizes = [r.size for r in material]
        summaries: List[GenerationSummary] = []

        for g in range(1, cfg.trial_generations + 1):
            randomness = randomness_for_generation(cfg, g)
            base = incumbent.candidate.indices if incumbent is not None else full.indices
            candidates = [
                TrialCandidate(
                    generation=g,
                    trial=t,
                    indices=mutate_selection(
                        base,
                        sizes,
                        randomness=randomness,
                        rng=trial_rng(cfg.seed, g, t),
                        capacity=cfg.dictionary_capacity,
                    ),
                    randomness=randomness,
                )
                for t in range(cfg.dictionary_trials)
            ]

            results = self._evaluate_generation(candidates, material, eval_set)
            winner = _pick_winner(results)
            failed = sum(1 for r in results if not r.ok)
            if winner is None:
                raise SearchExhaustedError(g, len(results), _last_error(results))

            improved = incumbent is None or winner.score > incumbent.score
            if improved:
                incumbent = winner

            summaries.append(
                GenerationSummary(
                    generation=g,
                    randomness=randomness,
                    trials=len(results),
                    failed=failed,
                    winner_trial=winner.candidate.trial,
                    winner_score=winner.score,
                    incumbent_score=incumbent.score,
                    improved=improved,
                )
            )
            logger.info(
                "Generation %d/%d (randomness %.1f%%): best trial %d score %.4f, incumbent %.4f%s",
                g,
                cfg.trial_generations,
                randomness,
                winner.candidate.trial,
                winner.score,
                incumbent.score,
                " (improved)" if improved else "",
            )
            if self._pbar is not None:
                self._pbar.update(1)

        return SearchOutcome(
            candidate=incumbent.candidate,
            dictionary=incumbent.dictionary,
            score=incumbent.score,
            generations=tuple(summaries),
        )

    # --- evaluation ---

    def _evaluate_generation(
        self,
        candidates: List[TrialCandidate],
        material: List[PacketRecord],
        eval_set: List[bytes],
    ) -> List[TrialResult]:
        """Evaluate every trial; results are returned in trial order."""
        if self._cfg.trial_workers <= 1 or len(candidates) <= 1:
            return [self._evaluate(c, material, eval_set) for c in candidates]

        by_trial: Dict[int, TrialResult] = {}
        with ThreadPoolExecutor(max_workers=self._cfg.trial_workers) as executor:
            futures = {executor.submit(self._evaluate, c, material, eval_set): c.trial for c in candidates}
            for future in as_completed(futures):
                by_trial[futures[future]] = future.result()
        return [by_trial[c.trial] for c in candidates]

    def _evaluate(
        self,
        candidate: TrialCandidate,
        material: List[PacketRecord],
        eval_set: List[bytes],
    ) -> TrialResult:
        try:
            dictionary = train_packets(
                self._trainer, self._payloads(candidate, material), self._cfg.hash_table_size
            )
        except TrainingFailedError as e:
            logger.debug("Generation %d trial %d failed: %s", candidate.generation, candidate.trial, e)
            return TrialResult(
                candidate=candidate,
                error=f"generation {candidate.generation} trial {candidate.trial}: {e}",
            )

        score = score_dictionary(dictionary, eval_set, self._compressor)
        logger.debug(
            "Generation %d trial %d: %d packets, score %.4f",
            candidate.generation,
            candidate.trial,
            len(candidate),
            score,
        )
        return TrialResult(candidate=candidate, score=score, dictionary=dictionary)

    @staticmethod
    def _payloads(candidate: TrialCandidate, material: List[PacketRecord]) -> List[bytes]:
        return [material[i].payload for i in candidate.indices]


# === Helpers ===


def _pick_winner(results: List[TrialResult]) -> Optional[TrialResult]:
    """Highest score wins; on ties the earlier trial is kept."""
    best: Optional[TrialResult] = None
    for r in results:
        if not r.ok:
            continue
        if best is None or r.score > best.score:
            best = r
    return best


def _last_error(results: List[TrialResult]) -> Optional[TrainingFailedError]:
    for r in reversed(results):
        if r.error:
            return TrainingFailedError(r.error)
    return None
