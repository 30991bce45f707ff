"""
Configuration schema for dictionary generation.

One validated, immutable value is passed into every entry point; there is
no process-wide mutable state. Defaults are resolved by `settings.load_settings`
from a YAML settings file and environment overrides.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class TrialConfig(BaseModel):
    """
    Tunables for one dictionary generation run.

    Sizes are in bytes unless noted; percentages are 0-100.
    """

    # === Dictionary primitive ===
    hash_table_size: int = Field(
        default=19,
        ge=10,
        le=27,
        description="Hash table size in bits (log2 of entry count) used by the compressor.",
    )
    dictionary_size: int = Field(
        default=262144,
        ge=1024,
        description="Target size of the generated dictionary.",
    )
    compression_level: int = Field(
        default=3,
        ge=1,
        le=22,
        description="Compression level used when scoring and validating dictionaries.",
    )

    # === Pools ===
    capacity_multiplier: int = Field(
        default=16,
        ge=1,
        description="Dictionary + dictionary-test pools hold at most dictionary_size * this many bytes.",
    )
    dictionary_test_percent: int = Field(
        default=20,
        ge=0,
        lt=100,
        description="Share of pool capacity (and of routed packets) held out to score trials.",
    )
    overflow_multiplier: int = Field(
        default=4,
        ge=0,
        description="Trainer overflow pool holds at most this many times the pool capacity.",
    )
    compression_test: bool = Field(
        default=False,
        description="Run a compression test after generation (uses up some of the packets).",
    )
    compression_test_percent: int = Field(
        default=10,
        ge=1,
        lt=100,
        description="Share of packets reserved for the compression test when enabled.",
    )

    # === Trial search ===
    dictionary_trials: int = Field(
        default=3,
        ge=1,
        description="Random packet-selection trials per generation.",
    )
    trial_randomness: int = Field(
        default=20,
        ge=0,
        le=100,
        description="Percent of a selection replaced by random packets in a trial.",
    )
    trial_generations: int = Field(
        default=3,
        ge=1,
        description="Number of generations of random packet-selection trials.",
    )
    randomness_decay: float = Field(
        default=0.75,
        gt=0.0,
        le=1.0,
        description="Per-generation multiplier applied to trial_randomness (1.0 disables annealing).",
    )
    min_trial_randomness: float = Field(
        default=1.0,
        ge=0.0,
        le=100.0,
        description="Floor for the decayed randomness percentage.",
    )
    no_trials: bool = Field(
        default=False,
        description="Disable random trials; train once on the whole dictionary pool.",
    )
    seed: int = Field(
        default=0,
        description="Seed for deterministic trial draws.",
    )
    trial_workers: int = Field(
        default=1,
        ge=1,
        description="Threads used to evaluate the trials of one generation.",
    )

    class Config:
        frozen = True

    # --- derived capacities ---

    @property
    def pool_capacity(self) -> int:
        return self.dictionary_size * self.capacity_multiplier

    @property
    def dictionary_capacity(self) -> int:
        return self.pool_capacity - self.dictionary_test_capacity

    @property
    def dictionary_test_capacity(self) -> int:
        return self.pool_capacity * self.dictionary_test_percent // 100

    @property
    def overflow_capacity(self) -> int:
        return self.pool_capacity * self.overflow_multiplier
