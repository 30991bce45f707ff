"""
packetdict: network compression dictionaries from recorded game traffic.

Public API (stable):
- TrialConfig, load_settings          (configuration)
- DictionaryGenerator                 (generate one dictionary)
- auto_generate_dictionaries          (one dictionary per capture directory)
- TrainerPort, CompressorPort         (primitive interfaces)
- ZstdTrainer, ZstdCompressor         (zstandard-backed primitives)
- decode, encode                      (capture codec)
- locate, build_merge_sources, merge_to_file, verify_output_path
- dump                                (debug dump converter)
- DTOs and errors

Everything else is internal and may change.
"""

from __future__ import annotations

# Configuration
from .config import TrialConfig
from .settings import load_settings

# Ports
from .ports import CompressorPort, TrainerPort

# Adapters
from .adapters.zstd_primitives import ZstdCompressor, ZstdTrainer

# Intake
from .intake.capture_codec import decode, encode
from .intake.locator import locate
from .intake.merger import build_merge_sources, merge_to_file
from .intake.validator import verify_output_path

# Pipeline / orchestration
from .pipeline.debug_dump import dump
from .orchestration.generator import DictionaryGenerator, auto_generate_dictionaries

# DTOs
from .dto import (
    AutoGenerateEntry,
    CapturePool,
    CompressionReport,
    DumpSummary,
    GeneratedDictionary,
    GenerationResult,
    GenerationSummary,
    PacketRecord,
    PoolSet,
    SearchOutcome,
    TrialCandidate,
    TrialResult,
)

# Errors
from .errors import (
    CaptureAccessError,
    DumpIOError,
    EmptyCaptureError,
    InsufficientInputError,
    MalformedCapture,
    PacketDictError,
    SearchExhaustedError,
    TrainingFailedError,
)

__all__ = [
    "TrialConfig",
    "load_settings",
    "CompressorPort",
    "TrainerPort",
    "ZstdCompressor",
    "ZstdTrainer",
    "decode",
    "encode",
    "locate",
    "build_merge_sources",
    "merge_to_file",
    "verify_output_path",
    "dump",
    "DictionaryGenerator",
    "auto_generate_dictionaries",
    "AutoGenerateEntry",
    "CapturePool",
    "CompressionReport",
    "DumpSummary",
    "GeneratedDictionary",
    "GenerationResult",
    "GenerationSummary",
    "PacketRecord",
    "PoolSet",
    "SearchOutcome",
    "TrialCandidate",
    "TrialResult",
    "CaptureAccessError",
    "DumpIOError",
    "EmptyCaptureError",
    "InsufficientInputError",
    "MalformedCapture",
    "PacketDictError",
    "SearchExhaustedError",
    "TrainingFailedError",
]
