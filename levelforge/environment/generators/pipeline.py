"""Orchestration of one level generation call.

generate_level() validates the configuration, builds the scaffold and the
per-call RNG service, runs the biome synthesizer's phases in order, and
finishes with post-processing:

    validate config -> scaffold -> layout -> terrain -> structures
        -> interactive -> lighting -> entities -> post-process

Cancellation and the optional timeout are checked before every phase and
before post-processing. Phases themselves are never interrupted, and an
aborted run never hands back a partially built Level.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from levelforge.environment.level import Level, LevelConfig
from levelforge.environment.postprocess import ValidationReport, post_process
from levelforge.environment.scaffold import Clock, create_scaffold, utc_now
from levelforge.util.rng import RNGProvider

from .base import PHASES
from .context import GenerationContext
from .registry import create_synthesizer

logger = logging.getLogger(__name__)


class GenerationStatus(StrEnum):
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


class CancellationToken:
    """Cooperative cancellation flag, safe to set from another thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class GenerationResult:
    """Outcome of generate_level().

    Attributes:
        status: Whether the run completed, was cancelled, or timed out.
        config: The configuration used, with its seed resolved.
        level: The finished Level; None unless status is COMPLETE.
        validation: Advisory validation report; None unless COMPLETE.
        completed_phases: Synthesis phases that ran to completion.
        elapsed: Wall-clock seconds spent in the call.
    """

    status: GenerationStatus
    config: LevelConfig
    level: Level | None = None
    validation: ValidationReport | None = None
    completed_phases: list[str] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status is GenerationStatus.COMPLETE


def generate_level(
    config: LevelConfig | dict[str, Any],
    *,
    cancel_token: CancellationToken | None = None,
    timeout: float | None = None,
    clock: Clock = utc_now,
) -> GenerationResult:
    """Generate a complete level.

    Args:
        config: A LevelConfig, or its camelCase dict form.
        cancel_token: Optional token checked between phases.
        timeout: Optional time limit in seconds, checked between phases.
        clock: Source of the generatedAt timestamp. With the default wall
            clock, two runs with the same seed differ only in that field;
            pass a fixed clock for byte-identical Level JSON.

    Returns:
        A GenerationResult. Only a COMPLETE result carries a Level.

    Raises:
        ConfigError: If the dimensions or tile size are invalid. Raised
            before any layer is allocated.
    """
    if isinstance(config, dict):
        config = LevelConfig.from_dict(config)
    config.validate()
    config = config.with_resolved_seed()

    started = time.monotonic()
    completed: list[str] = []

    def interruption() -> GenerationStatus | None:
        if cancel_token is not None and cancel_token.cancelled:
            return GenerationStatus.CANCELLED
        if timeout is not None and time.monotonic() - started >= timeout:
            return GenerationStatus.TIMED_OUT
        return None

    def aborted(status: GenerationStatus, before: str) -> GenerationResult:
        logger.warning(f"Generation {status} before {before}")
        return GenerationResult(
            status=status,
            config=config,
            completed_phases=completed,
            elapsed=time.monotonic() - started,
        )

    rng = RNGProvider(config.seed)
    level = create_scaffold(config, rng, clock)
    ctx = GenerationContext.create(config, level, rng)
    synthesizer = create_synthesizer(ctx)
    logger.info(f"Generating {level.biome_type} level: {level.name}")

    for phase in PHASES:
        status = interruption()
        if status is not None:
            return aborted(status, phase)
        synthesizer.run_phase(phase)
        completed.append(phase)

    status = interruption()
    if status is not None:
        return aborted(status, "post-processing")

    validation = post_process(ctx)
    elapsed = time.monotonic() - started
    logger.debug(f"Generated {level.name!r} in {elapsed:.3f}s")
    return GenerationResult(
        status=GenerationStatus.COMPLETE,
        config=config,
        level=level,
        validation=validation,
        completed_phases=completed,
        elapsed=elapsed,
    )
