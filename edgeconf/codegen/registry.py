"""
Target registry for edgeconf.

A fixed table of the four supported targets. Lookup accepts the
canonical name or an alias; there is no runtime registration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Type

from ..model.config_model import NginxConfig
from ..utils.exceptions import UnknownTargetError, ValidationError
from ..utils.logging import get_logger
from .base import BaseGenerator
from .targets import EdgeHookGenerator, MiddlewareGenerator, MinimalRuntimeGenerator, WorkerGenerator
from .types import GenerationOptions

logger = get_logger(__name__)


@dataclass(frozen=True)
class TargetInfo:
    name: str
    generator: Type[BaseGenerator]
    default_filename: str
    description: str
    aliases: Tuple[str, ...] = ()


TARGETS: Tuple[TargetInfo, ...] = (
    TargetInfo("worker", WorkerGenerator, "worker.js",
               "Fetch-event worker (Cloudflare Workers style)", ("cloudflare", "cf")),
    TargetInfo("middleware", MiddlewareGenerator, "middleware.ts",
               "HTTP middleware (Next.js style)", ("nextjs", "next")),
    TargetInfo("edge-hook", EdgeHookGenerator, "edge-hook.js",
               "CDN request/response hooks (Lambda@Edge style)", ("lambda-edge", "lambda")),
    TargetInfo("minimal", MinimalRuntimeGenerator, "minimal.js",
               "Minimal embeddable runtime (QuickJS style)", ("quickjs",)),
)


@dataclass(frozen=True)
class TargetOutcome:
    """Result of converting one configuration for one target."""
    target: str
    filename: str
    source: Optional[str] = None
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.source is not None


def available_targets() -> List[str]:
    """Canonical names of all targets."""
    return [info.name for info in TARGETS]


def get_target(name: str) -> TargetInfo:
    """
    Resolve a target by canonical name or alias (case-insensitive).

    Raises:
        UnknownTargetError: If nothing matches
    """
    wanted = name.strip().lower()
    for info in TARGETS:
        if wanted == info.name or wanted in info.aliases:
            return info
    raise UnknownTargetError(name, available_targets())


def create_generator(name: str, config: NginxConfig,
                     options: Optional[GenerationOptions] = None) -> BaseGenerator:
    """Create a fresh generator for ``(config, target)``."""
    info = get_target(name)
    logger.debug(f"Creating {info.generator.__name__} for target '{info.name}'")
    return info.generator(config, options)


def generate_all(config: NginxConfig, options: Optional[GenerationOptions] = None,
                 targets: Optional[Sequence[str]] = None) -> Dict[str, TargetOutcome]:
    """
    Convert one configuration for several targets independently.

    A target that fails validation is reported in its outcome and does
    not stop the others.

    Args:
        config: Configuration Model
        options: Generation options shared by all targets
        targets: Target names or aliases (all targets when omitted)

    Returns:
        Mapping from canonical target name to its outcome
    """
    outcomes: Dict[str, TargetOutcome] = {}
    for name in targets or available_targets():
        info = get_target(name)
        generator = info.generator(config, options)
        try:
            source = generator.generate()
        except ValidationError as e:
            logger.error(f"Target '{info.name}' failed: {e}")
            outcomes[info.name] = TargetOutcome(
                target=info.name,
                filename=info.default_filename,
                errors=tuple(e.errors),
                warnings=tuple(e.warnings),
            )
            continue

        outcomes[info.name] = TargetOutcome(
            target=info.name,
            filename=info.default_filename,
            source=source,
            warnings=generator.validate().warnings,
        )

    succeeded = sum(1 for outcome in outcomes.values() if outcome.ok)
    logger.info(f"Generated {succeeded} of {len(outcomes)} target(s)")
    return outcomes
