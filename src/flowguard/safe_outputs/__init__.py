"""
Safe outputs: agent-proposed side effects executed by a constrained job.

- models.py: per-action configuration variants and SafeOutputsConfig
- parser.py: extraction from the safe-outputs frontmatter block
- compiler.py: consolidation into one execution plan
"""

from flowguard.safe_outputs.compiler import SafeOutputsCompiler, SafeOutputsPlan
from flowguard.safe_outputs.models import (
    ACTION_REGISTRY,
    BaseSafeOutputConfig,
    SafeOutputAction,
    SafeOutputMessages,
    SafeOutputsConfig,
    TargetedSafeOutputConfig,
)
from flowguard.safe_outputs.parser import (
    SafeOutputsExtraction,
    extract_safe_output_action,
    extract_safe_outputs_config,
)

__all__ = [
    "ACTION_REGISTRY",
    "BaseSafeOutputConfig",
    "SafeOutputAction",
    "SafeOutputMessages",
    "SafeOutputsCompiler",
    "SafeOutputsConfig",
    "SafeOutputsExtraction",
    "SafeOutputsPlan",
    "TargetedSafeOutputConfig",
    "extract_safe_output_action",
    "extract_safe_outputs_config",
]
