"""
Timeout and concurrency constants for igvalidator.

Centralizes timeout values to ensure consistency between the configuration
defaults, the CLI and the validators.
"""

from __future__ import annotations

# =============================================================================
# Conformance Engine Timeouts
# =============================================================================

# Default per-artifact timeout for a conformance engine call
ARTIFACT_VALIDATION_TIMEOUT_S = 300

# Bounds accepted for the per-artifact timeout
MIN_VALIDATION_TIMEOUT_S = 1
MAX_VALIDATION_TIMEOUT_S = 3600

# =============================================================================
# Worker Pools
# =============================================================================

# Thread name prefix for per-artifact validation workers
ARTIFACT_WORKER_PREFIX = "igvalidator-artifact"

# Thread name prefix for the single-call engine executor
ENGINE_WORKER_PREFIX = "igvalidator-engine"

# Thread name prefix for phase fan-out workers
PHASE_WORKER_PREFIX = "igvalidator-phase"
