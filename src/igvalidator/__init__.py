"""
igvalidator: multi-phase conformance validation and quality-gate evaluation
for implementation guide artifacts.

The pipeline validates profiles, example resources, documentation, security
exposure and publication packaging, scores the combined result against
configurable quality gates, and reports a pass / warn / block verdict for CI.
"""

__version__ = "0.1.0"
