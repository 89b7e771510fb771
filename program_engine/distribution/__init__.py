"""Weekly task distribution."""

from program_engine.distribution.engine import DistributionPlan, distribute, resolve_policy

__all__ = ["DistributionPlan", "distribute", "resolve_policy"]
