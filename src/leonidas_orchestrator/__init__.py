"""Leonidas orchestrator.

GitHub-side glue for the Leonidas plan/execute workflow:
- plan comment discovery with a trusted-author precedence chain
- sub-issue metadata parsing and linking
- post-processing of the PR built for an issue (labels, assignee, CI)
"""

__version__ = "0.1.0"

from leonidas_orchestrator.orchestrator.config import LeonidasSettings

__all__ = ["__version__", "LeonidasSettings"]
