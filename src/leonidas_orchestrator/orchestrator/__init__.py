"""Post-process components for the Leonidas workflow.

Provides:
- Settings loaded from the environment / .env
- Structured logging
- A GitHub client scoped to one repository
- Plan/sub-issue parsing helpers
"""
