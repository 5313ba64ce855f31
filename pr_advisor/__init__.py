"""PR Advisor: reviewer suggestions for pull-request triage."""

__version__ = "0.3.0"
