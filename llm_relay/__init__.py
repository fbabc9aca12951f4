"""Multi-vendor LLM gateway with per-call cost metering."""

__version__ = "0.1.0"
