"""driftwatch: progress intelligence over informally captured work items."""

__version__ = "0.1.0"
