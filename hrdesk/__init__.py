"""hrdesk — role-gated HR record-management backend."""

__version__ = "1.0.0"
