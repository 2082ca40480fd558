"""Qualification filter with per-criterion explanation trail."""

from campaign_attribution.qualification.engine import QualificationFilter

__all__ = ["QualificationFilter"]
