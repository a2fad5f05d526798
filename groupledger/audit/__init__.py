"""Audit logging package."""

from groupledger.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
