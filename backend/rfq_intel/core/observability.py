"""Observability helpers (Sentry init, audit lines and common scrubbing).

Centralises Sentry initialisation so configuration does not drift and
provides the pipeline audit logger. Sentry calls are no-ops when no DSN
is configured.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

from rfq_intel.core.config import settings


logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("rfq_intel.audit")


def _before_send(event: Dict[str, Any], hint: Dict[str, Any] | None = None):  # type: ignore[override]
	"""Scrub obvious PII / secrets before sending to Sentry.

	- Drop Authorization & Cookie headers
	- Remove request data/body (uploaded RFQs carry customer data)
	"""
	req = event.get("request") or {}
	headers = req.get("headers") or {}
	for k in list(headers.keys()):
		lk = k.lower()
		if lk in ("authorization", "cookie", "set-cookie", "x-api-key"):
			headers.pop(k, None)
	req.pop("data", None)
	event["request"] = req
	return event


def init_sentry(service: str) -> bool:
	"""Initialise Sentry once for a given process.

	Returns True if Sentry was initialised; False otherwise.
	"""
	if not settings.SENTRY_DSN:
		return False
	if getattr(init_sentry, "_done", False):  # prevent duplicate init in same process
		return True
	sentry_sdk.init(
		dsn=settings.SENTRY_DSN,
		integrations=[FastApiIntegration()],
		traces_sample_rate=float(settings.SENTRY_TRACES_SAMPLE_RATE or 0),
		profiles_sample_rate=float(settings.SENTRY_PROFILES_SAMPLE_RATE or 0),
		environment=settings.ENVIRONMENT,
		release=settings.SENTRY_RELEASE,
		before_send=_before_send,
	)
	sentry_sdk.set_tag("service", service)
	init_sentry._done = True  # type: ignore[attr-defined]
	return True


def sentry_set_tags(tags: Dict[str, Any]) -> None:
	"""Set tags on the current Sentry scope (strings only)."""
	if not settings.SENTRY_DSN:
		return
	for k, v in (tags or {}).items():
		# Avoid PII; coerce to short strings
		sentry_sdk.set_tag(str(k), str(v)[:128] if v is not None else "")


def sentry_breadcrumb(category: str, message: str, level: str = "info", data: Optional[Dict[str, Any]] = None) -> None:
	"""Add a breadcrumb for important lifecycle steps."""
	if not settings.SENTRY_DSN:
		return
	sentry_sdk.add_breadcrumb(
		category=category,
		message=message,
		level=level,
		data=data or {},
	)


def log_processing_status(stage: str, status: str, details: Optional[str] = None) -> None:
	"""Audit line for a pipeline stage.

	Only the stage name, status and short details are written; file names
	and raw document content never reach the audit log.
	"""
	timestamp = datetime.now(timezone.utc).isoformat()
	suffix = f" | {details}" if details else ""
	audit_logger.info("[AUDIT] %s | Stage: %s | Status: %s%s", timestamp, stage, status, suffix)
	sentry_breadcrumb("pipeline", f"{stage}: {status}", level="error" if status == "FAILURE" else "info")


def log_sensitive(label: str, data: Any) -> None:
	"""Dump extraction payloads or line items, development only."""
	if settings.is_development:
		logger.debug("[DEBUG_DATA] %s: %s", label, data)


__all__ = [
	"init_sentry",
	"sentry_set_tags",
	"sentry_breadcrumb",
	"log_processing_status",
	"log_sensitive",
]
