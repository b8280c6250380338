# =============================================================================
# komfort_core/catalog/submissions.py
# Contact form submissions
# =============================================================================
"""
ContactFormService validates "call me back" requests, stores them in the
contact_submissions table and keeps a local copy of every request. Requests
that could not be sent are kept separately so they can be retried.
"""

from __future__ import annotations
import re
import time
from typing import Any, Callable, Dict, List, Optional

from komfort_core.data.supabase_client import SupabaseService
from komfort_core.errors import RateLimitError, ValidationError, handle_error
from komfort_core.offline.local_mirror import LocalMirror
from komfort_core.services.base_service import BaseService, ServiceResult

from .models import ContactSubmission


class ContactFormService(BaseService):
    """Validation, anti-spam interval and delivery of contact requests."""

    TABLE = "contact_submissions"
    APPLICATIONS_KEY = "contact_applications"
    FAILED_KEY = "failed_contact_submissions"

    NAME_LENGTH = (2, 50)
    PHONE_DIGITS = (10, 15)

    def __init__(
        self,
        mirror: LocalMirror,
        service: Optional[SupabaseService] = None,
        client=None,
        cooldown_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__()
        self.mirror = mirror
        self.service = service or SupabaseService(self.TABLE, client=client)
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._last_submit: Optional[float] = None

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def validate(self, form: Dict[str, Any]) -> ContactSubmission:
        """
        Build a submission from raw form values.

        Raises:
            ValidationError: For the first invalid field
        """
        name = (form.get("name") or "").strip()
        if not name:
            raise ValidationError("Enter your name", field="name")
        low, high = self.NAME_LENGTH
        if not low <= len(name) <= high:
            raise ValidationError(f"Name must be {low} to {high} characters long", field="name", value=name)

        phone = (form.get("phone") or "").strip()
        if not phone:
            raise ValidationError("Enter a phone number", field="phone")
        digits = re.sub(r"\D", "", phone)
        low, high = self.PHONE_DIGITS
        if not low <= len(digits) <= high:
            raise ValidationError("Enter a valid phone number", field="phone", value=phone)

        if not form.get("agree"):
            raise ValidationError("Consent to the privacy policy is required", field="agree")

        return ContactSubmission(
            name=name,
            phone=phone,
            email=(form.get("email") or "").strip(),
            message=(form.get("message") or "").strip(),
            agree=True,
        )

    def _check_rate(self) -> None:
        if self._last_submit is None:
            return
        elapsed = self._clock() - self._last_submit
        if elapsed < self.cooldown_seconds:
            wait = self.cooldown_seconds - elapsed
            raise RateLimitError(
                f"Please wait {int(wait) + 1} seconds before sending another request",
                retry_after=wait,
            )

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    def submit(self, form: Dict[str, Any]) -> ServiceResult:
        """
        Validate and deliver a contact request.

        The request is always kept locally; a failed remote insert is
        queued for retry_failed() and still reported as accepted.
        """
        try:
            submission = self.validate(form)
            self._check_rate()
        except ValidationError as e:
            handle_error(e)
            return ServiceResult.from_exception(e)

        self._last_submit = self._clock()
        self._append(self.APPLICATIONS_KEY, submission.to_dict())

        sent = self._send(submission.to_dict())
        if not sent:
            self.logger.warning("Contact request could not be sent; kept for retry")
            self._append(self.FAILED_KEY, submission.to_dict())

        return ServiceResult.ok(submission, metadata={"sent": sent})

    def _send(self, record: Dict[str, Any]) -> bool:
        row = {
            "name": record["name"],
            "email": record.get("email", ""),
            "phone": record["phone"],
            "message": record.get("message", ""),
            "status": record.get("status", "new"),
        }
        return self.service.insert(row) is not None

    def _append(self, key: str, record: Dict[str, Any]) -> None:
        records = self.mirror.load(key) or []
        records.append(record)
        self.mirror.save(key, records)

    def list_applications(self) -> List[Dict[str, Any]]:
        return list(self.mirror.load(self.APPLICATIONS_KEY) or [])

    def failed_submissions(self) -> List[Dict[str, Any]]:
        return list(self.mirror.load(self.FAILED_KEY) or [])

    def retry_failed(self) -> ServiceResult:
        """Resend queued requests; the ones that fail again stay queued."""
        pending = self.failed_submissions()
        if not pending:
            return ServiceResult.ok({"sent": 0, "remaining": 0})

        remaining = [record for record in pending if not self._send(record)]
        self.mirror.save(self.FAILED_KEY, remaining)
        sent = len(pending) - len(remaining)
        self.logger.info(f"Resent {sent} of {len(pending)} contact requests")
        return ServiceResult.ok({"sent": sent, "remaining": len(remaining)})
