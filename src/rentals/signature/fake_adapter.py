"""Configurable fake signature provider for development and testing.

Keeps submissions in memory. Tests move a submission through its life
cycle with ``set_status`` and make the provider unavailable with
``configure(should_succeed=False)``.
"""

from uuid import uuid4

from rentals.exceptions import ExternalServiceError
from rentals.signature.port import SignatureProvider, Submission, SubmissionRequest


class FakeSignatureProvider(SignatureProvider):
    """In-memory signature provider."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Signature provider unavailable"
        self.calls: list[dict] = []
        self.submissions: dict[str, Submission] = {}

    def configure(self, should_succeed: bool, failure_reason: str = "Signature provider unavailable") -> None:
        """Configure provider behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_submission(self, request: SubmissionRequest) -> Submission:
        self.calls.append(
            {
                "method": "create_submission",
                "order_id": request.order_id,
                "order_number": request.order_number,
                "signer_email": request.signer_email,
                "fields": dict(request.fields),
            }
        )
        if not self.should_succeed:
            raise ExternalServiceError(self.failure_reason, provider="fake")

        submission_id = f"sub_{uuid4().hex[:12]}"
        submission = Submission(
            submission_id=submission_id,
            status="pending",
            signing_url=f"https://sign.example.com/s/{submission_id}",
        )
        self.submissions[submission_id] = submission
        return submission

    def get_submission(self, submission_id: str) -> Submission:
        self.calls.append({"method": "get_submission", "submission_id": submission_id})
        if not self.should_succeed:
            raise ExternalServiceError(self.failure_reason, provider="fake")

        submission = self.submissions.get(submission_id)
        if submission is None:
            raise ExternalServiceError(f"Unknown submission {submission_id}", provider="fake")
        return submission

    def set_status(self, submission_id: str, status: str, document_url: str | None = None) -> None:
        """Simulate the customer acting on a submission."""
        current = self.submissions.get(submission_id) or Submission(submission_id=submission_id, status=status)
        self.submissions[submission_id] = Submission(
            submission_id=submission_id,
            status=status,
            signing_url=current.signing_url,
            document_url=document_url or current.document_url,
        )
