"""Signature provider port (abstract interface).

Defines the contract for e-signature services. FakeSignatureProvider is
used in development and tests; DocuSealProvider talks to a DocuSeal
compatible HTTP API.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class SubmissionRequest:
    """Everything the provider needs to prepare a rental agreement."""

    order_id: str
    order_number: str
    signer_name: str
    signer_email: str
    fields: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Submission:
    """Provider-side view of a signature request."""

    submission_id: str
    status: str
    signing_url: str | None = None
    document_url: str | None = None


class SignatureProvider(ABC):
    """Abstract e-signature provider interface.

    Implementations raise ExternalServiceError when the provider cannot be
    reached, times out or answers with an error.
    """

    @abstractmethod
    def create_submission(self, request: SubmissionRequest) -> Submission:
        """Create a signature request for the customer."""
        ...

    @abstractmethod
    def get_submission(self, submission_id: str) -> Submission:
        """Fetch the current state of a submission."""
        ...
