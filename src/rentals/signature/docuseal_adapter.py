"""DocuSeal signature provider adapter.

Talks to the DocuSeal REST API with ``httpx``. Every request carries the
``X-Auth-Token`` header and is bounded by the configured timeout; transport
failures, timeouts and non-2xx answers become ExternalServiceError.
"""

import httpx
import structlog

from rentals.exceptions import ExternalServiceError
from rentals.signature.port import SignatureProvider, Submission, SubmissionRequest

logger = structlog.get_logger(__name__)


class DocuSealProvider(SignatureProvider):
    """Production DocuSeal adapter."""

    def __init__(self, base_url: str, api_key: str, template_id: str, timeout: float = 10.0, transport=None) -> None:
        if not api_key:
            raise ValueError("DOCUSEAL_API_KEY is required for the DocuSeal adapter")
        if not template_id:
            raise ValueError("DOCUSEAL_TEMPLATE_ID is required for the DocuSeal adapter")
        self.template_id = template_id
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={"X-Auth-Token": api_key},
            timeout=timeout,
            transport=transport,
        )

    def create_submission(self, request: SubmissionRequest) -> Submission:
        body = {
            "template_id": self.template_id,
            "send_email": False,
            "submitters": [
                {
                    "name": request.signer_name or "Customer",
                    "email": request.signer_email,
                    "role": "Customer",
                }
            ],
            "fields": request.fields,
            "metadata": {"order_id": request.order_id, "order_number": request.order_number},
        }
        data = self._request("POST", "/submissions", json=body)

        # DocuSeal answers with the list of created submitters
        if isinstance(data, list):
            if not data:
                raise ExternalServiceError("DocuSeal returned no submitters", provider="docuseal")
            submitter = data[0]
            return Submission(
                submission_id=str(submitter.get("submission_id") or submitter.get("id")),
                status=submitter.get("status") or "pending",
                signing_url=submitter.get("embed_src") or submitter.get("signing_url"),
            )
        return _parse_submission(data)

    def get_submission(self, submission_id: str) -> Submission:
        return _parse_submission(self._request("GET", f"/submissions/{submission_id}"))

    def _request(self, method: str, path: str, **kwargs):
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as exc:
            logger.error("DocuSeal request timed out", method=method, path=path)
            raise ExternalServiceError("Signature provider timed out", provider="docuseal") from exc
        except httpx.HTTPStatusError as exc:
            logger.error(
                "DocuSeal request failed",
                method=method,
                path=path,
                status_code=exc.response.status_code,
                body=exc.response.text[:500],
            )
            raise ExternalServiceError(
                f"Signature provider returned {exc.response.status_code}", provider="docuseal"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("DocuSeal request error", method=method, path=path, error=str(exc))
            raise ExternalServiceError("Signature provider unreachable", provider="docuseal") from exc


def _parse_submission(data: dict) -> Submission:
    submitters = data.get("submitters") or []
    documents = data.get("documents") or []
    signing_url = next(
        (s.get("embed_src") or s.get("signing_url") for s in submitters if s.get("embed_src") or s.get("signing_url")),
        None,
    )
    return Submission(
        submission_id=str(data.get("id")),
        status=(data.get("status") or "pending").lower(),
        signing_url=signing_url,
        document_url=documents[0].get("url") if documents else None,
    )
