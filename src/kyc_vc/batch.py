"""
Batch issuance.

Requests are issued independently on a thread pool. Results are collected
by input position, so both output lists keep the input order no matter
which request finishes first.
"""

from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from kyc_vc.errors import CredentialError, ErrorCode
from kyc_vc.issuer import CredentialIssuer
from kyc_vc.models import Credential, IssuanceRequest

logger = logging.getLogger(__name__)


@dataclass
class BatchFailure:
    """A request that could not be issued.

    ``request`` holds the raw JSON item when it could not be parsed into an
    ``IssuanceRequest``.
    """

    request: IssuanceRequest | Any
    error_description: str
    code: ErrorCode | None = None

    @property
    def customer_kyc_id(self) -> str | None:
        return _customer_kyc_id(self.request)

    def to_dict(self) -> dict[str, Any]:
        request = (
            self.request.to_dict() if isinstance(self.request, IssuanceRequest) else self.request
        )
        return {
            "request": request,
            "error": self.error_description,
            "code": self.code.value if self.code else None,
        }


@dataclass
class BatchResult:
    successful: list[Credential] = field(default_factory=list)
    failed: list[BatchFailure] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "successful": [c.to_dict() for c in self.successful],
            "failed": [f.to_dict() for f in self.failed],
        }


class BatchIssuer:
    """Issues many credentials, isolating failures per request.

    Args:
        issuer: The credential issuer used for every request.
        max_workers: Thread pool size. 1 issues sequentially.
    """

    def __init__(self, issuer: CredentialIssuer, max_workers: int = 4) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.issuer = issuer
        self.max_workers = max_workers

    def issue_all(self, requests: Sequence[IssuanceRequest | dict[str, Any]]) -> BatchResult:
        """Issue a credential for each request.

        Args:
            requests: Issuance requests, processed independently. Items may be
                raw JSON objects; one that fails to parse becomes a failure at
                its own position.

        Returns:
            BatchResult whose ``successful`` and ``failed`` lists follow input order.
        """
        outcomes: list[Credential | BatchFailure | None] = [None] * len(requests)

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self._issue_one, request): index
                for index, request in enumerate(requests)
            }
            for future in concurrent.futures.as_completed(futures):
                index = futures[future]
                outcomes[index] = self._outcome(requests[index], future)

        result = BatchResult()
        for outcome in outcomes:
            if isinstance(outcome, Credential):
                result.successful.append(outcome)
            elif outcome is not None:
                result.failed.append(outcome)

        logger.info(
            "Batch issuance finished: %d issued, %d failed",
            len(result.successful),
            len(result.failed),
        )
        return result

    def _issue_one(self, request: IssuanceRequest | dict[str, Any]) -> Credential:
        if not isinstance(request, IssuanceRequest):
            request = IssuanceRequest.from_dict(request)
        return self.issuer.issue(request)

    def _outcome(
        self,
        request: IssuanceRequest | dict[str, Any],
        future: concurrent.futures.Future[Credential],
    ) -> Credential | BatchFailure:
        try:
            return future.result()
        except CredentialError as e:
            return BatchFailure(request=request, error_description=str(e), code=e.code)
        except Exception as e:
            logger.exception("Unexpected error issuing for customer %s", _customer_kyc_id(request))
            return BatchFailure(request=request, error_description=f"{type(e).__name__}: {e}")


def _customer_kyc_id(request: Any) -> str | None:
    if isinstance(request, IssuanceRequest):
        return request.customer_kyc_id
    if isinstance(request, dict) and isinstance(request.get("customerKycId"), str):
        return request["customerKycId"]
    return None
