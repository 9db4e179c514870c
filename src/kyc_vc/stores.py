"""
Issuer and customer stores.

The issuer and verifier only need ``resolve``; the in-memory stores also
provide ``upsert``, ``delete``, ``search`` and ``list`` for admin tooling and
tests. Reads and writes take a lock, so a single-record read is atomic.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Callable, Generic, Iterable, Protocol, TypeVar

from kyc_vc.errors import UnsupportedAlgorithm
from kyc_vc.models import (
    EntityType,
    IssuerRecord,
    KYCLevel,
    KYCRecord,
    SignatureAlgorithm,
)
from kyc_vc.signing import check_key_pair

logger = logging.getLogger(__name__)

T = TypeVar("T")


class IssuerStore(Protocol):
    def resolve(self, did: str) -> IssuerRecord | None: ...


class CustomerStore(Protocol):
    def resolve(self, kyc_id: str) -> KYCRecord | None: ...


class _InMemoryStore(Generic[T]):
    """Thread-safe dict of records keyed by an id attribute."""

    def __init__(self, key: Callable[[T], str], records: Iterable[T] = ()) -> None:
        self._key = key
        self._records: dict[str, T] = {}
        self._lock = threading.RLock()
        for record in records:
            self.upsert(record)

    def resolve(self, record_id: str) -> T | None:
        with self._lock:
            return self._records.get(record_id)

    def upsert(self, record: T) -> None:
        with self._lock:
            self._records[self._key(record)] = record

    def delete(self, record_id: str) -> bool:
        with self._lock:
            return self._records.pop(record_id, None) is not None

    def list(self) -> list[T]:
        with self._lock:
            return list(self._records.values())

    def __contains__(self, record_id: object) -> bool:
        with self._lock:
            return record_id in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class InMemoryIssuerStore(_InMemoryStore[IssuerRecord]):
    """Issuer registry held in memory."""

    def __init__(self, issuers: Iterable[IssuerRecord] = ()) -> None:
        super().__init__(lambda issuer: issuer.did, issuers)

    def upsert(self, record: IssuerRecord) -> None:
        """Add or replace an issuer.

        Raises:
            KeyMaterialError: If the key pair does not belong to the declared algorithm.
        """
        check_key_pair(record.private_key, record.public_key, record.signature_algorithm)
        super().upsert(record)
        logger.debug("Registered issuer %s (%s)", record.did, record.signature_algorithm.value)

    def search(
        self,
        jurisdiction: str | None = None,
        regulator: str | None = None,
        signature_algorithm: SignatureAlgorithm | str | None = None,
        min_tier: int | None = None,
    ) -> list[IssuerRecord]:
        """Issuers matching every given criterion."""
        algorithm = (
            None if signature_algorithm is None else SignatureAlgorithm.parse(signature_algorithm)
        )
        results = []
        for issuer in self.list():
            if jurisdiction is not None and jurisdiction not in issuer.jurisdiction:
                continue
            if regulator is not None and regulator not in issuer.regulators:
                continue
            if algorithm is not None and issuer.signature_algorithm is not algorithm:
                continue
            if min_tier is not None and issuer.tier < min_tier:
                continue
            results.append(issuer)
        return results


class InMemoryCustomerStore(_InMemoryStore[KYCRecord]):
    """KYC records held in memory."""

    def __init__(self, customers: Iterable[KYCRecord] = ()) -> None:
        super().__init__(lambda customer: customer.kyc_id, customers)

    def search(
        self,
        kyc_level: KYCLevel | str | None = None,
        accredited_investor: bool | None = None,
        entity_type: EntityType | str | None = None,
        jurisdiction: str | None = None,
    ) -> list[KYCRecord]:
        """Customers matching every given criterion."""
        level = None if kyc_level is None else KYCLevel(kyc_level)
        entity = None if entity_type is None else EntityType(entity_type)
        results = []
        for customer in self.list():
            if level is not None and customer.kyc_level is not level:
                continue
            if accredited_investor is not None and customer.accredited_investor != accredited_investor:
                continue
            if entity is not None and customer.entity_type is not entity:
                continue
            if jurisdiction is not None and jurisdiction not in customer.jurisdictions:
                continue
            results.append(customer)
        return results


def load_registry(path: str | Path) -> tuple[InMemoryIssuerStore, InMemoryCustomerStore]:
    """Load issuers and customers from a JSON file.

    The file holds an object with ``issuers`` and ``customers`` arrays in
    the camelCase wire form of ``IssuerRecord`` and ``KYCRecord``.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the JSON or any record is invalid.
    """
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Registry file {path} must contain a JSON object")

    try:
        issuers = InMemoryIssuerStore(IssuerRecord.from_dict(i) for i in data.get("issuers", []))
        customers = InMemoryCustomerStore(
            KYCRecord.from_dict(c) for c in data.get("customers", [])
        )
    except (KeyError, TypeError, ValueError, UnsupportedAlgorithm) as e:
        raise ValueError(f"Invalid record in registry file {path}: {e}") from e

    logger.info(
        "Loaded registry %s: %d issuers, %d customers", path, len(issuers), len(customers)
    )
    return issuers, customers
