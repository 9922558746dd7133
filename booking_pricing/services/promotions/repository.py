"""
Promo code storage seam.

A transaction holds the promo code's lock for its duration and saves with a
version check: the saved value must have been derived from the version that
is still stored. Operations on different codes never share a lock.
"""

import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import ContextManager, Dict, Iterable, Iterator, Optional, Protocol

from booking_pricing.core.exceptions import ConcurrentUpdateError
from booking_pricing.services.promotions.domain import PromoCode


class PromoTransaction(Protocol):
    promo: Optional[PromoCode]

    def save(self, promo: PromoCode) -> PromoCode: ...


class PromoCodeRepository(Protocol):
    def get(self, code: str) -> Optional[PromoCode]: ...

    def transaction(self, code: str) -> ContextManager[PromoTransaction]: ...


class _InMemoryTransaction:
    def __init__(self, repository: "InMemoryPromoCodeRepository", promo: Optional[PromoCode]):
        self._repository = repository
        self.promo = promo

    def save(self, promo: PromoCode) -> PromoCode:
        expected = self.promo.version if self.promo is not None else None
        saved = self._repository._compare_and_set(promo, expected)
        self.promo = saved
        return saved


class InMemoryPromoCodeRepository:
    """Thread-safe promo store keyed by code, one lock per code."""

    def __init__(self, promos: Iterable[PromoCode] = ()):
        self._promos: Dict[str, PromoCode] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        for promo in promos:
            self.add(promo)

    def add(self, promo: PromoCode) -> PromoCode:
        with self._registry_lock:
            self._promos[promo.code.upper()] = promo
        return promo

    def get(self, code: str) -> Optional[PromoCode]:
        promo = self._promos.get(code.upper())
        if promo is None or promo.is_deleted:
            return None
        return promo

    def _lock_for(self, code: str) -> threading.Lock:
        with self._registry_lock:
            return self._locks.setdefault(code, threading.Lock())

    @contextmanager
    def transaction(self, code: str) -> Iterator[_InMemoryTransaction]:
        code = code.upper()
        with self._lock_for(code):
            yield _InMemoryTransaction(self, self.get(code))

    def _compare_and_set(self, promo: PromoCode, expected_version: Optional[int]) -> PromoCode:
        code = promo.code.upper()
        with self._registry_lock:
            current = self._promos.get(code)
            actual = current.version if current is not None else None
            if actual != expected_version:
                raise ConcurrentUpdateError(code, expected_version, actual)
            saved = replace(promo, version=(expected_version or 0) + 1)
            self._promos[code] = saved
            return saved
