"""
Global search across medicines, customers, prescriptions and sales.

Typing is debounced; each dispatch fans out four bounded queries in
parallel and a late response from an older dispatch is dropped.
A failing kind is logged and left out; the other kinds still show.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests

from app.client.api_client import ApiClient, ApiError

logger = logging.getLogger(__name__)

KIND_ORDER = ("medicine", "customer", "prescription", "sale")
# Sales have no server-side text filter; scan this many recent ones
SALES_SCAN_MIN = 50


@dataclass
class SearchResult:
    kind: str  # medicine | customer | prescription | sale
    id: int
    title: str
    subtitle: str = ""


def _medicine_results(data: Dict[str, Any]) -> List[SearchResult]:
    results = []
    for m in data.get("medicines", []):
        stock = f"Qty {m.get('quantity', 0)}"
        label = m.get("genericName") or m.get("category")
        results.append(SearchResult("medicine", m["id"], m["name"], f"{label} - {stock}" if label else stock))
    return results


def _customer_results(data: Dict[str, Any]) -> List[SearchResult]:
    return [
        SearchResult("customer", c["id"], c["name"], c.get("phone") or c.get("email") or "")
        for c in data.get("customers", [])
    ]


def _prescription_results(data: Dict[str, Any]) -> List[SearchResult]:
    results = []
    for p in data.get("prescriptions", []):
        customer = (p.get("customer") or {}).get("name", "")
        results.append(SearchResult(
            "prescription", p["id"], p["prescriptionNumber"],
            f"{customer} - Dr. {p.get('doctorName', '')}".strip(" -"),
        ))
    return results


def _sale_matches(sale: Dict[str, Any], needle: str) -> bool:
    customer = (sale.get("customer") or {}).get("name") or ""
    prescription = (sale.get("prescription") or {}).get("prescriptionNumber") or ""
    return (
        needle in str(sale.get("id", ""))
        or needle in customer.lower()
        or needle in prescription.lower()
    )


def _sale_results(data: Dict[str, Any], query: str, limit: int) -> List[SearchResult]:
    needle = query.strip().lower()
    results = []
    for s in data.get("sales", []):
        if not _sale_matches(s, needle):
            continue
        customer = (s.get("customer") or {}).get("name") or "Walk-in"
        results.append(SearchResult("sale", s["id"], f"Sale #{s['id']}", f"{customer} - {s.get('total', 0)}"))
        if len(results) >= limit:
            break
    return results


class SearchAggregator:
    def __init__(
        self,
        api: ApiClient,
        debounce: float = 0.3,
        blur_delay: float = 0.2,
        limit: int = 5,
        on_results: Optional[Callable[[List[SearchResult]], Any]] = None,
    ):
        self.api = api
        self.debounce = debounce
        self.blur_delay = blur_delay
        self.limit = limit
        self.on_results = on_results

        self.query = ""
        self.results: List[SearchResult] = []
        self.is_open = False
        self.loading = False
        self.selected: Optional[SearchResult] = None

        self._seq = 0
        self._debounce_task: Optional[asyncio.Task] = None
        self._hide_task: Optional[asyncio.Task] = None

    @property
    def sequence(self) -> int:
        return self._seq

    def _cancel(self, task: Optional[asyncio.Task]) -> None:
        if task is not None and not task.done():
            task.cancel()

    def on_input(self, text: str) -> None:
        """Called on every keystroke. Needs a running loop for non-empty text."""
        self.query = text
        self._cancel(self._debounce_task)
        self._debounce_task = None

        if not text or not text.strip():
            # invalidates anything still in flight
            self._seq += 1
            self.results = []
            self.is_open = False
            self.loading = False
            return

        self._debounce_task = asyncio.get_running_loop().create_task(self._debounced(text))

    async def _debounced(self, text: str) -> None:
        await asyncio.sleep(self.debounce)
        await self.search(text)

    async def _run(self, kind: str, fetch: Callable[[], Any], to_results: Callable[[Any], List[SearchResult]]):
        loop = asyncio.get_running_loop()
        try:
            data = await loop.run_in_executor(None, fetch)
            return to_results(data)
        except (ApiError, requests.RequestException) as e:
            logger.warning(f"[Search] {kind} query failed: {e}")
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning(f"[Search] {kind} response malformed: {e!r}")
        return []

    async def search(self, text: str) -> Optional[List[SearchResult]]:
        """
        Run the four queries for `text`.

        Returns the results, or None when a newer search superseded this one.
        """
        query = text.strip()
        if not query:
            return []

        self._seq += 1
        seq = self._seq
        self.loading = True
        limit = self.limit

        grouped = await asyncio.gather(
            self._run("medicine", lambda: self.api.medicines.list(search=query, limit=limit), _medicine_results),
            self._run("customer", lambda: self.api.customers.list(search=query, limit=limit), _customer_results),
            self._run("prescription", lambda: self.api.prescriptions.list(search=query, limit=limit),
                      _prescription_results),
            self._run("sale", lambda: self.api.sales.list(limit=max(limit * 10, SALES_SCAN_MIN)),
                      lambda data: _sale_results(data, query, limit)),
        )

        if seq != self._seq:
            logger.debug(f"[Search] Dropped stale results for {query!r}")
            return None

        self.results = [result for group in grouped for result in group]
        self.loading = False
        self.is_open = True
        if self.on_results:
            self.on_results(self.results)
        return self.results

    def on_blur(self) -> None:
        """Hide the panel after `blur_delay` so a click on a result still lands."""
        self._cancel(self._hide_task)
        self._hide_task = asyncio.get_running_loop().create_task(self._hide_later())

    async def _hide_later(self) -> None:
        await asyncio.sleep(self.blur_delay)
        self.is_open = False

    def on_focus(self) -> None:
        self._cancel(self._hide_task)
        self._hide_task = None
        if self.results:
            self.is_open = True

    def select(self, result: SearchResult) -> SearchResult:
        self._cancel(self._hide_task)
        self._hide_task = None
        self.selected = result
        self.is_open = False
        return result

    def close(self) -> None:
        self._cancel(self._debounce_task)
        self._cancel(self._hide_task)
        self._debounce_task = self._hide_task = None
