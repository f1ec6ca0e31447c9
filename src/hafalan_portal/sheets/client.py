"""HTTP client for the spreadsheet web app.

The spreadsheet is exposed by a Google Apps Script web app (usually reached
through a proxy path). Reads are ``GET ?sheet=<name>``; writes are JSON
``POST`` requests with an ``action`` of ``add``, ``update`` or ``delete``.

Example:
    gateway = SheetsGateway("https://example.org/api/google-apps-script")
    students = gateway.read("Student")
    result = gateway.create("Score", {"Student ID": "0012345678", ...})
"""

from dataclasses import dataclass
from typing import Any, Optional, Protocol

import requests

from ..logutils import get_logger, with_context, with_extra
from .errors import RemoteFetchError, RemoteWriteError

logger = get_logger(__name__)

Record = dict[str, Any]

# Fallback messages shown when the web app gives no usable reason
UNKNOWN_ERROR = "Terjadi kesalahan yang tidak diketahui."
NETWORK_ERROR = "Tidak dapat terhubung ke server."


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a successful write."""

    message: str


class Gateway(Protocol):
    """Read/write access to the named record collections."""

    def read(self, collection: str) -> list[Record]: ...

    def create(self, collection: str, record: Record) -> WriteResult: ...

    def update(self, original: Record, updated: Record) -> WriteResult: ...

    def delete(self, record: Record) -> WriteResult: ...


class SheetsGateway:
    """Gateway backed by the Apps Script web app over HTTP."""

    # Writes only ever target the score sheet
    WRITE_SHEET = "Score"

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the gateway.

        Args:
            base_url: Web app URL or proxy path in front of it.
            timeout: Seconds to wait for each request.
            session: Optional pre-configured requests session.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("Accept", "application/json")

    def read(self, collection: str) -> list[Record]:
        """Read every row of a collection.

        Args:
            collection: Sheet name, e.g. ``"Student"`` or ``"Report"``.

        Returns:
            Rows in sheet order, each a mapping of column header to value.

        Raises:
            RemoteFetchError: On transport errors, non-2xx responses, bodies
                that are not JSON, or an explicit error status.
        """
        with with_context(collection=collection):
            logger.debug("Reading collection")
            try:
                response = self.session.get(
                    self.base_url, params={"sheet": collection}, timeout=self.timeout
                )
                response.raise_for_status()
            except requests.HTTPError as e:
                logger.warning("Read failed with HTTP %s", _status_of(e))
                raise RemoteFetchError(collection, _http_cause(e), e) from e
            except requests.RequestException as e:
                logger.warning("Read failed: %s", e)
                raise RemoteFetchError(collection, NETWORK_ERROR, e) from e

            try:
                payload = response.json()
            except ValueError as e:
                logger.warning("Read returned a body that is not JSON")
                raise RemoteFetchError(collection, "Respons server tidak valid.", e) from e

            rows = _extract_rows(collection, payload)
            with_extra(logger, rows=len(rows)).info("Read %d rows", len(rows))
            return rows

    def create(self, collection: str, record: Record) -> WriteResult:
        """Append a record to a collection.

        Raises:
            RemoteWriteError: If the web app rejects the record.
        """
        if collection != self.WRITE_SHEET:
            raise RemoteWriteError("add", f"Koleksi {collection} tidak dapat ditulis.")
        return self._write("add", record)

    def update(self, original: Record, updated: Record) -> WriteResult:
        """Replace the stored row equal to ``original`` with ``updated``.

        The web app locates the row by comparing every field of ``original``.

        Raises:
            RemoteWriteError: If no row matches or the write is rejected.
        """
        return self._write("update", {"original": original, "updated": updated})

    def delete(self, record: Record) -> WriteResult:
        """Delete the stored row equal to ``record``.

        Raises:
            RemoteWriteError: If no row matches or the write is rejected.
        """
        return self._write("delete", record)

    def _write(self, action: str, data: Record) -> WriteResult:
        body = {"action": action, "sheet": self.WRITE_SHEET, "data": data}
        with with_context(collection=self.WRITE_SHEET):
            logger.debug("Sending %s request", action)
            try:
                response = self.session.post(self.base_url, json=body, timeout=self.timeout)
                response.raise_for_status()
            except requests.HTTPError as e:
                logger.warning("%s failed with HTTP %s", action, _status_of(e))
                raise RemoteWriteError(action, _http_cause(e), e) from e
            except requests.RequestException as e:
                logger.warning("%s failed: %s", action, e)
                raise RemoteWriteError(action, NETWORK_ERROR, e) from e

            try:
                payload = response.json()
            except ValueError as e:
                logger.warning("%s returned a body that is not JSON", action)
                raise RemoteWriteError(action, "Respons server tidak valid.", e) from e

            if not isinstance(payload, dict) or payload.get("status") != "success":
                cause = _payload_message(payload) or UNKNOWN_ERROR
                logger.warning("%s rejected: %s", action, cause)
                raise RemoteWriteError(action, cause)

            message = _payload_message(payload) or "Data berhasil disimpan."
            logger.info("%s succeeded", action)
            return WriteResult(message=message)


def _extract_rows(collection: str, payload: Any) -> list[Record]:
    """Pull the row list out of a read response.

    Accepts a bare JSON array or an object with a ``data`` array.
    """
    if isinstance(payload, dict):
        if payload.get("status") == "error":
            raise RemoteFetchError(collection, _payload_message(payload) or UNKNOWN_ERROR)
        payload = payload.get("data")

    if not isinstance(payload, list):
        raise RemoteFetchError(collection, "Format data dari server tidak dikenali.")

    return [row for row in payload if isinstance(row, dict)]


def _payload_message(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("error")
        if message:
            return str(message)
    return None


def _status_of(error: requests.HTTPError) -> Optional[int]:
    return error.response.status_code if error.response is not None else None


def _http_cause(error: requests.HTTPError) -> str:
    status = _status_of(error)
    if status is None:
        return UNKNOWN_ERROR
    return f"Server mengembalikan status {status}."
