"""
Ephemeral viewer-token store.

Mints short-lived opaque tokens that bind a browser to one HubSpot file id,
so the viewer page, its file fetch and its upload action can be authorized
without handing CRM credentials to the client.

Security properties:
- Tokens are 32 bytes from the OS CSPRNG, hex encoded (64 chars)
- A record is reachable only by its exact token; there is no listing API
- Expiry is absolute and never refreshed by validation
- Token values are never logged; outcomes are logged by file id
"""
import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

VIEWER_TOKEN_TTL = timedelta(minutes=15)
TOKEN_BYTES = 32
DEFAULT_FILENAME = "document"

EXPIRY_JOB_NAME = "expire-viewer-token"


@dataclass(frozen=True)
class TokenRecord:
    """
    A minted viewer token.

    Attributes:
        token: Opaque 64-char hex token
        file_id: HubSpot file id the token authorizes
        filename: Display name for the viewer (not authoritative)
        created_at: When the token was minted (UTC)
        expires_at: Token is invalid at or after this instant (UTC)
    """
    token: str
    file_id: str
    filename: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    @property
    def expires_in_seconds(self) -> int:
        return int((self.expires_at - self.created_at).total_seconds())


class TokenValidationError(Exception):
    """Base exception for viewer-token validation failures."""
    reason: str = "INVALID"


class MissingTokenError(TokenValidationError):
    """Raised when no token was presented."""
    reason = "MISSING"


class TokenNotFoundError(TokenValidationError):
    """Raised when the token is not in the store."""
    reason = "NOT_FOUND"


class TokenExpiredError(TokenValidationError):
    """Raised when the token is past its expiry (the record is removed)."""
    reason = "EXPIRED"


class TokenMismatchError(TokenValidationError):
    """Raised when the token is bound to a different file id."""
    reason = "MISMATCH"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ViewerTokenStore:
    """
    In-memory, process-local store of viewer tokens.

    Records are removed three ways, all idempotent:
    - a deferred ``date`` job per record firing at ``expires_at`` (when a
      scheduler is attached)
    - lazily, by the first validation that observes the record expired
    - by ``sweep()``, run on a low-frequency interval
    """

    def __init__(
        self,
        ttl: timedelta = VIEWER_TOKEN_TTL,
        scheduler=None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the token store.

        Args:
            ttl: Lifetime of every minted token
            scheduler: Optional APScheduler scheduler used for deferred deletion
            clock: Callable returning the current aware UTC datetime
        """
        self._ttl = ttl
        self._scheduler = scheduler
        self._clock = clock or _utcnow
        self._records: Dict[str, TokenRecord] = {}
        # APScheduler runs sync jobs on worker threads
        self._lock = threading.Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def mint(self, file_id, filename: Optional[str] = None) -> str:
        """
        Mint a token bound to ``file_id``.

        Args:
            file_id: HubSpot file id (str or int); required
            filename: Display name, defaults to "document"

        Returns:
            The 64-char hex token

        Raises:
            ValueError: If file_id is missing or empty
        """
        file_id = str(file_id).strip() if file_id is not None else ""
        if not file_id:
            raise ValueError("file_id is required")

        now = self._clock()
        with self._lock:
            token = secrets.token_hex(TOKEN_BYTES)
            while token in self._records:
                token = secrets.token_hex(TOKEN_BYTES)

            record = TokenRecord(
                token=token,
                file_id=file_id,
                filename=filename or DEFAULT_FILENAME,
                created_at=now,
                expires_at=now + self._ttl,
            )
            self._records[token] = record

        self._schedule_expiry(record)
        logger.info("Minted viewer token for file %s", file_id)
        return token

    def validate(self, token: Optional[str], expected_file_id=None) -> TokenRecord:
        """
        Validate a token, optionally against the file id being accessed.

        Validation never extends expiry. An expired record is deleted before
        the failure is raised; a mismatched record is left intact.

        Args:
            token: Token presented by the caller (may be None or empty)
            expected_file_id: File id the caller is acting on, or None to
                accept a token bound to any file

        Returns:
            The token record

        Raises:
            MissingTokenError: No token presented
            TokenNotFoundError: Token unknown
            TokenExpiredError: Token past expiry (record removed)
            TokenMismatchError: Token bound to another file id
        """
        if not token:
            raise MissingTokenError("Missing authentication token")

        now = self._clock()
        with self._lock:
            record = self._records.get(token)
            if record is None:
                raise TokenNotFoundError("Unknown token")

            if record.is_expired(now):
                del self._records[token]
                raise TokenExpiredError("Token expired")

        if expected_file_id is not None and record.file_id != str(expected_file_id):
            raise TokenMismatchError("Token not valid for this file")

        return record

    def discard(self, token: str) -> bool:
        """
        Remove a token if present.

        Returns:
            True if a record was removed, False if it was already gone
        """
        with self._lock:
            return self._records.pop(token, None) is not None

    def sweep(self) -> int:
        """
        Remove every expired record.

        Returns:
            Number of records removed
        """
        now = self._clock()
        with self._lock:
            expired = [t for t, r in self._records.items() if r.is_expired(now)]
            for t in expired:
                del self._records[t]

        if expired:
            logger.info("Swept %d expired viewer tokens", len(expired))
        return len(expired)

    def clear(self):
        """Drop all records."""
        with self._lock:
            self._records.clear()

    def _schedule_expiry(self, record: TokenRecord):
        """Schedule the deferred deletion of a record at its expiry."""
        if self._scheduler is None:
            return

        self._scheduler.add_job(
            self.discard,
            trigger="date",
            run_date=record.expires_at,
            args=[record.token],
            name=EXPIRY_JOB_NAME,
            misfire_grace_time=None,
        )
