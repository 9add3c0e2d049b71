"""
Unit tests for the viewer token store.
"""
import re
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from viewer_bridge.tokens import (
    MissingTokenError,
    TokenExpiredError,
    TokenMismatchError,
    TokenNotFoundError,
    TokenValidationError,
    VIEWER_TOKEN_TTL,
    ViewerTokenStore,
)
from viewer_bridge.tokens.store import DEFAULT_FILENAME, EXPIRY_JOB_NAME

HEX_TOKEN = re.compile(r"^[0-9a-f]{64}$")


class TestMint:
    """Tests for minting tokens."""

    def test_token_shape(self, token_store):
        """Tokens are 64 lowercase hex characters."""
        token = token_store.mint("101", "contract.pdf")

        assert HEX_TOKEN.match(token)

    def test_record_fields(self, token_store, clock):
        """The record carries file id, filename and a 15 minute expiry."""
        token = token_store.mint("101", "contract.pdf")
        record = token_store.validate(token)

        assert record.token == token
        assert record.file_id == "101"
        assert record.filename == "contract.pdf"
        assert record.created_at == clock.now
        assert record.expires_at == clock.now + timedelta(minutes=15)
        assert record.expires_in_seconds == 900

    def test_integer_file_id_is_normalized(self, token_store):
        """Numeric ids from JSON bodies bind as strings."""
        token = token_store.mint(101)

        assert token_store.validate(token, expected_file_id="101").file_id == "101"
        assert token_store.validate(token, expected_file_id=101).file_id == "101"

    def test_filename_defaults_to_document(self, token_store):
        token = token_store.mint("101")

        assert token_store.validate(token).filename == DEFAULT_FILENAME

    @pytest.mark.parametrize("file_id", [None, "", "   "])
    def test_missing_file_id_rejected(self, token_store, file_id):
        """No record is created when the file id is missing."""
        with pytest.raises(ValueError):
            token_store.mint(file_id)

        assert len(token_store) == 0

    def test_tokens_are_distinct(self, token_store):
        """Minting many tokens for the same file never repeats a value."""
        tokens = {token_store.mint("101") for _ in range(200)}

        assert len(tokens) == 200
        assert len(token_store) == 200

    def test_tokens_for_same_file_expire_independently(self, token_store, clock):
        """Expiry of one token leaves a later token for the same file valid."""
        first = token_store.mint("101")
        clock.advance(minutes=10)
        second = token_store.mint("101")
        clock.advance(minutes=5)

        with pytest.raises(TokenExpiredError):
            token_store.validate(first, expected_file_id="101")
        assert token_store.validate(second, expected_file_id="101").token == second

    def test_discarding_one_token_keeps_the_other(self, token_store):
        first = token_store.mint("101")
        second = token_store.mint("101")

        token_store.discard(first)

        with pytest.raises(TokenNotFoundError):
            token_store.validate(first, expected_file_id="101")
        assert token_store.validate(second, expected_file_id="101").file_id == "101"

    def test_collision_redraws(self, token_store, monkeypatch):
        """A drawn value that is already live is replaced by a fresh one."""
        values = iter(["a" * 64, "a" * 64, "b" * 64])
        monkeypatch.setattr(
            "viewer_bridge.tokens.store.secrets.token_hex",
            lambda nbytes: next(values),
        )

        first = token_store.mint("101")
        second = token_store.mint("102")

        assert first == "a" * 64
        assert second == "b" * 64

    def test_token_value_not_logged(self, token_store, caplog):
        """Minting logs the file id, never the token."""
        with caplog.at_level("INFO", logger="viewer_bridge.tokens.store"):
            token = token_store.mint("101")

        assert "101" in caplog.text
        assert token not in caplog.text


class TestValidate:
    """Tests for token validation."""

    def test_valid_token(self, token_store):
        token = token_store.mint("101")

        record = token_store.validate(token, expected_file_id="101")

        assert record.file_id == "101"

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token(self, token_store, token):
        with pytest.raises(MissingTokenError):
            token_store.validate(token)

    def test_unknown_token(self, token_store):
        with pytest.raises(TokenNotFoundError):
            token_store.validate("0" * 64)

    def test_valid_just_before_expiry(self, token_store, clock):
        token = token_store.mint("101")
        clock.advance(minutes=14, seconds=59)

        assert token_store.validate(token, expected_file_id="101").file_id == "101"

    def test_expired_at_exact_expiry(self, token_store, clock):
        """A token is invalid at its expiry instant, and the record is deleted."""
        token = token_store.mint("101")
        clock.advance(minutes=15)

        with pytest.raises(TokenExpiredError):
            token_store.validate(token)

        assert len(token_store) == 0
        with pytest.raises(TokenNotFoundError):
            token_store.validate(token)

    def test_validation_does_not_extend_expiry(self, token_store, clock):
        token = token_store.mint("101")

        clock.advance(minutes=10)
        token_store.validate(token)
        clock.advance(minutes=5)

        with pytest.raises(TokenExpiredError):
            token_store.validate(token)

    def test_mismatch_leaves_record(self, token_store):
        """A token bound to another file fails but stays usable for its own file."""
        token = token_store.mint("101")

        with pytest.raises(TokenMismatchError):
            token_store.validate(token, expected_file_id="999")

        assert token_store.validate(token, expected_file_id="101").file_id == "101"

    def test_multi_use_until_expiry(self, token_store):
        token = token_store.mint("101")

        for _ in range(5):
            token_store.validate(token, expected_file_id="101")

    def test_without_expected_file_accepts_any_binding(self, token_store):
        token = token_store.mint("101")

        assert token_store.validate(token).file_id == "101"

    def test_failures_share_base_class(self):
        for exc in (MissingTokenError, TokenNotFoundError, TokenExpiredError, TokenMismatchError):
            assert issubclass(exc, TokenValidationError)

    def test_reason_codes(self):
        assert MissingTokenError.reason == "MISSING"
        assert TokenNotFoundError.reason == "NOT_FOUND"
        assert TokenExpiredError.reason == "EXPIRED"
        assert TokenMismatchError.reason == "MISMATCH"


class TestDiscardAndSweep:
    """Tests for deferred deletion and the periodic sweep."""

    def test_discard_is_idempotent(self, token_store):
        token = token_store.mint("101")

        assert token_store.discard(token) is True
        assert token_store.discard(token) is False
        with pytest.raises(TokenNotFoundError):
            token_store.validate(token)

    def test_discard_after_lazy_expiry(self, token_store, clock):
        """The deferred deletion is a no-op when validation already removed the record."""
        token = token_store.mint("101")
        clock.advance(minutes=16)
        with pytest.raises(TokenExpiredError):
            token_store.validate(token)

        assert token_store.discard(token) is False

    def test_sweep_removes_only_expired(self, token_store, clock):
        old = [token_store.mint("101") for _ in range(3)]
        clock.advance(minutes=10)
        fresh = token_store.mint("102")
        clock.advance(minutes=5)

        assert token_store.sweep() == 3
        assert len(token_store) == 1
        assert token_store.validate(fresh).file_id == "102"
        for token in old:
            with pytest.raises(TokenNotFoundError):
                token_store.validate(token)

    def test_sweep_empty_store(self, token_store):
        assert token_store.sweep() == 0

    def test_clear(self, token_store):
        token_store.mint("101")
        token_store.clear()

        assert len(token_store) == 0


class TestExpiryScheduling:
    """Tests for the deferred deletion job registered at mint time."""

    def test_mint_schedules_discard_at_expiry(self, clock):
        scheduler = MagicMock()
        store = ViewerTokenStore(scheduler=scheduler, clock=clock)

        token = store.mint("101")

        scheduler.add_job.assert_called_once()
        args, kwargs = scheduler.add_job.call_args
        assert args[0] == store.discard
        assert kwargs["trigger"] == "date"
        assert kwargs["run_date"] == clock.now + VIEWER_TOKEN_TTL
        assert kwargs["args"] == [token]
        assert kwargs["name"] == EXPIRY_JOB_NAME

    def test_scheduled_job_args_do_not_leak_into_name(self, clock):
        """Job names show up in scheduler logs; the token only travels in args."""
        scheduler = MagicMock()
        store = ViewerTokenStore(scheduler=scheduler, clock=clock)

        token = store.mint("101")

        _, kwargs = scheduler.add_job.call_args
        assert token not in kwargs["name"]

    def test_rejected_mint_schedules_nothing(self, clock):
        scheduler = MagicMock()
        store = ViewerTokenStore(scheduler=scheduler, clock=clock)

        with pytest.raises(ValueError):
            store.mint("")

        scheduler.add_job.assert_not_called()

    def test_custom_ttl(self, clock):
        store = ViewerTokenStore(ttl=timedelta(seconds=30), clock=clock)
        token = store.mint("101")

        clock.advance(seconds=30)

        with pytest.raises(TokenExpiredError):
            store.validate(token)
