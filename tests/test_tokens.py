"""Tests for token text encodings and the random source."""
import re

import pytest

from notifyme.exceptions import DecodeError, RandomSourceError
from notifyme.services.random_source import RandomSource, SESSION_TOKEN_BYTES
from notifyme.utils.tokens import decode_token, encode_token, encode_webhook_secret


class TestTokenCodec:
    def test_encoding_has_no_padding(self):
        encoded = encode_token(b"\x00" * 32)
        assert not encoded.endswith("=")
        assert decode_token(encoded) == b"\x00" * 32

    def test_padded_form_is_accepted(self):
        assert decode_token("aGk=") == b"hi"
        assert decode_token("aGk") == b"hi"

    def test_surrounding_whitespace_is_ignored(self):
        assert decode_token("  aGk \n") == b"hi"

    @pytest.mark.parametrize("value", ["", "   ", "a", "not base64!", "aGk$", "тест"])
    def test_malformed_tokens_raise(self, value):
        with pytest.raises(DecodeError):
            decode_token(value)

    def test_urlsafe_alphabet_is_rejected(self):
        # "-" and "_" belong to the URL-safe alphabet only
        with pytest.raises(DecodeError):
            decode_token("ab-_")

    def test_webhook_secret_alphabet(self):
        secret = encode_webhook_secret(bytes(range(256))[:32] + b"\xff\xfe")
        assert re.fullmatch(r"[A-Za-z0-9_-]+", secret)


class TestRandomSource:
    def test_open_reads_the_source_once(self):
        reads = []

        def read(n):
            reads.append(n)
            return b"\x01" * n

        source = RandomSource.open(read)
        assert reads == [SESSION_TOKEN_BYTES]
        assert source.session_token() == b"\x01" * SESSION_TOKEN_BYTES

    def test_open_fails_when_source_unavailable(self):
        def read(n):
            raise NotImplementedError("no urandom")

        with pytest.raises(RandomSourceError):
            RandomSource.open(read)

    def test_short_read_is_an_error(self):
        source = RandomSource(lambda n: b"\x01")
        with pytest.raises(RandomSourceError):
            source.token_bytes(32)

    def test_tokens_differ(self):
        source = RandomSource()
        assert source.session_token() != source.session_token()
