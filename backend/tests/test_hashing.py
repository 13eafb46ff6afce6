"""Commit-reveal hashing tests."""
import hashlib
import re

import pytest

from plinko.logic import hashing


SERVER_SEED = "b2a5f3f32a4d9c6ee7a8c1d33456677890abcdeffedcba0987654321ffeeddcc"
HEX64 = re.compile(r"^[a-f0-9]{64}$")


class TestDigest:
    def test_matches_hashlib(self):
        assert hashing.sha256_hex("hello") == hashlib.sha256(b"hello").hexdigest()

    def test_bytes_and_text_agree(self):
        assert hashing.sha256_hex("héllo") == hashing.sha256_hex("héllo".encode("utf-8"))

    def test_lowercase_hex_64(self):
        assert HEX64.match(hashing.sha256_hex(""))


class TestRandomHex:
    def test_length_is_twice_bytes(self):
        assert len(hashing.random_hex(16)) == 32
        assert len(hashing.random_hex()) == 64

    def test_values_differ(self):
        assert hashing.random_hex() != hashing.random_hex()

    def test_rejects_non_positive(self):
        with pytest.raises(ValueError):
            hashing.random_hex(0)


class TestCommitHash:
    def test_known_commit(self):
        """commitHash is SHA256("{serverSeed}:{nonce}") exactly."""
        commit = hashing.commit_hash(SERVER_SEED, "42")
        assert commit == hashlib.sha256(f"{SERVER_SEED}:42".encode()).hexdigest()
        assert commit == "bb9acdc67f3f18f3345236a01f0e5072596657a9005c7d8a22cff061451a6b34"

    def test_deterministic(self):
        assert hashing.commit_hash(SERVER_SEED, "42") == hashing.commit_hash(SERVER_SEED, "42")

    def test_nonce_changes_commit(self):
        seed = "aaaa" * 16
        assert hashing.commit_hash(seed, "1") != hashing.commit_hash(seed, "2")


class TestCombinedSeed:
    def test_known_combined_seed(self):
        combined = hashing.combined_seed(SERVER_SEED, "candidate-hello", "42")
        assert combined == "e1dddf77de27d395ea2be2ed49aa2a59bd6bf12ee8d350c16c008abd406c07e0"

    def test_field_order_matters(self):
        assert hashing.combined_seed("a", "b", "1") != hashing.combined_seed("b", "a", "1")

    def test_client_seed_may_be_any_text(self):
        combined = hashing.combined_seed(SERVER_SEED, "🎲 lucky drop", "7")
        assert HEX64.match(combined)
        assert combined == hashlib.sha256(
            f"{SERVER_SEED}:🎲 lucky drop:7".encode("utf-8")
        ).hexdigest()


class TestVerifyCommit:
    def test_valid_commit(self):
        commit = hashing.commit_hash(SERVER_SEED, "42")
        assert hashing.verify_commit(commit, SERVER_SEED, "42") is True

    def test_changed_seed_detected(self):
        commit = hashing.commit_hash(SERVER_SEED, "42")
        tampered = SERVER_SEED[:-1] + "d"
        assert hashing.verify_commit(commit, tampered, "42") is False

    def test_changed_nonce_detected(self):
        commit = hashing.commit_hash(SERVER_SEED, "42")
        assert hashing.verify_commit(commit, SERVER_SEED, "43") is False

    def test_comparison_is_exact(self):
        """Uppercase hex does not match; published hashes are lowercase."""
        commit = hashing.commit_hash(SERVER_SEED, "42")
        assert hashing.verify_commit(commit.upper(), SERVER_SEED, "42") is False
