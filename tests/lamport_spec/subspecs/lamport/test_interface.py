"""
End-to-end tests for the Lamport one-time signature scheme.
"""

import hashlib
import logging
import threading

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from lamport_spec.subspecs.lamport.constants import (
    ALL_CONFIGS,
    SHA256_CONFIG,
    SHA512_CONFIG,
    LamportConfig,
)
from lamport_spec.subspecs.lamport.containers import PrivateKey, PublicKey, Signature
from lamport_spec.subspecs.lamport.hasher import Hasher, HashFunction
from lamport_spec.subspecs.lamport.interface import (
    DEFAULT_SCHEME,
    SHA3_256_SCHEME,
    SHA256_SCHEME,
    SHA512_SCHEME,
    LamportScheme,
    get_scheme,
)
from lamport_spec.subspecs.lamport.rand import Rand
from lamport_spec.types import AlreadyUsedError, RandomnessUnavailableError


def _test_correctness_roundtrip(scheme: LamportScheme, message: bytes) -> None:
    """
    A helper to perform a full key_gen -> sign -> verify roundtrip.

    It also checks that verification fails for a tampered message.
    """
    # KEY GENERATION
    private_key = scheme.key_gen()
    public_key = scheme.derive_public(private_key)

    # SIGN & VERIFY
    signature = scheme.sign(private_key, message)
    assert scheme.verify(public_key, signature, message), "Valid signature rejected"

    # TEST INVALID CASES
    tampered_message = message + b"\x00"
    assert not scheme.verify(public_key, signature, tampered_message), (
        "Verification succeeded for a tampered message"
    )


@pytest.mark.parametrize("config", ALL_CONFIGS, ids=lambda c: c.ALGORITHM)
def test_signature_scheme_correctness(config: LamportConfig) -> None:
    """Runs an end-to-end test of the scheme for every hash preset."""
    _test_correctness_roundtrip(get_scheme(config), b"Hello World")


@pytest.mark.parametrize("config", ALL_CONFIGS, ids=lambda c: c.ALGORITHM)
def test_public_key_length(config: LamportConfig) -> None:
    """Both halves of a public key hold `B = 8 * L` digests of `L` bytes."""
    scheme = get_scheme(config)
    public_key = scheme.derive_public(scheme.key_gen())

    assert len(public_key.zero_values) == 8 * config.DIGEST_LENGTH
    assert len(public_key.one_values) == 8 * config.DIGEST_LENGTH
    assert all(len(d) == config.DIGEST_LENGTH for d in public_key.zero_values)
    assert all(len(d) == config.DIGEST_LENGTH for d in public_key.one_values)


def test_distinctive_successive_keygen() -> None:
    """Each freshly generated key differs from the one before it."""
    previous = SHA512_SCHEME.key_gen()
    for _ in range(100):
        current = SHA512_SCHEME.key_gen()
        assert previous != current
        previous = current


def test_sign_verify_hello_world() -> None:
    private_key = PrivateKey.generate(SHA512_CONFIG)
    data = b"Hello World"
    signature = private_key.sign(data)

    public_key = private_key.public_key()

    assert public_key.verify_signature(signature, data)
    assert signature.verify(public_key, data, SHA512_SCHEME)


def test_sign_verify_fail_other_message() -> None:
    """A signature for one message does not verify for another."""
    private_key = PrivateKey.generate(SHA512_CONFIG)
    signature = private_key.sign(b"Hello World")
    public_key = private_key.public_key()

    assert not public_key.verify_signature(signature, b"Hello")


def test_public_key_derivation_is_pure() -> None:
    """Deriving the public key neither consumes nor changes the private key."""
    private_key = SHA256_SCHEME.key_gen()
    first = SHA256_SCHEME.derive_public(private_key)
    second = SHA256_SCHEME.derive_public(private_key)

    assert first == second
    assert not private_key.used


def test_public_key_matches_preimage_hashes() -> None:
    private_key = SHA256_SCHEME.key_gen()
    public_key = SHA256_SCHEME.derive_public(private_key)

    for i in (0, 1, 128, 255):
        assert public_key.zero_values[i] == hashlib.sha256(private_key.zero_values[i]).digest()
        assert public_key.one_values[i] == hashlib.sha256(private_key.one_values[i]).digest()


def test_signature_reveals_preimages_by_digest_bits() -> None:
    """Signature entry `i` is the one-preimage iff bit `i` of `H(m)` is set."""
    private_key = SHA256_SCHEME.key_gen()
    zero_values = [bytes(v) for v in private_key.zero_values]
    one_values = [bytes(v) for v in private_key.one_values]
    message = b"bit ordering"

    signature = SHA256_SCHEME.sign(private_key, message)
    digest = hashlib.sha256(message).digest()

    assert len(signature) == 256
    for i in range(256):
        bit = (digest[i // 8] >> (i % 8)) & 1
        assert signature[i] == (one_values[i] if bit else zero_values[i])


def test_double_sign_refused() -> None:
    """The second signature attempt fails and leaves the key unchanged."""
    private_key = SHA256_SCHEME.key_gen()
    SHA256_SCHEME.sign(private_key, b"first")
    assert private_key.used

    before = [bytes(v) for v in private_key.zero_values + private_key.one_values]

    with pytest.raises(AlreadyUsedError, match="more than once"):
        SHA256_SCHEME.sign(private_key, b"second")

    after = [bytes(v) for v in private_key.zero_values + private_key.one_values]
    assert after == before
    assert private_key.used
    assert not private_key.erased


def test_double_sign_logs_warning(caplog: pytest.LogCaptureFixture) -> None:
    private_key = SHA256_SCHEME.key_gen()
    private_key.sign(b"first")

    with caplog.at_level(logging.WARNING, logger="lamport_spec.subspecs.lamport.interface"):
        with pytest.raises(AlreadyUsedError):
            private_key.sign(b"second")

    assert "Refused to sign" in caplog.text


def test_concurrent_signing_allows_one_signature() -> None:
    """Two threads racing to sign with one key cannot both succeed."""
    private_key = SHA256_SCHEME.key_gen()
    barrier = threading.Barrier(8)
    outcomes: list[str] = []
    outcomes_lock = threading.Lock()

    def attempt(message: bytes) -> None:
        barrier.wait()
        try:
            SHA256_SCHEME.sign(private_key, message)
            outcome = "signed"
        except AlreadyUsedError:
            outcome = "refused"
        with outcomes_lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=attempt, args=(bytes([i]),)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count("signed") == 1
    assert outcomes.count("refused") == 7


@pytest.mark.parametrize(
    "reshape",
    [
        pytest.param(lambda values: values[:-1], id="one_removed"),
        pytest.param(lambda values: values + values[:1], id="one_appended"),
        pytest.param(lambda values: (), id="empty"),
    ],
)
def test_wrong_length_signature_rejected(reshape) -> None:  # type: ignore[no-untyped-def]
    """Signatures of the wrong length verify as False instead of raising."""
    private_key = SHA512_SCHEME.key_gen()
    public_key = SHA512_SCHEME.derive_public(private_key)
    message = b"Hello World"
    signature = SHA512_SCHEME.sign(private_key, message)

    reshaped = Signature(data=reshape(signature.data))

    assert not SHA512_SCHEME.verify(public_key, reshaped, message)
    assert not SHA512_SCHEME.verify(public_key, list(reshaped), message)


def test_plain_sequence_signature_accepted() -> None:
    private_key = SHA256_SCHEME.key_gen()
    public_key = SHA256_SCHEME.derive_public(private_key)
    signature = SHA256_SCHEME.sign(private_key, b"msg")

    assert SHA256_SCHEME.verify(public_key, list(signature), b"msg")


def test_non_sequence_signature_rejected() -> None:
    private_key = SHA256_SCHEME.key_gen()
    public_key = SHA256_SCHEME.derive_public(private_key)
    signature = SHA256_SCHEME.sign(private_key, b"msg")

    assert not SHA256_SCHEME.verify(public_key, iter(signature), b"msg")  # type: ignore[arg-type]


def test_tampered_preimage_rejected() -> None:
    private_key = SHA256_SCHEME.key_gen()
    public_key = SHA256_SCHEME.derive_public(private_key)
    signature = SHA256_SCHEME.sign(private_key, b"msg")

    values = list(signature)
    values[100] = bytes(b ^ 0x01 for b in values[100])

    assert not SHA256_SCHEME.verify(public_key, values, b"msg")
    assert not SHA256_SCHEME.verify(public_key, values, b"msg", constant_time=True)


def test_wrong_public_key_rejected() -> None:
    private_key = SHA256_SCHEME.key_gen()
    other_public_key = SHA256_SCHEME.derive_public(SHA256_SCHEME.key_gen())
    signature = SHA256_SCHEME.sign(private_key, b"msg")

    assert not SHA256_SCHEME.verify(other_public_key, signature, b"msg")


def test_cross_algorithm_verification_rejected() -> None:
    """A public key is only checked by the scheme of its own hash."""
    private_key = SHA256_SCHEME.key_gen()
    public_key = SHA256_SCHEME.derive_public(private_key)
    signature = SHA256_SCHEME.sign(private_key, b"msg")

    # SHA3-256 has the same output length, so only the algorithm name differs.
    assert not SHA3_256_SCHEME.verify(public_key, signature, b"msg")


def test_constant_time_path_agrees() -> None:
    private_key = SHA256_SCHEME.key_gen()
    public_key = SHA256_SCHEME.derive_public(private_key)
    signature = SHA256_SCHEME.sign(private_key, b"msg")

    assert SHA256_SCHEME.verify(public_key, signature, b"msg", constant_time=True)
    assert not SHA256_SCHEME.verify(public_key, signature, b"other", constant_time=True)
    assert public_key.verify_signature(signature, b"msg", constant_time=True)


def test_key_from_other_scheme_refused() -> None:
    private_key = SHA256_SCHEME.key_gen()

    with pytest.raises(ValueError, match="generated for sha256"):
        SHA512_SCHEME.sign(private_key, b"msg")
    with pytest.raises(ValueError, match="generated for sha256"):
        SHA512_SCHEME.derive_public(private_key)

    assert not private_key.used


def test_key_pair() -> None:
    public_key, private_key = SHA256_SCHEME.key_pair()
    assert public_key == private_key.public_key()


def test_key_gen_fails_without_randomness(monkeypatch: pytest.MonkeyPatch) -> None:
    """No key is produced if the random source is unavailable."""

    def broken_urandom(size: int) -> bytes:
        raise OSError("getrandom failed")

    monkeypatch.setattr("os.urandom", broken_urandom)

    with pytest.raises(RandomnessUnavailableError):
        SHA256_SCHEME.key_gen()


def test_key_gen_erases_first_half_on_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    """A failure while drawing the one-values erases the zero-values already drawn."""
    drawn: list[bytearray] = []
    limit = SHA256_CONFIG.NUM_BITS + 10

    def flaky_preimage(self: Rand) -> bytearray:
        if len(drawn) == limit:
            raise RandomnessUnavailableError("source went away")
        value = bytearray(b"\xaa" * self.config.DIGEST_LENGTH)
        drawn.append(value)
        return value

    monkeypatch.setattr(Rand, "preimage", flaky_preimage)

    with pytest.raises(RandomnessUnavailableError):
        SHA256_SCHEME.key_gen()

    assert len(drawn) == limit
    assert all(not any(value) for value in drawn)


def test_scheme_requires_matching_components() -> None:
    with pytest.raises(ValueError, match="share the scheme's config"):
        LamportScheme(
            config=SHA256_CONFIG,
            hasher=Hasher(config=SHA512_CONFIG),
            rand=Rand(config=SHA256_CONFIG),
        )


def test_get_scheme() -> None:
    assert get_scheme("sha512") is SHA512_SCHEME
    assert get_scheme(SHA256_CONFIG) is SHA256_SCHEME
    assert DEFAULT_SCHEME is SHA256_SCHEME

    with pytest.raises(ValueError, match="Unsupported hash algorithm"):
        get_scheme("md5")


def test_serialized_public_key_verifies() -> None:
    """A public key that travelled as bytes still verifies signatures."""
    private_key = SHA256_SCHEME.key_gen()
    encoded = SHA256_SCHEME.derive_public(private_key).to_bytes()
    signature = Signature.from_bytes(private_key.sign(b"msg").to_bytes(), SHA256_CONFIG)

    public_key = PublicKey.from_bytes(encoded, SHA256_CONFIG)

    assert SHA256_SCHEME.verify(public_key, signature, b"msg")


@settings(max_examples=25)
@given(message=st.binary(max_size=512))
def test_sign_verify_agreement(message: bytes) -> None:
    """Any message signed with a fresh key verifies under its public key."""
    private_key = SHA256_SCHEME.key_gen()
    public_key = SHA256_SCHEME.derive_public(private_key)

    signature = SHA256_SCHEME.sign(private_key, message)

    assert SHA256_SCHEME.verify(public_key, signature, message)


@settings(max_examples=25)
@given(message=st.binary(max_size=64), other=st.binary(max_size=64))
def test_sign_verify_disagreement(message: bytes, other: bytes) -> None:
    """A signature never verifies for a different message."""
    assume(message != other)
    private_key = SHA256_SCHEME.key_gen()
    public_key = SHA256_SCHEME.derive_public(private_key)

    signature = SHA256_SCHEME.sign(private_key, message)

    assert not SHA256_SCHEME.verify(public_key, signature, other)


class _HashlibSha256:
    """A `HashFunction` backed by `hashlib` instead of `Hasher`."""

    name = "sha256"
    digest_size = 32

    def digest(self, data: bytes | bytearray | memoryview) -> bytes:
        return hashlib.sha256(data).digest()


def test_scheme_accepts_any_hash_function() -> None:
    """Any object with the hash capability can drive the scheme."""
    hasher = _HashlibSha256()
    assert isinstance(hasher, HashFunction)
    scheme = LamportScheme(config=SHA256_CONFIG, hasher=hasher, rand=Rand(config=SHA256_CONFIG))

    private_key = scheme.key_gen()
    public_key = scheme.derive_public(private_key)
    signature = scheme.sign(private_key, b"Hello World")

    assert len(private_key.zero_values) == 8 * hasher.digest_size
    assert scheme.verify(public_key, signature, b"Hello World")
    assert not scheme.verify(public_key, signature, b"Hello")
    assert SHA256_SCHEME.verify(public_key, signature, b"Hello World")


def test_scheme_rejects_hash_function_of_other_size() -> None:
    hasher = _HashlibSha256()
    hasher.digest_size = 64

    with pytest.raises(ValueError, match="share the scheme's config"):
        LamportScheme(config=SHA256_CONFIG, hasher=hasher, rand=Rand(config=SHA256_CONFIG))


def test_derive_public_holds_key_during_concurrent_zeroize() -> None:
    """A zeroize racing with derivation waits, so no entry commits to erased bytes."""
    private_key = SHA256_SCHEME.key_gen()
    eraser = threading.Thread(target=private_key.zeroize)

    class _ErasingHasher(_HashlibSha256):
        def digest(self, data: bytes | bytearray | memoryview) -> bytes:
            if eraser.ident is None:
                eraser.start()
                eraser.join(timeout=0.1)
            return super().digest(data)

    scheme = LamportScheme(
        config=SHA256_CONFIG, hasher=_ErasingHasher(), rand=Rand(config=SHA256_CONFIG)
    )

    public_key = scheme.derive_public(private_key)
    eraser.join()

    erased_digest = hashlib.sha256(bytes(32)).digest()
    assert private_key.erased
    assert erased_digest not in public_key.zero_values + public_key.one_values
