"""Commit signing with a two-tier GPG key resolution strategy.

1. Agent-backed: when a gpg agent is reachable, the configured gpg program
   produces a detached armored signature and the agent supplies the
   passphrase from its own cache.
2. Direct keyring: otherwise secret keys are read from the legacy
   ``secring.gpg`` or exported through the gpg program, the configured key
   is located and unlocked with a passphrase typed at the terminal, and the
   signature is produced in-process with PGPy.
"""

import getpass
import logging
import os
from contextlib import nullcontext
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional, Protocol

from commit_assistant.commands import CommandRunner
from commit_assistant.errors import ConfigurationError, SigningError
from commit_assistant.logging_config import null_logger
from commit_assistant.models import GitConfig


class CommitSigner(Protocol):
    """Produces an ASCII-armored detached signature for a commit payload."""

    def sign(self, payload: bytes) -> str:
        ...


class GpgAgentSigner:
    """Signs by invoking the gpg program; the agent provides the passphrase."""

    def __init__(self, runner: CommandRunner, gpg_program: str, key_id: str):
        self.runner = runner
        self.gpg_program = gpg_program
        self.key_id = key_id

    def sign(self, payload: bytes) -> str:
        result = self.runner.run(
            [self.gpg_program, "--detach-sign", "--armor", "--local-user", self.key_id],
            input_data=payload,
        )
        if not result.ok:
            raise SigningError(f"gpg signing failed: {result.stderr_text}")
        return result.stdout.decode("utf-8")


class KeyringSigner:
    """Signs in-process with a key loaded from the secret keyring.

    Attributes:
        entity: Primary key that matched the configured signing key
        signing_key: Key used to sign (the primary or a matched subkey)
        passphrase: Passphrase unlocking the entity, None when unprotected
    """

    def __init__(self, entity: Any, signing_key: Any, passphrase: Optional[str] = None):
        self.entity = entity
        self.signing_key = signing_key
        self.passphrase = passphrase

    def sign(self, payload: bytes) -> str:
        unlocked = self.entity.unlock(self.passphrase) if self.passphrase is not None else nullcontext()
        try:
            with unlocked:
                signature = self.signing_key.sign(payload)
        except Exception as e:
            raise SigningError(f"failed to sign commit: {e}") from e
        return str(signature)


def load_secret_keys(blob: bytes) -> List[Any]:
    """Parse every primary secret key in an armored or binary keyring."""
    from pgpy import PGPKey

    loaded = PGPKey.from_blob(blob)
    if isinstance(loaded, tuple):
        primary, others = loaded
        keys = [primary] + [key for key in others.values() if key.is_primary]
    else:
        keys = [loaded]
    return [key for key in keys if not key.is_public]


def _key_has_protection(entity: Any) -> bool:
    if entity.is_protected:
        return True
    return any(subkey.is_protected for subkey in entity.subkeys.values())


def find_signing_key(entities: List[Any], signing_key: str) -> Optional[tuple]:
    """Locate the entity for ``signing_key``.

    Matches, in order, a primary key ID suffix, a subkey ID suffix or an
    identity email containing the configured value.

    Returns:
        ``(entity, key_to_sign_with)`` or None when nothing matches
    """
    wanted = signing_key.upper()
    for entity in entities:
        if entity.fingerprint.keyid.upper().endswith(wanted):
            return entity, entity
        for subkey_id, subkey in entity.subkeys.items():
            if str(subkey_id).upper().endswith(wanted):
                return entity, subkey
        for identity in entity.userids:
            if signing_key in (identity.email or ""):
                return entity, entity
    return None


class SignerResolver:
    """Chooses a signer for a commit from git configuration."""

    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        logger: Optional[logging.Logger] = None,
        passphrase_prompt: Callable[[str], str] = getpass.getpass,
        key_loader: Callable[[bytes], List[Any]] = load_secret_keys,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.runner = runner or CommandRunner()
        self.logger = logger or null_logger()
        self.passphrase_prompt = passphrase_prompt
        self.key_loader = key_loader
        self.environ = os.environ if environ is None else environ

    def resolve(self, config: GitConfig) -> Optional[CommitSigner]:
        """Return a signer, or None when signing is disabled.

        Raises:
            ConfigurationError: If signing is enabled without a signing key
            SigningError: If no usable key can be found or unlocked
        """
        if not config.gpg_sign:
            return None
        if not config.signing_key:
            raise ConfigurationError("commit.gpgsign=true but user.signingkey not configured")

        if self.is_agent_available(config.gpg_program):
            self.logger.debug("Signing through gpg agent", extra={"key": config.signing_key})
            return self._agent_signer(config)

        self.logger.debug("gpg agent unavailable, reading keyring directly", extra={"key": config.signing_key})
        return self._keyring_signer(config)

    def is_agent_available(self, gpg_program: str) -> bool:
        if self.environ.get("GPG_AGENT_INFO"):
            return True
        return self.runner.run([gpg_program, "--batch", "--list-secret-keys"]).ok

    def _agent_signer(self, config: GitConfig) -> GpgAgentSigner:
        result = self.runner.run([config.gpg_program, "--list-secret-keys", config.signing_key])
        if not result.ok:
            raise SigningError(f"signing key {config.signing_key} not found or not available")
        return GpgAgentSigner(self.runner, config.gpg_program, config.signing_key)

    def _gnupg_home(self) -> Path:
        home = self.environ.get("GNUPGHOME")
        if home:
            return Path(home)
        return Path.home() / ".gnupg"

    def _read_keyring(self, gpg_program: str) -> bytes:
        legacy = self._gnupg_home() / "secring.gpg"
        if legacy.exists():
            try:
                return legacy.read_bytes()
            except OSError as e:
                raise SigningError(f"failed to open secret keyring: {e}") from e

        result = self.runner.run([gpg_program, "--export-secret-keys", "--armor"])
        if not result.ok:
            raise SigningError(f"failed to export GPG keys: {result.stderr_text}")
        return result.stdout

    def _keyring_signer(self, config: GitConfig) -> KeyringSigner:
        blob = self._read_keyring(config.gpg_program)
        try:
            entities = self.key_loader(blob)
        except Exception as e:
            raise SigningError(f"failed to access GPG keyring: {e}") from e

        found = find_signing_key(entities, config.signing_key)
        if found is None:
            raise SigningError(f"signing key {config.signing_key} not found in keyring")
        entity, signing_key = found

        passphrase = None
        if _key_has_protection(entity):
            passphrase = self.passphrase_prompt(f"Enter passphrase for GPG key {config.signing_key}: ")
            try:
                with entity.unlock(passphrase):
                    pass
            except Exception as e:
                raise SigningError(
                    f"incorrect passphrase or decryption failed for {config.signing_key}: {e}"
                ) from e

        return KeyringSigner(entity, signing_key, passphrase)
