# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Detached signatures for release archives.

Each archive gets an ASCII-armored detached signature next to it
(`<archive>.asc`). The private key lives in the signing utility's keyring;
provisioning and unlocking it is somebody else's job. We only pass along
which key to use and, if one is set in the environment, the passphrase.

The passphrase is fed on stdin (--passphrase-fd 0) so it never shows up in
the process list or in our logged command lines.
"""

import os
from pathlib import Path
from typing import Optional, Protocol

from relpack.logging.logger import get_logger
from relpack.release.errors import SigningError
from relpack.release.naming import signature_path
from relpack.release.process import run_command

_logger = get_logger(__name__)


class Signer(Protocol):
    """Produces a detached signature for a file and returns its path."""

    def sign(self, path: Path) -> Path: ...


class GpgSigner:
    """`gpg --batch --yes --armor --detach-sign --output <path>.asc <path>`."""

    def __init__(
        self,
        program: str = "gpg",
        key_id: Optional[str] = None,
        home: Optional[Path] = None,
        passphrase_env: Optional[str] = "GPG_PASSPHRASE",
        suffix: str = ".asc",
        timeout_seconds: Optional[int] = 120,
    ) -> None:
        self.program = program
        self.key_id = key_id
        self.home = home
        self.passphrase_env = passphrase_env
        self.suffix = suffix
        self.timeout_seconds = timeout_seconds

    def _passphrase(self) -> Optional[str]:
        if not self.passphrase_env:
            return None
        return os.environ.get(self.passphrase_env) or None

    def command(self, path: Path, with_passphrase: bool = False) -> list[str]:
        args = [self.program, "--batch", "--yes"]
        if self.home is not None:
            args.extend(["--homedir", str(self.home)])
        if self.key_id:
            args.extend(["--local-user", self.key_id])
        if with_passphrase:
            args.extend(["--pinentry-mode", "loopback", "--passphrase-fd", "0"])
        args.extend(
            [
                "--armor",
                "--detach-sign",
                "--output",
                str(signature_path(path, self.suffix)),
                str(path),
            ]
        )
        return args

    def sign(self, path: Path) -> Path:
        output = signature_path(path, self.suffix)
        passphrase = self._passphrase()

        result = run_command(
            self.command(path, with_passphrase=passphrase is not None),
            timeout_seconds=self.timeout_seconds,
            input_text=passphrase + "\n" if passphrase is not None else None,
        )
        if not result.success:
            raise SigningError(
                f"{self.program} failed to sign {path.name} (exit code {result.exit_code})",
                diagnostic=result.diagnostic,
            )
        if not output.is_file():
            raise SigningError(f"{self.program} reported success but {output} is missing")

        _logger.info(
            "Signed archive",
            extra={"archive": str(path), "signature": str(output), "key_id": self.key_id},
        )
        return output
