# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Release subsystem.

Target catalog, version resolution, workspace reset, per-target toolchain
invocation, archive packaging, detached signing, checksums and environment
preflight. The external tools (compiler, archiver, signer, git) are driven as
opaque commands; nothing here compiles, uploads or verifies anything itself.
"""
