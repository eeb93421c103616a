# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""relpack: build, archive and sign one release binary per target platform."""

__version__ = "0.1.0"
