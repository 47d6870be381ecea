# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""podmenu - Container discovery and command execution engine for status-bar menus."""

__version__ = "0.4.0"
