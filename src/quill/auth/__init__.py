# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication helpers.

This package provides:
- Password hashing/verification (argon2)
- Server-side sessions behind signed cookies (itsdangerous)
- Registration and login rules on top of the data store
"""
