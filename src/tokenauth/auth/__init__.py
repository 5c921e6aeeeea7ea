# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Token authentication.

This package provides:
- Password hashing/verification (argon2)
- Account loading from a users.yml file
- Signed session tokens (itsdangerous, HMAC-SHA256)
- The login and authenticate flows (AuthService)
"""
