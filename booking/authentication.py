"""
Token authentication for the booking API.

Clients send ``Authorization: Token <key>``.  Keys are issued through
``rest_framework.authtoken``; this subclass only pins the keyword and
gives settings a stable import path.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    keyword = 'Token'
