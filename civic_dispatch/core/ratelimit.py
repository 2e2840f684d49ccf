# File: civic_dispatch/core/ratelimit.py
# Project: civic-dispatch

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, default_limits=[])
