# -*- coding: utf-8 -*-
"""
Artificial latency for local development.

Useful for exercising loading states in the frontend. Does nothing outside
``APP_ENV=development``.
"""
import time
from typing import Optional

from flask import current_app


def dev_delay(ms: Optional[int] = None) -> None:
    if current_app.config.get('APP_ENV') != 'development':
        return
    if ms is None:
        ms = current_app.config.get('PROMPTS_DEV_DELAY_MS', 0)
    if ms and ms > 0:
        time.sleep(ms / 1000.0)
