# -*- coding: utf-8 -*-
"""
Narrow persistence interfaces for customers and prompts.

Business logic depends only on ``CustomerStore`` and ``PromptStore``; the SQL
implementations live in ``prompt_manager.stores.sql`` and in-memory fakes in
``prompt_manager.stores.memory``.
"""
from prompt_manager.stores.base import CustomerStore, PromptStore

__all__ = ["CustomerStore", "PromptStore"]
