# -*- coding: utf-8 -*-
from prompt_manager.infra.db import db

from .customer import Customer
from .prompt import Prompt

__all__ = ["db", "Customer", "Prompt"]
