# -*- coding: utf-8 -*-
# prompt_manager/models/prompt.py
from prompt_manager.infra.db import db
from prompt_manager.records import PromptRecord, utcnow


class Prompt(db.Model):
    __tablename__ = 'prompts'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    # Identity of the owner; not a foreign key, a customer row may not exist yet.
    user_id = db.Column(db.String(255), nullable=False, index=True)

    name = db.Column(db.Text, nullable=False)
    description = db.Column(db.Text, nullable=False)
    content = db.Column(db.Text, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_record(self) -> PromptRecord:
        return PromptRecord(
            id=self.id,
            owner=self.user_id,
            name=self.name,
            description=self.description,
            content=self.content,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self):
        return f"<Prompt {self.id} owner={self.user_id}>"
