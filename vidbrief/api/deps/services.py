"""Collaborators owned by the application lifespan, exposed as dependencies."""

from __future__ import annotations

import asyncpg
from fastapi import Request

from vidbrief.core.config import Settings
from vidbrief.core.errors import NotReadyError
from vidbrief.services.credentials import CredentialService
from vidbrief.services.summarizer import SummaryGenerator


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db_pool(request: Request) -> asyncpg.Pool:
    pool = getattr(request.app.state, "db_pool", None)
    if pool is None:
        raise NotReadyError("Database is not available.")
    return pool


def get_credential_service(request: Request) -> CredentialService:
    return request.app.state.credentials


def get_summary_generator(request: Request) -> SummaryGenerator:
    return request.app.state.generator
