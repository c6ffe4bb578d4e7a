from __future__ import annotations

from dotenv import load_dotenv

from vidbrief.api.app import create_app
from vidbrief.core.logging import setup_logging

load_dotenv()
setup_logging()

# uvicorn vidbrief.main:app
app = create_app()
