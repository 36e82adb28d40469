# careerguide/config.py
# Environment configuration. Values come from the process env or a local .env file.

import os

from dotenv import load_dotenv

# Ensure environment variables from .env are loaded
load_dotenv()

SERVICE_NAME = os.getenv("SERVICE_NAME", "careerguide-assistant")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Text generator
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))

# Session store: "memory" or "sqlite"
SESSION_BACKEND = os.getenv("SESSION_BACKEND", "memory").lower()
SESSION_DB_PATH = os.getenv("SESSION_DB_PATH", "/tmp/careerguide_sessions.db")
SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "86400"))

# How many prior messages a freeform chat turn sends to the generator
CHAT_HISTORY_WINDOW = int(os.getenv("CHAT_HISTORY_WINDOW", "10"))
