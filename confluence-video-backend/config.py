"""
Configuration file for the Confluence page-to-video backend.
Contains all global constants and prompt engineering templates.
"""

import os

# --- Constants ---
PROJECT_ROOT = os.getcwd()
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{os.path.join(PROJECT_ROOT, 'video_jobs.db')}")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",") if o.strip()]

# How often Celery beat runs the background poller
POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "60"))

# --- Text generation (Gemini) ---
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
GEMINI_API_URL = os.getenv(
    "GEMINI_API_URL",
    f"https://generativelanguage.googleapis.com/v1beta/models/{GEMINI_MODEL}:generateContent",
)
SCRIPT_TIMEOUT = 60

# --- Video vendor (Golpo AI) ---
GOLPO_API_KEY = os.getenv("GOLPO_API_KEY", "")
GOLPO_API_URL = os.getenv("GOLPO_API_URL", "https://api.golpoai.com").rstrip("/")
GOLPO_GENERATE_PATH = "/api/v1/videos/generate"
GOLPO_STATUS_PATH = "/api/v1/videos/status/{job_id}"
VIDEO_TIMEOUT = 60
STATUS_TIMEOUT = 30

# --- Confluence ---
CONFLUENCE_BASE_URL = os.getenv("CONFLUENCE_BASE_URL", "").rstrip("/")
CONFLUENCE_EMAIL = os.getenv("CONFLUENCE_EMAIL", "")
CONFLUENCE_API_TOKEN = os.getenv("CONFLUENCE_API_TOKEN", "")
CONFLUENCE_TIMEOUT = 30
PAGE_SUMMARY_LENGTH = 400
PAGE_SEARCH_LIMIT = 10

# --- Storage keys ---
JOB_KEY_PREFIX = "video-job-"
ACTIVE_JOBS_KEY = "active-video-jobs"

# --- Video defaults ---
# The vendor refuses anything shorter than this
MIN_VIDEO_MINUTES = 2
WORDS_PER_MINUTE = 150
DURATION_BUFFER = 1.3
DEFAULT_VOICE = "solo-female"
DEFAULT_LANGUAGE = "english"
VIDEO_ORIENTATION = "landscape"
VIDEO_ASPECT_RATIO = "16:9"

# --- Prompt Engineering Section ---

SCRIPT_PROMPT_TEMPLATE = """You are writing the narration script for a short explainer video about a Confluence page.

VERY IMPORTANT RULES:
1.  Write the script in {language}.
2.  The video lasts about {duration} minute(s). Keep the script to roughly {word_budget} words.
3.  Summarize the key points concisely. Do NOT tell a story and do NOT invent characters.
4.  Output ONLY the script text. No headings, no markdown, no stage directions.
{extra_instructions}
--- PAGE CONTENT ---
{document}
--- END OF PAGE CONTENT ---
"""
