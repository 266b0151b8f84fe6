"""
Configuration module for {SYSTEM_NAME}.

This module provides configuration settings and utilities for the {SYSTEM_NAME}.
"""
import os
import logging
from typing import Dict, Any
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# MongoDB configuration
MONGODB_URI = os.environ.get("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DATABASE = os.environ.get("MONGODB_DATABASE", "interview_agent")
MONGODB_SESSIONS_COLLECTION = os.environ.get("MONGODB_SESSIONS_COLLECTION", "interview_sessions")
MONGODB_RECRUITER_COLLECTION = os.environ.get("MONGODB_RECRUITER_COLLECTION", "recruiter_configs")
RECRUITER_ID = os.environ.get("RECRUITER_ID", "default_recruiter")

# LLM configuration
LLM_MODEL = os.environ.get("LLM_MODEL", "gemini-1.5-flash")
LLM_TEMPERATURE = float(os.environ.get("LLM_TEMPERATURE", "0.7"))
SCORING_TEMPERATURE = float(os.environ.get("SCORING_TEMPERATURE", "0.0"))
GENERATION_TIMEOUT_SECONDS = float(os.environ.get("GENERATION_TIMEOUT_SECONDS", "30"))

# Stage configuration
STAGE_THRESHOLD_DEFAULT = int(os.environ.get("STAGE_THRESHOLD_DEFAULT", "3"))

# Code execution configuration
CODE_EXECUTION_PROVIDER = os.environ.get("CODE_EXECUTION_PROVIDER", "judge0")
DEFAULT_CODE_LANGUAGE = os.environ.get("DEFAULT_CODE_LANGUAGE", "javascript")
CODE_EXECUTION_TIMEOUT_SECONDS = float(os.environ.get("CODE_EXECUTION_TIMEOUT_SECONDS", "15"))
CODE_EXECUTION_MAX_POLLS = int(os.environ.get("CODE_EXECUTION_MAX_POLLS", "30"))
CODE_EXECUTION_POLL_INTERVAL = float(os.environ.get("CODE_EXECUTION_POLL_INTERVAL", "1.0"))
JUDGE0_URL = os.environ.get("JUDGE0_URL", "https://judge0-ce.p.rapidapi.com")
JUDGE0_KEY = os.environ.get("JUDGE0_KEY", "")
ONECOMPILER_ACCESS_TOKEN = os.environ.get("ONECOMPILER_ACCESS_TOKEN", os.environ.get("ONECOMPILER_KEY", ""))
ONECOMPILER_RAPIDAPI_KEY = os.environ.get("ONECOMPILER_RAPIDAPI_KEY", "")

# Session configuration
SESSION_TIMEOUT_MINUTES = int(os.environ.get("SESSION_TIMEOUT_MINUTES", "60"))
MAX_SESSION_HISTORY = int(os.environ.get("MAX_SESSION_HISTORY", "500"))

# --- System Configuration ---
SYSTEM_NAME = os.getenv("SYSTEM_NAME", "Interview Agent")

def get_db_config() -> Dict[str, str]:
    """
    Get MongoDB configuration.

    Returns:
        Dictionary with MongoDB configuration
    """
    return {
        "uri": MONGODB_URI,
        "database": MONGODB_DATABASE,
        "sessions_collection": MONGODB_SESSIONS_COLLECTION,
        "recruiter_collection": MONGODB_RECRUITER_COLLECTION,
        "recruiter_id": RECRUITER_ID,
    }

def get_llm_config() -> Dict[str, Any]:
    """
    Get LLM configuration.

    Returns:
        Dictionary with LLM configuration
    """
    return {
        "model": LLM_MODEL,
        "temperature": LLM_TEMPERATURE,
        "scoring_temperature": SCORING_TEMPERATURE,
        "timeout": GENERATION_TIMEOUT_SECONDS,
    }

def get_stage_config() -> Dict[str, Any]:
    """
    Get stage threshold configuration.

    Per-stage overrides are read from ``STAGE_THRESHOLD_<STAGE>`` variables,
    e.g. ``STAGE_THRESHOLD_CODING=5``.

    Returns:
        Dictionary with the default threshold and any per-stage overrides
    """
    overrides = {}
    prefix = "STAGE_THRESHOLD_"
    for key, value in os.environ.items():
        if key.startswith(prefix) and key != "STAGE_THRESHOLD_DEFAULT":
            overrides[key[len(prefix):].lower()] = int(value)
    return {
        "default_threshold": STAGE_THRESHOLD_DEFAULT,
        "thresholds": overrides,
    }

def get_code_execution_config() -> Dict[str, Any]:
    """
    Get code execution provider configuration.

    Returns:
        Dictionary with code execution configuration
    """
    return {
        "provider": CODE_EXECUTION_PROVIDER,
        "default_language": DEFAULT_CODE_LANGUAGE,
        "timeout": CODE_EXECUTION_TIMEOUT_SECONDS,
        "max_polls": CODE_EXECUTION_MAX_POLLS,
        "poll_interval": CODE_EXECUTION_POLL_INTERVAL,
        "judge0_url": JUDGE0_URL,
        "judge0_key": JUDGE0_KEY,
        "onecompiler_access_token": ONECOMPILER_ACCESS_TOKEN,
        "onecompiler_rapidapi_key": ONECOMPILER_RAPIDAPI_KEY,
    }

def get_session_config() -> Dict[str, Any]:
    """
    Get session configuration.

    Returns:
        Dictionary with session configuration
    """
    return {
        "timeout_minutes": SESSION_TIMEOUT_MINUTES,
        "max_history": MAX_SESSION_HISTORY,
    }

def log_config():
    """Log current configuration values (excluding sensitive information)."""
    logger.info("Current configuration:")
    logger.info(f"- MongoDB Database: {MONGODB_DATABASE}")
    logger.info(f"- Sessions Collection: {MONGODB_SESSIONS_COLLECTION}")
    logger.info(f"- Recruiter Collection: {MONGODB_RECRUITER_COLLECTION}")
    logger.info(f"- LLM Model: {LLM_MODEL}")
    logger.info(f"- LLM Temperature: {LLM_TEMPERATURE}")
    logger.info(f"- Generation Timeout: {GENERATION_TIMEOUT_SECONDS} seconds")
    logger.info(f"- Default Stage Threshold: {STAGE_THRESHOLD_DEFAULT}")
    logger.info(f"- Code Execution Provider: {CODE_EXECUTION_PROVIDER}")
    logger.info(f"- Default Code Language: {DEFAULT_CODE_LANGUAGE}")
    logger.info(f"- Session Timeout: {SESSION_TIMEOUT_MINUTES} minutes")
    logger.info(f"- Max Session History: {MAX_SESSION_HISTORY} entries")
    logger.info(f"- Judge0 Key: {'Configured' if JUDGE0_KEY else 'Not configured'}")
    logger.info(f"- OneCompiler Token: {'Configured' if ONECOMPILER_ACCESS_TOKEN else 'Not configured'}")
