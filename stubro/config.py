import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# API Configuration
GOOGLE_API_KEY = os.getenv('GOOGLE_API_KEY')

# Gemini model tiers
GEMINI_FLASH_MODEL = os.getenv('GEMINI_FLASH_MODEL', 'gemini-2.5-flash')
GEMINI_PRO_MODEL = os.getenv('GEMINI_PRO_MODEL', 'gemini-2.5-pro')
GEMINI_IMAGE_MODEL = os.getenv('GEMINI_IMAGE_MODEL', 'gemini-2.5-flash-image')

# Largest slice of source material sent with a single request
SOURCE_CHAR_BUDGET = int(os.getenv('SOURCE_CHAR_BUDGET', '60000'))
CHAT_CONTEXT_CHARS = 10000

# Firebase
FIREBASE_CREDENTIALS = os.getenv('FIREBASE_CREDENTIALS', '')
FIREBASE_WEB_API_KEY = os.getenv('FIREBASE_WEB_API_KEY', '')
ACTIVITIES_COLLECTION = os.getenv('ACTIVITIES_COLLECTION', 'activities')

# Access
INVITE_CODE = os.getenv('INVITE_CODE', 'GARVBRO')
STARTING_TOKENS = int(os.getenv('STARTING_TOKENS', '100'))
DEV_MODE = os.getenv('STUBRO_DEV_MODE', 'false').lower() in ('1', 'true', 'yes')

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level=None):
    """Configure root logging once for the Streamlit process."""
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stdout,
    )


def get_api_key():
    """
    Get the Google API key from environment variables.
    Returns None if the key is not set.
    """
    if not GOOGLE_API_KEY:
        logger.warning("GOOGLE_API_KEY not found in environment variables. "
                       "Set it in the .env file or paste a key in the sidebar.")
        return None
    return GOOGLE_API_KEY


def validate_api_key(api_key):
    """
    Validate the format of the API key.
    Returns True if valid, False otherwise.
    """
    if not api_key:
        return False
    return len(api_key) > 20 and api_key.startswith('AI')


def is_firebase_configured():
    return bool(FIREBASE_CREDENTIALS)
