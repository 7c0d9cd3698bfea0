"""
Configuration validation and connectivity testing for JellyRPC.
"""
import re
from typing import Tuple, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import Settings
from .logger import get_logger

logger = get_logger()

_GUID_RE = re.compile(r"^[0-9a-fA-F]{8}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{12}$")

def validate_jellyfin_connection(settings: Settings, session: Optional[requests.Session] = None) -> Tuple[bool, Optional[str]]:
    """
    Test connectivity to the Jellyfin server and that the API key is accepted.

    Returns:
        Tuple of (success: bool, error_message: Optional[str])
    """
    try:
        if session is None:
            session = requests.Session()
            retry_strategy = Retry(total=2, backoff_factor=0.5)
            adapter = HTTPAdapter(max_retries=retry_strategy)
            session.mount("http://", adapter)
            session.mount("https://", adapter)

        url = f"{settings.jellyfin.server_url}/System/Info"
        response = session.get(url, headers={"X-Emby-Token": settings.jellyfin.api_key}, timeout=5)

        if response.status_code == 200:
            logger.info("✓ Jellyfin connection successful")
            return True, None
        elif response.status_code == 401:
            error = "Jellyfin rejected the API key. Check jellyfin.api_key in config."
        else:
            error = f"Jellyfin returned status {response.status_code}"
        logger.error(f"✗ {error}")
        return False, error

    except requests.exceptions.ConnectionError:
        error = "Cannot connect to Jellyfin server. Check base_url in config."
        logger.error(f"✗ {error}")
        return False, error
    except requests.exceptions.Timeout:
        error = "Jellyfin server connection timed out."
        logger.error(f"✗ {error}")
        return False, error
    except Exception as e:
        error = f"Jellyfin validation failed: {e}"
        logger.error(f"✗ {error}")
        return False, error

def validate_discord_client_id(client_id: str) -> Tuple[bool, Optional[str]]:
    """
    Validate Discord client ID format.

    Returns:
        Tuple of (success: bool, error_message: Optional[str])
    """
    if not client_id:
        error = "Discord client ID is empty"
        logger.error(f"✗ {error}")
        return False, error

    if not client_id.isdigit():
        error = f"Discord client ID should be numeric, got: {client_id}"
        logger.error(f"✗ {error}")
        return False, error

    # Discord snowflakes are typically 17-20 digits
    if len(client_id) < 17 or len(client_id) > 20:
        logger.warning(f"⚠ Discord client ID has unusual length: {len(client_id)} digits")

    logger.info("✓ Discord client ID format valid")
    return True, None

def validate_user_id(user_id: str) -> Tuple[bool, Optional[str]]:
    """Jellyfin user IDs are GUIDs, with or without dashes."""
    if not user_id:
        error = "Jellyfin user ID is empty"
        logger.error(f"✗ {error}")
        return False, error

    if not _GUID_RE.match(user_id):
        logger.warning(f"⚠ Jellyfin user ID does not look like a GUID: {user_id}")

    return True, None

def validate_configuration(settings: Settings) -> bool:
    """
    Validate all configuration settings and test the Jellyfin connection.

    Returns:
        True if all validations pass, False otherwise
    """
    logger.info("Validating configuration...")

    checks = [
        validate_discord_client_id(settings.integration.discord_client_id),
        validate_user_id(settings.jellyfin.user_id),
        validate_jellyfin_connection(settings),
    ]
    all_valid = all(ok for ok, _ in checks)

    if all_valid:
        logger.info("✓ All configuration checks passed!")
    else:
        logger.warning("✗ Configuration validation failed. Please check your config.yaml")

    return all_valid
