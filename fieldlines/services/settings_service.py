"""
Settings service for runtime configuration with database overrides.

Settings are read from the system_settings table first, then a Redis cache,
then environment variables, then a default. Redis is shared across instances
and optional: when it is unreachable reads go straight to the database.
"""

import os
import time
import logging
from typing import Dict, List, Optional, Tuple

from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from dotenv import load_dotenv

from fieldlines.database.models import SystemSetting
from fieldlines.services.errors import NotFoundError
from fieldlines.utils.constants import (
    DEFAULT_MAINTENANCE_MESSAGE,
    MAINTENANCE_MESSAGE_KEY,
    MAINTENANCE_MODE_KEY,
)

load_dotenv()

logger = logging.getLogger(__name__)

# Redis configuration
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB = int(os.getenv("REDIS_DB", "0"))
CACHE_TTL_SECONDS = 60
REDIS_KEY_PREFIX = "settings:"

# Maintenance flag is checked on every request; keep a short in-process copy
MAINTENANCE_CACHE_TTL_SECONDS = 5

_redis_client: Optional[Redis] = None
# (checked_at, enabled)
_maintenance_cache: Optional[Tuple[float, bool]] = None


def get_bool_env(key: str, default: bool = True) -> bool:
    """
    Parse a boolean environment variable ("true", "1", "yes" are True).

    Args:
        key: Environment variable name
        default: Default value if the variable is not set
    """
    value = os.getenv(key)
    if value is None:
        return default
    return parse_bool(value)


def parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


# ----------------------------------------------------------------------------
# Redis cache
# ----------------------------------------------------------------------------


async def get_redis_client() -> Optional[Redis]:
    """
    Get or create the Redis client connection.

    Returns:
        Redis client or None if the server is unreachable
    """
    global _redis_client

    if _redis_client is not None:
        try:
            await _redis_client.ping()
            return _redis_client
        except Exception as e:
            logger.warning(f"Redis connection test failed, recreating client: {e}")
            try:
                await _redis_client.close()
            except Exception as close_error:
                logger.debug(f"Error closing stale Redis client: {close_error}")
            _redis_client = None

    try:
        _redis_client = Redis(
            host=REDIS_HOST,
            port=REDIS_PORT,
            db=REDIS_DB,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
            retry_on_timeout=True,
        )
        await _redis_client.ping()
        logger.info(f"Connected to Redis at {REDIS_HOST}:{REDIS_PORT}/{REDIS_DB}")
        return _redis_client
    except Exception as e:
        logger.warning(f"Failed to connect to Redis at {REDIS_HOST}:{REDIS_PORT}/{REDIS_DB}: {e}")
        _redis_client = None
        return None


async def _get_cached_setting(key: str) -> Optional[str]:
    try:
        redis_client = await get_redis_client()
        if redis_client is None:
            return None
        return await redis_client.get(f"{REDIS_KEY_PREFIX}{key}")
    except Exception as e:
        logger.warning(f"Error getting cached setting {key} from Redis: {e}")
        return None


async def _set_cached_setting(key: str, value: Optional[str]):
    try:
        redis_client = await get_redis_client()
        if redis_client is None:
            return
        redis_key = f"{REDIS_KEY_PREFIX}{key}"
        if value is not None:
            await redis_client.setex(redis_key, CACHE_TTL_SECONDS, value)
        else:
            await redis_client.delete(redis_key)
    except Exception as e:
        logger.warning(f"Error setting cached setting {key} in Redis: {e}")


async def invalidate_settings_cache():
    """Drop every cached setting (call after updating settings)."""
    global _maintenance_cache
    _maintenance_cache = None
    try:
        redis_client = await get_redis_client()
        if redis_client is None:
            return
        keys = [key async for key in redis_client.scan_iter(match=f"{REDIS_KEY_PREFIX}*")]
        if keys:
            await redis_client.delete(*keys)
            logger.info(f"Cleared {len(keys)} cached settings from Redis")
    except Exception as e:
        logger.warning(f"Error clearing cache from Redis: {e}")


async def close_redis_connection():
    """Close the Redis connection (call on application shutdown)."""
    global _redis_client
    if _redis_client is not None:
        try:
            await _redis_client.close()
            logger.info("Closed Redis connection")
        except Exception as e:
            logger.warning(f"Error closing Redis connection: {e}")
        finally:
            _redis_client = None


# ----------------------------------------------------------------------------
# Database access
# ----------------------------------------------------------------------------


def setting_to_dict(setting: SystemSetting) -> Dict:
    return {
        "key": setting.key,
        "value": setting.value,
        "updated_by": setting.updated_by,
        "updated_at": setting.updated_at.isoformat() if setting.updated_at else None,
    }


async def _get_setting_row(session: AsyncSession, key: str) -> Optional[SystemSetting]:
    result = await session.execute(select(SystemSetting).where(SystemSetting.key == key))
    return result.scalar_one_or_none()


async def list_settings(session: AsyncSession) -> List[Dict]:
    result = await session.execute(select(SystemSetting).order_by(SystemSetting.key))
    return [setting_to_dict(s) for s in result.scalars().all()]


async def get_setting(session: AsyncSession, key: str) -> Optional[str]:
    """Raw database value of a setting, or None."""
    setting = await _get_setting_row(session, key)
    return setting.value if setting else None


async def get_setting_detail(session: AsyncSession, key: str) -> Dict:
    setting = await _get_setting_row(session, key)
    if not setting:
        raise NotFoundError("Setting not found")
    return setting_to_dict(setting)


async def set_setting(
    session: AsyncSession, key: str, value: str, updated_by: Optional[int] = None
) -> Dict:
    """
    Create or update a setting and invalidate the cache.

    Raises:
        ValueError: Empty key or missing value
    """
    if not (key or "").strip():
        raise ValueError("Setting key is required")
    if value is None:
        raise ValueError("Setting value is required")

    setting = await _get_setting_row(session, key)
    if setting is None:
        setting = SystemSetting(key=key, value=str(value), updated_by=updated_by)
        session.add(setting)
    else:
        setting.value = str(value)
        setting.updated_by = updated_by
    await session.flush()
    await session.refresh(setting)
    await invalidate_settings_cache()
    logger.info(f"Setting '{key}' updated by user {updated_by}")
    return setting_to_dict(setting)


# ----------------------------------------------------------------------------
# Fallback reads
# ----------------------------------------------------------------------------


async def get_setting_with_fallback(
    session: Optional[AsyncSession],
    key: str,
    env_var: Optional[str] = None,
    default: Optional[str] = None,
    fallback_to_cache: bool = True,
) -> Optional[str]:
    """
    Get a setting value from the database first, then cache, env var, default.

    Args:
        session: Database session (optional)
        key: Setting key in database
        env_var: Environment variable name to fall back to
        default: Default value if nothing else is set
        fallback_to_cache: Consult Redis when the database has no value
    """
    if session:
        try:
            value = await get_setting(session, key)
            if value is not None:
                await _set_cached_setting(key, value)
                return value
        except Exception as e:
            logger.warning(f"Error reading setting {key} from database: {e}")

    if fallback_to_cache:
        cached = await _get_cached_setting(key)
        if cached is not None:
            return cached

    if env_var:
        value = os.getenv(env_var)
        if value is not None:
            return value

    return default


async def get_bool_setting(
    session: Optional[AsyncSession],
    key: str,
    env_var: Optional[str] = None,
    default: bool = True,
    fallback_to_cache: bool = True,
) -> bool:
    value = await get_setting_with_fallback(session, key, env_var, None, fallback_to_cache)
    if value is None:
        return default
    return parse_bool(value)


# ----------------------------------------------------------------------------
# Maintenance mode
# ----------------------------------------------------------------------------


async def is_maintenance_mode(session: Optional[AsyncSession]) -> bool:
    """Whether maintenance mode is on. Cached in-process for a few seconds."""
    global _maintenance_cache
    now = time.monotonic()
    if _maintenance_cache is not None:
        checked_at, enabled = _maintenance_cache
        if now - checked_at < MAINTENANCE_CACHE_TTL_SECONDS:
            return enabled

    enabled = await get_bool_setting(
        session, MAINTENANCE_MODE_KEY, env_var="MAINTENANCE_MODE", default=False
    )
    _maintenance_cache = (now, enabled)
    return enabled


async def get_maintenance_message(session: Optional[AsyncSession]) -> str:
    message = await get_setting_with_fallback(
        session, MAINTENANCE_MESSAGE_KEY, default=DEFAULT_MAINTENANCE_MESSAGE
    )
    return message or DEFAULT_MAINTENANCE_MESSAGE


async def get_maintenance_status(session: Optional[AsyncSession]) -> Dict:
    enabled = await is_maintenance_mode(session)
    return {
        "maintenance_mode": enabled,
        "message": await get_maintenance_message(session) if enabled else None,
    }
