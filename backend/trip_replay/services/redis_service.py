import json
import logging
from typing import Any, Dict, List, Optional, Union
from redis import Redis

logger = logging.getLogger(__name__)

FEED_KEY = "replay:feed"
LAYERS_KEY = "replay:layers"


class RedisService:
    """Caches the currently loaded feed and geometry documents in Redis."""

    def __init__(self, host: str = "localhost", port: int = 6379, password: Optional[str] = None):
        """Connect to Redis; without a reachable server the cache is disabled."""
        try:
            self.redis = Redis(host=host, port=port, password=password, decode_responses=True)
            self.redis.ping()
            logger.info("Successfully connected to Redis")
        except Exception as e:
            logger.warning(f"Failed to connect to Redis: {str(e)}. Running without a document cache.")
            self.redis = None

    @property
    def available(self) -> bool:
        return self.redis is not None

    def _set(self, key: str, data: Union[Dict, List]) -> bool:
        if self.redis is None:
            return False

        try:
            return bool(self.redis.set(key, json.dumps(data)))
        except Exception as e:
            logger.error(f"Error writing {key} to Redis: {str(e)}")
            return False

    def _get_document(self, key: str) -> Optional[Dict[str, Any]]:
        if self.redis is None:
            return None

        try:
            data = self.redis.get(key)
            if not data:
                return None
            deserialized = json.loads(data)
        except Exception as e:
            logger.error(f"Error reading {key} from Redis: {str(e)}")
            return None

        if not isinstance(deserialized, dict):
            logger.warning("Ignoring cached %s: not a JSON object", key)
            return None
        return deserialized

    def store_feed(self, document: Dict[str, Any]) -> bool:
        """Replace the cached feed document."""
        return self._set(FEED_KEY, document)

    def get_feed(self) -> Optional[Dict[str, Any]]:
        return self._get_document(FEED_KEY)

    def store_layers(self, documents: Dict[str, Any]) -> bool:
        """Merge layer documents into the cached geometry set."""
        cached = self.get_layers() or {}
        cached.update(documents)
        return self._set(LAYERS_KEY, cached)

    def get_layers(self) -> Optional[Dict[str, Any]]:
        return self._get_document(LAYERS_KEY)
