# app/shared/services/cache_service.py
"""
Cache read-through en memoria para listados de almacenes y cotizaciones por cliente

Las escrituras sobre cada tipo de entidad invalidan su prefijo de forma
síncrona, antes de devolver la respuesta.
"""
import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple

from app.config.settings import settings

logger = logging.getLogger(__name__)

WAREHOUSES_PREFIX = "warehouses:"
USER_QUOTES_PREFIX = "quotes:user:"


class CacheService:
    def __init__(self, ttl_seconds: Optional[int] = None):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.cache_ttl_seconds
        self._store: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at < time.monotonic():
                del self._store[key]
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._store[key] = (time.monotonic() + self.ttl_seconds, value)

    def invalidate_prefix(self, prefix: str) -> int:
        with self._lock:
            keys = [k for k in self._store if k.startswith(prefix)]
            for key in keys:
                del self._store[key]
        if keys:
            logger.debug(f"🧹 Cache invalidado: {prefix}* ({len(keys)} entradas)")
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    # ==================== ALMACENES ====================

    def get_warehouses(self, filters_key: str) -> Optional[Any]:
        return self.get(f"{WAREHOUSES_PREFIX}{filters_key}")

    def set_warehouses(self, filters_key: str, value: Any) -> None:
        self.set(f"{WAREHOUSES_PREFIX}{filters_key}", value)

    def invalidate_warehouses(self) -> None:
        self.invalidate_prefix(WAREHOUSES_PREFIX)

    # ==================== COTIZACIONES POR CLIENTE ====================

    def get_user_quotes(self, user_id: int, filters_key: str) -> Optional[Any]:
        return self.get(f"{USER_QUOTES_PREFIX}{user_id}:{filters_key}")

    def set_user_quotes(self, user_id: int, filters_key: str, value: Any) -> None:
        self.set(f"{USER_QUOTES_PREFIX}{user_id}:{filters_key}", value)

    def invalidate_user_quotes(self, user_id: Optional[int] = None) -> None:
        if user_id is None:
            self.invalidate_prefix(USER_QUOTES_PREFIX)
        else:
            self.invalidate_prefix(f"{USER_QUOTES_PREFIX}{user_id}:")


cache_service = CacheService()
