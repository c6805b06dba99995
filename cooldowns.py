import asyncio
import time
from typing import Callable, Dict


class CooldownTracker:
    """
    Кулдауны команд в памяти процесса.

    Ключ - "user_id:command", значение - момент истечения по часам clock (в секундах).
    После перезапуска все кулдауны сбрасываются.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._expiry: Dict[str, float] = {}
        self._timers: Dict[str, asyncio.TimerHandle] = {}

    @staticmethod
    def _key(user_id: str, command: str) -> str:
        return f"{user_id}:{command}"

    def is_on_cooldown(self, user_id: str, command: str) -> bool:
        key = self._key(user_id, command)
        expiry = self._expiry.get(key)
        if expiry is None:
            return False
        if self._clock() < expiry:
            return True
        self._expiry.pop(key, None)
        return False

    def set_cooldown(self, user_id: str, command: str, duration_ms: int) -> None:
        """Перезаписывает кулдаун и планирует удаление записи по истечении"""
        key = self._key(user_id, command)
        duration = max(0, duration_ms) / 1000
        self._expiry[key] = self._clock() + duration

        timer = self._timers.pop(key, None)
        if timer:
            timer.cancel()

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Без цикла событий запись удаляется лениво в is_on_cooldown
            return
        self._timers[key] = loop.call_later(duration, self._expire, key)

    def remaining(self, user_id: str, command: str) -> int:
        """Оставшееся время кулдауна в миллисекундах"""
        expiry = self._expiry.get(self._key(user_id, command))
        if expiry is None:
            return 0
        return max(0, int((expiry - self._clock()) * 1000))

    def _expire(self, key: str) -> None:
        # Таймер перевзводится при каждой установке, поэтому сработавший всегда актуален
        self._timers.pop(key, None)
        self._expiry.pop(key, None)

    def clear(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._expiry.clear()

    def __len__(self) -> int:
        return len(self._expiry)
