import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from db import operations as db
from db.models import ScheduledTask

logger = logging.getLogger(__name__)

TaskHandler = Callable[[Dict[str, Any]], Awaitable[None]]


class TaskScheduler:
    """
    Отложенные действия (напоминания, снятие мута), которые переживают перезапуск.

    Каждая задача сначала записывается в scheduled_tasks, затем взводится как
    asyncio-задача. При старте restore() заново взводит все незавершённые записи,
    просроченные выполняются сразу.
    """

    def __init__(self, db_path: str, clock: Callable[[], float] = time.time):
        self.db_path = db_path
        self._clock = clock
        self._handlers: Dict[str, TaskHandler] = {}
        self._tasks: Dict[int, asyncio.Task] = {}

    def register(self, kind: str, handler: TaskHandler) -> None:
        self._handlers[kind] = handler
        logger.debug(f"Зарегистрирован обработчик задач '{kind}'")

    async def schedule(self, kind: str, run_at: int, payload: Optional[Dict[str, Any]] = None) -> int:
        if kind not in self._handlers:
            raise ValueError(f"No handler registered for task kind '{kind}'")

        task = await db.add_scheduled_task(kind, int(run_at), payload, self.db_path)
        self._arm(task)
        logger.info(f"Запланирована задача {task.id} ({kind}) на {task.run_at}")
        return task.id

    async def schedule_in(self, kind: str, delay_ms: int, payload: Optional[Dict[str, Any]] = None) -> int:
        return await self.schedule(kind, int(self._clock() + delay_ms / 1000), payload)

    async def restore(self) -> int:
        """Взводит задачи из базы. Возвращает количество восстановленных."""
        restored = 0
        for task in await db.get_pending_tasks(self.db_path):
            if task.id in self._tasks:
                continue
            if task.kind not in self._handlers:
                logger.warning(f"Нет обработчика для задачи {task.id} ({task.kind}), пропускаем")
                continue
            self._arm(task)
            restored += 1

        if restored:
            logger.info(f"Восстановлено отложенных задач: {restored}")
        return restored

    async def cancel(self, task_id: int) -> bool:
        running = self._tasks.pop(task_id, None)
        if running:
            running.cancel()
        deleted = await db.delete_scheduled_task(task_id, self.db_path)
        return deleted or running is not None

    async def stop(self) -> None:
        """Останавливает таймеры. Записи в базе остаются для следующего запуска."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def _arm(self, task: ScheduledTask) -> None:
        self._tasks[task.id] = asyncio.create_task(self._run(task))

    async def _run(self, task: ScheduledTask) -> None:
        delay = max(0.0, task.run_at - self._clock())
        await asyncio.sleep(delay)

        handler = self._handlers[task.kind]
        try:
            await handler(task.payload)
            logger.info(f"Задача {task.id} ({task.kind}) выполнена")
        except Exception as e:
            logger.error(f"Ошибка при выполнении задачи {task.id} ({task.kind}): {str(e)}", exc_info=True)
        finally:
            self._tasks.pop(task.id, None)

        await db.delete_scheduled_task(task.id, self.db_path)
