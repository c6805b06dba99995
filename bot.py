import asyncio
import logging
import time
from typing import Any, Dict, Optional

from config import Config
from cooldowns import CooldownTracker
from data.texts import TEXTS
from db import operations as db
from errors import FatalConnectionError
from handlers.context import Services
from handlers.group_events import GroupEventHandler
from handlers.message_handlers import MessageDispatcher
from permissions import PermissionService
from plugin_manager import PluginManager
from scheduler import TaskScheduler
from transport.base import ConnectionUpdate, Transport
from utils import mention_tag

logger = logging.getLogger(__name__)


class Bot:
    """Собирает сервисы, подключает их к транспорту и следит за соединением"""

    def __init__(self, config: Config, transport: Transport):
        self.config = config
        self.transport = transport

        db_path = config.db_path
        self.services = Services(
            config=config,
            db_path=db_path,
            transport=transport,
            permissions=PermissionService(config.real_owner, db_path, transport),
            plugins=PluginManager(config, db_path),
            cooldowns=CooldownTracker(),
            scheduler=TaskScheduler(db_path),
        )
        self.dispatcher = MessageDispatcher(self.services)
        self.group_events = GroupEventHandler(self.services)

        self.reconnect_attempts = 0
        self.fatal_error: Optional[FatalConnectionError] = None
        self._stopping = False
        self._stopped: Optional[asyncio.Event] = None

    @property
    def plugins(self) -> PluginManager:
        return self.services.plugins

    @property
    def scheduler(self) -> TaskScheduler:
        return self.services.scheduler

    def uptime(self) -> float:
        return self.services.uptime

    async def start(self) -> None:
        self._stopped = asyncio.Event()
        self.services.started_at = time.time()

        await db.init_db(self.config.db_path, self.config.real_owner)

        loaded = await self.plugins.load_all()
        logger.info(f"Плагины загружены: {loaded}")
        self.plugins.start_watcher()

        self.scheduler.register("reminder", self._run_reminder)
        self.scheduler.register("unmute", self._run_unmute)
        self.scheduler.register("unrestrict", self._run_unrestrict)
        await self.scheduler.restore()

        self.transport.on_message = self.dispatcher.handle_messages
        self.transport.on_group_participants = self.group_events.handle_participants
        self.transport.on_connection_update = self.handle_connection_update
        self.transport.on_call = self.group_events.handle_call

        logger.info("Подключение к WhatsApp...")
        await self.transport.connect()

    async def wait(self) -> None:
        """Ждёт остановки бота. Поднимает FatalConnectionError при окончательной потере соединения."""
        await self._stopped.wait()
        if self.fatal_error:
            raise self.fatal_error

    async def stop(self) -> None:
        if self._stopping:
            return
        self._stopping = True
        logger.info("Остановка бота...")

        self.plugins.stop_watcher()
        await self.scheduler.stop()
        self.services.cooldowns.clear()
        try:
            await self.transport.disconnect()
        except Exception as e:
            logger.warning(f"Ошибка при отключении: {str(e)}")

        if self._stopped:
            self._stopped.set()

    # --- Соединение ---

    async def handle_connection_update(self, update: ConnectionUpdate) -> None:
        if update.state == "open":
            if self.reconnect_attempts:
                logger.info(f"Соединение восстановлено после {self.reconnect_attempts} попыток")
            else:
                logger.info("Соединение установлено")
            self.reconnect_attempts = 0
            return

        if update.state != "close" or self._stopping:
            return

        if update.logged_out:
            self._fail("Session logged out, re-authentication required")
            return

        self.reconnect_attempts += 1
        if self.reconnect_attempts > self.config.max_reconnect_attempts:
            self._fail(f"Connection lost after {self.config.max_reconnect_attempts} reconnect attempts")
            return

        logger.warning(
            f"Соединение потеряно ({update.error or 'без причины'}), переподключение "
            f"{self.reconnect_attempts}/{self.config.max_reconnect_attempts} "
            f"через {self.config.reconnect_delay_seconds} сек"
        )
        await asyncio.sleep(self.config.reconnect_delay_seconds)
        if self._stopping:
            return

        try:
            await self.transport.connect()
        except Exception as e:
            logger.error(f"Ошибка переподключения: {str(e)}")
            await self.handle_connection_update(ConnectionUpdate(state="close", error=str(e)))

    def _fail(self, reason: str) -> None:
        logger.critical(f"Фатальная ошибка соединения: {reason}")
        self.fatal_error = FatalConnectionError(reason)
        if self._stopped:
            self._stopped.set()

    # --- Отложенные задачи ---

    async def _run_reminder(self, payload: Dict[str, Any]) -> None:
        user_id = payload["user_id"]
        text = TEXTS["reminder"].format(mention=mention_tag(user_id), text=payload.get("text", ""))
        await self.transport.send_text(payload["chat_id"], text, mentions=[user_id])

    async def _run_unmute(self, payload: Dict[str, Any]) -> None:
        """Снимает мут, если он не был снят или продлён вручную"""
        user_id = payload["user_id"]
        user = await db.get_user(user_id, self.config.db_path)
        if user is None or user.muted_until != payload.get("until"):
            logger.debug(f"Мут {user_id} уже снят или продлён, пропускаем")
            return

        await db.unmute_user(user_id, self.config.db_path)
        logger.info(f"Мут пользователя {user_id} истёк")
        chat_id = payload.get("chat_id")
        if chat_id:
            await self.transport.send_text(
                chat_id, TEXTS["unmuted"].format(mention=mention_tag(user_id)), mentions=[user_id]
            )

    async def _run_unrestrict(self, payload: Dict[str, Any]) -> None:
        """Снимает ограничение молча, если оно не было снято или продлено вручную"""
        user_id = payload["user_id"]
        user = await db.get_user(user_id, self.config.db_path)
        if user is None or user.restricted_until != payload.get("until"):
            logger.debug(f"Ограничение {user_id} уже снято или продлено, пропускаем")
            return

        await db.unrestrict_user(user_id, self.config.db_path)
        logger.info(f"Ограничение пользователя {user_id} истекло")
