import logging
from enum import IntEnum
from typing import Iterable, List, Optional, Tuple

from audit import log_action
from db import operations as db
from errors import PermissionDeniedError, RoleChangeError
from transport.base import Transport
from utils import normalize_jid, jid_to_phone

logger = logging.getLogger(__name__)


class Role(IntEnum):
    USER = 1
    ADMIN = 2
    OWNER = 3
    REAL_OWNER = 4

    @property
    def token(self) -> str:
        return self.name.lower()

    @classmethod
    def from_token(cls, token: str) -> Optional["Role"]:
        try:
            return cls[str(token).upper()]
        except KeyError:
            return None


ROLE_DESCRIPTIONS = {
    Role.USER: "Regular user",
    Role.ADMIN: "Group administrator",
    Role.OWNER: "Bot owner",
    Role.REAL_OWNER: "Primary bot owner",
}


def level_of(token: str) -> int:
    """Уровень роли по строковому токену, 0 для неизвестного токена"""
    role = Role.from_token(token)
    return int(role) if role else 0


def validate_permission_list(tokens: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Делит список токенов на известные роли и неизвестные"""
    valid, unknown = [], []
    for token in tokens:
        if Role.from_token(token):
            valid.append(str(token).lower())
        else:
            unknown.append(token)
    return valid, unknown


def roles() -> List[dict]:
    """Иерархия ролей по возрастанию уровня"""
    return [
        {"role": role.token, "level": int(role), "description": ROLE_DESCRIPTIONS[role]}
        for role in Role
    ]


class PermissionService:
    """
    Определяет роль пользователя и проверяет права на команды.

    Порядок определения роли: Real Owner из конфига, затем таблица owners,
    затем админ группы по метаданным транспорта, иначе user.
    """

    def __init__(self, real_owner: str, db_path: str, transport: Optional[Transport] = None):
        self.real_owner = normalize_jid(real_owner)
        self.db_path = db_path
        self.transport = transport

    def is_real_owner(self, user_id: str) -> bool:
        return normalize_jid(user_id) == self.real_owner

    async def is_owner(self, user_id: str) -> bool:
        return await db.is_owner(normalize_jid(user_id), self.db_path)

    async def is_group_admin(self, user_id: str, chat_id: str) -> bool:
        """Ошибка транспорта трактуется как отсутствие прав админа"""
        if self.transport is None:
            return False
        try:
            metadata = await self.transport.group_metadata(chat_id)
        except Exception as e:
            logger.warning(f"Не удалось получить метаданные группы {chat_id}: {str(e)}")
            return False

        user_id = normalize_jid(user_id)
        return any(
            normalize_jid(p.id) == user_id and (p.is_admin or p.is_super_admin)
            for p in metadata.participants
        )

    async def get_role(self, user_id: str, chat_id: Optional[str] = None, is_group: bool = False) -> Role:
        if self.is_real_owner(user_id):
            return Role.REAL_OWNER
        if await self.is_owner(user_id):
            return Role.OWNER
        if is_group and chat_id and await self.is_group_admin(user_id, chat_id):
            return Role.ADMIN
        return Role.USER

    async def has_permission(
        self,
        user_id: str,
        required: Iterable[str],
        chat_id: Optional[str] = None,
        is_group: bool = False
    ) -> bool:
        """True, если уровень пользователя не ниже уровня хотя бы одного из токенов"""
        levels = [level_of(token) for token in required]
        levels = [level for level in levels if level > 0]
        if not levels:
            levels = [int(Role.USER)]

        role = await self.get_role(user_id, chat_id, is_group)
        return int(role) >= min(levels)

    async def can_manage_plugins(self, user_id: str) -> bool:
        return self.is_real_owner(user_id) or await self.is_owner(user_id)

    async def can_act_on(self, actor_id: str, target_id: str, chat_id: Optional[str] = None,
                         is_group: bool = False) -> bool:
        """Модератор должен быть не ниже admin и строго выше цели"""
        actor_role = await self.get_role(actor_id, chat_id, is_group)
        if actor_role < Role.ADMIN:
            return False
        target_role = await self.get_role(target_id, chat_id, is_group)
        return actor_role > target_role

    async def add_owner(self, actor_id: str, target_id: str) -> None:
        if not self.is_real_owner(actor_id):
            raise PermissionDeniedError("Only the real owner can add owners")
        if self.is_real_owner(target_id):
            raise RoleChangeError("The real owner's role cannot be changed")

        target_id = normalize_jid(target_id)
        await db.add_owner(target_id, jid_to_phone(target_id), normalize_jid(actor_id), self.db_path)
        log_action("OWNER_ADDED", actor=actor_id, target=target_id)

    async def remove_owner(self, actor_id: str, target_id: str) -> bool:
        if not self.is_real_owner(actor_id):
            raise PermissionDeniedError("Only the real owner can remove owners")
        if self.is_real_owner(target_id):
            raise RoleChangeError("The real owner's role cannot be changed")

        removed = await db.remove_owner(normalize_jid(target_id), self.db_path)
        if removed:
            log_action("OWNER_REMOVED", actor=actor_id, target=target_id)
        return removed
