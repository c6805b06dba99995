import argparse
import asyncio
import logging
import os
import signal
import sys
from logging.handlers import RotatingFileHandler
from typing import List, Optional

from bot import Bot
from config import Config
from errors import FatalConnectionError


def setup_logging(config: Config):
    """Настраивает логирование на основе конфигурации"""
    if not config.logging.enabled:
        return

    # Настраиваем корневой логгер
    root_logger = logging.getLogger()
    root_logger.setLevel(config.logging.level)

    # Создаем форматтер для логов
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Добавляем вывод в консоль
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Файлы логов с ротацией
    log_dir = config.logging.log_dir
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

        combined_handler = RotatingFileHandler(
            os.path.join(log_dir, "combined.log"),
            maxBytes=config.logging.max_bytes,
            backupCount=config.logging.backup_count,
            encoding="utf-8"
        )
        combined_handler.setFormatter(formatter)
        root_logger.addHandler(combined_handler)

        error_handler = RotatingFileHandler(
            os.path.join(log_dir, "error.log"),
            maxBytes=config.logging.max_bytes,
            backupCount=config.logging.backup_count,
            encoding="utf-8"
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        root_logger.addHandler(error_handler)

        # Чувствительные действия пишутся ещё и в отдельный журнал
        audit_handler = RotatingFileHandler(
            os.path.join(log_dir, "audit.log"),
            maxBytes=config.logging.max_bytes,
            backupCount=config.logging.backup_count,
            encoding="utf-8"
        )
        audit_handler.setFormatter(formatter)
        logging.getLogger("audit").addHandler(audit_handler)

    # Настраиваем уровни логирования для разных модулей
    module_loggers = {
        "bot": ["bot", "main"],
        "handlers": ["handlers"],
        "database": ["db"],
        "plugins": ["plugin_manager", "scheduler"],
        "audit": ["audit"],
    }
    for module, names in module_loggers.items():
        level = config.logging.level if getattr(config.logging.modules, module) else logging.WARNING
        for name in names:
            logging.getLogger(name).setLevel(level)

    # watchdog очень подробен на DEBUG
    logging.getLogger("watchdog").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info("Логирование настроено")

    # Логируем важные параметры конфигурации
    if config.logging.config:
        logger.info("Параметры конфигурации:")
        logger.info(f"bot_name: {config.bot_name}")
        logger.info(f"prefix: {config.prefix}")
        logger.info(f"db_path: {config.db_path}")
        logger.info(f"plugins_dir: {config.plugins_dir}")
        logger.info(f"hot_reload: {config.hot_reload}")
        logger.info(f"default_cooldown_ms: {config.default_cooldown_ms}")
        logger.info(f"max_reconnect_attempts: {config.max_reconnect_attempts}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="WhatsApp command bot")
    parser.add_argument(
        "-p", "--paircode",
        action="store_true",
        help="authenticate with a pairing code instead of a QR code"
    )
    parser.add_argument(
        "--phone",
        help="phone number to pair with (defaults to the real owner's number)"
    )
    parser.add_argument(
        "--config",
        default=os.environ.get("BOT_CONFIG", "config.json"),
        help="path to the JSON configuration file (env BOT_CONFIG)"
    )
    return parser.parse_args(argv)


def create_transport(config: Config, args: argparse.Namespace):
    # neonize ставится отдельно (extra "whatsapp"), поэтому импорт здесь
    from transport.neonize_client import NeonizeTransport

    pair_phone = None
    if args.paircode:
        pair_phone = args.phone or config.real_owner.split("@")[0]
    return NeonizeTransport(config.session_path, config.bot_name, pair_phone=pair_phone)


def handle_loop_exception(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    """Необработанные ошибки фоновых задач только логируются"""
    exception = context.get("exception")
    logging.getLogger(__name__).error(
        f"Необработанная ошибка в фоновой задаче: {context.get('message')}",
        exc_info=exception
    )


async def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    # Загружаем конфигурацию
    try:
        config = Config.from_json_file(args.config)
    except (OSError, ValueError) as e:
        logging.basicConfig(level=logging.INFO)
        logging.error(f"Не удалось загрузить конфигурацию {args.config}: {str(e)}")
        return 1

    # Настраиваем логирование
    setup_logging(config)

    logger = logging.getLogger(__name__)
    logger.info(f"Запуск бота {config.bot_name}...")

    loop = asyncio.get_running_loop()
    loop.set_exception_handler(handle_loop_exception)

    bot = Bot(config, create_transport(config, args))

    stop_tasks = set()

    def request_stop():
        task = asyncio.ensure_future(bot.stop())
        stop_tasks.add(task)
        task.add_done_callback(stop_tasks.discard)

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_stop)
        except NotImplementedError:
            # Windows: остаётся KeyboardInterrupt
            pass

    try:
        await bot.start()
    except Exception as e:
        logger.critical(f"Ошибка запуска бота: {str(e)}", exc_info=True)
        await bot.stop()
        return 1

    try:
        await bot.wait()
    except FatalConnectionError as e:
        logger.critical(f"Бот остановлен: {str(e)}")
        await bot.stop()
        return 1
    finally:
        logger.info("Завершение работы бота")

    return 0


def run():
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logging.info("Бот остановлен пользователем")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Критическая ошибка: {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    run()
