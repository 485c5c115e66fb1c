"""
Timeline Action Agent Entry Point
타임라인을 주기적으로 읽고 like/retweet/quote/reply 를 판단·실행
"""
import asyncio
import signal

from config.settings import settings
from core.llm import create_llm_client
from core.vision import ImageDescriptionService
from actionbot.core.logger import setup_logger
from actionbot.memory.database import MemoryDatabase
from actionbot.persona.persona_loader import PersonaLoader
from actionbot.platforms.twitter.api.client import ClientRegistry
from actionbot.platforms.twitter.actions.processor import ActionConfig, ActionProcessor
from actionbot.platforms.twitter.errors import MissingCredentialsError

logger = setup_logger(log_dir=settings.LOG_DIR)


async def run_async(stop_event: asyncio.Event = None):
    """에이전트 실행 (stop_event가 set 될 때까지)"""
    stop_event = stop_event or asyncio.Event()
    persona = PersonaLoader.load_persona(settings.PERSONA_NAME)
    config = ActionConfig.from_settings(settings)

    logger.info("============ AGENT START ============")
    logger.info(f"Identity: {persona.name} (agent_id={settings.AGENT_ID})")

    memory_db = MemoryDatabase(settings.MEMORY_DB_PATH)
    llm = create_llm_client()
    logger.info(f"LLM provider: {llm.provider_name}")

    vision = ImageDescriptionService() if settings.GEMINI_API_KEY else None
    registry = ClientRegistry()

    try:
        client = await registry.get_or_create(settings.AGENT_ID)
        processor = ActionProcessor(
            client, memory_db, llm, persona,
            agent_id=settings.AGENT_ID,
            config=config,
            vision=vision,
        )
        await processor.start()
        try:
            await stop_event.wait()
        finally:
            await processor.stop()
    finally:
        await registry.close_all()
        logger.info("============ AGENT STOP ============")


def _install_signal_handlers(stop_event: asyncio.Event):
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows: KeyboardInterrupt로 처리
            pass


async def _main_async():
    stop_event = asyncio.Event()
    _install_signal_handlers(stop_event)
    await run_async(stop_event)


def main():
    try:
        asyncio.run(_main_async())
    except KeyboardInterrupt:
        logger.info("\n[STOP] Shutdown via KeyboardInterrupt")
    except MissingCredentialsError as e:
        logger.critical(f"[FATAL] {e}")
        raise SystemExit(1)
    except Exception as e:
        logger.critical(f"\n[FATAL] Crash: {e}", exc_info=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
