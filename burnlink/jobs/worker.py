from arq import cron
from arq.connections import RedisSettings
from opentelemetry import trace

from burnlink.config import settings
from burnlink.db.base import create_engine_for, create_session_factory
from burnlink.repositories.message_repository import MessageRepository
from burnlink.services.access_service import AccessService
from burnlink.utils.telemetry import init_otel


async def purge_messages(ctx) -> dict:
    """Periodic cleanup: delete expired and stale messages."""
    tracer = trace.get_tracer("worker")
    with tracer.start_as_current_span("purge_messages"):
        removed = await ctx["access_service"].purge()
    return {"removed": removed}


class WorkerSettings:
    functions = [purge_messages]
    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)
    cron_jobs = [
        cron(purge_messages, minute={0, 15, 30, 45}),
    ]

    @staticmethod
    async def startup(ctx):
        engine = create_engine_for(settings.DB_URL)
        ctx["engine"] = engine
        ctx["access_service"] = AccessService(MessageRepository(create_session_factory(engine)))
        if settings.OTEL_ENABLED:
            init_otel(engine=engine, service_name="burnlink-worker")

    @staticmethod
    async def shutdown(ctx):
        engine = ctx.get("engine")
        if engine is not None:
            await engine.dispose()
