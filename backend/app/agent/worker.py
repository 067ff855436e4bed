import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy import Engine

from app.agent.base import BaseAgent, default_agents
from app.agent.orchestrator import run_multi_agents

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisJob:
    project_id: int
    site_text: str = ""
    comment_text: str = ""


class AnalysisWorker:
    """
    Background consumer of analysis jobs.

    Intake only enqueues; the consumer starts one orchestration task per job so
    several projects can be analysed at the same time. `join()` returns once
    every submitted job has settled.
    """

    def __init__(
        self,
        engine: Engine,
        agents_factory: Callable[[], list[BaseAgent]] = default_agents,
    ):
        self.engine = engine
        self.agents_factory = agents_factory
        self._queue: asyncio.Queue[AnalysisJob] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._consumer: asyncio.Task | None = None
        self._running: set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    async def start(self) -> None:
        if self.is_running:
            return
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._consumer = asyncio.create_task(self._consume(), name="analysis-worker")
        logger.info("Analysis worker started.")

    def submit(self, job: AnalysisJob) -> None:
        """Enqueue a job; safe to call from request-handling threads."""
        if not self.is_running or self._queue is None or self._loop is None:
            raise RuntimeError("Analysis worker is not running")
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None
        if current_loop is self._loop:
            self._queue.put_nowait(job)
        else:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, job)
        logger.info("Queued analysis of project #%s.", job.project_id)

    async def join(self) -> None:
        if self._queue is not None:
            await self._queue.join()

    async def stop(self, *, drain: bool = True) -> None:
        if self._consumer is None:
            return
        if drain:
            await self.join()
        else:
            for task in list(self._running):
                task.cancel()
            await asyncio.gather(*self._running, return_exceptions=True)
        self._consumer.cancel()
        await asyncio.gather(self._consumer, return_exceptions=True)
        self._consumer = None
        self._queue = None
        logger.info("Analysis worker stopped.")

    async def _consume(self) -> None:
        assert self._queue is not None
        queue = self._queue
        while True:
            job = await queue.get()
            task = asyncio.create_task(self._process(job), name=f"analysis-{job.project_id}")
            self._running.add(task)
            task.add_done_callback(self._running.discard)
            task.add_done_callback(lambda _: queue.task_done())

    async def _process(self, job: AnalysisJob) -> None:
        try:
            agents = self.agents_factory()
        except Exception:
            # e.g. no provider key configured; the project still gets closed.
            logger.exception("Could not build agents for project #%s", job.project_id)
            agents = []
        try:
            await run_multi_agents(
                job.project_id,
                job.site_text,
                job.comment_text,
                agents=agents,
                engine=self.engine,
            )
        except Exception:
            logger.exception("Analysis of project #%s aborted", job.project_id)
