import asyncio
import logging
from typing import Awaitable, Callable, List, Set, Tuple

from fastapi import BackgroundTasks

from authguard.app.services.email_service import EmailDispatcher, IEmailService
from authguard.domain.validation import mask_email

logger = logging.getLogger(__name__)

_detached_tasks: Set[asyncio.Task] = set()


def _detached_done(task: asyncio.Task) -> None:
    _detached_tasks.discard(task)
    if not task.cancelled() and task.exception() is not None:
        logger.error("Detached task failed", exc_info=task.exception())


def keep_running(task: asyncio.Task) -> asyncio.Task:
    """Hold a reference to a task nobody awaits until it finishes"""
    _detached_tasks.add(task)
    task.add_done_callback(_detached_done)
    return task


class BackgroundEmailDispatcher(EmailDispatcher):
    """
    Queues sends and runs them from FastAPI BackgroundTasks after the response.

    BackgroundTasks only run once a response goes out. When the client is
    gone first, ``detach`` moves queued sends, and any later ones, onto
    their own event loop tasks.
    """

    def __init__(self, background_tasks: BackgroundTasks, email_service: IEmailService):
        self.background_tasks = background_tasks
        self.email_service = email_service
        self.detached = False
        self.queued: List[Tuple[Callable[..., Awaitable[None]], Tuple[str, str]]] = []

    def dispatch_password_reset(self, email: str, token: str) -> None:
        self._schedule(self._send_password_reset, email, token)

    def dispatch_verification(self, email: str, token: str) -> None:
        self._schedule(self._send_verification, email, token)

    def detach(self) -> None:
        self.detached = True
        queued, self.queued = self.queued, []
        for send, args in queued:
            keep_running(asyncio.create_task(send(*args)))

    def _schedule(self, send: Callable[..., Awaitable[None]], *args: str) -> None:
        if self.detached:
            keep_running(asyncio.create_task(send(*args)))
            return
        if not self.queued:
            self.background_tasks.add_task(self._run_queued)
        self.queued.append((send, args))

    async def _run_queued(self) -> None:
        while self.queued:
            send, args = self.queued.pop(0)
            await send(*args)

    async def _send_password_reset(self, email: str, token: str) -> None:
        try:
            result = await self.email_service.send_password_reset(email, token)
        except Exception:
            logger.exception(f"Password reset email raised for {mask_email(email)}")
            return
        if not result.delivered:
            logger.warning(
                f"Password reset email not delivered to {mask_email(email)}: {result.reason}"
            )

    async def _send_verification(self, email: str, token: str) -> None:
        try:
            result = await self.email_service.send_verification(email, token)
        except Exception:
            logger.exception(f"Verification email raised for {mask_email(email)}")
            return
        if not result.delivered:
            logger.warning(
                f"Verification email not delivered to {mask_email(email)}: {result.reason}"
            )
